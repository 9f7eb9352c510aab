"""
clvault 상수 정의

온체인 수준 정밀도를 위한 상수들:
- Q96: sqrt price 인코딩에 사용 (2^96)
- MIN_TICK / MAX_TICK: 전역 틱 범위
- BPS: basis point 분모 (10000)
- PRICE_DECIMALS: 오라클 정규화 가격의 소수점 자릿수 (18)
"""

# Fixed-point 인코딩 상수
Q96: int = 2 ** 96
Q192: int = 2 ** 192
RESOLUTION: int = 96

# 틱 범위 상수
MIN_TICK: int = -887272
MAX_TICK: int = 887272

# TickMath 경계값 (MIN_TICK, MAX_TICK에서의 sqrtPriceX96)
MIN_SQRT_RATIO: int = 4295128739
MAX_SQRT_RATIO: int = 1461446703485210103287273052203988822378723970342

# 1.0001 (tick 1개당 가격 비율)
TICK_BASE: float = 1.0001

# uint 최대값
UINT256_MAX: int = 2 ** 256 - 1
UINT128_MAX: int = 2 ** 128 - 1

# basis points
BPS: int = 10_000

# 오라클 정규화 (18 decimals)
PRICE_DECIMALS: int = 18
PRICE_SCALE: int = 10 ** PRICE_DECIMALS
