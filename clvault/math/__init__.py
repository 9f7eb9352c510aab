"""
Math layer for clvault

온체인 수준 정밀도의 수학 함수들:
- full_math: 512비트 중간값 mul_div
- tick_math: Tick ↔ sqrtPriceX96 변환, 유효 틱/범위 계산
- sqrt_price_math: sqrtPriceX96 ↔ 가격 변환
- liquidity_math: 유동성 ↔ 토큰 수량 변환
"""

from .full_math import mul_div, mul_div_rounding_up
from .tick_math import (
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
    nearest_usable_tick,
    tick_half_width,
    range_around_tick,
    validate_tick_range,
)
from .sqrt_price_math import (
    price_to_sqrt_price_x96,
    sqrt_price_x96_to_price,
)
from .liquidity_math import (
    get_liquidity_for_amounts,
    get_amounts_for_liquidity,
    apply_slippage,
)
