"""
Liquidity Math - 유동성 ↔ 토큰 수량 변환

특정 가격 범위에서의 토큰 수량과 유동성 간의 변환.
96비트 스케일 값끼리의 곱은 모두 full_math.mul_div를 거칩니다.

References:
- Uniswap V3 Periphery: contracts/libraries/LiquidityAmounts.sol

핵심 공식:
    L = Δx * √P_a * √P_b / (√P_b - √P_a)  # token0 기준
    L = Δy / (√P_b - √P_a)                 # token1 기준
"""

from typing import Tuple

from ..constants import Q96, RESOLUTION
from .full_math import mul_div, to_uint128


def _sorted(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int) -> Tuple[int, int]:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        return sqrt_ratio_b_x96, sqrt_ratio_a_x96
    return sqrt_ratio_a_x96, sqrt_ratio_b_x96


def get_liquidity_for_amount0(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, amount0: int) -> int:
    """amount0로 얻을 수 있는 유동성

    Raises:
        ValueError: 두 가격이 같은 경우
        OverflowError: 결과가 uint128을 넘는 경우
    """
    sqrt_a, sqrt_b = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    if sqrt_a == sqrt_b:
        raise ValueError("가격 범위의 폭이 0입니다")

    intermediate = mul_div(sqrt_a, sqrt_b, Q96)
    return to_uint128(mul_div(amount0, intermediate, sqrt_b - sqrt_a))


def get_liquidity_for_amount1(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, amount1: int) -> int:
    """amount1로 얻을 수 있는 유동성"""
    sqrt_a, sqrt_b = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    if sqrt_a == sqrt_b:
        raise ValueError("가격 범위의 폭이 0입니다")

    return to_uint128(mul_div(amount1, Q96, sqrt_b - sqrt_a))


def get_liquidity_for_amounts(
    sqrt_ratio_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    amount0: int,
    amount1: int
) -> int:
    """토큰 수량에서 민트 가능한 최대 유동성 계산

    - 가격이 범위 아래: amount0만으로 결정
    - 가격이 범위 위: amount1만으로 결정
    - 가격이 범위 내: 두 단면 계산 중 작은 값 (제약이 되는 쪽)

    Args:
        sqrt_ratio_x96: 현재 sqrtPriceX96
        sqrt_ratio_a_x96: 하한 sqrtPriceX96
        sqrt_ratio_b_x96: 상한 sqrtPriceX96
        amount0: token0 수량
        amount1: token1 수량
    """
    sqrt_a, sqrt_b = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)

    if sqrt_ratio_x96 <= sqrt_a:
        return get_liquidity_for_amount0(sqrt_a, sqrt_b, amount0)
    if sqrt_ratio_x96 < sqrt_b:
        liquidity0 = get_liquidity_for_amount0(sqrt_ratio_x96, sqrt_b, amount0)
        liquidity1 = get_liquidity_for_amount1(sqrt_a, sqrt_ratio_x96, amount1)
        return min(liquidity0, liquidity1)
    return get_liquidity_for_amount1(sqrt_a, sqrt_b, amount1)


def get_amount0_for_liquidity(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    """유동성에 해당하는 token0 수량 (내림)"""
    sqrt_a, sqrt_b = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    if sqrt_a == 0:
        raise ValueError("sqrtPriceX96은 0일 수 없습니다")
    return mul_div(liquidity << RESOLUTION, sqrt_b - sqrt_a, sqrt_b) // sqrt_a


def get_amount1_for_liquidity(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    """유동성에 해당하는 token1 수량 (내림)"""
    sqrt_a, sqrt_b = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    return mul_div(liquidity, sqrt_b - sqrt_a, Q96)


def get_amounts_for_liquidity(
    sqrt_ratio_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int
) -> Tuple[int, int]:
    """현재 가격에서 포지션이 보유한 토큰 수량

    Returns:
        (amount0, amount1) 튜플
    """
    sqrt_a, sqrt_b = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)

    if sqrt_ratio_x96 <= sqrt_a:
        # 가격이 범위 아래: token0만 보유
        return get_amount0_for_liquidity(sqrt_a, sqrt_b, liquidity), 0
    if sqrt_ratio_x96 < sqrt_b:
        # 가격이 범위 내: 양쪽 토큰 보유
        amount0 = get_amount0_for_liquidity(sqrt_ratio_x96, sqrt_b, liquidity)
        amount1 = get_amount1_for_liquidity(sqrt_a, sqrt_ratio_x96, liquidity)
        return amount0, amount1
    # 가격이 범위 위: token1만 보유
    return 0, get_amount1_for_liquidity(sqrt_a, sqrt_b, liquidity)


def apply_slippage(amount: int, slippage_bps: int) -> int:
    """amount * (10000 - slippage_bps) / 10000 (내림)"""
    if not 0 <= slippage_bps <= 10_000:
        raise ValueError(f"슬리피지는 0 ~ 10000 bps 사이여야 합니다: {slippage_bps}")
    return mul_div(amount, 10_000 - slippage_bps, 10_000)
