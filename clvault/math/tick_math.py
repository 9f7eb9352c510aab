"""
Tick Math - Tick ↔ sqrtPriceX96 변환 및 틱 범위 계산

온체인 컨트랙트와 동일한 정밀도로 구현 (정수 연산만 사용).

References:
- Uniswap V3 Core: contracts/libraries/TickMath.sol
- Uniswap V3 SDK: nearestUsableTick

핵심 공식:
    price = 1.0001^tick
    sqrtPriceX96 = sqrt(price) * 2^96
    ±w 가격 범위의 틱 반폭 = ceil(ln(1 + w) / ln(1.0001))
"""

import math
from typing import Tuple

from ..constants import (
    BPS,
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    TICK_BASE,
    UINT256_MAX,
)


# abs_tick의 각 비트(2^1 ~ 2^19)에 대응하는 1/sqrt(1.0001)^(2^i) (Q128.128)
_RATIO_FACTORS: Tuple[int, ...] = (
    0xfff97272373d413259a46990580e213a,
    0xfff2e50f5f656932ef12357cf3c7fdcc,
    0xffe5caca7e10e4e61c3624eaa0941cd0,
    0xffcb9843d60f6159c9db58835c926644,
    0xff973b41fa98c081472e6896dfb254c0,
    0xff2ea16466c96a3843ec78b326b52861,
    0xfe5dee046a99a2a811c461f1969c3053,
    0xfcbe86c7900a88aedcffc83b479aa3a4,
    0xf987a7253ac413176f2b074cf7815e54,
    0xf3392b0822b70005940c7a398e4b70f3,
    0xe7159475a2c29b7443b29c7fa6e889d9,
    0xd097f3bdfd2022b8845ad8f792aa5825,
    0xa9f746462d870fdf8a65dc1f90e061e5,
    0x70d869a156d2a1b890bb3df62baf32f7,
    0x31be135f97d08fd981231505542fcfa6,
    0x9aa508b5b7a84e1c677de54f3e99bc9,
    0x5d6af8dedb81196699c329225ee604,
    0x2216e584f5fa1ea926041bedfe98,
    0x48a170391f7dc42444e8fa2,
)

# log_sqrt(1.0001)(2) * 2^64 및 반올림 오차 보정값
_LOG_SQRT10001_MULTIPLIER: int = 255738958999603826347141
_TICK_LOW_OFFSET: int = 3402992956809132418596140100660247210
_TICK_HIGH_OFFSET: int = 291339464771989622907027621153398088495


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """틱에서 sqrtPriceX96 계산

    Args:
        tick: 틱 인덱스 (-887272 ~ 887272)

    Returns:
        sqrtPriceX96 (Q64.96 형식)

    Raises:
        ValueError: 틱이 유효 범위를 벗어난 경우
    """
    if tick < MIN_TICK or tick > MAX_TICK:
        raise ValueError(f"틱이 유효 범위를 벗어났습니다: {tick} (범위: {MIN_TICK} ~ {MAX_TICK})")

    abs_tick = abs(tick)

    ratio = 0xfffcb933bd6fad37aa2d162d1a594001 if abs_tick & 0x1 \
        else 0x100000000000000000000000000000000

    for bit, factor in enumerate(_RATIO_FACTORS, start=1):
        if abs_tick & (1 << bit):
            ratio = (ratio * factor) >> 128

    if tick > 0:
        ratio = UINT256_MAX // ratio

    # Q128.128 -> Q64.96 (올림)
    return (ratio >> 32) + (1 if ratio % (1 << 32) else 0)


def get_tick_at_sqrt_ratio(sqrt_price_x96: int) -> int:
    """sqrtPriceX96에서 틱 계산

    get_sqrt_ratio_at_tick(tick) <= sqrt_price_x96 를 만족하는 최대 틱을 반환합니다.

    Raises:
        ValueError: sqrtPriceX96이 [MIN_SQRT_RATIO, MAX_SQRT_RATIO) 범위를 벗어난 경우
    """
    if sqrt_price_x96 < MIN_SQRT_RATIO or sqrt_price_x96 >= MAX_SQRT_RATIO:
        raise ValueError(f"sqrtPriceX96이 유효 범위를 벗어났습니다: {sqrt_price_x96}")

    ratio = sqrt_price_x96 << 32
    msb = ratio.bit_length() - 1

    if msb >= 128:
        r = ratio >> (msb - 127)
    else:
        r = ratio << (127 - msb)

    log_2 = (msb - 128) << 64

    # 소수부 14비트
    for i in range(14):
        r = (r * r) >> 127
        f = r >> 128
        log_2 |= f << (63 - i)
        r >>= f

    log_sqrt10001 = log_2 * _LOG_SQRT10001_MULTIPLIER

    tick_low = (log_sqrt10001 - _TICK_LOW_OFFSET) >> 128
    tick_high = (log_sqrt10001 + _TICK_HIGH_OFFSET) >> 128

    if tick_low == tick_high:
        return tick_low
    return tick_high if get_sqrt_ratio_at_tick(tick_high) <= sqrt_price_x96 else tick_low


def usable_tick_bounds(tick_spacing: int) -> Tuple[int, int]:
    """틱 간격의 배수이면서 전역 범위 안에 있는 최소/최대 틱"""
    if tick_spacing <= 0:
        raise ValueError(f"틱 간격은 양수여야 합니다: {tick_spacing}")
    max_usable = (MAX_TICK // tick_spacing) * tick_spacing
    return -max_usable, max_usable


def nearest_usable_tick(tick: int, tick_spacing: int) -> int:
    """틱을 가장 가까운 유효 틱(틱 간격의 배수)으로 반올림

    정확히 중간인 경우 올림(양의 방향)하며, 결과는 전역 틱 범위 안으로 clamp 됩니다.

    Args:
        tick: 반올림할 틱
        tick_spacing: 틱 간격 (예: 60)

    Returns:
        유효 틱
    """
    min_usable, max_usable = usable_tick_bounds(tick_spacing)
    if tick < MIN_TICK or tick > MAX_TICK:
        raise ValueError(f"틱이 유효 범위를 벗어났습니다: {tick}")

    lower = (tick // tick_spacing) * tick_spacing
    upper = lower + tick_spacing
    rounded = lower if tick - lower < upper - tick else upper

    if rounded < min_usable:
        return min_usable
    if rounded > max_usable:
        return max_usable
    return rounded


def tick_half_width(width_bps: int) -> int:
    """±width_bps 가격 범위에 해당하는 틱 반폭

    ±20% (2000 bps) -> ceil(ln(1.2) / ln(1.0001)) = 1824
    """
    if width_bps <= 0:
        raise ValueError(f"범위 폭은 양수여야 합니다: {width_bps}")
    return math.ceil(math.log(1 + width_bps / BPS) / math.log(TICK_BASE))


def range_around_tick(tick: int, tick_spacing: int, width_bps: int) -> Tuple[int, int]:
    """현재 틱을 중심으로 ±width_bps 틱 범위 계산

    양쪽 경계는 각각 가장 가까운 유효 틱으로 반올림됩니다.
    반올림 후 두 경계가 같아지면 상한을 한 칸 올립니다.

    Returns:
        (tick_lower, tick_upper)
    """
    half = tick_half_width(width_bps)
    lower = nearest_usable_tick(max(MIN_TICK, tick - half), tick_spacing)
    upper = nearest_usable_tick(min(MAX_TICK, tick + half), tick_spacing)

    if upper <= lower:
        _, max_usable = usable_tick_bounds(tick_spacing)
        if lower + tick_spacing <= max_usable:
            upper = lower + tick_spacing
        else:
            lower = upper - tick_spacing
    return lower, upper


def validate_tick_range(tick_lower: int, tick_upper: int, tick_spacing: int) -> None:
    """포지션 틱 범위 검증

    Raises:
        ValueError: lower >= upper, 간격의 배수가 아님, 전역 범위 밖인 경우
    """
    if tick_lower >= tick_upper:
        raise ValueError(f"하한 틱이 상한 틱보다 작아야 합니다: {tick_lower} >= {tick_upper}")
    if tick_lower < MIN_TICK or tick_upper > MAX_TICK:
        raise ValueError(f"틱 범위가 전역 범위를 벗어났습니다: [{tick_lower}, {tick_upper}]")
    if tick_lower % tick_spacing or tick_upper % tick_spacing:
        raise ValueError(
            f"틱이 틱 간격({tick_spacing})의 배수가 아닙니다: [{tick_lower}, {tick_upper}]"
        )
