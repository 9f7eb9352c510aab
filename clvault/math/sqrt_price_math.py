"""
Sqrt Price Math - sqrtPriceX96 ↔ 가격 변환

풀 가격은 sqrtPriceX96 형식으로 저장됩니다.
sqrtPriceX96 = sqrt(price) * 2^96, price = token1 / token0 (최소 단위 기준)

가격은 풀 구성(composition) 계산과 표시에만 사용됩니다.
가치 평가에는 항상 오라클 가격을 사용합니다.
"""

import math
from fractions import Fraction
from typing import Union

from ..constants import Q192

Number = Union[int, float, Fraction]


def price_to_sqrt_price_x96(price: Number) -> int:
    """raw 가격(token1/token0)을 sqrtPriceX96으로 변환 (내림)

    float 오차를 피하기 위해 Fraction으로 변환 후 정수 제곱근을 사용합니다.
    """
    ratio = Fraction(price)
    if ratio <= 0:
        raise ValueError("가격은 양수여야 합니다")
    return math.isqrt(ratio.numerator * Q192 // ratio.denominator)


def sqrt_price_x96_to_price(sqrt_price_x96: int) -> Fraction:
    """sqrtPriceX96을 정확한 raw 가격(token1/token0)으로 변환"""
    return Fraction(sqrt_price_x96 * sqrt_price_x96, Q192)
