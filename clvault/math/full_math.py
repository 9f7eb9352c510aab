"""
Full Math - 512비트 중간값 곱셈/나눗셈

Solidity에서는 96비트 스케일 값끼리 곱하면 uint256을 넘칠 수 있어
FullMath.mulDiv로 512비트 중간값을 사용합니다. Python int는 임의 정밀도이므로
중간값은 항상 정확하고, 여기서는 결과가 uint256 범위를 넘는지만 검사합니다.

References:
- Uniswap V3 Core: contracts/libraries/FullMath.sol
"""

from ..constants import UINT256_MAX, UINT128_MAX


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator)

    Raises:
        ZeroDivisionError: denominator가 0인 경우
        OverflowError: 결과가 uint256을 넘는 경우
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div: denominator가 0입니다")
    result = (a * b) // denominator
    return to_uint256(result)


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator)"""
    if denominator == 0:
        raise ZeroDivisionError("mul_div_rounding_up: denominator가 0입니다")
    product = a * b
    result = product // denominator
    if product % denominator > 0:
        result += 1
    return to_uint256(result)


def to_uint256(value: int) -> int:
    if value < 0 or value > UINT256_MAX:
        raise OverflowError(f"uint256 범위 초과: {value}")
    return value


def to_uint128(value: int) -> int:
    if value < 0 or value > UINT128_MAX:
        raise OverflowError(f"uint128 범위 초과: {value}")
    return value
