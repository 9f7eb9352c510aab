"""
Valuation Engine - 포지션 총 가치 (기초 자산 단위)

    (amount0, amount1) = get_amounts_for_liquidity(풀 현재 가격, 범위, 유동성)
    value_usd          = amount0 * price0 / 10^decimals0 + amount1 * price1 / 10^decimals1
    total_value        = value_usd * 10^base_decimals / base_price

풀 가격은 포지션 구성 계산에만 쓰이고, 가치에는 오라클 가격만 쓰입니다.
따라서 풀 가격 조작(flash loan 등)으로 총 가치를 움직일 수 없습니다.
vault에 직접 전송된 토큰(donation)도 포함하지 않습니다.

오라클 검증 실패는 대체 가격 없이 그대로 전파됩니다.
"""

from typing import Callable, Optional

from .config import VaultConfig
from .interfaces import Pool
from .math.full_math import mul_div
from .math.liquidity_math import get_amounts_for_liquidity
from .math.tick_math import get_sqrt_ratio_at_tick
from .oracle import PriceOracle
from .types import Position, ValuationReport


class ValuationEngine:
    """읽기 전용 총 가치 계산기

    Args:
        config: vault 설정 (토큰, decimals, feed id)
        pool: 현재 풀 상태 조회
        oracle: 검증된 가격 조회
        position_source: 현재 포지션을 반환하는 함수 (없으면 None)
    """

    def __init__(
        self,
        config: VaultConfig,
        pool: Pool,
        oracle: PriceOracle,
        position_source: Callable[[], Optional[Position]]
    ):
        self.config = config
        self.pool = pool
        self.oracle = oracle
        self.position_source = position_source

    def composition(self, position: Position) -> tuple:
        """현재 풀 가격에서 포지션의 (amount0, amount1)"""
        state = self.pool.current_state()
        return get_amounts_for_liquidity(
            state.sqrt_price_x96,
            get_sqrt_ratio_at_tick(position.tick_lower),
            get_sqrt_ratio_at_tick(position.tick_upper),
            position.liquidity,
        )

    def breakdown(self) -> ValuationReport:
        position = self.position_source()
        if position is None:
            return ValuationReport.empty()

        cfg = self.config
        amount0, amount1 = self.composition(position)

        price0 = self.oracle.get_price(cfg.feed_for(cfg.token0))
        price1 = self.oracle.get_price(cfg.feed_for(cfg.token1))

        value0 = mul_div(amount0, price0, 10 ** cfg.decimals0)
        value1 = mul_div(amount1, price1, 10 ** cfg.decimals1)
        total_usd = value0 + value1

        base_price = price0 if cfg.base_is_token0 else price1
        total_value = mul_div(total_usd, 10 ** cfg.base_decimals, base_price)

        return ValuationReport(
            amount0=amount0,
            amount1=amount1,
            price0=price0,
            price1=price1,
            value0_usd=value0,
            value1_usd=value1,
            total_usd=total_usd,
            total_value=total_value,
        )

    def total_value(self) -> int:
        """기초 자산 단위 총 가치 (포지션이 없으면 0)"""
        if self.position_source() is None:
            return 0
        return self.breakdown().total_value
