"""
Range Manager - 가격이 활성 범위를 벗어났을 때 리밸런스

needs_rebalance: 현재 풀 틱이 [tick_lower, tick_upper] 밖이면 True
rebalance:
    1. 전체 유동성 회수 (unstake -> decrease -> collect)
    2. 회수한 두 토큰을 오라클 가치 기준 50/50으로 맞춤 (스왑 슬리피지 한도 적용)
    3. 현재 가격 중심 ±range_width_bps 범위로 새 포지션 민트 (새 token_id) 후 스테이킹

포지션이 없거나 이미 범위 안이면 아무것도 하지 않습니다.
"""

import logging
from typing import Optional, Tuple

from .config import VaultConfig
from .interfaces import Pool
from .math.full_math import mul_div
from .oracle import PriceOracle
from .position import LedgerResult, PositionLedger
from .swaps import SwapExecutor

logger = logging.getLogger(__name__)


class RangeManager:

    def __init__(
        self,
        config: VaultConfig,
        pool: Pool,
        ledger: PositionLedger,
        oracle: PriceOracle,
        swapper: SwapExecutor
    ):
        self.config = config
        self.pool = pool
        self.ledger = ledger
        self.oracle = oracle
        self.swapper = swapper

    def needs_rebalance(self) -> bool:
        position = self.ledger.position
        if position is None:
            return False
        tick = self.pool.current_state().tick
        return not position.contains(tick)

    def balance_amounts(self, amount0: int, amount1: int, deadline: int) -> Tuple[int, int]:
        """두 토큰의 오라클 가치가 같아지도록 초과분의 절반을 스왑"""
        cfg = self.config
        price0 = self.oracle.get_price(cfg.feed_for(cfg.token0))
        price1 = self.oracle.get_price(cfg.feed_for(cfg.token1))
        value0 = mul_div(amount0, price0, 10 ** cfg.decimals0)
        value1 = mul_div(amount1, price1, 10 ** cfg.decimals1)

        if value0 > value1:
            sell0 = mul_div((value0 - value1) // 2, 10 ** cfg.decimals0, price0)
            sell0 = min(sell0, amount0)
            bought1 = self.swapper.swap(cfg.token0, cfg.token1, sell0, deadline)
            return amount0 - sell0, amount1 + bought1
        if value1 > value0:
            sell1 = mul_div((value1 - value0) // 2, 10 ** cfg.decimals1, price1)
            sell1 = min(sell1, amount1)
            bought0 = self.swapper.swap(cfg.token1, cfg.token0, sell1, deadline)
            return amount0 + bought0, amount1 - sell1
        return amount0, amount1

    def rebalance(self, deadline: int) -> Optional[LedgerResult]:
        """범위를 벗어났으면 새 범위로 재배치

        Returns:
            기존 포지션 회수 결과 (unstake 보상 포함), no-op이면 None
        """
        if not self.needs_rebalance():
            return None

        old = self.ledger.position
        exited = self.ledger.exit_all(deadline)
        amount0, amount1 = self.balance_amounts(exited.amount0, exited.amount1, deadline)

        tick_lower, tick_upper = self.ledger.default_range()
        minted = self.ledger.mint(amount0, amount1, tick_lower, tick_upper, deadline)

        logger.info(
            "Rebalanced position %d [%d, %d] -> %d [%d, %d] (liquidity %d -> %d)",
            old.token_id, old.tick_lower, old.tick_upper,
            self.ledger.position.token_id, tick_lower, tick_upper,
            exited.liquidity, minted.liquidity
        )
        return exited
