"""
Position Ledger - 단일 집중 유동성 포지션 상태 머신

상태:
    EMPTY        포지션 없음 (position is None)
    STAKED       gauge에 스테이킹됨 (작업 사이의 정상 상태)
    UNSTAKED     작업 도중 일시적으로 스테이킹 해제됨
    REBALANCING  리밸런스 도중 (기존 유동성 회수 후 새 포지션 민트 전)

전이:
    EMPTY    --open_or_increase--> STAKED   (mint + stake)
    STAKED   --open_or_increase--> STAKED   (unstake + increase + stake)
    STAKED   --decrease_proportional--> STAKED | EMPTY (잔여 유동성 0이면 해제)
    STAKED   --exit_all--> REBALANCING --mint--> STAKED

유동성 공급 최소 수량은 입력 수량이 암시하는 유동성으로 계산한 *예상 소비량*의
95%입니다 (원시 입력의 단순 비율이 아님).

민트, 유동성 추가, 부분 제거 직후에는 포지션 매니저의 기록과 대조합니다 (reconcile).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .config import VaultConfig
from .constants import UINT128_MAX
from .errors import InvalidTickRange, PositionMismatch, ValidationError, ZeroAmount
from .interfaces import Pool, PositionVenue, StakingVenue
from .math.liquidity_math import (
    apply_slippage,
    get_amounts_for_liquidity,
    get_liquidity_for_amounts,
)
from .math.tick_math import get_sqrt_ratio_at_tick, range_around_tick, validate_tick_range
from .types import IncreaseLiquidityParams, MintParams, PoolState, Position, PositionInfo

logger = logging.getLogger(__name__)


class LedgerState(str, Enum):
    EMPTY = "empty"
    STAKED = "staked"
    UNSTAKED = "unstaked"
    REBALANCING = "rebalancing"


@dataclass(frozen=True)
class LedgerResult:
    """포지션 변경 결과

    - liquidity: 추가/제거된 유동성
    - amount0 / amount1: 소비(추가)되거나 회수(제거)된 토큰 수량
    - rewards: unstake 부수 효과로 청구된 보상
    """
    liquidity: int
    amount0: int
    amount1: int
    rewards: int = 0


class PositionLedger:
    """vault가 소유한 단일 포지션의 상태와 외부 호출을 관리

    사용법:
        ledger = PositionLedger(config, pool, position_manager, gauge)
        ledger.open_or_increase(amount0, amount1, deadline)
        ledger.decrease_proportional(shares, total_shares, deadline)
    """

    def __init__(
        self,
        config: VaultConfig,
        pool: Pool,
        positions: PositionVenue,
        staking: StakingVenue
    ):
        self.config = config
        self.pool = pool
        self.positions = positions
        self.staking = staking
        self._position: Optional[Position] = None
        self._rebalancing = False

    # ------------------------------------------------------------------
    # 상태
    # ------------------------------------------------------------------

    @property
    def position(self) -> Optional[Position]:
        return self._position

    @property
    def state(self) -> LedgerState:
        if self._rebalancing:
            return LedgerState.REBALANCING
        if self._position is None:
            return LedgerState.EMPTY
        return LedgerState.STAKED if self._position.staked else LedgerState.UNSTAKED

    def checkpoint(self) -> Tuple[Optional[Position], bool]:
        return self._position, self._rebalancing

    def rollback(self, snapshot: Tuple[Optional[Position], bool]) -> None:
        self._position, self._rebalancing = snapshot

    # ------------------------------------------------------------------
    # 계산 헬퍼
    # ------------------------------------------------------------------

    def default_range(self, pool_state: Optional[PoolState] = None) -> Tuple[int, int]:
        """현재 풀 틱 중심 ±range_width_bps 범위"""
        state = pool_state or self.pool.current_state()
        return range_around_tick(state.tick, self.config.tick_spacing, self.config.range_width_bps)

    def expected_amounts(
        self,
        tick_lower: int,
        tick_upper: int,
        amount0: int,
        amount1: int,
        pool_state: PoolState
    ) -> Tuple[int, int, int]:
        """입력 수량이 암시하는 유동성과 그 유동성의 예상 토큰 소비량

        Returns:
            (liquidity, expected_amount0, expected_amount1)
        """
        sqrt_lower = get_sqrt_ratio_at_tick(tick_lower)
        sqrt_upper = get_sqrt_ratio_at_tick(tick_upper)
        liquidity = get_liquidity_for_amounts(
            pool_state.sqrt_price_x96, sqrt_lower, sqrt_upper, amount0, amount1
        )
        expected0, expected1 = get_amounts_for_liquidity(
            pool_state.sqrt_price_x96, sqrt_lower, sqrt_upper, liquidity
        )
        return liquidity, expected0, expected1

    def _minimums(self, expected0: int, expected1: int) -> Tuple[int, int]:
        bps = self.config.liquidity_slippage_bps
        return apply_slippage(expected0, bps), apply_slippage(expected1, bps)

    def _require_position(self) -> Position:
        if self._position is None:
            raise ValidationError("활성 포지션이 없습니다")
        return self._position

    def reconcile(self) -> PositionInfo:
        """포지션 매니저의 기록과 ledger 포지션(범위, 유동성)이 같은지 확인

        Raises:
            ValidationError: 활성 포지션이 없는 경우
            PositionMismatch: 범위나 유동성이 다른 경우
        """
        position = self._require_position()
        info = self.positions.position_info(position.token_id)
        for field, recorded, actual in (
            ("tick_lower", position.tick_lower, info.tick_lower),
            ("tick_upper", position.tick_upper, info.tick_upper),
            ("liquidity", position.liquidity, info.liquidity),
        ):
            if recorded != actual:
                raise PositionMismatch(position.token_id, field, recorded, actual)
        return info

    # ------------------------------------------------------------------
    # 스테이킹
    # ------------------------------------------------------------------

    def _unstake(self) -> int:
        position = self._require_position()
        if not position.staked:
            return 0
        rewards = self.staking.unstake(position.token_id)
        self._position = position.with_staked(False)
        return rewards

    def _stake(self) -> None:
        position = self._require_position()
        if position.staked:
            return
        self.staking.stake(position.token_id)
        self._position = position.with_staked(True)

    def claim_rewards(self) -> int:
        """스테이킹된 포지션의 보상 청구 (포지션이 없으면 0)"""
        if self._position is None or not self._position.staked:
            return 0
        return self.staking.claim_rewards(self._position.token_id)

    # ------------------------------------------------------------------
    # 유동성 추가
    # ------------------------------------------------------------------

    def mint(
        self,
        amount0: int,
        amount1: int,
        tick_lower: int,
        tick_upper: int,
        deadline: int
    ) -> LedgerResult:
        """새 포지션 민트 후 스테이킹 (EMPTY/REBALANCING -> STAKED)"""
        if self._position is not None:
            raise ValidationError(f"이미 포지션이 존재합니다: {self._position.token_id}")
        if amount0 <= 0 and amount1 <= 0:
            raise ZeroAmount("민트할 토큰 수량이 없습니다")
        try:
            validate_tick_range(tick_lower, tick_upper, self.config.tick_spacing)
        except ValueError as e:
            raise InvalidTickRange(str(e)) from e

        pool_state = self.pool.current_state()
        _, expected0, expected1 = self.expected_amounts(
            tick_lower, tick_upper, amount0, amount1, pool_state
        )
        min0, min1 = self._minimums(expected0, expected1)

        result = self.positions.mint(
            MintParams(
                token0=self.config.token0,
                token1=self.config.token1,
                tick_spacing=self.config.tick_spacing,
                tick_lower=tick_lower,
                tick_upper=tick_upper,
                amount0_desired=amount0,
                amount1_desired=amount1,
                amount0_min=min0,
                amount1_min=min1,
                recipient=self.config.vault_address,
                deadline=deadline,
            ),
            payer=self.config.vault_address,
        )
        self._position = Position(
            token_id=result.token_id,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            liquidity=result.liquidity,
        )
        self._rebalancing = False
        self.reconcile()
        self._stake()

        logger.info(
            "Minted position %d [%d, %d] liquidity=%d (amount0=%d, amount1=%d)",
            result.token_id, tick_lower, tick_upper, result.liquidity, result.amount0, result.amount1
        )
        return LedgerResult(result.liquidity, result.amount0, result.amount1)

    def increase(self, amount0: int, amount1: int, deadline: int) -> LedgerResult:
        """기존 범위에 유동성 추가 (STAKED -> UNSTAKED -> STAKED)"""
        position = self._require_position()
        if amount0 <= 0 and amount1 <= 0:
            raise ZeroAmount("추가할 토큰 수량이 없습니다")

        pool_state = self.pool.current_state()
        _, expected0, expected1 = self.expected_amounts(
            position.tick_lower, position.tick_upper, amount0, amount1, pool_state
        )
        min0, min1 = self._minimums(expected0, expected1)

        rewards = self._unstake()
        result = self.positions.increase_liquidity(
            position.token_id,
            IncreaseLiquidityParams(
                amount0_desired=amount0,
                amount1_desired=amount1,
                amount0_min=min0,
                amount1_min=min1,
                deadline=deadline,
            ),
            payer=self.config.vault_address,
        )
        self._position = self._require_position().with_liquidity(position.liquidity + result.liquidity)
        self.reconcile()
        self._stake()

        logger.debug(
            "Increased position %d by %d (amount0=%d, amount1=%d)",
            position.token_id, result.liquidity, result.amount0, result.amount1
        )
        return LedgerResult(result.liquidity, result.amount0, result.amount1, rewards)

    def open_or_increase(self, amount0: int, amount1: int, deadline: int) -> LedgerResult:
        """포지션이 없으면 현재 가격 중심 범위로 민트, 있으면 유동성 추가"""
        if self._position is None:
            tick_lower, tick_upper = self.default_range()
            return self.mint(amount0, amount1, tick_lower, tick_upper, deadline)
        return self.increase(amount0, amount1, deadline)

    # ------------------------------------------------------------------
    # 유동성 제거
    # ------------------------------------------------------------------

    def _remove(self, position: Position, liquidity: int, deadline: int) -> Tuple[int, int]:
        """unstake된 포지션에서 유동성 제거 후 수령 (누적 수수료 포함)"""
        if liquidity > 0:
            pool_state = self.pool.current_state()
            expected0, expected1 = get_amounts_for_liquidity(
                pool_state.sqrt_price_x96,
                get_sqrt_ratio_at_tick(position.tick_lower),
                get_sqrt_ratio_at_tick(position.tick_upper),
                liquidity,
            )
            min0, min1 = self._minimums(expected0, expected1)
            self.positions.decrease_liquidity(position.token_id, liquidity, min0, min1, deadline)
        return self.positions.collect(
            position.token_id, self.config.vault_address, UINT128_MAX, UINT128_MAX
        )

    def decrease_proportional(self, shares_burned: int, total_shares: int, deadline: int) -> LedgerResult:
        """소각 지분 비율만큼 유동성 제거

        liquidity_to_remove = liquidity * shares_burned // total_shares

        잔여 유동성이 있으면 다시 스테이킹하고, 0이면 포지션을 해제하여 EMPTY로 돌아갑니다.
        다음 예치는 현재 가격 중심의 새 범위로 민트합니다.
        """
        position = self._require_position()
        if total_shares <= 0 or shares_burned <= 0 or shares_burned > total_shares:
            raise ValidationError(f"잘못된 지분 비율: {shares_burned} / {total_shares}")

        to_remove = position.liquidity * shares_burned // total_shares
        rewards = self._unstake()
        amount0, amount1 = self._remove(position, to_remove, deadline)

        remaining = position.liquidity - to_remove
        if remaining > 0:
            self._position = self._require_position().with_liquidity(remaining)
            self.reconcile()
            self._stake()
        else:
            logger.warning("Position %d drained; releasing it", position.token_id)
            self._position = None

        logger.debug(
            "Decreased position %d by %d (amount0=%d, amount1=%d, remaining=%d)",
            position.token_id, to_remove, amount0, amount1, remaining
        )
        return LedgerResult(to_remove, amount0, amount1, rewards)

    def exit_all(self, deadline: int) -> LedgerResult:
        """전체 유동성 회수 (STAKED -> REBALANCING)

        이후 mint()로 새 포지션을 만들어야 STAKED로 돌아갑니다.
        """
        position = self._require_position()
        rewards = self._unstake()
        amount0, amount1 = self._remove(position, position.liquidity, deadline)
        self._position = None
        self._rebalancing = True

        logger.info(
            "Exited position %d (liquidity=%d, amount0=%d, amount1=%d)",
            position.token_id, position.liquidity, amount0, amount1
        )
        return LedgerResult(position.liquidity, amount0, amount1, rewards)
