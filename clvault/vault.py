"""
Vault - 지분 회계 및 진입점

기초 자산을 받아 단일 집중 유동성 포지션에 배치하고, 오라클 기반 총 가치에 대한
비례 지분을 발행/소각합니다. 수수료는 받지 않습니다.

지분 계산 (반올림은 항상 vault에 유리하게):
    deposit : shares = 추가된 가치 * supply / total_value (내림, supply == 0 이면 1:1)
    withdraw: shares = assets * supply / total_value   (올림)
    redeem  : assets = shares * total_value / supply   (내림)

모든 상태 변경 진입점은 단일 재진입 락을 잡고, 트랜잭션 범위 안에서 실행되어
실패 시 vault 상태와 checkpoint 가능한 협력자 상태가 모두 롤백됩니다.
일시정지는 deposit / withdraw / redeem만 막습니다.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .config import VaultConfig
from .constants import BPS, PRICE_SCALE
from .errors import (
    BelowMinimum,
    InsufficientShares,
    Unauthorized,
    ValidationError,
    WithdrawalShortfall,
    ZeroAddress,
    ZeroAmount,
)
from .guard import PauseGate, ReentrancyGuard, transaction
from .interfaces import (
    Checkpointable,
    GovernanceVenue,
    Pool,
    PositionVenue,
    PriceFeed,
    StakingVenue,
    SwapVenue,
    Token,
)
from .math.full_math import mul_div, mul_div_rounding_up
from .oracle import PriceOracle
from .position import LedgerResult, PositionLedger
from .range_manager import RangeManager
from .shares import ShareLedger
from .swaps import SwapExecutor
from .types import Position
from .valuation import ValuationEngine

logger = logging.getLogger(__name__)


class Vault:
    """집중 유동성 yield vault

    사용법:
        vault = Vault(config, tokens, pool, router, position_manager, gauge, price_feed)
        shares = vault.deposit("0xalice", 10 * 10**18)
        vault.redeem("0xalice", shares)
    """

    def __init__(
        self,
        config: VaultConfig,
        tokens: Dict[str, Token],
        pool: Pool,
        router: SwapVenue,
        positions: PositionVenue,
        staking: StakingVenue,
        price_feed: PriceFeed,
        governance: Optional[GovernanceVenue] = None,
        clock: Optional[Callable[[], int]] = None
    ):
        """
        Args:
            config: 검증된 vault 설정
            tokens: {토큰 주소: Token} (token0, token1 필수)
            pool: 풀 현재 상태 조회
            router: 스왑 라우터
            positions: 포지션 매니저
            staking: gauge
            price_feed: 외부 가격 피드
            governance: 보상 잠금/투표 (없으면 lock_rewards / vote_for_emissions 사용 불가)
            clock: 현재 시각(unix seconds) 함수
        """
        missing = [t for t in (config.token0, config.token1) if t not in tokens]
        if missing:
            raise ValidationError(f"토큰 구현이 없습니다: {', '.join(missing)}")

        self.config = config
        self.tokens = tokens
        self.pool = pool
        self.router = router
        self.positions = positions
        self.staking = staking
        self.price_feed = price_feed
        self.governance = governance
        self.clock = clock or (lambda: int(time.time()))

        self.oracle = PriceOracle(
            price_feed,
            staleness_threshold=config.staleness_threshold,
            max_confidence_bps=config.max_confidence_bps,
            clock=self.clock,
        )
        self.ledger = PositionLedger(config, pool, positions, staking)
        self.valuation = ValuationEngine(config, pool, self.oracle, lambda: self.ledger.position)
        self.swapper = SwapExecutor(config, router)
        self.range_manager = RangeManager(config, pool, self.ledger, self.oracle, self.swapper)
        self.shares = ShareLedger()

        self._guard = ReentrancyGuard()
        self._pause = PauseGate()
        self._pending_rewards = 0

    # ==========================================================================
    # 트랜잭션 / 권한
    # ==========================================================================

    def checkpoint(self) -> int:
        return self._pending_rewards

    def rollback(self, snapshot: int) -> None:
        self._pending_rewards = snapshot

    def _participants(self) -> List[Checkpointable]:
        candidates = [self, self.shares, self.ledger, self.pool, self.router,
                      self.positions, self.staking, self.price_feed, self.governance]
        candidates.extend(self.tokens.values())
        seen = set()
        participants = []
        for c in candidates:
            if c is None or id(c) in seen or not isinstance(c, Checkpointable):
                continue
            seen.add(id(c))
            participants.append(c)
        return participants

    @contextmanager
    def _entry(
        self,
        entry_point: str,
        caller: Optional[str] = None,
        pausable: bool = False,
        admin_only: bool = False
    ) -> Iterator[None]:
        """상태 변경 진입점 공통 범위: 재진입 락 -> 권한/일시정지 검사 -> 트랜잭션"""
        with self._guard.hold(entry_point):
            if admin_only and caller != self.config.admin:
                raise Unauthorized(caller or "")
            if pausable:
                self._pause.check()
            with transaction(self._participants()):
                yield

    def _deadline(self) -> int:
        return self.clock() + self.config.deadline_seconds

    @property
    def base_token(self) -> Token:
        return self.tokens[self.config.base_token]

    # ==========================================================================
    # 조회
    # ==========================================================================

    @property
    def paused(self) -> bool:
        return self._pause.paused

    @property
    def total_supply(self) -> int:
        return self.shares.total_supply

    @property
    def pending_rewards(self) -> int:
        return self._pending_rewards

    @property
    def position(self) -> Optional[Position]:
        return self.ledger.position

    def balance_of(self, account: str) -> int:
        return self.shares.balance_of(account)

    def total_value(self) -> int:
        """기초 자산 단위 총 가치 (일시정지와 무관하게 항상 조회 가능)"""
        return self.valuation.total_value()

    def convert_to_shares(self, assets: int) -> int:
        return self._shares_for_assets(assets, self.total_value(), round_up=False)

    def convert_to_assets(self, shares: int) -> int:
        supply = self.total_supply
        if supply == 0:
            return shares
        return mul_div(shares, self.total_value(), supply)

    def preview_deposit(self, assets: int) -> int:
        """스왑 수수료와 미소비 환불분을 빼기 전의 상한 추정치"""
        return self.convert_to_shares(assets)

    def preview_withdraw(self, assets: int) -> int:
        return self._shares_for_assets(assets, self.total_value(), round_up=True)

    def preview_redeem(self, shares: int) -> int:
        return self.convert_to_assets(shares)

    def max_withdraw(self, owner: str) -> int:
        return self.convert_to_assets(self.balance_of(owner))

    def max_redeem(self, owner: str) -> int:
        return self.balance_of(owner)

    def share_price(self) -> int:
        """지분 1개(10^base_decimals)당 기초 자산 가치 (18 decimals)"""
        supply = self.total_supply
        if supply == 0:
            return PRICE_SCALE
        return mul_div(self.total_value(), PRICE_SCALE, supply)

    def needs_rebalance(self) -> bool:
        return self.range_manager.needs_rebalance()

    def _shares_for_assets(self, assets: int, total_value: int, round_up: bool) -> int:
        supply = self.total_supply
        if supply == 0:
            return assets
        if total_value == 0:
            raise ValidationError("지분이 존재하지만 총 가치가 0입니다")
        if round_up:
            return mul_div_rounding_up(assets, supply, total_value)
        return mul_div(assets, supply, total_value)

    # ==========================================================================
    # 예치 / 출금
    # ==========================================================================

    def _split(self, base_amount: int, paired_amount: int) -> tuple:
        if self.config.base_is_token0:
            return base_amount, paired_amount
        return paired_amount, base_amount

    def _deploy(self, base_amount: int, deadline: int) -> Tuple[LedgerResult, int, int]:
        """기초 자산을 50/50으로 나누어 절반은 페어 토큰으로 스왑 후 포지션에 공급

        가격이 범위 중심에서 벗어나 있으면 한쪽 토큰만 전부 소비되고 다른 쪽은 남습니다.

        Returns:
            (결과, 남은 기초 자산, 남은 페어 토큰)
        """
        cfg = self.config
        half = base_amount // 2
        kept = base_amount - half
        paired = self.swapper.swap(cfg.base_token, cfg.paired_token, half, deadline)
        amount0, amount1 = self._split(kept, paired)
        result = self.ledger.open_or_increase(amount0, amount1, deadline)
        self._pending_rewards += result.rewards
        # _split은 자기 자신의 역변환
        used_base, used_paired = self._split(result.amount0, result.amount1)
        return result, kept - used_base, paired - used_paired

    def _refund(self, recipient: str, base_left: int, paired_left: int, deadline: int) -> int:
        """미소비 잔여분을 기초 자산으로 되돌려 전송

        Returns:
            환불된 기초 자산 수량
        """
        cfg = self.config
        refund = base_left + self.swapper.swap(cfg.paired_token, cfg.base_token, paired_left, deadline)
        if refund > 0:
            self.base_token.transfer(cfg.vault_address, recipient, refund)
        return refund

    def deposit(self, caller: str, assets: int, receiver: Optional[str] = None) -> int:
        """기초 자산 예치 후 지분 발행

        포지션에 실제로 들어간 몫에 대해서만 지분을 발행합니다.
        소비되지 않은 잔여분은 기초 자산으로 바꿔 caller에게 돌려줍니다.

            supply == 0 : shares = assets - refund
            그 외       : shares = (total_value_after - total_value_before) * supply / total_value_before

        Returns:
            발행된 지분

        Raises:
            VaultPaused, ReentrancyError: 즉시 실패 (상태 변경 없음)
            BelowMinimum: assets < min_deposit
            OracleError: 가치 평가 실패
            SlippageError: 스왑/유동성 공급 슬리피지 초과
        """
        receiver = receiver or caller
        with self._entry("deposit", caller, pausable=True):
            if not caller or not receiver:
                raise ZeroAddress("예치자 주소가 비어 있습니다")
            if assets < self.config.min_deposit:
                raise BelowMinimum(assets, self.config.min_deposit)

            supply = self.total_supply
            value_before = self.total_value()
            if supply > 0 and value_before == 0:
                raise ValidationError("지분이 존재하지만 총 가치가 0입니다")

            deadline = self._deadline()
            self.base_token.transfer(caller, self.config.vault_address, assets)
            _, base_left, paired_left = self._deploy(assets, deadline)
            refund = self._refund(caller, base_left, paired_left, deadline)

            if supply == 0:
                shares = assets - refund
            else:
                added = self.total_value() - value_before
                shares = mul_div(added, supply, value_before) if added > 0 else 0
            if shares <= 0:
                raise ZeroAmount("발행될 지분이 0입니다")
            self.shares.mint(receiver, shares)

        logger.info(
            "Deposit: %s -> %s assets=%d refund=%d shares=%d (total_value=%d, supply=%d)",
            caller, receiver, assets, refund, shares, value_before, self.total_supply
        )
        return shares

    def _exit(self, owner: str, receiver: str, shares: int, requested: int) -> int:
        """지분 소각 -> 비례 유동성 제거 -> 페어 토큰을 기초 자산으로 스왑 -> 수령자에게 전송"""
        cfg = self.config
        deadline = self._deadline()
        supply_before = self.total_supply

        self.shares.burn(owner, shares)
        result = self.ledger.decrease_proportional(shares, supply_before, deadline)
        self._pending_rewards += result.rewards

        base_amount, paired_amount = self._split(result.amount0, result.amount1)
        received = base_amount + self.swapper.swap(cfg.paired_token, cfg.base_token, paired_amount, deadline)

        minimum = mul_div(requested, cfg.min_withdraw_bps, BPS)
        if received < minimum:
            raise WithdrawalShortfall(received, requested, minimum)

        self.base_token.transfer(cfg.vault_address, receiver, received)
        return received

    def _check_owner(self, caller: str, owner: str) -> None:
        if not caller or not owner:
            raise ZeroAddress("주소가 비어 있습니다")
        if caller != owner:
            raise Unauthorized(caller)

    def withdraw(
        self,
        caller: str,
        assets: int,
        receiver: Optional[str] = None,
        owner: Optional[str] = None
    ) -> int:
        """기초 자산 수량 기준 출금

        Returns:
            소각된 지분
        """
        receiver = receiver or caller
        owner = owner or caller
        with self._entry("withdraw", caller, pausable=True):
            self._check_owner(caller, owner)
            if assets <= 0:
                raise ZeroAmount("출금 수량이 0입니다")
            if self.total_supply == 0:
                raise InsufficientShares(owner, 1, 0)

            shares = self._shares_for_assets(assets, self.total_value(), round_up=True)
            balance = self.balance_of(owner)
            if shares > balance:
                raise InsufficientShares(owner, shares, balance)
            received = self._exit(owner, receiver, shares, assets)

        logger.info("Withdraw: %s shares=%d requested=%d received=%d", owner, shares, assets, received)
        return shares

    def redeem(
        self,
        caller: str,
        shares: int,
        receiver: Optional[str] = None,
        owner: Optional[str] = None
    ) -> int:
        """지분 수량 기준 출금

        Returns:
            수령한 기초 자산
        """
        receiver = receiver or caller
        owner = owner or caller
        with self._entry("redeem", caller, pausable=True):
            self._check_owner(caller, owner)
            if shares <= 0:
                raise ZeroAmount("소각할 지분이 0입니다")
            balance = self.balance_of(owner)
            if shares > balance:
                raise InsufficientShares(owner, shares, balance)

            assets = mul_div(shares, self.total_value(), self.total_supply)
            if assets == 0:
                raise ZeroAmount("지분에 해당하는 자산이 0입니다")
            received = self._exit(owner, receiver, shares, assets)

        logger.info("Redeem: %s shares=%d expected=%d received=%d", owner, shares, assets, received)
        return received

    def transfer_shares(self, caller: str, recipient: str, shares: int) -> None:
        with self._entry("transfer_shares", caller):
            self.shares.transfer(caller, recipient, shares)

    # ==========================================================================
    # 관리자
    # ==========================================================================

    def pause(self, caller: str) -> None:
        with self._entry("pause", caller, admin_only=True):
            self._pause.paused = True
        logger.info("Vault paused by %s", caller)

    def unpause(self, caller: str) -> None:
        with self._entry("unpause", caller, admin_only=True):
            self._pause.paused = False
        logger.info("Vault unpaused by %s", caller)

    def rebalance(self, caller: str) -> bool:
        """범위를 벗어난 포지션을 현재 가격 중심으로 재배치 (범위 안이면 no-op)"""
        with self._entry("rebalance", caller, admin_only=True):
            exited = self.range_manager.rebalance(self._deadline())
            if exited is not None:
                self._pending_rewards += exited.rewards
        return exited is not None

    def harvest(self, caller: str) -> int:
        """gauge 보상 청구

        Returns:
            이번에 청구된 보상 수량
        """
        with self._entry("harvest", caller, admin_only=True):
            claimed = self.ledger.claim_rewards()
            self._pending_rewards += claimed
        logger.info("Harvested %d reward tokens (pending=%d)", claimed, self._pending_rewards)
        return claimed

    def compound(self, caller: str) -> int:
        """보상을 청구하고 기초 자산으로 스왑한 뒤 포지션에 재투자 (지분 발행 없음)

        지분이 없으면 재투자된 가치가 첫 예치자에게 넘어가므로 거부합니다.
        포지션에 들어가지 못한 잔여분은 vault 잔고로 남으며 총 가치에 포함되지 않습니다.

        Returns:
            재투자된 기초 자산 수량
        """
        cfg = self.config
        with self._entry("compound", caller, admin_only=True):
            if cfg.reward_token is None:
                raise ValidationError("reward_token이 설정되지 않았습니다")
            if self.total_supply == 0:
                raise ValidationError("발행된 지분이 없어 재투자할 수 없습니다")
            self._pending_rewards += self.ledger.claim_rewards()
            rewards = self._pending_rewards
            if rewards == 0:
                return 0

            deadline = self._deadline()
            if cfg.reward_token == cfg.base_token:
                base_amount = rewards
            else:
                base_amount = self.swapper.swap(cfg.reward_token, cfg.base_token, rewards, deadline)
            self._pending_rewards = 0
            if base_amount < 2:
                raise ZeroAmount(f"재투자할 기초 자산이 너무 적습니다: {base_amount}")
            self._deploy(base_amount, deadline)

        logger.info("Compounded %d rewards into %d base", rewards, base_amount)
        return base_amount

    def _require_governance(self) -> GovernanceVenue:
        if self.governance is None:
            raise ValidationError("governance가 설정되지 않았습니다")
        return self.governance

    def lock_rewards(self, caller: str, amount: Optional[int] = None) -> int:
        """미처리 보상을 거버넌스 escrow에 잠금

        Returns:
            lock id
        """
        cfg = self.config
        with self._entry("lock_rewards", caller, admin_only=True):
            governance = self._require_governance()
            if cfg.reward_token is None:
                raise ValidationError("reward_token이 설정되지 않았습니다")
            amount = self._pending_rewards if amount is None else amount
            if amount <= 0:
                raise ZeroAmount("잠글 보상이 없습니다")
            if amount > self._pending_rewards:
                raise ValidationError(f"미처리 보상보다 많습니다: {amount} > {self._pending_rewards}")
            lock_id = governance.lock(cfg.reward_token, amount, cfg.lock_duration, cfg.vault_address)
            self._pending_rewards -= amount
        logger.info("Locked %d rewards (lock_id=%s)", amount, lock_id)
        return lock_id

    def vote_for_emissions(self, caller: str, pools: Sequence[str], weights: Sequence[int]) -> None:
        with self._entry("vote_for_emissions", caller, admin_only=True):
            governance = self._require_governance()
            if not pools or len(pools) != len(weights):
                raise ValidationError("풀과 가중치의 개수가 맞지 않습니다")
            if any(w <= 0 for w in weights):
                raise ValidationError("가중치는 양수여야 합니다")
            governance.vote(list(pools), list(weights))
        logger.info("Voted for emissions: %s", dict(zip(pools, weights)))
