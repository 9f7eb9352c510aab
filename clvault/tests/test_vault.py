"""
Vault 테스트

예치/출금 지분 회계, 원자성, 재진입, 일시정지, 관리자 기능을 시나리오로 검증합니다.
모든 시나리오는 BASE(token0, $2000) / USDC(token1, $1) 시장에서 실행됩니다.
"""

from fractions import Fraction

import pytest

from ..constants import PRICE_SCALE
from ..errors import (
    BelowMinimum,
    DeadlineExpired,
    InsufficientShares,
    PositionMismatch,
    ReentrancyError,
    SlippageExceeded,
    StalePrice,
    Unauthorized,
    ValidationError,
    VaultPaused,
    WithdrawalShortfall,
    ZeroAmount,
)
from ..position import LedgerState
from ..vault import Vault
from .mocks import ADMIN, AERO, BASE, ESCROW, ONE, ROUTER, USDC, VAULT, Market

ALICE = "0xalice"
BOB = "0xbob"
CAROL = "0xcarol"


def within(value, target, pct):
    """|value - target| <= target * pct / 100"""
    return abs(value - target) * 100 <= target * pct


def assert_supply_consistent(vault):
    assert sum(vault.shares.holders().values()) == vault.total_supply


class TestDeposit:

    def test_first_deposit_mints_one_to_one(self, funded):
        """첫 예치는 환불분을 뺀 순 예치액만큼 1:1 발행"""
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE)
        refund = funded.base.balance_of(ALICE) - 90 * ONE

        assert 0 <= refund < ONE // 10
        assert shares == 10 * ONE - refund
        assert vault.balance_of(ALICE) == shares
        assert vault.total_supply == shares
        assert vault.ledger.state == LedgerState.STAKED

    def test_total_value_tracks_deposit(self, funded):
        """10 BASE 예치 후 총 가치는 10 BASE의 ±2% 이내"""
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        assert within(vault.total_value(), 10 * ONE, 2)

    def test_receiver(self, funded):
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE, receiver=BOB)
        assert vault.balance_of(ALICE) == 0
        assert vault.balance_of(BOB) == shares
        # 환불은 수령자가 아닌 예치자에게
        assert funded.base.balance_of(BOB) == 100 * ONE

    def test_below_minimum_rejected_without_state_change(self, funded):
        vault = funded.vault
        minimum = funded.config.min_deposit

        with pytest.raises(BelowMinimum) as exc:
            vault.deposit(ALICE, minimum - 1)
        assert exc.value.minimum == minimum
        assert funded.base.balance_of(ALICE) == 100 * ONE
        assert vault.total_supply == 0
        assert vault.position is None

    def test_exact_minimum_accepted(self, funded):
        vault = funded.vault
        minimum = funded.config.min_deposit
        assert 0 < vault.deposit(ALICE, minimum) <= minimum

    def test_equal_deposits_get_equal_shares(self, funded):
        """같은 가격에서 같은 금액을 예치하면 지분 차이는 1% 이내"""
        vault = funded.vault
        alice = vault.deposit(ALICE, 10 * ONE)
        bob = vault.deposit(BOB, 10 * ONE)
        assert within(bob, alice, 1)
        assert_supply_consistent(vault)

    def test_base_price_rise_lowers_share_price(self, funded):
        """기초 자산 가격이 20% 오르면 기존 포지션의 기초 자산 단위 가치가 줄어 같은 금액에 더 많은 지분이 대응"""
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        price_before = vault.share_price()
        quote_before = vault.convert_to_shares(ONE)
        funded.set_price(BASE, 2400)

        assert not vault.needs_rebalance()
        assert vault.share_price() < price_before
        assert vault.convert_to_shares(ONE) > quote_before

    def test_idle_donation_not_counted(self, funded):
        """vault로 직접 전송된 토큰은 총 가치에 포함되지 않음"""
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        before = vault.total_value()
        funded.base.transfer(BOB, VAULT, 5 * ONE)

        assert vault.total_value() == before
        assert vault.max_withdraw(ALICE) == before

    def test_stale_oracle_blocks_deposit(self, funded):
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE)
        funded.clock.advance(61)

        with pytest.raises(StalePrice):
            vault.deposit(BOB, 10 * ONE)
        assert funded.base.balance_of(BOB) == 100 * ONE
        assert vault.total_supply == shares


class TestOffCentreDeposit:
    """가격이 범위 중심에서 벗어난 상태의 예치

    50/50 분할 중 한쪽 토큰만 전부 소비되므로 남은 몫은 예치자에게 환불되고,
    지분은 포지션에 실제로 추가된 가치만큼만 발행됩니다.
    """

    @pytest.fixture
    def skewed(self, funded):
        """alice 예치 후 BASE +15% (범위 안, 상단 쪽으로 치우침)"""
        funded.vault.deposit(ALICE, 10 * ONE)
        funded.set_price(BASE, 2300)
        assert not funded.vault.needs_rebalance()
        return funded

    def test_existing_holder_not_diluted(self, skewed):
        vault = skewed.vault
        alice_value = vault.convert_to_assets(vault.balance_of(ALICE))

        vault.deposit(BOB, 10 * ONE)

        assert vault.convert_to_assets(vault.balance_of(ALICE)) >= alice_value

    def test_leftover_refunded_not_idle(self, skewed):
        vault = skewed.vault
        vault.deposit(BOB, 10 * ONE)
        refund = skewed.base.balance_of(BOB) - 90 * ONE

        # 포지션이 USDC 위주라 BASE 절반의 대부분이 남음
        assert refund > ONE
        assert skewed.base.balance_of(VAULT) == 0
        assert skewed.usdc.balance_of(VAULT) == 0

    def test_round_trip(self, skewed):
        """예치 후 즉시 전량 상환하면 환불분 포함 98% 이상 회수"""
        vault = skewed.vault
        shares = vault.deposit(BOB, 10 * ONE)
        vault.redeem(BOB, shares)

        assert vault.balance_of(BOB) == 0
        assert skewed.base.balance_of(BOB) >= 90 * ONE + 10 * ONE * 98 // 100

    def test_base_as_token1(self):
        market = Market(base_is_token0=False)
        market.fund(ALICE, 100 * ONE)
        market.fund(BOB, 100 * ONE)
        vault = market.vault
        vault.deposit(ALICE, 10 * ONE)
        market.set_price(BASE, 2300)
        alice_value = vault.convert_to_assets(vault.balance_of(ALICE))

        shares = vault.deposit(BOB, 10 * ONE)

        assert vault.convert_to_assets(vault.balance_of(ALICE)) >= alice_value
        assert market.base.balance_of(VAULT) == 0
        assert market.usdc.balance_of(VAULT) == 0
        vault.redeem(BOB, shares)
        assert market.base.balance_of(BOB) >= 90 * ONE + 10 * ONE * 98 // 100


class TestWithdraw:

    def test_redeem_round_trip(self, funded):
        """예치 후 즉시 전량 상환하면 98% 이상 회수"""
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE)
        after_deposit = funded.base.balance_of(ALICE)
        received = vault.redeem(ALICE, shares)

        assert funded.base.balance_of(ALICE) == after_deposit + received
        assert funded.base.balance_of(ALICE) >= 90 * ONE + 10 * ONE * 98 // 100
        assert vault.total_supply == 0
        assert vault.ledger.state == LedgerState.EMPTY

    def test_withdraw_assets(self, funded):
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE)
        after_deposit = funded.base.balance_of(ALICE)
        preview = vault.preview_withdraw(5 * ONE)

        burned = vault.withdraw(ALICE, 5 * ONE)

        assert burned == preview
        assert vault.balance_of(ALICE) == shares - burned
        assert funded.base.balance_of(ALICE) >= after_deposit + 5 * ONE * 98 // 100
        assert vault.ledger.state == LedgerState.STAKED

    def test_withdraw_max(self, funded):
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE)
        burned = vault.withdraw(ALICE, vault.max_withdraw(ALICE))

        assert burned <= shares
        assert vault.balance_of(ALICE) == shares - burned

    def test_rounding_favors_vault(self, funded):
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        vault.deposit(BOB, 7 * ONE)

        for assets in (1, 3, 10 ** 9 + 7, 3 * ONE):
            assert vault.preview_withdraw(assets) >= vault.preview_deposit(assets)
        assert vault.convert_to_assets(vault.convert_to_shares(3 * ONE)) <= 3 * ONE

    def test_redeem_more_than_balance(self, funded):
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE)
        with pytest.raises(InsufficientShares):
            vault.redeem(ALICE, shares + 1)
        assert vault.balance_of(ALICE) == shares

    def test_withdraw_from_empty_vault(self, funded):
        with pytest.raises(InsufficientShares):
            funded.vault.withdraw(ALICE, ONE)

    def test_zero_amounts(self, funded):
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        with pytest.raises(ZeroAmount):
            vault.redeem(ALICE, 0)
        with pytest.raises(ZeroAmount):
            vault.withdraw(ALICE, 0)

    def test_only_owner_can_exit(self, funded):
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE)
        with pytest.raises(Unauthorized):
            vault.redeem(BOB, ONE, receiver=BOB, owner=ALICE)
        assert vault.balance_of(ALICE) == shares

    def test_shortfall_rolls_back(self, funded):
        """라우터 가격이 오라클보다 나빠 수령량이 98% 미만이면 전체 롤백"""
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE)
        after_deposit = funded.base.balance_of(ALICE)
        liquidity = vault.position.liquidity
        funded.router.prices[BASE] = Fraction(2200)

        with pytest.raises(WithdrawalShortfall):
            vault.redeem(ALICE, shares)

        assert vault.balance_of(ALICE) == shares
        assert vault.position.liquidity == liquidity
        assert vault.position.staked
        assert funded.positions.positions[1]["liquidity"] == liquidity
        assert funded.base.balance_of(ALICE) == after_deposit


class TestShareSupply:

    def test_supply_invariant_over_sequence(self, funded):
        vault = funded.vault
        steps = [
            lambda: vault.deposit(ALICE, 10 * ONE),
            lambda: vault.deposit(BOB, 5 * ONE),
            lambda: vault.deposit(CAROL, 3 * ONE),
            lambda: vault.redeem(ALICE, vault.balance_of(ALICE) // 2),
            lambda: vault.withdraw(BOB, 2 * ONE),
            lambda: vault.transfer_shares(ALICE, CAROL, ONE),
            lambda: vault.redeem(CAROL, vault.balance_of(CAROL)),
            lambda: vault.deposit(ALICE, 4 * ONE),
        ]
        for step in steps:
            step()
            assert_supply_consistent(vault)

    def test_transfer_shares(self, funded):
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE)
        vault.transfer_shares(ALICE, BOB, 4 * ONE)
        assert vault.balance_of(ALICE) == shares - 4 * ONE
        assert vault.balance_of(BOB) == 4 * ONE
        with pytest.raises(InsufficientShares):
            vault.transfer_shares(BOB, ALICE, 5 * ONE)

    def test_share_price(self, funded):
        vault = funded.vault
        assert vault.share_price() == PRICE_SCALE
        vault.deposit(ALICE, 10 * ONE)
        assert within(vault.share_price(), PRICE_SCALE, 2)


class TestAtomicity:

    def test_deadline_failure_rolls_back_everything(self, funded):
        """스왑 이후 유동성 공급이 기한 초과로 실패하면 토큰, 지분, 포지션이 모두 원래대로"""
        vault = funded.vault
        funded.router.on_swap = lambda: funded.clock.advance(400)

        with pytest.raises(DeadlineExpired):
            vault.deposit(ALICE, 10 * ONE)

        assert funded.base.balance_of(ALICE) == 100 * ONE
        assert funded.base.balance_of(VAULT) == 0
        assert funded.base.balance_of(ROUTER) == 0
        assert funded.usdc.balance_of(VAULT) == 0
        assert vault.total_supply == 0
        assert vault.position is None
        assert funded.positions.next_id == 1
        assert funded.router.swaps == []

    def test_failed_increase_keeps_position_staked(self, funded):
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        position = vault.position
        funded.router.on_swap = lambda: funded.clock.advance(400)

        with pytest.raises(DeadlineExpired):
            vault.deposit(BOB, 10 * ONE)

        assert vault.position == position
        assert position.token_id in funded.positions.staked
        assert vault.balance_of(BOB) == 0
        assert funded.base.balance_of(BOB) == 100 * ONE

    def test_position_mismatch_rolls_back(self, funded):
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        position = vault.position
        funded.positions.positions[position.token_id]["liquidity"] += 1

        with pytest.raises(PositionMismatch):
            vault.deposit(BOB, 10 * ONE)

        assert vault.position == position
        assert vault.balance_of(BOB) == 0
        assert funded.base.balance_of(BOB) == 100 * ONE

    def test_swap_slippage_rolls_back(self, funded):
        vault = funded.vault
        funded.router.impact_bps = 100

        with pytest.raises(SlippageExceeded):
            vault.deposit(ALICE, 10 * ONE)
        assert vault.total_supply == 0
        assert funded.base.balance_of(ALICE) == 100 * ONE

    def test_lock_released_after_failure(self, funded):
        vault = funded.vault
        with pytest.raises(BelowMinimum):
            vault.deposit(ALICE, 1)
        shares = vault.deposit(ALICE, 10 * ONE)
        assert vault.balance_of(ALICE) == shares > 0


class TestReentrancy:

    def test_nested_entry_rejected(self, funded):
        """외부 호출(라우터) 중 재진입한 호출만 실패하고 바깥 예치는 성공"""
        vault = funded.vault
        errors = []

        def reenter():
            try:
                vault.deposit(BOB, 10 * ONE)
            except ReentrancyError as e:
                errors.append(e)

        funded.router.on_swap = reenter
        shares = vault.deposit(ALICE, 10 * ONE)

        # 스왑(분할, 잔여분 환불)마다 한 번씩 재진입 시도
        assert len(errors) == len(funded.router.swaps)
        assert all(e.entry_point == "deposit" for e in errors)
        assert vault.balance_of(ALICE) == shares
        assert vault.balance_of(BOB) == 0
        assert vault.total_supply == shares

    def test_reentrant_redeem_rejected(self, funded):
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE)
        errors = []

        def reenter():
            try:
                vault.redeem(ALICE, ONE)
            except ReentrancyError as e:
                errors.append(e)

        funded.router.on_swap = reenter
        vault.redeem(ALICE, 5 * ONE)

        assert len(errors) == 1
        assert vault.balance_of(ALICE) == shares - 5 * ONE


class TestPause:

    def test_pause_blocks_deposit_and_exit(self, funded):
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        vault.pause(ADMIN)

        with pytest.raises(VaultPaused):
            vault.deposit(BOB, 10 * ONE)
        with pytest.raises(VaultPaused):
            vault.redeem(ALICE, ONE)
        with pytest.raises(VaultPaused):
            vault.withdraw(ALICE, ONE)

        # 가치 평가는 일시정지와 무관
        assert vault.total_value() > 0
        assert vault.paused

        vault.unpause(ADMIN)
        vault.deposit(BOB, 10 * ONE)
        assert vault.balance_of(BOB) > 0

    def test_only_admin_pauses(self, funded):
        with pytest.raises(Unauthorized):
            funded.vault.pause(ALICE)
        assert not funded.vault.paused


class TestRewards:

    def test_harvest(self, funded):
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        funded.gauge.emit(100 * ONE)

        assert vault.harvest(ADMIN) == 100 * ONE
        assert vault.pending_rewards == 100 * ONE
        assert funded.aero.balance_of(VAULT) == 100 * ONE

    def test_unstake_rewards_are_credited(self, funded):
        """예치 과정의 unstake로 청구된 보상도 미처리 보상에 합산"""
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        funded.gauge.emit(3 * ONE)
        vault.deposit(BOB, 10 * ONE)
        assert vault.pending_rewards == 3 * ONE

    def test_compound_raises_share_price(self, funded):
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        supply = vault.total_supply
        price_before = vault.share_price()
        funded.gauge.emit(100 * ONE)

        base_amount = vault.compound(ADMIN)

        # 100 AERO ($1) -> 약 0.05 BASE ($2000), 라우터 수수료 5 bps
        assert within(base_amount, ONE // 20, 1)
        assert vault.pending_rewards == 0
        assert vault.total_supply == supply
        assert vault.share_price() > price_before

    def test_compound_without_rewards(self, funded):
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        assert vault.compound(ADMIN) == 0

    def test_compound_without_shares_rejected(self, funded):
        """지분이 없으면 재투자 가치의 주인이 없으므로 거부"""
        vault = funded.vault
        shares = vault.deposit(ALICE, 10 * ONE)
        funded.gauge.emit(100 * ONE)
        vault.harvest(ADMIN)
        vault.redeem(ALICE, shares)
        assert vault.total_supply == 0

        with pytest.raises(ValidationError):
            vault.compound(ADMIN)
        assert vault.position is None
        assert vault.pending_rewards == 100 * ONE

    def test_lock_rewards(self, funded):
        vault = funded.vault
        vault.deposit(ALICE, 10 * ONE)
        funded.gauge.emit(100 * ONE)
        vault.harvest(ADMIN)

        lock_id = vault.lock_rewards(ADMIN, 40 * ONE)

        assert lock_id == 1
        assert vault.pending_rewards == 60 * ONE
        assert funded.aero.balance_of(ESCROW) == 40 * ONE
        assert funded.governance.locks == [(AERO, 40 * ONE, funded.config.lock_duration, VAULT)]

        with pytest.raises(ValidationError):
            vault.lock_rewards(ADMIN, 61 * ONE)
        assert vault.lock_rewards(ADMIN) == 2
        assert vault.pending_rewards == 0
        with pytest.raises(ZeroAmount):
            vault.lock_rewards(ADMIN)

    def test_vote_for_emissions(self, funded):
        vault = funded.vault
        vault.vote_for_emissions(ADMIN, ["0xpool-a", "0xpool-b"], [70, 30])
        assert funded.governance.votes == [(["0xpool-a", "0xpool-b"], [70, 30])]

        with pytest.raises(ValidationError):
            vault.vote_for_emissions(ADMIN, ["0xpool-a"], [70, 30])
        with pytest.raises(ValidationError):
            vault.vote_for_emissions(ADMIN, ["0xpool-a"], [0])

    def test_admin_only(self, funded):
        vault = funded.vault
        for call in (
            lambda: vault.harvest(ALICE),
            lambda: vault.compound(ALICE),
            lambda: vault.lock_rewards(ALICE, 1),
            lambda: vault.vote_for_emissions(ALICE, ["0xpool"], [1]),
            lambda: vault.rebalance(ALICE),
        ):
            with pytest.raises(Unauthorized):
                call()


class TestConstruction:

    def test_missing_token_implementation(self, market):
        tokens = {USDC: market.usdc}
        with pytest.raises(ValidationError):
            Vault(market.config, tokens, market.pool, market.router, market.positions,
                  market.gauge, market.feed, clock=market.clock)
