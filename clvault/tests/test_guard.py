"""
Guard 테스트

재진입 락, 일시정지 게이트, 트랜잭션 롤백을 테스트합니다.
"""

import pytest

from ..errors import ReentrancyError, VaultPaused
from ..guard import PauseGate, ReentrancyGuard, transaction
from ..shares import ShareLedger


class TestReentrancyGuard:

    def test_hold_and_release(self):
        guard = ReentrancyGuard()
        with guard.hold("deposit"):
            assert guard.locked
            assert guard.holder == "deposit"
        assert not guard.locked

    def test_nested_rejected(self):
        """재진입 호출만 실패하고 외부 호출은 락을 유지"""
        guard = ReentrancyGuard()
        with guard.hold("deposit"):
            with pytest.raises(ReentrancyError) as exc:
                with guard.hold("withdraw"):
                    pass
            assert exc.value.entry_point == "withdraw"
            assert guard.holder == "deposit"
        assert not guard.locked

    def test_released_on_error(self):
        guard = ReentrancyGuard()
        with pytest.raises(RuntimeError):
            with guard.hold("deposit"):
                raise RuntimeError("boom")
        assert not guard.locked


class TestPauseGate:

    def test_check(self):
        gate = PauseGate()
        gate.check()
        gate.paused = True
        with pytest.raises(VaultPaused):
            gate.check()


class TestTransaction:

    def test_commit(self):
        ledger = ShareLedger()
        with transaction([ledger]):
            ledger.mint("0xalice", 10)
        assert ledger.total_supply == 10

    def test_rollback_all_participants(self):
        a, b = ShareLedger(), ShareLedger()
        a.mint("0xalice", 5)
        with pytest.raises(ValueError):
            with transaction([a, b]):
                a.mint("0xalice", 10)
                b.mint("0xbob", 7)
                raise ValueError("fail after partial update")
        assert a.total_supply == 5
        assert a.balance_of("0xalice") == 5
        assert b.total_supply == 0
        assert b.holders() == {}
