"""
Share Ledger - 지분 잔액과 총 발행량

불변식: sum(balances) == total_supply (모든 관찰 시점)
"""

from typing import Dict, Tuple

from .errors import InsufficientShares, ZeroAddress, ZeroAmount


class ShareLedger:

    def __init__(self):
        self._balances: Dict[str, int] = {}
        self._total_supply = 0

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def holders(self) -> Dict[str, int]:
        return dict(self._balances)

    def mint(self, account: str, shares: int) -> None:
        if not account:
            raise ZeroAddress("지분 수령 주소가 비어 있습니다")
        if shares <= 0:
            raise ZeroAmount("발행할 지분이 0입니다")
        self._balances[account] = self.balance_of(account) + shares
        self._total_supply += shares

    def burn(self, account: str, shares: int) -> None:
        if shares <= 0:
            raise ZeroAmount("소각할 지분이 0입니다")
        balance = self.balance_of(account)
        if shares > balance:
            raise InsufficientShares(account, shares, balance)
        remaining = balance - shares
        if remaining:
            self._balances[account] = remaining
        else:
            del self._balances[account]
        self._total_supply -= shares

    def transfer(self, sender: str, recipient: str, shares: int) -> None:
        if not recipient:
            raise ZeroAddress("지분 수령 주소가 비어 있습니다")
        self.burn(sender, shares)
        self.mint(recipient, shares)

    def checkpoint(self) -> Tuple[Dict[str, int], int]:
        return dict(self._balances), self._total_supply

    def rollback(self, snapshot: Tuple[Dict[str, int], int]) -> None:
        balances, supply = snapshot
        self._balances = dict(balances)
        self._total_supply = supply
