"""
Swap Executor - 슬리피지 한도가 적용된 스왑

    min_amount_out = quote * (10000 - slippage_bps) / 10000

라우터가 최소값 검사를 하더라도 수령량을 한 번 더 검증합니다.
"""

import logging

from .config import VaultConfig
from .errors import SlippageExceeded
from .interfaces import SwapVenue
from .math.liquidity_math import apply_slippage

logger = logging.getLogger(__name__)


class SwapExecutor:

    def __init__(self, config: VaultConfig, router: SwapVenue):
        self.config = config
        self.router = router

    def min_amount_out(self, token_in: str, token_out: str, amount_in: int) -> int:
        quoted = self.router.quote(self.config.route(token_in, token_out), amount_in)
        return apply_slippage(quoted, self.config.swap_slippage_bps)

    def swap(self, token_in: str, token_out: str, amount_in: int, deadline: int) -> int:
        """token_in -> token_out 스왑 (수령자는 vault)

        Returns:
            수령한 token_out 수량 (amount_in이 0이면 0)

        Raises:
            SlippageExceeded: 수령량이 최소값보다 작은 경우
        """
        if amount_in <= 0 or token_in == token_out:
            return 0

        route = self.config.route(token_in, token_out)
        min_out = self.min_amount_out(token_in, token_out, amount_in)
        received = self.router.swap(
            route,
            amount_in,
            min_out,
            self.config.vault_address,
            deadline,
            payer=self.config.vault_address,
        )
        if received < min_out:
            raise SlippageExceeded(f"swap {token_in}->{token_out}", received, min_out)

        logger.debug("Swapped %d %s -> %d %s (min %d)", amount_in, token_in, received, token_out, min_out)
        return received
