"""
외부 협력자 인터페이스

vault 코어가 호출하는 외부 시스템들 (스왑 라우터, 포지션 매니저, gauge,
가격 피드, 풀, 거버넌스). 구현은 온체인 어댑터나 테스트용 in-memory mock이 제공합니다.
"""

from typing import Any, Protocol, Sequence, Tuple, runtime_checkable

from .types import (
    IncreaseLiquidityParams,
    LiquidityResult,
    MintParams,
    MintResult,
    PoolState,
    PositionInfo,
    RawPriceQuote,
    Route,
)


class Token(Protocol):
    """ERC20 토큰"""

    symbol: str
    decimals: int

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...


class SwapVenue(Protocol):
    """스왑 라우터

    vault는 항상 min_amount_out = quote * (1 - slippage_bps / 10000) 으로 호출합니다.
    """

    def quote(self, route: Route, amount_in: int) -> int: ...

    def swap(
        self,
        route: Route,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        deadline: int,
        payer: str,
    ) -> int: ...


class PositionVenue(Protocol):
    """집중 유동성 포지션 매니저 (NFT position manager)"""

    def mint(self, params: MintParams, payer: str) -> MintResult: ...

    def increase_liquidity(
        self, token_id: int, params: IncreaseLiquidityParams, payer: str
    ) -> LiquidityResult: ...

    def decrease_liquidity(
        self,
        token_id: int,
        liquidity: int,
        amount0_min: int,
        amount1_min: int,
        deadline: int,
    ) -> Tuple[int, int]: ...

    def collect(
        self, token_id: int, recipient: str, amount0_max: int, amount1_max: int
    ) -> Tuple[int, int]: ...

    def position_info(self, token_id: int) -> PositionInfo: ...


class StakingVenue(Protocol):
    """포지션 스테이킹 (gauge)

    unstake는 부수 효과로 누적 보상을 청구합니다. 반환값은 청구된 보상 수량.
    """

    def stake(self, token_id: int) -> None: ...

    def unstake(self, token_id: int) -> int: ...

    def claim_rewards(self, token_id: int) -> int: ...


class PriceFeed(Protocol):

    def get_price_no_older_than(self, feed_id: str, max_age: int) -> RawPriceQuote: ...


class Pool(Protocol):

    def current_state(self) -> PoolState: ...


class GovernanceVenue(Protocol):
    """보상 잠금 및 emission 투표"""

    def lock(self, token: str, amount: int, duration: int, owner: str) -> int: ...

    def vote(self, pools: Sequence[str], weights: Sequence[int]) -> None: ...


@runtime_checkable
class Checkpointable(Protocol):
    """트랜잭션 롤백에 참여하는 상태 보유 객체

    checkpoint()가 반환한 스냅샷을 rollback()에 그대로 전달하면
    checkpoint 시점의 상태로 복원됩니다.
    """

    def checkpoint(self) -> Any: ...

    def rollback(self, snapshot: Any) -> None: ...
