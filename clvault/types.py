"""
clvault 데이터 타입 정의

외부 협력자(풀, 포지션 매니저, 오라클)와 주고받는 데이터 구조.
모든 수량 필드는 온체인 정밀도를 위해 int 타입 사용 (토큰 최소 단위).
"""

from dataclasses import dataclass, replace
from typing import Tuple

# 스왑 경로: (token_in, ..., token_out)
Route = Tuple[str, ...]


@dataclass(frozen=True)
class RawPriceQuote:
    """가격 피드 원본 응답

    실제 가격 = price * 10^exponent
    """
    price: int
    confidence: int
    exponent: int
    publish_time: int


@dataclass(frozen=True)
class PoolState:
    """풀 현재 상태 (구성 계산 전용, 가치 평가에는 사용하지 않음)"""
    sqrt_price_x96: int
    tick: int


@dataclass(frozen=True)
class Position:
    """vault가 소유한 단일 집중 유동성 포지션

    - token_id: 포지션 매니저가 발급한 식별자
    - tick_lower / tick_upper: 틱 범위 (틱 간격의 배수)
    - liquidity: 유동성 (uint128)
    - staked: gauge에 스테이킹된 상태인지 여부 (물리적 보관이 아닌 플래그로 추적)
    """
    token_id: int
    tick_lower: int
    tick_upper: int
    liquidity: int
    staked: bool = False

    def with_liquidity(self, liquidity: int) -> "Position":
        return replace(self, liquidity=liquidity)

    def with_staked(self, staked: bool) -> "Position":
        return replace(self, staked=staked)

    def contains(self, tick: int) -> bool:
        return self.tick_lower <= tick <= self.tick_upper


@dataclass(frozen=True)
class MintParams:
    token0: str
    token1: str
    tick_spacing: int
    tick_lower: int
    tick_upper: int
    amount0_desired: int
    amount1_desired: int
    amount0_min: int
    amount1_min: int
    recipient: str
    deadline: int


@dataclass(frozen=True)
class IncreaseLiquidityParams:
    amount0_desired: int
    amount1_desired: int
    amount0_min: int
    amount1_min: int
    deadline: int


@dataclass(frozen=True)
class MintResult:
    token_id: int
    liquidity: int
    amount0: int
    amount1: int


@dataclass(frozen=True)
class LiquidityResult:
    liquidity: int
    amount0: int
    amount1: int


@dataclass(frozen=True)
class PositionInfo:
    """포지션 매니저의 positions(token_id) 응답"""
    token0: str
    token1: str
    tick_lower: int
    tick_upper: int
    liquidity: int
    tokens_owed0: int = 0
    tokens_owed1: int = 0


@dataclass(frozen=True)
class ValuationReport:
    """총 가치 계산 내역

    - amount0 / amount1: 현재 풀 가격 기준 포지션 구성
    - price0 / price1: 오라클 가격 (18 decimals, USD)
    - value0_usd / value1_usd / total_usd: USD 가치 (18 decimals)
    - total_value: 기초 자산 단위 총 가치
    """
    amount0: int
    amount1: int
    price0: int
    price1: int
    value0_usd: int
    value1_usd: int
    total_usd: int
    total_value: int

    @classmethod
    def empty(cls) -> "ValuationReport":
        return cls(0, 0, 0, 0, 0, 0, 0, 0)
