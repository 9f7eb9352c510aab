"""
Price Oracle Adapter - 외부 가격 피드 검증 및 18 decimals 정규화

검증 규칙:
    age = now - publish_time <= staleness_threshold   (기본 60초)
    confidence * 10000 < price * max_confidence_bps   (기본 1%, 즉 confidence < price / 100)

정규화 (실제 가격 = price * 10^exponent):
    exponent >= 0          : price * 10^exponent * 10^18
    -18 <= exponent < 0    : price * 10^(18 - |exponent|)
    exponent < -18         : price / 10^(|exponent| - 18)

가격은 캐시하지 않으며, 실패는 재시도 없이 즉시 호출자에게 전파됩니다.
"""

import logging
import time
from typing import Callable

from .constants import BPS, PRICE_DECIMALS
from .errors import InvalidPrice, LowConfidence, StalePrice
from .interfaces import PriceFeed
from .types import RawPriceQuote

logger = logging.getLogger(__name__)


def _system_clock() -> int:
    return int(time.time())


def normalize_price(price: int, exponent: int) -> int:
    """피드 가격을 18 decimals 고정소수점으로 변환"""
    if exponent >= 0:
        return price * 10 ** exponent * 10 ** PRICE_DECIMALS
    magnitude = -exponent
    if magnitude <= PRICE_DECIMALS:
        return price * 10 ** (PRICE_DECIMALS - magnitude)
    return price // 10 ** (magnitude - PRICE_DECIMALS)


class PriceOracle:
    """가격 피드 어댑터

    사용법:
        oracle = PriceOracle(feed, staleness_threshold=60)
        price = oracle.get_price("ETH/USD")  # 18 decimals
    """

    def __init__(
        self,
        feed: PriceFeed,
        staleness_threshold: int = 60,
        max_confidence_bps: int = 100,
        clock: Callable[[], int] = _system_clock
    ):
        """
        Args:
            feed: 외부 가격 피드
            staleness_threshold: 허용되는 최대 가격 나이 (초)
            max_confidence_bps: 가격 대비 허용 신뢰 구간 (bps, 미만이어야 유효)
            clock: 현재 시각(unix seconds)을 반환하는 함수
        """
        self.feed = feed
        self.staleness_threshold = staleness_threshold
        self.max_confidence_bps = max_confidence_bps
        self.clock = clock

    def validate(self, feed_id: str, quote: RawPriceQuote) -> None:
        """가격 검증

        Raises:
            InvalidPrice: 가격이 0 이하인 경우
            StalePrice: 가격 나이가 staleness_threshold를 넘는 경우
            LowConfidence: 신뢰 구간이 가격의 max_confidence_bps 이상인 경우
        """
        if quote.price <= 0:
            raise InvalidPrice(feed_id, f"가격이 양수가 아닙니다: {quote.price}")

        age = self.clock() - quote.publish_time
        if age > self.staleness_threshold:
            logger.warning("Stale quote for %s: age=%ds", feed_id, age)
            raise StalePrice(feed_id, f"가격이 만료되었습니다: {age}초 > {self.staleness_threshold}초")

        if quote.confidence * BPS >= quote.price * self.max_confidence_bps:
            logger.warning(
                "Low-confidence quote for %s: conf=%d price=%d", feed_id, quote.confidence, quote.price
            )
            raise LowConfidence(
                feed_id,
                f"신뢰 구간이 너무 넓습니다: conf={quote.confidence}, price={quote.price}"
            )

    def get_price(self, feed_id: str) -> int:
        """검증된 18 decimals 가격 조회"""
        quote = self.feed.get_price_no_older_than(feed_id, self.staleness_threshold)
        self.validate(feed_id, quote)
        normalized = normalize_price(quote.price, quote.exponent)
        if normalized <= 0:
            raise InvalidPrice(feed_id, f"정규화된 가격이 0입니다 (exponent={quote.exponent})")
        return normalized
