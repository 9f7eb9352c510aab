"""
Guard - 재진입 배제, 일시정지 게이트, 트랜잭션 원자성

- ReentrancyGuard: 상태 변경 진입점 전체가 공유하는 단일 배제 락.
  진입 시 획득하고 오류 경로를 포함한 모든 종료 경로에서 해제합니다.
- PauseGate: deposit/withdraw 경로만 막는 독립 게이트. 읽기 전용 가치 평가는 막지 않습니다.
- transaction(): 참여자들의 상태를 checkpoint 하고 예외 발생 시 모두 롤백합니다.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from .errors import ReentrancyError, VaultPaused
from .interfaces import Checkpointable

logger = logging.getLogger(__name__)


class ReentrancyGuard:
    """단일 배제 락"""

    def __init__(self):
        self._holder: Optional[str] = None

    @property
    def locked(self) -> bool:
        return self._holder is not None

    @property
    def holder(self) -> Optional[str]:
        return self._holder

    @contextmanager
    def hold(self, entry_point: str) -> Iterator[None]:
        """락을 획득한 채로 블록 실행

        Raises:
            ReentrancyError: 이미 다른 진입점이 락을 보유 중인 경우 (외부 호출의 상태는 건드리지 않음)
        """
        if self._holder is not None:
            logger.warning("Reentrant call to %s rejected (held by %s)", entry_point, self._holder)
            raise ReentrancyError(entry_point)
        self._holder = entry_point
        try:
            yield
        finally:
            self._holder = None


class PauseGate:

    def __init__(self, paused: bool = False):
        self.paused = paused

    def check(self) -> None:
        if self.paused:
            raise VaultPaused()


@contextmanager
def transaction(participants: Iterable[Checkpointable]) -> Iterator[None]:
    """원자적 실행 범위

    블록 안에서 예외가 발생하면 모든 참여자를 checkpoint 시점으로 되돌린 뒤
    예외를 그대로 전파합니다. 부분 성공 상태는 남지 않습니다.
    """
    snapshots: List[Tuple[Checkpointable, Any]] = [(p, p.checkpoint()) for p in participants]
    try:
        yield
    except BaseException:
        for participant, snapshot in reversed(snapshots):
            participant.rollback(snapshot)
        raise
