"""
Vault 오류 정의

모든 오류는 작업 경계에서 원자적으로 롤백됩니다. 내부 재시도는 없습니다.

    VaultError
    ├── ValidationError      상태 변경 전에 거부 (최소 금액, 0 주소, 잘못된 틱 범위)
    ├── OracleError          가격 만료/신뢰도 부족 (대체 가격 소스 없음)
    ├── SlippageError        스왑/유동성 공급 결과가 최소값 미만
    ├── AuthorizationError   관리자 권한 없음 또는 일시정지 상태
    ├── ReentrancyError      재진입 호출만 중단
    ├── PositionMismatch     ledger와 포지션 매니저의 기록 불일치
    └── DeadlineExpired      외부 호출 기한 초과
"""


class VaultError(Exception):
    """clvault 오류의 기본 클래스"""
    pass


# ==============================================================================
# Validation
# ==============================================================================

class ValidationError(VaultError, ValueError):
    """입력 검증 실패"""
    pass


class BelowMinimum(ValidationError):
    """최소 예치 금액 미만"""

    def __init__(self, amount: int, minimum: int):
        super().__init__(f"예치 금액이 최소값보다 작습니다: {amount} < {minimum}")
        self.amount = amount
        self.minimum = minimum


class ZeroAmount(ValidationError):
    pass


class ZeroAddress(ValidationError):
    pass


class InvalidTickRange(ValidationError):
    pass


class InsufficientShares(ValidationError):

    def __init__(self, account: str, requested: int, available: int):
        super().__init__(f"{account}의 지분이 부족합니다: {requested} > {available}")
        self.account = account
        self.requested = requested
        self.available = available


# ==============================================================================
# Oracle
# ==============================================================================

class OracleError(VaultError):
    """오라클 가격 검증 실패"""

    def __init__(self, feed_id: str, message: str):
        super().__init__(f"[{feed_id}] {message}")
        self.feed_id = feed_id


class StalePrice(OracleError):
    pass


class LowConfidence(OracleError):
    pass


class InvalidPrice(OracleError):
    pass


# ==============================================================================
# Slippage
# ==============================================================================

class SlippageError(VaultError):
    """출력이 계산된 최소값보다 작음"""
    pass


class SlippageExceeded(SlippageError):

    def __init__(self, what: str, received: int, minimum: int):
        super().__init__(f"{what}: 수령량 {received} < 최소값 {minimum}")
        self.received = received
        self.minimum = minimum


class WithdrawalShortfall(SlippageError):

    def __init__(self, received: int, requested: int, minimum: int):
        super().__init__(
            f"출금 수령량이 부족합니다: {received} < {minimum} (요청: {requested})"
        )
        self.received = received
        self.requested = requested
        self.minimum = minimum


# ==============================================================================
# Authorization / Reentrancy / Deadline
# ==============================================================================

class AuthorizationError(VaultError):
    pass


class Unauthorized(AuthorizationError):

    def __init__(self, caller: str):
        super().__init__(f"관리자 권한이 없습니다: {caller}")
        self.caller = caller


class VaultPaused(AuthorizationError):

    def __init__(self):
        super().__init__("vault가 일시정지 상태입니다")


class ReentrancyError(VaultError):

    def __init__(self, entry_point: str):
        super().__init__(f"재진입 호출이 거부되었습니다: {entry_point}")
        self.entry_point = entry_point


class DeadlineExpired(VaultError):

    def __init__(self, deadline: int, now: int):
        super().__init__(f"기한이 지났습니다: now={now} > deadline={deadline}")
        self.deadline = deadline
        self.now = now


class PositionMismatch(VaultError):
    """ledger가 기록한 포지션과 포지션 매니저의 실제 포지션이 다름"""

    def __init__(self, token_id: int, field: str, recorded: int, actual: int):
        super().__init__(f"포지션 {token_id}의 {field} 불일치: ledger={recorded}, venue={actual}")
        self.token_id = token_id
        self.field = field
        self.recorded = recorded
        self.actual = actual
