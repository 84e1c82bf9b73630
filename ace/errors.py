"""
ACE 오류 분류 체계
====================

엔진이 거부하는 모든 상황은 ACEError의 하위 클래스로 표현된다.
각 클래스는 안정적인 reason 코드를 가지며, HTTP 계층은 이 코드를
그대로 응답에 싣는다. 메시지에는 사람이 읽을 수 있는 원래 사유가 담긴다.

어떤 오류든 발생하면 해당 작업 전체가 중단되고 상태는 원래대로 복원된다.
"""


class ACEError(Exception):
    """모든 엔진 오류의 기반 클래스."""

    reason = "ace-error"

    def __init__(self, message=None):
        super().__init__(message or self.reason)
        self.message = message or self.reason

    def to_dict(self):
        return {"error": self.reason, "message": self.message}


# ── 증명 파싱 / 검증 ──

class MalformedInput(ACEError):
    """증명 바이트열의 길이나 구조가 잘못된 경우."""
    reason = "malformed-input"


class InvalidCurvePoint(ACEError):
    """곡선 위에 있지 않은 점, 무한원점, 또는 잘못된 참조 문자열."""
    reason = "invalid-curve-point"


class InvalidScalar(ACEError):
    """0이거나 그룹 위수 이상인 스칼라."""
    reason = "invalid-scalar"


class ChallengeMismatch(ACEError):
    reason = "challenge-mismatch"


class PairingCheckFailed(ACEError):
    reason = "pairing-check-failed"


class ReferenceStringMismatch(ACEError):
    """증명에 사용된 참조 문자열이 검증기가 신뢰하는 것과 다른 경우."""
    reason = "crs-mismatch"


# ── 증명 레지스트리 ──

class UnknownOrDisabledProofKind(ACEError):
    reason = "unknown-proof-kind"


class EpochViolation(ACEError):
    reason = "epoch-violation"


class ImmutabilityViolation(ACEError):
    reason = "immutability-violation"


class ReplayRejected(ACEError):
    reason = "replay-rejected"


class PermissionDenied(ACEError):
    reason = "permission-denied"


class PermitInvalid(ACEError):
    reason = "permit-invalid"


# ── 노트 레지스트리 ──

class DoubleSpend(ACEError):
    reason = "double-spend"


class UnknownNote(ACEError):
    reason = "unknown-note"


class DuplicateNote(ACEError):
    reason = "duplicate-note"


class UtilityProofMisuse(ACEError):
    reason = "utility-proof-misuse"


class InsufficientFunds(ACEError):
    reason = "insufficient-funds"


class RegistryError(ACEError):
    """레지스트리/팩토리가 없거나 이미 존재하는 경우."""
    reason = "registry-error"
