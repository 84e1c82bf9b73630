"""
ACE 증명 검증기 — 공통 인터페이스
===================================

증명 종류마다 하나의 검증기 객체가 증명 레지스트리에 등록된다.
엔진은 검증기의 구체 타입을 모르고 verify()만 호출한다.

  verify(proof_data, sender, crs) -> ProofOutputs

검증기는 상태를 바꾸지 않는다. 성공하면 공개 출력을 돌려주고,
실패하면 ACEError 하위 오류를 발생시킨다.

**노트 행(row) 형식** (32바이트 워드 6개):
  [kBar, aBar, γx, γy, σx, σy]

**공통 검사 단계**:
  ┌─────────────────────────────────────────────────────┐
  │  1. 참조 문자열 형식 / 신뢰하는 문자열과 일치        │
  │  2. 챌린지 c mod n ≠ 0                               │
  │  3. 0 < kBar, aBar < n                               │
  │  4. γ, σ 가 G1 위의 점                               │
  │  5. 블라인딩 인자 B = kBar·γ + aBar·h ∓ c·σ ≠ O     │
  │  6. 챌린지 재구성                                    │
  │  7. 배치 페어링  e(Σxⁱγᵢ, t2) = e(Σxⁱσᵢ, G2)        │
  └─────────────────────────────────────────────────────┘

사용 예시:
    >>> validator = JoinSplitValidator()
    >>> outputs = validator.verify(proof_data, sender, crs)
"""

import logging

from ace.crypto.field import (
    FR, CURVE_ORDER, FIELD_MODULUS, G2,
    ec_lincomb, ec_neg, is_on_g1, pairing_check, point_from_ints,
)
from ace.crypto.transcript import batching_weights
from ace.encoding import WORD, word_to_uint
from ace.errors import (
    InvalidCurvePoint, InvalidScalar, PairingCheckFailed,
    ReferenceStringMismatch,
)
from ace.outputs import Note

logger = logging.getLogger(__name__)

ROW_WORDS = 6
ROW_BYTES = ROW_WORDS * WORD


class NoteRow:
    """증명 안의 노트 한 행.

    속성:
        k_bar: 값 k에 대한 응답 스칼라 (int)
        a_bar: 블라인딩 값 a에 대한 응답 스칼라 (int)
        gamma, sigma: 노트 커밋먼트 (G1 점)
    """

    def __init__(self, k_bar, a_bar, gamma, sigma):
        self.k_bar = k_bar
        self.a_bar = a_bar
        self.gamma = gamma
        self.sigma = sigma

    @property
    def note(self):
        return Note(self.gamma, self.sigma)

    @classmethod
    def parse(cls, words):
        """6개의 워드를 해석한다. 좌표는 기저 필드 범위 안이어야 한다."""
        k_bar, a_bar, gx, gy, sx, sy = (word_to_uint(w) for w in words)
        if not all(v < FIELD_MODULUS for v in (gx, gy, sx, sy)):
            raise InvalidCurvePoint("point coordinate is not a field element")
        return cls(k_bar, a_bar, point_from_ints(gx, gy), point_from_ints(sx, sy))


class ProofValidator:
    """증명 검증기 기반 클래스.

    Args:
        reference_string: 이 검증기가 신뢰하는 CRS. 주어지면 verify()에
            전달된 CRS가 이것과 정확히 같아야 한다.
    """

    label = b"ace"

    def __init__(self, reference_string=None):
        self.reference_string = reference_string

    def verify(self, proof_data, sender, crs):
        raise NotImplementedError

    # ── 공통 검사 ──

    def check_reference_string(self, crs):
        if crs is None:
            raise InvalidCurvePoint("malformed reference string")
        crs.validate()
        if self.reference_string is not None and crs != self.reference_string:
            raise ReferenceStringMismatch("reference string does not match the trusted setup")

    @staticmethod
    def check_challenge(challenge):
        """챌린지를 CURVE_ORDER로 축소한다. 0이면 거부한다."""
        c = challenge % CURVE_ORDER
        if c == 0:
            raise InvalidScalar("challenge is zero")
        return c

    @staticmethod
    def check_scalar(value, name):
        if not 0 < value < CURVE_ORDER:
            raise InvalidScalar(f"{name} is not in the scalar field")

    @staticmethod
    def check_point(point, name):
        if not is_on_g1(point):
            raise InvalidCurvePoint(f"{name} is not on the curve")

    def check_rows(self, rows, derived=()):
        """모든 행의 스칼라와 점을 검사한다.

        derived에 든 행의 kBar는 다른 값으로부터 유도되므로 검사하지 않는다.
        """
        for i, row in enumerate(rows):
            if i not in derived:
                self.check_scalar(row.k_bar, f"kBar[{i}]")
            self.check_scalar(row.a_bar, f"aBar[{i}]")
        for i, row in enumerate(rows):
            self.check_point(row.gamma, f"gamma[{i}]")
            self.check_point(row.sigma, f"sigma[{i}]")

    @staticmethod
    def blinding_factor(row, h, challenge, negate):
        """B = kBar·γ + aBar·h ∓ c·σ 를 계산한다.

        Args:
            negate: True면 -c·σ (입력 노트), False면 +c·σ (출력 노트)

        Raises:
            InvalidCurvePoint: B가 무한원점인 경우
        """
        c_term = -challenge if negate else challenge
        point = ec_lincomb([
            (row.gamma, row.k_bar),
            (h, row.a_bar),
            (row.sigma, c_term),
        ])
        if point is None:
            raise InvalidCurvePoint("blinding factor is the point at infinity")
        return point

    @staticmethod
    def check_pairing(rows, t2, challenge):
        """σᵢ = y·γᵢ 를 무작위 가중치로 묶어 한 번에 검사한다."""
        weights = batching_weights(challenge, len(rows))
        gamma_sum = ec_lincomb([(row.gamma, w) for row, w in zip(rows, weights)])
        sigma_sum = ec_lincomb([(row.sigma, w) for row, w in zip(rows, weights)])
        if gamma_sum is None or sigma_sum is None:
            raise PairingCheckFailed("degenerate note commitments")
        if not pairing_check([(gamma_sum, t2), (ec_neg(sigma_sum), G2)]):
            raise PairingCheckFailed("note commitments fail the pairing check")
        logger.debug("pairing check passed for %d notes", len(rows))


def derive_k_bar(challenge, public_value, k_bars):
    """균형 관계로부터 마지막 kBar를 유도한다: c·v - Σ kBarᵢ (mod n)."""
    total = FR(challenge) * FR(public_value)
    for k_bar in k_bars:
        total = total - FR(k_bar)
    return int(total)
