"""
Public-Range Validator (utility)
==================================

노트의 값이 공개 비교값 P 이상인지(또는 미만인지)를 증명하는 보조 증명.
상태를 바꾸지 않는 UTILITY 종류이므로 캐시되지 않고,
노트 레지스트리 갱신에도 사용할 수 없다.

**증명 형식** (32바이트 워드, 총 512바이트):
  헤더: [sender, publicComparison(int256), isGreaterOrEqual(0/1), challenge]
  본문: 정확히 2개의 노트 행 (원본 노트, 보조(utility) 노트)

**관계**:
  isGreaterOrEqual = 1 :  k_orig - k_util = P      (k_orig ≥ P 이면 k_util ≥ 0)
  isGreaterOrEqual = 0 :  k_orig + k_util = P - 1  (k_orig < P)

  보조 노트의 kBar는 유도된다:
    ≥ :  kBar_util = kBar_orig - c·P
    < :  kBar_util = c·(P - 1) - kBar_orig

  두 노트 모두 B = kBar·γ + aBar·h - c·σ.

**챌린지 트랜스크립트** (레이블 b"public-range"):
  [sender, P, isGreaterOrEqual, (γ, σ)_orig, (γ, σ)_util, B_orig, B_util]
"""

import logging

from ace.crypto.field import FR
from ace.crypto.transcript import Transcript
from ace.encoding import (
    WORD, ZERO_ADDRESS, split_words, normalize_address,
    word_to_address, word_to_int256, word_to_uint,
)
from ace.errors import ChallengeMismatch, MalformedInput
from ace.outputs import ProofOutput, ProofOutputs
from ace.validators import ROW_BYTES, ROW_WORDS, NoteRow, ProofValidator

logger = logging.getLogger(__name__)

HEADER_WORDS = 4
PROOF_BYTES = HEADER_WORDS * WORD + 2 * ROW_BYTES


def derive_utility_k_bar(challenge, comparison, is_greater_or_equal, k_bar_orig):
    c = FR(challenge)
    if is_greater_or_equal:
        return int(FR(k_bar_orig) - c * FR(comparison))
    return int(c * FR(comparison - 1) - FR(k_bar_orig))


class PublicRangeValidator(ProofValidator):
    """Public-Range 증명 검증기."""

    label = b"public-range"

    def verify(self, proof_data, sender, crs):
        self.check_reference_string(crs)

        data = bytes(proof_data)
        if len(data) != PROOF_BYTES:
            raise MalformedInput(f"public-range proof has invalid length {len(data)}")
        words = split_words(data)
        proof_sender = word_to_address(words[0])
        comparison = word_to_int256(words[1])
        flag = word_to_uint(words[2])
        if flag not in (0, 1):
            raise MalformedInput("isGreaterOrEqual must be 0 or 1")
        is_greater_or_equal = flag == 1
        if proof_sender != normalize_address(sender):
            raise MalformedInput("proof sender does not match the submitter")

        c = self.check_challenge(word_to_uint(words[3]))
        body = words[HEADER_WORDS:]
        original = NoteRow.parse(body[:ROW_WORDS])
        utility = NoteRow.parse(body[ROW_WORDS:])
        rows = [original, utility]
        self.check_rows(rows, derived=(1,))

        utility.k_bar = derive_utility_k_bar(c, comparison, is_greater_or_equal, original.k_bar)
        blinding_factors = [self.blinding_factor(row, crs.h, c, negate=True) for row in rows]

        transcript = Transcript(self.label)
        transcript.append_address(proof_sender)
        transcript.append_scalar(comparison)
        transcript.append_scalar(flag)
        for row in rows:
            transcript.append_point(row.gamma)
            transcript.append_point(row.sigma)
        for point in blinding_factors:
            transcript.append_point(point)

        if int(transcript.challenge_scalar()) != c:
            raise ChallengeMismatch("public-range challenge does not match the transcript")

        self.check_pairing(rows, crs.t2, c)

        logger.debug("public-range proof verified: comparison=%d greater_or_equal=%s",
                     comparison, is_greater_or_equal)
        return ProofOutputs([
            ProofOutput(
                input_notes=[original.note],
                output_notes=[utility.note],
                public_owner=ZERO_ADDRESS,
                public_value=0,
                challenge=c,
                sender=proof_sender,
            )
        ])
