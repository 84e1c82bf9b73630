"""
Dividend Validator (utility)
==============================

기준(notional) 노트 값의 za/zb 비율만큼을 목표(target) 노트가 담고 있음을
증명하는 보조 증명. 나머지는 잔여(residual) 노트가 받는다.
상태를 바꾸지 않는 UTILITY 종류이므로 캐시되지 않는다.

**증명 형식** (32바이트 워드, 총 704바이트):
  헤더: [sender, za, zb, challenge]
  본문: 정확히 3개의 노트 행 [notional, residual, target]

**관계**:
  za · k(notional) = zb · k(target) + k(residual)

  잔여 노트의 kBar는 유도된다:
    kBar(residual) = za · kBar(notional) - zb · kBar(target)

  세 노트 모두 B = kBar·γ + aBar·h - c·σ.
  za, zb는 0보다 크고 CURVE_ORDER보다 작아야 한다.
  잔여 값이 za보다 작다는 것은 별도의 범위 증명으로 보여야 한다.

**챌린지 트랜스크립트** (레이블 b"dividend"):
  [sender, za, zb, (γ, σ) × 3, B × 3]
"""

import logging

from ace.crypto.field import FR
from ace.crypto.transcript import Transcript
from ace.encoding import (
    WORD, ZERO_ADDRESS, split_words, normalize_address,
    word_to_address, word_to_uint,
)
from ace.errors import ChallengeMismatch, MalformedInput
from ace.outputs import ProofOutput, ProofOutputs
from ace.validators import ROW_BYTES, ROW_WORDS, NoteRow, ProofValidator

logger = logging.getLogger(__name__)

HEADER_WORDS = 4
NOTE_COUNT = 3
PROOF_BYTES = HEADER_WORDS * WORD + NOTE_COUNT * ROW_BYTES

NOTIONAL, RESIDUAL, TARGET = range(NOTE_COUNT)


def derive_residual_k_bar(za, zb, k_bar_notional, k_bar_target):
    return int(FR(za) * FR(k_bar_notional) - FR(zb) * FR(k_bar_target))


class DividendValidator(ProofValidator):
    """배당(비율) 증명 검증기."""

    label = b"dividend"

    def verify(self, proof_data, sender, crs):
        self.check_reference_string(crs)

        data = bytes(proof_data)
        if len(data) != PROOF_BYTES:
            raise MalformedInput(f"dividend proof has invalid length {len(data)}")
        words = split_words(data)
        proof_sender = word_to_address(words[0])
        if proof_sender != normalize_address(sender):
            raise MalformedInput("proof sender does not match the submitter")
        za = word_to_uint(words[1])
        zb = word_to_uint(words[2])
        self.check_scalar(za, "za")
        self.check_scalar(zb, "zb")

        c = self.check_challenge(word_to_uint(words[3]))
        body = words[HEADER_WORDS:]
        rows = [NoteRow.parse(body[i:i + ROW_WORDS]) for i in range(0, len(body), ROW_WORDS)]
        self.check_rows(rows, derived=(RESIDUAL,))

        rows[RESIDUAL].k_bar = derive_residual_k_bar(
            za, zb, rows[NOTIONAL].k_bar, rows[TARGET].k_bar)
        blinding_factors = [self.blinding_factor(row, crs.h, c, negate=True) for row in rows]

        transcript = Transcript(self.label)
        transcript.append_address(proof_sender)
        transcript.append_scalar(za)
        transcript.append_scalar(zb)
        for row in rows:
            transcript.append_point(row.gamma)
            transcript.append_point(row.sigma)
        for point in blinding_factors:
            transcript.append_point(point)

        if int(transcript.challenge_scalar()) != c:
            raise ChallengeMismatch("dividend challenge does not match the transcript")

        self.check_pairing(rows, crs.t2, c)

        logger.debug("dividend proof verified: za=%d zb=%d", za, zb)
        return ProofOutputs([
            ProofOutput(
                input_notes=[rows[NOTIONAL].note],
                output_notes=[rows[RESIDUAL].note, rows[TARGET].note],
                public_owner=ZERO_ADDRESS,
                public_value=0,
                challenge=c,
                sender=proof_sender,
            )
        ])
