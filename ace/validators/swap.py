"""
Swap Validator
================

두 자산 사이의 양자(bilateral) 교환 증명을 검증한다 (BALANCED).
메이커와 테이커가 서로 다른 노트 레지스트리의 노트를 같은 값으로 맞바꾼다.

**증명 형식** (32바이트 워드, 총 832바이트):
  헤더: [sender, challenge]
  본문: 정확히 4개의 노트 행
        [makerBid, makerAsk, takerBid, takerAsk]

**관계**:
  k(makerBid) = k(takerAsk)   (자산 A가 메이커에서 테이커로)
  k(makerAsk) = k(takerBid)   (자산 B가 테이커에서 메이커로)

  테이커 노트의 kBar는 유도된다:
    kBar(takerBid) = kBar(makerAsk)
    kBar(takerAsk) = kBar(makerBid)

  네 노트 모두 B = kBar·γ + aBar·h - c·σ.

**챌린지 트랜스크립트** (레이블 b"swap"):
  [sender, (γ, σ) × 4, B × 4]

**출력** (두 개, 공개값 0):
  [0] 입력 makerBid → 출력 takerAsk
  [1] 입력 takerBid → 출력 makerAsk

사용 예시:
    >>> outputs = SwapValidator(crs).verify(proof_data, sender, crs)
    >>> len(outputs)
    2
"""

import logging

from ace.crypto.transcript import Transcript
from ace.encoding import (
    WORD, ZERO_ADDRESS, split_words, normalize_address,
    word_to_address, word_to_uint,
)
from ace.errors import ChallengeMismatch, MalformedInput
from ace.outputs import ProofOutput, ProofOutputs
from ace.validators import ROW_BYTES, ROW_WORDS, NoteRow, ProofValidator

logger = logging.getLogger(__name__)

HEADER_WORDS = 2
NOTE_COUNT = 4
PROOF_BYTES = HEADER_WORDS * WORD + NOTE_COUNT * ROW_BYTES

MAKER_BID, MAKER_ASK, TAKER_BID, TAKER_ASK = range(NOTE_COUNT)


class SwapValidator(ProofValidator):
    """양자 교환 증명 검증기."""

    label = b"swap"

    def verify(self, proof_data, sender, crs):
        self.check_reference_string(crs)

        data = bytes(proof_data)
        if len(data) != PROOF_BYTES:
            raise MalformedInput(f"swap proof has invalid length {len(data)}")
        words = split_words(data)
        proof_sender = word_to_address(words[0])
        if proof_sender != normalize_address(sender):
            raise MalformedInput("proof sender does not match the submitter")

        c = self.check_challenge(word_to_uint(words[1]))
        body = words[HEADER_WORDS:]
        rows = [NoteRow.parse(body[i:i + ROW_WORDS]) for i in range(0, len(body), ROW_WORDS)]
        self.check_rows(rows, derived=(TAKER_BID, TAKER_ASK))

        rows[TAKER_BID].k_bar = rows[MAKER_ASK].k_bar
        rows[TAKER_ASK].k_bar = rows[MAKER_BID].k_bar
        blinding_factors = [self.blinding_factor(row, crs.h, c, negate=True) for row in rows]

        transcript = Transcript(self.label)
        transcript.append_address(proof_sender)
        for row in rows:
            transcript.append_point(row.gamma)
            transcript.append_point(row.sigma)
        for point in blinding_factors:
            transcript.append_point(point)

        if int(transcript.challenge_scalar()) != c:
            raise ChallengeMismatch("swap challenge does not match the transcript")

        self.check_pairing(rows, crs.t2, c)

        notes = [row.note for row in rows]
        logger.debug("swap proof verified for %s", proof_sender)
        return ProofOutputs([
            ProofOutput([notes[MAKER_BID]], [notes[TAKER_ASK]], ZERO_ADDRESS, 0, c,
                        sender=proof_sender),
            ProofOutput([notes[TAKER_BID]], [notes[MAKER_ASK]], ZERO_ADDRESS, 0, c,
                        sender=proof_sender),
        ])
