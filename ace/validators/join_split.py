"""
Join-Split Validator
======================

입력 노트를 소비하고 출력 노트를 만드는 균형(BALANCED) 증명을 검증한다.

**증명 형식** (32바이트 워드):
  헤더: [sender, publicValue(int256), publicOwner, m, challenge, n]
  본문: n개의 노트 행 [kBar, aBar, γx, γy, σx, σy]
  메타데이터: 노트마다 [byteLength, bytes...] (워드 경계까지 0 채움)

  앞의 m개 행이 입력 노트, 나머지 n-m개가 출력 노트다 (n ≥ 1, m ≤ n).
  메타데이터는 챌린지에 묶이지 않지만 출력 인코딩과 출력 해시에는 들어간다.
  입력 노트의 메타데이터는 보통 비어 있다.

**균형 관계**:
  Σ 입력값 - Σ 출력값 = publicValue
  publicValue < 0 : 공개 토큰 입금 (출력이 더 크다)
  publicValue > 0 : 공개 토큰 출금 (입력이 더 크다)

  검증기는 마지막 행의 kBar를 증명에서 읽지 않고
  kBar_n = c·publicValue - Σ_{i<n} kBar_i 로 유도한다.
  균형이 맞지 않으면 마지막 블라인딩 인자가 달라져 챌린지가 어긋난다.

**블라인딩 인자**:
  입력 노트 (i < m):  B = kBar·γ + aBar·h - c·σ
  출력 노트 (i ≥ m):  B = kBar·γ + aBar·h + c·σ

**챌린지 트랜스크립트** (레이블 b"join-split"):
  [sender, publicValue, m, publicOwner, (γ, σ)..., B...]

사용 예시:
    >>> validator = JoinSplitValidator(reference_string=crs)
    >>> outputs = validator.verify(proof_data, sender, crs)
    >>> outputs[0].public_value
    -20
"""

import logging

from ace.crypto.transcript import Transcript
from ace.encoding import (
    WORD, split_words, normalize_address, decode_padded,
    word_to_address, word_to_int256, word_to_uint,
)
from ace.errors import ChallengeMismatch, MalformedInput
from ace.outputs import Note, ProofOutput, ProofOutputs
from ace.validators import ROW_BYTES, ROW_WORDS, NoteRow, ProofValidator, derive_k_bar

logger = logging.getLogger(__name__)

HEADER_WORDS = 6
HEADER_BYTES = HEADER_WORDS * WORD


class JoinSplitProof:
    """파싱된 Join-Split 증명.

    속성:
        sender: 증명을 만든 주소 (트랜스크립트에 묶인다)
        public_value: 부호 있는 공개값
        public_owner: 공개 토큰 주소
        m: 입력 노트 개수
        challenge: 증명에 적힌 챌린지 (축소 전)
        rows: NoteRow 리스트
        metadata: 행마다 하나씩, 노트 메타데이터 바이트열
    """

    def __init__(self, sender, public_value, public_owner, m, challenge, rows, metadata=None):
        self.sender = sender
        self.public_value = public_value
        self.public_owner = public_owner
        self.m = m
        self.challenge = challenge
        self.rows = rows
        self.metadata = metadata if metadata is not None else [b""] * len(rows)

    @classmethod
    def parse(cls, proof_data):
        """증명 바이트열을 해석한다.

        Raises:
            MalformedInput: 길이, n 또는 m이 잘못된 경우
            InvalidCurvePoint: 좌표가 필드 원소가 아닌 경우
        """
        data = bytes(proof_data)
        if len(data) < HEADER_BYTES:
            raise MalformedInput(f"join-split proof has invalid length {len(data)}")
        words = split_words(data[:HEADER_BYTES])
        sender = word_to_address(words[0])
        public_value = word_to_int256(words[1])
        public_owner = word_to_address(words[2])
        m = word_to_uint(words[3])
        challenge = word_to_uint(words[4])
        n = word_to_uint(words[5])
        if n == 0:
            raise MalformedInput("join-split proof has no notes")
        rows_end = HEADER_BYTES + n * ROW_BYTES
        if rows_end + n * WORD > len(data):
            raise MalformedInput(f"join-split proof has invalid length {len(data)}")
        if m > n:
            raise MalformedInput(f"m = {m} exceeds the number of notes {n}")

        body = split_words(data[HEADER_BYTES:rows_end])
        rows = [NoteRow.parse(body[i:i + ROW_WORDS]) for i in range(0, len(body), ROW_WORDS)]
        metadata = []
        offset = rows_end
        for _ in range(n):
            value, offset = decode_padded(data, offset)
            metadata.append(value)
        if offset != len(data):
            raise MalformedInput("trailing bytes after join-split metadata")
        return cls(sender, public_value, public_owner, m, challenge, rows, metadata)


class JoinSplitValidator(ProofValidator):
    """Join-Split 증명 검증기."""

    label = b"join-split"

    def verify(self, proof_data, sender, crs):
        """증명을 검증하고 공개 출력을 반환한다.

        Args:
            proof_data: 증명 바이트열
            sender: 증명을 제출한 주소. 헤더의 sender와 같아야 한다.
            crs: ReferenceString

        Returns:
            ProofOutputs: 출력 하나를 담은 리스트

        Raises:
            MalformedInput, InvalidScalar, InvalidCurvePoint,
            ChallengeMismatch, PairingCheckFailed, ReferenceStringMismatch
        """
        self.check_reference_string(crs)

        proof = JoinSplitProof.parse(proof_data)
        if proof.sender != normalize_address(sender):
            raise MalformedInput("proof sender does not match the submitter")

        c = self.check_challenge(proof.challenge)
        rows = proof.rows
        n = len(rows)
        self.check_rows(rows, derived=(n - 1,))

        rows[-1].k_bar = derive_k_bar(c, proof.public_value, [r.k_bar for r in rows[:-1]])

        blinding_factors = [
            self.blinding_factor(row, crs.h, c, negate=i < proof.m)
            for i, row in enumerate(rows)
        ]

        transcript = Transcript(self.label)
        transcript.append_address(proof.sender)
        transcript.append_scalar(proof.public_value)
        transcript.append_scalar(proof.m)
        transcript.append_address(proof.public_owner)
        for row in rows:
            transcript.append_point(row.gamma)
            transcript.append_point(row.sigma)
        for point in blinding_factors:
            transcript.append_point(point)

        if int(transcript.challenge_scalar()) != c:
            raise ChallengeMismatch("join-split challenge does not match the transcript")

        self.check_pairing(rows, crs.t2, c)

        notes = [Note(row.gamma, row.sigma, metadata)
                 for row, metadata in zip(rows, proof.metadata)]
        output = ProofOutput(
            input_notes=notes[:proof.m],
            output_notes=notes[proof.m:],
            public_owner=proof.public_owner,
            public_value=proof.public_value,
            challenge=c,
            sender=proof.sender,
        )
        logger.debug("join-split proof verified: m=%d n=%d public_value=%d",
                     proof.m, n, proof.public_value)
        return ProofOutputs([output])
