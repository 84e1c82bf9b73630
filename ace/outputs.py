"""
증명 출력 (Proof Outputs)
===========================

검증기가 증명을 받아들이면 공개 출력(proof output)을 만든다.
노트 레지스트리는 증명 바이트열이 아니라 이 출력만 보고 상태를 바꾼다.

**Note**:
  커밋먼트 쌍 (γ, σ)와 소유자가 붙인 메타데이터 바이트열.
  노트 해시는 네 좌표를 이어 붙인 keccak-256 이다 (메타데이터는 포함하지 않는다).

**ProofOutput 인코딩** (32바이트 워드):
  [sender, publicOwner, publicValue(int256), challenge, #inputs, #outputs]
  + 노트마다 [γx, γy, σx, σy] (입력 노트 먼저, 그다음 출력 노트)
  + 노트마다 [metadataLength, metadata...] (같은 순서, 워드 경계까지 0 채움)

**ProofOutputs 인코딩**:
  [count] + 출력마다 [byteLength, bytes...]

출력 해시 = keccak(ProofOutput.encode()). 캐시 키와 공개 승인의 기준이 된다.
sender와 메타데이터도 해시에 묶인다.

사용 예시:
    >>> output = ProofOutput([note_a], [note_b], owner, -10, challenge, sender=alice)
    >>> ProofOutput.decode(output.encode()) == output  # True
"""

from eth_utils import keccak

from ace.crypto.field import point_from_ints
from ace.encoding import (
    WORD, ZERO_ADDRESS,
    address_to_word, int256_to_word, uint_to_word,
    word_to_address, word_to_int256, word_to_uint,
    split_words, normalize_address, encode_padded, decode_padded,
)
from ace.errors import MalformedInput

OUTPUT_HEADER_WORDS = 6
OUTPUT_HEADER_BYTES = OUTPUT_HEADER_WORDS * WORD
NOTE_WORDS = 4
NOTE_BYTES = NOTE_WORDS * WORD


class Note:
    """노트 커밋먼트 (γ, σ).

    속성:
        gamma: G1 점 γ
        sigma: G1 점 σ (= y·γ, y는 신뢰 설정의 비밀 값)
        metadata: 노트에 붙은 바이트열 (예: 소유자가 복호화할 임시 공개키)
    """

    def __init__(self, gamma, sigma, metadata=b""):
        self.gamma = gamma
        self.sigma = sigma
        self.metadata = bytes(metadata)

    def encode(self):
        gx, gy = self.gamma
        sx, sy = self.sigma
        return b"".join(uint_to_word(int(v)) for v in (gx, gy, sx, sy))

    @classmethod
    def decode(cls, data, metadata=b""):
        words = split_words(data)
        if len(words) != NOTE_WORDS:
            raise MalformedInput("a note is exactly four words")
        gx, gy, sx, sy = (word_to_uint(w) for w in words)
        return cls(point_from_ints(gx, gy), point_from_ints(sx, sy), metadata)

    @property
    def note_hash(self):
        return keccak(self.encode())

    def __eq__(self, other):
        return (isinstance(other, Note)
                and self.gamma == other.gamma and self.sigma == other.sigma
                and self.metadata == other.metadata)

    def __hash__(self):
        return hash(self.note_hash)

    def __repr__(self):
        return f"Note(0x{self.note_hash.hex()[:12]}...)"


class ProofOutput:
    """하나의 증명 출력.

    속성:
        input_notes: 소비되는 노트 리스트
        output_notes: 새로 생성되는 노트 리스트
        public_owner: 공개 토큰을 주고받는 주소
        public_value: 공개값. 음수면 입금(deposit), 양수면 출금(withdrawal)
        challenge: 증명의 챌린지 (CURVE_ORDER로 축소된 값)
        sender: 증명을 만든 주소
    """

    def __init__(self, input_notes, output_notes, public_owner=ZERO_ADDRESS,
                 public_value=0, challenge=0, sender=ZERO_ADDRESS):
        self.input_notes = list(input_notes)
        self.output_notes = list(output_notes)
        self.public_owner = normalize_address(public_owner)
        self.public_value = int(public_value)
        self.challenge = int(challenge)
        self.sender = normalize_address(sender)

    @property
    def notes(self):
        return self.input_notes + self.output_notes

    def encode(self):
        parts = [
            address_to_word(self.sender),
            address_to_word(self.public_owner),
            int256_to_word(self.public_value),
            uint_to_word(self.challenge),
            uint_to_word(len(self.input_notes)),
            uint_to_word(len(self.output_notes)),
        ]
        parts.extend(note.encode() for note in self.notes)
        parts.extend(encode_padded(note.metadata) for note in self.notes)
        return b"".join(parts)

    @classmethod
    def decode(cls, data):
        """인코딩된 출력을 복원한다.

        Raises:
            MalformedInput: 길이나 노트 개수가 맞지 않는 경우
        """
        data = bytes(data)
        if len(data) < OUTPUT_HEADER_BYTES:
            raise MalformedInput("proof output is shorter than its header")
        words = split_words(data[:OUTPUT_HEADER_BYTES])
        sender = word_to_address(words[0])
        public_owner = word_to_address(words[1])
        public_value = word_to_int256(words[2])
        challenge = word_to_uint(words[3])
        n_inputs = word_to_uint(words[4])
        n_outputs = word_to_uint(words[5])
        n = n_inputs + n_outputs
        if OUTPUT_HEADER_BYTES + n * (NOTE_BYTES + WORD) > len(data):
            raise MalformedInput("proof output note count does not match its length")

        offset = OUTPUT_HEADER_BYTES
        coordinates = []
        for _ in range(n):
            coordinates.append(data[offset:offset + NOTE_BYTES])
            offset += NOTE_BYTES
        notes = []
        for encoded in coordinates:
            metadata, offset = decode_padded(data, offset)
            notes.append(Note.decode(encoded, metadata))
        if offset != len(data):
            raise MalformedInput("proof output note count does not match its length")
        return cls(notes[:n_inputs], notes[n_inputs:], public_owner,
                   public_value, challenge, sender)

    @property
    def hash(self):
        return keccak(self.encode())

    def __eq__(self, other):
        return isinstance(other, ProofOutput) and self.encode() == other.encode()

    def __repr__(self):
        return (f"ProofOutput(inputs={len(self.input_notes)}, "
                f"outputs={len(self.output_notes)}, "
                f"public_value={self.public_value})")


class ProofOutputs(list):
    """ProofOutput 리스트와 그 인코딩."""

    def encode(self):
        parts = [uint_to_word(len(self))]
        for output in self:
            encoded = output.encode()
            parts.append(uint_to_word(len(encoded)))
            parts.append(encoded)
        return b"".join(parts)

    @classmethod
    def decode(cls, data):
        data = bytes(data)
        if len(data) < WORD:
            raise MalformedInput("proof outputs are empty")
        count = word_to_uint(data[:WORD])
        offset = WORD
        outputs = cls()
        for _ in range(count):
            if offset + WORD > len(data):
                raise MalformedInput("truncated proof outputs")
            length = word_to_uint(data[offset:offset + WORD])
            offset += WORD
            if offset + length > len(data):
                raise MalformedInput("truncated proof output")
            outputs.append(ProofOutput.decode(data[offset:offset + length]))
            offset += length
        if offset != len(data):
            raise MalformedInput("trailing bytes after proof outputs")
        return outputs
