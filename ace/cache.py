"""
검증된 증명 캐시
==================

검증에 성공한 증명 출력을 (출력 해시, 증명 종류, 제출자) 단위로 기록한다.
노트 레지스트리는 이 기록을 정확히 한 번 소비한다.

  key = keccak(outputHash ‖ kind ‖ submitter)

  validate_proof         → entries[key] = True
  update_note_registry   → entries[key] = False  (소비)
  clear_proof_by_hashes  → entries[key] = False  (제출자가 직접 폐기)

False가 된 키는 spent 집합에 남는다. 같은 제출자가 같은 증명을 다시 검증해도
그 키는 True로 돌아오지 않는다.
"""

from eth_utils import keccak

from ace.encoding import address_to_word, uint_to_word


def cache_key(kind, proof_hash, submitter):
    return keccak(bytes(proof_hash) + uint_to_word(kind) + address_to_word(submitter))


class ValidatedProofCache:
    """검증 기록 테이블 {key: bool}과 소비된 키 집합."""

    def __init__(self):
        self.entries = {}
        self.spent = set()

    def record(self, kind, proof_hash, submitter):
        """검증 기록을 남긴다. 이미 소비된 키면 False를 반환하고 아무것도 바꾸지 않는다."""
        key = cache_key(kind, proof_hash, submitter)
        if key in self.spent:
            return False
        self.entries[key] = True
        return True

    def is_validated(self, kind, proof_hash, submitter):
        return self.entries.get(cache_key(kind, proof_hash, submitter), False)

    def clear(self, kind, proof_hash, submitter):
        key = cache_key(kind, proof_hash, submitter)
        self.entries[key] = False
        self.spent.add(key)

    def snapshot(self):
        return dict(self.entries), set(self.spent)

    def restore(self, snapshot):
        self.entries, self.spent = snapshot
