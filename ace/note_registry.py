"""
노트 레지스트리
=================

하나의 자산(공개 토큰)에 대한 기밀 노트의 상태표와 공개값 보관 장부.

**노트 상태**:
  UNUSED ──출력으로 생성──> UNSPENT ──입력으로 소비──> SPENT

  - 입력 노트는 UNSPENT 여야 한다 (SPENT → DoubleSpend, 없으면 UnknownNote)
  - 출력 노트는 UNUSED 여야 한다 (이미 있으면 DuplicateNote)

**공개값 장부**:
  total_supply   : 입금/출금으로 순증한 기밀 단위
  public_balance : 이 레지스트리를 위해 엔진이 보관 중인 공개 토큰
  공급량을 조정할 수 없는 레지스트리는 항상
  public_balance == scaling_factor × total_supply 를 만족한다.

**자산 유형** (팩토리 선택):
  asset_type = can_convert·1 + can_adjust_supply·2   (0은 허용되지 않음)
"""

import logging

from ace.encoding import normalize_address
from ace.errors import (
    DoubleSpend, DuplicateNote, InsufficientFunds, PermissionDenied,
    RegistryError, UnknownNote,
)

logger = logging.getLogger(__name__)


class NoteStatus:
    UNUSED = 0
    UNSPENT = 1
    SPENT = 2

    NAMES = {UNUSED: "UNUSED", UNSPENT: "UNSPENT", SPENT: "SPENT"}


def asset_type(can_adjust_supply, can_convert):
    return (1 if can_convert else 0) + (2 if can_adjust_supply else 0)


class NoteRegistry:
    """자산 하나에 대한 노트 상태표.

    Args:
        owner: 레지스트리 소유자 (update_note_registry를 호출할 수 있는 주소)
        linked_token: 공개 토큰 원장 주소
        scaling_factor: 기밀 단위 1당 공개 토큰 수 (> 0)
        can_adjust_supply: 공급량 조정 가능 여부
        can_convert: 공개 토큰과의 입출금 가능 여부
        factory_id: 이 레지스트리를 만든 팩토리 ID
    """

    def __init__(self, owner, linked_token, scaling_factor, can_adjust_supply,
                 can_convert, factory_id):
        self.owner = normalize_address(owner)
        self.linked_token = normalize_address(linked_token)
        self.scaling_factor = scaling_factor
        self.can_adjust_supply = can_adjust_supply
        self.can_convert = can_convert
        self.factory_id = factory_id
        self.notes = {}
        self.public_approvals = {}
        self.total_supply = 0
        self.public_balance = 0

    def note_status(self, note_hash):
        return self.notes.get(bytes(note_hash), NoteStatus.UNUSED)

    def update_notes(self, output):
        """증명 출력에 따라 노트 상태를 바꾼다.

        모든 검사를 먼저 끝낸 뒤에 상태를 바꾸므로 실패하면 아무것도 바뀌지 않는다.
        """
        spent = []
        for note in output.input_notes:
            note_hash = note.note_hash
            status = self.note_status(note_hash)
            if status == NoteStatus.SPENT or note_hash in spent:
                raise DoubleSpend(f"input note 0x{note_hash.hex()} is already spent")
            if status != NoteStatus.UNSPENT:
                raise UnknownNote(f"input note 0x{note_hash.hex()} does not exist")
            spent.append(note_hash)

        created = []
        for note in output.output_notes:
            note_hash = note.note_hash
            if self.note_status(note_hash) != NoteStatus.UNUSED or note_hash in created:
                raise DuplicateNote(f"output note 0x{note_hash.hex()} already exists")
            created.append(note_hash)

        for note_hash in spent:
            self.notes[note_hash] = NoteStatus.SPENT
        for note_hash in created:
            self.notes[note_hash] = NoteStatus.UNSPENT
        return spent, created

    def approve(self, public_owner, proof_hash, value):
        self.public_approvals[(normalize_address(public_owner), bytes(proof_hash))] = value

    def approval(self, public_owner, proof_hash):
        return self.public_approvals.get((normalize_address(public_owner), bytes(proof_hash)), 0)

    def consume_approval(self, public_owner, proof_hash, value):
        approved = self.approval(public_owner, proof_hash)
        if approved < value:
            raise PermissionDenied("public owner has not validated a transfer of tokens")
        self.public_approvals[(normalize_address(public_owner), bytes(proof_hash))] = approved - value

    def record_deposit(self, units, amount):
        self.total_supply += units
        self.public_balance += amount
        self.check_balance()

    def record_withdrawal(self, units, amount):
        if amount > self.public_balance:
            raise InsufficientFunds("withdrawal exceeds the registry's public balance")
        self.total_supply -= units
        self.public_balance -= amount
        self.check_balance()

    def check_balance(self):
        if self.can_adjust_supply:
            return
        if self.public_balance != self.scaling_factor * self.total_supply:
            raise RegistryError("public balance is out of step with the confidential supply")

    def snapshot(self):
        return (dict(self.notes), dict(self.public_approvals),
                self.total_supply, self.public_balance)

    def restore(self, snapshot):
        notes, approvals, total_supply, public_balance = snapshot
        self.notes = notes
        self.public_approvals = approvals
        self.total_supply = total_supply
        self.public_balance = public_balance

    def to_dict(self):
        return {
            "owner": self.owner,
            "linked_token": self.linked_token,
            "scaling_factor": self.scaling_factor,
            "can_adjust_supply": self.can_adjust_supply,
            "can_convert": self.can_convert,
            "factory_id": self.factory_id,
            "total_supply": self.total_supply,
            "public_balance": self.public_balance,
        }


class NoteRegistryFactory:
    """특정 자산 유형의 노트 레지스트리를 만든다.

    Args:
        asset_type: 이 팩토리가 만드는 자산 유형 (1, 2, 3)
    """

    registry_class = NoteRegistry

    def __init__(self, asset_type):
        if asset_type not in (1, 2, 3):
            raise RegistryError(f"unsupported asset type {asset_type}")
        self.asset_type = asset_type

    def create(self, owner, linked_token, scaling_factor, can_adjust_supply, can_convert,
               factory_id):
        if asset_type(can_adjust_supply, can_convert) != self.asset_type:
            raise RegistryError("factory does not produce this asset type")
        registry = self.registry_class(owner, linked_token, scaling_factor,
                                       can_adjust_supply, can_convert, factory_id)
        logger.info("created note registry for %s (asset type %d)", registry.owner, self.asset_type)
        return registry
