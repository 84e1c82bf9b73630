"""
ACE 엔진 — 검증 및 정산
=========================

증명 레지스트리, 검증된 증명 캐시, 노트 레지스트리를 하나로 묶는 퍼사드.
모든 공개 작업의 첫 번째 인자 caller는 작업을 요청한 주소다.

**흐름**:
  ┌──────────────────────────────────────────────────────────┐
  │  validate_proof(caller, kind, sender, proof)             │
  │    → 레지스트리에서 검증기 조회 → verify()              │
  │    → (UTILITY가 아니면) 출력 해시를 caller 이름으로 캐시 │
  ├──────────────────────────────────────────────────────────┤
  │  update_note_registry(owner, kind, output, sender)       │
  │    → 캐시 확인 → 캐시 항목 소비 → 노트 상태 변경        │
  │    → 마지막으로 공개 토큰 이동 (입금/출금)               │
  └──────────────────────────────────────────────────────────┘

**트랜잭션**:
  모든 공개 작업은 하나의 재진입 락 아래에서 실행되고,
  시작 시점의 상태(엔진 테이블과 등록된 원장)를 스냅샷으로 떠 둔다.
  작업 도중 오류가 발생하면 스냅샷으로 되돌리고 오류를 그대로 전파한다.
  이벤트는 작업이 성공한 뒤에만 저널에 기록된다.
  저널 기록이 실패해도 상태는 스냅샷으로 되돌아간다.

**특권 작업** (엔진 소유자 전용):
  set_proof, invalidate_proof, increment_latest_epoch,
  set_common_reference_string, set_factory

사용 예시:
    >>> engine = ACE(EngineConfig(owner=owner))
    >>> engine.set_common_reference_string(owner, crs)
    >>> engine.set_proof(owner, JOIN_SPLIT, JoinSplitValidator(crs))
    >>> outputs = engine.validate_proof(alice, JOIN_SPLIT, alice, proof_data)
"""

import json
import logging
import threading
from contextlib import contextmanager

from ace.cache import ValidatedProofCache
from ace.config import EngineConfig
from ace.crypto.crs import ReferenceString
from ace.encoding import ZERO_ADDRESS, bytes_to_hex, normalize_address
from ace.errors import (
    EpochViolation, ImmutabilityViolation, MalformedInput, PermissionDenied,
    RegistryError, ReplayRejected, UtilityProofMisuse,
)
from ace.journal import EventJournal
from ace.note_registry import NoteStatus, asset_type
from ace.outputs import ProofOutput
from ace.proof_kind import DEFAULT_LAYOUT
from ace.registry import ProofRegistry

logger = logging.getLogger(__name__)

EMPTY_HASH = b"\x00" * 32


class EngineState:
    """엔진이 소유하는 모든 가변 상태.

    속성:
        proofs: ProofRegistry (검증기 테이블 + 최신 epoch)
        validated_proofs: ValidatedProofCache
        factories: {factory_id: NoteRegistryFactory}
        registries: {owner: NoteRegistry}
        crs: 현재 ReferenceString (설정 전에는 None)
    """

    def __init__(self, layout=DEFAULT_LAYOUT):
        self.proofs = ProofRegistry(layout)
        self.validated_proofs = ValidatedProofCache()
        self.factories = {}
        self.registries = {}
        self.crs = None

    def snapshot(self):
        return (
            self.proofs.snapshot(),
            self.validated_proofs.snapshot(),
            dict(self.factories),
            {owner: (registry, registry.snapshot()) for owner, registry in self.registries.items()},
            self.crs,
        )

    def restore(self, snapshot):
        proofs, validated, factories, registries, crs = snapshot
        self.proofs.restore(proofs)
        self.validated_proofs.restore(validated)
        self.factories = factories
        self.registries = {}
        for owner, (registry, registry_snapshot) in registries.items():
            registry.restore(registry_snapshot)
            self.registries[owner] = registry
        self.crs = crs


class ACE:
    """Anonymity/Confidentiality Engine.

    Args:
        config: EngineConfig
        layout: 증명 종류 ID 비트 배치 (기본값 16/8/8)
        journal: EventJournal. 없으면 config.journal_path로 연다.
    """

    def __init__(self, config, layout=DEFAULT_LAYOUT, journal=None):
        self.config = config
        self.owner = config.owner
        self.address = config.address
        self.layout = layout
        self.state = EngineState(layout)
        self.ledgers = {}
        self.journal = journal if journal is not None else EventJournal(config.journal_path)
        self._lock = threading.RLock()
        self._pending = None

    @classmethod
    def from_config(cls, config=None):
        """설정으로 엔진을 만들고, crs_path가 있으면 참조 문자열을 불러온다."""
        config = config or EngineConfig.from_env()
        engine = cls(config)
        if config.crs_path:
            with open(config.crs_path) as f:
                crs = ReferenceString.from_dict(json.load(f))
            engine.set_common_reference_string(config.owner, crs)
        return engine

    # ─────────────────────────────────────────────────────────────
    # 내부 도구
    # ─────────────────────────────────────────────────────────────

    @contextmanager
    def _transaction(self):
        with self._lock:
            if self._pending is not None:
                # 중첩 호출은 바깥 트랜잭션에 합류한다
                yield
                return
            state_snapshot = self.state.snapshot()
            ledger_snapshots = {addr: ledger.snapshot() for addr, ledger in self.ledgers.items()}
            self._pending = []
            try:
                yield
                self.journal.append_many(self._pending)
            except Exception:
                self.state.restore(state_snapshot)
                for addr, snapshot in ledger_snapshots.items():
                    self.ledgers[addr].restore(snapshot)
                raise
            finally:
                self._pending = None

    def _emit(self, name, **payload):
        self._pending.append((name, payload))

    def _require_owner(self, caller, message):
        if normalize_address(caller) != self.owner:
            logger.warning("rejected privileged call from %s: %s", caller, message)
            raise PermissionDenied(message)

    def _ledger(self, address):
        ledger = self.ledgers.get(normalize_address(address))
        if ledger is None:
            raise RegistryError(f"no public ledger at {address}")
        return ledger

    def _registry(self, owner):
        registry = self.state.registries.get(normalize_address(owner))
        if registry is None:
            raise RegistryError("note registry does not exist for the given address")
        return registry

    # ─────────────────────────────────────────────────────────────
    # 원장 연결
    # ─────────────────────────────────────────────────────────────

    def register_ledger(self, ledger):
        """공개 원장을 엔진에 연결한다. 노트 레지스트리는 이 주소로 원장을 찾는다."""
        with self._lock:
            self.ledgers[normalize_address(ledger.address)] = ledger
        return ledger

    # ─────────────────────────────────────────────────────────────
    # 증명 레지스트리 (소유자 전용 작업 포함)
    # ─────────────────────────────────────────────────────────────

    @property
    def latest_epoch(self):
        return self.state.proofs.latest_epoch

    @property
    def common_reference_string(self):
        return self.state.crs

    def set_proof(self, caller, kind, validator):
        with self._transaction():
            self._require_owner(caller, "only the owner can set a proof")
            self.state.proofs.set_proof(kind, validator)
            self._emit("SetProof", kind=kind, validator=type(validator).__name__)

    def get_validator(self, kind):
        with self._lock:
            return self.state.proofs.get_validator(kind)

    def invalidate_proof(self, caller, kind):
        with self._transaction():
            self._require_owner(caller, "only the owner can invalidate a proof")
            self.state.proofs.invalidate_proof(kind)
            self._emit("InvalidateProof", kind=kind)

    def increment_latest_epoch(self, caller):
        with self._transaction():
            self._require_owner(caller, "only the owner can update the latest epoch")
            epoch = self.state.proofs.increment_latest_epoch()
            self._emit("IncrementLatestEpoch", epoch=epoch)
            return epoch

    def set_common_reference_string(self, caller, crs):
        with self._transaction():
            self._require_owner(caller, "only the owner can set the common reference string")
            crs.validate(check_subgroup=True)
            self.state.crs = crs
            logger.info("common reference string updated")
            self._emit("SetCommonReferenceString", crs=crs.to_dict())

    # ─────────────────────────────────────────────────────────────
    # 검증 및 캐시
    # ─────────────────────────────────────────────────────────────

    def validate_proof(self, caller, kind, sender, proof_data):
        """증명을 검증하고 출력 해시를 caller 이름으로 캐시한다.

        UTILITY 종류의 출력은 캐시하지 않는다.
        이미 소비되었거나 폐기된 출력은 다시 캐시되지 않는다.

        Returns:
            ProofOutputs

        Raises:
            UnknownOrDisabledProofKind, 검증기가 발생시키는 모든 ACEError
        """
        with self._transaction():
            caller = normalize_address(caller)
            validator = self.state.proofs.get_validator(kind)
            outputs = validator.verify(proof_data, sender, self.state.crs)
            if not self.state.proofs.unpack(kind).is_utility:
                for output in outputs:
                    if not self.state.validated_proofs.record(kind, output.hash, caller):
                        logger.info("output 0x%s was already consumed by %s; not re-cached",
                                    output.hash.hex(), caller)
            logger.info("validated proof %d from %s (%d outputs)", kind, caller, len(outputs))
            return outputs

    def validate_proof_by_hash(self, kind, proof_hash, submitter):
        """submitter가 검증한 출력이 아직 소비되지 않았는지 확인한다.

        알 수 없거나 무효화된 종류는 False를 반환한다.
        """
        with self._lock:
            try:
                self.state.proofs.unpack(kind)
            except MalformedInput:
                return False
            if not self.state.proofs.is_active(kind):
                return False
            return self.state.validated_proofs.is_validated(kind, proof_hash, submitter)

    def clear_proof_by_hashes(self, caller, kind, proof_hashes):
        """caller가 검증한 출력 해시들을 한꺼번에 폐기한다 (전부 아니면 전무)."""
        with self._transaction():
            caller = normalize_address(caller)
            cache = self.state.validated_proofs
            for proof_hash in proof_hashes:
                if bytes(proof_hash) == EMPTY_HASH:
                    raise MalformedInput("expected no empty proof hash")
                if not cache.is_validated(kind, proof_hash, caller):
                    raise ReplayRejected("can only clear previously validated proofs")
                cache.clear(kind, proof_hash, caller)
            self._emit("ClearProofs", kind=kind, submitter=caller,
                       hashes=[bytes_to_hex(h) for h in proof_hashes])

    # ─────────────────────────────────────────────────────────────
    # 노트 레지스트리
    # ─────────────────────────────────────────────────────────────

    def set_factory(self, caller, factory_id, factory):
        with self._transaction():
            self._require_owner(caller, "only the owner can set a factory")
            epoch, _, factory_asset_type = self.layout.unpack(factory_id)
            if epoch > self.latest_epoch:
                raise EpochViolation("the factory epoch cannot be bigger than the latest epoch")
            if factory_id in self.state.factories:
                raise ImmutabilityViolation("existing factories cannot be modified")
            if factory.asset_type != factory_asset_type:
                raise RegistryError("factory asset type does not match its id")
            self.state.factories[factory_id] = factory
            logger.info("set factory %d", factory_id)
            self._emit("SetFactory", factory_id=factory_id, asset_type=factory.asset_type)

    def create_note_registry(self, caller, linked_token, scaling_factor,
                             can_adjust_supply, can_convert):
        """caller 소유의 노트 레지스트리를 만든다 (주소당 하나)."""
        with self._transaction():
            caller = normalize_address(caller)
            if caller in self.state.registries:
                raise RegistryError("address already has a linked note registry")
            if scaling_factor <= 0:
                raise MalformedInput("scaling factor must be positive")
            kind = asset_type(can_adjust_supply, can_convert)
            if kind == 0:
                raise RegistryError("can not create asset with convert and adjust flags set to false")
            self._ledger(linked_token)
            factory_id = self.layout.pack(
                self.config.default_registry_epoch,
                self.config.default_crypto_system,
                kind,
            )
            factory = self.state.factories.get(factory_id)
            if factory is None:
                raise RegistryError("expected the factory to exist")
            registry = factory.create(caller, linked_token, scaling_factor,
                                      can_adjust_supply, can_convert, factory_id)
            self.state.registries[caller] = registry
            self._emit("CreateNoteRegistry", **registry.to_dict())
            return registry

    def get_registry(self, owner):
        with self._lock:
            return self._registry(owner)

    def note_status(self, owner, note_hash):
        with self._lock:
            return self._registry(owner).note_status(note_hash)

    def public_approve(self, caller, registry_owner, proof_hash, value):
        """caller(공개 소유자)가 proof_hash에 대해 value만큼의 인출을 허락한다."""
        with self._transaction():
            caller = normalize_address(caller)
            if value < 0:
                raise MalformedInput("approved value cannot be negative")
            registry = self._registry(registry_owner)
            registry.approve(caller, proof_hash, value)
            self._emit("PublicApprove", registry=registry.owner, public_owner=caller,
                       proof_hash=bytes_to_hex(proof_hash), value=value)

    def update_note_registry(self, caller, kind, proof_output, proof_sender, permit=None):
        """검증된 증명 출력을 caller의 노트 레지스트리에 반영한다.

        Args:
            caller: 레지스트리 소유자
            kind: 증명 종류 ID
            proof_output: ProofOutput 또는 그 인코딩
            proof_sender: 증명을 검증받은 주소
            permit: 입금 시 사용할 Permit (없으면 public_approve 기록을 사용)

        Raises:
            UtilityProofMisuse, ReplayRejected, DoubleSpend, UnknownNote,
            DuplicateNote, PermissionDenied, InsufficientFunds, PermitInvalid
        """
        with self._transaction():
            if not isinstance(proof_output, ProofOutput):
                proof_output = ProofOutput.decode(proof_output)
            registry = self._registry(caller)
            if self.state.proofs.unpack(kind).is_utility:
                raise UtilityProofMisuse("utility proofs cannot update a note registry")

            proof_sender = normalize_address(proof_sender)
            proof_hash = proof_output.hash
            if not self.validate_proof_by_hash(kind, proof_hash, proof_sender):
                raise ReplayRejected("ACE has not validated a matching proof")
            self.state.validated_proofs.clear(kind, proof_hash, proof_sender)

            spent, created = registry.update_notes(proof_output)
            for note_hash in spent:
                self._emit("DestroyNote", registry=registry.owner, note_hash=bytes_to_hex(note_hash))
            for note_hash in created:
                self._emit("CreateNote", registry=registry.owner, note_hash=bytes_to_hex(note_hash))

            if proof_output.public_value != 0:
                self._transfer_public_value(registry, proof_output, proof_hash, permit)

            self._emit("UpdateNoteRegistry", registry=registry.owner,
                       proof_hash=bytes_to_hex(proof_hash),
                       public_value=proof_output.public_value)
            logger.info("registry %s consumed proof 0x%s", registry.owner, proof_hash.hex())
            return proof_output

    def _transfer_public_value(self, registry, output, proof_hash, permit):
        if not registry.can_convert:
            raise PermissionDenied("this asset is not convertible")
        public_owner = output.public_owner
        if public_owner == ZERO_ADDRESS:
            raise MalformedInput("public owner cannot be the zero address")
        ledger = self._ledger(registry.linked_token)
        units = abs(output.public_value)
        amount = units * registry.scaling_factor

        if output.public_value < 0:
            if permit is not None:
                # 퍼밋은 이번 입금에만 쓰인다. 이전 허용량은 이체 뒤에 되돌린다.
                previous = ledger.allowance(public_owner, self.address)
                ledger.permit(public_owner, self.address, permit.nonce, permit.expiry,
                              permit.allowed, permit.signature)
            else:
                registry.consume_approval(public_owner, proof_hash, amount)
            registry.record_deposit(units, amount)
            ledger.transfer_from(self.address, public_owner, self.address, amount)
            if permit is not None:
                ledger.approve(public_owner, self.address, previous)
            self._emit("Deposit", registry=registry.owner, public_owner=public_owner, amount=amount)
        else:
            registry.record_withdrawal(units, amount)
            ledger.transfer(self.address, public_owner, amount)
            self._emit("Withdrawal", registry=registry.owner, public_owner=public_owner,
                       amount=amount)

    # ─────────────────────────────────────────────────────────────
    # 조회
    # ─────────────────────────────────────────────────────────────

    def note_status_name(self, owner, note_hash):
        return NoteStatus.NAMES[self.note_status(owner, note_hash)]
