"""
증명 레지스트리
=================

증명 종류 ID → 검증기 매핑을 소유한다.

**상태 전이** (종류마다):
  Unset ──set_proof──> Registered ──invalidate──> Invalidated (종료)

  한 번 등록된 종류는 바꿀 수 없고, 무효화된 종류는 다시 등록할 수 없다.
  종류의 epoch는 현재 최신 epoch보다 클 수 없다.

권한 검사는 엔진이 담당한다. 이 모듈은 상태 규칙만 다룬다.
"""

import logging

from ace.errors import (
    EpochViolation, ImmutabilityViolation, MalformedInput,
    UnknownOrDisabledProofKind,
)
from ace.proof_kind import DEFAULT_LAYOUT

logger = logging.getLogger(__name__)


class ProofRegistry:
    """증명 종류 → 검증기 테이블과 epoch 카운터.

    속성:
        validators: {kind_id: validator}
        disabled: 무효화된 kind_id 집합
        latest_epoch: 현재 최신 epoch (1부터 시작, 단조 증가)
    """

    def __init__(self, layout=DEFAULT_LAYOUT):
        self.layout = layout
        self.validators = {}
        self.disabled = set()
        self.latest_epoch = 1

    def unpack(self, kind):
        if not kind:
            raise MalformedInput("expected the proof to be valid")
        return self.layout.unpack(kind)

    def set_proof(self, kind, validator):
        """검증기를 등록한다.

        Raises:
            MalformedInput: ID가 0이거나 배치에 맞지 않는 경우
            EpochViolation: 종류의 epoch가 최신 epoch보다 큰 경우
            UnknownOrDisabledProofKind: 검증기가 없거나 verify를 구현하지 않은 경우
            ImmutabilityViolation: 이미 등록(또는 무효화)된 종류
        """
        proof = self.unpack(kind)
        if proof.epoch > self.latest_epoch:
            raise EpochViolation("the proof epoch cannot be bigger than the latest epoch")
        if validator is None or not callable(getattr(validator, "verify", None)):
            raise UnknownOrDisabledProofKind("expected the validator address to exist")
        if kind in self.validators:
            raise ImmutabilityViolation("existing proofs cannot be modified")
        self.validators[kind] = validator
        logger.info("registered %s for proof %d %s", type(validator).__name__, kind, tuple(proof))

    def get_validator(self, kind):
        self.unpack(kind)
        validator = self.validators.get(kind)
        if validator is None:
            raise UnknownOrDisabledProofKind("expected the validator address to exist")
        if kind in self.disabled:
            raise UnknownOrDisabledProofKind("expected the validator address to not be disabled")
        return validator

    def is_active(self, kind):
        return kind in self.validators and kind not in self.disabled

    def invalidate_proof(self, kind):
        """등록된 종류를 영구히 무효화한다."""
        self.get_validator(kind)
        self.disabled.add(kind)
        logger.info("invalidated proof %d", kind)

    def increment_latest_epoch(self):
        self.latest_epoch += 1
        logger.info("latest epoch is now %d", self.latest_epoch)
        return self.latest_epoch

    # ── 트랜잭션 지원 ──

    def snapshot(self):
        return (dict(self.validators), set(self.disabled), self.latest_epoch)

    def restore(self, snapshot):
        validators, disabled, latest_epoch = snapshot
        self.validators = validators
        self.disabled = disabled
        self.latest_epoch = latest_epoch
