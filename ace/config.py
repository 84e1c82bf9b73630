"""
엔진 설정
==========

환경 변수 또는 생성자 인자로 엔진을 구성한다.

  ACE_OWNER          엔진 소유자 주소 (특권 작업 권한)
  ACE_ADDRESS        엔진 자신의 주소 (공개 토큰 보관 주소)
  ACE_CHAIN_ID       EIP-712 도메인의 체인 ID
  ACE_JOURNAL_PATH   이벤트 저널 TinyDB JSON 파일 (기본값: 메모리)
  ACE_CRS_PATH       시작 시 불러올 참조 문자열 JSON 파일
  ACE_LOG_LEVEL      로깅 레벨
"""

import os
import time

from eth_utils import keccak, to_checksum_address

from ace.encoding import normalize_address

DEFAULT_CHAIN_ID = 1
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_JOURNAL_PATH = ":memory:"

# 새 노트 레지스트리를 만들 때 조회하는 팩토리 좌표 (epoch, crypto system)
DEFAULT_REGISTRY_EPOCH = 1
DEFAULT_CRYPTO_SYSTEM = 1

DEFAULT_ENGINE_ADDRESS = to_checksum_address(keccak(b"ace.engine")[-20:])


class EngineConfig:
    """엔진 설정 값 묶음.

    Args:
        owner: 엔진 소유자 주소
        address: 엔진 자신의 주소
        chain_id: EIP-712 도메인 체인 ID
        journal_path: TinyDB 저널 경로 (":memory:"면 메모리)
        crs_path: 시작 시 불러올 참조 문자열 파일 (선택)
        log_level: 로깅 레벨 이름
        clock: 현재 시각(초)을 반환하는 함수. 퍼밋 만료 판정에 쓰인다.
    """

    def __init__(self, owner, address=DEFAULT_ENGINE_ADDRESS,
                 chain_id=DEFAULT_CHAIN_ID, journal_path=DEFAULT_JOURNAL_PATH,
                 crs_path=None, log_level=DEFAULT_LOG_LEVEL,
                 default_registry_epoch=DEFAULT_REGISTRY_EPOCH,
                 default_crypto_system=DEFAULT_CRYPTO_SYSTEM,
                 clock=None):
        self.owner = normalize_address(owner)
        self.address = normalize_address(address)
        self.chain_id = int(chain_id)
        self.journal_path = journal_path
        self.crs_path = crs_path
        self.log_level = log_level
        self.default_registry_epoch = default_registry_epoch
        self.default_crypto_system = default_crypto_system
        self.clock = clock or time.time
        self.validate()

    def validate(self):
        if self.chain_id <= 0:
            raise ValueError(f"chain id must be positive: {self.chain_id}")
        if self.owner == self.address:
            raise ValueError("engine owner and engine address must differ")
        if self.default_registry_epoch < 1:
            raise ValueError("default registry epoch must be at least 1")

    @classmethod
    def from_env(cls, environ=None):
        """환경 변수에서 설정을 읽는다. ACE_OWNER는 필수다."""
        env = os.environ if environ is None else environ
        owner = env.get("ACE_OWNER")
        if not owner:
            raise ValueError("ACE_OWNER is not set")
        return cls(
            owner=owner,
            address=env.get("ACE_ADDRESS", DEFAULT_ENGINE_ADDRESS),
            chain_id=int(env.get("ACE_CHAIN_ID", DEFAULT_CHAIN_ID)),
            journal_path=env.get("ACE_JOURNAL_PATH", DEFAULT_JOURNAL_PATH),
            crs_path=env.get("ACE_CRS_PATH") or None,
            log_level=env.get("ACE_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )
