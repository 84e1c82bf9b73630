import sys
import os
import pytest

# 프로젝트 루트와 tests 디렉터리를 sys.path에 추가
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
tests_dir = os.path.dirname(os.path.abspath(__file__))
for path in (project_root, tests_dir):
    if path not in sys.path:
        sys.path.insert(0, path)

from ace.config import EngineConfig
from ace.engine import ACE
from ace.journal import EventJournal
from ace.ledger import Token
from ace.note_registry import NoteRegistryFactory
from ace.proof_kind import JOIN_SPLIT, PUBLIC_RANGE, generate_factory_id
from ace.validators.join_split import JoinSplitValidator
from ace.validators.public_range import PublicRangeValidator

from accounts import ALICE, CHAIN_ID, OWNER, TOKEN_ADDRESS, FakeClock
from proof_builder import make_crs


@pytest.fixture(scope="session")
def crs():
    """테스트 신뢰 설정으로 만든 참조 문자열."""
    return make_crs()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config(clock):
    return EngineConfig(owner=OWNER, chain_id=CHAIN_ID, clock=clock)


@pytest.fixture
def token(clock):
    """ALICE에게 1000 토큰을 발행한 원장."""
    token = Token("Test Token", address=TOKEN_ADDRESS, chain_id=CHAIN_ID, clock=clock)
    token.mint(ALICE, 1000)
    return token


@pytest.fixture
def bare_engine(config):
    """아무것도 등록되지 않은 엔진."""
    return ACE(config, journal=EventJournal())


@pytest.fixture
def engine(bare_engine, crs, token):
    """CRS, 기본 검증기, 팩토리, 원장이 등록된 엔진."""
    engine = bare_engine
    engine.register_ledger(token)
    engine.set_common_reference_string(OWNER, crs)
    engine.set_proof(OWNER, JOIN_SPLIT, JoinSplitValidator(reference_string=crs))
    engine.set_proof(OWNER, PUBLIC_RANGE, PublicRangeValidator(reference_string=crs))
    for asset_type in (1, 2, 3):
        engine.set_factory(OWNER, generate_factory_id(1, 1, asset_type),
                           NoteRegistryFactory(asset_type))
    return engine
