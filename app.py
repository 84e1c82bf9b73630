import logging
import os

from eth_utils import keccak, to_checksum_address
from flask import Flask, jsonify

from ace.config import EngineConfig
from ace.engine import ACE
from ace.ledger import Token
from ace.note_registry import NoteRegistryFactory
from ace.proof_kind import DIVIDEND, JOIN_SPLIT, PUBLIC_RANGE, SWAP, generate_factory_id
from ace.validators.dividend import DividendValidator
from ace.validators.join_split import JoinSplitValidator
from ace.validators.public_range import PublicRangeValidator
from ace.validators.swap import SwapValidator

from ace_routes import ace_bp, init_ace_bp

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_ADDRESS = to_checksum_address(keccak(b"ace.token")[-20:])


def bootstrap(engine, ledgers=()):
    """기본 팩토리, 공개 원장, (CRS가 있으면) 기본 검증기를 등록한다."""
    owner = engine.owner
    for ledger in ledgers:
        engine.register_ledger(ledger)
    for asset_type in (1, 2, 3):
        factory_id = generate_factory_id(
            engine.config.default_registry_epoch,
            engine.config.default_crypto_system,
            asset_type,
            engine.layout,
        )
        engine.set_factory(owner, factory_id, NoteRegistryFactory(asset_type))

    crs = engine.common_reference_string
    if crs is not None:
        engine.set_proof(owner, JOIN_SPLIT, JoinSplitValidator(reference_string=crs))
        engine.set_proof(owner, PUBLIC_RANGE, PublicRangeValidator(reference_string=crs))
        engine.set_proof(owner, SWAP, SwapValidator(reference_string=crs))
        engine.set_proof(owner, DIVIDEND, DividendValidator(reference_string=crs))
    return engine


def create_app(engine=None):
    """Flask 앱을 만든다. 엔진이 없으면 환경 변수 설정으로 만든다."""
    if engine is None:
        config = EngineConfig.from_env()
        logging.basicConfig(level=config.log_level)
        token = Token("Public Token", address=DEFAULT_TOKEN_ADDRESS,
                      chain_id=config.chain_id, clock=config.clock)
        engine = bootstrap(ACE.from_config(config), ledgers=[token])

    app = Flask(__name__)
    app.secret_key = os.environ.get("ACE_SECRET_KEY", "key")

    init_ace_bp(engine)
    app.register_blueprint(ace_bp)
    app.config["ACE_ENGINE"] = engine

    @app.route("/")
    def main():
        return jsonify({
            "engine": engine.address,
            "owner": engine.owner,
            "latest_epoch": engine.latest_epoch,
        })

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=os.environ.get("FLASK_DEBUG") == "1")
