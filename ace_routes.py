"""
ACE Flask Blueprint — 엔진 JSON 엔드포인트
============================================

모든 요청 본문은 JSON이며, 작업을 요청하는 주소는 "caller" 필드로 전달한다.
ACEError는 {"error": reason, "message": ...} 형태로 변환된다.

  GET  /ace/epoch                       최신 epoch
  POST /ace/epoch/increment             epoch 증가 (소유자)
  GET  /ace/crs                         현재 참조 문자열
  POST /ace/crs                         참조 문자열 설정 (소유자)
  GET  /ace/proofs/<kind>               검증기 조회
  POST /ace/proofs                      검증기 등록 (소유자)
  POST /ace/proofs/<kind>/invalidate    증명 종류 무효화 (소유자)
  POST /ace/validate                    증명 검증
  GET  /ace/validated                   출력 해시 검증 여부
  POST /ace/validated/clear             검증 기록 폐기
  POST /ace/registries                  노트 레지스트리 생성
  GET  /ace/registries/<owner>          노트 레지스트리 조회
  GET  /ace/registries/<owner>/notes/<hash>  노트 상태
  POST /ace/registries/<owner>/approve  공개 승인
  POST /ace/registries/<owner>/update   노트 레지스트리 갱신
  GET  /ace/events                      이벤트 저널
"""

import logging

from flask import Blueprint, jsonify, request

from ace.encoding import bytes_to_hex, hex_to_bytes
from ace.errors import ACEError, MalformedInput, PermissionDenied, RegistryError
from ace.validators.dividend import DividendValidator
from ace.validators.join_split import JoinSplitValidator
from ace.validators.public_range import PublicRangeValidator
from ace.validators.swap import SwapValidator

from ace_serializers import (
    serialize_crs, deserialize_crs,
    serialize_outputs, deserialize_output,
    deserialize_permit, deserialize_hash, deserialize_kind,
    deserialize_int, deserialize_address,
)

logger = logging.getLogger(__name__)

ace_bp = Blueprint('ace', __name__, url_prefix='/ace')

# 이름으로 등록할 수 있는 검증기
VALIDATORS = {
    "join-split": JoinSplitValidator,
    "public-range": PublicRangeValidator,
    "swap": SwapValidator,
    "dividend": DividendValidator,
}

# 엔진은 app.py에서 주입
ENGINE = None


def init_ace_bp(engine):
    """app.py에서 엔진을 주입받는다."""
    global ENGINE
    ENGINE = engine


# ─── 요청 헬퍼 ───

def body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise MalformedInput("request body must be a JSON object")
    return data


def field(data, name):
    if name not in data:
        raise MalformedInput(f"missing field: {name}")
    return data[name]


@ace_bp.errorhandler(ACEError)
def handle_ace_error(err):
    if isinstance(err, PermissionDenied):
        status = 403
    elif isinstance(err, RegistryError) and request.method == "GET":
        status = 404
    else:
        status = 400
    logger.info("%s %s rejected: %s", request.method, request.path, err.reason)
    return jsonify(err.to_dict()), status


# ──────────────────────────────────────────────────────────────
# Epoch / CRS
# ──────────────────────────────────────────────────────────────

@ace_bp.route("/epoch")
def get_epoch():
    return jsonify({"latest_epoch": ENGINE.latest_epoch})


@ace_bp.route("/epoch/increment", methods=["POST"])
def increment_epoch():
    data = body()
    epoch = ENGINE.increment_latest_epoch(field(data, "caller"))
    return jsonify({"latest_epoch": epoch})


@ace_bp.route("/crs")
def get_crs():
    return jsonify({"crs": serialize_crs(ENGINE.common_reference_string)})


@ace_bp.route("/crs", methods=["POST"])
def set_crs():
    data = body()
    crs = deserialize_crs(field(data, "crs"))
    ENGINE.set_common_reference_string(field(data, "caller"), crs)
    return jsonify({"crs": serialize_crs(crs)})


# ──────────────────────────────────────────────────────────────
# 증명 레지스트리
# ──────────────────────────────────────────────────────────────

@ace_bp.route("/proofs/<int:kind>")
def get_proof(kind):
    validator = ENGINE.get_validator(kind)
    return jsonify({"kind": kind, "validator": type(validator).__name__})


@ace_bp.route("/proofs", methods=["POST"])
def set_proof():
    """이름으로 검증기를 만들어 등록한다. 현재 CRS를 신뢰 문자열로 고정한다."""
    data = body()
    kind = deserialize_kind(field(data, "kind"))
    name = field(data, "validator")
    validator_class = VALIDATORS.get(name)
    if validator_class is None:
        raise MalformedInput(f"unknown validator: {name}")
    validator = validator_class(reference_string=ENGINE.common_reference_string)
    ENGINE.set_proof(field(data, "caller"), kind, validator)
    return jsonify({"kind": kind, "validator": type(validator).__name__}), 201


@ace_bp.route("/proofs/<int:kind>/invalidate", methods=["POST"])
def invalidate_proof(kind):
    data = body()
    ENGINE.invalidate_proof(field(data, "caller"), kind)
    return jsonify({"kind": kind, "invalidated": True})


# ──────────────────────────────────────────────────────────────
# 검증 / 캐시
# ──────────────────────────────────────────────────────────────

@ace_bp.route("/validate", methods=["POST"])
def validate_proof():
    data = body()
    caller = field(data, "caller")
    outputs = ENGINE.validate_proof(
        caller,
        deserialize_kind(field(data, "kind")),
        data.get("sender", caller),
        hex_to_bytes(field(data, "proof")),
    )
    return jsonify(serialize_outputs(outputs))


@ace_bp.route("/validated")
def get_validated():
    kind = deserialize_kind(request.args.get("kind"))
    proof_hash = deserialize_hash(request.args.get("hash", ""))
    submitter = request.args.get("submitter", "")
    return jsonify({"validated": ENGINE.validate_proof_by_hash(kind, proof_hash, submitter)})


@ace_bp.route("/validated/clear", methods=["POST"])
def clear_validated():
    data = body()
    hashes = [deserialize_hash(h) for h in field(data, "hashes")]
    ENGINE.clear_proof_by_hashes(field(data, "caller"), deserialize_kind(field(data, "kind")), hashes)
    return jsonify({"cleared": [bytes_to_hex(h) for h in hashes]})


# ──────────────────────────────────────────────────────────────
# 노트 레지스트리
# ──────────────────────────────────────────────────────────────

@ace_bp.route("/registries", methods=["POST"])
def create_registry():
    data = body()
    registry = ENGINE.create_note_registry(
        field(data, "caller"),
        field(data, "linked_token"),
        deserialize_int(data.get("scaling_factor", 1), "scaling_factor"),
        bool(data.get("can_adjust_supply", False)),
        bool(data.get("can_convert", True)),
    )
    return jsonify(registry.to_dict()), 201


@ace_bp.route("/registries/<owner>")
def get_registry(owner):
    return jsonify(ENGINE.get_registry(owner).to_dict())


@ace_bp.route("/registries/<owner>/notes/<note_hash>")
def get_note(owner, note_hash):
    status = ENGINE.note_status_name(owner, deserialize_hash(note_hash))
    return jsonify({"hash": note_hash, "status": status})


@ace_bp.route("/registries/<owner>/approve", methods=["POST"])
def public_approve(owner):
    data = body()
    proof_hash = deserialize_hash(field(data, "proof_hash"))
    value = deserialize_int(field(data, "value"), "value")
    ENGINE.public_approve(field(data, "caller"), owner, proof_hash, value)
    return jsonify({"approved": True})


@ace_bp.route("/registries/<owner>/update", methods=["POST"])
def update_registry(owner):
    """caller는 레지스트리 소유자여야 한다."""
    data = body()
    caller = deserialize_address(field(data, "caller"))
    if caller != deserialize_address(owner):
        raise PermissionDenied("only the registry owner can update it")
    output = ENGINE.update_note_registry(
        caller,
        deserialize_kind(field(data, "kind")),
        deserialize_output(field(data, "output")),
        field(data, "sender"),
        permit=deserialize_permit(data.get("permit")),
    )
    return jsonify({"hash": bytes_to_hex(output.hash), "registry": ENGINE.get_registry(owner).to_dict()})


# ──────────────────────────────────────────────────────────────
# 이벤트
# ──────────────────────────────────────────────────────────────

@ace_bp.route("/events")
def get_events():
    return jsonify({"events": ENGINE.journal.events(request.args.get("name"))})
