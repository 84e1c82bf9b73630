"""
ACE 데이터 직렬화/역직렬화 헬퍼
=================================

HTTP JSON 본문과 엔진 객체 사이의 변환.
큰 정수는 문자열, 바이트열은 "0x" 16진 문자열로 주고받는다.
"""

from ace.crypto.crs import ReferenceString
from ace.encoding import bytes_to_hex, hex_to_bytes, normalize_address
from ace.errors import MalformedInput
from ace.ledger import Permit
from ace.outputs import ProofOutput


# ─── G1 point ───

def serialize_g1(point):
    """G1 point → [str, str] or None"""
    if point is None:
        return None
    return [str(int(point[0])), str(int(point[1]))]


# ─── Note / ProofOutput ───

def serialize_note(note):
    return {
        "hash": bytes_to_hex(note.note_hash),
        "gamma": serialize_g1(note.gamma),
        "sigma": serialize_g1(note.sigma),
        "metadata": bytes_to_hex(note.metadata),
    }


def serialize_output(output):
    """ProofOutput → dict (인코딩과 해시 포함)"""
    return {
        "hash": bytes_to_hex(output.hash),
        "encoded": bytes_to_hex(output.encode()),
        "sender": output.sender,
        "public_owner": output.public_owner,
        "public_value": output.public_value,
        "challenge": str(output.challenge),
        "input_notes": [serialize_note(n) for n in output.input_notes],
        "output_notes": [serialize_note(n) for n in output.output_notes],
    }


def serialize_outputs(outputs):
    return {
        "encoded": bytes_to_hex(outputs.encode()),
        "outputs": [serialize_output(o) for o in outputs],
    }


def deserialize_output(data):
    """"0x..." 인코딩 → ProofOutput"""
    if not isinstance(data, str):
        raise MalformedInput("proof output must be a hex string")
    return ProofOutput.decode(hex_to_bytes(data))


# ─── CRS ───

def serialize_crs(crs):
    if crs is None:
        return None
    return crs.to_dict()


def deserialize_crs(data):
    if not isinstance(data, dict):
        raise MalformedInput("reference string must be an object")
    return ReferenceString.from_dict(data)


# ─── Permit ───

def deserialize_permit(data):
    """{nonce, expiry, allowed, signature} or None → Permit"""
    if data is None:
        return None
    try:
        return Permit(
            nonce=int(data["nonce"]),
            expiry=int(data["expiry"]),
            allowed=bool(data["allowed"]),
            signature=hex_to_bytes(data["signature"]),
        )
    except (KeyError, TypeError, ValueError):
        raise MalformedInput("permit needs nonce, expiry, allowed and signature") from None


# ─── 기타 ───

def deserialize_hash(value):
    raw = hex_to_bytes(value)
    if len(raw) != 32:
        raise MalformedInput("hash must be 32 bytes")
    return raw


def deserialize_kind(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MalformedInput(f"proof kind must be an integer: {value!r}") from None


def deserialize_int(value, name):
    """JSON 정수 또는 10진 문자열 → int. bool과 실수는 받지 않는다."""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise MalformedInput(f"{name} must be an integer: {value!r}")
    try:
        return int(value)
    except ValueError:
        raise MalformedInput(f"{name} must be an integer: {value!r}") from None


def deserialize_address(value):
    return normalize_address(value)
