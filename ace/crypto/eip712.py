"""
EIP-712 타입 데이터 해싱 및 서명 복원
========================================

퍼밋(permit) 같은 오프체인 서명 메시지를 검증하기 위한 어댑터.
keccak은 eth_utils, secp256k1 서명/복원은 eth_keys를 사용한다.

  domainSeparator = keccak(typeHash(EIP712Domain) ‖ keccak(name) ‖ keccak(version)
                           ‖ chainId ‖ verifyingContract)
  structHash      = keccak(typeHash(T) ‖ encodeData(T))
  digest          = keccak(0x19 0x01 ‖ domainSeparator ‖ structHash)

서명은 65바이트 r ‖ s ‖ v (v ∈ {27, 28}) 형식이다.

사용 예시:
    >>> domain = domain_separator("Token", "1", 1, token_address)
    >>> digest = hash_message(domain, hash_struct(PERMIT_TYPE, words))
    >>> recover_signer(digest, sign_digest(digest, private_key))
"""

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak

from ace.encoding import ZERO_ADDRESS, address_to_word, uint_to_word

EIP712_DOMAIN_TYPE = (
    "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)

SIGNATURE_LENGTH = 65


def type_hash(type_string):
    return keccak(text=type_string)


def domain_separator(name, version, chain_id, verifying_contract):
    """EIP-712 도메인 구분자를 계산한다."""
    return keccak(
        type_hash(EIP712_DOMAIN_TYPE)
        + keccak(text=name)
        + keccak(text=version)
        + uint_to_word(chain_id)
        + address_to_word(verifying_contract)
    )


def hash_struct(type_string, encoded_words):
    """이미 32바이트 워드로 인코딩된 필드들로 구조체 해시를 만든다."""
    return keccak(type_hash(type_string) + b"".join(encoded_words))


def hash_message(domain, struct_hash):
    return keccak(b"\x19\x01" + domain + struct_hash)


def split_signature(signature):
    """65바이트 서명을 (v, r, s)로 나눈다. 길이가 다르면 None."""
    signature = bytes(signature)
    if len(signature) != SIGNATURE_LENGTH:
        return None
    r = int.from_bytes(signature[0:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    return signature[64], r, s


def sign_digest(digest, private_key):
    """다이제스트에 서명한다.

    Args:
        digest: 32바이트 메시지 해시
        private_key: 32바이트 비밀키 또는 eth_keys PrivateKey

    Returns:
        bytes: r ‖ s ‖ v (65바이트, v는 27 또는 28)
    """
    if not isinstance(private_key, keys.PrivateKey):
        private_key = keys.PrivateKey(bytes(private_key))
    signature = private_key.sign_msg_hash(digest)
    return (
        signature.r.to_bytes(32, "big")
        + signature.s.to_bytes(32, "big")
        + bytes([signature.v + 27])
    )


def recover_signer(digest, signature):
    """서명자 주소를 복원한다.

    길이가 틀렸거나 v가 27/28이 아니거나 r, s가 0이거나
    복원에 실패하면 0 주소를 반환한다.
    """
    parts = split_signature(signature)
    if parts is None:
        return ZERO_ADDRESS
    v, r, s = parts
    if v not in (27, 28) or r == 0 or s == 0:
        return ZERO_ADDRESS
    try:
        public_key = keys.Signature(vrs=(v - 27, r, s)).recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError):
        return ZERO_ADDRESS
    return public_key.to_checksum_address()


def address_of(private_key):
    if not isinstance(private_key, keys.PrivateKey):
        private_key = keys.PrivateKey(bytes(private_key))
    return private_key.public_key.to_checksum_address()
