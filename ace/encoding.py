"""
32바이트 워드 코덱
===================

증명과 증명 출력은 모두 32바이트 빅엔디안 워드의 나열이다.
이 모듈은 정수, 부호 있는 정수(int256, 2의 보수), 주소를 워드로
변환하고 다시 읽어 들이는 헬퍼를 모아 둔다.

주소는 eth_utils의 체크섬 문자열("0x" + 40 hex)로 다룬다.
"""

from eth_utils import is_address, to_canonical_address, to_checksum_address

from ace.errors import MalformedInput

WORD = 32

UINT256_MAX = (1 << 256) - 1
INT256_MIN = -(1 << 255)
INT256_MAX = (1 << 255) - 1

ZERO_ADDRESS = to_checksum_address(b"\x00" * 20)


def normalize_address(address):
    """주소를 체크섬 문자열로 정규화한다.

    Raises:
        MalformedInput: 주소 형식이 아닌 경우
    """
    if isinstance(address, (bytes, bytearray)) and len(address) == 20:
        return to_checksum_address(bytes(address))
    if not isinstance(address, str) or not is_address(address):
        raise MalformedInput(f"not an address: {address!r}")
    return to_checksum_address(address)


def is_zero_address(address):
    return normalize_address(address) == ZERO_ADDRESS


def uint_to_word(value):
    if not 0 <= value <= UINT256_MAX:
        raise MalformedInput(f"value does not fit in uint256: {value}")
    return int(value).to_bytes(WORD, "big")


def int256_to_word(value):
    """부호 있는 정수를 2의 보수 32바이트로 인코딩한다."""
    if not INT256_MIN <= value <= INT256_MAX:
        raise MalformedInput(f"value does not fit in int256: {value}")
    return (int(value) & UINT256_MAX).to_bytes(WORD, "big")


def address_to_word(address):
    return to_canonical_address(normalize_address(address)).rjust(WORD, b"\x00")


def word_to_uint(word):
    return int.from_bytes(word, "big")


def word_to_int256(word):
    value = int.from_bytes(word, "big")
    if value > INT256_MAX:
        value -= 1 << 256
    return value


def word_to_address(word):
    """워드의 하위 20바이트를 주소로 읽는다. 상위 12바이트는 0이어야 한다."""
    if any(word[:12]):
        raise MalformedInput("address word has non-zero padding")
    return to_checksum_address(bytes(word[12:]))


def split_words(data):
    """바이트열을 32바이트 워드 리스트로 나눈다.

    Raises:
        MalformedInput: 길이가 32의 배수가 아닌 경우
    """
    data = bytes(data)
    if len(data) % WORD != 0:
        raise MalformedInput(f"length {len(data)} is not a multiple of {WORD}")
    return [data[i:i + WORD] for i in range(0, len(data), WORD)]


def hex_to_bytes(value):
    """'0x' 접두사가 있거나 없는 16진 문자열을 바이트열로 변환한다."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if value.startswith(("0x", "0X")):
        value = value[2:]
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise MalformedInput("invalid hex string") from None


def bytes_to_hex(value):
    return "0x" + bytes(value).hex()


def encode_padded(value):
    """[byteLength] + 워드 경계까지 0으로 채운 바이트열."""
    value = bytes(value)
    padding = -len(value) % WORD
    return uint_to_word(len(value)) + value + b"\x00" * padding


def decode_padded(data, offset):
    """offset 위치의 길이 접두 바이트열을 읽는다.

    Returns:
        (value, 다음 offset)

    Raises:
        MalformedInput: 잘렸거나 채움 바이트가 0이 아닌 경우
    """
    if offset + WORD > len(data):
        raise MalformedInput("truncated length word")
    length = word_to_uint(data[offset:offset + WORD])
    start = offset + WORD
    end = start + length
    padded_end = end + (-length % WORD)
    if padded_end > len(data):
        raise MalformedInput("truncated byte string")
    if any(data[end:padded_end]):
        raise MalformedInput("byte string has non-zero padding")
    return bytes(data[start:end]), padded_end
