"""
ACE Fiat-Shamir Transcript
============================

비대화식(non-interactive) 시그마 프로토콜을 위한 keccak-256 기반
Fiat-Shamir 챌린지 빌더.

**챌린지 재구성이란?**
  Prover는 공개 입력과 커밋먼트를 정해진 순서대로 해싱하여 챌린지 c를
  직접 만든다. Verifier는 증명에 담긴 값들로 같은 트랜스크립트를 다시
  쌓아 c를 재계산하고, 증명에 적힌 c와 (스칼라 필드 위수를 법으로)
  같은지 확인한다.

  트랜스크립트에 들어가는 원소를 하나라도 빠뜨리거나 순서를 바꾸면
  다른 챌린지가 나오므로 검증이 실패한다.

**인코딩 규칙**:
  - 스칼라: CURVE_ORDER로 축소한 뒤 32바이트 빅엔디안
  - 주소: 20바이트를 왼쪽 0 패딩하여 32바이트
  - G1 점: x, y 좌표 각각 32바이트 (무한원점은 64바이트의 0)

사용 예시:
    >>> t = Transcript(b"join-split")
    >>> t.append_address(sender)
    >>> t.append_scalar(public_value)
    >>> t.append_point(gamma)
    >>> c = t.challenge_scalar()
"""

from eth_utils import keccak

from ace.crypto.field import FR, CURVE_ORDER
from ace.encoding import address_to_word


class Transcript:
    """keccak-256 기반 Fiat-Shamir 트랜스크립트.

    속성:
        state: 현재까지 누적된 해시 입력 바이트열

    보안 주의:
        도메인 레이블이 다르면 같은 원소 목록이라도 다른 챌린지가 생성된다.
    """

    def __init__(self, label=b"ace"):
        self.state = bytearray()
        self.state.extend(keccak(label))

    def append_scalar(self, scalar):
        """정수 또는 FR 스칼라를 32바이트로 추가한다.

        음수는 CURVE_ORDER를 법으로 축소되므로 -1과 CURVE_ORDER - 1은
        같은 인코딩을 갖는다.
        """
        val = int(scalar) % CURVE_ORDER
        self.state.extend(val.to_bytes(32, "big"))

    def append_address(self, address):
        """20바이트 주소를 32바이트 워드로 추가한다."""
        self.state.extend(address_to_word(address))

    def append_point(self, point):
        """G1 점을 두 개의 32바이트 좌표로 추가한다."""
        if point is None:
            self.state.extend(b"\x00" * 64)
        else:
            x, y = point
            self.state.extend(int(x).to_bytes(32, "big"))
            self.state.extend(int(y).to_bytes(32, "big"))

    def digest(self):
        """현재 상태의 keccak-256 다이제스트."""
        return keccak(bytes(self.state))

    def challenge_scalar(self):
        """누적된 상태로부터 챌린지 스칼라를 도출한다.

        Returns:
            FR: keccak(state) mod CURVE_ORDER
        """
        return FR(int.from_bytes(self.digest(), "big") % CURVE_ORDER)


def build_challenge(elements, label=b"ace"):
    """원소 목록으로부터 한 번에 챌린지를 계산한다.

    Args:
        elements: (kind, value) 튜플의 리스트.
                  kind는 "scalar", "address", "point" 중 하나.
        label: 도메인 분리 레이블

    Returns:
        FR: 챌린지 스칼라

    Raises:
        ValueError: 알 수 없는 원소 종류

    예시:
        >>> build_challenge([("address", sender), ("scalar", 10)], b"join-split")
    """
    transcript = Transcript(label)
    for kind, value in elements:
        if kind == "scalar":
            transcript.append_scalar(value)
        elif kind == "address":
            transcript.append_address(value)
        elif kind == "point":
            transcript.append_point(value)
        else:
            raise ValueError(f"unknown transcript element kind: {kind}")
    return transcript.challenge_scalar()


def batching_weights(challenge, count):
    """배치 페어링 검사용 가중치 [x, x², ..., x^count]를 만든다.

    x = keccak(challenge) mod CURVE_ORDER 이므로 Prover가 미리 정할 수 없다.
    """
    x = FR(int.from_bytes(keccak(int(challenge).to_bytes(32, "big")), "big"))
    weights = []
    current = FR(1)
    for _ in range(count):
        current = current * x
        weights.append(current)
    return weights
