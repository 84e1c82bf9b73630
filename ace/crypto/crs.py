"""
ACE Common Reference String (CRS)
===================================

노트 커밋먼트 검증기가 공통으로 사용하는 공개 파라미터.

  CRS = {
      g:  G1 생성자
      h:  G1 생성자 (g와 독립적인 점, 블라인딩 항 aBar·h 에 사용)
      t2: y·G2 (y는 신뢰 설정의 비밀 값)
  }

노트 (γ, σ)가 σ = y·γ 를 만족한다는 사실은 페어링
e(γ, t2) = e(σ, G2) 로 확인한다.

**신뢰 설정**:
  y를 아는 사람은 임의의 거짓 노트를 만들 수 있다.
  이 모듈은 설정 과정을 다루지 않고, 이미 만들어진 값을 받아 형식만 검사한다.

사용 예시:
    >>> crs = ReferenceString.from_ints(g_ints, h_ints, t2_ints)
    >>> crs.validate()
"""

from ace.crypto.field import (
    FIELD_MODULUS,
    is_on_g1, is_on_g2, g2_in_subgroup,
    point_from_ints, g2_from_ints, g2_to_ints,
)
from ace.encoding import uint_to_word, word_to_uint, split_words
from ace.errors import InvalidCurvePoint, MalformedInput


class ReferenceString:
    """Common Reference String: g, h (G1), t2 (G2).

    속성:
        g: G1 생성자
        h: G1 생성자
        t2: G2 점
    """

    def __init__(self, g, h, t2):
        self.g = g
        self.h = h
        self.t2 = t2

    @classmethod
    def from_ints(cls, g, h, t2):
        """정수 좌표로부터 만든다.

        Args:
            g, h: (x, y) 정수 쌍
            t2: (x_imag, x_real, y_imag, y_real) 정수 4개

        Raises:
            InvalidCurvePoint: 좌표가 기저 필드 범위를 벗어난 경우
        """
        coords = list(g) + list(h) + list(t2)
        if len(coords) != 8:
            raise MalformedInput("reference string has 8 coordinates")
        if not all(0 <= int(c) < FIELD_MODULUS for c in coords):
            raise InvalidCurvePoint("malformed reference string")
        return cls(point_from_ints(*g), point_from_ints(*h), g2_from_ints(*t2))

    def to_ints(self):
        return (
            (int(self.g[0]), int(self.g[1])),
            (int(self.h[0]), int(self.h[1])),
            g2_to_ints(self.t2),
        )

    def encode(self):
        g, h, t2 = self.to_ints()
        return b"".join(uint_to_word(v) for v in list(g) + list(h) + list(t2))

    @classmethod
    def decode(cls, data):
        words = [word_to_uint(w) for w in split_words(data)]
        if len(words) != 8:
            raise MalformedInput("reference string has 8 words")
        return cls.from_ints(words[0:2], words[2:4], words[4:8])

    def to_dict(self):
        g, h, t2 = self.to_ints()
        return {
            "g": [str(v) for v in g],
            "h": [str(v) for v in h],
            "t2": [str(v) for v in t2],
        }

    @classmethod
    def from_dict(cls, data):
        try:
            return cls.from_ints(
                [int(v) for v in data["g"]],
                [int(v) for v in data["h"]],
                [int(v) for v in data["t2"]],
            )
        except (KeyError, TypeError, ValueError):
            raise MalformedInput("reference string needs g, h and t2") from None

    def validate(self, check_subgroup=False):
        """형식을 검사한다.

        g, h는 G1 위의 서로 다른 점이어야 하고 t2는 G2 꼬인 곡선 위의 점이어야
        한다. check_subgroup이 True면 t2의 부분군 소속도 확인한다 (느리다).

        Raises:
            InvalidCurvePoint: 형식이 잘못된 경우
        """
        if not is_on_g1(self.g) or not is_on_g1(self.h):
            raise InvalidCurvePoint("malformed reference string")
        if self.g == self.h:
            raise InvalidCurvePoint("malformed reference string")
        if not is_on_g2(self.t2):
            raise InvalidCurvePoint("malformed reference string")
        if check_subgroup and not g2_in_subgroup(self.t2):
            raise InvalidCurvePoint("malformed reference string")
        return self

    def __eq__(self, other):
        return isinstance(other, ReferenceString) and self.to_ints() == other.to_ints()

    def __repr__(self):
        return f"ReferenceString(h=({int(self.h[0])}, ...))"
