"""
증명 종류 식별자
==================

증명 종류 ID는 (epoch, category, group) 세 값을 하나의 정수로 묶는다.

  기본 배치: epoch 16비트 | category 8비트 | group 8비트
  id = epoch·65536 + category·256 + group

**category**:
  BALANCED(1) - 입력과 출력이 공개값과 함께 균형을 이루는 증명 (Join-Split, Swap)
  MINT(2), BURN(3) - 공급량 조정 증명
  UTILITY(4) - 상태를 바꾸지 않는 보조 증명 (Dividend, Public-Range). 캐시되지 않는다.

팩토리 ID도 같은 배치를 사용한다: (epoch, crypto system, asset type).

사용 예시:
    >>> ProofKind.unpack(65793)
    ProofKind(epoch=1, category=1, group=1)
    >>> generate_factory_id(1, 1, 3)
    65795
"""

from collections import namedtuple

from ace.errors import MalformedInput

BALANCED = 1
MINT = 2
BURN = 3
UTILITY = 4

CATEGORIES = (BALANCED, MINT, BURN, UTILITY)


class ProofKindLayout:
    """증명 종류 ID의 비트 배치.

    Args:
        epoch_bits, category_bits, group_bits: 각 필드의 비트 수
    """

    def __init__(self, epoch_bits=16, category_bits=8, group_bits=8):
        self.epoch_bits = epoch_bits
        self.category_bits = category_bits
        self.group_bits = group_bits

    @property
    def total_bits(self):
        return self.epoch_bits + self.category_bits + self.group_bits

    def pack(self, epoch, category, group):
        for name, value, bits in (("epoch", epoch, self.epoch_bits),
                                  ("category", category, self.category_bits),
                                  ("group", group, self.group_bits)):
            if not 0 <= value < (1 << bits):
                raise MalformedInput(f"{name} {value} does not fit in {bits} bits")
        return ((epoch << (self.category_bits + self.group_bits))
                | (category << self.group_bits)
                | group)

    def unpack(self, kind_id):
        kind_id = int(kind_id)
        if kind_id <= 0 or kind_id >= (1 << self.total_bits):
            raise MalformedInput(f"malformed proof id: {kind_id}")
        group = kind_id & ((1 << self.group_bits) - 1)
        category = (kind_id >> self.group_bits) & ((1 << self.category_bits) - 1)
        epoch = kind_id >> (self.category_bits + self.group_bits)
        return ProofKind(epoch, category, group)


DEFAULT_LAYOUT = ProofKindLayout()


class ProofKind(namedtuple("ProofKind", ["epoch", "category", "group"])):
    """(epoch, category, group) 세 값으로 분해된 증명 종류."""

    __slots__ = ()

    @classmethod
    def unpack(cls, kind_id, layout=DEFAULT_LAYOUT):
        return layout.unpack(kind_id)

    def pack(self, layout=DEFAULT_LAYOUT):
        return layout.pack(self.epoch, self.category, self.group)

    @property
    def is_utility(self):
        return self.category == UTILITY


def generate_factory_id(epoch, crypto_system, asset_type, layout=DEFAULT_LAYOUT):
    """팩토리 ID를 만든다 (증명 종류와 같은 비트 배치)."""
    return layout.pack(epoch, crypto_system, asset_type)


JOIN_SPLIT = ProofKind(1, BALANCED, 1).pack()
PUBLIC_RANGE = ProofKind(1, UTILITY, 2).pack()
SWAP = ProofKind(1, BALANCED, 2).pack()
DIVIDEND = ProofKind(1, UTILITY, 1).pack()
