"""
Tests for the bilateral Swap validator.
"""

import pytest

from ace.encoding import ZERO_ADDRESS, uint_to_word
from ace.errors import ChallengeMismatch, InvalidScalar, MalformedInput, PairingCheckFailed
from ace.validators.swap import SwapValidator

from accounts import ALICE, BOB
from proof_builder import build_swap, make_crs, make_notes


@pytest.fixture
def validator(crs):
    return SwapValidator(reference_string=crs)


def _swap(crs, maker_bid, maker_ask, taker_bid, taker_ask, seed=11):
    notes = make_notes([maker_bid, maker_ask, taker_bid, taker_ask], crs, seed=seed)
    return notes, build_swap(ALICE, *notes, crs, seed=seed)


class TestSwapSuccess:
    """정직한 교환 증명 테스트."""

    def test_two_outputs(self, validator, crs):
        notes, proof = _swap(crs, 30, 12, 12, 30)
        outputs = validator.verify(proof.encode(), ALICE, crs)
        assert len(outputs) == 2

        first, second = outputs
        assert first.input_notes == [notes[0].note]
        assert first.output_notes == [notes[3].note]
        assert second.input_notes == [notes[2].note]
        assert second.output_notes == [notes[1].note]
        for output in outputs:
            assert output.public_value == 0
            assert output.public_owner == ZERO_ADDRESS
            assert output.sender == ALICE
        assert first.hash != second.hash

    def test_equal_bid_and_ask(self, validator, crs):
        _, proof = _swap(crs, 5, 5, 5, 5)
        validator.verify(proof.encode(), ALICE, crs)


class TestSwapFailure:
    """잘못된 교환 증명 테스트."""

    def test_maker_bid_differs_from_taker_ask(self, validator, crs):
        _, proof = _swap(crs, 30, 12, 12, 29)
        with pytest.raises(ChallengeMismatch):
            validator.verify(proof.encode(), ALICE, crs)

    def test_maker_ask_differs_from_taker_bid(self, validator, crs):
        _, proof = _swap(crs, 30, 12, 13, 30)
        with pytest.raises(ChallengeMismatch):
            validator.verify(proof.encode(), ALICE, crs)

    def test_swapped_legs(self, validator, crs):
        _, proof = _swap(crs, 30, 12, 12, 30)
        rows = [proof.rows[1], proof.rows[0], proof.rows[2], proof.rows[3]]
        with pytest.raises(ChallengeMismatch):
            validator.verify(proof.copy(rows).encode(), ALICE, crs)

    def test_wrong_length(self, validator, crs):
        _, proof = _swap(crs, 30, 12, 12, 30)
        with pytest.raises(MalformedInput):
            validator.verify(proof.encode() + b"\x00" * 32, ALICE, crs)

    def test_zero_challenge(self, validator, crs):
        _, proof = _swap(crs, 30, 12, 12, 30)
        record = proof.copy()
        record.header[1] = uint_to_word(0)
        with pytest.raises(InvalidScalar):
            validator.verify(record.encode(), ALICE, crs)

    def test_sender_mismatch(self, validator, crs):
        _, proof = _swap(crs, 30, 12, 12, 30)
        with pytest.raises(MalformedInput):
            validator.verify(proof.encode(), BOB, crs)

    def test_fake_setup_fails_pairing(self, crs):
        _, proof = _swap(crs, 30, 12, 12, 30)
        with pytest.raises(PairingCheckFailed):
            SwapValidator().verify(proof.encode(), ALICE, make_crs(y=55555))
