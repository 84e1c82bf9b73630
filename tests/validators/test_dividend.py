"""
Tests for the Dividend utility validator.
"""

import pytest

from ace.crypto.field import CURVE_ORDER
from ace.encoding import ZERO_ADDRESS, uint_to_word
from ace.errors import ChallengeMismatch, InvalidScalar, MalformedInput, PairingCheckFailed
from ace.validators.dividend import DividendValidator, derive_residual_k_bar

from accounts import ALICE, BOB
from proof_builder import build_dividend, make_crs, make_notes


@pytest.fixture
def validator(crs):
    return DividendValidator(reference_string=crs)


def _dividend(crs, notional, residual, target, za, zb, seed=13):
    notes = make_notes([notional, residual, target], crs, seed=seed)
    return notes, build_dividend(ALICE, *notes, za, zb, crs, seed=seed)


class TestDividendSuccess:
    """정직한 배당 증명 테스트."""

    def test_ratio(self, validator, crs):
        """5 · 100 = 100 · 4 + 100."""
        notes, proof = _dividend(crs, 100, 100, 4, 5, 100)
        output = validator.verify(proof.encode(), ALICE, crs)[0]
        assert output.input_notes == [notes[0].note]
        assert output.output_notes == [notes[1].note, notes[2].note]
        assert output.public_value == 0
        assert output.public_owner == ZERO_ADDRESS
        assert output.sender == ALICE

    def test_exact_division(self, validator, crs):
        """za·k = zb·target with no residual."""
        _, proof = _dividend(crs, 90, 0, 30, 1, 3)
        validator.verify(proof.encode(), ALICE, crs)

    def test_residual_derivation(self):
        assert derive_residual_k_bar(2, 3, 10, 4) == 8
        assert derive_residual_k_bar(1, 1, 0, 1) == CURVE_ORDER - 1


class TestDividendFailure:
    """잘못된 배당 증명 테스트."""

    def test_wrong_relation(self, validator, crs):
        _, proof = _dividend(crs, 90, 1, 30, 1, 3)
        with pytest.raises(ChallengeMismatch):
            validator.verify(proof.encode(), ALICE, crs)

    def test_ratio_changed(self, validator, crs):
        _, proof = _dividend(crs, 90, 0, 30, 1, 3)
        record = proof.copy()
        record.header[2] = uint_to_word(4)
        with pytest.raises(ChallengeMismatch):
            validator.verify(record.encode(), ALICE, crs)

    @pytest.mark.parametrize("index,value", [(1, 0), (2, 0), (1, CURVE_ORDER)])
    def test_ratio_out_of_range(self, validator, crs, index, value):
        _, proof = _dividend(crs, 90, 0, 30, 1, 3)
        record = proof.copy()
        record.header[index] = uint_to_word(value)
        with pytest.raises(InvalidScalar):
            validator.verify(record.encode(), ALICE, crs)

    def test_wrong_length(self, validator, crs):
        _, proof = _dividend(crs, 90, 0, 30, 1, 3)
        with pytest.raises(MalformedInput):
            validator.verify(proof.encode()[:-32], ALICE, crs)

    def test_sender_mismatch(self, validator, crs):
        _, proof = _dividend(crs, 90, 0, 30, 1, 3)
        with pytest.raises(MalformedInput):
            validator.verify(proof.encode(), BOB, crs)

    def test_fake_setup_fails_pairing(self, crs):
        _, proof = _dividend(crs, 90, 0, 30, 1, 3)
        with pytest.raises(PairingCheckFailed):
            DividendValidator().verify(proof.encode(), ALICE, make_crs(y=55555))
