"""
Tests for the Public-Range utility validator.
"""

import pytest

from ace.encoding import ZERO_ADDRESS, int256_to_word, uint_to_word
from ace.errors import ChallengeMismatch, InvalidScalar, MalformedInput, PairingCheckFailed
from ace.validators.public_range import PublicRangeValidator

from accounts import ALICE, BOB
from proof_builder import ProofRecord, build_public_range, make_crs, make_notes


@pytest.fixture
def validator(crs):
    return PublicRangeValidator(reference_string=crs)


def _range_proof(crs, original, utility, comparison, greater_or_equal, seed=7):
    orig_note, util_note = make_notes([original, utility], crs, seed=seed)
    return build_public_range(ALICE, orig_note, util_note, comparison, greater_or_equal, crs)


class TestPublicRangeSuccess:
    """정직한 범위 증명 테스트."""

    def test_greater_or_equal(self, validator, crs):
        proof = _range_proof(crs, 50, 10, 40, True)
        output = validator.verify(proof.encode(), ALICE, crs)[0]
        assert len(output.input_notes) == 1
        assert len(output.output_notes) == 1
        assert output.public_value == 0
        assert output.public_owner == ZERO_ADDRESS
        assert output.sender == ALICE

    def test_equal_value(self, validator, crs):
        proof = _range_proof(crs, 40, 0, 40, True)
        validator.verify(proof.encode(), ALICE, crs)

    def test_less_than(self, validator, crs):
        """30 < 40: utility note holds 40 - 1 - 30 = 9."""
        proof = _range_proof(crs, 30, 9, 40, False)
        validator.verify(proof.encode(), ALICE, crs)


class TestPublicRangeFailure:
    """잘못된 범위 증명 테스트."""

    def test_wrong_relation(self, validator, crs):
        proof = _range_proof(crs, 50, 11, 40, True)
        with pytest.raises(ChallengeMismatch):
            validator.verify(proof.encode(), ALICE, crs)

    def test_flipped_direction(self, validator, crs):
        proof = _range_proof(crs, 50, 10, 40, True)
        record = ProofRecord(list(proof.header), proof.rows)
        record.header[2] = uint_to_word(0)
        with pytest.raises(ChallengeMismatch):
            validator.verify(record.encode(), ALICE, crs)

    def test_comparison_changed(self, validator, crs):
        proof = _range_proof(crs, 50, 10, 40, True)
        record = ProofRecord(list(proof.header), proof.rows)
        record.header[1] = int256_to_word(41)
        with pytest.raises(ChallengeMismatch):
            validator.verify(record.encode(), ALICE, crs)

    def test_flag_must_be_boolean(self, validator, crs):
        proof = _range_proof(crs, 50, 10, 40, True)
        record = ProofRecord(list(proof.header), proof.rows)
        record.header[2] = uint_to_word(2)
        with pytest.raises(MalformedInput):
            validator.verify(record.encode(), ALICE, crs)

    def test_wrong_length(self, validator, crs):
        proof = _range_proof(crs, 50, 10, 40, True)
        with pytest.raises(MalformedInput):
            validator.verify(proof.encode()[:-32], ALICE, crs)

    def test_zero_challenge(self, validator, crs):
        proof = _range_proof(crs, 50, 10, 40, True)
        record = ProofRecord(list(proof.header), proof.rows)
        record.header[3] = uint_to_word(0)
        with pytest.raises(InvalidScalar):
            validator.verify(record.encode(), ALICE, crs)

    def test_sender_mismatch(self, validator, crs):
        proof = _range_proof(crs, 50, 10, 40, True)
        with pytest.raises(MalformedInput):
            validator.verify(proof.encode(), BOB, crs)

    def test_fake_setup_fails_pairing(self, crs):
        proof = _range_proof(crs, 50, 10, 40, True)
        with pytest.raises(PairingCheckFailed):
            PublicRangeValidator().verify(proof.encode(), ALICE, make_crs(y=55555))
