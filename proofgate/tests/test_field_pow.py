from __future__ import annotations

import pytest

from proofgate.config import M31
from proofgate.verify import field as vfield
from proofgate.verify import hashing
from proofgate.verify import pow as vpow


@pytest.mark.parametrize(
    "value,ok",
    [(0, True), (1, True), (M31 - 1, True), (M31, False), (M31 + 5, False), (-1, False), (2**252, False)],
)
def test_in_field_bounds(value, ok):
    assert vfield.in_field(value) is ok


def test_in_field_rejects_non_integers():
    assert not vfield.in_field(True)
    assert not vfield.in_field(1.0)  # type: ignore[arg-type]
    assert not vfield.in_field("5")  # type: ignore[arg-type]


def test_first_out_of_range_reports_index():
    assert vfield.first_out_of_range([1, 2, 3]) is None
    assert vfield.first_out_of_range([1, M31, 3, -1]) == 1
    assert vfield.all_in_field([0, M31 - 1])
    assert not vfield.all_in_field([0, M31 - 1], modulus=7)


def test_difficulty_target():
    assert vpow.difficulty_target(0) == 1 << 256
    assert vpow.difficulty_target(16) == 1 << 240
    with pytest.raises(ValueError):
        vpow.difficulty_target(257)


def test_grind_finds_nonce_that_verifies():
    seed = hashing.pow_seed([11, 22, 33, 0])
    nonce = vpow.grind(seed, 8)
    assert nonce >= 1
    assert vpow.verify_pow(seed, nonce, 8)
    assert vpow.leading_zero_bits(vpow.pow_digest(seed, nonce)) >= 8
    # every smaller nonce failed, or grind would have returned it
    for n in range(1, nonce):
        assert not vpow.verify_pow(seed, n, 8)


def test_nonce_zero_is_always_rejected():
    seed = hashing.pow_seed([1, 2, 0])
    # at zero difficulty every digest passes, so only the nonce rule can reject
    assert vpow.verify_pow(seed, 1, 0)
    assert not vpow.verify_pow(seed, 0, 0)


def test_insufficient_work_is_rejected():
    seed = hashing.pow_seed([4, 5, 6, 0])
    nonce = vpow.grind(seed, 8)
    bad = next(n for n in range(1, 10_000) if vpow.leading_zero_bits(vpow.pow_digest(seed, n)) < 8)
    assert not vpow.verify_pow(seed, bad, 8)
    assert vpow.verify_pow(seed, nonce, 8)


def test_verify_pow_rejects_bad_nonce_types_and_ranges():
    seed = hashing.pow_seed([1, 0])
    assert not vpow.verify_pow(seed, -3, 0)
    assert not vpow.verify_pow(seed, 1 << 64, 0)
    assert not vpow.verify_pow(seed, True, 0)  # type: ignore[arg-type]


def test_grind_raises_when_range_exhausted():
    seed = hashing.pow_seed([7, 7, 0])
    with pytest.raises(ValueError):
        vpow.grind(seed, 256, max_nonce=5)
