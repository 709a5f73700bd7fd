from __future__ import annotations

import pytest

from proofgate.config import M31
from proofgate.verify import hashing


def test_proof_hash_is_deterministic_and_hex_formatted():
    seq = [5, 6, 7, 8]
    assert hashing.proof_hash(seq) == hashing.proof_hash(list(seq))
    h = hashing.proof_hash_hex(seq)
    assert h.startswith("0x") and len(h) == 66
    assert h == "0x" + hashing.proof_hash(seq).hex()


def test_proof_hash_is_order_sensitive():
    assert hashing.proof_hash([1, 2, 3]) != hashing.proof_hash([2, 1, 3])
    assert hashing.proof_hash([1, 2, 3]) != hashing.proof_hash([1, 3, 2])


def test_additive_collisions_do_not_collide():
    # a sum or xor checksum would map all of these to the same value
    variants = [[3, 0], [1, 2], [2, 1], [0, 3]]
    assert len({hashing.proof_hash(v) for v in variants}) == len(variants)


def test_length_prefix_separates_trailing_zero():
    assert hashing.proof_hash([1, 2]) != hashing.proof_hash([1, 2, 0])
    assert hashing.proof_hash([]) != hashing.proof_hash([0])


def test_element_encoding_bounds():
    assert hashing.felt_bytes(1) == b"\x00" * 31 + b"\x01"
    with pytest.raises(ValueError):
        hashing.felt_bytes(-1)
    with pytest.raises(ValueError):
        hashing.felt_bytes(1 << 256)


def test_pow_seed_ignores_only_the_trailing_nonce():
    assert hashing.pow_seed([9, 8, 7, 1]) == hashing.pow_seed([9, 8, 7, 2])
    assert hashing.pow_seed([9, 8, 7, 1]) != hashing.pow_seed([9, 8, 6, 1])
    # domain separation from the full proof hash
    assert hashing.pow_seed([9, 8, 7, 1]) != hashing.proof_hash([9, 8, 7])
    with pytest.raises(ValueError):
        hashing.pow_seed([])


def test_io_commitment_binds_list_boundaries_and_shape():
    base = hashing.io_commitment([1, 2], [3], 1024, 8)
    assert base == hashing.io_commitment((1, 2), (3,), 1024, 8)
    assert base != hashing.io_commitment([1], [2, 3], 1024, 8)
    assert base != hashing.io_commitment([2, 1], [3], 1024, 8)
    assert base != hashing.io_commitment([1, 2], [3], 2048, 8)
    assert base != hashing.io_commitment([1, 2], [3], 1024, 16)


def test_to_field_is_nonzero_and_in_range():
    digest = hashing.io_commitment([1], [2], 4, 4)
    v = hashing.to_field(digest, M31)
    assert 1 <= v < M31
    assert hashing.to_field(b"\x00" * 32, M31) == 1
    assert hashing.to_field(M31.to_bytes(32, "big"), M31) == 1
    with pytest.raises(ValueError):
        hashing.to_field(digest, 1)


def test_hex_to_digest():
    d = hashing.proof_hash([1])
    assert hashing.hex_to_digest("0x" + d.hex()) == d
    assert hashing.hex_to_digest(d.hex().upper()) == d
    with pytest.raises(ValueError):
        hashing.hex_to_digest("0x1234")
