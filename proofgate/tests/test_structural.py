from __future__ import annotations

import pytest

from proofgate.config import M31, VerifierParams
from proofgate.errors import RejectReason, ValidationError
from proofgate.types.job import IOBinding
from proofgate.verify import hashing
from proofgate.verify import pow as vpow
from proofgate.verify.structural import (StructuralValidator,
                                         expected_io_element, seal_proof)

from .conftest import make_body


def _regrind(seq, bits):
    """Re-seal an edited proof so only the intended check can fail."""
    body = list(seq[:-1])
    nonce = vpow.grind(hashing.pow_seed(tuple(body) + (0,)), bits, max_nonce=M31 - 1)
    out = tuple(body) + (nonce,)
    return out, hashing.proof_hash_hex(out)


def test_sealed_proof_is_accepted(params, sealed):
    proof, ph = sealed()
    assert len(proof) == 40
    outcome = StructuralValidator(params).validate(proof, ph)
    assert outcome.ok and bool(outcome)
    assert outcome.reason is None
    assert outcome.proof_hash == ph


def test_default_difficulty_accepts_ground_proof():
    params = VerifierParams()
    assert params.pow_bits == 16
    proof, ph = seal_proof(make_body(39, seed=3), params)
    assert StructuralValidator(params).is_valid(proof, ph)


def test_check_returns_hash_or_raises(params, sealed):
    proof, ph = sealed()
    v = StructuralValidator(params)
    assert v.check(proof, ph) == ph
    assert v.check(proof, None) == ph

    with pytest.raises(ValidationError) as ei:
        v.check(proof, "0x" + "22" * 32, job_id="job-9")
    assert ei.value.reason is RejectReason.HASH_MISMATCH
    assert ei.value.details == {"reason": "hash_mismatch", "job_id": "job-9"}


def test_too_short(params):
    proof, ph = seal_proof(make_body(19), params)
    assert len(proof) == 20
    outcome = StructuralValidator(params).validate(proof, ph)
    assert outcome.reason is RejectReason.TOO_SHORT


@pytest.mark.parametrize("index", [0, 1])
def test_zero_commitment(params, sealed, index):
    proof, _ = sealed()
    edited = list(proof)
    edited[index] = 0
    edited, ph = _regrind(edited, params.pow_bits)
    outcome = StructuralValidator(params).validate(edited, ph)
    assert outcome.reason is RejectReason.ZERO_COMMITMENT


def test_insufficient_layers():
    # min_elements low enough that the layer rule is the one that fires
    params = VerifierParams(min_elements=10, min_layers=4, layer_width=3, pow_bits=4, io_commitment_index=4)
    with pytest.raises(ValueError):
        params.validate()
    params = VerifierParams(min_elements=15, min_layers=4, layer_width=3, pow_bits=4)
    v = StructuralValidator(params)
    proof, ph = seal_proof(make_body(14), params)
    assert v.validate(proof, ph).ok
    v.params.min_layers = 5
    assert v.validate(proof, ph).reason is RejectReason.INSUFFICIENT_LAYERS


def test_field_out_of_range(params, sealed):
    proof, _ = sealed()
    edited = list(proof)
    edited[10] = M31
    outcome = StructuralValidator(params).validate(edited, hashing.proof_hash_hex(edited))
    assert outcome.reason is RejectReason.FIELD_OUT_OF_RANGE


def test_field_check_precedes_pow(params, sealed):
    proof, ph = sealed()
    edited = list(proof)
    edited[-1] = M31 + 1
    assert StructuralValidator(params).validate(edited, ph).reason is RejectReason.FIELD_OUT_OF_RANGE


def test_pow_nonce_zero_rejected(params, sealed):
    proof, _ = sealed()
    edited = list(proof)
    edited[-1] = 0
    outcome = StructuralValidator(params).validate(edited, hashing.proof_hash_hex(edited))
    assert outcome.reason is RejectReason.POW_INSUFFICIENT


def test_pow_bound_to_body(params, sealed):
    proof, _ = sealed()
    edited = list(proof)
    seed = hashing.pow_seed(edited)
    # find a body edit under which the existing nonce no longer meets the target
    for delta in range(1, 1000):
        edited[7] = (proof[7] + delta) % M31 or 1
        if not vpow.verify_pow(hashing.pow_seed(edited), edited[-1], params.pow_bits):
            break
    assert hashing.pow_seed(edited) != seed
    outcome = StructuralValidator(params).validate(edited, hashing.proof_hash_hex(edited))
    assert outcome.reason is RejectReason.POW_INSUFFICIENT


def test_hash_mismatch_rejects(params, sealed):
    proof, ph = sealed()
    other = "0x" + "00" * 32
    outcome = StructuralValidator(params).validate(proof, other)
    assert outcome.reason is RejectReason.HASH_MISMATCH
    # expected hash comparison is case- and prefix-insensitive
    assert StructuralValidator(params).validate(proof, ph[2:].upper()).ok
    assert StructuralValidator(params).validate(proof, hashing.proof_hash(proof)).ok


def test_server_side_hash_when_no_expected_hash(params, sealed):
    proof, ph = sealed()
    outcome = StructuralValidator(params).validate(proof, None)
    assert outcome.ok and outcome.proof_hash == ph


def test_io_binding_match_and_mismatch(params):
    binding = IOBinding(inputs=(1, 2, 3), outputs=(42,), trace_length=1024, trace_width=8)
    proof, ph = seal_proof(make_body(39), params, io_binding=binding)
    v = StructuralValidator(params)
    assert proof[params.io_commitment_index] == expected_io_element(binding, params.field_modulus)
    assert v.validate(proof, ph, io_binding=binding).ok

    other = IOBinding(inputs=(1, 2, 3), outputs=(43,), trace_length=1024, trace_width=8)
    assert v.validate(proof, ph, io_binding=other).reason is RejectReason.IO_MISMATCH

    # without a binding on the job the slot is not inspected
    plain, plain_hash = seal_proof(make_body(39), params)
    assert v.validate(plain, plain_hash).ok
    assert v.validate(plain, plain_hash, io_binding=binding).reason is RejectReason.IO_MISMATCH


def test_check_order_short_circuits(params):
    # both too short and zero-commitment: length is reported
    outcome = StructuralValidator(params).validate([0] * 5, None)
    assert outcome.reason is RejectReason.TOO_SHORT


def test_seal_proof_rejects_body_without_io_slot(params):
    binding = IOBinding(inputs=(), outputs=(), trace_length=1, trace_width=1)
    with pytest.raises(ValueError):
        seal_proof([1, 2, 3], params, io_binding=binding)
