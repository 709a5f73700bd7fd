from __future__ import annotations

import json

import cbor2
import pytest

from proofgate import codec
from proofgate.types.job import IOBinding, ProofJobSpec, ProofSubmission, ProofType


def _submission() -> ProofSubmission:
    return ProofSubmission(
        job_id="job-1",
        worker_id="0xw",
        proof_data=(1, 2, 3),
        proof_hash="0xAA",
        attestation_signature=b"\x01\x02",
        enclave_measurement="0xFEED",
    )


def test_submission_normalizes_hex_fields():
    sub = _submission()
    assert sub.proof_hash == "0xaa"
    assert sub.enclave_measurement == "0xfeed"


def test_cbor_encoding_is_canonical_and_decodes():
    sub = _submission()
    a = codec.encode_submission(sub)
    b = codec.dumps_canonical(cbor2.loads(a))
    assert a == b
    assert codec.decode_submission(a) == sub


def test_json_submission_decodes():
    sub = _submission()
    raw = codec.encode_submission(sub, fmt="json")
    assert json.loads(raw)["attestation_signature"] == "0x0102"
    assert codec.decode_submission(raw, hint=".json") == sub


def test_proof_data_from_various_shapes():
    assert codec.proof_data_from_obj([1, "0x2", "3"]) == (1, 2, 3)
    assert codec.proof_data_from_obj({"proof_data": [4]}) == (4,)
    assert codec.proof_data_from_obj({"submission": {"proof_data": [5]}}) == (5,)
    with pytest.raises(ValueError):
        codec.proof_data_from_obj({"other": 1})
    with pytest.raises(ValueError):
        codec.proof_data_from_obj("nope")


def test_spec_from_obj_with_binding():
    spec = ProofJobSpec(
        job_id="j",
        proof_type=ProofType.INFERENCE,
        inputs_descriptor="d",
        created_by="0xo",
        io_binding=IOBinding((1,), (2,), 8, 2),
    )
    assert codec.spec_from_obj({"spec": spec.to_dict()}) == spec
    assert codec.spec_from_obj({"job_id": "k", "proof_type_code": 3}).proof_type is ProofType.CROSS_DOMAIN_BRIDGE


def test_read_file(tmp_path):
    p = tmp_path / "proof.cbor"
    p.write_bytes(codec.dumps_canonical({"proof_data": [7, 8]}))
    assert codec.proof_data_from_obj(codec.read_file(p)) == (7, 8)
    bad = tmp_path / "junk.bin"
    bad.write_bytes(b"\xff\xfe not anything")
    with pytest.raises(ValueError):
        codec.read_file(bad)
