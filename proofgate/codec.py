"""
proofgate.codec
===============

Wire encodings for job specs, submissions and bare proof payloads.

- JSON: plain objects as produced by the types' `to_dict()`; field elements may
  be ints or hex/decimal strings.
- CBOR: the same objects, encoded with cbor2 in canonical mode (sorted map
  keys, shortest ints) so equal objects always produce equal bytes.

A "proof payload" is either a bare array of field elements or an object with a
`proof_data` array (optionally wrapped under `"submission"`).
"""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

import cbor2

from proofgate.types.job import ProofJobSpec, ProofSubmission, as_proof_data

PathLike = Union[str, Path]


def dumps_canonical(obj: Any) -> bytes:
    bio = io.BytesIO()
    cbor2.CBOREncoder(bio, canonical=True).encode(obj)
    return bio.getvalue()


def loads_cbor(data: bytes) -> Any:
    return cbor2.loads(data)


def decode_any(data: bytes, *, hint: str = "") -> Any:
    """Decode JSON or CBOR; the suffix hint picks the first attempt."""
    if hint.lower() in {".json", ".jsn"}:
        return json.loads(data.decode("utf-8"))
    try:
        return loads_cbor(data)
    except Exception as e:
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            raise ValueError(f"payload is neither CBOR nor JSON: {e}") from e


def read_file(path: PathLike) -> Any:
    p = Path(path)
    return decode_any(p.read_bytes(), hint=p.suffix)


# ---- typed helpers


def proof_data_from_obj(obj: Any) -> Tuple[int, ...]:
    if isinstance(obj, Mapping):
        if "submission" in obj:
            obj = obj["submission"]
        if "proof_data" not in obj:
            raise ValueError("object has no 'proof_data' field")
        obj = obj["proof_data"]
    if not isinstance(obj, (list, tuple)):
        raise ValueError("proof payload must be an array of field elements")
    return as_proof_data(obj)


def submission_from_obj(obj: Mapping[str, Any]) -> ProofSubmission:
    if "submission" in obj:
        obj = obj["submission"]
    return ProofSubmission.from_dict(obj)


def spec_from_obj(obj: Mapping[str, Any]) -> ProofJobSpec:
    if "spec" in obj:
        obj = obj["spec"]
    return ProofJobSpec.from_dict(obj)


def encode_submission(sub: ProofSubmission, *, fmt: str = "cbor") -> bytes:
    d: Dict[str, Any] = sub.to_dict()
    if fmt == "json":
        return json.dumps(d, sort_keys=True, separators=(",", ":")).encode("utf-8")
    d["attestation_signature"] = bytes(sub.attestation_signature)
    return dumps_canonical(d)


def decode_submission(data: bytes, *, hint: str = "") -> ProofSubmission:
    obj = decode_any(data, hint=hint)
    if not isinstance(obj, Mapping):
        raise ValueError("submission must be an object")
    return submission_from_obj(obj)


__all__ = [
    "dumps_canonical",
    "loads_cbor",
    "decode_any",
    "read_file",
    "proof_data_from_obj",
    "submission_from_obj",
    "spec_from_obj",
    "encode_submission",
    "decode_submission",
]
