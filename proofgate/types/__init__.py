"""
Shared types for the proof verification gateway.

These are intentionally minimal so they can be imported from runtime code and
type-checkers without pulling in the verifier or registry modules.
"""

from __future__ import annotations

from .enclave import EnclaveInfo, TeeType
from .events import (
    EnclaveRevoked,
    EnclaveWhitelisted,
    Event,
    EventType,
    ProofExpired,
    ProofJobSubmitted,
    ProofRejected,
    ProofVerified,
    event_from_dict,
)
from .job import (
    IOBinding,
    JobRecord,
    ProofJobSpec,
    ProofStatus,
    ProofSubmission,
    ProofType,
    VerificationStats,
    as_proof_data,
    normalize_hex,
)

__all__ = [
    # job
    "ProofType",
    "ProofStatus",
    "IOBinding",
    "ProofJobSpec",
    "ProofSubmission",
    "JobRecord",
    "VerificationStats",
    "as_proof_data",
    "normalize_hex",
    # enclave
    "TeeType",
    "EnclaveInfo",
    # events
    "EventType",
    "Event",
    "ProofJobSubmitted",
    "ProofVerified",
    "ProofRejected",
    "ProofExpired",
    "EnclaveWhitelisted",
    "EnclaveRevoked",
    "event_from_dict",
]
