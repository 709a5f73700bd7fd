"""
Error types for the proof verification gateway.

These are lightweight, serializable, and safe to surface over RPC/logs.

Taxonomy
--------
- ValidationError    a submitted proof failed a structural/numeric check.
                     Non-fatal to the caller: the registry records the job as
                     Failed and emits a ProofRejected event with the coarse
                     reason tag carried here.
- AuthorizationError caller lacks the capability an admin-only operation needs.
                     Aborts the operation with no state change.
- StateError         the job is not in the state the operation requires
                     (terminal job resubmitted, cancel on a non-pending job,
                     duplicate registration, verification already in flight).
- NotFoundError      unknown job_id or enclave measurement.
- JobExpired         the job's challenge period elapsed before a proof landed.

Exports:
- ProofGateError (base)
- RejectReason (enum)
- ValidationError, AuthorizationError, StateError, NotFoundError, JobExpired
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class RejectReason(str, Enum):
    """Coarse rejection tags; deliberately say which check failed and nothing more."""
    TOO_SHORT = "too_short"
    MISSING_ATTESTATION = "missing_attestation"
    ZERO_COMMITMENT = "zero_commitment"
    INSUFFICIENT_LAYERS = "insufficient_layers"
    FIELD_OUT_OF_RANGE = "field_out_of_range"
    POW_INSUFFICIENT = "pow_insufficient"
    IO_MISMATCH = "io_mismatch"
    HASH_MISMATCH = "hash_mismatch"
    ENCLAVE_NOT_WHITELISTED = "enclave_not_whitelisted"


class ProofGateError(Exception):
    """Base class for gateway domain errors."""

    code: str = "PROOFGATE_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"))
            except (TypeError, ValueError):
                packed = str(self.details)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class ValidationError(ProofGateError):
    """A proof failed validation. `reason` is the coarse tag surfaced in events."""
    code = "PROOFGATE_VALIDATION"

    def __init__(
        self,
        reason: RejectReason,
        *,
        job_id: Optional[str] = None,
        message: str = "proof rejected",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.reason = RejectReason(reason)
        d = dict(details or {})
        d["reason"] = self.reason.value
        if job_id is not None:
            d.setdefault("job_id", job_id)
        super().__init__(message, details=d)


class AuthorizationError(ProofGateError):
    """Caller is not an owner/admin/designated submitter for this operation."""
    code = "PROOFGATE_UNAUTHORIZED"

    def __init__(
        self,
        *,
        caller: Optional[str],
        action: str,
        message: str = "caller not authorized",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"caller": caller, "action": action})
        super().__init__(message, details=d)


class StateError(ProofGateError):
    """Operation attempted on a job that is not in the required state."""
    code = "PROOFGATE_BAD_STATE"

    def __init__(
        self,
        message: str = "job not in required state",
        *,
        job_id: Optional[str] = None,
        status: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if job_id is not None:
            d.setdefault("job_id", job_id)
        if status is not None:
            d.setdefault("status", status)
        super().__init__(message, details=d)


class NotFoundError(ProofGateError):
    """Reference to an unregistered job_id or enclave measurement."""
    code = "PROOFGATE_NOT_FOUND"

    def __init__(
        self,
        *,
        kind: str,
        key: str,
        message: str = "not found",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"kind": kind, "key": key})
        super().__init__(message, details=d)


class JobExpired(StateError):
    """The job's challenge period elapsed; it can no longer be verified."""
    code = "PROOFGATE_JOB_EXPIRED"

    def __init__(
        self,
        *,
        job_id: str,
        deadline: Optional[float] = None,
        message: str = "job expired",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if deadline is not None:
            d["deadline"] = float(deadline)
        super().__init__(message, job_id=job_id, status="expired", details=d)


__all__ = [
    "ProofGateError",
    "RejectReason",
    "ValidationError",
    "AuthorizationError",
    "StateError",
    "NotFoundError",
    "JobExpired",
]
