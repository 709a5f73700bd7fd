"""
Gateway event types.

Every state transition (or refusal to transition) is observable either through
one of these events or through the job's readable status. Events are pure
dataclasses with JSON-serializable fields and small (de)serialization helpers.

Events:
  - ProofJobSubmitted:   a job was registered and queued.
  - ProofVerified:       a proof passed validation; payment is released.
  - ProofRejected:       a proof failed validation (coarse reason tag).
  - ProofExpired:        a pending job was cancelled or its challenge period elapsed.
  - EnclaveWhitelisted:  an admin authorized a hardware measurement.
  - EnclaveRevoked:      an admin revoked a hardware measurement.

Timestamps use UNIX milliseconds in `ts_ms`.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Union


def now_ms() -> int:
    """Current UNIX time in milliseconds (int)."""
    return int(time.time() * 1000)


class EventType(str, Enum):
    JOB_SUBMITTED = "ProofJobSubmitted"
    VERIFIED = "ProofVerified"
    REJECTED = "ProofRejected"
    EXPIRED = "ProofExpired"
    ENCLAVE_WHITELISTED = "EnclaveWhitelisted"
    ENCLAVE_REVOKED = "EnclaveRevoked"


@dataclass
class ProofJobSubmitted:
    etype: EventType
    ts_ms: int
    job_id: str
    proof_type: str
    created_by: str

    @staticmethod
    def new(job_id: str, proof_type: str, created_by: str) -> "ProofJobSubmitted":
        return ProofJobSubmitted(EventType.JOB_SUBMITTED, now_ms(), job_id, proof_type, created_by)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        return d

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ProofJobSubmitted":
        return ProofJobSubmitted(
            etype=EventType(d["etype"]),
            ts_ms=int(d["ts_ms"]),
            job_id=str(d["job_id"]),
            proof_type=str(d["proof_type"]),
            created_by=str(d.get("created_by", "")),
        )


@dataclass
class ProofVerified:
    etype: EventType
    ts_ms: int
    job_id: str
    worker_id: str
    proof_hash: str
    timestamp: float  # verified_at, UNIX seconds

    @staticmethod
    def new(job_id: str, worker_id: str, proof_hash: str, timestamp: float) -> "ProofVerified":
        return ProofVerified(EventType.VERIFIED, now_ms(), job_id, worker_id, proof_hash, float(timestamp))

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        return d

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ProofVerified":
        return ProofVerified(
            etype=EventType(d["etype"]),
            ts_ms=int(d["ts_ms"]),
            job_id=str(d["job_id"]),
            worker_id=str(d["worker_id"]),
            proof_hash=str(d["proof_hash"]),
            timestamp=float(d["timestamp"]),
        )


@dataclass
class ProofRejected:
    etype: EventType
    ts_ms: int
    job_id: str
    reason: str

    @staticmethod
    def new(job_id: str, reason: str) -> "ProofRejected":
        return ProofRejected(EventType.REJECTED, now_ms(), job_id, str(reason))

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        return d

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ProofRejected":
        return ProofRejected(EventType(d["etype"]), int(d["ts_ms"]), str(d["job_id"]), str(d["reason"]))


@dataclass
class ProofExpired:
    etype: EventType
    ts_ms: int
    job_id: str
    reason: str  # "cancelled" | "challenge_period_elapsed"

    @staticmethod
    def new(job_id: str, reason: str) -> "ProofExpired":
        return ProofExpired(EventType.EXPIRED, now_ms(), job_id, str(reason))

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        return d

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ProofExpired":
        return ProofExpired(EventType(d["etype"]), int(d["ts_ms"]), str(d["job_id"]), str(d["reason"]))


@dataclass
class EnclaveWhitelisted:
    etype: EventType
    ts_ms: int
    measurement: str
    authorized_by: str

    @staticmethod
    def new(measurement: str, authorized_by: str) -> "EnclaveWhitelisted":
        return EnclaveWhitelisted(EventType.ENCLAVE_WHITELISTED, now_ms(), measurement, authorized_by)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        return d

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "EnclaveWhitelisted":
        return EnclaveWhitelisted(
            EventType(d["etype"]), int(d["ts_ms"]), str(d["measurement"]), str(d["authorized_by"])
        )


@dataclass
class EnclaveRevoked:
    etype: EventType
    ts_ms: int
    measurement: str
    revoked_by: str

    @staticmethod
    def new(measurement: str, revoked_by: str) -> "EnclaveRevoked":
        return EnclaveRevoked(EventType.ENCLAVE_REVOKED, now_ms(), measurement, revoked_by)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        return d

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "EnclaveRevoked":
        return EnclaveRevoked(
            EventType(d["etype"]), int(d["ts_ms"]), str(d["measurement"]), str(d["revoked_by"])
        )


Event = Union[
    ProofJobSubmitted,
    ProofVerified,
    ProofRejected,
    ProofExpired,
    EnclaveWhitelisted,
    EnclaveRevoked,
]

_DECODERS: Dict[EventType, Callable[[Mapping[str, Any]], Event]] = {
    EventType.JOB_SUBMITTED: ProofJobSubmitted.from_dict,
    EventType.VERIFIED: ProofVerified.from_dict,
    EventType.REJECTED: ProofRejected.from_dict,
    EventType.EXPIRED: ProofExpired.from_dict,
    EventType.ENCLAVE_WHITELISTED: EnclaveWhitelisted.from_dict,
    EventType.ENCLAVE_REVOKED: EnclaveRevoked.from_dict,
}


def event_from_dict(d: Mapping[str, Any]) -> Event:
    """Decode any event dict produced by `.to_dict()`."""
    return _DECODERS[EventType(d["etype"])](d)


__all__ = [
    "EventType",
    "Event",
    "ProofJobSubmitted",
    "ProofVerified",
    "ProofRejected",
    "ProofExpired",
    "EnclaveWhitelisted",
    "EnclaveRevoked",
    "event_from_dict",
    "now_ms",
]
