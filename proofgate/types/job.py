"""
Job-side types: proof families, lifecycle status, the immutable job spec, the
transient submission, and the registry's per-job record.

Conventions
-----------
- job_id / worker_id / created_by are opaque strings (addresses or hex ids).
- proof_hash is 0x-prefixed lowercase hex of a 32-byte digest.
- proof_data is an ordered tuple of non-negative ints (field elements).
- Timestamps are UNIX seconds (float).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union


class ProofType(str, Enum):
    """
    Proof families. Queue indexing uses the small integer code from the
    explicit table below, never the declaration order.
    """
    PRIMARY_BATCH = "primary_batch"
    RECURSIVE = "recursive"
    INFERENCE = "inference"
    CROSS_DOMAIN_BRIDGE = "cross_domain_bridge"
    APPLICATION = "application"

    @property
    def code(self) -> int:
        return _TYPE_TO_CODE[self]

    @classmethod
    def from_code(cls, code: int) -> "ProofType":
        try:
            return _CODE_TO_TYPE[int(code)]
        except (KeyError, ValueError, TypeError):
            raise ValueError(f"unknown proof type code: {code!r}") from None

    @classmethod
    def parse(cls, value: Union["ProofType", int, str]) -> "ProofType":
        """Accept an enum member, its code, its value or its (case-insensitive) name."""
        if isinstance(value, ProofType):
            return value
        if isinstance(value, int):
            return cls.from_code(value)
        s = str(value).strip()
        if s.isdigit():
            return cls.from_code(int(s))
        try:
            return cls(s.lower())
        except ValueError:
            pass
        try:
            return cls[s.upper()]
        except KeyError:
            raise ValueError(f"unknown proof type: {value!r}") from None


_TYPE_TO_CODE: Dict[ProofType, int] = {
    ProofType.PRIMARY_BATCH: 0,
    ProofType.RECURSIVE: 1,
    ProofType.INFERENCE: 2,
    ProofType.CROSS_DOMAIN_BRIDGE: 3,
    ProofType.APPLICATION: 4,
}
_CODE_TO_TYPE: Dict[int, ProofType] = {c: t for t, c in _TYPE_TO_CODE.items()}


class ProofStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not ProofStatus.PENDING


@dataclass(frozen=True)
class IOBinding:
    """
    Declared inputs/outputs of a job plus the trace shape. When a spec carries
    one, the proof must embed H(inputs, outputs, trace shape) at the IO
    commitment slot, so a proof for other data cannot be replayed here.
    """
    inputs: Tuple[int, ...]
    outputs: Tuple[int, ...]
    trace_length: int
    trace_width: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", tuple(int(x) for x in self.inputs))
        object.__setattr__(self, "outputs", tuple(int(x) for x in self.outputs))
        if any(x < 0 for x in self.inputs + self.outputs):
            raise ValueError("IO values must be non-negative")
        if self.trace_length <= 0 or self.trace_width <= 0:
            raise ValueError("trace_length and trace_width must be positive")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inputs": list(self.inputs),
            "outputs": list(self.outputs),
            "trace_length": int(self.trace_length),
            "trace_width": int(self.trace_width),
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "IOBinding":
        return IOBinding(
            inputs=tuple(int(x) for x in d.get("inputs", ())),
            outputs=tuple(int(x) for x in d.get("outputs", ())),
            trace_length=int(d["trace_length"]),
            trace_width=int(d["trace_width"]),
        )


@dataclass(frozen=True)
class ProofJobSpec:
    """Immutable description of the unit of work a proof must attest to."""
    job_id: str
    proof_type: ProofType
    inputs_descriptor: str
    created_by: str
    io_binding: Optional[IOBinding] = None

    def __post_init__(self) -> None:
        if not isinstance(self.job_id, str) or not self.job_id.strip():
            raise ValueError("job_id must be a non-empty string")
        object.__setattr__(self, "proof_type", ProofType.parse(self.proof_type))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "proof_type": self.proof_type.value,
            "proof_type_code": self.proof_type.code,
            "inputs_descriptor": self.inputs_descriptor,
            "created_by": self.created_by,
            "io_binding": self.io_binding.to_dict() if self.io_binding else None,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ProofJobSpec":
        io = d.get("io_binding")
        return ProofJobSpec(
            job_id=str(d["job_id"]),
            proof_type=ProofType.parse(d.get("proof_type", d.get("proof_type_code", 0))),
            inputs_descriptor=str(d.get("inputs_descriptor", "")),
            created_by=str(d.get("created_by", "")),
            io_binding=IOBinding.from_dict(io) if io else None,
        )


@dataclass(frozen=True)
class ProofSubmission:
    """
    A worker's proof for one job. Transient: the registry keeps only the
    derived fields (hash, worker, timestamp), never the blob itself.
    """
    job_id: str
    worker_id: str
    proof_data: Tuple[int, ...]
    proof_hash: str
    attestation_signature: bytes
    enclave_measurement: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "proof_data", tuple(int(x) for x in self.proof_data))
        object.__setattr__(self, "proof_hash", normalize_hex(self.proof_hash))
        if self.enclave_measurement is not None:
            object.__setattr__(self, "enclave_measurement", normalize_hex(self.enclave_measurement))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "worker_id": self.worker_id,
            "proof_data": list(self.proof_data),
            "proof_hash": self.proof_hash,
            "attestation_signature": "0x" + bytes(self.attestation_signature).hex(),
            "enclave_measurement": self.enclave_measurement,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ProofSubmission":
        return ProofSubmission(
            job_id=str(d["job_id"]),
            worker_id=str(d.get("worker_id", "")),
            proof_data=tuple(_as_int(x) for x in d.get("proof_data", ())),
            proof_hash=str(d.get("proof_hash", "")),
            attestation_signature=as_bytes(d.get("attestation_signature", b"")),
            enclave_measurement=(str(d["enclave_measurement"]) if d.get("enclave_measurement") else None),
        )


@dataclass
class JobRecord:
    """Per-job row owned by the registry. Only the registry mutates it."""
    spec: ProofJobSpec
    status: ProofStatus = ProofStatus.PENDING
    created_at: float = 0.0
    deadline: Optional[float] = None
    proof_hash: Optional[str] = None
    worker_id: Optional[str] = None
    verified_at: Optional[float] = None
    reject_reason: Optional[str] = None
    finalized_at: Optional[float] = None

    @property
    def job_id(self) -> str:
        return self.spec.job_id

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["spec"] = self.spec.to_dict()
        d["status"] = self.status.value
        d["job_id"] = self.job_id
        return d


@dataclass(frozen=True)
class VerificationStats:
    """Derived counters; the per-job statuses are the authoritative state."""
    total_submitted_jobs: int = 0
    total_verified: int = 0
    total_rejected: int = 0
    total_expired: int = 0
    whitelisted_count: int = 0
    pending_by_type: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ────────────────────────────────────────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────────────────────────────────────────

def normalize_hex(h: str) -> str:
    """Lowercase, 0x-prefixed hex. Raises ValueError on non-hex input."""
    if isinstance(h, (bytes, bytearray)):
        return "0x" + bytes(h).hex()
    s = str(h).strip().lower()
    if s.startswith("0x"):
        s = s[2:]
    if not s or any(c not in "0123456789abcdef" for c in s):
        raise ValueError(f"expected hex string, got {h!r}")
    return "0x" + s


def _as_int(x: Any) -> int:
    if isinstance(x, str):
        return int(x, 0)
    return int(x)


def as_bytes(x: Any) -> bytes:
    if isinstance(x, (bytes, bytearray, memoryview)):
        return bytes(x)
    s = str(x or "").strip()
    if s.startswith(("0x", "0X")):
        hx = s[2:]
        if len(hx) % 2 == 1:
            hx = "0" + hx
        return bytes.fromhex(hx)
    return s.encode("utf-8")


def as_proof_data(seq: Sequence[Any]) -> Tuple[int, ...]:
    """Coerce ints or 0x-hex strings to a tuple of ints."""
    return tuple(_as_int(x) for x in seq)


__all__ = [
    "ProofType",
    "ProofStatus",
    "IOBinding",
    "ProofJobSpec",
    "ProofSubmission",
    "JobRecord",
    "VerificationStats",
    "normalize_hex",
    "as_proof_data",
    "as_bytes",
]
