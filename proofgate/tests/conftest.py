from __future__ import annotations

from typing import Callable, List, Optional, Tuple

import pytest

from proofgate.access import Ownership
from proofgate.config import M31, AccessParams, GatewayConfig, VerifierParams
from proofgate.events import EventBus
from proofgate.jobs.registry import ProofJobRegistry
from proofgate.types.job import IOBinding, ProofJobSpec, ProofSubmission, ProofType
from proofgate.verify.structural import seal_proof

OWNER = "0xowner"
ADMIN = "0xadmin"
WORKER = "0xworker"


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingGate:
    """Payment gate double; set `fail` to make deliveries raise."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []
        self.fail = False

    def on_proof_verified(self, job_id: str, proof_hash: str) -> None:
        if self.fail:
            raise RuntimeError("payment layer unavailable")
        self.calls.append((job_id, proof_hash))


def make_body(n: int = 39, seed: int = 1) -> List[int]:
    """Deterministic non-zero field elements; the sealed proof is n + 1 long."""
    return [((i + 1) * 7919 + seed * 104729) % (M31 - 1) + 1 for i in range(n)]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def params() -> VerifierParams:
    # low difficulty keeps grinding fast; one test covers the 16-bit default
    return VerifierParams(pow_bits=8)


@pytest.fixture
def config(params: VerifierParams) -> GatewayConfig:
    return GatewayConfig(
        verifier=params,
        access=AccessParams(owner=OWNER, admins=[ADMIN]),
        challenge_period_seconds=3_600,
    )


@pytest.fixture
def gate() -> RecordingGate:
    return RecordingGate()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def registry(config: GatewayConfig, gate: RecordingGate, bus: EventBus, clock: FakeClock) -> ProofJobRegistry:
    return ProofJobRegistry(
        config,
        Ownership.from_params(config.access),
        payment_gate=gate,
        events=bus,
        clock=clock,
    )


@pytest.fixture
def sealed(params: VerifierParams) -> Callable[..., Tuple[Tuple[int, ...], str]]:
    def _seal(n: int = 39, seed: int = 1, io_binding: Optional[IOBinding] = None):
        return seal_proof(make_body(n, seed), params, io_binding=io_binding)

    return _seal


def make_spec(
    job_id: str = "job-1",
    proof_type: ProofType = ProofType.PRIMARY_BATCH,
    io_binding: Optional[IOBinding] = None,
) -> ProofJobSpec:
    return ProofJobSpec(
        job_id=job_id,
        proof_type=proof_type,
        inputs_descriptor="ipfs://inputs",
        created_by=OWNER,
        io_binding=io_binding,
    )


def make_submission(
    job_id: str,
    proof_data,
    proof_hash: str,
    *,
    signature: bytes = b"\x01attestation",
    enclave: Optional[str] = None,
) -> ProofSubmission:
    return ProofSubmission(
        job_id=job_id,
        worker_id=WORKER,
        proof_data=tuple(proof_data),
        proof_hash=proof_hash,
        attestation_signature=signature,
        enclave_measurement=enclave,
    )
