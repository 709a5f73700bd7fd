from __future__ import annotations

"""
Prometheus metrics for the proof verification gateway.

Covered:
- jobs: registrations by proof type
- proofs: verification outcomes by proof type and result, rejections by reason
- queue: live pending depth by proof type
- enclaves: whitelisted enclave count
- payments: notification deliveries by status
- latency: structural verification time

Everything lives on a dedicated registry so an embedding app can expose it
directly or merge it into its own.
"""


import time
from contextlib import contextmanager
from typing import Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, generate_latest)

REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   proof_type: "primary_batch" | "recursive" | "inference" | "cross_domain_bridge" | "application"
#   result:     "verified" | "rejected" | "expired"
#   reason:     RejectReason values
#   status:     "delivered" | "failed" | "redelivered"
# ────────────────────────────────────────────────────────────────────────────────

JOBS_SUBMITTED = Counter(
    "proofgate_jobs_submitted_total",
    "Total proof jobs registered by proof type.",
    labelnames=("proof_type",),
    registry=REGISTRY,
)

PROOFS_VERIFIED = Counter(
    "proofgate_proofs_total",
    "Total proof submissions finalized by proof type and result.",
    labelnames=("proof_type", "result"),
    registry=REGISTRY,
)

REJECTIONS = Counter(
    "proofgate_rejections_total",
    "Total rejected proofs by reason.",
    labelnames=("reason",),
    registry=REGISTRY,
)

PAYMENT_NOTIFICATIONS = Counter(
    "proofgate_payment_notifications_total",
    "Payment gate notifications by delivery status.",
    labelnames=("status",),
    registry=REGISTRY,
)

PROOF_VERIFY_SECONDS = Histogram(
    "proofgate_proof_verify_seconds",
    "Structural proof verification latency in seconds by proof type.",
    labelnames=("proof_type",),
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
    registry=REGISTRY,
)

QUEUE_DEPTH = Gauge(
    "proofgate_pending_jobs",
    "Live pending jobs by proof type.",
    labelnames=("proof_type",),
    registry=REGISTRY,
)

WHITELISTED_ENCLAVES = Gauge(
    "proofgate_whitelisted_enclaves",
    "Currently whitelisted enclave measurements.",
    registry=REGISTRY,
)

# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_job_submitted(proof_type: str) -> None:
    JOBS_SUBMITTED.labels(proof_type=proof_type).inc()
    QUEUE_DEPTH.labels(proof_type=proof_type).inc()


def record_dequeued(proof_type: str) -> None:
    """A job left the pending queue (submission, cancel or expiry)."""
    QUEUE_DEPTH.labels(proof_type=proof_type).dec()


def record_outcome(proof_type: str, result: str, reason: Optional[str] = None) -> None:
    """Finalized submission: result is 'verified' | 'rejected' | 'expired'."""
    PROOFS_VERIFIED.labels(proof_type=proof_type, result=result).inc()
    if result == "rejected" and reason:
        REJECTIONS.labels(reason=reason).inc()


def record_payment(status: str) -> None:
    PAYMENT_NOTIFICATIONS.labels(status=status).inc()


def set_whitelisted(count: int) -> None:
    WHITELISTED_ENCLAVES.set(count)


@contextmanager
def time_proof_verify(proof_type: str):
    """Context manager to observe structural verification time for a proof type."""
    start = time.perf_counter()
    try:
        yield
    finally:
        PROOF_VERIFY_SECONDS.labels(proof_type=proof_type).observe(time.perf_counter() - start)


def exposition(registry: Optional[CollectorRegistry] = None) -> tuple[bytes, str]:
    """(payload, content_type) in the Prometheus text format."""
    return generate_latest(registry or REGISTRY), CONTENT_TYPE_LATEST


__all__ = [
    "REGISTRY",
    "JOBS_SUBMITTED",
    "PROOFS_VERIFIED",
    "REJECTIONS",
    "PAYMENT_NOTIFICATIONS",
    "PROOF_VERIFY_SECONDS",
    "QUEUE_DEPTH",
    "WHITELISTED_ENCLAVES",
    "record_job_submitted",
    "record_dequeued",
    "record_outcome",
    "record_payment",
    "set_whitelisted",
    "time_proof_verify",
    "exposition",
]
