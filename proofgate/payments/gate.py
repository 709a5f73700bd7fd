"""
Payment gate interface.

The confidential payment layer lives elsewhere; the gateway only tells it,
once per job, that a proof was verified and under which proof hash.
"""

from __future__ import annotations

import logging
from typing import List, Protocol, Tuple, runtime_checkable

log = logging.getLogger(__name__)


@runtime_checkable
class PaymentGate(Protocol):
    def on_proof_verified(self, job_id: str, proof_hash: str) -> None:
        """Release the payment held for `job_id`. May raise; the caller retries later."""
        ...


class LoggingPaymentGate:
    """Default gate for devnets: records notifications and logs them."""

    def __init__(self) -> None:
        self.notified: List[Tuple[str, str]] = []

    def on_proof_verified(self, job_id: str, proof_hash: str) -> None:
        self.notified.append((job_id, proof_hash))
        log.info("payments: release job_id=%s proof_hash=%s", job_id, proof_hash)


__all__ = ["PaymentGate", "LoggingPaymentGate"]
