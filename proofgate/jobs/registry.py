from __future__ import annotations

"""
proofgate.jobs.registry
=======================

Job registry and verification state machine.

    submit_proof_job ──► Pending ──┬── submit_proof / verify_proof ok ──► Verified ─► payment notice
                                   ├── submit_proof / verify_proof bad ─► Failed
                                   ├── cancel_proof_job (admin) ────────► Expired
                                   └── challenge period elapsed ────────► Expired

Responsibilities
----------------
- Own the per-job rows, the pending queue and the verified-hash index.
- Run the ordered submission checks and the structural validator.
- Make every terminal transition exactly once: a job leaves the pending queue
  and changes status inside one locked section, and only the submission that
  took it out of the queue may finalize it.
- Publish events, update counters and metrics, and hand a single payment notice
  per verified job to the outbox.

Concurrency
-----------
Callers may run on any thread. Shared maps are guarded by one lock. A
submission claims its job (in-flight set + queue removal) under the lock,
validates without it, then finalizes under the lock again. A second
submission for a claimed job is refused with StateError instead of waiting.
Events are queued inside the locked section that makes the transition and
published afterwards in that order. Queries return copies of the rows.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import replace
from typing import (Callable, Deque, Dict, List, Optional, Sequence, Set,
                    Tuple, Union)

from proofgate import metrics
from proofgate.access import Ownership
from proofgate.config import GatewayConfig
from proofgate.errors import (JobExpired, NotFoundError, RejectReason,
                              StateError, ValidationError)
from proofgate.events import EventBus
from proofgate.payments.gate import LoggingPaymentGate, PaymentGate
from proofgate.payments.outbox import PaymentOutbox
from proofgate.queue.pending import PendingQueue
from proofgate.registry.enclaves import EnclaveRegistry
from proofgate.types.enclave import EnclaveInfo, TeeType
from proofgate.types.events import (Event, ProofExpired, ProofJobSubmitted,
                                    ProofRejected, ProofVerified)
from proofgate.types.job import (JobRecord, ProofJobSpec, ProofStatus,
                                 ProofSubmission, ProofType,
                                 VerificationStats, as_proof_data,
                                 normalize_hex)
from proofgate.verify.structural import StructuralValidator

log = logging.getLogger(__name__)

EXPIRY_CANCELLED = "cancelled"
EXPIRY_CHALLENGE_ELAPSED = "challenge_period_elapsed"


class ProofJobRegistry:
    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        ownership: Optional[Ownership] = None,
        *,
        enclaves: Optional[EnclaveRegistry] = None,
        payment_gate: Optional[PaymentGate] = None,
        events: Optional[EventBus] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or GatewayConfig()
        self.config.validate()
        self.ownership = ownership or Ownership.from_params(self.config.access)
        self.events = events or EventBus()
        self.enclaves = enclaves or EnclaveRegistry(self.ownership, events=self.events, clock=clock)
        self.outbox = PaymentOutbox(payment_gate or LoggingPaymentGate(), clock=clock)
        self._clock = clock
        self._validator = StructuralValidator(self.config.verifier)
        self._lock = threading.Lock()
        self._queue = PendingQueue()
        self._jobs: Dict[str, JobRecord] = {}
        self._verified_hashes: Dict[str, str] = {}  # proof_hash -> job_id
        self._in_flight: Set[str] = set()
        # events are queued under _lock in transition order, published by _flush_events
        self._outgoing: Deque[Event] = deque()
        self._publish_lock = threading.RLock()
        self._paused = False
        self._total_submitted = 0
        self._total_verified = 0
        self._total_rejected = 0
        self._total_expired = 0

    # ────────────────────────────────────────────────────────────────────────
    # Job registration
    # ────────────────────────────────────────────────────────────────────────

    def submit_proof_job(self, spec: ProofJobSpec, *, caller: Optional[str] = None) -> str:
        """Register a job as Pending and queue it under its proof type."""
        submitter = caller or spec.created_by
        self.ownership.require_submitter(submitter)
        now = self._clock()
        period = self.config.challenge_period_seconds
        with self._lock:
            if self._paused:
                raise StateError("gateway is paused", job_id=spec.job_id)
            if spec.job_id in self._jobs:
                raise StateError("job already registered", job_id=spec.job_id,
                                 status=self._jobs[spec.job_id].status.value)
            rec = JobRecord(
                spec=spec,
                created_at=now,
                deadline=(now + period) if period > 0 else None,
            )
            self._jobs[spec.job_id] = rec
            self._queue.enqueue(spec.proof_type.code, spec.job_id)
            self._total_submitted += 1
            self._outgoing.append(ProofJobSubmitted.new(spec.job_id, spec.proof_type.value, spec.created_by))
        metrics.record_job_submitted(spec.proof_type.value)
        log.info("jobs: submitted job_id=%s type=%s by=%s", spec.job_id, spec.proof_type.value, submitter)
        self._flush_events()
        return spec.job_id

    # ────────────────────────────────────────────────────────────────────────
    # Proof submission
    # ────────────────────────────────────────────────────────────────────────

    def submit_proof(self, submission: ProofSubmission) -> bool:
        """
        Validate a worker's proof against the hash it claims. Returns True iff
        the job became Verified. Rejections return False and leave the job
        Failed; refusals (unknown, terminal or claimed job) raise and change
        nothing.
        """
        return self._process(
            job_id=submission.job_id,
            worker_id=submission.worker_id,
            proof_data=submission.proof_data,
            expected_hash=submission.proof_hash,
            attestation_signature=submission.attestation_signature,
            enclave_measurement=submission.enclave_measurement,
        )

    def verify_proof(
        self,
        job_id: str,
        proof_data: Sequence[int],
        *,
        worker_id: str,
        attestation_signature: bytes,
        enclave_measurement: Optional[str] = None,
    ) -> bool:
        """Same as submit_proof, but the proof hash is computed here rather than claimed."""
        return self._process(
            job_id=job_id,
            worker_id=worker_id,
            proof_data=as_proof_data(proof_data),
            expected_hash=None,
            attestation_signature=bytes(attestation_signature or b""),
            enclave_measurement=normalize_hex(enclave_measurement) if enclave_measurement else None,
        )

    def _process(
        self,
        *,
        job_id: str,
        worker_id: str,
        proof_data: Tuple[int, ...],
        expected_hash: Optional[str],
        attestation_signature: bytes,
        enclave_measurement: Optional[str],
    ) -> bool:
        rec = self._claim(job_id)
        try:
            now = self._clock()
            if rec.deadline is not None and now > rec.deadline:
                self._finalize_expired(rec, EXPIRY_CHALLENGE_ELAPSED)
                return False
            proof_hash = self._check(
                rec, proof_data, expected_hash, attestation_signature, enclave_measurement
            )
        except ValidationError as e:
            self._finalize_rejected(rec, e.reason.value)
            return False
        except BaseException:
            self._release_claim(rec)
            raise

        self._finalize_verified(rec, worker_id, proof_hash)
        return True

    def _claim(self, job_id: str) -> JobRecord:
        with self._lock:
            rec = self._require(job_id)
            if rec.status is ProofStatus.EXPIRED:
                raise JobExpired(job_id=job_id, deadline=rec.deadline)
            if rec.status.is_terminal:
                raise StateError("job already finalized", job_id=job_id, status=rec.status.value)
            if job_id in self._in_flight:
                raise StateError("verification already in flight", job_id=job_id, status=rec.status.value)
            self._in_flight.add(job_id)
            if self._queue.remove(job_id):
                metrics.record_dequeued(rec.spec.proof_type.value)
            return rec

    def _release_claim(self, rec: JobRecord) -> None:
        """Undo a claim after an unexpected error so the job can be retried."""
        with self._lock:
            self._in_flight.discard(rec.job_id)
            if rec.status is ProofStatus.PENDING and not self._queue.contains(rec.job_id):
                self._queue.enqueue(rec.spec.proof_type.code, rec.job_id)
                metrics.QUEUE_DEPTH.labels(proof_type=rec.spec.proof_type.value).inc()

    def _check(
        self,
        rec: JobRecord,
        proof_data: Tuple[int, ...],
        expected_hash: Optional[str],
        attestation_signature: bytes,
        enclave_measurement: Optional[str],
    ) -> str:
        """Return the proof hash, or raise ValidationError with the first failing check."""
        params = self.config.verifier
        if len(proof_data) < params.min_elements:
            raise ValidationError(RejectReason.TOO_SHORT, job_id=rec.job_id)
        if not attestation_signature:
            raise ValidationError(RejectReason.MISSING_ATTESTATION, job_id=rec.job_id)
        if enclave_measurement is not None and not self.enclaves.is_whitelisted(enclave_measurement):
            raise ValidationError(RejectReason.ENCLAVE_NOT_WHITELISTED, job_id=rec.job_id)
        with metrics.time_proof_verify(rec.spec.proof_type.value):
            return self._validator.check(
                proof_data, expected_hash, io_binding=rec.spec.io_binding, job_id=rec.job_id
            )

    # ---- terminal transitions (each runs under the lock, then publishes)

    def _finalize_verified(self, rec: JobRecord, worker_id: str, proof_hash: str) -> None:
        now = self._clock()
        with self._lock:
            self._in_flight.discard(rec.job_id)
            rec.status = ProofStatus.VERIFIED
            rec.proof_hash = proof_hash
            rec.worker_id = worker_id
            rec.verified_at = now
            rec.finalized_at = now
            self._verified_hashes.setdefault(proof_hash, rec.job_id)
            self._total_verified += 1
            recorded = self.outbox.record(rec.job_id, proof_hash)
            self._outgoing.append(ProofVerified.new(rec.job_id, worker_id, proof_hash, now))
        metrics.record_outcome(rec.spec.proof_type.value, "verified")
        log.info("jobs: verified job_id=%s worker=%s proof_hash=%s", rec.job_id, worker_id, proof_hash)
        self._flush_events()
        if recorded:
            self.outbox.deliver(rec.job_id)

    def _finalize_rejected(self, rec: JobRecord, reason: str) -> None:
        now = self._clock()
        with self._lock:
            self._in_flight.discard(rec.job_id)
            rec.status = ProofStatus.FAILED
            rec.reject_reason = reason
            rec.finalized_at = now
            self._total_rejected += 1
            self._outgoing.append(ProofRejected.new(rec.job_id, reason))
        metrics.record_outcome(rec.spec.proof_type.value, "rejected", reason)
        log.info("jobs: rejected job_id=%s reason=%s", rec.job_id, reason)
        self._flush_events()

    def _finalize_expired(self, rec: JobRecord, reason: str) -> None:
        with self._lock:
            self._in_flight.discard(rec.job_id)
            self._expire_locked(rec, reason)
        self._publish_expired(rec, reason)

    def _expire_locked(self, rec: JobRecord, reason: str) -> None:
        rec.status = ProofStatus.EXPIRED
        rec.reject_reason = reason
        rec.finalized_at = self._clock()
        self._total_expired += 1
        if self._queue.remove(rec.job_id):
            metrics.record_dequeued(rec.spec.proof_type.value)
        self._outgoing.append(ProofExpired.new(rec.job_id, reason))

    def _publish_expired(self, rec: JobRecord, reason: str) -> None:
        metrics.record_outcome(rec.spec.proof_type.value, "expired")
        log.info("jobs: expired job_id=%s reason=%s", rec.job_id, reason)
        self._flush_events()

    def _flush_events(self) -> None:
        """Publish queued events in the order their transitions happened."""
        with self._publish_lock:
            while True:
                with self._lock:
                    if not self._outgoing:
                        return
                    ev = self._outgoing.popleft()
                self.events.emit(ev)

    # ────────────────────────────────────────────────────────────────────────
    # Cancellation & expiry
    # ────────────────────────────────────────────────────────────────────────

    def cancel_proof_job(self, job_id: str, *, caller: str) -> None:
        """Admin-only: a Pending job becomes Expired and leaves the queue."""
        self.ownership.require_admin(caller, "cancel_proof_job")
        with self._lock:
            rec = self._require(job_id)
            if rec.status is not ProofStatus.PENDING:
                raise StateError("only pending jobs can be cancelled", job_id=job_id, status=rec.status.value)
            if job_id in self._in_flight:
                raise StateError("verification in flight", job_id=job_id, status=rec.status.value)
            self._expire_locked(rec, EXPIRY_CANCELLED)
        self._publish_expired(rec, EXPIRY_CANCELLED)

    def expire_stale_jobs(self, now: Optional[float] = None) -> List[str]:
        """Expire every Pending job whose challenge period has elapsed."""
        ts = self._clock() if now is None else float(now)
        expired: List[JobRecord] = []
        with self._lock:
            for rec in self._jobs.values():
                if (
                    rec.status is ProofStatus.PENDING
                    and rec.deadline is not None
                    and ts > rec.deadline
                    and rec.job_id not in self._in_flight
                ):
                    self._expire_locked(rec, EXPIRY_CHALLENGE_ELAPSED)
                    expired.append(rec)
        for rec in expired:
            self._publish_expired(rec, EXPIRY_CHALLENGE_ELAPSED)
        return [r.job_id for r in expired]

    # ────────────────────────────────────────────────────────────────────────
    # Queries
    # ────────────────────────────────────────────────────────────────────────

    def get_pending_jobs(self, proof_type: Union[ProofType, int, str], max_count: Optional[int] = None) -> List[str]:
        qp = self.config.queue
        limit = qp.default_list_limit if max_count is None else min(int(max_count), qp.max_list_limit)
        code = ProofType.parse(proof_type).code
        with self._lock:
            return self._queue.list(code, limit, is_pending=self._is_pending_locked)

    def get_pending_count(self, proof_type: Union[ProofType, int, str, None] = None) -> int:
        with self._lock:
            if proof_type is None:
                return sum(self._queue.live_count(pt.code) for pt in ProofType)
            return self._queue.live_count(ProofType.parse(proof_type).code)

    def get_job(self, job_id: str) -> JobRecord:
        """Snapshot of the job row; changing it does not touch the registry."""
        with self._lock:
            return replace(self._require(job_id))

    def get_status(self, job_id: str) -> ProofStatus:
        with self._lock:
            return self._require(job_id).status

    def is_proof_verified(self, proof_hash: str) -> bool:
        try:
            key = normalize_hex(proof_hash)
        except ValueError:
            return False
        with self._lock:
            return key in self._verified_hashes

    def get_stats(self) -> VerificationStats:
        with self._lock:
            pending = {pt.value: self._queue.live_count(pt.code) for pt in ProofType}
            return VerificationStats(
                total_submitted_jobs=self._total_submitted,
                total_verified=self._total_verified,
                total_rejected=self._total_rejected,
                total_expired=self._total_expired,
                whitelisted_count=self.enclaves.whitelisted_count(),
                pending_by_type=pending,
            )

    # ────────────────────────────────────────────────────────────────────────
    # Enclaves (delegated)
    # ────────────────────────────────────────────────────────────────────────

    def whitelist_enclave(
        self,
        measurement: str,
        tee_type: Union[TeeType, int, str],
        description: str = "",
        *,
        caller: str,
    ) -> EnclaveInfo:
        return self.enclaves.whitelist_enclave(measurement, tee_type, description, caller=caller)

    def revoke_enclave(self, measurement: str, *, caller: str) -> EnclaveInfo:
        return self.enclaves.revoke_enclave(measurement, caller=caller)

    def is_enclave_whitelisted(self, measurement: str) -> bool:
        return self.enclaves.is_whitelisted(measurement)

    # ────────────────────────────────────────────────────────────────────────
    # Administration
    # ────────────────────────────────────────────────────────────────────────

    def set_payment_gate(self, gate: PaymentGate, *, caller: str) -> None:
        self.ownership.require_admin(caller, "set_payment_gate")
        self.outbox.set_gate(gate)

    def redeliver_payments(self, *, caller: str) -> List[str]:
        self.ownership.require_admin(caller, "redeliver_payments")
        return self.outbox.redeliver()

    def pause(self, *, caller: str) -> None:
        self.ownership.require_admin(caller, "pause")
        with self._lock:
            self._paused = True
        log.warning("jobs: registry paused by=%s", caller)

    def unpause(self, *, caller: str) -> None:
        self.ownership.require_admin(caller, "unpause")
        with self._lock:
            self._paused = False
        log.warning("jobs: registry unpaused by=%s", caller)

    def is_paused(self) -> bool:
        with self._lock:
            return self._paused

    def compact_queue(self, proof_type: Union[ProofType, int, str], *, caller: str) -> int:
        self.ownership.require_admin(caller, "compact_queue")
        with self._lock:
            return self._queue.compact(ProofType.parse(proof_type).code)

    # ---- internals

    def _require(self, job_id: str) -> JobRecord:
        rec = self._jobs.get(job_id)
        if rec is None:
            raise NotFoundError(kind="job", key=job_id)
        return rec

    def _is_pending_locked(self, job_id: str) -> bool:
        rec = self._jobs.get(job_id)
        return rec is not None and rec.status is ProofStatus.PENDING


__all__ = ["ProofJobRegistry", "EXPIRY_CANCELLED", "EXPIRY_CHALLENGE_ELAPSED"]
