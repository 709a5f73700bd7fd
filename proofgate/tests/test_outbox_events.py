from __future__ import annotations

import pytest

from proofgate.access import Ownership
from proofgate.errors import AuthorizationError
from proofgate.events import EventBus
from proofgate.payments import LoggingPaymentGate, PaymentGate, PaymentOutbox
from proofgate.types.events import (EventType, ProofRejected, ProofVerified,
                                    event_from_dict)

from .conftest import FakeClock, RecordingGate


def test_outbox_records_once_per_job():
    gate = RecordingGate()
    box = PaymentOutbox(gate, clock=FakeClock())
    assert box.record("job-1", "0xaa") is True
    assert box.record("job-1", "0xbb") is False
    assert len(box) == 1
    assert box.deliver("job-1") is True
    assert box.deliver("job-1") is False
    assert gate.calls == [("job-1", "0xaa")]
    notice = box.get("job-1")
    assert notice is not None and notice.delivered and notice.attempts == 1


def test_outbox_keeps_failed_notice_for_redelivery():
    gate = RecordingGate()
    gate.fail = True
    box = PaymentOutbox(gate)
    box.record("job-1", "0xaa")
    assert box.deliver("job-1") is False
    notice = box.get("job-1")
    assert notice.last_error.startswith("RuntimeError")
    assert not notice.delivered

    gate.fail = False
    assert box.redeliver() == ["job-1"]
    assert box.undelivered() == []
    assert box.get("job-1").attempts == 2
    assert gate.calls == [("job-1", "0xaa")]


def test_deliver_unknown_job_is_noop():
    box = PaymentOutbox(RecordingGate())
    assert box.deliver("missing") is False


def test_interrupted_delivery_can_be_retried():
    gate = RecordingGate()
    box = PaymentOutbox(gate)
    box.record("job-1", "0xaa")

    def interrupt(job_id, proof_hash):
        raise KeyboardInterrupt

    gate.on_proof_verified = interrupt
    with pytest.raises(KeyboardInterrupt):
        box.deliver("job-1")
    del gate.on_proof_verified

    assert box.redeliver() == ["job-1"]
    assert gate.calls == [("job-1", "0xaa")]


def test_outbox_get_returns_copy():
    box = PaymentOutbox(RecordingGate())
    box.record("job-1", "0xaa")
    box.get("job-1").delivered_at = 1.0
    assert [n.job_id for n in box.undelivered()] == ["job-1"]
    assert box.deliver("job-1") is True


def test_logging_gate_satisfies_protocol():
    gate = LoggingPaymentGate()
    assert isinstance(gate, PaymentGate)
    gate.on_proof_verified("job-1", "0xaa")
    assert gate.notified == [("job-1", "0xaa")]


def test_event_bus_log_and_subscribers():
    bus = EventBus()
    seen = []
    unsubscribe = bus.subscribe(seen.append)
    bus.emit(ProofRejected.new("job-1", "too_short"))
    unsubscribe()
    bus.emit(ProofVerified.new("job-2", "0xw", "0xaa", 1.0))
    assert [e.job_id for e in seen] == ["job-1"]
    assert [e.job_id for e in bus.events()] == ["job-1", "job-2"]
    assert [e.job_id for e in bus.events(EventType.VERIFIED)] == ["job-2"]
    bus.clear()
    assert bus.events() == []


def test_event_bus_bounded_log():
    bus = EventBus(keep=2)
    for i in range(5):
        bus.emit(ProofRejected.new(f"job-{i}", "too_short"))
    assert [e.job_id for e in bus.events()] == ["job-3", "job-4"]


def test_event_dict_round_trip():
    ev = ProofVerified.new("job-1", "0xw", "0xaa", 12.5)
    d = ev.to_dict()
    assert d["etype"] == "ProofVerified"
    assert event_from_dict(d) == ev


def test_ownership_roles():
    own = Ownership(owner="0xo", admins={"0xa"})
    assert own.is_admin("0xo") and own.is_admin("0xa")
    assert not own.is_admin("0xw") and not own.is_admin(None)
    assert own.may_submit_jobs("anyone")

    own.set_submitter("0xjm", True, caller="0xa")
    assert own.may_submit_jobs("0xjm")
    assert not own.may_submit_jobs("anyone")

    with pytest.raises(AuthorizationError):
        own.add_admin("0xb", caller="0xa")
    own.add_admin("0xb", caller="0xo")
    assert own.is_admin("0xb")
    own.remove_admin("0xb", caller="0xo")
    assert not own.is_admin("0xb")
