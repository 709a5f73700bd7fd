from __future__ import annotations

from .gate import LoggingPaymentGate, PaymentGate
from .outbox import PaymentNotice, PaymentOutbox

__all__ = ["PaymentGate", "LoggingPaymentGate", "PaymentNotice", "PaymentOutbox"]
