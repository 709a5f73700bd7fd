from __future__ import annotations

from .pending import PendingQueue, Slot

__all__ = ["PendingQueue", "Slot"]
