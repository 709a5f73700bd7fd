from __future__ import annotations

from .enclaves import EnclaveRegistry

__all__ = ["EnclaveRegistry"]
