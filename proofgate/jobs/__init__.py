from __future__ import annotations

from .registry import ProofJobRegistry

__all__ = ["ProofJobRegistry"]
