"""
Prime-field range checks for submitted proof elements.

Proofs are evaluated over a specific prime field (M31 = 2**31 - 1 by default).
A value outside [0, modulus) is not a field element at all; seeing one means
the blob is malformed or adversarial, and the whole proof is rejected.

This module deliberately does no arithmetic: the gateway checks shape, not
algebra.
"""

from __future__ import annotations

from typing import Iterable, Optional

from proofgate.config import M31


def in_field(value: int, modulus: int = M31) -> bool:
    """True iff 0 <= value < modulus. Non-integers are never field elements."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 0 <= value < modulus


def first_out_of_range(seq: Iterable[int], modulus: int = M31) -> Optional[int]:
    """Index of the first element outside the field, or None if all are in range."""
    for i, v in enumerate(seq):
        if not in_field(v, modulus):
            return i
    return None


def all_in_field(seq: Iterable[int], modulus: int = M31) -> bool:
    return first_out_of_range(seq, modulus) is None


__all__ = ["in_field", "first_out_of_range", "all_in_field"]
