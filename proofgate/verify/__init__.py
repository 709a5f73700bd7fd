"""
Proof validation primitives.

- hashing:     domain-separated SHA3-256 commitments over field-element sequences
- field:       prime-field range checks
- pow:         grinding-resistance nonce check
- structural:  the ordered composition of the above
"""

from __future__ import annotations

from .field import all_in_field, first_out_of_range, in_field
from .hashing import io_commitment, pow_seed, proof_hash, proof_hash_hex, to_field
from .pow import difficulty_target, grind, verify_pow
from .structural import StructuralValidator, ValidationOutcome, expected_io_element, seal_proof

__all__ = [
    "in_field",
    "first_out_of_range",
    "all_in_field",
    "proof_hash",
    "proof_hash_hex",
    "pow_seed",
    "io_commitment",
    "to_field",
    "difficulty_target",
    "verify_pow",
    "grind",
    "StructuralValidator",
    "ValidationOutcome",
    "expected_io_element",
    "seal_proof",
]
