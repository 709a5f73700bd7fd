"""
Grinding resistance: proof-of-work over the proof body.

    digest = SHA3-256( _POW_DOMAIN || seed || u64be(nonce) )
    accept iff nonce != 0 and int(digest) < 2**(256 - bits)

`seed` is the body hash from proofgate.verify.hashing.pow_seed, so the nonce
is bound to every other element of the proof. Forging a blob that merely
passes the structural checks therefore costs ~2**bits hash evaluations per
attempt, independent of whether the proof is algebraically valid.
"""

from __future__ import annotations

import hashlib
import struct
from typing import Optional

_POW_DOMAIN = b"proofgate/pow/v1\x00"
_U64_MAX = (1 << 64) - 1

DEFAULT_POW_BITS = 16


def difficulty_target(bits: int) -> int:
    """Exclusive upper bound a digest must fall under for `bits` leading zeros."""
    if not (0 <= bits <= 256):
        raise ValueError("bits must be in [0, 256]")
    return 1 << (256 - bits)


def pow_digest(seed: bytes, nonce: int) -> bytes:
    if len(seed) != 32:
        raise ValueError("pow seed must be 32 bytes")
    if nonce < 0 or nonce > _U64_MAX:
        raise ValueError("nonce must fit in uint64")
    return hashlib.sha3_256(_POW_DOMAIN + seed + struct.pack(">Q", nonce)).digest()


def leading_zero_bits(digest: bytes) -> int:
    v = int.from_bytes(digest, "big")
    return len(digest) * 8 - v.bit_length()


def verify_pow(seed: bytes, nonce: int, bits: int = DEFAULT_POW_BITS) -> bool:
    """Check a nonce against the difficulty target. Nonce 0 is always rejected."""
    if isinstance(nonce, bool) or not isinstance(nonce, int):
        return False
    if nonce <= 0 or nonce > _U64_MAX:
        return False
    digest = pow_digest(seed, nonce)
    return int.from_bytes(digest, "big") < difficulty_target(bits)


def grind(
    seed: bytes,
    bits: int = DEFAULT_POW_BITS,
    *,
    start: int = 1,
    max_nonce: Optional[int] = None,
) -> int:
    """
    Find the first nonce >= start that satisfies `bits` of difficulty.

    Provers do this off-gateway; the helper exists for tooling and tests.
    `max_nonce` bounds the search (e.g. the field modulus minus one, so the
    nonce is itself a valid field element).
    """
    if start < 1:
        start = 1
    limit = _U64_MAX if max_nonce is None else min(int(max_nonce), _U64_MAX)
    target = difficulty_target(bits)
    nonce = start
    while nonce <= limit:
        if int.from_bytes(pow_digest(seed, nonce), "big") < target:
            return nonce
        nonce += 1
    raise ValueError(f"no nonce in [{start}, {limit}] satisfies {bits} bits")


__all__ = [
    "DEFAULT_POW_BITS",
    "difficulty_target",
    "pow_digest",
    "leading_zero_bits",
    "verify_pow",
    "grind",
]
