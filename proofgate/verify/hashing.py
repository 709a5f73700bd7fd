"""
Commitment/hash engine over ordered field-element sequences.

Definitions
-----------
proof_hash(seq) = SHA3-256(
    domain("proofgate/proof-hash/v1") || 0x00 ||
    u64_be(len(seq)) ||
    felt(seq[0]) || felt(seq[1]) || ...
)

pow_seed(seq) = SHA3-256(
    domain("proofgate/pow-seed/v1") || 0x00 ||
    u64_be(len(seq) - 1) || felt(seq[0]) || ... || felt(seq[-2])
)

io_commitment(inputs, outputs, trace_length, trace_width) = SHA3-256(
    domain("proofgate/io-commitment/v1") || 0x00 ||
    u64_be(len(inputs))  || felt(inputs...)  ||
    u64_be(len(outputs)) || felt(outputs...) ||
    u64_be(trace_length) || u64_be(trace_width)
)

where felt(x) is the 32-byte big-endian encoding of 0 <= x < 2**256.

Notes
-----
- Fixed-width element encoding plus the length prefix make the preimage
  unambiguous; element order is part of the preimage, so swapping or inserting
  elements changes the digest.
- Never replace this with an additive or XOR fold: those commute and let a
  submitter pick elements that cancel out.
- If you change a domain tag or layout, proofs produced by existing workers
  stop verifying. Bump the /vN suffix instead of editing in place.
"""

from __future__ import annotations

import hashlib
import struct
from typing import Iterable, Sequence

DOMAIN_PROOF_HASH = b"proofgate/proof-hash/v1"
DOMAIN_POW_SEED = b"proofgate/pow-seed/v1"
DOMAIN_IO_COMMITMENT = b"proofgate/io-commitment/v1"

FELT_BYTES = 32
_FELT_LIMIT = 1 << (8 * FELT_BYTES)


def felt_bytes(x: int) -> bytes:
    """Fixed-width 32-byte big-endian encoding of one element."""
    v = int(x)
    if v < 0 or v >= _FELT_LIMIT:
        raise ValueError(f"element does not fit in {FELT_BYTES} bytes: {x!r}")
    return v.to_bytes(FELT_BYTES, "big")


def _u64(n: int) -> bytes:
    return struct.pack(">Q", int(n))


def _absorb(buf: bytearray, seq: Iterable[int]) -> None:
    for x in seq:
        buf += felt_bytes(x)


def _digest(domain: bytes, seq: Sequence[int]) -> bytes:
    buf = bytearray(domain + b"\x00")
    buf += _u64(len(seq))
    _absorb(buf, seq)
    return hashlib.sha3_256(buf).digest()


def proof_hash(seq: Sequence[int]) -> bytes:
    """32-byte commitment over the full proof sequence."""
    return _digest(DOMAIN_PROOF_HASH, seq)


def proof_hash_hex(seq: Sequence[int]) -> str:
    """`proof_hash` as 0x-prefixed lowercase hex (the form stored on records)."""
    return "0x" + proof_hash(seq).hex()


def pow_seed(seq: Sequence[int]) -> bytes:
    """
    Hash of the proof body, i.e. everything except the trailing nonce.
    The grinding check binds the nonce to this value.
    """
    if len(seq) < 1:
        raise ValueError("pow_seed needs at least the nonce element")
    return _digest(DOMAIN_POW_SEED, seq[:-1])


def io_commitment(
    inputs: Sequence[int],
    outputs: Sequence[int],
    trace_length: int,
    trace_width: int,
) -> bytes:
    """Bind a job's declared inputs/outputs and trace shape into one digest."""
    if trace_length < 0 or trace_width < 0:
        raise ValueError("trace dimensions must be non-negative")
    buf = bytearray(DOMAIN_IO_COMMITMENT + b"\x00")
    buf += _u64(len(inputs))
    _absorb(buf, inputs)
    buf += _u64(len(outputs))
    _absorb(buf, outputs)
    buf += _u64(trace_length)
    buf += _u64(trace_width)
    return hashlib.sha3_256(buf).digest()


def to_field(digest: bytes, modulus: int) -> int:
    """
    Reduce a digest to a non-zero element of F_modulus, for embedding a
    commitment inside the proof itself.
    """
    if modulus < 2:
        raise ValueError("modulus must be >= 2")
    v = int.from_bytes(digest, "big") % modulus
    return v if v != 0 else 1


def hex_to_digest(h: str) -> bytes:
    """Parse a 0x-hex proof hash back to 32 bytes."""
    s = h[2:] if h.startswith(("0x", "0X")) else h
    b = bytes.fromhex(s)
    if len(b) != 32:
        raise ValueError("proof hash must be 32 bytes")
    return b


__all__ = [
    "DOMAIN_PROOF_HASH",
    "DOMAIN_POW_SEED",
    "DOMAIN_IO_COMMITMENT",
    "felt_bytes",
    "proof_hash",
    "proof_hash_hex",
    "pow_seed",
    "io_commitment",
    "to_field",
    "hex_to_digest",
]
