"""
Structural validation of a submitted proof blob.

Layout (ordered field elements, at least `min_elements` long):

    index 0          trace commitment           (non-zero)
    index 1          composition commitment     (non-zero)
    index 2..        layer data, each layer >= `layer_width` elements
                     (commitment, randomness, evaluations)
    index 4          IO commitment, when the job declares an IO binding
    index -1         proof-of-work nonce

Checks run in this order and stop at the first failure:

    1. length >= min_elements                    -> too_short
    2. commitments at 0 and 1 are non-zero       -> zero_commitment
    3. enough layer data from index 2 onward     -> insufficient_layers
    4. every element lies in the field           -> field_out_of_range
    5. nonce meets the grinding target           -> pow_insufficient
    6. IO commitment matches the job's binding   -> io_mismatch
    7. recomputed proof hash equals the claim    -> hash_mismatch

Only the coarse reason tag leaves this module. Algebraic soundness
(low-degree / FRI) is not checked here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from proofgate.config import VerifierParams
from proofgate.errors import RejectReason, ValidationError
from proofgate.types.job import IOBinding
from proofgate.verify import field as vfield
from proofgate.verify import hashing
from proofgate.verify import pow as vpow

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationOutcome:
    ok: bool
    reason: Optional[RejectReason] = None
    proof_hash: Optional[str] = None  # set once the full hash was computed

    def __bool__(self) -> bool:
        return self.ok


class StructuralValidator:
    """
    Decide whether a blob has the minimum shape of a valid succinct proof.

    Typical usage:
        v = StructuralValidator(cfg.verifier)
        outcome = v.validate(proof_data, submitted_hash, io_binding=spec.io_binding)
    """

    def __init__(self, params: Optional[VerifierParams] = None) -> None:
        self.params = params or VerifierParams()
        self.params.validate()

    def validate(
        self,
        proof_data: Sequence[int],
        expected_hash: Union[str, bytes, None],
        *,
        io_binding: Optional[IOBinding] = None,
    ) -> ValidationOutcome:
        """
        Run every check in order. `expected_hash=None` means the caller wants
        the hash computed server-side, so step 7 only records it.
        """
        p = self.params
        seq = tuple(proof_data)

        if len(seq) < p.min_elements:
            return self._reject(RejectReason.TOO_SHORT, len(seq))

        if seq[0] == 0 or seq[1] == 0:
            return self._reject(RejectReason.ZERO_COMMITMENT, len(seq))

        # The nonce trails the layer data but is counted here, as the
        # layer region is everything from index 2 onward.
        if len(seq) - 2 < p.min_layers * p.layer_width:
            return self._reject(RejectReason.INSUFFICIENT_LAYERS, len(seq))

        if vfield.first_out_of_range(seq, p.field_modulus) is not None:
            return self._reject(RejectReason.FIELD_OUT_OF_RANGE, len(seq))

        if not vpow.verify_pow(hashing.pow_seed(seq), seq[-1], p.pow_bits):
            return self._reject(RejectReason.POW_INSUFFICIENT, len(seq))

        if io_binding is not None:
            expected_io = expected_io_element(io_binding, p.field_modulus)
            if seq[p.io_commitment_index] != expected_io:
                return self._reject(RejectReason.IO_MISMATCH, len(seq))

        computed = hashing.proof_hash_hex(seq)
        if expected_hash is not None and _norm(expected_hash) != computed:
            return self._reject(RejectReason.HASH_MISMATCH, len(seq))

        return ValidationOutcome(ok=True, proof_hash=computed)

    def is_valid(
        self,
        proof_data: Sequence[int],
        expected_hash: Union[str, bytes, None],
        *,
        io_binding: Optional[IOBinding] = None,
    ) -> bool:
        return self.validate(proof_data, expected_hash, io_binding=io_binding).ok

    def check(
        self,
        proof_data: Sequence[int],
        expected_hash: Union[str, bytes, None],
        *,
        io_binding: Optional[IOBinding] = None,
        job_id: Optional[str] = None,
    ) -> str:
        """Like validate, but return the proof hash or raise ValidationError."""
        outcome = self.validate(proof_data, expected_hash, io_binding=io_binding)
        if not outcome.ok or outcome.proof_hash is None:
            raise ValidationError(outcome.reason or RejectReason.HASH_MISMATCH, job_id=job_id)
        return outcome.proof_hash

    @staticmethod
    def _reject(reason: RejectReason, n: int) -> ValidationOutcome:
        log.debug("structural: reject reason=%s elements=%d", reason.value, n)
        return ValidationOutcome(ok=False, reason=reason)


def expected_io_element(binding: IOBinding, modulus: int) -> int:
    """Field element a proof must carry at the IO commitment slot."""
    digest = hashing.io_commitment(
        binding.inputs, binding.outputs, binding.trace_length, binding.trace_width
    )
    return hashing.to_field(digest, modulus)


def seal_proof(
    body: Sequence[int],
    params: Optional[VerifierParams] = None,
    *,
    io_binding: Optional[IOBinding] = None,
) -> Tuple[Tuple[int, ...], str]:
    """
    Prover-side helper: embed the IO commitment (if any), grind the trailing
    nonce, and return (proof_data, proof_hash_hex).

    `body` is the proof without its nonce, so the result is one element longer.
    """
    p = params or VerifierParams()
    elems = [int(x) for x in body]
    if io_binding is not None:
        if len(elems) <= p.io_commitment_index:
            raise ValueError("proof body too short to carry an IO commitment")
        elems[p.io_commitment_index] = expected_io_element(io_binding, p.field_modulus)
    seed = hashing.pow_seed(tuple(elems) + (0,))
    nonce = vpow.grind(seed, p.pow_bits, max_nonce=p.field_modulus - 1)
    sealed = tuple(elems) + (nonce,)
    return sealed, hashing.proof_hash_hex(sealed)


def _norm(h: Union[str, bytes]) -> str:
    if isinstance(h, (bytes, bytearray)):
        return "0x" + bytes(h).hex()
    s = str(h).strip().lower()
    return s if s.startswith("0x") else "0x" + s


__all__ = [
    "ValidationOutcome",
    "StructuralValidator",
    "expected_io_element",
    "seal_proof",
]
