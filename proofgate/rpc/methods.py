from __future__ import annotations

"""
proofgate.rpc.methods
---------------------

JSON-RPC style method implementations over a `ProofJobRegistry`.

Exposed methods (bind via `make_methods`):
  • proofgate.submitJob
  • proofgate.submitProof
  • proofgate.verifyProof
  • proofgate.getJob
  • proofgate.getPendingJobs
  • proofgate.isProofVerified
  • proofgate.isEnclaveWhitelisted
  • proofgate.getEnclave
  • proofgate.getStats

Admin operations (cancel, whitelist, pause) are not exposed here; they need an
authenticated caller identity that this transport does not carry.

Usage:
    from proofgate.rpc.methods import make_methods
    methods = make_methods(registry)
    dispatcher.register_many(methods)
"""

from typing import Any, Callable, Dict, List, Optional

from proofgate.errors import (AuthorizationError, NotFoundError,
                              ProofGateError, StateError)
from proofgate.jobs.registry import ProofJobRegistry
from proofgate.metrics import exposition
from proofgate.types.job import (ProofJobSpec, ProofSubmission, as_bytes,
                                 as_proof_data)


class RpcError(ProofGateError):
    """Malformed request parameters."""
    code = "PROOFGATE_BAD_REQUEST"


def _coerce_int(value: Any, name: str) -> int:
    try:
        iv = int(value)
        if iv < 0:
            raise ValueError
        return iv
    except (TypeError, ValueError) as e:
        raise RpcError(f"invalid {name}: must be a non-negative integer") from e


def _require(value: Any, name: str) -> None:
    if value is None or value == "":
        raise RpcError(f"{name} is required")


# ---- JSON-RPC method factory ----------------------------------------------

def make_methods(registry: ProofJobRegistry) -> Dict[str, Callable[..., Any]]:
    """
    Build a mapping of JSON-RPC method name -> callable.
    Each callable returns plain JSON-serializable structures.
    """

    def pg_submit_job(*, spec: Dict[str, Any], caller: Optional[str] = None) -> Dict[str, Any]:
        _require(spec, "spec")
        try:
            job_spec = ProofJobSpec.from_dict(spec)
        except (KeyError, TypeError, ValueError) as e:
            raise RpcError(f"invalid spec: {e}") from e
        job_id = registry.submit_proof_job(job_spec, caller=caller)
        return {"jobId": job_id, "status": registry.get_status(job_id).value}

    def pg_submit_proof(*, submission: Dict[str, Any]) -> Dict[str, Any]:
        _require(submission, "submission")
        try:
            sub = ProofSubmission.from_dict(submission)
        except (KeyError, TypeError, ValueError) as e:
            raise RpcError(f"invalid submission: {e}") from e
        ok = registry.submit_proof(sub)
        return _result(registry, sub.job_id, ok)

    def pg_verify_proof(
        *,
        jobId: str,
        proofData: List[Any],
        workerId: str,
        attestationSignature: str,
        enclaveMeasurement: Optional[str] = None,
    ) -> Dict[str, Any]:
        _require(jobId, "jobId")
        try:
            data = as_proof_data(proofData or [])
            sig = as_bytes(attestationSignature)
        except (TypeError, ValueError) as e:
            raise RpcError(f"invalid proof payload: {e}") from e
        ok = registry.verify_proof(
            jobId,
            data,
            worker_id=workerId,
            attestation_signature=sig,
            enclave_measurement=enclaveMeasurement,
        )
        return _result(registry, jobId, ok)

    def pg_get_job(*, jobId: str) -> Dict[str, Any]:
        _require(jobId, "jobId")
        return registry.get_job(jobId).to_dict()

    def pg_get_pending_jobs(*, proofType: Any, maxCount: Optional[int] = None) -> Dict[str, Any]:
        _require(proofType, "proofType")
        limit = None if maxCount is None else _coerce_int(maxCount, "maxCount")
        try:
            items = registry.get_pending_jobs(proofType, limit)
        except ValueError as e:
            raise RpcError(str(e)) from e
        return {"items": items, "count": len(items)}

    def pg_is_proof_verified(*, proofHash: str) -> Dict[str, Any]:
        _require(proofHash, "proofHash")
        return {"proofHash": proofHash, "verified": registry.is_proof_verified(proofHash)}

    def pg_is_enclave_whitelisted(*, measurement: str) -> Dict[str, Any]:
        _require(measurement, "measurement")
        return {"measurement": measurement, "whitelisted": registry.is_enclave_whitelisted(measurement)}

    def pg_get_enclave(*, measurement: str) -> Dict[str, Any]:
        _require(measurement, "measurement")
        try:
            return registry.enclaves.get_info(measurement).to_dict()
        except ValueError as e:
            raise RpcError(str(e)) from e

    def pg_get_stats() -> Dict[str, Any]:
        out = registry.get_stats().to_dict()
        out["paused"] = registry.is_paused()
        return out

    return {
        "proofgate.submitJob": pg_submit_job,
        "proofgate.submitProof": pg_submit_proof,
        "proofgate.verifyProof": pg_verify_proof,
        "proofgate.getJob": pg_get_job,
        "proofgate.getPendingJobs": pg_get_pending_jobs,
        "proofgate.isProofVerified": pg_is_proof_verified,
        "proofgate.isEnclaveWhitelisted": pg_is_enclave_whitelisted,
        "proofgate.getEnclave": pg_get_enclave,
        "proofgate.getStats": pg_get_stats,
    }


def _result(registry: ProofJobRegistry, job_id: str, ok: bool) -> Dict[str, Any]:
    rec = registry.get_job(job_id)
    return {
        "jobId": job_id,
        "verified": ok,
        "status": rec.status.value,
        "reason": rec.reject_reason,
        "proofHash": rec.proof_hash,
    }


def _http_status(e: ProofGateError) -> int:
    if isinstance(e, NotFoundError):
        return 404
    if isinstance(e, AuthorizationError):
        return 403
    if isinstance(e, StateError):
        return 409
    return 400


# ---- REST adapter (FastAPI) -----------------------------------------------

def build_rest_router(registry: ProofJobRegistry):
    """
    Return a FastAPI APIRouter exposing the same methods as REST endpoints.
    Domain errors map to 400/403/404/409 with the error's `to_dict()` as detail.
    """
    from fastapi import APIRouter, Body, HTTPException, Query, Response

    router = APIRouter()
    methods = make_methods(registry)

    def _call(name: str, **kwargs: Any) -> Any:
        try:
            return methods[name](**kwargs)
        except ProofGateError as e:
            raise HTTPException(status_code=_http_status(e), detail=e.to_dict()) from e

    @router.post("/jobs")
    def http_submit_job(spec: Dict[str, Any] = Body(...), caller: Optional[str] = None):
        return _call("proofgate.submitJob", spec=spec, caller=caller)

    @router.get("/jobs/{job_id}")
    def http_get_job(job_id: str):
        return _call("proofgate.getJob", jobId=job_id)

    @router.post("/jobs/{job_id}/proof")
    def http_submit_proof(job_id: str, submission: Dict[str, Any] = Body(...)):
        submission = dict(submission, job_id=job_id)
        return _call("proofgate.submitProof", submission=submission)

    @router.post("/jobs/{job_id}/verify")
    def http_verify_proof(job_id: str, payload: Dict[str, Any] = Body(...)):
        return _call(
            "proofgate.verifyProof",
            jobId=job_id,
            proofData=payload.get("proof_data", []),
            workerId=str(payload.get("worker_id", "")),
            attestationSignature=payload.get("attestation_signature", ""),
            enclaveMeasurement=payload.get("enclave_measurement"),
        )

    @router.get("/pending/{proof_type}")
    def http_pending(proof_type: str, limit: Optional[int] = Query(None, ge=0)):
        return _call("proofgate.getPendingJobs", proofType=proof_type, maxCount=limit)

    @router.get("/proofs/{proof_hash}")
    def http_is_verified(proof_hash: str):
        return _call("proofgate.isProofVerified", proofHash=proof_hash)

    @router.get("/enclaves/{measurement}")
    def http_get_enclave(measurement: str):
        return _call("proofgate.getEnclave", measurement=measurement)

    @router.get("/stats")
    def http_stats():
        return _call("proofgate.getStats")

    @router.get("/metrics")
    def http_metrics():
        payload, content_type = exposition()
        return Response(payload, media_type=content_type)

    return router


__all__ = ["RpcError", "make_methods", "build_rest_router"]
