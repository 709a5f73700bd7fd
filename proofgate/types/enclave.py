"""
Enclave whitelist records, keyed by hardware measurement.

The gateway never parses or verifies attestation evidence itself; it only
answers whether a measurement was authorized by an admin.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional


class TeeType(IntEnum):
    """Stable u8 codes for TEE families."""
    UNKNOWN = 0
    SGX = 1
    TDX = 2
    SEV_SNP = 3
    CCA = 4
    NVIDIA_CC = 5

    @classmethod
    def parse(cls, value: Any) -> "TeeType":
        if isinstance(value, TeeType):
            return value
        if isinstance(value, int):
            return cls(value)
        s = str(value).strip()
        if s.isdigit():
            return cls(int(s))
        try:
            return cls[s.upper().replace("-", "_")]
        except KeyError:
            raise ValueError(f"unknown TEE type: {value!r}") from None


@dataclass
class EnclaveInfo:
    measurement: str
    tee_type: TeeType
    is_whitelisted: bool
    whitelisted_at: float
    authorized_by: str
    description: str = ""
    revoked_at: Optional[float] = None
    revoked_by: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "measurement": self.measurement,
            "tee_type": int(self.tee_type),
            "tee_name": self.tee_type.name.lower(),
            "is_whitelisted": bool(self.is_whitelisted),
            "whitelisted_at": self.whitelisted_at,
            "authorized_by": self.authorized_by,
            "description": self.description,
            "revoked_at": self.revoked_at,
            "revoked_by": self.revoked_by,
        }


__all__ = ["TeeType", "EnclaveInfo"]
