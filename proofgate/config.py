"""
proofgate.config: configuration for the proof verification gateway.

Covers:
- Verifier parameters: field modulus, minimum proof size, layer shape,
  proof-of-work difficulty
- Queue parameters: listing limits
- Job lifecycle: challenge period after which pending jobs expire
- Access: owner, admins and authorized job submitters

Environment overrides (all optional; sensible defaults provided):

  # Verifier
  PROOFGATE_FIELD_MODULUS=2147483647
  PROOFGATE_MIN_ELEMENTS=32
  PROOFGATE_MIN_LAYERS=4
  PROOFGATE_LAYER_WIDTH=3
  PROOFGATE_POW_BITS=16

  # Queue
  PROOFGATE_QUEUE_DEFAULT_LIMIT=100
  PROOFGATE_QUEUE_MAX_LIMIT=1000

  # Lifecycle (seconds; 0 disables expiry)
  PROOFGATE_CHALLENGE_PERIOD_SECONDS=86400

  # Access (comma separated lists)
  PROOFGATE_OWNER=0xowner
  PROOFGATE_ADMINS=0xadmin1,0xadmin2
  PROOFGATE_SUBMITTERS=0xjobmanager

You can also load from a JSON or YAML file via
`PROOFGATE_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

# Mersenne-31, the field the worker's STARK prover commits over.
M31 = (1 << 31) - 1


# -------------------------- Data classes --------------------------


@dataclass
class VerifierParams:
    """Shape and numeric bounds a submitted proof must satisfy."""
    field_modulus: int = M31
    min_elements: int = 32
    min_layers: int = 4
    layer_width: int = 3           # commitment + randomness + evaluations
    pow_bits: int = 16
    io_commitment_index: int = 4

    def validate(self) -> None:
        if self.field_modulus < 3:
            raise ValueError("field_modulus must be >= 3.")
        if self.layer_width < 3:
            raise ValueError("layer_width must be >= 3 (commitment, randomness, evaluations).")
        if self.min_layers < 1:
            raise ValueError("min_layers must be positive.")
        # commitments (2) + layers + trailing nonce must fit in the minimum size
        floor = 2 + self.min_layers * self.layer_width + 1
        if self.min_elements < floor:
            raise ValueError(f"min_elements must be >= {floor} for the configured layer shape (got {self.min_elements}).")
        if not (1 <= self.pow_bits <= 64):
            raise ValueError(f"pow_bits must be in [1, 64] (got {self.pow_bits}).")
        if not (2 <= self.io_commitment_index < self.min_elements - 1):
            raise ValueError("io_commitment_index must point inside the layer data.")


@dataclass
class QueueParams:
    """Limits applied to pending-queue enumeration."""
    default_list_limit: int = 100
    max_list_limit: int = 1_000

    def validate(self) -> None:
        if self.default_list_limit <= 0 or self.max_list_limit <= 0:
            raise ValueError("queue list limits must be positive.")
        if self.default_list_limit > self.max_list_limit:
            raise ValueError("default_list_limit must not exceed max_list_limit.")


@dataclass
class AccessParams:
    """Initial ownership; see proofgate.access.Ownership."""
    owner: str = ""
    admins: List[str] = field(default_factory=list)
    submitters: List[str] = field(default_factory=list)

    def validate(self) -> None:
        for name in (self.owner, *self.admins, *self.submitters):
            if name != name.strip():
                raise ValueError(f"access identities must not carry whitespace (got {name!r}).")


@dataclass
class GatewayConfig:
    """Top-level configuration container."""
    verifier: VerifierParams = field(default_factory=VerifierParams)
    queue: QueueParams = field(default_factory=QueueParams)
    access: AccessParams = field(default_factory=AccessParams)

    challenge_period_seconds: int = 86_400  # 0 disables expiry
    log_level: str = "INFO"

    def validate(self) -> None:
        self.verifier.validate()
        self.queue.validate()
        self.access.validate()
        if self.challenge_period_seconds < 0:
            raise ValueError("challenge_period_seconds must be >= 0.")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""), 0)
    except ValueError as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


def _getenv_list(name: str, default: List[str]) -> List[str]:
    v = os.getenv(name)
    if v is None:
        return list(default)
    return [p.strip() for p in v.split(",") if p.strip()]


def from_env(base: Optional[GatewayConfig] = None, prefix: str = "PROOFGATE_") -> GatewayConfig:
    """
    Build a GatewayConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or GatewayConfig()

    new_cfg = GatewayConfig(
        verifier=VerifierParams(
            field_modulus=_getenv_int(f"{prefix}FIELD_MODULUS", cfg.verifier.field_modulus),
            min_elements=_getenv_int(f"{prefix}MIN_ELEMENTS", cfg.verifier.min_elements),
            min_layers=_getenv_int(f"{prefix}MIN_LAYERS", cfg.verifier.min_layers),
            layer_width=_getenv_int(f"{prefix}LAYER_WIDTH", cfg.verifier.layer_width),
            pow_bits=_getenv_int(f"{prefix}POW_BITS", cfg.verifier.pow_bits),
            io_commitment_index=cfg.verifier.io_commitment_index,
        ),
        queue=QueueParams(
            default_list_limit=_getenv_int(f"{prefix}QUEUE_DEFAULT_LIMIT", cfg.queue.default_list_limit),
            max_list_limit=_getenv_int(f"{prefix}QUEUE_MAX_LIMIT", cfg.queue.max_list_limit),
        ),
        access=AccessParams(
            owner=os.getenv(f"{prefix}OWNER", cfg.access.owner).strip(),
            admins=_getenv_list(f"{prefix}ADMINS", cfg.access.admins),
            submitters=_getenv_list(f"{prefix}SUBMITTERS", cfg.access.submitters),
        ),
        challenge_period_seconds=_getenv_int(
            f"{prefix}CHALLENGE_PERIOD_SECONDS", cfg.challenge_period_seconds
        ),
        log_level=os.getenv(f"{prefix}LOG_LEVEL", cfg.log_level),
    )
    new_cfg.validate()
    return new_cfg


def from_file(path: str | os.PathLike[str]) -> GatewayConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")

    verifier = data.get("verifier", {})
    queue = data.get("queue", {})
    access = data.get("access", {})
    defaults = GatewayConfig()

    cfg = GatewayConfig(
        verifier=VerifierParams(
            field_modulus=int(verifier.get("field_modulus", defaults.verifier.field_modulus)),
            min_elements=int(verifier.get("min_elements", defaults.verifier.min_elements)),
            min_layers=int(verifier.get("min_layers", defaults.verifier.min_layers)),
            layer_width=int(verifier.get("layer_width", defaults.verifier.layer_width)),
            pow_bits=int(verifier.get("pow_bits", defaults.verifier.pow_bits)),
            io_commitment_index=int(verifier.get("io_commitment_index", defaults.verifier.io_commitment_index)),
        ),
        queue=QueueParams(
            default_list_limit=int(queue.get("default_list_limit", defaults.queue.default_list_limit)),
            max_list_limit=int(queue.get("max_list_limit", defaults.queue.max_list_limit)),
        ),
        access=AccessParams(
            owner=str(access.get("owner", defaults.access.owner)),
            admins=[str(a) for a in access.get("admins", defaults.access.admins)],
            submitters=[str(s) for s in access.get("submitters", defaults.access.submitters)],
        ),
        challenge_period_seconds=int(data.get("challenge_period_seconds", defaults.challenge_period_seconds)),
        log_level=str(data.get("log_level", defaults.log_level)),
    )
    cfg.validate()
    return cfg


def load() -> GatewayConfig:
    """
    Load configuration using the following precedence:
      1) File at $PROOFGATE_CONFIG_FILE (JSON/YAML)
      2) Environment variables (PROOFGATE_*), applied on top of defaults or file values
    """
    file_path = os.getenv("PROOFGATE_CONFIG_FILE")
    base = from_file(file_path) if file_path else GatewayConfig()
    return from_env(base=base)


# -------------------------- Utilities --------------------------


def pretty(cfg: Optional[GatewayConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "M31",
    "VerifierParams",
    "QueueParams",
    "AccessParams",
    "GatewayConfig",
    "from_env",
    "from_file",
    "load",
    "pretty",
]
