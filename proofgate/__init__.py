from __future__ import annotations
"""
proofgate - verification gateway for outsourced computation proofs.

Workers submit succinct proofs for registered jobs; the gateway validates the
proof's structure and embedded commitments, moves the job to a terminal
status exactly once, and notifies the payment layer once per verified job.
Submodules are lazily imported to keep import time minimal.

Public surface (lazily loaded):
- config, errors, metrics, codec, access, events
- types, verify, queue, registry, payments, jobs
- rpc, cli
"""


from typing import List

from .version import __version__

__all__: List[str] = [
    "__version__",
    "config",
    "errors",
    "metrics",
    "codec",
    "access",
    "events",
    "types",
    "verify",
    "queue",
    "registry",
    "payments",
    "jobs",
    "rpc",
    "cli",
]

# --- Lazy module loader (PEP 562) -------------------------------------------------
import importlib

_lazy_modules = set(__all__) - {"__version__"}


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules)


def get_version() -> str:
    """Return the proofgate package version string."""
    return __version__
