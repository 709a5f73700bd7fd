"""
Ownership and capability checks.

The gateway never consults global state to decide who may do what. An
`Ownership` value is built once (usually from config) and injected into the
registries; admin-only operations call `require_*` before touching state, so a
refused call has no side effects.

Roles
-----
- owner        implicit admin; the only identity that can change the admin set
- admins       cancel jobs, manage the enclave whitelist, pause, swap the payment gate
- submitters   when non-empty, the only identities allowed to register jobs
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional, Set

from proofgate.config import AccessParams
from proofgate.errors import AuthorizationError


@dataclass
class Ownership:
    owner: str = ""
    admins: Set[str] = field(default_factory=set)
    submitters: Set[str] = field(default_factory=set)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @classmethod
    def from_params(cls, params: AccessParams) -> "Ownership":
        return cls(owner=params.owner, admins=set(params.admins), submitters=set(params.submitters))

    # ---- predicates

    def is_owner(self, caller: Optional[str]) -> bool:
        return bool(caller) and caller == self.owner

    def is_admin(self, caller: Optional[str]) -> bool:
        return self.is_owner(caller) or (bool(caller) and caller in self.admins)

    def may_submit_jobs(self, caller: Optional[str]) -> bool:
        if not self.submitters:
            return True
        return bool(caller) and (caller in self.submitters or self.is_admin(caller))

    # ---- guards

    def require_admin(self, caller: Optional[str], action: str) -> None:
        if not self.is_admin(caller):
            raise AuthorizationError(caller=caller, action=action)

    def require_owner(self, caller: Optional[str], action: str) -> None:
        if not self.is_owner(caller):
            raise AuthorizationError(caller=caller, action=action)

    def require_submitter(self, caller: Optional[str], action: str = "submit_proof_job") -> None:
        if not self.may_submit_jobs(caller):
            raise AuthorizationError(caller=caller, action=action)

    # ---- management (owner only)

    def add_admin(self, admin: str, *, caller: str) -> None:
        self.require_owner(caller, "add_admin")
        with self._lock:
            self.admins.add(admin)

    def remove_admin(self, admin: str, *, caller: str) -> None:
        self.require_owner(caller, "remove_admin")
        with self._lock:
            self.admins.discard(admin)

    def set_submitter(self, submitter: str, allowed: bool, *, caller: str) -> None:
        self.require_admin(caller, "set_authorized_submitter")
        with self._lock:
            if allowed:
                self.submitters.add(submitter)
            else:
                self.submitters.discard(submitter)


__all__ = ["Ownership"]
