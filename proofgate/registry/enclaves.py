"""
Enclave whitelist registry.

Maps a hardware measurement (hex string) to an `EnclaveInfo`. Admins whitelist
and revoke measurements; everyone else can only look them up. Revocation is
explicit and keeps the record, so `get_info` still reports who authorized the
enclave and when it was revoked.

Re-whitelisting a revoked (or already whitelisted) measurement overwrites the
record with the new TEE type, description and authorizer.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Union

from proofgate import metrics
from proofgate.access import Ownership
from proofgate.errors import NotFoundError, StateError
from proofgate.events import EventBus
from proofgate.types.enclave import EnclaveInfo, TeeType
from proofgate.types.events import EnclaveRevoked, EnclaveWhitelisted
from proofgate.types.job import normalize_hex

log = logging.getLogger(__name__)


class EnclaveRegistry:
    def __init__(
        self,
        ownership: Ownership,
        *,
        events: Optional[EventBus] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._own = ownership
        self._events = events
        self._clock = clock
        self._lock = threading.Lock()
        self._enclaves: Dict[str, EnclaveInfo] = {}

    # ---- admin mutations

    def whitelist_enclave(
        self,
        measurement: str,
        tee_type: Union[TeeType, int, str],
        description: str = "",
        *,
        caller: str,
    ) -> EnclaveInfo:
        self._own.require_admin(caller, "whitelist_enclave")
        key = normalize_hex(measurement)
        tee = TeeType.parse(tee_type)
        info = EnclaveInfo(
            measurement=key,
            tee_type=tee,
            is_whitelisted=True,
            whitelisted_at=self._clock(),
            authorized_by=caller,
            description=description,
        )
        with self._lock:
            self._enclaves[key] = info
            snapshot = replace(info)
            count = self._count_locked()
        metrics.set_whitelisted(count)
        log.info("enclaves: whitelisted measurement=%s tee=%s by=%s", key, tee.name.lower(), caller)
        if self._events is not None:
            self._events.emit(EnclaveWhitelisted.new(key, caller))
        return snapshot

    def revoke_enclave(self, measurement: str, *, caller: str) -> EnclaveInfo:
        self._own.require_admin(caller, "revoke_enclave")
        key = normalize_hex(measurement)
        with self._lock:
            info = self._enclaves.get(key)
            if info is None:
                raise NotFoundError(kind="enclave", key=key)
            if not info.is_whitelisted:
                raise StateError("enclave already revoked", details={"measurement": key})
            info.is_whitelisted = False
            info.revoked_at = self._clock()
            info.revoked_by = caller
            snapshot = replace(info)
            count = self._count_locked()
        metrics.set_whitelisted(count)
        log.info("enclaves: revoked measurement=%s by=%s", key, caller)
        if self._events is not None:
            self._events.emit(EnclaveRevoked.new(key, caller))
        return snapshot

    # ---- lookups

    def is_whitelisted(self, measurement: str) -> bool:
        try:
            key = normalize_hex(measurement)
        except ValueError:
            return False
        with self._lock:
            info = self._enclaves.get(key)
            return bool(info and info.is_whitelisted)

    def get_tee_type(self, measurement: str) -> int:
        """u8 TEE code; 0 (unknown) for measurements never whitelisted."""
        with self._lock:
            info = self._enclaves.get(normalize_hex(measurement))
        return int(info.tee_type) if info else int(TeeType.UNKNOWN)

    def get_info(self, measurement: str) -> EnclaveInfo:
        """Copy of the stored record, revoked or not."""
        key = normalize_hex(measurement)
        with self._lock:
            info = self._enclaves.get(key)
            if info is None:
                raise NotFoundError(kind="enclave", key=key)
            return replace(info)

    def whitelisted_count(self) -> int:
        with self._lock:
            return self._count_locked()

    def list_enclaves(self, *, include_revoked: bool = False) -> List[EnclaveInfo]:
        with self._lock:
            return [replace(e) for e in self._enclaves.values() if include_revoked or e.is_whitelisted]

    def _count_locked(self) -> int:
        return sum(1 for e in self._enclaves.values() if e.is_whitelisted)


__all__ = ["EnclaveRegistry"]
