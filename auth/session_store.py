from __future__ import annotations

import asyncio
import json
import os
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import asdict
from pathlib import Path

from auth.errors import DuplicateState, SessionExpired, SessionNotFound, SessionStoreCorrupt
from auth.models import AuthorizedSession, PendingAuthorization


class SessionStore(ABC):
    """Owns pending authorizations (keyed by state) and authorized sessions.

    Every public operation runs under one ``asyncio.Lock``, so ``take_pending``
    is an atomic compare-and-remove: two callbacks racing on the same state get
    exactly one record between them.
    """

    def __init__(self, *, pending_ttl_seconds: float = 600) -> None:
        self.pending_ttl_seconds = pending_ttl_seconds
        self._lock = asyncio.Lock()

    async def put_pending(self, state: str, redirect_uri: str) -> PendingAuthorization:
        async with self._lock:
            pending_map = self._load_pending()
            if state in pending_map:
                raise DuplicateState(state)
            pending = PendingAuthorization(
                state=state,
                redirect_uri=redirect_uri,
                created_at=time.time(),
            )
            pending_map[state] = pending
            self._save_pending(pending_map)
            return pending

    async def take_pending(self, state: str) -> PendingAuthorization:
        async with self._lock:
            pending_map = self._load_pending()
            pending = pending_map.pop(state, None)
            if pending is None:
                raise SessionNotFound(state)
            self._save_pending(pending_map)

        if pending.is_expired(self.pending_ttl_seconds):
            raise SessionNotFound(state)
        return pending

    async def put_authorized(self, session: AuthorizedSession) -> None:
        async with self._lock:
            sessions = self._load_authorized()
            sessions[session.session_id] = session
            self._save_authorized(sessions)

    async def get_authorized(self, session_id: str) -> AuthorizedSession:
        async with self._lock:
            sessions = self._load_authorized()
            session = sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            if session.is_expired():
                del sessions[session_id]
                self._save_authorized(sessions)
                raise SessionExpired(session_id)
            return session

    async def delete_authorized(self, session_id: str) -> bool:
        async with self._lock:
            sessions = self._load_authorized()
            if sessions.pop(session_id, None) is None:
                return False
            self._save_authorized(sessions)
            return True

    async def evict_expired(self) -> int:
        now = time.time()
        async with self._lock:
            pending_map = self._load_pending()
            stale_states = [
                state
                for state, pending in pending_map.items()
                if pending.is_expired(self.pending_ttl_seconds, now=now)
            ]
            for state in stale_states:
                del pending_map[state]
            if stale_states:
                self._save_pending(pending_map)

            sessions = self._load_authorized()
            stale_sessions = [
                session_id
                for session_id, session in sessions.items()
                if session.is_expired(now=now)
            ]
            for session_id in stale_sessions:
                del sessions[session_id]
            if stale_sessions:
                self._save_authorized(sessions)

        return len(stale_states) + len(stale_sessions)

    # Storage primitives; always called with the lock held.

    @abstractmethod
    def _load_pending(self) -> dict[str, PendingAuthorization]:
        raise NotImplementedError

    @abstractmethod
    def _save_pending(self, pending_map: dict[str, PendingAuthorization]) -> None:
        raise NotImplementedError

    @abstractmethod
    def _load_authorized(self) -> dict[str, AuthorizedSession]:
        raise NotImplementedError

    @abstractmethod
    def _save_authorized(self, sessions: dict[str, AuthorizedSession]) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    def __init__(self, *, pending_ttl_seconds: float = 600) -> None:
        super().__init__(pending_ttl_seconds=pending_ttl_seconds)
        self._pending: dict[str, PendingAuthorization] = {}
        self._sessions: dict[str, AuthorizedSession] = {}

    def _load_pending(self) -> dict[str, PendingAuthorization]:
        return self._pending

    def _save_pending(self, pending_map: dict[str, PendingAuthorization]) -> None:
        self._pending = pending_map

    def _load_authorized(self) -> dict[str, AuthorizedSession]:
        return self._sessions

    def _save_authorized(self, sessions: dict[str, AuthorizedSession]) -> None:
        self._sessions = sessions


class FileSessionStore(SessionStore):
    """JSON-file backed store that survives restarts.

    Layout: ``{"pending": {state: {...}}, "authorized": {session_id: {...}}}``.
    Writes go through a temp file and ``os.replace`` so readers never see a
    partial document.
    """

    def __init__(
        self,
        path: str | Path = ".sessions.json",
        *,
        pending_ttl_seconds: float = 600,
    ) -> None:
        super().__init__(pending_ttl_seconds=pending_ttl_seconds)
        self._path = Path(path)

    def _load_pending(self) -> dict[str, PendingAuthorization]:
        return self._decode_records("pending", PendingAuthorization)

    def _save_pending(self, pending_map: dict[str, PendingAuthorization]) -> None:
        document = self._read_all()
        document["pending"] = {state: asdict(pending) for state, pending in pending_map.items()}
        self._write_all(document)

    def _load_authorized(self) -> dict[str, AuthorizedSession]:
        return self._decode_records("authorized", AuthorizedSession)

    def _save_authorized(self, sessions: dict[str, AuthorizedSession]) -> None:
        document = self._read_all()
        document["authorized"] = {
            session_id: asdict(session) for session_id, session in sessions.items()
        }
        self._write_all(document)

    def _decode_records(self, section: str, record_type) -> dict:
        records = self._read_all().get(section, {})
        if not isinstance(records, dict):
            raise SessionStoreCorrupt(self._path, f"'{section}' is not a JSON object")
        try:
            return {key: record_type(**fields) for key, fields in records.items()}
        except TypeError as error:
            raise SessionStoreCorrupt(self._path, f"malformed '{section}' record") from error

    def _read_all(self) -> dict[str, dict]:
        if not self._path.exists():
            return {}

        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as error:
            raise SessionStoreCorrupt(self._path, "not valid JSON") from error
        if not isinstance(document, dict):
            raise SessionStoreCorrupt(
                self._path, "expected an object with 'pending' and 'authorized' maps"
            )
        return document

    def _write_all(self, payload: dict[str, dict]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f"{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        tmp_path = Path(tmp_name)

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
