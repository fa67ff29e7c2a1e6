"""Durable session store backed by a single JSON object file."""

import asyncio
import json
import os
import shutil
import tempfile
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from threading import RLock
from typing import Any, AsyncIterator, Callable, Literal

from loguru import logger

SendPolicy = Literal["allow", "deny"]
GroupActivation = Literal["mention", "always"]

MAIN_SESSION_KEY = "main"


def resolve_session_key(provider: str, chat_type: str, chat_address: str, main_key: str = MAIN_SESSION_KEY) -> str:
    """Direct chats share the main session; each group gets its own key."""
    if chat_type == "group":
        return f"{provider}:group:{chat_address}"
    return main_key


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass
class SessionEntry:
    """Persisted state for one session key."""

    session_id: str = field(default_factory=_new_session_id)
    updated_at: int = field(default_factory=_now_ms)
    send_policy: SendPolicy | None = None
    group_activation: GroupActivation | None = None
    chat_type: str | None = None
    provider: str | None = None
    subject: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("sessionId", "updatedAt", "sendPolicy", "groupActivation", "chatType", "provider", "subject")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data["sessionId"] = self.session_id
        data["updatedAt"] = self.updated_at
        optional = {
            "sendPolicy": self.send_policy,
            "groupActivation": self.group_activation,
            "chatType": self.chat_type,
            "provider": self.provider,
            "subject": self.subject,
        }
        for key, value in optional.items():
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionEntry":
        send_policy = data.get("sendPolicy")
        activation = data.get("groupActivation")
        try:
            updated_at = int(data.get("updatedAt") or 0)
        except (TypeError, ValueError):
            updated_at = 0
        return cls(
            session_id=str(data.get("sessionId") or _new_session_id()),
            updated_at=updated_at or _now_ms(),
            send_policy=send_policy if send_policy in ("allow", "deny") else None,
            group_activation=activation if activation in ("mention", "always") else None,
            chat_type=str(data["chatType"]) if data.get("chatType") else None,
            provider=str(data["provider"]) if data.get("provider") else None,
            subject=str(data["subject"]) if data.get("subject") else None,
            extra={k: v for k, v in data.items() if k not in cls._KNOWN},
        )

    def touch(self) -> None:
        self.updated_at = _now_ms()

    def reset(self) -> None:
        """Start a fresh conversation, keeping delivery and activation settings."""
        self.session_id = _new_session_id()
        self.extra.pop("summary", None)
        self.touch()


class SessionStore:
    """
    Maps session keys to session entries in one JSON file.

    Every update re-reads the whole file, merges in a single key and writes the
    file back through a temp file + atomic replace, so updates to different
    keys never clobber each other. Updates to the same key are serialized.
    """

    def __init__(self, store_path: Path):
        self.store_path = Path(store_path).expanduser()
        self._file_lock = RLock()
        # key -> (lock, number of callers holding or waiting on it)
        self._key_locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @staticmethod
    def _backup_path(path: Path) -> Path:
        return path.with_suffix(f"{path.suffix}.bak")

    @asynccontextmanager
    async def _key_lock(self, key: str) -> AsyncIterator[None]:
        lock, users = self._key_locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._key_locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            _, users = self._key_locks[key]
            if users <= 1:
                del self._key_locks[key]
            else:
                self._key_locks[key] = (lock, users - 1)

    def _read_file(self, path: Path) -> dict[str, Any]:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("session store root must be a JSON object")
        return data

    def _readable(self, path: Path) -> bool:
        if not path.exists():
            return False
        try:
            self._read_file(path)
        except (OSError, ValueError):
            return False
        return True

    def _read_raw(self) -> dict[str, Any]:
        path = self.store_path
        backup = self._backup_path(path)
        if path.exists():
            try:
                return self._read_file(path)
            except (OSError, ValueError) as e:
                logger.warning(f"Session store {path} is unreadable ({e}); trying backup")
        elif not backup.exists():
            return {}

        if backup.exists():
            try:
                data = self._read_file(backup)
                logger.warning(f"Recovered session store from backup file: {backup}")
                return data
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load session store backup {backup}: {e}")
        return {}

    def _write_raw(self, data: dict[str, Any]) -> None:
        path = self.store_path
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(data, ensure_ascii=False, indent=2) + "\n"
        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=str(path.parent),
                prefix=f"{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())

            # The primary file is swapped in one rename; it is never absent.
            if self._readable(path):
                shutil.copy2(path, self._backup_path(path))
            os.replace(tmp_path, path)
        except Exception:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink(missing_ok=True)
            raise

    def load(self) -> dict[str, SessionEntry]:
        """Read every entry from disk."""
        with self._file_lock:
            raw = self._read_raw()
        out: dict[str, SessionEntry] = {}
        for key, value in raw.items():
            if isinstance(value, dict):
                out[str(key)] = SessionEntry.from_dict(value)
        return out

    def _apply_update(
        self,
        key: str,
        mutate: Callable[[SessionEntry], None],
    ) -> SessionEntry:
        with self._file_lock:
            raw = self._read_raw()
            current = raw.get(key)
            entry = SessionEntry.from_dict(current) if isinstance(current, dict) else SessionEntry()
            mutate(entry)
            entry.touch()
            raw[key] = entry.to_dict()
            self._write_raw(raw)
            return entry

    def _apply_delete(self, key: str) -> bool:
        with self._file_lock:
            raw = self._read_raw()
            if key not in raw:
                return False
            raw.pop(key)
            self._write_raw(raw)
            return True

    async def get(self, key: str) -> SessionEntry | None:
        """Return the entry for a key, or None."""
        entries = await asyncio.to_thread(self.load)
        return entries.get(key)

    async def update(self, key: str, mutate: Callable[[SessionEntry], None]) -> SessionEntry:
        """
        Apply a mutation to one session and persist it.

        Args:
            key: Session key.
            mutate: Callback that edits the entry in place.

        Returns:
            The entry as written.
        """
        async with self._key_lock(key):
            return await asyncio.to_thread(self._apply_update, key, mutate)

    async def delete(self, key: str) -> bool:
        async with self._key_lock(key):
            return await asyncio.to_thread(self._apply_delete, key)

    def list_sessions(self) -> list[dict[str, Any]]:
        """
        List all sessions.

        Returns:
            Session info dicts, most recently updated first.
        """
        rows = [{"key": key, **entry.to_dict()} for key, entry in self.load().items()]
        return sorted(rows, key=lambda row: int(row.get("updatedAt") or 0), reverse=True)
