"""Durable storage for the session list.

The whole list is one JSON blob under ``STORAGE_KEY`` in a key-value store.
It is read once at startup and overwritten wholesale after every mutation.

File layout (FileBlobStore):
  $DATA_DIR/<key>.json
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path
from typing import Protocol, runtime_checkable

from acp_chat.logging import get_logger
from acp_chat.state.models import Session, ToolStatus

log = get_logger("storage")

STORAGE_KEY = "acp_sessions_v1"


@runtime_checkable
class BlobStore(Protocol):
    """Minimal key-value store holding string blobs."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryBlobStore:
    """In-process blob store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.blobs: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.blobs.get(key)

    def set(self, key: str, value: str) -> None:
        self.blobs[key] = value


class FileBlobStore:
    """Blob store keeping one file per key in a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        """Write a blob atomically via a temp file and rename."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        temp_path = path.with_name(path.name + ".tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                f.write(value)
            temp_path.replace(path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise


def settle_restored(session: Session) -> Session:
    """Close out turn and permission state that did not survive the restart.

    Thinking placeholders are dropped and tool calls still awaiting a decision
    are marked cancelled, as when a connection closes.
    """
    messages = tuple(
        m.with_tool_status(ToolStatus.CANCELLED)
        if m.tool_result is not None and m.tool_result.status is ToolStatus.PENDING
        else m
        for m in session.messages
        if not m.is_thinking
    )
    if messages == session.messages:
        return session
    return replace(session, messages=messages)


def load_sessions(store: BlobStore) -> list[Session]:
    """Load the persisted session list.

    Connections never survive a restart, so every session comes back
    disconnected, with interrupted turns settled by ``settle_restored``. A
    missing or unreadable blob yields an empty list.
    """
    try:
        raw = store.get(STORAGE_KEY)
    except OSError as e:
        log.warning("Failed to read session list: %s", e)
        return []

    if not raw:
        return []

    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("session list is not a JSON array")
        return [settle_restored(Session.from_dict(item)) for item in data]
    except (ValueError, KeyError, TypeError) as e:
        log.warning("Discarding unreadable session list: %s", e)
        return []


def save_sessions(store: BlobStore, sessions: Iterable[Session]) -> None:
    """Overwrite the persisted session list."""
    data = [session.to_dict() for session in sessions]
    store.set(STORAGE_KEY, json.dumps(data, ensure_ascii=False))
