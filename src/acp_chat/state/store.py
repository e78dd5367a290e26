"""Canonical session/message state.

The store is the single writer of the session list. Every mutation replaces
the whole tuple of sessions, persists it, then notifies subscribers, so a
snapshot obtained from ``sessions`` is never modified afterwards.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace

from acp_chat.logging import get_logger
from acp_chat.state.models import ChatMessage, Session, SessionStatus
from acp_chat.state.storage import BlobStore, MemoryBlobStore, load_sessions, save_sessions

log = get_logger("store")

SessionListener = Callable[[tuple[Session, ...]], None]
RemovalHook = Callable[[str], None]


def default_session_name(index: int) -> str:
    return f"Session {index + 1}"


class SessionStateStore:
    """Ordered, immutable-snapshot store of sessions."""

    def __init__(self, storage: BlobStore | None = None) -> None:
        self._storage: BlobStore = storage if storage is not None else MemoryBlobStore()
        self._sessions: tuple[Session, ...] = tuple(load_sessions(self._storage))
        self._listeners: list[SessionListener] = []
        self._removal_hooks: list[RemovalHook] = []
        if self._sessions:
            log.info("Loaded %d session(s)", len(self._sessions))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def sessions(self) -> tuple[Session, ...]:
        return self._sessions

    def get(self, session_id: str) -> Session | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def __contains__(self, session_id: object) -> bool:
        return any(s.id == session_id for s in self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call ``listener`` with the new snapshot after every mutation.

        Returns:
            A function to unsubscribe.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_session_removed(self, hook: RemovalHook) -> Callable[[], None]:
        """Run ``hook(session_id)`` before a session is removed.

        Returns:
            A function to unregister the hook.
        """
        self._removal_hooks.append(hook)

        def unregister() -> None:
            if hook in self._removal_hooks:
                self._removal_hooks.remove(hook)

        return unregister

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _commit(self, sessions: tuple[Session, ...]) -> None:
        self._sessions = sessions
        try:
            save_sessions(self._storage, sessions)
        except OSError as e:
            log.warning("Failed to persist session list: %s", e)
        for listener in list(self._listeners):
            listener(sessions)

    def create_session(
        self,
        endpoint: str,
        credential: str = "",
        name: str | None = None,
    ) -> Session:
        """Append a new disconnected session and return it."""
        session = Session(
            name=name or default_session_name(len(self._sessions)),
            endpoint=endpoint,
            credential=credential,
        )
        self._commit((*self._sessions, session))
        log.debug("Created session %s (%s)", session.id, session.name)
        return session

    def update_session(
        self, session_id: str, fn: Callable[[Session], Session]
    ) -> Session | None:
        """Replace a session with ``fn(session)``.

        Returns:
            The new session, or None if the id is unknown.
        """
        updated: Session | None = None
        sessions = []
        for session in self._sessions:
            if session.id == session_id:
                updated = fn(session)
                sessions.append(updated)
            else:
                sessions.append(session)

        if updated is None:
            log.debug("Ignoring update for unknown session %s", session_id)
            return None

        self._commit(tuple(sessions))
        return updated

    def set_status(self, session_id: str, status: SessionStatus) -> Session | None:
        """Change the connection status.

        Leaving CONNECTED always clears the remote session id.
        """
        def apply(session: Session) -> Session:
            if status is SessionStatus.CONNECTED:
                return replace(session, status=status)
            return replace(session, status=status, remote_session_id=None)

        return self.update_session(session_id, apply)

    def append_message(self, session_id: str, message: ChatMessage) -> bool:
        return self.update_session(
            session_id, lambda s: replace(s, messages=(*s.messages, message))
        ) is not None

    def update_message(
        self,
        session_id: str,
        message_id: str,
        fn: Callable[[ChatMessage], ChatMessage],
    ) -> bool:
        """Replace one message in place, preserving its position.

        Returns:
            True if the message was found.
        """
        session = self.get(session_id)
        if session is None or session.find_message(message_id) is None:
            return False

        self.update_session(
            session_id,
            lambda s: replace(
                s,
                messages=tuple(fn(m) if m.id == message_id else m for m in s.messages),
            ),
        )
        return True

    def remove_message(self, session_id: str, message_id: str) -> bool:
        session = self.get(session_id)
        if session is None or session.find_message(message_id) is None:
            return False

        self.update_session(
            session_id,
            lambda s: replace(s, messages=tuple(m for m in s.messages if m.id != message_id)),
        )
        return True

    def clear_messages(self, session_id: str) -> bool:
        return self.update_session(session_id, lambda s: replace(s, messages=())) is not None

    def rename_session(self, session_id: str, name: str) -> bool:
        return self.update_session(session_id, lambda s: replace(s, name=name)) is not None

    def remove_session(self, session_id: str) -> bool:
        """Remove a session, disconnecting it first through the removal hooks."""
        if session_id not in self:
            return False

        for hook in list(self._removal_hooks):
            hook(session_id)

        self._commit(tuple(s for s in self._sessions if s.id != session_id))
        log.debug("Removed session %s", session_id)
        return True
