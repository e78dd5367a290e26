"""Streaming text accumulation and the thinking placeholder.

Each session runs a small state machine:

    IDLE --thinking_start--> THINKING --text--> STREAMING
      \\______________________text______________/
    any --prompt_complete / reset--> IDLE

Duplicate thinking signals collapse into one placeholder, and every delta of a
turn lands in the same assistant message so the UI keeps updating one bubble.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from acp_chat.logging import TRACE, get_logger
from acp_chat.state.models import ChatMessage, MessageRole
from acp_chat.state.store import SessionStateStore

log = get_logger("streaming")

TEXT_UPDATE_TYPES = frozenset({"text_delta", "text"})


class TurnState(str, Enum):
    """Where a session is within an assistant turn."""

    IDLE = "idle"
    THINKING = "thinking"
    STREAMING = "streaming"


@dataclass
class _Turn:
    thinking_id: str | None = None
    streaming_id: str | None = None

    @property
    def state(self) -> TurnState:
        if self.streaming_id is not None:
            return TurnState.STREAMING
        if self.thinking_id is not None:
            return TurnState.THINKING
        return TurnState.IDLE


def extract_text(update: dict[str, Any]) -> str:
    """Text carried by a delta or full-text update, or '' if none."""
    for key in ("delta", "text"):
        value = update.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


class StreamAggregator:
    """Turns session updates into thinking placeholders and growing messages."""

    def __init__(self, store: SessionStateStore) -> None:
        self._store = store
        self._turns: dict[str, _Turn] = {}

    def state(self, session_id: str) -> TurnState:
        turn = self._turns.get(session_id)
        return turn.state if turn else TurnState.IDLE

    def streaming_message_id(self, session_id: str) -> str | None:
        turn = self._turns.get(session_id)
        return turn.streaming_id if turn else None

    def apply_updates(self, session_id: str, updates: list[Any]) -> None:
        """Apply a batch of updates in order."""
        for update in updates:
            self.apply(session_id, update)

    def apply(self, session_id: str, update: Any) -> None:
        if not isinstance(update, dict):
            log.debug("Skipping malformed update for %s: %r", session_id, update)
            return

        kind = update.get("type")
        if kind == "thinking_start":
            self._start_thinking(session_id)
        elif kind in TEXT_UPDATE_TYPES:
            text = extract_text(update)
            if text:
                self._append_text(session_id, text)
        else:
            log.log(TRACE, "Ignoring update %r for %s", kind, session_id)

    def complete(self, session_id: str, stop_reason: str | None = None) -> None:
        """Close out the current turn and return to IDLE."""
        turn = self._turns.pop(session_id, None)
        if turn is None:
            return

        if turn.thinking_id is not None:
            self._store.remove_message(session_id, turn.thinking_id)
        if turn.streaming_id is not None and stop_reason is not None:
            self._store.update_message(
                session_id,
                turn.streaming_id,
                lambda m: replace(m, stop_reason=stop_reason),
            )

    def reset(self, session_id: str) -> None:
        """Finalize any open turn, e.g. when the connection closes."""
        self.complete(session_id)

    def forget(self, session_id: str) -> None:
        """Drop tracking without touching messages (they are already gone)."""
        self._turns.pop(session_id, None)

    def _start_thinking(self, session_id: str) -> None:
        turn = self._turns.setdefault(session_id, _Turn())
        if turn.state is not TurnState.IDLE:
            return

        placeholder = ChatMessage(role=MessageRole.ASSISTANT, is_thinking=True)
        # Record the handle first: subscribers run inside append_message
        turn.thinking_id = placeholder.id
        if not self._store.append_message(session_id, placeholder):
            turn.thinking_id = None

    def _append_text(self, session_id: str, text: str) -> None:
        turn = self._turns.setdefault(session_id, _Turn())

        if turn.thinking_id is not None:
            thinking_id, turn.thinking_id = turn.thinking_id, None
            self._store.remove_message(session_id, thinking_id)

        if turn.streaming_id is not None:
            appended = self._store.update_message(
                session_id,
                turn.streaming_id,
                lambda m: replace(m, content=m.content + text),
            )
            if appended:
                return
            log.debug("Streaming target for %s is gone, starting a new message", session_id)

        message = ChatMessage(role=MessageRole.ASSISTANT, content=text)
        turn.streaming_id = message.id
        if not self._store.append_message(session_id, message):
            turn.streaming_id = None
