"""Transport contract shared by the WebSocket transport and test doubles.

A transport emits a small fixed set of events to exactly one listener:
opened, frame received, errored, closed. Every transport ends with exactly
one ``TransportClosed``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol


class TransportError(Exception):
    """Raised when a frame cannot be handed to the transport."""


class TransportState(IntEnum):
    """Lifecycle of a transport, ordered like a WebSocket readyState."""

    CONNECTING = 0
    OPEN = 1
    CLOSING = 2
    CLOSED = 3


@dataclass(frozen=True)
class TransportOpened:
    pass


@dataclass(frozen=True)
class FrameReceived:
    data: str


@dataclass(frozen=True)
class TransportErrored:
    error: str


@dataclass(frozen=True)
class TransportClosed:
    code: int | None = None
    reason: str = ""


TransportEvent = TransportOpened | FrameReceived | TransportErrored | TransportClosed
TransportListener = Callable[[TransportEvent], None]


class Transport(Protocol):
    """One message-oriented connection to a remote endpoint."""

    url: str

    @property
    def state(self) -> TransportState: ...

    def open(self, listener: TransportListener) -> None:
        """Start connecting. Events are delivered to ``listener``."""
        ...

    def send(self, data: str) -> None:
        """Hand a text frame to the transport.

        Raises:
            TransportError: If the transport is not open.
        """
        ...

    def close(self) -> None:
        """Start closing. Frames already accepted are flushed first."""
        ...


TransportFactory = Callable[[str], Transport]
