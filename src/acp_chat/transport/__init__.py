"""Transport layer: connection lifecycle and the WebSocket transport."""

from acp_chat.transport.base import (
    FrameReceived,
    Transport,
    TransportClosed,
    TransportError,
    TransportErrored,
    TransportOpened,
    TransportState,
)
from acp_chat.transport.connection import ConnectionManager, build_url
from acp_chat.transport.websocket import WebSocketTransport

__all__ = [
    "ConnectionManager",
    "build_url",
    "Transport",
    "TransportError",
    "TransportState",
    "TransportOpened",
    "FrameReceived",
    "TransportErrored",
    "TransportClosed",
    "WebSocketTransport",
]
