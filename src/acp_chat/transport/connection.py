"""Per-session connection lifecycle.

ConnectionManager owns one transport per local session id and holds no
conversational state. It drives the session's connection status in the store
and forwards inbound frames to a single frame handler.
"""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import quote

from acp_chat.logging import get_logger
from acp_chat.protocol.messages import Command, ConnectCommand, DisconnectCommand, encode_command
from acp_chat.state.models import Session, SessionStatus
from acp_chat.state.store import SessionStateStore
from acp_chat.transport.base import (
    FrameReceived,
    Transport,
    TransportClosed,
    TransportError,
    TransportErrored,
    TransportEvent,
    TransportFactory,
    TransportOpened,
    TransportState,
)
from acp_chat.transport.websocket import WebSocketTransport

log = get_logger("connection")

FrameHandler = Callable[[str, str], None]
CloseHandler = Callable[[str], None]


def build_url(endpoint: str, credential: str = "") -> str:
    """Append the credential as a ``token`` query parameter when non-empty."""
    if not credential:
        return endpoint
    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}token={quote(credential, safe='')}"


class ConnectionManager:
    """Opens, tracks and closes the transport of each session.

    Args:
        store: Session store whose status fields this manager drives.
        on_frame: Called with ``(session_id, raw_frame)`` for every inbound frame.
        on_closed: Called with ``session_id`` once a session's transport is gone.
        transport_factory: Builds a transport for a URL. Defaults to WebSocketTransport.
    """

    def __init__(
        self,
        store: SessionStateStore,
        on_frame: FrameHandler,
        on_closed: CloseHandler | None = None,
        transport_factory: TransportFactory | None = None,
    ) -> None:
        self._store = store
        self._on_frame = on_frame
        self._on_closed = on_closed
        self._factory: TransportFactory = transport_factory or WebSocketTransport
        self._transports: dict[str, Transport] = {}
        store.on_session_removed(self.disconnect)

    def connect(self, session: Session) -> None:
        """Open a transport for ``session`` unless one is already open or opening."""
        existing = self._transports.get(session.id)
        if existing is not None and existing.state <= TransportState.OPEN:
            log.debug("Session %s already connecting/connected", session.id)
            return

        self._store.set_status(session.id, SessionStatus.CONNECTING)

        transport = self._factory(build_url(session.endpoint, session.credential))
        self._transports[session.id] = transport
        log.info("Connecting session %s to %s", session.id, session.endpoint)
        transport.open(lambda event: self._handle_event(session.id, transport, event))

    def disconnect(self, session_id: str) -> None:
        """Send a best-effort disconnect frame, then close the transport."""
        transport = self._transports.get(session_id)
        if transport is None:
            return

        try:
            transport.send(encode_command(DisconnectCommand()))
        except TransportError as e:
            log.debug("Disconnect frame for %s not delivered: %s", session_id, e)

        transport.close()
        self._handle_closed(session_id, transport)

    def send(self, session_id: str, command: Command) -> bool:
        """Send a command if the session's transport is open.

        Returns:
            True if the frame was handed to the transport, False otherwise.
        """
        transport = self._transports.get(session_id)
        if transport is None or transport.state is not TransportState.OPEN:
            log.debug("Dropping %s for %s: not connected", command.type, session_id)
            return False

        try:
            transport.send(encode_command(command))
        except TransportError as e:
            log.debug("Dropping %s for %s: %s", command.type, session_id, e)
            return False
        return True

    def is_open(self, session_id: str) -> bool:
        transport = self._transports.get(session_id)
        return transport is not None and transport.state is TransportState.OPEN

    def close_all(self) -> None:
        """Disconnect every session that still has a transport."""
        for session_id in list(self._transports):
            self.disconnect(session_id)

    def _handle_event(self, session_id: str, transport: Transport, event: TransportEvent) -> None:
        match event:
            case TransportOpened():
                try:
                    transport.send(encode_command(ConnectCommand()))
                except TransportError as e:
                    log.warning("Failed to send connect for %s: %s", session_id, e)
            case FrameReceived(data=data):
                if self._transports.get(session_id) is transport:
                    self._on_frame(session_id, data)
            case TransportErrored(error=error):
                if self._transports.get(session_id) is transport:
                    log.warning("Transport error on session %s: %s", session_id, error)
                    self._store.set_status(session_id, SessionStatus.ERROR)
            case TransportClosed():
                self._handle_closed(session_id, transport)

    def _handle_closed(self, session_id: str, transport: Transport) -> None:
        # A replaced transport closing late must not touch the new connection
        if self._transports.get(session_id) is not transport:
            return

        del self._transports[session_id]
        self._store.set_status(session_id, SessionStatus.DISCONNECTED)
        log.info("Session %s disconnected", session_id)
        if self._on_closed is not None:
            self._on_closed(session_id)
