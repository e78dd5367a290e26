"""Chat client facade.

Wires the store, connection manager, dispatcher, stream aggregator and
permission coordinator together and exposes the intents a UI needs.
"""

from __future__ import annotations

from acp_chat.config.schema import Config
from acp_chat.logging import get_logger
from acp_chat.permissions import DisplayCallback, PermissionCoordinator
from acp_chat.protocol.dispatcher import ProtocolDispatcher
from acp_chat.protocol.messages import CancelCommand, PermissionDecision, PromptCommand
from acp_chat.state.models import ChatMessage, MessageRole, Session
from acp_chat.state.storage import BlobStore
from acp_chat.state.store import SessionStateStore
from acp_chat.streaming import StreamAggregator
from acp_chat.transport.base import TransportFactory
from acp_chat.transport.connection import ConnectionManager
from acp_chat.transport.websocket import WebSocketTransport

log = get_logger("client")


class ChatClient:
    """One application's worth of sessions and their connections."""

    def __init__(
        self,
        config: Config | None = None,
        storage: BlobStore | None = None,
        transport_factory: TransportFactory | None = None,
        on_permission: DisplayCallback | None = None,
    ) -> None:
        self.config = config or Config()

        if transport_factory is None:
            conn = self.config.connection

            def transport_factory(url: str) -> WebSocketTransport:
                return WebSocketTransport(
                    url,
                    open_timeout=conn.open_timeout,
                    max_size=conn.max_frame_size,
                )

        self.store = SessionStateStore(storage)
        self.connections = ConnectionManager(
            self.store,
            on_frame=self._on_frame,
            on_closed=self._on_closed,
            transport_factory=transport_factory,
        )
        self.aggregator = StreamAggregator(self.store)
        self.permissions = PermissionCoordinator(
            self.store, self.connections, on_display=on_permission
        )
        self.dispatcher = ProtocolDispatcher(
            self.store, self.connections, self.aggregator, self.permissions
        )

    @property
    def sessions(self) -> tuple[Session, ...]:
        return self.store.sessions

    def new_session(
        self,
        endpoint: str | None = None,
        credential: str | None = None,
        name: str | None = None,
        auto_connect: bool = True,
    ) -> Session:
        """Create a session with the configured defaults and optionally connect it."""
        session = self.store.create_session(
            endpoint=endpoint or self.config.connection.endpoint,
            credential=self.config.connection.credential if credential is None else credential,
            name=name,
        )
        if auto_connect:
            self.connections.connect(session)
        return session

    def connect(self, session_id: str) -> bool:
        session = self.store.get(session_id)
        if session is None:
            return False
        self.connections.connect(session)
        return True

    def disconnect(self, session_id: str) -> None:
        self.connections.disconnect(session_id)

    def is_open(self, session_id: str) -> bool:
        return self.connections.is_open(session_id)

    def send_prompt(self, session_id: str, text: str) -> bool:
        """Record the user's message locally, then send it.

        The local transcript keeps the message even when the send fails.

        Returns:
            True if the prompt was handed to the transport.
        """
        if not self.store.append_message(
            session_id, ChatMessage(role=MessageRole.USER, content=text)
        ):
            return False
        return self.connections.send(session_id, PromptCommand.from_text(text))

    def cancel(self, session_id: str) -> bool:
        """Ask the agent to stop the current turn. Local messages are untouched."""
        return self.connections.send(session_id, CancelCommand())

    def clear_messages(self, session_id: str) -> bool:
        self.aggregator.forget(session_id)
        return self.store.clear_messages(session_id)

    def rename_session(self, session_id: str, name: str) -> bool:
        return self.store.rename_session(session_id, name)

    def remove_session(self, session_id: str) -> bool:
        removed = self.store.remove_session(session_id)
        if removed:
            self.aggregator.forget(session_id)
        return removed

    def resolve_permission(self, request_id: str, decision: PermissionDecision) -> bool:
        return self.permissions.resolve(request_id, decision)

    def close(self) -> None:
        """Disconnect every session."""
        self.connections.close_all()

    def _on_frame(self, session_id: str, raw: str) -> None:
        self.dispatcher.dispatch(session_id, raw)

    def _on_closed(self, session_id: str) -> None:
        self.aggregator.reset(session_id)
        self.permissions.drop_session(session_id)
