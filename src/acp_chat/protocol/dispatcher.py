"""Inbound frame decoding and routing.

Each raw frame is fully handled before the next one is read, for any session.
Malformed frames are logged and dropped without touching the connection;
unknown frame types are dropped silently so newer proxies keep working.
"""

from __future__ import annotations

from dataclasses import replace

from pydantic import ValidationError

from acp_chat.logging import TRACE, VERBOSE, get_logger
from acp_chat.permissions import PermissionCoordinator
from acp_chat.protocol.messages import (
    ErrorPayload,
    InboundFrame,
    NewSessionCommand,
    PermissionRequest,
    PromptCompletePayload,
    SessionCreatedPayload,
    SessionUpdatePayload,
    StatusPayload,
)
from acp_chat.state.models import (
    AgentInfo,
    ChatMessage,
    MessageRole,
    ModelState,
    SessionStatus,
)
from acp_chat.state.store import SessionStateStore
from acp_chat.streaming import StreamAggregator
from acp_chat.transport.connection import ConnectionManager

log = get_logger("dispatch")


class ProtocolDispatcher:
    """Routes decoded frames to the store, aggregator and permission coordinator."""

    def __init__(
        self,
        store: SessionStateStore,
        connections: ConnectionManager,
        aggregator: StreamAggregator,
        permissions: PermissionCoordinator,
    ) -> None:
        self._store = store
        self._connections = connections
        self._aggregator = aggregator
        self._permissions = permissions

    def dispatch(self, session_id: str, raw: str | bytes) -> None:
        """Decode one inbound frame for ``session_id`` and apply its effects."""
        try:
            frame = InboundFrame.model_validate_json(raw)
        except ValidationError as e:
            log.warning("Dropping undecodable frame on %s: %s", session_id, e)
            return

        if session_id not in self._store:
            log.debug("Dropping %s frame for unknown session %s", frame.type, session_id)
            return

        log.log(VERBOSE, "Routing %s frame on %s", frame.type, session_id)
        payload = frame.payload or {}
        try:
            match frame.type:
                case "status":
                    self._on_status(session_id, StatusPayload.model_validate(payload))
                case "session_created":
                    self._on_session_created(
                        session_id, SessionCreatedPayload.model_validate(payload)
                    )
                case "session_update":
                    update = SessionUpdatePayload.model_validate(payload)
                    self._aggregator.apply_updates(session_id, update.updates)
                case "permission_request":
                    self._permissions.receive(
                        session_id, PermissionRequest.model_validate(payload)
                    )
                case "prompt_complete":
                    done = PromptCompletePayload.model_validate(payload)
                    self._aggregator.complete(session_id, done.stop_reason)
                case "error":
                    self._on_error(session_id, ErrorPayload.model_validate(payload))
                case _:
                    log.log(TRACE, "Ignoring unknown frame type %r on %s", frame.type, session_id)
        except ValidationError as e:
            log.warning("Dropping malformed %s frame on %s: %s", frame.type, session_id, e)

    def _on_status(self, session_id: str, payload: StatusPayload) -> None:
        if not payload.connected:
            self._store.set_status(session_id, SessionStatus.DISCONNECTED)
            return

        agent_info = (
            AgentInfo(name=payload.agent_info.name, version=payload.agent_info.version)
            if payload.agent_info is not None
            else None
        )
        self._store.update_session(
            session_id,
            lambda s: replace(s, status=SessionStatus.CONNECTED, agent_info=agent_info),
        )
        log.info(
            "Session %s connected to %s",
            session_id,
            agent_info.name if agent_info else "agent",
        )
        self._connections.send(session_id, NewSessionCommand())

    def _on_session_created(self, session_id: str, payload: SessionCreatedPayload) -> None:
        session = self._store.get(session_id)
        if session is None or session.status is not SessionStatus.CONNECTED:
            log.warning("Ignoring session_created on %s: not connected", session_id)
            return

        models = (
            ModelState(
                selected=payload.models.selected,
                available=tuple(payload.models.available),
            )
            if payload.models is not None
            else session.models
        )
        self._store.update_session(
            session_id,
            lambda s: replace(s, remote_session_id=payload.session_id, models=models),
        )
        log.debug("Session %s bound to remote session %s", session_id, payload.session_id)

    def _on_error(self, session_id: str, payload: ErrorPayload) -> None:
        log.info("Remote error on %s: %s", session_id, payload.message)
        self._store.append_message(
            session_id,
            ChatMessage(role=MessageRole.SYSTEM, content=f"Error: {payload.message}"),
        )
