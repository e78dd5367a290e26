"""Permission request tracking and resolution.

Requests are correlated by ``requestId``. Each one gets its own pending
tool-role message whose id is remembered, so resolving a request updates
exactly that message even when several tool calls share a title.

One request is displayed at a time; later ones wait in arrival order and are
displayed as earlier ones are resolved.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from acp_chat.logging import get_logger
from acp_chat.protocol.messages import (
    PermissionDecision,
    PermissionRequest,
    PermissionResponseCommand,
)
from acp_chat.state.models import (
    ChatMessage,
    MessageRole,
    ToolCallInfo,
    ToolResult,
    ToolStatus,
)
from acp_chat.state.store import SessionStateStore
from acp_chat.transport.connection import ConnectionManager

log = get_logger("permissions")

_DECISION_STATUS = {
    PermissionDecision.ALLOW: ToolStatus.ALLOWED,
    PermissionDecision.DENY: ToolStatus.DENIED,
}


@dataclass(frozen=True)
class PendingPermission:
    """A request awaiting a decision, tied to its local session and message."""

    request: PermissionRequest
    session_id: str
    message_id: str

    @property
    def request_id(self) -> str:
        return self.request.request_id


DisplayCallback = Callable[[PendingPermission | None], None]


class PermissionCoordinator:
    """Tracks outstanding permission requests and sends their resolutions."""

    def __init__(
        self,
        store: SessionStateStore,
        connections: ConnectionManager,
        on_display: DisplayCallback | None = None,
    ) -> None:
        self._store = store
        self._connections = connections
        self._on_display = on_display
        # Insertion order is arrival order
        self._pending: dict[str, PendingPermission] = {}
        self._displayed: PendingPermission | None = None

    @property
    def displayed(self) -> PendingPermission | None:
        return self._displayed

    @property
    def pending(self) -> tuple[PendingPermission, ...]:
        return tuple(self._pending.values())

    def get(self, request_id: str) -> PendingPermission | None:
        return self._pending.get(request_id)

    def receive(self, session_id: str, request: PermissionRequest) -> PendingPermission | None:
        """Record a new request and its pending tool message."""
        if request.request_id in self._pending:
            log.warning("Duplicate permission request %s ignored", request.request_id)
            return None

        title = request.tool_call.title
        message = ChatMessage(
            role=MessageRole.TOOL,
            content=title or "Tool call",
            tool_call=ToolCallInfo(
                title=title or "Permission Required",
                input=request.tool_call.input,
            ),
            tool_result=ToolResult(status=ToolStatus.PENDING),
        )
        if not self._store.append_message(session_id, message):
            log.debug("Permission request %s for unknown session %s", request.request_id, session_id)
            return None

        pending = PendingPermission(request=request, session_id=session_id, message_id=message.id)
        self._pending[request.request_id] = pending
        log.info("Permission requested for %r (%s)", title, request.request_id)

        if self._displayed is None:
            self._display(pending)
        return pending

    def resolve(self, request_id: str, decision: PermissionDecision) -> bool:
        """Answer a request and mark its tool message allowed or denied.

        The local message is updated even when the response cannot be sent.

        Returns:
            False if ``request_id`` is not outstanding.
        """
        pending = self._pending.pop(request_id, None)
        if pending is None:
            log.debug("No outstanding permission request %s", request_id)
            return False

        command = PermissionResponseCommand.for_request(request_id, decision)
        if not self._connections.send(pending.session_id, command):
            log.warning(
                "Permission response %s not delivered: session %s is not connected",
                request_id,
                pending.session_id,
            )

        status = _DECISION_STATUS[decision]
        self._store.update_message(
            pending.session_id,
            pending.message_id,
            lambda m: m.with_tool_status(status),
        )

        if self._displayed is pending:
            self._display_next()
        return True

    def resolve_displayed(self, decision: PermissionDecision) -> bool:
        if self._displayed is None:
            return False
        return self.resolve(self._displayed.request_id, decision)

    def drop_session(self, session_id: str) -> None:
        """Forget a closed session's requests and cancel their messages."""
        dropped = [p for p in self._pending.values() if p.session_id == session_id]
        if not dropped:
            return

        for pending in dropped:
            del self._pending[pending.request_id]
            self._store.update_message(
                session_id,
                pending.message_id,
                lambda m: (
                    m.with_tool_status(ToolStatus.CANCELLED)
                    if m.tool_result is not None and m.tool_result.status is ToolStatus.PENDING
                    else m
                ),
            )
        log.debug("Dropped %d permission request(s) for %s", len(dropped), session_id)

        if self._displayed is not None and self._displayed.session_id == session_id:
            self._display_next()

    def _display_next(self) -> None:
        self._display(next(iter(self._pending.values()), None))

    def _display(self, pending: PendingPermission | None) -> None:
        self._displayed = pending
        if self._on_display is not None:
            self._on_display(pending)
