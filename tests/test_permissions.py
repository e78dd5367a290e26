"""Tests for the PermissionCoordinator."""

from __future__ import annotations

from typing import Any

from acp_chat.client import ChatClient
from acp_chat.permissions import PendingPermission
from acp_chat.protocol.messages import PermissionDecision
from acp_chat.state.models import ChatMessage, MessageRole, ToolStatus
from tests.utils import FakeTransportFactory, connect_session, make_client


def permission_frame(request_id: str, title: str | None = "Write file") -> dict[str, Any]:
    tool_call: dict[str, Any] = {"input": {"path": "notes.md"}}
    if title is not None:
        tool_call["title"] = title
    return {
        "type": "permission_request",
        "payload": {
            "requestId": request_id,
            "sessionId": "remote-1",
            "options": [{"title": "Allow"}, {"title": "Deny"}],
            "toolCall": tool_call,
        },
    }


def tool_messages(client: ChatClient, session_id: str) -> list[ChatMessage]:
    session = client.store.get(session_id)
    assert session is not None
    return [m for m in session.messages if m.role is MessageRole.TOOL]


class TestReceive:
    """Tests for incoming permission requests."""

    def test_pending_message_uses_title(
        self, client: ChatClient, factory: FakeTransportFactory
    ) -> None:
        session, transport = connect_session(client, factory)
        transport.receive(permission_frame("r1"))

        (msg,) = tool_messages(client, session.id)
        assert msg.content == "Write file"
        assert msg.tool_call.title == "Write file"
        assert msg.tool_result.status is ToolStatus.PENDING

    def test_missing_title_falls_back(
        self, client: ChatClient, factory: FakeTransportFactory
    ) -> None:
        session, transport = connect_session(client, factory)
        transport.receive(permission_frame("r1", title=None))

        (msg,) = tool_messages(client, session.id)
        assert msg.content == "Tool call"
        assert msg.tool_call.title == "Permission Required"

    def test_duplicate_request_id_ignored(
        self, client: ChatClient, factory: FakeTransportFactory
    ) -> None:
        session, transport = connect_session(client, factory)
        transport.receive(permission_frame("r1"))
        transport.receive(permission_frame("r1"))

        assert len(tool_messages(client, session.id)) == 1
        assert len(client.permissions.pending) == 1

    def test_display_callback(self, factory: FakeTransportFactory) -> None:
        shown: list[PendingPermission | None] = []
        client = make_client(factory, on_permission=shown.append)
        _, transport = connect_session(client, factory)

        transport.receive(permission_frame("r1"))

        assert [p.request_id for p in shown if p is not None] == ["r1"]


class TestResolve:
    """Tests for resolving permission requests."""

    def test_allow_sends_response_and_updates_message(
        self, client: ChatClient, factory: FakeTransportFactory
    ) -> None:
        session, transport = connect_session(client, factory)
        transport.receive(permission_frame("r1"))

        assert client.resolve_permission("r1", PermissionDecision.ALLOW) is True

        assert transport.frames()[-1] == {
            "type": "permission_response",
            "payload": {"requestId": "r1", "outcome": {"outcome": "allow"}},
        }
        (msg,) = tool_messages(client, session.id)
        assert msg.tool_result.status is ToolStatus.ALLOWED
        assert client.permissions.displayed is None

    def test_deny(self, client: ChatClient, factory: FakeTransportFactory) -> None:
        session, transport = connect_session(client, factory)
        transport.receive(permission_frame("r1"))

        client.resolve_permission("r1", PermissionDecision.DENY)

        assert transport.frames()[-1]["payload"]["outcome"] == {"outcome": "deny"}
        (msg,) = tool_messages(client, session.id)
        assert msg.tool_result.status is ToolStatus.DENIED

    def test_unknown_request(self, client: ChatClient) -> None:
        assert client.resolve_permission("nope", PermissionDecision.ALLOW) is False

    def test_same_title_updates_only_matching_message(
        self, client: ChatClient, factory: FakeTransportFactory
    ) -> None:
        session, transport = connect_session(client, factory)
        transport.receive(permission_frame("r1", title="Run command"))
        transport.receive(permission_frame("r2", title="Run command"))

        client.resolve_permission("r2", PermissionDecision.DENY)

        first, second = tool_messages(client, session.id)
        assert first.tool_result.status is ToolStatus.PENDING
        assert second.tool_result.status is ToolStatus.DENIED

    def test_requests_displayed_in_arrival_order(
        self, client: ChatClient, factory: FakeTransportFactory
    ) -> None:
        _, transport = connect_session(client, factory)
        for request_id in ("r1", "r2", "r3"):
            transport.receive(permission_frame(request_id))

        assert client.permissions.displayed.request_id == "r1"
        client.permissions.resolve_displayed(PermissionDecision.ALLOW)
        assert client.permissions.displayed.request_id == "r2"
        client.permissions.resolve_displayed(PermissionDecision.DENY)
        assert client.permissions.displayed.request_id == "r3"
        client.permissions.resolve_displayed(PermissionDecision.ALLOW)
        assert client.permissions.displayed is None
        assert client.permissions.resolve_displayed(PermissionDecision.ALLOW) is False

    def test_resolving_queued_request_keeps_display(
        self, client: ChatClient, factory: FakeTransportFactory
    ) -> None:
        _, transport = connect_session(client, factory)
        transport.receive(permission_frame("r1"))
        transport.receive(permission_frame("r2"))

        client.resolve_permission("r2", PermissionDecision.ALLOW)

        assert client.permissions.displayed.request_id == "r1"
        assert [p.request_id for p in client.permissions.pending] == ["r1"]

    def test_resolve_after_transport_gone_still_updates_locally(
        self, client: ChatClient, factory: FakeTransportFactory
    ) -> None:
        session, transport = connect_session(client, factory)
        transport.receive(permission_frame("r1"))
        # Simulate the socket having closed under us without the close event yet
        transport.close()
        sent_before = len(transport.sent)

        assert client.resolve_permission("r1", PermissionDecision.ALLOW) is True

        assert len(transport.sent) == sent_before
        (msg,) = tool_messages(client, session.id)
        assert msg.tool_result.status is ToolStatus.ALLOWED


class TestSessionClose:
    """Tests for requests outstanding when a session closes."""

    def test_close_cancels_pending_messages(
        self, client: ChatClient, factory: FakeTransportFactory
    ) -> None:
        session, transport = connect_session(client, factory)
        transport.receive(permission_frame("r1"))
        transport.receive(permission_frame("r2"))
        client.resolve_permission("r1", PermissionDecision.ALLOW)

        transport.drop()

        statuses = [m.tool_result.status for m in tool_messages(client, session.id)]
        assert statuses == [ToolStatus.ALLOWED, ToolStatus.CANCELLED]
        assert client.permissions.pending == ()
        assert client.permissions.displayed is None

    def test_close_promotes_other_session_request(
        self, client: ChatClient, factory: FakeTransportFactory
    ) -> None:
        _, ta = connect_session(client, factory)
        _, tb = connect_session(client, factory)
        ta.receive(permission_frame("a1"))
        tb.receive(permission_frame("b1"))

        ta.drop()

        assert client.permissions.displayed.request_id == "b1"

    def test_remove_session_forgets_requests(
        self, client: ChatClient, factory: FakeTransportFactory
    ) -> None:
        session, transport = connect_session(client, factory)
        transport.receive(permission_frame("r1"))

        client.remove_session(session.id)

        assert client.permissions.get("r1") is None
        assert client.resolve_permission("r1", PermissionDecision.ALLOW) is False
