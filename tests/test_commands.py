"""Tests for REPL slash commands and transcript rendering."""

from __future__ import annotations

from io import StringIO

import pytest
from rich.console import Console

from acp_chat.interactive.commands import CommandHandler
from acp_chat.interactive.render import TranscriptRenderer
from acp_chat.state.models import MessageRole, SessionStatus, ToolStatus
from tests.utils import (
    PROMPT_COMPLETE,
    THINKING,
    FakeTransportFactory,
    connect_session,
    delta,
    make_client,
    updates,
)


class Harness:
    """A client, renderer and command handler writing to a string buffer."""

    def __init__(self, factory: FakeTransportFactory) -> None:
        self.factory = factory
        self.output = StringIO()
        self.renderer = TranscriptRenderer(
            Console(file=self.output, width=120, force_terminal=False, color_system=None)
        )
        self.client = make_client(factory, on_permission=self.renderer.show_permission)
        self.renderer.attach(self.client)
        self.commands = CommandHandler(self.client, self.renderer)

    def text(self) -> str:
        return self.output.getvalue()


@pytest.fixture
def harness(factory: FakeTransportFactory) -> Harness:
    return Harness(factory)


class TestPrompts:
    """Tests for plain text input."""

    async def test_prompt_sent_to_active_session(self, harness: Harness) -> None:
        session, transport = connect_session(harness.client, harness.factory)
        harness.renderer.select(session.id)

        await harness.commands.handle("What is 2+2?")

        assert transport.frames()[-1] == {
            "type": "prompt",
            "payload": {"content": [{"type": "text", "text": "What is 2+2?"}]},
        }
        msgs = harness.client.store.get(session.id).messages
        assert msgs[-1].role is MessageRole.USER

    async def test_prompt_while_disconnected_is_kept_locally(self, harness: Harness) -> None:
        session = harness.client.new_session(endpoint="ws://a/ws", auto_connect=False)
        harness.renderer.select(session.id)

        await harness.commands.handle("hello?")

        assert harness.client.store.get(session.id).messages[-1].content == "hello?"
        assert "Not connected" in harness.text()

    async def test_prompt_without_session(self, harness: Harness) -> None:
        await harness.commands.handle("anyone?")
        assert "No active session" in harness.text()


class TestSessionCommands:
    """Tests for session management commands."""

    async def test_new_uses_arguments(self, harness: Harness) -> None:
        await harness.commands.handle("/new ws://other:9315/ws secret")

        session = harness.renderer.active_session
        assert session is not None
        assert session.endpoint == "ws://other:9315/ws"
        assert harness.factory.last.url == "ws://other:9315/ws?token=secret"

    async def test_switch_by_index_and_prefix(self, harness: Harness) -> None:
        first = harness.client.new_session(auto_connect=False)
        second = harness.client.new_session(auto_connect=False)

        await harness.commands.handle("/switch 2")
        assert harness.renderer.active_id == second.id

        await harness.commands.handle(f"/switch {first.id[:10]}")
        assert harness.renderer.active_id == first.id

        await harness.commands.handle("/switch 9")
        assert "No such session" in harness.text()

    async def test_sessions_table(self, harness: Harness) -> None:
        session, _ = connect_session(harness.client, harness.factory)
        harness.renderer.select(session.id)

        await harness.commands.handle("/sessions")

        out = harness.text()
        assert "Session 1" in out
        assert "connected" in out
        assert "claude" in out

    async def test_rename(self, harness: Harness) -> None:
        session = harness.client.new_session(auto_connect=False)
        harness.renderer.select(session.id)

        await harness.commands.handle('/rename "Deep research"')

        assert harness.client.store.get(session.id).name == "Deep research"

    async def test_disconnect_and_connect(self, harness: Harness) -> None:
        session, transport = connect_session(harness.client, harness.factory)
        harness.renderer.select(session.id)

        await harness.commands.handle("/disconnect")
        assert transport.frame_types()[-1] == "disconnect"
        assert harness.client.store.get(session.id).status is SessionStatus.DISCONNECTED

        await harness.commands.handle("/connect 1")
        assert harness.factory.last is not transport
        assert harness.client.store.get(session.id).status is SessionStatus.CONNECTING

    async def test_delete_active_selects_remaining(self, harness: Harness) -> None:
        keep = harness.client.new_session(auto_connect=False)
        doomed = harness.client.new_session(auto_connect=False)
        harness.renderer.select(doomed.id)

        await harness.commands.handle("/delete")

        assert doomed.id not in harness.client.store
        assert harness.renderer.active_id == keep.id

    async def test_cancel_and_clear(self, harness: Harness) -> None:
        session, transport = connect_session(harness.client, harness.factory)
        harness.renderer.select(session.id)
        transport.receive(updates(delta("partial")))

        await harness.commands.handle("/cancel")
        assert transport.frame_types()[-1] == "cancel"

        await harness.commands.handle("/clear")
        assert harness.client.store.get(session.id).messages == ()

    async def test_unknown_command(self, harness: Harness) -> None:
        await harness.commands.handle("/frobnicate")
        assert "Unknown command: /frobnicate" in harness.text()

    async def test_help_and_quit(self, harness: Harness) -> None:
        await harness.commands.handle("/help")
        assert "/allow" in harness.text()

        await harness.commands.handle("/quit")
        assert harness.commands.quit_requested is True


class TestPermissionCommands:
    """Tests for /allow and /deny."""

    async def test_allow_displayed_request(self, harness: Harness) -> None:
        session, transport = connect_session(harness.client, harness.factory)
        harness.renderer.select(session.id)
        transport.receive({
            "type": "permission_request",
            "payload": {"requestId": "r1", "toolCall": {"title": "Edit main.py"}},
        })
        assert "Permission Required" in harness.text()

        await harness.commands.handle("/allow")

        assert transport.frames()[-1]["payload"] == {
            "requestId": "r1",
            "outcome": {"outcome": "allow"},
        }
        msg = harness.client.store.get(session.id).messages[-1]
        assert msg.tool_result.status is ToolStatus.ALLOWED

    async def test_deny_without_request(self, harness: Harness) -> None:
        await harness.commands.handle("/deny")
        assert "No permission request waiting" in harness.text()


class TestRendering:
    """Tests for incremental transcript output."""

    async def test_streamed_text_printed_once(self, harness: Harness) -> None:
        session, transport = connect_session(harness.client, harness.factory)
        harness.renderer.select(session.id)

        transport.receive(updates(THINKING))
        transport.receive(updates(delta("Hel")))
        transport.receive(updates(delta("lo")))
        transport.receive(PROMPT_COMPLETE)

        out = harness.text()
        assert "thinking..." in out
        assert out.count("Hel") == 1
        assert "Hello" in out

    async def test_error_frame_printed(self, harness: Harness) -> None:
        session, transport = connect_session(harness.client, harness.factory)
        harness.renderer.select(session.id)

        transport.receive({"type": "error", "payload": {"message": "quota exceeded"}})

        assert "Error: quota exceeded" in harness.text()

    async def test_select_replays_history(self, harness: Harness) -> None:
        session, transport = connect_session(harness.client, harness.factory)
        harness.client.send_prompt(session.id, "first question")
        transport.receive(updates(delta("first answer")))
        transport.receive(PROMPT_COMPLETE)

        harness.renderer.select(session.id)

        out = harness.text()
        assert "> first question" in out
        assert "first answer" in out
