"""Terminal transcript rendering.

Watches store snapshots and prints what changed in the active session:
streamed text is written incrementally, tool prompts and status changes as
single lines.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from acp_chat.state.models import ChatMessage, MessageRole, Session, SessionStatus, ToolStatus

if TYPE_CHECKING:
    from acp_chat.client import ChatClient
    from acp_chat.permissions import PendingPermission

_STATUS_STYLE = {
    SessionStatus.CONNECTED: "green",
    SessionStatus.CONNECTING: "yellow",
    SessionStatus.DISCONNECTED: "dim",
    SessionStatus.ERROR: "red",
}

_TOOL_STYLE = {
    ToolStatus.PENDING: "yellow",
    ToolStatus.ALLOWED: "green",
    ToolStatus.DENIED: "red",
    ToolStatus.CANCELLED: "dim",
}


class TranscriptRenderer:
    """Prints the active session's transcript as it changes."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.client: ChatClient | None = None
        self.active_id: str | None = None
        self._printed: dict[str, int] = {}
        self._tool_status: dict[str, ToolStatus] = {}
        self._last_status: SessionStatus | None = None
        self._open_stream: str | None = None

    def attach(self, client: ChatClient) -> None:
        self.client = client
        client.store.subscribe(self._on_change)

    @property
    def active_session(self) -> Session | None:
        if self.client is None or self.active_id is None:
            return None
        return self.client.store.get(self.active_id)

    def select(self, session_id: str | None) -> None:
        """Make a session active and print its history."""
        self._close_stream()
        self.active_id = session_id
        self._printed.clear()
        self._tool_status.clear()

        session = self.active_session
        self._last_status = session.status if session else None
        if session is None:
            return

        self.console.rule(session.name)
        for message in session.messages:
            self._render_message(message, replay=True)
        self._close_stream()

    def show_permission(self, pending: PendingPermission | None) -> None:
        """Display a permission prompt; called when the displayed request changes."""
        if pending is None:
            return
        self._close_stream()

        request = pending.request
        body = Text()
        body.append(request.tool_call.title or "Tool Call", style="bold")
        if request.tool_call.description:
            body.append(f"\n{request.tool_call.description}")
        if request.tool_call.input is not None:
            body.append("\n" + json.dumps(request.tool_call.input, indent=2, default=str), style="dim")
        for option in request.options:
            line = f"\n  * {option.title}"
            if option.description:
                line += f" - {option.description}"
            body.append(line)

        owner = self.client.store.get(pending.session_id) if self.client else None
        title = "Permission Required"
        if owner is not None and owner.id != self.active_id:
            title += f" ({owner.name})"
        self.console.print(Panel(body, title=title, subtitle="/allow or /deny", border_style="yellow"))

    def _on_change(self, sessions: tuple[Session, ...]) -> None:
        session = self.active_session
        if session is None:
            return

        if session.status is not self._last_status:
            self._last_status = session.status
            self._print_status(session)

        streaming_id = None
        if self.client is not None:
            streaming_id = self.client.aggregator.streaming_message_id(session.id)

        for message in session.messages:
            self._render_message(message)

        if self._open_stream is not None and self._open_stream != streaming_id:
            self._close_stream()

    def _print_status(self, session: Session) -> None:
        self._close_stream()
        style = _STATUS_STYLE.get(session.status, "dim")
        detail = ""
        if session.status is SessionStatus.CONNECTED and session.agent_info:
            version = session.agent_info.version or ""
            detail = f" to {session.agent_info.name} {version}".rstrip()
        line = f"{escape(session.name)}: {session.status.value}{escape(detail)}"
        self.console.print(f"[{style}]{line}[/{style}]")

    def _render_message(self, message: ChatMessage, replay: bool = False) -> None:
        if message.is_thinking:
            if message.id not in self._printed:
                self._close_stream()
                self._printed[message.id] = 0
                self.console.print("[dim italic]thinking...[/dim italic]")
            return

        match message.role:
            case MessageRole.ASSISTANT:
                self._render_stream(message)
            case MessageRole.TOOL:
                self._render_tool(message)
            case MessageRole.USER:
                if message.id not in self._printed:
                    self._printed[message.id] = len(message.content)
                    if replay:
                        self._close_stream()
                        self.console.print(Text(f"> {message.content}", style="bold cyan"))
            case MessageRole.SYSTEM:
                if message.id not in self._printed:
                    self._printed[message.id] = len(message.content)
                    self._close_stream()
                    self.console.print(Text(message.content, style="red"))

    def _render_stream(self, message: ChatMessage) -> None:
        printed = self._printed.get(message.id)
        if printed is None:
            self._close_stream()
            printed = 0
        if len(message.content) <= printed:
            return

        self.console.out(message.content[printed:], end="", highlight=False)
        self._printed[message.id] = len(message.content)
        self._open_stream = message.id

    def _render_tool(self, message: ChatMessage) -> None:
        status = message.tool_result.status if message.tool_result else ToolStatus.PENDING
        if self._tool_status.get(message.id) is status:
            return
        self._tool_status[message.id] = status
        self._close_stream()

        title = message.tool_call.title if message.tool_call else message.content
        style = _TOOL_STYLE[status]
        self.console.print(Text.assemble(("tool ", "bold"), title, " ", (status.value, style)))

    def _close_stream(self) -> None:
        if self._open_stream is not None:
            self._open_stream = None
            self.console.out("")
