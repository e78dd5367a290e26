"""Slash command handlers for the chat REPL."""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from acp_chat.protocol.messages import PermissionDecision
from acp_chat.state.models import Session

if TYPE_CHECKING:
    from acp_chat.client import ChatClient
    from acp_chat.interactive.render import TranscriptRenderer


class CommandHandler:
    """Handles slash commands and plain prompts in interactive mode."""

    def __init__(self, client: ChatClient, renderer: TranscriptRenderer) -> None:
        self.client = client
        self.renderer = renderer
        self.console = renderer.console
        self.quit_requested = False

    async def handle(self, line: str) -> None:
        """Handle one line of input."""
        if not line.startswith("/"):
            await self._send_prompt(line)
            return

        try:
            parts = shlex.split(line)
        except ValueError as e:
            self.console.print(f"[red]Cannot parse command: {e}[/red]")
            return
        if not parts:
            return

        cmd = parts[0].lower()
        args = parts[1:]

        handlers = {
            "/help": self._cmd_help,
            "/new": self._cmd_new,
            "/sessions": self._cmd_sessions,
            "/switch": self._cmd_switch,
            "/connect": self._cmd_connect,
            "/disconnect": self._cmd_disconnect,
            "/rename": self._cmd_rename,
            "/delete": self._cmd_delete,
            "/cancel": self._cmd_cancel,
            "/clear": self._cmd_clear,
            "/allow": self._cmd_allow,
            "/deny": self._cmd_deny,
            "/quit": self._cmd_quit,
        }

        handler = handlers.get(cmd)
        if handler:
            await handler(args)
        else:
            self.console.print(f"[red]Unknown command: {cmd}[/red]")
            self.console.print("Type [bold]/help[/bold] for available commands.")

    def resolve_session(self, ref: str | None) -> Session | None:
        """Find a session by 1-based position, exact id or id prefix.

        With no reference, the active session is returned.
        """
        sessions = self.client.sessions
        if ref is None:
            return self.renderer.active_session

        if ref.isdigit():
            index = int(ref) - 1
            return sessions[index] if 0 <= index < len(sessions) else None

        matches = [s for s in sessions if s.id == ref or s.id.startswith(ref)]
        return matches[0] if len(matches) == 1 else None

    def _require_session(self, args: list[str]) -> Session | None:
        session = self.resolve_session(args[0] if args else None)
        if session is None:
            self.console.print("[red]No such session[/red]" if args else "[red]No active session[/red]")
        return session

    async def _send_prompt(self, text: str) -> None:
        session = self.renderer.active_session
        if session is None:
            self.console.print("[red]No active session. Use /new to create one.[/red]")
            return
        if not self.client.send_prompt(session.id, text):
            self.console.print("[yellow]Not connected: message kept locally but not sent[/yellow]")

    async def _cmd_help(self, args: list[str]) -> None:
        """Show available commands."""
        table = Table(title="Available Commands")
        table.add_column("Command", style="bold")
        table.add_column("Description")

        commands = [
            ("/help", "Show this help message"),
            ("/new [url] [token]", "Create and connect a new session"),
            ("/sessions", "List sessions"),
            ("/switch <n|id>", "Make a session active"),
            ("/connect [n|id]", "Connect a session"),
            ("/disconnect [n|id]", "Disconnect a session"),
            ("/rename <name>", "Rename the active session"),
            ("/delete [n|id]", "Delete a session"),
            ("/cancel", "Ask the agent to stop the current turn"),
            ("/clear", "Clear the active session's messages"),
            ("/allow", "Allow the displayed permission request"),
            ("/deny", "Deny the displayed permission request"),
            ("/quit", "Exit"),
        ]

        for cmd, desc in commands:
            table.add_row(escape(cmd), desc)

        self.console.print(table)

    async def _cmd_new(self, args: list[str]) -> None:
        endpoint = args[0] if args else None
        credential = args[1] if len(args) > 1 else None
        session = self.client.new_session(endpoint=endpoint, credential=credential)
        self.renderer.select(session.id)

    async def _cmd_sessions(self, args: list[str]) -> None:
        """List sessions."""
        sessions = self.client.sessions
        if not sessions:
            self.console.print("[dim]No sessions[/dim]")
            return

        table = Table(title="Sessions")
        table.add_column("#")
        table.add_column("Name")
        table.add_column("Status")
        table.add_column("Agent")
        table.add_column("Messages", justify="right")
        table.add_column("ID", style="dim")

        for index, session in enumerate(sessions, start=1):
            marker = "*" if session.id == self.renderer.active_id else ""
            agent = session.agent_info.name if session.agent_info else "-"
            table.add_row(
                f"{index}{marker}",
                escape(session.name),
                session.status.value,
                agent,
                str(len(session.messages)),
                session.id[:8],
            )

        self.console.print(table)

    async def _cmd_switch(self, args: list[str]) -> None:
        if not args:
            self.console.print("[red]Usage: /switch <n|id>[/red]")
            return
        session = self._require_session(args)
        if session:
            self.renderer.select(session.id)

    async def _cmd_connect(self, args: list[str]) -> None:
        session = self._require_session(args)
        if session:
            self.client.connect(session.id)

    async def _cmd_disconnect(self, args: list[str]) -> None:
        session = self._require_session(args)
        if session:
            self.client.disconnect(session.id)

    async def _cmd_rename(self, args: list[str]) -> None:
        if not args:
            self.console.print("[red]Usage: /rename <name>[/red]")
            return
        session = self._require_session([])
        if session:
            self.client.rename_session(session.id, " ".join(args))

    async def _cmd_delete(self, args: list[str]) -> None:
        session = self._require_session(args)
        if session is None:
            return

        was_active = session.id == self.renderer.active_id
        self.client.remove_session(session.id)
        self.console.print(f"[dim]Deleted {session.name}[/dim]")

        if was_active:
            remaining = self.client.sessions
            self.renderer.select(remaining[-1].id if remaining else None)

    async def _cmd_cancel(self, args: list[str]) -> None:
        session = self._require_session([])
        if session and not self.client.cancel(session.id):
            self.console.print("[yellow]Not connected[/yellow]")

    async def _cmd_clear(self, args: list[str]) -> None:
        session = self._require_session([])
        if session:
            self.client.clear_messages(session.id)
            self.renderer.select(session.id)

    async def _cmd_allow(self, args: list[str]) -> None:
        self._resolve(PermissionDecision.ALLOW)

    async def _cmd_deny(self, args: list[str]) -> None:
        self._resolve(PermissionDecision.DENY)

    def _resolve(self, decision: PermissionDecision) -> None:
        if not self.client.permissions.resolve_displayed(decision):
            self.console.print("[dim]No permission request waiting[/dim]")

    async def _cmd_quit(self, args: list[str]) -> None:
        self.quit_requested = True
