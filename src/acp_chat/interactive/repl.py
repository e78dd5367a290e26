"""Interactive REPL for acp-chat."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory
from prompt_toolkit.patch_stdout import patch_stdout

from acp_chat import __version__
from acp_chat.client import ChatClient
from acp_chat.interactive.commands import CommandHandler
from acp_chat.interactive.render import TranscriptRenderer

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

    from acp_chat.config import Config
    from acp_chat.state.storage import BlobStore

# Seconds to let transports finish their close handshakes on exit
SHUTDOWN_GRACE = 2.0


class InteractiveRepl:
    """Chat REPL with slash commands."""

    def __init__(
        self,
        config: Config,
        storage: BlobStore,
        history_file: Path | None = None,
        console: Console | None = None,
    ) -> None:
        self.config = config
        self.renderer = TranscriptRenderer(console)
        self.client = ChatClient(
            config=config,
            storage=storage,
            on_permission=self.renderer.show_permission,
        )
        self.renderer.attach(self.client)
        self.commands = CommandHandler(self.client, self.renderer)

        history = FileHistory(str(history_file)) if history_file else None
        self.session: PromptSession[str] = PromptSession(
            history=history,
            auto_suggest=AutoSuggestFromHistory(),
        )

    def _prompt_text(self) -> str:
        active = self.renderer.active_session
        return f"{active.name}> " if active else "acp> "

    async def run(self) -> None:
        """Run the REPL until /quit or EOF."""
        console = self.renderer.console
        console.print(f"[bold]ACP Chat[/bold] v{__version__}")
        console.print("Type [bold]/help[/bold] for commands, [bold]/quit[/bold] to exit.\n")

        sessions = self.client.sessions
        if sessions:
            self.renderer.select(sessions[0].id)
            console.print("[dim]Use /connect to reconnect this session.[/dim]")
        else:
            self.renderer.select(self.client.new_session().id)

        try:
            with patch_stdout():
                while not self.commands.quit_requested:
                    try:
                        line = await self.session.prompt_async(self._prompt_text)
                    except KeyboardInterrupt:
                        continue
                    except EOFError:
                        break

                    line = line.strip()
                    if line:
                        await self.commands.handle(line)
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Disconnect every session and wait briefly for transports to close."""
        self.client.close()
        current = asyncio.current_task()
        others = [t for t in asyncio.all_tasks() if t is not current]
        if others:
            await asyncio.wait(others, timeout=SHUTDOWN_GRACE)
