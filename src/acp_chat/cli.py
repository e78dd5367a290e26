"""Command-line interface for acp-chat."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from acp_chat import __version__

if TYPE_CHECKING:
    from acp_chat.state.storage import BlobStore


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="acp-chat",
        description="Chat with ACP agents over WebSocket",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (can be repeated)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Config file applied on top of user and project config",
    )
    parser.add_argument(
        "--url",
        help="WebSocket endpoint for new sessions (default: ws://localhost:9315/ws)",
    )
    parser.add_argument(
        "--token",
        help="Credential sent as ?token=... for new sessions",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory holding the saved session list",
    )

    subparsers = parser.add_subparsers(dest="mode", help="Operating mode")
    subparsers.add_parser("chat", help="Interactive chat (default)")
    subparsers.add_parser("sessions", help="List saved sessions")

    return parser


def cli_overrides(parsed: argparse.Namespace) -> dict[str, Any]:
    """Translate command-line flags into a config override dict."""
    overrides: dict[str, Any] = {
        "connection": {"endpoint": parsed.url, "credential": parsed.token},
        "storage": {"directory": str(parsed.data_dir) if parsed.data_dir else None},
    }
    if parsed.verbose:
        # -v = info, -vv = verbose, -vvv = trace
        overrides["logging"] = {"verbose": min(1 + parsed.verbose, 4)}
    return overrides


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    from acp_chat.config import get_default_data_dir, load_config
    from acp_chat.logging import setup_logging
    from acp_chat.state.storage import FileBlobStore

    config = load_config(config_path=parsed.config, overrides=cli_overrides(parsed))
    setup_logging(config.logging)

    data_dir = (
        Path(config.storage.directory).expanduser()
        if config.storage.directory
        else get_default_data_dir()
    )
    storage = FileBlobStore(data_dir)

    if parsed.mode == "sessions":
        return list_saved_sessions(storage)

    from acp_chat.interactive.repl import InteractiveRepl

    data_dir.mkdir(parents=True, exist_ok=True)
    repl = InteractiveRepl(config, storage, history_file=data_dir / "history")
    try:
        asyncio.run(repl.run())
    except KeyboardInterrupt:
        pass
    return 0


def list_saved_sessions(storage: BlobStore) -> int:
    """Print the saved session list."""
    from acp_chat.state.storage import load_sessions

    console = Console()
    sessions = load_sessions(storage)
    if not sessions:
        console.print("[dim]No saved sessions[/dim]")
        return 0

    table = Table(title="Saved Sessions")
    table.add_column("#")
    table.add_column("Name")
    table.add_column("Endpoint")
    table.add_column("Messages", justify="right")
    table.add_column("Created")

    for index, session in enumerate(sessions, start=1):
        created = datetime.fromtimestamp(session.created_at).strftime("%Y-%m-%d %H:%M")
        table.add_row(
            str(index),
            escape(session.name),
            session.endpoint,
            str(len(session.messages)),
            created,
        )

    console.print(table)
    return 0
