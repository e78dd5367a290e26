"""Interactive terminal front end for acp-chat."""

from acp_chat.interactive.commands import CommandHandler
from acp_chat.interactive.render import TranscriptRenderer
from acp_chat.interactive.repl import InteractiveRepl

__all__ = [
    "InteractiveRepl",
    "CommandHandler",
    "TranscriptRenderer",
]
