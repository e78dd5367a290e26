"""ACP Chat - chat client for Agent Client Protocol agents over WebSocket."""

__version__ = "0.1.0"

from acp_chat.client import ChatClient  # noqa: E402
from acp_chat.protocol.messages import PermissionDecision  # noqa: E402
from acp_chat.state.models import ChatMessage, MessageRole, Session, SessionStatus  # noqa: E402

__all__ = [
    "ChatClient",
    "ChatMessage",
    "MessageRole",
    "PermissionDecision",
    "Session",
    "SessionStatus",
]
