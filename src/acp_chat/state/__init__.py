"""Session state: records, persistence and the canonical store."""

from acp_chat.state.models import (
    AgentInfo,
    ChatMessage,
    MessageRole,
    ModelState,
    Session,
    SessionStatus,
    ToolCallInfo,
    ToolResult,
    ToolStatus,
)
from acp_chat.state.storage import (
    STORAGE_KEY,
    BlobStore,
    FileBlobStore,
    MemoryBlobStore,
    load_sessions,
    save_sessions,
)
from acp_chat.state.store import SessionStateStore

__all__ = [
    "AgentInfo",
    "ChatMessage",
    "MessageRole",
    "ModelState",
    "Session",
    "SessionStatus",
    "ToolCallInfo",
    "ToolResult",
    "ToolStatus",
    "STORAGE_KEY",
    "BlobStore",
    "FileBlobStore",
    "MemoryBlobStore",
    "load_sessions",
    "save_sessions",
    "SessionStateStore",
]
