"""Session and message records.

Records are frozen: every change produces a new object via ``dataclasses.replace``
so snapshots handed to the presentation layer never change underneath it.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


def make_id() -> str:
    """Generate a locally unique opaque id."""
    return uuid.uuid4().hex


class SessionStatus(str, Enum):
    """Connection status of a session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"
    SYSTEM = "system"


class ToolStatus(str, Enum):
    """Resolution state of a tool call awaiting permission."""

    PENDING = "pending"
    ALLOWED = "allowed"
    DENIED = "denied"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ToolCallInfo:
    title: str
    input: Any = None


@dataclass(frozen=True)
class ToolResult:
    status: ToolStatus = ToolStatus.PENDING
    output: str | None = None


@dataclass(frozen=True)
class AgentInfo:
    name: str
    version: str | None = None


@dataclass(frozen=True)
class ModelState:
    selected: str | None = None
    available: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChatMessage:
    """One rendered turn or protocol event."""

    role: MessageRole
    content: str = ""
    id: str = field(default_factory=make_id)
    timestamp: float = field(default_factory=time.time)
    is_thinking: bool = False
    tool_call: ToolCallInfo | None = None
    tool_result: ToolResult | None = None
    stop_reason: str | None = None

    def with_tool_status(self, status: ToolStatus) -> ChatMessage:
        result = self.tool_result or ToolResult()
        return replace(self, tool_result=replace(result, status=status))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp,
        }
        if self.is_thinking:
            data["isThinking"] = True
        if self.tool_call is not None:
            data["toolCall"] = {"title": self.tool_call.title, "input": self.tool_call.input}
        if self.tool_result is not None:
            result: dict[str, Any] = {"status": self.tool_result.status.value}
            if self.tool_result.output is not None:
                result["output"] = self.tool_result.output
            data["toolResult"] = result
        if self.stop_reason is not None:
            data["stopReason"] = self.stop_reason
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        tool_call = data.get("toolCall")
        tool_result = data.get("toolResult")
        return cls(
            id=data["id"],
            role=MessageRole(data["role"]),
            content=data.get("content", ""),
            timestamp=data.get("timestamp", 0.0),
            is_thinking=bool(data.get("isThinking", False)),
            tool_call=(
                ToolCallInfo(title=tool_call.get("title", ""), input=tool_call.get("input"))
                if isinstance(tool_call, dict)
                else None
            ),
            tool_result=(
                ToolResult(
                    status=ToolStatus(tool_result.get("status", "pending")),
                    output=tool_result.get("output"),
                )
                if isinstance(tool_result, dict)
                else None
            ),
            stop_reason=data.get("stopReason"),
        )


@dataclass(frozen=True)
class Session:
    """One user-visible conversation plus its connection state.

    ``remote_session_id`` is only set while ``status`` is CONNECTED.
    """

    name: str
    endpoint: str
    credential: str = ""
    id: str = field(default_factory=make_id)
    status: SessionStatus = SessionStatus.DISCONNECTED
    remote_session_id: str | None = None
    agent_info: AgentInfo | None = None
    models: ModelState | None = None
    messages: tuple[ChatMessage, ...] = ()
    created_at: float = field(default_factory=time.time)

    def find_message(self, message_id: str) -> ChatMessage | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for persistence. Live connection state is not written."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "endpoint": self.endpoint,
            "credential": self.credential,
            "messages": [m.to_dict() for m in self.messages],
            "createdAt": self.created_at,
        }
        if self.agent_info is not None:
            data["agentInfo"] = {"name": self.agent_info.name, "version": self.agent_info.version}
        if self.models is not None:
            data["models"] = {
                "selected": self.models.selected,
                "available": list(self.models.available),
            }
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        """Rebuild a persisted session. Status always comes back DISCONNECTED."""
        agent_info = data.get("agentInfo")
        models = data.get("models")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            endpoint=data.get("endpoint", ""),
            credential=data.get("credential", ""),
            messages=tuple(ChatMessage.from_dict(m) for m in data.get("messages", [])),
            agent_info=(
                AgentInfo(name=agent_info.get("name", ""), version=agent_info.get("version"))
                if isinstance(agent_info, dict)
                else None
            ),
            models=(
                ModelState(
                    selected=models.get("selected"),
                    available=tuple(models.get("available") or ()),
                )
                if isinstance(models, dict)
                else None
            ),
            created_at=data.get("createdAt", 0.0),
        )
