"""Wire frames exchanged with the ACP WebSocket proxy.

Every frame is a JSON object ``{"type": ..., "payload": ...}``. Inbound
payloads are validated per frame type; outbound commands are pydantic models
serialized with their camelCase aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class AcpModel(BaseModel):
    """Base model for wire types with populate_by_name enabled."""

    model_config = ConfigDict(populate_by_name=True)


class TextContent(AcpModel):
    """Text content block."""

    type: Literal["text"] = "text"
    text: str


# ---------------------------------------------------------------------------
# Inbound (remote -> client)
# ---------------------------------------------------------------------------


class InboundFrame(AcpModel):
    """Envelope of every inbound frame."""

    type: str
    payload: dict[str, Any] | None = None


class AgentInfo(AcpModel):
    """Agent identification reported in a status frame."""

    name: str
    version: str | None = None


class StatusPayload(AcpModel):
    """Payload of ``status``."""

    connected: bool
    agent_info: AgentInfo | None = Field(default=None, alias="agentInfo")
    capabilities: Any = None


class ModelState(AcpModel):
    """Model selection advertised by the agent."""

    selected: str | None = None
    available: list[str] = Field(default_factory=list)


class SessionCreatedPayload(AcpModel):
    """Payload of ``session_created``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    session_id: str = Field(alias="sessionId")
    models: ModelState | None = None
    prompt_capabilities: dict[str, Any] | None = Field(
        default=None, alias="promptCapabilities"
    )


class SessionUpdatePayload(AcpModel):
    """Payload of ``session_update``.

    Individual updates are left unvalidated: their ``type`` is open-ended and
    an element of unknown shape must not cost the rest of the batch.
    """

    session_id: str | None = Field(default=None, alias="sessionId")
    updates: list[Any] = Field(default_factory=list)


class ToolCall(AcpModel):
    """Tool call description shown in a permission prompt."""

    title: str | None = None
    description: str | None = None
    input: Any = None
    name: str | None = None


class PermissionOption(AcpModel):
    """One choice offered by a permission request."""

    title: str
    description: str | None = None


class PermissionRequest(AcpModel):
    """Payload of ``permission_request``."""

    request_id: str = Field(alias="requestId")
    session_id: str | None = Field(default=None, alias="sessionId")
    options: list[PermissionOption] = Field(default_factory=list)
    tool_call: ToolCall = Field(default_factory=ToolCall, alias="toolCall")


class PromptCompletePayload(AcpModel):
    """Payload of ``prompt_complete`` (optional on the wire)."""

    stop_reason: str | None = Field(default=None, alias="stopReason")


class ErrorPayload(AcpModel):
    """Payload of ``error``."""

    message: str


# ---------------------------------------------------------------------------
# Outbound (client -> remote)
# ---------------------------------------------------------------------------


class PermissionDecision(str, Enum):
    """Binary outcome of a permission prompt."""

    ALLOW = "allow"
    DENY = "deny"


class ConnectCommand(AcpModel):
    type: Literal["connect"] = "connect"


class NewSessionPayload(AcpModel):
    pass


class NewSessionCommand(AcpModel):
    type: Literal["new_session"] = "new_session"
    payload: NewSessionPayload = Field(default_factory=NewSessionPayload)


class PromptPayload(AcpModel):
    content: list[TextContent]


class PromptCommand(AcpModel):
    type: Literal["prompt"] = "prompt"
    payload: PromptPayload

    @classmethod
    def from_text(cls, text: str) -> PromptCommand:
        return cls(payload=PromptPayload(content=[TextContent(text=text)]))


class CancelCommand(AcpModel):
    type: Literal["cancel"] = "cancel"


class PermissionOutcome(AcpModel):
    outcome: PermissionDecision


class PermissionResponsePayload(AcpModel):
    request_id: str = Field(alias="requestId")
    outcome: PermissionOutcome


class PermissionResponseCommand(AcpModel):
    type: Literal["permission_response"] = "permission_response"
    payload: PermissionResponsePayload

    @classmethod
    def for_request(
        cls, request_id: str, decision: PermissionDecision
    ) -> PermissionResponseCommand:
        return cls(
            payload=PermissionResponsePayload(
                request_id=request_id,
                outcome=PermissionOutcome(outcome=decision),
            )
        )


class DisconnectCommand(AcpModel):
    type: Literal["disconnect"] = "disconnect"


Command = (
    ConnectCommand
    | NewSessionCommand
    | PromptCommand
    | CancelCommand
    | PermissionResponseCommand
    | DisconnectCommand
)


def encode_command(command: Command) -> str:
    """Serialize an outbound command to a compact JSON frame."""
    return command.model_dump_json(by_alias=True, exclude_none=True)
