"""Wire protocol spoken with the ACP WebSocket proxy.

Import the dispatcher from ``acp_chat.protocol.dispatcher`` directly.
"""

from acp_chat.protocol.messages import (
    CancelCommand,
    Command,
    ConnectCommand,
    DisconnectCommand,
    InboundFrame,
    NewSessionCommand,
    PermissionDecision,
    PermissionRequest,
    PermissionResponseCommand,
    PromptCommand,
    encode_command,
)

__all__ = [
    "CancelCommand",
    "Command",
    "ConnectCommand",
    "DisconnectCommand",
    "InboundFrame",
    "NewSessionCommand",
    "PermissionDecision",
    "PermissionRequest",
    "PermissionResponseCommand",
    "PromptCommand",
    "encode_command",
]
