"""Configuration schema dataclasses for acp-chat.

All fields carry defaults so partial YAML files merge cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_ENDPOINT = "ws://localhost:9315/ws"


@dataclass
class ConnectionConfig:
    """Default connection parameters for new sessions."""

    endpoint: str = DEFAULT_ENDPOINT
    credential: str = ""  # Sent as ?token=... when non-empty
    open_timeout: float = 10.0  # Seconds to wait for the WebSocket handshake
    max_frame_size: int = 16 * 1024 * 1024  # Largest inbound frame accepted


@dataclass
class StorageConfig:
    """Where the durable session list lives."""

    directory: str | None = None  # Default: user data dir (see config.paths)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level keys, kept for forward compatibility
    extra: dict[str, Any] = field(default_factory=dict)
