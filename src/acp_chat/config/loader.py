"""Configuration file loading.

Handles:
- YAML file parsing
- Environment variable overrides
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from acp_chat.config.merge import merge_configs
from acp_chat.config.paths import get_config_paths
from acp_chat.config.schema import (
    DEFAULT_ENDPOINT,
    Config,
    ConnectionConfig,
    LoggingConfig,
    StorageConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("acp_chat.config")

# Environment variable -> (section, key)
ENV_VARS: dict[str, tuple[str, str]] = {
    "ACP_CHAT_URL": ("connection", "endpoint"),
    "ACP_CHAT_TOKEN": ("connection", "credential"),
    "ACP_CHAT_DATA": ("storage", "directory"),
    "ACP_CHAT_LOG": ("logging", "file"),
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build a config dict from ACP_CHAT_* environment variables."""
    overrides: dict[str, Any] = {}

    for var, (section, key) in ENV_VARS.items():
        value = os.environ.get(var)
        if value:
            overrides.setdefault(section, {})[key] = value

    return overrides


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert a merged dict to the typed Config dataclass."""
    conn_data = _section(data, "connection")
    connection = ConnectionConfig(
        endpoint=str(conn_data.get("endpoint") or DEFAULT_ENDPOINT),
        credential=str(conn_data.get("credential") or ""),
        open_timeout=float(conn_data.get("open_timeout", 10.0)),
        max_frame_size=int(conn_data.get("max_frame_size", 16 * 1024 * 1024)),
    )

    storage_data = _section(data, "storage")
    storage = StorageConfig(directory=storage_data.get("directory"))

    log_data = _section(data, "logging")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    known_keys = {"connection", "storage", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(
        connection=connection,
        storage=storage,
        logging=logging_config,
        extra=extra,
    )


def load_config(
    config_path: Path | None = None,
    project_root: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. ``overrides`` (command-line flags)
    2. Environment variables
    3. ``config_path`` (--config)
    4. Project config (./.acp-chat.yaml)
    5. User config (~/.config/acp-chat/config.yaml or %APPDATA%)

    Args:
        config_path: Explicit config file.
        project_root: Directory searched for the project config.
        overrides: Nested dict of values that win over everything else.

    Returns:
        Merged Config object.
    """
    configs: list[dict[str, Any]] = []

    for path in get_config_paths(project_root, explicit=config_path):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    if overrides:
        configs.append(overrides)

    return dict_to_config(merge_configs(*configs))
