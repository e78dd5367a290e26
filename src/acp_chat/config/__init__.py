"""Configuration management for acp-chat.

Provides a YAML-based configuration cascade:
- User-level config (~/.config/acp-chat/ or %APPDATA%)
- Project-level config (./.acp-chat.yaml)
- An explicit --config file
- Environment variable overrides (ACP_CHAT_*)
- Command-line overrides (highest priority)

Example usage:
    from acp_chat.config import load_config

    config = load_config(overrides={"connection": {"endpoint": "ws://host:9315/ws"}})
    print(config.connection.endpoint)
"""

from acp_chat.config.loader import load_config
from acp_chat.config.paths import (
    get_config_paths,
    get_default_data_dir,
    get_project_config_path,
    get_user_config_path,
)
from acp_chat.config.schema import (
    DEFAULT_ENDPOINT,
    Config,
    ConnectionConfig,
    LoggingConfig,
    StorageConfig,
)

__all__ = [
    "Config",
    "load_config",
    "ConnectionConfig",
    "LoggingConfig",
    "StorageConfig",
    "DEFAULT_ENDPOINT",
    "get_config_paths",
    "get_default_data_dir",
    "get_project_config_path",
    "get_user_config_path",
]
