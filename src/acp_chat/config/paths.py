"""Platform-aware path resolution for config and data files.

- Windows: %APPDATA%\\acp-chat\\
- Unix: $XDG_CONFIG_HOME/acp-chat/, ~/.config/acp-chat/ or ~/.acp-chat/
- Project: ./.acp-chat.yaml
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
PROJECT_CONFIG_FILENAME = ".acp-chat.yaml"
APP_NAME = "acp-chat"
SHORT_NAME = ".acp-chat"


def get_user_config_dir() -> Path | None:
    """Get the user-level config directory (may not exist)."""
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME
        return None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME

    home = Path.home()
    xdg_default = home / ".config"
    if xdg_default.exists():
        return xdg_default / APP_NAME

    return home / SHORT_NAME


def get_user_config_path() -> Path | None:
    """Get the user-level config file path (may not exist)."""
    config_dir = get_user_config_dir()
    if config_dir is None:
        return None
    return config_dir / CONFIG_FILENAME


def get_project_config_path(project_root: str | Path | None = None) -> Path:
    """Get the project-level config file path (may not exist)."""
    root = Path(project_root) if project_root else Path.cwd()
    return root / PROJECT_CONFIG_FILENAME


def get_config_paths(
    project_root: str | Path | None = None,
    explicit: Path | None = None,
) -> list[Path]:
    """Get all config paths in priority order (lowest to highest).

    Args:
        project_root: Directory searched for a project config file.
        explicit: A config file named on the command line, applied last.
    """
    paths: list[Path] = []

    user_path = get_user_config_path()
    if user_path:
        paths.append(user_path)

    paths.append(get_project_config_path(project_root))

    if explicit:
        paths.append(explicit)

    return paths


def get_default_data_dir() -> Path:
    """Directory used for the durable session list when none is configured."""
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data and sys.platform != "win32":
        return Path(xdg_data) / APP_NAME

    config_dir = get_user_config_dir()
    if config_dir is not None:
        return config_dir / "data"

    return Path.home() / SHORT_NAME / "data"
