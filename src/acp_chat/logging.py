"""Logging configuration for acp-chat.

Everything logs under the ``acp_chat`` logger; modules take a child via
``get_logger("connection")`` and friends.

The REPL owns the terminal, so logging is quiet unless asked for:
- A log file comes from config (``logging.file``) or ACP_CHAT_LOG
- Without a file, records only go to stderr when it is a real console
- ``-v`` flags map to verbosity levels error(0) .. trace(4)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from acp_chat.config.schema import LoggingConfig

# Custom log levels
TRACE = 5  # raw frames in both directions
VERBOSE = 15  # per-frame routing decisions

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("acp_chat")

_initialized = False

# Level names accepted in config files (case-insensitive)
_LEVEL_MAP = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# logging.verbose / -v count to level (0=errors only, 4=every frame)
_VERBOSITY_MAP = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: VERBOSE,
    4: TRACE,
}


class _LowercaseLevelFormatter(logging.Formatter):
    """Formatter that emits lowercase level names."""

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Pick the effective log level for a logging config.

    ``verbose`` (int) takes precedence over ``level`` (str). Without either the
    level is WARNING: connection chatter at INFO would interleave with the
    transcript.
    """
    if config is None:
        return logging.WARNING
    if config.verbose is not None:
        return _VERBOSITY_MAP.get(config.verbose, TRACE)
    if config.level:
        return _LEVEL_MAP.get(config.level.upper(), logging.WARNING)
    return logging.WARNING


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Initialize logging based on configuration.

    Call this once at startup. Subsequent calls are no-ops until
    ``reset_logging``.

    Verbosity levels (-v count + 1, or logging.verbose):
        0 = error    - errors only
        1 = warning  - dropped frames, failed sends (default)
        2 = info     - connects, disconnects, permission requests
        3 = verbose  - frame routing
        4 = trace    - raw frames

    Args:
        config: Optional LoggingConfig with level, verbose, and file settings.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    log_level = resolve_level(config)
    logger.setLevel(log_level)

    # Format: HH:MM:SS level: message
    formatter = _LowercaseLevelFormatter(
        "%(asctime)s %(levelname)s: %(message)s", datefmt="%H:%M:%S"
    )

    # The loader already folds ACP_CHAT_LOG into config.file; the env lookup
    # covers callers that pass no config at all
    log_path = config.file if config and config.file else os.environ.get("ACP_CHAT_LOG")

    if log_path:
        log_path = os.path.expanduser(log_path)
        try:
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[acp-chat] Failed to open log file: {e}", file=sys.stderr)
                _add_stderr_handler(formatter, log_level)
    elif sys.stderr.isatty():
        # Pipes (CI, IDE runners) get nothing rather than interleaved noise
        _add_stderr_handler(formatter, log_level)


def reset_logging() -> None:
    """Detach and close handlers installed by ``setup_logging``."""
    global _initialized
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    _initialized = False


def _add_stderr_handler(formatter: logging.Formatter, level: int = logging.DEBUG) -> None:
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the acp_chat logger, or a child of it (e.g. "transport", "store")."""
    if name:
        return logger.getChild(name)
    return logger
