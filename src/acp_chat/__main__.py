"""CLI entry point for acp-chat."""

import sys


def main() -> int:
    """Main entry point for acp-chat CLI."""
    from acp_chat.cli import run_cli

    return run_cli(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
