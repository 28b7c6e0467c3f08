"""Command implementations for mailpick CLI."""

from .console import run_console
from .messages import (
    delete_cmd,
    list_messages_cmd,
    list_tags_cmd,
    restore_cmd,
    tag_cmd,
)
from .utils import apply_cli_overrides, parse_key, report

__all__ = [
    # console
    "run_console",
    # messages
    "delete_cmd",
    "list_messages_cmd",
    "list_tags_cmd",
    "restore_cmd",
    "tag_cmd",
    # utils
    "apply_cli_overrides",
    "parse_key",
    "report",
]
