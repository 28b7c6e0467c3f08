"""Shared helpers for CLI commands."""

from __future__ import annotations

import argparse
import logging

from ..config import Config
from ..dispatcher import DispatchResult

logger = logging.getLogger("mailpick")


def apply_cli_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Apply CLI argument overrides to config."""
    if getattr(args, "api_url", None):
        config.api.base_url = args.api_url
    if getattr(args, "token", None):
        config.api.token = args.token
    if getattr(args, "page_size", None):
        config.console.page_size = args.page_size
    if getattr(args, "port", None):
        config.websocket.port = args.port
    return config


def parse_key(text: str) -> tuple[int, int]:
    """Parse an ``ACCOUNT:ID`` message reference.

    Raises:
        ValueError: If the text is not two integers separated by a colon
    """
    account, sep, envelope = text.partition(":")
    if not sep:
        raise ValueError(f"Expected ACCOUNT:ID, got {text!r}")
    try:
        return int(account), int(envelope)
    except ValueError:
        raise ValueError(f"Expected ACCOUNT:ID, got {text!r}") from None


def report(result: DispatchResult) -> int:
    """Print a dispatch outcome and return the process exit code."""
    notification = result.notification
    print(f"{notification.title}: {notification.message}")
    return 0 if result.ok else 1
