"""Console bridge command."""

from __future__ import annotations

import logging

from ..api import ArchiveClient
from ..config import Config
from ..websocket_server import run_console_server

logger = logging.getLogger("mailpick")


async def run_console(config: Config) -> None:
    """Serve console sessions against the configured archive backend."""
    logger.info(f"Using archive backend at {config.api.base_url}")
    async with ArchiveClient(config.api) as client:
        await run_console_server(config, client)
