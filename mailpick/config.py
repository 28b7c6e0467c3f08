"""Configuration management for mailpick."""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class ApiConfig:
    """Archive backend REST configuration.

    The access token MUST be provided via the MAILPICK_API_TOKEN environment
    variable (or the --token flag); it is never read from the config file.
    """
    base_url: str = "http://localhost:15630"
    timeout_seconds: int = 30
    token: str = field(default="", repr=False)

    def __post_init__(self):
        """Load the access token from the environment."""
        env_token = os.environ.get("MAILPICK_API_TOKEN")
        if env_token:
            self.token = env_token


@dataclass
class ConsoleConfig:
    page_size: int = 50
    restore_limit: int = 100  # Backend rejects larger restore batches


@dataclass
class WebSocketConfig:
    """WebSocket bridge configuration for the browser console.

    Shared token can be set via MAILPICK_WS_TOKEN environment variable.
    """
    enabled: bool = True
    host: str = "127.0.0.1"  # Localhost only
    port: int = 9754
    auth_token: str = field(default="", repr=False)

    def __post_init__(self):
        """Load auth token from environment."""
        env_token = os.environ.get("MAILPICK_WS_TOKEN")
        if env_token:
            self.auth_token = env_token


@dataclass
class Config:
    api: ApiConfig = field(default_factory=ApiConfig)
    console: ConsoleConfig = field(default_factory=ConsoleConfig)
    websocket: WebSocketConfig = field(default_factory=WebSocketConfig)


def load_config(path: str | Path) -> Config:
    """Load configuration from a TOML file."""
    path = Path(path)
    with path.open("rb") as f:
        data = tomllib.load(f)

    api_data = data.get("api", {})
    if "token" in api_data:
        logger.warning("Ignoring [api] token in config file; use MAILPICK_API_TOKEN")
    api_config = ApiConfig(
        base_url=api_data.get("base_url", "http://localhost:15630"),
        timeout_seconds=api_data.get("timeout_seconds", 30),
    )

    console_data = data.get("console", {})
    console_config = ConsoleConfig(
        page_size=console_data.get("page_size", 50),
        restore_limit=console_data.get("restore_limit", 100),
    )

    ws_data = data.get("websocket", {})
    ws_config = WebSocketConfig(
        enabled=ws_data.get("enabled", True),
        host=ws_data.get("host", "127.0.0.1"),
        port=ws_data.get("port", 9754),
    )

    return Config(
        api=api_config,
        console=console_config,
        websocket=ws_config,
    )
