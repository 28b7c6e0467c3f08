"""Shared test fixtures."""

from unittest.mock import AsyncMock

import pytest

from mailpick.api import ArchiveBackend
from mailpick.config import ApiConfig, Config, ConsoleConfig, WebSocketConfig
from mailpick.envelope import Envelope, Page


def make_envelope(account_id: int, envelope_id: int, mailbox_id: int = 1, tags=None) -> Envelope:
    return Envelope(
        id=envelope_id,
        account_id=account_id,
        mailbox_id=mailbox_id,
        tags=list(tags or []),
        subject=f"Subject {account_id}/{envelope_id}",
        from_addr=f"sender{envelope_id}@example.com",
    )


@pytest.fixture
def envelope():
    """Factory for envelopes addressed by (account_id, id)."""
    return make_envelope


@pytest.fixture
def page_a():
    """Two envelopes of account 1, as rendered on one search page."""
    return Page(items=[make_envelope(1, 10), make_envelope(1, 11)], total_items=4, page=1, page_size=2)


@pytest.fixture
def page_b():
    """A different page of two envelopes, one per account."""
    return Page(items=[make_envelope(1, 12), make_envelope(2, 10)], total_items=4, page=2, page_size=2)


@pytest.fixture
def backend():
    """Archive backend whose calls all succeed."""
    mock = AsyncMock(spec=ArchiveBackend)
    mock.delete_messages.return_value = None
    mock.update_tags.return_value = None
    mock.restore_messages.return_value = None
    mock.all_tags.return_value = [{"tag": "/work", "count": 3}]
    return mock


@pytest.fixture
def sample_config():
    """Create a sample configuration for testing."""
    return Config(
        api=ApiConfig(base_url="http://archive.test", timeout_seconds=5),
        console=ConsoleConfig(page_size=2, restore_limit=3),
        websocket=WebSocketConfig(host="127.0.0.1", port=9754),
    )


@pytest.fixture
def sample_config_toml(tmp_path, monkeypatch):
    """Create a sample TOML config file."""
    # Token must come from environment variable
    monkeypatch.setenv("MAILPICK_API_TOKEN", "secret")
    monkeypatch.delenv("MAILPICK_WS_TOKEN", raising=False)

    config_path = tmp_path / "config.toml"
    config_path.write_text('''
[api]
base_url = "http://archive.example.com:15630"
timeout_seconds = 10

[console]
page_size = 25

[websocket]
host = "0.0.0.0"
port = 9999
''')
    return config_path
