"""Message commands - list, tags, delete, tag and restore."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

from ..api import ArchiveApiError, ArchiveBackend, ArchiveClient
from ..config import Config
from ..dispatcher import BulkActionDispatcher
from ..envelope import Envelope
from ..view import MailboxView, SearchView
from .utils import parse_key, report

logger = logging.getLogger("mailpick")


async def list_messages_cmd(
    config: Config,
    account_id: int,
    mailbox_id: int,
    page: int = 1,
    backend: ArchiveBackend | None = None,
) -> int:
    """List one page of a mailbox."""
    async with _open_backend(config, backend) as api:
        try:
            result = await api.list_messages(account_id, mailbox_id, page, config.console.page_size)
        except ArchiveApiError as e:
            logger.error(f"Failed to list messages: {e}")
            return 1

    print(f"{'ID':<10} {'From':<30} {'Subject':<40} {'Tags'}")
    print("-" * 100)
    for envelope in result.items:
        from_addr = (envelope.from_addr or "")[:28]
        subject = (envelope.subject or "")[:38]
        print(f"{envelope.id:<10} {from_addr:<30} {subject:<40} {', '.join(envelope.tags)}")

    total_pages = result.total_pages or 1
    print(f"\nPage {result.page or page} of {total_pages} ({result.total_items} messages)")
    return 0


async def list_tags_cmd(config: Config, backend: ArchiveBackend | None = None) -> int:
    """List every tag known to the archive with its message count."""
    async with _open_backend(config, backend) as api:
        try:
            tags = await api.all_tags()
        except ArchiveApiError as e:
            logger.error(f"Failed to list tags: {e}")
            return 1

    if not tags:
        print("No tags found.")
        return 0

    print(f"{'Tag':<50} {'Count':>8}")
    print("-" * 60)
    for entry in tags:
        print(f"{entry.get('tag', ''):<50} {entry.get('count', 0):>8}")
    return 0


async def delete_cmd(
    config: Config,
    keys: list[str],
    backend: ArchiveBackend | None = None,
) -> int:
    """Delete messages given as ACCOUNT:ID references, in one request."""
    view = SearchView()
    for text in keys:
        key = parse_key(text)
        if not view.is_selected(key):
            view.toggle(key)

    view.stage_bulk_delete()
    async with _open_backend(config, backend) as api:
        result = await BulkActionDispatcher(api).confirm(view)
    return report(result)


async def tag_cmd(
    config: Config,
    key: str,
    tags: list[str],
    backend: ArchiveBackend | None = None,
) -> int:
    """Replace the tags of one message.

    Each tag is trimmed, lower-cased and validated before anything is sent;
    repeated tags are collapsed.
    """
    account_id, envelope_id = parse_key(key)
    view = SearchView()
    view.open_tag_editor(Envelope(id=envelope_id, account_id=account_id, mailbox_id=0))
    for tag in tags:
        view.add_tag(tag)

    async with _open_backend(config, backend) as api:
        result = await BulkActionDispatcher(api).confirm(view)
    return report(result)


async def restore_cmd(
    config: Config,
    account_id: int,
    message_ids: list[int],
    backend: ArchiveBackend | None = None,
) -> int:
    """Restore archived messages of one account back to its IMAP server."""
    view = MailboxView(account_id, restore_limit=config.console.restore_limit)
    for message_id in message_ids:
        if not view.is_selected(message_id):
            view.toggle(message_id)

    view.open_restore()
    async with _open_backend(config, backend) as api:
        result = await BulkActionDispatcher(api).confirm(view)
    return report(result)


@contextlib.asynccontextmanager
async def _open_backend(config: Config, backend: ArchiveBackend | None) -> AsyncIterator[ArchiveBackend]:
    """Use a supplied backend as-is, or open an ArchiveClient for the command."""
    if backend is not None:
        yield backend
        return
    async with ArchiveClient(config.api) as client:
        yield client
