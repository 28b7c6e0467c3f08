"""Bulk action dispatcher: turns a confirmed dialog into one backend call."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from .api import ArchiveApiError, ArchiveBackend
from .dialog import ActionKind
from .view import DispatchPlan, ViewContext

logger = logging.getLogger("mailpick.dispatcher")

SUCCESS_TEXT = {
    ActionKind.DELETE: ("Messages deleted", "The selected messages have been deleted."),
    ActionKind.TAG_UPDATE: ("Tags updated", "The message tags have been updated."),
    ActionKind.RESTORE: (
        "Messages restored",
        "The selected messages have been restored to the IMAP server.",
    ),
}

FAILURE_TEXT = {
    ActionKind.DELETE: ("Delete failed", "Failed to delete messages"),
    ActionKind.TAG_UPDATE: ("Tag update failed", "Failed to update tags. Please try again."),
    ActionKind.RESTORE: ("Restore failed", "Failed to restore messages"),
}


@dataclass
class Notification:
    """User-visible outcome of a dispatch."""
    level: str  # "success" or "error"
    title: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"level": self.level, "title": self.title, "message": self.message}


@dataclass
class DispatchResult:
    ok: bool
    plan: DispatchPlan
    notification: Notification


class BulkActionDispatcher:
    """Send the open dialog's action to the backend and settle the view.

    On success the staged keys are drained from staging and selection and the
    dialog closes. On failure nothing is drained and the dialog stays open
    with the error, so the user can retry without re-selecting.
    """

    def __init__(
        self,
        backend: ArchiveBackend,
        notify: Callable[[Notification], None] | None = None,
    ):
        self.backend = backend
        self.notify = notify

    async def confirm(self, view: ViewContext, new_tag: str | None = None) -> DispatchResult:
        """Dispatch the dialog open on ``view``.

        Args:
            view: View whose dialog is awaiting confirmation (or retry)
            new_tag: Text left in the tag input; validated and merged into
                the tag draft before anything is sent

        Raises:
            TagValidationError: If ``new_tag`` is invalid (nothing is sent)
            InvalidTransition: If no dialog is awaiting confirmation, including
                when the same dialog is already dispatching
        """
        if new_tag and new_tag.strip():
            view.add_tag(new_tag)

        plan = view.begin_dispatch()
        logger.info(f"Dispatching {plan.kind.value} for {plan.message_count} message(s) "
                    f"across {len(plan.request)} account(s)")

        try:
            await self._send(plan)
        except (ArchiveApiError, asyncio.TimeoutError) as e:
            message = getattr(e, "message", None) or FAILURE_TEXT[plan.kind][1]
            logger.warning(f"{plan.kind.value} failed: {e}")
            view.fail_dispatch(message)
            return self._finish(False, plan, Notification("error", FAILURE_TEXT[plan.kind][0], message))
        except asyncio.CancelledError:
            view.fail_dispatch(FAILURE_TEXT[plan.kind][1])
            raise
        except Exception as e:
            # Any other backend failure must still leave the dialog retryable
            title, message = FAILURE_TEXT[plan.kind]
            logger.warning(f"{plan.kind.value} failed unexpectedly: {e!r}")
            view.fail_dispatch(message)
            return self._finish(False, plan, Notification("error", title, message))

        view.complete_dispatch()
        title, message = SUCCESS_TEXT[plan.kind]
        logger.info(f"{plan.kind.value} succeeded for {plan.message_count} message(s)")
        return self._finish(True, plan, Notification("success", title, message))

    async def _send(self, plan: DispatchPlan) -> None:
        if plan.kind == ActionKind.DELETE:
            await self.backend.delete_messages(plan.request)
        elif plan.kind == ActionKind.TAG_UPDATE:
            await self.backend.update_tags(plan.request, plan.tags or [])
        elif plan.kind == ActionKind.RESTORE:
            # Restore views are single-account by construction
            account_id, message_ids = next(iter(plan.request.items()))
            await self.backend.restore_messages(account_id, message_ids)
        else:
            raise ValueError(f"Unknown action: {plan.kind}")

    def _finish(self, ok: bool, plan: DispatchPlan, notification: Notification) -> DispatchResult:
        if self.notify:
            self.notify(notification)
        return DispatchResult(ok=ok, plan=plan, notification=notification)
