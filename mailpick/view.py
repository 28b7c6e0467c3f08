"""Per-view coordinator state.

A ViewContext is created when a console view opens and is dropped when it
closes. It owns the view's selection, its staging set and its dialog state;
nothing here is shared between views, so two open views never see each
other's checkboxes.

MailboxView browses one mailbox of one account and keys envelopes by id.
SearchView shows unified search results across accounts and keys envelopes
by (account_id, id).
"""

from __future__ import annotations

import dataclasses
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from . import dialog, policy, staging
from .dialog import (
    ActionKind,
    AwaitingConfirmation,
    ClosedSuccess,
    DialogState,
    Dispatching,
    Idle,
    Staged,
    StagedWithError,
)
from .envelope import Envelope, Page
from .selection import (
    BulkActionRequest,
    CompositeSelection,
    Selection,
    SingleSelection,
    request_to_payload,
)
from .tags import merge_tag

logger = logging.getLogger("mailpick.view")


@dataclass
class DispatchPlan:
    """What a confirmed dialog will send: one request covering every account."""
    kind: ActionKind
    request: BulkActionRequest
    tags: list[str] | None = None

    @property
    def message_count(self) -> int:
        return sum(len(ids) for ids in self.request.values())


class ViewContext(ABC):
    """Selection, staging and dialog state owned by a single view.

    Base class; MailboxView and SearchView supply the scope-specific parts.
    """

    scope = ""

    def __init__(self, selection: Selection):
        self.selection = selection
        self.staging = selection.clear()
        self.dialog: DialogState = Idle()
        self.page: Page | None = None
        self.visible: list[Envelope] = []
        self.current_envelope: Envelope | None = None
        self.tag_draft: list[str] = []

    # -- page --------------------------------------------------------------

    def show(self, page: Page) -> None:
        """Replace the rendered page. Selection from other pages is kept."""
        self.page = page
        self.visible = list(page.items)

    def find_envelope(self, key) -> Envelope | None:
        for envelope in self.visible:
            if self.selection.key_for(envelope) == key:
                return envelope
        return None

    @abstractmethod
    def key_from_params(self, params: dict[str, Any]):
        """Build this scope's selection key from request parameters."""

    # -- selection ---------------------------------------------------------

    def toggle(self, key) -> Selection:
        self.selection = self.selection.toggle(key)
        return self.selection

    def toggle_envelope(self, envelope: Envelope) -> Selection:
        return self.toggle(self.selection.key_for(envelope))

    def toggle_all(self) -> Selection:
        self.selection = policy.toggle_all(self.selection, self.visible)
        return self.selection

    def clear(self) -> Selection:
        self.selection = self.selection.clear()
        return self.selection

    def count(self) -> int:
        return self.selection.count()

    def is_selected(self, key) -> bool:
        return self.selection.is_selected(key)

    def header_state(self) -> policy.CheckState:
        return policy.header_state(self.selection, self.visible)

    # -- staging -----------------------------------------------------------

    def _open(self, kind: ActionKind, staged: Selection) -> None:
        self.dialog = dialog.transition(self.dialog, Staged(kind))
        self.staging = staged
        self.dialog = dialog.transition(self.dialog, AwaitingConfirmation(kind))
        logger.debug(f"{self.scope} view staged {staged.count()} message(s) for {kind.value}")

    def stage_single_delete(self, key) -> Selection:
        """Stage exactly one envelope for deletion and open the dialog."""
        self._open(ActionKind.DELETE, staging.stage_single(self.selection, key))
        return self.staging

    def stage_bulk_delete(self) -> Selection:
        """Stage the whole current selection for deletion and open the dialog."""
        if self.selection.count() == 0:
            raise ValueError("No messages selected")
        self._open(ActionKind.DELETE, staging.stage_bulk(self.selection))
        return self.staging

    def open_tag_editor(self, envelope: Envelope) -> list[str]:
        """Open the tag dialog for one envelope, seeding the draft with its tags."""
        key = self.selection.key_for(envelope)
        self._open(ActionKind.TAG_UPDATE, staging.stage_single(self.selection, key))
        self.current_envelope = envelope
        self.tag_draft = list(envelope.tags)
        return self.tag_draft

    def add_tag(self, candidate: str) -> list[str]:
        """Merge a typed tag into the draft; raises TagValidationError if invalid."""
        self._require_kind(ActionKind.TAG_UPDATE)
        self.tag_draft = merge_tag(self.tag_draft, candidate)
        return self.tag_draft

    def remove_tag(self, tag: str) -> list[str]:
        self._require_kind(ActionKind.TAG_UPDATE)
        self.tag_draft = [t for t in self.tag_draft if t != tag]
        return self.tag_draft

    def open_restore(self) -> Selection:
        raise ValueError("Restore is only available when browsing a single account")

    def cancel(self) -> None:
        """Close the dialog without acting. The selection is untouched.

        Cancelling with no dialog open does nothing; cancelling while a request
        is in flight raises InvalidTransition.
        """
        if isinstance(self.dialog, Idle):
            return
        self.dialog = dialog.transition(self.dialog, Idle())
        self._reset_staging()
        logger.debug(f"{self.scope} view dialog cancelled")

    def close(self) -> None:
        """Dismiss a dialog that finished successfully."""
        if isinstance(self.dialog, ClosedSuccess):
            self.dialog = dialog.transition(self.dialog, Idle())

    def _reset_staging(self) -> None:
        self.staging = self.staging.clear()
        self.current_envelope = None
        self.tag_draft = []

    def _require_kind(self, kind: ActionKind) -> None:
        if not dialog.can_confirm(self.dialog) or getattr(self.dialog, "kind", None) != kind:
            raise dialog.InvalidTransition(f"No {kind.value} dialog is open")

    # -- dispatch hooks ----------------------------------------------------

    def build_plan(self) -> DispatchPlan:
        """Describe the request the open dialog would send."""
        kind = getattr(self.dialog, "kind", None)
        if not dialog.can_confirm(self.dialog) or kind is None:
            raise dialog.InvalidTransition(f"Nothing to confirm in state {self.dialog.name}")
        if kind == ActionKind.TAG_UPDATE:
            return DispatchPlan(kind, self.staging.to_request(), tags=list(self.tag_draft))
        return DispatchPlan(kind, self.staging.to_request())

    def begin_dispatch(self) -> DispatchPlan:
        """Move the dialog to dispatching and return what to send.

        Raises InvalidTransition when a request is already in flight, which is
        what prevents the same dialog from being submitted twice.
        """
        plan = self.build_plan()
        self.dialog = dialog.transition(self.dialog, Dispatching(plan.kind))
        return plan

    def complete_dispatch(self) -> None:
        """Drain exactly the staged keys and close the dialog."""
        kind = self.dialog.kind if isinstance(self.dialog, Dispatching) else None
        self.dialog = dialog.transition(self.dialog, ClosedSuccess(kind))
        staged = self.staging
        self.selection = staging.drain(self.selection, staged)

        if kind == ActionKind.DELETE:
            self.visible = [
                e for e in self.visible
                if not staged.is_selected(self.selection.key_for(e))
            ]
        elif kind == ActionKind.TAG_UPDATE and self.current_envelope is not None:
            self._apply_tags(self.current_envelope, list(self.tag_draft))

        self.staging = staging.drain(self.staging, staged)
        self.current_envelope = None
        self.tag_draft = []

    def fail_dispatch(self, error: str) -> None:
        """Return to the open dialog with the error; staging and selection stay."""
        kind = self.dialog.kind if isinstance(self.dialog, Dispatching) else None
        self.dialog = dialog.transition(self.dialog, StagedWithError(kind, error))

    def _apply_tags(self, envelope: Envelope, tags: list[str]) -> None:
        updated = dataclasses.replace(envelope, tags=tags)
        self.visible = [updated if e is envelope else e for e in self.visible]

    # -- snapshot ----------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """JSON-friendly state for the console to re-render from."""
        return {
            "scope": self.scope,
            "count": self.count(),
            "header": self.header_state().value,
            "selected": request_to_payload(self.selection.to_request()),
            "staging": request_to_payload(self.staging.to_request()),
            "dialog": dialog.describe(self.dialog),
            "tagDraft": list(self.tag_draft),
            "visible": [
                {**e.to_dict(), "selected": self.selection.is_selected(self.selection.key_for(e))}
                for e in self.visible
            ],
            "totalItems": self.page.total_items if self.page else 0,
        }


class MailboxView(ViewContext):
    """One mailbox of one account. Restore is only offered here."""

    scope = "mailbox"

    def __init__(self, account_id: int, mailbox_id: int | None = None, restore_limit: int = 100):
        super().__init__(SingleSelection(account_id))
        self.account_id = account_id
        self.restore_limit = restore_limit
        self.mailbox_id = mailbox_id

    def key_from_params(self, params: dict[str, Any]) -> int:
        account_id = params.get("accountId")
        if account_id is not None and int(account_id) != self.account_id:
            raise ValueError(f"Envelope belongs to account {account_id}, not {self.account_id}")
        return int(params["id"])

    def open_restore(self) -> Selection:
        """Stage the current selection for restoring to the IMAP server."""
        count = self.selection.count()
        if count == 0:
            raise ValueError("No messages selected")
        if count > self.restore_limit:
            raise ValueError(f"Too many messages to restore: {count} (max {self.restore_limit})")
        self._open(ActionKind.RESTORE, staging.stage_bulk(self.selection))
        return self.staging

    def snapshot(self) -> dict[str, Any]:
        data = super().snapshot()
        data["accountId"] = self.account_id
        data["mailboxId"] = self.mailbox_id
        return data


class SearchView(ViewContext):
    """Unified search results spanning accounts."""

    scope = "search"

    def __init__(self):
        super().__init__(CompositeSelection())

    def key_from_params(self, params: dict[str, Any]) -> tuple[int, int]:
        return (int(params["accountId"]), int(params["id"]))
