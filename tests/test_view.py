"""Tests for per-view coordinator state."""

import pytest

from mailpick.dialog import (
    ActionKind,
    AwaitingConfirmation,
    ClosedSuccess,
    Dispatching,
    Idle,
    InvalidTransition,
    StagedWithError,
)
from mailpick.envelope import Page
from mailpick.policy import CheckState
from mailpick.selection import CompositeSelection
from mailpick.tags import TagValidationError
from mailpick.view import MailboxView, SearchView, ViewContext


@pytest.fixture
def search_view(page_a):
    view = SearchView()
    view.show(page_a)
    return view


@pytest.fixture
def mailbox_view(envelope):
    view = MailboxView(account_id=1, mailbox_id=5, restore_limit=3)
    view.show(Page(items=[envelope(1, i, mailbox_id=5) for i in (10, 11, 12, 13)], total_items=4))
    return view


class TestScopes:
    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            ViewContext(CompositeSelection())

    def test_restore_limit_belongs_to_mailbox_scope(self, mailbox_view):
        assert mailbox_view.restore_limit == 3
        assert not hasattr(SearchView(), "restore_limit")


class TestSelection:
    def test_views_do_not_share_selection(self, page_a):
        first = SearchView()
        second = SearchView()
        first.show(page_a)
        second.show(page_a)
        first.toggle((1, 10))
        assert first.count() == 1
        assert second.count() == 0

    def test_selection_survives_page_change(self, search_view, page_b):
        search_view.toggle((1, 10))
        search_view.show(page_b)
        assert search_view.is_selected((1, 10))
        assert search_view.header_state() == CheckState.INDETERMINATE

    def test_toggle_envelope(self, search_view):
        search_view.toggle_envelope(search_view.visible[1])
        assert search_view.selection.keys() == [(1, 11)]

    def test_toggle_all_then_header(self, search_view):
        search_view.toggle_all()
        assert search_view.header_state() == CheckState.CHECKED
        search_view.toggle_all()
        assert search_view.count() == 0

    def test_key_from_params(self, search_view, mailbox_view):
        assert search_view.key_from_params({"accountId": "2", "id": 7}) == (2, 7)
        assert mailbox_view.key_from_params({"id": "7"}) == 7

    def test_mailbox_rejects_foreign_account(self, mailbox_view):
        with pytest.raises(ValueError, match="account 2"):
            mailbox_view.key_from_params({"accountId": 2, "id": 7})

    def test_find_envelope(self, search_view):
        assert search_view.find_envelope((1, 11)) is search_view.visible[1]
        assert search_view.find_envelope((2, 11)) is None


class TestStaging:
    def test_single_delete_does_not_disturb_selection(self, search_view):
        search_view.toggle((1, 10))
        search_view.toggle((2, 10))

        staged = search_view.stage_single_delete((1, 11))

        assert staged.keys() == [(1, 11)]
        assert search_view.selection.keys() == [(1, 10), (2, 10)]
        assert search_view.dialog == AwaitingConfirmation(ActionKind.DELETE)

    def test_bulk_delete_copies_selection(self, search_view):
        search_view.toggle((1, 10))
        staged = search_view.stage_bulk_delete()
        assert staged == search_view.selection
        assert staged is not search_view.selection

    def test_bulk_delete_needs_selection(self, search_view):
        with pytest.raises(ValueError, match="No messages selected"):
            search_view.stage_bulk_delete()
        assert search_view.dialog == Idle()

    def test_second_dialog_rejected_while_open(self, search_view):
        search_view.stage_single_delete((1, 10))
        with pytest.raises(InvalidTransition):
            search_view.stage_single_delete((1, 11))

    def test_cancel_keeps_selection_and_clears_staging(self, search_view):
        search_view.toggle((1, 10))
        search_view.stage_bulk_delete()
        search_view.cancel()
        assert search_view.dialog == Idle()
        assert search_view.staging.count() == 0
        assert search_view.count() == 1

    def test_cancel_when_idle_is_noop(self, search_view):
        search_view.cancel()
        assert search_view.dialog == Idle()

    def test_cancel_while_dispatching_raises(self, search_view):
        search_view.stage_single_delete((1, 10))
        search_view.begin_dispatch()
        with pytest.raises(InvalidTransition):
            search_view.cancel()


class TestTagEditor:
    def test_seeds_draft_from_envelope(self, search_view, envelope):
        target = envelope(1, 10, tags=["/work"])
        search_view.visible[0] = target
        draft = search_view.open_tag_editor(target)
        assert draft == ["/work"]
        assert search_view.staging.keys() == [(1, 10)]

    def test_add_and_remove(self, search_view):
        search_view.open_tag_editor(search_view.visible[0])
        search_view.add_tag(" /Home ")
        search_view.add_tag("/home")
        assert search_view.tag_draft == ["/home"]
        search_view.remove_tag("/home")
        assert search_view.tag_draft == []

    def test_invalid_tag_leaves_draft(self, search_view):
        search_view.open_tag_editor(search_view.visible[0])
        with pytest.raises(TagValidationError):
            search_view.add_tag("home")
        assert search_view.tag_draft == []

    def test_add_tag_without_dialog(self, search_view):
        with pytest.raises(InvalidTransition, match="No tag-update dialog"):
            search_view.add_tag("/x")

    def test_add_tag_to_delete_dialog(self, search_view):
        search_view.stage_single_delete((1, 10))
        with pytest.raises(InvalidTransition):
            search_view.add_tag("/x")


class TestRestore:
    def test_stages_selection(self, mailbox_view):
        mailbox_view.toggle(10)
        mailbox_view.toggle(11)
        staged = mailbox_view.open_restore()
        assert staged.to_request() == {1: [10, 11]}
        assert mailbox_view.dialog == AwaitingConfirmation(ActionKind.RESTORE)

    def test_limit(self, mailbox_view):
        mailbox_view.toggle_all()
        with pytest.raises(ValueError, match=r"Too many messages to restore: 4 \(max 3\)"):
            mailbox_view.open_restore()
        assert mailbox_view.dialog == Idle()

    def test_empty_selection(self, mailbox_view):
        with pytest.raises(ValueError, match="No messages selected"):
            mailbox_view.open_restore()

    def test_not_available_in_search(self, search_view):
        search_view.toggle((1, 10))
        with pytest.raises(ValueError, match="single account"):
            search_view.open_restore()


class TestDispatchHooks:
    def test_plan_for_bulk_delete(self, search_view):
        search_view.toggle((1, 10))
        search_view.toggle((2, 3))
        search_view.stage_bulk_delete()
        plan = search_view.begin_dispatch()
        assert plan.kind == ActionKind.DELETE
        assert plan.request == {1: [10], 2: [3]}
        assert plan.message_count == 2
        assert search_view.dialog == Dispatching(ActionKind.DELETE)

    def test_begin_twice_raises(self, search_view):
        search_view.stage_single_delete((1, 10))
        search_view.begin_dispatch()
        with pytest.raises(InvalidTransition):
            search_view.begin_dispatch()

    def test_begin_without_dialog_raises(self, search_view):
        with pytest.raises(InvalidTransition, match="Nothing to confirm"):
            search_view.begin_dispatch()

    def test_complete_drains_staged_keys_only(self, search_view):
        search_view.toggle((1, 10))
        search_view.toggle((1, 11))
        search_view.toggle((2, 10))
        search_view.stage_single_delete((1, 11))
        search_view.begin_dispatch()

        search_view.complete_dispatch()

        assert search_view.selection.keys() == [(1, 10), (2, 10)]
        assert search_view.staging.count() == 0
        assert search_view.dialog == ClosedSuccess(ActionKind.DELETE)
        assert [e.key for e in search_view.visible] == [(1, 10)]

    def test_complete_tag_update_refreshes_envelope(self, search_view):
        search_view.open_tag_editor(search_view.visible[1])
        search_view.add_tag("/work")
        plan = search_view.begin_dispatch()
        assert plan.tags == ["/work"]
        assert plan.request == {1: [11]}

        search_view.complete_dispatch()

        assert search_view.visible[1].tags == ["/work"]
        assert search_view.tag_draft == []
        assert search_view.current_envelope is None

    def test_fail_keeps_everything(self, search_view):
        search_view.toggle((1, 10))
        search_view.toggle((1, 11))
        search_view.stage_bulk_delete()
        search_view.begin_dispatch()

        search_view.fail_dispatch("Backend down")

        assert search_view.dialog == StagedWithError(ActionKind.DELETE, "Backend down")
        assert search_view.count() == 2
        assert search_view.staging.count() == 2
        assert len(search_view.visible) == 2

    def test_close_after_success(self, search_view):
        search_view.stage_single_delete((1, 10))
        search_view.begin_dispatch()
        search_view.complete_dispatch()
        search_view.close()
        assert search_view.dialog == Idle()


class TestSnapshot:
    def test_search_snapshot(self, search_view):
        search_view.toggle((1, 10))
        snap = search_view.snapshot()
        assert snap["scope"] == "search"
        assert snap["count"] == 1
        assert snap["header"] == "indeterminate"
        assert snap["selected"] == {"1": [10]}
        assert snap["staging"] == {}
        assert snap["dialog"] == {"state": "idle"}
        assert [item["selected"] for item in snap["visible"]] == [True, False]
        assert snap["totalItems"] == 4

    def test_mailbox_snapshot(self, mailbox_view):
        snap = mailbox_view.snapshot()
        assert snap["scope"] == "mailbox"
        assert snap["accountId"] == 1
        assert snap["mailboxId"] == 5
