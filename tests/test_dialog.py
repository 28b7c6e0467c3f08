"""Tests for the dialog state machine."""

import pytest

from mailpick.dialog import (
    ActionKind,
    AwaitingConfirmation,
    ClosedSuccess,
    Dispatching,
    Idle,
    InvalidTransition,
    Staged,
    StagedWithError,
    TRANSITIONS,
    can_confirm,
    describe,
    is_open,
    transition,
)

DELETE = ActionKind.DELETE


class TestTransition:
    def test_happy_path(self):
        state = Idle()
        state = transition(state, Staged(DELETE))
        state = transition(state, AwaitingConfirmation(DELETE))
        state = transition(state, Dispatching(DELETE))
        state = transition(state, ClosedSuccess(DELETE))
        assert state == ClosedSuccess(DELETE)

    def test_error_then_retry(self):
        state = transition(Dispatching(DELETE), StagedWithError(DELETE, "boom"))
        state = transition(state, Dispatching(DELETE))
        assert isinstance(state, Dispatching)

    def test_cannot_dispatch_twice(self):
        with pytest.raises(InvalidTransition, match="dispatching to dispatching"):
            transition(Dispatching(DELETE), Dispatching(DELETE))

    def test_cannot_cancel_while_dispatching(self):
        with pytest.raises(InvalidTransition):
            transition(Dispatching(DELETE), Idle())

    def test_cannot_confirm_from_idle(self):
        with pytest.raises(InvalidTransition):
            transition(Idle(), Dispatching(DELETE))

    def test_every_state_has_a_row(self):
        for state_type in (Idle, Staged, AwaitingConfirmation, Dispatching, ClosedSuccess, StagedWithError):
            assert state_type in TRANSITIONS


class TestPredicates:
    def test_is_open(self):
        assert not is_open(Idle())
        assert not is_open(Staged(DELETE))
        assert is_open(AwaitingConfirmation(DELETE))
        assert is_open(Dispatching(DELETE))
        assert is_open(StagedWithError(DELETE, "x"))
        assert not is_open(ClosedSuccess(DELETE))

    def test_can_confirm(self):
        assert can_confirm(AwaitingConfirmation(DELETE))
        assert can_confirm(StagedWithError(DELETE, "x"))
        assert not can_confirm(Dispatching(DELETE))
        assert not can_confirm(Idle())


class TestDescribe:
    def test_idle(self):
        assert describe(Idle()) == {"state": "idle"}

    def test_error_state(self):
        assert describe(StagedWithError(ActionKind.RESTORE, "Not IMAP")) == {
            "state": "staged-with-error",
            "kind": "restore",
            "error": "Not IMAP",
        }
