"""Confirmation dialog lifecycle.

Each view has at most one action dialog. Its state is one of the frozen
dataclasses below; moving between them goes through ``transition`` so that
an out-of-order event (a second confirm while a request is in flight, a
cancel after the dialog closed) is rejected instead of corrupting state.

    idle -> staged -> awaiting-confirmation -> dispatching -> closed-success
                                                    |
                                                    +-> staged-with-error

Staging is guaranteed empty only in ``idle`` and ``closed-success``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


class ActionKind(str, Enum):
    """Outbound bulk operations a dialog can confirm."""
    DELETE = "delete"
    TAG_UPDATE = "tag-update"
    RESTORE = "restore"


class InvalidTransition(RuntimeError):
    """Raised when a dialog event is not allowed in the current state."""


@dataclass(frozen=True)
class Idle:
    name: ClassVar[str] = "idle"


@dataclass(frozen=True)
class Staged:
    kind: ActionKind
    name: ClassVar[str] = "staged"


@dataclass(frozen=True)
class AwaitingConfirmation:
    kind: ActionKind
    name: ClassVar[str] = "awaiting-confirmation"


@dataclass(frozen=True)
class Dispatching:
    kind: ActionKind
    name: ClassVar[str] = "dispatching"


@dataclass(frozen=True)
class ClosedSuccess:
    kind: ActionKind
    name: ClassVar[str] = "closed-success"


@dataclass(frozen=True)
class StagedWithError:
    kind: ActionKind
    error: str
    name: ClassVar[str] = "staged-with-error"


DialogState = Idle | Staged | AwaitingConfirmation | Dispatching | ClosedSuccess | StagedWithError

TRANSITIONS: dict[type, frozenset[type]] = {
    Idle: frozenset({Staged}),
    Staged: frozenset({AwaitingConfirmation, Idle}),
    AwaitingConfirmation: frozenset({Dispatching, Idle}),
    Dispatching: frozenset({ClosedSuccess, StagedWithError}),
    StagedWithError: frozenset({Dispatching, Idle}),
    ClosedSuccess: frozenset({Idle, Staged}),
}


def transition(current: DialogState, new: DialogState) -> DialogState:
    """Validate and return the next dialog state.

    Raises:
        InvalidTransition: If ``new`` cannot follow ``current``
    """
    if type(new) not in TRANSITIONS[type(current)]:
        raise InvalidTransition(f"Cannot move dialog from {current.name} to {new.name}")
    return new


def is_open(state: DialogState) -> bool:
    """Return True while the dialog is shown to the user."""
    return isinstance(state, AwaitingConfirmation | Dispatching | StagedWithError)


def can_confirm(state: DialogState) -> bool:
    return isinstance(state, AwaitingConfirmation | StagedWithError)


def describe(state: DialogState) -> dict:
    """JSON-friendly summary of a dialog state."""
    summary: dict = {"state": state.name}
    kind = getattr(state, "kind", None)
    if kind is not None:
        summary["kind"] = kind.value
    if isinstance(state, StagedWithError):
        summary["error"] = state.error
    return summary
