"""Select-all toggle and header checkbox state for a rendered page."""

from collections.abc import Sequence
from enum import Enum
from typing import TypeVar

from .envelope import Envelope
from .selection import Selection

S = TypeVar("S", bound=Selection)


class CheckState(str, Enum):
    """Tri-state value of the select-all header checkbox."""
    UNCHECKED = "unchecked"
    CHECKED = "checked"
    INDETERMINATE = "indeterminate"


def is_fully_selected(selection: Selection, visible: Sequence[Envelope]) -> bool:
    """Return True when the global selection count equals the page size.

    The comparison uses the count across every page and account, not the
    number of visible envelopes that are selected. A selection of N items
    made on another page therefore reads as "fully selected" on any page
    showing N items.
    """
    return len(visible) > 0 and selection.count() == len(visible)


def header_state(selection: Selection, visible: Sequence[Envelope]) -> CheckState:
    if is_fully_selected(selection, visible):
        return CheckState.CHECKED
    if selection.count() > 0:
        return CheckState.INDETERMINATE
    return CheckState.UNCHECKED


def toggle_all(selection: S, visible: Sequence[Envelope]) -> S:
    """Apply the select-all header toggle.

    Clears the whole selection (including other pages and accounts) when it
    reads as fully selected; otherwise adds every visible envelope and keeps
    whatever was already selected elsewhere.
    """
    if is_fully_selected(selection, visible):
        return selection.clear()
    return selection.union(selection.key_for(envelope) for envelope in visible)
