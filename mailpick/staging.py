"""Staging of the item(s) a confirmation dialog is about to act on.

Staging has the same shape as the view's selection but is a separate value,
so staging one envelope for deletion never disturbs a multi-select that is
in progress.
"""

from typing import TypeVar

from .selection import Selection

S = TypeVar("S", bound=Selection)


def stage_single(selection: S, key) -> S:
    """Staging holding exactly ``key``, whatever ``selection`` contains."""
    return selection.clear().toggle(key)


def stage_bulk(selection: S) -> S:
    """Staging equal to the selection as it stands right now."""
    return selection.copy()


def drain(selection: S, staged: Selection) -> S:
    """Remove the staged keys from a selection, leaving everything else."""
    return selection.discard(staged.keys())
