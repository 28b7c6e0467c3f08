"""Selection containers for the two console view scopes.

A mailbox view lists envelopes of a single account, so a bare envelope id is
enough to identify a message (SingleSelection). The unified search view mixes
accounts and envelope ids collide across them, so it addresses messages by
the composite (account_id, envelope_id) key (CompositeSelection).

Both containers are immutable values: every mutating operation returns a new
instance and leaves the receiver untouched. Callers that keep the previous
reference can detect a change with an identity check.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Protocol, TypeVar, runtime_checkable

from .envelope import Envelope

CompositeKey = tuple[int, int]
SelectionKey = int | CompositeKey

# account id -> ordered envelope ids, as sent to the backend
BulkActionRequest = dict[int, list[int]]

S = TypeVar("S", bound="Selection")


@runtime_checkable
class Selection(Protocol):
    """Operations shared by both selection scopes."""

    def toggle(self: S, key) -> S:
        """Flip membership of one key."""
        ...

    def is_selected(self, key) -> bool:
        ...

    def count(self) -> int:
        """Number of selected envelopes across every page and account."""
        ...

    def clear(self: S) -> S:
        ...

    def union(self: S, keys: Iterable) -> S:
        ...

    def discard(self: S, keys: Iterable) -> S:
        ...

    def keys(self) -> list:
        ...

    def copy(self: S) -> S:
        """Equal value held by a distinct instance."""
        ...

    def key_for(self, envelope: Envelope):
        """Key under which this scope addresses an envelope."""
        ...

    def to_request(self) -> BulkActionRequest:
        ...


class SingleSelection:
    """Set of envelope ids within one account."""

    __slots__ = ("_account_id", "_ids")

    def __init__(self, account_id: int, ids: Iterable[int] = ()):
        self._account_id = account_id
        self._ids = frozenset(ids)

    @property
    def account_id(self) -> int:
        return self._account_id

    @property
    def ids(self) -> frozenset[int]:
        return self._ids

    def _with(self, ids: Iterable[int]) -> "SingleSelection":
        return SingleSelection(self._account_id, ids)

    def toggle(self, key: int) -> "SingleSelection":
        if key in self._ids:
            return self._with(self._ids - {key})
        return self._with(self._ids | {key})

    def is_selected(self, key: int) -> bool:
        return key in self._ids

    def count(self) -> int:
        return len(self._ids)

    def clear(self) -> "SingleSelection":
        return self._with(())

    def union(self, keys: Iterable[int]) -> "SingleSelection":
        return self._with(self._ids.union(keys))

    def discard(self, keys: Iterable[int]) -> "SingleSelection":
        return self._with(self._ids.difference(keys))

    def keys(self) -> list[int]:
        return sorted(self._ids)

    def copy(self) -> "SingleSelection":
        return self._with(self._ids)

    def key_for(self, envelope: Envelope) -> int:
        return envelope.id

    def to_request(self) -> BulkActionRequest:
        if not self._ids:
            return {}
        return {self._account_id: sorted(self._ids)}

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, key: object) -> bool:
        return key in self._ids

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SingleSelection):
            return NotImplemented
        return self._account_id == other._account_id and self._ids == other._ids

    def __hash__(self) -> int:
        return hash((self._account_id, self._ids))

    def __repr__(self) -> str:
        return f"SingleSelection(account_id={self._account_id}, ids={sorted(self._ids)})"


class CompositeSelection:
    """Mapping of account id to the envelope ids selected in that account.

    An account never maps to an empty set: the entry is dropped as soon as its
    last id is removed, so ``accounts()`` only lists accounts that contribute
    to ``count()``.
    """

    __slots__ = ("_by_account",)

    def __init__(self, by_account: Mapping[int, Iterable[int]] | None = None):
        entries: dict[int, frozenset[int]] = {}
        for account_id, ids in (by_account or {}).items():
            frozen = frozenset(ids)
            if frozen:
                entries[account_id] = frozen
        self._by_account = MappingProxyType(entries)

    @classmethod
    def from_keys(cls, keys: Iterable[CompositeKey]) -> "CompositeSelection":
        return cls().union(keys)

    def _with(self, entries: dict[int, set[int] | frozenset[int]]) -> "CompositeSelection":
        return CompositeSelection(entries)

    def _copy_entries(self) -> dict[int, set[int]]:
        return {account_id: set(ids) for account_id, ids in self._by_account.items()}

    def toggle(self, key: CompositeKey) -> "CompositeSelection":
        account_id, envelope_id = key
        entries = self._copy_entries()
        ids = entries.setdefault(account_id, set())
        if envelope_id in ids:
            ids.remove(envelope_id)
            if not ids:
                del entries[account_id]
        else:
            ids.add(envelope_id)
        return self._with(entries)

    def is_selected(self, key: CompositeKey) -> bool:
        account_id, envelope_id = key
        ids = self._by_account.get(account_id)
        return ids is not None and envelope_id in ids

    def count(self) -> int:
        return sum(len(ids) for ids in self._by_account.values())

    def clear(self) -> "CompositeSelection":
        return CompositeSelection()

    def union(self, keys: Iterable[CompositeKey]) -> "CompositeSelection":
        entries = self._copy_entries()
        for account_id, envelope_id in keys:
            entries.setdefault(account_id, set()).add(envelope_id)
        return self._with(entries)

    def discard(self, keys: Iterable[CompositeKey]) -> "CompositeSelection":
        entries = self._copy_entries()
        for account_id, envelope_id in keys:
            ids = entries.get(account_id)
            if ids is None:
                continue
            ids.discard(envelope_id)
            if not ids:
                del entries[account_id]
        return self._with(entries)

    def keys(self) -> list[CompositeKey]:
        return [
            (account_id, envelope_id)
            for account_id in sorted(self._by_account)
            for envelope_id in sorted(self._by_account[account_id])
        ]

    def copy(self) -> "CompositeSelection":
        return self._with(dict(self._by_account))

    def accounts(self) -> list[int]:
        return sorted(self._by_account)

    def ids_for(self, account_id: int) -> frozenset[int]:
        return self._by_account.get(account_id, frozenset())

    def as_mapping(self) -> Mapping[int, frozenset[int]]:
        """Read-only view of the account -> ids mapping."""
        return self._by_account

    def key_for(self, envelope: Envelope) -> CompositeKey:
        return envelope.key

    def to_request(self) -> BulkActionRequest:
        return {
            account_id: sorted(self._by_account[account_id])
            for account_id in sorted(self._by_account)
        }

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return self.is_selected(key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompositeSelection):
            return NotImplemented
        return dict(self._by_account) == dict(other._by_account)

    def __hash__(self) -> int:
        return hash(frozenset(self._by_account.items()))

    def __repr__(self) -> str:
        return f"CompositeSelection({self.to_request()!r})"


def request_to_payload(request: BulkActionRequest) -> dict[str, list[int]]:
    """Serialize a bulk request with account ids as JSON object keys."""
    return {str(account_id): list(ids) for account_id, ids in request.items()}
