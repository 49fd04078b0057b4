"""Persistence store protocol and in-memory implementation for tests."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from grant_import.models import Grant, GrantItem


@runtime_checkable
class PersistenceStore(Protocol):
    """Where validated grants and their items are written.

    Implementations enforce uniqueness of ``Grant.code`` and support
    savepoints so that one sheet can be rolled back on its own.
    """

    def grant_exists(self, code: str) -> bool:
        ...

    def insert_grant(self, grant: Grant) -> str:
        """Create the grant and return its reference."""
        ...

    def insert_item(self, grant_ref: str, item: GrantItem) -> str:
        ...

    def savepoint(self, name: str) -> None:
        ...

    def rollback(self, *, save_point: str | None = None) -> None:
        ...

    def release_savepoint(self, name: str) -> None:
        ...

    def commit(self) -> None:
        ...


class UniqueConstraintError(Exception):
    """Raised by ``InMemoryPersistenceStore`` when a grant code is reused."""


@dataclass
class _Tables:
    grants: dict[str, Grant] = field(default_factory=dict)
    items: list[tuple[str, GrantItem]] = field(default_factory=list)


class InMemoryPersistenceStore:
    """Dict-backed store with savepoints, for tests and dry runs.

    >>> store = InMemoryPersistenceStore()
    >>> store.grant_exists("GR-1")
    False
    """

    def __init__(self) -> None:
        self._tables = _Tables()
        self._durable = _Tables()
        self._savepoints: list[tuple[str, _Tables]] = []
        self.commits = 0

    # -- Protocol methods ---------------------------------------------------

    def grant_exists(self, code: str) -> bool:
        return code in self._tables.grants

    def insert_grant(self, grant: Grant) -> str:
        if grant.code in self._tables.grants:
            raise UniqueConstraintError(f"Duplicate entry '{grant.code}' for key 'code'")
        self._tables.grants[grant.code] = grant
        return grant.code

    def insert_item(self, grant_ref: str, item: GrantItem) -> str:
        if grant_ref not in self._tables.grants:
            raise LookupError(f"Grant '{grant_ref}' does not exist")
        self._tables.items.append((grant_ref, item))
        return f"{grant_ref}-{len(self._tables.items)}"

    def savepoint(self, name: str) -> None:
        self._savepoints.append((name, copy.deepcopy(self._tables)))

    def rollback(self, *, save_point: str | None = None) -> None:
        if save_point is None:
            self._tables = copy.deepcopy(self._durable)
            self._savepoints.clear()
            return

        while self._savepoints:
            name, snapshot = self._savepoints.pop()
            if name == save_point:
                self._tables = snapshot
                return
        raise LookupError(f"Savepoint '{save_point}' does not exist")

    def release_savepoint(self, name: str) -> None:
        for index in range(len(self._savepoints) - 1, -1, -1):
            if self._savepoints[index][0] == name:
                del self._savepoints[index:]
                return

    def commit(self) -> None:
        self._durable = copy.deepcopy(self._tables)
        self._savepoints.clear()
        self.commits += 1

    # -- Inspection helpers for tests ---------------------------------------

    @property
    def grants(self) -> dict[str, Grant]:
        return dict(self._tables.grants)

    def items_for(self, code: str) -> list[GrantItem]:
        return [item for ref, item in self._tables.items if ref == code]

    def seed(self, *grants: Grant) -> None:
        """Add already-committed grants, as if imported by an earlier run."""
        for grant in grants:
            self.insert_grant(grant)
        self.commit()
