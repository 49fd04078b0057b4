from __future__ import annotations

from contextlib import ContextDecorator
from typing import Optional

from grant_import.store._repository import PersistenceStore

from .state import _get_state


def _generate_savepoint_name(depth: int) -> str:
    """Generate a deterministic savepoint name based on nesting depth."""

    return f"grant_import_sp_{depth}"


class Atomic(ContextDecorator):
    """Savepoint-based unit of work on a ``PersistenceStore``.

    The block does not own the outer transaction. It opens a savepoint on
    entry, releases it on success and rolls back to it when an exception
    leaves the block, so nothing written inside the block survives a failure.
    """

    def __init__(self, store: PersistenceStore):
        self.store = store
        self._savepoint_name: Optional[str] = None

    def __enter__(self) -> "Atomic":
        state = _get_state(self.store)
        state.depth += 1

        name = _generate_savepoint_name(state.depth)
        self._savepoint_name = name
        state.savepoints.append(name)

        self.store.savepoint(name)

        return self

    def __exit__(self, exc_type, exc, tb) -> bool | None:
        state = _get_state(self.store)

        try:
            name = self._savepoint_name

            if not name:
                return False

            if exc_type is not None:
                if not state.error_rolled_back:
                    self.store.rollback(save_point=name)
                    state.error_rolled_back = True
            else:
                self.store.release_savepoint(name)
        finally:
            if state.savepoints:
                state.savepoints.pop()

            if state.depth > 0:
                state.depth -= 1

            if state.depth == 0:
                state.error_rolled_back = False

        return False


def atomic(store: PersistenceStore) -> Atomic:
    """Django-like atomic block bound to *store*.

    Usage as context manager:

        with atomic(store):
            ...

    Usage as decorator:

        @atomic(store)
        def handler(...):
            ...
    """

    return Atomic(store)
