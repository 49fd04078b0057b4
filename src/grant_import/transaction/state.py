from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

try:
    import frappe
except ImportError:  # pragma: no cover
    frappe = None


@dataclass
class TransactionState:
    """Savepoint bookkeeping of one store.

    Attributes:
        depth: Nesting depth of atomic blocks opened on the store.
        savepoints: Stack of savepoint names created by those blocks.
        error_rolled_back: True once an inner block has already rolled back
            for the exception that is still propagating.
    """

    depth: int = 0
    savepoints: List[str] = field(default_factory=list)
    error_rolled_back: bool = False


def _get_state(store: Any) -> TransactionState:
    """Return the transaction state attached to *store*, creating it on first use."""

    state = getattr(store, "_grant_import_txn_state", None)

    if state is None:
        state = TransactionState()
        setattr(store, "_grant_import_txn_state", state)

    return state


def in_request_context() -> bool:
    """Return True if running inside a Frappe HTTP request."""

    local = getattr(frappe, "local", None)
    return bool(local and getattr(local, "request", None) is not None)


def in_background_job() -> bool:
    """Return True if running inside a Frappe background job."""

    local = getattr(frappe, "local", None)
    return bool(local and getattr(local, "job", None) is not None)


def in_test_context() -> bool:
    """Return True if running under the Frappe test runner."""

    flags = getattr(frappe, "flags", None)
    return bool(flags and getattr(flags, "in_test", False))


def is_frappe_managed_transaction() -> bool:
    """Return True if Frappe should own COMMIT for the current context.

    True for HTTP requests, background jobs and the Frappe test runner. For
    bare scripts (the ``grant-import run`` command) it is False and the
    store commits after every sheet.
    """

    if frappe is None:
        return False

    return in_request_context() or in_background_job() or in_test_context()
