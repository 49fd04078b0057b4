"""Persistence store backed by Frappe DocTypes."""

from __future__ import annotations

import inspect
from typing import Any

try:
    import frappe
except ImportError:  # pragma: no cover
    frappe = None

from grant_import.config import ImportConfig
from grant_import.models import Grant, GrantItem
from grant_import.transaction.state import is_frappe_managed_transaction


class TransactionError(RuntimeError):
    """Raised when the Frappe database connection is not available."""


def _get_db():
    """Return the active Frappe database connection or raise a clear error."""
    if frappe is None:
        raise ImportError("frappe is required for FrappePersistenceStore.")

    db = getattr(frappe, "db", None)

    if db is None:
        raise TransactionError(
            "Frappe database is not initialized. "
            "Make sure frappe.init() and frappe.connect() have been called."
        )

    return db


class FrappePersistenceStore:
    """Writes ``Grant`` / ``Grant Item`` documents through ``frappe.get_doc``.

    The uniqueness of ``code`` is enforced by the DocType (unique field), so a
    concurrent upload of the same code fails inside the sheet's savepoint.
    """

    def __init__(self, config: ImportConfig | None = None) -> None:
        self.config = config or ImportConfig()

    def grant_exists(self, code: str) -> bool:
        return bool(_get_db().exists(self.config.grant_doctype, {"code": code}))

    def insert_grant(self, grant: Grant) -> str:
        doc = frappe.get_doc(
            {
                "doctype": self.config.grant_doctype,
                "code": grant.code,
                "grant_name": grant.name,
                "subsidiary": grant.subsidiary,
                "end_date": grant.end_date,
                "description": grant.description,
            }
        )
        doc.insert()
        return doc.name

    def insert_item(self, grant_ref: str, item: GrantItem) -> str:
        doc = frappe.get_doc(
            {
                "doctype": self.config.grant_item_doctype,
                "grant": grant_ref,
                "grant_position": item.position,
                "budget_line_code": item.budget_line_code,
                "grant_salary": item.salary,
                "grant_benefit": item.benefit,
                "grant_level_of_effort": item.level_of_effort,
                "grant_position_number": item.position_number,
            }
        )
        doc.insert()
        return doc.name

    def savepoint(self, name: str) -> None:
        _get_db().savepoint(name)

    def rollback(self, *, save_point: str | None = None) -> None:
        """Roll back to *save_point*, or the whole transaction when ``None``."""
        if save_point is not None:
            if not isinstance(save_point, str) or not save_point:
                raise ValueError("save_point must be a non-empty string when provided")

        db = _get_db()

        parameters = inspect.signature(db.rollback).parameters
        kwargs: dict[str, Any] = {}

        if "save_point" in parameters and save_point is not None:
            kwargs["save_point"] = save_point

        db.rollback(**kwargs)

    def release_savepoint(self, name: str) -> None:
        release = getattr(_get_db(), "release_savepoint", None)

        if callable(release):
            release(name)

    def commit(self) -> None:
        """Commit unless Frappe owns the transaction (request, job, test)."""
        if is_frappe_managed_transaction():
            return
        _get_db().commit()
