"""Pass 2 of the import: atomic persistence of one validated sheet."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from grant_import.errors import DuplicateGrantCodeError, PersistenceError
from grant_import.models import Grant
from grant_import.store._repository import PersistenceStore
from grant_import.validation.items import PendingItem

from .atomic import atomic

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    grant_ref: str
    items: int


def check_duplicate(store: PersistenceStore, code: str, *, sheet: str) -> None:
    """Raise ``DuplicateGrantCodeError`` if *code* is already stored."""
    if store.grant_exists(code):
        raise DuplicateGrantCodeError(code, sheet=sheet)


def commit_sheet(
    store: PersistenceStore,
    grant: Grant,
    items: Sequence[PendingItem],
    *,
    sheet: str,
) -> CommitResult:
    """Write *grant* and all *items* in one atomic block, then commit.

    A failed commit rolls back the whole open unit of work.

    Raises:
        PersistenceError: If the store fails; nothing of the sheet is kept
    """
    try:
        with atomic(store):
            grant_ref = store.insert_grant(grant)
            for pending in items:
                try:
                    store.insert_item(grant_ref, pending.item)
                except Exception as e:
                    raise PersistenceError(
                        f"Error creating grant item - {e}", sheet=sheet, row=pending.row
                    ) from e
    except PersistenceError:
        logger.warning("Sheet %r rolled back while saving items of grant %r", sheet, grant.code)
        raise
    except Exception as e:
        logger.warning("Sheet %r rolled back while saving grant %r: %s", sheet, grant.code, e)
        raise PersistenceError(f"Error creating grant '{grant.code}' - {e}", sheet=sheet) from e

    try:
        store.commit()
    except Exception as e:
        logger.warning("Sheet %r: commit of grant %r failed, rolling back: %s", sheet, grant.code, e)
        store.rollback()
        raise PersistenceError(f"Error creating grant '{grant.code}' - {e}", sheet=sheet) from e

    logger.info("Sheet %r: created grant %r with %d items", sheet, grant.code, len(items))
    return CommitResult(grant_ref=grant_ref, items=len(items))
