"""Per-sheet state machine.

    ParsingHeader -> ValidatingHeader -> CheckingDuplicate -> ValidatingItems
        -> Persisting -> Committed | Skipped | Failed

``process_sheet`` returns a ``SheetOutcome`` value; it never mutates shared
state, so the caller decides how outcomes are merged.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from grant_import.config import ImportConfig
from grant_import.errors import DuplicateGrantCodeError, PersistenceError, SheetError
from grant_import.models import ImportIssue, SheetOutcome, SheetState
from grant_import.store import PersistenceStore
from grant_import.transaction import check_duplicate, commit_sheet
from grant_import.validation import validate_header, validate_items
from grant_import.workbook.core import Sheet

logger = logging.getLogger(__name__)


def _enter(sheet: Sheet, state: SheetState) -> None:
    logger.debug("Sheet %r: %s", sheet.name, state.value)


def _failed(sheet: Sheet, errors: Sequence[SheetError], code: str | None = None) -> SheetOutcome:
    logger.info("Sheet %r failed with %d error(s)", sheet.name, len(errors))
    return SheetOutcome(
        sheet=sheet.name,
        state=SheetState.failed,
        code=code,
        errors=[ImportIssue.from_error(error) for error in errors],
    )


def process_sheet(
    sheet: Sheet,
    *,
    store: PersistenceStore,
    config: ImportConfig | None = None,
    today: date | None = None,
) -> SheetOutcome:
    """Validate and commit one sheet, returning its terminal outcome."""
    if config is None:
        config = ImportConfig()

    logger.info("Processing sheet %r", sheet.name)
    _enter(sheet, SheetState.parsing_header)

    _enter(sheet, SheetState.validating_header)
    header = validate_header(sheet, config=config, today=today)
    if not header.is_valid:
        return _failed(sheet, header.errors)
    grant = header.grant

    _enter(sheet, SheetState.checking_duplicate)
    try:
        check_duplicate(store, grant.code, sheet=sheet.name)
    except DuplicateGrantCodeError as e:
        logger.info("Sheet %r skipped: grant %r already exists", sheet.name, e.code)
        return SheetOutcome(sheet=sheet.name, state=SheetState.skipped, code=grant.code)

    _enter(sheet, SheetState.validating_items)
    items = validate_items(sheet, config=config)
    if not items.is_valid:
        return _failed(sheet, items.errors, code=grant.code)

    _enter(sheet, SheetState.persisting)
    try:
        committed = commit_sheet(store, grant, items.items, sheet=sheet.name)
    except PersistenceError as e:
        return _failed(sheet, [e], code=grant.code)

    return SheetOutcome(
        sheet=sheet.name,
        state=SheetState.committed,
        code=grant.code,
        items=committed.items,
        warnings=header.warnings + items.warnings,
    )
