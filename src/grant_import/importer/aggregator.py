"""Import of a whole workbook, one sheet after the other."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import date
from typing import TYPE_CHECKING, BinaryIO

from grant_import.config import ImportConfig
from grant_import.errors import MalformedWorkbookError
from grant_import.models import ImportIssue, ImportResponse, ImportResult, SheetOutcome, SheetState
from grant_import.store import PersistenceStore
from grant_import.workbook.core import Sheet, Workbook, read_workbook
from grant_import.workbook.frappe import read_file

from .notifications import NotificationEmitter, dispatch
from .sheet import process_sheet

if TYPE_CHECKING:
    from frappe.model.document import Document as FrappeDocument

logger = logging.getLogger(__name__)

COMPLETED_MESSAGE = "Grant data import completed"
FAILED_MESSAGE = "Failed to import grant data"


def new_import_id() -> str:
    return f"grant_import_{uuid.uuid4().hex}"


def _count(number: int, noun: str) -> str:
    return f"{number} {noun}" if number == 1 else f"{number} {noun}s"


def summary_message(result: ImportResult) -> str:
    """Describe *result* with its non-zero counters only.

    >>> summary_message(ImportResult(processed_grants=2, processed_items=8))
    'Processed: 2 grants, 8 grant items'
    """
    parts = []

    processed = []
    if result.processed_grants:
        processed.append(_count(result.processed_grants, "grant"))
    if result.processed_items:
        processed.append(_count(result.processed_items, "grant item"))
    if processed:
        parts.append("Processed: " + ", ".join(processed))

    for label, count in (
        ("Errors", len(result.errors)),
        ("Warnings", len(result.warnings)),
        ("Skipped", len(result.skipped_grants)),
    ):
        if count:
            parts.append(f"{label}: {count}")

    return ", ".join(parts) or "No grants processed"


def _process_safely(
    sheet: Sheet,
    *,
    store: PersistenceStore,
    config: ImportConfig,
    today: date | None,
    log: logging.LoggerAdapter,
) -> SheetOutcome:
    try:
        return process_sheet(sheet, store=store, config=config, today=today)
    except Exception as e:
        log.exception("Unexpected error while importing sheet %r", sheet.name)
        return SheetOutcome(
            sheet=sheet.name,
            state=SheetState.failed,
            errors=[ImportIssue(sheet=sheet.name, message=f"Error processing sheet - {e}")],
        )


def import_sheets(
    sheets: Iterable[Sheet],
    *,
    store: PersistenceStore,
    config: ImportConfig | None = None,
    today: date | None = None,
    import_id: str | None = None,
) -> ImportResult:
    """Process *sheets* sequentially and merge their outcomes.

    A failed or skipped sheet never stops the sheets after it.
    """
    if config is None:
        config = ImportConfig()
    import_id = import_id or new_import_id()
    log = logging.LoggerAdapter(logger, {"import_id": import_id})

    result = ImportResult()
    for sheet in sheets:
        outcome = _process_safely(sheet, store=store, config=config, today=today, log=log)
        log.info("Import %s: sheet %r is %s", import_id, sheet.name, outcome.state.value)
        result = result.merge(outcome)
    return result


def _run_import(
    load: Callable[[], Workbook],
    *,
    store: PersistenceStore,
    emitter: NotificationEmitter | None,
    config: ImportConfig,
    today: date | None,
    import_id: str,
    source: str | None,
) -> ImportResponse:
    log = logging.LoggerAdapter(logger, {"import_id": import_id})

    try:
        workbook = load()
    except MalformedWorkbookError as e:
        log.error("Import %s: rejected grant workbook %r: %s", import_id, source, e)
        result = ImportResult(errors=[ImportIssue(message=str(e))])
        dispatch(emitter, result, f"Grant import failed: {e}", import_id=import_id)
        return ImportResponse(
            success=False, message=FAILED_MESSAGE, import_id=import_id, result=result
        )

    log.info("Import %s: %d sheet(s) from %r", import_id, len(workbook), source)
    result = import_sheets(workbook, store=store, config=config, today=today, import_id=import_id)

    summary = summary_message(result)
    log.info("Import %s finished: %s", import_id, summary)
    dispatch(emitter, result, f"Grant import finished! {summary}", import_id=import_id)

    return ImportResponse(
        success=True,
        message=f"{COMPLETED_MESSAGE}. {summary}",
        import_id=import_id,
        result=result,
    )


def import_workbook(
    fp: BinaryIO | bytes,
    *,
    store: PersistenceStore,
    emitter: NotificationEmitter | None = None,
    config: ImportConfig | None = None,
    file_name: str | None = None,
    today: date | None = None,
    import_id: str | None = None,
) -> ImportResponse:
    """Import every sheet of an uploaded workbook.

    Args:
        fp: Binary file-like object (or bytes) with the upload
        store: Where committed grants and items are written
        emitter: Receives the summary once every sheet is terminal, or the
            failure reason when the file is rejected
        config: Import settings, loaded from site config when omitted
        file_name: Optional filename to help with format detection
        today: Reference date for end date warnings
        import_id: Identifier carried by log records and the response;
            generated when omitted

    Returns:
        ImportResponse; ``success`` is False only when the file itself
        cannot be read as a workbook
    """
    if config is None:
        config = ImportConfig.load()

    return _run_import(
        lambda: read_workbook(fp, config=config.workbook_config, file_name=file_name),
        store=store,
        emitter=emitter,
        config=config,
        today=today,
        import_id=import_id or new_import_id(),
        source=file_name,
    )


def import_file(
    file: str | "FrappeDocument",
    *,
    store: PersistenceStore,
    emitter: NotificationEmitter | None = None,
    config: ImportConfig | None = None,
    today: date | None = None,
    import_id: str | None = None,
) -> ImportResponse:
    """Import a workbook stored as a Frappe ``File`` document.

    Same contract as ``import_workbook``. A missing document or a denied
    read permission still raises; content problems give ``success=False``.
    """
    if config is None:
        config = ImportConfig.load()

    return _run_import(
        lambda: read_file(file, config=config.workbook_config),
        store=store,
        emitter=emitter,
        config=config,
        today=today,
        import_id=import_id or new_import_id(),
        source=file if isinstance(file, str) else getattr(file, "file_name", None),
    )
