"""Exception taxonomy for the grant import engine.

Only ``MalformedWorkbookError`` is fatal to a whole request. Every
``SheetError`` is caught at the sheet boundary and turned into an entry of
the aggregate error list; ``DuplicateGrantCodeError`` turns into a skip.
"""

from __future__ import annotations


def describe(message: str, *, sheet: str | None, row: int | None = None, cell: str | None = None) -> str:
    """Prefix *message* with its location, e.g. ``Sheet 'A' Row 9 (C9): ...``."""
    if sheet is None:
        return message
    location = f"Sheet '{sheet}'"
    if row is not None:
        location += f" Row {row}"
    if cell:
        location += f" ({cell})"
    return f"{location}: {message}"


class GrantImportError(Exception):
    """Base exception for the grant import engine."""


class MalformedWorkbookError(GrantImportError):
    """Raised when an upload is not a readable tabular workbook."""


class SheetError(GrantImportError):
    """An error scoped to one sheet, optionally to one row and cell."""

    def __init__(
        self,
        message: str,
        *,
        sheet: str,
        row: int | None = None,
        cell: str | None = None,
    ) -> None:
        self.message = message
        self.sheet = sheet
        self.row = row
        self.cell = cell
        super().__init__(self.render())

    def render(self) -> str:
        """Return the fully formed, user-facing message."""
        return describe(self.message, sheet=self.sheet, row=self.row, cell=self.cell)


class HeaderValidationError(SheetError):
    """A grant header field (rows 1-5) or the sheet structure is invalid."""


class OrganizationMismatchError(HeaderValidationError):
    """The subsidiary cell does not name a known organization."""

    def __init__(
        self,
        message: str,
        *,
        sheet: str,
        cell: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.suggestion = suggestion
        super().__init__(message, sheet=sheet, cell=cell)


class ItemValidationError(SheetError):
    """One offending field of one budget-line row."""


class DuplicateGrantCodeError(SheetError):
    """The grant code already exists in the target store.

    Non-fatal: the sheet is skipped, not failed.
    """

    def __init__(self, code: str, *, sheet: str) -> None:
        self.code = code
        super().__init__(f"Grant '{code}' already exists - sheet skipped", sheet=sheet)


class PersistenceError(SheetError):
    """The store failed while committing a sheet; the sheet was rolled back."""
