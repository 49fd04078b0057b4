"""Pass 1 of the item import: pure validation of the budget-line table.

``validate_items`` never touches a store. It returns every row that
validated together with every row error, and the caller abandons the sheet
when the error list is not empty.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from pydantic import ValidationError

from grant_import.config import ImportConfig
from grant_import.errors import ItemValidationError
from grant_import.models import GrantItem, ImportIssue
from grant_import.workbook.core import Cell, Sheet, cell_address

# 1-based column of each item field
ITEM_COLUMNS: dict[str, int] = {
    "budget_line_code": 1,
    "position": 2,
    "salary": 3,
    "benefit": 4,
    "level_of_effort": 5,
    "position_number": 6,
}

COLUMN_LABELS: dict[str, str] = {
    "budget_line_code": "Budget Line Code",
    "position": "Position",
    "salary": "Salary",
    "benefit": "Benefit",
    "level_of_effort": "Level of Effort",
    "position_number": "Position Number",
}


@dataclass
class PendingItem:
    """A validated row buffered until the sheet is committed."""

    row: int
    item: GrantItem


@dataclass
class ItemsResult:
    items: list[PendingItem] = field(default_factory=list)
    errors: list[ItemValidationError] = field(default_factory=list)
    warnings: list[ImportIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def iter_item_rows(sheet: Sheet, *, start_row: int) -> Iterator[tuple[int, tuple[Cell, ...]]]:
    """Yield ``(row_number, cells)`` until the first fully blank row."""
    for row_number in range(start_row, sheet.max_row + 1):
        if sheet.is_blank_row(row_number):
            return
        yield row_number, sheet.row(row_number)


def _row_payload(cells: tuple[Cell, ...]) -> dict[str, Cell | None]:
    return {
        name: cells[column - 1] if column <= len(cells) else None
        for name, column in ITEM_COLUMNS.items()
    }


def validate_row(
    sheet_name: str,
    row_number: int,
    cells: tuple[Cell, ...],
) -> tuple[GrantItem | None, list[ItemValidationError]]:
    """Validate one row; every bad field yields its own error."""
    try:
        return GrantItem.model_validate(_row_payload(cells)), []
    except ValidationError as e:
        errors = []
        for err in e.errors():
            field_name = err["loc"][0] if err["loc"] else None
            column = ITEM_COLUMNS.get(field_name)
            errors.append(
                ItemValidationError(
                    err["msg"],
                    sheet=sheet_name,
                    row=row_number,
                    cell=cell_address(row_number, column) if column else None,
                )
            )
        return None, errors


def _zero_warnings(sheet_name: str, row_number: int, item: GrantItem) -> list[ImportIssue]:
    warnings = []
    for name, label in (
        ("salary", "Grant salary"),
        ("benefit", "Grant benefit"),
        ("level_of_effort", "Level of effort"),
    ):
        value = getattr(item, name)
        if value is not None and value == 0:
            warnings.append(
                ImportIssue(
                    sheet=sheet_name,
                    row=row_number,
                    cell=cell_address(row_number, ITEM_COLUMNS[name]),
                    message=f"{label} is zero",
                )
            )
    return warnings


def validate_items(sheet: Sheet, *, config: ImportConfig | None = None) -> ItemsResult:
    """Validate every item row of *sheet* without side effects.

    Rows start at ``config.data_start_row``; the instructions row above it is
    never read as data. A repeated position/budget line pair is an error on
    the later row.
    """
    if config is None:
        config = ImportConfig()

    result = ItemsResult()
    seen: dict[tuple[str, str], int] = {}

    for row_number, cells in iter_item_rows(sheet, start_row=config.data_start_row):
        item, errors = validate_row(sheet.name, row_number, cells)
        if errors:
            result.errors.extend(errors)
            continue

        if item.budget_line_code is not None:
            key = (item.position, item.budget_line_code)
            if key in seen:
                result.errors.append(
                    ItemValidationError(
                        f"Duplicate - Position '{item.position}' with budget line "
                        f"'{item.budget_line_code}' already listed in row {seen[key]}",
                        sheet=sheet.name,
                        row=row_number,
                    )
                )
                continue
            seen[key] = row_number

        result.items.append(PendingItem(row=row_number, item=item))
        result.warnings.extend(_zero_warnings(sheet.name, row_number, item))

    if not result.items and not result.errors:
        result.warnings.append(
            ImportIssue(
                sheet=sheet.name,
                row=config.data_start_row,
                message="No budget-line items found",
            )
        )

    return result
