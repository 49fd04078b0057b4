"""Validation of a sheet's fixed grant header.

Column A holds labels and column B holds values:

    B1 name, B2 code, B3 subsidiary, B4 end date, B5 description

Row 7 carries the item table headers and row 8 the instructions. Every
header problem of a sheet is reported in one pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

from grant_import.config import ImportConfig
from grant_import.errors import HeaderValidationError, OrganizationMismatchError
from grant_import.models import Grant, ImportIssue
from grant_import.workbook.core import Sheet, cell_address

from .items import COLUMN_LABELS, ITEM_COLUMNS

VALUE_COLUMN = 2

HEADER_ROWS: dict[str, int] = {
    "name": 1,
    "code": 2,
    "subsidiary": 3,
    "end_date": 4,
    "description": 5,
}

# Column A (budget line code) may carry an empty header
REQUIRED_COLUMN_HEADERS = tuple(name for name in ITEM_COLUMNS if name != "budget_line_code")


@dataclass
class HeaderResult:
    grant: Grant | None = None
    errors: list[HeaderValidationError] = field(default_factory=list)
    warnings: list[ImportIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.grant is not None and not self.errors


def check_structure(sheet: Sheet, *, config: ImportConfig) -> list[HeaderValidationError]:
    """Check the sheet is long enough and names the item columns."""
    errors = []

    if sheet.max_row < config.instructions_row:
        errors.append(
            HeaderValidationError(
                f"Insufficient data rows (minimum {config.instructions_row} required, "
                f"found {sheet.max_row})",
                sheet=sheet.name,
            )
        )

    header_row = config.column_header_row
    for name in REQUIRED_COLUMN_HEADERS:
        column = ITEM_COLUMNS[name]
        if sheet.cell(header_row, column).is_blank:
            errors.append(
                HeaderValidationError(
                    f"Missing column header '{COLUMN_LABELS[name]}'",
                    sheet=sheet.name,
                    row=header_row,
                    cell=cell_address(header_row, column),
                )
            )

    return errors


def _end_date_warning(grant: Grant, sheet_name: str, *, today: date, horizon_years: int) -> ImportIssue | None:
    if grant.end_date is None:
        return None

    cell = cell_address(HEADER_ROWS["end_date"], VALUE_COLUMN)
    if grant.end_date < today:
        message = f"End date is in the past: {grant.end_date.isoformat()}"
    elif grant.end_date > today + relativedelta(years=horizon_years):
        message = f"End date is more than {horizon_years} years in the future: {grant.end_date.isoformat()}"
    else:
        return None
    return ImportIssue(sheet=sheet_name, cell=cell, message=message)


def validate_header(
    sheet: Sheet,
    *,
    config: ImportConfig | None = None,
    today: date | None = None,
) -> HeaderResult:
    """Validate the grant header of *sheet*.

    Returns a ``HeaderResult`` holding the ``Grant`` when every header field
    is valid, otherwise all ``HeaderValidationError``s found. End dates in
    the past or beyond the configured horizon only produce warnings.
    """
    if config is None:
        config = ImportConfig()
    if today is None:
        today = date.today()

    result = HeaderResult(errors=check_structure(sheet, config=config))

    raw = {name: sheet.cell(row, VALUE_COLUMN) for name, row in HEADER_ROWS.items()}
    context = {
        "subsidiaries": tuple(config.subsidiaries),
        "fuzzy_max_distance": config.fuzzy_max_distance,
    }

    try:
        grant = Grant.model_validate(raw, context=context)
    except ValidationError as e:
        for err in e.errors():
            field_name = err["loc"][0] if err["loc"] else None
            row = HEADER_ROWS.get(field_name)
            cell = cell_address(row, VALUE_COLUMN) if row else None
            if err["type"] == "organization_mismatch":
                result.errors.append(
                    OrganizationMismatchError(
                        err["msg"],
                        sheet=sheet.name,
                        cell=cell,
                        suggestion=err.get("ctx", {}).get("suggestion"),
                    )
                )
            else:
                result.errors.append(HeaderValidationError(err["msg"], sheet=sheet.name, cell=cell))
        return result

    if result.errors:
        return result

    result.grant = grant
    warning = _end_date_warning(
        grant, sheet.name, today=today, horizon_years=config.end_date_horizon_years
    )
    if warning is not None:
        result.warnings.append(warning)
    return result
