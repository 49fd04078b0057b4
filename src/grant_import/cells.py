"""Interpretation of tagged cells into typed field values.

Every helper accepts either a ``Cell`` or a plain Python value and branches
on the cell kind before looking at the content. Failures raise
``PydanticCustomError`` so they surface as regular field errors of the
models in ``grant_import.models``.
"""

from __future__ import annotations

import re
import unicodedata
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from dateutil import parser as date_parser
from openpyxl.utils.datetime import from_excel
from pydantic_core import PydanticCustomError

from grant_import.workbook.core import Cell, CellKind

MONEY_MAX = Decimal("99999999.99")
_CENT = Decimal("0.01")
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


def as_cell(value: Any) -> Cell:
    if isinstance(value, Cell):
        return value
    return Cell.from_value(value)


def text_value(value: Any) -> str | None:
    """Return the stripped text of a cell, ``None`` when blank."""
    return as_cell(value).as_text() or None


def check_text(
    value: Any,
    *,
    label: str,
    required: bool = False,
    min_length: int | None = None,
    max_length: int | None = None,
) -> str | None:
    text = text_value(value)
    if text is None:
        if required:
            raise PydanticCustomError("required", "{label} is required", {"label": label})
        return None
    if min_length is not None and len(text) < min_length:
        raise PydanticCustomError(
            "too_short",
            "{label} must be at least {min_length} characters",
            {"label": label, "min_length": min_length},
        )
    if max_length is not None and len(text) > max_length:
        raise PydanticCustomError(
            "too_long",
            "{label} exceeds {max_length} characters",
            {"label": label, "max_length": max_length},
        )
    return text


def _to_decimal(text: str) -> Decimal | None:
    if not _NUMBER_PATTERN.match(text):
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def _strip_money_noise(text: str) -> str:
    """Drop currency symbols, thousands separators and spaces."""
    return "".join(
        ch for ch in text if not (ch.isspace() or ch in ",'" or unicodedata.category(ch) == "Sc")
    )


def parse_money(value: Any, *, label: str) -> Decimal | None:
    """Parse a salary/benefit cell into a non-negative amount with cents."""
    cell = as_cell(value)
    if cell.is_blank:
        return None

    amount: Decimal | None = None
    if cell.kind == CellKind.number:
        amount = Decimal(str(cell.value))
    elif cell.kind == CellKind.text:
        amount = _to_decimal(_strip_money_noise(cell.value))

    if amount is None:
        raise PydanticCustomError(
            "money_format",
            "Invalid {label} format: '{value}'",
            {"label": label.lower(), "value": cell.as_text()},
        )
    if amount < 0:
        raise PydanticCustomError("money_negative", "{label} cannot be negative", {"label": label})
    if amount > MONEY_MAX:
        raise PydanticCustomError(
            "money_too_large",
            "{label} exceeds maximum value (99,999,999.99)",
            {"label": label},
        )
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def parse_level_of_effort(value: Any) -> float | None:
    """Normalize a level of effort cell into a fraction in [0, 1].

    A ``%`` suffix always means percent. A bare number up to 1 is already a
    fraction (``"1"`` is 100%); a bare number above 1 is a percentage.

    >>> parse_level_of_effort("75"), parse_level_of_effort("75%"), parse_level_of_effort(0.75)
    (0.75, 0.75, 0.75)
    """
    cell = as_cell(value)
    if cell.is_blank:
        return None

    magnitude: Decimal | None = None
    is_percent = False
    if cell.kind == CellKind.number:
        magnitude = Decimal(str(cell.value))
    elif cell.kind == CellKind.text:
        text = cell.value.strip()
        if text.endswith("%"):
            is_percent = True
            text = text[:-1].strip()
        magnitude = _to_decimal(text)

    if magnitude is None:
        raise PydanticCustomError(
            "effort_format",
            "Invalid level of effort format: '{value}'. Must be a number",
            {"value": cell.as_text()},
        )
    if magnitude < 0:
        raise PydanticCustomError("effort_negative", "Level of effort cannot be negative")

    fraction = magnitude / 100 if is_percent or magnitude > 1 else magnitude
    if fraction > 1:
        raise PydanticCustomError(
            "effort_too_large",
            "Level of effort cannot exceed 100%: '{value}'",
            {"value": cell.as_text()},
        )
    return float(fraction)


def parse_position_number(value: Any, *, minimum: int = 1, maximum: int = 1000) -> int:
    """Parse an optional integer position number, defaulting to 1."""
    cell = as_cell(value)
    if cell.is_blank:
        return 1

    number: Decimal | None = None
    if cell.kind == CellKind.number:
        number = Decimal(str(cell.value))
    elif cell.kind == CellKind.text:
        number = _to_decimal(cell.value.strip())

    if number is None or number != number.to_integral_value():
        raise PydanticCustomError(
            "position_number_format",
            "Position number must be an integer: '{value}'",
            {"value": cell.as_text()},
        )
    if number < minimum:
        raise PydanticCustomError(
            "position_number_too_small",
            "Position number must be at least {minimum}",
            {"minimum": minimum},
        )
    if number > maximum:
        raise PydanticCustomError(
            "position_number_too_large",
            "Position number exceeds maximum {maximum}",
            {"maximum": maximum},
        )
    return int(number)


def _invalid_date(cell: Cell) -> PydanticCustomError:
    return PydanticCustomError(
        "date_format",
        "Invalid end date format: '{value}'. Expected: YYYY-MM-DD",
        {"value": cell.as_text()},
    )


def parse_date(value: Any) -> date | None:
    """Parse a date cell, an Excel serial number or a date string."""
    cell = as_cell(value)
    if cell.is_blank:
        return None

    if cell.kind == CellKind.date:
        if isinstance(cell.value, datetime):
            return cell.value.date()
        if isinstance(cell.value, date):
            return cell.value
        raise _invalid_date(cell)

    if cell.kind == CellKind.number:
        try:
            converted = from_excel(cell.value)
        except (ValueError, OverflowError):
            raise _invalid_date(cell)
        if not isinstance(converted, datetime):
            raise _invalid_date(cell)
        return converted.date()

    if cell.kind == CellKind.text:
        try:
            return date_parser.parse(cell.value.strip()).date()
        except (ValueError, OverflowError):
            raise _invalid_date(cell)

    raise _invalid_date(cell)
