"""Core workbook reading types and functions.

This module is Frappe-agnostic and turns CSV/XLSX uploads into an ordered
list of sheets whose cells are a tagged union (``Cell``) that validators
interpret by kind.
"""

from __future__ import annotations

import csv
import io
import re
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, BinaryIO, Iterator

from openpyxl import load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from grant_import.errors import MalformedWorkbookError


class TabularFormat(str, Enum):
    """Supported workbook formats."""

    auto = "auto"
    csv = "csv"
    xlsx = "xlsx"


class CellKind(str, Enum):
    """Kind tag of a raw cell value."""

    blank = "blank"
    text = "text"
    number = "number"
    date = "date"
    boolean = "boolean"


@dataclass(frozen=True)
class Cell:
    """One untyped spreadsheet cell.

    Attributes:
        kind: What the workbook stored in the cell
        value: ``None`` for blank, ``str`` for text, ``int | float`` for
            number, ``date | datetime | time`` for date, ``bool`` for boolean
    """

    kind: CellKind
    value: Any = None

    @classmethod
    def from_value(cls, value: Any) -> "Cell":
        """Tag a raw value coming from openpyxl or the csv module."""
        if value is None:
            return BLANK
        # bool is a subclass of int, so it has to be checked first
        if isinstance(value, bool):
            return cls(CellKind.boolean, value)
        if isinstance(value, (int, float)):
            return cls(CellKind.number, value)
        if isinstance(value, (datetime, date, time)):
            return cls(CellKind.date, value)
        text = str(value)
        if not text.strip():
            return BLANK
        return cls(CellKind.text, text)

    @property
    def is_blank(self) -> bool:
        return self.kind == CellKind.blank

    def as_text(self) -> str | None:
        """Render the cell as stripped text, ``None`` when blank."""
        if self.kind == CellKind.blank:
            return None
        if self.kind == CellKind.text:
            return self.value.strip()
        if self.kind == CellKind.number:
            if isinstance(self.value, float) and self.value.is_integer():
                return str(int(self.value))
            return str(self.value)
        if self.kind == CellKind.date:
            return self.value.isoformat()
        return "TRUE" if self.value else "FALSE"


BLANK = Cell(CellKind.blank)


def cell_address(row: int, column: int) -> str:
    """Return the spreadsheet coordinate of a 1-based cell, e.g. ``B3``."""
    return f"{get_column_letter(column)}{row}"


@dataclass
class Sheet:
    """A named 2-D grid of cells with 1-based row/column access."""

    name: str
    rows: list[tuple[Cell, ...]] = field(default_factory=list)

    @property
    def max_row(self) -> int:
        return len(self.rows)

    def row(self, row: int) -> tuple[Cell, ...]:
        if row < 1 or row > len(self.rows):
            return ()
        return self.rows[row - 1]

    def cell(self, row: int, column: int) -> Cell:
        cells = self.row(row)
        if column < 1 or column > len(cells):
            return BLANK
        return cells[column - 1]

    def is_blank_row(self, row: int) -> bool:
        return all(cell.is_blank for cell in self.row(row))


@dataclass
class Workbook:
    """Ordered sequence of sheets read from one upload."""

    sheets: list[Sheet]

    def __iter__(self) -> Iterator[Sheet]:
        return iter(self.sheets)

    def __len__(self) -> int:
        return len(self.sheets)

    @property
    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.sheets]


@dataclass
class WorkbookConfig:
    """Configuration for workbook reading."""

    format: TabularFormat = TabularFormat.auto
    delimiter: str = ","  # CSV delimiter
    csv_sheet_name: str = "Sheet1"
    max_file_size_bytes: int | None = None  # None means no explicit limit

    def __post_init__(self):
        if self.max_file_size_bytes is not None and self.max_file_size_bytes < 1:
            raise ValueError("max_file_size_bytes must be >= 1")


_SIZE_UNITS = {
    "": 1,
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
}

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMG]?B?)\s*$", re.IGNORECASE)


def parse_file_size(value: int | str) -> int:
    """Convert a human readable size (``"10MB"``, ``"512 KB"``) to bytes.

    >>> parse_file_size("1.5KB")
    1536
    """
    if isinstance(value, int):
        return value

    match = _SIZE_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid file size: {value!r}")

    number, unit = match.groups()
    unit = unit.upper()
    if unit and not unit.endswith("B"):
        unit += "B"
    return int(float(number) * _SIZE_UNITS[unit])


def _detect_format(content: bytes, file_name: str | None = None) -> TabularFormat:
    """Detect workbook format from file name or content."""
    if file_name:
        file_name_lower = file_name.lower()
        if file_name_lower.endswith((".xlsx", ".xlsm")):
            return TabularFormat.xlsx
        elif file_name_lower.endswith(".csv"):
            return TabularFormat.csv
        elif file_name_lower.endswith(".xls"):
            raise MalformedWorkbookError(
                "Legacy .xls workbooks are not supported. Save the file as .xlsx and try again."
            )

    # XLSX files are ZIP archives: PK\x03\x04
    if content[:4] == b"PK\x03\x04":
        return TabularFormat.xlsx
    return TabularFormat.csv


def _read_content(fp: BinaryIO | bytes) -> bytes:
    if isinstance(fp, (bytes, bytearray)):
        return bytes(fp)
    if hasattr(fp, "seek"):
        fp.seek(0)
    content = fp.read()
    if isinstance(content, str):
        content = content.encode("utf-8")
    return content


def _read_csv(content: bytes, config: WorkbookConfig) -> Workbook:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedWorkbookError(f"File is not a valid workbook: {e}") from e

    if "\x00" in text:
        raise MalformedWorkbookError("File is not a valid workbook: binary content")

    try:
        rows = [
            tuple(Cell.from_value(value) for value in row)
            for row in csv.reader(io.StringIO(text), delimiter=config.delimiter)
        ]
    except csv.Error as e:
        raise MalformedWorkbookError(f"File is not a valid CSV workbook: {e}") from e

    return Workbook(sheets=[Sheet(name=config.csv_sheet_name, rows=rows)])


# ElementTree ParseError and lxml XMLSyntaxError both derive from SyntaxError
_XLSX_ERRORS = (zipfile.BadZipFile, InvalidFileException, KeyError, OSError, ValueError, SyntaxError)


def _read_xlsx(content: bytes) -> Workbook:
    try:
        wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except _XLSX_ERRORS as e:
        raise MalformedWorkbookError(f"File is not a valid workbook: {e}") from e

    try:
        sheets = []
        for ws in wb.worksheets:
            rows = [
                tuple(Cell.from_value(value) for value in row_values)
                for row_values in ws.iter_rows(values_only=True)
            ]
            sheets.append(Sheet(name=ws.title, rows=rows))
    except _XLSX_ERRORS as e:
        raise MalformedWorkbookError(f"Workbook could not be read: {e}") from e
    finally:
        wb.close()

    return Workbook(sheets=sheets)


def read_workbook(
    fp: BinaryIO | bytes,
    *,
    config: WorkbookConfig | None = None,
    file_name: str | None = None,
) -> Workbook:
    """Read every sheet of a CSV/XLSX upload.

    Args:
        fp: Binary file-like object (or raw bytes) with the upload
        config: Reading configuration
        file_name: Optional filename to help with format detection

    Returns:
        Workbook with its sheets in workbook order

    Raises:
        MalformedWorkbookError: If the upload is empty, too large, or not a
            readable tabular container
    """
    if config is None:
        config = WorkbookConfig()

    content = _read_content(fp)

    if not content:
        raise MalformedWorkbookError("Uploaded file is empty")

    if config.max_file_size_bytes is not None and len(content) > config.max_file_size_bytes:
        file_size_mb = len(content) / (1024 * 1024)
        max_size_mb = config.max_file_size_bytes / (1024 * 1024)
        raise MalformedWorkbookError(
            f"File size exceeds maximum limit. "
            f"File is {file_size_mb:.2f} MB, "
            f"but maximum allowed size is {max_size_mb:.2f} MB."
        )

    if config.format == TabularFormat.auto:
        format_to_use = _detect_format(content, file_name)
    else:
        format_to_use = config.format

    if format_to_use == TabularFormat.csv:
        workbook = _read_csv(content, config)
    else:
        workbook = _read_xlsx(content)

    if not workbook.sheets:
        raise MalformedWorkbookError("Workbook contains no sheets")

    return workbook
