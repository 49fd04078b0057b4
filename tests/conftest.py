"""Shared fixtures: in-memory grant workbooks laid out like the upload template."""

from __future__ import annotations

import io
import zipfile
from datetime import date

import pytest
from openpyxl import Workbook

from grant_import.config import ImportConfig
from grant_import.store import InMemoryPersistenceStore
from grant_import.workbook.core import Cell, Sheet

TODAY = date(2026, 1, 15)

COLUMN_HEADERS = ["Budget Line Code", "Position", "Salary", "Benefit", "Level of Effort", "Position Number"]
INSTRUCTIONS = ["Optional", "Required", "Number", "Number", "0-100, 75% or 0.75", "Integer, default 1"]


def grant_rows(
    *,
    name="Malaria Vaccine Trial",
    code="GR-001",
    subsidiary="SMRU",
    end_date="2027-12-31",
    description="Phase II field study",
    items=(),
    column_headers=COLUMN_HEADERS,
):
    """Rows of one sheet following the template: header, spacer, table."""
    return [
        ["Grant Name", name],
        ["Grant Code", code],
        ["Subsidiary", subsidiary],
        ["End Date", end_date],
        ["Description", description],
        [],
        list(column_headers),
        list(INSTRUCTIONS),
        *[list(item) for item in items],
    ]


def item_rows(count: int, *, prefix: str = "BL"):
    return [
        [f"{prefix}-{i}", f"Research Assistant {i}", "30,000", 1500, "75%", i]
        for i in range(1, count + 1)
    ]


def sheet_from_rows(name: str, rows) -> Sheet:
    return Sheet(name=name, rows=[tuple(Cell.from_value(v) for v in row) for row in rows])


def xlsx_bytes(sheets: dict) -> bytes:
    """Create an XLSX workbook in memory from ``{sheet name: rows}``."""
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    fp = io.BytesIO()
    wb.save(fp)
    return fp.getvalue()


def replace_part(content: bytes, part: str, data: bytes) -> bytes:
    """Return a copy of an XLSX archive with one member replaced."""
    fp = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(content)) as source, zipfile.ZipFile(fp, "w") as target:
        for info in source.infolist():
            target.writestr(info, data if info.filename == part else source.read(info.filename))
    return fp.getvalue()


@pytest.fixture
def config():
    return ImportConfig()


@pytest.fixture
def store():
    return InMemoryPersistenceStore()


@pytest.fixture
def today():
    return TODAY
