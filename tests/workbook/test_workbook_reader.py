"""Tests for reading CSV/XLSX uploads into sheets of tagged cells."""

from datetime import datetime
from unittest.mock import Mock

import pytest
from openpyxl import load_workbook

import grant_import.workbook.core as core_module
from conftest import grant_rows, item_rows, replace_part, xlsx_bytes
from grant_import.errors import MalformedWorkbookError
from grant_import.workbook.core import (
    BLANK,
    Cell,
    CellKind,
    Sheet,
    TabularFormat,
    WorkbookConfig,
    cell_address,
    parse_file_size,
    read_workbook,
)


class TestCell:
    def test_bool_is_not_a_number(self):
        assert Cell.from_value(True).kind == CellKind.boolean
        assert Cell.from_value(3).kind == CellKind.number

    def test_whitespace_is_blank(self):
        assert Cell.from_value("   ") is BLANK
        assert Cell.from_value(None).is_blank

    def test_datetime_is_date(self):
        cell = Cell.from_value(datetime(2027, 12, 31))
        assert cell.kind == CellKind.date
        assert cell.as_text() == "2027-12-31T00:00:00"

    def test_integral_float_renders_without_fraction(self):
        assert Cell.from_value(30000.0).as_text() == "30000"
        assert Cell.from_value(0.75).as_text() == "0.75"

    def test_text_is_stripped(self):
        assert Cell.from_value("  SMRU ").as_text() == "SMRU"


def test_cell_address():
    assert cell_address(9, 3) == "C9"
    assert cell_address(1, 27) == "AA1"


def test_sheet_access_out_of_range_is_blank():
    sheet = Sheet(name="S", rows=[(Cell.from_value("a"),)])

    assert sheet.cell(1, 1).as_text() == "a"
    assert sheet.cell(1, 5) is BLANK
    assert sheet.cell(40, 1) is BLANK
    assert sheet.is_blank_row(40)


class TestParseFileSize:
    def test_units(self):
        assert parse_file_size("10MB") == 10 * 1024 * 1024
        assert parse_file_size("512 KB") == 512 * 1024
        assert parse_file_size("1.5k") == 1536
        assert parse_file_size(2048) == 2048

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid file size"):
            parse_file_size("ten megabytes")


class TestXlsx:
    def test_sheets_keep_workbook_order(self):
        content = xlsx_bytes(
            {
                "Beta": grant_rows(code="GR-B"),
                "Alpha": grant_rows(code="GR-A"),
            }
        )

        workbook = read_workbook(content)

        assert workbook.sheet_names == ["Beta", "Alpha"]
        assert len(workbook) == 2

    def test_cells_are_tagged(self):
        content = xlsx_bytes({"Grant": grant_rows(items=item_rows(1))})

        sheet = read_workbook(content).sheets[0]

        assert sheet.cell(1, 2).as_text() == "Malaria Vaccine Trial"
        assert sheet.cell(9, 4).kind == CellKind.number
        assert sheet.cell(9, 3).kind == CellKind.text
        assert sheet.is_blank_row(6)
        assert sheet.cell(7, 2).as_text() == "Position"

    def test_date_cells(self):
        content = xlsx_bytes({"Grant": grant_rows(end_date=datetime(2027, 12, 31))})

        cell = read_workbook(content).sheets[0].cell(4, 2)

        assert cell.kind == CellKind.date

    def test_corrupt_zip(self):
        with pytest.raises(MalformedWorkbookError, match="not a valid workbook"):
            read_workbook(b"PK\x03\x04 definitely not a workbook")

    def test_legacy_xls_rejected(self):
        with pytest.raises(MalformedWorkbookError, match="Legacy .xls"):
            read_workbook(b"\xd0\xcf\x11\xe0", file_name="grants.xls")


class TestCorruptXmlPart:
    @pytest.fixture
    def opened(self, monkeypatch):
        workbooks = []

        def tracking_load_workbook(*args, **kwargs):
            wb = load_workbook(*args, **kwargs)
            wb.close = Mock(wraps=wb.close)
            workbooks.append(wb)
            return wb

        monkeypatch.setattr(core_module, "load_workbook", tracking_load_workbook)
        return workbooks

    def test_corrupt_workbook_part(self, opened):
        content = replace_part(xlsx_bytes({"Grant": grant_rows()}), "xl/workbook.xml", b"<not xml")

        with pytest.raises(MalformedWorkbookError, match="not a valid workbook"):
            read_workbook(content)

        assert all(wb.close.called for wb in opened)

    def test_corrupt_sheet_part_still_closes_the_workbook(self, opened):
        content = replace_part(
            xlsx_bytes({"Grant": grant_rows()}), "xl/worksheets/sheet1.xml", b"<not xml"
        )

        with pytest.raises(MalformedWorkbookError, match="could not be read"):
            read_workbook(content)

        assert [wb.close.call_count for wb in opened] == [1]


class TestCsv:
    def test_single_sheet(self):
        content = b"Grant Name,Malaria Trial\nGrant Code,GR-001\n"

        workbook = read_workbook(content, file_name="grants.csv")

        assert workbook.sheet_names == ["Sheet1"]
        assert workbook.sheets[0].cell(2, 2).as_text() == "GR-001"

    def test_bom_is_ignored(self):
        workbook = read_workbook("\ufeffGrant Name,Trial\n".encode("utf-8"))

        assert workbook.sheets[0].cell(1, 1).as_text() == "Grant Name"

    def test_semicolon_delimiter(self):
        config = WorkbookConfig(format=TabularFormat.csv, delimiter=";")

        workbook = read_workbook(b"Grant Code;GR-001\n", config=config)

        assert workbook.sheets[0].cell(1, 2).as_text() == "GR-001"

    def test_binary_content_rejected(self):
        with pytest.raises(MalformedWorkbookError):
            read_workbook(b"\x00\x01\x02garbage")


class TestLimits:
    def test_empty_upload(self):
        with pytest.raises(MalformedWorkbookError, match="empty"):
            read_workbook(b"")

    def test_too_large(self):
        config = WorkbookConfig(max_file_size_bytes=10)

        with pytest.raises(MalformedWorkbookError, match="exceeds maximum limit"):
            read_workbook(b"Grant Name,Malaria Trial\n", config=config)

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            WorkbookConfig(max_file_size_bytes=0)
