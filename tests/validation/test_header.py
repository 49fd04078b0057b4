"""Tests for grant header validation."""

from datetime import date

from conftest import COLUMN_HEADERS, grant_rows, sheet_from_rows
from grant_import.config import ImportConfig
from grant_import.errors import OrganizationMismatchError
from grant_import.validation import check_structure, validate_header


def _header(today, config=None, **fields):
    sheet = sheet_from_rows("Grant", grant_rows(**fields))
    return validate_header(sheet, config=config, today=today)


def test_valid_header(today):
    result = _header(today)

    assert result.is_valid
    assert result.grant.name == "Malaria Vaccine Trial"
    assert result.grant.code == "GR-001"
    assert result.grant.subsidiary == "SMRU"
    assert result.grant.end_date == date(2027, 12, 31)
    assert result.grant.description == "Phase II field study"
    assert result.errors == []
    assert result.warnings == []


def test_optional_fields_may_be_blank(today):
    result = _header(today, end_date=None, description=None)

    assert result.is_valid
    assert result.grant.end_date is None
    assert result.grant.description is None


def test_subsidiary_is_normalized(today):
    assert _header(today, subsidiary="  smru ").grant.subsidiary == "SMRU"


def test_near_miss_subsidiary_suggests_closest(today):
    result = _header(today, subsidiary="SMRUU")

    assert not result.is_valid
    [error] = result.errors
    assert isinstance(error, OrganizationMismatchError)
    assert error.suggestion == "SMRU"
    assert error.cell == "B3"
    assert error.message == "Invalid organization: 'SMRUU'. Did you mean 'SMRU'?"
    assert str(error) == "Sheet 'Grant' (B3): Invalid organization: 'SMRUU'. Did you mean 'SMRU'?"


def test_distant_subsidiary_lists_choices(today):
    result = _header(today, subsidiary="XYZW")

    [error] = result.errors
    assert error.suggestion is None
    assert error.message == "Invalid organization: 'XYZW'. Must be one of: SMRU, BHF, MORU, OUCRU"


def test_subsidiaries_come_from_config(today):
    config = ImportConfig(subsidiaries=["ACME"])

    assert _header(today, config=config, subsidiary="acme").is_valid
    assert not _header(today, config=config, subsidiary="SMRU").is_valid


def test_every_header_error_is_reported(today):
    result = _header(today, name="", code="bad code!", subsidiary="", end_date="someday")

    assert result.grant is None
    assert [e.cell for e in result.errors] == ["B1", "B2", "B3", "B4"]
    assert [e.message for e in result.errors] == [
        "Grant name is required",
        "Grant code contains invalid characters. Only alphanumeric, dot, dash, and underscore allowed",
        "Organization/Subsidiary is required",
        "Invalid end date format: 'someday'. Expected: YYYY-MM-DD",
    ]


def test_short_name(today):
    [error] = _header(today, name="AB").errors

    assert error.message == "Grant name must be at least 3 characters"


def test_past_end_date_is_a_warning(today):
    result = _header(today, end_date="2020-01-01")

    assert result.is_valid
    [warning] = result.warnings
    assert str(warning) == "Sheet 'Grant' (B4): End date is in the past: 2020-01-01"


def test_far_future_end_date_is_a_warning(today):
    result = _header(today, end_date="2040-01-01")

    assert result.is_valid
    [warning] = result.warnings
    assert warning.message == "End date is more than 10 years in the future: 2040-01-01"


def test_no_warnings_for_invalid_header(today):
    result = _header(today, code="", end_date="2020-01-01")

    assert result.warnings == []


class TestStructure:
    def test_too_few_rows(self, config):
        sheet = sheet_from_rows("Short", grant_rows()[:5])

        errors = check_structure(sheet, config=config)

        assert errors[0].message == "Insufficient data rows (minimum 8 required, found 5)"
        assert [e.cell for e in errors[1:]] == ["B7", "C7", "D7", "E7", "F7"]

    def test_missing_column_header(self, config):
        headers = list(COLUMN_HEADERS)
        headers[2] = ""
        sheet = sheet_from_rows("Grant", grant_rows(column_headers=headers))

        [error] = check_structure(sheet, config=config)

        assert error.message == "Missing column header 'Salary'"
        assert error.render() == "Sheet 'Grant' Row 7 (C7): Missing column header 'Salary'"

    def test_budget_line_header_may_be_blank(self, config):
        headers = [""] + list(COLUMN_HEADERS[1:])
        sheet = sheet_from_rows("Grant", grant_rows(column_headers=headers))

        assert check_structure(sheet, config=config) == []

    def test_structure_errors_fail_an_otherwise_valid_header(self, today):
        sheet = sheet_from_rows("Short", grant_rows()[:5])

        result = validate_header(sheet, today=today)

        assert not result.is_valid
        assert result.grant is None
