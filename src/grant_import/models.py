"""Data model of the grant import engine.

``Grant`` and ``GrantItem`` accept either plain values or raw ``Cell``s:
their ``before`` validators interpret tagged cells, so a sheet row can be
validated in one ``model_validate`` call that reports every bad field at
once.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from grant_import import cells
from grant_import.errors import SheetError, describe
from grant_import.fuzzy import closest_match, normalize_choice

DEFAULT_SUBSIDIARIES = ("SMRU", "BHF", "MORU", "OUCRU")
DEFAULT_FUZZY_MAX_DISTANCE = 2

GRANT_CODE_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


def _context(info: ValidationInfo, key: str, default: Any) -> Any:
    if info.context and key in info.context:
        return info.context[key]
    return default


def match_subsidiary(
    value: Any,
    choices: tuple[str, ...] | list[str] = DEFAULT_SUBSIDIARIES,
    max_distance: int = DEFAULT_FUZZY_MAX_DISTANCE,
) -> str:
    """Return the enum value *value* names exactly, or raise with a suggestion.

    Near-misses are never coerced: a typo within *max_distance* edits fails
    with "Did you mean" and carries the suggestion in the error context.
    """
    raw = cells.text_value(value)
    if raw is None:
        raise PydanticCustomError("required", "Organization/Subsidiary is required")

    normalized = normalize_choice(raw)
    if normalized in choices:
        return normalized

    match = closest_match(normalized, choices)
    if match is not None and match.distance <= max_distance:
        raise PydanticCustomError(
            "organization_mismatch",
            "Invalid organization: '{value}'. Did you mean '{suggestion}'?",
            {"value": raw, "suggestion": match.choice},
        )
    raise PydanticCustomError(
        "organization_mismatch",
        "Invalid organization: '{value}'. Must be one of: {choices}",
        {"value": raw, "choices": ", ".join(choices)},
    )


class Grant(BaseModel):
    """Grant header of one sheet (cells B1 to B5)."""

    model_config = ConfigDict(frozen=True)

    name: str
    code: str
    subsidiary: str
    end_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> Any:
        return cells.check_text(value, label="Grant name", required=True, min_length=3, max_length=255)

    @field_validator("code", mode="before")
    @classmethod
    def _code(cls, value: Any) -> Any:
        code = cells.check_text(value, label="Grant code", required=True, max_length=50)
        if not GRANT_CODE_PATTERN.match(code):
            raise PydanticCustomError(
                "code_format",
                "Grant code contains invalid characters. "
                "Only alphanumeric, dot, dash, and underscore allowed",
            )
        return code

    @field_validator("subsidiary", mode="before")
    @classmethod
    def _subsidiary(cls, value: Any, info: ValidationInfo) -> Any:
        return match_subsidiary(
            value,
            tuple(_context(info, "subsidiaries", DEFAULT_SUBSIDIARIES)),
            _context(info, "fuzzy_max_distance", DEFAULT_FUZZY_MAX_DISTANCE),
        )

    @field_validator("end_date", mode="before")
    @classmethod
    def _end_date(cls, value: Any) -> Any:
        return cells.parse_date(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value: Any) -> Any:
        return cells.check_text(value, label="Description", max_length=1000)


class GrantItem(BaseModel):
    """One budget-line row of a grant sheet."""

    model_config = ConfigDict(frozen=True)

    position: str
    budget_line_code: Optional[str] = None
    salary: Optional[Decimal] = None
    benefit: Optional[Decimal] = None
    level_of_effort: Optional[float] = None
    position_number: int = 1

    @field_validator("position", mode="before")
    @classmethod
    def _position(cls, value: Any) -> Any:
        return cells.check_text(value, label="Grant position", required=True, min_length=2, max_length=255)

    @field_validator("budget_line_code", mode="before")
    @classmethod
    def _budget_line_code(cls, value: Any) -> Any:
        return cells.check_text(value, label="Budget line code", max_length=50)

    @field_validator("salary", mode="before")
    @classmethod
    def _salary(cls, value: Any) -> Any:
        return cells.parse_money(value, label="Salary")

    @field_validator("benefit", mode="before")
    @classmethod
    def _benefit(cls, value: Any) -> Any:
        return cells.parse_money(value, label="Benefit")

    @field_validator("level_of_effort", mode="before")
    @classmethod
    def _level_of_effort(cls, value: Any) -> Any:
        return cells.parse_level_of_effort(value)

    @field_validator("position_number", mode="before")
    @classmethod
    def _position_number(cls, value: Any) -> Any:
        return cells.parse_position_number(value)


class SheetState(str, Enum):
    """States a sheet walks through while it is imported."""

    parsing_header = "ParsingHeader"
    validating_header = "ValidatingHeader"
    checking_duplicate = "CheckingDuplicate"
    validating_items = "ValidatingItems"
    persisting = "Persisting"
    committed = "Committed"
    skipped = "Skipped"
    failed = "Failed"


class ImportIssue(BaseModel):
    """One error or warning with its sheet/row/cell context."""

    model_config = ConfigDict(frozen=True)

    message: str
    sheet: Optional[str] = None
    row: Optional[int] = None
    cell: Optional[str] = None

    @classmethod
    def from_error(cls, error: SheetError) -> "ImportIssue":
        return cls(sheet=error.sheet, message=error.message, row=error.row, cell=error.cell)

    def __str__(self) -> str:
        return describe(self.message, sheet=self.sheet, row=self.row, cell=self.cell)


class SheetOutcome(BaseModel):
    """Terminal result of processing one sheet."""

    sheet: str
    state: SheetState
    code: Optional[str] = None
    items: int = 0
    errors: list[ImportIssue] = []
    warnings: list[ImportIssue] = []

    @property
    def committed(self) -> bool:
        return self.state == SheetState.committed


class ImportResult(BaseModel):
    """Counts, skips and issues aggregated over every sheet of a workbook."""

    processed_grants: int = 0
    processed_items: int = 0
    skipped_grants: list[str] = []
    errors: list[ImportIssue] = []
    warnings: list[ImportIssue] = []

    def merge(self, outcome: SheetOutcome) -> "ImportResult":
        """Return a new result with *outcome* folded in."""
        return ImportResult(
            processed_grants=self.processed_grants + (1 if outcome.committed else 0),
            processed_items=self.processed_items + (outcome.items if outcome.committed else 0),
            skipped_grants=self.skipped_grants
            + ([outcome.code] if outcome.state == SheetState.skipped and outcome.code else []),
            errors=self.errors + outcome.errors,
            warnings=self.warnings + outcome.warnings,
        )


class ImportResponse(BaseModel):
    """Payload handed back to the caller of an import request."""

    success: bool
    message: str
    result: ImportResult
    import_id: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "processed_grants": self.result.processed_grants,
            "processed_items": self.result.processed_items,
        }
        if self.result.skipped_grants:
            data["skipped_grants"] = list(self.result.skipped_grants)
        if self.result.errors:
            data["errors"] = [str(issue) for issue in self.result.errors]
        if self.result.warnings:
            data["warnings"] = [str(issue) for issue in self.result.warnings]
        payload: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.import_id:
            payload["import_id"] = self.import_id
        payload["data"] = data
        return payload
