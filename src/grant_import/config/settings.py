"""Settings of the grant import engine."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator, model_validator

from grant_import.workbook.core import WorkbookConfig, parse_file_size

from ._casters import Csv
from ._sources import ConfigSource, active_source

SITE_PREFIX = "grant_import"
ENV_PREFIX = "GRANT_IMPORT"


class ImportConfig(BaseModel):
    """Tunables for the grant import pipeline.

    Every field can be set through ``grant_import_<field>`` in site config or
    ``GRANT_IMPORT_<FIELD>`` in the environment.
    """

    subsidiaries: list[str] = ["SMRU", "BHF", "MORU", "OUCRU"]
    fuzzy_max_distance: int = 2
    end_date_horizon_years: int = 10
    column_header_row: int = 7
    instructions_row: int = 8
    data_start_row: int = 9
    max_file_size: int = 10 * 1024 * 1024
    grant_doctype: str = "Grant"
    grant_item_doctype: str = "Grant Item"
    realtime_event: str = "grant_import_completed"
    cli_user: str = "Administrator"

    @classmethod
    def load(cls, source: ConfigSource | None = None) -> "ImportConfig":
        """Read every field from *source* and validate the result.

        Fields that are set nowhere keep their defaults.
        """
        source = source or active_source()

        raw: dict[str, Any] = {}
        for name in cls.model_fields:
            value = source.get(f"{SITE_PREFIX}_{name}", env=f"{ENV_PREFIX}_{name}".upper())
            if value is not None:
                raw[name] = value

        return cls.model_validate(raw)

    @field_validator("subsidiaries", mode="before")
    @classmethod
    def _split_subsidiaries(cls, value: Any) -> Any:
        return Csv(cast=lambda v: v.strip().upper())(value)

    @field_validator("max_file_size", mode="before")
    @classmethod
    def _parse_size(cls, value: Any) -> Any:
        return parse_file_size(value)

    @model_validator(mode="after")
    def _check_layout(self) -> "ImportConfig":
        if not self.subsidiaries:
            raise ValueError("subsidiaries must not be empty")
        if self.fuzzy_max_distance < 0:
            raise ValueError("fuzzy_max_distance must be >= 0")
        if not (self.column_header_row < self.instructions_row < self.data_start_row):
            raise ValueError("column_header_row < instructions_row < data_start_row is required")
        return self

    @property
    def workbook_config(self) -> WorkbookConfig:
        return WorkbookConfig(max_file_size_bytes=self.max_file_size)
