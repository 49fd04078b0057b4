"""Tests for ImportConfig, the import settings group."""

import pytest
from pydantic import ValidationError

from grant_import.config import ImportConfig, StaticConfig, override_config


def test_defaults():
    cfg = ImportConfig.load(StaticConfig())

    assert cfg.subsidiaries == ["SMRU", "BHF", "MORU", "OUCRU"]
    assert cfg.fuzzy_max_distance == 2
    assert cfg.end_date_horizon_years == 10
    assert (cfg.column_header_row, cfg.instructions_row, cfg.data_start_row) == (7, 8, 9)
    assert cfg.max_file_size == 10 * 1024 * 1024


def test_site_config_keys_are_prefixed():
    cfg = ImportConfig.load(
        StaticConfig(site={"grant_import_subsidiaries": "smru, bhf", "grant_import_max_file_size": "5MB"})
    )

    assert cfg.subsidiaries == ["SMRU", "BHF"]
    assert cfg.max_file_size == 5 * 1024 * 1024
    assert cfg.workbook_config.max_file_size_bytes == 5 * 1024 * 1024


def test_env_beats_site():
    source = StaticConfig(
        env={"GRANT_IMPORT_FUZZY_MAX_DISTANCE": "1"},
        site={"grant_import_fuzzy_max_distance": 3},
    )

    assert ImportConfig.load(source).fuzzy_max_distance == 1


def test_common_config_fallback():
    cfg = ImportConfig.load(StaticConfig(common={"grant_import_grant_doctype": "Funding Grant"}))

    assert cfg.grant_doctype == "Funding Grant"


def test_list_values_from_site_config():
    cfg = ImportConfig.load(StaticConfig(site={"grant_import_subsidiaries": ["moru"]}))

    assert cfg.subsidiaries == ["MORU"]


def test_empty_subsidiaries_rejected():
    with pytest.raises(ValidationError, match="subsidiaries must not be empty"):
        ImportConfig.load(StaticConfig(site={"grant_import_subsidiaries": " , "}))


def test_negative_distance_rejected():
    with pytest.raises(ValidationError):
        ImportConfig(fuzzy_max_distance=-1)


def test_row_layout_must_be_ordered():
    with pytest.raises(ValidationError, match="column_header_row"):
        ImportConfig(instructions_row=10)


def test_override_config_is_used_by_load():
    with override_config(env={"GRANT_IMPORT_END_DATE_HORIZON_YEARS": "5"}):
        assert ImportConfig.load().end_date_horizon_years == 5


def test_cli_user():
    assert ImportConfig().cli_user == "Administrator"

    source = StaticConfig(env={"GRANT_IMPORT_CLI_USER": "finance@example.com"})
    assert ImportConfig.load(source).cli_user == "finance@example.com"
