"""Workbook reading utilities for the grant import engine.

This module turns multi-sheet CSV/XLSX uploads into sheets of tagged cells.
"""

from __future__ import annotations

from .core import (
    BLANK,
    Cell,
    CellKind,
    Sheet,
    TabularFormat,
    Workbook,
    WorkbookConfig,
    cell_address,
    parse_file_size,
    read_workbook,
)
from .frappe import read_file

__all__ = [
    "BLANK",
    "Cell",
    "CellKind",
    "Sheet",
    "TabularFormat",
    "Workbook",
    "WorkbookConfig",
    "cell_address",
    "parse_file_size",
    "read_file",
    "read_workbook",
]
