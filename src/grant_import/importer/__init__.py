"""Driving the import of whole workbooks."""

from __future__ import annotations

from .aggregator import import_file, import_sheets, import_workbook, new_import_id, summary_message
from .notifications import (
    FrappeNotificationEmitter,
    NotificationEmitter,
    RecordingNotificationEmitter,
    dispatch,
)
from .sheet import process_sheet

__all__ = [
    "FrappeNotificationEmitter",
    "NotificationEmitter",
    "RecordingNotificationEmitter",
    "dispatch",
    "import_file",
    "import_sheets",
    "import_workbook",
    "new_import_id",
    "process_sheet",
    "summary_message",
]
