"""Frappe-specific adapter for workbook reading.

This module provides a Frappe-aware helper that works with Frappe File documents.
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

try:
    import frappe
    from frappe.model.document import Document
except ImportError:
    frappe = None  # type: ignore[assignment]
    Document = None  # type: ignore[assignment, misc]

from grant_import.errors import MalformedWorkbookError
from grant_import.workbook.core import Workbook, WorkbookConfig, read_workbook

if TYPE_CHECKING:
    from frappe.model.document import Document as FrappeDocument


def _resolve_file_doc(file: str | "FrappeDocument"):
    if isinstance(file, str):
        try:
            return frappe.get_doc("File", file)
        except frappe.DoesNotExistError:
            raise ValueError(f"File document not found: {file}")

    if Document is not None and isinstance(file, Document):
        file_doc = file
    elif hasattr(file, "doctype") and hasattr(file, "get_content"):
        # Duck-typed documents (mocks in tests)
        file_doc = file
    else:
        raise TypeError(
            f"file must be a string (File name) or File Document instance, "
            f"got {type(file).__name__}"
        )

    if file_doc.doctype != "File":
        raise ValueError(f"Document is not a File document: {file_doc.doctype}")
    return file_doc


def read_file(
    file: str | "FrappeDocument",
    *,
    config: WorkbookConfig | None = None,
) -> Workbook:
    """Read a workbook file stored in Frappe.

    Args:
        file: File document name (string) or File Document instance
        config: Optional reading configuration

    Returns:
        Workbook with every sheet of the file

    Raises:
        ImportError: If frappe is not installed
        ValueError: If the document is not found or is not a File
        PermissionError: If user doesn't have permission to read the file
        MalformedWorkbookError: If the file is too large, empty, unreadable
            or not a workbook
    """
    if frappe is None:
        raise ImportError(
            "frappe is required for read_file. "
            "This function is only available in Frappe environments."
        )

    file_doc = _resolve_file_doc(file)

    if not file_doc.has_permission("read"):
        raise PermissionError(
            f"Permission denied: You do not have read permission for file {file_doc.name}"
        )

    # Reject oversized files before pulling the content into memory
    file_size = getattr(file_doc, "file_size", None)
    if config and config.max_file_size_bytes is not None and file_size is not None:
        if file_size > config.max_file_size_bytes:
            file_size_mb = file_size / (1024 * 1024)
            max_size_mb = config.max_file_size_bytes / (1024 * 1024)
            file_name = getattr(file_doc, "file_name", "Unknown")
            raise MalformedWorkbookError(
                f"File size exceeds maximum limit. "
                f"File '{file_name}' is {file_size_mb:.2f} MB, "
                f"but maximum allowed size is {max_size_mb:.2f} MB."
            )

    try:
        content = file_doc.get_content()
    except Exception as e:
        raise MalformedWorkbookError(f"Failed to read file content: {e}") from e

    if not content:
        raise MalformedWorkbookError("Uploaded file is empty")

    if isinstance(content, str):
        content = content.encode("utf-8")

    file_name = getattr(file_doc, "file_name", None)

    with io.BytesIO(content) as fp:
        return read_workbook(fp, config=config, file_name=file_name)
