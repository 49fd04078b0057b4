"""Delivery of the import summary to the user who uploaded the workbook."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

try:
    import frappe
except ImportError:  # pragma: no cover
    frappe = None

from grant_import.config import ImportConfig
from grant_import.models import ImportResult

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationEmitter(Protocol):
    def notify(
        self,
        processed_grants: int,
        processed_items: int,
        errors: list[str],
        skipped_grants: list[str],
        *,
        message: str,
        import_id: str | None = None,
    ) -> None:
        ...


@dataclass
class Notification:
    processed_grants: int
    processed_items: int
    errors: list[str]
    skipped_grants: list[str]
    message: str
    import_id: str | None = None


@dataclass
class RecordingNotificationEmitter:
    """Keeps every notification in memory; used by tests and dry runs."""

    sent: list[Notification] = field(default_factory=list)

    def notify(self, processed_grants, processed_items, errors, skipped_grants, *, message, import_id=None):
        self.sent.append(
            Notification(
                processed_grants, processed_items, list(errors), list(skipped_grants), message, import_id
            )
        )


class FrappeNotificationEmitter:
    """Writes a Notification Log entry and pushes a realtime event."""

    def __init__(self, user: str | None = None, config: ImportConfig | None = None) -> None:
        self.user = user
        self.config = config or ImportConfig()

    def notify(self, processed_grants, processed_items, errors, skipped_grants, *, message, import_id=None):
        if frappe is None:
            raise ImportError("frappe is required for FrappeNotificationEmitter.")

        user = self.user or frappe.session.user

        frappe.get_doc(
            {
                "doctype": "Notification Log",
                "for_user": user,
                "type": "Alert",
                "document_type": self.config.grant_doctype,
                "subject": message,
                "email_content": "<br>".join(errors),
            }
        ).insert(ignore_permissions=True)

        frappe.publish_realtime(
            self.config.realtime_event,
            {
                "message": message,
                "processed_grants": processed_grants,
                "processed_items": processed_items,
                "errors": errors,
                "skipped_grants": skipped_grants,
                "import_id": import_id,
            },
            user=user,
        )


def dispatch(
    emitter: NotificationEmitter | None,
    result: ImportResult,
    message: str,
    *,
    import_id: str | None = None,
) -> bool:
    """Send *message* and the counters through *emitter*; a delivery failure is only logged."""
    if emitter is None:
        return False

    try:
        emitter.notify(
            result.processed_grants,
            result.processed_items,
            [str(issue) for issue in result.errors],
            list(result.skipped_grants),
            message=message,
            import_id=import_id,
        )
    except Exception:
        logger.exception("Failed to deliver grant import notification for %s", import_id)
        return False

    return True
