"""Header and item validation for grant sheets."""

from __future__ import annotations

from .header import HeaderResult, check_structure, validate_header
from .items import ItemsResult, PendingItem, iter_item_rows, validate_items, validate_row

__all__ = [
    "HeaderResult",
    "ItemsResult",
    "PendingItem",
    "check_structure",
    "iter_item_rows",
    "validate_header",
    "validate_items",
    "validate_row",
]
