"""Persistence stores for imported grants."""

from ._repository import InMemoryPersistenceStore, PersistenceStore, UniqueConstraintError
from ._frappe_adapter import FrappePersistenceStore, TransactionError

__all__ = [
    "FrappePersistenceStore",
    "InMemoryPersistenceStore",
    "PersistenceStore",
    "TransactionError",
    "UniqueConstraintError",
]
