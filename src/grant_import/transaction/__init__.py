from __future__ import annotations

from .atomic import Atomic, atomic
from .writer import CommitResult, check_duplicate, commit_sheet

__all__ = [
    "Atomic",
    "CommitResult",
    "atomic",
    "check_duplicate",
    "commit_sheet",
]
