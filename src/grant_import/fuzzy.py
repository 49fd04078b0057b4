"""Approximate string matching for enum-style cells.

Pure and dependency-free; shared by every field that accepts one value
out of a fixed set.
"""

from __future__ import annotations

from typing import Iterable, NamedTuple


def levenshtein(a: str, b: str) -> int:
    """Return the edit distance (insert, delete, substitute) between two strings.

    >>> levenshtein("SMRUU", "SMRU")
    1
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


class Match(NamedTuple):
    choice: str
    distance: int


def closest_match(value: str, choices: Iterable[str]) -> Match | None:
    """Return the choice with the smallest edit distance to *value*.

    Ties keep the earliest choice. Returns ``None`` when *choices* is empty.
    """
    best: Match | None = None
    for choice in choices:
        distance = levenshtein(value, choice)
        if best is None or distance < best.distance:
            best = Match(choice, distance)
    return best


def normalize_choice(value: str) -> str:
    """Trim, uppercase and collapse inner whitespace."""
    return " ".join(value.split()).upper()
