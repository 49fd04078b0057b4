"""Cast helpers for config values coming from env vars or site config."""

from __future__ import annotations

from typing import Any, Callable


class Csv:
    """Split a string into a list, with optional per-element casting.

    >>> Csv()("SMRU, BHF")
    ['SMRU', 'BHF']
    >>> Csv(cast=str.upper)("smru,bhf")
    ['SMRU', 'BHF']
    """

    def __init__(
        self,
        cast: Callable[[str], Any] = str,
        delimiter: str = ",",
        strip: bool = True,
    ) -> None:
        self.cast = cast
        self.delimiter = delimiter
        self.strip = strip

    def __call__(self, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [self.cast(v) for v in value]

        parts = str(value).split(self.delimiter)
        if self.strip:
            parts = [p.strip() for p in parts]
        return [self.cast(p) for p in parts if p]
