"""Accumulating command-line values for the load test runner."""

from __future__ import annotations

import re

_INTEGER = re.compile(r"[+-]?[0-9]+")


class FileNames(list):
    """A list of input file names, filled one value at a time."""

    def add(self, value: str) -> None:
        """Append a file name; empty names are rejected."""
        if not value:
            raise ValueError("value must not be empty")
        self.append(value)

    def __str__(self) -> str:
        return "[" + " ".join(self) + "]"


class ConcurrencyLevels(dict):
    """Concurrency levels per queue, parsed from [<queue name>:]<level> values."""

    def add(self, value: str) -> None:
        """Parse one value and record its level under its queue name."""
        key, sep, level_text = value.partition(":")
        if not sep:
            key, level_text = "", value
        if not _INTEGER.fullmatch(level_text):
            if not key:
                raise ValueError(
                    "value must be of the form [<queue name>:]<concurrency level>"
                )
            raise ValueError(f"concurrency level must be an integer, got {level_text}")
        level = int(level_text)
        if level <= 0:
            raise ValueError(f"concurrency level must be positive, got {level}")
        self[key] = level
        if self.get("", 0) > 0 and len(self) > 1:
            raise ValueError("global capacity and queue names are mutually exclusive")

    def __str__(self) -> str:
        items = " ".join(f"{key}:{self[key]}" for key in sorted(self))
        return f"map[{items}]"