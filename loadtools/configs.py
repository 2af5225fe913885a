"""Reading load test configurations from multi-document YAML files."""

from __future__ import annotations

import json
from typing import Any, Iterable, Iterator

import yaml

_SEPARATOR = "---"


def decode_from_files(file_names: Iterable[str]) -> list[dict[str, Any]]:
    """Read load test configurations from each file in turn."""
    configs: list[dict[str, Any]] = []
    for file_name in file_names:
        configs.extend(decode_from_file(file_name))
    return configs


def decode_from_file(file_name: str) -> list[dict[str, Any]]:
    """Read the load test configurations held in one file.

    Raises OSError if the file cannot be opened and ValueError if a
    configuration in it cannot be decoded.
    """
    with open(file_name, encoding="utf-8") as handle:
        try:
            return list(decode_documents(handle))
        except (ValueError, yaml.YAMLError) as exc:
            quoted = json.dumps(file_name, ensure_ascii=False)
            raise ValueError(f"error decoding config from {quoted}: {exc}") from exc


def _strip_line_end(line: str) -> str:
    line = line.removesuffix("\n")
    return line.removesuffix("\r")


def decode_documents(lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """Yield configurations from lines separated by lines of exactly ---.

    Decoding stops at the first document that has no lines at all.
    """
    iterator = iter(lines)
    while True:
        chunk: list[str] = []
        for raw in iterator:
            line = _strip_line_end(raw)
            if line == _SEPARATOR:
                break
            chunk.append(line)
        if not chunk:
            return
        document = yaml.safe_load("\n".join(chunk))
        if document is None:
            document = {}
        if not isinstance(document, dict):
            raise ValueError(
                f"expected a mapping, got {type(document).__name__}"
            )
        yield document