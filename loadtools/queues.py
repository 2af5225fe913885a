"""Assignment of load test configurations to execution queues.

The runner runs a list of load tests, grouped into queues, waits for them to
complete and reports on the results.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Iterable, Mapping

LoadTest = Mapping[str, Any]
QueueSelector = Callable[[LoadTest], str]


def annotations(config: LoadTest) -> Mapping[str, str]:
    """Return the metadata annotations of a load test configuration."""
    metadata = config.get("metadata") or {}
    return metadata.get("annotations") or {}


def queue_selector_from_annotation(key: str) -> QueueSelector:
    """Return a selector that reads the queue name from an annotation."""

    def select(config: LoadTest) -> str:
        return annotations(config).get(key, "") or ""

    return select


def create_queue_map(
    configs: Iterable[LoadTest], selector: QueueSelector
) -> dict[str, list[LoadTest]]:
    """Group configurations into queues named by the selector."""
    queues: dict[str, list[LoadTest]] = {}
    for config in configs:
        queues.setdefault(selector(config), []).append(config)
    return queues


def validate_concurrency_levels(
    config_map: Mapping[str, list[LoadTest]], concurrency_levels: Mapping[str, int]
) -> None:
    """Raise ValueError unless every queue has a concurrency level."""
    for q_name in config_map:
        if q_name not in concurrency_levels:
            if q_name:
                quoted = json.dumps(q_name, ensure_ascii=False)
                raise ValueError(f"no concurrency level specified for queue {quoted}")
            raise ValueError("no concurrency level specified for global queue")


def count_configs(config_map: Mapping[str, list[LoadTest]]) -> dict[str, int]:
    """Return the number of configurations in each queue."""
    return {q_name: len(configs) for q_name, configs in config_map.items()}


def log_prefix_fmt(config_map: Mapping[str, list[LoadTest]]) -> str:
    """Return a str.format template for log prefixes of queue name and index.

    The template takes the queue name and test index as positional fields and
    pads both so that prefixes line up across queues.
    """
    queue_width = 0
    index_width = 0
    for q_name, configs in config_map.items():
        queue_width = max(queue_width, len(q_name))
        index_width = max(index_width, len(str(len(configs) - 1)))
    queue_field = f"{{0:<{queue_width}}}" if queue_width else "{0}"
    index_field = f"{{1:>{index_width}}}" if index_width else "{1}"
    return f"[{queue_field} {index_field}] "