"""Test case properties that record pod names and pod log locations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass
class LogInfo:
    """Where one container's log was saved.

    pod_name_elem is the part added to the load test name to build the pod
    name, such as client-0, driver-0 or server-0.
    """

    pod_name_elem: str
    container_name: str
    log_path: str


def pod_log_properties(
    log_infos: Iterable[LogInfo], log_url_prefix: str, *args: str
) -> dict[str, str]:
    """Map log property keys, prefixed by args, to log URLs."""
    return {
        pod_log_property_key(info, *args): log_url_prefix + info.log_path
        for info in log_infos
    }


def pod_log_property_key(log_info: LogInfo, *args: str) -> str:
    """Build the key for a pod log property."""
    return ".".join([*args, log_info.pod_name_elem, "log", log_info.container_name])


def pod_name_properties(
    pod_names: Iterable[str], load_test_name: str, *args: str
) -> dict[str, str]:
    """Map pod name property keys, prefixed by args, to pod names."""
    return {
        pod_name_property_key(pod_name_elem(name, load_test_name), *args): name
        for name in pod_names
    }


def pod_name_elem(pod_name: str, load_test_name: str) -> str:
    """Return the part of a pod name that follows the load test name."""
    return pod_name.removeprefix(f"{load_test_name}-")


def pod_name_property_key(pod_name_elem: str, *args: str) -> str:
    """Build the key for a pod name property."""
    return ".".join([*args, pod_name_elem, "name"])