"""Saving container logs of load test pods to files."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Iterable

from loadtools.properties import LogInfo, pod_name_elem


class LogSaveError(Exception):
    """Raised when logs cannot be saved; holds the logs saved so far."""

    def __init__(self, message: str, log_infos: list[LogInfo] | None = None) -> None:
        super().__init__(message)
        self.log_infos = log_infos or []


@dataclass
class PodInfo:
    """The parts of a pod needed to fetch its container logs."""

    name: str
    namespace: str = "default"
    containers: list[str] = field(default_factory=list)


LogReader = Callable[[PodInfo, str], "str | bytes"]


def log_file_name(pod_name: str, container_name: str) -> str:
    """Build a log file name from pod and container names."""
    return f"{pod_name}-{container_name}.log"


def save_log(
    load_test_name: str,
    pod: PodInfo,
    container_name: str,
    read_log: LogReader,
    pod_log_dir: str,
) -> LogInfo | None:
    """Save one container's log to a file; return None if the log is empty."""
    content = read_log(pod, container_name)
    if not content:
        return None
    data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
    file_path = os.path.join(pod_log_dir, log_file_name(pod.name, container_name))
    try:
        handle = open(file_path, "wb")
    except OSError as exc:
        raise LogSaveError(f"could not open {file_path} for writing") from exc
    with handle:
        try:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        except OSError as exc:
            raise LogSaveError(f"error writing to {file_path}: {exc}") from exc
    return LogInfo(
        pod_name_elem=pod_name_elem(pod.name, load_test_name),
        container_name=container_name,
        log_path=file_path,
    )


def save_all_logs(
    load_test_name: str,
    pods: Iterable[PodInfo],
    read_log: LogReader,
    pod_log_dir: str,
) -> list[LogInfo]:
    """Save the non-empty log of every container of every pod."""
    log_infos: list[LogInfo] = []
    try:
        os.makedirs(pod_log_dir, exist_ok=True)
    except OSError as exc:
        raise LogSaveError(
            f"failed to create pod log output directory {pod_log_dir}: {exc}"
        ) from exc
    for pod in pods:
        for container_name in pod.containers:
            try:
                info = save_log(
                    load_test_name, pod, container_name, read_log, pod_log_dir
                )
            except Exception as exc:
                raise LogSaveError(
                    f"could not get log from container: {exc}", log_infos
                ) from exc
            if info is not None:
                log_infos.append(info)
    return log_infos