"""Resolve executor backends registered as entry points."""

import logging
from importlib.metadata import entry_points
from typing import Any

from mobile_test_engine.executors.manifest import ExecutorManifest

log = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "mobile_test_engine.executors"


class ExecutorNotFoundError(Exception):
    """Raised when no executor backend is registered under a key."""


def available_executors() -> list[str]:
    """Keys of every installed executor backend, sorted."""
    return sorted({entry.name for entry in entry_points(group=ENTRY_POINT_GROUP)})


def load_executor_manifest(key: str) -> ExecutorManifest[Any]:
    """Load the manifest registered under ``key``.

    Raises:
        ExecutorNotFoundError: If no backend uses ``key``
        TypeError: If the entry point does not name an ``ExecutorManifest``

    """
    matches = entry_points(group=ENTRY_POINT_GROUP, name=key)
    if not matches:
        raise ExecutorNotFoundError(
            f"Executor '{key}' not found. Available executors: {available_executors()}"
        )

    entry = next(iter(matches))
    manifest = entry.load()
    if not isinstance(manifest, ExecutorManifest):
        raise TypeError(
            f"Entry point {entry.value!r} for executor '{key}' is a "
            f"{type(manifest).__name__}, not an ExecutorManifest"
        )
    log.debug("Loaded executor %r from %s", key, entry.value)
    return manifest
