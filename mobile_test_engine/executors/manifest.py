"""Executor manifests: how a backend is configured and opened."""

from collections.abc import Callable, Mapping
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from mobile_test_engine.executors.base import ActionExecutor


class ExecutorConfigError(Exception):
    """Raised when an executor configuration does not validate."""


@dataclass(frozen=True, kw_only=True)
class ExecutorManifest[ConfigT: BaseModel]:
    """Pairs a backend's configuration model with the factory opening it.

    The factory returns an async context manager so the executor owns its
    connection for exactly the duration of a run.
    """

    config_cls: type[ConfigT]
    executor_factory: Callable[[ConfigT], AbstractAsyncContextManager[ActionExecutor]]

    def parse_config(self, raw: Mapping[str, Any]) -> ConfigT:
        """Validate raw settings, naming the accepted fields on failure."""
        try:
            return self.config_cls.model_validate(raw)
        except ValidationError as exc:
            fields = ", ".join(
                f"{name}{'' if info.is_required() else '?'}"
                for name, info in self.config_cls.model_fields.items()
            )
            raise ExecutorConfigError(
                f"Invalid {self.config_cls.__name__} "
                f"(fields: {fields}): {exc.error_count()} error(s)\n{exc}"
            ) from exc

