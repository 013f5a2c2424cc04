"""Failure taxonomy shared by every execution scope."""

from enum import StrEnum


class FailureKind(StrEnum):
    """Classification of a failure attached to a result."""

    ASSERTION = "assertion"
    TIMEOUT = "timeout"
    EXECUTOR = "executor"
    HOOK = "hook"


class EngineFailure(Exception):
    """Base class for failures raised while running steps and hooks."""

    kind: FailureKind = FailureKind.EXECUTOR
    label = "Failure"

    def __str__(self) -> str:
        return f"{self.label}: {super().__str__()}"


class AssertionFailure(EngineFailure, AssertionError):
    """An explicit check did not hold."""

    kind = FailureKind.ASSERTION
    label = "AssertionFailure"


class TimeoutFailure(EngineFailure, TimeoutError):
    """A poller or a per-scope watchdog expired."""

    kind = FailureKind.TIMEOUT
    label = "Timeout"


class ExecutorFailure(EngineFailure):
    """The action executor raised an error."""

    kind = FailureKind.EXECUTOR
    label = "ExecutorFailure"


class HookFailure(EngineFailure):
    """A lifecycle hook raised.

    The original exception is kept as ``cause`` (and as ``__cause__``) so the
    underlying kind stays inspectable.
    """

    kind = FailureKind.HOOK
    label = "HookFailure"

    def __init__(self, phase: str, cause: BaseException) -> None:
        super().__init__(f"{phase} failed: {describe(cause)}")
        self.phase = phase
        self.cause = cause


def classify(error: BaseException) -> FailureKind:
    """Map any exception raised by a step or hook onto a failure kind."""
    if isinstance(error, EngineFailure):
        return error.kind
    if isinstance(error, AssertionError):
        return FailureKind.ASSERTION
    if isinstance(error, TimeoutError):
        return FailureKind.TIMEOUT
    return FailureKind.EXECUTOR


def describe(error: BaseException) -> str:
    """Human-readable text for an exception, never empty."""
    if isinstance(error, EngineFailure):
        return str(error)
    message = str(error) or "no details"
    return f"{type(error).__name__}: {message}"
