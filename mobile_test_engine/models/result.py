"""Write-once results for steps, tests and suites."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from mobile_test_engine.errors import FailureKind


@dataclass(frozen=True, kw_only=True)
class StepResult:
    """Outcome of a single step."""

    step_name: str
    passed: bool
    duration: float
    error: str | None = None
    failure_kind: FailureKind | None = None
    screenshot_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable representation."""
        data: dict[str, Any] = {
            "stepName": self.step_name,
            "passed": self.passed,
            "duration": self.duration,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.failure_kind is not None:
            data["errorKind"] = str(self.failure_kind)
        if self.screenshot_path is not None:
            data["screenshotPath"] = self.screenshot_path
        return data


@dataclass(frozen=True, kw_only=True)
class TestResult:
    """Outcome of a test.

    ``error`` is the first failure observed; failures from later phases
    (after_each) are appended to ``annotations`` instead of replacing it.
    """

    __test__ = False

    test_name: str
    passed: bool
    duration: float
    step_results: Sequence[StepResult] = ()
    error: str | None = None
    failure_kind: FailureKind | None = None
    annotations: Sequence[str] = ()
    tags: frozenset[str] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable representation."""
        data: dict[str, Any] = {
            "testName": self.test_name,
            "passed": self.passed,
            "duration": self.duration,
            "stepResults": [step.to_dict() for step in self.step_results],
        }
        if self.error is not None:
            data["error"] = self.error
        if self.failure_kind is not None:
            data["errorKind"] = str(self.failure_kind)
        if self.annotations:
            data["annotations"] = list(self.annotations)
        if self.tags:
            data["tags"] = sorted(self.tags)
        return data


@dataclass(frozen=True, kw_only=True)
class SuiteResult:
    """Outcome of a suite, owning the ordered test results."""

    suite_name: str
    passed: bool
    duration: float
    test_results: Sequence[TestResult] = ()
    error: str | None = None
    annotations: Sequence[str] = ()

    @property
    def passed_count(self) -> int:
        return sum(1 for result in self.test_results if result.passed)

    @property
    def failed_count(self) -> int:
        return sum(1 for result in self.test_results if not result.passed)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable representation of the whole result tree."""
        data: dict[str, Any] = {
            "suiteName": self.suite_name,
            "passed": self.passed,
            "duration": self.duration,
            "passedCount": self.passed_count,
            "failedCount": self.failed_count,
            "testResults": [test.to_dict() for test in self.test_results],
        }
        if self.error is not None:
            data["error"] = self.error
        if self.annotations:
            data["annotations"] = list(self.annotations)
        return data


def aggregate_suite(
    suite_name: str,
    test_results: Sequence[TestResult],
    duration: float,
    *,
    error: str | None = None,
    annotations: Sequence[str] = (),
) -> SuiteResult:
    """Build the suite result from collected test results.

    The suite passes iff its setup did not fail and every test passed; a test
    is binary pass/fail whatever its step results.
    """
    return SuiteResult(
        suite_name=suite_name,
        passed=error is None and all(result.passed for result in test_results),
        duration=duration,
        test_results=tuple(test_results),
        error=error,
        annotations=tuple(annotations),
    )
