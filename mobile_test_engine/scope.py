"""Sequential execution of a single ordered block of steps."""

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mobile_test_engine.errors import classify, describe
from mobile_test_engine.models.result import StepResult
from mobile_test_engine.models.suite import Step

if TYPE_CHECKING:
    from mobile_test_engine.context import ExecutionContext

log = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^\w.-]+")


@dataclass(kw_only=True)
class StepRecorder:
    """Collects step results of one test as they complete.

    Once sealed (the test finished or its watchdog fired) further results
    are discarded.
    """

    results: list[StepResult] = field(default_factory=list)
    sealed: bool = False

    def record(self, result: StepResult) -> None:
        if self.sealed:
            log.info("Discarding late result of step %r", result.step_name)
            return
        self.results.append(result)

    def seal(self) -> tuple[StepResult, ...]:
        self.sealed = True
        return tuple(self.results)


@dataclass(frozen=True, kw_only=True)
class ScopeOutcome:
    """Step results of a block and the failure that stopped it, if any."""

    step_results: Sequence[StepResult]
    failure: Exception | None = None

    @property
    def passed(self) -> bool:
        return self.failure is None


@dataclass(frozen=True, kw_only=True)
class ScopeRunner:
    """Runs steps strictly in sequence, stopping at the first failure.

    Steps after a failing step are neither attempted nor represented in the
    results.
    """

    async def run(
        self,
        steps: Sequence[Step],
        context: "ExecutionContext",
        *,
        scope: str = "",
    ) -> Sequence[StepResult]:
        """Run ``steps`` and return their results without raising."""
        outcome = await self.execute(steps, context, scope=scope)
        return outcome.step_results

    async def run_block(
        self, steps: Sequence[Step], context: "ExecutionContext"
    ) -> Sequence[StepResult]:
        """Run a nested block, re-raising the failure that stopped it."""
        outcome = await self.execute(steps, context, capture_on_failure=False)
        if outcome.failure is not None:
            raise outcome.failure
        return outcome.step_results

    async def execute(
        self,
        steps: Sequence[Step],
        context: "ExecutionContext",
        *,
        scope: str = "",
        recorder: StepRecorder | None = None,
        capture_on_failure: bool = True,
    ) -> ScopeOutcome:
        """Run ``steps`` and report both their results and the first failure."""
        loop = asyncio.get_running_loop()
        results: list[StepResult] = []

        for step in steps:
            started = loop.time()
            try:
                await step.action(context)
            except Exception as exc:
                screenshot_path = None
                if capture_on_failure and context.config.capture_screenshot_on_failure:
                    screenshot_path = await self._capture_failure(context, scope, step)
                result = StepResult(
                    step_name=step.name,
                    passed=False,
                    duration=loop.time() - started,
                    error=describe(exc),
                    failure_kind=classify(exc),
                    screenshot_path=screenshot_path,
                )
                log.warning("Step failed: %s / %s: %s", scope, step.name, result.error)
                results.append(result)
                if recorder is not None:
                    recorder.record(result)
                return ScopeOutcome(step_results=tuple(results), failure=exc)

            result = StepResult(
                step_name=step.name, passed=True, duration=loop.time() - started
            )
            log.info("Step passed: %s / %s (%.2fs)", scope, step.name, result.duration)
            results.append(result)
            if recorder is not None:
                recorder.record(result)

        return ScopeOutcome(step_results=tuple(results))

    async def _capture_failure(
        self, context: "ExecutionContext", scope: str, step: Step
    ) -> str | None:
        name = _UNSAFE_NAME_CHARS.sub("_", f"{scope}-{step.name}-failure").strip("_")
        try:
            screenshot = await context.executor.take_screenshot(
                name, context.config.screenshot_directory
            )
        except Exception as exc:
            log.warning("Failed to capture screenshot %s: %s", name, exc)
            return None
        return screenshot.path or screenshot.name
