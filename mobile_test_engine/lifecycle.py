"""Hook sequencing around the scope runner for tests and suites."""

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from mobile_test_engine.errors import (
    FailureKind,
    HookFailure,
    TimeoutFailure,
    classify,
    describe,
)
from mobile_test_engine.models.result import TestResult
from mobile_test_engine.models.suite import Hook, Test
from mobile_test_engine.scope import ScopeRunner, StepRecorder

if TYPE_CHECKING:
    from mobile_test_engine.context import ExecutionContext

log = logging.getLogger(__name__)


class TestPhase(StrEnum):
    """Lifecycle of one test execution."""

    __test__ = False

    NOT_STARTED = "not_started"
    BEFORE_EACH = "before_each"
    STEPS = "steps"
    AFTER_EACH = "after_each"
    DONE = "done"


@dataclass(kw_only=True)
class TestExecution:
    """Progress of one test, shared between the coordinator and the scheduler.

    The first failure becomes the test's error; any later failure is kept as
    an annotation. Once the recorder is sealed the execution is frozen: late
    step results and failures of abandoned work are discarded.
    """

    __test__ = False

    test: Test
    phase: TestPhase = TestPhase.NOT_STARTED
    recorder: StepRecorder = field(default_factory=StepRecorder)
    error: str | None = None
    failure_kind: FailureKind | None = None
    annotations: list[str] = field(default_factory=list)

    def fail(self, error: BaseException) -> None:
        if self.recorder.sealed:
            log.info("Discarding late failure of %r: %s", self.test.name, error)
            return
        if self.error is None:
            self.error = describe(error)
            self.failure_kind = classify(error)
        else:
            self.annotations.append(describe(error))

    def expire(self, timeout: float) -> None:
        """Fail with a timeout in the current phase and seal the recorder."""
        self.fail(
            TimeoutFailure(
                f"test {self.test.name!r} exceeded its {timeout}s timeout "
                f"during {self.phase}"
            )
        )
        self.recorder.seal()

    def result(self, duration: float) -> TestResult:
        """Seal the execution and build its immutable result."""
        return TestResult(
            test_name=self.test.name,
            passed=self.error is None,
            duration=duration,
            step_results=self.recorder.seal(),
            error=self.error,
            failure_kind=self.failure_kind,
            annotations=tuple(self.annotations),
            tags=self.test.tags,
        )


@dataclass(frozen=True, kw_only=True)
class LifecycleCoordinator:
    """Runs before/after hooks around the steps of a test or a suite."""

    runner: ScopeRunner = field(default_factory=ScopeRunner)

    async def run_test(
        self,
        test: Test,
        context: "ExecutionContext",
        execution: TestExecution,
        *,
        before_each: Hook | None = None,
        after_each: Hook | None = None,
    ) -> None:
        """Drive ``execution`` through before_each, steps and after_each.

        after_each runs even when before_each or a step failed.
        """
        execution.phase = TestPhase.BEFORE_EACH
        setup_failure = await self.run_hook("before_each", before_each, context)

        if setup_failure is not None:
            execution.fail(setup_failure)
            log.warning("Skipping steps of %r: %s", test.name, setup_failure)
        else:
            execution.phase = TestPhase.STEPS
            outcome = await self.runner.execute(
                test.steps, context, scope=test.name, recorder=execution.recorder
            )
            if outcome.failure is not None:
                execution.fail(outcome.failure)

        execution.phase = TestPhase.AFTER_EACH
        cleanup_failure = await self.run_hook("after_each", after_each, context)
        if cleanup_failure is not None:
            execution.fail(cleanup_failure)

        execution.phase = TestPhase.DONE

    async def run_hook(
        self, phase: str, hook: Hook | None, context: "ExecutionContext"
    ) -> HookFailure | None:
        """Run a hook, returning its failure instead of raising it."""
        if hook is None:
            return None
        log.debug("Running %s hook", phase)
        try:
            await hook(context)
        except Exception as exc:
            failure = HookFailure(phase, exc)
            log.warning("%s", failure)
            return failure
        return None
