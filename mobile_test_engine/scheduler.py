"""Test scheduler running a suite's tests under per-test watchdogs."""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

from mobile_test_engine.context import ExecutionContext
from mobile_test_engine.errors import HookFailure, TimeoutFailure, describe
from mobile_test_engine.lifecycle import LifecycleCoordinator, TestExecution
from mobile_test_engine.models.result import SuiteResult, TestResult, aggregate_suite
from mobile_test_engine.models.suite import Hook, Suite, Test

log = logging.getLogger(__name__)


def _discard_late_outcome(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    if (exc := task.exception()) is not None:
        log.debug("Discarding late failure of abandoned work: %s", exc)
    else:
        log.debug("Discarding late completion of abandoned work")


@dataclass(frozen=True, kw_only=True)
class TestScheduler:
    """Runs suites test by test, isolating each test's failure or timeout.

    Each test lifecycle runs in its own task raced against the test timeout.
    When the watchdog wins the task is cancelled, the executor is told to
    abandon in-flight work and the test is recorded as timed out; anything
    the abandoned task produces afterwards is discarded.
    """

    __test__ = False

    context: ExecutionContext
    coordinator: LifecycleCoordinator = field(default_factory=LifecycleCoordinator)
    cancel_grace: float = 0.05

    async def run_suite(self, suite: Suite) -> SuiteResult:
        """Run every test of ``suite`` in declaration order."""
        loop = asyncio.get_running_loop()
        started = loop.time()
        log.info("Running suite %r (%d test(s))", suite.name, len(suite.tests))

        test_results: list[TestResult] = []
        setup_failure = await self._run_suite_hook("before_all", suite.before_all)
        if setup_failure is not None:
            log.error("Suite %r aborted: %s", suite.name, setup_failure)
        else:
            for test in suite.tests:
                test_results.append(await self.run_test(suite, test))

        annotations: list[str] = []
        teardown_failure = await self._run_suite_hook("after_all", suite.after_all)
        if teardown_failure is not None:
            annotations.append(describe(teardown_failure))

        result = aggregate_suite(
            suite.name,
            test_results,
            loop.time() - started,
            error=describe(setup_failure) if setup_failure is not None else None,
            annotations=annotations,
        )
        log.info(
            "Suite %r finished: passed=%s (%d passed, %d failed) in %.2fs",
            result.suite_name,
            result.passed,
            result.passed_count,
            result.failed_count,
            result.duration,
        )
        return result

    async def run_test(self, suite: Suite, test: Test) -> TestResult:
        """Run one test's full lifecycle bounded by its timeout."""
        loop = asyncio.get_running_loop()
        timeout = test.timeout
        if timeout is None:
            timeout = self.context.config.default_timeout
        before_each, after_each = suite.hooks_for(test)
        execution = TestExecution(test=test)
        started = loop.time()
        log.info("Running test %r (timeout %.1fs)", test.name, timeout)

        await self._race(
            self.coordinator.run_test(
                test,
                self.context,
                execution,
                before_each=before_each,
                after_each=after_each,
            ),
            timeout,
            f"test {test.name!r}",
            on_timeout=lambda: execution.expire(timeout),
        )

        result = execution.result(duration=loop.time() - started)
        log.info(
            "Test %r %s in %.2fs",
            result.test_name,
            "passed" if result.passed else "failed",
            result.duration,
        )
        return result

    async def _run_suite_hook(self, phase: str, hook: Hook | None) -> HookFailure | None:
        if hook is None:
            return None
        timeout = self.context.config.default_timeout
        task = await self._race(
            self.coordinator.run_hook(phase, hook, self.context),
            timeout,
            f"{phase} hook",
        )
        if task is None:
            return HookFailure(
                phase, TimeoutFailure(f"{phase} hook exceeded {timeout}s")
            )
        return task.result()

    async def _race[T](
        self,
        work: Coroutine[Any, Any, T],
        timeout: float,
        what: str,
        *,
        on_timeout: Callable[[], None] | None = None,
    ) -> asyncio.Task[T] | None:
        """Run ``work`` against a watchdog; return its task if it won.

        ``on_timeout`` runs as soon as the watchdog wins, before the task is
        cancelled, so nothing the task does while unwinding can precede it.
        """
        task = asyncio.create_task(work)
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task in done:
            # Surface unexpected errors from the coordinator itself.
            task.result()
            return task

        log.warning("%s timed out after %.2fs, cancelling", what, timeout)
        if on_timeout is not None:
            on_timeout()
        task.cancel()
        await self._signal_cancel()

        done, _ = await asyncio.wait({task}, timeout=self.cancel_grace)
        if task in done:
            _discard_late_outcome(task)
        else:
            log.warning("%s did not stop after cancellation, abandoning it", what)
            task.add_done_callback(_discard_late_outcome)
        return None

    async def _signal_cancel(self) -> None:
        try:
            async with asyncio.timeout(self.cancel_grace):
                await self.context.executor.cancel()
        except Exception as exc:
            log.warning("Executor did not acknowledge cancellation: %s", exc)
