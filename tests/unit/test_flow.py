"""Tests for flow-control primitives."""

import asyncio

import pytest

from mobile_test_engine.context import ExecutionContext
from mobile_test_engine.errors import AssertionFailure, ExecutorFailure, TimeoutFailure
from mobile_test_engine.flow import as_steps
from mobile_test_engine.models.device import Strictness
from mobile_test_engine.models.suite import Step
from mobile_test_engine.testing.context import make_context
from mobile_test_engine.testing.executor import FakeExecutor


@pytest.fixture
def executor() -> FakeExecutor:
    """Create fake executor."""
    return FakeExecutor()


@pytest.fixture
def context(executor: FakeExecutor) -> ExecutionContext:
    """Create context over the fake executor."""
    return make_context(executor)


class TestWaitFor:
    """Tests for wait_for."""

    async def test_succeeds_when_element_appears(
        self, context: ExecutionContext, executor: FakeExecutor
    ) -> None:
        """Returns once the element shows up on screen."""
        executor.appear_after["Home tab"] = 3

        await context.wait_for("home tab", timeout=1.0, interval=0.01)

        assert len(executor.calls_to("list_elements")) == 3

    async def test_times_out_naming_element(self, context: ExecutionContext) -> None:
        """Raises a timeout that names the element waited for."""
        with pytest.raises(TimeoutFailure, match="element 'Settings'"):
            await context.wait_for("Settings", timeout=0.05, interval=0.01)

    async def test_uses_context_defaults(self, executor: FakeExecutor) -> None:
        """Falls back to the configured timeout and interval."""
        context = make_context(executor)

        with pytest.raises(TimeoutFailure, match=f"within {context.config.default_timeout}s"):
            await context.wait_for("Never")

    async def test_zero_timeout_is_not_replaced_by_default(
        self, context: ExecutionContext, executor: FakeExecutor
    ) -> None:
        """An explicit zero timeout checks once instead of waiting the default."""
        with pytest.raises(TimeoutFailure, match=r"within 0s \(1 attempt\(s\)\)"):
            await context.wait_for("Settings", timeout=0)

        assert len(executor.calls_to("list_elements")) == 1


class TestWaitForAny:
    """Tests for wait_for_any."""

    async def test_returns_first_visible_description(
        self, context: ExecutionContext, executor: FakeExecutor
    ) -> None:
        """Succeeds on the first hit among several descriptions."""
        executor.elements = {"Allow", "Skip"}

        found = await context.wait_for_any("Continue", "Skip", "Allow", timeout=0.1)

        assert found == "Skip"

    async def test_times_out_when_none_visible(self, context: ExecutionContext) -> None:
        """Raises a timeout listing every description."""
        with pytest.raises(TimeoutFailure, match="any of 'A', 'B'"):
            await context.wait_for_any("A", "B", timeout=0.05, interval=0.01)

    async def test_requires_descriptions(self, context: ExecutionContext) -> None:
        """Rejects an empty description list."""
        with pytest.raises(ValueError, match="at least one"):
            await context.wait_for_any()


class TestWaitForScreen:
    """Tests for wait_for_screen."""

    async def test_returns_matching_verdict(
        self, context: ExecutionContext, executor: FakeExecutor
    ) -> None:
        """Returns the verification verdict once it matches."""
        verdict = await context.wait_for_screen(
            "Home screen", strictness=Strictness.LENIENT, timeout=0.1
        )

        assert verdict.matches
        assert executor.calls_to("verify_screen") == [
            ("Home screen", Strictness.LENIENT)
        ]

    async def test_times_out_when_screen_never_matches(
        self, context: ExecutionContext, executor: FakeExecutor
    ) -> None:
        """Raises a timeout when verification never matches."""
        executor.screen_matches = False

        with pytest.raises(TimeoutFailure, match="screen 'Profile' \\(strict\\)"):
            await context.wait_for_screen(
                "Profile", strictness=Strictness.STRICT, timeout=0.05, interval=0.01
            )


class TestIfPresent:
    """Tests for if_present."""

    async def test_runs_block_when_present(
        self, context: ExecutionContext, executor: FakeExecutor
    ) -> None:
        """Runs the nested block when the element is on screen."""
        executor.elements = {"Allow"}

        results = await context.if_present("Allow", lambda ctx: ctx.tap("Allow"))

        assert [r.step_name for r in results] == ["if present Allow"]
        assert executor.calls_to("tap") == [("Allow",)]

    async def test_noop_when_absent(
        self, context: ExecutionContext, executor: FakeExecutor
    ) -> None:
        """Absence produces no results and never fails."""
        results = await context.if_present("Allow", lambda ctx: ctx.tap("Allow"))

        assert results == ()
        assert executor.calls_to("tap") == []
        assert len(executor.calls_to("list_elements")) == 1

    async def test_propagates_block_failure(
        self, context: ExecutionContext, executor: FakeExecutor
    ) -> None:
        """A failure inside the nested block surfaces to the caller."""
        executor.elements = {"Next"}
        executor.failures["tap"] = RuntimeError("stale element")

        with pytest.raises(ExecutorFailure, match="stale element"):
            await context.if_present("Next", lambda ctx: ctx.tap("Next"))

    async def test_runs_step_sequence(
        self, context: ExecutionContext, executor: FakeExecutor
    ) -> None:
        """Accepts a sequence of steps as the nested block."""
        executor.elements = {"Login"}
        block = [
            Step(name="tap login", action=lambda ctx: ctx.tap("Login")),
            Step(name="type email", action=lambda ctx: ctx.type("a@b.c")),
        ]

        results = await context.if_present("Login", block)

        assert [r.step_name for r in results] == ["tap login", "type email"]
        assert all(r.passed for r in results)


class TestRetryOnFailure:
    """Tests for retry_on_failure."""

    async def test_invokes_block_max_attempts_and_raises_last_error(
        self, context: ExecutionContext
    ) -> None:
        """An always-failing block runs N times and the Nth error propagates."""
        errors: list[AssertionFailure] = []

        async def always_fails(ctx: ExecutionContext) -> None:
            error = AssertionFailure(f"attempt {len(errors) + 1}")
            errors.append(error)
            raise error

        with pytest.raises(AssertionFailure) as exc_info:
            await context.retry_on_failure(
                always_fails, max_attempts=4, delay_between_attempts=0.0
            )

        assert len(errors) == 4
        assert exc_info.value is errors[-1]

    async def test_stops_after_first_success(self, context: ExecutionContext) -> None:
        """Stops retrying once an attempt passes."""
        attempts: list[int] = []

        async def flaky(ctx: ExecutionContext) -> None:
            attempts.append(len(attempts) + 1)
            if len(attempts) < 2:
                raise RuntimeError("flaky")

        results = await context.retry_on_failure(
            flaky, max_attempts=5, delay_between_attempts=0.0
        )

        assert attempts == [1, 2]
        assert len(results) == 1
        assert results[0].passed

    async def test_waits_between_attempts(self, context: ExecutionContext) -> None:
        """Suspends for the configured delay between attempts."""
        loop = asyncio.get_running_loop()
        started = loop.time()

        async def fails(ctx: ExecutionContext) -> None:
            raise AssertionFailure("nope")

        with pytest.raises(AssertionFailure):
            await context.retry_on_failure(
                fails, max_attempts=3, delay_between_attempts=0.05
            )

        assert loop.time() - started >= 0.1

    async def test_rejects_zero_attempts(self, context: ExecutionContext) -> None:
        """max_attempts below one is a programming error."""
        with pytest.raises(ValueError, match="max_attempts"):
            await context.retry_on_failure(lambda ctx: ctx.tap("x"), max_attempts=0)


class TestRepeat:
    """Tests for repeat."""

    async def test_rejects_negative_times(self, context: ExecutionContext) -> None:
        """A negative count is an error, not a silent no-op."""
        with pytest.raises(ValueError, match="must not be negative"):
            await context.repeat(-1, lambda ctx: ctx.tap("Next"))

    async def test_runs_exactly_n_times(
        self, context: ExecutionContext, executor: FakeExecutor
    ) -> None:
        """Runs the block the requested number of times."""
        results = await context.repeat(3, lambda ctx: ctx.swipe("up"))

        assert len(results) == 3
        assert len(executor.calls_to("swipe")) == 3

    async def test_failure_aborts_remaining_iterations(
        self, context: ExecutionContext
    ) -> None:
        """Iterations after a failing one are never invoked."""
        iterations: list[int] = []

        async def body(ctx: ExecutionContext) -> None:
            iterations.append(len(iterations) + 1)
            if len(iterations) == 2:
                raise AssertionFailure("iteration 2 failed")

        with pytest.raises(AssertionFailure, match="iteration 2 failed"):
            await context.repeat(5, body)

        assert iterations == [1, 2]

    async def test_nested_block_exit_is_scoped_to_block(
        self, context: ExecutionContext, executor: FakeExecutor
    ) -> None:
        """An if_present inside repeat only skips its own block."""
        executor.elements = {"Next"}

        async def body(ctx: ExecutionContext) -> None:
            await ctx.if_present("Skip", lambda c: c.tap("Skip"))
            await ctx.if_present("Next", lambda c: c.tap("Next"))

        await context.repeat(3, body)

        assert executor.calls_to("tap") == [("Next",)] * 3


def test_as_steps_wraps_single_action() -> None:
    """A bare action becomes a single named step."""

    async def action(ctx: ExecutionContext) -> None:
        return None

    steps = as_steps(action, "block")

    assert steps == (Step(name="block", action=action),)
