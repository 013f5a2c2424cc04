"""Flow-control primitives composed from the poller and the scope runner.

A block is either a sequence of steps or a single action. Every block runs
through ``ScopeRunner.run_block``; it ends when its last step returns, and the
only way out of an enclosing primitive is to raise.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from mobile_test_engine.models.device import ScreenVerification, Strictness
from mobile_test_engine.models.result import StepResult
from mobile_test_engine.models.suite import Action, Step
from mobile_test_engine.poller import poll_until
from mobile_test_engine.scope import ScopeRunner

if TYPE_CHECKING:
    from mobile_test_engine.context import ExecutionContext

log = logging.getLogger(__name__)

type Block = Sequence[Step] | Action


def as_steps(block: Block, name: str) -> Sequence[Step]:
    """Normalize a block into steps; a bare action becomes one named step."""
    if callable(block):
        return (Step(name=name, action=block),)
    return tuple(block)


def _wait_budget(
    context: "ExecutionContext", timeout: float | None, interval: float | None
) -> tuple[float, float]:
    config = context.config
    return (
        config.default_timeout if timeout is None else timeout,
        config.default_poll_interval if interval is None else interval,
    )


async def wait_for_element(
    context: "ExecutionContext",
    description: str,
    timeout: float | None = None,
    interval: float | None = None,
) -> None:
    """Wait until an element matching ``description`` is visible."""

    async def visible() -> bool:
        return await context.is_present(description)

    timeout, interval = _wait_budget(context, timeout, interval)
    await poll_until(
        visible,
        description=f"element {description!r}",
        timeout=timeout,
        interval=interval,
    )


async def wait_for_any(
    context: "ExecutionContext",
    descriptions: Sequence[str],
    timeout: float | None = None,
    interval: float | None = None,
) -> str:
    """Wait until any element is visible and return the first that matched."""
    if not descriptions:
        raise ValueError("wait_for_any needs at least one description")

    async def first_visible() -> str | None:
        elements = await context.list_elements()
        return next(
            (
                description
                for description in descriptions
                if any(element.matches(description) for element in elements)
            ),
            None,
        )

    timeout, interval = _wait_budget(context, timeout, interval)
    return await poll_until(
        first_visible,
        description=f"any of {', '.join(repr(d) for d in descriptions)}",
        timeout=timeout,
        interval=interval,
    )


async def wait_for_screen(
    context: "ExecutionContext",
    expectation: str,
    strictness: Strictness = Strictness.NORMAL,
    timeout: float | None = None,
    interval: float | None = None,
) -> ScreenVerification:
    """Wait until screen verification reports a match."""

    async def screen_matches() -> ScreenVerification | None:
        verdict = await context.check_screen(expectation, strictness)
        return verdict if verdict.matches else None

    timeout, interval = _wait_budget(context, timeout, interval)
    return await poll_until(
        screen_matches,
        description=f"screen {expectation!r} ({strictness})",
        timeout=timeout,
        interval=interval,
    )


async def if_present(
    context: "ExecutionContext", description: str, block: Block
) -> Sequence[StepResult]:
    """Run ``block`` only if ``description`` is on screen right now.

    Absence is not a failure: nothing runs and no results are produced.
    """
    if not await context.is_present(description):
        log.info("Skipping block, %r not present", description)
        return ()
    return await ScopeRunner().run_block(
        as_steps(block, f"if present {description}"), context
    )


async def retry_on_failure(
    context: "ExecutionContext",
    block: Block,
    max_attempts: int = 3,
    delay_between_attempts: float = 1.0,
) -> Sequence[StepResult]:
    """Run ``block`` until it passes, at most ``max_attempts`` times.

    Side effects of failed attempts are not rolled back. When every attempt
    fails, the last attempt's exception propagates.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    steps = as_steps(block, "retry block")
    runner = ScopeRunner()
    for attempt in range(1, max_attempts):
        try:
            return await runner.run_block(steps, context)
        except Exception as exc:
            log.warning(
                "Attempt %d/%d failed, retrying in %.2fs: %s",
                attempt,
                max_attempts,
                delay_between_attempts,
                exc,
            )
        await asyncio.sleep(delay_between_attempts)

    return await runner.run_block(steps, context)


async def repeat(
    context: "ExecutionContext", times: int, block: Block
) -> Sequence[StepResult]:
    """Run ``block`` exactly ``times`` times; the first failure propagates."""
    if times < 0:
        raise ValueError(f"times must not be negative, got {times}")

    steps = as_steps(block, "repeat block")
    runner = ScopeRunner()
    results: list[StepResult] = []
    for _ in range(times):
        results.extend(await runner.run_block(steps, context))
    return results
