"""Bounded retry-until-success loop behind every wait primitive."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from mobile_test_engine.errors import TimeoutFailure

log = logging.getLogger(__name__)

_SCHEDULE_SLACK = 1e-9


async def poll_until[T](
    predicate: Callable[[], Awaitable[T]],
    *,
    description: str,
    timeout: float,
    interval: float,
) -> T:
    """Evaluate ``predicate`` until it returns a truthy value.

    The first evaluation happens immediately; later ones follow every
    ``interval`` seconds, and a last one happens at the deadline when it does
    not fall on the schedule. Between evaluations the task sleeps, so other
    work on the loop (such as a test watchdog) keeps running.

    Args:
        predicate: Async check backed by the action executor
        description: What is being waited for, used in the timeout message
        timeout: Seconds allowed since the first evaluation
        interval: Seconds between evaluations

    Returns:
        The first truthy value returned by the predicate

    Raises:
        TimeoutFailure: If the predicate never succeeds within ``timeout``

    """
    loop = asyncio.get_running_loop()
    started = loop.time()
    deadline = started + timeout
    attempts = 0

    while True:
        attempts += 1
        if result := await predicate():
            log.debug(
                "Condition met after %d attempt(s): %s", attempts, description
            )
            return result

        now = loop.time()
        if now >= deadline - _SCHEDULE_SLACK:
            raise TimeoutFailure(
                f"{description} not satisfied within {timeout}s "
                f"({attempts} attempt(s))"
            )

        # Attempt n is scheduled at started + n * interval, the last one at the
        # deadline itself.
        next_attempt = min(started + attempts * interval, deadline)
        await asyncio.sleep(max(next_attempt - now, 0.0))
