"""Execution context handed to every step action and hook."""

import asyncio
import logging
from collections.abc import Awaitable, Sequence, Set
from dataclasses import dataclass, field
from pathlib import Path

from mobile_test_engine import flow
from mobile_test_engine.errors import (
    AssertionFailure,
    EngineFailure,
    ExecutorFailure,
    TimeoutFailure,
    describe,
)
from mobile_test_engine.executors.base import ActionExecutor
from mobile_test_engine.models.config import AppTestConfig
from mobile_test_engine.models.device import (
    DeviceButton,
    ElementDescriptor,
    Orientation,
    ScreenVerification,
    Screenshot,
    Strictness,
    SwipeDirection,
)
from mobile_test_engine.models.result import StepResult

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ExecutionContext:
    """Device, configuration and executor shared by the steps of a run.

    The context is read-only; actions only reach the device through the
    methods below, which turn executor errors into ``ExecutorFailure``.
    """

    device_id: str
    config: AppTestConfig
    executor: ActionExecutor = field(repr=False)

    async def _invoke[R](self, operation: str, call: Awaitable[R]) -> R:
        log.debug("%s on device %s", operation, self.device_id)
        try:
            return await call
        except EngineFailure:
            raise
        except Exception as exc:
            raise ExecutorFailure(f"{operation} failed: {describe(exc)}") from exc

    # Actions

    async def tap(self, target: str) -> None:
        await self._invoke(f"tap({target!r})", self.executor.tap(target))

    async def tap_at(self, x: int, y: int) -> None:
        await self._invoke(f"tap_at({x}, {y})", self.executor.tap_at(x, y))

    async def double_tap(self, target: str) -> None:
        await self._invoke(f"double_tap({target!r})", self.executor.double_tap(target))

    async def double_tap_at(self, x: int, y: int) -> None:
        await self._invoke(
            f"double_tap_at({x}, {y})", self.executor.double_tap_at(x, y)
        )

    async def long_press(self, target: str, duration: float = 0.5) -> None:
        await self._invoke(
            f"long_press({target!r})", self.executor.long_press(target, duration)
        )

    async def type(self, text: str, submit: bool = False) -> None:
        await self._invoke("type", self.executor.type_text(text, submit))

    async def swipe(
        self, direction: SwipeDirection, distance: int | None = None
    ) -> None:
        await self._invoke(
            f"swipe({direction})", self.executor.swipe(direction, distance)
        )

    async def swipe_between(
        self, start_x: int, start_y: int, end_x: int, end_y: int
    ) -> None:
        await self._invoke(
            f"swipe_between(({start_x}, {start_y}), ({end_x}, {end_y}))",
            self.executor.swipe_between(start_x, start_y, end_x, end_y),
        )

    async def press_button(self, button: DeviceButton) -> None:
        await self._invoke(
            f"press_button({button})", self.executor.press_button(button)
        )

    # Device operations

    async def launch_app(self, package: str | None = None) -> None:
        """Launch ``package`` (the configured app by default).

        Bounded by ``app_launch_timeout``.
        """
        package = package or self.config.package_name
        try:
            async with asyncio.timeout(self.config.app_launch_timeout):
                await self._invoke(
                    f"launch_app({package!r})", self.executor.launch_app(package)
                )
        except TimeoutError as exc:
            if isinstance(exc, EngineFailure):
                raise
            raise TimeoutFailure(
                f"app {package!r} did not launch within "
                f"{self.config.app_launch_timeout}s"
            ) from exc

    async def terminate_app(self, package: str | None = None) -> None:
        package = package or self.config.package_name
        await self._invoke(
            f"terminate_app({package!r})", self.executor.terminate_app(package)
        )

    async def open_url(self, url: str) -> None:
        await self._invoke(f"open_url({url!r})", self.executor.open_url(url))

    async def set_orientation(self, orientation: Orientation) -> None:
        await self._invoke(
            f"set_orientation({orientation})",
            self.executor.set_orientation(orientation),
        )

    async def capture_screenshot(self, name: str) -> Screenshot:
        """Capture the screen into the configured screenshot directory."""
        return await self._invoke(
            f"take_screenshot({name!r})",
            self.executor.take_screenshot(name, self.config.screenshot_directory),
        )

    async def save_screenshot(self, path: str | Path) -> None:
        await self._invoke(
            f"save_screenshot({str(path)!r})", self.executor.save_screenshot(str(path))
        )

    async def pause(self, seconds: float) -> None:
        """Suspend the step for a fixed duration."""
        await asyncio.sleep(seconds)

    # Queries and assertions

    async def list_elements(self) -> Set[ElementDescriptor]:
        return await self._invoke("list_elements", self.executor.list_elements())

    async def is_present(self, description: str) -> bool:
        """Single, non-polling presence check."""
        elements = await self.list_elements()
        return any(element.matches(description) for element in elements)

    async def check_screen(
        self, expectation: str, strictness: Strictness = Strictness.NORMAL
    ) -> ScreenVerification:
        """Return the verification verdict without asserting on it."""
        return await self._invoke(
            "verify_screen", self.executor.verify_screen(expectation, strictness)
        )

    async def verify_screen(
        self, expectation: str, strictness: Strictness = Strictness.NORMAL
    ) -> ScreenVerification:
        """Verify the screen against an expectation, failing on mismatch."""
        verdict = await self.check_screen(expectation, strictness)
        if not verdict.matches:
            raise AssertionFailure(
                f"screen does not match {expectation!r} "
                f"(strictness={strictness}, confidence={verdict.confidence}): "
                f"{verdict.details}"
            )
        return verdict

    async def verify_screen_contains(self, *descriptions: str) -> None:
        elements = await self.list_elements()
        missing = [
            description
            for description in descriptions
            if not any(element.matches(description) for element in elements)
        ]
        if missing:
            raise AssertionFailure(f"elements not on screen: {', '.join(missing)}")

    async def verify_no_element(self, description: str) -> None:
        if await self.is_present(description):
            raise AssertionFailure(f"element {description!r} is present on screen")

    # Flow control

    async def wait_for(
        self,
        description: str,
        timeout: float | None = None,
        interval: float | None = None,
    ) -> None:
        await flow.wait_for_element(self, description, timeout, interval)

    async def wait_for_any(
        self,
        *descriptions: str,
        timeout: float | None = None,
        interval: float | None = None,
    ) -> str:
        return await flow.wait_for_any(self, descriptions, timeout, interval)

    async def wait_for_screen(
        self,
        expectation: str,
        strictness: Strictness = Strictness.NORMAL,
        timeout: float | None = None,
        interval: float | None = None,
    ) -> ScreenVerification:
        return await flow.wait_for_screen(
            self, expectation, strictness, timeout, interval
        )

    async def if_present(
        self, description: str, block: flow.Block
    ) -> Sequence[StepResult]:
        return await flow.if_present(self, description, block)

    async def retry_on_failure(
        self,
        block: flow.Block,
        max_attempts: int = 3,
        delay_between_attempts: float = 1.0,
    ) -> Sequence[StepResult]:
        return await flow.retry_on_failure(
            self, block, max_attempts, delay_between_attempts
        )

    async def repeat(self, times: int, block: flow.Block) -> Sequence[StepResult]:
        return await flow.repeat(self, times, block)
