"""Abstract base class for action executors."""

from abc import ABC, abstractmethod
from collections.abc import Set

from mobile_test_engine.models.device import (
    DeviceButton,
    ElementDescriptor,
    Orientation,
    ScreenVerification,
    Screenshot,
    Strictness,
    SwipeDirection,
)


class ActionExecutor(ABC):
    """Performs atomic device and AI operations on behalf of steps.

    The engine awaits every call; an exception raised by any call is a step
    failure. Executors own their connection lifecycle and are created through
    the async context manager factory of their manifest.
    """

    @abstractmethod
    async def tap(self, target: str) -> None:
        """Tap the element matching a natural language description."""

    @abstractmethod
    async def tap_at(self, x: int, y: int) -> None:
        """Tap at screen coordinates in pixels."""

    @abstractmethod
    async def double_tap(self, target: str) -> None:
        """Double tap the element matching a description."""

    @abstractmethod
    async def double_tap_at(self, x: int, y: int) -> None:
        """Double tap at screen coordinates in pixels."""

    @abstractmethod
    async def long_press(self, target: str, duration: float = 0.5) -> None:
        """Long press the element matching a description."""

    @abstractmethod
    async def type_text(self, text: str, submit: bool = False) -> None:
        """Type into the focused field, optionally pressing Enter."""

    @abstractmethod
    async def swipe(self, direction: SwipeDirection, distance: int | None = None) -> None:
        """Swipe from the screen center."""

    @abstractmethod
    async def swipe_between(
        self, start_x: int, start_y: int, end_x: int, end_y: int
    ) -> None:
        """Swipe from one point to another."""

    @abstractmethod
    async def press_button(self, button: DeviceButton) -> None:
        """Press a hardware or system button."""

    @abstractmethod
    async def launch_app(self, package: str | None = None) -> None:
        """Launch an app, the configured one when ``package`` is None."""

    @abstractmethod
    async def terminate_app(self, package: str | None = None) -> None:
        """Force stop an app, the configured one when ``package`` is None."""

    @abstractmethod
    async def open_url(self, url: str) -> None:
        """Open a URL on the device."""

    @abstractmethod
    async def set_orientation(self, orientation: Orientation) -> None:
        """Rotate the device."""

    @abstractmethod
    async def take_screenshot(self, name: str, directory: str) -> Screenshot:
        """Capture the screen into ``directory`` and return a reference to it."""

    @abstractmethod
    async def save_screenshot(self, path: str) -> None:
        """Capture the screen to an exact file path."""

    @abstractmethod
    async def list_elements(self) -> Set[ElementDescriptor]:
        """Describe the elements currently on screen."""

    @abstractmethod
    async def verify_screen(
        self, expectation: str, strictness: Strictness = Strictness.NORMAL
    ) -> ScreenVerification:
        """Ask the verification model whether the screen matches."""

    async def cancel(self) -> None:  # noqa: B027
        """Abandon any in-flight call; best effort, no-op by default."""
