"""Integration tests for the mobile-mcp executor."""

from collections.abc import AsyncGenerator

import aiohttp
import pytest
from aioresponses import aioresponses as aioresponses_cls
from pydantic import SecretStr
from yarl import URL

from mobile_test_engine.errors import ExecutorFailure
from mobile_test_engine.executors.mobile_mcp import MobileMcpConfig, MobileMcpExecutor
from mobile_test_engine.models.device import (
    DeviceButton,
    ElementDescriptor,
    Strictness,
    SwipeDirection,
)

BASE_URL = "http://bridge.test"
DEVICE_URL = f"{BASE_URL}/devices/emulator-5554"


@pytest.fixture
def config() -> MobileMcpConfig:
    """Create test configuration."""
    return MobileMcpConfig(
        base_url=BASE_URL,
        device_id="emulator-5554",
        token=SecretStr("bridge-token"),
    )


@pytest.fixture
async def executor(
    config: MobileMcpConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[MobileMcpExecutor, None]:
    """Create executor with managed session."""
    async with MobileMcpExecutor.from_config(config) as impl:
        yield impl


def _payload(aioresponses: aioresponses_cls, method: str, url: str) -> object:
    call = aioresponses.requests[(method, URL(url))][0]
    return call.kwargs["json"]


class TestActions:
    """Tests for the physical action endpoints."""

    async def test_tap_posts_target(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Tap sends the target description."""
        aioresponses.post(f"{DEVICE_URL}/tap", status=204)

        await executor.tap("Sign in")

        assert _payload(aioresponses, "POST", f"{DEVICE_URL}/tap") == {
            "target": "Sign in"
        }

    async def test_tap_at_posts_coordinates(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Coordinate taps send pixels instead of a target."""
        aioresponses.post(f"{DEVICE_URL}/tap", status=204)
        aioresponses.post(f"{DEVICE_URL}/double-tap", status=204)

        await executor.tap_at(120, 640)
        await executor.double_tap_at(10, 20)

        assert _payload(aioresponses, "POST", f"{DEVICE_URL}/tap") == {
            "x": 120,
            "y": 640,
        }
        assert _payload(aioresponses, "POST", f"{DEVICE_URL}/double-tap") == {
            "x": 10,
            "y": 20,
        }

    async def test_sends_bearer_token(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Requests carry the configured token."""
        aioresponses.post(f"{DEVICE_URL}/tap", status=204)

        await executor.tap("Sign in")

        assert executor.session.headers["Authorization"] == "Bearer bridge-token"

    async def test_type_text_posts_submit_flag(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Typing forwards the text and the submit flag."""
        aioresponses.post(f"{DEVICE_URL}/type", status=204)

        await executor.type_text("user@example.com", submit=True)

        assert _payload(aioresponses, "POST", f"{DEVICE_URL}/type") == {
            "text": "user@example.com",
            "submit": True,
        }

    async def test_swipe_omits_unset_distance(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Distance is only sent when given."""
        aioresponses.post(f"{DEVICE_URL}/swipe", status=204)

        await executor.swipe(SwipeDirection.UP)

        assert _payload(aioresponses, "POST", f"{DEVICE_URL}/swipe") == {
            "direction": "up"
        }

    async def test_swipe_between_posts_both_points(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Point to point swipes send the start and end coordinates."""
        aioresponses.post(f"{DEVICE_URL}/swipe", status=204)

        await executor.swipe_between(500, 1500, 500, 300)

        assert _payload(aioresponses, "POST", f"{DEVICE_URL}/swipe") == {
            "start": {"x": 500, "y": 1500},
            "end": {"x": 500, "y": 300},
        }

    async def test_press_button(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Hardware buttons are sent by name."""
        aioresponses.post(f"{DEVICE_URL}/buttons", status=204)

        await executor.press_button(DeviceButton.BACK)

        assert _payload(aioresponses, "POST", f"{DEVICE_URL}/buttons") == {
            "button": "BACK"
        }

    async def test_launch_app(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Launch forwards the package name."""
        aioresponses.post(f"{DEVICE_URL}/apps/launch", status=202, payload={})

        await executor.launch_app("com.example.shop")

        assert _payload(aioresponses, "POST", f"{DEVICE_URL}/apps/launch") == {
            "package": "com.example.shop"
        }

    async def test_cancel_posts_to_bridge(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Cancel asks the bridge to abandon in-flight work."""
        aioresponses.post(f"{DEVICE_URL}/cancel", status=204)

        await executor.cancel()

        aioresponses.assert_called_once()  # type: ignore[no-untyped-call]


class TestQueries:
    """Tests for endpoints returning device state."""

    async def test_list_elements(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Parses the accessibility tree into descriptors."""
        aioresponses.get(
            f"{DEVICE_URL}/elements",
            payload={
                "elements": [
                    {"label": "Sign in", "identifier": "login_btn", "type": "button"},
                    {"label": "Email"},
                ]
            },
        )

        elements = await executor.list_elements()

        assert elements == {
            ElementDescriptor(
                label="Sign in", identifier="login_btn", element_type="button"
            ),
            ElementDescriptor(label="Email"),
        }

    async def test_verify_screen(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Parses the verdict and sends the strictness."""
        aioresponses.post(
            f"{DEVICE_URL}/verify",
            payload={
                "matches": False,
                "confidence": 35,
                "details": "login form missing",
                "suggestions": ["check network"],
            },
        )

        verdict = await executor.verify_screen("Login form", Strictness.STRICT)

        assert not verdict.matches
        assert verdict.confidence == 35
        assert verdict.details == "login form missing"
        assert verdict.suggestions == ("check network",)
        assert _payload(aioresponses, "POST", f"{DEVICE_URL}/verify") == {
            "expectation": "Login form",
            "strictness": "strict",
        }

    async def test_take_screenshot(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Screenshots are stored under the requested directory."""
        aioresponses.post(
            f"{DEVICE_URL}/screenshots",
            status=201,
            payload={"name": "home", "path": "shots/home.png"},
        )

        screenshot = await executor.take_screenshot("home", "shots")

        assert screenshot.path == "shots/home.png"
        assert _payload(aioresponses, "POST", f"{DEVICE_URL}/screenshots") == {
            "name": "home",
            "directory": "shots",
        }

    async def test_save_screenshot(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Saving to a path sends the exact destination."""
        aioresponses.post(f"{DEVICE_URL}/screenshots/save", status=204)

        await executor.save_screenshot("reports/checkout.png")

        assert _payload(
            aioresponses, "POST", f"{DEVICE_URL}/screenshots/save"
        ) == {"path": "reports/checkout.png"}


class TestErrors:
    """Tests for bridge error handling."""

    async def test_error_status_raises_executor_failure(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Non-success statuses surface the status and body."""
        aioresponses.post(f"{DEVICE_URL}/tap", status=404, body="element not found")

        with pytest.raises(ExecutorFailure, match="404 element not found"):
            await executor.tap("Missing")

    async def test_connection_error_raises_executor_failure(
        self, executor: MobileMcpExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Transport errors are wrapped."""
        aioresponses.get(
            f"{DEVICE_URL}/elements",
            exception=aiohttp.ClientConnectionError("bridge down"),
        )

        with pytest.raises(ExecutorFailure, match="bridge down"):
            await executor.list_elements()
