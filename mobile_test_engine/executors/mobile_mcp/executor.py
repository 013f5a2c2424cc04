"""mobile-mcp executor implementation.

Talks JSON over HTTP to a device automation bridge that performs the
physical actions and AI screen verification for one device.
"""

import logging
from collections.abc import AsyncGenerator, Set
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from mobile_test_engine.errors import ExecutorFailure
from mobile_test_engine.executors.base import ActionExecutor
from mobile_test_engine.executors.mobile_mcp.config import MobileMcpConfig
from mobile_test_engine.executors.mobile_mcp.models import (
    ElementsResponse,
    ScreenshotResponse,
    VerificationResponse,
)
from mobile_test_engine.models.device import (
    DeviceButton,
    ElementDescriptor,
    Orientation,
    ScreenVerification,
    Screenshot,
    Strictness,
    SwipeDirection,
)

log = logging.getLogger(__name__)

SUCCESS_STATUSES = frozenset({200, 201, 202, 204})


@dataclass(frozen=True, kw_only=True)
class MobileMcpExecutor(ActionExecutor):
    """Action executor backed by the mobile-mcp HTTP bridge."""

    config: MobileMcpConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: MobileMcpConfig
    ) -> AsyncGenerator["MobileMcpExecutor", None]:
        """Create executor with managed session lifecycle."""
        headers = {"Accept": "application/json"}
        if config.token is not None:
            headers["Authorization"] = f"Bearer {config.token.get_secret_value()}"
        async with aiohttp.ClientSession(
            base_url=config.base_url,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=config.request_timeout),
        ) as session:
            yield cls(config=config, session=session)

    @property
    def _device_path(self) -> str:
        return f"/devices/{self.config.device_id}"

    async def _request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> Any:
        url = f"{self._device_path}{path}"
        log.debug("%s %s payload=%s", method, url, payload)
        try:
            async with self.session.request(method, url, json=payload) as response:
                if response.status not in SUCCESS_STATUSES:
                    text = await response.text()
                    raise ExecutorFailure(
                        f"{method} {url} failed: {response.status} {text}"
                    )
                if response.status == 204:
                    return None
                return await response.json()
        except aiohttp.ClientError as exc:
            raise ExecutorFailure(f"{method} {url} failed: {exc}") from exc

    async def tap(self, target: str) -> None:
        await self._request("POST", "/tap", {"target": target})

    async def tap_at(self, x: int, y: int) -> None:
        await self._request("POST", "/tap", {"x": x, "y": y})

    async def double_tap(self, target: str) -> None:
        await self._request("POST", "/double-tap", {"target": target})

    async def double_tap_at(self, x: int, y: int) -> None:
        await self._request("POST", "/double-tap", {"x": x, "y": y})

    async def long_press(self, target: str, duration: float = 0.5) -> None:
        await self._request(
            "POST", "/long-press", {"target": target, "duration": duration}
        )

    async def type_text(self, text: str, submit: bool = False) -> None:
        await self._request("POST", "/type", {"text": text, "submit": submit})

    async def swipe(self, direction: SwipeDirection, distance: int | None = None) -> None:
        payload: dict[str, Any] = {"direction": str(direction)}
        if distance is not None:
            payload["distance"] = distance
        await self._request("POST", "/swipe", payload)

    async def swipe_between(
        self, start_x: int, start_y: int, end_x: int, end_y: int
    ) -> None:
        await self._request(
            "POST",
            "/swipe",
            {"start": {"x": start_x, "y": start_y}, "end": {"x": end_x, "y": end_y}},
        )

    async def press_button(self, button: DeviceButton) -> None:
        await self._request("POST", "/buttons", {"button": str(button)})

    async def launch_app(self, package: str | None = None) -> None:
        await self._request("POST", "/apps/launch", {"package": package})

    async def terminate_app(self, package: str | None = None) -> None:
        await self._request("POST", "/apps/terminate", {"package": package})

    async def open_url(self, url: str) -> None:
        await self._request("POST", "/open-url", {"url": url})

    async def set_orientation(self, orientation: Orientation) -> None:
        await self._request("POST", "/orientation", {"orientation": str(orientation)})

    async def take_screenshot(self, name: str, directory: str) -> Screenshot:
        data = await self._request(
            "POST", "/screenshots", {"name": name, "directory": directory}
        )
        response = ScreenshotResponse.model_validate(data)
        return Screenshot(name=response.name, path=response.path)

    async def save_screenshot(self, path: str) -> None:
        await self._request("POST", "/screenshots/save", {"path": path})

    async def list_elements(self) -> Set[ElementDescriptor]:
        data = await self._request("GET", "/elements")
        response = ElementsResponse.model_validate(data)
        return frozenset(
            ElementDescriptor(
                label=element.label,
                identifier=element.identifier,
                element_type=element.type,
            )
            for element in response.elements
        )

    async def verify_screen(
        self, expectation: str, strictness: Strictness = Strictness.NORMAL
    ) -> ScreenVerification:
        data = await self._request(
            "POST",
            "/verify",
            {"expectation": expectation, "strictness": str(strictness)},
        )
        response = VerificationResponse.model_validate(data)
        return ScreenVerification(
            matches=response.matches,
            confidence=response.confidence,
            details=response.details,
            suggestions=tuple(response.suggestions),
        )

    async def cancel(self) -> None:
        log.info("Cancelling in-flight work on device %s", self.config.device_id)
        await self._request("POST", "/cancel")
