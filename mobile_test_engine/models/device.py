"""Value types exchanged with action executors."""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum


class SwipeDirection(StrEnum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class DeviceButton(StrEnum):
    BACK = "BACK"
    HOME = "HOME"
    VOLUME_UP = "VOLUME_UP"
    VOLUME_DOWN = "VOLUME_DOWN"
    ENTER = "ENTER"


class Orientation(StrEnum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class Strictness(StrEnum):
    """Tolerance of AI screen verification.

    ``strict`` requires exact structural correspondence, ``normal`` requires
    the key elements, ``lenient`` accepts a partial structural match.
    """

    STRICT = "strict"
    NORMAL = "normal"
    LENIENT = "lenient"


@dataclass(frozen=True, kw_only=True)
class ElementDescriptor:
    """An element reported by the device's accessibility tree."""

    label: str = ""
    identifier: str = ""
    element_type: str = ""

    def matches(self, description: str) -> bool:
        """Case-insensitive match of a natural language description."""
        needle = description.strip().casefold()
        if not needle:
            return False
        return any(
            needle in value.casefold() for value in (self.label, self.identifier)
        )


@dataclass(frozen=True, kw_only=True)
class ScreenVerification:
    """Verdict of an AI screen verification."""

    matches: bool
    confidence: int
    details: str = ""
    suggestions: Sequence[str] = ()


@dataclass(frozen=True, kw_only=True)
class Screenshot:
    """Reference to a captured screenshot artifact."""

    name: str
    path: str | None = None
