"""Pydantic models for mobile-mcp bridge responses."""

from collections.abc import Sequence

from pydantic import BaseModel, Field


class Element(BaseModel):
    """An element from the accessibility tree."""

    label: str = ""
    identifier: str = ""
    type: str = ""


class ElementsResponse(BaseModel):
    """Response from the list elements endpoint."""

    elements: Sequence[Element]


class VerificationResponse(BaseModel):
    """Response from the screen verification endpoint."""

    matches: bool
    confidence: int = Field(ge=0, le=100)
    details: str = ""
    suggestions: Sequence[str] = ()


class ScreenshotResponse(BaseModel):
    """Response from the screenshot endpoint."""

    name: str
    path: str | None = None
