"""Application configuration resolved once before a run."""

from pathlib import Path

from pydantic import Field

from mobile_test_engine.models.base import Model


class AppTestConfig(Model):
    """Configuration of the application under test.

    Durations are seconds. Keys may be given as ``default_timeout`` or
    ``defaultTimeout``.
    """

    package_name: str = Field(..., description="Android package or iOS bundle id")
    app_name: str = Field(..., description="Human-readable app name for reports")
    default_timeout: float = Field(
        default=60.0, gt=0, description="Default wait and test timeout"
    )
    default_poll_interval: float = Field(
        default=0.5, gt=0, description="Default cadence of polling waits"
    )
    screenshot_directory: str = Field(
        default="test-screenshots", description="Where executors store screenshots"
    )
    capture_screenshot_on_failure: bool = Field(
        default=True, description="Capture a screenshot when a step fails"
    )
    app_launch_timeout: float = Field(
        default=30.0, gt=0, description="Maximum time to wait for app launch"
    )


def load_app_config(path: Path) -> AppTestConfig:
    """Load and validate an application config from a JSON file."""
    return AppTestConfig.model_validate_json(path.read_text())
