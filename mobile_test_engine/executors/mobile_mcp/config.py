"""Configuration for the mobile-mcp HTTP executor."""

from pydantic import BaseModel, SecretStr


class MobileMcpConfig(BaseModel):
    """Configuration for the mobile-mcp device automation bridge."""

    base_url: str = "http://127.0.0.1:8765"
    device_id: str
    token: SecretStr | None = None
    request_timeout: float = 30.0
