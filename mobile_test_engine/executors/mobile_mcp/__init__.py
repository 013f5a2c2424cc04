"""mobile-mcp executor module."""

from mobile_test_engine.executors.mobile_mcp.config import MobileMcpConfig
from mobile_test_engine.executors.mobile_mcp.executor import MobileMcpExecutor
from mobile_test_engine.executors.mobile_mcp.manifest import mobile_mcp_manifest

__all__ = ["MobileMcpConfig", "MobileMcpExecutor", "mobile_mcp_manifest"]
