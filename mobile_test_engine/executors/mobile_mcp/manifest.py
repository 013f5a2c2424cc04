"""mobile-mcp executor manifest."""

from mobile_test_engine.executors.manifest import ExecutorManifest
from mobile_test_engine.executors.mobile_mcp.config import MobileMcpConfig
from mobile_test_engine.executors.mobile_mcp.executor import MobileMcpExecutor

mobile_mcp_manifest = ExecutorManifest(
    config_cls=MobileMcpConfig,
    executor_factory=MobileMcpExecutor.from_config,
)
