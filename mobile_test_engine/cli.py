"""CLI entry point for running a test suite against a device."""

import argparse
import asyncio
import importlib
import json
import logging
import sys
from pathlib import Path

from mobile_test_engine.builder import SuiteBuilder
from mobile_test_engine.context import ExecutionContext
from mobile_test_engine.executors.loading import load_executor_manifest
from mobile_test_engine.models.config import load_app_config
from mobile_test_engine.models.result import SuiteResult
from mobile_test_engine.models.suite import Suite
from mobile_test_engine.scheduler import TestScheduler

STATUS_SYMBOLS = {
    True: "✓",
    False: "✗",
}


def log_results_summary(log: logging.Logger, suite_result: SuiteResult) -> None:
    """Log a formatted summary of a suite result."""
    log.info("=" * 80)
    log.info("Test Results Summary: %s", suite_result.suite_name)
    log.info("=" * 80)

    if suite_result.error:
        log.info("! Suite setup failed: %s", suite_result.error)

    for test_result in suite_result.test_results:
        log.info(
            "%s %s (%.2fs)",
            STATUS_SYMBOLS[test_result.passed],
            test_result.test_name,
            test_result.duration,
        )
        if test_result.error:
            log.info("  Error: %s", test_result.error)
        for annotation in test_result.annotations:
            log.info("  Also: %s", annotation)
        for step_result in test_result.step_results:
            if step_result.screenshot_path:
                log.info("  Screenshot: %s", step_result.screenshot_path)

    for annotation in suite_result.annotations:
        log.info("! %s", annotation)

    log.info(
        "%d passed, %d failed in %.2fs",
        suite_result.passed_count,
        suite_result.failed_count,
        suite_result.duration,
    )


def load_suite(reference: str) -> Suite:
    """Import a suite from a ``module:attribute`` reference.

    The attribute may be a built ``Suite`` or a ``SuiteBuilder``.
    """
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Suite reference must be 'module:attribute', got {reference!r}")

    target = getattr(importlib.import_module(module_name), attribute)
    if isinstance(target, SuiteBuilder):
        return target.build()
    if isinstance(target, Suite):
        return target
    raise TypeError(f"{reference} is a {type(target).__name__}, not a Suite")


async def run(
    executor_key: str,
    executor_config_json: str,
    app_config_path: Path,
    suite_reference: str,
    device_id: str,
    output_path: Path | None = None,
) -> int:
    """Run a suite and return the exit code."""
    log = logging.getLogger("mobile_test_engine")

    log.info("Loading executor: %s", executor_key)
    manifest = load_executor_manifest(executor_key)

    executor_config = manifest.parse_config(json.loads(executor_config_json))
    app_config = load_app_config(app_config_path)

    log.info("Loading suite: %s", suite_reference)
    suite = load_suite(suite_reference)

    async with manifest.executor_factory(executor_config) as executor:
        context = ExecutionContext(
            device_id=device_id, config=app_config, executor=executor
        )
        suite_result = await TestScheduler(context=context).run_suite(suite)

    log_results_summary(log, suite_result)

    output = json.dumps(suite_result.to_dict(), indent=2)
    if output_path is not None:
        output_path.write_text(output)
        log.info("Results written to %s", output_path)
    else:
        print(output)

    return 0 if suite_result.passed else 1


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Run a UI test suite on a device")
    parser.add_argument(
        "--executor",
        required=True,
        help="Executor key (mobile-mcp, fake)",
    )
    parser.add_argument(
        "--executor-config",
        default="{}",
        help="JSON configuration for the executor",
    )
    parser.add_argument(
        "--app-config",
        type=Path,
        required=True,
        help="Path to the application config JSON file",
    )
    parser.add_argument(
        "--suite",
        required=True,
        help="Suite to run, as module:attribute",
    )
    parser.add_argument(
        "--device",
        required=True,
        help="Identifier of the device under test",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON result here instead of stdout",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            executor_key=args.executor,
            executor_config_json=args.executor_config,
            app_config_path=args.app_config,
            suite_reference=args.suite,
            device_id=args.device,
            output_path=args.output,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
