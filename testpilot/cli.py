"""CLI entry point for discovering and running tests."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from testpilot.discovery_cache import CACHE_DIR_NAME
from testpilot.errors import EmptyFailureSetError, TestManagerError
from testpilot.failure_cache import FailureCache
from testpilot.frameworks.loading import (
    FrameworkNotFoundError,
    available_frameworks,
    load_framework_manifest,
)
from testpilot.manager import TestManager
from testpilot.models.result import TestRunResult
from testpilot.models.tests import Tests
from testpilot.selection import select_by_address
from testpilot.settings import (
    ConfigurationProvider,
    FileConfigurationProvider,
    StaticConfigurationProvider,
)
from testpilot.settings_loader import load_settings

FAILURE_CACHE_FILE_NAME = "failures.json"


def format_discovery(tests: Tests) -> dict[str, Any]:
    """Format a discovered model for JSON output."""
    return {
        "files": len(tests.test_files),
        "suites": len(tests.test_suites),
        "functions": len(tests.test_functions),
        "tests": [
            {
                "file": entry.parent_file.name,
                "suite": entry.parent_suite.name if entry.parent_suite else None,
                "name": entry.test_function.name,
                "address": entry.test_function.name_to_run,
            }
            for entry in tests.test_functions
        ],
    }


def format_output(result: TestRunResult) -> dict[str, Any]:
    """Format a run result for JSON output."""
    results: list[dict[str, Any]] = [
        {
            "address": update.test_function.name_to_run,
            "status": update.status,
            "duration": update.test_function.time,
            "message": update.test_function.message,
        }
        for update in result.updates
    ]
    results.extend(
        {
            "address": f"{outcome.class_name}.{outcome.name}",
            "status": outcome.outcome,
            "duration": outcome.duration,
            "message": outcome.message,
        }
        for outcome in result.unattributed
    )

    summary = result.summary
    return {
        "total": summary.total,
        "passed": summary.passed,
        "failed": summary.failures,
        "errors": summary.errors,
        "skipped": summary.skipped,
        "results": results,
    }


def resolve_framework(root: Path, framework: str | None) -> str:
    """Return the framework given on the command line or in the settings."""
    if framework:
        return framework
    if configured := load_settings(root).framework:
        return configured
    raise ValueError(
        "No framework given; pass --framework or set 'framework' in testpilot.yaml"
    )


async def run(
    command: str,
    root: Path,
    framework_key: str | None = None,
    framework_config_json: str | None = None,
    select: Sequence[str] = (),
    rerun_failed: bool = False,
) -> int:
    """Run the CLI command and return the exit code."""
    log = logging.getLogger("testpilot")

    root = root.resolve()
    framework_key = resolve_framework(root, framework_key)
    log.info("Loading framework: %s", framework_key)
    manifest = load_framework_manifest(framework_key)

    configuration: ConfigurationProvider
    if framework_config_json is not None:
        configuration = StaticConfigurationProvider(
            root=root, configs={manifest.key: json.loads(framework_config_json)}
        )
    else:
        configuration = FileConfigurationProvider(root=root)

    failure_cache = FailureCache(path=root / CACHE_DIR_NAME / FAILURE_CACHE_FILE_NAME)

    async with TestManager.open(
        framework=manifest, configuration=configuration, failure_cache=failure_cache
    ) as manager:
        if command == "discover":
            tests = await manager.discover_tests(ignore_cache=True)
            print(json.dumps(format_discovery(tests), indent=2))
            return 0

        selection = None
        if select:
            tests = await manager.discover_tests()
            selection = select_by_address(tests, select)

        try:
            result = await manager.run_test(selection, rerun_failed=rerun_failed)
        except EmptyFailureSetError:
            log.info("No failed tests to re-run")
            print(json.dumps(format_output(TestRunResult.empty()), indent=2))
            return 0

    print(json.dumps(format_output(result), indent=2))
    return 1 if result.summary.failures or result.summary.errors else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Discover and run tests with nose, pytest or unittest"
    )
    parser.add_argument(
        "command",
        choices=["discover", "run"],
        help="Discover tests or run them",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=Path.cwd(),
        help="Workspace root (default: current directory)",
    )
    parser.add_argument(
        "--framework",
        default=None,
        help=f"Framework key ({', '.join(available_frameworks())})",
    )
    parser.add_argument(
        "--framework-config",
        default=None,
        help="JSON configuration for the framework, overrides testpilot.yaml",
    )
    parser.add_argument(
        "--select",
        action="append",
        default=[],
        help="Address of a folder, file, suite or test to run (repeatable)",
    )
    parser.add_argument(
        "--rerun-failed",
        action="store_true",
        help="Run only the tests that failed on the previous run",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log framework output",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        exit_code = asyncio.run(
            run(
                command=args.command,
                root=args.root,
                framework_key=args.framework,
                framework_config_json=args.framework_config,
                select=args.select,
                rerun_failed=args.rerun_failed,
            )
        )
    except (TestManagerError, FrameworkNotFoundError, ValueError) as e:
        logging.getLogger("testpilot").error("%s", e)
        exit_code = 2
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
