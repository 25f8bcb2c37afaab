"""
Command line entry point.

    e2e-harness --config config/config.properties --set headless=true \
        --suite e2e_harness.suites.purchase:suite --workers 4

Exit codes: 0 all tests passed, 1 test failures, 2 fatal harness error.
"""

import argparse
import asyncio
import importlib
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config import DEFAULT_CONFIG_PATH, ConfigSource, RunSettings, parse_overrides
from .errors import HarnessError
from .runner import TestRunner
from .suite import TestSuite

logger = logging.getLogger(__name__)

DEFAULT_SUITE = "e2e_harness.suites.purchase:suite"

EXIT_OK = 0
EXIT_TEST_FAILURES = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="e2e-harness",
        description="Run browser end-to-end test suites with Playwright",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH,
                        help=f"properties file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--set", dest="overrides", action="append", default=[],
                        metavar="KEY=VALUE", help="override a config key (repeatable)")
    parser.add_argument("--suite", dest="suites", action="append", default=[],
                        metavar="MODULE:ATTR", help=f"suite to run (default: {DEFAULT_SUITE})")
    parser.add_argument("--workers", type=int, help="number of concurrent tests")
    parser.add_argument("--parallel", choices=["methods", "classes", "none"],
                        help="how tests are scheduled onto workers")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def load_suite(spec: str) -> TestSuite:
    """Import ``module:attr`` and return the TestSuite it names."""
    module_name, _, attr = spec.partition(":")
    module = importlib.import_module(module_name)
    suite = getattr(module, attr or "suite", None)
    if not isinstance(suite, TestSuite):
        raise HarnessError(f"{spec} is not a TestSuite")
    return suite


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        overrides = parse_overrides(args.overrides)
        if args.workers is not None:
            overrides["workers"] = str(args.workers)
        if args.parallel:
            overrides["parallel"] = args.parallel

        settings = RunSettings.from_source(ConfigSource.load(args.config, overrides=overrides))
        suites = [load_suite(spec) for spec in (args.suites or [DEFAULT_SUITE])]

        summary = asyncio.run(TestRunner(settings, suites).run())
    except HarnessError as e:
        logger.error(f"[ERR] {e}")
        return EXIT_FATAL
    except ImportError as e:
        logger.error(f"[ERR] Could not import suite: {e}")
        return EXIT_FATAL

    if summary.teardown_error is not None:
        return EXIT_FATAL
    return EXIT_OK if summary.ok else EXIT_TEST_FAILURES


if __name__ == "__main__":
    sys.exit(main())
