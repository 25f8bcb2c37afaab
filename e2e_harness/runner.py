"""
Test Runner

Schedules test invocations onto a bounded pool of asyncio workers that share
one browser and one report sink.

    parallel=methods   every invocation is its own task
    parallel=classes   one task per suite, its tests run in order
    parallel=none      everything runs sequentially
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .browser import BrowserManager
from .config import RunSettings
from .errors import BrowserLaunchError, TeardownError
from .lifecycle import TestLifecycle
from .models import TestResult, TestStatus
from .pages.registry import PageRegistry
from .reporting import ReportSink
from .suite import TestInvocation, TestSuite

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Outcome of a whole run."""
    results: List[TestResult] = field(default_factory=list)
    duration: float = 0.0
    run_dir: Optional[Path] = None
    teardown_error: Optional[TeardownError] = None

    def _count(self, status: TestStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return self._count(TestStatus.PASSED)

    @property
    def failed(self) -> int:
        return self._count(TestStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(TestStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.teardown_error is None


class TestRunner:
    """Runs suites against a shared browser and report sink."""

    __test__ = False

    def __init__(
        self,
        settings: RunSettings,
        suites: Sequence[TestSuite],
        browser: Optional[BrowserManager] = None,
        sink: Optional[ReportSink] = None,
        pages: Optional[PageRegistry] = None,
    ):
        self.settings = settings
        self.suites = list(suites)
        self.browser = browser or BrowserManager.from_settings(settings)
        self.sink = sink or ReportSink.from_settings(settings)
        self.lifecycle = TestLifecycle(settings, self.browser, self.sink, pages=pages)

    async def run(self) -> RunSummary:
        """
        Run every suite and tear down once.

        Raises:
            DataSourceError: a data-driven test could not load its rows
            BrowserLaunchError: the engine could not be started
        """
        # expand data-driven tests before anything is launched
        plan = [(suite, suite.invocations(self.settings)) for suite in self.suites]
        total = sum(len(invocations) for _, invocations in plan)

        summary = RunSummary()
        start_time = time.monotonic()
        logger.info(
            f"Running {total} tests from {len(plan)} suites "
            f"(workers={self.settings.workers}, parallel={self.settings.parallel})"
        )

        try:
            await self.lifecycle.before_class()
            summary.results = await self._schedule(plan)
        finally:
            try:
                await self.lifecycle.after_class()
            except TeardownError as e:
                summary.teardown_error = e

        summary.duration = time.monotonic() - start_time
        summary.run_dir = self.sink.run_dir
        self._log_summary(summary)
        return summary

    async def _schedule(self, plan) -> List[TestResult]:
        mode = self.settings.parallel
        workers = 1 if mode == "none" else max(1, self.settings.workers)
        semaphore = asyncio.Semaphore(workers)

        async def run_method(invocation: TestInvocation) -> List[TestResult]:
            async with semaphore:
                return [await self._run_one(invocation)]

        async def run_class(invocations: List[TestInvocation]) -> List[TestResult]:
            async with semaphore:
                return [await self._run_one(invocation) for invocation in invocations]

        if mode == "classes":
            tasks = [
                asyncio.create_task(run_class(invocations), name=suite.name)
                for suite, invocations in plan
            ]
        else:
            tasks = [
                asyncio.create_task(run_method(invocation), name=invocation.name)
                for _, invocations in plan
                for invocation in invocations
            ]

        try:
            batches = await asyncio.gather(*tasks)
        except BrowserLaunchError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return [result for batch in batches for result in batch]

    async def _run_one(self, invocation: TestInvocation) -> TestResult:
        """Run one invocation; only an engine launch failure escapes."""
        start_time = time.monotonic()
        try:
            return await self.lifecycle.run_test(invocation)
        except BrowserLaunchError:
            raise
        except Exception as e:
            logger.exception(f"[ERR] Test {invocation.name} crashed outside its body")
            return TestResult(
                name=invocation.name,
                status=TestStatus.FAILED,
                attempts=1,
                duration=time.monotonic() - start_time,
                error_message=str(e),
            )

    def _log_summary(self, summary: RunSummary):
        logger.info("=" * 60)
        logger.info("Test Summary:")
        logger.info(f"  Total: {summary.total}")
        logger.info(f"  Passed: {summary.passed}")
        logger.info(f"  Failed: {summary.failed}")
        logger.info(f"  Skipped: {summary.skipped}")
        logger.info(f"  Duration: {summary.duration:.2f}s")
        if summary.run_dir:
            logger.info(f"  Report: {summary.run_dir}")
        if summary.teardown_error:
            logger.error(f"  [ERR] {summary.teardown_error}")
        logger.info("=" * 60)
        for result in summary.results:
            if result.status is TestStatus.FAILED:
                logger.info(f"  [ERR] {result.name}: {result.error_message}")
