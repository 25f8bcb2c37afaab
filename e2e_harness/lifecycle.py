"""
Test Lifecycle Controller

Drives one test invocation through

    NOT_STARTED -> CONTEXT_ACQUIRED -> REPORT_BOUND -> RUNNING
        -> PASSED | FAILED | SKIPPED -> RELEASED

for every attempt, and owns the once-per-run setup and teardown of the
shared browser and report sink.

Invariants:
- every acquired session is closed, whatever the test body or the
  reporting code raised
- a test only ever sees its own session and its own report entry
- teardown stops the browser and flushes the report exactly once, and
  attempts both even when one of them fails
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from .actions import PageActions
from .browser import BrowserManager, IsolatedSession
from .config import RunSettings
from .context import TestContext
from .errors import BrowserLaunchError, TeardownError, TestSkipped
from .models import ReportEntry, TestResult, TestStatus
from .pages.registry import PageRegistry, default_registry
from .reporting import ReportContext, ReportSink
from .retry import RetryPolicy
from .suite import TestInvocation

logger = logging.getLogger(__name__)


class TestPhase(str, Enum):
    __test__ = False

    NOT_STARTED = "not_started"
    CONTEXT_ACQUIRED = "context_acquired"
    REPORT_BOUND = "report_bound"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    RELEASED = "released"


VERDICT_PHASES = {
    TestStatus.PASSED: TestPhase.PASSED,
    TestStatus.FAILED: TestPhase.FAILED,
    TestStatus.SKIPPED: TestPhase.SKIPPED,
}


@dataclass
class AttemptOutcome:
    """What happened during a single attempt of a test invocation."""
    status: TestStatus
    entry: Optional[ReportEntry] = None
    error: Optional[BaseException] = None
    retried: bool = False
    phases: List[TestPhase] = field(default_factory=lambda: [TestPhase.NOT_STARTED])

    def advance(self, phase: TestPhase):
        self.phases.append(phase)

    @property
    def phase(self) -> TestPhase:
        return self.phases[-1]


class TestLifecycle:
    """
    Per-test setup and teardown around a shared browser and report sink.

    The browser manager and the sink are injected; nothing here reaches for
    global state.
    """

    __test__ = False

    def __init__(
        self,
        settings: RunSettings,
        browser: BrowserManager,
        sink: ReportSink,
        pages: Optional[PageRegistry] = None,
        retry_factory: Optional[Callable[[], RetryPolicy]] = None,
    ):
        self.settings = settings
        self.browser = browser
        self.sink = sink
        self.pages = pages or default_registry()
        self.retry_factory = retry_factory or (lambda: RetryPolicy.from_settings(settings))

        self.sessions_acquired = 0
        self.sessions_released = 0
        self._finished = False
        self._teardown_lock = asyncio.Lock()

    # ==================== Class scope ====================

    async def before_class(self):
        """Initialize the report and launch the browser. Idempotent."""
        self.sink.init()
        await self.browser.start()

    async def after_class(self):
        """
        Stop the browser and flush the report, once.

        Both steps are attempted; a TeardownError listing the failed steps
        is raised afterwards.
        """
        async with self._teardown_lock:
            if self._finished:
                return
            self._finished = True

        failures = []
        try:
            await self.browser.stop()
        except Exception as e:
            logger.error(f"[ERR] Browser shutdown failed: {e}")
            failures.append(("browser stop", e))

        try:
            self.sink.flush()
        except Exception as e:
            logger.error(f"[ERR] Report flush failed: {e}")
            failures.append(("report flush", e))

        if failures:
            raise TeardownError(failures)

    async def __aenter__(self) -> "TestLifecycle":
        await self.before_class()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        try:
            await self.after_class()
        except TeardownError:
            if exc_type is None:
                raise
            logger.exception("[ERR] Teardown failed while handling another error")

    # ==================== Method scope ====================

    async def run_test(self, invocation: TestInvocation) -> TestResult:
        """Run one invocation, retrying failed attempts per the retry policy."""
        policy = self.retry_factory()
        start_time = time.monotonic()
        entry_ids: List[str] = []
        attempt = 0

        while True:
            attempt += 1
            outcome = await self.run_attempt(invocation, attempt, policy)
            if outcome.entry is not None:
                entry_ids.append(outcome.entry.id)
            if not outcome.retried:
                break

        duration = time.monotonic() - start_time
        error = outcome.error if outcome.status is not TestStatus.PASSED else None
        return TestResult(
            name=invocation.name,
            status=outcome.status,
            attempts=attempt,
            duration=duration,
            error_message=str(error) if error else None,
            entry_ids=entry_ids,
        )

    async def run_attempt(self, invocation: TestInvocation, attempt: int,
                          policy: RetryPolicy) -> AttemptOutcome:
        """One pass through the per-test state machine."""
        name = invocation.name
        outcome = AttemptOutcome(status=TestStatus.FAILED)
        session: Optional[IsolatedSession] = None

        try:
            try:
                session = await self.browser.new_session()
                self.sessions_acquired += 1
                outcome.advance(TestPhase.CONTEXT_ACQUIRED)
            except BrowserLaunchError:
                raise
            except Exception as e:
                logger.error(f"[ERR] Could not open a browser session for {name}: {e}")
                outcome.error = e

            entry = self.sink.bind(name, invocation.description, attempt)
            report = self.sink.context(entry, session.page if session else None)
            outcome.entry = entry

            if session is not None:
                outcome.advance(TestPhase.REPORT_BOUND)
                await self._run_body(invocation, session, report, outcome)
            else:
                report.step_info(f"Browser session unavailable: {outcome.error}")

            try:
                await self._conclude(invocation, report, policy, outcome)
            except Exception as e:
                logger.warning(f"[WARN] Could not record verdict for {name}: {e}")
        finally:
            if session is not None:
                await self._release(name, session)
            self.sink.unbind()
            outcome.advance(TestPhase.RELEASED)

        return outcome

    async def _run_body(self, invocation: TestInvocation, session: IsolatedSession,
                        report: ReportContext, outcome: AttemptOutcome):
        ctx = TestContext(
            name=invocation.name,
            session=session,
            report=report,
            actions=PageActions(session.page, report),
            settings=self.settings,
            pages=self.pages,
        )

        outcome.advance(TestPhase.RUNNING)
        logger.info(f"Starting test: {invocation.name}")
        try:
            await invocation.case.func(ctx, *invocation.params)
            outcome.status = TestStatus.PASSED
        except TestSkipped as e:
            outcome.status = TestStatus.SKIPPED
            outcome.error = e
        except Exception as e:
            outcome.status = TestStatus.FAILED
            outcome.error = e

    async def _conclude(self, invocation: TestInvocation, report: ReportContext,
                        policy: RetryPolicy, outcome: AttemptOutcome):
        """Record the verdict, or mark the attempt as retried."""
        name = invocation.name

        if outcome.status is TestStatus.FAILED and policy.should_retry(name, outcome.error, report):
            outcome.retried = True
            report.step_skip(f"Test retried: {name}")
            self.sink.finish(outcome.entry, TestStatus.SKIPPED, str(outcome.error))
            outcome.advance(TestPhase.SKIPPED)
            return

        if outcome.status is TestStatus.PASSED:
            logger.info(f"[OK] Test PASSED: {name}")
            await report.step_pass(f"Test passed: {name}")
        elif outcome.status is TestStatus.SKIPPED:
            logger.info(f"Test SKIPPED: {name}")
            report.step_skip(f"Test skipped: {name}")
        else:
            logger.info(f"[ERR] Test FAILED: {name}: {outcome.error}")
            await report.step_fail(f"Test failed: {name} - {outcome.error}")

        error = str(outcome.error) if outcome.error else None
        self.sink.finish(outcome.entry, outcome.status, error)
        outcome.advance(VERDICT_PHASES[outcome.status])

    async def _release(self, name: str, session: IsolatedSession):
        try:
            await session.close()
        except Exception as e:
            logger.warning(f"[WARN] Error closing browser session for {name}: {e}")
        finally:
            self.sessions_released += 1
