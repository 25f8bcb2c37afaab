"""
Report Sink

Process-wide recorder of test steps and verdicts.

- One ReportEntry per test execution, bound to the worker that runs it
- Entries are appended to independently; only the registry is locked
- Flushed to disk exactly once, after every worker has finished
"""

import asyncio
import logging
import threading
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from ..errors import HarnessError
from ..models import (
    CaptureResult,
    ReportEntry,
    RunReport,
    SinkResult,
    StepRecord,
    StepStatus,
    TestStatus,
)
from ..screenshots import capture_base64, capture_to_file
from .writer import write_report

logger = logging.getLogger(__name__)

# Locale independent, the run directory name must not depend on the host.
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# (sink, entry) bound to the running task or thread
_bound_entry: ContextVar[Optional[Tuple["ReportSink", ReportEntry]]] = ContextVar(
    "bound_report_entry", default=None
)


def worker_name() -> str:
    """Name of the calling worker: the asyncio task if any, else the thread."""
    try:
        task = asyncio.current_task()
    except RuntimeError:
        task = None
    thread = threading.current_thread().name
    return f"{thread}/{task.get_name()}" if task else thread


def run_directory(base_dir: str, now: datetime) -> Path:
    """``<base>/<yyyy>/<Mon>/<dd-MM-yyyy>/run_<HH-mm-ss>``"""
    return (
        Path(base_dir)
        / str(now.year)
        / MONTH_ABBR[now.month - 1]
        / now.strftime("%d-%m-%Y")
        / f"run_{now.strftime('%H-%M-%S')}"
    )


class ReportSink:
    """Thread- and task-safe store of report entries for one run."""

    SCREENSHOTS_DIR = "screenshots"

    def __init__(
        self,
        base_dir: str = "reports",
        screenshot_on_pass: bool = False,
        screenshot_mode: str = "base64",
        system_info: Optional[Dict[str, str]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.base_dir = base_dir
        self.screenshot_on_pass = screenshot_on_pass
        self.screenshot_mode = screenshot_mode
        self.system_info: Dict[str, str] = dict(system_info or {})
        self._clock = clock

        self._lock = threading.Lock()
        self._entries: List[ReportEntry] = []
        self._run_dir: Optional[Path] = None
        self._started_at: Optional[datetime] = None
        self._flushed = False

    @classmethod
    def from_settings(cls, settings) -> "ReportSink":
        system_info = {
            "Framework": "Playwright Python",
            "Environment": settings.env,
            "Browser": settings.browser,
        }
        if settings.author:
            system_info["Author"] = settings.author
        return cls(
            base_dir=settings.report_dir,
            screenshot_on_pass=settings.screenshot_on_pass,
            screenshot_mode=settings.screenshot_mode,
            system_info=system_info,
        )

    # ==================== Lifecycle ====================

    def init(self) -> Path:
        """Create the timestamped run directory. Safe to call repeatedly."""
        with self._lock:
            if self._run_dir is not None:
                return self._run_dir

            now = self._clock()
            run_dir = run_directory(self.base_dir, now)
            (run_dir / self.SCREENSHOTS_DIR).mkdir(parents=True, exist_ok=True)

            self._started_at = now
            self._run_dir = run_dir
            logger.info(f"Report directory: {run_dir}")
            return run_dir

    @property
    def run_dir(self) -> Optional[Path]:
        return self._run_dir

    @property
    def screenshots_dir(self) -> Path:
        return self.init() / self.SCREENSHOTS_DIR

    @property
    def flushed(self) -> bool:
        return self._flushed

    def flush(self) -> Path:
        """
        Write every entry to the run directory and drop the worker binding.

        Only the first call writes anything; later calls return the same
        directory.
        """
        run_dir = self.init()
        with self._lock:
            if self._flushed:
                logger.warning("[WARN] Report already flushed, ignoring")
                return run_dir
            self._flushed = True
            report = RunReport(
                run_dir=str(run_dir),
                started_at=self._started_at,
                finished_at=self._clock(),
                system_info=self.system_info,
                entries=list(self._entries),
            )
        _bound_entry.set(None)

        write_report(report, run_dir)
        logger.info(f"[OK] Report written: {run_dir} ({len(report.entries)} entries)")
        return run_dir

    # ==================== Entries ====================

    def bind(self, test_name: str, description: str = "", attempt: int = 1) -> ReportEntry:
        """Create a new entry and bind it to the calling worker."""
        self.init()
        entry = ReportEntry(
            name=test_name,
            description=description,
            attempt=attempt,
            worker=worker_name(),
            started_at=self._clock(),
        )
        with self._lock:
            if self._flushed:
                raise HarnessError(f"Cannot bind '{test_name}': report already flushed")
            self._entries.append(entry)
        _bound_entry.set((self, entry))
        return entry

    def current(self) -> Optional[ReportEntry]:
        """The entry bound to the calling worker, if any."""
        if self._flushed:
            return None
        bound = _bound_entry.get()
        if bound is None or bound[0] is not self:
            return None
        return bound[1]

    def unbind(self) -> None:
        bound = _bound_entry.get()
        if bound is not None and bound[0] is self:
            _bound_entry.set(None)

    def entries(self) -> List[ReportEntry]:
        with self._lock:
            return list(self._entries)

    def append(self, entry: Optional[ReportEntry], record: StepRecord) -> SinkResult:
        """Add a step to an entry. Never raises."""
        if entry is None:
            return SinkResult.failure("no report entry bound")
        if self._flushed:
            logger.warning(f"[WARN] Dropping step after flush: {record.message}")
            return SinkResult.failure("report already flushed")
        entry.steps.append(record)
        return SinkResult.success()

    def finish(self, entry: Optional[ReportEntry], status: TestStatus,
               error_message: Optional[str] = None) -> SinkResult:
        """Stamp the verdict on an entry."""
        if entry is None:
            return SinkResult.failure("no report entry bound")
        entry.status = status
        entry.error_message = error_message
        entry.finished_at = self._clock()
        return SinkResult.success()

    # ==================== Screenshots ====================

    async def capture(self, page, step_name: Optional[str] = None) -> CaptureResult:
        if self.screenshot_mode == "file":
            return await capture_to_file(page, self.screenshots_dir, step_name)
        return await capture_base64(page)

    def context(self, entry: ReportEntry, page=None) -> "ReportContext":
        return ReportContext(self, entry, page)


class ReportContext:
    """
    Explicit per-test handle on the report.

    Passed to PageActions, page objects and the retry policy so that no
    step ever has to be looked up through ambient state.
    """

    def __init__(self, sink: ReportSink, entry: ReportEntry, page=None):
        self.sink = sink
        self.entry = entry
        self.page = page

    @property
    def test_name(self) -> str:
        return self.entry.name

    def _record(self, message: str, status: StepStatus,
                shot: Optional[CaptureResult] = None) -> SinkResult:
        record = StepRecord(
            message=message,
            status=status,
            screenshot_base64=shot.base64 if shot and shot.ok else None,
            screenshot_path=shot.path if shot and shot.ok else None,
        )
        return self.sink.append(self.entry, record)

    async def step_pass(self, message: str, capture: bool = True) -> SinkResult:
        """PASS step; screenshot only when ``screenshot.on.pass`` is enabled."""
        shot = None
        if capture and self.sink.screenshot_on_pass and self.page is not None:
            shot = await self.sink.capture(self.page, f"{self.entry.name}_pass")
        return self._record(message, StepStatus.PASS, shot)

    async def step_fail(self, message: str) -> SinkResult:
        """FAIL step; a screenshot is always attempted."""
        shot = None
        if self.page is not None:
            shot = await self.sink.capture(self.page, f"{self.entry.name}_fail")
        return self._record(message, StepStatus.FAIL, shot)

    def step_skip(self, message: str) -> SinkResult:
        return self._record(message, StepStatus.SKIP)

    def step_info(self, message: str) -> SinkResult:
        return self._record(message, StepStatus.INFO)
