"""
Unit tests for the report sink and the per-test report context.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from e2e_harness.config import RunSettings
from e2e_harness.errors import HarnessError
from e2e_harness.models import StepRecord, StepStatus, TestStatus
from e2e_harness.reporting import ReportSink, run_directory


class TestRunDirectory:

    def test_layout(self):
        """Test <base>/<yyyy>/<Mon>/<dd-MM-yyyy>/run_<HH-mm-ss>."""
        path = run_directory("reports", datetime(2026, 3, 5, 14, 7, 9))

        assert path == Path("reports/2026/Mar/05-03-2026/run_14-07-09")

    def test_init_creates_directories_once(self, sink, tmp_path):
        first = sink.init()
        second = sink.init()

        assert first == second == tmp_path / "reports" / "2026" / "Mar" / "05-03-2026" / "run_14-07-09"
        assert (first / "screenshots").is_dir()


class TestFromSettings:

    def test_system_info(self):
        sink = ReportSink.from_settings(RunSettings(env="UAT", author="QA Team", browser="firefox"))

        assert sink.system_info == {
            "Framework": "Playwright Python",
            "Environment": "UAT",
            "Browser": "firefox",
            "Author": "QA Team",
        }

    def test_author_optional(self):
        sink = ReportSink.from_settings(RunSettings())

        assert "Author" not in sink.system_info
        assert sink.system_info["Environment"] == "QA"


class TestBinding:
    """Test per-worker entry binding."""

    def test_bind_sets_current(self, sink):
        entry = sink.bind("login_test", "checks login", attempt=2)

        assert sink.current() is entry
        assert entry.name == "login_test"
        assert entry.attempt == 2
        assert sink.entries() == [entry]

    def test_unbind(self, sink):
        sink.bind("login_test")
        sink.unbind()

        assert sink.current() is None

    def test_rebind_overwrites(self, sink):
        sink.bind("first")
        second = sink.bind("second")

        assert sink.current() is second
        assert len(sink.entries()) == 2

    def test_current_ignores_other_sinks(self, sink, tmp_path):
        other = ReportSink(base_dir=str(tmp_path / "other"))
        other.bind("elsewhere")

        assert sink.current() is None
        other.unbind()

    @pytest.mark.asyncio
    async def test_binding_is_per_task(self, sink):
        """Test concurrent tasks each see only their own entry."""
        seen = {}

        async def worker(name):
            entry = sink.bind(name)
            await asyncio.sleep(0.01)
            seen[name] = sink.current() is entry

        await asyncio.gather(*(worker(f"test_{i}") for i in range(5)))

        assert seen == {f"test_{i}": True for i in range(5)}
        assert sink.current() is None

    @pytest.mark.asyncio
    async def test_worker_name_recorded(self, sink):
        async def worker():
            return sink.bind("named")

        entry = await asyncio.create_task(worker(), name="worker-7")

        assert entry.worker.endswith("/worker-7")


class TestAppend:

    def test_append_without_entry(self, sink):
        result = sink.append(None, StepRecord(message="x", status=StepStatus.INFO))

        assert not result.ok
        assert "no report entry" in result.error

    def test_append_after_flush_refused(self, sink):
        entry = sink.bind("late")
        sink.flush()

        result = sink.append(entry, StepRecord(message="too late", status=StepStatus.INFO))

        assert not result.ok
        assert entry.steps == []

    def test_finish(self, sink):
        entry = sink.bind("verdict")
        sink.finish(entry, TestStatus.FAILED, "boom")

        assert entry.status is TestStatus.FAILED
        assert entry.error_message == "boom"
        assert entry.finished_at is not None

    def test_entry_times_use_sink_clock(self, tmp_path):
        # run directory, bind, finish
        ticks = iter([datetime(2020, 1, 1, 9, 0, 0), datetime(2020, 1, 1, 9, 0, 1),
                      datetime(2020, 1, 1, 9, 0, 5)])
        sink = ReportSink(base_dir=str(tmp_path / "reports"), clock=lambda: next(ticks))

        entry = sink.bind("timed")
        sink.finish(entry, TestStatus.PASSED)

        assert entry.started_at == datetime(2020, 1, 1, 9, 0, 1)
        assert entry.finished_at == datetime(2020, 1, 1, 9, 0, 5)
        sink.unbind()


class TestFlush:

    def test_flush_writes_artifacts_once(self, sink, caplog):
        entry = sink.bind("flushed_test")
        sink.context(entry).step_info("hello")
        sink.finish(entry, TestStatus.PASSED)

        run_dir = sink.flush()
        again = sink.flush()

        assert run_dir == again
        assert (run_dir / "report.json").is_file()
        assert (run_dir / "TestReport.xlsx").is_file()
        assert (run_dir / "TestReport.html").is_file()
        assert "already flushed" in caplog.text
        assert sink.flushed

    def test_flush_with_terminal_escapes_in_steps(self, sink):
        entry = sink.bind("escaped")
        sink.context(entry).step_info("Timeout 30000ms exceeded.\n\x1b[2m  - waiting for locator\x1b[22m")
        sink.finish(entry, TestStatus.FAILED, "Timeout\x1b[22m")

        run_dir = sink.flush()

        assert (run_dir / "TestReport.xlsx").is_file()

    def test_flush_clears_binding(self, sink):
        sink.bind("bound")
        sink.flush()

        assert sink.current() is None

    def test_bind_after_flush_raises(self, sink):
        sink.flush()

        with pytest.raises(HarnessError):
            sink.bind("too late")


class TestReportContext:
    """Test step recording and screenshot policy."""

    @pytest.mark.asyncio
    async def test_pass_without_screenshot_by_default(self, report, mock_page):
        result = await report.step_pass("clicked")

        assert result.ok
        step = report.entry.steps[-1]
        assert step.status is StepStatus.PASS
        assert not step.has_screenshot
        mock_page.screenshot.assert_not_called()

    @pytest.mark.asyncio
    async def test_pass_screenshot_when_enabled(self, report, mock_page):
        report.sink.screenshot_on_pass = True

        await report.step_pass("clicked")

        step = report.entry.steps[-1]
        assert step.screenshot_base64
        mock_page.screenshot.assert_awaited_once_with(full_page=True)

    @pytest.mark.asyncio
    async def test_pass_capture_disabled_per_call(self, report, mock_page):
        report.sink.screenshot_on_pass = True

        await report.step_pass("clicked", capture=False)

        mock_page.screenshot.assert_not_called()

    @pytest.mark.asyncio
    async def test_pass_falls_back_to_text_when_capture_fails(self, report, mock_page):
        """Test a broken screenshot leaves a text-only PASS step."""
        report.sink.screenshot_on_pass = True
        mock_page.screenshot = AsyncMock(side_effect=RuntimeError("target closed"))

        result = await report.step_pass("clicked")

        assert result.ok
        step = report.entry.steps[-1]
        assert step.status is StepStatus.PASS
        assert step.message == "clicked"
        assert not step.has_screenshot

    @pytest.mark.asyncio
    async def test_fail_always_attempts_screenshot(self, report, mock_page):
        await report.step_fail("broken")

        mock_page.screenshot.assert_awaited_once()
        assert report.entry.steps[-1].screenshot_base64

    @pytest.mark.asyncio
    async def test_fail_text_only_when_capture_fails(self, report, mock_page):
        mock_page.screenshot = AsyncMock(side_effect=RuntimeError("target closed"))

        result = await report.step_fail("broken")

        assert result.ok
        assert report.entry.steps[-1].status is StepStatus.FAIL
        assert not report.entry.steps[-1].has_screenshot

    @pytest.mark.asyncio
    async def test_file_mode_saves_relative_path(self, report, mock_page):
        report.sink.screenshot_mode = "file"

        await report.step_fail("broken")

        step = report.entry.steps[-1]
        assert step.screenshot_path.startswith("screenshots/sample_test_fail_")
        assert step.screenshot_path.endswith(".png")
        assert step.screenshot_base64 is None
        saved_to = mock_page.screenshot.await_args.kwargs["path"]
        assert Path(saved_to).parent == report.sink.screenshots_dir

    def test_skip_and_info(self, report):
        report.step_skip("skipped")
        report.step_info("note")

        assert [s.status for s in report.entry.steps] == [StepStatus.SKIP, StepStatus.INFO]

    @pytest.mark.asyncio
    async def test_steps_without_page(self, sink):
        entry = sink.bind("no_page")
        report = sink.context(entry)

        await report.step_fail("no page to capture")

        assert entry.steps[-1].status is StepStatus.FAIL
        assert not entry.steps[-1].has_screenshot
