"""
Tests for the runner: scheduling modes, worker bounds and run summaries.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from e2e_harness.config import RunSettings
from e2e_harness.errors import BrowserLaunchError, DataSourceError, TestSkipped
from e2e_harness.models import TestResult, TestStatus
from e2e_harness.runner import RunSummary, TestRunner
from e2e_harness.suite import TestSuite


def make_settings(tmp_path, **overrides):
    values = {"report_dir": str(tmp_path / "reports"), "retry_count": 0}
    values.update(overrides)
    return RunSettings(**values)


@pytest.fixture
def mixed_suite():
    suite = TestSuite("Mixed")

    @suite.test()
    async def passes(ctx):
        await ctx.actions.click("#ok")

    @suite.test()
    async def fails(ctx):
        raise AssertionError("wrong total")

    @suite.test()
    async def skips(ctx):
        raise TestSkipped("feature flag off")

    return suite


class TestRunSummary:

    def test_counts(self):
        summary = RunSummary(results=[
            TestResult("a", TestStatus.PASSED, 1, 0.1),
            TestResult("b", TestStatus.FAILED, 2, 0.1),
            TestResult("c", TestStatus.SKIPPED, 1, 0.1),
        ])

        assert (summary.total, summary.passed, summary.failed, summary.skipped) == (3, 1, 1, 1)
        assert not summary.ok

    def test_ok_when_nothing_failed(self):
        assert RunSummary(results=[TestResult("a", TestStatus.SKIPPED, 1, 0.0)]).ok


class TestTestRunner:

    @pytest.mark.asyncio
    async def test_run_mixed_suite(self, tmp_path, mixed_suite, fake_browser, sink):
        runner = TestRunner(make_settings(tmp_path), [mixed_suite], browser=fake_browser, sink=sink)

        summary = await runner.run()

        assert [r.name for r in summary.results] == ["passes", "fails", "skips"]
        assert (summary.passed, summary.failed, summary.skipped) == (1, 1, 1)
        assert not summary.ok
        assert summary.teardown_error is None
        assert summary.run_dir == sink.run_dir
        assert (summary.run_dir / "TestReport.html").is_file()
        fake_browser.start.assert_awaited_once()
        fake_browser.stop.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("parallel,workers,expected_peak", [
        ("methods", 3, 3),
        ("methods", 1, 1),
        ("none", 4, 1),
    ])
    async def test_worker_bound(self, tmp_path, fake_browser, sink, parallel, workers, expected_peak):
        """Test no more than `workers` tests run at the same time."""
        running = 0
        peak = 0
        suite = TestSuite("Bounded")

        async def body(ctx, marker):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        suite.test(name="t", data=[(str(i),) for i in range(6)])(body)
        settings = make_settings(tmp_path, workers=workers, parallel=parallel)

        summary = await TestRunner(settings, [suite], browser=fake_browser, sink=sink).run()

        assert summary.passed == 6
        assert peak == expected_peak

    @pytest.mark.asyncio
    async def test_classes_mode_runs_suite_tests_in_order(self, tmp_path, fake_browser, sink):
        order = []
        first, second = TestSuite("First"), TestSuite("Second")

        for suite in (first, second):
            async def body(ctx, marker, suite_name=suite.name):
                order.append((suite_name, marker, "start"))
                await asyncio.sleep(0.01)
                order.append((suite_name, marker, "end"))

            suite.test(name="t", data=[("a",), ("b",)])(body)

        settings = make_settings(tmp_path, workers=2, parallel="classes")
        summary = await TestRunner(settings, [first, second], browser=fake_browser, sink=sink).run()

        assert summary.passed == 4
        for name in ("First", "Second"):
            own = [(marker, phase) for suite_name, marker, phase in order if suite_name == name]
            assert own == [("a", "start"), ("a", "end"), ("b", "start"), ("b", "end")]
        # both suites were in flight at once
        assert order[0][0] != order[1][0]

    @pytest.mark.asyncio
    async def test_launch_failure_aborts_run(self, tmp_path, mixed_suite, fake_browser, sink):
        fake_browser.start = AsyncMock(side_effect=BrowserLaunchError("no browser"))
        runner = TestRunner(make_settings(tmp_path), [mixed_suite], browser=fake_browser, sink=sink)

        with pytest.raises(BrowserLaunchError):
            await runner.run()

        fake_browser.stop.assert_awaited_once()
        assert sink.flushed

    @pytest.mark.asyncio
    async def test_launch_failure_mid_run_cancels_others(self, tmp_path, fake_browser, sink):
        suite = TestSuite("Launch")
        suite.test(name="t", data=[(str(i),) for i in range(4)])(AsyncMock())
        fake_browser.new_session = AsyncMock(side_effect=BrowserLaunchError("engine died"))
        settings = make_settings(tmp_path, workers=4)

        with pytest.raises(BrowserLaunchError):
            await TestRunner(settings, [suite], browser=fake_browser, sink=sink).run()

        fake_browser.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_data_error_before_launch(self, tmp_path, fake_browser, sink):
        def broken_rows(settings):
            raise DataSourceError("Failed to read Excel file [x.xlsx] sheet [Sheet1]")

        suite = TestSuite("Data")
        suite.test(name="t", data=broken_rows)(AsyncMock())

        with pytest.raises(DataSourceError):
            await TestRunner(make_settings(tmp_path), [suite], browser=fake_browser, sink=sink).run()

        fake_browser.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_teardown_error_recorded(self, tmp_path, mixed_suite, fake_browser, sink):
        fake_browser.stop = AsyncMock(side_effect=RuntimeError("browser hung"))
        runner = TestRunner(make_settings(tmp_path), [mixed_suite], browser=fake_browser, sink=sink)

        summary = await runner.run()

        assert summary.teardown_error is not None
        assert not summary.ok
        assert sink.flushed

    @pytest.mark.asyncio
    async def test_crash_outside_body_isolated(self, tmp_path, mixed_suite, fake_browser, sink):
        runner = TestRunner(make_settings(tmp_path), [mixed_suite], browser=fake_browser, sink=sink)
        original = runner.lifecycle.run_test

        async def crash_on_fails(invocation):
            if invocation.name == "fails":
                raise RuntimeError("lifecycle bug")
            return await original(invocation)

        runner.lifecycle.run_test = crash_on_fails

        summary = await runner.run()

        crashed = [r for r in summary.results if r.name == "fails"][0]
        assert crashed.status is TestStatus.FAILED
        assert crashed.error_message == "lifecycle bug"
        assert summary.passed == 1
