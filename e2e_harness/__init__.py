"""
e2e-harness

Browser end-to-end test harness on Playwright: a shared browser with one
isolated context per test, page objects, retries of flaky failures, and a
per-step report with screenshots written as JSON, Excel and HTML.
"""

from .browser import BrowserKind, BrowserManager, IsolatedSession
from .config import ConfigSource, RunSettings
from .context import TestContext
from .errors import (
    BrowserLaunchError,
    ConfigError,
    DataSourceError,
    HarnessError,
    TeardownError,
    TestSkipped,
)
from .lifecycle import TestLifecycle
from .reporting import ReportContext, ReportSink
from .retry import RetryPolicy
from .runner import RunSummary, TestRunner
from .suite import TestSuite

__all__ = [
    "BrowserKind",
    "BrowserManager",
    "IsolatedSession",
    "ConfigSource",
    "RunSettings",
    "TestContext",
    "HarnessError",
    "ConfigError",
    "BrowserLaunchError",
    "DataSourceError",
    "TeardownError",
    "TestSkipped",
    "TestLifecycle",
    "ReportContext",
    "ReportSink",
    "RetryPolicy",
    "RunSummary",
    "TestRunner",
    "TestSuite",
]
