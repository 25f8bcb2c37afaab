"""
Pytest configuration and shared fixtures for e2e-harness tests.
"""

from datetime import datetime
from typing import List
from unittest.mock import AsyncMock, Mock

import pytest

from e2e_harness.browser import IsolatedSession
from e2e_harness.config import RunSettings
from e2e_harness.reporting import ReportSink

FIXED_NOW = datetime(2026, 3, 5, 14, 7, 9)


def build_mock_page(url: str = "https://example.com/test"):
    """A mock Playwright page whose locators always succeed."""
    page = AsyncMock()

    # Basic properties
    page.url = url

    # Navigation
    page.goto = AsyncMock(return_value=None)
    page.reload = AsyncMock(return_value=None)
    page.go_back = AsyncMock(return_value=None)
    page.go_forward = AsyncMock(return_value=None)
    page.title = AsyncMock(return_value="Test Page")
    page.evaluate = AsyncMock(return_value=None)

    # Locators
    mock_locator = AsyncMock()
    mock_locator.first = mock_locator
    mock_locator.click = AsyncMock()
    mock_locator.fill = AsyncMock()
    mock_locator.check = AsyncMock()
    mock_locator.uncheck = AsyncMock()
    mock_locator.wait_for = AsyncMock()
    mock_locator.select_option = AsyncMock()
    mock_locator.is_visible = AsyncMock(return_value=True)
    mock_locator.is_enabled = AsyncMock(return_value=True)
    mock_locator.is_disabled = AsyncMock(return_value=False)
    mock_locator.is_checked = AsyncMock(return_value=True)
    mock_locator.inner_text = AsyncMock(return_value="Test Content")
    mock_locator.all_inner_texts = AsyncMock(return_value=["One", "Two"])

    page.locator = Mock(return_value=mock_locator)

    # Events
    page.once = Mock()

    # Wait
    page.wait_for_load_state = AsyncMock()

    # Screenshot
    page.screenshot = AsyncMock(return_value=b"fake_screenshot_data")

    return page


def build_session(page=None) -> IsolatedSession:
    context = AsyncMock()
    context.close = AsyncMock()
    context.pages = []
    return IsolatedSession(context, page or build_mock_page())


# ==================== Mock Page Fixture ====================

@pytest.fixture
def mock_page():
    """Create a mock Playwright page object."""
    return build_mock_page()


@pytest.fixture
def mock_locator(mock_page):
    return mock_page.locator.return_value


# ==================== Mock Browser Fixtures ====================

@pytest.fixture
def mock_browser(mock_page):
    """Create a mock Playwright browser object."""
    browser = AsyncMock()
    context = AsyncMock()

    context.new_page = AsyncMock(return_value=mock_page)
    context.set_default_timeout = Mock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    return browser


@pytest.fixture
def fake_browser():
    """
    Stand-in for BrowserManager that hands out a fresh mocked session per
    call and remembers every session it created.
    """
    sessions: List[IsolatedSession] = []

    async def new_session():
        session = build_session()
        sessions.append(session)
        return session

    manager = Mock()
    manager.start = AsyncMock()
    manager.stop = AsyncMock()
    manager.new_session = AsyncMock(side_effect=new_session)
    manager.sessions = sessions
    return manager


# ==================== Settings / Sink Fixtures ====================

@pytest.fixture
def settings(tmp_path):
    """Run settings writing reports under a temporary directory, no retries."""
    return RunSettings(report_dir=str(tmp_path / "reports"), retry_count=0)


@pytest.fixture
def sink(tmp_path):
    """A report sink with a fixed clock."""
    return ReportSink(base_dir=str(tmp_path / "reports"), clock=lambda: FIXED_NOW)


@pytest.fixture
def report(sink, mock_page):
    """A report context bound to a fresh entry and the mock page."""
    entry = sink.bind("sample_test")
    yield sink.context(entry, mock_page)
    sink.unbind()
