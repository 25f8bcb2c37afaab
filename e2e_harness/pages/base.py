"""
Base Page

Common navigation, wait and assertion helpers shared by every page object.
Page-specific locators and flow belong in the concrete pages. Every browser
call goes through PageActions so that it is reported as a step.
"""

import logging

from ..actions import PageActions
from ..browser import IsolatedSession
from ..reporting import ReportContext

logger = logging.getLogger(__name__)


class BasePage:
    """Holds the session's page and the reporting action wrapper."""

    def __init__(self, session: IsolatedSession, report: ReportContext):
        self.session = session
        self.page = session.page
        self.report = report
        self.actions = PageActions(self.page, report)

    def goto(self, page_cls):
        """Next page object in the flow, sharing this page's session and report."""
        return page_cls(self.session, self.report)

    # ==================== Navigation ====================

    async def navigate_to(self, url: str):
        await self.actions.navigate(url)

    async def refresh(self):
        await self.actions.reload()

    async def go_back(self):
        await self.actions.go_back()

    async def go_forward(self):
        await self.actions.go_forward()

    # ==================== Waits ====================

    async def wait_for_dom_load(self):
        await self.actions.wait_for_load_state("domcontentloaded")

    async def wait_for_network_idle(self):
        await self.actions.wait_for_load_state("networkidle")

    async def wait_for_visible(self, selector: str):
        await self.actions.wait_for_visible(selector)

    async def wait_for_hidden(self, selector: str):
        await self.actions.wait_for_hidden(selector)

    # ==================== Element state ====================

    async def is_visible(self, selector: str) -> bool:
        return await self.actions.is_visible(selector)

    async def is_enabled(self, selector: str) -> bool:
        return await self.actions.is_enabled(selector)

    async def is_disabled(self, selector: str) -> bool:
        return await self.actions.is_disabled(selector)

    # ==================== Page info ====================

    async def title(self) -> str:
        return await self.actions.get_title()

    @property
    def url(self) -> str:
        return self.page.url

    # ==================== Assertions ====================

    async def assert_page_title(self, expected_title: str):
        await self.actions.assert_title(expected_title)

    async def assert_url_contains(self, value: str):
        await self.actions.assert_url_contains(value)

    async def assert_visible(self, selector: str):
        await self.actions.assert_visible(selector)

    # ==================== Browser / context ====================

    async def clear_cookies(self):
        await self.actions.clear_cookies()

    async def clear_local_storage(self):
        await self.actions.clear_local_storage()

    async def open_new_tab(self):
        return await self.actions.open_new_tab()

    def open_tab_count(self) -> int:
        return len(self.session.context.pages)
