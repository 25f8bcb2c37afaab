"""Per-test context handed to every test body."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .actions import PageActions
from .browser import IsolatedSession
from .config import RunSettings
from .reporting import ReportContext

if TYPE_CHECKING:
    from .pages.registry import PageRegistry


@dataclass
class TestContext:
    """
    Everything one test execution is allowed to touch.

    Built fresh for every attempt and never shared between tests.
    """
    __test__ = False

    name: str
    session: IsolatedSession
    report: ReportContext
    actions: PageActions
    settings: RunSettings
    pages: "PageRegistry"

    @property
    def page(self):
        return self.session.page

    def open(self, page_id: str):
        """Build the page object registered under ``page_id``."""
        return self.pages.create(page_id, self.session, self.report)
