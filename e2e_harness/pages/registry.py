"""
Page registry.

Maps a page identifier to a factory taking ``(session, report)``, so tests
ask for pages by name instead of constructing classes reflectively.
"""

from typing import Callable, Dict, List

from ..browser import IsolatedSession
from ..reporting import ReportContext
from .base import BasePage
from .shop import CartPage, CheckoutOverviewPage, CheckoutPage, LoginPage, ProductsPage

PageFactory = Callable[[IsolatedSession, ReportContext], BasePage]


class PageRegistry:

    def __init__(self):
        self._factories: Dict[str, PageFactory] = {}

    def register(self, page_id: str, factory: PageFactory) -> "PageRegistry":
        if page_id in self._factories:
            raise ValueError(f"Page already registered: {page_id}")
        self._factories[page_id] = factory
        return self

    def create(self, page_id: str, session: IsolatedSession, report: ReportContext) -> BasePage:
        try:
            factory = self._factories[page_id]
        except KeyError:
            raise KeyError(f"Unknown page '{page_id}'. Registered: {', '.join(self.page_ids())}") from None
        return factory(session, report)

    def page_ids(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, page_id: str) -> bool:
        return page_id in self._factories


def default_registry() -> PageRegistry:
    return (
        PageRegistry()
        .register("login", LoginPage)
        .register("products", ProductsPage)
        .register("cart", CartPage)
        .register("checkout", CheckoutPage)
        .register("overview", CheckoutOverviewPage)
    )
