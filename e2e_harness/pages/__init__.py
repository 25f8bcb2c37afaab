"""
Page Objects

Fluent page objects for the demo shop purchase flow, plus the registry
that builds them for a test.
"""

from .base import BasePage
from .registry import PageRegistry, default_registry
from .shop import CartPage, CheckoutOverviewPage, CheckoutPage, LoginPage, ProductsPage

__all__ = [
    "BasePage",
    "PageRegistry",
    "default_registry",
    "LoginPage",
    "ProductsPage",
    "CartPage",
    "CheckoutPage",
    "CheckoutOverviewPage",
]
