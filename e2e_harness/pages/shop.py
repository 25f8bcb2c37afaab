"""
Page objects for the purchase flow.

    LoginPage -> ProductsPage -> CartPage -> CheckoutPage
        -> CheckoutOverviewPage -> LoginPage

Operations that stay on a page return that page; operations that navigate
return the next page object.
"""

import logging

from . import locators
from .base import BasePage

logger = logging.getLogger(__name__)


class LoginPage(BasePage):

    async def open(self, url: str) -> "LoginPage":
        await self.actions.navigate(url)
        return self

    async def enter_username(self, username: str) -> "LoginPage":
        await self.actions.fill(locators.USERNAME_INPUT, username)
        return self

    async def enter_password(self, password: str) -> "LoginPage":
        await self.actions.fill(locators.PASSWORD_INPUT, password)
        return self

    async def click_login(self) -> "ProductsPage":
        await self.actions.click(locators.LOGIN_BUTTON)
        return self.goto(ProductsPage)

    async def get_error_message(self) -> str:
        return await self.actions.get_text(locators.ERROR_MESSAGE)


class ProductsPage(BasePage):
    """Product listing shown after a successful login."""

    async def validate_products_page(self) -> "ProductsPage":
        await self.actions.assert_visible(locators.PRODUCTS_TITLE)
        return self

    async def add_to_cart(self) -> "ProductsPage":
        await self.actions.click(locators.FIRST_PRODUCT_ADD_BTN)
        return self

    async def go_to_cart(self) -> "CartPage":
        await self.actions.click(locators.CART_BUTTON)
        return self.goto(CartPage)


class CartPage(BasePage):

    async def validate_cart_page(self) -> "CartPage":
        await self.actions.assert_visible(locators.CART_TITLE)
        return self

    async def click_checkout(self) -> "CheckoutPage":
        await self.actions.click(locators.CHECKOUT_BTN)
        return self.goto(CheckoutPage)


class CheckoutPage(BasePage):
    """Payment form. Values are passed in by the test, never hard-coded here."""

    async def enter_full_name(self, full_name: str) -> "CheckoutPage":
        await self.actions.fill(locators.FULL_NAME, full_name)
        return self

    async def enter_address(self, address: str) -> "CheckoutPage":
        await self.actions.fill(locators.ADDRESS, address)
        return self

    async def enter_card_number(self, card_number: str) -> "CheckoutPage":
        await self.actions.fill(locators.CARD_NUMBER, card_number)
        return self

    async def enter_expiry(self, expiry: str) -> "CheckoutPage":
        await self.actions.fill(locators.EXPIRY, expiry)
        return self

    async def enter_cvc(self, cvc: str) -> "CheckoutPage":
        await self.actions.fill(locators.CVC, cvc)
        return self

    async def click_pay(self) -> "CheckoutPage":
        await self.actions.click(locators.PAY_BUTTON)
        return self

    async def click_confirm(self) -> "CheckoutOverviewPage":
        await self.actions.click(locators.CONFIRM_BUTTON)
        return self.goto(CheckoutOverviewPage)


class CheckoutOverviewPage(BasePage):

    async def validate_overview_details(self) -> "CheckoutOverviewPage":
        await self.actions.assert_visible(locators.ORDER_DESCRIPTION)
        details = await self.actions.get_text(locators.ORDER_DESCRIPTION)
        logger.info(f"Order details: {details}")
        return self

    async def click_logout(self) -> LoginPage:
        await self.actions.click(locators.LOG_OUT)
        return self.goto(LoginPage)
