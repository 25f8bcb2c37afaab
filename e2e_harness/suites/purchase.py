"""
Login and checkout flow.

Rows come from the configured workbook (``data.file`` / ``data.sheet``), or
a single row built from ``login.username`` / ``login.password``.
"""

import logging
from typing import List, Tuple

from ..config import RunSettings
from ..context import TestContext
from ..data import read_sheet
from ..errors import TestSkipped
from ..suite import TestSuite

logger = logging.getLogger(__name__)

suite = TestSuite("LoginTest")


def login_data(settings: RunSettings) -> List[Tuple[str, ...]]:
    if settings.data_file:
        return read_sheet(settings.data_file, settings.data_sheet)
    if settings.username:
        return [(settings.username, settings.password or "")]
    logger.warning("[WARN] No login data configured (data.file or login.username)")
    return []


@suite.test(
    name="valid_login_and_checkout_test",
    description="Data-driven login and checkout flow",
    data=login_data,
)
async def valid_login_and_checkout_test(ctx: TestContext, username: str, password: str):
    if not ctx.settings.base_url:
        raise TestSkipped("base.url is not configured")
    checkout_data = ctx.settings.checkout

    login = ctx.open("login")
    await login.open(ctx.settings.base_url)
    await login.enter_username(username)
    await login.enter_password(password)

    products = await login.click_login()
    await products.add_to_cart()

    cart = await products.go_to_cart()
    await cart.validate_cart_page()

    checkout = await cart.click_checkout()
    await checkout.enter_full_name(checkout_data.full_name)
    await checkout.enter_address(checkout_data.address)
    await checkout.enter_card_number(checkout_data.card_number)
    await checkout.enter_expiry(checkout_data.card_expiry)
    await checkout.enter_cvc(checkout_data.card_cvc)
    await checkout.click_pay()

    overview = await checkout.click_confirm()
    await overview.validate_overview_details()
    await overview.click_logout()
