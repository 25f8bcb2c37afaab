"""Selectors for the demo shop. Kept in one place so pages stay free of literals."""

# Login page
USERNAME_INPUT = "#loginUsername"
PASSWORD_INPUT = "#loginPassword"
LOGIN_BUTTON = "[type='submit']"
ERROR_MESSAGE = "#errorMsg"
LOG_OUT = "#logoutBtn"

# Products page
PRODUCTS_TITLE = "//*[@class='inventory-top']/h2"
FIRST_PRODUCT_ADD_BTN = "[data-id='p3']"
CART_BUTTON = "#cartBtn"

# Cart page
CART_TITLE = "//*[@class='container']/h2"
CHECKOUT_BTN = "#checkoutBtn"

# Checkout information page
FULL_NAME = "#fullName"
ADDRESS = "#address"
CARD_NUMBER = "#cardNumber"
EXPIRY = "#expiry"
CVC = "#cvc"
PAY_BUTTON = ".btn.primary"
CONFIRM_BUTTON = "[onclick='confirmPayment()']"

# Checkout overview page
ORDER_DESCRIPTION = "#orderDetails"
SHIPPING_INFO = "#orderDetails"
FINISH_BUTTON = "#finishBtn"

# Checkout complete page
THANK_YOU_MESSAGE = "#thankYouMsg"
