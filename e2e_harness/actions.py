"""
Page Actions

Wraps Playwright operations on a single page. Every operation records
exactly one step in the test's report: PASS when it completes, FAIL (with a
screenshot attempt) when it raises. Failures are re-raised unchanged so the
test fails the normal way.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Pattern, Union

from .reporting import ReportContext

logger = logging.getLogger(__name__)


class ActionStatus(Enum):
    """Status of an executed action"""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass
class ActionResult:
    """Result of executing an action"""
    status: ActionStatus
    action: str
    selector: str
    execution_time_ms: int
    error_message: Optional[str] = None


class PageActions:
    """
    Reporting wrapper around a Playwright page.

    Mutating operations return the wrapper so calls can be chained;
    queries return their value.
    """

    def __init__(self, page, report: ReportContext):
        if page is None:
            raise ValueError("Playwright page must not be None")
        self.page = page
        self.report = report
        self.history: List[ActionResult] = []

    # ==================== Internal helpers ====================

    async def _log_action(self, description: str):
        result = await self.report.step_pass(description)
        if not result.ok:
            self.report.step_info(f"Action logged without screenshot: {description}")

    async def _execute(
        self,
        action: str,
        selector: str,
        action_fn: Callable[[], Awaitable],
        description: Union[str, Callable[[object], str]],
    ):
        """Run one operation, record its step, return the operation's value."""
        start_time = time.monotonic()
        try:
            value = await action_fn()
        except Exception as e:
            self._record(action, selector, start_time, e)
            logger.info(f"{action} failed on {selector}: {e}")
            await self.report.step_fail(f"{action} → {selector} failed: {e}")
            raise

        self._record(action, selector, start_time)
        text = description(value) if callable(description) else description
        await self._log_action(text)
        return value

    def _record(self, action: str, selector: str, start_time: float,
                error: Optional[Exception] = None):
        if error is None:
            status = ActionStatus.SUCCESS
        elif "timeout" in str(error).lower():
            status = ActionStatus.TIMEOUT
        else:
            status = ActionStatus.ERROR
        self.history.append(ActionResult(
            status=status,
            action=action,
            selector=selector,
            execution_time_ms=int((time.monotonic() - start_time) * 1000),
            error_message=str(error) if error else None,
        ))

    def _locator(self, selector: str):
        return self.page.locator(selector)

    # ==================== Navigation ====================

    async def navigate(self, url: str) -> "PageActions":
        await self._execute("Navigate", url, lambda: self.page.goto(url), f"Navigate → {url}")
        return self

    async def reload(self) -> "PageActions":
        await self._execute(
            "Reload", self.page.url,
            lambda: self.page.reload(wait_until="domcontentloaded"),
            "Reload page",
        )
        return self

    async def go_back(self) -> "PageActions":
        await self._execute(
            "GoBack", self.page.url,
            lambda: self.page.go_back(wait_until="domcontentloaded"),
            "Navigate back",
        )
        return self

    async def go_forward(self) -> "PageActions":
        await self._execute(
            "GoForward", self.page.url,
            lambda: self.page.go_forward(wait_until="domcontentloaded"),
            "Navigate forward",
        )
        return self

    async def wait_for_load_state(self, state: str = "load") -> "PageActions":
        await self._execute(
            "WaitForLoadState", state,
            lambda: self.page.wait_for_load_state(state),
            f"WaitForLoadState → {state}",
        )
        return self

    # ==================== Click ====================

    async def click(self, selector: str) -> "PageActions":
        await self._execute(
            "Click", selector,
            lambda: self._locator(selector).first.click(),
            f"Click → {selector}",
        )
        return self

    async def safe_click(self, selector: str, retries: int = 3, retry_delay: float = 0.5) -> "PageActions":
        """
        Click with bounded retries.

        Tries up to ``max(1, retries)`` times, sleeping ``retry_delay``
        seconds between attempts, and raises the last failure.
        """
        attempts = max(1, retries)

        async def click_with_retries():
            for attempt in range(1, attempts + 1):
                try:
                    await self._locator(selector).click()
                    return attempt
                except Exception as e:
                    if attempt == attempts:
                        raise
                    logger.debug(f"SafeClick attempt {attempt}/{attempts} on {selector} failed: {e}")
                    await asyncio.sleep(retry_delay)

        await self._execute(
            "SafeClick", selector, click_with_retries,
            lambda attempt: f"SafeClick → {selector} (attempt {attempt})",
        )
        return self

    # ==================== Input ====================

    async def fill(self, selector: str, value: str) -> "PageActions":
        await self._execute(
            "Fill", selector,
            lambda: self._locator(selector).fill(value),
            f"Fill → {selector} = {value}",
        )
        return self

    # ==================== Text ====================

    async def get_text(self, selector: str) -> str:
        return await self._execute(
            "GetText", selector,
            lambda: self._locator(selector).inner_text(),
            lambda text: f"GetText → {selector} = {text}",
        )

    async def get_all_texts(self, selector: str) -> List[str]:
        return await self._execute(
            "GetAllTexts", selector,
            lambda: self._locator(selector).all_inner_texts(),
            f"GetAllTexts → {selector}",
        )

    # ==================== Waits ====================

    async def wait_for_visible(self, selector: str, timeout_ms: Optional[float] = None) -> "PageActions":
        await self._execute(
            "WaitForVisible", selector,
            lambda: self._locator(selector).wait_for(state="visible", timeout=timeout_ms),
            f"WaitForVisible → {selector}",
        )
        return self

    async def wait_for_hidden(self, selector: str, timeout_ms: Optional[float] = None) -> "PageActions":
        await self._execute(
            "WaitForHidden", selector,
            lambda: self._locator(selector).wait_for(state="hidden", timeout=timeout_ms),
            f"WaitForHidden → {selector}",
        )
        return self

    # ==================== Page info ====================

    async def get_title(self) -> str:
        return await self._execute(
            "GetTitle", "page", lambda: self.page.title(),
            lambda title: f"GetTitle → {title}",
        )

    # ==================== Browser context ====================

    async def clear_cookies(self) -> "PageActions":
        await self._execute("ClearCookies", "context", lambda: self.page.context.clear_cookies(),
                            "Clear cookies")
        return self

    async def clear_local_storage(self) -> "PageActions":
        await self._execute("ClearLocalStorage", "page",
                            lambda: self.page.evaluate("() => localStorage.clear()"),
                            "Clear local storage")
        return self

    async def open_new_tab(self):
        return await self._execute("NewTab", "context", lambda: self.page.context.new_page(),
                                   "Open new tab")

    # ==================== Dropdowns ====================

    async def select_by_value(self, selector: str, value: str) -> "PageActions":
        await self._execute(
            "SelectByValue", selector,
            lambda: self._locator(selector).select_option(value=value),
            f"SelectByValue → {selector} = {value}",
        )
        return self

    async def select_by_text(self, selector: str, text: str) -> "PageActions":
        await self._execute(
            "SelectByText", selector,
            lambda: self._locator(selector).select_option(label=text),
            f"SelectByText → {selector} = {text}",
        )
        return self

    # ==================== Checkbox / Radio ====================

    async def check(self, selector: str) -> "PageActions":
        await self._execute("Check", selector, lambda: self._locator(selector).check(),
                            f"Check → {selector}")
        return self

    async def uncheck(self, selector: str) -> "PageActions":
        await self._execute("Uncheck", selector, lambda: self._locator(selector).uncheck(),
                            f"Uncheck → {selector}")
        return self

    async def select_radio(self, selector: str) -> "PageActions":
        await self._execute("SelectRadio", selector, lambda: self._locator(selector).check(),
                            f"SelectRadio → {selector}")
        return self

    # ==================== State checks ====================

    async def is_visible(self, selector: str) -> bool:
        return await self._execute(
            "IsVisible", selector, lambda: self._locator(selector).is_visible(),
            lambda result: f"IsVisible → {selector} = {result}",
        )

    async def is_enabled(self, selector: str) -> bool:
        return await self._execute(
            "IsEnabled", selector, lambda: self._locator(selector).is_enabled(),
            lambda result: f"IsEnabled → {selector} = {result}",
        )

    async def is_disabled(self, selector: str) -> bool:
        return await self._execute(
            "IsDisabled", selector, lambda: self._locator(selector).is_disabled(),
            lambda result: f"IsDisabled → {selector} = {result}",
        )

    async def is_checked(self, selector: str) -> bool:
        return await self._execute(
            "IsChecked", selector, lambda: self._locator(selector).is_checked(),
            lambda result: f"IsChecked → {selector} = {result}",
        )

    # ==================== Assertions ====================

    async def assert_visible(self, selector: str, timeout_ms: Optional[float] = None) -> "PageActions":
        await self._execute(
            "AssertVisible", selector,
            lambda: self._locator(selector).wait_for(state="visible", timeout=timeout_ms),
            f"AssertVisible → {selector}",
        )
        return self

    async def assert_title(self, expected: str) -> "PageActions":
        async def check_title():
            actual = await self.page.title()
            assert actual == expected, f"Page title mismatch: expected '{expected}' but got '{actual}'"

        await self._execute("AssertTitle", "page", check_title, f"AssertTitle → {expected}")
        return self

    async def assert_url_contains(self, value: str) -> "PageActions":
        async def check_url():
            assert value in self.page.url, f"Expected URL to contain: {value}"

        await self._execute("AssertUrlContains", "page", check_url, f"AssertUrlContains → {value}")
        return self

    async def assert_enabled(self, selector: str) -> "PageActions":
        async def check_enabled():
            locator = self._locator(selector)
            await locator.wait_for(state="visible")
            assert await locator.is_enabled(), f"Expected element to be enabled: {selector}"

        await self._execute("AssertEnabled", selector, check_enabled, f"AssertEnabled → {selector}")
        return self

    async def assert_checked(self, selector: str) -> "PageActions":
        async def check_checked():
            assert await self._locator(selector).is_checked(), f"Expected element to be checked: {selector}"

        await self._execute("AssertChecked", selector, check_checked, f"AssertChecked → {selector}")
        return self

    async def assert_has_text(self, selector: str, expected: Union[str, Pattern]) -> "PageActions":
        """Exact text match for strings, ``search`` semantics for compiled patterns."""
        async def check_text():
            text = (await self._locator(selector).inner_text()).strip()
            if isinstance(expected, str):
                assert text == expected, f"Expected text '{expected}' but found '{text}'"
            else:
                assert expected.search(text), f"Text '{text}' does not match /{expected.pattern}/"

        if isinstance(expected, str):
            description = f"AssertHasText → {selector} = {expected}"
        else:
            description = f"AssertHasText (regex) → {selector}"
        await self._execute("AssertHasText", selector, check_text, description)
        return self

    # ==================== Dialogs ====================

    async def _register_dialog(self, handler, description: str) -> "PageActions":
        async def register():
            self.page.once("dialog", handler)

        await self._execute("Dialog", "dialog", register, description)
        return self

    async def accept_next_alert(self) -> "PageActions":
        async def accept(dialog):
            await dialog.accept()

        return await self._register_dialog(accept, "Register Alert → Accept")

    async def dismiss_next_alert(self) -> "PageActions":
        async def dismiss(dialog):
            await dialog.dismiss()

        return await self._register_dialog(dismiss, "Register Alert → Dismiss")

    async def handle_next_prompt(self, value: str) -> "PageActions":
        async def answer(dialog):
            if dialog.type == "prompt":
                await dialog.accept(value)
            else:
                await dialog.accept()

        return await self._register_dialog(answer, f"Register Prompt Handler → {value}")
