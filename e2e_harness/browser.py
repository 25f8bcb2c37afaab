"""
Browser Resource Manager

Owns the one Playwright driver and browser per run and hands out isolated
contexts/pages to tests. Launch is single-flight: concurrent callers of
start() share a single launch.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from .errors import BrowserLaunchError

logger = logging.getLogger(__name__)

MAXIMIZED_VIEWPORT = {"width": 1920, "height": 1080}


class BrowserKind(str, Enum):
    """Browser choices accepted in the ``browser`` config key."""
    CHROME = "chrome"
    MSEDGE = "msedge"
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "BrowserKind":
        """Case-insensitive lookup, chrome for blank or unknown values."""
        if not value or not value.strip():
            return cls.CHROME
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning(f"[WARN] Unknown browser {value!r}, falling back to chrome")
            return cls.CHROME

    @property
    def engine(self) -> str:
        """Name of the Playwright browser type attribute."""
        if self in (BrowserKind.FIREFOX, BrowserKind.WEBKIT):
            return self.value
        return "chromium"

    @property
    def channel(self) -> Optional[str]:
        if self in (BrowserKind.CHROME, BrowserKind.MSEDGE):
            return self.value
        return None

    @property
    def is_chromium(self) -> bool:
        return self.engine == "chromium"


def launch_options(kind: BrowserKind, headless: bool, maximize: bool) -> Dict[str, Any]:
    options: Dict[str, Any] = {"headless": headless}
    if kind.channel:
        options["channel"] = kind.channel
    # True maximize is only supported by chromium-based engines
    if maximize and kind.is_chromium:
        options["args"] = ["--start-maximized"]
    return options


def context_options(kind: BrowserKind, maximize: bool) -> Dict[str, Any]:
    if not maximize:
        return {}
    if kind.is_chromium:
        return {"no_viewport": True}
    return {"viewport": dict(MAXIMIZED_VIEWPORT)}


class IsolatedSession:
    """A browser context and its single page, owned by one test."""

    def __init__(self, context: BrowserContext, page: Page):
        self.context = context
        self.page = page
        self.closed = False

    async def close(self):
        """Close the context (and with it the page). Idempotent."""
        if self.closed:
            return
        self.closed = True
        await self.context.close()

    async def __aenter__(self) -> "IsolatedSession":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class BrowserManager:
    """
    Process-wide browser handle.

    Features:
    - Single-flight launch guarded by an asyncio lock
    - Fresh, independent context per call to new_context()
    - Idempotent stop(), safe without a prior start()
    """

    def __init__(
        self,
        kind: BrowserKind = BrowserKind.CHROME,
        headless: bool = False,
        maximize: bool = False,
        default_timeout_ms: Optional[int] = None,
    ):
        self.kind = kind
        self.headless = headless
        self.maximize = maximize
        self.default_timeout_ms = default_timeout_ms

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        self.launch_count = 0

    @classmethod
    def from_settings(cls, settings) -> "BrowserManager":
        return cls(
            kind=BrowserKind.from_string(settings.browser),
            headless=settings.headless,
            maximize=settings.maximize_window,
            default_timeout_ms=settings.timeout_ms or None,
        )

    @property
    def started(self) -> bool:
        return self._browser is not None

    async def start(self) -> Browser:
        """Launch the browser once. Later and concurrent calls reuse it."""
        if self._browser is not None:
            return self._browser

        async with self._lock:
            if self._browser is not None:
                return self._browser

            logger.info(
                f"Launching browser: {self.kind.value} | Headless: {self.headless} | "
                f"Maximize: {self.maximize}"
            )
            try:
                self._playwright = await async_playwright().start()
                browser_type = getattr(self._playwright, self.kind.engine)
                self._browser = await browser_type.launch(
                    **launch_options(self.kind, self.headless, self.maximize)
                )
            except Exception as e:
                logger.error(f"[ERR] Failed to launch browser: {e}")
                try:
                    await self._shutdown_driver()
                except Exception as stop_error:
                    logger.warning(f"[WARN] Error stopping Playwright after failed launch: {stop_error}")
                raise BrowserLaunchError(f"Failed to launch {self.kind.value}: {e}") from e

            self.launch_count += 1
            logger.info("[OK] Browser launched")
            return self._browser

    async def new_context(self) -> BrowserContext:
        """A fresh isolated browsing context from the shared browser."""
        browser = await self.start()
        options = context_options(self.kind, self.maximize)
        if "viewport" in options:
            logger.debug("Viewport set to 1920x1080 (non-Chromium browser)")
        context = await browser.new_context(**options)
        if self.default_timeout_ms:
            context.set_default_timeout(self.default_timeout_ms)
        return context

    async def new_session(self) -> IsolatedSession:
        """A fresh context with one page. The context is closed if the page can't be opened."""
        context = await self.new_context()
        try:
            page = await context.new_page()
        except Exception:
            await context.close()
            raise
        return IsolatedSession(context, page)

    async def stop(self):
        """Close the browser and the driver. Idempotent."""
        async with self._lock:
            if self._browser is None and self._playwright is None:
                return
            try:
                if self._browser is not None:
                    await self._browser.close()
            finally:
                self._browser = None
                await self._shutdown_driver()
                logger.info("Playwright shutdown completed")

    async def _shutdown_driver(self):
        playwright, self._playwright = self._playwright, None
        if playwright is not None:
            await playwright.stop()
