"""
Navigator: the remote-session capability the crawl is driven through.
PlaywrightNavigator drives the Identifix vehicle selector and Hotline Archives with one Chromium page.
"""
import asyncio
import logging
from contextlib import contextmanager
from typing import Protocol

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from hotline_scraper.config import (
    AXIS_SELECTORS,
    DOCUMENT_BODY_SELECTOR,
    DOCUMENT_LINK_SELECTOR,
    DOCUMENT_TITLE_SELECTOR,
    ELEMENT_TIMEOUT,
    FIX_DATA_TAB_SELECTOR,
    HEADLESS,
    HOTLINE_ARCHIVES_LINK_TEXT,
    LISTING_SETTLE_SEC,
    LOGIN_BUTTON_SELECTOR,
    LOGIN_FORM_TIMEOUT,
    LOGIN_URL,
    NAVIGATION_TIMEOUT,
    PAGE_SETTLE_SEC,
    PASSWORD,
    PASSWORD_SELECTOR,
    RESET_SETTLE_SEC,
    SELECT_SETTLE_SEC,
    SELECT_VEHICLE_SELECTOR,
    TAB_LINK_SELECTOR,
    TAB_SETTLE_SEC,
    TYPING_DELAY_MS,
    USERNAME,
    USERNAME_SELECTOR,
    VEHICLE_SELECTION_URL,
    VEHICLE_SETTLE_SEC,
)
from hotline_scraper.errors import AuthenticationError, NavigationError

logger = logging.getLogger(__name__)

LEVELS = ("year", "make", "model", "engine")
VIEWS = ("vehicle", "fix_data", "hotline_archives")


class Navigator(Protocol):
    async def authenticate(self) -> None: ...

    async def select_axis(self, level: str, value: str) -> None: ...

    async def list_options(self, level: str) -> list[tuple[str, str]]: ...

    async def activate_view(self, view_id: str) -> None: ...

    async def list_document_locators(self) -> list[str]: ...

    async def open(self, locator: str) -> None: ...

    async def extract_current_document(self) -> tuple[str, str]: ...

    async def current_location(self) -> str: ...

    async def reset(self) -> None: ...

    async def close(self) -> None: ...


@contextmanager
def _step(description: str):
    """Translate Playwright failures (timeouts, detached elements) into NavigationError."""
    try:
        yield
    except PlaywrightError as e:
        raise NavigationError(f"{description}: {e}") from e


def _build_launch_options(headless: bool):
    return {
        "headless": headless,
        "args": [
            "--start-maximized",
            "--disable-blink-features=AutomationControlled",
            "--no-sandbox",
            "--disable-dev-shm-usage",
        ],
    }


class PlaywrightNavigator:
    def __init__(self, username: str = USERNAME, password: str = PASSWORD, headless: bool = HEADLESS):
        self.username = username
        self.password = password
        self.headless = headless
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise NavigationError("Browser session not started")
        return self._page

    async def start(self) -> None:
        logger.info("Launching browser...")
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(**_build_launch_options(self.headless))
        self._context = await self._browser.new_context(no_viewport=True, locale="en-US")
        self._page = await self._context.new_page()
        self._page.set_default_navigation_timeout(NAVIGATION_TIMEOUT)
        self._page.set_default_timeout(NAVIGATION_TIMEOUT)

    async def authenticate(self) -> None:
        if not (self.username and self.password):
            raise AuthenticationError("IDENTIFIX_USERNAME and IDENTIFIX_PASSWORD must be set")
        if self._page is None:
            await self.start()
        page = self.page
        try:
            logger.info("Navigating to Identifix login page...")
            await page.goto(LOGIN_URL, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT)
            await page.wait_for_selector(USERNAME_SELECTOR, state="visible", timeout=LOGIN_FORM_TIMEOUT)
            await page.type(USERNAME_SELECTOR, self.username, delay=TYPING_DELAY_MS)
            await page.type(PASSWORD_SELECTOR, self.password, delay=TYPING_DELAY_MS)
            await page.click(LOGIN_BUTTON_SELECTOR)
        except PlaywrightError as e:
            raise AuthenticationError(f"Login form failed: {e}") from e
        try:
            await page.wait_for_load_state("networkidle", timeout=60000)
        except PlaywrightError:
            logger.info("Navigation timeout after login - checking if login was successful...")
        logger.info("Current URL after login attempt: %s", page.url)
        try:
            await page.wait_for_selector(AXIS_SELECTORS["year"], state="visible", timeout=ELEMENT_TIMEOUT)
        except PlaywrightError as e:
            raise AuthenticationError(f"Vehicle selection page not reached after login: {e}") from e
        logger.info("Login successful. Vehicle selection page loaded.")

    async def select_axis(self, level: str, value: str) -> None:
        selector = AXIS_SELECTORS[level]
        with _step(f"select {level}={value!r}"):
            await self.page.wait_for_selector(selector, state="visible", timeout=ELEMENT_TIMEOUT)
            await self.page.select_option(selector, value)
        await asyncio.sleep(SELECT_SETTLE_SEC)

    async def list_options(self, level: str) -> list[tuple[str, str]]:
        with _step(f"list {level} options"):
            options = await self.page.locator(f"{AXIS_SELECTORS[level]} option").evaluate_all(
                "els => els.map(o => ({ value: o.value, text: o.textContent }))"
            )
        return [(o.get("value") or "", o.get("text") or "") for o in options]

    async def activate_view(self, view_id: str) -> None:
        page = self.page
        if view_id == "vehicle":
            with _step("select vehicle"):
                await page.click(SELECT_VEHICLE_SELECTOR)
            await asyncio.sleep(VEHICLE_SETTLE_SEC)
        elif view_id == "fix_data":
            with _step("open Fix Data tab"):
                await page.click(FIX_DATA_TAB_SELECTOR)
                await asyncio.sleep(TAB_SETTLE_SEC)
                await page.wait_for_selector(TAB_LINK_SELECTOR, timeout=ELEMENT_TIMEOUT)
        elif view_id == "hotline_archives":
            with _step("open Hotline Archives"):
                link = page.locator(TAB_LINK_SELECTOR).filter(has_text=HOTLINE_ARCHIVES_LINK_TEXT)
                if await link.count() == 0:
                    raise NavigationError(f"{HOTLINE_ARCHIVES_LINK_TEXT!r} link not found")
                await link.first.click()
            await asyncio.sleep(LISTING_SETTLE_SEC)
        else:
            raise ValueError(f"Unknown view: {view_id}")

    async def list_document_locators(self) -> list[str]:
        with _step("list document links"):
            return await self.page.locator(DOCUMENT_LINK_SELECTOR).evaluate_all("els => els.map(a => a.href)")

    async def open(self, locator: str) -> None:
        with _step(f"open {locator}"):
            await self.page.goto(locator, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT)
        await asyncio.sleep(PAGE_SETTLE_SEC)

    async def extract_current_document(self) -> tuple[str, str]:
        with _step("extract document"):
            data = await self.page.evaluate(
                """([titleSel, bodySel]) => {
                    const vehicleInfo = document.querySelector(titleSel);
                    const contentDiv = document.querySelector(bodySel);
                    return {
                        vehicleInfo: vehicleInfo ? vehicleInfo.textContent.trim() : 'unknown',
                        content: contentDiv ? contentDiv.innerHTML : ''
                    };
                }""",
                [DOCUMENT_TITLE_SELECTOR, DOCUMENT_BODY_SELECTOR],
            )
        return data.get("vehicleInfo") or "unknown", data.get("content") or ""

    async def current_location(self) -> str:
        return self.page.url

    async def reset(self) -> None:
        """Back to a fresh vehicle selection view, ready for the next unit."""
        with _step("return to vehicle selection"):
            await self.page.goto(VEHICLE_SELECTION_URL, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT)
        logger.info("  Waiting %.0f seconds before next selection...", RESET_SETTLE_SEC)
        await asyncio.sleep(RESET_SETTLE_SEC)

    async def close(self) -> None:
        if self._context is not None:
            try:
                await self._context.close()
            except PlaywrightError:
                pass
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError:
                pass
        if self._playwright is not None:
            await self._playwright.stop()
        self._page = self._context = self._browser = self._playwright = None
