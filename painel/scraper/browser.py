"""Browser capabilities used by the report scraper, backed by Playwright."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Protocol

from playwright.async_api import Browser, Page, async_playwright
from playwright.async_api import TimeoutError as PWTimeout

from . import config
from .logging_utils import _scraper_event


class ReportPage(Protocol):
    """What the report pipeline needs from a browser tab."""

    async def navigate(self, url: str, *, timeout_ms: int) -> None: ...

    async def wait_until_idle(self, *, timeout_ms: Optional[int] = None) -> None: ...

    async def pause(self, seconds: float) -> None: ...

    async def is_visible(self, selector: str, *, timeout_ms: int) -> bool: ...

    async def hover(self, selector: str, *, timeout_ms: int) -> None: ...

    async def count(self, selector: str) -> int: ...

    async def read_texts(self, selector: str) -> List[str]: ...

    async def click(self, selector: str, *, index: int = 0) -> None: ...

    async def select_option(self, selector: str, label: str) -> None: ...

    async def wait_for_attached(self, selector: str, *, timeout_ms: int) -> None: ...

    async def evaluate(self, script: str) -> Any: ...

    async def html(self) -> str: ...


class PlaywrightReportPage:
    """``ReportPage`` over a Playwright ``Page``."""

    def __init__(self, page: Page) -> None:
        self._page = page

    async def navigate(self, url: str, *, timeout_ms: int) -> None:
        await self._page.goto(url, wait_until="networkidle", timeout=timeout_ms)

    async def wait_until_idle(self, *, timeout_ms: Optional[int] = None) -> None:
        await self._page.wait_for_load_state("networkidle", timeout=timeout_ms)

    async def pause(self, seconds: float) -> None:
        if seconds > 0:
            await self._page.wait_for_timeout(seconds * 1000)

    async def is_visible(self, selector: str, *, timeout_ms: int) -> bool:
        try:
            await self._page.locator(selector).first.wait_for(state="visible", timeout=timeout_ms)
        except PWTimeout:
            return False
        return True

    async def hover(self, selector: str, *, timeout_ms: int) -> None:
        await self._page.locator(selector).first.hover(timeout=timeout_ms)

    async def count(self, selector: str) -> int:
        return await self._page.locator(selector).count()

    async def read_texts(self, selector: str) -> List[str]:
        return await self._page.locator(selector).all_inner_texts()

    async def click(self, selector: str, *, index: int = 0) -> None:
        await self._page.locator(selector).nth(index).click()

    async def select_option(self, selector: str, label: str) -> None:
        await self._page.locator(selector).first.select_option(label=label)

    async def wait_for_attached(self, selector: str, *, timeout_ms: int) -> None:
        await self._page.wait_for_selector(selector, timeout=timeout_ms, state="attached")

    async def evaluate(self, script: str) -> Any:
        return await self._page.evaluate(script)

    async def html(self) -> str:
        return await self._page.content()


class PlaywrightSession:
    """One Chromium process; one isolated context per report."""

    def __init__(self, browser: Browser, bearer_token: str) -> None:
        self._browser = browser
        self._bearer_token = bearer_token

    @asynccontextmanager
    async def open_page(self) -> AsyncIterator[PlaywrightReportPage]:
        context = await self._browser.new_context(
            extra_http_headers={"Authorization": f"Bearer {self._bearer_token}"},
            viewport=dict(config.VIEWPORT),
        )
        try:
            page = await context.new_page()
            yield PlaywrightReportPage(page)
        finally:
            await context.close()


@asynccontextmanager
async def launch_session(bearer_token: str) -> AsyncIterator[PlaywrightSession]:
    """Launch headless Chromium for the lifetime of one task."""

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=config.HEADLESS,
            args=list(config.BROWSER_ARGS),
        )
        _scraper_event("state", phase="browser", kind="launched", headless=config.HEADLESS)
        try:
            yield PlaywrightSession(browser, bearer_token)
        finally:
            try:
                await browser.close()
            except Exception as exc:  # noqa: BLE001
                _scraper_event("error", phase="browser", kind="close_failed", error=str(exc))


__all__ = [
    "ReportPage",
    "PlaywrightReportPage",
    "PlaywrightSession",
    "launch_session",
]
