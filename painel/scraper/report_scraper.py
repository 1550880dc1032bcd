"""Extraction of case numbers and progress from one Digesto report page.

The vendor page is an Angular app rendering a ui-grid. Every step runs inside
its own browser context, strictly one after the other:

1. navigate to the report detail page;
2. reveal the "Pedido de atualização" view (best-effort);
3. filter the Status column to "Não atualizados" (best-effort);
4. raise the page size to 1000 (best-effort);
5. read numbers from the Angular scope, or scroll the grid as a fallback;
6. read the "Progresso" percentage.
"""
from __future__ import annotations

import re
from typing import Awaitable, Callable, List, Optional

from bs4 import BeautifulSoup

from . import config
from .browser import ReportPage
from .cache import ReportData
from .cnj import only_digits
from .logging_utils import _scraper_event

UPDATE_REQUEST_LINK = "a:has-text('Pedido de atualização')"
STATUS_HEADER_CELL = ".ui-grid-header-cell:has-text('Status')"
STATUS_HEADER_BUTTONS = f"{STATUS_HEADER_CELL} button"
STATUS_HEADER_MENU_ICON = f"{STATUS_HEADER_CELL} .ui-grid-icon-menu"
NOT_UPDATED_OPTION = r'div.ui-grid-cell-contents:text-matches("N[ãa]o\s+Atualizado(s)?", "i")'
FILTER_ACTION_BUTTON = "button:has-text('Filtrar')"
GENERIC_FILTER_BUTTON = "button.ui-grid-filter-button"
PAGE_SIZE_SELECT = "select[ng-model='grid.options.paginationPageSize']"
GRID_ROWS = ".ui-grid-canvas div[role='row']"

NUMBER_PATTERN = re.compile(r"\d{10,}")
PROGRESS_PATTERN = re.compile(r"(\d{1,3})%")
PROGRESS_LABEL = "Progresso"
DEFAULT_PROGRESS = "0%"


class ReportExtractionError(Exception):
    """The report grid never rendered any rows."""


# Serialised ``row.entity`` for every row ui-grid holds, rendered or not.
GRID_SCOPE_SCRIPT = """
() => {
    try {
        const gridElem = document.querySelector('.ui-grid-canvas');
        if (!gridElem || typeof angular === 'undefined') return null;
        const scope = angular.element(gridElem).scope();
        if (!scope || !scope.grid || !scope.grid.rows) return null;
        return scope.grid.rows.map(row => JSON.stringify(row.entity));
    } catch (e) {
        return null;
    }
}
"""

FIRST_CELL_TEXTS_SCRIPT = """
() => Array.from(document.querySelectorAll(".ui-grid-canvas div[role='row']")).map(row => {
    const cell = row.querySelector("div[role='gridcell']");
    return cell ? cell.innerText : null;
})
"""

SCROLL_GRID_SCRIPT = """
() => {
    const container = document.querySelector('.ui-grid-viewport');
    if (container) {
        container.scrollTop += container.clientHeight;
    } else {
        window.scrollBy(0, window.innerHeight);
    }
}
"""


def report_url_for(report_id: str) -> str:
    """Six-digit ids are saved reports; anything else is a virtual report."""

    if len(report_id) == 6:
        return f"{config.DIGESTO_REPORT_URL}{report_id}"
    return f"{config.DIGESTO_VIRTUAL_REPORT_URL}{report_id}"


async def _best_effort(step: str, report_id: str, action: Callable[[], Awaitable[None]]) -> bool:
    """Run an optional UI step; failures are logged and the pipeline continues."""

    try:
        await action()
    except Exception as exc:  # noqa: BLE001
        _scraper_event(
            "state",
            phase="best_effort",
            kind="skipped",
            step=step,
            report_id=report_id,
            error=f"{type(exc).__name__}: {exc}",
        )
        return False
    return True


async def reveal_update_request(page: ReportPage) -> None:
    if await page.is_visible(UPDATE_REQUEST_LINK, timeout_ms=config.PLAYWRIGHT_ELEMENT_TIMEOUT_MS):
        await page.click(UPDATE_REQUEST_LINK)


async def apply_status_filter(page: ReportPage) -> None:
    """Keep only rows whose Status is "Não atualizado(s)"."""

    await page.hover(STATUS_HEADER_CELL, timeout_ms=config.PLAYWRIGHT_HOVER_TIMEOUT_MS)

    labels = await page.read_texts(STATUS_HEADER_BUTTONS)
    if labels:
        index = next((i for i, label in enumerate(labels) if "..." in label), 0)
        await page.click(STATUS_HEADER_BUTTONS, index=index)
    else:
        await page.click(STATUS_HEADER_MENU_ICON)

    await page.pause(config.FILTER_MENU_PAUSE_SECONDS)

    if await page.count(NOT_UPDATED_OPTION) > 0:
        await page.click(NOT_UPDATED_OPTION)

    if await page.count(FILTER_ACTION_BUTTON) > 0:
        await page.click(FILTER_ACTION_BUTTON)
    elif await page.count(GENERIC_FILTER_BUTTON) > 0:
        await page.click(GENERIC_FILTER_BUTTON)

    await page.pause(config.FILTER_APPLY_PAUSE_SECONDS)


async def set_page_size(page: ReportPage) -> None:
    if await page.count(PAGE_SIZE_SELECT) > 0:
        await page.select_option(PAGE_SIZE_SELECT, config.PAGE_SIZE_LABEL)
        await page.pause(config.PAGINATION_PAUSE_SECONDS)


async def numbers_from_grid_scope(page: ReportPage) -> List[str]:
    raw_rows = await page.evaluate(GRID_SCOPE_SCRIPT)
    if not raw_rows:
        return []

    found: dict[str, None] = {}
    for text in raw_rows:
        for match in NUMBER_PATTERN.findall(text or ""):
            found.setdefault(match, None)
    return list(found)


async def numbers_from_scrolling(page: ReportPage) -> List[str]:
    """Read the first cell of rendered rows while scrolling the virtualised grid."""

    try:
        await page.wait_for_attached(GRID_ROWS, timeout_ms=config.PLAYWRIGHT_ROWS_TIMEOUT_MS)
    except Exception as exc:  # noqa: BLE001
        raise ReportExtractionError(f"Grid sem linhas: {exc}") from exc

    found: dict[str, None] = {}
    last_count = 0
    unchanged = 0
    for _ in range(config.MAX_SCROLL_ATTEMPTS):
        for text in await page.evaluate(FIRST_CELL_TEXTS_SCRIPT) or []:
            text = (text or "").strip()
            if text and NUMBER_PATTERN.search(only_digits(text)):
                found.setdefault(text, None)

        if len(found) == last_count:
            unchanged += 1
        else:
            unchanged = 0
        last_count = len(found)

        if unchanged >= config.MAX_SCROLLS_WITHOUT_CHANGE:
            break

        await page.evaluate(SCROLL_GRID_SCRIPT)
        await page.pause(config.SCROLL_PAUSE_SECONDS)

    return list(found)


async def extract_numbers(page: ReportPage, report_id: str = "") -> List[str]:
    try:
        numbers = await numbers_from_grid_scope(page)
    except Exception as exc:  # noqa: BLE001
        _scraper_event(
            "state",
            phase="extract",
            kind="scope_failed",
            report_id=report_id,
            error=f"{type(exc).__name__}: {exc}",
        )
        numbers = []

    if numbers:
        _scraper_event("state", phase="extract", kind="scope", report_id=report_id, count=len(numbers))
        return numbers

    numbers = await numbers_from_scrolling(page)
    _scraper_event("state", phase="extract", kind="scroll", report_id=report_id, count=len(numbers))
    return numbers


def progress_from_html(html: str) -> str:
    """Return the "Progresso" percentage found in ``html`` or ``"0%"``."""

    soup = BeautifulSoup(html or "", "html5lib")

    for row in soup.find_all("tr"):
        text = row.get_text(" ", strip=True)
        if PROGRESS_LABEL in text:
            match = PROGRESS_PATTERN.search(text)
            if match:
                return f"{match.group(1)}%"
            break

    containing = [el for el in soup.find_all(True) if PROGRESS_LABEL in el.get_text(" ", strip=True)]
    if containing:
        match = PROGRESS_PATTERN.search(containing[-1].get_text(" ", strip=True))
        if match:
            return f"{match.group(1)}%"

    return DEFAULT_PROGRESS


async def extract_progress(page: ReportPage) -> str:
    return progress_from_html(await page.html())


async def scrape_report(
    page: ReportPage, report_id: str, *, url: Optional[str] = None
) -> ReportData:
    """Run the full extraction for one report on an already-open page."""

    url = url or report_url_for(report_id)
    _scraper_event("state", phase="report", kind="navigate", report_id=report_id, url=url)

    await page.navigate(url, timeout_ms=config.PLAYWRIGHT_NAV_TIMEOUT_MS)
    await page.pause(config.SETTLE_AFTER_NAV_SECONDS)

    await _best_effort("update_request", report_id, lambda: reveal_update_request(page))
    await page.wait_until_idle()
    await page.pause(config.SETTLE_AFTER_UPDATE_SECONDS)

    await _best_effort("status_filter", report_id, lambda: apply_status_filter(page))
    await _best_effort("page_size", report_id, lambda: set_page_size(page))

    numbers = await extract_numbers(page, report_id)
    progress = await extract_progress(page)
    return ReportData(numbers=numbers, progress=progress)


__all__ = [
    "ReportExtractionError",
    "report_url_for",
    "reveal_update_request",
    "apply_status_filter",
    "set_page_size",
    "numbers_from_grid_scope",
    "numbers_from_scrolling",
    "extract_numbers",
    "progress_from_html",
    "extract_progress",
    "scrape_report",
]
