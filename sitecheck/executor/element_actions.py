"""Element actions — waits and interactions on DOM nodes located by id or XPath."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from sitecheck.errors import TransportError
from sitecheck.models.entries import ElementQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")

POLL_INTERVAL_MS = 100


def to_selector(query: ElementQuery) -> str:
    """Translate an ElementQuery into a Playwright selector."""
    if query.by == "id":
        escaped = query.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'[id="{escaped}"]'
    return f"xpath={query.value}"


def as_queries(queries: Any) -> list[ElementQuery]:
    """Accept a single query or a list of queries, as models or dicts."""
    if isinstance(queries, (ElementQuery, dict)):
        queries = [queries]
    return [q if isinstance(q, ElementQuery) else ElementQuery.model_validate(q) for q in queries]


async def wait_till_elements(page: Page, queries: list[ElementQuery], state: str, timeout_ms: int) -> None:
    """Wait until every query reaches ``state`` (attached, detached, visible, hidden)."""
    for query in queries:
        selector = to_selector(query)
        logger.debug("Waiting for %s to be %s", selector, state)
        try:
            await page.wait_for_selector(selector, state=state, timeout=timeout_ms)
        except PlaywrightError as e:
            raise TransportError(
                f"Element was not {state} after {timeout_ms}ms. Query: {query.describe()}\n{e}"
            ) from e


async def wait_till_elements_clickable(page: Page, queries: list[ElementQuery], timeout_ms: int) -> None:
    """Wait until every query is visible and enabled."""
    for query in queries:
        selector = to_selector(query)
        try:
            handle = await page.wait_for_selector(selector, state="visible", timeout=timeout_ms)
            await handle.wait_for_element_state("enabled", timeout=timeout_ms)
        except PlaywrightError as e:
            raise TransportError(
                f"Element was not clickable after {timeout_ms}ms. Query: {query.describe()}\n{e}"
            ) from e


async def wait_till_elements_not_clickable(page: Page, queries: list[ElementQuery], timeout_ms: int) -> None:
    """Wait until every query is absent, hidden or disabled."""
    for query in queries:
        selector = to_selector(query)
        deadline = time.monotonic() + timeout_ms / 1000
        while True:
            handle = await page.query_selector(selector)
            if handle is None or not await handle.is_visible() or not await handle.is_enabled():
                break
            if time.monotonic() >= deadline:
                raise TransportError(
                    f"Element was still clickable after {timeout_ms}ms. Query: {query.describe()}"
                )
            await page.wait_for_timeout(POLL_INTERVAL_MS)


async def _with_retries(operation: Callable[[], Awaitable[T]], description: str, attempts: int) -> T:
    last_error: PlaywrightError | None = None
    for attempt in range(1, max(attempts, 1) + 1):
        try:
            return await operation()
        except PlaywrightError as e:
            last_error = e
            logger.warning("%s failed (attempt %d/%d): %s", description, attempt, attempts, e)
    raise TransportError(f"Error trying to {description}\n{last_error}") from last_error


async def click(page: Page, query: ElementQuery, timeout_ms: int, attempts: int = 3) -> None:
    await wait_till_elements_clickable(page, [query], timeout_ms)
    locator = page.locator(to_selector(query))
    await _with_retries(lambda: locator.click(timeout=timeout_ms), f"click by {query.describe()}", attempts)


async def send_keys(page: Page, query: ElementQuery, text: str, timeout_ms: int, attempts: int = 3) -> None:
    """Type ``text`` into the element after it becomes visible and enabled."""
    await wait_till_elements_clickable(page, [query], timeout_ms)
    locator = page.locator(to_selector(query))
    await _with_retries(
        lambda: locator.press_sequentially(text, timeout=timeout_ms),
        f"send keys by {query.describe()}",
        attempts,
    )


async def get_attribute(
    page: Page, query: ElementQuery, name: str, timeout_ms: int, attempts: int = 3,
) -> str | None:
    await wait_till_elements(page, [query], "attached", timeout_ms)
    locator = page.locator(to_selector(query))
    return await _with_retries(
        lambda: locator.get_attribute(name, timeout=timeout_ms),
        f"read attribute '{name}' by {query.describe()}",
        attempts,
    )
