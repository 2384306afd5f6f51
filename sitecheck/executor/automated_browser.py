"""Automated browser — loads pages and verifies browser state with Playwright.

One instance owns one browser page and its console buffer. Every operation
is awaited strictly in sequence: a page finishes loading and being asserted
before the next navigation starts.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from sitecheck.assertions.wildcards import substitute, substitute_deep
from sitecheck.errors import ConfigurationError, SiteCheckError, TransportError
from sitecheck.models.config import SiteCheckConfig
from sitecheck.models.entries import BrowserStateSpec, ElementQuery, RedirectEntry, UrlLoadEntry
from sitecheck.models.results import AssertionReport, BrowserSnapshot, PageLoadResult
from sitecheck.models.snapshot import SnapshotOptions, SnapshotResult
from sitecheck.url_utils import file_path_from_url, find_duplicates, is_file_url
from sitecheck.utils.browser_launch import create_context, launch_browser
from sitecheck.utils.terminal import ensure_driver_available

from . import element_actions
from .console_collector import ConsoleCollector
from .http_tests import HttpTester
from .snapshot import assert_snapshot as capture_and_compare
from .state_checker import check_browser_state, needs_source_html, validate_patterns

logger = logging.getLogger(__name__)

# Methods that may be chained through query_calls()
QUERY_CALLS = frozenset({
    "load_url",
    "wait_till_browser_ready",
    "clear_console",
    "set_browser_window_size",
    "switch_to_tab",
    "wait_till_elements_exist",
    "wait_till_elements_not_exist",
    "wait_till_elements_visible",
    "wait_till_elements_not_visible",
    "wait_till_elements_clickable",
    "wait_till_elements_not_clickable",
    "click_by_id",
    "click_by_xpath",
    "send_keys_by_id",
    "send_keys_by_xpath",
    "get_attribute_by_id",
    "get_attribute_by_xpath",
    "assert_browser_state",
    "assert_snapshot",
})


class AutomatedBrowser:
    """Browser automation with aggregated, assertion-oriented helpers."""

    def __init__(self, config: SiteCheckConfig | None = None, http_tester: HttpTester | None = None):
        self.config = config or SiteCheckConfig()
        self.wildcards: dict[str, str] = dict(self.config.wildcards)
        self.ignore_console_errors: list[str] = list(self.config.ignore_console_errors)
        self.wait_timeout: int = self.config.wait_timeout_ms
        self.exceptions_enabled: bool = self.config.exceptions_enabled
        self.http_tester = http_tester or HttpTester(self.config, wildcards=self.wildcards)
        self.console = ConsoleCollector()
        self.page: Page | None = None
        self._attached_pages: list[Page] = []
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize_chrome(
        self,
        language: str = "en",
        default_download_path: str = "",
        disable_gpu: bool = False,
        accept_insecure_certs: bool = False,
    ) -> None:
        """Start a Chromium session.

        Args:
            language: UI language the browser starts with.
            default_download_path: When set, downloads are stored there without prompting.
            disable_gpu: Turn off GPU acceleration.
            accept_insecure_certs: Trust invalid TLS certificates.
        """
        if self.page is not None:
            raise ConfigurationError("Browser session already initialized")

        ensure_driver_available()
        browser_config = self.config.browser.model_copy(update={
            "browser": "chromium",
            "language": language,
            "default_download_path": default_download_path,
            "disable_gpu": disable_gpu,
            "accept_insecure_certs": accept_insecure_certs,
        })

        logger.info("Launching %s (language=%s)", browser_config.browser, language)
        self._playwright = await async_playwright().start()
        self._browser = await launch_browser(self._playwright, browser_config)
        self._context = await create_context(self._browser, browser_config)
        self.attach_page(await self._context.new_page())

    def attach_page(self, page: Page) -> None:
        """Use an existing Playwright page as this instance's session."""
        self.page = page
        if not any(p is page for p in self._attached_pages):
            self.console.attach(page)
            self._attached_pages.append(page)

    async def quit(self) -> None:
        """Close the browser session and the HTTP client."""
        async with AsyncExitStack() as stack:
            stack.push_async_callback(self.http_tester.aclose)
            if self._playwright is not None:
                stack.push_async_callback(self._playwright.stop)
            if self._browser is not None:
                stack.push_async_callback(self._browser.close)
            if self._context is not None:
                stack.push_async_callback(self._context.close)
            self._context = self._browser = self._playwright = None
            self.page = None
            self._attached_pages = []

    async def __aenter__(self) -> "AutomatedBrowser":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.quit()

    def _require_page(self) -> Page:
        if self.page is None:
            raise ConfigurationError("Browser not initialized. Call initialize_chrome() or attach_page() first")
        return self.page

    def _conclude(self, operation: str, errors: list[str], responses: list[str] | None = None) -> AssertionReport:
        return AssertionReport(responses=responses or [], errors=errors).conclude(operation, self.exceptions_enabled)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def wait_till_browser_ready(self) -> None:
        """Wait until document.readyState is complete."""
        page = self._require_page()
        try:
            await page.wait_for_function("document.readyState === 'complete'", timeout=self.wait_timeout)
        except PlaywrightError as e:
            raise TransportError(
                f"Browser did not reach a ready state after {self.wait_timeout}ms for the url: {page.url}"
            ) from e

    async def load_url(self, url: str) -> PageLoadResult:
        """Navigate to ``url`` (wildcards replaced) and wait for the page to be ready.

        The console buffer is reset before navigating so the returned logs only
        contain what this page produced.
        """
        page = self._require_page()
        target = substitute(url, self.wildcards)
        self.console.reset()

        logger.info("Loading %s", target)
        try:
            await page.goto(target, timeout=self.wait_timeout)
        except PlaywrightError as e:
            raise TransportError(f"Could not load url: {target}\n{e}") from e
        await self.wait_till_browser_ready()

        result = PageLoadResult(
            title=await page.title(),
            source=await self._loaded_html(),
            final_url=page.url,
            browser_logs=self.console.snapshot(),
        )
        if result.final_url != target:
            logger.debug("%s redirected to %s", target, result.final_url)
        return result

    async def clear_console(self) -> None:
        page = self._require_page()
        await page.evaluate("console.clear()")
        self.console.reset()

    async def set_browser_window_size(self, width: int, height: int) -> None:
        page = self._require_page()
        await page.set_viewport_size({"width": width, "height": height})

    def get_tabs_count(self) -> int:
        return len(self._require_page().context.pages)

    async def switch_to_tab(self, index: int) -> None:
        """Make the tab at ``index`` (in opening order) the active session page."""
        pages = self._require_page().context.pages
        if index < 0 or index >= len(pages):
            raise ConfigurationError(f"Tab index {index} out of range, {len(pages)} tabs open")
        self.attach_page(pages[index])
        await pages[index].bring_to_front()

    async def _loaded_html(self) -> str:
        return await self._require_page().evaluate("document.documentElement.outerHTML")

    async def _fetch_source_html(self, url: str) -> str:
        """Original document as served, before any script ran."""
        if is_file_url(url):
            try:
                return file_path_from_url(url).read_text(encoding="utf-8")
            except OSError as e:
                logger.debug("Could not read %s from disk (%s), requesting it over HTTP", url, e)
        return await self.http_tester.fetch_text(url)

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------

    def _prepare_spec(self, spec: Any) -> BrowserStateSpec:
        """Validate the key set and replace wildcards on every expected text."""
        parsed = BrowserStateSpec.from_raw(spec)
        raw = parsed.model_dump(by_alias=True, exclude_none=True)
        prepared = BrowserStateSpec.model_validate(substitute_deep(raw, self.wildcards))
        validate_patterns(prepared)
        return prepared

    async def _snapshot(self, spec: BrowserStateSpec) -> BrowserSnapshot:
        await self.wait_till_browser_ready()
        page = self._require_page()
        url = page.url
        return BrowserSnapshot(
            url=url,
            title=await page.title(),
            loaded_html=await self._loaded_html(),
            browser_logs=self.console.snapshot(),
            tabs_count=len(page.context.pages),
            source_html=await self._fetch_source_html(url) if needs_source_html(spec) else None,
        )

    def _check(self, spec: BrowserStateSpec, snapshot: BrowserSnapshot) -> list[str]:
        return check_browser_state(
            spec, snapshot,
            global_ignore_console_errors=self.ignore_console_errors,
            forbidden_title_texts=self.config.forbidden_title_texts,
        )

    async def assert_browser_state(self, spec: BrowserStateSpec | dict) -> AssertionReport:
        """Verify url, title, console, html and tabs of the current page.

        The state keys are validated before the browser is touched. All checks
        run against one snapshot and every failure is reported together.
        """
        parsed = self._prepare_spec(spec)
        snapshot = await self._snapshot(parsed)
        return self._conclude("AutomatedBrowser.assert_browser_state", self._check(parsed, snapshot))

    async def assert_urls_load_ok(self, entries: list[Any]) -> AssertionReport:
        """Load every entry url and run its browser state checks.

        The entry url itself must be contained in the final url, which catches
        unexpected redirects.
        """
        operation = "AutomatedBrowser.assert_urls_load_ok"
        parsed = [UrlLoadEntry.from_raw(e) for e in entries]
        duplicates = find_duplicates(e.url for e in parsed)
        if duplicates:
            raise ConfigurationError(f"{operation} duplicate urls:\n" + "\n".join(duplicates))
        prepared = [self._prepare_spec(entry.state_spec()) for entry in parsed]

        errors: list[str] = []
        responses: list[str] = []
        for spec in prepared:
            result = await self.load_url(spec.url)
            responses.append(result.source)
            snapshot = await self._snapshot(spec)
            errors.extend(self._check(spec, snapshot))

        return self._conclude(operation, errors, responses)

    async def assert_urls_redirect(self, entries: list[Any]) -> AssertionReport:
        """Check that every ``url`` ends up on a final url ending with ``to``."""
        operation = "AutomatedBrowser.assert_urls_redirect"
        parsed = [RedirectEntry.from_raw(e) for e in entries]
        duplicates = find_duplicates(e.url for e in parsed)
        if duplicates:
            raise ConfigurationError(f"{operation} duplicate urls:\n" + "\n".join(duplicates))

        errors: list[str] = []
        for entry in parsed:
            url = substitute(entry.url, self.wildcards)
            to = substitute(entry.to, self.wildcards)
            result = await self.load_url(url)
            if result.final_url == to or result.final_url.endswith(to):
                continue
            message = (f"Url redirect failed. expected:\n    {url}\nto redirect to:\n    {to}\n"
                       f"but was:\n    {result.final_url}")
            if entry.comment:
                message += f"\n({entry.comment})"
            logger.error(message)
            errors.append(message)

        return self._conclude(operation, errors)

    async def assert_urls_fail(self, entries: list[Any]) -> AssertionReport:
        """Check over HTTP that every entry fails to load, sharing this instance's wildcards."""
        self.http_tester.wildcards = self.wildcards
        self.http_tester.exceptions_enabled = self.exceptions_enabled
        return await self.http_tester.assert_urls_fail(entries)

    async def assert_snapshot(
        self, path: str | Path, options: SnapshotOptions | dict | None = None,
    ) -> SnapshotResult:
        """Compare the current viewport with the PNG baseline at ``path``."""
        if isinstance(options, dict):
            options = SnapshotOptions.model_validate(options)
        result = await capture_and_compare(self._require_page(), path, options)
        self._conclude("AutomatedBrowser.assert_snapshot", [] if result.passed else [result.message])
        return result

    # ------------------------------------------------------------------
    # Element interactions
    # ------------------------------------------------------------------

    async def wait_till_elements_exist(self, queries) -> None:
        await element_actions.wait_till_elements(
            self._require_page(), element_actions.as_queries(queries), "attached", self.wait_timeout)

    async def wait_till_elements_not_exist(self, queries) -> None:
        await element_actions.wait_till_elements(
            self._require_page(), element_actions.as_queries(queries), "detached", self.wait_timeout)

    async def wait_till_elements_visible(self, queries) -> None:
        await element_actions.wait_till_elements(
            self._require_page(), element_actions.as_queries(queries), "visible", self.wait_timeout)

    async def wait_till_elements_not_visible(self, queries) -> None:
        await element_actions.wait_till_elements(
            self._require_page(), element_actions.as_queries(queries), "hidden", self.wait_timeout)

    async def wait_till_elements_clickable(self, queries) -> None:
        await element_actions.wait_till_elements_clickable(
            self._require_page(), element_actions.as_queries(queries), self.wait_timeout)

    async def wait_till_elements_not_clickable(self, queries) -> None:
        await element_actions.wait_till_elements_not_clickable(
            self._require_page(), element_actions.as_queries(queries), self.wait_timeout)

    async def click_by_id(self, element_id: str) -> None:
        await element_actions.click(
            self._require_page(), ElementQuery(by="id", value=element_id),
            self.wait_timeout, self.config.interaction_retries)

    async def click_by_xpath(self, xpath: str) -> None:
        await element_actions.click(
            self._require_page(), ElementQuery(by="xpath", value=xpath),
            self.wait_timeout, self.config.interaction_retries)

    async def send_keys_by_id(self, element_id: str, text: str) -> None:
        await element_actions.send_keys(
            self._require_page(), ElementQuery(by="id", value=element_id), text,
            self.wait_timeout, self.config.interaction_retries)

    async def send_keys_by_xpath(self, xpath: str, text: str) -> None:
        await element_actions.send_keys(
            self._require_page(), ElementQuery(by="xpath", value=xpath), text,
            self.wait_timeout, self.config.interaction_retries)

    async def get_attribute_by_id(self, element_id: str, name: str) -> str | None:
        return await element_actions.get_attribute(
            self._require_page(), ElementQuery(by="id", value=element_id), name,
            self.wait_timeout, self.config.interaction_retries)

    async def get_attribute_by_xpath(self, xpath: str, name: str) -> str | None:
        return await element_actions.get_attribute(
            self._require_page(), ElementQuery(by="xpath", value=xpath), name,
            self.wait_timeout, self.config.interaction_retries)

    async def query_calls(self, calls: list) -> list[Any]:
        """Run a sequence of ``[method_name, *args]`` calls in order.

        Every name is validated before the first call runs. Execution stops at
        the first call that raises.
        """
        parsed: list[tuple[str, tuple]] = []
        for call in calls:
            if isinstance(call, str):
                name, args = call, ()
            else:
                name, args = call[0], tuple(call[1:])
            if name not in QUERY_CALLS:
                raise ConfigurationError(f"Unknown query call: {name}")
            parsed.append((name, args))

        results: list[Any] = []
        for index, (name, args) in enumerate(parsed):
            logger.debug("Query call %d/%d: %s%s", index + 1, len(parsed), name, args)
            try:
                results.append(await getattr(self, name)(*args))
            except SiteCheckError as e:
                logger.error("Query call %d (%s) failed: %s", index + 1, name, e)
                raise
        return results
