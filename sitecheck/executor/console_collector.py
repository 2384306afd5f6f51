"""Console collector — buffers browser console output since the last navigation."""

from __future__ import annotations

import logging

from playwright.async_api import Page

from sitecheck.models.results import INFO, SEVERE, WARNING, LogEntry

logger = logging.getLogger(__name__)

_LEVELS = {
    "error": SEVERE,
    "assert": SEVERE,
    "warning": WARNING,
}


class ConsoleCollector:
    """Collects console messages and uncaught page errors for one page."""

    def __init__(self):
        self.entries: list[LogEntry] = []

    def attach(self, page: Page) -> None:
        """Attach console and page error listeners to a page."""
        page.on("console", self._on_console)
        page.on("pageerror", self._on_page_error)

    def _on_console(self, msg) -> None:
        level = _LEVELS.get(msg.type, INFO)
        self.entries.append(LogEntry(level=level, message=msg.text))

    def _on_page_error(self, error) -> None:
        self.entries.append(LogEntry(level=SEVERE, message=str(error)))

    def reset(self) -> None:
        """Start a fresh log window."""
        if self.entries:
            logger.debug("Discarding %d console entries", len(self.entries))
        self.entries = []

    def snapshot(self) -> list[LogEntry]:
        return list(self.entries)
