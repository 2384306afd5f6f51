"""Data returned by navigation and assertion operations."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, Field

from sitecheck.errors import AggregateAssertionError

logger = logging.getLogger(__name__)

SEVERE = "SEVERE"
WARNING = "WARNING"
INFO = "INFO"


class LogEntry(BaseModel):
    level: str  # SEVERE, WARNING, INFO
    message: str


class PageLoadResult(BaseModel):
    title: str
    source: str  # live DOM serialization after load
    final_url: str  # location after any redirect
    browser_logs: list[LogEntry] = Field(default_factory=list)


class BrowserSnapshot(BaseModel):
    """The browser state one assertion pass is evaluated against."""

    url: str
    title: str
    loaded_html: str
    browser_logs: list[LogEntry] = Field(default_factory=list)
    tabs_count: int = 1
    source_html: Optional[str] = None  # original document, fetched only when needed


class AssertionReport(BaseModel):
    """Every response and failure collected by one assertion call."""

    responses: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.errors

    def conclude(self, operation: str, exceptions_enabled: bool) -> "AssertionReport":
        """Raise the aggregate failure, or hand the report back as data."""
        if not self.errors:
            logger.info("%s passed", operation)
            return self
        logger.error("%s failed with %d errors", operation, len(self.errors))
        if exceptions_enabled:
            raise AggregateAssertionError(operation, self.errors)
        return self
