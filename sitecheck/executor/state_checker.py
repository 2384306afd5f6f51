"""State checker — evaluates a BrowserStateSpec against one browser snapshot.

Every present field is checked and a failure never stops the remaining
checks; the function returns all failure messages in evaluation order.
"""

from __future__ import annotations

import logging
import re

from sitecheck.assertions.text import (
    as_fragments,
    assert_text_contains_all,
    assert_text_ends_with,
    assert_text_matches_all,
    assert_text_not_contains_any,
    assert_text_starts_with,
)
from sitecheck.errors import ConfigurationError
from sitecheck.models.entries import BrowserStateSpec
from sitecheck.models.results import SEVERE, BrowserSnapshot, LogEntry

logger = logging.getLogger(__name__)

SOURCE_HTML_FIELDS = (
    "source_html_starts_with",
    "source_html_ends_with",
    "source_html_contains",
    "source_html_not_contains",
    "source_html_reg_exp",
)

PATTERN_FIELDS = ("source_html_reg_exp", "loaded_html_reg_exp")


def needs_source_html(spec: BrowserStateSpec) -> bool:
    """True when any check needs the original, pre-script document."""
    return any(getattr(spec, name) is not None for name in SOURCE_HTML_FIELDS)


def validate_patterns(spec: BrowserStateSpec) -> None:
    """Compile every regular expression of ``spec``, failing on the first invalid one."""
    for name in PATTERN_FIELDS:
        patterns = getattr(spec, name)
        if patterns is None:
            continue
        for pattern in as_fragments(patterns):
            try:
                re.compile(pattern)
            except re.error as e:
                key = BrowserStateSpec.model_fields[name].alias
                raise ConfigurationError(f"Invalid regular expression on {key}: {pattern}\n{e}") from e


def unexpected_console_errors(
    logs: list[LogEntry], ignore: bool | list[str] | None, global_ignore: list[str],
) -> list[LogEntry]:
    """Return the SEVERE entries not excused by the ignore settings."""
    if ignore is True:
        return []
    ignore_list = list(global_ignore) + (list(ignore) if isinstance(ignore, list) else [])
    return [
        entry for entry in logs
        if entry.level == SEVERE and not any(text in entry.message for text in ignore_list)
    ]


def check_browser_state(
    spec: BrowserStateSpec,
    snapshot: BrowserSnapshot,
    global_ignore_console_errors: list[str] | None = None,
    forbidden_title_texts: list[str] | None = None,
) -> list[str]:
    """Evaluate every present field of ``spec`` and return the failure messages."""
    validate_patterns(spec)
    errors: list[str] = []
    url = snapshot.url
    title = snapshot.title

    if spec.url is not None:
        assert_text_contains_all(
            url, spec.url, errors,
            f"Browser URL: {url}\nDoes not contain expected text: $fragment",
        )

    if forbidden_title_texts:
        assert_text_not_contains_any(
            title, forbidden_title_texts, errors,
            f"Unexpected 404 error found on browser title:\n    {title}\nFor the url:\n    {url}",
        )

    if spec.title_contains is not None:
        assert_text_contains_all(
            title, spec.title_contains, errors,
            f"Title: {title}\nDoes not contain expected text: $fragment\nFor the url: {url}",
        )

    for entry in unexpected_console_errors(
        snapshot.browser_logs, spec.ignore_console_errors, global_ignore_console_errors or [],
    ):
        message = f"Browser console has shown an error:\n    {entry.message}\nFor the url:\n    {url}"
        logger.error(message)
        errors.append(message)

    if needs_source_html(spec):
        _check_html(spec, "source_html", "Source", snapshot.source_html or "", url, errors)

    _check_html(spec, "loaded_html", "Loaded", snapshot.loaded_html, url, errors)

    if spec.tabs_count is not None and snapshot.tabs_count != spec.tabs_count:
        message = (f"Browser tabs count expected to be {spec.tabs_count} but was "
                   f"{snapshot.tabs_count}\nFor the url: {url}")
        logger.error(message)
        errors.append(message)

    logger.debug("Browser state checked for %s: %d errors", url, len(errors))
    return errors


def _check_html(
    spec: BrowserStateSpec, prefix: str, label: str, html: str, url: str, errors: list[str],
) -> None:
    starts_with = getattr(spec, f"{prefix}_starts_with")
    ends_with = getattr(spec, f"{prefix}_ends_with")
    contains = getattr(spec, f"{prefix}_contains")
    not_contains = getattr(spec, f"{prefix}_not_contains")
    reg_exp = getattr(spec, f"{prefix}_reg_exp")

    if starts_with is not None:
        assert_text_starts_with(
            html, starts_with, errors,
            f"{label} html expected to start with: $fragment\nBut started with: {html[:80]}\nFor the url: {url}",
        )
    if ends_with is not None:
        assert_text_ends_with(
            html, ends_with, errors,
            f"{label} html expected to end with: $fragment\nBut ended with: {html[-80:]}\nFor the url: {url}",
        )
    if not_contains is not None:
        assert_text_not_contains_any(
            html, not_contains, errors,
            f"{label} html NOT expected to contain: $fragment\nBut contained it for the url: {url}",
        )
    if contains is not None:
        assert_text_contains_all(
            html, as_fragments(contains), errors,
            f"{label} html expected to contain: $fragment\nBut not found for the url: {url}",
        )
    if reg_exp is not None:
        assert_text_matches_all(
            html, reg_exp, errors,
            f"{label} html expected to match the regular expression: $fragment\nFor the url: {url}",
        )
