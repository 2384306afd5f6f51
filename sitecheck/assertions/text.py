"""Text assertion primitives.

Every primitive appends one formatted diagnostic per failing fragment to a
caller-owned ``errors`` list instead of raising, so a single call can report
all of its failures together. ``$fragment`` in a message template is replaced
with the offending fragment.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_CONTAINS_MESSAGE = "Text expected to contain: $fragment\nBut it didn't"
DEFAULT_NOT_CONTAINS_MESSAGE = "Text NOT expected to contain: $fragment\nBut it did"
DEFAULT_STARTS_WITH_MESSAGE = "Text expected to start with: $fragment"
DEFAULT_ENDS_WITH_MESSAGE = "Text expected to end with: $fragment"
DEFAULT_MATCHES_MESSAGE = "Text expected to match the regular expression: $fragment"
ORDER_MESSAGE = "The following string was found on text, but does not follow the expected strict order: "


def as_fragments(value: str | list[str] | tuple[str, ...]) -> list[str]:
    """Normalize a single fragment or a sequence of fragments into a list."""
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _report(errors: list[str], message: str, fragment: str) -> None:
    formatted = message.replace("$fragment", fragment)
    logger.error(formatted)
    errors.append(formatted)


def assert_text_contains_all(
    text: str,
    to_be_found: str | list[str],
    errors: list[str],
    message: str = "",
    strict_order: bool = True,
) -> bool:
    """Check that every fragment exists in ``text``.

    With ``strict_order`` each fragment must be found at a position greater or
    equal than the furthest position found so far for the earlier fragments.
    Fragments may overlap or repeat.
    """
    message = message or DEFAULT_CONTAINS_MESSAGE
    failures = 0
    indexes_found: list[int] = []

    for fragment in as_fragments(to_be_found):
        index = text.find(fragment)
        if index < 0:
            failures += 1
            _report(errors, message, fragment)
            continue

        if strict_order and indexes_found and index < max(indexes_found):
            failures += 1
            formatted = ORDER_MESSAGE + fragment
            logger.error(formatted)
            errors.append(formatted)
        indexes_found.append(index)

    return failures == 0


def assert_text_starts_with(text: str, must_start_with: str, errors: list[str], message: str = "") -> bool:
    if text.startswith(must_start_with):
        return True
    _report(errors, message or DEFAULT_STARTS_WITH_MESSAGE, must_start_with)
    return False


def assert_text_ends_with(text: str, must_end_with: str, errors: list[str], message: str = "") -> bool:
    if text.endswith(must_end_with):
        return True
    _report(errors, message or DEFAULT_ENDS_WITH_MESSAGE, must_end_with)
    return False


def assert_text_not_contains_any(
    text: str, not_to_be_found: str | list[str], errors: list[str], message: str = "",
) -> bool:
    """Check that none of the fragments appear in ``text``."""
    message = message or DEFAULT_NOT_CONTAINS_MESSAGE
    failures = 0
    for fragment in as_fragments(not_to_be_found):
        if fragment in text:
            failures += 1
            _report(errors, message, fragment)
    return failures == 0


def assert_text_matches_all(
    text: str, patterns: str | list[str], errors: list[str], message: str = "",
) -> bool:
    """Check that every regular expression finds a match somewhere in ``text``."""
    message = message or DEFAULT_MATCHES_MESSAGE
    failures = 0
    for pattern in as_fragments(patterns):
        if re.search(pattern, text) is None:
            failures += 1
            _report(errors, message, pattern)
    return failures == 0
