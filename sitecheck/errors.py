"""Exception hierarchy shared by the HTTP and browser testers."""

from __future__ import annotations


class SiteCheckError(Exception):
    """Base exception for all sitecheck errors."""


class ConfigurationError(SiteCheckError, ValueError):
    """Raised when the test itself is malformed (duplicates, unknown keys, bad paths).

    Always raised before any network or browser I/O happens.
    """


class TransportError(SiteCheckError):
    """Raised when the browser or the HTTP client cannot complete an operation."""


class AggregateAssertionError(SiteCheckError, AssertionError):
    """One combined failure holding every individual assertion message of a call."""

    def __init__(self, operation: str, errors: list[str]):
        self.operation = operation
        self.errors = list(errors)
        message = f"{operation} failed with {len(self.errors)} errors:\n" + "\n".join(self.errors)
        super().__init__(message)
