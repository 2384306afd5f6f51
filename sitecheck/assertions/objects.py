"""Shape checks for the loosely typed records callers pass in."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from sitecheck.errors import ConfigurationError


def assert_is_object(value: Any) -> None:
    """Fail unless ``value`` is a plain key/value mapping."""
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"assert_object_properties failed. provided element is not an object: {type(value).__name__}"
        )


def assert_object_properties(value: Any, keys: Iterable[str], strict: bool = True) -> None:
    """Check the key set of a mapping against the accepted ``keys``.

    Any key of ``value`` must be listed in ``keys``. With ``strict`` every
    listed key must also be present on ``value``; the first missing one fails.
    """
    assert_is_object(value)
    accepted = list(keys)
    object_keys = list(value.keys())

    if strict:
        for key in accepted:
            if key not in object_keys:
                raise ConfigurationError(
                    f"assert_object_properties failed. key <{key}> was not found on the object"
                )

    for key in object_keys:
        if key not in accepted:
            raise ConfigurationError(
                f"assert_object_properties failed. Object has unexpected key: {key}"
            )
