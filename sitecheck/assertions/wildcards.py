"""Wildcard substitution — replaces named placeholders with environment values."""

from __future__ import annotations

from typing import Any


def substitute(text: str, table: dict[str, str]) -> str:
    """Replace every literal occurrence of each wildcard key in ``text``.

    Keys are applied in table order. A key that is a substring of another key
    (``$host`` / ``$hostRoot``) will be replaced first if it comes first, so
    such tables should list the longer key before the shorter one.
    """
    result = text
    for wildcard, value in table.items():
        result = result.replace(wildcard, value)
    return result


def substitute_deep(value: Any, table: dict[str, str]) -> Any:
    """Apply :func:`substitute` to every string inside ``value``.

    Strings, lists, tuples and dicts are walked recursively and a new structure
    is returned. Anything else (None, numbers, booleans) is returned untouched.
    """
    if isinstance(value, str):
        return substitute(value, table)
    if isinstance(value, list):
        return [substitute_deep(v, table) for v in value]
    if isinstance(value, tuple):
        return tuple(substitute_deep(v, table) for v in value)
    if isinstance(value, dict):
        return {k: substitute_deep(v, table) for k, v in value.items()}
    return value
