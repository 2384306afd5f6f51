"""Shared URL utilities — request identities, duplicate detection, file urls."""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Optional
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname


def request_identity(url: str, post_parameters: Optional[dict[str, Any]] = None) -> str:
    """Identity of a request: the url plus its serialized POST parameters, if any."""
    if post_parameters:
        return url + json.dumps(post_parameters, sort_keys=True)
    return url


def find_duplicates(values: Iterable[str]) -> list[str]:
    """Return every value appearing more than once, in first-seen order."""
    counts = Counter(values)
    return [value for value, count in counts.items() if count > 1]


def is_file_url(url: str) -> bool:
    return urlparse(url).scheme == "file"


def file_path_from_url(url: str) -> Path:
    """Convert a ``file://`` url into a filesystem path."""
    parsed = urlparse(url)
    return Path(url2pathname(unquote(parsed.path)))
