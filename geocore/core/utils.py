"""
Query-string helpers shared by the client, the query builders and the SDK.
"""

import urllib.parse
from collections.abc import Mapping
from datetime import datetime
from typing import Any

TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"

# Characters encodeURIComponent leaves alone on top of urllib's unreserved set
_SAFE_CHARS = "!~*'()"


def encode_component(value: Any) -> str:
    """Percent-encode a single query-string value."""
    if isinstance(value, (list, tuple)):
        value = ",".join(_scalar(v) for v in value)
    return urllib.parse.quote(_scalar(value), safe=_SAFE_CHARS)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_query_string(options: Mapping[str, Any] | None) -> str:
    """
    Serialize options into a URL query string.

    Entries keep their insertion order. None and callable values are skipped, and
    list/tuple values are comma-joined before encoding so they travel as a
    single token.

    Args:
        options: Mapping of parameter name to value

    Returns:
        "" when nothing is left to serialize, otherwise "?name=value&..."

    """
    if not options:
        return ""
    pairs = [
        f"{name}={encode_component(value)}"
        for name, value in options.items()
        if value is not None and not callable(value)
    ]
    if not pairs:
        return ""
    return "?" + "&".join(pairs)


def merge_options(*options: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge option mappings left to right into a new dict."""
    merged: dict[str, Any] = {}
    for opts in options:
        if opts:
            merged.update(opts)
    return merged


def format_timestamp(value: datetime | str) -> str:
    """Render a datetime in the service's range-filter format (strings pass through)."""
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    return value


def joined_param(name: str, values: list[str] | tuple[str, ...] | None) -> str:
    """Build "?name=a%2Cb" for a non-empty list, or "" otherwise."""
    if not values:
        return ""
    return build_query_string({name: list(values)})
