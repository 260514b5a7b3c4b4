"""
HTTP 206 response validation.

Some servers answer a plain GET with ``206 Partial Content`` and a
``Content-Range`` header even though the body is the whole resource. These
helpers accept such a response only when the range provably spans the full
resource.
"""

import re
from typing import Mapping, Optional

CONTENT_RANGE_PATTERN = re.compile(r"bytes (\d+)-(\d+)/(\d+)")

HTTP_OK = 200
HTTP_PARTIAL_CONTENT = 206


def get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Look up a header by name, ignoring case for plain dicts."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def is_complete_despite_partial_status(headers: Optional[Mapping[str, str]]) -> bool:
    """
    Check whether a Content-Range header covers the entire resource.

    Args:
        headers: Response headers (any case for ``Content-Range``)

    Returns:
        True only for ``bytes 0-<last>/<total>`` with ``last + 1 == total``;
        False if the header is absent, malformed or covers a sub-range

    Example:
        >>> is_complete_despite_partial_status({"content-range": "bytes 0-999/1000"})
        True
        >>> is_complete_despite_partial_status({"content-range": "bytes 100-999/1000"})
        False
    """
    if not headers:
        return False

    content_range = get_header(headers, "content-range")
    if not content_range:
        return False

    match = CONTENT_RANGE_PATTERN.fullmatch(content_range)
    if not match:
        return False

    first_pos, last_pos, length = (int(group) for group in match.groups())
    return first_pos == 0 and last_pos + 1 == length


def is_successful_response(status: int, headers: Optional[Mapping[str, str]]) -> bool:
    """
    Decide whether a response status counts as a complete download.

    Args:
        status: HTTP status code
        headers: Response headers

    Returns:
        True for 200, or for 206 when the range covers the whole resource
    """
    if status == HTTP_OK:
        return True
    return status == HTTP_PARTIAL_CONTENT and is_complete_despite_partial_status(headers)
