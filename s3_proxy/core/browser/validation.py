"""
Input validation for the browse routes.

Every check runs before any provider call and raises ValidationError,
which the API layer turns into a 400 envelope.
"""

import re
from typing import Optional

from .errors import ValidationError

DEFAULT_PAGE_SIZE = 25
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 200
PAGE_SIZE_PATTERN = re.compile(r"[0-9]+")
MAX_PREFIX_LENGTH = 500
MAX_SEARCH_QUERY_LENGTH = 200


def validate_prefix(prefix: Optional[str]) -> str:
    """
    Return the prefix (root ``""`` when absent) or raise.

    Bucket keys are not filesystem paths, but ``..`` is still rejected
    so nothing downstream ever has to reason about traversal.
    """
    prefix = prefix or ""

    if len(prefix) > MAX_PREFIX_LENGTH:
        raise ValidationError(
            f"prefix exceeds maximum length of {MAX_PREFIX_LENGTH}"
        )

    if ".." in prefix:
        raise ValidationError("Invalid prefix format")

    return prefix


def validate_query(query: Optional[str]) -> str:
    if not query:
        raise ValidationError("q (search query) is required")

    if len(query) > MAX_SEARCH_QUERY_LENGTH:
        raise ValidationError(
            f"Search query exceeds maximum length of {MAX_SEARCH_QUERY_LENGTH}"
        )

    return query


def parse_page_size(raw: Optional[str]) -> int:
    """Parse ``pageSize``, defaulting to 25 when absent."""
    if raw is None or raw == "":
        return DEFAULT_PAGE_SIZE

    # ASCII digits only: int() alone would take "+5", "1_0" and "５"
    raw = raw.strip()
    page_size = int(raw) if PAGE_SIZE_PATTERN.fullmatch(raw) else None

    if page_size is None or not MIN_PAGE_SIZE <= page_size <= MAX_PAGE_SIZE:
        raise ValidationError(
            f"pageSize must be between {MIN_PAGE_SIZE} and {MAX_PAGE_SIZE}"
        )

    return page_size
