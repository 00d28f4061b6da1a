"""
Key and URL mapping.

Pure functions that derive everything the picker shows from an object
key. No I/O, no provider calls.
"""

from datetime import datetime, timezone
from typing import Optional

from .models import ObjectEntry, StoredObject

DELIMITER = "/"

IMAGE_EXTENSIONS = (
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".webp",
    ".svg",
    ".bmp",
    ".ico",
)


def normalize_prefix(prefix: str) -> str:
    """Append the delimiter to a non-empty prefix that lacks it."""
    if prefix and not prefix.endswith(DELIMITER):
        return f"{prefix}{DELIMITER}"
    return prefix


def file_name(key: str) -> str:
    """Last ``/``-delimited segment of a key."""
    return key.split(DELIMITER)[-1]


def prefix_name(path: str) -> str:
    """Folder name of a common-prefix path such as ``a/sub/``."""
    return path.rstrip(DELIMITER).split(DELIMITER)[-1]


def is_image(key: str) -> bool:
    return key.lower().endswith(IMAGE_EXTENSIONS)


def display_url(key: str, domain: str) -> str:
    """
    Public URL of an object behind the CDN.

    Plain construction, not a signed URL. The CDN domain has to serve
    the bucket on its own.
    """
    return f"https://{domain}/{key}"


def strip_etag_quotes(etag: Optional[str]) -> Optional[str]:
    if not etag:
        return None
    return etag.replace('"', "")


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """UTC ISO-8601 with milliseconds and a ``Z`` suffix, e.g. ``2024-01-02T00:00:00.000Z``."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_object_entry(obj: StoredObject, domain: str) -> ObjectEntry:
    """Map a raw listing entry to what the picker displays."""
    return ObjectEntry(
        key=obj.key,
        name=file_name(obj.key),
        size=obj.size,
        last_modified=format_timestamp(obj.last_modified),
        etag=strip_etag_quotes(obj.etag),
        is_image=is_image(obj.key),
        display_url=display_url(obj.key, domain),
    )
