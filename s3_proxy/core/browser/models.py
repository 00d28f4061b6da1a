"""
Domain models for bucket browsing.

These are transient values rebuilt on every request. Nothing here is
persisted, and nothing here knows about boto3 or HTTP. The ``to_dict``
methods produce the camelCase shape the picker UI consumes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class BucketConfig:
    """
    Process-wide bucket settings.

    Built once from Settings and passed by reference into every
    handler. Frozen because nothing may change it while serving.
    """
    region: str
    access_key_id: str
    secret_access_key: str
    bucket: str
    cloudfront_domain: str
    endpoint_url: Optional[str] = None

    def __repr__(self) -> str:
        # Never leak credentials through logs or tracebacks
        return (
            f"BucketConfig(region={self.region!r}, bucket={self.bucket!r}, "
            f"cloudfront_domain={self.cloudfront_domain!r})"
        )


@dataclass(frozen=True)
class StoredObject:
    """One raw entry of a listing page, as reported by the provider."""
    key: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None


@dataclass(frozen=True)
class ListPage:
    """
    One page of a ListObjectsV2-style enumeration.

    ``next_continuation_token`` is opaque: it is threaded back to the
    provider verbatim and never inspected.
    """
    objects: list[StoredObject] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    is_truncated: bool = False
    next_continuation_token: Optional[str] = None


@dataclass(frozen=True)
class VirtualPrefix:
    """One folder level. ``path`` always ends with ``/``."""
    name: str
    path: str
    has_children: bool = True

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": self.path,
            "hasChildren": self.has_children,
        }


@dataclass(frozen=True)
class ObjectEntry:
    """
    An object as presented to the picker.

    ``key`` is the identity; every other field is derived from it or
    passed through from the provider.
    """
    key: str
    name: str
    size: Optional[int]
    last_modified: Optional[str]
    etag: Optional[str]
    is_image: bool
    display_url: str

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "size": self.size,
            "lastModified": self.last_modified,
            "eTag": self.etag,
            "isImage": self.is_image,
            "displayUrl": self.display_url,
        }


@dataclass
class PrefixListing:
    bucket: str
    prefix: str
    prefixes: list[VirtualPrefix]

    @property
    def prefix_count(self) -> int:
        return len(self.prefixes)


@dataclass
class ObjectListing:
    bucket: str
    prefix: str
    objects: list[ObjectEntry]
    is_truncated: bool = False
    next_continuation_token: Optional[str] = None

    @property
    def object_count(self) -> int:
        return len(self.objects)


@dataclass
class SearchResult:
    """
    Result of a bounded filename search.

    ``has_more`` is informational only: it is also set when the scan
    gave up at the page cap, so it does not prove more matches exist.
    """
    bucket: str
    prefix: str
    query: str
    objects: list[ObjectEntry]
    has_more: bool = False
    pages_scanned: int = 0

    @property
    def object_count(self) -> int:
        return len(self.objects)
