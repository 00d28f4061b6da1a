"""
Bucket browsing logic.

This module maps a flat key namespace onto the folder tree the picker
shows. It is framework-agnostic: it doesn't import FastAPI or boto3,
and it talks to the bucket only through the ObjectStorageClient
protocol, so tests can hand it an in-memory fake.

The tree is never materialized. Each call expands exactly one level
(prefix lister) or one page (object lister) on demand.
"""

import logging
from typing import Optional, Protocol

from .keys import DELIMITER, normalize_prefix, prefix_name, file_name, to_object_entry
from .models import (
    BucketConfig,
    ListPage,
    ObjectListing,
    PrefixListing,
    SearchResult,
    VirtualPrefix,
)
from .validation import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)

PREFIX_MAX_KEYS = 1000
SEARCH_PAGE_SIZE = 1000
SEARCH_MAX_PAGES = 10


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class ObjectStorageClient(Protocol):
    """
    Interface for the bucket provider.

    One operation is enough for everything this service does: a single
    ListObjectsV2-style page, with or without a delimiter.
    """

    async def list_page(
        self,
        prefix: str,
        max_keys: int,
        delimiter: Optional[str] = None,
        continuation_token: Optional[str] = None,
    ) -> ListPage:
        """Fetch one enumeration page under ``prefix``."""
        ...


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class BucketBrowser:
    """
    Lists folders and objects and searches by filename.

    Holds no per-request state. The storage client and config are
    shared, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        storage: ObjectStorageClient,
        config: BucketConfig,
        search_page_size: int = SEARCH_PAGE_SIZE,
        search_max_pages: int = SEARCH_MAX_PAGES,
    ) -> None:
        self._storage = storage
        self._config = config
        self._search_page_size = search_page_size
        self._search_max_pages = search_max_pages

    @property
    def bucket(self) -> str:
        return self._config.bucket

    async def list_prefixes(self, prefix: str = "") -> PrefixListing:
        """
        List the immediate sub-folders of ``prefix``.

        One provider call, capped at 1000 keys. Children beyond the cap
        are not fetched. ``has_children`` is assumed true for every
        folder: descendants are loaded lazily when the UI expands it.
        """
        normalized = normalize_prefix(prefix)

        page = await self._storage.list_page(
            normalized,
            max_keys=PREFIX_MAX_KEYS,
            delimiter=DELIMITER,
        )

        prefixes = [
            VirtualPrefix(name=prefix_name(path), path=path, has_children=True)
            for path in page.common_prefixes
        ]

        logger.debug(
            "Listed prefixes",
            extra={"prefix": normalized, "count": len(prefixes)},
        )

        return PrefixListing(
            bucket=self._config.bucket,
            prefix=normalized,
            prefixes=prefixes,
        )

    async def list_objects(
        self,
        prefix: str = "",
        page_size: int = DEFAULT_PAGE_SIZE,
        continuation_token: Optional[str] = None,
    ) -> ObjectListing:
        """
        List one page of objects directly under ``prefix``.

        The continuation token goes to the provider untouched, and the
        provider's truncation flag and next token come back untouched.
        The folder-marker object (key equal to the prefix) is dropped.
        """
        normalized = normalize_prefix(prefix)

        page = await self._storage.list_page(
            normalized,
            max_keys=page_size,
            delimiter=DELIMITER,
            continuation_token=continuation_token or None,
        )

        objects = [
            to_object_entry(obj, self._config.cloudfront_domain)
            for obj in page.objects
            if obj.key != normalized
        ]

        logger.debug(
            "Listed objects",
            extra={
                "prefix": normalized,
                "count": len(objects),
                "is_truncated": page.is_truncated,
            },
        )

        return ObjectListing(
            bucket=self._config.bucket,
            prefix=normalized,
            objects=objects,
            is_truncated=bool(page.is_truncated),
            next_continuation_token=page.next_continuation_token or None,
        )

    async def search_objects(
        self,
        query: str,
        prefix: str = "",
        max_results: int = DEFAULT_PAGE_SIZE,
    ) -> SearchResult:
        """
        Find objects under ``prefix`` whose file name contains ``query``.

        Scans flat pages sequentially until enough matches are found,
        the bucket is exhausted, or the page cap is hit. There is no
        search cursor: every search starts from the beginning. A failed
        page aborts the search and nothing partial is returned.
        """
        normalized = normalize_prefix(prefix)
        needle = query.lower()

        matches = []
        continuation_token = None
        pages = 0
        capped = False

        while True:
            page = await self._storage.list_page(
                normalized,
                max_keys=self._search_page_size,
                continuation_token=continuation_token,
            )
            pages += 1

            matches.extend(
                to_object_entry(obj, self._config.cloudfront_domain)
                for obj in page.objects
                if needle in file_name(obj.key).lower()
            )

            if len(matches) >= max_results:
                break

            continuation_token = page.next_continuation_token
            if not continuation_token:
                break

            if pages >= self._search_max_pages:
                # Gave up with keys left unscanned
                capped = True
                break

        has_more = len(matches) > max_results or capped

        logger.info(
            "Searched objects",
            extra={
                "prefix": normalized,
                "pages_scanned": pages,
                "matches": len(matches),
                "has_more": has_more,
            },
        )

        return SearchResult(
            bucket=self._config.bucket,
            prefix=normalized,
            query=query,
            objects=matches[:max_results],
            has_more=has_more,
            pages_scanned=pages,
        )
