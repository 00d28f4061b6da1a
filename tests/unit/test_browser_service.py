"""
Unit tests for the bucket browsing service.

These run the listers and the search loop against in-memory stores
(no boto3, no network). A scripted store is used where a test needs
exact control over pages and continuation tokens.
"""

import asyncio
from typing import Optional

import pytest

from s3_proxy.core.browser.errors import StorageError
from s3_proxy.core.browser.models import BucketConfig, ListPage, StoredObject
from s3_proxy.core.browser.service import (
    PREFIX_MAX_KEYS,
    SEARCH_MAX_PAGES,
    SEARCH_PAGE_SIZE,
    BucketBrowser,
)
from s3_proxy.infrastructure.storage.client import MockStorageClient

CONFIG = BucketConfig(
    region="eu-west-1",
    access_key_id="AKIATEST",
    secret_access_key="secret",
    bucket="assets-bucket",
    cloudfront_domain="cdn.example.com",
)


class ScriptedStorage:
    """
    Returns a fixed sequence of pages, one per call.

    Each page's token points at the next page; the last page has none.
    Optionally fails on a given call number.
    """

    def __init__(self, pages: list[list[str]], fail_on_call: Optional[int] = None):
        self._pages = pages
        self._fail_on_call = fail_on_call
        self.calls: list[dict] = []

    async def list_page(self, prefix, max_keys, delimiter=None, continuation_token=None):
        self.calls.append({
            "prefix": prefix,
            "max_keys": max_keys,
            "delimiter": delimiter,
            "continuation_token": continuation_token,
        })
        index = len(self.calls) - 1

        if self._fail_on_call is not None and index + 1 == self._fail_on_call:
            raise StorageError("ServiceUnavailable: try later", status_code=503)

        keys = self._pages[index]
        has_next = index + 1 < len(self._pages)
        return ListPage(
            objects=[StoredObject(key=key) for key in keys],
            is_truncated=has_next,
            next_continuation_token=f"token-{index + 1}" if has_next else None,
        )


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def storage():
    return MockStorageClient.from_keys(["a/b.png", "a/c.txt", "a/sub/d.png"])


@pytest.fixture
def browser(storage):
    return BucketBrowser(storage=storage, config=CONFIG)


# ---------------------------------------------------------------------------
# Prefix lister
# ---------------------------------------------------------------------------

class TestListPrefixes:

    def test_lists_one_level(self, browser):
        listing = run(browser.list_prefixes("a"))

        assert listing.bucket == "assets-bucket"
        assert listing.prefix == "a/"
        assert listing.prefix_count == 1
        assert [p.to_dict() for p in listing.prefixes] == [
            {"name": "sub", "path": "a/sub/", "hasChildren": True},
        ]

    def test_root_lists_top_folders(self, browser):
        listing = run(browser.list_prefixes(""))

        assert listing.prefix == ""
        assert [p.path for p in listing.prefixes] == ["a/"]

    def test_single_delimited_call_capped_at_1000(self, browser, storage):
        run(browser.list_prefixes("a/"))

        assert storage.calls == [{
            "prefix": "a/",
            "max_keys": PREFIX_MAX_KEYS,
            "delimiter": "/",
            "continuation_token": None,
        }]

    def test_leaf_folder_still_reports_children(self, browser):
        listing = run(browser.list_prefixes("a"))

        # a/sub/ has no sub-folders, but children are never probed
        assert listing.prefixes[0].has_children is True

    def test_repeated_calls_are_identical(self, browser):
        first = run(browser.list_prefixes("a"))
        second = run(browser.list_prefixes("a"))

        assert first.prefixes == second.prefixes


# ---------------------------------------------------------------------------
# Object lister
# ---------------------------------------------------------------------------

class TestListObjects:

    def test_lists_direct_children_only(self, browser):
        listing = run(browser.list_objects("a", page_size=25))

        assert [o.name for o in listing.objects] == ["b.png", "c.txt"]
        assert [o.is_image for o in listing.objects] == [True, False]
        assert listing.object_count == 2
        assert listing.is_truncated is False
        assert listing.next_continuation_token is None

    def test_folder_marker_is_excluded(self, storage, browser):
        storage.put(StoredObject(key="a/", size=0))

        listing = run(browser.list_objects("a/"))

        assert all(o.key != "a/" for o in listing.objects)
        assert listing.object_count == 2

    def test_display_urls_use_cdn_domain(self, browser):
        listing = run(browser.list_objects("a"))

        assert listing.objects[0].display_url == "https://cdn.example.com/a/b.png"

    def test_pagination_threads_token_verbatim(self, browser, storage):
        first = run(browser.list_objects("a", page_size=1))

        assert first.is_truncated is True
        assert first.next_continuation_token

        second = run(browser.list_objects(
            "a", page_size=1, continuation_token=first.next_continuation_token
        ))

        assert storage.calls[1]["continuation_token"] == first.next_continuation_token
        assert storage.calls[1]["max_keys"] == 1
        assert [o.key for o in first.objects + second.objects] == ["a/b.png", "a/c.txt"]

    def test_empty_token_is_not_sent(self, browser, storage):
        run(browser.list_objects("a", continuation_token=""))

        assert storage.calls[0]["continuation_token"] is None


# ---------------------------------------------------------------------------
# Search engine
# ---------------------------------------------------------------------------

class TestSearchObjects:

    def test_matches_file_name_case_insensitively(self, browser):
        for query in ("b", "B"):
            result = run(browser.search_objects(query, "a"))

            assert [o.key for o in result.objects] == ["a/b.png"]
            assert result.query == query
            assert result.has_more is False

    def test_matches_name_not_full_key(self, browser):
        # "sub" only appears in the folder part of a/sub/d.png
        result = run(browser.search_objects("sub", "a"))

        assert result.objects == []

    def test_searches_nested_keys(self, browser):
        result = run(browser.search_objects("d.png", "a"))

        assert [o.key for o in result.objects] == ["a/sub/d.png"]

    def test_uses_flat_pages_of_1000(self, browser, storage):
        run(browser.search_objects("b", "a"))

        assert storage.calls[0]["delimiter"] is None
        assert storage.calls[0]["max_keys"] == SEARCH_PAGE_SIZE

    def test_stops_once_enough_matches(self):
        storage = ScriptedStorage([["x/hit1.png", "x/hit2.png"], ["x/hit3.png"], ["x/hit4.png"]])
        browser = BucketBrowser(storage=storage, config=CONFIG)

        result = run(browser.search_objects("hit", "x", max_results=2))

        assert len(storage.calls) == 1
        assert result.object_count == 2
        assert result.has_more is False

    def test_truncates_and_flags_surplus(self):
        storage = ScriptedStorage([["x/hit1.png", "x/hit2.png", "x/hit3.png"]])
        browser = BucketBrowser(storage=storage, config=CONFIG)

        result = run(browser.search_objects("hit", "x", max_results=2))

        assert [o.name for o in result.objects] == ["hit1.png", "hit2.png"]
        assert result.has_more is True

    def test_follows_tokens_until_exhausted(self):
        storage = ScriptedStorage([["x/miss.txt"], ["x/hit.png"], ["x/other.txt"]])
        browser = BucketBrowser(storage=storage, config=CONFIG)

        result = run(browser.search_objects("hit", "x", max_results=5))

        assert [c["continuation_token"] for c in storage.calls] == [None, "token-1", "token-2"]
        assert result.object_count == 1
        assert result.has_more is False
        assert result.pages_scanned == 3

    def test_page_cap_bounds_the_scan(self):
        pages = [[f"x/miss{i}.txt"] for i in range(SEARCH_MAX_PAGES + 5)]
        storage = ScriptedStorage(pages)
        browser = BucketBrowser(storage=storage, config=CONFIG)

        result = run(browser.search_objects("hit", "x"))

        assert len(storage.calls) == SEARCH_MAX_PAGES == 10
        assert result.objects == []
        assert result.has_more is True

    def test_bucket_exhausted_exactly_at_cap_has_no_more(self):
        pages = [[f"x/miss{i}.txt"] for i in range(SEARCH_MAX_PAGES)]
        storage = ScriptedStorage(pages)
        browser = BucketBrowser(storage=storage, config=CONFIG)

        result = run(browser.search_objects("hit", "x"))

        assert len(storage.calls) == SEARCH_MAX_PAGES
        assert result.has_more is False

    def test_page_cap_is_configurable(self):
        storage = ScriptedStorage([["x/a.txt"]] * 5)
        browser = BucketBrowser(storage=storage, config=CONFIG, search_max_pages=2)

        result = run(browser.search_objects("zzz", "x"))

        assert len(storage.calls) == 2
        assert result.has_more is True

    def test_failed_page_aborts_whole_search(self):
        storage = ScriptedStorage([["x/hit1.png"], ["x/hit2.png"], ["x/hit3.png"]], fail_on_call=2)
        browser = BucketBrowser(storage=storage, config=CONFIG)

        with pytest.raises(StorageError, match="ServiceUnavailable"):
            run(browser.search_objects("hit", "x"))

        assert len(storage.calls) == 2

    @pytest.mark.parametrize("max_results", [1, 3, 25])
    def test_never_returns_more_than_requested(self, max_results):
        pages = [[f"x/hit{p}-{i}.png" for i in range(4)] for p in range(3)]
        browser = BucketBrowser(storage=ScriptedStorage(pages), config=CONFIG)

        result = run(browser.search_objects("hit", "x", max_results=max_results))

        assert result.object_count <= max_results
        assert result.pages_scanned <= SEARCH_MAX_PAGES
