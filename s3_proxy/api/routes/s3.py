"""
Bucket browsing API endpoints.

The content picker uses three read-only calls:
1. GET /prefixes - expand one folder level of the tree
2. GET /objects - list one page of objects in a folder
3. GET /search - find objects by file name under a folder

Every route sits behind the API key gate (applied where the router is
included). Inputs are validated here, before any provider call, and
failures propagate as ProxyError for the app-level handlers to shape.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ...core.browser.validation import (
    parse_page_size,
    validate_prefix,
    validate_query,
)
from ..dependencies import BucketBrowserDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Query Parameters
# ---------------------------------------------------------------------------

# These run as dependencies, in signature order, ahead of the browser
# dependency, so bad input is rejected before configuration or the
# provider is touched.

def prefix_param(prefix: Annotated[Optional[str], Query()] = None) -> str:
    return validate_prefix(prefix)


def page_size_param(
    page_size: Annotated[Optional[str], Query(alias="pageSize")] = None,
) -> int:
    return parse_page_size(page_size)


def query_param(q: Annotated[Optional[str], Query()] = None) -> str:
    return validate_query(q)


PrefixParam = Annotated[str, Depends(prefix_param)]
PageSizeParam = Annotated[int, Depends(page_size_param)]
QueryParam = Annotated[str, Depends(query_param)]


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class CamelModel(BaseModel):
    """Serializes with the camelCase names the picker expects."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PrefixItem(CamelModel):
    """One virtual folder."""
    name: str = Field(description="Folder name (last path segment)")
    path: str = Field(description="Full prefix, always ending with /")
    has_children: bool = Field(description="Always true; children load lazily")


class ObjectItem(CamelModel):
    """One object in the bucket."""
    key: str = Field(description="Full object key")
    name: str = Field(description="File name (last key segment)")
    size: Optional[int] = Field(None, description="Size in bytes")
    last_modified: Optional[str] = Field(None, description="ISO-8601 timestamp")
    e_tag: Optional[str] = Field(None, description="ETag without quotes")
    is_image: bool = Field(description="Whether the key has an image extension")
    display_url: str = Field(description="Public CDN URL of the object")


class PrefixesResponse(CamelModel):
    success: bool = True
    bucket: str
    prefix: str
    prefix_count: int
    prefixes: list[PrefixItem]


class ObjectsResponse(CamelModel):
    success: bool = True
    bucket: str
    prefix: str
    object_count: int
    is_truncated: bool = Field(description="Provider reported more keys")
    next_continuation_token: Optional[str] = Field(
        None,
        description="Opaque token; send back verbatim as continuationToken",
    )
    objects: list[ObjectItem]


class SearchResponse(CamelModel):
    success: bool = True
    bucket: str
    prefix: str
    query: str
    object_count: int
    has_more: bool = Field(
        description="More matches were found, or the scan stopped at its page cap"
    )
    objects: list[ObjectItem]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/prefixes",
    response_model=PrefixesResponse,
    status_code=status.HTTP_200_OK,
    summary="List folders",
    description="List the virtual folders (common prefixes) directly under a path",
)
async def list_prefixes(
    prefix: PrefixParam,
    browser: BucketBrowserDep,
) -> PrefixesResponse:
    listing = await browser.list_prefixes(prefix)

    return PrefixesResponse(
        bucket=listing.bucket,
        prefix=listing.prefix,
        prefix_count=listing.prefix_count,
        prefixes=[PrefixItem(**item.to_dict()) for item in listing.prefixes],
    )


@router.get(
    "/objects",
    response_model=ObjectsResponse,
    status_code=status.HTTP_200_OK,
    summary="List objects",
    description="List one page of objects in a folder",
)
async def list_objects(
    prefix: PrefixParam,
    page_size: PageSizeParam,
    browser: BucketBrowserDep,
    continuation_token: Annotated[Optional[str], Query(alias="continuationToken")] = None,
) -> ObjectsResponse:
    """
    List one page of objects.

    To get the next page, send back ``nextContinuationToken`` from the
    previous response as ``continuationToken``, unchanged.
    """
    listing = await browser.list_objects(
        prefix,
        page_size=page_size,
        continuation_token=continuation_token or None,
    )

    return ObjectsResponse(
        bucket=listing.bucket,
        prefix=listing.prefix,
        object_count=listing.object_count,
        is_truncated=listing.is_truncated,
        next_continuation_token=listing.next_continuation_token,
        objects=[ObjectItem(**entry.to_dict()) for entry in listing.objects],
    )


@router.get(
    "/search",
    response_model=SearchResponse,
    status_code=status.HTTP_200_OK,
    summary="Search objects",
    description="Case-insensitive file name search under a folder",
)
async def search_objects(
    query: QueryParam,
    prefix: PrefixParam,
    page_size: PageSizeParam,
    browser: BucketBrowserDep,
) -> SearchResponse:
    """
    Search by file name.

    The scan is live and bounded. There is no cursor: repeating a
    search rescans from the start, and ``hasMore`` is only a hint.
    """
    result = await browser.search_objects(query, prefix, max_results=page_size)

    return SearchResponse(
        bucket=result.bucket,
        prefix=result.prefix,
        query=result.query,
        object_count=result.object_count,
        has_more=result.has_more,
        objects=[ObjectItem(**entry.to_dict()) for entry in result.objects],
    )
