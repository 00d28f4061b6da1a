"""
Object storage client for bucket listing.

Talks to AWS S3 (or any S3-compatible store via an endpoint URL) with
boto3, and offers an in-memory mock for local development and tests.

Both implementations satisfy the ObjectStorageClient protocol from the
core, which needs exactly one operation: fetch a single ListObjectsV2
page, with or without a delimiter.
"""

import asyncio
import base64
import logging
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional

from ...core.browser.errors import StorageError
from ...core.browser.models import BucketConfig, ListPage, StoredObject
from ...core.browser.service import ObjectStorageClient

logger = logging.getLogger(__name__)


class S3StorageClient:
    """
    AWS S3 listing client.

    One instance is created per process and shared by all requests.
    boto3 clients are thread-safe, and each call runs in a worker thread
    so the event loop keeps serving other requests while S3 answers.
    """

    def __init__(self, config: BucketConfig) -> None:
        """
        Initialize the boto3 client.

        boto3 is imported here (not at module level) so that mock mode
        doesn't need it.
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for S3 storage. Install with: pip install boto3"
            )

        self._config = config

        boto_config = Config(
            signature_version="s3v4",
            retries={"max_attempts": 1, "mode": "standard"},
        )

        self._s3_client = boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 storage client",
            extra={
                "bucket": config.bucket,
                "region": config.region,
                "endpoint": config.endpoint_url,
            }
        )

    async def list_page(
        self,
        prefix: str,
        max_keys: int,
        delimiter: Optional[str] = None,
        continuation_token: Optional[str] = None,
    ) -> ListPage:
        """Fetch one ListObjectsV2 page."""
        params = {
            "Bucket": self._config.bucket,
            "Prefix": prefix,
            "MaxKeys": max_keys,
        }
        if delimiter:
            params["Delimiter"] = delimiter
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        try:
            response = await asyncio.to_thread(self._s3_client.list_objects_v2, **params)
        except Exception as e:
            logger.error(
                "Failed to list objects",
                extra={
                    "bucket": self._config.bucket,
                    "prefix": prefix,
                    "error": str(e),
                }
            )
            raise _to_storage_error(e) from e

        return ListPage(
            objects=[
                StoredObject(
                    key=obj["Key"],
                    size=obj.get("Size"),
                    last_modified=obj.get("LastModified"),
                    etag=obj.get("ETag"),
                )
                for obj in response.get("Contents", [])
            ],
            common_prefixes=[
                common["Prefix"] for common in response.get("CommonPrefixes", [])
            ],
            is_truncated=response.get("IsTruncated", False),
            next_continuation_token=response.get("NextContinuationToken"),
        )


def _to_storage_error(exc: Exception) -> StorageError:
    """
    Wrap a boto3/botocore failure.

    ClientError carries the provider's HTTP status and error code; keep
    the status when it is an error status, otherwise fall back to 500.
    """
    response = getattr(exc, "response", None)
    if isinstance(response, dict):
        error = response.get("Error", {})
        code = error.get("Code", "Unknown")
        message = error.get("Message") or str(exc)
        status_code = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if not isinstance(status_code, int) or status_code < 400:
            status_code = None
        return StorageError(f"{code}: {message}", status_code=status_code)

    return StorageError(f"S3 request failed: {exc}")


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory bucket for local development and tests.

    Emulates the parts of ListObjectsV2 this service relies on: prefix
    filtering, delimiter grouping into common prefixes, MaxKeys counting
    both objects and common prefixes, and opaque continuation tokens.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self, objects: Optional[Iterable[StoredObject]] = None) -> None:
        self._objects: dict[str, StoredObject] = {}
        self.calls: list[dict] = []
        for obj in objects or ():
            self._objects[obj.key] = obj
        logger.info(
            "Initialized mock storage client (in-memory)",
            extra={"object_count": len(self._objects)},
        )

    @classmethod
    def from_keys(cls, keys: Iterable[str]) -> "MockStorageClient":
        """Seed a mock bucket with empty objects at the given keys."""
        now = datetime.now(timezone.utc)
        return cls(
            StoredObject(key=key, size=0, last_modified=now, etag=f'"{key}"')
            for key in keys
        )

    def put(self, obj: StoredObject) -> None:
        self._objects[obj.key] = obj

    async def list_page(
        self,
        prefix: str,
        max_keys: int,
        delimiter: Optional[str] = None,
        continuation_token: Optional[str] = None,
    ) -> ListPage:
        self.calls.append({
            "prefix": prefix,
            "max_keys": max_keys,
            "delimiter": delimiter,
            "continuation_token": continuation_token,
        })

        start_after = None
        if continuation_token:
            start_after = _decode_token(continuation_token)

        objects: list[StoredObject] = []
        common_prefixes: list[str] = []
        last_name = None
        is_truncated = False

        for name, is_prefix in self._entries(prefix, delimiter):
            if start_after is not None and name <= start_after:
                continue
            if len(objects) + len(common_prefixes) >= max_keys:
                is_truncated = True
                break
            if is_prefix:
                common_prefixes.append(name)
            else:
                objects.append(self._objects[name])
            last_name = name

        logger.debug(
            "Listed mock storage page",
            extra={
                "prefix": prefix,
                "objects": len(objects),
                "common_prefixes": len(common_prefixes),
            }
        )

        return ListPage(
            objects=objects,
            common_prefixes=common_prefixes,
            is_truncated=is_truncated,
            next_continuation_token=(
                _encode_token(last_name) if is_truncated and last_name else None
            ),
        )

    def _entries(
        self,
        prefix: str,
        delimiter: Optional[str],
    ) -> Iterator[tuple[str, bool]]:
        """
        Yield ``(name, is_common_prefix)`` in key order.

        A common prefix is yielded once, at the position of its first
        key, so names come out strictly increasing.
        """
        seen_prefix = None
        for key in sorted(self._objects):
            if not key.startswith(prefix):
                continue
            if delimiter:
                rest = key[len(prefix):]
                index = rest.find(delimiter)
                if index >= 0:
                    common = prefix + rest[:index + len(delimiter)]
                    if common != seen_prefix:
                        seen_prefix = common
                        yield common, True
                    continue
            yield key, False


def _encode_token(name: str) -> str:
    return base64.urlsafe_b64encode(name.encode("utf-8")).decode("ascii")


def _decode_token(token: str) -> str:
    try:
        return base64.urlsafe_b64decode(token.encode("ascii")).decode("utf-8")
    except (ValueError, UnicodeError):
        raise StorageError(
            "InvalidArgument: The continuation token provided is incorrect",
            status_code=400,
        )


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[BucketConfig] = None,
    mock_mode: bool = False,
    mock_keys: Iterable[str] = (),
) -> ObjectStorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Bucket configuration (required if not mock_mode)
        mock_mode: If True, return an in-memory client
        mock_keys: Keys to seed the in-memory bucket with

    Returns:
        ObjectStorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        return MockStorageClient.from_keys(mock_keys)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config)
