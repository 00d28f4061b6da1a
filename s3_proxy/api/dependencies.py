"""
FastAPI dependency injection.

Dependencies provide settings, the bucket configuration, the storage
client and the browsing service to route handlers. Tests swap any of
them through ``app.dependency_overrides``.
"""

import logging
import secrets
from typing import Annotated, Optional

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.browser.errors import AuthenticationError, ConfigurationError
from ..core.browser.models import BucketConfig
from ..core.browser.service import BucketBrowser, ObjectStorageClient
from ..infrastructure.storage.client import create_storage_client

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"

# API Key security scheme
api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: Optional[str] = Security(api_key_header),
) -> str:
    """
    Validate the API key from the request header.

    Fails closed: if the server has no key configured, every request is
    rejected with a ConfigurationError instead of being let through.
    """
    if not settings.api_key:
        logger.error("API_KEY not configured in environment")
        raise ConfigurationError("Server authentication not configured")

    if not api_key:
        logger.warning(
            "Request missing API key",
            extra={"path": request.url.path},
        )
        raise AuthenticationError("API key is required")

    if not secrets.compare_digest(api_key.encode("utf-8"), settings.api_key.encode("utf-8")):
        logger.warning(
            "Invalid API key attempt",
            extra={"path": request.url.path},
        )
        raise AuthenticationError("Invalid API key")

    return api_key


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_bucket_config(
    settings: Annotated[Settings, Depends(get_settings)],
) -> BucketConfig:
    """Provide the bucket configuration, or raise ConfigurationError."""
    return settings.bucket_config()


def get_storage_client(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    config: Annotated[BucketConfig, Depends(get_bucket_config)],
) -> ObjectStorageClient:
    """
    Provide the storage client.

    Returns either the S3 client or the mock client based on settings.
    The client is created on first use and kept on the application, so
    the mock bucket persists and the boto3 connection pool is shared
    across requests.
    """
    client = getattr(request.app.state, "storage_client", None)

    if client is None:
        client = create_storage_client(
            config=config,
            mock_mode=settings.s3_mock_mode,
            mock_keys=settings.s3_mock_keys_list,
        )
        request.app.state.storage_client = client
        logger.info(
            "Created shared storage client",
            extra={"mock_mode": settings.s3_mock_mode},
        )

    return client


def get_bucket_browser(
    storage: Annotated[ObjectStorageClient, Depends(get_storage_client)],
    config: Annotated[BucketConfig, Depends(get_bucket_config)],
) -> BucketBrowser:
    """The browser is stateless, so a new one per request is cheap."""
    return BucketBrowser(storage=storage, config=config)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

BucketBrowserDep = Annotated[BucketBrowser, Depends(get_bucket_browser)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
