"""
Virtual folder listing, paginated object listing and filename search.

Contains the browsing service, the key/URL mapper, input validators and
the error taxonomy shared with the API layer.
"""

from .errors import (
    AuthenticationError,
    ConfigurationError,
    ProxyError,
    StorageError,
    ValidationError,
)
from .models import (
    BucketConfig,
    ListPage,
    ObjectEntry,
    ObjectListing,
    PrefixListing,
    SearchResult,
    StoredObject,
    VirtualPrefix,
)
from .service import BucketBrowser, ObjectStorageClient

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "ProxyError",
    "StorageError",
    "ValidationError",
    "BucketConfig",
    "ListPage",
    "ObjectEntry",
    "ObjectListing",
    "PrefixListing",
    "SearchResult",
    "StoredObject",
    "VirtualPrefix",
    "BucketBrowser",
    "ObjectStorageClient",
]
