"""
S3 Proxy - browse an object-storage bucket on behalf of a content picker.

This package contains the complete service:
- core: Framework-agnostic listing and search logic
- infrastructure: Bucket-provider clients (boto3 and in-memory)
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
