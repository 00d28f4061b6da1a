"""
Infrastructure layer - external service integrations.

- storage: Object storage listing (S3 via boto3, or in-memory mock)

These wrappers translate between provider formats and our domain models.
"""
