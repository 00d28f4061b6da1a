"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (and an optional
.env file). Variable names match the deployment environment of the
proxy: API_KEY, AWS_REGION, AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY,
S3_BUCKET_NAME, CLOUDFRONT_DOMAIN.

Missing bucket settings are not fatal at startup. They surface on each
request as a ConfigurationError, so the process stays up and its health
endpoint keeps answering while the deployment is fixed.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.browser.errors import ConfigurationError
from ..core.browser.models import BucketConfig

DEFAULT_CORS_ORIGIN_REGEX = (
    r"^(https://app\.contentful\.com"
    r"|https://[a-z0-9-]+\.ctfcloud\.net"
    r"|http://localhost:\d+"
    r"|http://127\.0\.0\.1:\d+)$"
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    """

    # API Configuration
    api_title: str = "S3 Proxy"
    api_version: str = "0.1.0"
    api_key: str = Field(
        default="",
        description="Shared secret every caller must send in the X-API-Key header."
    )
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("environment", "node_env"),
        description="development or production. Production hides internal error messages."
    )
    host: str = "0.0.0.0"
    port: int = 8000

    # Bucket Configuration
    aws_region: str = Field(
        default="",
        description="AWS region of the bucket"
    )
    aws_access_key_id: str = Field(
        default="",
        description="AWS access key ID"
    )
    aws_secret_access_key: str = Field(
        default="",
        description="AWS secret access key"
    )
    s3_bucket_name: str = Field(
        default="",
        description="Bucket to browse"
    )
    cloudfront_domain: str = Field(
        default="",
        description="CDN hostname that serves the bucket publicly"
    )
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Endpoint URL for S3-compatible stores (MinIO, R2). Empty for AWS."
    )
    s3_mock_mode: bool = Field(
        default=False,
        description="Use an in-memory bucket instead of S3. Enables local dev without credentials."
    )
    s3_mock_keys: str = Field(
        default="",
        description="Comma-separated keys to seed the in-memory bucket with in mock mode."
    )

    # Logging
    log_level: Optional[str] = Field(
        default=None,
        description="Logging level. Defaults to DEBUG in development and INFO in production."
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of extra allowed CORS origins."
    )
    cors_origin_regex: str = Field(
        default=DEFAULT_CORS_ORIGIN_REGEX,
        description="Regex of allowed CORS origins (Contentful hosts and localhost by default)."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def effective_log_level(self) -> str:
        if self.log_level:
            return self.log_level.upper()
        return "INFO" if self.is_production else "DEBUG"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def s3_mock_keys_list(self) -> list[str]:
        return [key.strip() for key in self.s3_mock_keys.split(",") if key.strip()]

    def missing_bucket_fields(self) -> list[str]:
        """
        Names of unset bucket variables.

        Credentials and region are not needed in mock mode; the bucket
        name and CDN domain still are, since they appear in responses.
        """
        required = {
            "AWS_REGION": self.aws_region,
            "AWS_ACCESS_KEY_ID": self.aws_access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.aws_secret_access_key,
            "S3_BUCKET_NAME": self.s3_bucket_name,
            "CLOUDFRONT_DOMAIN": self.cloudfront_domain,
        }
        if self.s3_mock_mode:
            required = {
                "S3_BUCKET_NAME": self.s3_bucket_name,
                "CLOUDFRONT_DOMAIN": self.cloudfront_domain,
            }
        return [name for name, value in required.items() if not value]

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set.

        Returns list of missing required fields, including the API key.
        """
        missing = []
        if not self.api_key:
            missing.append("API_KEY")
        missing.extend(self.missing_bucket_fields())
        return missing

    def bucket_config(self) -> BucketConfig:
        """
        Build the immutable bucket configuration.

        Raises ConfigurationError naming every missing variable.
        """
        missing = self.missing_bucket_fields()
        if missing:
            raise ConfigurationError(
                f"Missing environment variables: {', '.join(missing)}"
            )

        return BucketConfig(
            region=self.aws_region,
            access_key_id=self.aws_access_key_id,
            secret_access_key=self.aws_secret_access_key,
            bucket=self.s3_bucket_name,
            cloudfront_domain=self.cloudfront_domain,
            endpoint_url=self.s3_endpoint_url or None,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
