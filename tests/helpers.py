"""Test constants and a Settings builder shared across test modules."""

from s3_proxy.config.settings import Settings

TEST_API_KEY = "test-api-key"
TEST_BUCKET = "assets-bucket"
TEST_DOMAIN = "cdn.example.com"

SCENARIO_KEYS = ["a/b.png", "a/c.txt", "a/sub/d.png"]


def make_settings(**overrides) -> Settings:
    """Settings that ignore the real environment's .env file."""
    values = {
        "api_key": TEST_API_KEY,
        "aws_region": "eu-west-1",
        "aws_access_key_id": "AKIATEST",
        "aws_secret_access_key": "secret",
        "s3_bucket_name": TEST_BUCKET,
        "cloudfront_domain": TEST_DOMAIN,
        "environment": "development",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)
