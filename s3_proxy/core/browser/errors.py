"""
Error taxonomy for the proxy.

Every failure the API can report is a ProxyError carrying the name that
ends up in the response envelope's ``error`` field and the HTTP status
code it maps to. The API layer only has to know about this base class.
"""


class ProxyError(Exception):
    """Base class for errors shaped into the ``{error, message}`` envelope."""

    error_name = "InternalError"
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ProxyError):
    """Client-correctable input shape violation."""

    error_name = "ValidationError"
    status_code = 400


class AuthenticationError(ProxyError):
    """Missing or wrong API key."""

    error_name = "AuthenticationError"
    status_code = 401


class ConfigurationError(ProxyError):
    """Server is missing required settings."""

    error_name = "ConfigurationError"
    status_code = 500


class StorageError(ProxyError):
    """
    Raised when a bucket-provider call fails.

    Keeps the provider's own status code when it supplied one,
    otherwise defaults to 500.
    """

    error_name = "S3Error"
    status_code = 500
