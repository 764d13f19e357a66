"""Custom error types for the Wealthsimple client."""

import json
from typing import Any


def _render(payload: Any) -> str:
    if isinstance(payload, (dict, list)):
        try:
            return json.dumps(payload, sort_keys=True, default=str)
        except (TypeError, ValueError):
            return repr(payload)
    return str(payload)


class DownloaderError(Exception):
    """Base error for the Wealthsimple client."""


class ConfigError(DownloaderError):
    """Configuration or environment error."""


class InvalidParameterError(DownloaderError):
    """A caller supplied argument was rejected before any request was sent."""


class TokenError(DownloaderError):
    """Acquiring, refreshing or attaching the bearer credential failed."""


class NoTokenError(TokenError):
    """No credential is available."""

    def __init__(self, message: str = "No token available. Call authenticate() first."):
        super().__init__(message)


class ApiError(DownloaderError):
    """Upstream API response could not be used.

    ``payload`` keeps the raw JSON fragment (or body) that caused the failure
    so a server contract change can be diagnosed from the error alone.
    """

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload

    def __str__(self) -> str:
        message = super().__str__()
        if self.payload is None:
            return message
        return f"{message}: {_render(self.payload)}"


class NoDataError(ApiError):
    """The server answered without a body."""

    def __init__(self, message: str = "No data was received from the server"):
        super().__init__(message)


class HttpError(ApiError):
    """Transport failure or unexpected HTTP status."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        super().__init__(message, payload)
        self.status_code = status_code


class MalformedBodyError(ApiError):
    """The body is not a JSON object."""


class MissingFieldError(ApiError):
    """The JSON is structurally valid but lacks a required key."""

    def __init__(self, field: str, payload: Any):
        super().__init__(f"The server response JSON was missing expected parameter '{field}'", payload)
        self.field = field


class InvalidFieldError(ApiError):
    """A key is present but its value is unusable."""

    def __init__(self, field: str, payload: Any):
        super().__init__(f"The server response JSON contained invalid parameter '{field}'", payload)
        self.field = field


class CredentialError(ApiError):
    """Wraps a token failure raised while issuing an API call."""

    def __init__(self, error: TokenError):
        super().__init__(str(error))
        self.token_error = error
