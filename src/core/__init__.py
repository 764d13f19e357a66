"""Core error taxonomy and response decoding."""

from .errors import (
    ApiError,
    ConfigError,
    CredentialError,
    DownloaderError,
    HttpError,
    InvalidFieldError,
    InvalidParameterError,
    MalformedBodyError,
    MissingFieldError,
    NoDataError,
    NoTokenError,
    TokenError,
)

__all__ = [
    "ApiError",
    "ConfigError",
    "CredentialError",
    "DownloaderError",
    "HttpError",
    "InvalidFieldError",
    "InvalidParameterError",
    "MalformedBodyError",
    "MissingFieldError",
    "NoDataError",
    "NoTokenError",
    "TokenError",
]
