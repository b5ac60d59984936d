"""Exception hierarchy for ec3api.

All exceptions inherit from :class:`Ec3Error`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`ec3api.exit_codes`.
The CLI entry point :func:`ec3api.app.main` catches ``Ec3Error`` and exits
with the matching code; library callers catch the specific subclasses.

Subclass hierarchy::

    Ec3Error (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- ConfigError                (exit 1)
    +-- AuthenticationRejected     (exit 3)
    +-- RequestFailed              (exit 5)
    +-- TooManyRequests            (exit 6)
    +-- DecodeError                (exit 7)
    |   +-- DeserializationFailed
    |   +-- EmptyOrInvalidCollection
    |   +-- GwpFormatInvalid
    |   +-- UnitFormatInvalid
    +-- CacheError                 (exit 8)
        +-- CacheReadFailed
        +-- CacheDirectoryError

Cache errors never escape :func:`ec3api.api.fetch`; they are logged and the
fetch falls back to the live API.
"""

from __future__ import annotations

from typing import Optional

from ec3api.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CACHE_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_RATE_LIMITED,
    EXIT_REQUEST_FAILED,
)


class Ec3Error(Exception):
    """Base exception for all ec3api errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(Ec3Error):
    """Raised for invalid CLI arguments or a malformed filter description."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(Ec3Error):
    """Raised for configuration problems (missing API key, unreadable settings)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthenticationRejected(Ec3Error):
    """Raised when the API answers HTTP 401 for the supplied API key."""

    exit_code = EXIT_AUTH_FAILURE


class RequestFailed(Ec3Error):
    """Raised on any non-2xx status other than 401/429, or a transport failure.

    Args:
        message: Error description.
        status_code: The HTTP status, or ``None`` when no response was
            received (DNS, TLS, timeout).
    """

    exit_code = EXIT_REQUEST_FAILED

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TooManyRequests(Ec3Error):
    """Raised when the final attempt still answers HTTP 429.

    The response body is kept on :attr:`body` since the API explains its
    quota there.
    """

    exit_code = EXIT_RATE_LIMITED

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body


class DecodeError(Ec3Error):
    """Base class for failures turning a JSON payload into typed records."""

    exit_code = EXIT_DECODE_ERROR


class DeserializationFailed(DecodeError):
    """Raised for malformed JSON or a record missing a required field."""


class EmptyOrInvalidCollection(DecodeError):
    """Raised when a material list is empty or the payload is not an array."""


class GwpFormatInvalid(DecodeError):
    """Raised when a ``gwp`` string is not of the form ``"<value> <unit>"``."""


class UnitFormatInvalid(DecodeError):
    """Raised when a ``declared_unit`` string is not of the form ``"<value> <unit>"``."""


class CacheError(Ec3Error):
    """Base class for material cache failures."""

    exit_code = EXIT_CACHE_ERROR


class CacheReadFailed(CacheError):
    """Raised when a cache file is missing or unreadable; callers treat it as a miss."""


class CacheDirectoryError(CacheError):
    """Raised when the cache root directory cannot be created."""
