"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~ec3api.exceptions.Ec3Error` subclass.  Shell
scripts wrapping ``ec3`` can inspect the exit code to tell an expired API
key from a rate limit without parsing stderr.

Example::

    $ ec3 materials Concrete
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the API key was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or a malformed filter."""

EXIT_AUTH_FAILURE = 3
"""The EC3 API rejected the API key (HTTP 401)."""

EXIT_REQUEST_FAILED = 5
"""The request failed with a non-2xx status or a transport error."""

EXIT_RATE_LIMITED = 6
"""The API kept answering HTTP 429 after all retries."""

EXIT_DECODE_ERROR = 7
"""The response body could not be decoded into typed records."""

EXIT_CACHE_ERROR = 8
"""The material cache directory could not be read or created."""
