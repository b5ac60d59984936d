"""Synchronous EC3 HTTP client with bearer auth and rate-limit retry.

This module provides :class:`Ec3Client`, which wraps :class:`httpx.Client`
and layers on:

- **Auth injection** -- ``Authorization: Bearer <api key>`` on every request.
- **Filter parameter** -- the compiled query text is sent as ``mf``.
- **Retry on 429/503** -- waits for the ``retry-after`` header (integer
  seconds, default 5) and retries up to ``max_retries`` times, then makes
  one final attempt whose outcome is returned as is.
- **Error mapping** -- 401 → :class:`~ec3api.exceptions.AuthenticationRejected`,
  429 → :class:`~ec3api.exceptions.TooManyRequests`, anything else
  non-2xx or a transport failure → :class:`~ec3api.exceptions.RequestFailed`.

Requests are issued one at a time and block the calling thread, including
while sleeping between retries.
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from ec3api.exceptions import AuthenticationRejected, RequestFailed, TooManyRequests
from ec3api.models import RequestConfig
from ec3api.output import get_output

RETRY_STATUSES = frozenset({429, 503})


class Ec3Client:
    """Synchronous HTTP client for the EC3 API.

    Must be used as a context manager so that the underlying transport is
    opened and closed properly.

    Args:
        base_url: API root, e.g. ``https://buildingtransparency.org/api/``.
        api_key: Token sent as ``Authorization: Bearer <api_key>``.
        config: Timeout, SSL and retry settings.
        transport: Optional httpx transport (tests pass a
            :class:`httpx.MockTransport`).

    Example::

        with Ec3Client(BASE_URL, api_key) as client:
            response = client.get("materials", filter_text=query)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        config: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._api_key = api_key
        self._config = config or RequestConfig()
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Ec3Client:
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def get(
        self,
        path: str,
        filter_text: str = "",
        params: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send ``GET <base_url><path>`` with retry and error mapping.

        Args:
            path: Path relative to the base URL (``materials``,
                ``categories/root``).
            filter_text: Compiled filter sent as the ``mf`` parameter.
                Sent even when empty.
            params: Extra query parameters, placed before ``mf``.

        Returns:
            The successful (2xx) :class:`httpx.Response`.

        Raises:
            AuthenticationRejected: On 401.
            TooManyRequests: On 429 from the final attempt.
            RequestFailed: On any other non-2xx status or a transport error.
        """
        merged_params: dict[str, Any] = dict(params or {})
        merged_params["mf"] = filter_text
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        response = self._execute_with_retry(path, headers, merged_params)
        self._map_response_error(response)
        return response

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _send(self, path: str, headers: dict[str, str], params: dict[str, Any]) -> httpx.Response:
        assert self._client is not None, "Client not initialised -- use as context manager"
        try:
            return self._client.get(path, headers=headers, params=params)
        except httpx.TransportError as exc:
            raise RequestFailed(f"Request to {path} failed: {exc}") from exc

    def _execute_with_retry(
        self,
        path: str,
        headers: dict[str, str],
        params: dict[str, Any],
    ) -> httpx.Response:
        """Send the request, sleeping and retrying while the API answers 429/503.

        After ``max_retries`` retries one last attempt is made and its
        response returned whatever the status.  Transport errors are not
        retried.
        """
        output = get_output()
        max_retries = self._config.max_retries

        for attempt in range(max_retries):
            response = self._send(path, headers, params)
            if response.status_code not in RETRY_STATUSES:
                return response
            delay = self._retry_after(response)
            output.warning(
                f"HTTP {response.status_code} for {response.request.url}, retrying in {delay}s "
                f"(attempt {attempt + 1}/{max_retries})"
            )
            time.sleep(delay)

        return self._send(path, headers, params)

    def _retry_after(self, response: httpx.Response) -> int:
        """Seconds to wait per the ``retry-after`` header, or the configured default."""
        raw = response.headers.get("retry-after")
        if raw is not None:
            try:
                seconds = int(raw.strip())
            except ValueError:
                seconds = -1
            if seconds >= 0:
                return seconds
        return self._config.default_retry_after

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for non-2xx status codes."""
        status = response.status_code
        if 200 <= status < 300:
            return

        get_output().debug(f"HTTP {status} body: {response.text[:200]}")
        if status == 401:
            raise AuthenticationRejected("HTTP 401: the API rejected the API key")
        if status == 429:
            raise TooManyRequests("HTTP 429: too many requests", body=response.text)
        raise RequestFailed(f"HTTP {status}: request failed", status_code=status)
