"""Response decoding bridge between the HTTP client and the record decoders."""

from __future__ import annotations

import json
from typing import Any

import httpx

from ec3api.exceptions import DeserializationFailed


def parse_json_body(response: httpx.Response) -> Any:
    """Decode the JSON body of *response*.

    Args:
        response: A successful :class:`httpx.Response`.

    Returns:
        The decoded JSON value (``list``, ``dict``, ...).

    Raises:
        DeserializationFailed: If the body is empty or not valid JSON.
    """
    if not response.content:
        raise DeserializationFailed(f"Empty response body from {response.request.url}")
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DeserializationFailed(f"Could not deserialize response: {exc}") from exc
