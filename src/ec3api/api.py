"""Fetch orchestration: cache lookup, live query, decoding, write-through.

:func:`fetch` is the library entry point.  Given a frozen
:class:`~ec3api.models.FetchConfig` it:

1. returns cached materials when ``use_cache`` is set, a ``cache_dir`` is
   configured, and ``<cache_dir>/<category>.json`` decodes;
2. otherwise compiles the filter and queries the API through
   :class:`~ec3api.client.Ec3Client`;
3. decodes the body as a material list or a category tree depending on
   the endpoint;
4. writes successful material lists back to ``cache_dir``.

Caching is best effort: cache failures are logged and never change the
outcome of the fetch.  Category trees are never cached.
"""

from __future__ import annotations

from typing import Any, Optional, Union

import httpx

from ec3api.cache import MaterialCache
from ec3api.client import Ec3Client, parse_json_body
from ec3api.decoder import decode_category_tree, decode_materials
from ec3api.exceptions import CacheError, CacheReadFailed
from ec3api.filter import compile_filter
from ec3api.models import CategoryTree, Country, Endpoint, FetchConfig, Material
from ec3api.output import get_output

FALLBACK_CACHE_KEY = "cache"

FetchResult = Union[list[Material], CategoryTree]


def cache_key(config: FetchConfig) -> str:
    """Cache file stem for *config*: the filter category, or ``"cache"``."""
    return config.filter.category if config.filter is not None else FALLBACK_CACHE_KEY


def build_params(config: FetchConfig) -> dict[str, Any]:
    """Query parameters other than ``mf`` (currently only ``jurisdiction``)."""
    if config.country is Country.NONE:
        return {}
    return {"jurisdiction": config.country.value}


def _read_cached(config: FetchConfig) -> Optional[list[Material]]:
    if not (config.use_cache and config.cache_dir is not None):
        return None

    key = cache_key(config)
    try:
        materials = MaterialCache(config.cache_dir).read(key)
    except CacheReadFailed as exc:
        get_output().debug(f"No cache found for {key!r}: {exc}")
        return None
    get_output().debug(f"Cache hit for {key!r} ({len(materials)} materials)")
    return materials


def _write_cached(config: FetchConfig, materials: list[Material]) -> None:
    if config.cache_dir is None:
        return
    try:
        MaterialCache(config.cache_dir).write_materials(cache_key(config), materials)
    except CacheError as exc:
        get_output().warning(f"Could not write cache: {exc}")


def _request(config: FetchConfig, transport: Optional[httpx.BaseTransport]) -> Any:
    """Query ``config.endpoint`` and return the decoded JSON body."""
    output = get_output()
    output.info(f"Querying {config.endpoint.value}...")
    filter_text = compile_filter(config.filter) if config.filter is not None else ""
    output.debug(f"mf={filter_text!r}")

    with Ec3Client(config.base_url, config.api_key, config.request, transport=transport) as client:
        response = client.get(config.endpoint.value, filter_text, build_params(config))
    return parse_json_body(response)


def fetch(
    config: FetchConfig,
    transport: Optional[httpx.BaseTransport] = None,
) -> FetchResult:
    """Run one fetch as described by *config*.

    Args:
        config: What to fetch and how.
        transport: Optional httpx transport, forwarded to
            :class:`~ec3api.client.Ec3Client`.

    Returns:
        A list of :class:`~ec3api.models.Material` for the materials
        endpoint, a :class:`~ec3api.models.CategoryTree` for categories.

    Raises:
        AuthenticationRejected: If the API rejects the key.
        TooManyRequests: If the API is still rate limiting after all retries.
        RequestFailed: On other HTTP or transport failures.
        DecodeError: If the body cannot be decoded into records.
    """
    if config.endpoint is Endpoint.CATEGORIES:
        return fetch_categories(config, transport)
    return fetch_materials(config, transport)


def fetch_materials(
    config: FetchConfig,
    transport: Optional[httpx.BaseTransport] = None,
) -> list[Material]:
    """:func:`fetch` against the materials endpoint regardless of ``config.endpoint``."""
    config = config.model_copy(update={"endpoint": Endpoint.MATERIALS})
    cached = _read_cached(config)
    if cached is not None:
        return cached

    materials = decode_materials(_request(config, transport))
    _write_cached(config, materials)
    return materials


def fetch_categories(
    config: FetchConfig,
    transport: Optional[httpx.BaseTransport] = None,
) -> CategoryTree:
    """:func:`fetch` against the categories endpoint regardless of ``config.endpoint``.

    The taxonomy is never read from or written to the cache.
    """
    config = config.model_copy(update={"endpoint": Endpoint.CATEGORIES})
    get_output().debug("No cache for categories")
    return decode_category_tree(_request(config, transport))
