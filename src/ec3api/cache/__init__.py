"""Disk-based material caching for ec3api.

This package provides :class:`MaterialCache`, a best-effort cache that
stores decoded material lists as one JSON file per filter category, plus
the functional shortcuts :func:`read_cache` and :func:`write_cache`.

The cache is consumed by :func:`ec3api.api.fetch` and is controlled by
the ``use_cache`` and ``cache_dir`` fields of
:class:`~ec3api.models.FetchConfig`.
"""

from ec3api.cache.cache import MaterialCache, read_cache, serialize_materials, write_cache

__all__ = ["MaterialCache", "read_cache", "serialize_materials", "write_cache"]
