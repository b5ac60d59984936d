"""Category-keyed disk cache for decoded material lists.

Each filter category maps to one file, ``<cache_dir>/<category>.json``,
holding a JSON array of materials in the *cache shape*: the same fields as
the live API, except that ``gwp`` and ``declared_unit`` are nested
``{"value": ..., "unit": ...}`` objects instead of compound strings.
Existing cache files use that shape, so it is kept as is.

Reads decode leniently through
:func:`~ec3api.decoder.decode_cached_material`.  The round trip keeps ids,
names, quantities, manufacturer and category; unit tokens the parser did
not recognise come back as ``UNKNOWN``.

There is no locking: concurrent writers to the same category race and the
last one wins.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

from ec3api.config import atomic_write
from ec3api.decoder import decode_cached_material
from ec3api.exceptions import CacheDirectoryError, CacheReadFailed, DecodeError
from ec3api.models import Material
from ec3api.output import get_output

_SUFFIX = ".json"


class MaterialCache:
    """Material lists on disk, one JSON file per category.

    Args:
        cache_dir: Root directory.  Created on first write, not on
            construction.

    Example::

        from ec3api.cache import MaterialCache

        cache = MaterialCache("/tmp/ec3-cache")
        cache.write_materials("Concrete", materials)
        hit = cache.read("Concrete")
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._cache_dir = Path(cache_dir)

    @property
    def directory(self) -> Path:
        return self._cache_dir

    def path_for(self, category: str) -> Path:
        """Return the file that holds *category*."""
        return self._cache_dir / f"{category}{_SUFFIX}"

    def read(self, category: str) -> list[Material]:
        """Load the cached materials for *category*.

        Returns:
            The decoded materials, in file order.

        Raises:
            CacheReadFailed: If the file is missing or unreadable, is not
                UTF-8 JSON, or does not hold an array.  Callers treat this
                as a cache miss.
        """
        path = self.path_for(category)
        try:
            contents = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheReadFailed(f"Could not read cache {path}: {exc}") from exc

        try:
            data: Any = json.loads(contents)
        except json.JSONDecodeError as exc:
            raise CacheReadFailed(f"Cache file {path} is not valid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise CacheReadFailed(f"Cache file {path} does not hold a JSON array")

        try:
            return [decode_cached_material(item) for item in data]
        except DecodeError as exc:
            raise CacheReadFailed(f"Cache file {path} holds an invalid record: {exc}") from exc

    def write(self, category: str, json_text: str) -> bool:
        """Write *json_text* as the cache file for *category*, replacing it.

        Returns:
            ``True`` when the file was written, ``False`` when writing
            failed (the failure is reported as a warning).

        Raises:
            CacheDirectoryError: If the cache directory cannot be created.
        """
        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheDirectoryError(
                f"Unable to create cache directory {self._cache_dir}: {exc}"
            ) from exc

        path = self.path_for(category)
        output = get_output()
        try:
            atomic_write(path, json_text)
        except OSError as exc:
            output.warning(f"Could not write cache file {path}: {exc}")
            return False
        output.debug(f"Results cached in {path}")
        return True

    def write_materials(self, category: str, materials: Sequence[Material]) -> bool:
        """Serialise *materials* in the cache shape and :meth:`write` them."""
        return self.write(category, serialize_materials(materials))

    def invalidate(self, category: str) -> bool:
        """Delete the cache file for *category*.  Returns whether one existed."""
        try:
            self.path_for(category).unlink()
        except FileNotFoundError:
            return False
        return True

    def categories(self) -> list[str]:
        """Return the cached category names, sorted."""
        if not self._cache_dir.is_dir():
            return []
        return sorted(p.stem for p in self._cache_dir.glob(f"*{_SUFFIX}") if p.is_file())

    def clear(self) -> int:
        """Delete every cache file and return how many were removed."""
        removed = 0
        for category in self.categories():
            if self.invalidate(category):
                removed += 1
        return removed

    def stats(self) -> dict[str, Any]:
        """Return ``directory``, ``categories`` (count) and ``size_bytes``."""
        names = self.categories()
        return {
            "directory": str(self._cache_dir),
            "categories": len(names),
            "size_bytes": sum(self.path_for(n).stat().st_size for n in names),
        }


def serialize_materials(materials: Sequence[Material]) -> str:
    """Render *materials* as the pretty-printed JSON array stored in cache files."""
    return json.dumps([m.model_dump(mode="json") for m in materials], indent=2)


def read_cache(cache_dir: str | Path, category: str) -> list[Material]:
    """Shortcut for ``MaterialCache(cache_dir).read(category)``."""
    return MaterialCache(cache_dir).read(category)


def write_cache(cache_dir: str | Path, category: str, json_text: str) -> bool:
    """Shortcut for ``MaterialCache(cache_dir).write(category, json_text)``."""
    return MaterialCache(cache_dir).write(category, json_text)
