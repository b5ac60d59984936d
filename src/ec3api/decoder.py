"""Decode EC3 JSON payloads into typed records.

Two JSON shapes exist for a material:

* the **live** shape returned by ``GET /materials``, where ``gwp`` and
  ``declared_unit`` are compound strings (``"12.3 KgCO2e"``) --
  :func:`decode_material` / :func:`decode_materials`;
* the **cache** shape written by :mod:`ec3api.cache`, where the same two
  fields are nested ``{"value": ..., "unit": ...}`` objects --
  :func:`decode_cached_material`.

The cache decoder is lenient (missing fields fall back to defaults) because
cache files may come from older versions; the live decoder is strict and
raises a typed :class:`~ec3api.exceptions.DecodeError` naming the field.

The category taxonomy has a variable nesting depth and is walked as a raw
JSON tree by :func:`decode_category_tree`.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from ec3api.exceptions import DeserializationFailed, EmptyOrInvalidCollection, UnitFormatInvalid
from ec3api.models import Category, CategoryTree, Manufacturer, Material
from ec3api.output import get_output
from ec3api.units import (
    DeclaredUnit,
    Gwp,
    GwpUnits,
    Unit,
    parse_declared_unit,
    parse_gwp,
)


# ------------------------------------------------------------------ #
# Field access helpers
# ------------------------------------------------------------------ #


def _require_object(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise DeserializationFailed(
            f"Expected {what} to be an object, got {type(value).__name__}"
        )
    return value


def _require_str(obj: dict[str, Any], key: str, what: str) -> str:
    if key not in obj or obj[key] is None:
        raise DeserializationFailed(f"Missing field '{key}' in {what}")
    value = obj[key]
    if not isinstance(value, str):
        raise DeserializationFailed(
            f"Field '{key}' in {what} must be a string, got {type(value).__name__}"
        )
    return value


def _optional_str(obj: dict[str, Any], key: str) -> Optional[str]:
    value = obj.get(key)
    return value if isinstance(value, str) else None


def _str_or_empty(obj: Any, key: str) -> str:
    if not isinstance(obj, dict):
        return ""
    value = obj.get(key)
    return value if isinstance(value, str) else ""


# ------------------------------------------------------------------ #
# Live materials
# ------------------------------------------------------------------ #


def decode_material(obj: Any) -> Material:
    """Decode one material in the live API shape.

    Args:
        obj: A decoded JSON object.

    Returns:
        The typed :class:`Material`.

    Raises:
        DeserializationFailed: If *obj* is not an object or a required
            field (``name``, ``id``, ``manufacturer.name``,
            ``category.name``, ``category.id``) is missing.
        GwpFormatInvalid: If ``gwp`` is not a ``"<value> <unit>"`` string.
        UnitFormatInvalid: If ``declared_unit`` is not a ``"<value> <unit>"``
            string.
    """
    record = _require_object(obj, "material")
    name = _require_str(record, "name", "material")
    material_id = _require_str(record, "id", "material")
    what = f"material {material_id!r}"

    if "gwp" not in record:
        raise DeserializationFailed(f"Missing field 'gwp' in {what}")
    if "declared_unit" not in record:
        raise DeserializationFailed(f"Missing field 'declared_unit' in {what}")

    manufacturer = _require_object(record.get("manufacturer"), f"manufacturer of {what}")
    category = _require_object(record.get("category"), f"category of {what}")

    return Material(
        name=name,
        description=_optional_str(record, "description") or "",
        id=material_id,
        gwp=parse_gwp(record["gwp"]),
        declared_unit=parse_declared_unit(record["declared_unit"]),
        image=_optional_str(record, "image"),
        manufacturer=Manufacturer(
            name=_require_str(manufacturer, "name", f"manufacturer of {what}"),
            country=_optional_str(manufacturer, "country"),
        ),
        category=Category(
            description=_optional_str(category, "description") or "",
            name=_require_str(category, "name", f"category of {what}"),
            display_name=_optional_str(category, "display_name") or "",
            id=_require_str(category, "id", f"category of {what}"),
        ),
    )


def decode_materials(payload: Any) -> list[Material]:
    """Decode the body of ``GET /materials``.

    Raises:
        EmptyOrInvalidCollection: If *payload* is not a JSON array or is
            empty.  Checked before any element is decoded.
        DecodeError: Any error raised by :func:`decode_material`.
    """
    if not isinstance(payload, list):
        raise EmptyOrInvalidCollection(
            f"Expected a JSON array of materials, got {type(payload).__name__}"
        )
    if not payload:
        raise EmptyOrInvalidCollection("Request succeeded but the material list is empty")
    return [decode_material(item) for item in payload]


# ------------------------------------------------------------------ #
# Cached materials
# ------------------------------------------------------------------ #


def _cached_quantity(value: Any) -> tuple[float, str]:
    """Return ``(value, unit_token)`` from a nested cache quantity, with defaults.

    A value that is not a finite float (wrong type, NaN, or an integer too
    large to convert) falls back to ``1.0``.
    """
    if not isinstance(value, dict):
        return 1.0, ""
    number = value.get("value")
    amount = 1.0
    if isinstance(number, (int, float)) and not isinstance(number, bool):
        try:
            amount = float(number)
        except OverflowError:
            amount = 1.0
        if not math.isfinite(amount):
            amount = 1.0
    unit = value.get("unit")
    return amount, unit if isinstance(unit, str) else ""


def decode_cached_material(obj: Any) -> Material:
    """Decode one material in the cache shape, tolerating missing fields.

    Missing strings become ``""``; a missing quantity value becomes ``1.0``
    and a missing unit ``UNKNOWN``; a missing ``image`` or manufacturer
    ``country`` becomes ``None``.

    Raises:
        DeserializationFailed: Only if *obj* is not an object at all.
    """
    record = _require_object(obj, "cached material")
    gwp_value, gwp_unit = _cached_quantity(record.get("gwp"))
    du_value, du_unit = _cached_quantity(record.get("declared_unit"))
    manufacturer = record.get("manufacturer")
    category = record.get("category")

    return Material(
        name=_str_or_empty(record, "name"),
        description=_str_or_empty(record, "description"),
        id=_str_or_empty(record, "id"),
        gwp=Gwp(value=gwp_value, unit=GwpUnits.parse(gwp_unit)),
        declared_unit=DeclaredUnit(value=du_value, unit=Unit.parse(du_unit)),
        image=_optional_str(record, "image"),
        manufacturer=Manufacturer(
            name=_str_or_empty(manufacturer, "name"),
            country=_optional_str(manufacturer, "country") if isinstance(manufacturer, dict) else None,
        ),
        category=Category(
            description=_str_or_empty(category, "description"),
            name=_str_or_empty(category, "name"),
            display_name=_str_or_empty(category, "display_name"),
            id=_str_or_empty(category, "id"),
        ),
    )


# ------------------------------------------------------------------ #
# Category taxonomy
# ------------------------------------------------------------------ #


def _tree_declared_unit(raw: Any, what: str) -> DeclaredUnit:
    """Parse a taxonomy node's declared unit; a malformed one becomes the default."""
    try:
        return parse_declared_unit(raw)
    except UnitFormatInvalid as exc:
        get_output().debug(f"Using default declared unit for {what}: {exc}")
        return DeclaredUnit()


def _decode_children(node: Any) -> tuple[CategoryTree, ...]:
    """Collect the child nodes reachable from a raw JSON value.

    Objects are unwrapped through ``subcategories`` without producing a
    node; arrays produce one node per element; anything else ends the
    branch.
    """
    if isinstance(node, dict):
        return _decode_children(node.get("subcategories"))
    if not isinstance(node, list):
        return ()

    children = []
    for element in node:
        entry = _require_object(element, "category entry")
        name = _require_str(entry, "name", "category entry")
        what = f"category {name!r}"
        if "declared_unit" not in entry:
            raise DeserializationFailed(f"Missing field 'declared_unit' in {what}")
        children.append(
            CategoryTree(
                name=name,
                id=_require_str(entry, "id", what),
                declared_unit=_tree_declared_unit(entry["declared_unit"], what),
                children=_decode_children(entry),
            )
        )
    return tuple(children)


def decode_category_tree(payload: Any) -> CategoryTree:
    """Decode the body of ``GET /categories/root`` into a :class:`CategoryTree`.

    The returned root is synthetic (``ConstructionMaterials``, empty id);
    its children follow the order of the source arrays.  A malformed
    ``declared_unit`` does not fail the decode: that node gets the default
    quantity (``1.0``, ``UNKNOWN``).

    Raises:
        DeserializationFailed: If an entry is not an object or lacks
            ``name``, ``id`` or ``declared_unit``.
    """
    return CategoryTree(children=_decode_children(payload))
