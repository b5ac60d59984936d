"""Tests for ec3api.decoder -- live materials, cached materials, category trees."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from ec3api.decoder import (
    decode_cached_material,
    decode_category_tree,
    decode_material,
    decode_materials,
)
from ec3api.exceptions import (
    DeserializationFailed,
    EmptyOrInvalidCollection,
    GwpFormatInvalid,
    UnitFormatInvalid,
)
from ec3api.models import Manufacturer
from ec3api.units import DeclaredUnit, GwpUnits, Unit


# ---------------------------------------------------------------------------
# Live materials
# ---------------------------------------------------------------------------


class TestDecodeMaterial:
    def test_full_record(self, materials_payload: list[dict[str, Any]]) -> None:
        material = decode_material(materials_payload[0])
        assert material.name == "ReadyMix C30/37"
        assert material.id == "ec3abc123"
        assert material.gwp.value == 312.5
        assert material.gwp.unit is GwpUnits.KG_CO2E
        assert material.declared_unit.unit is Unit.CUBIC_METER
        assert material.image == "https://example.com/readymix.png"
        assert material.manufacturer == Manufacturer(name="Beton AG", country="DE")
        assert material.category.id == "cat-readymix"
        assert material.category.display_name == "Ready Mix"

    def test_optional_fields_default(self, materials_payload: list[dict[str, Any]]) -> None:
        material = decode_material(materials_payload[1])
        assert material.image is None
        assert material.manufacturer.country is None

    def test_missing_description_defaults_to_empty(self, materials_payload: list[dict[str, Any]]) -> None:
        record = copy.deepcopy(materials_payload[0])
        del record["description"]
        assert decode_material(record).description == ""

    def test_bad_gwp(self, materials_payload: list[dict[str, Any]]) -> None:
        record = copy.deepcopy(materials_payload[0])
        record["gwp"] = "bad"
        with pytest.raises(GwpFormatInvalid):
            decode_material(record)

    def test_bad_declared_unit(self, materials_payload: list[dict[str, Any]]) -> None:
        record = copy.deepcopy(materials_payload[0])
        record["declared_unit"] = "one cubic"
        with pytest.raises(UnitFormatInvalid):
            decode_material(record)

    def test_unknown_units_tolerated(self, materials_payload: list[dict[str, Any]]) -> None:
        record = copy.deepcopy(materials_payload[0])
        record["gwp"] = "12.3 xyz"
        record["declared_unit"] = "1 pallet"
        material = decode_material(record)
        assert material.gwp.unit is GwpUnits.UNKNOWN
        assert material.declared_unit.unit is Unit.UNKNOWN

    @pytest.mark.parametrize("field", ["name", "id", "gwp", "declared_unit", "manufacturer", "category"])
    def test_missing_required_field(self, materials_payload: list[dict[str, Any]], field: str) -> None:
        record = copy.deepcopy(materials_payload[0])
        del record[field]
        with pytest.raises(DeserializationFailed):
            decode_material(record)

    def test_missing_category_id(self, materials_payload: list[dict[str, Any]]) -> None:
        record = copy.deepcopy(materials_payload[0])
        del record["category"]["id"]
        with pytest.raises(DeserializationFailed, match="'id'"):
            decode_material(record)

    def test_not_an_object(self) -> None:
        with pytest.raises(DeserializationFailed):
            decode_material(["not", "an", "object"])


class TestDecodeMaterials:
    def test_decodes_each_in_order(self, materials_payload: list[dict[str, Any]]) -> None:
        materials = decode_materials(materials_payload)
        assert [m.id for m in materials] == ["ec3abc123", "ec3def456"]

    def test_empty_array_is_an_error(self) -> None:
        with pytest.raises(EmptyOrInvalidCollection):
            decode_materials([])

    @pytest.mark.parametrize("payload", [{"materials": []}, "text", None, 3])
    def test_non_array(self, payload: Any) -> None:
        with pytest.raises(EmptyOrInvalidCollection):
            decode_materials(payload)

    def test_collection_checked_before_elements(self) -> None:
        # An invalid element would raise DeserializationFailed; the shape check wins.
        with pytest.raises(EmptyOrInvalidCollection):
            decode_materials({"0": "junk"})

    def test_one_bad_element_fails_all(self, materials_payload: list[dict[str, Any]]) -> None:
        materials_payload[1]["gwp"] = "oops"
        with pytest.raises(GwpFormatInvalid):
            decode_materials(materials_payload)


# ---------------------------------------------------------------------------
# Cached materials
# ---------------------------------------------------------------------------


class TestDecodeCachedMaterial:
    def test_nested_quantities(self) -> None:
        material = decode_cached_material({
            "name": "Slab",
            "id": "m1",
            "gwp": {"value": 48.1, "unit": "KgCO2e"},
            "declared_unit": {"value": 1.0, "unit": "m2"},
            "manufacturer": {"name": "Werk", "country": "DE"},
            "category": {"name": "Precast", "id": "c2"},
        })
        assert material.gwp.value == 48.1
        assert material.gwp.unit is GwpUnits.KG_CO2E
        assert material.declared_unit.unit is Unit.SQUARE_METER
        assert material.manufacturer.country == "DE"
        assert material.category.description == ""

    def test_missing_quantity_fields_default(self) -> None:
        material = decode_cached_material({"name": "X", "id": "x", "gwp": {}, "declared_unit": {"unit": "m3"}})
        assert material.gwp.value == 1.0
        assert material.gwp.unit is GwpUnits.UNKNOWN
        assert material.declared_unit.value == 1.0
        assert material.declared_unit.unit is Unit.CUBIC_METER

    def test_everything_missing(self) -> None:
        material = decode_cached_material({})
        assert material.name == ""
        assert material.id == ""
        assert material.image is None
        assert material.manufacturer.name == ""
        assert material.manufacturer.country is None
        assert material.declared_unit.unit is Unit.UNKNOWN

    def test_null_image(self) -> None:
        assert decode_cached_material({"image": None}).image is None

    def test_non_finite_values_use_default(self) -> None:
        material = decode_cached_material({
            "gwp": {"value": 10**400, "unit": "KgCO2e"},
            "declared_unit": {"value": float("nan"), "unit": "m3"},
        })
        assert material.gwp.value == 1.0
        assert material.declared_unit.value == 1.0
        assert material.declared_unit.unit is Unit.CUBIC_METER

    def test_not_an_object(self) -> None:
        with pytest.raises(DeserializationFailed):
            decode_cached_material("junk")


# ---------------------------------------------------------------------------
# Category tree
# ---------------------------------------------------------------------------


class TestDecodeCategoryTree:
    def test_single_child(self) -> None:
        tree = decode_category_tree({
            "subcategories": [
                {"name": "Concrete", "id": "c1", "declared_unit": "1 m3", "subcategories": []}
            ]
        })
        assert tree.name == "ConstructionMaterials"
        assert tree.id == ""
        assert len(tree.children) == 1
        concrete = tree.children[0]
        assert concrete.name == "Concrete"
        assert concrete.declared_unit.unit is Unit.CUBIC_METER
        assert concrete.children == ()

    def test_nested_order_preserved(self, categories_payload: dict[str, Any]) -> None:
        tree = decode_category_tree(categories_payload)
        assert [c.name for c in tree.children] == ["Concrete", "Steel", "Insulation"]
        assert [c.name for c in tree.children[0].children] == ["ReadyMix", "Precast"]
        assert tree.find("Rebar").declared_unit.unit is Unit.KILOGRAM
        assert tree.find("Steel").declared_unit.unit is Unit.METRIC_TON
        assert tree.find("Insulation").declared_unit.unit is Unit.SQUARE_FOOT

    def test_null_subcategories_is_terminal(self, categories_payload: dict[str, Any]) -> None:
        tree = decode_category_tree(categories_payload)
        assert tree.find("Precast").children == ()

    def test_missing_subcategories_is_terminal(self) -> None:
        tree = decode_category_tree({"subcategories": [{"name": "A", "id": "a", "declared_unit": "1 m"}]})
        assert tree.children[0].children == ()

    @pytest.mark.parametrize("payload", [None, "text", 42, {}])
    def test_scalar_root_yields_empty_tree(self, payload: Any) -> None:
        assert decode_category_tree(payload).children == ()

    def test_array_root(self) -> None:
        tree = decode_category_tree([{"name": "A", "id": "a", "declared_unit": "1 m2"}])
        assert tree.children[0].name == "A"

    def test_entry_missing_name(self) -> None:
        with pytest.raises(DeserializationFailed):
            decode_category_tree({"subcategories": [{"id": "a", "declared_unit": "1 m"}]})

    def test_entry_missing_declared_unit(self) -> None:
        with pytest.raises(DeserializationFailed):
            decode_category_tree({"subcategories": [{"name": "A", "id": "a"}]})

    @pytest.mark.parametrize("raw", ["m3", "one m3", None])
    def test_entry_bad_declared_unit_uses_default(self, raw: Any) -> None:
        tree = decode_category_tree(
            {
                "subcategories": [
                    {"name": "A", "id": "a", "declared_unit": raw},
                    {"name": "B", "id": "b", "declared_unit": "1 kg"},
                ]
            }
        )
        first, second = tree.children
        assert first.declared_unit == DeclaredUnit()
        assert second.declared_unit.unit is Unit.KILOGRAM

    def test_non_object_entry(self) -> None:
        with pytest.raises(DeserializationFailed):
            decode_category_tree({"subcategories": ["Concrete"]})
