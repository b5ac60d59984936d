"""Tests for ec3api.units -- unit tokens and compound quantity strings."""

from __future__ import annotations

import pytest

from ec3api.exceptions import GwpFormatInvalid, UnitFormatInvalid
from ec3api.units import (
    DeclaredUnit,
    Gwp,
    GwpUnits,
    Unit,
    parse_declared_unit,
    parse_gwp,
)


class TestUnitParse:
    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("m2", Unit.SQUARE_METER),
            ("M2", Unit.SQUARE_METER),
            ("m3", Unit.CUBIC_METER),
            ("M3", Unit.CUBIC_METER),
            ("m", Unit.LINEAR_METER),
            ("M", Unit.LINEAR_METER),
            ("sqft", Unit.SQUARE_FOOT),
            ("SQFT", Unit.SQUARE_FOOT),
            ("ton", Unit.METRIC_TON),
            ("t", Unit.METRIC_TON),
            ("kg", Unit.KILOGRAM),
            ("Kg", Unit.KILOGRAM),
            ("KG", Unit.KILOGRAM),
        ],
    )
    def test_known_tokens(self, token: str, expected: Unit) -> None:
        assert Unit.parse(token) is expected

    @pytest.mark.parametrize("token", ["", "xyz", "m4", "kilogram", "ft", "m 3", "XYZ"])
    def test_unknown_tokens(self, token: str) -> None:
        assert Unit.parse(token) is Unit.UNKNOWN

    def test_is_known(self) -> None:
        assert Unit.CUBIC_METER.is_known
        assert not Unit.UNKNOWN.is_known


class TestGwpUnitsParse:
    @pytest.mark.parametrize("token", ["KgCO2e", "kgCO2e", "kgCo2e"])
    def test_known_tokens(self, token: str) -> None:
        assert GwpUnits.parse(token) is GwpUnits.KG_CO2E

    @pytest.mark.parametrize("token", ["", "CO2", "kg", "tCO2e", "xyz"])
    def test_unknown_tokens(self, token: str) -> None:
        assert GwpUnits.parse(token) is GwpUnits.UNKNOWN


class TestParseGwp:
    def test_value_and_unit(self) -> None:
        assert parse_gwp("12.3 KgCO2e") == Gwp(value=12.3, unit=GwpUnits.KG_CO2E)

    def test_unknown_unit_is_not_an_error(self) -> None:
        assert parse_gwp("12.3 xyz") == Gwp(value=12.3, unit=GwpUnits.UNKNOWN)

    def test_negative_value_allowed(self) -> None:
        assert parse_gwp("-4.5 kgCO2e").value == -4.5

    def test_splits_on_first_space_only(self) -> None:
        # "kgCO2e per m3" is not a recognised token
        assert parse_gwp("1 kgCO2e per m3").unit is GwpUnits.UNKNOWN

    def test_missing_separator(self) -> None:
        with pytest.raises(GwpFormatInvalid):
            parse_gwp("bad")

    def test_bad_number(self) -> None:
        with pytest.raises(GwpFormatInvalid):
            parse_gwp("abc KgCO2e")

    def test_non_finite_rejected(self) -> None:
        with pytest.raises(GwpFormatInvalid):
            parse_gwp("nan KgCO2e")

    @pytest.mark.parametrize("value", [None, 12.3, {"value": 1}])
    def test_non_string_rejected(self, value: object) -> None:
        with pytest.raises(GwpFormatInvalid):
            parse_gwp(value)

    def test_str(self) -> None:
        assert str(Gwp(value=12.3, unit=GwpUnits.KG_CO2E)) == "12.3 KgCO2e"


class TestParseDeclaredUnit:
    def test_cubic_meter(self) -> None:
        assert parse_declared_unit("1.5 m3") == DeclaredUnit(value=1.5, unit=Unit.CUBIC_METER)

    def test_unknown_unit(self) -> None:
        assert parse_declared_unit("2 furlongs").unit is Unit.UNKNOWN

    def test_missing_separator_is_unit_error(self) -> None:
        with pytest.raises(UnitFormatInvalid):
            parse_declared_unit("1m3")

    def test_empty_number(self) -> None:
        with pytest.raises(UnitFormatInvalid):
            parse_declared_unit(" m3")

    def test_defaults(self) -> None:
        assert DeclaredUnit() == DeclaredUnit(value=1.0, unit=Unit.UNKNOWN)
