"""Unit-aware parsing of the compound quantity strings the EC3 API returns.

The live API reports ``gwp`` and ``declared_unit`` as single strings such as
``"12.3 KgCO2e"`` or ``"1 m3"``.  This module turns them into typed
quantities:

* :class:`Unit` and :class:`GwpUnits` -- closed enumerations whose
  :meth:`~Unit.parse` never fails.  Unrecognised tokens map to an explicit
  ``UNKNOWN`` member so consumers can tell "known unit" apart from
  "unit we could not recognise".
* :class:`Gwp` and :class:`DeclaredUnit` -- ``{value, unit}`` pairs.
* :func:`parse_gwp` / :func:`parse_declared_unit` -- split on the first
  space and parse both halves.  Only a missing separator or a bad number is
  an error; an unknown unit token is not.
"""

from __future__ import annotations

import enum
import math

from pydantic import BaseModel, ConfigDict

from ec3api.exceptions import Ec3Error, GwpFormatInvalid, UnitFormatInvalid


class Unit(str, enum.Enum):
    """Declared (functional) unit a material's data is normalised to."""

    CUBIC_METER = "m3"
    SQUARE_METER = "m2"
    LINEAR_METER = "m"
    SQUARE_FOOT = "sqft"
    KILOGRAM = "kg"
    METRIC_TON = "t"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, token: str) -> Unit:
        """Map a unit token to a member, case-insensitively.  Never raises."""
        return _UNIT_TOKENS.get(token.strip().casefold(), cls.UNKNOWN)

    @property
    def is_known(self) -> bool:
        return self is not Unit.UNKNOWN


class GwpUnits(str, enum.Enum):
    """Unit of a global-warming-potential figure."""

    KG_CO2E = "KgCO2e"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, token: str) -> GwpUnits:
        """Map a GWP unit token to a member, case-insensitively.  Never raises."""
        if token.strip().casefold() == "kgco2e":
            return cls.KG_CO2E
        return cls.UNKNOWN

    @property
    def is_known(self) -> bool:
        return self is not GwpUnits.UNKNOWN


_UNIT_TOKENS: dict[str, Unit] = {
    "m3": Unit.CUBIC_METER,
    "m2": Unit.SQUARE_METER,
    "m": Unit.LINEAR_METER,
    "sqft": Unit.SQUARE_FOOT,
    "kg": Unit.KILOGRAM,
    "ton": Unit.METRIC_TON,
    "t": Unit.METRIC_TON,
}


class Gwp(BaseModel):
    """Global warming potential of a material, e.g. ``12.3 KgCO2e``."""

    model_config = ConfigDict(frozen=True)

    value: float
    unit: GwpUnits = GwpUnits.UNKNOWN

    def __str__(self) -> str:
        return f"{self.value} {self.unit.value}"


class DeclaredUnit(BaseModel):
    """Quantity a material's figures refer to, e.g. ``1 m3``."""

    model_config = ConfigDict(frozen=True)

    value: float = 1.0
    unit: Unit = Unit.UNKNOWN

    def __str__(self) -> str:
        return f"{self.value} {self.unit.value}"


def split_quantity(text: object, error: type[Ec3Error]) -> tuple[float, str]:
    """Split ``"<value> <unit>"`` on the first space.

    Args:
        text: The raw JSON value.  Anything but a string is rejected.
        error: Exception class raised on failure (format error of the
            field being decoded).

    Returns:
        The finite numeric value and the (unparsed) unit token.

    Raises:
        error: When *text* is not a string, has no space, or its first
            half is not a finite number.
    """
    if not isinstance(text, str):
        raise error(f"Expected a '<value> <unit>' string, got {type(text).__name__}")
    number, sep, token = text.partition(" ")
    if not sep:
        raise error(f"Missing unit separator in {text!r}")
    try:
        value = float(number)
    except ValueError:
        raise error(f"Invalid numeric value {number!r} in {text!r}") from None
    if not math.isfinite(value):
        raise error(f"Non-finite value in {text!r}")
    return value, token


def parse_gwp(text: object) -> Gwp:
    """Parse a compound GWP string such as ``"12.3 KgCO2e"``.

    Raises:
        GwpFormatInvalid: If the separator is missing or the value is not a number.
    """
    value, token = split_quantity(text, GwpFormatInvalid)
    return Gwp(value=value, unit=GwpUnits.parse(token))


def parse_declared_unit(text: object) -> DeclaredUnit:
    """Parse a compound declared-unit string such as ``"1 m3"``.

    Raises:
        UnitFormatInvalid: If the separator is missing or the value is not a number.
    """
    value, token = split_quantity(text, UnitFormatInvalid)
    return DeclaredUnit(value=value, unit=Unit.parse(token))
