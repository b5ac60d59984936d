"""Canonical Pydantic models shared across all ec3api modules.

This is the single source of truth for data shapes in the project.  The
models fall into three groups:

**Domain records** -- produced by :mod:`ec3api.decoder`:
    :class:`Category`, :class:`Manufacturer`, :class:`Material`, and
    :class:`CategoryTree` (plus the quantity types re-exported from
    :mod:`ec3api.units`).

**Query description** -- compiled by :mod:`ec3api.filter`:
    :class:`Clause`, :class:`Pragma`, and :class:`FilterSpec`.

**Configuration** -- consumed by :func:`ec3api.api.fetch` and the CLI:
    :class:`Endpoint`, :class:`Country`, :class:`RequestConfig`,
    :class:`FetchConfig`, and :class:`Settings`.

All models use Pydantic v2.  :class:`Category` and :class:`Manufacturer`
override equality on purpose: two categories with the same ``id`` are the
same category, whatever their display fields say.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ec3api.units import DeclaredUnit, Gwp, GwpUnits, Unit

BASE_URL = "https://buildingtransparency.org/api/"
ROOT_CATEGORY_NAME = "ConstructionMaterials"

__all__ = [
    "BASE_URL",
    "ROOT_CATEGORY_NAME",
    "Category",
    "CategoryTree",
    "Clause",
    "Country",
    "DeclaredUnit",
    "Endpoint",
    "FetchConfig",
    "FilterSpec",
    "Gwp",
    "GwpUnits",
    "Manufacturer",
    "Material",
    "Pragma",
    "RequestConfig",
    "Settings",
    "Unit",
]


# --- Domain records ---


class Category(BaseModel):
    """A material category as embedded in a material record.

    Equality and hashing use ``id`` only.
    """

    description: str = ""
    name: str
    display_name: str = ""
    id: str

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Category):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class Manufacturer(BaseModel):
    """Manufacturer of a material.  Equality uses ``(name, country)``."""

    name: str
    country: Optional[str] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Manufacturer):
            return NotImplemented
        return (self.name, self.country) == (other.name, other.country)

    def __hash__(self) -> int:
        return hash((self.name, self.country))


class Material(BaseModel):
    """A material with its environmental product declaration figures."""

    name: str
    description: str = ""
    id: str
    gwp: Gwp
    declared_unit: DeclaredUnit
    image: Optional[str] = None
    manufacturer: Manufacturer
    category: Category


class CategoryTree(BaseModel):
    """One node of the category taxonomy.

    The root returned by :func:`ec3api.decoder.decode_category_tree` is a
    synthetic node named ``ConstructionMaterials`` with an empty id.  Nodes
    are frozen and children are stored as a tuple, so a tree is never
    modified once built.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ROOT_CATEGORY_NAME
    id: str = ""
    declared_unit: DeclaredUnit = Field(default_factory=DeclaredUnit)
    children: tuple[CategoryTree, ...] = ()

    def walk(self) -> Iterator[CategoryTree]:
        """Yield this node and all descendants, depth-first, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, name: str) -> Optional[CategoryTree]:
        """Return the first node named *name*, or ``None``."""
        for node in self.walk():
            if node.name == name:
                return node
        return None


# --- Query description ---


class Clause(BaseModel):
    """A single ``field: OP("arg", ...)`` condition of a filter."""

    field: str
    operator: str
    arguments: list[str] = Field(default_factory=list)

    @field_validator("operator")
    @classmethod
    def upper_operator(cls, value: str) -> str:
        return value.upper()


class Pragma(BaseModel):
    """A ``name("arg, arg")`` directive appended to a compiled filter."""

    name: str
    arguments: list[str] = Field(default_factory=list)


def _default_pragmas() -> list[Pragma]:
    return [
        Pragma(name="eMF", arguments=["2.0/1"]),
        Pragma(name="lcia", arguments=["EF 3.0"]),
    ]


class FilterSpec(BaseModel):
    """Structured description of a material search.

    Clauses and pragmas are serialised in insertion order, which changes
    the compiled query text, so both are kept as ordered lists.

    Example::

        spec = (
            FilterSpec.of_category("Concrete")
            .add_clause("jurisdiction", "in", ["150"])
            .add_clause("epd_types", "in", ["Product EPDs", "Industry EPDs"])
        )
    """

    category: str
    clauses: list[Clause] = Field(default_factory=list)
    pragmas: list[Pragma] = Field(default_factory=_default_pragmas)

    @classmethod
    def of_category(cls, category: str) -> FilterSpec:
        """Create an empty filter for *category* with the default pragmas."""
        return cls(category=category)

    def add_clause(self, field: str, operator: str, arguments: list[str]) -> FilterSpec:
        """Append a clause (operator is upper-cased) and return ``self``."""
        self.clauses.append(Clause(field=field, operator=operator, arguments=list(arguments)))
        return self

    def add_pragma(self, name: str, arguments: list[str]) -> FilterSpec:
        """Append a pragma and return ``self``."""
        self.pragmas.append(Pragma(name=name, arguments=list(arguments)))
        return self


# --- Configuration ---


class Endpoint(str, enum.Enum):
    """API resource to query.  The value is the URL path under the base URL."""

    MATERIALS = "materials"
    CATEGORIES = "categories/root"


class Country(str, enum.Enum):
    """Jurisdiction narrowing a search.  ``NONE`` omits the query parameter."""

    US = "US"
    GERMANY = "DE"
    UK = "UK"
    NONE = ""

    @classmethod
    def from_name(cls, name: str) -> Country:
        """Resolve a CLI-style name (``us``, ``de``, ``germany``, ``uk``, ``none``).

        Raises:
            ValueError: If *name* matches no jurisdiction.
        """
        key = name.strip().lower()
        aliases = {
            "us": cls.US,
            "de": cls.GERMANY,
            "germany": cls.GERMANY,
            "uk": cls.UK,
            "none": cls.NONE,
            "": cls.NONE,
        }
        if key not in aliases:
            raise ValueError(f"Unknown country {name!r} (expected us, de, uk or none)")
        return aliases[key]


class RequestConfig(BaseModel):
    """HTTP settings for :class:`~ec3api.client.Ec3Client`."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(
        default=3, ge=0, description="Retries on HTTP 429/503 before the final attempt"
    )
    default_retry_after: int = Field(
        default=5, ge=0, description="Seconds to wait when no usable retry-after header is sent"
    )


class FetchConfig(BaseModel):
    """Everything one :func:`ec3api.api.fetch` call needs, fixed up front.

    ``use_cache`` controls whether a cached material list may be returned;
    ``cache_dir`` controls where results are written.  There is no default
    cache location: without ``cache_dir`` nothing touches the disk.
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(min_length=1)
    endpoint: Endpoint = Endpoint.MATERIALS
    country: Country = Country.GERMANY
    filter: Optional[FilterSpec] = None
    use_cache: bool = True
    cache_dir: Optional[Path] = None
    base_url: str = BASE_URL
    request: RequestConfig = Field(default_factory=RequestConfig)

    def __repr__(self) -> str:
        return f"FetchConfig(endpoint={self.endpoint.value!r}, api_key='***')"

    __str__ = __repr__


class Settings(BaseModel):
    """User defaults persisted at ``~/.config/ec3api/config.json``.

    Read by the CLI only; library callers build a :class:`FetchConfig`
    directly.
    """

    api_key_source: Optional[str] = Field(
        default=None, description="Credential source for the API key: env:VAR, file:/path, prompt"
    )
    country: str = Field(default="de", description="Default jurisdiction: us, de, uk, none")
    use_cache: bool = True
    cache_dir: Optional[str] = Field(
        default=None, description="Material cache directory (default: XDG cache dir)"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
