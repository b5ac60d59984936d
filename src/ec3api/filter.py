"""Compile a :class:`~ec3api.models.FilterSpec` into EC3 query-language text.

The EC3 API takes its search as a single ``mf`` query parameter written in a
small bespoke grammar::

    !EC3 search("Concrete") WHERE
     jurisdiction: IN("150") AND
     epd_types: IN("Product EPDs", "Industry EPDs")
    !pragma eMF("2.0/1"), lcia("EF 3.0")

:func:`compile_filter` produces that text.  The remaining helpers build a
``FilterSpec`` from the outside world: :func:`load_filter_file` reads JSON or
YAML documents, :func:`parse_clause` and :func:`parse_pragma` read the
compact forms accepted on the command line.

Double quotes inside fields or arguments are not escaped; the API grammar
has no escape syntax and such input is passed through unchanged.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ec3api.exceptions import InvalidUsageError
from ec3api.models import Clause, FilterSpec, Pragma


def _quote(text: str) -> str:
    return f'"{text}"'


def _compile_clause(clause: Clause) -> str:
    args = ", ".join(_quote(arg) for arg in clause.arguments)
    return f"{clause.field}: {clause.operator}({args})"


def _compile_pragma(pragma: Pragma) -> str:
    # All arguments share one pair of quotes, unlike clause arguments.
    return f"{pragma.name}({_quote(', '.join(pragma.arguments))})"


def compile_filter(spec: FilterSpec) -> str:
    """Render *spec* in the EC3 query grammar.

    The ``WHERE`` header is emitted even when there are no clauses.  Each
    clause sits on its own line indented by one space, and every line but
    the last ends in `` AND``.

    Args:
        spec: The filter to compile.

    Returns:
        The query text to send as the ``mf`` parameter.
    """
    text = f"!EC3 search({_quote(spec.category)}) WHERE"
    text += " AND".join(f"\n {_compile_clause(c)}" for c in spec.clauses)
    text += "\n!pragma " + ", ".join(_compile_pragma(p) for p in spec.pragmas)
    return text


# ------------------------------------------------------------------ #
# Building filters from files and CLI options
# ------------------------------------------------------------------ #


def _split_args(raw: str) -> list[str]:
    return [arg.strip() for arg in raw.split(",") if arg.strip()]


def parse_clause(text: str) -> Clause:
    """Parse the CLI clause form ``field:op:arg1,arg2``.

    Arguments are separated by commas; a clause may have no arguments
    (``field:op:``).

    Raises:
        InvalidUsageError: If the field or operator part is missing.
    """
    parts = text.split(":", 2)
    if len(parts) != 3 or not parts[0].strip() or not parts[1].strip():
        raise InvalidUsageError(
            f"Invalid clause {text!r}: expected 'field:op:arg1,arg2'"
        )
    field, operator, raw_args = parts
    return Clause(field=field.strip(), operator=operator.strip(), arguments=_split_args(raw_args))


def parse_pragma(text: str) -> Pragma:
    """Parse the CLI pragma form ``name=arg1,arg2``.

    Raises:
        InvalidUsageError: If the ``=`` or the name is missing.
    """
    name, sep, raw_args = text.partition("=")
    if not sep or not name.strip():
        raise InvalidUsageError(f"Invalid pragma {text!r}: expected 'name=arg1,arg2'")
    return Pragma(name=name.strip(), arguments=_split_args(raw_args))


def load_filter_file(path: str | Path) -> FilterSpec:
    """Load a :class:`FilterSpec` from a JSON or YAML file.

    The document is an object with ``category``, optional ``clauses``
    (``field``/``operator``/``arguments``) and optional ``pragmas``
    (``name``/``arguments``).  Omitting ``pragmas`` keeps the defaults.

    Example (YAML)::

        category: Concrete
        clauses:
          - field: jurisdiction
            operator: in
            arguments: ["150"]

    Args:
        path: Path to a ``.json``, ``.yaml`` or ``.yml`` file.

    Returns:
        The validated filter.

    Raises:
        InvalidUsageError: If the file is missing, unparseable, or does not
            describe a valid filter.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise InvalidUsageError(f"Filter file not found: {path}")
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidUsageError(f"Failed to read filter file {path}: {exc}") from exc

    data = _parse_content(content, yaml_hint=file_path.suffix.lower() in (".yaml", ".yml"))
    try:
        return FilterSpec.model_validate(data)
    except ValidationError as exc:
        raise InvalidUsageError(f"Invalid filter in {path}: {exc}") from exc


def _parse_content(content: str, yaml_hint: bool) -> dict[str, Any]:
    """Parse *content* as JSON, falling back to YAML (valid JSON is valid YAML)."""
    if not yaml_hint:
        try:
            result = json.loads(content)
        except json.JSONDecodeError:
            result = None
        else:
            if not isinstance(result, dict):
                raise InvalidUsageError("Filter file must contain an object")
            return result

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise InvalidUsageError(f"Failed to parse filter file: {exc}") from exc
    if not isinstance(result, dict):
        raise InvalidUsageError("Filter file must contain an object")
    return result
