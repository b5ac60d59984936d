"""Typer application and CLI entry point for ec3api.

The ``ec3`` command wraps the library for batch use from a shell:

* ``ec3 materials CATEGORY`` -- search materials (cache-aware);
* ``ec3 categories`` -- print the category taxonomy;
* ``ec3 compile CATEGORY`` -- print the compiled ``mf`` query, offline;
* ``ec3 cache list|clear`` -- inspect or empty the material cache.

This module is the only place that reads user settings and environment
variables.  It resolves them into an explicit
:class:`~ec3api.models.FetchConfig`, including the cache directory, before
calling :func:`ec3api.api.fetch_materials` or
:func:`ec3api.api.fetch_categories`.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from typing import Any, List, NoReturn, Optional

import typer

from ec3api import __version__
from ec3api.api import fetch_categories, fetch_materials
from ec3api.cache import MaterialCache
from ec3api.exceptions import Ec3Error, InvalidUsageError
from ec3api.exit_codes import EXIT_GENERIC_FAILURE
from ec3api.filter import compile_filter, load_filter_file, parse_clause, parse_pragma
from ec3api.models import Country, Endpoint, FetchConfig, FilterSpec, Material, Settings
from ec3api.output import OutputFormat, error, get_output, success

app = typer.Typer(
    name="ec3",
    help="Query the EC3 building-materials database.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
cache_app = typer.Typer(no_args_is_help=True)
app.add_typer(cache_app, name="cache", help="Inspect or clear the material cache.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"ec3 {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    output_file: Optional[str] = typer.Option(None, "-o", "--output", help="Output file path."),
) -> None:
    """Initialise the global output manager from the CLI flags."""
    from ec3api.output import OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _fail(exc: Ec3Error) -> NoReturn:
    error(str(exc))
    raise typer.Exit(code=exc.exit_code)


def _load_settings() -> Settings:
    from ec3api.config import load_settings

    return load_settings()


def _build_filter(
    category: Optional[str],
    where: Optional[List[str]],
    pragma: Optional[List[str]],
    filter_file: Optional[Path],
) -> FilterSpec:
    """Combine a filter file with ``--where``/``--pragma`` options.

    Options are appended after whatever the file declares; a positional
    category overrides the file's.
    """
    if filter_file is not None:
        spec = load_filter_file(filter_file)
        if category:
            spec.category = category
    elif category:
        spec = FilterSpec.of_category(category)
    else:
        raise InvalidUsageError("A CATEGORY argument or --filter-file is required")

    for text in where or []:
        clause = parse_clause(text)
        spec.add_clause(clause.field, clause.operator, clause.arguments)
    for text in pragma or []:
        parsed = parse_pragma(text)
        spec.add_pragma(parsed.name, parsed.arguments)
    return spec


def _resolve_cache_dir(cli_value: Optional[Path], settings: Settings) -> Path:
    from ec3api.config import get_cache_dir

    if cli_value is not None:
        return cli_value
    if settings.cache_dir:
        return Path(settings.cache_dir).expanduser()
    return get_cache_dir()


def _resolve_country(cli_value: Optional[str], settings: Settings) -> Country:
    try:
        return Country.from_name(cli_value if cli_value is not None else settings.country)
    except ValueError as exc:
        raise InvalidUsageError(str(exc)) from exc


def _render_materials(materials: list[Material]) -> None:
    output = get_output()
    if output.format == OutputFormat.JSON:
        output.print_json([m.model_dump(mode="json") for m in materials])
        return
    headers = ["Name", "GWP", "Declared unit", "Manufacturer", "Country", "Id"]
    rows = [
        [
            m.name,
            str(m.gwp),
            str(m.declared_unit),
            m.manufacturer.name,
            m.manufacturer.country or "",
            m.id,
        ]
        for m in materials
    ]
    output.print_table(headers, rows, title=f"{len(materials)} materials")


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


_WHERE_HELP = "Clause as field:op:arg1,arg2 (repeatable, kept in order)."
_PRAGMA_HELP = "Extra pragma as name=arg1,arg2 (repeatable)."


@app.command("materials")
def materials_command(
    category: Optional[str] = typer.Argument(None, help="Material category, e.g. Concrete."),
    where: Optional[List[str]] = typer.Option(None, "--where", "-w", help=_WHERE_HELP),
    pragma: Optional[List[str]] = typer.Option(None, "--pragma", help=_PRAGMA_HELP),
    filter_file: Optional[Path] = typer.Option(
        None, "--filter-file", "-f", help="JSON/YAML filter description."
    ),
    country: Optional[str] = typer.Option(
        None, "--country", "-c", help="Jurisdiction: us, de, uk or none."
    ),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Material cache directory."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Ignore cached results."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="EC3 API key."),
) -> None:
    """Search materials matching a category and optional clauses.

    Example::

        ec3 materials Concrete -w "jurisdiction:in:150" \\
            -w "epd_types:in:Product EPDs,Industry EPDs"
    """
    from ec3api.config import resolve_api_key

    try:
        settings = _load_settings()
        config = FetchConfig(
            api_key=resolve_api_key(api_key, settings),
            endpoint=Endpoint.MATERIALS,
            country=_resolve_country(country, settings),
            filter=_build_filter(category, where, pragma, filter_file),
            use_cache=settings.use_cache and not no_cache,
            cache_dir=_resolve_cache_dir(cache_dir, settings),
            request=settings.request,
        )
        result = fetch_materials(config)
    except Ec3Error as exc:
        _fail(exc)
    _render_materials(result)


@app.command("categories")
def categories_command(
    country: Optional[str] = typer.Option(
        None, "--country", "-c", help="Jurisdiction: us, de, uk or none."
    ),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="EC3 API key."),
) -> None:
    """Print the material category taxonomy."""
    from ec3api.config import resolve_api_key

    try:
        settings = _load_settings()
        config = FetchConfig(
            api_key=resolve_api_key(api_key, settings),
            endpoint=Endpoint.CATEGORIES,
            country=_resolve_country(country, settings),
            use_cache=False,
            request=settings.request,
        )
        result = fetch_categories(config)
    except Ec3Error as exc:
        _fail(exc)
    get_output().print_tree(result)


@app.command("compile")
def compile_command(
    category: Optional[str] = typer.Argument(None, help="Material category, e.g. Concrete."),
    where: Optional[List[str]] = typer.Option(None, "--where", "-w", help=_WHERE_HELP),
    pragma: Optional[List[str]] = typer.Option(None, "--pragma", help=_PRAGMA_HELP),
    filter_file: Optional[Path] = typer.Option(
        None, "--filter-file", "-f", help="JSON/YAML filter description."
    ),
) -> None:
    """Print the compiled query for a filter without contacting the API."""
    try:
        spec = _build_filter(category, where, pragma, filter_file)
    except Ec3Error as exc:
        _fail(exc)
    get_output().print_data(compile_filter(spec))


@cache_app.command("list")
def cache_list_command(
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Material cache directory."),
) -> None:
    """List cached categories."""
    try:
        cache = MaterialCache(_resolve_cache_dir(cache_dir, _load_settings()))
    except Ec3Error as exc:
        _fail(exc)
    output = get_output()
    rows = [[name, str(cache.path_for(name))] for name in cache.categories()]
    if not rows:
        output.info(f"No cached categories in {cache.directory}")
        return
    output.print_table(["Category", "File"], rows, title="Cached categories")


@cache_app.command("clear")
def cache_clear_command(
    category: Optional[str] = typer.Argument(None, help="Only clear this category."),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Material cache directory."),
) -> None:
    """Delete cached material lists."""
    try:
        cache = MaterialCache(_resolve_cache_dir(cache_dir, _load_settings()))
    except Ec3Error as exc:
        _fail(exc)
    if category is not None:
        if cache.invalidate(category):
            success(f"Removed cached category {category!r}")
        else:
            get_output().info(f"Category {category!r} is not cached")
        return
    removed = cache.clear()
    success(f"Removed {removed} cached categor{'y' if removed == 1 else 'ies'}")


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``ec3`` console script.

    :class:`~ec3api.exceptions.Ec3Error` instances that escape a command
    cause a clean exit with the error's ``exit_code``; anything else is
    reported and exits with :data:`~ec3api.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except Ec3Error as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
