"""ec3api -- client library and CLI for the EC3 building-materials API.

This package queries the Building Transparency EC3 catalog: it compiles a
structured filter into the API's query language, fetches with rate-limit
aware retry, decodes materials and the category taxonomy into typed
records, and keeps a per-category disk cache of material lists.

Typical use::

    from ec3api.api import fetch
    from ec3api.models import FetchConfig, FilterSpec

    spec = FilterSpec.of_category("Concrete").add_clause("jurisdiction", "in", ["150"])
    materials = fetch(FetchConfig(api_key=key, filter=spec, cache_dir=Path(".cache")))

Modules:
    api: Fetch orchestration (cache, HTTP, decoding).
    models: Pydantic models shared across the package.
    units: Unit enumerations and compound quantity parsing.
    filter: Filter compiler and filter-file loading.
    decoder: JSON to typed record decoding.
    cache: Category-keyed material cache.
    client: Retrying HTTP client.
    config: XDG-aware settings and API key resolution for the CLI.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr output system with Rich support.
    app: Typer CLI entry point.
"""

__version__ = "0.3.0"
