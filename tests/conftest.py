"""Shared test fixtures for ec3api.

Provides reusable fixtures for loading recorded API payloads, building
fetch configurations, isolating the user config directories, and
resetting the global output manager.  These fixtures are discovered by
pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from ec3api.models import FetchConfig, FilterSpec
from ec3api.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams, so a stale manager would
    write to closed files in the next test.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Recorded payloads
# ---------------------------------------------------------------------------


@pytest.fixture
def materials_payload() -> list[dict[str, Any]]:
    """Two materials in the live API shape."""
    with open(FIXTURES_DIR / "materials.json") as f:
        return json.load(f)


@pytest.fixture
def categories_payload() -> dict[str, Any]:
    """A small category taxonomy as returned by ``categories/root``."""
    with open(FIXTURES_DIR / "categories.json") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def concrete_filter() -> FilterSpec:
    """The filter used throughout the docs: Concrete, jurisdiction and EPD type."""
    return (
        FilterSpec.of_category("Concrete")
        .add_clause("jurisdiction", "in", ["150"])
        .add_clause("epd_types", "in", ["Product EPDs", "Industry EPDs"])
    )


@pytest.fixture
def fetch_config(tmp_path: Path, concrete_filter: FilterSpec) -> FetchConfig:
    """Materials fetch with a cache directory under tmp_path."""
    return FetchConfig(
        api_key="test-key",
        filter=concrete_filter,
        cache_dir=tmp_path / "cache",
    )


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the XDG directories at tmp_path and clear EC3_API_KEY.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("ec3api.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    monkeypatch.delenv("EC3_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()
