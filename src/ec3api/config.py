"""User settings, XDG directories and API key lookup for the ``ec3`` CLI.

The settings file is ``<config_dir>/config.json`` and holds a
:class:`~ec3api.models.Settings`.  On Linux and the BSDs the config and
cache directories follow the XDG base directory variables.  Elsewhere
they live under ``~/.ec3api/``.

Only :mod:`ec3api.app` reads these defaults.  :func:`ec3api.api.fetch`
works from the explicit :class:`~ec3api.models.FetchConfig` it is handed.

:func:`atomic_write` is shared with the material cache.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ec3api.exceptions import ConfigError
from ec3api.models import Settings

_APP_NAME = "ec3api"
_CONFIG_FILENAME = "config.json"
API_KEY_ENV_VAR = "EC3_API_KEY"


# --- Directories ---


def _is_xdg_platform() -> bool:
    """Linux and the BSDs use XDG directories; macOS and Windows do not."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """``~/.ec3api``, used for both config and cache off XDG platforms."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Value of *env_var* if set and non-empty, else ``$HOME/<default_segments>``."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/ec3api/`` (default ``~/.config/ec3api/``).
    On macOS/Windows: ``~/.ec3api/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the default material cache directory for the CLI.

    The directory is not created here; :mod:`ec3api.cache` creates it on
    first write.

    On Linux/BSD: ``$XDG_CACHE_HOME/ec3api/`` (default ``~/.cache/ec3api/``).
    On macOS/Windows: ``~/.ec3api/cache/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    return _fallback_base_dir() / "cache"


# --- Writes ---


def atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* so readers never see a partial file.

    *data* goes to a hidden sibling temp file which is fsynced and then
    renamed over *path*.  The temp file is removed if anything fails.
    ``path.parent`` must exist.

    Raises:
        OSError: If the temp file cannot be written or renamed.
    """
    tmp = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        Path(tmp.name).unlink(missing_ok=True)
        raise


# --- Settings ---


def _settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_settings() -> Settings:
    """Load the user settings from the config directory.

    Returns:
        The deserialised :class:`~ec3api.models.Settings`, or a default
        instance when no file exists.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = _settings_path()
    if not path.is_file():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(data)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read settings {path}: {exc}") from exc
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings in {path}: {exc}") from exc


def save_settings(settings: Settings) -> Path:
    """Persist *settings* atomically and return the file path."""
    path = _settings_path()
    atomic_write(path, settings.model_dump_json(indent=2) + "\n")
    return path


# --- Credential resolution ---


def resolve_credential(source: str) -> str:
    """Read a secret from *source*.

    ``env:NAME`` reads the environment variable ``NAME``.  ``file:PATH``
    reads the file, trimmed of surrounding whitespace.  ``prompt`` asks on
    the terminal.

    Raises:
        ConfigError: If the source is unknown or yields nothing.
    """
    kind, _, target = source.partition(":")

    if kind == "env" and target:
        value = os.environ.get(target)
        if value is None:
            raise ConfigError(f"Environment variable '{target}' is not set (source: {source})")
        return value

    if kind == "file" and target:
        path = Path(target).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for the API key: stdin is not a terminal")
        return getpass.getpass("EC3 API key: ")

    raise ConfigError(f"Unknown credential source: {source!r}")


def resolve_api_key(cli_value: Optional[str], settings: Settings) -> str:
    """Return the API key using CLI > ``EC3_API_KEY`` > settings precedence.

    Raises:
        ConfigError: If no source yields a non-empty key.
    """
    if cli_value:
        return cli_value
    env_value = os.environ.get(API_KEY_ENV_VAR)
    if env_value:
        return env_value
    if settings.api_key_source:
        key = resolve_credential(settings.api_key_source)
        if key:
            return key
    raise ConfigError(
        f"No API key configured. Pass --api-key or set {API_KEY_ENV_VAR}."
    )
