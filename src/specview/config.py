"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles the persistent settings of specview:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.specview/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~specview.models.ViewerConfig`
  JSON file storing defaults (document location, format, HTTP settings).
* **Project config** -- An optional ``./specview.json`` that pins the
  document for a repository.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.
* **Loader bridge** -- :func:`config_to_source` and
  :func:`config_to_loader_options` turn the resolved config into the
  arguments of :func:`~specview.parser.loader.load_document`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specview.exceptions import ConfigError, InvalidUsageError
from specview.models import (
    LoaderOptions,
    RequestInit,
    SpecFormat,
    SpecSource,
    UrlSource,
    ViewerConfig,
)
from specview.parser.loader import source_from_location

_APP_NAME = "specview"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "specview.json"

ENV_SPEC = "SPECVIEW_SPEC"
ENV_FORMAT = "SPECVIEW_FORMAT"
ENV_TIMEOUT = "SPECVIEW_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True on platforms that follow the XDG Base Directory spec (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from *env_var*, falling back under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/specview/`` (default ``~/.config/specview/``).
    On macOS/Windows: ``~/.specview/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/specview/`` (default ``~/.local/share/specview/``).
    On macOS/Windows: ``~/.specview/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* atomically using a temp file plus rename.

    The temp file lives in the target directory so ``os.replace`` stays a
    same-filesystem rename.  It is removed again on any failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    handle = None
    tmp_path: Optional[str] = None
    try:
        handle = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = handle.name
        handle.write(data)
        handle.flush()
        os.fsync(handle.fileno())
        handle.close()
        handle = None
        os.replace(tmp_path, path)
    except BaseException:
        if handle is not None:
            handle.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global and project config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def _read_json_object(path: Path, label: str) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} at {path}: expected a JSON object")
    return data


def load_global_config() -> ViewerConfig:
    """Load the global configuration from the config directory.

    Returns:
        The stored :class:`~specview.models.ViewerConfig`, or a default
        instance when no file exists.

    Raises:
        ConfigError: If the file is not valid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return ViewerConfig()
    data = _read_json_object(path, "global config")
    try:
        return ViewerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: ViewerConfig) -> Path:
    """Persist the global configuration atomically and return its path."""
    path = _global_config_path()
    data = config.model_dump(mode="json", exclude_none=True)
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local overrides from ``./specview.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return _read_json_object(path, "project config")


# --- Precedence resolution ---


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    spec = os.environ.get(ENV_SPEC)
    if spec:
        overrides["spec"] = spec
    fmt = os.environ.get(ENV_FORMAT)
    if fmt:
        overrides["format"] = fmt
    timeout = os.environ.get(ENV_TIMEOUT)
    if timeout:
        try:
            overrides["timeout"] = float(timeout)
        except ValueError:
            raise ConfigError(
                f"{ENV_TIMEOUT} must be a number of seconds, got '{timeout}'"
            ) from None
    return overrides


def resolve_config(
    cli_spec: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> ViewerConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_spec``, ``cli_format``)
        2. Environment variables (``SPECVIEW_SPEC``, ``SPECVIEW_FORMAT``,
           ``SPECVIEW_TIMEOUT``)
        3. Project config (``./specview.json``)
        4. User config (``~/.config/specview/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer holds an invalid value.
    """
    merged = load_global_config().model_dump(exclude_none=True)

    project = load_project_config()
    if project is not None:
        merged.update(project)

    merged.update(_env_overrides())

    if cli_spec is not None:
        merged["spec"] = cli_spec
    if cli_format is not None:
        merged["format"] = cli_format

    try:
        return ViewerConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Loader bridge ---


def config_to_source(config: ViewerConfig) -> SpecSource:
    """Build the source descriptor for the configured document.

    Configured ``headers`` are attached to URL sources.

    Raises:
        InvalidUsageError: If no document location is configured.
    """
    if not config.spec:
        raise InvalidUsageError(
            f"No document configured. Pass --spec, set {ENV_SPEC}, "
            f"or add \"spec\" to {_PROJECT_CONFIG_FILENAME}"
        )
    source = source_from_location(config.spec, config.format)
    if isinstance(source, UrlSource) and config.headers:
        source = source.model_copy(
            update={"request_init": RequestInit(headers=dict(config.headers))}
        )
    return source


def config_to_loader_options(config: ViewerConfig) -> LoaderOptions:
    """Translate the HTTP and file settings into :class:`~specview.models.LoaderOptions`."""
    return LoaderOptions(
        format=SpecFormat(config.format) if config.format else None,
        timeout=config.timeout,
        verify_ssl=config.verify_ssl,
        read_files=config.read_files,
        base_url=config.base_url,
    )
