"""Shared test fixtures for specview.

Provides the raw and normalized fixture documents, an isolated config
environment, output-state management, and a CLI runner.  These fixtures are
discovered by pytest automatically.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from specview.models import ParsedSpec
from specview.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at creation
    time.  CliRunner swaps those streams per invocation, so a manager left
    over from one test would write to a closed file in the next.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw document fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Raw OpenAPI 3.0 petstore document."""
    with open(FIXTURES_DIR / "petstore_3.0.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def swagger_raw() -> dict[str, Any]:
    """Raw Swagger 2.0 document."""
    with open(FIXTURES_DIR / "swagger_2.0.json", encoding="utf-8") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Normalized fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_spec(petstore_raw: dict[str, Any]) -> ParsedSpec:
    """Normalized petstore document."""
    from specview.parser import normalize_document

    return normalize_document(petstore_raw)


@pytest.fixture
def swagger_spec(swagger_raw: dict[str, Any]) -> ParsedSpec:
    """Normalized Swagger 2.0 document."""
    from specview.parser import normalize_document

    return normalize_document(swagger_raw)


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_fetcher() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for an :class:`httpx.AsyncClient` backed by a MockTransport.

    Usage::

        client = mock_fetcher(lambda request: httpx.Response(200, json={...}))
    """

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at subdirectories of *tmp_path*, clears the
    ``SPECVIEW_*`` variables, and changes the working directory to
    *tmp_path* so a stray ``specview.json`` never leaks in.
    """
    monkeypatch.setattr("specview.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ("SPECVIEW_SPEC", "SPECVIEW_FORMAT", "SPECVIEW_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a PLAIN-format output manager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format output manager for the test."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
