"""Tests for specview.parser.loader."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import httpx
import pytest

from specview.exceptions import LoadError, ParseError
from specview.models import (
    DocumentSource,
    FileSource,
    LoaderOptions,
    OpenAPIVersion,
    RequestInit,
    SpecFormat,
    UrlSource,
)
from specview.parser.loader import (
    detect_openapi_version,
    infer_format_from_content,
    infer_format_from_content_type,
    infer_format_from_path,
    load_document,
    parse_document,
    source_from_location,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

YAML_DOC = textwrap.dedent("""\
    openapi: "3.0.3"
    info:
      title: YAML Test
      version: "1.0.0"
    paths: {}
""")


# ---------------------------------------------------------------------------
# load_document dispatch
# ---------------------------------------------------------------------------


class TestLoadDocument:
    @pytest.mark.asyncio
    async def test_document_source_returned_unchanged(self) -> None:
        document = {"openapi": "3.0.3", "paths": {}}
        result = await load_document(DocumentSource(document=document))
        assert result == document

    @pytest.mark.asyncio
    async def test_loads_json_file(self) -> None:
        result = await load_document(FileSource(path=str(FIXTURES_DIR / "petstore_3.0.json")))
        assert result["openapi"] == "3.0.3"
        assert result["info"]["title"] == "Petstore API"

    @pytest.mark.asyncio
    async def test_loads_yaml_file(self) -> None:
        result = await load_document(FileSource(path=str(FIXTURES_DIR / "petstore_3.0.yaml")))
        assert result["info"]["title"] == "Petstore YAML"
        # unquoted YAML scalars keep their decoded type
        assert result["info"]["version"] == 1.0

    @pytest.mark.asyncio
    async def test_yaml_without_extension_is_sniffed(self, tmp_path: Path) -> None:
        path = tmp_path / "openapi"
        path.write_text(YAML_DOC, encoding="utf-8")
        result = await load_document(FileSource(path=str(path)))
        assert result["info"]["title"] == "YAML Test"

    @pytest.mark.asyncio
    async def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(LoadError, match="not found"):
            await load_document(FileSource(path=str(tmp_path / "missing.json")))

    @pytest.mark.asyncio
    async def test_invalid_file_content_raises_parse_error(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text('{"openapi": ', encoding="utf-8")
        with pytest.raises(ParseError):
            await load_document(FileSource(path=str(path)))


# ---------------------------------------------------------------------------
# URL sources
# ---------------------------------------------------------------------------


class TestLoadFromUrl:
    @pytest.mark.asyncio
    async def test_json_response(self, mock_fetcher) -> None:
        fetcher = mock_fetcher(lambda request: httpx.Response(200, json={"openapi": "3.0.3"}))
        result = await load_document(
            UrlSource(url="https://example.com/openapi"),
            LoaderOptions(fetcher=fetcher),
        )
        assert result == {"openapi": "3.0.3"}

    @pytest.mark.asyncio
    async def test_yaml_by_extension(self, mock_fetcher) -> None:
        fetcher = mock_fetcher(
            lambda request: httpx.Response(
                200, text=YAML_DOC, headers={"content-type": "application/octet-stream"}
            )
        )
        result = await load_document(
            UrlSource(url="https://example.com/spec/openapi.yaml?v=2"),
            LoaderOptions(fetcher=fetcher),
        )
        assert result["info"]["title"] == "YAML Test"

    @pytest.mark.asyncio
    async def test_source_format_beats_content_type(self, mock_fetcher) -> None:
        fetcher = mock_fetcher(
            lambda request: httpx.Response(
                200, text=YAML_DOC, headers={"content-type": "application/json"}
            )
        )
        result = await load_document(
            UrlSource(url="https://example.com/openapi", format=SpecFormat.YAML),
            LoaderOptions(fetcher=fetcher),
        )
        assert result["openapi"] == "3.0.3"

    @pytest.mark.asyncio
    async def test_request_init_is_sent(self, mock_fetcher) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"openapi": "3.0.3"})

        await load_document(
            UrlSource(
                url="https://example.com/openapi.json",
                request_init=RequestInit(
                    method="POST",
                    headers={"Authorization": "Bearer token"},
                    params={"version": "2"},
                ),
            ),
            LoaderOptions(fetcher=mock_fetcher(handler)),
        )
        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert seen[0].headers["Authorization"] == "Bearer token"
        assert seen[0].url.params["version"] == "2"

    @pytest.mark.asyncio
    async def test_http_error_raises_load_error(self, mock_fetcher) -> None:
        fetcher = mock_fetcher(lambda request: httpx.Response(404, text="nope"))
        with pytest.raises(LoadError, match="HTTP 404") as exc_info:
            await load_document(
                UrlSource(url="https://example.com/openapi.json"),
                LoaderOptions(fetcher=fetcher),
            )
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_transport_error_raises_load_error(self, mock_fetcher) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(LoadError, match="connection refused"):
            await load_document(
                UrlSource(url="https://example.com/openapi.json"),
                LoaderOptions(fetcher=mock_fetcher(handler)),
            )


class TestFileSourceOverHttp:
    @pytest.mark.asyncio
    async def test_joined_onto_base_url(self, mock_fetcher) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={"swagger": "2.0"})

        result = await load_document(
            FileSource(path="specs/api.json"),
            LoaderOptions(
                fetcher=mock_fetcher(handler),
                read_files=False,
                base_url="https://example.com/docs/",
            ),
        )
        assert result == {"swagger": "2.0"}
        assert seen == ["https://example.com/docs/specs/api.json"]

    @pytest.mark.asyncio
    async def test_without_base_url_raises(self) -> None:
        with pytest.raises(LoadError, match="base_url"):
            await load_document(
                FileSource(path="specs/api.json"),
                LoaderOptions(read_files=False),
            )


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class TestParseDocument:
    def test_json(self) -> None:
        assert parse_document('  {"a": 1}  ') == {"a": 1}

    def test_yaml(self) -> None:
        assert parse_document(YAML_DOC)["info"]["version"] == "1.0.0"

    def test_explicit_yaml_reads_json(self) -> None:
        assert parse_document('{"a": 1}', SpecFormat.YAML) == {"a": 1}

    def test_json_error_position(self) -> None:
        text = '{\n  "a": 1,\n  "b" 2\n}'
        with pytest.raises(ParseError) as exc_info:
            parse_document(text)
        err = exc_info.value
        assert err.line == 3
        assert err.column == 7
        assert err.snippet == '  "b" 2'

    def test_yaml_error_position(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_document("a: b\n  c: d\n")
        err = exc_info.value
        assert err.line == 2
        assert err.column == 4
        assert err.snippet == "  c: d"

    @pytest.mark.parametrize("text", ["[1, 2]", "just a sentence", "", "   "])
    def test_non_object_rejected(self, text: str) -> None:
        with pytest.raises(ParseError):
            parse_document(text)

    def test_error_exit_code(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_document("[]")
        assert exc_info.value.exit_code == 7


class TestFormatInference:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("openapi.json", SpecFormat.JSON),
            ("OPENAPI.YAML", SpecFormat.YAML),
            ("spec.yml", SpecFormat.YAML),
            ("spec.txt", None),
            (None, None),
        ],
    )
    def test_from_path(self, path, expected) -> None:
        assert infer_format_from_path(path) == expected

    def test_from_content_type(self) -> None:
        assert infer_format_from_content_type("application/json; charset=utf-8") == SpecFormat.JSON
        assert infer_format_from_content_type("application/x-yaml") == SpecFormat.YAML
        assert infer_format_from_content_type("text/plain") is None
        assert infer_format_from_content_type(None) is None

    def test_from_content(self) -> None:
        assert infer_format_from_content("{}") == SpecFormat.JSON
        assert infer_format_from_content("[]") == SpecFormat.JSON
        assert infer_format_from_content("") == SpecFormat.JSON
        assert infer_format_from_content("openapi: 3.0.0") == SpecFormat.YAML


class TestDetectOpenAPIVersion:
    @pytest.mark.parametrize(
        ("document", "expected"),
        [
            ({"swagger": "2.0"}, OpenAPIVersion.V2),
            ({"swagger": 2.0}, OpenAPIVersion.V2),
            ({"openapi": "3.0.3"}, OpenAPIVersion.V3),
            ({"openapi": "3.1.0"}, OpenAPIVersion.V3),
            ({}, OpenAPIVersion.V3),
            ({"swagger": "2.0", "openapi": "3.0.0"}, OpenAPIVersion.V3),
        ],
    )
    def test_detection(self, document, expected) -> None:
        assert detect_openapi_version(document) == expected


class TestSourceFromLocation:
    def test_url(self) -> None:
        source = source_from_location("https://example.com/openapi.json")
        assert isinstance(source, UrlSource)
        assert source.url == "https://example.com/openapi.json"

    def test_path_with_format(self) -> None:
        source = source_from_location("./openapi", SpecFormat.YAML)
        assert isinstance(source, FileSource)
        assert source.format == SpecFormat.YAML

    def test_source_serializes(self) -> None:
        source = source_from_location("spec.json")
        assert json.loads(source.model_dump_json())["type"] == "file"
