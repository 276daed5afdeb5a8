"""Tests for specview.parser.examples."""

from __future__ import annotations

import datetime

import pytest

from specview.models import SchemaNode
from specview.parser.examples import (
    format_example,
    language_from_content_type,
    synthesize_example,
)
from specview.parser.schema import build_schema_node


class TestSynthesizeExample:
    def test_object_with_array(self) -> None:
        node = build_schema_node(
            {
                "type": "object",
                "properties": {
                    "a": {"type": "integer"},
                    "b": {"type": "array", "items": {"type": "string"}},
                },
            },
            {},
        )
        assert synthesize_example(node) == {"a": 0, "b": ["string"]}

    def test_explicit_example_wins(self) -> None:
        node = SchemaNode(type="integer", example=42, enum=[1, 2])
        assert synthesize_example(node) == 42

    def test_first_enum_value(self) -> None:
        assert synthesize_example(SchemaNode(type="string", enum=["sold", "available"])) == "sold"

    @pytest.mark.parametrize(
        ("schema_type", "expected"),
        [
            ("integer", 0),
            ("number", 0),
            ("boolean", True),
            ("null", None),
            ("string", "string"),
            ("any", "string"),
            ("reference", "string"),
            ("unknown", "string"),
        ],
    )
    def test_type_defaults(self, schema_type: str, expected: object) -> None:
        assert synthesize_example(SchemaNode(type=schema_type)) == expected

    def test_array_without_items_is_empty(self) -> None:
        assert synthesize_example(SchemaNode(type="array")) == []

    def test_array_of_null_wraps_none(self) -> None:
        assert synthesize_example(SchemaNode(type="array", items=SchemaNode(type="null"))) == [None]

    def test_nameless_children_skipped(self) -> None:
        node = SchemaNode(
            type="object",
            children=[SchemaNode(type="integer"), SchemaNode(name="n", type="null")],
        )
        assert synthesize_example(node) == {"n": None}

    def test_none_node(self) -> None:
        assert synthesize_example(None) is None


class TestFormatExample:
    def test_string_passthrough(self) -> None:
        assert format_example("hello", "application/json") == "hello"

    def test_scalars(self) -> None:
        assert format_example(True) == "true"
        assert format_example(False) == "false"
        assert format_example(3) == "3"
        assert format_example(2.5) == "2.5"

    def test_mapping_is_indented_json(self) -> None:
        assert format_example({"a": 1}, "application/xml") == '{\n  "a": 1\n}'

    def test_non_ascii_kept(self) -> None:
        assert format_example(["café"]) == '[\n  "café"\n]'

    def test_none(self) -> None:
        assert format_example(None) is None

    def test_other_values(self) -> None:
        day = datetime.date(2024, 1, 2)
        assert format_example(day, "application/json") == '"2024-01-02"'
        assert format_example(day, "text/plain") == "2024-01-02"


class TestLanguageFromContentType:
    @pytest.mark.parametrize(
        ("content_type", "language"),
        [
            ("application/json", "json"),
            ("application/problem+json; charset=utf-8", "json"),
            ("application/xml", "xml"),
            ("application/x-yaml", "yaml"),
            ("text/html", "html"),
            ("text/plain", "text"),
            ("application/x-www-form-urlencoded", "urlencoded"),
            ("application/octet-stream", "text"),
            ("APPLICATION/JSON", "json"),
        ],
    )
    def test_mapping(self, content_type: str, language: str) -> None:
        assert language_from_content_type(content_type) == language
