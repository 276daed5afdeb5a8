"""Tests for specview.parser.resolver."""

from __future__ import annotations

from typing import Any

import pytest

from specview.parser.resolver import (
    NOT_FOUND,
    is_reference,
    resolve_maybe_ref,
    resolve_pointer,
    unescape_segment,
)


@pytest.fixture
def document() -> dict[str, Any]:
    return {
        "components": {
            "schemas": {
                "Pet": {"type": "object", "properties": {"id": {"type": "integer"}}},
                "Nothing": None,
            }
        },
        "paths": {
            "/pets/{petId}": {"get": {"summary": "Get a pet"}},
        },
        "weird~key": {"a/b": 1},
        "list": [1, 2, 3],
    }


class TestIsReference:
    def test_reference_object(self) -> None:
        assert is_reference({"$ref": "#/components/schemas/Pet"})

    def test_non_string_ref_is_not_a_reference(self) -> None:
        assert not is_reference({"$ref": 42})

    @pytest.mark.parametrize("value", [None, "#/a", ["$ref"], {"ref": "#/a"}])
    def test_other_values(self, value: Any) -> None:
        assert not is_reference(value)


class TestResolvePointer:
    def test_resolves_component(self, document: dict[str, Any]) -> None:
        result = resolve_pointer("#/components/schemas/Pet", document)
        assert result is document["components"]["schemas"]["Pet"]

    def test_unescapes_slash_in_segment(self, document: dict[str, Any]) -> None:
        result = resolve_pointer("#/paths/~1pets~1{petId}/get", document)
        assert result == {"summary": "Get a pet"}

    def test_unescapes_tilde_in_segment(self, document: dict[str, Any]) -> None:
        assert resolve_pointer("#/weird~0key/a~1b", document) == 1

    def test_missing_segment_is_not_found(self, document: dict[str, Any]) -> None:
        assert resolve_pointer("#/components/schemas/Missing", document) is NOT_FOUND

    def test_external_reference_is_not_found(self, document: dict[str, Any]) -> None:
        assert resolve_pointer("other.yaml#/Pet", document) is NOT_FOUND

    def test_bare_hash_is_not_found(self, document: dict[str, Any]) -> None:
        assert resolve_pointer("#", document) is NOT_FOUND

    def test_does_not_index_into_lists(self, document: dict[str, Any]) -> None:
        assert resolve_pointer("#/list/0", document) is NOT_FOUND

    def test_explicit_null_value_is_returned(self, document: dict[str, Any]) -> None:
        assert resolve_pointer("#/components/schemas/Nothing", document) is None

    def test_not_found_is_falsy(self) -> None:
        assert not NOT_FOUND
        assert repr(NOT_FOUND) == "NOT_FOUND"

    def test_does_not_mutate_document(self, document: dict[str, Any]) -> None:
        before = repr(document)
        resolve_pointer("#/components/schemas/Pet", document)
        resolve_pointer("#/nope", document)
        assert repr(document) == before


class TestResolveMaybeRef:
    def test_follows_reference(self, document: dict[str, Any]) -> None:
        value = resolve_maybe_ref({"$ref": "#/paths/~1pets~1{petId}/get"}, document)
        assert value == {"summary": "Get a pet"}

    def test_unresolvable_reference_is_none(self, document: dict[str, Any]) -> None:
        assert resolve_maybe_ref({"$ref": "#/nope"}, document) is None

    def test_plain_value_unchanged(self, document: dict[str, Any]) -> None:
        value = {"type": "string"}
        assert resolve_maybe_ref(value, document) is value


def test_unescape_order() -> None:
    # ~01 must become ~1, not /
    assert unescape_segment("~01") == "~1"
