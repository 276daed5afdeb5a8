"""Extract normalized endpoints from raw OpenAPI 2.0 and 3.x documents.

This module walks every path + HTTP method pair of a decoded document and
builds one :class:`~specview.models.Endpoint` per operation: merged
parameters, request body, and responses, each with normalized schema trees
and display-ready examples.

Swagger 2.0 and OpenAPI 3.x disagree on where bodies, content types, and
schema definitions live.  Those differences are confined to two input
adapters, :class:`OpenAPIV3Adapter` and :class:`SwaggerV2Adapter`, selected
once per document by :func:`get_adapter`.  Both produce the same
:class:`~specview.models.Parameter`, :class:`~specview.models.RequestBody`
and :class:`~specview.models.Response` models, so nothing downstream branches
on the version.

Parameter merging follows the OpenAPI specification: path-level parameters
provide defaults, and operation-level parameters override them when they share
the same ``in`` and ``name`` values.  The overriding entry takes the position
where the key was first seen.

The public entry points are :func:`extract_path_groups`,
:func:`extract_schemas`, :func:`merge_parameters` and :func:`slugify`.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from specview.models import (
    Endpoint,
    MediaEntry,
    OpenAPIVersion,
    Parameter,
    PathGroup,
    RequestBody,
    Response,
    SchemaNode,
    ServerInfo,
)
from specview.parser.examples import (
    format_example,
    language_from_content_type,
    synthesize_example,
)
from specview.parser.loader import detect_openapi_version
from specview.parser.resolver import resolve_maybe_ref
from specview.parser.schema import build_schema_node

logger = logging.getLogger(__name__)

# HTTP methods recognized by OpenAPI, in walk order
HTTP_METHODS = ("get", "put", "post", "delete", "patch", "options", "head", "trace")

GENERAL_TAG = "General"

_DEFAULT_CONTENT_TYPE = "application/json"
_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
_V2_SCHEMA_KEYS = ("type", "format", "enum", "items", "default")


def slugify(value: str) -> str:
    """Lowercase *value*, collapse non-alphanumeric runs to ``-``, trim dashes.

    Example::

        slugify("get /products/{productId}")  # "get-products-productid"
    """
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Entries are keyed by ``(in, name)`` with ``in`` defaulting to
    ``query``.  A later entry replaces the value of an earlier one with the
    same key but keeps the earlier position, so an operation-level override
    sits where the path-level parameter was declared.

    Args:
        path_params: Resolved parameters defined at the path level.
        op_params: Resolved parameters defined at the operation level.

    Returns:
        The merged list of parameter dicts.
    """
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for param in [*path_params, *op_params]:
        location = param.get("in")
        key = (location if isinstance(location, str) else "query", param["name"])
        merged[key] = param
    return list(merged.values())


class _DocumentAdapter:
    """Shared normalization logic; subclasses supply version-specific shapes."""

    version: OpenAPIVersion

    def __init__(self, document: dict[str, Any]) -> None:
        self.document = document

    # -- version-specific hooks --------------------------------------- #

    def parameter_schema(self, parameter: dict[str, Any]) -> Any:
        raise NotImplementedError

    def legacy_request_body(
        self, operation: dict[str, Any], parameters: list[dict[str, Any]]
    ) -> Optional[RequestBody]:
        """Request body for operations that do not declare ``requestBody``."""
        return None

    def response_contents(
        self, response: dict[str, Any], operation: dict[str, Any]
    ) -> list[MediaEntry]:
        raise NotImplementedError

    def schema_definitions(self) -> tuple[str, dict[str, Any]]:
        """Return the pointer prefix and the map of named schemas."""
        raise NotImplementedError

    def servers(self) -> list[ServerInfo]:
        raise NotImplementedError

    # -- shared ------------------------------------------------------- #

    def path_groups(self) -> list[PathGroup]:
        """Walk ``paths`` in document order, methods in :data:`HTTP_METHODS` order."""
        paths = self.document.get("paths")
        if not isinstance(paths, dict):
            return []

        groups: list[PathGroup] = []
        for path, raw_item in paths.items():
            path_item = resolve_maybe_ref(raw_item, self.document)
            if not isinstance(path_item, dict):
                continue

            path_params = self.raw_parameters(path_item.get("parameters"))
            endpoints: list[Endpoint] = []
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if not operation or not isinstance(operation, dict):
                    continue
                endpoints.append(
                    self.build_endpoint(method, str(path), operation, path_params)
                )

            if endpoints:
                groups.append(
                    PathGroup(
                        path=str(path),
                        summary=_to_str(path_item.get("summary")),
                        description=_to_str(path_item.get("description")),
                        endpoints=endpoints,
                    )
                )
        return groups

    def build_endpoint(
        self,
        method: str,
        path: str,
        operation: dict[str, Any],
        path_params: list[dict[str, Any]],
    ) -> Endpoint:
        merged = merge_parameters(
            path_params, self.raw_parameters(operation.get("parameters"))
        )

        raw_body = operation.get("requestBody")
        if raw_body is not None:
            request_body = self.parse_request_body(raw_body)
        else:
            request_body = self.legacy_request_body(operation, merged)

        security = operation.get("security")
        return Endpoint(
            id=slugify(f"{method} {path}"),
            method=method.upper(),
            path=path,
            operation_id=_to_str(operation.get("operationId")),
            summary=_to_str(operation.get("summary")),
            description=_to_str(operation.get("description")),
            deprecated=bool(operation.get("deprecated")),
            tags=_to_str_list(operation.get("tags")) or [GENERAL_TAG],
            parameters=[self.build_parameter(param) for param in merged],
            request_body=request_body,
            responses=self.parse_responses(operation),
            security=(
                [entry for entry in security if isinstance(entry, dict)]
                if isinstance(security, list)
                else None
            ),
        )

    def raw_parameters(self, value: Any) -> list[dict[str, Any]]:
        """Resolve parameter references and drop entries without a name."""
        if not isinstance(value, list):
            return []
        result: list[dict[str, Any]] = []
        for entry in value:
            param = resolve_maybe_ref(entry, self.document)
            if isinstance(param, dict) and isinstance(param.get("name"), str) and param["name"]:
                result.append(param)
        return result

    def build_parameter(self, param: dict[str, Any]) -> Parameter:
        name = param["name"]
        raw_schema = self.parameter_schema(param)
        node = build_schema_node(raw_schema, self.document, name=name)

        example = param.get("example")
        if example is None and isinstance(raw_schema, dict):
            example = raw_schema.get("example")
        if example is None and node is not None:
            example = node.example

        location = param.get("in")
        return Parameter(
            name=name,
            location=location if isinstance(location, str) else "query",
            required=bool(param.get("required")),
            description=_to_str(param.get("description")),
            deprecated=bool(param.get("deprecated")),
            schema_=node,
            example=format_example(example),
        )

    def parse_request_body(self, value: Any) -> Optional[RequestBody]:
        body = resolve_maybe_ref(value, self.document)
        if not isinstance(body, dict):
            return None
        contents = self.parse_content(body.get("content"))
        if not contents:
            return None
        return RequestBody(
            description=_to_str(body.get("description")),
            required=bool(body.get("required")),
            contents=contents,
        )

    def parse_responses(self, operation: dict[str, Any]) -> list[Response]:
        responses = operation.get("responses")
        if not isinstance(responses, dict):
            return []

        result: list[Response] = []
        for status, value in responses.items():
            response = resolve_maybe_ref(value, self.document)
            if not isinstance(response, dict):
                continue
            result.append(
                Response(
                    status=str(status),
                    description=_to_str(response.get("description")),
                    contents=self.response_contents(response, operation),
                )
            )

        result.sort(key=lambda r: _status_sort_key(r.status))
        return result

    def parse_content(self, content: Any) -> list[MediaEntry]:
        """Build one media entry per content type, in map order."""
        if not isinstance(content, dict):
            return []
        entries: list[MediaEntry] = []
        for content_type, media in content.items():
            if not isinstance(media, dict):
                continue
            node = build_schema_node(media.get("schema"), self.document)
            entries.append(
                MediaEntry(
                    content_type=str(content_type),
                    schema_=node,
                    example=self.pick_example(media, node, str(content_type)),
                    language=language_from_content_type(str(content_type)),
                )
            )
        return entries

    def pick_example(
        self,
        media: dict[str, Any],
        schema: Optional[SchemaNode],
        content_type: str,
    ) -> Optional[str]:
        """Choose the display example for a media entry.

        Precedence: an explicit ``example``, then the first ``examples``
        entry with a ``value`` (or any other non-empty entry), then an
        example synthesized from *schema*.
        """
        if media.get("example") is not None:
            return format_example(media["example"], content_type)

        examples = media.get("examples")
        if isinstance(examples, dict):
            for raw_example in examples.values():
                example = resolve_maybe_ref(raw_example, self.document)
                if isinstance(example, dict) and "value" in example:
                    formatted = format_example(example["value"], content_type)
                else:
                    formatted = format_example(example, content_type)
                if formatted is not None:
                    return formatted

        return format_example(synthesize_example(schema), content_type)


class OpenAPIV3Adapter(_DocumentAdapter):
    """Input adapter for OpenAPI 3.x documents."""

    version = OpenAPIVersion.V3

    def parameter_schema(self, parameter: dict[str, Any]) -> Any:
        if "schema" in parameter:
            return parameter["schema"]
        # A parameter may describe itself through a single-entry content map
        content = parameter.get("content")
        if isinstance(content, dict):
            for media in content.values():
                if isinstance(media, dict) and media.get("schema"):
                    return media["schema"]
        return None

    def response_contents(
        self, response: dict[str, Any], operation: dict[str, Any]
    ) -> list[MediaEntry]:
        return self.parse_content(response.get("content"))

    def schema_definitions(self) -> tuple[str, dict[str, Any]]:
        components = self.document.get("components")
        schemas = components.get("schemas") if isinstance(components, dict) else None
        return "#/components/schemas/", schemas if isinstance(schemas, dict) else {}

    def servers(self) -> list[ServerInfo]:
        value = self.document.get("servers")
        if not isinstance(value, list):
            return []
        servers: list[ServerInfo] = []
        for entry in value:
            if not isinstance(entry, dict):
                continue
            url = _to_str(entry.get("url"))
            if not url:
                continue
            servers.append(ServerInfo(url=url, description=_to_str(entry.get("description"))))
        return servers


class SwaggerV2Adapter(_DocumentAdapter):
    """Input adapter for Swagger 2.0 documents.

    Bodies arrive as ``in: body`` (or ``formData``) parameters, content
    types come from ``consumes``/``produces``, response examples are keyed
    by content type, and named schemas live under ``definitions``.
    """

    version = OpenAPIVersion.V2

    def parameter_schema(self, parameter: dict[str, Any]) -> Any:
        if "schema" in parameter:
            return parameter["schema"]
        schema = {key: parameter[key] for key in _V2_SCHEMA_KEYS if key in parameter}
        return schema or None

    def legacy_request_body(
        self, operation: dict[str, Any], parameters: list[dict[str, Any]]
    ) -> Optional[RequestBody]:
        consumes = self._media_types(operation, "consumes")

        for param in parameters:
            if param.get("in") == "body":
                content = {content_type: {"schema": param.get("schema")} for content_type in consumes}
                return RequestBody(
                    description=_to_str(param.get("description")),
                    required=bool(param.get("required")),
                    contents=self.parse_content(content),
                )

        form_params = [param for param in parameters if param.get("in") == "formData"]
        if not form_params:
            return None

        schema = {
            "type": "object",
            "properties": {
                param["name"]: self.parameter_schema(param) or {"type": "string"}
                for param in form_params
            },
            "required": [param["name"] for param in form_params if param.get("required")],
        }
        form_types = [content_type for content_type in consumes if "form" in content_type]
        content = {
            content_type: {"schema": schema}
            for content_type in form_types or [_FORM_CONTENT_TYPE]
        }
        return RequestBody(
            required=any(param.get("required") for param in form_params),
            contents=self.parse_content(content),
        )

    def response_contents(
        self, response: dict[str, Any], operation: dict[str, Any]
    ) -> list[MediaEntry]:
        schema = response.get("schema")
        examples = response.get("examples")
        examples = examples if isinstance(examples, dict) else {}
        if not schema and not examples:
            return []

        content: dict[str, dict[str, Any]] = {}
        for content_type in [*self._media_types(operation, "produces"), *examples]:
            if content_type in content:
                continue
            media: dict[str, Any] = {"schema": schema}
            if content_type in examples:
                media["example"] = examples[content_type]
            content[content_type] = media
        return self.parse_content(content)

    def schema_definitions(self) -> tuple[str, dict[str, Any]]:
        definitions = self.document.get("definitions")
        return "#/definitions/", definitions if isinstance(definitions, dict) else {}

    def servers(self) -> list[ServerInfo]:
        host = _to_str(self.document.get("host"))
        base_path = _to_str(self.document.get("basePath")) or ""
        if not host:
            return [ServerInfo(url=base_path)] if base_path else []
        schemes = _to_str_list(self.document.get("schemes")) or ["https"]
        return [ServerInfo(url=f"{scheme}://{host}{base_path}") for scheme in schemes]

    def _media_types(self, operation: dict[str, Any], key: str) -> list[str]:
        return (
            _to_str_list(operation.get(key))
            or _to_str_list(self.document.get(key))
            or [_DEFAULT_CONTENT_TYPE]
        )


def get_adapter(document: dict[str, Any]) -> _DocumentAdapter:
    """Select the input adapter for *document* by its version field."""
    if detect_openapi_version(document) == OpenAPIVersion.V2:
        return SwaggerV2Adapter(document)
    return OpenAPIV3Adapter(document)


def extract_path_groups(document: dict[str, Any]) -> list[PathGroup]:
    """Normalize every operation of *document*, grouped by path.

    Groups follow the document's path order and endpoints within a group
    follow :data:`HTTP_METHODS`.  The walk is sequential, so the result is
    identical for identical input.

    Example::

        for group in extract_path_groups(doc):
            for endpoint in group.endpoints:
                print(endpoint.id, endpoint.method, endpoint.path)
    """
    return get_adapter(document).path_groups()


def extract_schemas(document: dict[str, Any]) -> dict[str, SchemaNode]:
    """Normalize every named schema (``components.schemas`` or ``definitions``).

    Each schema's own pointer seeds the cycle set, so a self-referencing
    schema terminates at its first recursive property.
    """
    prefix, definitions = get_adapter(document).schema_definitions()
    schemas: dict[str, SchemaNode] = {}
    for name, raw in definitions.items():
        pointer = prefix + str(name).replace("~", "~0").replace("/", "~1")
        node = build_schema_node(
            raw,
            document,
            name=str(name),
            seen=frozenset({pointer}),
            reference=pointer,
        )
        if node is not None:
            schemas[str(name)] = node
    return schemas


def _status_sort_key(status: str) -> tuple[int, int]:
    """Numeric codes ascending, then non-numeric codes, then ``default``."""
    if status.lower() == "default":
        return (2, 0)
    if status.strip().isdigit():
        return (0, int(status))
    return (1, 0)


def _to_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _to_str_list(value: Any) -> Optional[list[str]]:
    """Return the string entries of a list without duplicates, or ``None`` if empty."""
    if not isinstance(value, list):
        return None
    result = list(dict.fromkeys(entry for entry in value if isinstance(entry, str)))
    return result or None
