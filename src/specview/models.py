"""Canonical Pydantic models shared across all specview modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ViewerConfig`.

**Loader models** -- describe where a document comes from and how to fetch it:
    :class:`SpecFormat`, :class:`RequestInit`, :class:`UrlSource`,
    :class:`FileSource`, :class:`DocumentSource`, :data:`SpecSource`, and
    :class:`LoaderOptions`.

**Normalized output models** -- produced by the parser and consumed by
renderers:
    :class:`OpenAPIVersion`, :class:`SchemaNode`, :class:`Parameter`,
    :class:`MediaEntry`, :class:`RequestBody`, :class:`Response`,
    :class:`Endpoint`, :class:`Tag`, :class:`PathGroup`, :class:`APIInfo`,
    :class:`ServerInfo`, and :class:`ParsedSpec`.

All models use Pydantic v2. The normalized models are rebuilt from scratch on
every load; nothing mutates them once :func:`~specview.parser.normalize_document`
returns.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field


# --- Config ---


class SpecFormat(str, enum.Enum):
    """Text encodings a document can be decoded from."""

    JSON = "json"
    YAML = "yaml"


class ViewerConfig(BaseModel):
    """User-wide and project-level settings for loading documents.

    Loaded by :func:`~specview.config.resolve_config`, which layers CLI
    flags, environment variables, the project ``specview.json``, and the
    global ``config.json`` on top of these defaults.
    """

    spec: Optional[str] = Field(
        default=None, description="URL or file path of the default document"
    )
    format: Optional[SpecFormat] = Field(
        default=None, description="Force json or yaml decoding"
    )
    timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra headers sent when fetching URLs"
    )
    read_files: bool = Field(
        default=True,
        description="Read file sources from disk; when false they are fetched over HTTP",
    )
    base_url: Optional[str] = Field(
        default=None, description="Base URL for file sources fetched over HTTP"
    )


# --- Loader ---


class RequestInit(BaseModel):
    """Caller-supplied request options for a URL source."""

    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, str] = Field(default_factory=dict)


class UrlSource(BaseModel):
    """A document fetched over HTTP(S)."""

    type: Literal["url"] = "url"
    url: str
    request_init: Optional[RequestInit] = None
    format: Optional[SpecFormat] = None


class FileSource(BaseModel):
    """A document read from a local path (or fetched by path on the client)."""

    type: Literal["file"] = "file"
    path: str
    format: Optional[SpecFormat] = None


class DocumentSource(BaseModel):
    """A document that is already decoded in memory."""

    type: Literal["document"] = "document"
    document: dict[str, Any]


SpecSource = Annotated[
    Union[UrlSource, FileSource, DocumentSource], Field(discriminator="type")
]


class LoaderOptions(BaseModel):
    """Loader-wide options applied to every source.

    ``fetcher`` lets callers inject a configured :class:`httpx.AsyncClient`
    (auth, proxies, a mock transport in tests).  When omitted, a short-lived
    client is created per load.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    fetcher: Optional[httpx.AsyncClient] = None
    format: Optional[SpecFormat] = None
    timeout: float = 30.0
    verify_ssl: bool = True
    read_files: bool = True
    base_url: Optional[str] = None


# --- Normalized output ---


class OpenAPIVersion(str, enum.Enum):
    """Document families the normalizer has an input adapter for."""

    V2 = "2"
    V3 = "3"


class SchemaNode(BaseModel):
    """Normalized, resolved view of a schema fragment.

    Object nodes carry ``children``, array nodes carry ``items``, and scalar
    nodes carry neither.  ``required`` is decided by the parent object's
    ``required`` list.  A node of type ``reference`` marks a cycle: the
    pointer was already being resolved higher up the same branch.
    """

    name: Optional[str] = None
    title: Optional[str] = None
    type: str = "any"
    format: Optional[str] = None
    description: Optional[str] = None
    enum: Optional[list[Union[bool, int, float, str]]] = None
    nullable: bool = False
    required: bool = False
    example: Any = None
    children: Optional[list[SchemaNode]] = None
    items: Optional[SchemaNode] = None
    reference: Optional[str] = None


class Parameter(BaseModel):
    """A single merged operation parameter."""

    name: str
    location: str = "query"
    required: bool = False
    description: Optional[str] = None
    deprecated: bool = False
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")
    example: Optional[str] = None

    model_config = {"populate_by_name": True}


class MediaEntry(BaseModel):
    """One representation (content type, schema, example) of a body."""

    content_type: str
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")
    example: Optional[str] = None
    language: str = "text"

    model_config = {"populate_by_name": True}


class RequestBody(BaseModel):
    """Normalized request body with one media entry per content type."""

    description: Optional[str] = None
    required: bool = False
    contents: list[MediaEntry] = Field(default_factory=list)


class Response(BaseModel):
    """Normalized response for one status code (or ``default``)."""

    status: str
    description: Optional[str] = None
    contents: list[MediaEntry] = Field(default_factory=list)


class Endpoint(BaseModel):
    """A normalized operation: one path template + HTTP method pair."""

    id: str
    method: str
    path: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    deprecated: bool = False
    tags: list[str] = Field(default_factory=list)
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: list[Response] = Field(default_factory=list)
    security: Optional[list[dict[str, Any]]] = None


class ExternalDocs(BaseModel):
    """Link to documentation outside the document."""

    url: str
    description: Optional[str] = None


class Tag(BaseModel):
    """A group of endpoints sharing a tag name."""

    name: str
    slug: str
    description: Optional[str] = None
    external_docs: Optional[ExternalDocs] = None
    endpoints: list[Endpoint] = Field(default_factory=list)


class PathGroup(BaseModel):
    """All endpoints declared under one path template."""

    path: str
    summary: Optional[str] = None
    description: Optional[str] = None
    endpoints: list[Endpoint] = Field(default_factory=list)


class APIInfo(BaseModel):
    """API metadata from the document's *Info Object*."""

    title: str
    version: Optional[str] = None
    description: Optional[str] = None


class ServerInfo(BaseModel):
    """A base URL the API is served from."""

    url: str
    description: Optional[str] = None


class ParsedSpec(BaseModel):
    """Complete normalized representation of an OpenAPI document.

    ``tags`` is the presentation structure renderers walk; ``paths`` and
    ``schemas`` serve consumers that want a path-oriented view or a flat
    lookup of named schemas.

    See Also:
        :class:`Endpoint`: Individual operation within the spec.
        :class:`Tag`: Tag bucket holding endpoints.
    """

    info: APIInfo
    tags: list[Tag] = Field(default_factory=list)
    servers: list[ServerInfo] = Field(default_factory=list)
    paths: list[PathGroup] = Field(default_factory=list)
    schemas: dict[str, SchemaNode] = Field(default_factory=dict)
    openapi_version: OpenAPIVersion = OpenAPIVersion.V3
    raw: Optional[dict[str, Any]] = Field(
        default=None, description="Original document for reference"
    )

    def find_endpoint(self, endpoint_id: str) -> Optional[Endpoint]:
        """Return the endpoint with *endpoint_id*, or ``None``."""
        for group in self.paths:
            for endpoint in group.endpoints:
                if endpoint.id == endpoint_id:
                    return endpoint
        return None


SchemaNode.model_rebuild()
