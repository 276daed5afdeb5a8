"""Inspect commands -- examine the normalized document.

Provides the ``specview inspect`` sub-command group.  Every command resolves
the document location (``--spec``, ``SPECVIEW_SPEC``, ``./specview.json``,
or the global config), loads and normalizes it, and prints one view of the
resulting :class:`~specview.models.ParsedSpec`.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from specview.exceptions import (
    InvalidUsageError,
    NotFoundError,
    ParseError,
    SpecviewError,
)
from specview.models import Endpoint, MediaEntry, ParsedSpec, SchemaNode, Tag
from specview.output import (
    OutputFormat,
    debug,
    error,
    get_output,
    info,
    print_code,
    print_fields,
    print_json,
    print_table,
    suggest,
)


inspect_app = typer.Typer(no_args_is_help=True)

_FORMATS = ("json", "yaml")


def _fail(exc: SpecviewError) -> typer.Exit:
    """Report *exc* on stderr and build the matching :class:`typer.Exit`."""
    error(str(exc))
    if isinstance(exc, ParseError) and exc.line is not None:
        location = f"line {exc.line}, column {exc.column}"
        suggest(f"{location}: {exc.snippet}" if exc.snippet else location)
    return typer.Exit(code=exc.exit_code)


async def _load_and_normalize(spec: Optional[str], fmt: Optional[str]) -> ParsedSpec:
    from specview.config import (
        config_to_loader_options,
        config_to_source,
        resolve_config,
    )
    from specview.parser import load_document, normalize_document

    if fmt is not None and fmt.lower() not in _FORMATS:
        raise InvalidUsageError(f"--format must be one of {', '.join(_FORMATS)}, got '{fmt}'")
    config = resolve_config(cli_spec=spec, cli_format=fmt.lower() if fmt else None)
    source = config_to_source(config)
    debug(f"Loading document from {config.spec}")
    document = await load_document(source, config_to_loader_options(config))
    return normalize_document(document)


def _load_spec(ctx: typer.Context) -> ParsedSpec:
    """Load the document named by the global ``--spec``/``--format`` flags.

    Raises:
        typer.Exit: With the exit code of the underlying
            :class:`~specview.exceptions.SpecviewError`.
    """
    obj = ctx.obj or {}
    try:
        return asyncio.run(_load_and_normalize(obj.get("spec"), obj.get("format")))
    except SpecviewError as exc:
        raise _fail(exc) from None


def _find_endpoint(spec: ParsedSpec, endpoint_id: str) -> Endpoint:
    endpoint = spec.find_endpoint(endpoint_id)
    if endpoint is None:
        raise _fail(NotFoundError(f"No endpoint with id '{endpoint_id}'"))
    return endpoint


def _find_tag(spec: ParsedSpec, name: str) -> Tag:
    for tag in spec.tags:
        if name in (tag.name, tag.slug):
            return tag
    raise _fail(NotFoundError(f"No tag named '{name}'"))


def _endpoint_row(endpoint: Endpoint) -> list[str]:
    return [
        endpoint.id,
        endpoint.method.upper(),
        endpoint.path,
        endpoint.summary or "-",
        "Yes" if endpoint.deprecated else "",
    ]


def _type_label(node: Optional[SchemaNode]) -> str:
    if node is None:
        return "-"
    label = node.type
    if node.type == "array" and node.items is not None:
        label = f"{node.items.name or node.items.type}[]"
    if node.format:
        label = f"{label} ({node.format})"
    return label


@inspect_app.command("info")
def inspect_info(ctx: typer.Context) -> None:
    """Show API metadata and counts.

    Example::

        specview --spec openapi.yaml inspect info
    """
    spec = _load_spec(ctx)
    endpoint_count = sum(len(group.endpoints) for group in spec.paths)
    print_fields(
        {
            "title": spec.info.title,
            "version": spec.info.version or "",
            "openapi_version": spec.openapi_version.value,
            "description": spec.info.description or "",
            "servers": ", ".join(server.url for server in spec.servers),
            "tags": str(len(spec.tags)),
            "endpoints": str(endpoint_count),
            "schemas": str(len(spec.schemas)),
        },
        title=spec.info.title,
    )


@inspect_app.command("tags")
def inspect_tags(ctx: typer.Context) -> None:
    """List tag buckets in display order."""
    spec = _load_spec(ctx)
    rows = [
        [tag.name, tag.slug, str(len(tag.endpoints)), tag.description or "-"]
        for tag in spec.tags
    ]
    print_table(["Tag", "Slug", "Endpoints", "Description"], rows, title=f"Tags ({len(rows)})")


@inspect_app.command("endpoints")
def inspect_endpoints(
    ctx: typer.Context,
    tag: Optional[str] = typer.Option(
        None, "--tag", "-t", help="Only list endpoints in this tag (name or slug)."
    ),
) -> None:
    """List endpoints, by path or within one tag.

    Example::

        specview inspect endpoints
        specview inspect endpoints --tag pets
    """
    spec = _load_spec(ctx)
    if tag is not None:
        endpoints = _find_tag(spec, tag).endpoints
        title = f"{tag} -- Endpoints ({len(endpoints)})"
    else:
        endpoints = [endpoint for group in spec.paths for endpoint in group.endpoints]
        title = f"{spec.info.title} -- Endpoints ({len(endpoints)})"

    rows = [_endpoint_row(endpoint) for endpoint in endpoints]
    print_table(["ID", "Method", "Path", "Summary", "Deprecated"], rows, title=title)


@inspect_app.command("endpoint")
def inspect_endpoint(
    ctx: typer.Context,
    endpoint_id: str = typer.Argument(help="Endpoint id, e.g. get-pets-petid."),
) -> None:
    """Show one endpoint: parameters, request body, and responses."""
    spec = _load_spec(ctx)
    endpoint = _find_endpoint(spec, endpoint_id)

    if get_output().format == OutputFormat.JSON:
        print_json(endpoint.model_dump(mode="json", by_alias=True, exclude_none=True))
        return

    print_fields(
        {
            "ID": endpoint.id,
            "Method": endpoint.method.upper(),
            "Path": endpoint.path,
            "Operation ID": endpoint.operation_id or "",
            "Summary": endpoint.summary or "",
            "Description": endpoint.description or "",
            "Tags": ", ".join(endpoint.tags),
            "Deprecated": "Yes" if endpoint.deprecated else "",
        },
        title=f"{endpoint.method.upper()} {endpoint.path}",
    )

    if endpoint.parameters:
        print_table(
            ["Name", "In", "Required", "Type", "Description"],
            [
                [
                    param.name,
                    param.location,
                    "Yes" if param.required else "",
                    _type_label(param.schema_),
                    param.description or "-",
                ]
                for param in endpoint.parameters
            ],
            title="Parameters",
        )

    if endpoint.request_body is not None:
        print_table(
            ["Content type", "Schema", "Required"],
            [
                [
                    entry.content_type,
                    _type_label(entry.schema_),
                    "Yes" if endpoint.request_body.required else "",
                ]
                for entry in endpoint.request_body.contents
            ],
            title="Request body",
        )

    print_table(
        ["Status", "Content types", "Description"],
        [
            [
                response.status,
                ", ".join(entry.content_type for entry in response.contents) or "-",
                response.description or "-",
            ]
            for response in endpoint.responses
        ],
        title="Responses",
    )


@inspect_app.command("schemas")
def inspect_schemas(ctx: typer.Context) -> None:
    """List named schema definitions."""
    spec = _load_spec(ctx)
    if not spec.schemas:
        info("No schemas defined in this document.")
        return

    rows: list[list[str]] = []
    for name, node in spec.schemas.items():
        children = [child.name or "?" for child in node.children or []]
        fields = ", ".join(children[:5])
        if len(children) > 5:
            fields += "..."
        rows.append([name, _type_label(node), fields or "-"])
    print_table(["Schema", "Type", "Properties"], rows, title=f"Schemas ({len(rows)})")


def _pick_media(contents: list[MediaEntry], content_type: Optional[str]) -> Optional[MediaEntry]:
    if content_type is None:
        return contents[0] if contents else None
    for entry in contents:
        if entry.content_type == content_type:
            return entry
    return None


@inspect_app.command("example")
def inspect_example(
    ctx: typer.Context,
    endpoint_id: str = typer.Argument(help="Endpoint id, e.g. get-pets-petid."),
    status: Optional[str] = typer.Option(
        None, "--status", help="Response status code (default: first with content)."
    ),
    request: bool = typer.Option(
        False, "--request", help="Show the request body example instead."
    ),
    content_type: Optional[str] = typer.Option(
        None, "--content-type", "-c", help="Content type (default: the first one)."
    ),
) -> None:
    """Print the example for a response or the request body.

    Example::

        specview inspect example get-pets-petid --status 200
        specview inspect example post-pets --request
    """
    if request and status is not None:
        raise _fail(InvalidUsageError("--request and --status are mutually exclusive"))

    spec = _load_spec(ctx)
    endpoint = _find_endpoint(spec, endpoint_id)

    if request:
        if endpoint.request_body is None:
            raise _fail(NotFoundError(f"Endpoint '{endpoint_id}' has no request body"))
        contents = endpoint.request_body.contents
        label = "request body"
    else:
        candidates = [
            response
            for response in endpoint.responses
            if (status is None and response.contents) or response.status == status
        ]
        if not candidates:
            target = f"response '{status}'" if status else "response with content"
            raise _fail(NotFoundError(f"Endpoint '{endpoint_id}' has no {target}"))
        contents = candidates[0].contents
        label = f"response {candidates[0].status}"

    entry = _pick_media(contents, content_type)
    if entry is None or entry.example is None:
        wanted = f" for {content_type}" if content_type else ""
        raise _fail(NotFoundError(f"No example in {label}{wanted}"))

    debug(f"Example from {label} ({entry.content_type})")
    print_code(entry.example, entry.language)
