"""Assemble the presentation-ready :class:`~specview.models.ParsedSpec`.

The assembler runs the operation walk from :mod:`specview.parser.extractor`
and arranges the endpoints into tag buckets:

* Tags declared in the document's top-level ``tags`` list come first, in
  declaration order.  Declared tags no operation uses are left out.
* Tags that operations use without declaring them follow, in the order they
  are first encountered while walking paths and methods.
* An endpoint appears once in every bucket it names.  Operations without
  tags land in the ``General`` bucket.

The single public entry point is :func:`normalize_document`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from specview.models import (
    APIInfo,
    ExternalDocs,
    ParsedSpec,
    PathGroup,
    Tag,
)
from specview.parser.extractor import extract_schemas, get_adapter, slugify

logger = logging.getLogger(__name__)

_DEFAULT_TITLE = "API Reference"


def normalize_document(document: dict[str, Any]) -> ParsedSpec:
    """Normalize a decoded OpenAPI document into a :class:`~specview.models.ParsedSpec`.

    This is the main public entry point for the normalization pipeline.  It
    never raises for odd document content: unresolvable references, cycles,
    nameless parameters and untagged operations all degrade to defaults.
    The input document is not modified.

    Args:
        document: The decoded document, as returned by
            :func:`~specview.parser.loader.load_document`.

    Returns:
        A fully populated :class:`~specview.models.ParsedSpec`.

    Example::

        doc = await load_document(FileSource(path="petstore.yaml"))
        spec = normalize_document(doc)
        for tag in spec.tags:
            print(tag.name, [endpoint.id for endpoint in tag.endpoints])
    """
    adapter = get_adapter(document)
    groups = adapter.path_groups()
    logger.debug(
        "Normalized %d paths (%s document)", len(groups), adapter.version.value
    )

    return ParsedSpec(
        info=_extract_info(document),
        tags=assemble_tags(document, groups),
        servers=adapter.servers(),
        paths=_sorted_paths(groups),
        schemas=extract_schemas(document),
        openapi_version=adapter.version,
        raw=document,
    )


def assemble_tags(document: dict[str, Any], groups: list[PathGroup]) -> list[Tag]:
    """Bucket endpoints by tag and order the buckets.

    Args:
        document: The decoded document (for its top-level ``tags`` list).
        groups: Path groups in walk order.

    Returns:
        Tags with their endpoints, declared tags first.
    """
    definitions = _extract_tag_definitions(document.get("tags"))

    buckets: dict[str, Tag] = {}
    for group in groups:
        for endpoint in group.endpoints:
            for tag_name in endpoint.tags:
                if tag_name not in buckets:
                    buckets[tag_name] = _new_tag(tag_name, definitions.get(tag_name))
                buckets[tag_name].endpoints.append(endpoint)

    ordered = [buckets[name] for name in definitions if name in buckets]
    ordered.extend(tag for name, tag in buckets.items() if name not in definitions)
    return ordered


def _new_tag(name: str, definition: Optional[dict[str, Any]]) -> Tag:
    definition = definition or {}
    docs = definition.get("externalDocs")
    external_docs = None
    if isinstance(docs, dict) and isinstance(docs.get("url"), str):
        external_docs = ExternalDocs(
            url=docs["url"],
            description=_to_str(docs.get("description")),
        )
    return Tag(
        name=name,
        slug=slugify(name),
        description=_to_str(definition.get("description")),
        external_docs=external_docs,
    )


def _extract_tag_definitions(value: Any) -> dict[str, dict[str, Any]]:
    """Map declared tag names to their tag objects, keeping declaration order."""
    if not isinstance(value, list):
        return {}
    definitions: dict[str, dict[str, Any]] = {}
    for entry in value:
        if not isinstance(entry, dict):
            continue
        name = _to_str(entry.get("name"))
        if name and name not in definitions:
            definitions[name] = entry
    return definitions


def _extract_info(document: dict[str, Any]) -> APIInfo:
    info = document.get("info")
    info = info if isinstance(info, dict) else {}
    version = info.get("version")
    return APIInfo(
        title=_to_str(info.get("title")) or _DEFAULT_TITLE,
        # YAML decodes an unquoted ``version: 1.0`` as a float
        version=str(version) if isinstance(version, (str, int, float)) else None,
        description=_to_str(info.get("description")),
    )


def _sorted_paths(groups: list[PathGroup]) -> list[PathGroup]:
    """Path-oriented view: paths alphabetically, methods alphabetically."""
    return [
        group.model_copy(
            update={"endpoints": sorted(group.endpoints, key=lambda e: e.method)}
        )
        for group in sorted(groups, key=lambda g: g.path)
    ]


def _to_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None
