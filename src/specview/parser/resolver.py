"""Resolve ``$ref`` JSON Reference pointers in OpenAPI documents.

OpenAPI documents commonly use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/schemas/Pet"}``) to avoid repetition.  This module
looks a single pointer up against the document root.  It does not copy or
rewrite the document: callers resolve on demand while walking it.

Only **internal** references (those starting with ``#/``) are supported.
Anything else, and any pointer whose path does not exist, resolves to the
:data:`NOT_FOUND` sentinel.  Lookups never raise.

Cycle detection is not handled here.  The schema composer threads a set of
pointers currently being resolved through its recursion (see
:func:`~specview.parser.schema.build_schema_node`).
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class _NotFound:
    """Sentinel type for pointers that do not resolve."""

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = _NotFound()
"""Returned by :func:`resolve_pointer` when a pointer does not resolve."""


def is_reference(value: Any) -> bool:
    """Return True if *value* is a reference object (a mapping with a string ``$ref``)."""
    return isinstance(value, dict) and isinstance(value.get("$ref"), str)


def unescape_segment(segment: str) -> str:
    """Undo RFC 6901 escaping (``~1`` for ``/``, ``~0`` for ``~``)."""
    return segment.replace("~1", "/").replace("~0", "~")


def resolve_pointer(pointer: str, root: dict[str, Any]) -> Any:
    """Resolve a single ``$ref`` string against the document root.

    Parses JSON Pointer references like ``#/components/schemas/Pet`` and walks
    the root one mapping key at a time.

    Args:
        pointer: The ``$ref`` string (e.g., ``"#/components/schemas/Pet"``).
        root: The root document to resolve against.

    Returns:
        The value found at the referenced path, or :data:`NOT_FOUND` if the
        pointer is external or any segment is missing.

    Example::

        resolve_pointer("#/components/schemas/Pet", doc)
        resolve_pointer("#/paths/~1pets~1{petId}/get", doc)
    """
    if not isinstance(pointer, str) or not pointer.startswith("#/"):
        logger.debug("Unsupported reference %r", pointer)
        return NOT_FOUND

    current: Any = root
    for raw_segment in pointer[2:].split("/"):
        segment = unescape_segment(raw_segment)
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        else:
            logger.debug("Reference %s not found at segment %r", pointer, segment)
            return NOT_FOUND

    return current


def resolve_maybe_ref(value: Any, root: dict[str, Any]) -> Any:
    """Follow *value* one hop if it is a reference object.

    Args:
        value: Any node from the document.
        root: The root document.

    Returns:
        The referenced value when *value* is a resolvable reference, ``None``
        when it is an unresolvable one, otherwise *value* unchanged.
    """
    if is_reference(value):
        resolved = resolve_pointer(value["$ref"], root)
        return None if resolved is NOT_FOUND else resolved
    return value
