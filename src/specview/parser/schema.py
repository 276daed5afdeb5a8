"""Build normalized :class:`~specview.models.SchemaNode` trees from raw schemas.

The composer is a single recursive function.  Reference resolution happens
inline: when a fragment is a ``$ref`` object the pointer is looked up with
:func:`~specview.parser.resolver.resolve_pointer` and the target is fed back
into the same function.  A ``frozenset`` of pointers already on the current
branch travels with the recursion, so a schema that refers back to one of its
ancestors becomes a terminal ``reference`` node instead of recursing forever.
Sibling properties each receive the parent's set, never each other's.

``allOf`` is flattened before anything else by :func:`merge_all_of`.  Only
``properties``, ``required`` and the first explicit ``type`` of the branches
are merged; ``oneOf``/``anyOf``/``not`` are not interpreted.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from specview.models import SchemaNode
from specview.parser.resolver import NOT_FOUND, is_reference, resolve_maybe_ref, resolve_pointer

logger = logging.getLogger(__name__)


def build_schema_node(
    raw: Any,
    root: dict[str, Any],
    *,
    name: Optional[str] = None,
    required: bool = False,
    seen: frozenset[str] = frozenset(),
    reference: Optional[str] = None,
) -> Optional[SchemaNode]:
    """Convert a raw schema fragment into a :class:`~specview.models.SchemaNode`.

    Args:
        raw: The schema fragment, a ``$ref`` object, or ``None``.
        root: The document root used for reference lookups.
        name: Property key the fragment was found under.
        required: Whether the parent object lists *name* as required.
        seen: Pointers currently being resolved on this branch.
        reference: Pointer that led to *raw*, recorded on the node.

    Returns:
        The normalized node, or ``None`` when *raw* is empty or not a
        mapping.

    Example::

        node = build_schema_node({"$ref": "#/components/schemas/Pet"}, doc)
        node.reference  # "#/components/schemas/Pet"
        [child.name for child in node.children]
    """
    if not raw:
        return None

    if is_reference(raw):
        pointer = raw["$ref"]
        if pointer in seen:
            logger.debug("Reference cycle at %s", pointer)
            return SchemaNode(
                name=name,
                type="reference",
                reference=pointer,
                description=f"See {pointer}",
                required=required,
            )
        resolved = resolve_pointer(pointer, root)
        if resolved is NOT_FOUND or resolved is None:
            logger.debug("Unresolved reference %s", pointer)
            return SchemaNode(name=name, type="unknown", reference=pointer, required=required)
        node = build_schema_node(
            resolved,
            root,
            name=name,
            required=required,
            seen=seen | {pointer},
            reference=pointer,
        )
        if node is not None and node.reference is None:
            node = node.model_copy(update={"reference": pointer})
        return node

    if not isinstance(raw, dict):
        return None

    all_of = raw.get("allOf")
    if isinstance(all_of, list) and all_of:
        return build_schema_node(
            merge_all_of(raw, root),
            root,
            name=name,
            required=required,
            seen=seen,
            reference=reference,
        )

    schema_type = determine_type(raw)
    title = _to_str(raw.get("title"))
    fields: dict[str, Any] = {
        "name": name if name is not None else title,
        "title": title if title is not None else name,
        "type": schema_type,
        "format": _to_str(raw.get("format")),
        "description": _to_str(raw.get("description")),
        "enum": _filter_enum(raw.get("enum")),
        "nullable": _is_nullable(raw),
        "required": required,
        "example": raw.get("example"),
        "reference": reference,
    }

    if schema_type == "object":
        raw_required = raw.get("required")
        required_names: set[str] = set()
        if isinstance(raw_required, list):
            required_names = {
                str(value) for value in raw_required if isinstance(value, (str, int))
            }
        children: list[SchemaNode] = []
        properties = raw.get("properties")
        if isinstance(properties, dict):
            for property_name, property_schema in properties.items():
                child = build_schema_node(
                    property_schema,
                    root,
                    name=str(property_name),
                    required=str(property_name) in required_names,
                    seen=seen,
                )
                if child is not None:
                    children.append(child)
        return SchemaNode(**fields, children=children)

    if schema_type == "array":
        items = raw.get("items")
        items_node = build_schema_node(
            items,
            root,
            name=_to_str(items.get("title")) if isinstance(items, dict) else None,
            seen=seen,
        )
        return SchemaNode(**fields, items=items_node)

    return SchemaNode(**fields)


def merge_all_of(schema: dict[str, Any], root: dict[str, Any]) -> dict[str, Any]:
    """Flatten an ``allOf`` schema into one synthetic schema.

    Each branch is resolved one hop if it is a reference.  ``properties``
    maps are unioned with later branches winning on key collisions,
    ``required`` lists are unioned without duplicates, and the first explicit
    ``type`` is adopted when the combining schema has none.  A branch that is
    itself an ``allOf`` contributes only its own top-level keys.

    Args:
        schema: A schema dict containing a non-empty ``allOf`` list.
        root: The document root used for reference lookups.

    Returns:
        A new dict without ``allOf``; *schema* is left untouched.
    """
    merged = {key: value for key, value in schema.items() if key != "allOf"}

    for part in schema.get("allOf") or []:
        resolved = resolve_maybe_ref(part, root)
        if not isinstance(resolved, dict):
            continue
        if isinstance(resolved.get("properties"), dict):
            current = merged.get("properties")
            merged["properties"] = {
                **(current if isinstance(current, dict) else {}),
                **resolved["properties"],
            }
        if isinstance(resolved.get("required"), list):
            current_required = merged.get("required")
            combined = [
                *(current_required if isinstance(current_required, list) else []),
                *resolved["required"],
            ]
            merged["required"] = list(
                dict.fromkeys(value for value in combined if isinstance(value, str))
            )
        if not merged.get("type") and isinstance(resolved.get("type"), str):
            merged["type"] = resolved["type"]

    return merged


def determine_type(schema: dict[str, Any]) -> str:
    """Return the declared or inferred type of a schema.

    An OpenAPI 3.1 type array such as ``["string", "null"]`` yields its first
    non-null entry.  Without a ``type``, ``properties`` implies ``object``,
    ``items`` implies ``array``, ``enum`` implies ``string``, and anything
    else is ``any``.
    """
    type_value = schema.get("type")
    if isinstance(type_value, str):
        return type_value
    if isinstance(type_value, list):
        non_null = [t for t in type_value if isinstance(t, str) and t != "null"]
        if non_null:
            return non_null[0]
        if "null" in type_value:
            return "null"
    if isinstance(schema.get("properties"), dict):
        return "object"
    if schema.get("items") is not None:
        return "array"
    if isinstance(schema.get("enum"), list):
        return "string"
    return "any"


def _filter_enum(value: Any) -> Optional[list[Any]]:
    """Keep only string, number and boolean enum entries."""
    if not isinstance(value, list):
        return None
    return [entry for entry in value if isinstance(entry, (str, int, float, bool))]


def _is_nullable(schema: dict[str, Any]) -> bool:
    type_value = schema.get("type")
    if isinstance(type_value, list) and "null" in type_value and len(type_value) > 1:
        return True
    return bool(schema.get("nullable") or schema.get("x-nullable"))


def _to_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None
