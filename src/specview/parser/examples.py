"""Example values for media entries and parameters.

When a document gives no explicit example, :func:`synthesize_example` walks a
normalized :class:`~specview.models.SchemaNode` and builds a representative
value from per-type defaults.  :func:`format_example` turns any example value
into the display string renderers show, and
:func:`language_from_content_type` picks the syntax-highlighting language for
a content type.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from specview.models import SchemaNode


def synthesize_example(node: Optional[SchemaNode]) -> Any:
    """Build an example value from a schema node.

    An explicit example on the node wins, then the first enum value, then a
    default by type: objects map each child name to its own synthesized value
    (``None`` when it has none), arrays wrap their item example in a
    one-element list (empty without ``items``), numbers become ``0``,
    booleans ``True``, ``null`` becomes ``None``, and every other type
    (string, any, reference, unknown) becomes ``"string"``.

    Args:
        node: The schema node, or ``None``.

    Returns:
        The example value, or ``None`` when *node* is ``None``.

    Example::

        synthesize_example(build_schema_node({
            "type": "object",
            "properties": {
                "a": {"type": "integer"},
                "b": {"type": "array", "items": {"type": "string"}},
            },
        }, doc))
        # {"a": 0, "b": ["string"]}
    """
    if node is None:
        return None
    if node.example is not None:
        return node.example
    if node.enum:
        return node.enum[0]

    if node.type == "object":
        output: dict[str, Any] = {}
        for child in node.children or []:
            if child.name:
                output[child.name] = synthesize_example(child)
        return output
    if node.type == "array":
        if node.items is None:
            return []
        return [synthesize_example(node.items)]
    if node.type in ("integer", "number"):
        return 0
    if node.type == "boolean":
        return True
    if node.type == "null":
        return None
    return "string"


def format_example(value: Any, content_type: Optional[str] = None) -> Optional[str]:
    """Serialize an example value into a display string.

    Strings pass through, booleans render as ``true``/``false``, numbers are
    stringified, and mappings or sequences are pretty-printed as two-space
    indented JSON whatever the content type.  Other values (dates decoded
    from YAML, for instance) are JSON-encoded for JSON content types and
    stringified otherwise.

    Args:
        value: The example value.
        content_type: Media type the example belongs to, if any.

    Returns:
        The formatted string, or ``None`` for a ``None`` value.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    if content_type and "json" in content_type:
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    return str(value)


def language_from_content_type(content_type: str) -> str:
    """Map a content type to a highlighting language.

    Substring checks run in priority order: ``json``, ``xml``,
    ``yaml``/``yml``, ``html``, ``plain``, ``x-www-form-urlencoded``.
    Anything unmatched is ``text``.
    """
    normalized = content_type.lower()
    if "json" in normalized:
        return "json"
    if "xml" in normalized:
        return "xml"
    if "yaml" in normalized or "yml" in normalized:
        return "yaml"
    if "html" in normalized:
        return "html"
    if "plain" in normalized:
        return "text"
    if "x-www-form-urlencoded" in normalized:
        return "urlencoded"
    return "text"
