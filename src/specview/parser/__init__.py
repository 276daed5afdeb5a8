"""OpenAPI document parser -- load, resolve ``$ref`` pointers, and normalize.

This sub-package turns a raw OpenAPI 2.0 or 3.x document (JSON or YAML, local
file, remote URL, or an in-memory dict) into a
:class:`~specview.models.ParsedSpec` that renderers can walk.

Typical usage::

    from specview.parser import load_document, normalize_document, source_from_location

    doc = await load_document(source_from_location("https://petstore3.swagger.io/api/v3/openapi.json"))
    spec = normalize_document(doc)

Sub-modules:

* :mod:`~specview.parser.loader` -- I/O layer (URL, file, memory) plus
  format detection and version detection.
* :mod:`~specview.parser.resolver` -- Internal ``$ref`` pointer lookup.
* :mod:`~specview.parser.schema` -- Schema normalization with ``allOf``
  merging and cycle detection.
* :mod:`~specview.parser.examples` -- Example synthesis and formatting.
* :mod:`~specview.parser.extractor` -- Per-operation normalization behind
  the Swagger 2.0 / OpenAPI 3 input adapters.
* :mod:`~specview.parser.assembler` -- Tag ordering and the final
  :class:`~specview.models.ParsedSpec`.
"""

from specview.parser.assembler import normalize_document
from specview.parser.loader import (
    detect_openapi_version,
    load_document,
    parse_document,
    source_from_location,
)

__all__ = [
    "load_document",
    "parse_document",
    "source_from_location",
    "detect_openapi_version",
    "normalize_document",
]
