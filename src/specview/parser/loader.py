"""Load OpenAPI documents from a URL, a local file, or memory.

This module handles all I/O for fetching raw OpenAPI documents and decoding
them into Python dictionaries.  It supports JSON and YAML with format
detection, and tells Swagger 2.0 documents apart from OpenAPI 3.x ones.

The public functions are:

* :func:`load_document` -- Fetch and decode a document from any source
  descriptor.
* :func:`parse_document` -- Decode JSON or YAML text.
* :func:`source_from_location` -- Build a source descriptor from a URL or
  path string.
* :func:`detect_openapi_version` -- Pick the input adapter family for a
  decoded document.

Format selection follows a fixed priority: the source's own ``format``, the
loader-wide ``format``, the response ``Content-Type``, the file extension,
and finally the first character of the text (``{`` or ``[`` means JSON).

After loading, the dict should be passed to
:func:`~specview.parser.assembler.normalize_document`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from specview.exceptions import LoadError, ParseError
from specview.models import (
    DocumentSource,
    FileSource,
    LoaderOptions,
    OpenAPIVersion,
    RequestInit,
    SpecFormat,
    SpecSource,
    UrlSource,
)

logger = logging.getLogger(__name__)


async def load_document(
    source: SpecSource,
    options: Optional[LoaderOptions] = None,
) -> dict[str, Any]:
    """Load and decode a document from any supported source.

    Args:
        source: A :class:`~specview.models.UrlSource`,
            :class:`~specview.models.FileSource`, or
            :class:`~specview.models.DocumentSource`.
        options: Loader-wide options (fetcher, format override, timeouts).

    Returns:
        The decoded document.  A ``DocumentSource`` is returned unchanged.

    Raises:
        LoadError: If the document cannot be fetched or read.
        ParseError: If the text is not valid JSON or YAML.

    Example::

        doc = await load_document(UrlSource(url="https://example.com/openapi.yaml"))
    """
    options = options or LoaderOptions()
    if isinstance(source, DocumentSource):
        return source.document
    if isinstance(source, UrlSource):
        return await _load_from_url(source, options)
    return await _load_from_file(source, options)


def source_from_location(location: str, fmt: Optional[SpecFormat] = None) -> SpecSource:
    """Build a source descriptor from a URL or filesystem path string."""
    if location.startswith(("http://", "https://")):
        return UrlSource(url=location, format=fmt)
    return FileSource(path=location, format=fmt)


async def _load_from_url(source: UrlSource, options: LoaderOptions) -> dict[str, Any]:
    """Fetch a document over HTTP and decode it.

    Raises:
        LoadError: On transport failure or a non-2xx status.
        ParseError: If the body cannot be decoded.
    """
    response = await _fetch(source.url, options, source.request_init)
    fmt = (
        source.format
        or options.format
        or infer_format_from_content_type(response.headers.get("content-type"))
        or infer_format_from_path(httpx.URL(source.url).path)
    )
    return parse_document(response.text, fmt)


async def _load_from_file(source: FileSource, options: LoaderOptions) -> dict[str, Any]:
    """Read a document from disk, or fetch it by path when files are off-limits.

    Relative paths are read relative to the working directory.  With
    ``read_files`` disabled the path is requested over HTTP, joined onto
    ``base_url`` unless it is already absolute.

    Raises:
        LoadError: If the file is missing or unreadable, or the HTTP fetch
            fails.
        ParseError: If the content cannot be decoded.
    """
    fmt = source.format or options.format or infer_format_from_path(source.path)

    if not options.read_files:
        if source.path.startswith(("http://", "https://")):
            url = source.path
        elif options.base_url:
            url = str(httpx.URL(options.base_url).join(source.path))
        else:
            raise LoadError(
                f"Cannot fetch {source.path}: a base_url is required when "
                "file sources are loaded over HTTP"
            )
        response = await _fetch(url, options)
        return parse_document(response.text, fmt)

    file_path = Path(source.path).expanduser()
    if not file_path.is_file():
        raise LoadError(f"Document file not found: {source.path}")

    try:
        content = await asyncio.to_thread(file_path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Failed to read document file {source.path}: {exc}") from exc

    logger.debug("Read %d characters from %s", len(content), file_path)
    return parse_document(content, fmt)


async def _fetch(
    url: str,
    options: LoaderOptions,
    request_init: Optional[RequestInit] = None,
) -> httpx.Response:
    """Issue the HTTP request for a document and check its status.

    Uses the caller-supplied ``fetcher`` when present; otherwise a client is
    created for this single request.
    """
    init = request_init or RequestInit()
    logger.debug("Fetching document: %s %s", init.method, url)

    try:
        if options.fetcher is not None:
            response = await options.fetcher.request(
                init.method,
                url,
                headers=init.headers or None,
                params=init.params or None,
            )
        else:
            async with httpx.AsyncClient(
                timeout=options.timeout,
                verify=options.verify_ssl,
                follow_redirects=True,
            ) as client:
                response = await client.request(
                    init.method,
                    url,
                    headers=init.headers or None,
                    params=init.params or None,
                )
    except httpx.RequestError as exc:
        raise LoadError(f"Failed to fetch document from {url}: {exc}") from exc

    if not response.is_success:
        raise LoadError(
            f"Failed to load document from {url}: "
            f"HTTP {response.status_code} {response.reason_phrase}".rstrip(),
            status_code=response.status_code,
        )

    return response


def parse_document(text: str, fmt: Optional[SpecFormat] = None) -> dict[str, Any]:
    """Decode document text as JSON or YAML.

    Without an explicit *fmt* the format is sniffed from the content: text
    starting with ``{`` or ``[`` (or empty text) is JSON, anything else YAML.

    Args:
        text: The raw document text.
        fmt: Optional explicit format.

    Returns:
        The decoded document.

    Raises:
        ParseError: If decoding fails or the result is not a mapping.  The
            error carries the offending line and its position when the
            decoder reports one.
    """
    trimmed = text.strip()
    fmt = fmt or infer_format_from_content(trimmed)
    logger.debug("Decoding document as %s", fmt.value)

    if fmt == SpecFormat.JSON:
        try:
            result = json.loads(trimmed)
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
                snippet=_line_at(trimmed, exc.lineno),
                line=exc.lineno,
                column=exc.colno,
            ) from exc
    else:
        try:
            result = yaml.safe_load(trimmed)
        except yaml.YAMLError as exc:
            mark = getattr(exc, "problem_mark", None)
            if mark is None:
                raise ParseError(f"Invalid YAML: {exc}") from exc
            line = mark.line + 1
            raise ParseError(
                f"Invalid YAML: {getattr(exc, 'problem', None) or exc} "
                f"(line {line}, column {mark.column + 1})",
                snippet=_line_at(trimmed, line),
                line=line,
                column=mark.column + 1,
            ) from exc

    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise ParseError(f"Document must be a JSON/YAML object (got {kind})")

    return result


def infer_format_from_path(path: Optional[str]) -> Optional[SpecFormat]:
    """Infer the format from a ``.json``, ``.yaml`` or ``.yml`` extension."""
    if not path:
        return None
    lower = path.lower()
    if lower.endswith(".json"):
        return SpecFormat.JSON
    if lower.endswith((".yaml", ".yml")):
        return SpecFormat.YAML
    return None


def infer_format_from_content_type(content_type: Optional[str]) -> Optional[SpecFormat]:
    """Infer the format from a ``Content-Type`` header value."""
    if not content_type:
        return None
    if "json" in content_type:
        return SpecFormat.JSON
    if "yaml" in content_type or "yml" in content_type:
        return SpecFormat.YAML
    return None


def infer_format_from_content(content: str) -> SpecFormat:
    """Sniff the format from the first character of already-stripped text."""
    if not content or content[0] in "{[":
        return SpecFormat.JSON
    return SpecFormat.YAML


def detect_openapi_version(document: dict[str, Any]) -> OpenAPIVersion:
    """Return which input adapter family handles *document*.

    A ``swagger`` field marks a Swagger 2.0 document (unquoted YAML
    ``swagger: 2.0`` decodes to a float, so any scalar counts).  Everything
    else, including documents with neither ``swagger`` nor ``openapi``, is
    treated as OpenAPI 3.
    """
    swagger = document.get("swagger")
    if isinstance(swagger, (str, int, float)) and not isinstance(
        document.get("openapi"), str
    ):
        return OpenAPIVersion.V2
    return OpenAPIVersion.V3


def _line_at(text: str, line: int) -> Optional[str]:
    """Return the 1-based *line* of *text*, or ``None`` if out of range."""
    lines = text.splitlines()
    if 1 <= line <= len(lines):
        return lines[line - 1]
    return None
