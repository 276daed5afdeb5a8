"""Exception hierarchy for specview.

All exceptions inherit from :class:`SpecviewError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specview.exit_codes`.
The CLI entry point in :func:`specview.app.main` catches ``SpecviewError``
and exits with the appropriate code, while unexpected exceptions produce a
crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Normalization itself never raises for a loaded document: unresolvable or
cyclic references, malformed enums, nameless parameters, and untagged
operations all degrade to documented defaults.  Only loading and decoding
can fail.

Subclass hierarchy::

    SpecviewError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- NotFoundError       (exit 4)
    +-- LoadError           (exit 6)
    +-- ParseError          (exit 7)
    +-- ConfigError         (exit 1)
"""

from __future__ import annotations

from typing import Optional

from specview.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_LOAD_ERROR,
    EXIT_NOT_FOUND,
    EXIT_PARSE_ERROR,
)


class SpecviewError(Exception):
    """Base exception for all specview errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specview.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecviewError):
    """Raised for invalid CLI arguments or a missing document location."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(SpecviewError):
    """Raised when a requested endpoint, tag, or response does not exist."""

    exit_code = EXIT_NOT_FOUND


class LoadError(SpecviewError):
    """Raised when a document cannot be fetched or read.

    Covers non-success HTTP statuses, transport failures, a missing fetch
    capability, and filesystem read errors.

    Args:
        message: Human-readable error description.
        status_code: The HTTP status code, when the failure was an HTTP
            response.
    """

    exit_code = EXIT_LOAD_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(SpecviewError):
    """Raised when document text is not valid JSON or YAML.

    Args:
        message: Human-readable error description.
        snippet: The offending line of text, when the decoder reports a
            position.
        line: 1-based line number of the error, if known.
        column: 1-based column number of the error, if known.
    """

    exit_code = EXIT_PARSE_ERROR

    def __init__(
        self,
        message: str,
        snippet: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        super().__init__(message)
        self.snippet = snippet
        self.line = line
        self.column = column


class ConfigError(SpecviewError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
