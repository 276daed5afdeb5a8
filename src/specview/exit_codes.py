"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specview.exceptions.SpecviewError` subclass.
Shell wrappers and CI scripts can inspect the exit code to tell a network
failure from a malformed document without parsing stderr.

Example::

    $ specview --spec broken.yaml inspect info
    $ echo $?
    7   # EXIT_PARSE_ERROR -- the document is not valid YAML
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required options."""

EXIT_NOT_FOUND = 4
"""A requested endpoint, tag, or response was not present in the document."""

EXIT_LOAD_ERROR = 6
"""The document could not be fetched (HTTP error, network failure, unreadable file)."""

EXIT_PARSE_ERROR = 7
"""The document text could not be decoded as JSON or YAML."""
