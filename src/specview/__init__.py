"""specview -- Normalize OpenAPI 2.0/3.x documents for API reference rendering.

This package loads an OpenAPI document (JSON or YAML, from a URL, a file, or
memory), resolves its internal ``$ref`` pointers, merges inherited parameters
and ``allOf`` schemas, synthesizes examples, and produces a
:class:`~specview.models.ParsedSpec` grouped by tag that a renderer can walk
without knowing which OpenAPI version it came from.

Typical workflow::

    specview --spec openapi.yaml inspect tags        # list tag buckets
    specview --spec openapi.yaml inspect endpoint get-pets-petid

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration with precedence resolution.
    store: Reload state machine with stale-while-revalidate semantics.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
