"""Built-in CLI sub-commands for specview.

* :mod:`~specview.commands.inspect` -- views of the normalized document
  (info, tags, endpoints, schemas, examples).
* :mod:`~specview.commands.config` -- show and change stored settings.

Each module exports a :class:`typer.Typer` sub-application registered on the
root app in :mod:`specview.app`.
"""
