"""Config commands -- view and modify the stored settings.

Provides the ``specview config`` sub-command group for reading and updating
the global :class:`~specview.models.ViewerConfig` file.  ``show`` prints the
*effective* configuration after precedence resolution, so it also reflects
``./specview.json`` and ``SPECVIEW_*`` variables.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from specview.exceptions import ConfigError, InvalidUsageError, SpecviewError
from specview.models import ViewerConfig
from specview.output import error, info, print_data, print_json


config_app = typer.Typer(no_args_is_help=True)

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off")


def _coerce(key: str, value: str) -> Any:
    """Coerce *value* to the type of the ``ViewerConfig`` field named *key*.

    Raises:
        InvalidUsageError: If *key* is unknown or *value* has the wrong shape.
    """
    field = ViewerConfig.model_fields.get(key)
    if field is None:
        known = ", ".join(ViewerConfig.model_fields)
        raise InvalidUsageError(f"Unknown config key '{key}'. Known keys: {known}")

    if field.annotation is bool:
        lowered = value.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise InvalidUsageError(f"Expected true or false for {key}, got '{value}'")
    if key == "headers":
        name, sep, header_value = value.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError("Headers are set as 'Name: value'")
        return {name.strip(): header_value.strip()}
    if value == "" or value.lower() == "none":
        return None
    return value


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration.

    Example::

        specview config show
        specview --json config show
    """
    from specview.config import get_config_dir, resolve_config

    obj = ctx.obj or {}
    try:
        config = resolve_config(cli_spec=obj.get("spec"), cli_format=obj.get("format"))
    except SpecviewError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"Config directory: {get_config_dir()}")
    print_json(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key, e.g. 'spec' or 'timeout'."),
    value: str = typer.Argument(help="Value to store; 'none' clears optional keys."),
) -> None:
    """Set a value in the global configuration.

    ``headers`` values are given as ``'Name: value'`` and merged into the
    stored headers.

    Example::

        specview config set spec https://petstore3.swagger.io/api/v3/openapi.json
        specview config set timeout 10
        specview config set headers "Authorization: Bearer abc"
    """
    from specview.config import load_global_config, save_global_config

    try:
        current = load_global_config()
        data = current.model_dump(mode="json")
        coerced = _coerce(key, value)
        if key == "headers":
            data["headers"] = {**data.get("headers", {}), **coerced}
        else:
            data[key] = coerced
        try:
            updated = ViewerConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid value for {key}: {exc}") from exc
        path = save_global_config(updated)
    except SpecviewError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"Set {key} in {path}")


@config_app.command("path")
def config_path() -> None:
    """Print the location of the global config file."""
    from specview.config import get_config_dir

    print_data(str(get_config_dir() / "config.json"))
