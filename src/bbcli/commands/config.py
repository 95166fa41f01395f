"""Config commands -- view and modify ``config.yml``.

Provides the ``bb config`` sub-command group for reading and updating the
user's global configuration (:class:`~bbcli.models.GlobalConfig`). Values
are validated by the model before anything is written.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from bbcli.exceptions import ConfigError, InvalidUsageError
from bbcli.output import get_output, info, print_data, success


config_app = typer.Typer(no_args_is_help=True)


def _known_keys() -> list[str]:
    from bbcli.models import GlobalConfig

    return list(GlobalConfig.model_fields)


def _check_key(key: str) -> None:
    if key not in _known_keys():
        raise InvalidUsageError(
            f"unknown config key '{key}' (known keys: {', '.join(_known_keys())})"
        )


@config_app.command("get")
def config_get(
    key: str = typer.Argument(help="Config key, e.g. 'git_protocol'."),
) -> None:
    """Print the value of one configuration key.

    Example::

        bb config get http_timeout
    """
    from bbcli.config import load_global_config

    _check_key(key)
    value = getattr(load_global_config(), key)
    print_data(str(value))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key, e.g. 'git_protocol'."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the field's type (``http_timeout`` is an
    integer) and validated before saving.

    Raises:
        InvalidUsageError: If the key is unknown.
        ConfigError: If the value is rejected by validation.

    Example::

        bb config set git_protocol https
        bb config set http_timeout 60
    """
    from bbcli.config import load_global_config, save_global_config
    from bbcli.models import GlobalConfig

    _check_key(key)
    data = load_global_config().model_dump(mode="json")
    data[key] = value
    try:
        config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        message = exc.errors()[0].get("msg", str(exc))
        raise ConfigError(f"invalid value for {key}: {message}") from exc

    save_global_config(config)
    success(f"Set {key} = {getattr(config, key)}")


@config_app.command("list")
def config_list() -> None:
    """Show every configuration key with its current value.

    Example::

        bb config list
        bb config list --json
    """
    from bbcli.config import get_config_dir, load_global_config

    config = load_global_config()
    data = config.model_dump(mode="json")
    info(f"Config directory: {get_config_dir()}")
    get_output().print_fields(data, [(key, str(value)) for key, value in data.items()])
