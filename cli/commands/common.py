import json
from pathlib import Path
from typing import Optional, Tuple

import click

from context.config import BootstrapConfig, Config, ConfigError
from context.logger import Logger
from context.params import ParameterLoader, ParameterSet


def flag(value: Optional[str], default: bool) -> bool:
    """Positional true/false arguments; anything but 'true' is false."""
    if value is None or value == "":
        return default
    return value.strip().lower() == "true"


def bootstrap_context(
    config_path: Optional[Path], parameters_path: Optional[Path]
) -> Tuple[BootstrapConfig, Optional[str], ParameterSet]:
    """
    Loads settings, starts logging and reads the parameter file.

    A broken settings file does not abort the run: defaults are used and the
    error is handed back so it can be reported in the result.
    """
    config_error = None
    try:
        config = Config.load(config_path)
    except ConfigError as e:
        config, config_error = BootstrapConfig(), str(e)

    try:
        Logger.init_logger(log_dir=Path(config.log_dir) if config.log_dir else None, level=config.log_level)
    except (OSError, ValueError) as e:
        # Console-only logging; the failure is reported like a settings error.
        Logger.reset()
        Logger.init_logger()
        config_error = config_error or f"[Logger] Could not start logging: {e}"

    params = ParameterLoader.load(parameters_path or config.parameters_file, config.json_fields)
    return config, config_error, params


def emit(record: dict) -> None:
    click.echo(json.dumps(record, indent=2))


common_options = [
    click.option("--parameters", "parameters_path", type=click.Path(path_type=Path),
                 default=None, help="Parameter file (default: ./parameters.sh)."),
    click.option("--config", "config_path", type=click.Path(path_type=Path),
                 default=None, help="Settings file (TOML, JSON or YAML)."),
    click.option("--template", "template_path", type=click.Path(path_type=Path),
                 default=None, help="Deployment template; declared name parameters are added to the output."),
]


def with_common_options(fn):
    for option in reversed(common_options):
        fn = option(fn)
    return fn
