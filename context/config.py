import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import toml
import yaml
from loguru import logger as _loguru

import context._globals as _globals

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the settings file cannot be parsed or holds invalid values."""


@dataclass(frozen=True)
class BootstrapConfig:
    """
    Settings for one bootstrap run. Every field has a default, so a missing
    settings file yields a working configuration.
    """
    mg_allowed_roles: tuple = _globals.MG_ALLOWED_ROLES
    subscription_allowed_roles: tuple = _globals.SUBSCRIPTION_ALLOWED_ROLES
    directory_admin_roles: tuple = _globals.DIRECTORY_ADMIN_ROLES
    self_grant_role: str = _globals.SELF_GRANT_ROLE
    parameters_file: str = _globals.PARAMETERS_FILE
    grant_state_file: str = _globals.GRANT_STATE_FILE
    json_fields: tuple = _globals.JSON_FIELDS
    preflight_tool_base_url: str = _globals.PREFLIGHT_TOOL_BASE_URL
    preflight_tool_version: str = _globals.PREFLIGHT_TOOL_VERSION
    download_timeout: float = _globals.DOWNLOAD_TIMEOUT
    command_timeout: Optional[float] = None
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    extra: dict = field(default_factory=dict, compare=False)

    @property
    def preflight_tool_url(self) -> str:
        base = self.preflight_tool_base_url.rstrip("/")
        return f"{base}/{self.preflight_tool_version}/{_globals.PREFLIGHT_TOOL_SCRIPT}"


class Config:
    """
    Configuration loader supporting TOML, JSON and YAML settings files.

    File format is auto-detected based on file extension. Values are validated
    against the types of the BootstrapConfig defaults.
    """

    _parsers = {
        "toml": lambda path: toml.load(path),
        "json": lambda path: json.loads(path.read_text(encoding="utf-8")),
        "yaml": lambda path: yaml.safe_load(path.read_text(encoding="utf-8")),
        "yml": lambda path: yaml.safe_load(path.read_text(encoding="utf-8")),
    }

    @staticmethod
    def resolve_path(path: Optional[Path | str] = None) -> Path:
        """
        Picks the settings file: explicit path, then $CCBOOTSTRAP_CONFIG, then
        ccbootstrap_settings.toml in the working directory.
        """
        if path:
            return Path(path)
        env_path = os.environ.get(_globals.CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path)
        return Path.cwd() / _globals.GLOBAL_CFG_FILE

    @staticmethod
    def dump(path: Path) -> dict:
        """
        Parses a settings file into a dict.

        Raises:
            ConfigError: Unsupported extension, parse failure, or non-table content.
        """
        file_ext = path.suffix.lstrip(".").lower()
        if file_ext not in Config._parsers:
            raise ConfigError(f"[Config.dump] Unsupported config format: {file_ext!r}")
        try:
            parsed = Config._parsers[file_ext](path)
        except Exception as e:
            raise ConfigError(f"[Config.dump] Failed to parse config at {path}: {e}") from e

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigError(f"[Config.dump] Parsed config is not a table: {type(parsed).__name__}")

        # Allow both a flat file and a [ccbootstrap] section.
        return parsed.get("ccbootstrap", parsed)

    @staticmethod
    def _coerce(name: str, value: Any, default: Any) -> Any:
        if isinstance(default, tuple):
            if isinstance(value, str):
                return (value,)
            if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"[Config] '{name}' must be a list of strings, got {value!r}")
            return tuple(value)
        if isinstance(default, float) or name == "command_timeout":
            if value is None:
                return None
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"[Config] '{name}' must be a number, got {value!r}")
            return float(value)
        if default is None or isinstance(default, str):
            if not isinstance(value, str):
                raise ConfigError(f"[Config] '{name}' must be a string, got {value!r}")
            return value
        return value

    @staticmethod
    def _check_level(level: str) -> str:
        """Uppercases `level` and checks that loguru knows it."""
        level = level.strip().upper()
        try:
            _loguru.level(level)
        except ValueError as e:
            raise ConfigError(f"[Config] Unknown log level {level!r}") from e
        return level

    @staticmethod
    def load(path: Optional[Path | str] = None) -> BootstrapConfig:
        """
        Loads the settings file (if any) and returns a validated BootstrapConfig.

        Args:
            path: Optional explicit settings file.

        Returns:
            BootstrapConfig: Defaults overlaid with the file's values.
        """
        cfg_path = Config.resolve_path(path)
        data: dict = {}
        if cfg_path.exists():
            data = Config.dump(cfg_path)
            logger.debug("[Config] Loaded settings from %s", cfg_path)
        elif path:
            raise ConfigError(f"[Config] Settings file not found: {cfg_path}")

        defaults = BootstrapConfig()
        known = {f.name for f in fields(BootstrapConfig) if f.name != "extra"}
        values, extra = {}, {}
        for key, value in data.items():
            if key not in known:
                logger.warning("[Config] Ignoring unknown setting '%s'", key)
                extra[key] = value
                continue
            values[key] = Config._coerce(key, value, getattr(defaults, key))

        env_level = os.environ.get(_globals.LOG_LEVEL_ENV_VAR)
        if env_level:
            values["log_level"] = env_level
        if "log_level" in values:
            values["log_level"] = Config._check_level(values["log_level"])

        return BootstrapConfig(**values, extra=extra)


cfg = Config
