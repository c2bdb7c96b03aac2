"""Configuration loading and merging.

Builds a GooseBinConfig from, in order of increasing precedence:
- Built-in defaults
- Config file ($GOOSE_BIN_CONFIG or <home>/config.yml)
- Environment variables (GOOSE_BIN_VERSION, GOOSE_BIN_BASE_URL, ...)
- Explicit overrides passed by the caller

String values in the config file support ${VAR} and ${VAR:-default}.
"""

from __future__ import annotations

import dataclasses
import functools
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from goose_bin.bootstrap.paths import GooseBinPaths, get_goose_bin_home
from goose_bin.config.models import GooseBinConfig
from goose_bin.core.errors import GooseBinError
from goose_bin.core.logging import get_logger

LOGGER = get_logger(__name__)

CONFIG_FILE_ENV = "GOOSE_BIN_CONFIG"

# Environment variable -> config key
ENV_OVERRIDES = {
    "GOOSE_BIN_VERSION": "version",
    "GOOSE_BIN_REPOSITORY": "repository",
    "GOOSE_BIN_BASE_URL": "base_url",
    "GOOSE_BIN_TIMEOUT": "timeout",
    "GOOSE_BIN_HOME": "home",
}
NO_PROGRESS_ENV = "GOOSE_BIN_NO_PROGRESS"

# Environment variable pattern: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


class ConfigError(GooseBinError):
    """Configuration loading or parsing error."""

    pass


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> GooseBinConfig:
    """Load configuration with proper precedence.

    Args:
        config_path: Explicit config file. Must exist when given.
        overrides: Highest-precedence values keyed by field name.
        environ: Environment mapping, defaults to os.environ.

    Returns:
        Merged GooseBinConfig instance.

    Raises:
        ConfigError: On a missing explicit file, invalid YAML, unknown keys
            or values of the wrong type.
    """
    env = os.environ if environ is None else environ
    merged: Dict[str, Any] = {}

    path = config_path
    if path is None and env.get(CONFIG_FILE_ENV):
        path = Path(env[CONFIG_FILE_ENV]).expanduser()
    if path is not None:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        merged.update(load_yaml_file(path, env))
        LOGGER.debug(f"Loaded config from {path}")
    else:
        default_path = find_default_config(env)
        if default_path is not None:
            merged.update(load_yaml_file(default_path, env))
            LOGGER.debug(f"Loaded config from {default_path}")

    for var, key in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            merged[key] = value
    if env.get(NO_PROGRESS_ENV, "").strip().lower() in _TRUE_VALUES:
        merged["show_progress"] = False

    if overrides:
        merged.update(overrides)

    return dict_to_config(merged)


def find_default_config(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """Find the config file in the goose-bin home, if present."""
    config_path = GooseBinPaths(get_goose_bin_home(environ)).config_file
    if config_path.exists():
        return config_path
    return None


def load_yaml_file(
    path: Path, environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """Load and parse a YAML config file.

    Performs environment variable expansion on string values.

    Args:
        path: Path to YAML file.
        environ: Environment used for ${VAR} expansion, defaults to os.environ.

    Returns:
        Parsed dictionary.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(data).__name__}")

    return expand_env_vars(data, environ)


def expand_env_vars(data: Any, environ: Optional[Mapping[str, str]] = None) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    env = os.environ if environ is None else environ
    if isinstance(data, dict):
        return {k: expand_env_vars(v, env) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars(item, env) for item in data]
    elif isinstance(data, str):
        return ENV_VAR_PATTERN.sub(functools.partial(_env_var_replacer, env=env), data)
    else:
        return data


def _env_var_replacer(match: re.Match[str], env: Mapping[str, str]) -> str:
    """Replace environment variable reference with its value."""
    var_name = match.group(1)
    default_value = match.group(2)

    value = env.get(var_name)
    if value is not None:
        return value
    if default_value is not None:
        return default_value

    LOGGER.warning(f"Environment variable ${var_name} is not set and has no default")
    return ""


def dict_to_config(data: Mapping[str, Any]) -> GooseBinConfig:
    """Convert a merged dictionary to a typed GooseBinConfig.

    Raises:
        ConfigError: On unknown keys or values that cannot be converted.
    """
    known = {f.name for f in dataclasses.fields(GooseBinConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(
            f"Unknown config key(s): {', '.join(unknown)}. "
            f"Valid keys: {', '.join(sorted(known))}"
        )

    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key in ("repository", "version", "tool_name", "base_url", "user_agent"):
            if not isinstance(value, (str, int, float)) or isinstance(value, bool):
                raise ConfigError(f"'{key}' must be a string, got {value!r}")
            value = str(value).strip()
            if key == "version":
                value = value[1:] if value.startswith("v") else value
            if not value:
                raise ConfigError(f"'{key}' must not be empty")
        elif key == "timeout":
            value = _to_number(key, value, float, minimum=0.001)
        elif key == "max_redirects":
            value = _to_number(key, value, int, minimum=0)
        elif key == "show_progress":
            value = _to_bool(key, value)
        elif key == "home":
            value = Path(str(value)).expanduser() if value else None
        values[key] = value

    return GooseBinConfig(**values)


def _to_number(key: str, value: Any, kind: type, minimum: float) -> Any:
    if isinstance(value, bool):
        raise ConfigError(f"'{key}' must be a number, got {value!r}")
    try:
        number = kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{key}' must be a number, got {value!r}") from e
    if number < minimum:
        raise ConfigError(f"'{key}' must be at least {minimum}, got {value!r}")
    return number


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"'{key}' must be a boolean, got {value!r}")
