"""Configuration for bundle validation runs.

Settings are resolved with the following precedence (highest to lowest):
1. CLI argument
2. Environment variable (BUNDLECHECK_<KEY>)
3. Config file (``--config PATH``, else ``<bundle>/.bundlecheck/config.yaml``)
4. Built-in default

Usage:
    from bundlecheck.config import resolve_settings

    settings = resolve_settings(bundle_path, level=cli_level)
    report = Report(level=settings.level, integrity_check=settings.integrity_check)
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from bundlecheck.errors import (
    ConfigInvalidStructureError,
    ConfigParseError,
    InvalidSettingError,
)
from bundlecheck.validation.problems import Severity
from bundlecheck.validation.runner import DEFAULT_LABEL_GLOBS, DEFAULT_LABEL_PATTERN

CONFIG_DIRNAME = ".bundlecheck"
CONFIG_FILENAME = "config.yaml"
ENV_PREFIX = "BUNDLECHECK_"

DEFAULTS: dict[str, Any] = {
    "level": Severity.INFO.value,
    "integrity_check": False,
    "deprecated_flag_warning": False,
    "label_pattern": DEFAULT_LABEL_PATTERN,
    "label_globs": list(DEFAULT_LABEL_GLOBS),
    "include_hidden": False,
}

KNOWN_SETTINGS: frozenset[str] = frozenset(DEFAULTS)

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class ReportSettings:
    """Fully resolved settings for one validation run."""

    level: Severity = Severity.INFO
    integrity_check: bool = False
    deprecated_flag_warning: bool = False
    label_pattern: str = DEFAULT_LABEL_PATTERN
    label_globs: tuple[str, ...] = DEFAULT_LABEL_GLOBS
    include_hidden: bool = False


def get_config_path(bundle_path: Path) -> Path:
    """Get the path of the config file stored inside a bundle.

    Args:
        bundle_path: Root directory of the bundle.

    Returns:
        Path to .bundlecheck/config.yaml
    """
    return bundle_path / CONFIG_DIRNAME / CONFIG_FILENAME


def load_config(config_file: Path) -> dict[str, Any]:
    """Load settings from a YAML config file.

    Args:
        config_file: Path to the YAML file.

    Returns:
        Config dictionary. Returns empty dict if the file doesn't exist or is empty.

    Raises:
        ConfigParseError: If the file is not valid YAML.
        ConfigInvalidStructureError: If the top level is not a mapping.
    """
    if not config_file.is_file():
        return {}

    content = config_file.read_text()
    if not content.strip():
        return {}

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigParseError(str(config_file), str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigInvalidStructureError(
            str(config_file), f"expected a mapping, got {type(data).__name__}"
        )
    return data


def _get_env_var_name(key: str) -> str:
    """Convert a setting key to environment variable name.

    Args:
        key: Setting key (e.g., "integrity_check")

    Returns:
        Environment variable name (e.g., "BUNDLECHECK_INTEGRITY_CHECK")
    """
    return f"{ENV_PREFIX}{key.upper()}"


def get_setting(
    key: str,
    cli_value: Any | None = None,
    config: dict[str, Any] | None = None,
) -> Any:
    """Resolve a setting with full precedence.

    Args:
        key: Setting key (e.g., "level")
        cli_value: Value passed via CLI argument (highest precedence)
        config: Contents of the config file, if any

    Returns:
        Resolved value; the built-in default if nothing else sets it.
    """
    if cli_value is not None:
        return cli_value

    env_value = os.environ.get(_get_env_var_name(key))
    if env_value is not None:
        return env_value

    if config is not None and key in config:
        return config[key]

    return DEFAULTS.get(key)


def parse_bool(key: str, value: Any) -> bool:
    """Interpret a setting value as a boolean.

    Accepts real booleans and the strings 1/0, true/false, yes/no, on/off.

    Raises:
        InvalidSettingError: For any other value.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise InvalidSettingError(key, value, "a boolean")


def _parse_globs(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        # Environment variables carry a comma-separated list
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise InvalidSettingError("label_globs", value, "a list of glob patterns")


def _parse_pattern(value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidSettingError("label_pattern", value, "a regular expression")
    try:
        re.compile(value)
    except re.error as e:
        raise InvalidSettingError("label_pattern", value, f"a regular expression ({e})") from e
    return value


def resolve_settings(
    bundle_path: Path | None = None,
    *,
    config_path: Path | None = None,
    **cli_values: Any,
) -> ReportSettings:
    """Resolve every known setting for a run.

    Args:
        bundle_path: Bundle root, used to find the default config file.
        config_path: Explicit config file; overrides the bundle's own.
        **cli_values: CLI values keyed by setting name (None means unset).

    Returns:
        ReportSettings with parsed, validated values.

    Raises:
        ConfigError: If the config file has an unknown key or a value is invalid.
    """
    if config_path is None and bundle_path is not None:
        config_path = get_config_path(bundle_path)
    config = load_config(config_path) if config_path is not None else {}
    unknown = sorted(set(config) - KNOWN_SETTINGS, key=str)
    if unknown:
        key = unknown[0]
        raise InvalidSettingError(
            str(key), config[key], f"a known setting ({', '.join(sorted(KNOWN_SETTINGS))})"
        )

    def resolve(key: str) -> Any:
        return get_setting(key, cli_value=cli_values.get(key), config=config)

    return ReportSettings(
        level=Severity.parse(resolve("level")),
        integrity_check=parse_bool("integrity_check", resolve("integrity_check")),
        deprecated_flag_warning=parse_bool(
            "deprecated_flag_warning", resolve("deprecated_flag_warning")
        ),
        label_pattern=_parse_pattern(resolve("label_pattern")),
        label_globs=_parse_globs(resolve("label_globs")),
        include_hidden=parse_bool("include_hidden", resolve("include_hidden")),
    )
