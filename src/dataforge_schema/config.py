"""
Engine Settings - Configuration loaded from YAML and environment variables

Settings are resolved in this order (later wins):
1. Dataclass defaults
2. YAML file (explicit path, or the path in DATAFORGE_SCHEMA_CONFIG)
3. DATAFORGE_SCHEMA_* environment variables

Usage:
    settings = load_settings("dataforge_schema.yaml")
    set_settings(settings)

    # Anywhere else
    if get_settings().verify_after_create:
        ...
"""

import os
import threading
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .constants import CONFIG_ENV_VAR, ENV_PREFIX, MYSQL_TABLE_OPTIONS, TYPE_CACHE_SIZE
from .errors import ValidationError

import logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    """Engine-wide behavior switches."""
    # Unmatched native types raise UnsupportedTypeError instead of classifying as opaque
    classify_strict: bool = False
    # Bounded LRU size for each type registry instance
    type_cache_size: int = TYPE_CACHE_SIZE
    # Re-introspect created tables/views and fail if they cannot be read back
    verify_after_create: bool = False
    # Wildcard name filters compare case-sensitively
    wildcard_case_sensitive: bool = False
    # Validate check/default/view expressions before executing DDL
    validate_expressions: bool = True
    # Log every generated statement at DEBUG level
    log_sql: bool = True
    # Table options appended to MySQL CREATE TABLE
    mysql_table_options: str = MYSQL_TABLE_OPTIONS

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _coerce(name: str, raw: Any, target: type) -> Any:
    """Coerce a YAML/env value to the field's declared type."""
    if target is bool:
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValidationError(f"Setting '{name}' expects a boolean, got {raw!r}")
    if target is int:
        try:
            return int(raw)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Setting '{name}' expects an integer, got {raw!r}") from e
    return str(raw)


def _field_types() -> Dict[str, type]:
    defaults = EngineSettings()
    return {f.name: type(getattr(defaults, f.name)) for f in fields(EngineSettings)}


def settings_from_mapping(values: Mapping[str, Any],
                          base: Optional[EngineSettings] = None) -> EngineSettings:
    """
    Build settings from a plain mapping, ignoring unknown keys with a warning.

    Args:
        values: Mapping of setting name to raw value
        base: Settings to start from (defaults when None)

    Returns:
        New EngineSettings instance
    """
    types = _field_types()
    updates = {}
    for key, raw in values.items():
        name = str(key).lower()
        if name not in types:
            logger.warning(f"Ignoring unknown setting: {key}")
            continue
        updates[name] = _coerce(name, raw, types[name])

    settings = replace(base or EngineSettings(), **updates)
    if settings.type_cache_size < 0:
        raise ValidationError("Setting 'type_cache_size' must be >= 0")
    return settings


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValidationError(f"Settings file {path} must contain a mapping")
    # Allow the settings to live under a top-level "dataforge_schema" key
    section = data.get("dataforge_schema", data)
    if not isinstance(section, dict):
        raise ValidationError(f"Settings section in {path} must be a mapping")
    return section


def load_settings(path: Optional[Union[str, Path]] = None,
                  environ: Optional[Mapping[str, str]] = None) -> EngineSettings:
    """
    Load settings from YAML then apply environment overrides.

    Args:
        path: Optional YAML file; defaults to $DATAFORGE_SCHEMA_CONFIG when set
        environ: Environment mapping (os.environ when None)

    Returns:
        Resolved EngineSettings
    """
    environ = os.environ if environ is None else environ
    settings = EngineSettings()

    config_path = path or environ.get(CONFIG_ENV_VAR)
    if config_path:
        config_path = Path(config_path)
        if config_path.is_file():
            settings = settings_from_mapping(_read_yaml(config_path), settings)
            logger.debug(f"Loaded settings from {config_path}")
        else:
            logger.warning(f"Settings file does not exist: {config_path}")

    overrides = {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in environ.items()
        if key.startswith(ENV_PREFIX) and key != CONFIG_ENV_VAR
    }
    if overrides:
        settings = settings_from_mapping(overrides, settings)

    return settings


_settings: Optional[EngineSettings] = None
_settings_lock = threading.Lock()


def get_settings() -> EngineSettings:
    """Return the active settings, loading them on first use."""
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = load_settings()
    return _settings


def set_settings(settings: Optional[EngineSettings]) -> None:
    """Install settings (None resets to lazy loading)."""
    global _settings
    with _settings_lock:
        _settings = settings
