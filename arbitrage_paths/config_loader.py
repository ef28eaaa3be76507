"""
Configuration loading and normalization for arbitrage path discovery.

Provides a centralized way to load, validate, and normalize configuration
files with proper defaults, environment overrides and read-only access.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from .config_schema import WETH_MAINNET_ADDRESS, AppConfig, validate_app_config
from .exceptions import ConfigurationError, ValidationError

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "ARB_DATABASE_PATH": ("database", "path"),
    "ARB_JSON_FOLDER": ("data", "json_folder"),
    "ARB_ANCHOR_ADDRESS": ("discovery", "anchor_address"),
    "ARB_LOG_LEVEL": ("logging", "level"),
}


@dataclass(frozen=True)
class DiscoveryConfig:
    """Normalized discovery configuration."""

    anchor_address: str = WETH_MAINNET_ADDRESS
    anchor_symbol: str = "WETH"
    min_depth: int = 4
    max_depth: int = 4
    allow_interior_anchor: bool = False
    path_batch_size: int = 1000
    flush_interval_ms: int = 1000
    search_timeout_seconds: Optional[float] = None
    progress_log_interval: int = 1000
    swap_path_separator: str = "-"


@dataclass(frozen=True)
class DatabaseConfig:
    """Normalized database configuration."""

    path: str = "dex_pools.db"


@dataclass(frozen=True)
class DataConfig:
    """Normalized pool data source configuration."""

    json_folder: Optional[str] = None


@dataclass(frozen=True)
class LoggingConfig:
    """Normalized logging configuration."""

    level: str = "INFO"


@dataclass(frozen=True)
class RuntimeConfig:
    """Immutable runtime configuration object."""

    name: str = "arbitrage_paths"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    data: DataConfig = field(default_factory=DataConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load and parse YAML configuration file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to load config {config_path}: {e}")

    if config_dict is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

    return config_dict


def apply_env_overrides(
    config_dict: Dict[str, Any], environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """Return a copy of ``config_dict`` with ARB_* environment values applied."""
    environ = os.environ if environ is None else environ
    result = {k: (dict(v) if isinstance(v, dict) else v) for k, v in config_dict.items()}

    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            result.setdefault(section, {})
            result[section][key] = value

    return result


def _to_runtime_config(app_config: AppConfig) -> RuntimeConfig:
    discovery = app_config.discovery
    return RuntimeConfig(
        name=app_config.name,
        database=DatabaseConfig(path=app_config.database.path),
        data=DataConfig(json_folder=app_config.data.json_folder),
        discovery=DiscoveryConfig(
            anchor_address=discovery.anchor_address,
            anchor_symbol=discovery.anchor_symbol,
            min_depth=discovery.min_depth,
            max_depth=discovery.max_depth,
            allow_interior_anchor=discovery.allow_interior_anchor,
            path_batch_size=discovery.path_batch_size,
            flush_interval_ms=discovery.flush_interval_ms,
            search_timeout_seconds=discovery.search_timeout_seconds,
            progress_log_interval=discovery.progress_log_interval,
            swap_path_separator=discovery.swap_path_separator,
        ),
        logging=LoggingConfig(level=app_config.logging.level),
    )


def config_from_dict(
    config_dict: Dict[str, Any], environ: Optional[Mapping[str, str]] = None
) -> RuntimeConfig:
    """
    Validate and normalize a configuration dictionary.

    Raises:
        ValidationError: If the configuration fails schema validation
    """
    merged = apply_env_overrides(config_dict, environ)
    try:
        app_config = validate_app_config(merged)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Configuration validation failed: {e}",
            details={"errors": e.errors(include_url=False)},
        )
    return _to_runtime_config(app_config)


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RuntimeConfig:
    """
    Load and normalize a configuration file.

    Args:
        config_path: Path to the YAML configuration file; defaults only when None
        environ: Environment mapping used for ARB_* overrides (os.environ by default)

    Returns:
        Normalized and frozen runtime configuration

    Raises:
        ConfigurationError: If the configuration file cannot be loaded
        ValidationError: If the configuration fails schema validation
    """
    config_dict: Dict[str, Any] = {}
    if config_path is not None:
        config_dict = load_yaml_config(config_path)
    return config_from_dict(config_dict, environ)


def get_default_config() -> RuntimeConfig:
    """Get a default configuration for testing or fallback purposes."""
    return RuntimeConfig()
