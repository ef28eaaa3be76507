"""
Configuration schema validation using Pydantic
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .utils import is_valid_address

WETH_MAINNET_ADDRESS = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class DatabaseSection(BaseModel):
    """SQLite database location"""

    path: str = Field(default="dex_pools.db", description="SQLite database file")

    model_config = {"extra": "forbid"}


class DataSection(BaseModel):
    """Source of DEX pool JSON exports for the load-data command"""

    json_folder: Optional[str] = Field(
        default=None, description="Folder holding <dexType>-<n>.json files"
    )

    model_config = {"extra": "forbid"}


class DiscoverySection(BaseModel):
    """Cycle search and batch persistence settings"""

    anchor_address: str = Field(
        default=WETH_MAINNET_ADDRESS, description="Token every cycle starts and ends at"
    )
    anchor_symbol: str = Field(
        default="WETH", description="Symbol fallback when the address is not loaded"
    )
    min_depth: int = Field(default=4, ge=1, le=12, description="Minimum steps per cycle")
    max_depth: int = Field(default=4, ge=1, le=12, description="Maximum steps per cycle")
    allow_interior_anchor: bool = Field(
        default=False,
        description="Let walks pass through the anchor before min_depth is reached",
    )
    path_batch_size: int = Field(default=1000, gt=0, description="Paths per flush")
    flush_interval_ms: int = Field(
        default=1000, gt=0, description="Periodic flush interval in milliseconds"
    )
    search_timeout_seconds: Optional[float] = Field(
        default=None, gt=0, description="Stop enumerating after this many seconds"
    )
    progress_log_interval: int = Field(
        default=1000, gt=0, description="Log progress every N discovered paths"
    )
    swap_path_separator: str = Field(default="-", min_length=1)

    @field_validator("anchor_address")
    @classmethod
    def validate_anchor_address(cls, v):
        v = v.strip()
        if not is_valid_address(v):
            raise ValueError("anchor_address must be 0x-prefixed 40 hex chars")
        return v.lower()

    @field_validator("anchor_symbol")
    @classmethod
    def validate_anchor_symbol(cls, v):
        if not v.strip():
            raise ValueError("anchor_symbol cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_depth_bounds(self):
        if self.max_depth < self.min_depth:
            raise ValueError(
                f"max_depth ({self.max_depth}) must be >= min_depth ({self.min_depth})"
            )
        return self

    model_config = {"extra": "forbid"}


class LoggingSection(BaseModel):
    """Logging configuration"""

    level: str = Field(default="INFO")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"level must be one of {sorted(LOG_LEVELS)}")
        return level

    model_config = {"extra": "forbid"}


class AppConfig(BaseModel):
    """Complete configuration file"""

    name: str = Field(default="arbitrage_paths", description="Run name used in logs")
    database: DatabaseSection = Field(default_factory=DatabaseSection)
    data: DataSection = Field(default_factory=DataSection)
    discovery: DiscoverySection = Field(default_factory=DiscoverySection)
    logging: LoggingSection = Field(default_factory=LoggingSection)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Config name cannot be empty")
        return v.strip()

    model_config = {
        "extra": "forbid",  # Disallow extra fields
        "validate_assignment": True,
    }


def validate_app_config(config_dict: Dict) -> AppConfig:
    """
    Validate a configuration dictionary

    Args:
        config_dict: Dictionary representation of the config

    Returns:
        Validated AppConfig object

    Raises:
        pydantic.ValidationError: If configuration is invalid
    """
    return AppConfig(**config_dict)

