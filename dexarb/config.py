"""Configuration management for the DEX arbitrage bot."""

import os
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError


def _decimal(value):
    """Coerce YAML numbers to Decimal through their text form."""
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def split_pair(pair: str) -> Optional[tuple]:
    """Split "BASE/QUOTE" into its two tokens, or None if malformed."""
    parts = pair.split("/")
    if len(parts) != 2:
        return None
    base, quote = parts[0].strip(), parts[1].strip()
    if not base or not quote:
        return None
    return base, quote


class ArbitrageConfig(BaseModel):
    """Opportunity detection and execution parameters."""
    min_profit_percent: Decimal = Field(default=Decimal("0.5"), gt=0)
    max_trade_amount: Decimal = Field(default=Decimal("1.0"), gt=0)  # Base asset units
    slippage_tolerance_percent: Decimal = Field(default=Decimal("1.0"), ge=0, lt=100)
    transaction_timeout_sec: float = Field(default=30.0, gt=0)
    quote_timeout_sec: float = Field(default=5.0, gt=0)
    settlement_delay_ms: int = Field(default=500, ge=0)
    default_fee_percent: Decimal = Field(default=Decimal("0.25"), ge=0)
    liquidity_cap_fraction: Decimal = Field(default=Decimal("0.1"), gt=0, le=1)
    unknown_liquidity_multiplier: Decimal = Field(default=Decimal("10"), gt=0)

    @field_validator(
        "min_profit_percent", "max_trade_amount", "slippage_tolerance_percent",
        "default_fee_percent", "liquidity_cap_fraction", "unknown_liquidity_multiplier",
        mode="before",
    )
    @classmethod
    def _coerce_decimal(cls, value):
        return _decimal(value)


class VenueSettings(BaseModel):
    """Per-venue adapter settings."""
    type: Optional[str] = None  # Defaults to the venue name
    base_url: Optional[str] = None
    fee_percent: Optional[Decimal] = Field(default=None, ge=0)
    request_timeout_sec: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    retry_base_delay_ms: int = Field(default=100, ge=0)
    atomic_with: List[str] = []
    # Paper venues only
    prices: Dict[str, Decimal] = {}
    liquidity: Dict[str, Decimal] = {}
    slippage_percent: Optional[Decimal] = Field(default=None, ge=0, lt=100)

    @field_validator("fee_percent", "slippage_percent", mode="before")
    @classmethod
    def _coerce_decimal(cls, value):
        return _decimal(value)

    @field_validator("prices", "liquidity", mode="before")
    @classmethod
    def _coerce_decimal_map(cls, value):
        if value is None:
            return {}
        return {pair: _decimal(amount) for pair, amount in value.items()}


class VenueConfig(BaseModel):
    """Enabled venues and the pairs scanned across them."""
    enabled: List[str] = ["raydium", "orca"]
    trading_pairs: List[str] = ["SOL/USDC"]
    settings: Dict[str, VenueSettings] = Field(default_factory=dict)

    @field_validator("enabled")
    @classmethod
    def _unique_venues(cls, value: List[str]) -> List[str]:
        seen = set()
        for name in value:
            if name in seen:
                raise ValueError(f"Venue listed twice: {name}")
            seen.add(name)
        return value

    @field_validator("trading_pairs")
    @classmethod
    def _valid_pairs(cls, value: List[str]) -> List[str]:
        for pair in value:
            if split_pair(pair) is None:
                raise ValueError(f"Invalid trading pair format: {pair!r} (expected BASE/QUOTE)")
        return value


class SafetyConfig(BaseModel):
    """Safety limits."""
    simulation_mode: bool = True  # Dry-run by default
    max_consecutive_failures: int = Field(default=3, ge=1)


class WalletConfig(BaseModel):
    """Signing wallet configuration."""
    keypair_path: Optional[str] = None


class MonitoringConfig(BaseModel):
    """Polling loop configuration."""
    check_interval_ms: int = Field(default=1000, gt=0)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = "dexarb.log"
    rotation: str = "10 MB"
    retention: str = "7 days"
    log_trades: bool = True


class StorageConfig(BaseModel):
    """Storage configuration."""
    db_path: str = "dexarb.sqlite"


class Config(BaseModel):
    """Main configuration model."""
    arbitrage: ArbitrageConfig = Field(default_factory=ArbitrageConfig)
    venues: VenueConfig = Field(default_factory=VenueConfig)
    safety: SafetyConfig = Field(default_factory=SafetyConfig)
    wallet: WalletConfig = Field(default_factory=WalletConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @model_validator(mode="after")
    def _live_mode_needs_wallet(self) -> "Config":
        if not self.safety.simulation_mode and not self.wallet.keypair_path:
            raise ValueError("wallet.keypair_path is required when simulation_mode is off")
        return self

    def get_venue_settings(self, venue: str) -> VenueSettings:
        """Get adapter settings for a venue, falling back to defaults."""
        return self.venues.settings.get(venue) or VenueSettings()

    @classmethod
    def load_from_file(cls, config_path: str = "config.yaml") -> "Config":
        """Load configuration from YAML file with environment variable substitution."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "r") as f:
                raw = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e

        # Substitute environment variables
        for key, value in os.environ.items():
            raw = raw.replace(f"${{{key}}}", value)

        try:
            config_data = yaml.safe_load(raw) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        try:
            return cls(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e


def get_config(config_path: str = "config.yaml") -> Config:
    """Get configuration instance."""
    return Config.load_from_file(config_path)
