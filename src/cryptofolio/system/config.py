"""System configuration.

One YAML file configures the whole application. Missing sections and keys
fall back to built-in defaults; ``${VAR}`` placeholders are substituted from
the environment.

Lookup order for the config file:
1. Path passed to SystemConfig.load() / get_system_config()
2. ./config/cryptofolio.yaml
3. ~/.cryptofolio/cryptofolio.yaml

Example cryptofolio.yaml:
    ledger:
      path: ${HOME}/.cryptofolio/ledger.json
      max_append_attempts: 5

    pricing:
      base_url: https://api.coingecko.com/api/v3
      vs_currency: usd

    logging:
      level: INFO
      enable_file: false
"""

import os
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from cryptofolio.system.log_system import LoggingConfig as LoggerConfig

DEFAULT_CONFIG_PATHS = (
    Path("config/cryptofolio.yaml"),
    Path.home() / ".cryptofolio" / "cryptofolio.yaml",
)

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


@dataclass
class LedgerConfig:
    """Transaction ledger storage."""

    path: str = "data/ledger.json"
    max_append_attempts: int = 5
    max_backoff_seconds: float = 0.05


@dataclass
class PricingConfig:
    """Price source connection."""

    base_url: str = "https://api.coingecko.com/api/v3"
    vs_currency: str = "usd"
    timeout_seconds: float = 10.0
    max_retries: int = 3
    backoff_seconds: float = 1.0


@dataclass
class TrackerConfig:
    """Portfolio tracker policies."""

    default_user: str = "default"
    allow_oversell: bool = False


@dataclass
class LoggingConfig:
    """Logging settings as they appear in YAML."""

    level: str = "INFO"
    format: str = "console"
    timestamp_format: str = "compact"
    enable_file: bool = True
    file_path: str = "logs/cryptofolio.log"
    file_level: str = "WARNING"
    file_rotation: bool = True
    max_file_size_mb: int = 10
    backup_count: int = 3

    def to_logger_config(self) -> LoggerConfig:
        """Convert to log_system.LoggingConfig."""
        return LoggerConfig(
            level=self.level,  # type: ignore[arg-type]
            format=self.format,  # type: ignore[arg-type]
            timestamp_format=self.timestamp_format,  # type: ignore[arg-type]
            enable_file=self.enable_file,
            file_path=Path(self.file_path),
            file_level=self.file_level,  # type: ignore[arg-type]
            file_rotation=self.file_rotation,
            max_file_size_mb=self.max_file_size_mb,
            backup_count=self.backup_count,
        )


@dataclass
class SystemConfig:
    """Complete application configuration."""

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "SystemConfig":
        """
        Load configuration, merged over defaults.

        Args:
            path: Explicit config file. If None, the default locations are searched.
                A path that does not exist yields the defaults.

        Returns:
            SystemConfig
        """
        config_path: Path | None
        if path is not None:
            config_path = Path(path)
        else:
            config_path = next((p for p in DEFAULT_CONFIG_PATHS if p.exists()), None)

        if config_path is None or not config_path.exists():
            return cls()

        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}

        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")

        merged = _deep_merge(asdict(cls()), _substitute_env_vars(loaded))
        return cls._from_dict(merged)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "SystemConfig":
        """Build from a (possibly partial) dictionary."""
        return cls(
            ledger=LedgerConfig(**data.get("ledger", {})),
            pricing=PricingConfig(**data.get("pricing", {})),
            tracker=TrackerConfig(**data.get("tracker", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base; override wins."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _substitute_env_vars(value: Any) -> Any:
    """Replace ${VAR} in strings (recursively); undefined variables stay as-is."""
    if isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    return value


_system_config: SystemConfig | None = None


def get_system_config(path: str | Path | None = None) -> SystemConfig:
    """
    Get the cached system configuration.

    Args:
        path: Explicit config file; when given, it is loaded and cached.

    Returns:
        SystemConfig singleton
    """
    global _system_config
    if path is not None:
        _system_config = SystemConfig.load(path)
    elif _system_config is None:
        _system_config = SystemConfig.load()
    return _system_config


def reload_system_config(path: str | Path | None = None) -> SystemConfig:
    """Force a reload and cache the new instance."""
    global _system_config
    _system_config = SystemConfig.load(path)
    return _system_config
