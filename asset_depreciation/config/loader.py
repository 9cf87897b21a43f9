"""
Configuration management and loading.

Handles application settings and environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from asset_depreciation.core.schedule import (
    APPROX_DAYS_PER_MONTH,
    SchedulePolicy,
    ZeroElapsedPolicy,
)
from asset_depreciation.storage.db import DEFAULT_DB_PATH

CONFIG_ENV_VAR = "ASSET_DEPRECIATION_CONFIG"
DB_ENV_VAR = "ASSET_DEPRECIATION_DB"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseConfig:
    """Location of the record store."""
    path: str = DEFAULT_DB_PATH

    def __post_init__(self):
        """Validate path is not empty."""
        if not self.path or not self.path.strip():
            raise ValueError("database path cannot be empty")


@dataclass(frozen=True)
class ScheduleConfig:
    """Schedule generation rules."""
    zero_elapsed_policy: ZeroElapsedPolicy = ZeroElapsedPolicy.FULL_YEAR
    clamp_at_zero: bool = False
    days_per_month: int = APPROX_DAYS_PER_MONTH

    def __post_init__(self):
        """Validate days_per_month is positive."""
        if self.days_per_month <= 0:
            raise ValueError("days_per_month must be > 0")


@dataclass(frozen=True)
class LoggingConfig:
    """Log output settings."""
    level: str = "INFO"

    def __post_init__(self):
        """Validate level is a known logging level."""
        if self.level not in LOG_LEVELS:
            raise ValueError(f"logging level must be one of: {list(LOG_LEVELS)}")


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def schedule_policy(self) -> SchedulePolicy:
        """Build the generator policy from the schedule section."""
        return SchedulePolicy(
            zero_elapsed=self.schedule.zero_elapsed_policy,
            clamp_at_zero=self.schedule.clamp_at_zero,
            days_per_month=self.schedule.days_per_month,
        )


def default_config() -> AppConfig:
    """Configuration used when no file is given."""
    return AppConfig()


def load_config(path: str) -> AppConfig:
    """Load and validate application configuration from YAML file.

    Every section is optional; unknown keys are rejected so a typo never
    silently falls back to a default.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return default_config()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'database', 'schedule', 'logging'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    return AppConfig(
        database=_parse_database(_section(raw_config, 'database')),
        schedule=_parse_schedule(_section(raw_config, 'schedule')),
        logging=_parse_logging(_section(raw_config, 'logging')),
    )


def resolve_config(path: Optional[str] = None, db_path: Optional[str] = None) -> AppConfig:
    """Load configuration the way the CLI does.

    The file comes from ``path`` or the ASSET_DEPRECIATION_CONFIG variable;
    the database path from ``db_path`` or ASSET_DEPRECIATION_DB, falling
    back to the file.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    config = load_config(path) if path else default_config()

    db_path = db_path or os.environ.get(DB_ENV_VAR)
    if db_path:
        config = AppConfig(
            database=DatabaseConfig(path=db_path),
            schedule=config.schedule,
            logging=config.logging,
        )
    return config


def _section(raw_config: Dict, name: str) -> Dict[str, Any]:
    data = raw_config.get(name)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    return data


def _check_keys(data: Dict, allowed: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")


def _parse_database(data: Dict) -> DatabaseConfig:
    _check_keys(data, {'path'}, 'database')
    if 'path' not in data:
        return DatabaseConfig()
    if not isinstance(data['path'], str):
        raise ValueError("'path' in database must be a string")
    return DatabaseConfig(path=data['path'])


def _parse_schedule(data: Dict) -> ScheduleConfig:
    """Parse and validate the schedule section.

    Args:
        data: Schedule configuration data

    Returns:
        Validated ScheduleConfig

    Raises:
        ValueError: If configuration is invalid
    """
    _check_keys(data, {'zero_elapsed_policy', 'clamp_at_zero', 'days_per_month'}, 'schedule')
    defaults = ScheduleConfig()

    policy = defaults.zero_elapsed_policy
    if 'zero_elapsed_policy' in data:
        policy_str = data['zero_elapsed_policy']
        if not isinstance(policy_str, str):
            raise ValueError("'zero_elapsed_policy' in schedule must be a string")
        try:
            policy = ZeroElapsedPolicy(policy_str.lower())
        except ValueError:
            valid = [p.value for p in ZeroElapsedPolicy]
            raise ValueError(f"'zero_elapsed_policy' in schedule must be one of: {valid}")

    clamp = data.get('clamp_at_zero', defaults.clamp_at_zero)
    if not isinstance(clamp, bool):
        raise ValueError("'clamp_at_zero' in schedule must be true or false")

    days = data.get('days_per_month', defaults.days_per_month)
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise ValueError("'days_per_month' in schedule must be a positive integer")

    return ScheduleConfig(
        zero_elapsed_policy=policy,
        clamp_at_zero=clamp,
        days_per_month=days,
    )


def _parse_logging(data: Dict) -> LoggingConfig:
    _check_keys(data, {'level'}, 'logging')
    level = data.get('level', LoggingConfig.level)
    if not isinstance(level, str):
        raise ValueError("'level' in logging must be a string")
    level = level.upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"'level' in logging must be one of: {list(LOG_LEVELS)}")
    return LoggingConfig(level=level)
