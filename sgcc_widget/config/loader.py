"""
Configuration management and loading.

Handles application settings: upstream endpoint, storage location and logging.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from sgcc_widget.storage.db import DEFAULT_DB_PATH

DEFAULT_API_URL = (
    "http://api.wsgw-rewrite.com/electricity/bill/all"
    "?monthElecQuantity=1&dayElecQuantity31=1&stepElecQuantity=1&eleBill=1"
)
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class ApiConfig:
    """Upstream account API settings."""
    url: str = DEFAULT_API_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self):
        """Validate endpoint and timeout."""
        if not self.url.startswith(("http://", "https://")):
            raise ValueError("api.url must be an http(s) URL")
        if self.timeout_seconds <= 0:
            raise ValueError("api.timeout_seconds must be > 0")


@dataclass(frozen=True)
class StorageConfig:
    """Location of the key/value database."""
    db_path: str = DEFAULT_DB_PATH

    def __post_init__(self):
        if not self.db_path.strip():
            raise ValueError("storage.db_path cannot be empty")


@dataclass(frozen=True)
class LoggingConfig:
    """Logging verbosity."""
    level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        if self.level not in LOG_LEVELS:
            raise ValueError(f"logging.level must be one of: {list(LOG_LEVELS)}")


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    api: ApiConfig = field(default_factory=ApiConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def default_app_config() -> AppConfig:
    """Configuration used when no config file is given."""
    return AppConfig()


def load_app_config(path: str) -> AppConfig:
    """Load and validate application configuration from YAML file.

    Every section is optional; omitted keys keep their defaults. Unknown
    keys and wrong types are rejected so a typo never silently points the
    widget at the wrong endpoint or database.

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

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    allowed_top_keys = {'api', 'storage', 'logging'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    api_data = _section(raw_config, 'api', {'url', 'timeout_seconds'})
    api_kwargs: Dict[str, Any] = {}
    if 'url' in api_data:
        url = api_data['url']
        if not isinstance(url, str) or not url.strip():
            raise ValueError("'api.url' must be a non-empty string")
        api_kwargs['url'] = url.strip()
    if 'timeout_seconds' in api_data:
        timeout = api_data['timeout_seconds']
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise ValueError("'api.timeout_seconds' must be a number")
        api_kwargs['timeout_seconds'] = float(timeout)

    storage_data = _section(raw_config, 'storage', {'db_path'})
    storage_kwargs: Dict[str, Any] = {}
    if 'db_path' in storage_data:
        db_path = storage_data['db_path']
        if not isinstance(db_path, str):
            raise ValueError("'storage.db_path' must be a string")
        storage_kwargs['db_path'] = db_path

    logging_data = _section(raw_config, 'logging', {'level'})
    logging_kwargs: Dict[str, Any] = {}
    if 'level' in logging_data:
        level = logging_data['level']
        if not isinstance(level, str):
            raise ValueError("'logging.level' must be a string")
        logging_kwargs['level'] = level.upper()

    return AppConfig(
        api=ApiConfig(**api_kwargs),
        storage=StorageConfig(**storage_kwargs),
        logging=LoggingConfig(**logging_kwargs)
    )


def _section(raw_config: Dict, name: str, allowed_keys: set) -> Dict:
    """Return a validated config section (empty if omitted).

    Args:
        raw_config: Top-level configuration mapping
        name: Section name
        allowed_keys: Keys permitted in the section

    Returns:
        Section mapping

    Raises:
        ValueError: If the section is not a mapping or has unknown keys
    """
    data = raw_config.get(name)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")

    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {name}: {unknown_keys}")
    return data
