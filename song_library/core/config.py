"""
Configuration management for song-library.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml, with a small set of
environment overrides (read from the process environment and from a
.env file in the working directory).

The configuration file contains:
    - Server bind address for the public API
    - SQLite database path and connection pool bounds
    - External metadata provider URL and request timeout
    - Path of the static enrichment JSON file
    - Bind address for the mock provider
    - Optional log directory and console log level

Every section is optional. When no config file is given and config.yaml
is absent from the working directory, defaults are used.

Example config.yaml:
    server:
      host: "0.0.0.0"
      port: 8080

    database:
      path: "./songs.db"
      max_open_connections: 10
      max_idle_connections: 5
      connection_max_lifetime: 0   # seconds, 0 = never expire

    provider:
      base_url: "http://localhost:8081"
      timeout: 10

    enrichment:
      path: "./song_enrichment.json"

    mock_provider:
      host: "127.0.0.1"
      port: 8081

    logging:
      directory: null
      level: "INFO"

Environment overrides:
    SONG_LIBRARY_DATABASE          database.path
    SONG_LIBRARY_PROVIDER_URL      provider.base_url
    SONG_LIBRARY_ENRICHMENT_FILE   enrichment.path
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from song_library.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

ENV_DATABASE = "SONG_LIBRARY_DATABASE"
ENV_PROVIDER_URL = "SONG_LIBRARY_PROVIDER_URL"
ENV_ENRICHMENT_FILE = "SONG_LIBRARY_ENRICHMENT_FILE"

DEFAULT_USER_AGENT = "song-library/0.1.0"


@dataclass(frozen=True)
class ServerConfig:
    """Bind address of the public API server."""
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass(frozen=True)
class DatabaseConfig:
    """
    SQLite database configuration.

    Attributes:
        path: Absolute path to the database file. Its parent directory
              must exist when the database is opened.
        max_open_connections: Upper bound on simultaneously open connections.
                              Requests block while the pool is exhausted.
        max_idle_connections: Upper bound on connections kept open while unused.
        connection_max_lifetime: Seconds after which a connection is closed
                                 instead of being reused. 0 disables expiry.
    """
    path: Path
    max_open_connections: int = 10
    max_idle_connections: int = 5
    connection_max_lifetime: float = 0.0


@dataclass(frozen=True)
class ProviderConfig:
    """
    External metadata provider configuration.

    Attributes:
        base_url: Scheme, host and port of the provider. "/info" is appended.
        timeout: Request timeout in seconds.
        user_agent: User-Agent header sent with every request.
    """
    base_url: str = "http://localhost:8081"
    timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class EnrichmentConfig:
    """Location of the static single-record enrichment file."""
    path: Path


@dataclass(frozen=True)
class MockProviderConfig:
    """Bind address of the mock external provider."""
    host: str = "127.0.0.1"
    port: int = 8081


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration.

    Attributes:
        directory: Where log files go. None logs to the console only.
        level: Console log level name.
    """
    directory: Path | None = None
    level: str = "INFO"


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable.

    Example:
        config = load_config()
        print(f"Database at: {config.database.path}")
        print(f"Provider at: {config.provider.base_url}")
    """
    server: ServerConfig
    database: DatabaseConfig
    provider: ProviderConfig
    enrichment: EnrichmentConfig
    mock_provider: MockProviderConfig
    logging: LoggingConfig


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml and the environment.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory
                     and falls back to defaults when it is absent.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is not found, the YAML is
                     invalid or not a dictionary, or a field has an invalid value.

    Behavior:
        1. Load .env into the process environment (existing variables win)
        2. Read and parse the YAML file, if any
        3. Parse each section, applying defaults
        4. Apply environment overrides
        5. Create and return frozen Config object
    """
    load_dotenv()

    raw_config: dict[str, Any] = {}

    if config_path is None:
        default_path = Path.cwd() / CONFIG_FILENAME
        if default_path.exists():
            raw_config = _read_config_file(default_path)
    else:
        if not config_path.exists():
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                details={"file_path": str(config_path)}
            )
        raw_config = _read_config_file(config_path)

    database_section = _section(raw_config, "database")
    provider_section = _section(raw_config, "provider")
    enrichment_section = _section(raw_config, "enrichment")

    if os.getenv(ENV_DATABASE):
        database_section = {**database_section, "path": os.environ[ENV_DATABASE]}
    if os.getenv(ENV_PROVIDER_URL):
        provider_section = {**provider_section, "base_url": os.environ[ENV_PROVIDER_URL]}
    if os.getenv(ENV_ENRICHMENT_FILE):
        enrichment_section = {**enrichment_section, "path": os.environ[ENV_ENRICHMENT_FILE]}

    return Config(
        server=_parse_server_config(_section(raw_config, "server")),
        database=_parse_database_config(database_section),
        provider=_parse_provider_config(provider_section),
        enrichment=EnrichmentConfig(
            path=_parse_path(enrichment_section, "path", "enrichment.path", "song_enrichment.json")
        ),
        mock_provider=_parse_mock_provider_config(_section(raw_config, "mock_provider")),
        logging=_parse_logging_config(_section(raw_config, "logging")),
    )


def _read_config_file(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file parses to None
    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return raw_config


def _section(raw_config: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw_config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _parse_positive_int(section: dict[str, Any], key: str, field_name: str, default: int) -> int:
    value = section.get(key, default)
    # bool is an int subclass; "true" is never a valid size
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(
            f"'{field_name}' must be a positive integer",
            details={"field": field_name, "value": value}
        )
    return value


def _parse_non_negative_int(section: dict[str, Any], key: str, field_name: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(
            f"'{field_name}' must be a non-negative integer",
            details={"field": field_name, "value": value}
        )
    return value


def _parse_non_negative_number(section: dict[str, Any], key: str, field_name: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(
            f"'{field_name}' must be a non-negative number",
            details={"field": field_name, "value": value}
        )
    return float(value)


def _parse_string(section: dict[str, Any], key: str, field_name: str, default: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{field_name}' must be a non-empty string",
            details={"field": field_name}
        )
    return value.strip()


def _parse_path(section: dict[str, Any], key: str, field_name: str, default: str) -> Path:
    # Expand ~ and make absolute
    return Path(_parse_string(section, key, field_name, default)).expanduser().resolve()


def _parse_port(section: dict[str, Any], field_name: str, default: int) -> int:
    port = _parse_positive_int(section, "port", field_name, default)
    if port > 65535:
        raise ConfigError(
            f"'{field_name}' must be between 1 and 65535",
            details={"field": field_name, "value": port}
        )
    return port


def _parse_server_config(section: dict[str, Any]) -> ServerConfig:
    return ServerConfig(
        host=_parse_string(section, "host", "server.host", ServerConfig.host),
        port=_parse_port(section, "server.port", ServerConfig.port),
    )


def _parse_database_config(section: dict[str, Any]) -> DatabaseConfig:
    """
    Parse and validate the database section.

    Raises:
        ConfigError: If the open bound is not a positive integer, the idle
                     bound is negative or exceeds the open bound, or the
                     lifetime is negative.
    """
    max_open = _parse_positive_int(
        section, "max_open_connections", "database.max_open_connections", 10
    )
    max_idle = _parse_non_negative_int(
        section, "max_idle_connections", "database.max_idle_connections", 5
    )

    if max_idle > max_open:
        raise ConfigError(
            "'database.max_idle_connections' cannot exceed 'database.max_open_connections'",
            details={"max_idle_connections": max_idle, "max_open_connections": max_open}
        )

    return DatabaseConfig(
        path=_parse_path(section, "path", "database.path", "songs.db"),
        max_open_connections=max_open,
        max_idle_connections=max_idle,
        connection_max_lifetime=_parse_non_negative_number(
            section, "connection_max_lifetime", "database.connection_max_lifetime", 0.0
        ),
    )


def _parse_provider_config(section: dict[str, Any]) -> ProviderConfig:
    base_url = _parse_string(section, "base_url", "provider.base_url", ProviderConfig.base_url)

    if not base_url.startswith(("http://", "https://")):
        raise ConfigError(
            "'provider.base_url' must start with http:// or https://",
            details={"field": "provider.base_url", "value": base_url}
        )

    timeout = _parse_non_negative_number(section, "timeout", "provider.timeout", ProviderConfig.timeout)
    if timeout == 0:
        raise ConfigError(
            "'provider.timeout' must be greater than zero",
            details={"field": "provider.timeout"}
        )

    return ProviderConfig(
        base_url=base_url.rstrip("/"),
        timeout=timeout,
        user_agent=_parse_string(section, "user_agent", "provider.user_agent", DEFAULT_USER_AGENT),
    )


def _parse_mock_provider_config(section: dict[str, Any]) -> MockProviderConfig:
    return MockProviderConfig(
        host=_parse_string(section, "host", "mock_provider.host", MockProviderConfig.host),
        port=_parse_port(section, "mock_provider.port", MockProviderConfig.port),
    )


def _parse_logging_config(section: dict[str, Any]) -> LoggingConfig:
    directory = None
    if section.get("directory") is not None:
        directory = _parse_path(section, "directory", "logging.directory", "")

    level = _parse_string(section, "level", "logging.level", "INFO").upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigError(
            f"Unknown log level: {level}",
            details={"field": "logging.level", "value": level}
        )

    return LoggingConfig(directory=directory, level=level)
