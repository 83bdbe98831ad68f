"""
Core module for song-library.

This module provides the foundational components used throughout the service:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - database: Pooled SQLite store for song records
    - logger: Logging system with console and file outputs

Usage:
    from song_library.core import (
        Config, load_config,
        SongDatabase,
        setup_logging, get_logger,
        SongLibraryError, ConfigError, StorageError
    )
"""

from song_library.core.config import (
    Config,
    DatabaseConfig,
    EnrichmentConfig,
    LoggingConfig,
    MockProviderConfig,
    ProviderConfig,
    ServerConfig,
    load_config,
)
from song_library.core.database import ConnectionPool, SongDatabase
from song_library.core.exceptions import (
    ConfigError,
    DataFormatError,
    EnrichmentError,
    InvalidRequestError,
    NotFoundError,
    SongLibraryError,
    StorageError,
    UpstreamUnavailableError,
)
from song_library.core.logger import get_logger, setup_logging, shutdown_logging

__all__ = [
    # Config
    "Config",
    "ServerConfig",
    "DatabaseConfig",
    "ProviderConfig",
    "EnrichmentConfig",
    "MockProviderConfig",
    "LoggingConfig",
    "load_config",
    # Database
    "ConnectionPool",
    "SongDatabase",
    # Exceptions
    "SongLibraryError",
    "ConfigError",
    "InvalidRequestError",
    "NotFoundError",
    "UpstreamUnavailableError",
    "DataFormatError",
    "StorageError",
    "EnrichmentError",
    # Logger
    "setup_logging",
    "get_logger",
    "shutdown_logging",
]
