"""
song-library: a song metadata lookup service.

Given a (group, song) pair the service answers with the song's release
date, lyric text and external link. Songs are looked up in a local SQLite
store first; unknown songs are fetched from an external metadata provider,
stored, and served from the store afterwards. A static JSON file can
override the detail of one song.

Architecture:
    core/       - Configuration, database, logging, exceptions
    songs/      - Resolution pipeline, provider client, enrichment, pagination
    api/        - Flask applications (public API and mock provider)
    cli.py      - Command-line interface

Usage:
    Command Line:
        song-library serve
        song-library serve --with-mock-provider
        song-library mock-provider
        song-library migrate

    Python API:
        from song_library import (
            load_config, setup_logging, SongDatabase,
            ExternalProvider, EnrichmentSource, SongResolver
        )

        config = load_config()
        setup_logging(config.logging.directory)
        database = SongDatabase(config.database.path)

        resolver = SongResolver(
            database,
            ExternalProvider(config.provider.base_url, config.provider.timeout),
            EnrichmentSource(config.enrichment.path),
        )
        detail = resolver.resolve("Muse", "Supermassive Black Hole")

Dependencies:
    - flask: HTTP server for the public API and the mock provider
    - requests: External provider client
    - click / rich-click: CLI framework and colors
    - pyyaml: Configuration file parsing
    - python-dotenv: .env loading
"""

__version__ = "0.1.0"
__author__ = "song-library"
__license__ = "MIT"

# core must be imported before songs: the store depends on the song models
from song_library.core import (
    Config,
    ConfigError,
    DataFormatError,
    InvalidRequestError,
    NotFoundError,
    SongDatabase,
    SongLibraryError,
    StorageError,
    UpstreamUnavailableError,
    get_logger,
    load_config,
    setup_logging,
)
from song_library.songs import (
    EnrichmentSource,
    ExternalProvider,
    SongDetail,
    SongRecord,
    SongResolver,
    paginate,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "SongDatabase",
    "setup_logging",
    "get_logger",
    # Exceptions
    "SongLibraryError",
    "ConfigError",
    "InvalidRequestError",
    "NotFoundError",
    "UpstreamUnavailableError",
    "DataFormatError",
    "StorageError",
    # Songs
    "SongRecord",
    "SongDetail",
    "SongResolver",
    "ExternalProvider",
    "EnrichmentSource",
    "paginate",
]
