"""
Song resolution module for song-library.

This module provides the request-level logic of the service:
    - SongResolver: store lookup, provider backfill, enrichment overlay
    - ExternalProvider: HTTP client for the external metadata service
    - EnrichmentSource: static single-record override file
    - paginate: page-sized windows over a song's lyric lines
    - SongRecord, SongDetail, EnrichmentOverride, PaginationWindow: data models

Usage:
    from song_library.songs import (
        SongResolver, ExternalProvider, EnrichmentSource, paginate
    )

    resolver = SongResolver(database, ExternalProvider(url), EnrichmentSource(path))
    detail = resolver.resolve("Muse", "Supermassive Black Hole")
"""

from song_library.songs.models import (
    DATE_FORMAT,
    EnrichmentOverride,
    PaginationWindow,
    SongDetail,
    SongRecord,
    format_release_date,
    parse_release_date,
)
from song_library.songs.enrichment import EnrichmentSource
from song_library.songs.pagination import paginate, split_lines
from song_library.songs.provider import ExternalProvider
from song_library.songs.resolver import SongResolver

__all__ = [
    # Models
    "DATE_FORMAT",
    "SongRecord",
    "SongDetail",
    "EnrichmentOverride",
    "PaginationWindow",
    "parse_release_date",
    "format_release_date",
    # Components
    "EnrichmentSource",
    "ExternalProvider",
    "SongResolver",
    "paginate",
    "split_lines",
]
