"""
Song-info resolution.

Turns a (group, song) query into a SongDetail:

    1. Look the pair up in the store (exact, case-sensitive)
    2. On a miss, fetch the detail from the external provider, parse its
       release date and persist a new record
    3. On a hit, project the stored record
    4. In both cases, overlay the static enrichment record
    5. Return the merged detail (release date always YYYY-MM-DD)

Provider, date and storage failures abort the resolution; nothing is
persisted unless the whole miss path succeeds. Enrichment failures never
abort it.

Concurrent misses for the same pair may each create a record; lookups
then return the lowest id.
"""

from typing import Any

from song_library.core.exceptions import DataFormatError, InvalidRequestError, NotFoundError
from song_library.core.logger import get_logger
from song_library.songs.enrichment import EnrichmentSource
from song_library.songs.models import SongDetail, SongRecord, parse_release_date
from song_library.songs.pagination import paginate
from song_library.songs.provider import ExternalProvider

logger = get_logger(__name__)


class SongResolver:
    """
    Orchestrates store lookup, provider fetch, persistence and enrichment.

    Attributes:
        store: A SongDatabase (or anything with find_song, create_song and get_song).
        provider: The external metadata provider.
        enrichment: The static enrichment source.

    Example:
        resolver = SongResolver(database, ExternalProvider(url), EnrichmentSource(path))
        detail = resolver.resolve("Muse", "Supermassive Black Hole")
    """

    def __init__(self, store: Any, provider: ExternalProvider, enrichment: EnrichmentSource) -> None:
        self.store = store
        self.provider = provider
        self.enrichment = enrichment

    def resolve(self, group: str, title: str) -> SongDetail:
        """
        Resolve the detail of a song, backfilling the store on first request.

        Args:
            group: Performing group. Must be non-empty.
            title: Song title. Must be non-empty.

        Returns:
            The merged detail.

        Raises:
            InvalidRequestError: If group or title is empty. No I/O happens.
            UpstreamUnavailableError: If the provider could not supply the detail.
            DataFormatError: If the provider's release date is unparsable.
            StorageError: If the store lookup or the insert fails.
        """
        if not group or not title:
            logger.error("Missing 'group' or 'song' query parameters")
            raise InvalidRequestError(
                "Missing 'group' or 'song' query parameters",
                details={"group": group, "song": title}
            )

        record = self.store.find_song(group, title)

        if record is None:
            logger.info(f"Song '{title}' by '{group}' not found in database.")
            record = self._backfill(group, title)

        return self.enrichment.overlay(record.detail(), group, title)

    def _backfill(self, group: str, title: str) -> SongRecord:
        fetched = self.provider.fetch(group, title)

        try:
            release_date = parse_release_date(fetched.release_date)
        except DataFormatError:
            logger.error(f"Failed to parse release date: {fetched.release_date!r}")
            raise

        record = self.store.create_song(
            group=group,
            title=title,
            release_date=release_date,
            text=fetched.text,
            link=fetched.link,
        )
        logger.info(f"Added new song to the database: '{title}' by '{group}' (ID {record.id})")
        return record

    def verses(self, song_id: int, page: int = 1, limit: int = 10) -> list[str]:
        """
        Return one page of a stored song's lyric lines.

        Raises:
            NotFoundError: If no live record has song_id.
            StorageError: If the lookup fails.
        """
        record = self.store.get_song(song_id)
        if record is None:
            logger.error(f"Song not found with ID: {song_id}")
            raise NotFoundError("Song not found", details={"song_id": song_id})

        return paginate(record.text, page, limit)
