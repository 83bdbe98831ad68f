"""
Static enrichment source.

A JSON file holds a single override record:

    {
        "group": "Muse",
        "song": "Supermassive Black Hole",
        "release_date": "2006-07-16",
        "text": "Ooh baby, don't you know I suffer?\\nOoh baby, can you hear me moan?",
        "link": "https://www.youtube.com/watch?v=Xsp3_a-PMTw"
    }

The file is read in full on every access; edits take effect on the next
request. When the (group, song) pair matches a lookup exactly, the
override's release date, text and link replace the detail's. Overlay is
best effort: read or parse failures are logged and the detail passes
through unchanged.
"""

import json
from dataclasses import replace
from pathlib import Path

from song_library.core.exceptions import DataFormatError, EnrichmentError, NotFoundError
from song_library.core.logger import get_logger
from song_library.songs.models import (
    EnrichmentOverride,
    SongDetail,
    format_release_date,
    parse_release_date,
)

logger = get_logger(__name__)


class EnrichmentSource:
    """
    File-backed single-record override.

    Attributes:
        path: Location of the enrichment JSON file. The file is never written.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> EnrichmentOverride:
        """
        Read and decode the override record.

        Raises:
            EnrichmentError: If the file cannot be read, is not valid UTF-8 JSON,
                             is not an object, or has non-string fields.
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise EnrichmentError(
                f"Could not open enrichment file: {e}",
                details={"path": str(self.path)}
            ) from e
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise EnrichmentError(
                f"Could not parse enrichment file: {e}",
                details={"path": str(self.path)}
            ) from e

        if not isinstance(data, dict):
            raise EnrichmentError(
                "Enrichment file must contain a JSON object",
                details={"path": str(self.path)}
            )

        values = {}
        for key in ("group", "song", "release_date", "text", "link"):
            value = data.get(key, "")
            if not isinstance(value, str):
                raise EnrichmentError(
                    f"Enrichment field '{key}' must be a string",
                    details={"path": str(self.path), "field": key}
                )
            values[key] = value

        return EnrichmentOverride(**values)

    def _matching_detail(self, override: EnrichmentOverride) -> SongDetail:
        # Normalise the date so the output format holds whatever the file contains
        release_date = format_release_date(parse_release_date(override.release_date))
        return SongDetail(release_date=release_date, text=override.text, link=override.link)

    def overlay(self, detail: SongDetail, group: str, title: str) -> SongDetail:
        """
        Apply the override to detail if it matches (group, title).

        Args:
            detail: The detail computed from the store or the provider.
            group: Group the detail was resolved for.
            title: Song title the detail was resolved for.

        Returns:
            A detail with all three fields replaced on an exact match;
            otherwise detail itself, unchanged.

        Never raises: every failure is logged and absorbed.
        """
        try:
            override = self.load()
        except EnrichmentError as e:
            logger.error(e.message)
            return detail

        if not override.matches(group, title):
            return detail

        try:
            enriched = self._matching_detail(override)
        except DataFormatError as e:
            logger.error(f"Failed to parse release date from enrichment data: {e.message}")
            return detail

        logger.debug(f"Enriched '{title}' by '{group}' from {self.path}")
        return replace(detail, **enriched.to_dict())

    def lookup(self, group: str, title: str) -> SongDetail:
        """
        Return the override as a detail when it matches (group, title).

        Raises:
            EnrichmentError: If the file cannot be read or parsed.
            NotFoundError: If the override is for a different song.
            DataFormatError: If the matching override has an unparsable date.
        """
        override = self.load()

        if not override.matches(group, title):
            raise NotFoundError(
                "Song not found in enrichment file",
                details={"group": group, "song": title}
            )

        return self._matching_detail(override)
