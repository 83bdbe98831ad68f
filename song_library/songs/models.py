"""
Data models for song entities.

This module defines immutable dataclasses for the persisted song record,
its response projection, the static enrichment override and the
pagination window over a song's lyric lines.

Design Decisions:
    - All dataclasses are frozen (immutable); updates build new instances
    - Release dates are datetime.date on records and YYYY-MM-DD strings
      on details, converted only through parse/format_release_date()
    - JSON shapes match the public API: the title travels as "song"

Usage:
    from song_library.songs.models import SongRecord, SongDetail

    detail = record.detail()
    payload = detail.to_dict()
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any

from song_library.core.exceptions import DataFormatError


# Fixed calendar format used on every wire and in storage
DATE_FORMAT = "%Y-%m-%d"

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


def parse_release_date(value: str) -> date:
    """
    Parse a release date in the fixed YYYY-MM-DD format.

    Args:
        value: Date string, e.g. "2006-07-14".

    Returns:
        The parsed calendar date.

    Raises:
        DataFormatError: If value is not a string in YYYY-MM-DD format.

    Example:
        >>> format_release_date(parse_release_date("2001-09-11"))
        '2001-09-11'
    """
    if not isinstance(value, str):
        raise DataFormatError(
            f"Release date must be a string, got {type(value).__name__}",
            details={"release_date": value}
        )

    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as e:
        raise DataFormatError(
            f"Failed to parse release date: {value!r}",
            details={"release_date": value, "original_error": str(e)}
        ) from e


def format_release_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime(DATE_FORMAT)


@dataclass(frozen=True)
class SongDetail:
    """
    Transient, response-shaped projection of a song.

    Built from a SongRecord, from the external provider's payload or from
    the enrichment override. Never persisted.

    Attributes:
        release_date: Release date in YYYY-MM-DD format.
        text: Lyric text, lines separated by "\\n". May be empty.
        link: External link. May be empty.
    """

    release_date: str = ""
    text: str = ""
    link: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "SongDetail":
        """
        Build a detail from a decoded JSON object.

        Missing keys decode as empty strings. Values are not validated
        beyond their type; date parsing is the caller's decision.

        Raises:
            DataFormatError: If payload is not a dict, or one of the three
                             fields is present with a non-string value.
        """
        if not isinstance(payload, dict):
            raise DataFormatError(
                "Song detail payload must be a JSON object",
                details={"payload_type": type(payload).__name__}
            )

        values = {}
        for key in ("release_date", "text", "link"):
            value = payload.get(key)
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise DataFormatError(
                    f"Field '{key}' must be a string",
                    details={"field": key, "value_type": type(value).__name__}
                )
            values[key] = value

        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class SongRecord:
    """
    Persisted song entity.

    Attributes:
        id: Store-assigned identifier.
        group: Performing group. Required, non-empty.
        title: Song title. Required, non-empty. Stored and serialized as "song".
        release_date: Calendar date of release. Required.
        text: Lyric text. May be empty.
        link: External link. May be empty.
        created_at: ISO timestamp of creation (store managed).
        updated_at: ISO timestamp of the last write (store managed).
        deleted_at: ISO timestamp of soft deletion, None while live.

    Invariant:
        (group, title) is the natural lookup key but is not unique;
        the lowest id wins on lookup.
    """

    id: int
    group: str
    title: str
    release_date: date
    text: str = ""
    link: str = ""
    created_at: str | None = None
    updated_at: str | None = None
    deleted_at: str | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def detail(self) -> SongDetail:
        """Project the record into its response shape."""
        return SongDetail(
            release_date=format_release_date(self.release_date),
            text=self.text,
            link=self.link,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the public JSON shape."""
        return {
            "id": self.id,
            "group": self.group,
            "song": self.title,
            "text": self.text,
            "release_date": format_release_date(self.release_date),
            "link": self.link,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "deleted_at": self.deleted_at,
        }


@dataclass(frozen=True)
class EnrichmentOverride:
    """
    The single static record held by the enrichment file.

    Loaded in full on every enrichment attempt. The release date is kept
    as the raw string found in the file.
    """

    group: str
    song: str
    release_date: str = ""
    text: str = ""
    link: str = ""

    def matches(self, group: str, title: str) -> bool:
        """Exact, case-sensitive comparison on (group, song)."""
        return self.group == group and self.song == title


@dataclass(frozen=True)
class PaginationWindow:
    """
    A page over an ordered sequence of lines.

    Attributes:
        page: 1-based page number.
        page_size: Lines per page.

    Example:
        >>> window = PaginationWindow(page=2, page_size=2)
        >>> window.start, window.end(5)
        (2, 4)
    """

    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def start(self) -> int:
        return (self.page - 1) * self.page_size

    def end(self, total: int) -> int:
        return min(self.start + self.page_size, total)

    def is_within(self, total: int) -> bool:
        """True if the window selects at least one of total lines."""
        return self.page_size >= 1 and 0 <= self.start < total
