"""
Exception classes for song-library.

This module defines all custom exceptions used throughout the service.
Each exception maps to one failure mode of a request and carries the HTTP
status the transport layer answers with.

Exception Hierarchy:
    SongLibraryError (base)
        ConfigError - Configuration file issues
        InvalidRequestError - Missing or malformed caller input (400)
        NotFoundError - No matching record (404)
        UpstreamUnavailableError - External provider failure (500)
        DataFormatError - Unparsable date or payload (500)
        StorageError - Persistence layer failure (500)
        EnrichmentError - Static enrichment file unreadable (absorbed)
"""


class SongLibraryError(Exception):
    """
    Base exception for all song-library errors.

    All custom exceptions in this project inherit from this class,
    allowing the HTTP layer to map every known failure with a single
    error handler.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g. group, song, id).
        http_status: Status code the transport layer answers with.

    Example:
        try:
            detail = resolver.resolve(group, song)
        except SongLibraryError as e:
            logger.error(f"Resolution failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    http_status = 500

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description used in log lines.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'group' / 'song': the lookup key being resolved
                     - 'song_id': store identifier involved in the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(SongLibraryError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - An explicitly named config file does not exist
        - config.yaml has invalid YAML syntax
        - Invalid field values (e.g. non-positive pool sizes, bad port)

    Example:
        raise ConfigError(
            "'database.max_open_connections' must be a positive integer",
            details={'field': 'database.max_open_connections', 'value': 0}
        )
    """
    pass


class InvalidRequestError(SongLibraryError):
    """
    Raised when the caller's input is missing or malformed.

    Never retried; surfaced as a client error. Raised before any I/O
    is performed.

    Example:
        raise InvalidRequestError(
            "Missing 'group' or 'song' query parameters",
            details={'group': group, 'song': song}
        )
    """

    http_status = 400


class NotFoundError(SongLibraryError):
    """
    Raised when no matching record exists.

    Used for store lookups by id and for enrichment lookups whose
    (group, song) pair does not match the static record.
    """

    http_status = 404


class UpstreamUnavailableError(SongLibraryError):
    """
    Raised when the external metadata provider cannot satisfy a lookup.

    Transport failures, non-success statuses and malformed payloads all
    collapse into this one kind: the provider signals absence through
    its status code, so "not found" and "could not decode" are not
    distinguished here.

    Example:
        raise UpstreamUnavailableError(
            "External API returned status code 404",
            details={'group': 'Muse', 'song': 'Uprising', 'status_code': 404}
        )
    """
    pass


class DataFormatError(SongLibraryError):
    """
    Raised when a date or payload cannot be parsed into the expected shape.

    On the resolution path this aborts persistence: no partial record is
    ever written.
    """
    pass


class StorageError(SongLibraryError):
    """
    Raised when there's an issue with the song database.

    Common causes:
        - Database file cannot be opened (missing parent directory, permissions)
        - SQLite reported an error while reading or writing
        - Disk full

    Example:
        raise StorageError(
            "Failed to add new song to the database: disk I/O error",
            details={'group': 'Muse', 'song': 'Uprising'}
        )
    """
    pass


class EnrichmentError(SongLibraryError):
    """
    Raised when the static enrichment file cannot be read or parsed.

    This is a NON-CRITICAL error on the resolution path: overlay failures
    are logged and never propagated to the caller. Only the mock provider
    surfaces it, through EnrichmentSource.lookup().
    """
    pass
