"""
Public HTTP API.

Routes:
    GET    /info?group=&song=               Resolve a song's detail
    GET    /songs[?page=&limit=]            List stored songs
    GET    /songs/<id>/verses?page=&limit=  One page of a song's lyric lines
    PUT    /songs/<id>                      Overwrite fields of a song
    DELETE /songs/<id>                      Soft-delete a song
    GET    /health                          Liveness probe

Failures answer with a plain-text generic message and the status carried
by the exception (400, 404 or 500); the specifics only go to the log.
"""

from typing import Any

from flask import Flask, jsonify, request

from song_library.core.database import SongDatabase
from song_library.core.exceptions import (
    DataFormatError,
    InvalidRequestError,
    NotFoundError,
    SongLibraryError,
    UpstreamUnavailableError,
)
from song_library.core.logger import get_logger
from song_library.songs.models import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, parse_release_date
from song_library.songs.resolver import SongResolver

logger = get_logger(__name__)


MISSING_PARAMETERS_MESSAGE = "bad request: missing required parameters"
INVALID_INPUT_MESSAGE = "invalid input"
NOT_FOUND_MESSAGE = "Song not found"
UPDATE_NOT_FOUND_MESSAGE = "not found"
UPSTREAM_MESSAGE = "failed to retrieve song details from external API"
INTERNAL_ERROR_MESSAGE = "internal server error"

_STRING_FIELDS = {"group": "group", "song": "title", "text": "text", "link": "link"}


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidRequestError(
            f"Query parameter '{name}' must be an integer",
            details={name: raw}
        ) from None


def _parse_update_body(body: Any) -> dict[str, Any]:
    """
    Validate a PUT body and map it to SongDatabase.update_song() fields.

    Raises:
        InvalidRequestError: If the body is not an object, a known field has
                             the wrong type, group/song is empty, or the
                             release date is missing or unparsable.
    """
    if not isinstance(body, dict):
        raise InvalidRequestError("Invalid song data: body must be a JSON object")

    fields: dict[str, Any] = {}

    for key, field_name in _STRING_FIELDS.items():
        if key not in body:
            continue
        value = body[key]
        if not isinstance(value, str):
            raise InvalidRequestError(
                f"Invalid song data: '{key}' must be a string",
                details={"field": key}
            )
        if key in ("group", "song") and not value:
            raise InvalidRequestError(
                f"Invalid song data: '{key}' cannot be empty",
                details={"field": key}
            )
        fields[field_name] = value

    if "release_date" in body:
        # null and "" are rejected too; a stored song always has a date
        try:
            fields["release_date"] = parse_release_date(body["release_date"])
        except DataFormatError as e:
            raise InvalidRequestError(
                f"Invalid song data: {e.message}",
                details={"field": "release_date"}
            ) from e

    return fields


def create_app(database: SongDatabase, resolver: SongResolver) -> Flask:
    """
    Build the public API application.

    Args:
        database: The song store; used directly for listing, update and delete.
        resolver: The resolution pipeline; used for /info and verses.

    Returns:
        A configured Flask application.
    """
    app = Flask(__name__)
    app.json.sort_keys = False

    @app.errorhandler(SongLibraryError)
    def handle_song_library_error(error: SongLibraryError):
        if isinstance(error, InvalidRequestError):
            logger.error(f"Bad request: {error.message}")
            message = (
                MISSING_PARAMETERS_MESSAGE if request.path == "/info" else INVALID_INPUT_MESSAGE
            )
        elif isinstance(error, NotFoundError):
            logger.error(f"Not found: {error.message} {error.details}")
            message = UPDATE_NOT_FOUND_MESSAGE if request.method == "PUT" else NOT_FOUND_MESSAGE
        elif isinstance(error, UpstreamUnavailableError):
            logger.error(f"Upstream error: {error.message}")
            message = UPSTREAM_MESSAGE
        else:
            logger.error(f"{type(error).__name__}: {error.message}")
            message = INTERNAL_ERROR_MESSAGE

        return message, error.http_status, {"Content-Type": "text/plain; charset=utf-8"}

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "healthy"})

    @app.route("/info", methods=["GET"])
    def song_info():
        group = request.args.get("group", "")
        song = request.args.get("song", "")

        detail = resolver.resolve(group, song)
        return jsonify(detail.to_dict())

    @app.route("/songs", methods=["GET"])
    def list_songs():
        limit = None
        page = None
        if "limit" in request.args or "page" in request.args:
            page = _int_arg("page", DEFAULT_PAGE)
            limit = _int_arg("limit", DEFAULT_PAGE_SIZE)
            if page < 1 or limit < 1:
                raise InvalidRequestError(
                    "'page' and 'limit' must be positive",
                    details={"page": page, "limit": limit}
                )

        songs = database.list_songs(page=page, limit=limit)
        return jsonify([song.to_dict() for song in songs])

    @app.route("/songs/<int:song_id>/verses", methods=["GET"])
    def song_verses(song_id: int):
        page = _int_arg("page", DEFAULT_PAGE)
        limit = _int_arg("limit", DEFAULT_PAGE_SIZE)

        return jsonify(resolver.verses(song_id, page, limit))

    @app.route("/songs/<int:song_id>", methods=["PUT"])
    def update_song(song_id: int):
        if database.get_song(song_id) is None:
            raise NotFoundError(f"Song with ID {song_id} not found", details={"song_id": song_id})

        fields = _parse_update_body(request.get_json(silent=True))

        updated = database.update_song(song_id, **fields)
        if updated is None:
            raise NotFoundError(f"Song with ID {song_id} not found", details={"song_id": song_id})

        logger.info(f"Updated song with ID {song_id}")
        return jsonify(updated.to_dict())

    @app.route("/songs/<int:song_id>", methods=["DELETE"])
    def delete_song(song_id: int):
        if not database.delete_song(song_id):
            logger.warning(f"Delete requested for unknown song ID {song_id}")
        else:
            logger.info(f"Deleted song with ID {song_id}")

        return jsonify({f"id #{song_id}": "deleted"})

    return app
