"""
Stand-in for the external metadata provider.

Serves GET /info?group=&song= from the enrichment file, the way the real
provider would: 200 with the detail on a match, 404 otherwise. Useful for
local development and for running the service without network access.
"""

from flask import Flask, jsonify, request

from song_library.core.exceptions import EnrichmentError, NotFoundError, SongLibraryError
from song_library.core.logger import get_logger
from song_library.songs.enrichment import EnrichmentSource

logger = get_logger(__name__)


def create_mock_provider_app(enrichment: EnrichmentSource) -> Flask:
    app = Flask(__name__)

    @app.route("/info", methods=["GET"])
    def info():
        group = request.args.get("group", "")
        song = request.args.get("song", "")

        if not group or not song:
            logger.debug("Missing request parameters: group or song.")
            return jsonify({"error": "missing parameters"}), 400

        try:
            detail = enrichment.lookup(group, song)
        except (NotFoundError, EnrichmentError) as e:
            logger.debug(f"Error fetching song details: {e.message}")
            return jsonify({"error": "song not found"}), 404
        except SongLibraryError as e:
            logger.error(f"Invalid enrichment record: {e.message}")
            return jsonify({"error": "internal server error"}), 500

        logger.info(f"Request to /info succeeded for group: {group}, song: {song}")
        return jsonify(detail.to_dict())

    return app
