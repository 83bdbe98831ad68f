"""
HTTP applications for song-library.

    - create_app: the public song API
    - create_mock_provider_app: a local stand-in for the external provider

Usage:
    from song_library.api import create_app

    app = create_app(database, resolver)
    app.run(host="0.0.0.0", port=8080, threaded=True)
"""

from song_library.api.app import create_app
from song_library.api.mock_provider import create_mock_provider_app

__all__ = [
    "create_app",
    "create_mock_provider_app",
]
