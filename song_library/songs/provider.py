"""
External metadata provider client.

The provider answers GET /info?group=<group>&song=<song> with a JSON object
{"release_date": "YYYY-MM-DD", "text": "...", "link": "..."} and signals
absence through a non-200 status.

Every failure (network error, non-200 status, undecodable or wrongly shaped
body) is reported as UpstreamUnavailableError. A decode failure and a
"not found" answer are not told apart.

Usage:
    provider = ExternalProvider("http://localhost:8081", timeout=10)
    detail = provider.fetch("Muse", "Supermassive Black Hole")
"""

import requests

from song_library.core.exceptions import DataFormatError, UpstreamUnavailableError
from song_library.core.logger import get_logger
from song_library.songs.models import SongDetail

logger = get_logger(__name__)


INFO_PATH = "/info"


class ExternalProvider:
    """
    HTTP client for the external song metadata service.

    Attributes:
        base_url: Scheme, host and port of the provider, without trailing slash.
        timeout: Request timeout in seconds.
        session: The requests session used for every call.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        user_agent: str | None = None,
        session: requests.Session | None = None
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self.session = session or requests.Session()
        if user_agent:
            self.session.headers.update({"User-Agent": user_agent})

    @property
    def info_url(self) -> str:
        return f"{self.base_url}{INFO_PATH}"

    def fetch(self, group: str, title: str) -> SongDetail:
        """
        Look up a song's detail on the provider.

        Args:
            group: Performing group; percent-encoded as the "group" parameter.
            title: Song title; percent-encoded as the "song" parameter.

        Returns:
            The detail exactly as the provider reported it. The release date
            is not validated here.

        Raises:
            UpstreamUnavailableError: On transport failure, any status other
                                      than 200, or a body that is not a JSON
                                      object of string fields.
        """
        details = {"group": group, "song": title}

        try:
            response = self.session.get(
                self.info_url,
                params={"group": group, "song": title},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to request external API: {e}")
            raise UpstreamUnavailableError(
                f"Failed to request external API: {e}",
                details={**details, "original_error": str(e)}
            ) from e

        if response.status_code != requests.codes.ok:
            logger.warning(f"External API returned status code {response.status_code}")
            raise UpstreamUnavailableError(
                f"External API returned status code {response.status_code}",
                details={**details, "status_code": response.status_code}
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Failed to parse API response: {e}")
            raise UpstreamUnavailableError(
                f"Failed to parse API response: {e}",
                details={**details, "original_error": str(e)}
            ) from e

        try:
            return SongDetail.from_payload(payload)
        except DataFormatError as e:
            logger.error(f"Unexpected API response shape: {e.message}")
            raise UpstreamUnavailableError(
                f"Unexpected API response shape: {e.message}",
                details={**details, **e.details}
            ) from e
