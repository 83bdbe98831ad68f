"""Test the external provider client"""

from unittest.mock import Mock

import pytest
import requests

from song_library.core.exceptions import UpstreamUnavailableError
from song_library.songs.models import SongDetail
from song_library.songs.provider import ExternalProvider


def make_response(status_code=200, payload=None, json_error=None):
    response = Mock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    session = Mock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def provider(session):
    return ExternalProvider("http://provider.test:8081/", timeout=5, user_agent="tests", session=session)


class TestExternalProvider:
    """Test ExternalProvider.fetch()"""

    def test_success(self, provider, session):
        session.get.return_value = make_response(payload={
            "release_date": "2006-07-14", "text": "la\nla", "link": "http://x",
        })

        detail = provider.fetch("Muse", "Supermassive Black Hole")

        assert detail == SongDetail(release_date="2006-07-14", text="la\nla", link="http://x")

    def test_request_shape(self, provider, session):
        session.get.return_value = make_response(payload={})

        provider.fetch("Guns N' Roses", "Sweet Child O' Mine & more")

        session.get.assert_called_once_with(
            "http://provider.test:8081/info",
            params={"group": "Guns N' Roses", "song": "Sweet Child O' Mine & more"},
            timeout=5
        )

    def test_query_parameters_are_percent_encoded(self):
        prepared = requests.Request(
            "GET", "http://provider.test/info", params={"group": "AC/DC", "song": "T.N.T & Co"}
        ).prepare()

        assert prepared.url == "http://provider.test/info?group=AC%2FDC&song=T.N.T+%26+Co"

    def test_user_agent_header(self, session):
        ExternalProvider("http://provider.test", user_agent="song-library/test", session=session)
        assert session.headers["User-Agent"] == "song-library/test"

    def test_transport_error(self, provider, session):
        session.get.side_effect = requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(UpstreamUnavailableError):
            provider.fetch("Muse", "Uprising")

    def test_timeout(self, provider, session):
        session.get.side_effect = requests.exceptions.Timeout("timed out")

        with pytest.raises(UpstreamUnavailableError):
            provider.fetch("Muse", "Uprising")

    @pytest.mark.parametrize("status_code", [201, 204, 404, 500, 503])
    def test_non_success_status(self, provider, session, status_code):
        session.get.return_value = make_response(status_code=status_code, payload={})

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            provider.fetch("Muse", "Uprising")

        assert exc_info.value.details["status_code"] == status_code

    def test_undecodable_body(self, provider, session):
        session.get.return_value = make_response(json_error=ValueError("Expecting value"))

        with pytest.raises(UpstreamUnavailableError):
            provider.fetch("Muse", "Uprising")

    def test_wrongly_shaped_body(self, provider, session):
        session.get.return_value = make_response(payload=["2006-07-14", "text", "link"])

        with pytest.raises(UpstreamUnavailableError):
            provider.fetch("Muse", "Uprising")

    def test_non_string_field(self, provider, session):
        session.get.return_value = make_response(payload={"release_date": 2006})

        with pytest.raises(UpstreamUnavailableError):
            provider.fetch("Muse", "Uprising")
