"""Test configuration and fixtures"""

import json
import tempfile
from datetime import date
from pathlib import Path
from unittest.mock import Mock

import pytest

from song_library.core.database import SongDatabase
from song_library.songs.enrichment import EnrichmentSource
from song_library.songs.models import SongDetail
from song_library.songs.provider import ExternalProvider
from song_library.songs.resolver import SongResolver


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def database(temp_dir):
    """Fresh song database in a temporary directory"""
    db = SongDatabase(temp_dir / "songs.db", max_open_connections=4, max_idle_connections=2)
    yield db
    db.close()


@pytest.fixture
def sample_override_data():
    """Contents of an enrichment file"""
    return {
        "group": "Queen",
        "song": "Bohemian Rhapsody",
        "release_date": "1975-10-31",
        "text": "Is this the real life?\nIs this just fantasy?",
        "link": "https://example.com/queen",
    }


@pytest.fixture
def enrichment_file(temp_dir, sample_override_data):
    """Enrichment file holding the sample override"""
    path = temp_dir / "song_enrichment.json"
    path.write_text(json.dumps(sample_override_data), encoding="utf-8")
    return path


@pytest.fixture
def enrichment(enrichment_file):
    return EnrichmentSource(enrichment_file)


@pytest.fixture
def provider_detail():
    """Detail returned by the external provider"""
    return SongDetail(
        release_date="2006-07-14",
        text="Ooh baby, don't you know I suffer?\nOoh baby, can you hear me moan?",
        link="http://x",
    )


@pytest.fixture
def mock_provider(provider_detail):
    """External provider that answers every lookup with provider_detail"""
    provider = Mock(spec=ExternalProvider)
    provider.fetch.return_value = provider_detail
    return provider


@pytest.fixture
def resolver(database, mock_provider, enrichment):
    return SongResolver(database, mock_provider, enrichment)


@pytest.fixture
def stored_song(database):
    """A song already present in the database"""
    return database.create_song(
        group="Radiohead",
        title="Creep",
        release_date=date(1992, 9, 21),
        text="When you were here before\nCouldn't look you in the eye\nYou're just like an angel",
        link="https://example.com/creep",
    )
