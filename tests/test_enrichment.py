"""Test the static enrichment source"""

import json

import pytest

from song_library.core.exceptions import DataFormatError, EnrichmentError, NotFoundError
from song_library.songs.enrichment import EnrichmentSource
from song_library.songs.models import SongDetail


BASE_DETAIL = SongDetail(release_date="2000-01-01", text="base text", link="http://base")


class TestOverlay:
    """Test EnrichmentSource.overlay()"""

    def test_match_replaces_all_fields(self, enrichment, sample_override_data):
        result = enrichment.overlay(BASE_DETAIL, "Queen", "Bohemian Rhapsody")

        assert result == SongDetail(
            release_date=sample_override_data["release_date"],
            text=sample_override_data["text"],
            link=sample_override_data["link"],
        )

    def test_match_replaces_with_empty_values(self, temp_dir):
        path = temp_dir / "override.json"
        path.write_text(json.dumps({
            "group": "Queen", "song": "Bohemian Rhapsody",
            "release_date": "1975-10-31", "text": "", "link": "",
        }), encoding="utf-8")

        result = EnrichmentSource(path).overlay(BASE_DETAIL, "Queen", "Bohemian Rhapsody")

        assert result == SongDetail(release_date="1975-10-31", text="", link="")

    @pytest.mark.parametrize("group, title", [
        ("Queen", "Radio Ga Ga"),
        ("queen", "Bohemian Rhapsody"),
        ("Muse", "Bohemian Rhapsody"),
    ])
    def test_mismatch_leaves_detail_unchanged(self, enrichment, group, title):
        assert enrichment.overlay(BASE_DETAIL, group, title) == BASE_DETAIL

    def test_missing_file_is_absorbed(self, temp_dir):
        source = EnrichmentSource(temp_dir / "missing.json")
        assert source.overlay(BASE_DETAIL, "Queen", "Bohemian Rhapsody") == BASE_DETAIL

    def test_invalid_json_is_absorbed(self, temp_dir):
        path = temp_dir / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        assert EnrichmentSource(path).overlay(BASE_DETAIL, "Queen", "Bohemian Rhapsody") == BASE_DETAIL

    def test_invalid_utf8_is_absorbed(self, temp_dir):
        path = temp_dir / "binary.json"
        path.write_bytes(b'{"group": "\xff\xfe"}')

        assert EnrichmentSource(path).overlay(BASE_DETAIL, "Queen", "Bohemian Rhapsody") == BASE_DETAIL

    def test_unparsable_override_date_is_absorbed(self, temp_dir, sample_override_data):
        path = temp_dir / "bad_date.json"
        path.write_text(json.dumps({**sample_override_data, "release_date": "31/10/1975"}), encoding="utf-8")

        assert EnrichmentSource(path).overlay(BASE_DETAIL, "Queen", "Bohemian Rhapsody") == BASE_DETAIL

    def test_file_is_reread_on_every_call(self, enrichment_file, sample_override_data):
        source = EnrichmentSource(enrichment_file)
        assert source.overlay(BASE_DETAIL, "Muse", "Uprising") == BASE_DETAIL

        enrichment_file.write_text(
            json.dumps({**sample_override_data, "group": "Muse", "song": "Uprising"}),
            encoding="utf-8"
        )

        assert source.overlay(BASE_DETAIL, "Muse", "Uprising").link == sample_override_data["link"]


class TestLoad:
    """Test EnrichmentSource.load()"""

    def test_load(self, enrichment):
        override = enrichment.load()
        assert override.group == "Queen"
        assert override.song == "Bohemian Rhapsody"

    def test_non_object(self, temp_dir):
        path = temp_dir / "list.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(EnrichmentError):
            EnrichmentSource(path).load()

    def test_invalid_utf8(self, temp_dir):
        path = temp_dir / "binary.json"
        path.write_bytes(b"\xff\xfe")

        with pytest.raises(EnrichmentError):
            EnrichmentSource(path).load()

    def test_non_string_field(self, temp_dir, sample_override_data):
        path = temp_dir / "typed.json"
        path.write_text(json.dumps({**sample_override_data, "text": ["a", "b"]}), encoding="utf-8")

        with pytest.raises(EnrichmentError):
            EnrichmentSource(path).load()


class TestLookup:
    """Test EnrichmentSource.lookup()"""

    def test_match(self, enrichment):
        detail = enrichment.lookup("Queen", "Bohemian Rhapsody")
        assert detail.release_date == "1975-10-31"

    def test_mismatch_is_not_found(self, enrichment):
        with pytest.raises(NotFoundError):
            enrichment.lookup("Queen", "Radio Ga Ga")

    def test_missing_file(self, temp_dir):
        with pytest.raises(EnrichmentError):
            EnrichmentSource(temp_dir / "missing.json").lookup("Queen", "Bohemian Rhapsody")

    def test_bad_date(self, temp_dir, sample_override_data):
        path = temp_dir / "bad_date.json"
        path.write_text(json.dumps({**sample_override_data, "release_date": "soon"}), encoding="utf-8")

        with pytest.raises(DataFormatError):
            EnrichmentSource(path).lookup("Queen", "Bohemian Rhapsody")
