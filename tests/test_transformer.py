"""Unit tests for count normalization and model transformation."""

import pytest

from conftest import load_fixture_html
from instaleads.core.parser import ParseResult, parse_instagram_profile
from instaleads.core.transformer import normalize_count, transform_profile, transform_search_rows
from instaleads.models.search import ResultStatus


PROFILE_URL = "https://www.instagram.com/lojadamaria/?hl=pt"


class TestNormalizeCount:
    """Test English and pt-BR count strings."""

    @pytest.mark.parametrize("raw,expected", [
        ("1.2K", 1200),
        ("2.5K", 2500),
        ("1,2 mil seguidores", 1200),
        ("3,4 mi", 3400000),
        ("1.5M", 1500000),
        ("2 milhões", 2000000),
        ("1.234 publicações", 1234),
        ("1,234 followers", 1234),
        ("321 seguindo", 321),
        ("0", 0),
    ])
    def test_counts(self, raw, expected):
        assert normalize_count(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "seguidores", "   "])
    def test_unparseable_is_zero(self, raw):
        assert normalize_count(raw) == 0


class TestTransformProfile:
    """Test profile dicts becoming validated models."""

    def test_fixture_profile(self):
        raw = parse_instagram_profile(load_fixture_html("instagram_profile")).rows[0]
        profile = transform_profile(raw, PROFILE_URL)

        assert profile.username == "lojadamaria"
        assert profile.name == "Loja da Maria"
        assert profile.posts_count == 150
        assert profile.followers_count == 1200
        assert profile.following_count == 321
        assert profile.url == PROFILE_URL
        assert profile.link == "https://wa.me/5511987654321"
        assert profile.link_title == "wa.me/5511987654321"
        assert [link.url for link in profile.bio_links] == [
            "https://wa.me/5511987654321",
            "https://linktr.ee/lojadamaria",
        ]
        assert all(link.link_type == "external" for link in profile.bio_links)
        assert profile.extracted_at.tzinfo is not None

    def test_meta_only_profile(self):
        raw = parse_instagram_profile(load_fixture_html("instagram_meta_only")).rows[0]
        profile = transform_profile(raw, "https://www.instagram.com/docesdaana/?hl=pt")

        assert profile.followers_count == 2500
        assert profile.bio == ""
        assert profile.link is None
        assert profile.bio_links == []

    def test_strips_at_sign(self):
        profile = transform_profile({"username": "@lojadamaria"}, PROFILE_URL)
        assert profile.username == "lojadamaria"
        assert profile.posts_count == 0

    def test_camel_case_dump(self):
        profile = transform_profile({"username": "lojadamaria", "followers_count_raw": "10"}, PROFILE_URL)
        data = profile.model_dump(by_alias=True)
        assert data["followersCount"] == 10
        assert "bioLinks" in data


class TestTransformSearchRows:
    """Test tagging of parsed result rows."""

    def test_rows_tagged(self):
        parse_result = ParseResult(rows=[
            {"title": "A", "url": "https://a.com/", "description": "desc"},
            {"title": "B", "url": "https://b.com/"},
        ])

        rows = transform_search_rows(parse_result, "loja sp", 2)

        assert [r.url for r in rows] == ["https://a.com/", "https://b.com/"]
        assert rows[1].description == ""
        assert all(r.status == ResultStatus.PENDING for r in rows)
        assert all(r.page == 2 and r.query == "loja sp" and r.source == "google" for r in rows)
        assert rows[0].extracted_at == rows[1].extracted_at

    def test_empty(self):
        assert transform_search_rows(ParseResult(rows=[]), "q", 1) == []
