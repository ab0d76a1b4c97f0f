"""Unit tests for Brazilian phone extraction - pure functions, no browser."""

import pytest

from instaleads.core.phones import (
    PhoneCandidate,
    candidates_from_url,
    decode_repeatedly,
    extract_brazil_phones,
    format_pt_br,
    merge_candidates,
    pick_primary,
    to_brazil_e164,
)
from instaleads.models.phone import PhoneConfidence, PhoneDetail


class TestNormalization:
    """Test E.164 normalization rules."""

    @pytest.mark.parametrize("raw,expected", [
        ("(11) 91234-5678", "+5511912345678"),
        ("+55 11 91234-5678", "+5511912345678"),
        ("11 1234-5678", "+551112345678"),
        ("011 91234-5678", "+5511912345678"),
        ("+55 011 91234-5678", "+5511912345678"),
        ("+55 0 11 1234-5678", "+551112345678"),
        ("(99) 8765-4321", "+559987654321"),
    ])
    def test_valid_numbers(self, raw, expected):
        assert to_brazil_e164(raw) == expected

    @pytest.mark.parametrize("raw", [
        "123456789",        # 9 digits
        "119123456780",     # 12 digits, no trunk zero
        "1191234567801",    # 13 digits, no country code
        "(10) 91234-5678",  # DDD below 11
        "(11) 01234-5678",  # subscriber starts with 0
        "55 91234-5678",    # 8 digits once the country code is dropped
        "55119123456",      # truncated country-coded number
        "",
        "sem número",
    ])
    def test_rejected_numbers(self, raw):
        assert to_brazil_e164(raw) is None

    def test_format_mobile(self):
        assert format_pt_br("+5511912345678") == "+55 (11) 91234-5678"

    def test_format_landline(self):
        assert format_pt_br("+551112345678") == "+55 (11) 1234-5678"

    @pytest.mark.parametrize("e164", ["+5511912345678", "+551112345678", "+5599987654321"])
    def test_idempotent(self, e164):
        """Normalizing E.164 or its pt-BR rendering yields the same number."""
        assert to_brazil_e164(e164) == e164
        assert to_brazil_e164(format_pt_br(e164)) == e164


class TestDecoding:
    """Test percent-decoding passes."""

    def test_double_encoded(self):
        assert decode_repeatedly("https%253A%252F%252Fwa.me") == "https://wa.me"

    def test_stops_after_two_passes(self):
        assert decode_repeatedly("%25253A") == "%3A"

    def test_plain_text_unchanged(self):
        assert decode_repeatedly("plain text") == "plain text"


class TestUrlCandidates:
    """Test candidate harvesting from links."""

    def test_wa_me_path_is_high(self):
        found = candidates_from_url("https://wa.me/5511987654321", "profile_link")
        wa = [c for c in found if c.source == "profile_link_wa_path"]
        assert wa and wa[0].confidence == PhoneConfidence.HIGH

    def test_whatsapp_phone_param_is_high(self):
        found = candidates_from_url(
            "https://api.whatsapp.com/send?phone=5511987654321&text=Oi", "profile_link"
        )
        param = [c for c in found if c.source == "profile_link_wa_phone_param"]
        assert param and param[0].confidence == PhoneConfidence.HIGH

    def test_generic_phone_param_is_medium(self):
        found = candidates_from_url("https://example.com/contato?phone=11987654321", "bio_link_1")
        param = [c for c in found if c.source == "bio_link_1_phone_param"]
        assert param and param[0].confidence == PhoneConfidence.MEDIUM

    def test_depth_limit(self):
        assert candidates_from_url("https://wa.me/5511987654321", "x", depth=3) == []

    def test_malformed_url_does_not_raise(self):
        assert candidates_from_url("http://[::1", "x") == []


class TestMerge:
    """Test deduplication and confidence merging."""

    @pytest.mark.parametrize("order", [(0, 1), (1, 0)])
    def test_max_confidence_and_union(self, order):
        candidates = [
            PhoneCandidate("11912345678", "bio_text", PhoneConfidence.LOW),
            PhoneCandidate("(11) 91234-5678", "profile_link_wa_path", PhoneConfidence.HIGH),
        ]
        merged = merge_candidates([candidates[i] for i in order])

        assert len(merged) == 1
        assert merged[0].confidence == PhoneConfidence.HIGH
        assert merged[0].sources == ["bio_text", "profile_link_wa_path"]

    def test_invalid_candidates_dropped(self):
        merged = merge_candidates([PhoneCandidate("12345", "bio_text", PhoneConfidence.LOW)])
        assert merged == []

    def test_sorted_by_e164(self):
        merged = merge_candidates([
            PhoneCandidate("21987654321", "a", PhoneConfidence.LOW),
            PhoneCandidate("11987654321", "b", PhoneConfidence.LOW),
        ])
        assert [d.phone_e164 for d in merged] == ["+5511987654321", "+5521987654321"]


class TestPrimary:
    """Test primary phone selection."""

    def _detail(self, e164, confidence, sources):
        return PhoneDetail(
            phone_pt_br=format_pt_br(e164),
            phone_e164=e164,
            confidence=confidence,
            sources=sources,
        )

    def test_empty(self):
        assert pick_primary([]) is None

    def test_confidence_wins(self):
        low = self._detail("+5511911111111", PhoneConfidence.LOW, ["a", "b", "c"])
        high = self._detail("+5599999999999", PhoneConfidence.HIGH, ["d"])
        assert pick_primary([low, high]) is high

    def test_source_count_breaks_confidence_tie(self):
        one = self._detail("+5511911111111", PhoneConfidence.MEDIUM, ["a"])
        two = self._detail("+5521922222222", PhoneConfidence.MEDIUM, ["a", "b"])
        assert pick_primary([one, two]) is two

    def test_lexicographic_tie_break(self):
        larger = self._detail("+5521922222222", PhoneConfidence.MEDIUM, ["a"])
        smaller = self._detail("+5511911111111", PhoneConfidence.MEDIUM, ["b"])
        assert pick_primary([larger, smaller]).phone_e164 == "+5511911111111"


class TestExtractBrazilPhones:
    """Test the full engine over profile-shaped input."""

    def test_bio_only(self):
        result = extract_brazil_phones(bio="Fale comigo: (11) 91234-5678")

        assert len(result.phones_details) == 1
        detail = result.phones_details[0]
        assert detail.phone_e164 == "+5511912345678"
        assert detail.confidence == PhoneConfidence.LOW
        assert detail.sources == ["bio_text"]
        assert result.primary_phone_e164 == "+5511912345678"
        assert result.primary_phone_pt_br == "+55 (11) 91234-5678"
        assert result.primary_phone_confidence == PhoneConfidence.LOW

    def test_wa_me_bio_link(self):
        result = extract_brazil_phones(bio_links=["https://wa.me/5511987654321"])

        detail = result.phones_details[0]
        assert detail.phone_e164 == "+5511987654321"
        assert detail.confidence == PhoneConfidence.HIGH
        assert any(source.endswith("_wa_path") for source in detail.sources)
        assert all(source.startswith("bio_link_1") for source in detail.sources)

    def test_wa_me_without_scheme(self):
        result = extract_brazil_phones(bio_links=["wa.me/5511987654321"])
        assert result.primary_phone_confidence == PhoneConfidence.HIGH

    def test_truncated_wa_me_number_rejected(self):
        result = extract_brazil_phones(link="https://wa.me/55119123456")

        assert result.phones_e164 == []
        assert result.primary_phone_e164 is None

    def test_redirect_wrapped_wa_link(self):
        result = extract_brazil_phones(
            link="https://l.instagram.com/?u=https%3A%2F%2Fwa.me%2F5511987654321&e=AT0"
        )

        detail = result.phones_details[0]
        assert detail.confidence == PhoneConfidence.HIGH
        assert "profile_link_nested_wa_path" in detail.sources

    def test_link_beats_bio(self):
        result = extract_brazil_phones(
            bio="Loja: (11) 91234-5678",
            link="https://wa.me/5511987654321",
        )

        assert result.phones_e164 == ["+5511912345678", "+5511987654321"]
        assert result.primary_phone_e164 == "+5511987654321"

    def test_same_number_merges_across_sources(self):
        result = extract_brazil_phones(
            bio="WhatsApp 11 98765-4321",
            bio_links=["https://wa.me/5511987654321"],
        )

        assert len(result.phones_details) == 1
        detail = result.phones_details[0]
        assert detail.confidence == PhoneConfidence.HIGH
        assert "bio_text" in detail.sources
        assert "bio_link_1_wa_path" in detail.sources

    def test_medium_tie_break_is_deterministic(self):
        result = extract_brazil_phones(
            link="https://example.com/contato?a=21987654321&b=11912345678"
        )

        assert result.phones_e164 == ["+5511912345678", "+5521987654321"]
        assert {d.confidence for d in result.phones_details} == {PhoneConfidence.MEDIUM}
        assert result.primary_phone_e164 == "+5511912345678"

    def test_bio_link_index_counts_skipped_entries(self):
        result = extract_brazil_phones(bio_links=[None, "https://wa.me/5511987654321"])
        assert "bio_link_2_wa_path" in result.phones_details[0].sources

    def test_nothing_found(self):
        result = extract_brazil_phones(bio="Sem telefone aqui", link="not a url ::")

        assert result.phones_details == []
        assert result.primary_phone_e164 is None
        assert result.primary is None

    def test_primary_property(self):
        result = extract_brazil_phones(bio="(11) 91234-5678")
        assert result.primary.phone_e164 == "+5511912345678"
