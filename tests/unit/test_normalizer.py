"""Tests for text normalization utilities."""

import pytest

from funding_crawler.core.normalizer import (
    clean_eligibility,
    clean_text,
    extract_clean_summary,
    filter_marketing_content,
    normalize_text,
    strip_footer_boilerplate,
    strip_title_decorations,
)


class TestNormalizeText:
    """Tests for normalize_text function."""

    def test_removes_cdata_and_decodes_entities(self):
        """Test CDATA removal and entity decoding."""
        assert normalize_text("<![CDATA[var x = 1;]]>Hello&nbsp;&amp; world") == "Hello & world"

    def test_collapses_whitespace(self):
        """Test whitespace runs become single spaces."""
        assert normalize_text("  Small \n\n business\t loans  ") == "Small business loans"

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input(self, value):
        """Test empty input gives empty output."""
        assert normalize_text(value) == ""


class TestCleanText:
    """Tests for clean_text function."""

    def test_removes_scripts_and_tags(self):
        """Test script blocks and tags are removed."""
        html = "<script>var x = 1;</script><p>Small   business <b>loans</b></p>"
        assert clean_text(html) == "Small business loans"

    def test_removes_copyright_noise(self):
        """Test footer noise span is removed from page text."""
        cleaned = clean_text("Fund details. Copyright 2024 Agency. All rights reserved. More text")

        assert "Copyright" not in cleaned
        assert cleaned.startswith("Fund details.")
        assert cleaned.endswith("More text")

    def test_decodes_extra_entities(self):
        """Test hex entities are decoded."""
        assert clean_text("SME&#x27;s &#x2F; startups") == "SME's / startups"

    def test_empty_input(self):
        """Test empty input gives empty output."""
        assert clean_text(None) == ""


class TestFilterMarketingContent:
    """Tests for filter_marketing_content function."""

    def test_removes_call_to_action(self):
        """Test call-to-action phrase is removed."""
        assert filter_marketing_content("Grants for SMEs. Click here") == "Grants for SMEs."

    def test_plain_text_unchanged(self):
        """Test text without marketing phrases is unchanged."""
        text = "Loans for black-owned manufacturers."
        assert filter_marketing_content(text) == text


class TestStripFooterBoilerplate:
    """Tests for strip_footer_boilerplate function."""

    def test_strips_copyright_to_end(self):
        """Test copyright span is removed to the end of the text."""
        text = "Open to SMEs. Copyright 2024 All rights reserved."
        assert strip_footer_boilerplate(text) == "Open to SMEs."

    def test_strips_developed_by(self):
        """Test developer credit is removed."""
        assert strip_footer_boilerplate("Open to all. Developed by Agency") == "Open to all."


class TestCleanEligibility:
    """Tests for clean_eligibility function."""

    def test_short_remainder_is_discarded(self):
        """Test eligibility shorter than the minimum after cleanup is cleared."""
        assert clean_eligibility("Open to SMEs. Copyright 2024 All rights reserved.") == ""

    def test_long_remainder_is_kept(self):
        """Test eligibility that stays long enough survives footer removal."""
        text = (
            "Open to registered SMEs with an annual turnover below R50 million. "
            "Copyright 2024 All rights reserved."
        )
        assert clean_eligibility(text) == "Open to registered SMEs with an annual turnover below R50 million."

    def test_empty_input(self):
        """Test empty input gives empty output."""
        assert clean_eligibility("") == ""


class TestExtractCleanSummary:
    """Tests for extract_clean_summary function."""

    def test_trims_to_sentence_boundary(self):
        """Test long summary ends on a full stop within the limit."""
        text = "This fund supports black-owned manufacturers. " * 10
        summary = extract_clean_summary(text)

        assert len(summary) <= 300
        assert summary.endswith(".")

    def test_drops_duplicated_eligibility(self):
        """Test summary stops where the eligibility text starts."""
        eligibility = "Applicants must be South African citizens and own at least 51 percent of the business."
        text = f"Loans for small firms. {eligibility} Contact us today for more details about it."

        assert extract_clean_summary(text, eligibility) == "Loans for small firms."

    def test_short_summary_unchanged(self):
        """Test short summary passes through."""
        assert extract_clean_summary("Working capital for SMEs.") == "Working capital for SMEs."

    def test_empty_input(self):
        """Test empty input gives empty output."""
        assert extract_clean_summary("") == ""


class TestStripTitleDecorations:
    """Tests for strip_title_decorations function."""

    def test_strips_slashes(self):
        """Test decorative slashes are removed."""
        assert strip_title_decorations("// Direct Lending //") == "Direct Lending"

    def test_plain_title(self):
        """Test plain title is unchanged."""
        assert strip_title_decorations("Bridging Finance") == "Bridging Finance"
