"""Tests for record validation."""

import pytest

from funding_crawler.core.models import ProgramRecord
from funding_crawler.core.validation import is_footer_text, is_valid_program, rejection_reason


def make_program(**kwargs) -> ProgramRecord:
    """Create a ProgramRecord with test defaults."""
    defaults = {
        "name": "Small Business Loan",
        "source": "https://www.sefa.org.za/products/small-business-loan",
    }
    defaults.update(kwargs)
    return ProgramRecord(**defaults)


class TestRejectionReason:
    """Tests for rejection_reason function."""

    def test_cdata_name(self):
        """Test markup artifacts in the name are rejected."""
        program = make_program(name="<![CDATA[ x ]]> Funding Programme", funding_amount="R5 million")
        assert rejection_reason(program) == "markup_in_name"

    @pytest.mark.parametrize("name", ["", "Fund", "Untitled program"])
    def test_short_or_placeholder_name(self, name):
        """Test short, empty or placeholder names are rejected."""
        assert rejection_reason(make_program(name=name, funding_amount="R5 million")) == "name_too_short"

    def test_name_and_amount_only(self):
        """Test a name plus a funding amount is enough content."""
        program = make_program(summary="", funding_amount="R5 million")
        assert rejection_reason(program) == ""
        assert is_valid_program(program) is True

    def test_no_content(self):
        """Test a name alone is not enough."""
        assert rejection_reason(make_program()) == "no_content"

    def test_about_page(self):
        """Test about pages are rejected."""
        program = make_program(name="About the agency", summary="A" * 40)
        assert rejection_reason(program) == "non_funding_page"

    def test_navigation_menu(self):
        """Test navigation menu names are rejected."""
        program = make_program(name="Apply for funding today", summary="A" * 40)
        assert rejection_reason(program) == "navigation_menu"

    def test_footer_eligibility(self):
        """Test short footer-like eligibility is rejected."""
        program = make_program(eligibility="Copyright 2024 All rights reserved.", summary="A" * 40)
        assert rejection_reason(program) == "footer_eligibility"

    def test_expired_deadline(self):
        """Test expired programs are rejected."""
        program = make_program(deadlines="Applications closed", summary="A" * 40)
        assert rejection_reason(program) == "expired"

    def test_extended_deadline_accepted(self):
        """Test an extended future deadline keeps the program."""
        program = make_program(funding_amount="R1 million", deadlines="Deadline extended to 30 June 2099")
        assert rejection_reason(program) == ""

    def test_long_eligibility_is_content(self):
        """Test substantial eligibility alone is enough content."""
        eligibility = "Applicants must be South African citizens with a registered business."
        assert rejection_reason(make_program(eligibility=eligibility)) == ""

    def test_summary_is_content(self):
        """Test a substantial summary is enough content."""
        summary = "Working capital loans for small and medium enterprises."
        assert is_valid_program(make_program(summary=summary)) is True


class TestIsFooterText:
    """Tests for is_footer_text function."""

    def test_bee_word(self):
        """Test BEE matches only as a whole word."""
        assert is_footer_text("BEE compliance") is True
        assert is_footer_text("Beekeeping grant") is False

    def test_empty(self):
        """Test empty text is not footer text."""
        assert is_footer_text("") is False
