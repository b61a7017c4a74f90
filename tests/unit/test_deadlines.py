"""Tests for deadline classification."""

from datetime import date

import pytest

from funding_crawler.core.deadlines import is_deadline_expired, parse_deadline_date

TODAY = date(2025, 6, 1)


class TestParseDeadlineDate:
    """Tests for parse_deadline_date function."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("15 Jan 2025", date(2025, 1, 15)),
            ("Closing 3 September 2025", date(2025, 9, 3)),
            ("2025-01-15", date(2025, 1, 15)),
            ("2025/1/5", date(2025, 1, 5)),
            ("15/01/2025", date(2025, 1, 15)),
            ("1.3.2025", date(2025, 3, 1)),
        ],
    )
    def test_supported_formats(self, text, expected):
        """Test each supported date format."""
        assert parse_deadline_date(text) == expected

    def test_invalid_calendar_date(self):
        """Test impossible dates are not parsed."""
        assert parse_deadline_date("2025-02-30") is None

    def test_month_name_format_wins(self):
        """Test the day-month-name format is tried first."""
        assert parse_deadline_date("2025-01-01 or 1 December 2026") == date(2026, 12, 1)

    def test_no_date(self):
        """Test text without a date."""
        assert parse_deadline_date("end of the financial year") is None


class TestIsDeadlineExpired:
    """Tests for is_deadline_expired function."""

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_is_not_expired(self, text):
        """Test empty deadline is treated as ongoing."""
        assert is_deadline_expired(text, today=TODAY) is False

    def test_expired_keyword(self):
        """Test explicit closed keyword."""
        assert is_deadline_expired("Applications closed", today=TODAY) is True

    def test_expired_keyword_beats_future_date(self):
        """Test keywords take precedence over dates."""
        assert is_deadline_expired("Closed. Was due 2030-01-01", today=TODAY) is True

    def test_active_keyword(self):
        """Test rolling keyword means not expired."""
        assert is_deadline_expired("Open on a rolling basis", today=TODAY) is False

    @pytest.mark.parametrize(
        "text",
        [
            "Deadline extended to 30 June 2030",
            "Funding intended for SMEs, closing 30 June 2030",
            "Certified documents must be enclosed by 2030-06-30",
            "Recommended submission before 30.06.2030",
            "Open ended",
            "Open-ended call",
        ],
    )
    def test_keywords_match_whole_words(self, text):
        """Test expired keywords inside longer words do not close a live program."""
        assert is_deadline_expired(text, today=TODAY) is False

    @pytest.mark.parametrize("text", ["Applications have ended", "Call closed.", "EXPIRED"])
    def test_whole_word_expired_keywords(self, text):
        """Test standalone expired keywords still close a program."""
        assert is_deadline_expired(text, today=TODAY) is True

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Closing date: 31 May 2025", True),
            ("Closing date: 1 June 2025", False),
            ("Closing date: 2 June 2025", False),
            ("Closing date: 2025-05-31", True),
            ("Closing date: 2025-06-01", False),
            ("Closing date: 2025-06-02", False),
            ("Closing date: 31.05.2025", True),
            ("Closing date: 01/06/2025", False),
            ("Closing date: 02-06-2025", False),
        ],
    )
    def test_date_relative_to_today(self, text, expected):
        """Test yesterday is expired while today and tomorrow are open, in every format."""
        assert is_deadline_expired(text, today=TODAY) is expected

    def test_unrecognised_text(self):
        """Test unrecognised text fails open."""
        assert is_deadline_expired("end of the financial year", today=TODAY) is False
