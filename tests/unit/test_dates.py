"""
Unit tests for exam date parsing and formatting.

Tests cover:
- Held date ("Month YYYY") validation
- ISO and long-form exam date parsing
- Storage and display formats
"""

import pytest
from datetime import date

from portal.src.utils.dates import (
    BLANK,
    format_long_date,
    format_stored_date,
    is_iso_date,
    is_valid_held_date,
    parse_exam_date,
)


# ============================================================================
# HELD DATE
# ============================================================================


class TestHeldDate:
    """Tests for the Month YYYY held date."""

    @pytest.mark.parametrize("value", ["January 2026", "April 2025", "December 1999"])
    def test_valid_held_dates(self, value):
        """Test full English month names followed by a four-digit year are accepted."""
        assert is_valid_held_date(value)

    @pytest.mark.parametrize("value", ["april 2025", "Apr 2025", "April 25", "2025-04", "", "April  2025"])
    def test_invalid_held_dates(self, value):
        """Test abbreviations, lower case and other formats are rejected."""
        assert not is_valid_held_date(value)


# ============================================================================
# EXAM DATES
# ============================================================================


class TestExamDateParsing:
    """Tests for exam start and end date parsing."""

    def test_parse_iso(self):
        """Test ISO dates parse."""
        assert parse_exam_date("2025-04-05") == date(2025, 4, 5)

    def test_parse_long_form(self):
        """Test dd MMMM yyyy and d MMMM yyyy parse."""
        assert parse_exam_date("05 April 2025") == date(2025, 4, 5)
        assert parse_exam_date("5 April 2025") == date(2025, 4, 5)

    def test_parse_month_case_insensitive(self):
        """Test month names match regardless of case."""
        assert parse_exam_date("5 april 2025") == date(2025, 4, 5)

    @pytest.mark.parametrize("value", [None, "", "2025-02-30", "31 June 2025", "5 Apr 2025", "tomorrow"])
    def test_unparseable_dates(self, value):
        """Test impossible or malformed dates return None."""
        assert parse_exam_date(value) is None

    def test_is_iso_date_rejects_impossible_day(self):
        """Test ISO check validates the calendar, not just the pattern."""
        assert is_iso_date("2024-02-29")
        assert not is_iso_date("2025-02-29")
        assert not is_iso_date("5 April 2025")


class TestExamDateFormatting:
    """Tests for stored and printed date formats."""

    def test_stored_format_pads_day(self):
        """Test storage format zero-pads the day."""
        assert format_stored_date(date(2025, 4, 5)) == "05 April 2025"

    def test_long_format_drops_padding(self):
        """Test documents print the day without padding."""
        assert format_long_date("05 April 2025") == "5 April 2025"
        assert format_long_date("2025-06-14") == "14 June 2025"

    def test_long_format_blank_when_missing(self):
        """Test missing dates print as a blank."""
        assert format_long_date(None) == BLANK
        assert format_long_date("not a date") == BLANK
