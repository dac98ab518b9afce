"""Tests for day-label and date extraction from names."""
from datetime import date

import pytest

from casetrack.lib.patterns import (
    parse_day_number, parse_date, MAX_DAY_NUMBER_DIGITS,
    COMPACT_YEAR_MIN, COMPACT_YEAR_MAX,
)


class TestParseDayNumber:
    """Tests for parse_day_number()."""

    def test_day_zero(self):
        """'day0' is day 0."""
        assert parse_day_number('day0') == 0

    def test_day_three(self):
        """'day3' is day 3."""
        assert parse_day_number('day3') == 3

    def test_negative_capitalized(self):
        """Capitalized negative labels parse."""
        assert parse_day_number('Day-1') == -1

    def test_space_before_number(self):
        """A space may separate 'day' from the number."""
        assert parse_day_number('day 14') == 14

    def test_space_before_negative_number(self):
        """A space may precede a negative number."""
        assert parse_day_number('Day -1') == -1

    def test_uppercase(self):
        """Labels match case-insensitively."""
        assert parse_day_number('DAY7') == 7

    def test_label_inside_filename(self):
        """Labels are found inside longer filenames."""
        assert parse_day_number('day14_checkup.jpg') == 14
        assert parse_day_number('followup_day30.jpg') == 30

    def test_bare_numbers(self):
        """A bare integer is a day number."""
        assert parse_day_number('0') == 0
        assert parse_day_number('3') == 3
        assert parse_day_number('-1') == -1

    def test_bare_number_with_whitespace(self):
        """Surrounding whitespace is ignored."""
        assert parse_day_number(' 7 ') == 7

    def test_bare_number_at_digit_cap(self):
        """A bare number at the digit cap parses."""
        assert parse_day_number('9' * MAX_DAY_NUMBER_DIGITS) == int('9' * MAX_DAY_NUMBER_DIGITS)

    def test_bare_number_over_digit_cap(self):
        """A bare number over the digit cap is rejected."""
        assert parse_day_number('1' * (MAX_DAY_NUMBER_DIGITS + 1)) is None

    def test_compact_date_is_not_a_day(self):
        """An 8-digit compact date is never read as a day number."""
        assert parse_day_number('20250101') is None

    def test_dashed_date_is_not_a_day(self):
        """A dashed date is never read as a day number."""
        assert parse_day_number('2025-01-01') is None

    def test_no_match(self):
        """Names without a label or number return None."""
        assert parse_day_number('photo') is None
        assert parse_day_number('') is None
        assert parse_day_number('IMG_0001.jpg') is None

    @pytest.mark.parametrize('n', [-30, -1, 0, 1, 7, 90, 365, 3650])
    def test_label_value_is_exact(self, n):
        """Label values round-trip exactly."""
        assert parse_day_number(f'day{n}') == n


class TestParseDate:
    """Tests for parse_date()."""

    def test_dashed(self):
        """Dashed dates parse."""
        assert parse_date('2025-01-15') == date(2025, 1, 15)

    def test_dotted(self):
        """Dotted dates parse."""
        assert parse_date('2025.03.22') == date(2025, 3, 22)

    def test_single_digit_month_and_day(self):
        """Single-digit month and day parse."""
        assert parse_date('2025.3.2') == date(2025, 3, 2)

    def test_compact(self):
        """Compact YYYYMMDD dates parse."""
        assert parse_date('20250101') == date(2025, 1, 1)

    def test_date_inside_filename(self):
        """Dates are found inside longer filenames."""
        assert parse_date('IMG_20250115_123000.jpg') == date(2025, 1, 15)
        assert parse_date('visit 2024-12-31.jpg') == date(2024, 12, 31)

    def test_invalid_month_rejected(self):
        """Month 13 is rejected."""
        assert parse_date('2025-13-01') is None

    def test_invalid_day_rejected(self):
        """February 30 is rejected."""
        assert parse_date('2025-02-30') is None

    def test_compact_year_bounds(self):
        """Compact years at both range bounds parse."""
        assert parse_date(f'{COMPACT_YEAR_MIN}0101') == date(COMPACT_YEAR_MIN, 1, 1)
        assert parse_date(f'{COMPACT_YEAR_MAX}1231') == date(COMPACT_YEAR_MAX, 12, 31)

    def test_compact_year_out_of_range(self):
        """Compact years outside the range are rejected."""
        assert parse_date('19991231') is None
        assert parse_date('21000101') is None

    def test_compact_invalid_date(self):
        """An impossible compact date is rejected."""
        assert parse_date('20251301') is None

    def test_no_match(self):
        """Names without a date return None."""
        assert parse_date('day3') is None
        assert parse_date('hello') is None
        assert parse_date('3') is None
