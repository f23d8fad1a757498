"""
Tests for relative posted-date normalization

Tests cover:
- Day/week/month units produce an ISO date
- Hour/minute units produce an ISO datetime
- Unrecognized text passes through unchanged
"""

from datetime import datetime, timezone

from jobcrawl.services.dates import normalize_posted_date

NOW = datetime(2026, 10, 16, 12, 30, 45, tzinfo=timezone.utc)


class TestDayGranularity:
    def test_days(self):
        """"2 days" is the date exactly two days before now."""
        assert normalize_posted_date("2 days", NOW) == "2026-10-14"

    def test_days_ago_phrase(self):
        assert normalize_posted_date("Posted 2 Days Ago", NOW) == "2026-10-14"

    def test_single_day(self):
        assert normalize_posted_date("1 day ago", NOW) == "2026-10-15"

    def test_weeks(self):
        assert normalize_posted_date("3 weeks ago", NOW) == "2026-09-25"

    def test_months_are_thirty_days(self):
        assert normalize_posted_date("1 month ago", NOW) == "2026-09-16"

    def test_plus_suffix(self):
        """Naukri prints "30+ Days Ago" for old postings."""
        assert normalize_posted_date("30+ Days Ago", NOW) == "2026-09-16"


class TestSubDayGranularity:
    def test_hours(self):
        """"3 hours" is the instant three hours before now."""
        assert normalize_posted_date("3 hours", NOW) == "2026-10-16T09:30:45+00:00"

    def test_abbreviated_hours(self):
        assert normalize_posted_date("5 hrs ago", NOW) == "2026-10-16T07:30:45+00:00"

    def test_minutes(self):
        assert normalize_posted_date("45 minutes ago", NOW) == "2026-10-16T11:45:45+00:00"

    def test_abbreviated_minutes(self):
        assert normalize_posted_date("10 mins ago", NOW) == "2026-10-16T12:20:45+00:00"

    def test_microseconds_dropped(self):
        now = NOW.replace(microsecond=123456)
        assert normalize_posted_date("1 hour ago", now) == "2026-10-16T11:30:45+00:00"


class TestPassthrough:
    def test_unrecognized_text_unchanged(self):
        assert normalize_posted_date("Just Now", NOW) == "Just Now"

    def test_absolute_date_unchanged(self):
        assert normalize_posted_date("2026-10-01", NOW) == "2026-10-01"

    def test_whitespace_stripped(self):
        assert normalize_posted_date("  Today ", NOW) == "Today"

    def test_none(self):
        assert normalize_posted_date(None, NOW) is None

    def test_defaults_to_current_time(self):
        result = normalize_posted_date("1 day ago")
        assert len(result) == 10
        assert result.count("-") == 2
