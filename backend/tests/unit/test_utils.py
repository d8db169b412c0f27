"""
Unit tests for datetime and email helpers.
"""

from datetime import datetime, timezone

import pytest

from utils.datetime_utils import ensure_utc, format_display_date, format_display_datetime, utc_now
from utils.email_utils import is_valid_email, normalize_email


class TestDatetimeUtils:
    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo == timezone.utc

    def test_ensure_utc_treats_naive_as_utc(self):
        naive = datetime(2026, 1, 1, 12, 0)
        assert ensure_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_ensure_utc_none(self):
        assert ensure_utc(None) is None

    def test_display_is_jakarta_time(self):
        # 18:30 UTC is 01:30 the next day in Jakarta
        dt = datetime(2026, 1, 31, 18, 30, tzinfo=timezone.utc)
        assert format_display_date(dt) == "01/02/2026"
        assert format_display_datetime(dt) == "01/02/2026 01:30"


class TestEmailUtils:
    def test_normalize_email(self):
        assert normalize_email("  Dr.Sari@Klinik.ID ") == "dr.sari@klinik.id"

    def test_normalize_email_none(self):
        assert normalize_email(None) == ""

    @pytest.mark.parametrize("email,valid", [
        ("a@x.com", True),
        ("first.last+tag@sub.example.co.id", True),
        ("", False),
        ("a@x", False),
        ("a b@x.com", False),
        ("@x.com", False),
    ])
    def test_is_valid_email(self, email, valid):
        assert is_valid_email(email) is valid
