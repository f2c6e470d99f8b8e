"""Affiliate entity tests: sanitize_field and record conversion."""

from datetime import datetime
from decimal import Decimal

import pytest

from affiliate_admin.affiliates.entity import (
    AFFILIATE_FIELDS,
    AffiliateStatus,
    affiliate_to_record,
    is_valid_status,
    sanitize_field,
)
from conftest import make_affiliate

INTEGER_FIELDS = ["affiliate_id", "user_id", "referrals", "visits"]
OTHER_FIELDS = ["rate", "rate_type", "payment_email", "status", "earnings", "date_registered"]

RAW_VALUES = [
    7, "7", " 42 ", 3.9, -3.9, "3.9", "12abc", "abc", "", None, True, False,
    "1e3", float("nan"), float("inf"), Decimal("5.5"), "-8", "+9", ".5",
]


class TestSanitizeField:

    @pytest.mark.parametrize("field", INTEGER_FIELDS)
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (7, 7),
            ("7", 7),
            (" 42 ", 42),
            (3.9, 3),
            (-3.9, -3),
            ("3.9", 3),
            ("12abc", 12),
            ("1e3", 1000),
            (Decimal("5.5"), 5),
            ("-8", -8),
        ],
    )
    def test_integer_fields_truncate_numeric_input(self, field, raw, expected):
        value = sanitize_field(field, raw)
        assert value == expected
        assert type(value) is int

    @pytest.mark.parametrize("raw", ["abc", "", None, float("nan"), float("inf"), object()])
    def test_unparseable_becomes_zero(self, raw):
        assert sanitize_field("affiliate_id", raw) == 0

    def test_bools_become_ints(self):
        assert sanitize_field("visits", True) == 1
        assert type(sanitize_field("visits", False)) is int

    @pytest.mark.parametrize("field", OTHER_FIELDS)
    @pytest.mark.parametrize("raw", ["0.2", "percentage", "", None, 3.9, "12abc"])
    def test_other_fields_are_identity(self, field, raw):
        assert sanitize_field(field, raw) is raw

    @pytest.mark.parametrize("field", INTEGER_FIELDS + OTHER_FIELDS)
    def test_idempotent(self, field):
        for raw in RAW_VALUES:
            once = sanitize_field(field, raw)
            twice = sanitize_field(field, once)
            if once != once:  # NaN passes through non-integer fields
                assert twice is once
            else:
                assert twice == once


class TestStatus:

    def test_known_statuses(self):
        assert [s.value for s in AffiliateStatus] == ["active", "inactive", "pending"]
        for status in ("active", "inactive", "pending"):
            assert is_valid_status(status)

    @pytest.mark.parametrize("value", ["bogus", "", None, "Active"])
    def test_unknown_statuses(self, value):
        assert not is_valid_status(value)


class TestAffiliateToRecord:

    def test_all_fields_in_order(self):
        record = affiliate_to_record(make_affiliate())
        assert tuple(record) == AFFILIATE_FIELDS

    def test_values_are_display_ready(self):
        affiliate = make_affiliate(
            affiliate_id=5,
            user_id=9,
            rate="0.1",
            earnings=12.5,
            referrals=3,
            date_registered=datetime(2024, 1, 28, 10, 0, 0),
        )
        record = affiliate_to_record(affiliate)

        assert record["affiliate_id"] == 5
        assert record["user_id"] == 9
        assert record["rate"] == "0.1"
        assert record["rate_type"] == ""
        assert record["payment_email"] == ""
        assert record["earnings"] == "12.50"
        assert record["referrals"] == 3
        assert record["date_registered"] == "2024-01-28 10:00:00"

    @pytest.mark.parametrize(
        "earnings,expected",
        [
            (Decimal("1234567890.12"), "1234567890.12"),
            (Decimal("0.10"), "0.10"),
            (0.1 + 0.2, "0.30"),
            (None, "0.00"),
        ],
    )
    def test_earnings_keep_cents_exact(self, earnings, expected):
        assert affiliate_to_record(make_affiliate(earnings=earnings))["earnings"] == expected
