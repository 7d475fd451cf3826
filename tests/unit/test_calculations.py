from datetime import datetime
from decimal import Decimal

import pytest

from approval_system.core.exceptions import ValidationError
from approval_system.workflow.calculations import (
    approval_rate,
    build_title,
    compute_leave_days,
    quantize_amount,
)


class TestLeaveDays:
    """Leave length rounded up to half days"""

    @pytest.mark.parametrize("start, end, expected", [
        (datetime(2026, 3, 2, 9), datetime(2026, 3, 2, 12), Decimal("0.5")),
        (datetime(2026, 3, 2, 0), datetime(2026, 3, 3, 0), Decimal("1")),
        (datetime(2026, 3, 2, 0), datetime(2026, 3, 3, 1), Decimal("1.5")),
        (datetime(2026, 3, 2, 9), datetime(2026, 3, 5, 9), Decimal("3")),
        (datetime(2026, 3, 2, 9), datetime(2026, 3, 5, 10), Decimal("3.5")),
    ])
    def test_rounds_up_to_half_days(self, start, end, expected):
        assert compute_leave_days(start, end) == expected

    def test_non_positive_span_is_zero(self):
        moment = datetime(2026, 3, 2, 9)
        assert compute_leave_days(moment, moment) == Decimal("0")
        assert compute_leave_days(moment, datetime(2026, 3, 1, 9)) == Decimal("0")


class TestAmounts:
    def test_quantizes_to_cents(self):
        assert quantize_amount("12.345") == Decimal("12.35")
        assert quantize_amount(100) == Decimal("100.00")

    @pytest.mark.parametrize("value", ["0", "-5", "abc"])
    def test_invalid_amounts(self, value):
        with pytest.raises(ValidationError):
            quantize_amount(value)


class TestSummaries:
    def test_approval_rate(self):
        assert approval_rate(0, 0) == Decimal("0.00")
        assert approval_rate(1, 3) == Decimal("33.33")
        assert approval_rate(2, 2) == Decimal("100.00")

    def test_title_truncates_long_reasons(self):
        assert build_title("leave", "家中有事") == "请假申请-家中有事"
        assert build_title("reimburse", "一二三四五六七八九十十一") == "报销申请-一二三四五六七八九十..."
