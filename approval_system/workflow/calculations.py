import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

from approval_system.core.exceptions import ValidationError
from approval_system.models.shared.enums import AppType

_TWO_PLACES = Decimal("0.01")
_TITLE_REASON_CHARS = 10


def compute_leave_days(start_time: datetime, end_time: datetime) -> Decimal:
    """Leave length in days, rounded up to the next half day. Non-positive spans give 0."""
    if start_time is None or end_time is None:
        return Decimal("0")
    hours = (end_time - start_time).total_seconds() / 3600
    if hours <= 0:
        return Decimal("0")
    half_days = math.ceil(round(hours / 24 * 2, 9))
    return Decimal(half_days) / Decimal(2)


def quantize_amount(value: Union[Decimal, int, float, str]) -> Decimal:
    try:
        amount = Decimal(str(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("报销金额格式不正确")
    if amount <= 0:
        raise ValidationError("报销金额必须大于0")
    return amount


def approval_rate(approved: int, total: int) -> Decimal:
    if not total:
        return Decimal("0.00")
    rate = Decimal(approved) * Decimal(100) / Decimal(total)
    return rate.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def build_title(app_type: str, reason: str) -> str:
    prefix = "请假申请-" if app_type == AppType.LEAVE.value else "报销申请-"
    reason = (reason or "").strip()
    if len(reason) > _TITLE_REASON_CHARS:
        return f"{prefix}{reason[:_TITLE_REASON_CHARS]}..."
    return f"{prefix}{reason}"
