# gstfiling/domain/services/return_periods.py
"""Filing-period helpers: YYYY-MM parsing, date ranges, FY, due dates, late fee."""

from __future__ import annotations

import re
from calendar import monthrange
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from gstfiling.domain.errors import InvalidPeriod
from gstfiling.domain.models.tax_rate_config import DEFAULT_RATE_CONFIG, GSTRateConfig

_PERIOD_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")

ZERO = Decimal("0")


def parse_period(period: str) -> tuple[int, int]:
    """'2026-01' -> (2026, 1)."""
    m = _PERIOD_RE.match(period or "")
    if not m:
        raise InvalidPeriod(
            f"Filing period must be YYYY-MM, got {period!r}",
            field="period",
            value=period,
            expected="YYYY-MM with month 01-12",
        )
    return int(m.group(1)), int(m.group(2))


def format_period(year: int, month: int) -> str:
    if month < 1 or month > 12:
        raise InvalidPeriod(
            "Month must be between 1 and 12",
            field="month",
            value=month,
            expected="1-12",
        )
    return f"{year}-{month:02d}"


def period_date_range(period: str) -> tuple[date, date]:
    """Return (first_day, last_day) for a YYYY-MM period."""
    year, month = parse_period(period)
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def period_to_fy(period: str) -> str:
    """Convert 'YYYY-MM' to Indian financial year 'YYYY-YY'.

    FY runs April to March:
      - 2025-01 → 2024-25
      - 2025-04 → 2025-26
    """
    year, month = parse_period(period)
    fy_start = year if month >= 4 else year - 1
    return f"{fy_start}-{(fy_start + 1) % 100:02d}"


def _next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def compute_due_dates(
    period: str,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> tuple[date, date]:
    """GSTR-1 and GSTR-3B due dates (11th / 20th of the following month)."""
    year, month = parse_period(period)
    nm_year, nm_month = _next_month(year, month)
    return (
        date(nm_year, nm_month, config.gstr1_due_day),
        date(nm_year, nm_month, config.gstr3b_due_day),
    )


def gstr3b_due_date(period: str, config: GSTRateConfig = DEFAULT_RATE_CONFIG) -> date:
    return compute_due_dates(period, config)[1]


@dataclass(frozen=True)
class LateFee:
    days_late: int = 0
    per_act: Decimal = ZERO
    acts: int = 3

    @property
    def total(self) -> Decimal:
        """Fee across the CGST, SGST and IGST acts."""
        return self.per_act * self.acts

    def to_dict(self) -> dict:
        return {
            "days_late": self.days_late,
            "per_act": float(self.per_act),
            "acts": self.acts,
            "total": float(self.total),
        }


def calculate_late_fee(
    as_of: date,
    due_date: date,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> LateFee:
    """₹50 per calendar day of delay per act, capped at ₹5,000 per act."""
    days_late = (as_of - due_date).days
    if days_late <= 0:
        return LateFee(acts=config.late_fee_acts)

    per_act = min(config.late_fee_per_day * days_late, config.late_fee_cap)
    return LateFee(days_late=days_late, per_act=per_act, acts=config.late_fee_acts)
