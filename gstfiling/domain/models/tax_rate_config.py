# gstfiling/domain/models/tax_rate_config.py
"""
Statutory GST configuration.

GSTRateConfig: valid rate slabs, B2CL threshold, due-date days and late-fee
parameters. The value is immutable and passed into the calculator and the
return assemblers; DEFAULT_RATE_CONFIG holds the current rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

# 2026 streamlined structure: 12% and 28% slabs abolished in the 2025-26 reforms.
_DEFAULT_RATES = ("0", "0.25", "3", "5", "18", "40")


@dataclass(frozen=True)
class GSTRateConfig:
    """Valid GST rate set and return-filing constants."""

    valid_rates: frozenset[Decimal] = field(
        default_factory=lambda: frozenset(Decimal(r) for r in _DEFAULT_RATES),
    )

    # GSTR-1: invoices to unregistered buyers above this value go to B2CL
    b2cl_threshold: Decimal = Decimal("250000")

    # Due dates: day of the month following the period
    gstr1_due_day: int = 11
    gstr3b_due_day: int = 20

    # Late fee per act (CGST / SGST / IGST)
    late_fee_per_day: Decimal = Decimal("50")
    late_fee_cap: Decimal = Decimal("5000")
    late_fee_acts: int = 3

    # Fallback rate for HSN/SAC lookups without a known prefix
    default_rate: Decimal = Decimal("18")

    source: str = "hardcoded"

    def is_valid_rate(self, rate: Decimal) -> bool:
        return rate in self.valid_rates

    def sorted_rates(self) -> list[Decimal]:
        return sorted(self.valid_rates)

    # ---- serialization ----

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict."""
        return {
            "valid_rates": [str(r) for r in self.sorted_rates()],
            "b2cl_threshold": str(self.b2cl_threshold),
            "gstr1_due_day": self.gstr1_due_day,
            "gstr3b_due_day": self.gstr3b_due_day,
            "late_fee_per_day": str(self.late_fee_per_day),
            "late_fee_cap": str(self.late_fee_cap),
            "late_fee_acts": self.late_fee_acts,
            "default_rate": str(self.default_rate),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GSTRateConfig:
        """Reconstruct from a stored JSON dict."""

        def _d(key: str, default: str) -> Decimal:
            val = data.get(key)
            return Decimal(str(val)) if val is not None else Decimal(default)

        rates = data.get("valid_rates")
        return cls(
            valid_rates=frozenset(Decimal(str(r)) for r in (rates if rates is not None else _DEFAULT_RATES)),
            b2cl_threshold=_d("b2cl_threshold", "250000"),
            gstr1_due_day=int(data.get("gstr1_due_day", 11)),
            gstr3b_due_day=int(data.get("gstr3b_due_day", 20)),
            late_fee_per_day=_d("late_fee_per_day", "50"),
            late_fee_cap=_d("late_fee_cap", "5000"),
            late_fee_acts=int(data.get("late_fee_acts", 3)),
            default_rate=_d("default_rate", "18"),
            source=data.get("source", "hardcoded"),
        )


DEFAULT_RATE_CONFIG = GSTRateConfig()
