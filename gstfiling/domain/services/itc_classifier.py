# gstfiling/domain/services/itc_classifier.py
"""
Input Tax Credit classification for purchase documents.

An item's credit equals its full tax only when both the item and the
purchase are marked ITC-eligible; ineligible tax is still recorded in the
item's tax breakdown, it just earns no credit. Credit is bucketed for
GSTR-3B Table 4 as import of goods, import of services, reverse charge or
other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from gstfiling.domain.models.gst import (
    ItcBucket,
    ItcCategory,
    LineItem,
    PurchaseRecord,
    PurchaseType,
)
from gstfiling.domain.models.tax_rate_config import DEFAULT_RATE_CONFIG, GSTRateConfig
from gstfiling.domain.services.gst_calculator import ZERO, TaxBreakdown
from gstfiling.domain.services.gst_document import DocumentTotals, calculate_purchase_totals
from gstfiling.domain.services.gst_validation import get_code_type

logger = logging.getLogger("itc_classifier")


@dataclass(frozen=True)
class ItcRecord:
    """ITC outcome for one purchase line item."""

    eligible: bool
    category: ItcCategory
    credit_amount: Decimal
    credit: ItcBucket
    tax: TaxBreakdown

    def to_dict(self) -> dict:
        return {
            "eligible": self.eligible,
            "category": self.category.value,
            "credit_amount": float(self.credit_amount),
            "igst": float(self.credit.igst),
            "cgst": float(self.credit.cgst),
            "sgst": float(self.credit.sgst),
            "cess": float(self.credit.cess),
        }


@dataclass
class PurchaseItc:
    """Computed totals and per-item ITC for a purchase document."""

    purchase: PurchaseRecord
    totals: DocumentTotals
    records: list[ItcRecord] = field(default_factory=list)

    @property
    def total_itc(self) -> Decimal:
        return sum((r.credit_amount for r in self.records), ZERO)

    def by_category(self) -> dict[ItcCategory, ItcBucket]:
        buckets = {category: ItcBucket() for category in ItcCategory}
        for record in self.records:
            if record.eligible:
                buckets[record.category].add(record.credit)
        return buckets


def classify_itc_category(
    purchase_type: PurchaseType | str,
    reverse_charge: bool,
    classification_code: str | None = None,
    *,
    hsn_code: str | None = None,
    sac_code: str | None = None,
) -> ItcCategory:
    """Import by purchase type, then reverse charge, everything else is OTH.

    An import is a service when the item carries a SAC and goods when it
    carries an HSN. Only a bare classification code falls back to the
    SAC prefix check.
    """
    if PurchaseType(purchase_type) == PurchaseType.IMPORT:
        if sac_code and sac_code.strip():
            return ItcCategory.IMPORT_SERVICES
        if hsn_code and hsn_code.strip():
            return ItcCategory.IMPORT_GOODS
        if get_code_type(classification_code) == "SAC":
            return ItcCategory.IMPORT_SERVICES
        return ItcCategory.IMPORT_GOODS
    if reverse_charge:
        return ItcCategory.REVERSE_CHARGE
    return ItcCategory.OTHER


def classify_item_itc(
    item: LineItem,
    tax: TaxBreakdown,
    *,
    document_eligible: bool,
    purchase_type: PurchaseType | str,
    reverse_charge: bool,
) -> ItcRecord:
    eligible = bool(item.itc_eligible and document_eligible)
    category = classify_itc_category(
        purchase_type, reverse_charge, hsn_code=item.hsn_code, sac_code=item.sac_code
    )

    if eligible:
        credit = ItcBucket(
            igst=tax.igst_amount,
            cgst=tax.cgst_amount,
            sgst=tax.sgst_amount,
            cess=tax.cess_amount,
        )
        credit_amount = tax.total_tax_amount
    else:
        credit = ItcBucket()
        credit_amount = ZERO

    return ItcRecord(
        eligible=eligible,
        category=category,
        credit_amount=credit_amount,
        credit=credit,
        tax=tax,
    )


def classify_purchase(
    purchase: PurchaseRecord,
    *,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> PurchaseItc:
    """Compute a purchase's tax and classify each item's ITC."""
    totals = calculate_purchase_totals(purchase, config=config)
    result = PurchaseItc(purchase=purchase, totals=totals)

    for computed in totals.items:
        result.records.append(
            classify_item_itc(
                computed.item,
                computed.tax,
                document_eligible=purchase.itc_eligible,
                purchase_type=purchase.purchase_type,
                reverse_charge=purchase.reverse_charge,
            )
        )

    logger.debug(
        "ITC classified: purchase=%s items=%d itc=%.2f",
        purchase.supplier_invoice_number,
        len(result.records),
        result.total_itc,
    )
    return result
