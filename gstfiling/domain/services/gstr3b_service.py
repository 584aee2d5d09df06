# gstfiling/domain/services/gstr3b_service.py
"""
GSTR-3B (monthly summary return) assembly.

Steps:
1. Outward supplies split into regular (3.1a), zero-rated (3.1b) and
   reverse-charge (3.1d) lines
2. Eligible ITC of the period's purchases by Table 4 category
3. Net payable per head = output tax (regular + reverse charge) - ITC,
   with excess IGST credit set off against CGST, then SGST
4. Late fee once the 20th of the following month has passed

The late fee is reported on its own and never folded into net tax payable.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from gstfiling.domain.models.gst import (
    ZERO_RATED_TYPES,
    BusinessProfile,
    InvoiceRecord,
    ItcBucket,
    ItcCategory,
    PurchaseRecord,
    TaxBucket,
)
from gstfiling.domain.models.tax_rate_config import DEFAULT_RATE_CONFIG, GSTRateConfig
from gstfiling.domain.services.gst_calculator import ZERO, round2
from gstfiling.domain.services.gst_validation import ensure_unique_documents
from gstfiling.domain.services.gstr1_service import ComputedInvoice, compute_invoices
from gstfiling.domain.services.itc_classifier import PurchaseItc, classify_purchase
from gstfiling.domain.services.return_periods import (
    LateFee,
    calculate_late_fee,
    gstr3b_due_date,
)

logger = logging.getLogger("gstr3b_service")

# Table 4(A) rows in portal order
ITC_TABLE_ROWS: tuple[tuple[str, ItcCategory | None], ...] = (
    ("IMPG", ItcCategory.IMPORT_GOODS),
    ("IMPS", ItcCategory.IMPORT_SERVICES),
    ("ISRC", ItcCategory.REVERSE_CHARGE),
    ("ISD", None),
    ("OTH", ItcCategory.OTHER),
)


def _d(val: Decimal | None) -> float:
    if val is None:
        return 0.0
    return float(round2(val))


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------

@dataclass
class OutwardSupplies:
    """Output tax of the period, split the way Table 3.1 reports it."""
    invoice_count: int = 0
    regular: TaxBucket = field(default_factory=TaxBucket)
    zero_rated: TaxBucket = field(default_factory=TaxBucket)
    reverse_charge: TaxBucket = field(default_factory=TaxBucket)

    @property
    def output_tax(self) -> ItcBucket:
        """Tax per head liable this period: regular plus reverse charge."""
        return ItcBucket(
            igst=self.regular.igst + self.reverse_charge.igst,
            cgst=self.regular.cgst + self.reverse_charge.cgst,
            sgst=self.regular.sgst + self.reverse_charge.sgst,
            cess=self.regular.cess + self.reverse_charge.cess,
        )


@dataclass
class ItcSummary:
    purchase_count: int = 0
    by_category: dict[ItcCategory, ItcBucket] = field(
        default_factory=lambda: {category: ItcBucket() for category in ItcCategory}
    )

    @property
    def total(self) -> ItcBucket:
        total = ItcBucket()
        for bucket in self.by_category.values():
            total.add(bucket)
        return total


@dataclass
class NetPayable:
    """Net tax per head after set-off, with the IGST cross-utilisation trail."""
    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    cess: Decimal = ZERO
    igst_excess_credit: Decimal = ZERO
    igst_applied_to_cgst: Decimal = ZERO
    igst_applied_to_sgst: Decimal = ZERO
    unused_credit: ItcBucket = field(default_factory=ItcBucket)

    @property
    def total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst + self.cess

    def tax_payable_dict(self) -> dict[str, float]:
        return {
            "igst": _d(self.igst),
            "cgst": _d(self.cgst),
            "sgst": _d(self.sgst),
            "cess": _d(self.cess),
            "total": _d(self.total),
        }

    def cross_utilization_dict(self) -> dict[str, float]:
        return {
            "igst_excess_credit": _d(self.igst_excess_credit),
            "igst_applied_to_cgst": _d(self.igst_applied_to_cgst),
            "igst_applied_to_sgst": _d(self.igst_applied_to_sgst),
            "unused_igst": _d(self.unused_credit.igst),
            "unused_cgst": _d(self.unused_credit.cgst),
            "unused_sgst": _d(self.unused_credit.sgst),
            "unused_cess": _d(self.unused_credit.cess),
        }


@dataclass
class Gstr3bReturn:
    gstin: str
    fp: str
    payload: dict[str, Any]
    summary: dict[str, Any]
    outward: OutwardSupplies
    itc: ItcSummary
    net: NetPayable
    late_fee: LateFee
    due_date: date

    @property
    def total_tax_liability(self) -> Decimal:
        """Regular outward tax (Table 3.1a)."""
        return round2(self.outward.regular.total_tax)

    @property
    def total_itc(self) -> Decimal:
        return round2(self.itc.total.total)

    @property
    def net_tax_payable(self) -> Decimal:
        return round2(self.net.total)


# ---------------------------------------------------------------------------
# Computation steps
# ---------------------------------------------------------------------------

def _add_totals(bucket: TaxBucket, computed: ComputedInvoice) -> None:
    t = computed.totals
    bucket.taxable_value += t.taxable_amount
    bucket.igst += t.igst_amount
    bucket.cgst += t.cgst_amount
    bucket.sgst += t.sgst_amount
    bucket.cess += t.cess_amount


def summarize_outward(invoices: Iterable[ComputedInvoice]) -> OutwardSupplies:
    """Zero-rated first, then reverse charge, everything else is regular."""
    outward = OutwardSupplies()
    for computed in invoices:
        outward.invoice_count += 1
        inv = computed.invoice
        if inv.invoice_type in ZERO_RATED_TYPES:
            outward.zero_rated.taxable_value += computed.totals.taxable_amount
        elif inv.reverse_charge:
            _add_totals(outward.reverse_charge, computed)
        else:
            _add_totals(outward.regular, computed)
    return outward


def compute_purchases_itc(
    purchases: Iterable[PurchaseRecord],
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> list[PurchaseItc]:
    """Classify the ITC of every active, ITC-eligible purchase."""
    eligible = [p for p in purchases if p.is_active and p.itc_eligible]
    ensure_unique_documents(
        (
            (p.supplier_id or p.supplier_gstin or p.supplier_name, p.supplier_invoice_number)
            for p in eligible
        ),
        field="supplier_invoice_number",
    )
    eligible.sort(key=lambda p: (p.supplier_invoice_date, p.supplier_invoice_number, p.id))
    return [classify_purchase(p, config=config) for p in eligible]


def summarize_itc(purchases: Iterable[PurchaseItc]) -> ItcSummary:
    summary = ItcSummary()
    for purchase_itc in purchases:
        summary.purchase_count += 1
        for category, bucket in purchase_itc.by_category().items():
            summary.by_category[category].add(bucket)
    return summary


def compute_net_payable(output: Any, itc: ItcBucket) -> NetPayable:
    """
    Set ITC off against output tax per head.

    Excess IGST credit pays CGST first and then SGST; CGST and SGST credit
    never pays IGST. Cess is set off on its own. No head goes below zero,
    and credit left after set-off stays unused.
    """
    net = NetPayable()

    igst_balance = output.igst - itc.igst
    cgst_balance = output.cgst - itc.cgst
    sgst_balance = output.sgst - itc.sgst
    cess_balance = output.cess - itc.cess

    excess = ZERO
    if igst_balance < ZERO:
        excess = -igst_balance
        igst_balance = ZERO
    net.igst_excess_credit = excess

    if excess > ZERO and cgst_balance > ZERO:
        used = min(cgst_balance, excess)
        cgst_balance -= used
        excess -= used
        net.igst_applied_to_cgst = used

    if excess > ZERO and sgst_balance > ZERO:
        used = min(sgst_balance, excess)
        sgst_balance -= used
        excess -= used
        net.igst_applied_to_sgst = used

    net.unused_credit = ItcBucket(
        igst=excess,
        cgst=max(ZERO, -cgst_balance),
        sgst=max(ZERO, -sgst_balance),
        cess=max(ZERO, -cess_balance),
    )
    net.igst = max(ZERO, igst_balance)
    net.cgst = max(ZERO, cgst_balance)
    net.sgst = max(ZERO, sgst_balance)
    net.cess = max(ZERO, cess_balance)
    return net


def assess_late_fee(
    period: str,
    as_of: date,
    *,
    prior_attempt: bool,
    late_fee_on_first_attempt: bool = False,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> tuple[date, LateFee]:
    """Due date of the period and the late fee accrued as of `as_of`.

    The first generation for a period accrues nothing unless
    `late_fee_on_first_attempt` is set.
    """
    due = gstr3b_due_date(period, config)
    if not (prior_attempt or late_fee_on_first_attempt):
        return due, LateFee(acts=config.late_fee_acts)
    return due, calculate_late_fee(as_of, due, config)


# ---------------------------------------------------------------------------
# Payload
# ---------------------------------------------------------------------------

def _supply_line(bucket: TaxBucket) -> dict[str, float]:
    return {
        "txval": _d(bucket.taxable_value),
        "iamt": _d(bucket.igst),
        "camt": _d(bucket.cgst),
        "samt": _d(bucket.sgst),
        "csamt": _d(bucket.cess),
    }


def _itc_line(bucket: ItcBucket) -> dict[str, float]:
    return {
        "iamt": _d(bucket.igst),
        "camt": _d(bucket.cgst),
        "samt": _d(bucket.sgst),
        "csamt": _d(bucket.cess),
    }


def build_itc_table(itc: ItcSummary) -> dict[str, Any]:
    itc_avl = []
    for ty, category in ITC_TABLE_ROWS:
        bucket = itc.by_category[category] if category is not None else ItcBucket()
        itc_avl.append({"ty": ty, **_itc_line(bucket)})

    # No reversals are tracked, so net ITC equals ITC available
    total = itc.total
    return {
        "itc_avl": itc_avl,
        "itc_rev": [{"ty": "RUL", **_itc_line(ItcBucket())}, {"ty": "OTH", **_itc_line(ItcBucket())}],
        "itc_net": _itc_line(total),
        "itc_inelg": [{"ty": "RUL", **_itc_line(ItcBucket())}, {"ty": "OTH", **_itc_line(ItcBucket())}],
    }


def prepare_gstr3b_payload(
    business: BusinessProfile,
    period: str,
    invoices: Iterable[InvoiceRecord],
    purchases: Iterable[PurchaseRecord],
    *,
    as_of: date,
    prior_attempt: bool = False,
    late_fee_on_first_attempt: bool = False,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> Gstr3bReturn:
    """
    Build the GSTR-3B payload for one filing period (YYYY-MM).

    Any invalid invoice or purchase aborts the whole period.
    """
    outward = summarize_outward(compute_invoices(invoices, config))
    itc = summarize_itc(compute_purchases_itc(purchases, config))
    net = compute_net_payable(outward.output_tax, itc.total)
    due, late_fee = assess_late_fee(
        period,
        as_of,
        prior_attempt=prior_attempt,
        late_fee_on_first_attempt=late_fee_on_first_attempt,
        config=config,
    )

    itc_total = itc.total
    output_tax = outward.output_tax
    per_act = _d(late_fee.per_act)

    summary = {
        "outputTax": _d(output_tax.total),
        "itcAvailable": _d(itc_total.total),
        "netTaxPayable": _d(net.total),
        "lateFees": _d(late_fee.total),
        "totalPayable": _d(net.total + late_fee.total),
        "daysLate": late_fee.days_late,
        "dueDate": due.isoformat(),
    }

    payload = {
        "gstin": business.gstin,
        "fp": period,
        "sup_details": {
            "osup_det": _supply_line(outward.regular),
            "osup_zero": _supply_line(outward.zero_rated),
            # Nil-rated and exempt supplies are not separated out
            "osup_nil_exmp": _supply_line(TaxBucket()),
            "isup_rev": _supply_line(outward.reverse_charge),
            "osup_nongst": _supply_line(TaxBucket()),
        },
        "itc_elg": build_itc_table(itc),
        "inward_sup": {
            "isup_details": [
                {
                    "ty": "GST",
                    "inter": _d(itc_total.igst),
                    "intra": _d(itc_total.cgst + itc_total.sgst),
                },
            ],
        },
        "intr_ltfee": {
            "intr": {"iamt": 0.0, "camt": 0.0, "samt": 0.0, "csamt": 0.0},
            "ltfee": {"iamt": per_act, "camt": per_act, "samt": per_act, "csamt": 0.0},
        },
        "tax_payable": net.tax_payable_dict(),
        "cross_utilization": net.cross_utilization_dict(),
        "summary": summary,
    }

    logger.info(
        "GSTR-3B assembled: gstin=%s fp=%s invoices=%d purchases=%d output=%.2f itc=%.2f "
        "net=%.2f (IGST=%.2f, CGST=%.2f, SGST=%.2f, cess=%.2f) late_fee=%.2f",
        business.gstin,
        period,
        outward.invoice_count,
        itc.purchase_count,
        output_tax.total,
        itc_total.total,
        net.total,
        net.igst,
        net.cgst,
        net.sgst,
        net.cess,
        late_fee.total,
    )
    if net.igst_excess_credit > ZERO:
        logger.debug(
            "IGST credit cross-utilised: excess=%.2f cgst=%.2f sgst=%.2f unused=%.2f",
            net.igst_excess_credit,
            net.igst_applied_to_cgst,
            net.igst_applied_to_sgst,
            net.unused_credit.igst,
        )

    return Gstr3bReturn(
        gstin=business.gstin,
        fp=period,
        payload=payload,
        summary=summary,
        outward=outward,
        itc=itc,
        net=net,
        late_fee=late_fee,
        due_date=due,
    )
