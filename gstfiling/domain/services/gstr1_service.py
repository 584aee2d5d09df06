# gstfiling/domain/services/gstr1_service.py
"""
GSTR-1 (statement of outward supplies) assembly.

Each active invoice of the period lands in exactly one section:
- B2B:  b2b invoice to a registered recipient, grouped by recipient GSTIN
- B2CL: unregistered recipient, invoice value above ₹2.5 lakh, grouped by place of supply
- B2CS: unregistered recipient, value up to ₹2.5 lakh, aggregated by
        (place of supply, rate, intra/inter-state); no per-invoice detail
- EXP:  export (without payment) and SEZ (with payment)
The HSN summary re-aggregates every line item by (HSN/SAC, rate).

Grouping maps are keyed by small tuples and emitted in sorted key order,
so regenerating an unchanged period yields the same payload.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, NamedTuple

from gstfiling.domain.models.gst import (
    BusinessProfile,
    InvoiceRecord,
    InvoiceType,
)
from gstfiling.domain.models.tax_rate_config import DEFAULT_RATE_CONFIG, GSTRateConfig
from gstfiling.domain.services.gst_calculator import ZERO, TaxBreakdown, round2
from gstfiling.domain.services.gst_document import (
    ComputedItem,
    DocumentTotals,
    calculate_invoice_totals,
)
from gstfiling.domain.services.gst_validation import ensure_unique_documents

logger = logging.getLogger("gstr1_service")

B2B = "b2b"
B2CL = "b2cl"
B2CS = "b2cs"
EXP = "exp"


def _d(val: Decimal | None) -> float:
    """Convert Decimal to float for JSON serialization."""
    if val is None:
        return 0.0
    return float(round2(val))


def _rate(val: Decimal) -> float:
    return float(val)


# ---------- Accumulators ----------


@dataclass
class RateLine:
    """Taxable value and tax per head accumulated for one rate."""

    txval: Decimal = ZERO
    iamt: Decimal = ZERO
    camt: Decimal = ZERO
    samt: Decimal = ZERO
    csamt: Decimal = ZERO

    def add(self, tax: TaxBreakdown) -> None:
        self.txval += tax.taxable_amount
        self.iamt += tax.igst_amount
        self.camt += tax.cgst_amount
        self.samt += tax.sgst_amount
        self.csamt += tax.cess_amount

    def amounts(self) -> dict[str, float]:
        return {
            "txval": _d(self.txval),
            "iamt": _d(self.iamt),
            "camt": _d(self.camt),
            "samt": _d(self.samt),
            "csamt": _d(self.csamt),
        }


class B2csKey(NamedTuple):
    pos: str
    rate: Decimal
    sply_ty: str  # INTRA / INTER


class HsnKey(NamedTuple):
    hsn_sc: str
    rate: Decimal


@dataclass
class HsnLine(RateLine):
    desc: str = ""
    uqc: str = "NOS"
    qty: Decimal = ZERO


@dataclass
class ComputedInvoice:
    invoice: InvoiceRecord
    totals: DocumentTotals


@dataclass
class Gstr1Return:
    gstin: str
    fp: str
    payload: dict[str, Any]
    summary: dict[str, Any]
    total_tax: Decimal = ZERO
    counts: dict[str, int] = field(default_factory=dict)


# ---------- Section helpers ----------


def format_invoice_date(inv: InvoiceRecord) -> str:
    """GST portal date format DD-MM-YYYY."""
    return inv.invoice_date.strftime("%d-%m-%Y")


def _has_gstin(inv: InvoiceRecord) -> bool:
    return bool((inv.counterparty_gstin or "").strip())


def classify_invoice(
    computed: ComputedInvoice,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> str:
    """Return the GSTR-1 section (b2b / b2cl / b2cs / exp) for an invoice."""
    inv = computed.invoice
    if inv.invoice_type in (InvoiceType.EXPORT, InvoiceType.SEZ):
        return EXP
    if inv.invoice_type == InvoiceType.B2B and _has_gstin(inv):
        return B2B
    if computed.totals.total_amount > config.b2cl_threshold:
        return B2CL
    return B2CS


def group_items_by_rate(items: Iterable[ComputedItem]) -> list[dict[str, Any]]:
    """Collapse an invoice's items into one row per tax rate."""
    groups: dict[Decimal, RateLine] = {}
    for ci in items:
        groups.setdefault(ci.tax.gst_rate, RateLine()).add(ci.tax)

    return [
        {"num": num, "itm_det": {"rt": _rate(rate), **groups[rate].amounts()}}
        for num, rate in enumerate(sorted(groups), start=1)
    ]


def _place_of_supply(inv: InvoiceRecord, business: BusinessProfile) -> str:
    if inv.buyer_state_code:
        return inv.buyer_state_code
    if _has_gstin(inv):
        return inv.counterparty_gstin.strip()[:2]
    return business.resolved_state_code or "00"


def _seller_state(inv: InvoiceRecord, business: BusinessProfile) -> str | None:
    return inv.seller_state_code or business.resolved_state_code


def _invoice_entry(computed: ComputedInvoice, **extra: Any) -> dict[str, Any]:
    inv = computed.invoice
    entry: dict[str, Any] = {
        "inum": inv.invoice_number,
        "idt": format_invoice_date(inv),
        "val": _d(computed.totals.total_amount),
    }
    entry.update(extra)
    entry["itms"] = group_items_by_rate(computed.totals.items)
    return entry


def build_b2b(
    invoices: list[ComputedInvoice],
    business: BusinessProfile,
) -> list[dict[str, Any]]:
    groups: dict[str, dict[str, Any]] = {}
    for computed in invoices:
        inv = computed.invoice
        ctin = inv.counterparty_gstin.strip().upper()
        group = groups.setdefault(ctin, {"ctin": ctin, "cname": inv.customer_name or "", "inv": []})
        group["inv"].append(
            _invoice_entry(
                computed,
                pos=_place_of_supply(inv, business),
                rchrg="Y" if inv.reverse_charge else "N",
                inv_typ="R",
            )
        )
    return [groups[ctin] for ctin in sorted(groups)]


def build_b2cl(
    invoices: list[ComputedInvoice],
    business: BusinessProfile,
) -> list[dict[str, Any]]:
    groups: dict[str, list[dict[str, Any]]] = {}
    for computed in invoices:
        pos = _place_of_supply(computed.invoice, business)
        groups.setdefault(pos, []).append(_invoice_entry(computed))
    return [{"pos": pos, "inv": groups[pos]} for pos in sorted(groups)]


def build_b2cs(
    invoices: list[ComputedInvoice],
    business: BusinessProfile,
) -> list[dict[str, Any]]:
    aggregates: dict[B2csKey, RateLine] = {}
    for computed in invoices:
        inv = computed.invoice
        pos = _place_of_supply(inv, business)
        sply_ty = "INTRA" if _seller_state(inv, business) == pos else "INTER"
        for ci in computed.totals.items:
            key = B2csKey(pos, ci.tax.gst_rate, sply_ty)
            aggregates.setdefault(key, RateLine()).add(ci.tax)

    return [
        {
            "sply_ty": key.sply_ty,
            "pos": key.pos,
            "typ": "OE",
            "rt": _rate(key.rate),
            **aggregates[key].amounts(),
        }
        for key in sorted(aggregates)
    ]


def build_exp(invoices: list[ComputedInvoice]) -> list[dict[str, Any]]:
    groups: dict[str, list[dict[str, Any]]] = {}
    for computed in invoices:
        # SEZ supplies are reported with payment, plain exports without
        exp_typ = "WPAY" if computed.invoice.invoice_type == InvoiceType.SEZ else "WOPAY"
        groups.setdefault(exp_typ, []).append(
            _invoice_entry(computed, sbpcode="", sbnum="", sbdt="")
        )
    return [{"exp_typ": exp_typ, "inv": groups[exp_typ]} for exp_typ in sorted(groups)]


def build_hsn(invoices: list[ComputedInvoice]) -> dict[str, list[dict[str, Any]]]:
    """HSN summary across all sections, numbered once aggregation is complete."""
    aggregates: dict[HsnKey, HsnLine] = {}
    for computed in invoices:
        for ci in computed.totals.items:
            key = HsnKey(ci.item.classification_code, ci.tax.gst_rate)
            line = aggregates.get(key)
            if line is None:
                line = aggregates[key] = HsnLine(desc=ci.item.item_name, uqc=ci.item.unit or "NOS")
            line.qty += ci.item.quantity
            line.add(ci.tax)

    data = []
    for num, key in enumerate(sorted(aggregates), start=1):
        line = aggregates[key]
        amounts = line.amounts()
        data.append({
            "num": num,
            "hsn_sc": key.hsn_sc,
            "desc": line.desc,
            "uqc": line.uqc,
            "qty": _d(line.qty),
            "val": amounts["txval"],
            "rt": _rate(key.rate),
            **amounts,
        })
    return {"data": data}


def calculate_summary(invoices: list[ComputedInvoice], counts: dict[str, int]) -> dict[str, Any]:
    taxable = cgst = sgst = igst = cess = total_value = ZERO
    for computed in invoices:
        t = computed.totals
        taxable += t.taxable_amount
        cgst += t.cgst_amount
        sgst += t.sgst_amount
        igst += t.igst_amount
        cess += t.cess_amount
        total_value += t.total_amount

    total_tax = cgst + sgst + igst + cess
    return {
        "totalInvoices": len(invoices),
        "b2bInvoices": counts.get(B2B, 0),
        "b2clInvoices": counts.get(B2CL, 0),
        "b2csInvoices": counts.get(B2CS, 0),
        "exportInvoices": counts.get(EXP, 0),
        "totalTaxableValue": _d(taxable),
        "totalCGST": _d(cgst),
        "totalSGST": _d(sgst),
        "totalIGST": _d(igst),
        "totalCess": _d(cess),
        "totalTax": _d(total_tax),
        "totalInvoiceValue": _d(total_value),
        "grossTurnover": _d(total_value),
    }


# ---------- Builder from invoices ----------


def compute_invoices(
    invoices: Iterable[InvoiceRecord],
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> list[ComputedInvoice]:
    """Run every active invoice through the document aggregator.

    Any failing invoice aborts the whole period.
    """
    active = [inv for inv in invoices if inv.is_active]
    ensure_unique_documents(
        (
            (inv.customer_id or inv.counterparty_gstin or inv.customer_name, inv.invoice_number)
            for inv in active
        )
    )
    active.sort(key=lambda inv: (inv.invoice_date, inv.invoice_number, inv.id))
    return [
        ComputedInvoice(invoice=inv, totals=calculate_invoice_totals(inv, config=config))
        for inv in active
    ]


def prepare_gstr1_payload(
    business: BusinessProfile,
    period: str,
    invoices: Iterable[InvoiceRecord],
    *,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> Gstr1Return:
    """
    Build the GSTR-1 payload for one filing period (YYYY-MM).
    """
    computed = compute_invoices(invoices, config)

    sections: dict[str, list[ComputedInvoice]] = {B2B: [], B2CL: [], B2CS: [], EXP: []}
    for ci in computed:
        sections[classify_invoice(ci, config)].append(ci)
    counts = {name: len(items) for name, items in sections.items()}

    summary = calculate_summary(computed, counts)

    payload = {
        "gstin": business.gstin,
        "fp": period,
        "gt": summary["grossTurnover"],
        "cur_gt": summary["grossTurnover"],
        "b2b": build_b2b(sections[B2B], business),
        "b2cl": build_b2cl(sections[B2CL], business),
        "b2cs": build_b2cs(sections[B2CS], business),
        "exp": build_exp(sections[EXP]),
        "hsn": build_hsn(computed),
        "summary": summary,
    }

    total_tax = sum(
        (c.totals.cgst_amount + c.totals.sgst_amount + c.totals.igst_amount + c.totals.cess_amount for c in computed),
        ZERO,
    )

    logger.info(
        "GSTR-1 assembled: gstin=%s fp=%s invoices=%d (b2b=%d b2cl=%d b2cs=%d exp=%d) tax=%.2f",
        business.gstin,
        period,
        len(computed),
        counts[B2B],
        counts[B2CL],
        counts[B2CS],
        counts[EXP],
        total_tax,
    )

    return Gstr1Return(
        gstin=business.gstin,
        fp=period,
        payload=payload,
        summary=summary,
        total_tax=round2(total_tax),
        counts=counts,
    )
