# gstfiling/domain/services/gst_document.py
"""
Document-level GST totals for an invoice or a purchase.

Item-level discounts are already part of each item's taxable amount. The
document-level discount is subtracted from the summed item taxable amounts
only and is not spread back over the items, so item tax is computed on the
item's own discounted amount.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from gstfiling.domain.errors import EmptyDocument, InvalidAmount
from gstfiling.domain.models.gst import (
    InvoiceRecord,
    InvoiceType,
    LineItem,
    PurchaseRecord,
    TaxType,
)
from gstfiling.domain.models.tax_rate_config import DEFAULT_RATE_CONFIG, GSTRateConfig
from gstfiling.domain.services.gst_calculator import (
    ZERO,
    TaxBreakdown,
    calculate_item_gst,
    parse_amount,
    round2,
    round_rupee,
)


@dataclass(frozen=True)
class ComputedItem:
    """A line item together with its computed tax."""

    item: LineItem
    subtotal: Decimal
    tax: TaxBreakdown

    @property
    def taxable_amount(self) -> Decimal:
        return self.tax.taxable_amount


@dataclass
class DocumentTotals:
    items: list[ComputedItem] = field(default_factory=list)
    subtotal: Decimal = ZERO
    discount_amount: Decimal = ZERO
    taxable_amount: Decimal = ZERO
    cgst_amount: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    igst_amount: Decimal = ZERO
    cess_amount: Decimal = ZERO
    total_tax_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    round_off_amount: Decimal = ZERO
    final_amount: Decimal = ZERO
    tax_type: TaxType = TaxType.NONE

    @property
    def items_taxable_amount(self) -> Decimal:
        """Taxable total before the document-level discount."""
        return sum((ci.taxable_amount for ci in self.items), ZERO)

    def to_dict(self) -> dict:
        return {
            "subtotal": float(self.subtotal),
            "discount_amount": float(self.discount_amount),
            "taxable_amount": float(self.taxable_amount),
            "cgst_amount": float(self.cgst_amount),
            "sgst_amount": float(self.sgst_amount),
            "igst_amount": float(self.igst_amount),
            "cess_amount": float(self.cess_amount),
            "total_tax_amount": float(self.total_tax_amount),
            "total_amount": float(self.total_amount),
            "round_off_amount": float(self.round_off_amount),
            "final_amount": float(self.final_amount),
            "tax_type": self.tax_type.value,
            "items": [ci.tax.to_dict() for ci in self.items],
        }


def _check_discount(discount: Decimal, ceiling: Decimal, field: str) -> Decimal:
    if discount < ZERO or discount > ceiling:
        raise InvalidAmount(
            f"{field} must be between 0 and {round2(ceiling)}, got {discount}",
            field=field,
            value=discount,
            expected=f"0 <= discount <= {round2(ceiling)}",
        )
    return discount


def calculate_document_gst(
    items: Sequence[LineItem],
    seller_state_code: str | None,
    buyer_state_code: str | None,
    invoice_type: InvoiceType | str = InvoiceType.B2B,
    discount_amount: Any = 0,
    *,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> DocumentTotals:
    """
    Compute subtotal, taxable amount, tax per head and round-off for a document.

    Raises EmptyDocument for a document without items and InvalidAmount for
    a negative discount or one larger than what it discounts. Any item failure
    aborts the whole document.
    """
    if not items:
        raise EmptyDocument(
            "Document must have at least one item",
            field="items",
            value=[],
            expected="at least one line item",
        )

    totals = DocumentTotals()
    subtotal = items_taxable = ZERO
    cgst = sgst = igst = cess = ZERO

    for item in items:
        item_subtotal = parse_amount(item.quantity, "quantity") * parse_amount(
            item.unit_price, "unit_price"
        )
        item_discount = _check_discount(
            parse_amount(item.discount_amount, "discount_amount"), item_subtotal, "items.discount_amount"
        )
        item_taxable = item_subtotal - item_discount

        tax = calculate_item_gst(
            item_taxable,
            item.gst_rate,
            seller_state_code,
            buyer_state_code,
            invoice_type,
            item.cess_rate,
            config=config,
        )

        subtotal += item_subtotal
        items_taxable += item_taxable
        cgst += tax.cgst_amount
        sgst += tax.sgst_amount
        igst += tax.igst_amount
        cess += tax.cess_amount
        totals.items.append(ComputedItem(item=item, subtotal=item_subtotal, tax=tax))

    discount = _check_discount(
        parse_amount(discount_amount, "discount_amount"), items_taxable, "discount_amount"
    )
    taxable = items_taxable - discount
    total_tax = cgst + sgst + igst + cess
    total_amount = taxable + total_tax
    rounded_total = round_rupee(total_amount)

    totals.subtotal = round2(subtotal)
    totals.discount_amount = round2(discount)
    totals.taxable_amount = round2(taxable)
    totals.cgst_amount = round2(cgst)
    totals.sgst_amount = round2(sgst)
    totals.igst_amount = round2(igst)
    totals.cess_amount = round2(cess)
    totals.total_tax_amount = round2(total_tax)
    totals.total_amount = round2(total_amount)
    totals.round_off_amount = round2(rounded_total - total_amount)
    totals.final_amount = rounded_total

    if igst > ZERO:
        totals.tax_type = TaxType.IGST
    elif cgst > ZERO:
        totals.tax_type = TaxType.CGST_SGST
    else:
        totals.tax_type = TaxType.NONE

    return totals


def calculate_invoice_totals(
    invoice: InvoiceRecord,
    *,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> DocumentTotals:
    return calculate_document_gst(
        invoice.items,
        invoice.seller_state_code,
        invoice.buyer_state_code,
        invoice.invoice_type,
        invoice.discount_amount,
        config=config,
    )


def calculate_purchase_totals(
    purchase: PurchaseRecord,
    *,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> DocumentTotals:
    """Purchases are taxed like a B2B supply from the supplier's state."""
    return calculate_document_gst(
        purchase.items,
        purchase.supplier_state_code,
        purchase.buyer_state_code,
        InvoiceType.B2B,
        purchase.discount_amount,
        config=config,
    )
