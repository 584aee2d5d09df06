# tests/test_gst_document.py
"""Tests for document-level GST totals."""

from datetime import date
from decimal import Decimal

import pytest

from gstfiling.domain.errors import EmptyDocument, InvalidAmount, InvalidRate
from gstfiling.domain.models.gst import InvoiceRecord, LineItem, PurchaseRecord, TaxType
from gstfiling.domain.services.gst_document import (
    calculate_document_gst,
    calculate_invoice_totals,
    calculate_purchase_totals,
)


def _make_item(**overrides) -> LineItem:
    defaults = {
        "item_name": "Steel rods",
        "hsn_code": "7214",
        "quantity": Decimal("10"),
        "unit_price": Decimal("1000"),
        "gst_rate": Decimal("18"),
    }
    defaults.update(overrides)
    return LineItem(**defaults)


class TestDocumentTotals:

    def test_single_item_intra_state(self):
        totals = calculate_document_gst([_make_item()], "27", "27")
        assert totals.subtotal == Decimal("10000.00")
        assert totals.taxable_amount == Decimal("10000.00")
        assert totals.cgst_amount == Decimal("900.00")
        assert totals.sgst_amount == Decimal("900.00")
        assert totals.igst_amount == 0
        assert totals.total_tax_amount == Decimal("1800.00")
        assert totals.total_amount == Decimal("11800.00")
        assert totals.final_amount == Decimal("11800")
        assert totals.round_off_amount == 0
        assert totals.tax_type == TaxType.CGST_SGST

    def test_mixed_rates_inter_state(self):
        items = [
            _make_item(),
            _make_item(item_name="Cement", hsn_code="2523", quantity=Decimal("5"), unit_price=Decimal("400"), gst_rate=Decimal("5")),
        ]
        totals = calculate_document_gst(items, "27", "29")
        # 10000 @ 18% + 2000 @ 5%
        assert totals.igst_amount == Decimal("1900.00")
        assert totals.total_amount == Decimal("13900.00")
        assert totals.tax_type == TaxType.IGST
        assert len(totals.items) == 2

    def test_item_discount_reduces_item_tax(self):
        totals = calculate_document_gst([_make_item(discount_amount=Decimal("1000"))], "27", "29")
        assert totals.items[0].tax.taxable_amount == Decimal("9000.00")
        assert totals.igst_amount == Decimal("1620.00")
        # Subtotal is before item discounts
        assert totals.subtotal == Decimal("10000.00")

    def test_document_discount_not_spread_to_items(self):
        """Document discount lowers the taxable total only; item tax is unchanged."""
        totals = calculate_document_gst([_make_item()], "27", "29", discount_amount=500)
        assert totals.taxable_amount == Decimal("9500.00")
        assert totals.igst_amount == Decimal("1800.00")
        assert totals.total_amount == Decimal("11300.00")

    def test_round_off(self):
        item = _make_item(quantity=Decimal("1"), unit_price=Decimal("99.99"))
        totals = calculate_document_gst([item], "27", "29")
        # 99.99 + 17.9982 = 117.9882
        assert totals.total_amount == Decimal("117.99")
        assert totals.final_amount == Decimal("118")
        assert totals.round_off_amount == Decimal("0.01")

    def test_conservation_of_item_taxable(self):
        items = [
            _make_item(unit_price=Decimal("333.33"), discount_amount=Decimal("10")),
            _make_item(quantity=Decimal("3"), unit_price=Decimal("19.99"), gst_rate=Decimal("5")),
            _make_item(quantity=Decimal("1"), unit_price=Decimal("0.5"), gst_rate=Decimal("0.25")),
        ]
        totals = calculate_document_gst(items, "27", "27", discount_amount=25)
        expected = sum((i.quantity * i.unit_price - i.discount_amount for i in items), Decimal("0"))
        assert totals.items_taxable_amount == expected
        assert totals.taxable_amount == (expected - 25)

    def test_idempotent(self):
        items = [_make_item(), _make_item(gst_rate=Decimal("40"), cess_rate=Decimal("3"))]
        first = calculate_document_gst(items, "27", "29", discount_amount=100)
        second = calculate_document_gst(items, "27", "29", discount_amount=100)
        assert first.to_dict() == second.to_dict()

    def test_empty_document(self):
        with pytest.raises(EmptyDocument) as exc:
            calculate_document_gst([], "27", "29")
        assert exc.value.field == "items"

    def test_one_bad_item_aborts_document(self):
        items = [_make_item(), _make_item(gst_rate=Decimal("12"))]
        with pytest.raises(InvalidRate):
            calculate_document_gst(items, "27", "29")

    def test_export_document(self):
        totals = calculate_document_gst([_make_item()], "27", None, "export")
        assert totals.total_tax_amount == 0
        assert totals.total_amount == Decimal("10000.00")
        assert totals.tax_type == TaxType.NONE


class TestDiscountBounds:

    def test_discount_larger_than_items_rejected(self):
        item = _make_item(quantity=Decimal("1"))
        with pytest.raises(InvalidAmount) as exc:
            calculate_document_gst([item], "27", "27", discount_amount=Decimal("5000"))
        assert exc.value.field == "discount_amount"

    def test_negative_discount_rejected(self):
        item = _make_item(quantity=Decimal("1"))
        with pytest.raises(InvalidAmount) as exc:
            calculate_document_gst([item], "27", "27", discount_amount=Decimal("-500"))
        assert exc.value.field == "discount_amount"
        assert exc.value.value == Decimal("-500")

    def test_negative_item_discount_rejected(self):
        with pytest.raises(InvalidAmount) as exc:
            calculate_document_gst([_make_item(discount_amount=Decimal("-1"))], "27", "27")
        assert exc.value.field == "items.discount_amount"

    def test_item_discount_above_line_value_rejected(self):
        with pytest.raises(InvalidAmount):
            calculate_document_gst([_make_item(discount_amount=Decimal("10000.01"))], "27", "27")

    def test_discount_equal_to_items_is_allowed(self):
        item = _make_item(quantity=Decimal("1"))
        totals = calculate_document_gst([item], "27", "27", discount_amount=Decimal("1000"))
        assert totals.taxable_amount == 0
        # Item tax is unchanged by the document discount
        assert totals.total_tax_amount == Decimal("180.00")


class TestRecordTotals:

    def test_invoice_record(self):
        invoice = InvoiceRecord(
            id="inv-1",
            invoice_number="INV-202601-0001",
            invoice_date=date(2026, 1, 5),
            seller_state_code="27",
            buyer_state_code="29",
            items=[_make_item(quantity=Decimal("1"), unit_price=Decimal("92500"))],
        )
        totals = calculate_invoice_totals(invoice)
        assert totals.igst_amount == Decimal("16650.00")
        assert totals.total_amount == Decimal("109150.00")

    def test_purchase_is_taxed_from_supplier_state(self):
        purchase = PurchaseRecord(
            id="pur-1",
            supplier_invoice_number="S-1",
            supplier_invoice_date=date(2026, 1, 8),
            supplier_state_code="27",
            buyer_state_code="27",
            items=[_make_item()],
        )
        totals = calculate_purchase_totals(purchase)
        assert totals.cgst_amount == Decimal("900.00")
        assert totals.igst_amount == 0

    def test_to_dict_is_json_friendly(self):
        totals = calculate_document_gst([_make_item()], "27", "27")
        data = totals.to_dict()
        assert data["total_amount"] == 11800.0
        assert data["tax_type"] == "CGST_SGST"
        assert data["items"][0]["cgst_rate"] == 9.0
