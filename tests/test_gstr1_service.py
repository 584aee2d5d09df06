# tests/test_gstr1_service.py
"""Tests for GSTR-1 assembly: section bucketing, rate grouping, HSN summary."""

import json
from datetime import date
from decimal import Decimal

import pytest

from gstfiling.domain.errors import DuplicateDocument, InvalidRate
from gstfiling.domain.models.gst import InvoiceRecord, LineItem
from gstfiling.domain.services.gstr1_service import (
    B2B,
    B2CL,
    B2CS,
    EXP,
    ComputedInvoice,
    classify_invoice,
    group_items_by_rate,
    prepare_gstr1_payload,
)
from gstfiling.domain.services.gst_document import calculate_invoice_totals


def _make_item(**overrides) -> LineItem:
    defaults = {
        "item_name": "Laptop",
        "hsn_code": "8471",
        "quantity": Decimal("1"),
        "unit_price": Decimal("92500"),
        "gst_rate": Decimal("18"),
    }
    defaults.update(overrides)
    return LineItem(**defaults)


def _make_invoice(**overrides) -> InvoiceRecord:
    defaults = {
        "id": "inv-1",
        "invoice_number": "INV-202601-0001",
        "invoice_date": date(2026, 1, 5),
        "invoice_type": "b2b",
        "customer_id": "cust-1",
        "customer_name": "Tech Solutions Karnataka",
        "counterparty_gstin": "29AABCT3518Q1ZV",
        "seller_state_code": "27",
        "buyer_state_code": "29",
        "items": [_make_item()],
    }
    defaults.update(overrides)
    return InvoiceRecord(**defaults)


def _unregistered(**overrides) -> InvoiceRecord:
    defaults = {
        "invoice_type": "b2c",
        "customer_id": None,
        "customer_name": None,
        "counterparty_gstin": None,
        "buyer_state_code": "27",
    }
    defaults.update(overrides)
    return _make_invoice(**defaults)


def _classify(invoice: InvoiceRecord) -> str:
    return classify_invoice(ComputedInvoice(invoice, calculate_invoice_totals(invoice)))


@pytest.fixture
def period_invoices():
    return [
        _make_invoice(),
        _unregistered(
            id="inv-2",
            invoice_number="INV-202601-0002",
            invoice_date=date(2026, 1, 9),
            buyer_state_code="07",
            items=[_make_item(item_name="Server", hsn_code="8471", unit_price=Decimal("300000"), gst_rate=Decimal("5"))],
        ),
        _unregistered(
            id="inv-3",
            invoice_number="INV-202601-0003",
            invoice_date=date(2026, 1, 10),
            items=[_make_item(item_name="Mouse", hsn_code="8471", quantity=Decimal("2"), unit_price=Decimal("1000"))],
        ),
        _unregistered(
            id="inv-4",
            invoice_number="INV-202601-0004",
            invoice_date=date(2026, 1, 11),
            items=[
                _make_item(item_name="Mouse", hsn_code="8471", quantity=Decimal("1"), unit_price=Decimal("1000")),
                _make_item(item_name="Repair", hsn_code=None, sac_code="998713", quantity=Decimal("1"), unit_price=Decimal("500"), gst_rate=Decimal("5")),
            ],
        ),
        _make_invoice(
            id="inv-5",
            invoice_number="EXP-0001",
            invoice_date=date(2026, 1, 20),
            invoice_type="export",
            counterparty_gstin=None,
            buyer_state_code=None,
            items=[_make_item(unit_price=Decimal("50000"))],
        ),
        _make_invoice(
            id="inv-6",
            invoice_number="SEZ-0001",
            invoice_date=date(2026, 1, 21),
            invoice_type="sez",
            items=[_make_item(unit_price=Decimal("20000"))],
        ),
    ]


class TestClassifyInvoice:

    def test_registered_b2b(self):
        assert _classify(_make_invoice()) == B2B

    def test_b2b_without_gstin_is_unregistered(self):
        assert _classify(_make_invoice(counterparty_gstin="  ", buyer_state_code="27")) == B2CS

    def test_large_unregistered(self):
        inv = _unregistered(items=[_make_item(unit_price=Decimal("250000"), gst_rate=Decimal("0"))])
        # Exactly at the threshold stays small
        assert _classify(inv) == B2CS
        inv = _unregistered(items=[_make_item(unit_price=Decimal("250000.01"), gst_rate=Decimal("0"))])
        assert _classify(inv) == B2CL

    def test_threshold_uses_invoice_value_with_tax(self):
        inv = _unregistered(items=[_make_item(unit_price=Decimal("220000"), gst_rate=Decimal("18"))])
        assert _classify(inv) == B2CL

    def test_export_and_sez(self):
        assert _classify(_make_invoice(invoice_type="export", buyer_state_code=None)) == EXP
        assert _classify(_make_invoice(invoice_type="sez")) == EXP


class TestGroupItemsByRate:

    def test_items_collapse_per_rate(self):
        inv = _make_invoice(
            items=[
                _make_item(unit_price=Decimal("1000")),
                _make_item(unit_price=Decimal("500"), gst_rate=Decimal("5")),
                _make_item(unit_price=Decimal("2000")),
            ]
        )
        rows = group_items_by_rate(calculate_invoice_totals(inv).items)
        assert [r["itm_det"]["rt"] for r in rows] == [5.0, 18.0]
        assert [r["num"] for r in rows] == [1, 2]
        assert rows[1]["itm_det"]["txval"] == 3000.0
        assert rows[1]["itm_det"]["iamt"] == 540.0


class TestPrepareGstr1:

    def test_b2b_section(self, business, period_invoices):
        payload = prepare_gstr1_payload(business, "2026-01", period_invoices).payload

        assert payload["gstin"] == "27AAPFU0939F1ZV"
        assert payload["fp"] == "2026-01"
        assert len(payload["b2b"]) == 1
        group = payload["b2b"][0]
        assert group["ctin"] == "29AABCT3518Q1ZV"
        inv = group["inv"][0]
        assert inv["inum"] == "INV-202601-0001"
        assert inv["idt"] == "05-01-2026"
        assert inv["val"] == 109150.0
        assert inv["pos"] == "29"
        assert inv["rchrg"] == "N"
        assert inv["itms"][0]["itm_det"] == {
            "rt": 18.0,
            "txval": 92500.0,
            "iamt": 16650.0,
            "camt": 0.0,
            "samt": 0.0,
            "csamt": 0.0,
        }

    def test_b2cl_grouped_by_pos(self, business, period_invoices):
        payload = prepare_gstr1_payload(business, "2026-01", period_invoices).payload
        assert [g["pos"] for g in payload["b2cl"]] == ["07"]
        inv = payload["b2cl"][0]["inv"][0]
        assert inv["inum"] == "INV-202601-0002"
        assert inv["val"] == 315000.0

    def test_b2cs_aggregates(self, business, period_invoices):
        payload = prepare_gstr1_payload(business, "2026-01", period_invoices).payload
        rows = payload["b2cs"]
        # Two invoices at 18% intra-state collapse into one row
        assert [(r["pos"], r["rt"], r["sply_ty"]) for r in rows] == [
            ("27", 5.0, "INTRA"),
            ("27", 18.0, "INTRA"),
        ]
        eighteen = rows[1]
        assert eighteen["typ"] == "OE"
        assert eighteen["txval"] == 3000.0
        assert eighteen["camt"] == 270.0
        assert eighteen["samt"] == 270.0
        assert eighteen["iamt"] == 0.0

    def test_exp_tags(self, business, period_invoices):
        payload = prepare_gstr1_payload(business, "2026-01", period_invoices).payload
        assert [g["exp_typ"] for g in payload["exp"]] == ["WOPAY", "WPAY"]
        export_inv = payload["exp"][0]["inv"][0]
        assert export_inv["inum"] == "EXP-0001"
        assert export_inv["sbnum"] == ""
        assert export_inv["itms"][0]["itm_det"]["iamt"] == 0.0

    def test_hsn_summary(self, business, period_invoices):
        data = prepare_gstr1_payload(business, "2026-01", period_invoices).payload["hsn"]["data"]
        keys = [(row["hsn_sc"], row["rt"]) for row in data]
        assert keys == [("8471", 5.0), ("8471", 18.0), ("998713", 5.0)]
        assert [row["num"] for row in data] == [1, 2, 3]
        laptops = data[1]
        # 92,500 + 2,000 + 1,000 + 50,000 + 20,000
        assert laptops["txval"] == 165500.0
        assert laptops["qty"] == 6.0
        assert laptops["desc"] == "Laptop"

    def test_summary(self, business, period_invoices):
        result = prepare_gstr1_payload(business, "2026-01", period_invoices)
        summary = result.summary
        assert summary["totalInvoices"] == 6
        assert summary["b2bInvoices"] == 1
        assert summary["b2clInvoices"] == 1
        assert summary["b2csInvoices"] == 2
        assert summary["exportInvoices"] == 2
        assert summary["totalIGST"] == 16650.0 + 15000.0
        assert summary["totalCGST"] == 282.5
        assert summary["totalSGST"] == 282.5
        assert result.payload["gt"] == summary["grossTurnover"] == summary["totalInvoiceValue"]
        assert result.total_tax == Decimal("32215.00")
        assert result.counts == {B2B: 1, B2CL: 1, B2CS: 2, EXP: 2}

    def test_inactive_invoices_skipped(self, business):
        result = prepare_gstr1_payload(
            business, "2026-01", [_make_invoice(), _make_invoice(id="x", invoice_number="X-1", is_active=False)]
        )
        assert result.summary["totalInvoices"] == 1

    def test_empty_period(self, business):
        result = prepare_gstr1_payload(business, "2026-01", [])
        assert result.payload["b2b"] == []
        assert result.payload["hsn"] == {"data": []}
        assert result.summary["totalInvoiceValue"] == 0.0

    def test_regeneration_is_identical(self, business, period_invoices):
        first = prepare_gstr1_payload(business, "2026-01", period_invoices).payload
        second = prepare_gstr1_payload(business, "2026-01", list(reversed(period_invoices))).payload
        assert json.dumps(first, sort_keys=False) == json.dumps(second, sort_keys=False)

    def test_duplicate_invoice_aborts(self, business):
        with pytest.raises(DuplicateDocument):
            prepare_gstr1_payload(business, "2026-01", [_make_invoice(), _make_invoice(id="inv-dup")])

    def test_walk_in_customers_are_not_duplicates(self, business):
        walk_ins = [
            _unregistered(id="inv-a", invoice_number="CASH-1", customer_name="Anita"),
            _unregistered(id="inv-b", invoice_number="CASH-1", customer_name="Bharat"),
            _unregistered(id="inv-c", invoice_number="CASH-2"),
            _unregistered(id="inv-d", invoice_number="CASH-2"),
        ]
        result = prepare_gstr1_payload(business, "2026-01", walk_ins)
        assert result.summary["b2csInvoices"] == 4

    def test_bad_invoice_aborts_period(self, business):
        bad = _make_invoice(id="inv-9", invoice_number="INV-9", items=[_make_item(gst_rate=Decimal("28"))])
        with pytest.raises(InvalidRate):
            prepare_gstr1_payload(business, "2026-01", [_make_invoice(), bad])
