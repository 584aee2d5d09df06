# gstfiling/domain/services/gst_calculator.py
"""
Per-line-item GST computation.

GST rules:
- Intra-state supply (seller state == buyer state): CGST + SGST, rate split 50-50
- Inter-state supply: IGST at the full rate
- Export / SEZ: zero-rated, no tax on the invoice

Every monetary field is rounded to paise on its own (half away from zero),
so totals match the amounts printed on the invoice.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from gstfiling.domain.errors import InvalidAmount, MissingState
from gstfiling.domain.models.gst import ZERO_RATED_TYPES, InvoiceType, TaxType
from gstfiling.domain.models.tax_rate_config import DEFAULT_RATE_CONFIG, GSTRateConfig
from gstfiling.domain.services.gst_validation import validate_gst_rate, validate_state_code

ZERO = Decimal("0")
PAISE = Decimal("0.01")
RUPEE = Decimal("1")
HUNDRED = Decimal("100")
TWO = Decimal("2")

# Common HSN / SAC prefixes, mapped onto the current slabs
_HSN_RATES: dict[str, Decimal] = {
    "1001": Decimal("0"),  # wheat
    "1006": Decimal("0"),  # rice
    "0401": Decimal("0"),  # milk
    "6204": Decimal("5"),  # women's clothing
    "8517": Decimal("18"),  # mobile phones
    "8703": Decimal("40"),  # motor cars
}
_SAC_RATES: dict[str, Decimal] = {
    "9963": Decimal("18"),  # restaurant / accommodation
    "9973": Decimal("18"),  # leasing, professional
    "9982": Decimal("18"),  # legal and accounting
}


def round2(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return value.quantize(PAISE, rounding=ROUND_HALF_UP)


def round_rupee(value: Decimal) -> Decimal:
    return value.quantize(RUPEE, rounding=ROUND_HALF_UP)


def parse_amount(value: Any, field: str = "taxable_amount") -> Decimal:
    """Convert to Decimal, raising InvalidAmount for anything non-numeric."""
    if isinstance(value, bool) or value is None:
        raise InvalidAmount(
            f"{field} must be a number",
            field=field,
            value=value,
            expected="numeric amount",
        )
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(
            f"{field} must be a number, got {value!r}",
            field=field,
            value=value,
            expected="numeric amount",
        ) from None
    if not amount.is_finite():
        raise InvalidAmount(
            f"{field} must be a finite number",
            field=field,
            value=value,
            expected="numeric amount",
        )
    return amount


@dataclass(frozen=True)
class TaxBreakdown:
    taxable_amount: Decimal
    gst_rate: Decimal
    cgst_rate: Decimal = ZERO
    cgst_amount: Decimal = ZERO
    sgst_rate: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    igst_rate: Decimal = ZERO
    igst_amount: Decimal = ZERO
    cess_rate: Decimal = ZERO
    cess_amount: Decimal = ZERO
    total_tax_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    tax_type: TaxType = TaxType.NONE

    def to_dict(self) -> dict:
        return {
            "taxable_amount": float(self.taxable_amount),
            "gst_rate": float(self.gst_rate),
            "cgst_rate": float(self.cgst_rate),
            "cgst_amount": float(self.cgst_amount),
            "sgst_rate": float(self.sgst_rate),
            "sgst_amount": float(self.sgst_amount),
            "igst_rate": float(self.igst_rate),
            "igst_amount": float(self.igst_amount),
            "cess_rate": float(self.cess_rate),
            "cess_amount": float(self.cess_amount),
            "total_tax_amount": float(self.total_tax_amount),
            "total_amount": float(self.total_amount),
            "tax_type": self.tax_type.value,
        }


@dataclass(frozen=True)
class TransactionType:
    type: str  # intra-state / inter-state / unknown
    is_intra_state: bool
    is_inter_state: bool
    tax_type: str


def calculate_item_gst(
    taxable_amount: Any,
    gst_rate: Any,
    seller_state_code: str | None,
    buyer_state_code: str | None = None,
    invoice_type: InvoiceType | str = InvoiceType.B2B,
    cess_rate: Any = 0,
    *,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> TaxBreakdown:
    """
    Calculate GST for a single line item.

    Raises InvalidAmount, InvalidRate, MissingState or InvalidStateCode;
    nothing is defaulted.
    """
    amount = parse_amount(taxable_amount)
    if amount <= ZERO:
        raise InvalidAmount(
            "Taxable amount must be a positive number",
            field="taxable_amount",
            value=taxable_amount,
            expected="> 0",
        )

    rate = validate_gst_rate(gst_rate, config)
    cess = parse_amount(cess_rate, field="cess_rate")
    if cess < ZERO:
        raise InvalidAmount(
            "Cess rate cannot be negative",
            field="cess_rate",
            value=cess_rate,
            expected=">= 0",
        )

    invoice_type = InvoiceType(invoice_type)
    zero_rated = invoice_type in ZERO_RATED_TYPES

    seller = validate_state_code(seller_state_code, field="seller_state_code")
    buyer = validate_state_code(
        buyer_state_code, field="buyer_state_code", required=not zero_rated
    )

    if zero_rated:
        # Export / SEZ: no tax is charged on the invoice
        return TaxBreakdown(
            taxable_amount=round2(amount),
            gst_rate=rate,
            total_amount=round2(amount),
            tax_type=TaxType.NONE,
        )

    total_gst = amount * rate / HUNDRED
    cess_amount = amount * cess / HUNDRED

    if seller == buyer:
        half = total_gst / TWO
        breakdown = dict(
            cgst_rate=rate / TWO,
            cgst_amount=half,
            sgst_rate=rate / TWO,
            sgst_amount=half,
            igst_rate=ZERO,
            igst_amount=ZERO,
            tax_type=TaxType.CGST_SGST if rate > ZERO else TaxType.NONE,
        )
    else:
        breakdown = dict(
            cgst_rate=ZERO,
            cgst_amount=ZERO,
            sgst_rate=ZERO,
            sgst_amount=ZERO,
            igst_rate=rate,
            igst_amount=total_gst,
            tax_type=TaxType.IGST if rate > ZERO else TaxType.NONE,
        )

    total_tax = (
        breakdown["cgst_amount"]
        + breakdown["sgst_amount"]
        + breakdown["igst_amount"]
        + cess_amount
    )

    return TaxBreakdown(
        taxable_amount=round2(amount),
        gst_rate=rate,
        cgst_rate=breakdown["cgst_rate"],
        cgst_amount=round2(breakdown["cgst_amount"]),
        sgst_rate=breakdown["sgst_rate"],
        sgst_amount=round2(breakdown["sgst_amount"]),
        igst_rate=breakdown["igst_rate"],
        igst_amount=round2(breakdown["igst_amount"]),
        cess_rate=cess,
        cess_amount=round2(cess_amount),
        total_tax_amount=round2(total_tax),
        total_amount=round2(amount + total_tax),
        tax_type=breakdown["tax_type"],
    )


def get_transaction_type(
    seller_state_code: str | None,
    buyer_state_code: str | None,
) -> TransactionType:
    if not seller_state_code or not buyer_state_code:
        return TransactionType("unknown", False, False, "unknown")

    intra = seller_state_code == buyer_state_code
    return TransactionType(
        type="intra-state" if intra else "inter-state",
        is_intra_state=intra,
        is_inter_state=not intra,
        tax_type=TaxType.CGST_SGST.value if intra else TaxType.IGST.value,
    )


def get_applicable_gst_rate(
    hsn_code: str | None = None,
    sac_code: str | None = None,
    *,
    config: GSTRateConfig = DEFAULT_RATE_CONFIG,
) -> Decimal:
    """Suggest a rate from the first four digits of an HSN or SAC code."""
    if hsn_code:
        rate = _HSN_RATES.get(hsn_code.strip()[:4])
    elif sac_code:
        rate = _SAC_RATES.get(sac_code.strip()[:4])
    else:
        rate = None

    if rate is None or not config.is_valid_rate(rate):
        return config.default_rate
    return rate


def is_reverse_charge_applicable(
    supplier_type: str | None,
    recipient_type: str | None,
) -> bool:
    """Unregistered supplier to a registered recipient falls under reverse charge."""
    return supplier_type == "unregistered" and recipient_type == "registered"
