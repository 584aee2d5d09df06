# gstfiling/domain/models/gst.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class InvoiceType(str, Enum):
    B2B = "b2b"
    B2C = "b2c"
    B2C_LARGE = "b2c_large"
    B2C_SMALL = "b2c_small"
    EXPORT = "export"
    SEZ = "sez"
    IMPORT = "import"


ZERO_RATED_TYPES = frozenset({InvoiceType.EXPORT, InvoiceType.SEZ})


class PurchaseType(str, Enum):
    GOODS = "goods"
    SERVICES = "services"
    CAPITAL_GOODS = "capital_goods"
    IMPORT = "import"


class TaxType(str, Enum):
    CGST_SGST = "CGST_SGST"
    IGST = "IGST"
    NONE = "NONE"


class ItcCategory(str, Enum):
    IMPORT_GOODS = "import_goods"
    IMPORT_SERVICES = "import_services"
    REVERSE_CHARGE = "reverse_charge"
    OTHER = "other"


class ReturnType(str, Enum):
    GSTR1 = "gstr1"
    GSTR3B = "gstr3b"


class ReturnStatus(str, Enum):
    GENERATED = "generated"
    FILED = "filed"


class LineItem(BaseModel):
    """One invoice / purchase line as entered (before tax)."""

    model_config = ConfigDict(frozen=True)

    item_name: str = ""
    hsn_code: Optional[str] = None
    sac_code: Optional[str] = None
    unit: str = "NOS"
    quantity: Decimal
    unit_price: Decimal
    gst_rate: Decimal
    cess_rate: Decimal = Field(default=Decimal("0"))
    discount_amount: Decimal = Field(default=Decimal("0"))
    # Purchase lines only
    itc_eligible: bool = True

    @property
    def subtotal(self) -> Decimal:
        return self.quantity * self.unit_price

    @property
    def taxable_amount(self) -> Decimal:
        return self.subtotal - self.discount_amount

    @property
    def classification_code(self) -> str:
        return self.hsn_code or self.sac_code or "NA"


class BusinessProfile(BaseModel):
    id: str
    business_name: str = ""
    gstin: str
    state: Optional[str] = None
    state_code: Optional[str] = None
    filing_frequency: str = "monthly"
    is_active: bool = True

    @property
    def resolved_state_code(self) -> Optional[str]:
        if self.state_code:
            return self.state_code
        if self.gstin and len(self.gstin) >= 2:
            return self.gstin[:2]
        return None


class InvoiceRecord(BaseModel):
    """Outward supply document as read from the invoice store."""

    id: str
    invoice_number: str
    invoice_date: date
    invoice_type: InvoiceType = InvoiceType.B2B
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    counterparty_gstin: Optional[str] = None
    seller_state_code: Optional[str] = None
    buyer_state_code: Optional[str] = None
    reverse_charge: bool = False
    discount_amount: Decimal = Field(default=Decimal("0"))
    items: list[LineItem] = Field(default_factory=list)
    is_active: bool = True


class PurchaseRecord(BaseModel):
    """Inward supply document as read from the purchase store."""

    id: str
    supplier_id: Optional[str] = None
    supplier_name: Optional[str] = None
    supplier_gstin: Optional[str] = None
    supplier_invoice_number: str
    supplier_invoice_date: date
    purchase_type: PurchaseType = PurchaseType.GOODS
    supplier_state_code: Optional[str] = None
    buyer_state_code: Optional[str] = None
    reverse_charge: bool = False
    itc_eligible: bool = True
    discount_amount: Decimal = Field(default=Decimal("0"))
    items: list[LineItem] = Field(default_factory=list)
    is_active: bool = True


class TaxBucket(BaseModel):
    """Taxable value and tax per head for one GSTR-3B supply line."""

    taxable_value: Decimal = Field(default=Decimal("0"))
    igst: Decimal = Field(default=Decimal("0"))
    cgst: Decimal = Field(default=Decimal("0"))
    sgst: Decimal = Field(default=Decimal("0"))
    cess: Decimal = Field(default=Decimal("0"))

    @property
    def total_tax(self) -> Decimal:
        return self.igst + self.cgst + self.sgst + self.cess


class ItcBucket(BaseModel):
    """Input tax credit per head."""

    igst: Decimal = Field(default=Decimal("0"))
    cgst: Decimal = Field(default=Decimal("0"))
    sgst: Decimal = Field(default=Decimal("0"))
    cess: Decimal = Field(default=Decimal("0"))

    @property
    def total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst + self.cess

    def add(self, other: ItcBucket) -> None:
        self.igst += other.igst
        self.cgst += other.cgst
        self.sgst += other.sgst
        self.cess += other.cess


class PeriodicReturn(BaseModel):
    """A generated return as kept by the return store."""

    id: Optional[str] = None
    business_id: str
    return_type: ReturnType
    filing_period: str
    financial_year: str
    payload: dict[str, Any] = Field(default_factory=dict)
    total_tax_liability: Decimal = Field(default=Decimal("0"))
    total_itc: Optional[Decimal] = None
    net_tax_payable: Optional[Decimal] = None
    late_fee: Optional[Decimal] = None
    status: ReturnStatus = ReturnStatus.GENERATED
    generated_at: Optional[datetime] = None
    filed_at: Optional[datetime] = None
