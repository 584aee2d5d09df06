# gstfiling/infrastructure/db/models.py

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship

from gstfiling.infrastructure.db.base import Base


class Business(Base):
    __tablename__ = "businesses"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_name = Column(String(200), nullable=False, default="")
    gstin = Column(String(15), nullable=False, index=True)
    state = Column(String(100), nullable=True)
    state_code = Column(String(2), nullable=True)
    filing_frequency = Column(String(20), nullable=False, default="monthly")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))

    invoices = relationship("Invoice", back_populates="business")
    purchases = relationship("Purchase", back_populates="business")
    returns = relationship("GstReturn", back_populates="business")


class Invoice(Base):
    __tablename__ = "invoices"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(Uuid(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_number = Column(String(50), nullable=False)
    invoice_date = Column(Date, nullable=False, index=True)
    # b2b / b2c / b2c_large / b2c_small / export / sez
    invoice_type = Column(String(20), nullable=False, default="b2b")
    customer_id = Column(String(64), nullable=True)
    customer_name = Column(String(200), nullable=True)
    customer_gstin = Column(String(15), nullable=True)
    seller_state_code = Column(String(2), nullable=True)
    buyer_state_code = Column(String(2), nullable=True)
    reverse_charge = Column(Boolean, nullable=False, default=False)
    discount_amount = Column(Numeric(14, 2), nullable=False, default=0)
    # Totals as last computed when the invoice was saved
    taxable_amount = Column(Numeric(14, 2), nullable=True)
    total_tax_amount = Column(Numeric(14, 2), nullable=True)
    total_amount = Column(Numeric(14, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))

    business = relationship("Business", back_populates="invoices")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        order_by="InvoiceItem.position",
        cascade="all, delete-orphan",
    )


class InvoiceItem(Base):
    __tablename__ = "invoice_items"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    item_name = Column(String(200), nullable=False, default="")
    hsn_code = Column(String(8), nullable=True)
    sac_code = Column(String(6), nullable=True)
    unit = Column(String(10), nullable=False, default="NOS")
    quantity = Column(Numeric(14, 3), nullable=False)
    unit_price = Column(Numeric(14, 2), nullable=False)
    gst_rate = Column(Numeric(5, 2), nullable=False)
    cess_rate = Column(Numeric(5, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(14, 2), nullable=False, default=0)

    invoice = relationship("Invoice", back_populates="items")


class Purchase(Base):
    __tablename__ = "purchases"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(Uuid(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(String(64), nullable=True)
    supplier_name = Column(String(200), nullable=True)
    supplier_gstin = Column(String(15), nullable=True)
    supplier_invoice_number = Column(String(50), nullable=False)
    supplier_invoice_date = Column(Date, nullable=False, index=True)
    # goods / services / capital_goods / import
    purchase_type = Column(String(20), nullable=False, default="goods")
    supplier_state_code = Column(String(2), nullable=True)
    buyer_state_code = Column(String(2), nullable=True)
    reverse_charge = Column(Boolean, nullable=False, default=False)
    itc_eligible = Column(Boolean, nullable=False, default=True)
    discount_amount = Column(Numeric(14, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))

    business = relationship("Business", back_populates="purchases")
    items = relationship(
        "PurchaseItem",
        back_populates="purchase",
        order_by="PurchaseItem.position",
        cascade="all, delete-orphan",
    )


class PurchaseItem(Base):
    __tablename__ = "purchase_items"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    purchase_id = Column(Uuid(as_uuid=True), ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    item_name = Column(String(200), nullable=False, default="")
    hsn_code = Column(String(8), nullable=True)
    sac_code = Column(String(6), nullable=True)
    unit = Column(String(10), nullable=False, default="NOS")
    quantity = Column(Numeric(14, 3), nullable=False)
    unit_price = Column(Numeric(14, 2), nullable=False)
    gst_rate = Column(Numeric(5, 2), nullable=False)
    cess_rate = Column(Numeric(5, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(14, 2), nullable=False, default=0)
    itc_eligible = Column(Boolean, nullable=False, default=True)

    purchase = relationship("Purchase", back_populates="items")


class GstReturn(Base):
    __tablename__ = "gst_returns"
    __table_args__ = (
        UniqueConstraint("business_id", "return_type", "filing_period", name="uq_gst_returns_business_type_period"),
    )
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(Uuid(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    return_type = Column(String(10), nullable=False)  # gstr1 / gstr3b
    filing_period = Column(String(7), nullable=False)  # YYYY-MM
    financial_year = Column(String(7), nullable=False)  # 2025-26
    payload_json = Column(Text, nullable=False)
    total_tax_liability = Column(Numeric(14, 2), nullable=False, default=0)
    total_itc = Column(Numeric(14, 2), nullable=True)
    net_tax_payable = Column(Numeric(14, 2), nullable=True)
    late_fee = Column(Numeric(14, 2), nullable=True)
    status = Column(String(20), nullable=False, default="generated")
    generated_at = Column(DateTime(timezone=True), nullable=False)
    filed_at = Column(DateTime(timezone=True), nullable=True)

    business = relationship("Business", back_populates="returns")
