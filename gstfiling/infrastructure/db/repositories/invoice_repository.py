# gstfiling/infrastructure/db/repositories/invoice_repository.py

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gstfiling.domain.models.gst import InvoiceRecord, LineItem
from gstfiling.infrastructure.db.base import as_uuid
from gstfiling.infrastructure.db.base import to_decimal as _dec
from gstfiling.infrastructure.db.models import Invoice, InvoiceItem


class InvoiceRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @staticmethod
    def to_line_item(row: InvoiceItem) -> LineItem:
        return LineItem(
            item_name=row.item_name or "",
            hsn_code=row.hsn_code,
            sac_code=row.sac_code,
            unit=row.unit or "NOS",
            quantity=_dec(row.quantity),
            unit_price=_dec(row.unit_price),
            gst_rate=_dec(row.gst_rate),
            cess_rate=_dec(row.cess_rate),
            discount_amount=_dec(row.discount_amount),
        )

    @classmethod
    def to_record(cls, row: Invoice) -> InvoiceRecord:
        return InvoiceRecord(
            id=str(row.id),
            invoice_number=row.invoice_number,
            invoice_date=row.invoice_date,
            invoice_type=row.invoice_type,
            customer_id=row.customer_id,
            customer_name=row.customer_name,
            counterparty_gstin=row.customer_gstin,
            seller_state_code=row.seller_state_code,
            buyer_state_code=row.buyer_state_code,
            reverse_charge=bool(row.reverse_charge),
            discount_amount=_dec(row.discount_amount),
            items=[cls.to_line_item(item) for item in row.items],
            is_active=bool(row.is_active),
        )

    async def list_for_period(
        self,
        business_id: UUID | str,
        start: date,
        end: date,
    ) -> list[InvoiceRecord]:
        """Active invoices dated within [start, end], oldest first."""
        stmt = (
            select(Invoice)
            .options(selectinload(Invoice.items))
            .where(
                and_(
                    Invoice.business_id == as_uuid(business_id),
                    Invoice.is_active.is_(True),
                    Invoice.invoice_date >= start,
                    Invoice.invoice_date <= end,
                )
            )
            .order_by(Invoice.invoice_date, Invoice.invoice_number)
        )
        result = await self.db.execute(stmt)
        return [self.to_record(row) for row in result.scalars().all()]
