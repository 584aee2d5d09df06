# gstfiling/infrastructure/db/repositories/purchase_repository.py

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gstfiling.domain.models.gst import LineItem, PurchaseRecord
from gstfiling.infrastructure.db.base import as_uuid
from gstfiling.infrastructure.db.base import to_decimal as _dec
from gstfiling.infrastructure.db.models import Purchase, PurchaseItem


class PurchaseRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @staticmethod
    def to_line_item(row: PurchaseItem) -> LineItem:
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
            itc_eligible=bool(row.itc_eligible),
        )

    @classmethod
    def to_record(cls, row: Purchase) -> PurchaseRecord:
        return PurchaseRecord(
            id=str(row.id),
            supplier_id=row.supplier_id,
            supplier_name=row.supplier_name,
            supplier_gstin=row.supplier_gstin,
            supplier_invoice_number=row.supplier_invoice_number,
            supplier_invoice_date=row.supplier_invoice_date,
            purchase_type=row.purchase_type,
            supplier_state_code=row.supplier_state_code,
            buyer_state_code=row.buyer_state_code,
            reverse_charge=bool(row.reverse_charge),
            itc_eligible=bool(row.itc_eligible),
            discount_amount=_dec(row.discount_amount),
            items=[cls.to_line_item(item) for item in row.items],
            is_active=bool(row.is_active),
        )

    async def list_for_period(
        self,
        business_id: UUID | str,
        start: date,
        end: date,
        *,
        itc_eligible_only: bool = False,
    ) -> list[PurchaseRecord]:
        """Active purchases by supplier invoice date within [start, end]."""
        conditions = [
            Purchase.business_id == as_uuid(business_id),
            Purchase.is_active.is_(True),
            Purchase.supplier_invoice_date >= start,
            Purchase.supplier_invoice_date <= end,
        ]
        if itc_eligible_only:
            conditions.append(Purchase.itc_eligible.is_(True))

        stmt = (
            select(Purchase)
            .options(selectinload(Purchase.items))
            .where(and_(*conditions))
            .order_by(Purchase.supplier_invoice_date, Purchase.supplier_invoice_number)
        )
        result = await self.db.execute(stmt)
        return [self.to_record(row) for row in result.scalars().all()]

    async def find_duplicate(
        self,
        business_id: UUID | str,
        supplier_id: str | None,
        supplier_invoice_number: str,
        *,
        supplier_gstin: str | None = None,
        supplier_name: str | None = None,
    ) -> PurchaseRecord | None:
        """An active purchase already recorded for this supplier and invoice number.

        The supplier is matched by id, else GSTIN, else name. A supplier with
        none of them cannot be matched and never yields a duplicate.
        """
        stmt = (
            select(Purchase)
            .options(selectinload(Purchase.items))
            .where(
                and_(
                    Purchase.business_id == as_uuid(business_id),
                    Purchase.is_active.is_(True),
                    func.upper(Purchase.supplier_invoice_number) == supplier_invoice_number.strip().upper(),
                )
            )
        )
        if supplier_id:
            stmt = stmt.where(Purchase.supplier_id == supplier_id)
        elif supplier_gstin and supplier_gstin.strip():
            stmt = stmt.where(func.upper(Purchase.supplier_gstin) == supplier_gstin.strip().upper())
        elif supplier_name and supplier_name.strip():
            stmt = stmt.where(func.upper(Purchase.supplier_name) == supplier_name.strip().upper())
        else:
            return None

        result = await self.db.execute(stmt.limit(1))
        row = result.scalar_one_or_none()
        return self.to_record(row) if row else None
