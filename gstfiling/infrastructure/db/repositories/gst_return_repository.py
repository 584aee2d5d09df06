# gstfiling/infrastructure/db/repositories/gst_return_repository.py
"""Store for generated GSTR-1 / GSTR-3B returns, one row per (business, type, period)."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gstfiling.domain.models.gst import PeriodicReturn, ReturnStatus, ReturnType
from gstfiling.infrastructure.db.base import as_uuid
from gstfiling.infrastructure.db.models import GstReturn

logger = logging.getLogger("gst_return_repository")


class GstReturnRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @staticmethod
    def to_record(row: GstReturn) -> PeriodicReturn:
        return PeriodicReturn(
            id=str(row.id),
            business_id=str(row.business_id),
            return_type=row.return_type,
            filing_period=row.filing_period,
            financial_year=row.financial_year,
            payload=json.loads(row.payload_json) if row.payload_json else {},
            total_tax_liability=row.total_tax_liability or Decimal("0"),
            total_itc=row.total_itc,
            net_tax_payable=row.net_tax_payable,
            late_fee=row.late_fee,
            status=row.status,
            generated_at=row.generated_at,
            filed_at=row.filed_at,
        )

    async def _get_row(
        self,
        business_id: UUID | str,
        return_type: ReturnType | str,
        filing_period: str,
    ) -> GstReturn | None:
        stmt = select(GstReturn).where(
            and_(
                GstReturn.business_id == as_uuid(business_id),
                GstReturn.return_type == ReturnType(return_type).value,
                GstReturn.filing_period == filing_period,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get(
        self,
        business_id: UUID | str,
        return_type: ReturnType | str,
        filing_period: str,
    ) -> PeriodicReturn | None:
        row = await self._get_row(business_id, return_type, filing_period)
        return self.to_record(row) if row else None

    @staticmethod
    def _warn_if_filed(row: GstReturn) -> None:
        if row.status == ReturnStatus.FILED.value:
            logger.warning(
                "Regenerating a filed return: business=%s type=%s period=%s filed_at=%s; status reset to generated",
                row.business_id, row.return_type, row.filing_period, row.filed_at,
            )

    @staticmethod
    def _apply(row: GstReturn, values: dict[str, Any]) -> None:
        for field, value in values.items():
            setattr(row, field, value)

    async def upsert(
        self,
        business_id: UUID | str,
        return_type: ReturnType | str,
        filing_period: str,
        *,
        financial_year: str,
        payload: dict[str, Any],
        total_tax_liability: Decimal,
        total_itc: Decimal | None = None,
        net_tax_payable: Decimal | None = None,
        late_fee: Decimal | None = None,
    ) -> PeriodicReturn:
        """
        Insert or overwrite the return for (business, type, period).

        Regeneration resets the status to generated. Two writers racing on
        the same key both succeed; the later write wins.
        """
        values = {
            "financial_year": financial_year,
            "payload_json": json.dumps(payload, default=str),
            "total_tax_liability": total_tax_liability,
            "total_itc": total_itc,
            "net_tax_payable": net_tax_payable,
            "late_fee": late_fee,
            "status": ReturnStatus.GENERATED.value,
            "generated_at": datetime.now(timezone.utc),
            "filed_at": None,
        }

        row = await self._get_row(business_id, return_type, filing_period)
        if row is not None:
            self._warn_if_filed(row)
            self._apply(row, values)
            await self.db.commit()
            await self.db.refresh(row)
            logger.info(
                "GST return overwritten: business=%s type=%s period=%s",
                business_id, ReturnType(return_type).value, filing_period,
            )
            return self.to_record(row)

        row = GstReturn(
            business_id=as_uuid(business_id),
            return_type=ReturnType(return_type).value,
            filing_period=filing_period,
            **values,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError:
            # Another writer inserted the same key first; overwrite it
            await self.db.rollback()
            logger.warning(
                "Concurrent insert for business=%s type=%s period=%s, retrying as update",
                business_id, ReturnType(return_type).value, filing_period,
            )
            row = await self._get_row(business_id, return_type, filing_period)
            if row is None:
                raise
            self._warn_if_filed(row)
            self._apply(row, values)
            await self.db.commit()

        await self.db.refresh(row)
        logger.info(
            "GST return stored: business=%s type=%s period=%s",
            business_id, ReturnType(return_type).value, filing_period,
        )
        return self.to_record(row)

    async def mark_filed(
        self,
        business_id: UUID | str,
        return_type: ReturnType | str,
        filing_period: str,
    ) -> PeriodicReturn | None:
        row = await self._get_row(business_id, return_type, filing_period)
        if row is None:
            return None
        row.status = ReturnStatus.FILED.value
        row.filed_at = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(row)
        return self.to_record(row)

    async def list_for_business(
        self,
        business_id: UUID | str,
        *,
        return_type: ReturnType | str | None = None,
        financial_year: str | None = None,
        limit: int = 12,
    ) -> list[PeriodicReturn]:
        """Most recent periods first, optionally filtered by type and FY."""
        stmt = select(GstReturn).where(GstReturn.business_id == as_uuid(business_id))
        if return_type:
            stmt = stmt.where(GstReturn.return_type == ReturnType(return_type).value)
        if financial_year:
            stmt = stmt.where(GstReturn.financial_year == financial_year)
        stmt = stmt.order_by(GstReturn.filing_period.desc(), GstReturn.return_type).limit(limit)
        result = await self.db.execute(stmt)
        return [self.to_record(row) for row in result.scalars().all()]
