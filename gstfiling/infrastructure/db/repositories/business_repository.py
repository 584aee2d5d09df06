# gstfiling/infrastructure/db/repositories/business_repository.py

from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gstfiling.domain.models.gst import BusinessProfile
from gstfiling.infrastructure.db.base import as_uuid
from gstfiling.infrastructure.db.models import Business


class BusinessRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @staticmethod
    def to_profile(row: Business) -> BusinessProfile:
        return BusinessProfile(
            id=str(row.id),
            business_name=row.business_name or "",
            gstin=row.gstin,
            state=row.state,
            state_code=row.state_code,
            filing_frequency=row.filing_frequency or "monthly",
            is_active=bool(row.is_active),
        )

    async def get_by_id(self, business_id: UUID | str) -> Business | None:
        try:
            key = as_uuid(business_id)
        except ValueError:
            return None
        stmt = select(Business).where(Business.id == key)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active(self, business_id: UUID | str) -> BusinessProfile | None:
        """Business profile, or None when absent or deactivated."""
        try:
            key = as_uuid(business_id)
        except ValueError:
            return None
        stmt = select(Business).where(
            and_(Business.id == key, Business.is_active.is_(True))
        )
        result = await self.db.execute(stmt)
        row = result.scalar_one_or_none()
        return self.to_profile(row) if row else None
