# gstfiling/domain/services/gst_returns.py
"""
Return generation over the business / invoice / purchase / return stores.

Reads the period's documents, hands them to the GSTR-1 or GSTR-3B
assembler and persists the result with one upsert. A failure anywhere
before the upsert leaves the store untouched.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Protocol

from gstfiling.core.config import Settings, settings as default_settings
from gstfiling.domain.errors import BusinessNotFound, ReturnNotFound
from gstfiling.domain.models.gst import (
    BusinessProfile,
    InvoiceRecord,
    PeriodicReturn,
    PurchaseRecord,
    ReturnType,
)
from gstfiling.domain.models.tax_rate_config import DEFAULT_RATE_CONFIG, GSTRateConfig
from gstfiling.domain.services.gstr1_service import prepare_gstr1_payload
from gstfiling.domain.services.gstr3b_service import prepare_gstr3b_payload
from gstfiling.domain.services.return_periods import (
    compute_due_dates,
    parse_period,
    period_date_range,
    period_to_fy,
)

logger = logging.getLogger("gst_returns")


class BusinessReader(Protocol):
    async def get_active(self, business_id: str) -> BusinessProfile | None: ...


class InvoiceReader(Protocol):
    async def list_for_period(self, business_id: str, start: date, end: date) -> list[InvoiceRecord]: ...


class PurchaseReader(Protocol):
    async def list_for_period(
        self, business_id: str, start: date, end: date, *, itc_eligible_only: bool = False
    ) -> list[PurchaseRecord]: ...


class ReturnStore(Protocol):
    async def get(self, business_id: str, return_type: ReturnType, filing_period: str) -> PeriodicReturn | None: ...

    async def upsert(self, business_id: str, return_type: ReturnType, filing_period: str, **values: Any) -> PeriodicReturn: ...

    async def mark_filed(self, business_id: str, return_type: ReturnType, filing_period: str) -> PeriodicReturn | None: ...


def export_return_json(record: PeriodicReturn) -> str:
    """Pretty-printed JSON of a stored return payload, for download."""
    return json.dumps(record.payload, indent=2, ensure_ascii=False, default=str)


class GstReturnService:
    def __init__(
        self,
        businesses: BusinessReader,
        invoices: InvoiceReader,
        purchases: PurchaseReader,
        returns: ReturnStore,
        *,
        config: GSTRateConfig = DEFAULT_RATE_CONFIG,
        app_settings: Settings | None = None,
    ) -> None:
        self.businesses = businesses
        self.invoices = invoices
        self.purchases = purchases
        self.returns = returns
        self.config = config
        self.settings = app_settings or default_settings

    @classmethod
    def from_session(cls, db: Any, **kwargs: Any) -> GstReturnService:
        """Wire the SQLAlchemy repositories for one AsyncSession."""
        from gstfiling.infrastructure.db.repositories import (
            BusinessRepository,
            GstReturnRepository,
            InvoiceRepository,
            PurchaseRepository,
        )

        return cls(
            BusinessRepository(db),
            InvoiceRepository(db),
            PurchaseRepository(db),
            GstReturnRepository(db),
            **kwargs,
        )

    async def _business(self, business_id: str) -> BusinessProfile:
        business = await self.businesses.get_active(business_id)
        if business is None:
            raise BusinessNotFound(
                f"Business {business_id} not found or inactive",
                field="business_id",
                value=business_id,
                expected="an active business",
            )
        return business

    async def generate_gstr1(self, business_id: str, period: str) -> PeriodicReturn:
        parse_period(period)
        business = await self._business(business_id)
        start, end = period_date_range(period)

        invoices = await self.invoices.list_for_period(business_id, start, end)
        logger.info(
            "Generating GSTR-1: business=%s period=%s invoices=%d",
            business_id, period, len(invoices),
        )

        result = prepare_gstr1_payload(business, period, invoices, config=self.config)

        return await self.returns.upsert(
            business_id,
            ReturnType.GSTR1,
            period,
            financial_year=period_to_fy(period),
            payload=result.payload,
            total_tax_liability=result.total_tax,
        )

    async def generate_gstr3b(
        self,
        business_id: str,
        period: str,
        *,
        as_of: date | None = None,
    ) -> PeriodicReturn:
        parse_period(period)
        business = await self._business(business_id)
        start, end = period_date_range(period)

        invoices = await self.invoices.list_for_period(business_id, start, end)
        purchases = await self.purchases.list_for_period(
            business_id, start, end, itc_eligible_only=True
        )
        previous = await self.returns.get(business_id, ReturnType.GSTR3B, period)
        logger.info(
            "Generating GSTR-3B: business=%s period=%s invoices=%d purchases=%d regeneration=%s",
            business_id, period, len(invoices), len(purchases), previous is not None,
        )

        result = prepare_gstr3b_payload(
            business,
            period,
            invoices,
            purchases,
            as_of=as_of or date.today(),
            prior_attempt=previous is not None,
            late_fee_on_first_attempt=self.settings.LATE_FEE_ON_FIRST_ATTEMPT,
            config=self.config,
        )
        if result.late_fee.days_late:
            logger.warning(
                "GSTR-3B for %s is %d day(s) late, late fee %.2f",
                period, result.late_fee.days_late, result.late_fee.total,
            )

        return await self.returns.upsert(
            business_id,
            ReturnType.GSTR3B,
            period,
            financial_year=period_to_fy(period),
            payload=result.payload,
            total_tax_liability=result.total_tax_liability,
            total_itc=result.total_itc,
            net_tax_payable=result.net_tax_payable,
            late_fee=result.late_fee.total,
        )

    async def get_return(
        self,
        business_id: str,
        return_type: ReturnType | str,
        period: str,
    ) -> PeriodicReturn:
        parse_period(period)
        record = await self.returns.get(business_id, ReturnType(return_type), period)
        if record is None:
            raise ReturnNotFound(
                f"{ReturnType(return_type).value.upper()} not found for period {period}. Please generate it first.",
                field="filing_period",
                value=period,
                expected="a previously generated return",
            )
        return record

    async def mark_filed(
        self,
        business_id: str,
        return_type: ReturnType | str,
        period: str,
    ) -> PeriodicReturn:
        await self.get_return(business_id, return_type, period)
        record = await self.returns.mark_filed(business_id, ReturnType(return_type), period)
        logger.info(
            "Return marked filed: business=%s type=%s period=%s",
            business_id, ReturnType(return_type).value, period,
        )
        return record

    async def export_return_json(
        self,
        business_id: str,
        return_type: ReturnType | str,
        period: str,
    ) -> str:
        return export_return_json(await self.get_return(business_id, return_type, period))

    def due_dates(self, period: str) -> dict[str, date]:
        gstr1_due, gstr3b_due = compute_due_dates(period, self.config)
        return {"gstr1": gstr1_due, "gstr3b": gstr3b_due}
