"""Shared test fixtures for the GST filing core test suite."""

import asyncio
from datetime import datetime, timezone

import pytest

from gstfiling.domain.models.gst import (
    BusinessProfile,
    PeriodicReturn,
    ReturnStatus,
    ReturnType,
)


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def business() -> BusinessProfile:
    """A Maharashtra-registered business filing monthly."""
    return BusinessProfile(
        id="6f1c2a9e-4b7d-4c1e-9a3f-2d5e8b7c1a00",
        business_name="Sharma Traders",
        gstin="27AAPFU0939F1ZV",
        state="Maharashtra",
        state_code="27",
    )


# ---------------------------------------------------------------------------
# In-memory stores standing in for the SQLAlchemy repositories
# ---------------------------------------------------------------------------

class FakeBusinessRepository:
    def __init__(self, *businesses: BusinessProfile) -> None:
        self.rows = {b.id: b for b in businesses}

    async def get_active(self, business_id):
        business = self.rows.get(str(business_id))
        if business is None or not business.is_active:
            return None
        return business


class FakeInvoiceRepository:
    def __init__(self, invoices=()) -> None:
        self.invoices = list(invoices)
        self.calls = []

    async def list_for_period(self, business_id, start, end):
        self.calls.append((business_id, start, end))
        return [
            inv for inv in self.invoices
            if inv.is_active and start <= inv.invoice_date <= end
        ]


class FakePurchaseRepository:
    def __init__(self, purchases=()) -> None:
        self.purchases = list(purchases)

    async def list_for_period(self, business_id, start, end, *, itc_eligible_only=False):
        return [
            p for p in self.purchases
            if p.is_active
            and start <= p.supplier_invoice_date <= end
            and (p.itc_eligible or not itc_eligible_only)
        ]


class FakeReturnStore:
    """Keyed by (business, type, period); upsert overwrites."""

    def __init__(self) -> None:
        self.rows: dict[tuple[str, str, str], PeriodicReturn] = {}
        self.upserts = 0

    async def get(self, business_id, return_type, filing_period):
        return self.rows.get((str(business_id), ReturnType(return_type).value, filing_period))

    async def upsert(self, business_id, return_type, filing_period, **values):
        self.upserts += 1
        key = (str(business_id), ReturnType(return_type).value, filing_period)
        record = PeriodicReturn(
            id=f"ret-{len(self.rows) + 1}",
            business_id=str(business_id),
            return_type=ReturnType(return_type),
            filing_period=filing_period,
            generated_at=datetime.now(timezone.utc),
            **values,
        )
        self.rows[key] = record
        return record

    async def mark_filed(self, business_id, return_type, filing_period):
        key = (str(business_id), ReturnType(return_type).value, filing_period)
        record = self.rows.get(key)
        if record is None:
            return None
        record = record.model_copy(
            update={"status": ReturnStatus.FILED, "filed_at": datetime.now(timezone.utc)}
        )
        self.rows[key] = record
        return record


@pytest.fixture
def return_store() -> FakeReturnStore:
    return FakeReturnStore()


@pytest.fixture
def fakes():
    """Factory classes for the in-memory repositories."""
    return {
        "businesses": FakeBusinessRepository,
        "invoices": FakeInvoiceRepository,
        "purchases": FakePurchaseRepository,
    }
