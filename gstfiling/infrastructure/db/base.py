# gstfiling/infrastructure/db/base.py

import uuid
from decimal import Decimal

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def as_uuid(value: uuid.UUID | str) -> uuid.UUID:
    """Accept a UUID or its string form (domain records carry string ids)."""
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def to_decimal(value, default: str = "0") -> Decimal:
    if value is None:
        return Decimal(default)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
