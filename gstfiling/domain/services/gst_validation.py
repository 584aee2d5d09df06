# gstfiling/domain/services/gst_validation.py

from __future__ import annotations

import re
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any

from gstfiling.domain.errors import (
    DuplicateDocument,
    InvalidRate,
    InvalidStateCode,
    MissingState,
)
from gstfiling.domain.models.tax_rate_config import DEFAULT_RATE_CONFIG, GSTRateConfig

PAN_REGEX = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
GSTIN_REGEX = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")
STATE_CODE_REGEX = re.compile(r"^[0-9]{2}$")
HSN_REGEX = re.compile(r"^(\d{4}|\d{6}|\d{8})$")
SAC_REGEX = re.compile(r"^\d{6}$")

_SAC_PREFIXES = ("99", "98", "97", "96", "95")

STATE_NAMES: dict[str, str] = {
    "01": "Jammu and Kashmir",
    "02": "Himachal Pradesh",
    "03": "Punjab",
    "04": "Chandigarh",
    "05": "Uttarakhand",
    "06": "Haryana",
    "07": "Delhi",
    "08": "Rajasthan",
    "09": "Uttar Pradesh",
    "10": "Bihar",
    "11": "Sikkim",
    "12": "Arunachal Pradesh",
    "13": "Nagaland",
    "14": "Manipur",
    "15": "Mizoram",
    "16": "Tripura",
    "17": "Meghalaya",
    "18": "Assam",
    "19": "West Bengal",
    "20": "Jharkhand",
    "21": "Odisha",
    "22": "Chhattisgarh",
    "23": "Madhya Pradesh",
    "24": "Gujarat",
    "25": "Daman and Diu",
    "26": "Dadra and Nagar Haveli",
    "27": "Maharashtra",
    "28": "Andhra Pradesh (Old)",
    "29": "Karnataka",
    "30": "Goa",
    "31": "Lakshadweep",
    "32": "Kerala",
    "33": "Tamil Nadu",
    "34": "Puducherry",
    "35": "Andaman and Nicobar Islands",
    "36": "Telangana",
    "37": "Andhra Pradesh (New)",
    "38": "Ladakh",
    "97": "Other Territory",
    "99": "Centre Jurisdiction",
}


# ---------------------------------------------------------------------------
# GST rate
# ---------------------------------------------------------------------------

def validate_gst_rate(rate: Any, config: GSTRateConfig = DEFAULT_RATE_CONFIG) -> Decimal:
    """Return the rate as Decimal, or raise InvalidRate.

    The rate is never coerced to a nearby slab.
    """
    expected = ", ".join(f"{r.normalize():f}" for r in config.sorted_rates())
    try:
        value = rate if isinstance(rate, Decimal) else Decimal(str(rate))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidRate(
            f"Invalid GST rate: {rate!r}. Valid rates: {expected}%",
            field="gst_rate",
            value=rate,
            expected=f"one of {expected}",
        ) from None

    if not value.is_finite() or not config.is_valid_rate(value):
        raise InvalidRate(
            f"Invalid GST rate: {rate}%. Valid rates: {expected}%",
            field="gst_rate",
            value=rate,
            expected=f"one of {expected}",
        )
    return value


def is_valid_gst_rate(rate: Any, config: GSTRateConfig = DEFAULT_RATE_CONFIG) -> bool:
    try:
        validate_gst_rate(rate, config)
    except InvalidRate:
        return False
    return True


# ---------------------------------------------------------------------------
# State codes
# ---------------------------------------------------------------------------

def validate_state_code(
    code: str | None,
    *,
    field: str = "seller_state_code",
    required: bool = True,
) -> str | None:
    """Normalise a two-digit state code.

    Absent codes raise MissingState when required and return None otherwise;
    anything that is not exactly two digits raises InvalidStateCode.
    """
    if code is None or not str(code).strip():
        if required:
            raise MissingState(
                f"{field} is required",
                field=field,
                value=code,
                expected="two-digit state code",
            )
        return None

    code = str(code).strip()
    if not STATE_CODE_REGEX.match(code):
        raise InvalidStateCode(
            f"{field} must be a two-digit state code, got {code!r}",
            field=field,
            value=code,
            expected="two-digit state code, e.g. '27'",
        )
    return code


def get_state_name(state_code: str | None) -> str:
    return STATE_NAMES.get(state_code or "", "Unknown")


# ---------------------------------------------------------------------------
# PAN / GSTIN
# ---------------------------------------------------------------------------

def is_valid_pan(pan: str | None) -> bool:
    if not pan:
        return False
    pan = pan.strip().upper()
    return bool(PAN_REGEX.match(pan))


def is_valid_gstin(gstin: str | None) -> bool:
    if not gstin:
        return False
    gstin = gstin.strip().upper()
    if not GSTIN_REGEX.match(gstin):
        return False

    if gstin[:2] not in STATE_NAMES:
        return False

    # Extra: check PAN part inside GSTIN
    return is_valid_pan(gstin[2:12])


def extract_state_code(gstin: str | None) -> str | None:
    if not gstin or len(gstin) < 2:
        return None
    return gstin[:2]


def extract_pan(gstin: str | None) -> str | None:
    if not gstin or len(gstin) < 12:
        return None
    return gstin[2:12]


# ---------------------------------------------------------------------------
# HSN / SAC
# ---------------------------------------------------------------------------

def _clean_code(code: str | None) -> str:
    return re.sub(r"\s", "", str(code or ""))


def validate_hsn_sac(code: str | None, kind: str = "goods") -> bool:
    """HSN (goods): 4, 6 or 8 digits. SAC (services): exactly 6 digits."""
    code = _clean_code(code)
    if kind == "services":
        return bool(SAC_REGEX.match(code))
    return bool(HSN_REGEX.match(code))


def get_code_type(code: str | None) -> str:
    """Return 'HSN', 'SAC' or 'UNKNOWN' for a classification code."""
    code = _clean_code(code)
    if not HSN_REGEX.match(code):
        return "UNKNOWN"
    if len(code) == 6 and code.startswith(_SAC_PREFIXES):
        return "SAC"
    return "HSN"


# ---------------------------------------------------------------------------
# Duplicate documents
# ---------------------------------------------------------------------------

def ensure_unique_documents(
    keys: Iterable[tuple[str | None, str]],
    *,
    field: str = "invoice_number",
) -> None:
    """Raise DuplicateDocument if a (counterparty, document number) pair repeats.

    Documents without any counterparty identity are not compared: two
    anonymous parties may well use the same number.
    """
    seen: set[tuple[str, str]] = set()
    for counterparty, number in keys:
        party = (counterparty or "").strip().upper()
        if not party:
            continue
        key = (party, number.strip().upper())
        if key in seen:
            raise DuplicateDocument(
                f"Document {number} from counterparty {counterparty} is recorded more than once",
                field=field,
                value=number,
                expected="unique document number per counterparty",
            )
        seen.add(key)
