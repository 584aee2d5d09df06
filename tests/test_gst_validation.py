# tests/test_gst_validation.py
"""Tests for rate, state code, GSTIN/PAN and HSN/SAC validation."""

from decimal import Decimal

import pytest

from gstfiling.domain.errors import (
    DuplicateDocument,
    InvalidRate,
    InvalidStateCode,
    MissingState,
)
from gstfiling.domain.models.tax_rate_config import GSTRateConfig
from gstfiling.domain.services.gst_validation import (
    ensure_unique_documents,
    extract_pan,
    extract_state_code,
    get_code_type,
    get_state_name,
    is_valid_gst_rate,
    is_valid_gstin,
    is_valid_pan,
    validate_gst_rate,
    validate_hsn_sac,
    validate_state_code,
)


class TestGstRate:

    @pytest.mark.parametrize("rate", [0, "0.25", 3, 5, 18, 40, Decimal("18.00")])
    def test_valid_rates(self, rate):
        assert validate_gst_rate(rate) == Decimal(str(rate))

    @pytest.mark.parametrize("rate", [12, 28, 17.9, -5, "abc", None])
    def test_invalid_rates_raise(self, rate):
        with pytest.raises(InvalidRate) as exc:
            validate_gst_rate(rate)
        assert exc.value.field == "gst_rate"
        assert exc.value.value == rate
        assert "18" in exc.value.expected

    def test_rate_is_never_coerced(self):
        """12% is an abolished slab, it must not become 5% or 18%."""
        assert is_valid_gst_rate(12) is False
        assert is_valid_gst_rate(18) is True

    def test_custom_rate_table(self):
        config = GSTRateConfig(valid_rates=frozenset({Decimal("12")}))
        assert validate_gst_rate(12, config) == Decimal("12")
        with pytest.raises(InvalidRate):
            validate_gst_rate(18, config)

    def test_error_to_dict(self):
        with pytest.raises(InvalidRate) as exc:
            validate_gst_rate(28)
        data = exc.value.to_dict()
        assert data["code"] == "INVALID_RATE"
        assert data["details"]["field"] == "gst_rate"
        assert data["details"]["value"] == 28


class TestStateCode:

    def test_valid_code_is_stripped(self):
        assert validate_state_code(" 27 ") == "27"

    def test_missing_required(self):
        with pytest.raises(MissingState) as exc:
            validate_state_code(None, field="buyer_state_code")
        assert exc.value.field == "buyer_state_code"

    def test_missing_optional_returns_none(self):
        assert validate_state_code("", required=False) is None

    @pytest.mark.parametrize("code", ["7", "MH", "270", "2a"])
    def test_malformed(self, code):
        with pytest.raises(InvalidStateCode):
            validate_state_code(code)

    def test_state_names(self):
        assert get_state_name("27") == "Maharashtra"
        assert get_state_name("36") == "Telangana"
        assert get_state_name("00") == "Unknown"
        assert get_state_name(None) == "Unknown"


class TestGstin:

    def test_valid_gstin(self):
        assert is_valid_gstin("27AAPFU0939F1ZV") is True
        assert is_valid_gstin(" 29aabct3518q1zv ") is True

    def test_bad_format(self):
        assert is_valid_gstin("27AAPFU0939F1XV") is False
        assert is_valid_gstin("27AAPFU0939F") is False
        assert is_valid_gstin(None) is False

    def test_unknown_state(self):
        assert is_valid_gstin("45AAPFU0939F1ZV") is False

    def test_extract_parts(self):
        assert extract_state_code("27AAPFU0939F1ZV") == "27"
        assert extract_pan("27AAPFU0939F1ZV") == "AAPFU0939F"
        assert extract_pan("27AAP") is None
        assert extract_state_code("") is None

    def test_pan(self):
        assert is_valid_pan("AAPFU0939F") is True
        assert is_valid_pan("AAPFU0939") is False


class TestHsnSac:

    @pytest.mark.parametrize("code", ["1006", "851712", "85171300", "8517 1300"])
    def test_hsn_lengths(self, code):
        assert validate_hsn_sac(code) is True

    def test_hsn_bad_length(self):
        assert validate_hsn_sac("85171") is False

    def test_sac_must_be_six_digits(self):
        assert validate_hsn_sac("998231", "services") is True
        assert validate_hsn_sac("9982", "services") is False

    def test_code_type(self):
        assert get_code_type("998231") == "SAC"
        assert get_code_type("851712") == "HSN"
        assert get_code_type("8517") == "HSN"
        assert get_code_type("AB12") == "UNKNOWN"
        assert get_code_type(None) == "UNKNOWN"


class TestDuplicateDocuments:

    def test_unique_keys_pass(self):
        ensure_unique_documents([("C1", "INV-1"), ("C1", "INV-2"), ("C2", "INV-1")])

    def test_duplicate_raises(self):
        with pytest.raises(DuplicateDocument) as exc:
            ensure_unique_documents([("C1", "INV-1"), ("c1", "inv-1 ")])
        assert exc.value.value == "inv-1 "
        assert exc.value.error_code == "DUPLICATE_DOCUMENT"

    def test_anonymous_counterparties_are_not_compared(self):
        ensure_unique_documents([(None, "1"), ("", "1"), ("  ", "1")])

    def test_named_counterparty_still_checked(self):
        with pytest.raises(DuplicateDocument):
            ensure_unique_documents([("Ramesh Transport", "1"), ("ramesh transport ", "1")])
