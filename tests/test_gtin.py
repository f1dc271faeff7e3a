"""
GTIN normalization and validation tests
"""

import pytest

from gs1.identifiers import (
    GTINValidationError,
    calculate_check_digit,
    gtin_to_sgtin_urn,
    is_valid_gtin,
    normalize_gtin,
    validate_gtin,
)


def test_check_digit_known_values():
    """Test Mod-10 check digits for published example GTINs"""
    assert calculate_check_digit("0061414100001") == "2"
    assert calculate_check_digit("400638133393") == "1"
    assert calculate_check_digit("03600029145") == "2"
    assert calculate_check_digit("9638507") == "4"


def test_check_digit_rejects_non_numeric():
    """Test that check digit input must be digits only"""
    with pytest.raises(ValueError):
        calculate_check_digit("12A4")
    with pytest.raises(ValueError):
        calculate_check_digit("")


@pytest.mark.parametrize("raw,expected", [
    ("96385074", "00000096385074"),          # GTIN-8
    ("036000291452", "00036000291452"),      # GTIN-12
    ("4006381333931", "04006381333931"),     # GTIN-13
    ("10614141000019", "10614141000019"),    # GTIN-14 untouched
])
def test_normalize_pads_to_14_digits(raw, expected):
    """Test that every accepted length is left-padded to GTIN-14"""
    assert normalize_gtin(raw) == expected


def test_normalize_strips_formatting():
    """Test that spaces, dashes and parentheses are removed before padding"""
    assert normalize_gtin("4006-3813 33931") == "04006381333931"
    assert normalize_gtin("(0061414100001-2)") == "00614141000012"


def test_normalize_is_idempotent():
    """Test that normalizing a normalized GTIN changes nothing"""
    once = normalize_gtin("4006381333931")
    assert normalize_gtin(once) == once


@pytest.mark.parametrize("raw", ["1234567", "123456789012345", "", "abc"])
def test_normalize_rejects_bad_length(raw):
    """Test that fewer than 8 or more than 14 digits is an error"""
    with pytest.raises(GTINValidationError) as exc:
        normalize_gtin(raw)
    assert "Invalid GTIN length" in str(exc.value)


def test_validate_valid_gtin():
    """Test validation result for a correct GTIN-13"""
    result = validate_gtin("4006381333931")
    assert result.valid is True
    assert result.normalized == "04006381333931"
    assert result.error is None


def test_validate_wrong_check_digit_is_a_result():
    """Test that a wrong check digit returns valid=False instead of raising"""
    result = validate_gtin("4006381333932")
    assert result.valid is False
    assert result.normalized == "04006381333932"
    assert "check digit is incorrect" in result.error


@pytest.mark.parametrize("gtin", ["00614141000012", "04006381333931", "10614141000019"])
def test_any_single_digit_change_is_detected(gtin):
    """Test that replacing any one digit of a valid GTIN-14 makes it invalid"""
    assert validate_gtin(gtin).valid

    for position in range(14):
        for digit in "0123456789":
            if digit == gtin[position]:
                continue
            changed = gtin[:position] + digit + gtin[position + 1:]
            result = validate_gtin(changed)
            assert result.valid is False, changed
            assert result.normalized == changed


def test_validate_bad_length_reports_error():
    """Test that length errors surface in the result"""
    result = validate_gtin("12345")
    assert result.valid is False
    assert result.normalized is None
    assert "Invalid GTIN length: 5" in result.error


def test_validation_uses_14_digit_form():
    """Test that a short GTIN and its padded form validate identically"""
    for raw in ("96385074", "036000291452", "4006381333931"):
        assert validate_gtin(raw).valid
        assert validate_gtin(normalize_gtin(raw)).valid


@pytest.mark.parametrize("gtin13", ["4006381333931", "5901234123457", "0614141000012"])
def test_gtin13_normalize_then_validate(gtin13):
    """Test that a normalized GTIN-13 validates to the same 14-digit form"""
    normalized = normalize_gtin(gtin13)
    assert normalized == "0" + gtin13

    result = validate_gtin(normalized)
    assert result.valid is True
    assert result.normalized == normalized
    assert validate_gtin(gtin13).normalized == normalized


def test_any_appended_check_digit_validates():
    """Test that appending the computed check digit always yields a valid GTIN"""
    for body in ("0061414100001", "1234567890123", "590123412345", "0000000"):
        gtin = body + calculate_check_digit(body)
        assert is_valid_gtin(gtin), gtin


def test_to_dict_omits_empty_fields():
    """Test the wire shape of a validation result"""
    assert validate_gtin("4006381333931").to_dict() == {"valid": True, "normalized": "04006381333931"}
    assert set(validate_gtin("1").to_dict()) == {"valid", "error"}


def test_sgtin_urn():
    """Test SGTIN URN conversion for EPCIS"""
    urn = gtin_to_sgtin_urn("00614141000012", "RX2501010100A1B2C3")
    assert urn == "urn:epc:id:sgtin:0614141.000001.RX2501010100A1B2C3"


def test_sgtin_urn_rejects_bad_prefix_length():
    """Test that company prefix length must be 6-12"""
    with pytest.raises(GTINValidationError):
        gtin_to_sgtin_urn("00614141000012", "SER1", company_prefix_length=5)
