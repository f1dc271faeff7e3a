"""
GS1 Identifier Module

This module normalizes and validates GTINs (Global Trade Item Numbers):
- GTIN-8, GTIN-12, GTIN-13 and GTIN-14 are accepted
- Every GTIN is normalized to its 14-digit form before anything else
- Check digits use the GS1 Mod-10 algorithm

The normalized GTIN-14 is the form that gets persisted and printed on labels.
Leading zeros are significant and are never stripped.
"""

import re
from dataclasses import dataclass
from typing import Optional

GTIN_MIN_LENGTH = 8
GTIN_LENGTH = 14

_NON_DIGITS = re.compile(r"\D")


class GTINValidationError(ValueError):
    """Raised when a GTIN cannot be normalized (wrong digit count)."""


@dataclass
class GTINValidationResult:
    """Outcome of validate_gtin(). A wrong check digit is a result, not an error."""

    valid: bool
    normalized: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"valid": self.valid}
        if self.normalized is not None:
            data["normalized"] = self.normalized
        if self.error is not None:
            data["error"] = self.error
        return data


def calculate_check_digit(code: str) -> str:
    """
    Calculate GS1 check digit using the standard algorithm.

    Args:
        code: Numeric string without check digit

    Returns:
        Single digit check digit as string

    Example:
        >>> calculate_check_digit("0061414100001")
        '2'
    """
    if not code or not code.isdigit():
        raise ValueError(f"Check digit input must be numeric, got '{code}'")

    # GS1 check digit algorithm: weight alternates 3,1,3,1... from right to left
    total = sum(int(digit) * (3 if i % 2 == 0 else 1) for i, digit in enumerate(reversed(code)))
    check_digit = (10 - (total % 10)) % 10
    return str(check_digit)


def normalize_gtin(value: str) -> str:
    """
    Normalize a GTIN to 14 digits (GTIN-14).

    Non-digit characters (spaces, dashes, parentheses) are removed first,
    then the digits are left-padded with zeros. Does NOT check the check
    digit - use validate_gtin() for that.

    Args:
        value: GTIN-8, GTIN-12, GTIN-13 or GTIN-14, possibly formatted

    Returns:
        14-digit GTIN string

    Raises:
        GTINValidationError: If the digit count is outside 8-14

    Example:
        >>> normalize_gtin("614141 000012")
        '00614141000012'
    """
    digits = _NON_DIGITS.sub("", value or "")

    if len(digits) < GTIN_MIN_LENGTH or len(digits) > GTIN_LENGTH:
        raise GTINValidationError(
            f"Invalid GTIN length: {len(digits)}. "
            f"Must be 8-14 digits (GTIN-8, GTIN-12, GTIN-13, or GTIN-14)."
        )

    return digits.zfill(GTIN_LENGTH)


def _has_valid_check_digit(gtin_14: str) -> bool:
    # Weights are only correct on the 14-digit form
    if len(gtin_14) != GTIN_LENGTH:
        return False
    return calculate_check_digit(gtin_14[:13]) == gtin_14[13]


def validate_gtin(value: str) -> GTINValidationResult:
    """
    Normalize and validate a GTIN.

    Process:
    1. Normalize to GTIN-14 (left-pad with zeros)
    2. Validate check digit using GS1 Mod-10 on the normalized form

    Args:
        value: Raw GTIN as typed or scanned

    Returns:
        GTINValidationResult with the normalized GTIN when it is well formed
    """
    try:
        normalized = normalize_gtin(value)
    except GTINValidationError as e:
        return GTINValidationResult(valid=False, error=str(e))

    if not _has_valid_check_digit(normalized):
        return GTINValidationResult(
            valid=False,
            normalized=normalized,
            error=(
                "Invalid GTIN. Please verify the number or GTIN source. "
                "The GTIN check digit is incorrect."
            ),
        )

    return GTINValidationResult(valid=True, normalized=normalized)


def is_valid_gtin(value: str) -> bool:
    """Check if a GTIN is valid without raising."""
    return validate_gtin(value).valid


def gtin_to_sgtin_urn(gtin: str, serial_number: str, company_prefix_length: int = 7) -> str:
    """
    Convert a GTIN to SGTIN URN format per GS1 EPCIS 2.0 standard.

    SGTIN URN Format: urn:epc:id:sgtin:CompanyPrefix.IndicatorAndItemRef.SerialNumber

    GTIN-14 Structure: [Indicator(1)][CompanyPrefix(n)][ItemRef(12-n)][CheckDigit(1)]

    Args:
        gtin: Any accepted GTIN length (normalized to 14 digits first)
        serial_number: Unit serial number (AI 21)
        company_prefix_length: Length of the GS1 company prefix (6-12)

    Returns:
        GS1-compliant SGTIN URN

    Example:
        >>> gtin_to_sgtin_urn("00614141000012", "RX2501010100A1B2C3")
        'urn:epc:id:sgtin:0614141.000001.RX2501010100A1B2C3'
    """
    if not 6 <= company_prefix_length <= 12:
        raise GTINValidationError(
            f"Company prefix length must be 6-12, got {company_prefix_length}"
        )

    gtin_14 = normalize_gtin(gtin)
    indicator = gtin_14[0]
    company_prefix = gtin_14[1:1 + company_prefix_length]
    item_ref = gtin_14[1 + company_prefix_length:13]

    return f"urn:epc:id:sgtin:{company_prefix}.{indicator}{item_ref}.{serial_number}"
