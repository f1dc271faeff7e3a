"""
GS1 SSCC (Serial Shipping Container Code) Generator

Generates 18-digit SSCCs for logistic units (boxes, cartons, pallets)
following GS1 General Specifications.

Structure: [Extension][Serial digits from sequence source][Check Digit]
Example:   3 0000000000000042 1

Total: 18 digits

Uniqueness is owned by the SequenceSource passed in (see gs1.sequences);
make_sscc() itself is pure for a given sequence value.
"""

from typing import Optional

from gs1.identifiers import calculate_check_digit
from gs1.sequences import SequenceSource

SSCC_LENGTH = 18
SSCC_PAYLOAD_LENGTH = 17
SERIAL_DIGITS = 16


class SSCCValidationError(ValueError):
    """Raised for malformed SSCC inputs (non-numeric, wrong length, bad extension)."""


def calculate_sscc_check_digit(sscc_17: str) -> str:
    """
    Calculate SSCC check digit using GS1 algorithm (mod 10).

    This is the SAME algorithm used for GTIN check digits.

    Args:
        sscc_17: First 17 digits of SSCC

    Returns:
        Single check digit (0-9)

    Example:
        >>> calculate_sscc_check_digit("30614141123456789")
        '1'
    """
    if len(sscc_17) != SSCC_PAYLOAD_LENGTH or not sscc_17.isdigit():
        raise SSCCValidationError(
            f"SSCC must be 17 digits before check digit, got '{sscc_17}'"
        )
    return calculate_check_digit(sscc_17)


def _extension_for(value: int, extension_digit: Optional[int]) -> str:
    if extension_digit is None:
        # Deterministic for a given sequence value, always 1-9
        return str(1 + value % 9)
    if not isinstance(extension_digit, int) or not 1 <= extension_digit <= 9:
        raise SSCCValidationError(f"Extension must be a single digit 1-9, got '{extension_digit}'")
    return str(extension_digit)


def make_sscc(sequence_source: SequenceSource, extension_digit: Optional[int] = None) -> str:
    """
    Generate an 18-digit SSCC from the next value of a sequence source.

    Args:
        sequence_source: Source of unique, non-negative integers
        extension_digit: 1-9; derived from the sequence value when omitted

    Returns:
        18-digit SSCC with check digit

    Example:
        >>> make_sscc(CounterSequence(start=42), extension_digit=3)
        '300000000000000421'
    """
    value = sequence_source.next_value()
    if value < 0:
        raise SSCCValidationError(f"Sequence value must be non-negative, got {value}")

    extension = _extension_for(value, extension_digit)
    # Keep the rightmost 16 digits so fast-moving sources still fit
    serial = str(value)[-SERIAL_DIGITS:].zfill(SERIAL_DIGITS)

    sscc_17 = f"{extension}{serial}"
    return f"{sscc_17}{calculate_sscc_check_digit(sscc_17)}"


def make_ssccs(sequence_source: SequenceSource, quantity: int, extension_digit: Optional[int] = None) -> list:
    """Generate `quantity` SSCCs for one container level (box, carton or pallet)."""
    if quantity <= 0:
        raise SSCCValidationError(f"Quantity must be positive, got {quantity}")
    return [make_sscc(sequence_source, extension_digit) for _ in range(quantity)]


def build_sscc(company_prefix: str, serial_reference: str, extension_digit: int = 0) -> str:
    """
    Build a company-prefixed SSCC.

    Extension (1) + Company Prefix (7-10) + Serial Reference (rest of 16) + Check Digit (1)

    Args:
        company_prefix: GS1 assigned company prefix (numeric)
        serial_reference: Numeric serial; extension + prefix + serial must be 17 digits
        extension_digit: 0-9

    Returns:
        18-digit SSCC
    """
    if not company_prefix or not company_prefix.isdigit():
        raise SSCCValidationError("Invalid GS1 company prefix")
    if not serial_reference or not serial_reference.isdigit():
        raise SSCCValidationError("SSCC serial reference must be numeric")
    if not 0 <= extension_digit <= 9:
        raise SSCCValidationError(f"Extension must be single digit 0-9, got '{extension_digit}'")

    base = f"{extension_digit}{company_prefix}{serial_reference}"
    if len(base) != SSCC_PAYLOAD_LENGTH:
        raise SSCCValidationError(
            f"SSCC base must be 17 digits (extension + prefix + serial), got {len(base)}"
        )

    return f"{base}{calculate_sscc_check_digit(base)}"


def build_sscc_payload(company_prefix: str, serial_reference: str, extension_digit: int = 0) -> str:
    """GS1 machine format for AI (00): '00' followed by the 18-digit SSCC."""
    return f"00{build_sscc(company_prefix, serial_reference, extension_digit)}"


def sscc_to_urn(sscc: str, company_prefix_length: int = 7) -> str:
    """
    Convert SSCC to GS1 URN format for EPCIS events.

    Args:
        sscc: 18-digit SSCC
        company_prefix_length: Length of the company prefix inside the SSCC

    Returns:
        URN format: urn:epc:id:sscc:company.extension+serial

    Example:
        >>> sscc_to_urn("306141411234567891")
        'urn:epc:id:sscc:0614141.3123456789'
    """
    if len(sscc) != SSCC_LENGTH or not sscc.isdigit():
        raise SSCCValidationError(f"SSCC must be 18 digits, got '{sscc}'")

    extension = sscc[0]
    company_prefix = sscc[1:1 + company_prefix_length]
    serial_reference = sscc[1 + company_prefix_length:SSCC_PAYLOAD_LENGTH]

    return f"urn:epc:id:sscc:{company_prefix}.{extension}{serial_reference}"


def validate_sscc(sscc: str) -> bool:
    """
    Validate SSCC check digit.

    Use Case: Validate SSCCs scanned from barcodes or entered manually
    """
    if len(sscc) != SSCC_LENGTH or not sscc.isdigit():
        return False

    return sscc[17] == calculate_sscc_check_digit(sscc[:17])
