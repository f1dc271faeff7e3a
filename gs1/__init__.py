"""
GS1 identifiers for pharma serialization (GTIN, SSCC, element strings, serials)
"""

from .identifiers import (
    GTINValidationError,
    GTINValidationResult,
    calculate_check_digit,
    normalize_gtin,
    validate_gtin,
    is_valid_gtin,
)
from .sequences import SequenceSource, CounterSequence, RedisSequence, DatabaseSequence, TimestampSequence
from .sscc import SSCCValidationError, make_sscc, make_ssccs, validate_sscc

__all__ = [
    "GTINValidationError",
    "GTINValidationResult",
    "calculate_check_digit",
    "normalize_gtin",
    "validate_gtin",
    "is_valid_gtin",
    "SequenceSource",
    "CounterSequence",
    "RedisSequence",
    "DatabaseSequence",
    "TimestampSequence",
    "SSCCValidationError",
    "make_sscc",
    "make_ssccs",
    "validate_sscc",
]
