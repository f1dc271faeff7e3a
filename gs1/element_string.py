"""
GS1 Element Strings

Builds and parses the GS1 payload encoded in unit-level DataMatrix codes.

Machine format (no parentheses, FNC1 = ASCII 29 after variable-length AIs):
    01<GTIN-14>17<YYMMDD>11<YYMMDD>10<BATCH><FNC1>21<SERIAL><FNC1>91<MRP><FNC1>92<SKU><FNC1>93<COMPANY>

Application Identifiers used:
- (00) SSCC, 18 digits (logistic units)
- (01) GTIN, 14 digits
- (17) Expiry date, (11) Manufacturing date, YYMMDD
- (10) Batch, (21) Serial, variable length
- (91) MRP, (92) SKU, (93) Company - company-internal AIs, variable length

Fixed-length AIs come first, variable-length AIs after, so only the
variable ones need an FNC1 terminator. The trailing FNC1 is dropped.
"""

import logging
import re
from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Optional, Union

from gs1.identifiers import validate_gtin

logger = logging.getLogger(__name__)

FNC1 = chr(29)  # ASCII Group Separator

# Variable-length AIs: name -> (AI code, max length)
VARIABLE_AIS = {
    "batch": ("10", 20),
    "serial": ("21", 20),
    "mrp": ("91", 20),
    "sku": ("92", 20),
    "company": ("93", 20),
}

FIXED_LENGTH_AIS = {"00": 18, "01": 14, "11": 6, "17": 6}

DateInput = Union[str, date, datetime]


class GS1PayloadError(ValueError):
    """Raised when a GS1 payload cannot be built from the given fields."""


def format_date_yymmdd(value: DateInput) -> str:
    """Format a date (or ISO date string) as GS1 YYMMDD."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            raise GS1PayloadError(f"Invalid date: {value}")
    if not isinstance(value, date):
        raise GS1PayloadError(f"Invalid date: {value}")
    return value.strftime("%y%m%d")


def normalize_mrp(raw: Union[str, int, float]) -> str:
    """
    Normalize an MRP to rupees with two decimals.

    Handles "1,234.50", "1.234,50", "45,5" and currency symbols.

    Example:
        >>> normalize_mrp("₹1,234.5")
        '1234.50'
    """
    if isinstance(raw, (int, float)):
        if raw < 0:
            raise GS1PayloadError(f"Invalid MRP value: {raw}")
        return f"{raw:.2f}"

    s = re.sub(r"[^\d.,\-]", "", raw.strip())
    if not re.search(r"\d", s):
        raise GS1PayloadError(f"Invalid MRP format: {raw}")

    dots = s.count(".")
    commas = s.count(",")
    value = s

    if dots and commas:
        # Whichever separator comes last is the decimal point
        if s.rfind(".") > s.rfind(","):
            value = s.replace(",", "")
        else:
            value = s.replace(".", "").replace(",", ".")
    elif commas and not dots:
        parts = s.split(",")
        if len(parts) == 2 and len(parts[1]) <= 2:
            value = f"{parts[0]}.{parts[1]}"
        else:
            value = s.replace(",", "")
    elif dots > 1:
        value = s.replace(".", "")

    try:
        number = float(value)
    except ValueError:
        raise GS1PayloadError(f"Invalid MRP value: {raw}")
    if number < 0:
        raise GS1PayloadError(f"Invalid MRP value: {raw}")

    return f"{number:.2f}"


def _variable_ai_value(value: str, name: str) -> str:
    ai_code, max_length = VARIABLE_AIS[name]

    if value is None or not str(value).strip():
        raise GS1PayloadError(f"AI {ai_code} ({name}) is required but was empty")

    trimmed = str(value).strip()
    if len(trimmed) > max_length:
        raise GS1PayloadError(
            f"AI {ai_code} ({name}) exceeds maximum length of {max_length} characters: {len(trimmed)}"
        )
    if FNC1 in trimmed:
        raise GS1PayloadError(f"AI {ai_code} ({name}) contains invalid FNC1 character")

    return trimmed


def build_gs1_payload(
    gtin: str,
    expiry: DateInput,
    mfg_date: DateInput,
    batch: str,
    serial: str,
    mrp: Union[str, float, None] = None,
    sku: Optional[str] = None,
    company: Optional[str] = None,
) -> str:
    """
    Generate the canonical GS1 machine-format payload for a unit label.

    Args:
        gtin: AI (01), any accepted GTIN length; must carry a valid check digit
        expiry: AI (17) expiry date
        mfg_date: AI (11) manufacturing date
        batch: AI (10) batch/lot, max 20 chars
        serial: AI (21) serial, max 20 chars
        mrp: AI (91) MRP in rupees (optional)
        sku: AI (92) SKU code (optional)
        company: AI (93) company name (optional)

    Returns:
        GS1 machine-format string (no parentheses, with FNC1 separators)

    Raises:
        GS1PayloadError: If mandatory fields are missing or invalid
    """
    if not gtin:
        raise GS1PayloadError("GTIN (01) is required")
    if not expiry:
        raise GS1PayloadError("Expiry date (17) is required")
    if not mfg_date:
        raise GS1PayloadError("Manufacturing date (11) is required")

    gtin_result = validate_gtin(gtin)
    if not gtin_result.valid:
        raise GS1PayloadError(gtin_result.error)
    gtin_14 = gtin_result.normalized

    segments = [
        f"01{gtin_14}",
        f"17{format_date_yymmdd(expiry)}",
        f"11{format_date_yymmdd(mfg_date)}",
        f"10{_variable_ai_value(batch, 'batch')}{FNC1}",
        f"21{_variable_ai_value(serial, 'serial')}{FNC1}",
    ]

    if mrp is not None:
        segments.append(f"91{_variable_ai_value(normalize_mrp(mrp), 'mrp')}{FNC1}")
    if sku:
        segments.append(f"92{_variable_ai_value(sku, 'sku')}{FNC1}")
    if company:
        segments.append(f"93{_variable_ai_value(company, 'company')}{FNC1}")

    # Last AI doesn't need a terminator
    return "".join(segments).rstrip(FNC1)


def to_human_readable(payload: str) -> str:
    """Render a machine-format payload with parentheses, e.g. (01)...(17)..."""
    data = parse_gs1(payload)
    if not data.parsed:
        return payload

    parts = []
    for ai, field_name in (("00", "sscc"), ("01", "gtin"), ("17", "expiry_raw"), ("11", "mfg_raw")):
        value = getattr(data, field_name)
        if value:
            parts.append(f"({ai}){value}")
    for name, (ai, _) in VARIABLE_AIS.items():
        value = getattr(data, name)
        if value:
            parts.append(f"({ai}){value}")
    return "".join(parts)


def normalize_gs1_payload(payload: str) -> str:
    """
    Normalize GS1 payload to canonical format for comparison.

    Removes parentheses and spaces, maps alternate FNC1 encodings to ASCII 29.
    (ASCII 29 counts as whitespace for str.isspace(), so \\s is not usable here.)
    """
    if not payload:
        return ""

    normalized = re.sub(r"[()]", "", payload)
    normalized = re.sub("[\u001dñ]", FNC1, normalized)
    normalized = re.sub(r"[ \t\r\n]", "", normalized)
    return normalized


def compare_gs1_payloads(stored: str, scanned: str) -> bool:
    """Compare a stored payload with a scanned one, ignoring format differences."""
    return normalize_gs1_payload(stored) == normalize_gs1_payload(scanned)


@dataclass
class GS1Data:
    """Fields extracted from a scanned GS1 barcode."""

    raw: str
    parsed: bool = False
    sscc: Optional[str] = None
    gtin: Optional[str] = None
    expiry_date: Optional[str] = None  # DD-MM-YYYY
    mfg_date: Optional[str] = None  # DD-MM-YYYY
    expiry_raw: Optional[str] = None  # YYMMDD
    mfg_raw: Optional[str] = None  # YYMMDD
    batch: Optional[str] = None
    serial: Optional[str] = None
    mrp: Optional[str] = None
    sku: Optional[str] = None
    company: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def format_gs1_date(yymmdd: str) -> str:
    """
    Convert GS1 YYMMDD to DD-MM-YYYY.

    YY 00-49 => 2000-2049, 50-99 => 1950-1999.
    """
    if len(yymmdd) != 6 or not yymmdd.isdigit():
        return yymmdd

    yy, mm, dd = yymmdd[:2], yymmdd[2:4], yymmdd[4:]
    century = "20" if int(yy) < 50 else "19"
    return f"{dd}-{mm}-{century}{yy}"


def _store(result: GS1Data, ai: str, value: str) -> None:
    if ai == "00":
        result.sscc = value
    elif ai == "01":
        result.gtin = value
    elif ai == "17":
        result.expiry_raw = value
        result.expiry_date = format_gs1_date(value)
    elif ai == "11":
        result.mfg_raw = value
        result.mfg_date = format_gs1_date(value)
    else:
        for name, (code, _) in VARIABLE_AIS.items():
            if code == ai:
                setattr(result, name, value)
                return


def _parse_with_parentheses(data: str) -> GS1Data:
    result = GS1Data(raw=data, parsed=True)
    for ai, value in re.findall(r"\((\d{2})\)([^(]*)", data):
        value = value.replace(FNC1, "").strip()
        if ai in FIXED_LENGTH_AIS:
            value = value[:FIXED_LENGTH_AIS[ai]]
        _store(result, ai, value)
    return result


def _parse_machine_format(data: str) -> GS1Data:
    result = GS1Data(raw=data, parsed=True)
    variable_codes = {code for code, _ in VARIABLE_AIS.values()}
    position = 0

    while position < len(data):
        ai = data[position:position + 2]
        position += 2

        if ai in FIXED_LENGTH_AIS:
            length = FIXED_LENGTH_AIS[ai]
            _store(result, ai, data[position:position + length])
            position += length
        elif ai in variable_codes:
            end = data.find(FNC1, position)
            if end == -1:
                end = len(data)
            _store(result, ai, data[position:end])
            position = end + 1
        else:
            # Unknown AI, stop parsing to avoid garbage
            logger.warning(f"Unknown GS1 AI '{ai}' at position {position - 2}, stopping parse")
            break

    return result


def parse_gs1(data: str) -> GS1Data:
    """
    Parse GS1 barcode data in either human-readable or machine format.

    Args:
        data: Raw string from the scanner

    Returns:
        GS1Data; parsed=False when the input is empty
    """
    if not data:
        return GS1Data(raw=data or "", parsed=False)

    # Scanners may prefix the symbol with an FNC1 / GS
    clean = data.lstrip("ñ" + FNC1)

    if re.search(r"\(\d{2}\)", clean):
        return _parse_with_parentheses(clean)
    return _parse_machine_format(clean)


def format_gs1_for_display(data: GS1Data) -> str:
    """Pipe-separated summary for scanner apps and verification pages."""
    if not data.parsed:
        return f"Raw data: {data.raw}"

    labels = (
        ("Company", data.company),
        ("SKU", data.sku),
        ("MRP", data.mrp),
        ("Batch", data.batch),
        ("MFG", data.mfg_date),
        ("Expiry", data.expiry_date),
        ("GTIN", data.gtin),
        ("Serial", data.serial),
        ("SSCC", data.sscc),
    )
    return " | ".join(f"{label}: {value}" for label, value in labels if value)
