"""
Unit serial numbers for AI (21).

Format: PREFIX + YYMMDD + LINE + RANDOM(base36) + CHECK

The check character uses the Mod-10 weights over an alphanumeric core
(0-9 as their value, A-Z as 10-35). It guards against typos when an
operator keys a serial in by hand; it is not a GS1 check digit.
"""

import re
import secrets
import string
from datetime import date
from typing import Optional

BASE36_ALPHABET = string.digits + string.ascii_uppercase


def _clean(value: str) -> str:
    return re.sub(r"[^A-Z0-9]", "", value.upper())


def _char_value(ch: str) -> int:
    if ch.isdigit():
        return int(ch)
    if "A" <= ch <= "Z":
        return ord(ch) - 55
    return 0


def serial_check_character(core: str) -> str:
    """Mod-10 check character over an alphanumeric core (weights 3,1 from the right)."""
    total = sum(
        _char_value(ch) * (3 if i % 2 == 0 else 1)
        for i, ch in enumerate(reversed(core.upper()))
    )
    return str((10 - (total % 10)) % 10)


def random_base36(length: int) -> str:
    """Cryptographically random uppercase base36 string."""
    return "".join(secrets.choice(BASE36_ALPHABET) for _ in range(length))


def generate_serial(
    prefix: str = "RX",
    line: str = "01",
    random_length: int = 6,
    today: Optional[date] = None,
) -> str:
    """
    Generate a unit serial.

    Example:
        >>> generate_serial(today=date(2026, 3, 1))  # doctest: +SKIP
        'RX26030101K7Q2ZD4'
    """
    if random_length <= 0:
        raise ValueError(f"random_length must be positive, got {random_length}")

    today = today or date.today()
    core = f"{_clean(prefix or 'RX')}{today.strftime('%y%m%d')}{_clean(line or '01')}{random_base36(random_length)}"
    return f"{core}{serial_check_character(core)}"


def is_valid_serial(serial: str) -> bool:
    """Check the trailing check character of a serial from generate_serial()."""
    if not serial or len(serial) < 2:
        return False
    core, check = serial[:-1], serial[-1]
    return serial_check_character(core) == check
