"""
Centralized billing configuration (INR).

Subscription plan prices live in the database (see billing.pricing); the
constants here cover tax, label/scan rates and wallet thresholds.
"""

import os
from decimal import Decimal

from dotenv import load_dotenv

from billing.models import Number, round2, to_decimal

load_dotenv()

# GST applies only when the company has a GST number
GST_RATE = Decimal("0.18")

PRICING = {
    # Label generation (per label)
    "unit_label": Decimal("0.10"),
    "box_label": Decimal("0.30"),
    "carton_label": Decimal("1.00"),
    "pallet_label": Decimal("2.00"),  # SSCC

    # Per-scan costs
    "box_scan": Decimal("0.10"),
    "carton_scan": Decimal("0.25"),
    "pallet_scan": Decimal("0.50"),

    "handset_monthly": Decimal("0"),  # handsets are unlimited in all plans
    "seat_monthly": Decimal("3000"),  # per additional User ID

    # Wallet thresholds
    "low_balance_alert": Decimal("1000"),
    "critical_balance": Decimal("500"),
    "auto_freeze_threshold": Decimal("0"),
}

# Label quotas per billing period; None is unlimited (trials)
PLANS = {
    "trial": {
        "name": "Free Trial",
        "max_seats": 1,
        "unit_labels_quota": None,
        "box_labels_quota": None,
        "carton_labels_quota": None,
        "pallet_labels_quota": None,
        "default_credit_limit": Decimal("0"),
    },
    "starter": {
        "name": "Starter",
        "max_seats": 1,
        "unit_labels_quota": 200000,
        "box_labels_quota": 20000,
        "carton_labels_quota": 2000,
        "pallet_labels_quota": 500,
        "default_credit_limit": Decimal("5000"),
    },
    "growth": {
        "name": "Growth",
        "max_seats": 5,
        "unit_labels_quota": 1000000,
        "box_labels_quota": 200000,
        "carton_labels_quota": 20000,
        "pallet_labels_quota": 2000,
        "default_credit_limit": Decimal("20000"),
    },
}

# Used when the subscription_plans table has no active row for a plan
FALLBACK_PLAN_PRICES = {
    "starter": {"monthly": Decimal("9999"), "yearly": Decimal("99990")},
    "growth": {"monthly": Decimal("29999"), "yearly": Decimal("299990")},
}

PRICE_CACHE_TTL = int(os.getenv("PRICE_CACHE_TTL", "60"))

SCAN_TYPES = ("box", "carton", "pallet")


def calculate_scan_cost(scan_type: str, quantity: int) -> Decimal:
    if scan_type not in SCAN_TYPES:
        raise ValueError(f"Unknown scan type: {scan_type}")
    return PRICING[f"{scan_type}_scan"] * quantity


def calculate_seat_cost(seat_count: int) -> Decimal:
    return PRICING["seat_monthly"] * seat_count


def calculate_handset_cost(handset_count: int) -> Decimal:
    return PRICING["handset_monthly"] * handset_count


def calculate_total_usage(
    handsets: int = 0,
    seats: int = 0,
    box_scans: int = 0,
    carton_scans: int = 0,
    pallet_scans: int = 0,
) -> Decimal:
    """Monthly usage charge across handsets, seats and scans."""
    total = (
        calculate_handset_cost(handsets)
        + calculate_seat_cost(seats)
        + calculate_scan_cost("box", box_scans)
        + calculate_scan_cost("carton", carton_scans)
        + calculate_scan_cost("pallet", pallet_scans)
    )
    return round2(total)


def get_balance_status(balance: Number) -> str:
    """'healthy' | 'low' | 'critical' | 'frozen' for a wallet balance."""
    balance = to_decimal(balance)
    if balance <= PRICING["auto_freeze_threshold"]:
        return "frozen"
    if balance <= PRICING["critical_balance"]:
        return "critical"
    if balance <= PRICING["low_balance_alert"]:
        return "low"
    return "healthy"


def _group_indian(integer_part: str) -> str:
    # 12,34,56,789: last three digits, then groups of two
    if len(integer_part) <= 3:
        return integer_part
    head, tail = integer_part[:-3], integer_part[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount: Number) -> str:
    """
    Format rupees with Indian digit grouping.

    Example:
        >>> format_currency(1234567.5)
        '₹12,34,567.50'
    """
    try:
        value = round2(amount)
    except (ArithmeticError, TypeError, ValueError):
        value = round2(0)

    sign = "-" if value < 0 else ""
    integer_part, fraction = f"{abs(value):.2f}".split(".")
    return f"{sign}₹{_group_indian(integer_part)}.{fraction}"
