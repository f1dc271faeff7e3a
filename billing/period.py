"""
Billing periods and plan quotas.

Paid periods are monthly and anchored to the trial end date, so a company
whose trial ended on the 10th is billed 10th to 10th.
"""

import calendar
from datetime import datetime
from typing import Optional, Tuple

from billing.config import PLANS

PLAN_ALIASES = {
    "free": "trial",
    "trial": "trial",
    "starter": "starter",
    "professional": "growth",
    "pro": "growth",
    "growth": "growth",
}


def normalize_plan_type(raw) -> Optional[str]:
    """
    Map a stored plan name or code to 'trial', 'starter' or 'growth'.

    Only the part before the first '_' or '-' counts, so 'starter_yearly'
    and 'pro-monthly' resolve. Unknown plans give None.
    """
    value = str(raw if raw is not None else "").strip().lower()
    parts = [p for p in value.replace("-", "_").split("_") if p]
    base = parts[0] if parts else value
    return PLAN_ALIASES.get(base)


def add_months(value: datetime, months: int) -> datetime:
    """Same day-of-month `months` later, clamped to the last day of a shorter month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def month_after(value: datetime) -> datetime:
    return add_months(value, 1)


def resolve_paid_period(trial_end: datetime, now: datetime) -> Tuple[datetime, datetime]:
    """
    The monthly period containing now, anchored to trial_end.

    Periods are counted from the anchor each time, so a 31st anchor does not
    drift to the 28th after February. Before trial_end the first period is
    returned.
    """
    months = 0
    start = trial_end
    while True:
        end = add_months(trial_end, months + 1)
        if now < end:
            return start, end
        months += 1
        start = end


def quotas_for_plan(plan_type: str) -> dict:
    """
    Label and seat quotas for a plan.

    The SSCC quota is box + carton + pallet combined; None means unlimited.
    """
    plan = PLANS[plan_type]
    label_quotas = (plan["box_labels_quota"], plan["carton_labels_quota"], plan["pallet_labels_quota"])
    sscc_quota = sum(label_quotas) if all(q is not None for q in label_quotas) else None

    return {
        "unit_labels_quota": plan["unit_labels_quota"],
        "box_labels_quota": plan["box_labels_quota"],
        "carton_labels_quota": plan["carton_labels_quota"],
        "pallet_labels_quota": plan["pallet_labels_quota"],
        "sscc_labels_quota": sscc_quota,
        "user_seats_quota": plan["max_seats"],
    }


def is_unlimited_plan(plan_type: Optional[str]) -> bool:
    return plan_type == "trial"


def is_unlimited_quota(quota: Optional[int]) -> bool:
    return quota is None
