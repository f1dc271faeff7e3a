"""
Proration for plan upgrades and downgrades.

All amounts are in paise. A positive net means the customer pays the
difference; a negative net becomes a credit.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from billing.errors import BillingError, BillingErrorCode


def _round_paise(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class ProrationResult:
    credit_amount: int
    charge_amount: int
    proration_ratio: float
    old_plan_daily_rate: int
    new_plan_daily_rate: int
    unused_old_plan_value: int
    new_plan_cost: int
    remaining_days: int
    total_days_in_cycle: int

    @property
    def is_zero_proration(self) -> bool:
        return self.credit_amount == 0 and self.charge_amount == 0

    def to_dict(self) -> dict:
        return {
            "creditAmount": self.credit_amount,
            "chargeAmount": self.charge_amount,
            "prorationRatio": self.proration_ratio,
            "isZeroProration": self.is_zero_proration,
            "breakdown": {
                "oldPlanDailyRate": self.old_plan_daily_rate,
                "newPlanDailyRate": self.new_plan_daily_rate,
                "unusedOldPlanValue": self.unused_old_plan_value,
                "newPlanCost": self.new_plan_cost,
                "remainingDays": self.remaining_days,
                "totalDaysInCycle": self.total_days_in_cycle,
            },
        }


def calculate_proration(
    old_plan_price: int,
    new_plan_price: int,
    remaining_days: int,
    total_days_in_cycle: int,
) -> ProrationResult:
    """
    Prorate a plan change for the rest of the billing cycle.

    Args:
        old_plan_price: Current plan price in paise
        new_plan_price: New plan price in paise
        remaining_days: Days left in the current cycle
        total_days_in_cycle: Length of the cycle in days

    Raises:
        BillingError: PRORATION_FAILED for negative prices or impossible day counts
    """
    if old_plan_price < 0 or new_plan_price < 0:
        raise BillingError("Plan prices cannot be negative", BillingErrorCode.PRORATION_FAILED)
    if remaining_days < 0 or total_days_in_cycle <= 0:
        raise BillingError("Invalid day calculations", BillingErrorCode.PRORATION_FAILED)
    if remaining_days > total_days_in_cycle:
        raise BillingError(
            "Remaining days cannot exceed total days in cycle",
            BillingErrorCode.PRORATION_FAILED,
        )

    total_days = Decimal(total_days_in_cycle)
    old_daily = Decimal(old_plan_price) / total_days
    new_daily = Decimal(new_plan_price) / total_days

    unused_old = old_daily * remaining_days
    new_cost = new_daily * remaining_days
    net = new_cost - unused_old

    charge_amount = _round_paise(net) if net > 0 else 0
    credit_amount = _round_paise(-net) if net < 0 else 0

    ratio = (Decimal(remaining_days) / total_days).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)

    return ProrationResult(
        credit_amount=credit_amount,
        charge_amount=charge_amount,
        proration_ratio=float(ratio),
        old_plan_daily_rate=_round_paise(old_daily),
        new_plan_daily_rate=_round_paise(new_daily),
        unused_old_plan_value=_round_paise(unused_old),
        new_plan_cost=_round_paise(new_cost),
        remaining_days=remaining_days,
        total_days_in_cycle=total_days_in_cycle,
    )


def remaining_days_in_cycle(current_period_end: datetime, now: Optional[datetime] = None) -> int:
    """Whole days until the period ends (partial days count as one), never negative."""
    now = now or datetime.now(timezone.utc)
    if current_period_end.tzinfo is None:
        current_period_end = current_period_end.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = (current_period_end - now).total_seconds()
    if seconds <= 0:
        return 0
    return int(-(-seconds // 86400))
