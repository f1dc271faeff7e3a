"""
Grace period after a subscription lapses.

When the paid period ends the company keeps read-only access for a number
of days that depends on the plan tier. Trials get no grace period.
The caller loads the subscription row; everything here works on plain values.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

GRACE_PERIOD_CONFIG = {
    "default_grace_days": 7,
    "max_grace_days": 30,
    "min_grace_days": 1,
    "tier_basic_grace_days": 3,
    "tier_standard_grace_days": 7,
    "tier_premium_grace_days": 14,
    "tier_enterprise_grace_days": 30,
}

SECONDS_PER_DAY = 24 * 60 * 60


class GracePeriodStatus(str, Enum):
    ACTIVE = "grace_period_active"
    EXPIRED = "grace_period_expired"
    NOT_IN_GRACE_PERIOD = "not_in_grace_period"
    SUBSCRIPTION_ACTIVE = "subscription_active"


@dataclass(frozen=True)
class GracePeriodInfo:
    grace_period_days: int
    status: GracePeriodStatus
    days_remaining: int = 0
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class AccessLevel:
    level: str  # "full" | "limited" | "none"
    features: List[str] = field(default_factory=list)
    restrictions: List[str] = field(default_factory=list)
    can_extend: bool = False
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "features": list(self.features),
            "restrictions": list(self.restrictions),
            "canExtend": self.can_extend,
            "message": self.message,
        }


def get_grace_period_days_for_tier(plan_code: Optional[str] = None, is_trial: bool = False) -> int:
    """
    Grace days for a plan.

    enterprise: 30, premium/growth: 14, starter: 3, anything else: 7, trials: 0.
    """
    if is_trial:
        return 0
    if not plan_code:
        return GRACE_PERIOD_CONFIG["default_grace_days"]

    plan = plan_code.lower()
    if "enterprise" in plan:
        return GRACE_PERIOD_CONFIG["tier_enterprise_grace_days"]
    if "premium" in plan or "growth" in plan:
        return GRACE_PERIOD_CONFIG["tier_premium_grace_days"]
    if "starter" in plan:
        return GRACE_PERIOD_CONFIG["tier_basic_grace_days"]
    return GRACE_PERIOD_CONFIG["default_grace_days"]


def _ceil_days(delta: timedelta) -> int:
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def grace_period_end(plan_code: Optional[str], is_trial: bool, start: datetime) -> datetime:
    """When a grace period applied at start runs out."""
    return start + timedelta(days=get_grace_period_days_for_tier(plan_code, is_trial))


def resolve_grace_period(
    current_period_end: datetime,
    grace_end: Optional[datetime],
    plan_code: Optional[str],
    is_trial: bool,
    now: datetime,
) -> GracePeriodInfo:
    """
    Where a subscription stands relative to its paid period and grace period.

    Args:
        current_period_end: End of the paid (or trial) period
        grace_end: Stored grace period end, or None if never applied
        plan_code: Plan name or code, used for the tier's grace days
        is_trial: Trials get no grace period
        now: Current time (same timezone awareness as the stored dates)
    """
    if now < current_period_end:
        return GracePeriodInfo(
            grace_period_days=get_grace_period_days_for_tier(plan_code, is_trial),
            status=GracePeriodStatus.SUBSCRIPTION_ACTIVE,
        )

    if grace_end is not None and now < grace_end:
        return GracePeriodInfo(
            grace_period_days=_ceil_days(grace_end - current_period_end),
            status=GracePeriodStatus.ACTIVE,
            days_remaining=max(0, _ceil_days(grace_end - now)),
            expires_at=grace_end,
        )

    return GracePeriodInfo(
        grace_period_days=get_grace_period_days_for_tier(plan_code, is_trial),
        status=GracePeriodStatus.EXPIRED,
    )


def get_grace_period_access_level(
    subscription_status: str,
    grace_status: GracePeriodStatus,
    days_remaining: int,
) -> AccessLevel:
    """Full access while active, read-only during grace, nothing after."""
    if subscription_status == "ACTIVE" and grace_status == GracePeriodStatus.SUBSCRIPTION_ACTIVE:
        return AccessLevel(
            level="full",
            features=["all"],
            can_extend=True,
            message="Subscription is active",
        )

    if grace_status == GracePeriodStatus.ACTIVE:
        return AccessLevel(
            level="limited",
            features=["view", "export", "renew"],
            restrictions=[
                "Cannot create new shipments",
                "Cannot purchase add-ons",
                "Cannot upgrade/downgrade plan",
                "Read-only access only",
            ],
            can_extend=days_remaining > 0,
            message=(
                f"Subscription expired. Grace period active with {days_remaining} day(s) remaining. "
                "Please renew."
            ),
        )

    return AccessLevel(
        level="none",
        restrictions=["All features disabled", "Subscription expired"],
        message="Subscription has expired. Please renew to continue using the service.",
    )
