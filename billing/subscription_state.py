"""
Subscription State Machine

Statuses a company subscription moves through and the transitions allowed
between them. Webhooks and admin actions check a transition here before
writing the new status.

Statuses:
- TRIAL / trialing: free trial (both spellings occur in stored data)
- PENDING: payment started, awaiting gateway confirmation
- ACTIVE: paid and current
- PAUSED: temporarily paused, can be resumed
- CANCELLED: cancelled; can be reactivated or replaced
- EXPIRED: trial or paid period ended
"""

from typing import Dict, List, Tuple

TRIAL = "TRIAL"
TRIALING = "trialing"
PENDING = "PENDING"
ACTIVE = "ACTIVE"
PAUSED = "PAUSED"
CANCELLED = "CANCELLED"
EXPIRED = "EXPIRED"

SUBSCRIPTION_STATUSES = (TRIAL, TRIALING, PENDING, ACTIVE, PAUSED, CANCELLED, EXPIRED)

SUBSCRIPTION_STATES: Dict[str, Tuple[str, ...]] = {
    TRIAL: (TRIALING, ACTIVE, PENDING, EXPIRED),
    TRIALING: (TRIAL, ACTIVE, PENDING, EXPIRED),
    PENDING: (ACTIVE, CANCELLED, EXPIRED),
    # PENDING again when an upgrade starts
    ACTIVE: (PAUSED, CANCELLED, EXPIRED, PENDING),
    PAUSED: (ACTIVE, CANCELLED, EXPIRED),
    CANCELLED: (ACTIVE, PENDING),
    EXPIRED: (ACTIVE, PENDING, TRIAL),
}

TRANSITION_DESCRIPTIONS = {
    (TRIAL, ACTIVE): "Trial converted to paid subscription",
    (TRIAL, PENDING): "Trial subscription upgrade initiated",
    (TRIAL, EXPIRED): "Trial period ended without upgrade",
    (TRIALING, ACTIVE): "Trial converted to paid subscription",
    (TRIALING, PENDING): "Trial subscription upgrade initiated",
    (TRIALING, EXPIRED): "Trial period ended without upgrade",
    (PENDING, ACTIVE): "Payment confirmed, subscription activated",
    (PENDING, CANCELLED): "Payment failed or cancelled",
    (PENDING, EXPIRED): "Payment pending expired",
    (ACTIVE, PAUSED): "Subscription paused temporarily",
    (ACTIVE, CANCELLED): "Subscription cancelled",
    (ACTIVE, PENDING): "Subscription upgrade initiated",
    (PAUSED, ACTIVE): "Subscription resumed",
    (PAUSED, CANCELLED): "Paused subscription cancelled",
    (CANCELLED, ACTIVE): "Subscription reactivated",
    (CANCELLED, PENDING): "New subscription started",
    (EXPIRED, ACTIVE): "New subscription purchased",
    (EXPIRED, PENDING): "New subscription started",
    (EXPIRED, TRIAL): "New trial started",
}

_TRIAL_FEATURES = ["Basic code generation", "Limited usage quotas", "Email support"]

STATUS_FEATURES: Dict[str, List[str]] = {
    TRIAL: _TRIAL_FEATURES,
    TRIALING: _TRIAL_FEATURES,
    PENDING: ["View subscription details", "Access pending activation features", "Customer support contact"],
    ACTIVE: [
        "Full code generation",
        "All usage quotas",
        "Email & chat support",
        "Priority processing",
        "API access",
    ],
    PAUSED: ["View subscription details", "Resume subscription", "Customer support contact"],
    CANCELLED: ["View subscription history", "Start new subscription", "Customer support contact"],
    EXPIRED: ["View subscription history", "Start new subscription or trial", "Customer support contact"],
}

# Lower sorts first: subscriptions needing attention, then live ones
STATUS_PRIORITY = {
    PENDING: 0,
    ACTIVE: 1,
    TRIALING: 2,
    TRIAL: 3,
    PAUSED: 4,
    CANCELLED: 5,
    EXPIRED: 6,
}
UNKNOWN_STATUS_PRIORITY = 99


def is_valid_transition(from_status: str, to_status: str) -> bool:
    """True when a subscription may move from from_status to to_status."""
    return to_status in SUBSCRIPTION_STATES.get(from_status, ())


def get_transition_description(from_status: str, to_status: str) -> str:
    """Audit-log text for a transition; 'FROM -> TO' when none is defined."""
    return TRANSITION_DESCRIPTIONS.get((from_status, to_status), f"{from_status} -> {to_status}")


def get_features_for_status(status: str) -> List[str]:
    return list(STATUS_FEATURES.get(status, []))


def get_status_priority(status: str) -> int:
    return STATUS_PRIORITY.get(status, UNKNOWN_STATUS_PRIORITY)


def sort_by_status(subscriptions: List[dict], key: str = "status") -> List[dict]:
    """Order subscription records by status priority (stable within a status)."""
    return sorted(subscriptions, key=lambda s: get_status_priority(s.get(key)))
