"""
CRUD operations for pricing, coupons and companies
"""

import logging
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from billing.cart import AddonKind
from billing.coupons import Coupon
from billing.models import Discount
from database.models import AddOn, Company, CompanyCoupon, Coupon as CouponRow, SubscriptionPlan

logger = logging.getLogger(__name__)

# First match wins, so more specific names come first
ADDON_NAME_PATTERNS = [
    (AddonKind.UNIT, ("extra unit label", "unit label")),
    (AddonKind.BOX, ("extra box label", "box label")),
    (AddonKind.CARTON, ("extra carton label", "carton label")),
    (AddonKind.PALLET, ("pallet", "sscc")),
    (AddonKind.USERID, ("user id", "seat")),
]


def load_plan_prices(db: Session) -> Dict[str, Dict[str, Decimal]]:
    """
    Read active subscription plan prices.

    Returns:
        {plan_name_lower: {billing_cycle: price}}; empty when no plans are active
    """
    plans = db.query(SubscriptionPlan).filter(SubscriptionPlan.is_active.is_(True)).all()

    prices: Dict[str, Dict[str, Decimal]] = {}
    for plan in plans:
        name = (plan.name or "").strip().lower()
        if not name:
            continue
        prices.setdefault(name, {})[plan.billing_cycle] = Decimal(str(plan.base_price))
    return prices


def load_addon_prices(db: Session) -> Dict[AddonKind, Decimal]:
    """Map active add_ons rows to add-on kinds by name."""
    prices: Dict[AddonKind, Decimal] = {}
    for row in db.query(AddOn).filter(AddOn.is_active.is_(True)).order_by(AddOn.id).all():
        name = (row.name or "").lower()
        price = Decimal(str(row.price or 0))
        if not name or price < 0:
            continue
        for kind, patterns in ADDON_NAME_PATTERNS:
            if kind in prices:
                continue
            if any(pattern in name for pattern in patterns):
                prices[kind] = price
                break
    return prices


def get_company(db: Session, company_id: int) -> Optional[Company]:
    """Get company by primary key."""
    return db.query(Company).filter(Company.id == company_id).first()


def company_discount(company: Company) -> Optional[Discount]:
    """Discount an admin assigned to the company, or None."""
    if company is None or not company.discount_type or company.discount_value is None:
        return None
    return Discount.from_dict({
        "type": company.discount_type,
        "value": Decimal(str(company.discount_value)),
        "applies_to": company.discount_applies_to or "both",
    })


def get_coupon_by_code(db: Session, code: str) -> Optional[CouponRow]:
    """Look up a coupon by code, ignoring case and surrounding whitespace."""
    normalized = (code or "").strip().upper()
    if not normalized:
        return None
    return db.query(CouponRow).filter(func.upper(CouponRow.code) == normalized).first()


def to_coupon(row: CouponRow) -> Coupon:
    """Convert a discounts row into the billing Coupon value object."""
    return Coupon(
        id=row.id,
        code=row.code,
        type=row.type,
        value=Decimal(str(row.value)),
        valid_from=row.valid_from,
        valid_to=row.valid_to,
        usage_limit=row.usage_limit,
        usage_count=row.usage_count or 0,
        is_active=bool(row.is_active),
    )


def is_coupon_assigned(db: Session, company_id: int, coupon_id: int) -> bool:
    """True when the coupon has been assigned to the company."""
    assignment = db.query(CompanyCoupon).filter(
        CompanyCoupon.company_id == company_id,
        CompanyCoupon.discount_id == coupon_id,
    ).first()
    return assignment is not None


def assign_coupon(db: Session, company_id: int, coupon_id: int) -> CompanyCoupon:
    """Assign a coupon to a company (no-op if already assigned)."""
    existing = db.query(CompanyCoupon).filter(
        CompanyCoupon.company_id == company_id,
        CompanyCoupon.discount_id == coupon_id,
    ).first()
    if existing:
        return existing

    assignment = CompanyCoupon(company_id=company_id, discount_id=coupon_id)
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    logger.info(f"Coupon {coupon_id} assigned to company {company_id}")
    return assignment


def increment_coupon_usage(db: Session, coupon_id: int) -> Optional[CouponRow]:
    """Record one redemption of a coupon after a successful payment."""
    coupon = db.query(CouponRow).filter(CouponRow.id == coupon_id).with_for_update().first()
    if coupon is None:
        return None
    coupon.usage_count = (coupon.usage_count or 0) + 1
    db.commit()
    db.refresh(coupon)
    return coupon
