"""
Coupon validation.

A coupon is usable when it is active, inside its validity window, under its
usage limit and assigned to the company redeeming it. The discount it gives
is capped at the amount it is applied to.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from billing.models import DiscountType, Number, round2, to_decimal

ZERO = Decimal("0")


@dataclass(frozen=True)
class Coupon:
    code: str
    type: DiscountType
    value: Number
    valid_from: datetime
    valid_to: Optional[datetime] = None
    usage_limit: Optional[int] = None
    usage_count: int = 0
    is_active: bool = True
    id: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.type, DiscountType):
            object.__setattr__(self, "type", DiscountType(self.type))


@dataclass(frozen=True)
class CouponValidation:
    valid: bool
    error: Optional[str] = None
    discount_amount: Decimal = ZERO

    @property
    def discount_amount_paise(self) -> int:
        return int((self.discount_amount * 100).to_integral_value())

    def to_dict(self, coupon: Optional[Coupon] = None) -> dict:
        if not self.valid:
            return {"valid": False, "error": self.error}
        data = {
            "valid": True,
            "discount_amount_inr": float(self.discount_amount),
            "discount_amount_paise": self.discount_amount_paise,
        }
        if coupon is not None:
            data.update({
                "discount_id": coupon.id,
                "code": coupon.code,
                "type": coupon.type.value,
                "value": float(to_decimal(coupon.value)),
            })
        return data


def coupon_discount(coupon: Coupon, amount: Number) -> Decimal:
    """Discount a coupon gives on `amount`, never more than the amount itself."""
    amount = to_decimal(amount)
    value = to_decimal(coupon.value)

    if coupon.type == DiscountType.PERCENTAGE:
        discount = amount * value / Decimal("100")
    else:
        discount = value
    return round2(max(ZERO, min(discount, amount)))


def _aware(moment: datetime) -> datetime:
    # Naive timestamps from the database are stored in UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def validate_coupon(
    coupon: Optional[Coupon],
    amount: Number,
    assigned_to_company: bool,
    now: Optional[datetime] = None,
) -> CouponValidation:
    """
    Check whether a coupon can be redeemed against an amount.

    Args:
        coupon: Coupon looked up by code (None when the code is unknown)
        amount: Amount the coupon would apply to (INR)
        assigned_to_company: Whether an admin assigned this coupon to the company
        now: Evaluation time (defaults to current UTC time)

    Returns:
        CouponValidation with the capped discount amount when valid
    """
    now = _aware(now or datetime.now(timezone.utc))

    if coupon is None or not coupon.is_active:
        return CouponValidation(valid=False, error="Invalid or inactive coupon")
    if _aware(coupon.valid_from) > now:
        return CouponValidation(valid=False, error="Coupon not yet valid")
    if coupon.valid_to is not None and _aware(coupon.valid_to) < now:
        return CouponValidation(valid=False, error="Coupon has expired")
    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        return CouponValidation(valid=False, error="Coupon usage limit reached")
    if not assigned_to_company:
        return CouponValidation(valid=False, error="Coupon not assigned to your company")

    return CouponValidation(valid=True, discount_amount=coupon_discount(coupon, amount))
