"""
Subscription amount quotes.

Company discount first, then an optional coupon on the discounted amount,
then GST on what is left. Used for the pricing preview so the UI, the
gateway order and the invoice all show the same numbers.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from billing.coupons import CouponValidation
from billing.models import Discount, ItemType, Number, money_to_json, round2
from billing.tax import calculate_final_amount, calculate_tax

ZERO = Decimal("0")

BILLING_CYCLES = ("monthly", "yearly")


def normalize_billing_cycle(raw) -> str:
    """'yearly' for yearly/annual/year (any case), otherwise 'monthly'."""
    value = str(raw or "").strip().lower()
    return "yearly" if value in ("yearly", "annual", "year") else "monthly"


@dataclass(frozen=True)
class SubscriptionQuote:
    plan: str
    billing_cycle: str
    base_price: Decimal
    discount_amount: Decimal
    amount_after_discount: Decimal
    coupon_discount_amount: Decimal
    subtotal_after_coupon: Decimal
    tax_amount: Decimal
    final_amount: Decimal
    has_gst: bool

    def to_dict(self) -> dict:
        return {
            "plan": self.plan,
            "billing_cycle": self.billing_cycle,
            "basePrice": money_to_json(self.base_price),
            "discountAmount": money_to_json(self.discount_amount),
            "amountAfterDiscount": money_to_json(self.amount_after_discount),
            "couponDiscountAmount": money_to_json(self.coupon_discount_amount),
            "subtotalAfterCoupon": money_to_json(self.subtotal_after_coupon),
            "taxAmount": money_to_json(self.tax_amount),
            "finalAmount": money_to_json(self.final_amount),
            "hasGST": self.has_gst,
            "breakdown": {
                "base": money_to_json(self.base_price),
                "discount": money_to_json(self.discount_amount),
                "subtotalAfterDiscount": money_to_json(self.amount_after_discount),
                "coupon": money_to_json(self.coupon_discount_amount),
                "subtotalAfterCoupon": money_to_json(self.subtotal_after_coupon),
                "tax": money_to_json(self.tax_amount),
                "total": money_to_json(self.final_amount),
            },
        }


def calculate_subscription_amount(
    plan: str,
    billing_cycle: str,
    base_price: Number,
    company_discount: Optional[Discount],
    gst_number: Optional[str],
    coupon: Optional[CouponValidation] = None,
) -> SubscriptionQuote:
    """
    Quote a subscription charge.

    Args:
        plan: Plan name (starter, growth, ...)
        billing_cycle: monthly or yearly
        base_price: Plan price for the cycle
        company_discount: Discount assigned to the company
        gst_number: Company GST number
        coupon: Result of validate_coupon() against the discounted amount

    Returns:
        SubscriptionQuote
    """
    final = calculate_final_amount(base_price, company_discount, gst_number, ItemType.SUBSCRIPTION)

    coupon_amount = ZERO
    if coupon is not None and coupon.valid:
        coupon_amount = round2(min(coupon.discount_amount, final.amount_after_discount))

    subtotal = round2(max(ZERO, final.amount_after_discount - coupon_amount))
    tax = calculate_tax(subtotal, gst_number)

    return SubscriptionQuote(
        plan=plan,
        billing_cycle=normalize_billing_cycle(billing_cycle),
        base_price=final.base_price,
        discount_amount=final.discount_amount,
        amount_after_discount=final.amount_after_discount,
        coupon_discount_amount=coupon_amount,
        subtotal_after_coupon=subtotal,
        tax_amount=tax.tax_amount,
        final_amount=tax.final_amount,
        has_gst=tax.has_gst,
    )
