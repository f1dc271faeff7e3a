"""
Billing API endpoints.

Pure calculations (final amount, tax, proration) take everything they need
from the request body. Cart, coupon and subscription quotes read prices,
coupons and company discounts from the database.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from billing.cart import calculate_cart_amount, normalize_cart_items
from billing.coupons import validate_coupon
from billing.errors import BillingError, BillingErrorCode
from billing.models import AppliesTo, Discount, DiscountType, ItemType
from billing.pricing import InMemoryPriceCache, PlanPriceService
from billing.proration import calculate_proration
from billing.subscription import calculate_subscription_amount, normalize_billing_cycle
from billing.tax import calculate_final_amount, calculate_tax
from database.connection import get_session
from database.crud import (
    company_discount,
    get_company,
    get_coupon_by_code,
    is_coupon_assigned,
    load_addon_prices,
    load_plan_prices,
    to_coupon,
)
from service.auth import verify_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"], dependencies=[Depends(verify_api_key)])

# Shared across requests; the loader is bound per request to that request's session
price_cache = InMemoryPriceCache()

# Largest rupee amount accepted on the wire
MAX_AMOUNT = Decimal("1000000000000000")


class DiscountIn(BaseModel):
    type: DiscountType
    value: Decimal = Field(..., le=MAX_AMOUNT)
    applies_to: AppliesTo = Field(AppliesTo.BOTH, alias="appliesTo")

    def to_discount(self) -> Discount:
        return Discount(type=self.type, value=self.value, applies_to=self.applies_to)


class FinalAmountRequest(BaseModel):
    base_price: Decimal = Field(..., alias="basePrice", le=MAX_AMOUNT)
    discount: Optional[DiscountIn] = None
    gst_number: Optional[str] = Field(None, alias="gstNumber")
    item_type: ItemType = Field(ItemType.SUBSCRIPTION, alias="itemType")


class TaxRequest(BaseModel):
    base_amount: Decimal = Field(..., alias="baseAmount", le=MAX_AMOUNT)
    gst_number: Optional[str] = Field(None, alias="gstNumber")


class CartRequest(BaseModel):
    company_id: Optional[int] = Field(None, alias="companyId")
    items: List[dict] = Field(default_factory=list)
    coupon_code: Optional[str] = Field(None, alias="couponCode")


class CouponRequest(BaseModel):
    company_id: int = Field(..., alias="companyId")
    code: str
    amount: Decimal = Field(..., ge=0, le=MAX_AMOUNT)


class SubscriptionQuoteRequest(BaseModel):
    company_id: int = Field(..., alias="companyId")
    plan: str
    billing_cycle: str = Field("monthly", alias="billingCycle")
    coupon_code: Optional[str] = Field(None, alias="couponCode")


class ProrationRequest(BaseModel):
    old_plan_price: int = Field(..., alias="oldPlanPrice", description="Paise")
    new_plan_price: int = Field(..., alias="newPlanPrice", description="Paise")
    remaining_days: int = Field(..., alias="remainingDays")
    total_days_in_cycle: int = Field(..., alias="totalDaysInCycle")


def _redeemable_coupon(db: Session, company_id: Optional[int], code: str, amount: Decimal):
    """Look up a coupon and validate it for the company; raise INVALID_COUPON otherwise."""
    row = get_coupon_by_code(db, code)
    coupon = to_coupon(row) if row is not None else None
    assigned = bool(coupon and company_id is not None and is_coupon_assigned(db, company_id, coupon.id))

    result = validate_coupon(coupon, amount, assigned)
    if not result.valid:
        raise BillingError(result.error, BillingErrorCode.INVALID_COUPON)
    return coupon, result


@router.post("/calculate-final-amount")
async def final_amount(request: FinalAmountRequest):
    """
    Discount, then GST, then the final amount.

    Example:
        POST /billing/calculate-final-amount
        {"basePrice": 500000, "discount": {"type": "percentage", "value": 10},
         "gstNumber": "27ABCDE1234F1Z5", "itemType": "subscription"}
    """
    discount = request.discount.to_discount() if request.discount else None
    result = calculate_final_amount(request.base_price, discount, request.gst_number, request.item_type)
    return result.to_dict()


@router.post("/calculate-tax")
async def tax(request: TaxRequest):
    """GST on an amount that has already been discounted."""
    if request.base_amount < 0:
        raise BillingError.invalid_field("baseAmount", "baseAmount cannot be negative")
    return calculate_tax(request.base_amount, request.gst_number).to_dict()


@router.post("/calculate-cart-amount")
async def cart_amount(request: CartRequest, db: Session = Depends(get_session)):
    """Price an add-on cart in paise, applying an assigned coupon when given."""
    items = normalize_cart_items(request.items)
    prices = load_addon_prices(db)

    coupon = None
    if request.coupon_code:
        # Validate against the undiscounted subtotal so caps use the real amount
        subtotal = calculate_cart_amount(items, prices=prices).subtotal_paise
        coupon, _ = _redeemable_coupon(db, request.company_id, request.coupon_code, Decimal(subtotal) / 100)

    quote = calculate_cart_amount(items, coupon=coupon, prices=prices)
    logger.info(f"Cart quote: {quote.subtotal_paise} paise -> {quote.order_amount_paise} paise")
    return quote.to_dict()


@router.post("/validate-coupon")
async def coupon(request: CouponRequest, db: Session = Depends(get_session)):
    """Check a coupon code for a company and report the discount it gives."""
    row = get_coupon_by_code(db, request.code)
    coupon = to_coupon(row) if row is not None else None
    assigned = bool(coupon and is_coupon_assigned(db, request.company_id, coupon.id))

    result = validate_coupon(coupon, request.amount, assigned)
    return result.to_dict(coupon if result.valid else None)


@router.post("/subscription-quote")
async def subscription_quote(request: SubscriptionQuoteRequest, db: Session = Depends(get_session)):
    """Quote a plan for a company: company discount, optional coupon, then GST."""
    company = get_company(db, request.company_id)
    if company is None:
        raise BillingError.not_found("Company")

    cycle = normalize_billing_cycle(request.billing_cycle)
    prices = PlanPriceService(loader=lambda: load_plan_prices(db), cache=price_cache)
    base_price = prices.get_plan_price(request.plan, cycle)
    if base_price <= 0:
        raise BillingError.invalid_field("plan", f"Unknown plan: {request.plan}")

    discount = company_discount(company)
    coupon_result = None
    if request.coupon_code:
        after_discount = calculate_final_amount(
            base_price, discount, None, ItemType.SUBSCRIPTION
        ).amount_after_discount
        _, coupon_result = _redeemable_coupon(db, company.id, request.coupon_code, after_discount)

    quote = calculate_subscription_amount(
        plan=request.plan.strip().lower(),
        billing_cycle=cycle,
        base_price=base_price,
        company_discount=discount,
        gst_number=company.gst_number,
        coupon=coupon_result,
    )
    data = quote.to_dict()
    data["amountPaise"] = int((quote.final_amount * 100).to_integral_value())
    return data


@router.post("/proration")
async def proration(request: ProrationRequest):
    """Charge or credit for switching plans mid-cycle (paise)."""
    result = calculate_proration(
        request.old_plan_price,
        request.new_plan_price,
        request.remaining_days,
        request.total_days_in_cycle,
    )
    return result.to_dict()
