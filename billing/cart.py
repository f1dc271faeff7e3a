"""
Add-on cart pricing (extra labels and user IDs).

Amounts are computed in paise so the gateway order amount is exact.
Add-on orders take coupons only: no company discount and no GST.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Optional, Tuple

from billing.config import PRICING
from billing.coupons import Coupon, coupon_discount
from billing.errors import BillingError, BillingErrorCode

logger = logging.getLogger(__name__)

MINIMUM_ORDER_PAISE = 100


class AddonKind(str, Enum):
    UNIT = "unit"
    BOX = "box"
    CARTON = "carton"
    PALLET = "pallet"
    USERID = "userid"


DEFAULT_ADDON_PRICES = {
    AddonKind.UNIT: PRICING["unit_label"],
    AddonKind.BOX: PRICING["box_label"],
    AddonKind.CARTON: PRICING["carton_label"],
    AddonKind.PALLET: PRICING["pallet_label"],
    AddonKind.USERID: PRICING["seat_monthly"],
}


def to_paise(amount_inr: Decimal) -> int:
    return int((Decimal(str(amount_inr)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def normalize_cart_items(raw) -> List[Tuple[AddonKind, int]]:
    """
    Clean a cart payload.

    Entries may use kind/key/type for the add-on and qty/quantity/count for
    the amount. Unknown kinds and non-positive or non-integer quantities are
    dropped; duplicate kinds are merged.
    """
    if not isinstance(raw, list):
        return []

    merged: Dict[AddonKind, int] = {}
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        kind_raw = str(entry.get("kind") or entry.get("key") or entry.get("type") or "").strip().lower()
        qty_raw = entry.get("qty", entry.get("quantity", entry.get("count")))

        try:
            kind = AddonKind(kind_raw)
        except ValueError:
            logger.debug(f"Dropping cart entry with unknown kind '{kind_raw}'")
            continue

        try:
            qty_number = float(qty_raw)
        except (TypeError, ValueError):
            continue
        if isinstance(qty_raw, bool) or not qty_number.is_integer() or qty_number <= 0:
            continue

        merged[kind] = merged.get(kind, 0) + int(qty_number)

    return list(merged.items())


@dataclass(frozen=True)
class CartQuote:
    subtotal_paise: int
    coupon_discount_paise: int
    order_amount_paise: int

    def to_dict(self) -> dict:
        return {
            "subtotalPaise": self.subtotal_paise,
            "subtotalInr": self.subtotal_paise / 100,
            "couponDiscountPaise": self.coupon_discount_paise,
            "couponDiscountInr": self.coupon_discount_paise / 100,
            "orderAmountPaise": self.order_amount_paise,
            "orderAmountInr": self.order_amount_paise / 100,
            "hasCoupon": self.coupon_discount_paise > 0,
        }


def calculate_cart_amount(
    items: List[Tuple[AddonKind, int]],
    coupon: Optional[Coupon] = None,
    prices: Optional[Dict[AddonKind, Decimal]] = None,
) -> CartQuote:
    """
    Price a normalized cart.

    Args:
        items: Output of normalize_cart_items()
        coupon: Coupon already validated for this company, or None
        prices: INR price per add-on kind (defaults to PRICING)

    Returns:
        CartQuote; order amount never drops below the gateway minimum of 100 paise

    Raises:
        BillingError: INVALID_REQUEST if the cart is empty or totals zero
    """
    if not items:
        raise BillingError("items required", BillingErrorCode.MISSING_REQUIRED_FIELD)

    prices = prices or DEFAULT_ADDON_PRICES
    subtotal_paise = sum(to_paise(prices.get(kind, Decimal("0"))) * qty for kind, qty in items)
    if subtotal_paise <= 0:
        raise BillingError("Invalid total", BillingErrorCode.INVALID_REQUEST)

    discount_paise = 0
    if coupon is not None:
        discount_paise = to_paise(coupon_discount(coupon, Decimal(subtotal_paise) / 100))

    return CartQuote(
        subtotal_paise=subtotal_paise,
        coupon_discount_paise=discount_paise,
        order_amount_paise=max(MINIMUM_ORDER_PAISE, subtotal_paise - discount_paise),
    )
