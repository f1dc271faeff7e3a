"""
Billing value types.

Money is carried as decimal.Decimal and rounded to 2 places (half-up) at each
computation boundary, never once at the end.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from enum import Enum
from typing import Optional, Union

Number = Union[int, float, str, Decimal]

TWO_PLACES = Decimal("0.01")

# Digits available while quantizing; the default context (28) overflows on large amounts
MONEY_PRECISION = 60


def to_decimal(value: Number) -> Decimal:
    """Convert an int/float/str to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a money amount")
    return Decimal(str(value))


def round2(value: Number) -> Decimal:
    """Round to 2 decimal places, half-up."""
    with localcontext() as ctx:
        ctx.prec = MONEY_PRECISION
        return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def money_to_json(value: Decimal):
    """Integral amounts as int, others as float (JSON has no decimal type)."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FLAT = "flat"


class AppliesTo(str, Enum):
    SUBSCRIPTION = "subscription"
    ADDON = "addon"
    BOTH = "both"


class ItemType(str, Enum):
    SUBSCRIPTION = "subscription"
    ADDON = "addon"


@dataclass(frozen=True)
class Discount:
    """
    Discount descriptor assigned to a company by an admin or promotion.

    Read-only to the billing engine. A descriptor missing its type or value
    is treated as no discount.
    """

    type: Optional[DiscountType]
    value: Optional[Number]
    applies_to: Optional[AppliesTo] = AppliesTo.BOTH

    def __post_init__(self):
        """Accept plain strings for the enum fields."""
        if self.type is not None and not isinstance(self.type, DiscountType):
            object.__setattr__(self, "type", DiscountType(self.type))
        if self.applies_to is not None and not isinstance(self.applies_to, AppliesTo):
            object.__setattr__(self, "applies_to", AppliesTo(self.applies_to))

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Discount"]:
        """Build from a {type, value, appliesTo} mapping; None/empty -> None."""
        if not data:
            return None
        return cls(
            type=data.get("type") or None,
            value=data.get("value"),
            applies_to=data.get("appliesTo", data.get("applies_to")) or None,
        )

    def applies(self, item_type: ItemType) -> bool:
        if self.type is None or self.value is None or self.applies_to is None:
            return False
        return self.applies_to == AppliesTo.BOTH or self.applies_to.value == ItemType(item_type).value


@dataclass(frozen=True)
class TaxResult:
    base_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    final_amount: Decimal
    has_gst: bool
    gst_number: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "baseAmount": money_to_json(self.base_amount),
            "taxRate": float(self.tax_rate),
            "taxAmount": money_to_json(self.tax_amount),
            "finalAmount": money_to_json(self.final_amount),
            "hasGST": self.has_gst,
            "gstNumber": self.gst_number,
        }


@dataclass(frozen=True)
class FinalAmountResult:
    base_price: Decimal
    discount_amount: Decimal
    amount_after_discount: Decimal
    tax_amount: Decimal
    final_amount: Decimal
    has_gst: bool

    @property
    def breakdown(self) -> dict:
        return {
            "base": self.base_price,
            "discount": self.discount_amount,
            "subtotal": self.amount_after_discount,
            "tax": self.tax_amount,
            "total": self.final_amount,
        }

    def to_dict(self) -> dict:
        """Wire shape returned by the billing endpoints."""
        return {
            "basePrice": money_to_json(self.base_price),
            "discountAmount": money_to_json(self.discount_amount),
            "amountAfterDiscount": money_to_json(self.amount_after_discount),
            "taxAmount": money_to_json(self.tax_amount),
            "finalAmount": money_to_json(self.final_amount),
            "hasGST": self.has_gst,
            "breakdown": {key: money_to_json(value) for key, value in self.breakdown.items()},
        }
