"""
GST and final amount calculation for subscription and add-on billing.

Order is fixed: Base Price -> Discount -> GST on the discounted amount.
GST is charged only when the company has a GST number; presence is the
gate, registry validation happens elsewhere.
"""

from decimal import Decimal
from typing import Optional

from billing.config import GST_RATE
from billing.errors import BillingError
from billing.models import (
    Discount,
    DiscountType,
    FinalAmountResult,
    ItemType,
    Number,
    TaxResult,
    round2,
    to_decimal,
)

ZERO = Decimal("0")


def has_gst_number(gst_number: Optional[str]) -> bool:
    return gst_number is not None and str(gst_number).strip() != ""


def calculate_tax(base_amount: Number, gst_number: Optional[str]) -> TaxResult:
    """
    Calculate GST for an amount.

    Args:
        base_amount: Taxable amount (already discounted)
        gst_number: Company GST number; None or blank means no GST

    Returns:
        TaxResult; tax and final amount are each rounded to 2 places
    """
    base = to_decimal(base_amount)

    if not has_gst_number(gst_number):
        return TaxResult(
            base_amount=base,
            tax_rate=ZERO,
            tax_amount=ZERO,
            final_amount=base,
            has_gst=False,
            gst_number=None,
        )

    tax_amount = round2(base * GST_RATE)
    final_amount = round2(base + tax_amount)

    return TaxResult(
        base_amount=base,
        tax_rate=GST_RATE,
        tax_amount=tax_amount,
        final_amount=final_amount,
        has_gst=True,
        gst_number=str(gst_number).strip(),
    )


def calculate_discount_amount(base_price: Decimal, discount: Optional[Discount], item_type: ItemType) -> Decimal:
    """Unrounded discount for an item; zero when the discount does not apply."""
    if discount is None or not discount.applies(item_type):
        return ZERO

    value = to_decimal(discount.value)
    if value < 0:
        raise BillingError.invalid_field("discount.value", f"Discount value cannot be negative: {value}")

    if discount.type == DiscountType.PERCENTAGE:
        return base_price * value / Decimal("100")
    if discount.type == DiscountType.FLAT:
        return value
    return ZERO


def calculate_final_amount(
    base_price: Number,
    discount: Optional[Discount],
    gst_number: Optional[str],
    item_type: ItemType,
) -> FinalAmountResult:
    """
    Calculate the payable amount with discount and tax.

    Steps:
    1. Discount applies if its appliesTo matches item_type or is "both"
    2. Percentage: base * value / 100; flat: value
    3. Subtotal = max(0, base - discount), rounded
    4. GST on the subtotal only

    Args:
        base_price: Plan or add-on price before discount
        discount: Company discount descriptor, or None
        gst_number: Company GST number, or None
        item_type: ItemType.SUBSCRIPTION or ItemType.ADDON

    Returns:
        FinalAmountResult with the per-line breakdown

    Raises:
        BillingError: If base_price or the discount value is negative

    Example:
        >>> r = calculate_final_amount(500000, Discount(DiscountType.PERCENTAGE, 10, AppliesTo.SUBSCRIPTION),
        ...                            "22ABCDE1234F1Z5", ItemType.SUBSCRIPTION)
        >>> r.final_amount
        Decimal('531000.00')
    """
    base = to_decimal(base_price)
    if base < 0:
        raise BillingError.invalid_field("basePrice", f"Base price cannot be negative: {base}")

    item_type = ItemType(item_type)
    raw_discount = calculate_discount_amount(base, discount, item_type)

    amount_after_discount = round2(max(ZERO, base - raw_discount))
    # Never report more discount than the price it was taken from
    discount_amount = round2(min(raw_discount, base))

    tax = calculate_tax(amount_after_discount, gst_number)

    return FinalAmountResult(
        base_price=base,
        discount_amount=discount_amount,
        amount_after_discount=amount_after_discount,
        tax_amount=tax.tax_amount,
        final_amount=tax.final_amount,
        has_gst=tax.has_gst,
    )
