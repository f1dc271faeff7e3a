"""
Billing calculation engine tests

Order is always: base price -> discount -> GST on the discounted amount.
"""

from decimal import Decimal

import pytest

from billing.errors import BillingError, BillingErrorCode
from billing.models import AppliesTo, Discount, DiscountType, ItemType, Number, round2
from billing.tax import calculate_discount_amount, calculate_final_amount, calculate_tax, has_gst_number

GST = "22ABCDE1234F1Z5"


def pct(value: Number, applies_to=AppliesTo.SUBSCRIPTION) -> Discount:
    return Discount(DiscountType.PERCENTAGE, value, applies_to)


def flat(value: Number, applies_to=AppliesTo.BOTH) -> Discount:
    return Discount(DiscountType.FLAT, value, applies_to)


def test_percentage_discount_with_gst():
    """Test 500000 with 10% subscription discount and GST"""
    result = calculate_final_amount(500000, pct(10), GST, ItemType.SUBSCRIPTION)
    assert result.discount_amount == Decimal("50000")
    assert result.amount_after_discount == Decimal("450000")
    assert result.tax_amount == Decimal("81000")
    assert result.final_amount == Decimal("531000")
    assert result.has_gst is True


def test_percentage_discount_without_gst():
    """Test that no GST number means no tax"""
    result = calculate_final_amount(500000, pct(10), None, ItemType.SUBSCRIPTION)
    assert result.tax_amount == Decimal("0")
    assert result.final_amount == Decimal("450000")
    assert result.has_gst is False


def test_no_discount_with_gst():
    """Test GST on the full price when there is no discount"""
    result = calculate_final_amount(500000, None, GST, ItemType.SUBSCRIPTION)
    assert result.discount_amount == Decimal("0")
    assert result.amount_after_discount == Decimal("500000")
    assert result.tax_amount == Decimal("90000")
    assert result.final_amount == Decimal("590000")


def test_twenty_percent_with_short_gst_number():
    """Test that any non-blank GST number enables tax"""
    result = calculate_final_amount(100000, pct(20), "22X", ItemType.SUBSCRIPTION)
    assert result.amount_after_discount == Decimal("80000")
    assert result.tax_amount == Decimal("14400")
    assert result.final_amount == Decimal("94400")


def test_flat_discount_applies_to_both():
    """Test a flat discount scoped to both item types"""
    result = calculate_final_amount(5000, flat(500), None, ItemType.ADDON)
    assert result.discount_amount == Decimal("500")
    assert result.amount_after_discount == Decimal("4500")
    assert result.tax_amount == Decimal("0")
    assert result.final_amount == Decimal("4500")


def test_annual_growth_plan_with_gst():
    """Test 49000 yearly with 10% off and GST"""
    result = calculate_final_amount(49000, pct(10), GST, ItemType.SUBSCRIPTION)
    assert result.amount_after_discount == Decimal("44100")
    assert result.tax_amount == Decimal("7938")
    assert result.final_amount == Decimal("52038")


def test_discount_scope_mismatch_is_ignored():
    """Test that a subscription-only discount does not touch add-ons"""
    result = calculate_final_amount(10000, pct(10, AppliesTo.SUBSCRIPTION), GST, ItemType.ADDON)
    assert result.discount_amount == Decimal("0")
    assert result.amount_after_discount == Decimal("10000")
    assert result.final_amount == Decimal("11800")


def test_addon_only_discount_on_addon():
    """Test an add-on scoped discount applies to add-ons"""
    result = calculate_final_amount(10000, pct(25, AppliesTo.ADDON), None, ItemType.ADDON)
    assert result.amount_after_discount == Decimal("7500")


def test_flat_discount_larger_than_price_clamps_to_zero():
    """Test that the subtotal never goes negative"""
    result = calculate_final_amount(300, flat(500), GST, ItemType.SUBSCRIPTION)
    assert result.amount_after_discount == Decimal("0")
    assert result.discount_amount == Decimal("300")
    assert result.tax_amount == Decimal("0")
    assert result.final_amount == Decimal("0")


@pytest.mark.parametrize("gst_number", [None, "", "   "])
def test_blank_gst_numbers_disable_tax(gst_number):
    """Test that None, empty and whitespace-only GST numbers mean no GST"""
    assert has_gst_number(gst_number) is False
    result = calculate_final_amount(1000, None, gst_number, ItemType.SUBSCRIPTION)
    assert result.has_gst is False
    assert result.tax_amount == Decimal("0")
    assert result.final_amount == Decimal("1000")


def test_incomplete_discount_is_no_discount():
    """Test that a discount missing type or value is ignored"""
    assert calculate_final_amount(1000, Discount(None, 10), None, ItemType.SUBSCRIPTION).discount_amount == 0
    assert calculate_final_amount(1000, Discount(DiscountType.FLAT, None), None, ItemType.ADDON).discount_amount == 0
    assert Discount.from_dict(None) is None
    assert Discount.from_dict({}) is None


def test_discount_from_dict_accepts_wire_shape():
    """Test building a discount from a {type, value, appliesTo} mapping"""
    discount = Discount.from_dict({"type": "percentage", "value": 10, "appliesTo": "subscription"})
    assert discount.type == DiscountType.PERCENTAGE
    assert discount.applies_to == AppliesTo.SUBSCRIPTION
    assert discount.applies(ItemType.SUBSCRIPTION)
    assert not discount.applies(ItemType.ADDON)


def test_rounding_happens_per_step_half_up():
    """Test two-decimal half-up rounding at the discount and tax steps"""
    # 999.99 * 12.5% = 124.99875 -> subtotal 875.00125 -> 875.00
    result = calculate_final_amount("999.99", pct("12.5"), GST, ItemType.SUBSCRIPTION)
    assert result.amount_after_discount == Decimal("875.00")
    assert result.tax_amount == Decimal("157.50")
    assert result.final_amount == Decimal("1032.50")

    # 0.25 * 18% = 0.045 -> 0.05 (half-up, not banker's)
    assert calculate_tax("0.25", GST).tax_amount == Decimal("0.05")
    assert round2("2.675") == Decimal("2.68")


def test_final_equals_subtotal_plus_tax():
    """Test the final amount identity over a range of prices"""
    for price in ("0", "0.01", "99.99", "1234.56", "500000", "7777.77"):
        for discount in (None, pct(15), flat(100)):
            for gst_number in (GST, None):
                r = calculate_final_amount(price, discount, gst_number, ItemType.SUBSCRIPTION)
                assert r.final_amount == round2(r.amount_after_discount + r.tax_amount)
                assert r.amount_after_discount >= 0
                assert 0 <= r.discount_amount <= r.base_price
                if gst_number is None:
                    assert r.tax_amount == 0
                    assert r.final_amount == r.amount_after_discount


def test_calculate_tax_shape():
    """Test TaxResult fields and wire shape"""
    result = calculate_tax(1000, f"  {GST}  ")
    assert result.tax_rate == Decimal("0.18")
    assert result.gst_number == GST
    assert result.to_dict() == {
        "baseAmount": 1000,
        "taxRate": 0.18,
        "taxAmount": 180,
        "finalAmount": 1180,
        "hasGST": True,
        "gstNumber": GST,
    }

    untaxed = calculate_tax(1000, None)
    assert untaxed.tax_rate == 0
    assert untaxed.gst_number is None


def test_final_amount_wire_shape():
    """Test FinalAmountResult.to_dict() keys and breakdown"""
    data = calculate_final_amount(500000, pct(10), GST, ItemType.SUBSCRIPTION).to_dict()
    assert data["basePrice"] == 500000
    assert data["discountAmount"] == 50000
    assert data["amountAfterDiscount"] == 450000
    assert data["taxAmount"] == 81000
    assert data["finalAmount"] == 531000
    assert data["hasGST"] is True
    assert data["breakdown"] == {
        "base": 500000,
        "discount": 50000,
        "subtotal": 450000,
        "tax": 81000,
        "total": 531000,
    }


def test_fractional_amounts_serialize_as_floats():
    """Test that only non-integral amounts are emitted as floats"""
    data = calculate_final_amount("99.99", None, GST, ItemType.SUBSCRIPTION).to_dict()
    assert data["taxAmount"] == 18 and isinstance(data["taxAmount"], int)
    assert data["finalAmount"] == 117.99 and isinstance(data["finalAmount"], float)


def test_negative_base_price_rejected():
    """Test that a negative base price fails fast"""
    with pytest.raises(BillingError) as exc:
        calculate_final_amount(-1, None, GST, ItemType.SUBSCRIPTION)
    assert exc.value.code == BillingErrorCode.INVALID_FIELD_VALUE
    assert exc.value.details == {"field": "basePrice"}


def test_negative_discount_value_rejected():
    """Test that a negative discount value fails fast"""
    with pytest.raises(BillingError) as exc:
        calculate_final_amount(1000, flat(-50), None, ItemType.SUBSCRIPTION)
    assert exc.value.code == BillingErrorCode.INVALID_FIELD_VALUE


def test_negative_discount_ignored_when_not_applicable():
    """Test that scope is checked before the discount value"""
    result = calculate_final_amount(1000, pct(-5, AppliesTo.ADDON), None, ItemType.SUBSCRIPTION)
    assert result.discount_amount == 0


def test_unrounded_discount_amount():
    """Test the raw discount helper"""
    assert calculate_discount_amount(Decimal("999.99"), pct("12.5"), ItemType.SUBSCRIPTION) == Decimal("124.99875")
    assert calculate_discount_amount(Decimal("100"), None, ItemType.SUBSCRIPTION) == 0


def test_boolean_is_not_a_money_amount():
    """Test that booleans are rejected as amounts"""
    with pytest.raises(TypeError):
        calculate_tax(True, GST)


def test_large_amounts_round_without_overflow():
    """Test that amounts wider than the default decimal precision still quantize"""
    result = calculate_final_amount(Decimal("1e27"), None, GST, ItemType.SUBSCRIPTION)
    assert result.amount_after_discount == Decimal("1e27")
    assert result.tax_amount == Decimal("1.8e26")
    assert result.final_amount == Decimal("1.18e27")
    assert round2(Decimal("123456789012345678901234567890.125")) == Decimal("123456789012345678901234567890.13")
