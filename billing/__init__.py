"""
Billing calculation engine: discount, then GST, then the final amount
"""

from .errors import BillingError, BillingErrorCode
from .models import AppliesTo, Discount, DiscountType, FinalAmountResult, ItemType, TaxResult, round2
from .tax import calculate_final_amount, calculate_tax

__all__ = [
    "BillingError",
    "BillingErrorCode",
    "AppliesTo",
    "Discount",
    "DiscountType",
    "FinalAmountResult",
    "ItemType",
    "TaxResult",
    "round2",
    "calculate_final_amount",
    "calculate_tax",
]
