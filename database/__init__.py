"""
Database package for company, pricing and SSCC sequence data
"""

from .models import Base, Company, SubscriptionPlan, AddOn, Coupon, CompanyCoupon, SSCCSequence
from .connection import get_db, get_session, engine, SessionLocal
from .crud import (
    load_plan_prices,
    load_addon_prices,
    get_company,
    company_discount,
    get_coupon_by_code,
    to_coupon,
    is_coupon_assigned,
    assign_coupon,
    increment_coupon_usage,
)

__all__ = [
    "Base",
    "Company",
    "SubscriptionPlan",
    "AddOn",
    "Coupon",
    "CompanyCoupon",
    "SSCCSequence",
    "get_db",
    "get_session",
    "engine",
    "SessionLocal",
    "load_plan_prices",
    "load_addon_prices",
    "get_company",
    "company_discount",
    "get_coupon_by_code",
    "to_coupon",
    "is_coupon_assigned",
    "assign_coupon",
    "increment_coupon_usage",
]
