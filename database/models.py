"""
SQLAlchemy models for company, pricing and SSCC sequence data
"""

from datetime import datetime
from sqlalchemy import Column, Integer, BigInteger, String, Numeric, DateTime, ForeignKey, Boolean, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Company(Base):
    """Tenant company with its GS1 prefix, GST registration and assigned discount"""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    company_prefix = Column(String(12))  # GS1 company prefix (6-12 digits)
    gst_number = Column(String(15))  # GSTIN; blank/NULL means no GST is charged

    # Company-level discount set by an admin
    discount_type = Column(String(20))  # percentage, flat
    discount_value = Column(Numeric(12, 2))
    discount_applies_to = Column(String(20))  # subscription, addon, both

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    coupon_assignments = relationship("CompanyCoupon", back_populates="company")


class SubscriptionPlan(Base):
    """Plan price per billing cycle (source of truth for subscription pricing)"""
    __tablename__ = "subscription_plans"
    __table_args__ = (UniqueConstraint("name", "billing_cycle", name="uq_plan_cycle"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False)  # Starter, Growth
    billing_cycle = Column(String(20), nullable=False)  # monthly, yearly
    base_price = Column(Numeric(12, 2), nullable=False)
    is_active = Column(Boolean, default=True, index=True)


class AddOn(Base):
    """Purchasable add-on (extra labels, extra user IDs)"""
    __tablename__ = "add_ons"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)  # INR per unit
    is_active = Column(Boolean, default=True, index=True)


class Coupon(Base):
    """Promotional coupon; usable only by companies it is assigned to"""
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    type = Column(String(20), nullable=False)  # percentage, flat
    value = Column(Numeric(12, 2), nullable=False)
    valid_from = Column(DateTime, nullable=False, default=datetime.utcnow)
    valid_to = Column(DateTime)
    usage_limit = Column(Integer)
    usage_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, index=True)

    assignments = relationship("CompanyCoupon", back_populates="coupon")


class CompanyCoupon(Base):
    """Assignment of a coupon to a company"""
    __tablename__ = "company_discounts"
    __table_args__ = (UniqueConstraint("company_id", "discount_id", name="uq_company_discount"),)

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    discount_id = Column(Integer, ForeignKey("discounts.id"), nullable=False, index=True)
    assigned_at = Column(DateTime, default=datetime.utcnow)

    company = relationship("Company", back_populates="coupon_assignments")
    coupon = relationship("Coupon", back_populates="assignments")


class SSCCSequence(Base):
    """Last SSCC serial issued per company; row is locked while incrementing"""
    __tablename__ = "sscc_sequences"

    id = Column(Integer, primary_key=True)
    company_id = Column(String(64), unique=True, nullable=False, index=True)
    last_value = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
