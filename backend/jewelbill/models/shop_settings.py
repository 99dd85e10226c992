"""
Shop settings: one row, created with defaults on first access.

Tax rates and the product type rate table feed the invoice calculator as an
explicit TaxSettings value; the calculator never reads this table itself.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from jewelbill.db.base import Base


class ShopSettings(Base):
    __tablename__ = "shop_settings"

    id = Column(Integer, primary_key=True, index=True)
    shop_name = Column(String(255), nullable=False)
    address = Column(String(512), nullable=False, default="")
    phone = Column(String(64), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    gst_number = Column(String(32), nullable=False, default="")
    logo = Column(Text, nullable=False, default="")  # base64 image or URL
    cgst_rate = Column(Numeric(7, 2), nullable=False)
    sgst_rate = Column(Numeric(7, 2), nullable=False)
    gold_rate = Column(Numeric(14, 2), nullable=False)  # per 10 g
    silver_rate = Column(Numeric(14, 2), nullable=False)  # per 10 g
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product_types = relationship(
        "ProductType",
        back_populates="settings",
        cascade="all, delete-orphan",
        order_by="ProductType.position",
    )


class ProductType(Base):
    __tablename__ = "product_types"

    id = Column(Integer, primary_key=True, index=True)
    settings_id = Column(Integer, ForeignKey("shop_settings.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(128), nullable=False)
    rate_per_ten_gram = Column(Numeric(14, 2), nullable=False, default=0)

    settings = relationship("ShopSettings", back_populates="product_types")
