"""
Invoice and its line items.

Every amount below except the raw inputs (weights, rates, tax rates, discount,
old gold, cash received) is derived by services.invoice_calculator and stored
verbatim. Nothing is recomputed on read.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from jewelbill.db.base import Base


# Entered values, at the precision the request schemas quantize to
Weight = Numeric(12, 3)
Money = Numeric(14, 2)
Rate = Numeric(7, 2)
# Calculator results. Inputs at the scales above never need more than 10 places
Amount = Numeric(26, 10)


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(32), unique=True, nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)

    # Customer snapshot at billing time
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(64), nullable=True)
    customer_address = Column(JSON, nullable=True)

    subtotal = Column(Amount, nullable=False, default=0)
    cgst_rate = Column(Rate, nullable=False, default=0)
    cgst_amount = Column(Amount, nullable=False, default=0)
    sgst_rate = Column(Rate, nullable=False, default=0)
    sgst_amount = Column(Amount, nullable=False, default=0)
    tax_rate = Column(Rate, nullable=False, default=0)
    tax_amount = Column(Amount, nullable=False, default=0)
    discount = Column(Money, nullable=False, default=0)
    old_gold_weight = Column(Weight, nullable=False, default=0)
    old_gold_amount = Column(Money, nullable=False, default=0)
    round_off = Column(Amount, nullable=False, default=0)
    total = Column(Money, nullable=False, default=0)
    cash_received = Column(Money, nullable=False, default=0)
    balance_amount = Column(Money, nullable=False, default=0)

    status = Column(String(16), nullable=False, default="unpaid", index=True)  # draft | unpaid | paid | cancelled | overdue
    invoice_date = Column(DateTime(timezone=True), nullable=False, index=True)
    due_date = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)
    payment_method = Column(String(64), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", backref="invoices")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    # Pass-through descriptive fields
    description = Column(String(255), nullable=True)
    hsn_code = Column(String(32), nullable=True)
    item_type = Column(String(64), nullable=True)  # product type name, e.g. "Gold 22K"
    pieces = Column(Integer, nullable=True)

    gross_weight = Column(Weight, nullable=False, default=0)
    less_weight = Column(Weight, nullable=False, default=0)
    rate_per_ten_gram = Column(Money, nullable=False, default=0)
    labour_charge_rate = Column(Money, nullable=False, default=0)

    net_weight = Column(Weight, nullable=False, default=0)
    metal_amount = Column(Amount, nullable=False, default=0)
    labour_charge_amount = Column(Amount, nullable=False, default=0)
    amount = Column(Amount, nullable=False, default=0)

    invoice = relationship("Invoice", back_populates="items")
