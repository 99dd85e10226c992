"""
Per-year invoice number counter.

Allocation locks the row (SELECT ... FOR UPDATE) so concurrent invoice
creation cannot hand out the same number twice.
"""
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from jewelbill.db.base import Base


class InvoiceCounter(Base):
    __tablename__ = "invoice_counters"
    __table_args__ = (UniqueConstraint("prefix", "year", name="uq_invoice_counter_prefix_year"),)

    id = Column(Integer, primary_key=True, index=True)
    prefix = Column(String(16), nullable=False)
    year = Column(String(2), nullable=False)  # two-digit year, e.g. "25"
    last_sequence = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<InvoiceCounter {self.prefix}{self.year} last={self.last_sequence}>"
