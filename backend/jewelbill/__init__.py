"""Jewellery shop billing backend: customers, GST invoices, payments, receipts."""

__version__ = "0.1.0"
