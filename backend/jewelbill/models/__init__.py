from jewelbill.models.customer import Customer
from jewelbill.models.invoice import Invoice, InvoiceItem
from jewelbill.models.invoice_counter import InvoiceCounter
from jewelbill.models.shop_settings import ShopSettings, ProductType

__all__ = ["Customer", "Invoice", "InvoiceItem", "InvoiceCounter", "ShopSettings", "ProductType"]
