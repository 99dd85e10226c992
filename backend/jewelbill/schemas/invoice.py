from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal

from jewelbill.schemas.common import Pagination
from jewelbill.services.invoice_calculator import quantize_money, quantize_weight


class LineItemIn(BaseModel):
    """Raw line item as entered at the counter. Derived amounts are never accepted."""
    description: Optional[str] = None
    hsn_code: Optional[str] = None
    item_type: Optional[str] = None  # product type name; supplies the rate when none is given
    pieces: Optional[int] = Field(None, ge=0)
    gross_weight: Decimal = Field(..., ge=0)
    less_weight: Decimal = Field(Decimal("0"), ge=0)
    rate_per_ten_gram: Optional[Decimal] = Field(None, ge=0)
    labour_charge_rate: Decimal = Field(Decimal("0"), ge=0)

    @field_validator("gross_weight", "less_weight")
    @classmethod
    def to_milligrams(cls, v: Decimal) -> Decimal:
        return quantize_weight(v)

    @field_validator("rate_per_ten_gram", "labour_charge_rate")
    @classmethod
    def to_paise(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return quantize_money(v)

    class Config:
        allow_inf_nan = False


class InvoiceAdjustments(BaseModel):
    """Invoice-level pricing inputs shared by create and update."""
    # Omitted tax rates are taken from shop settings (create) or kept (update)
    cgst_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    sgst_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    discount: Optional[Decimal] = Field(None, ge=0)
    old_gold_weight: Optional[Decimal] = Field(None, ge=0)
    old_gold_amount: Optional[Decimal] = Field(None, ge=0)
    cash_received: Optional[Decimal] = Field(None, ge=0)
    invoice_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    payment_method: Optional[str] = None

    @field_validator("old_gold_weight")
    @classmethod
    def to_milligrams(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return quantize_weight(v)

    @field_validator("cgst_rate", "sgst_rate", "discount", "old_gold_amount", "cash_received")
    @classmethod
    def to_paise(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return quantize_money(v)

    class Config:
        allow_inf_nan = False


class InvoiceCreate(InvoiceAdjustments):
    customer_id: int
    items: List[LineItemIn]
    invoice_number: Optional[str] = None


class InvoiceUpdate(InvoiceAdjustments):
    items: Optional[List[LineItemIn]] = None


class InvoiceStatusUpdate(BaseModel):
    status: str


class CashPayment(BaseModel):
    # Amount received now; added to what was already received
    cash_received: Optional[float] = None

    class Config:
        allow_inf_nan = False


class InvoiceItemResponse(BaseModel):
    id: int
    position: int
    description: Optional[str] = None
    hsn_code: Optional[str] = None
    item_type: Optional[str] = None
    pieces: Optional[int] = None
    gross_weight: float
    less_weight: float
    rate_per_ten_gram: float
    labour_charge_rate: float
    net_weight: float
    metal_amount: float
    labour_charge_amount: float
    amount: float

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    id: int
    invoice_number: Optional[str] = None
    customer_id: Optional[int] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[Dict[str, Any]] = None
    items: List[InvoiceItemResponse]
    subtotal: float
    cgst_rate: float
    cgst_amount: float
    sgst_rate: float
    sgst_amount: float
    tax_rate: float
    tax_amount: float
    discount: float
    old_gold_weight: float
    old_gold_amount: float
    round_off: float
    total: float
    cash_received: float
    balance_amount: float
    status: str
    invoice_date: datetime
    due_date: datetime
    notes: Optional[str] = None
    terms: Optional[str] = None
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StatusStat(BaseModel):
    status: str
    count: int
    total_amount: float


class InvoiceList(BaseModel):
    invoices: List[InvoiceResponse]
    pagination: Pagination
    stats: List[StatusStat]


class CashPaymentResponse(BaseModel):
    message: str
    invoice: InvoiceResponse
    additional_amount: float
    total_cash_received: float
