"""
Invoice calculator: line item pricing, totals, rounding and payment status.

Pure functions only. No database, no settings lookups, no clock reads unless
the caller leaves `now` out. Callers resolve product type rates and shop tax
rates first and pass them in.

Pricing chain (order is fixed):
    net weight   = gross - less
    metal amount = net / 10 * rate per 10 g
    labour       = labour rate per gram * net
    amount       = metal + labour
    subtotal     = sum(amount)
    CGST / SGST  = subtotal * rate / 100      (on the pre-discount subtotal)
    before gold  = subtotal + tax - discount
    after gold   = before gold - old gold amount
    total        = round(after gold)          (half away from zero, whole rupee)
    round off    = total - after gold
    balance      = total - cash received

All arithmetic is Decimal. Floats and strings are converted through str() so
1.5 stays 1.5. Nothing is rounded before the total.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Tuple

from jewelbill.core.exceptions import InvalidCashAmount

ZERO = Decimal("0")
WHOLE_UNIT = Decimal("1")
# Metal rates are quoted per 10 grams
GRAMS_PER_RATE_UNIT = Decimal("10")
PERCENT = Decimal("100")
# Entry precision: weights in milligrams, money and percentages in paise
WEIGHT_STEP = Decimal("0.001")
MONEY_STEP = Decimal("0.01")

ITEM_INPUT_FIELDS = ("gross_weight", "less_weight", "rate_per_ten_gram", "labour_charge_rate")


class PaymentStatus(str, Enum):
    DRAFT = "draft"
    UNPAID = "unpaid"
    PAID = "paid"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"


PAYMENT_STATUSES = tuple(s.value for s in PaymentStatus)


@dataclass(frozen=True)
class TaxSettings:
    """CGST/SGST percentages in effect for one invoice (0-100 each)."""

    cgst_rate: Decimal = ZERO
    sgst_rate: Decimal = ZERO

    @classmethod
    def of(cls, cgst_rate: Any = None, sgst_rate: Any = None) -> "TaxSettings":
        return cls(cgst_rate=to_decimal(cgst_rate), sgst_rate=to_decimal(sgst_rate))


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Convert a number (or numeric string) to Decimal; None gives `default`."""
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_currency(value: Decimal) -> Decimal:
    """Round to the nearest whole currency unit, halves away from zero."""
    return value.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def quantize_weight(value: Any) -> Optional[Decimal]:
    """Entered weight to the milligram. None stays None."""
    if value is None:
        return None
    return to_decimal(value).quantize(WEIGHT_STEP, rounding=ROUND_HALF_UP)


def quantize_money(value: Any) -> Optional[Decimal]:
    """Entered rate, percentage or amount to the paise. None stays None."""
    if value is None:
        return None
    return to_decimal(value).quantize(MONEY_STEP, rounding=ROUND_HALF_UP)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_line_item(item: Mapping[str, Any]) -> dict:
    """
    Price one raw line item.

    Args:
        item: mapping with gross_weight and optionally less_weight,
            rate_per_ten_gram, labour_charge_rate (missing ones count as 0).
            Any other keys (description, hsn_code, item_type, pieces, ...)
            are passed through untouched.

    Returns:
        A new dict: the item with its inputs as Decimal plus net_weight,
        metal_amount, labour_charge_amount and amount.

    A less weight above the gross weight is accepted and gives a negative net
    weight and negative amounts.
    """
    gross_weight = to_decimal(item.get("gross_weight"))
    less_weight = to_decimal(item.get("less_weight"))
    rate_per_ten_gram = to_decimal(item.get("rate_per_ten_gram"))
    labour_charge_rate = to_decimal(item.get("labour_charge_rate"))

    net_weight = gross_weight - less_weight
    metal_amount = net_weight / GRAMS_PER_RATE_UNIT * rate_per_ten_gram
    labour_charge_amount = labour_charge_rate * net_weight

    return {
        **item,
        "gross_weight": gross_weight,
        "less_weight": less_weight,
        "rate_per_ten_gram": rate_per_ten_gram,
        "labour_charge_rate": labour_charge_rate,
        "net_weight": net_weight,
        "metal_amount": metal_amount,
        "labour_charge_amount": labour_charge_amount,
        "amount": metal_amount + labour_charge_amount,
    }


def compute_totals(
    resolved_items: Iterable[Mapping[str, Any]],
    tax: Optional[TaxSettings] = None,
    discount: Any = None,
    old_gold_weight: Any = None,
    old_gold_amount: Any = None,
    cash_received: Any = None,
) -> dict:
    """
    Reduce resolved line items and invoice adjustments to the totals block.

    old_gold_weight is carried for display only; only old_gold_amount is
    credited. A negative balance (overpayment) is a valid result.
    """
    tax = tax or TaxSettings()
    discount = to_decimal(discount)
    old_gold_weight = to_decimal(old_gold_weight)
    old_gold_amount = to_decimal(old_gold_amount)
    cash_received = to_decimal(cash_received)

    subtotal = sum((to_decimal(i["amount"]) for i in resolved_items), ZERO)

    cgst_amount = subtotal * tax.cgst_rate / PERCENT
    sgst_amount = subtotal * tax.sgst_rate / PERCENT
    tax_amount = cgst_amount + sgst_amount

    total_before_old_gold = subtotal + tax_amount - discount
    total_after_old_gold = total_before_old_gold - old_gold_amount
    total = round_currency(total_after_old_gold)

    return {
        "subtotal": subtotal,
        "cgst_rate": tax.cgst_rate,
        "cgst_amount": cgst_amount,
        "sgst_rate": tax.sgst_rate,
        "sgst_amount": sgst_amount,
        "tax_rate": tax.cgst_rate + tax.sgst_rate,
        "tax_amount": tax_amount,
        "discount": discount,
        "total_before_old_gold": total_before_old_gold,
        "old_gold_weight": old_gold_weight,
        "old_gold_amount": old_gold_amount,
        "total_after_old_gold": total_after_old_gold,
        "round_off": total - total_after_old_gold,
        "total": total,
        "cash_received": cash_received,
        "balance_amount": total - cash_received,
    }


def derive_payment_status(
    balance_amount: Decimal,
    paid_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Tuple[str, Optional[datetime]]:
    """
    Status for a freshly computed invoice.

    balance <= 0 is paid; paid_at keeps an existing stamp or gets `now`.
    balance > 0 is unpaid; paid_at is returned unchanged, even when an earlier
    payment had stamped it.
    """
    if balance_amount <= 0:
        return PaymentStatus.PAID.value, paid_at or now or _utcnow()
    return PaymentStatus.UNPAID.value, paid_at


def compute_invoice(
    items: Iterable[Mapping[str, Any]],
    tax: Optional[TaxSettings] = None,
    discount: Any = None,
    old_gold_weight: Any = None,
    old_gold_amount: Any = None,
    cash_received: Any = None,
    paid_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Full recompute from raw inputs: resolved items, totals, status, paid_at.

    This is the only way derived fields are produced; callers re-run it
    whenever items, tax rates, discount, old gold or cash received change.
    Pass the invoice's existing paid_at so a paid invoice keeps its stamp.
    """
    resolved = [resolve_line_item(item) for item in items]
    totals = compute_totals(
        resolved,
        tax=tax,
        discount=discount,
        old_gold_weight=old_gold_weight,
        old_gold_amount=old_gold_amount,
        cash_received=cash_received,
    )
    status, paid_at = derive_payment_status(totals["balance_amount"], paid_at=paid_at, now=now)
    return {"items": resolved, **totals, "status": status, "paid_at": paid_at}


def parse_cash_amount(value: Any) -> Decimal:
    """Validate an incoming cash amount; raises InvalidCashAmount."""
    if value is None:
        raise InvalidCashAmount("Cash received amount is required")
    if isinstance(value, bool):
        raise InvalidCashAmount("Cash received amount must be a number")
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError):
        raise InvalidCashAmount(f"Cash received amount must be a number, got {value!r}")
    if not amount.is_finite():
        raise InvalidCashAmount(f"Cash received amount must be a number, got {value!r}")
    if amount < 0:
        raise InvalidCashAmount("Cash received amount cannot be negative")
    return amount


def apply_cash_payment(
    total: Any,
    cash_received: Any,
    status: str,
    paid_at: Optional[datetime],
    additional_amount: Any,
    now: Optional[datetime] = None,
) -> dict:
    """
    Add a payment to an invoice whose total is already fixed.

    cash_received accumulates; items and tax are not touched. balance <= 0
    marks the invoice paid, stamping paid_at only if it is unset. A positive
    balance reverts a paid invoice to unpaid and leaves paid_at as it was;
    other statuses (draft, overdue, cancelled) stay as they are.

    Raises:
        InvalidCashAmount: additional_amount is None, not numeric or negative.
    """
    additional = parse_cash_amount(additional_amount)
    new_cash_received = to_decimal(cash_received) + additional
    balance_amount = to_decimal(total) - new_cash_received

    if balance_amount <= 0:
        status = PaymentStatus.PAID.value
        paid_at = paid_at or now or _utcnow()
    elif status == PaymentStatus.PAID.value:
        status = PaymentStatus.UNPAID.value

    return {
        "additional_amount": additional,
        "cash_received": new_cash_received,
        "balance_amount": balance_amount,
        "status": status,
        "paid_at": paid_at,
    }
