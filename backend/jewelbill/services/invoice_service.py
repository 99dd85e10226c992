"""Invoice persistence: create, update, status, payments, lookup and listing.

All derived amounts come from invoice_calculator. This module only gathers the
raw inputs (request values, stored values, shop settings), runs the
calculator and writes the result back in one piece.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jewelbill.core.audit import AuditLog
from jewelbill.core.config import settings
from jewelbill.core.exceptions import (
    CustomerNotFound,
    InvalidInvoiceStatus,
    InvoiceNotFound,
    InvoiceNumberTaken,
    MissingRequiredField,
)
from jewelbill.models.customer import Customer
from jewelbill.models.invoice import Invoice, InvoiceItem
from jewelbill.models.shop_settings import ShopSettings
from jewelbill.services.invoice_calculator import (
    ITEM_INPUT_FIELDS,
    PAYMENT_STATUSES,
    PaymentStatus,
    apply_cash_payment,
    compute_invoice,
    parse_cash_amount,
    quantize_money,
)
from jewelbill.services.invoice_numbering import next_invoice_number, reserve_invoice_number
from jewelbill.services.settings_service import get_shop_settings, product_rate, tax_settings_for

logger = logging.getLogger(__name__)

PASS_THROUGH_ITEM_FIELDS = ("description", "hsn_code", "item_type", "pieces")
# Changing any of these recomputes the whole derived block
RECOMPUTE_FIELDS = (
    "items", "cgst_rate", "sgst_rate", "discount",
    "old_gold_weight", "old_gold_amount", "cash_received",
)
DETAIL_FIELDS = ("invoice_date", "due_date", "notes", "terms", "payment_method")
SORTABLE_FIELDS = {
    "created_at": Invoice.created_at,
    "invoice_date": Invoice.invoice_date,
    "due_date": Invoice.due_date,
    "total": Invoice.total,
    "invoice_number": Invoice.invoice_number,
    "customer_name": Invoice.customer_name,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise CustomerNotFound(customer_id)
    return customer


def get_invoice(db: Session, invoice_id: int) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise InvoiceNotFound(invoice_id)
    return invoice


def get_invoice_by_number(db: Session, invoice_number: str) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.invoice_number == invoice_number).first()
    if not invoice:
        raise InvoiceNotFound(invoice_number)
    return invoice


def resolve_item_rates(shop: ShopSettings, items: Iterable[dict]) -> List[dict]:
    """
    Fill in rate_per_ten_gram from the product type table where the item has
    no explicit rate.

    Raises:
        MissingRequiredField: no gross weight, or no rate and no known product type.
    """
    resolved = []
    for position, item in enumerate(items, start=1):
        item = dict(item)
        if item.get("gross_weight") is None:
            raise MissingRequiredField(f"Item {position}: gross_weight is required")
        if item.get("rate_per_ten_gram") is None:
            rate = product_rate(shop, item.get("item_type"))
            if rate is None:
                raise MissingRequiredField(
                    f"Item {position}: rate_per_ten_gram is required "
                    f"(no rate configured for product type {item.get('item_type')!r})"
                )
            item["rate_per_ten_gram"] = rate
        resolved.append(item)
    return resolved


def _stored_items(invoice: Invoice) -> List[dict]:
    return [
        {field: getattr(row, field) for field in PASS_THROUGH_ITEM_FIELDS + ITEM_INPUT_FIELDS}
        for row in invoice.items
    ]


def _write_computed(invoice: Invoice, computed: dict) -> None:
    """Replace items and every derived field with a fresh calculator result."""
    invoice.items = [
        InvoiceItem(
            position=position,
            **{field: item.get(field) for field in PASS_THROUGH_ITEM_FIELDS},
            gross_weight=item["gross_weight"],
            less_weight=item["less_weight"],
            rate_per_ten_gram=item["rate_per_ten_gram"],
            labour_charge_rate=item["labour_charge_rate"],
            net_weight=item["net_weight"],
            metal_amount=item["metal_amount"],
            labour_charge_amount=item["labour_charge_amount"],
            amount=item["amount"],
        )
        for position, item in enumerate(computed["items"])
    ]
    for field in (
        "subtotal", "cgst_rate", "cgst_amount", "sgst_rate", "sgst_amount",
        "tax_rate", "tax_amount", "discount", "old_gold_weight", "old_gold_amount",
        "round_off", "total", "cash_received", "balance_amount", "status", "paid_at",
    ):
        setattr(invoice, field, computed[field])


def create_invoice(db: Session, data: dict, now: Optional[datetime] = None) -> Invoice:
    """
    Create an invoice for an existing customer.

    Tax rates left out of `data` come from shop settings; discount, old gold
    and cash received default to 0. The invoice number is allocated unless
    one is supplied.
    """
    now = now or _utcnow()
    customer = get_customer(db, data["customer_id"])
    shop = get_shop_settings(db)

    items = resolve_item_rates(shop, data.get("items") or [])
    computed = compute_invoice(
        items,
        tax=tax_settings_for(shop, data.get("cgst_rate"), data.get("sgst_rate")),
        discount=data.get("discount"),
        old_gold_weight=data.get("old_gold_weight"),
        old_gold_amount=data.get("old_gold_amount"),
        cash_received=data.get("cash_received"),
        now=now,
    )

    invoice_number = data.get("invoice_number")
    if invoice_number:
        if db.query(Invoice.id).filter(Invoice.invoice_number == invoice_number).first():
            raise InvoiceNumberTaken(invoice_number)
        reserve_invoice_number(db, invoice_number)
    else:
        invoice_number = next_invoice_number(db, now=now)

    invoice_date = data.get("invoice_date") or now
    invoice = Invoice(
        invoice_number=invoice_number,
        customer_id=customer.id,
        customer_name=customer.name,
        customer_email=customer.email,
        customer_phone=customer.phone,
        customer_address=customer.address,
        invoice_date=invoice_date,
        due_date=data.get("due_date") or invoice_date + timedelta(days=settings.DEFAULT_PAYMENT_TERMS_DAYS),
        notes=data.get("notes"),
        terms=data.get("terms"),
        payment_method=data.get("payment_method"),
    )
    _write_computed(invoice, computed)
    db.add(invoice)
    try:
        db.commit()
    except IntegrityError:
        # Number taken between allocation and insert
        db.rollback()
        raise InvoiceNumberTaken(invoice_number)
    db.refresh(invoice)

    logger.info(f"[INVOICE] Created {invoice.invoice_number} total={invoice.total} status={invoice.status}")
    AuditLog.log_action("create", "invoice", invoice.id, changes={
        "invoice_number": invoice.invoice_number,
        "customer_id": invoice.customer_id,
        "total": computed["total"],
        "status": invoice.status,
    })
    return invoice


def update_invoice(db: Session, invoice_id: int, data: dict, now: Optional[datetime] = None) -> Invoice:
    """
    Patch an invoice. `data` holds only the fields the caller sent.

    Detail fields (dates, notes, terms, payment method) are set directly. If
    any pricing input is present the derived block is recomputed from the
    provided values, falling back to the invoice's current ones (including its
    stored raw items).
    """
    invoice = get_invoice(db, invoice_id)

    for field in DETAIL_FIELDS:
        if field in data:
            setattr(invoice, field, data[field])

    if any(data.get(field) is not None for field in RECOMPUTE_FIELDS):
        shop = get_shop_settings(db)
        items = data.get("items")
        items = resolve_item_rates(shop, items) if items is not None else _stored_items(invoice)

        def pick(field):
            value = data.get(field)
            return value if value is not None else getattr(invoice, field)

        computed = compute_invoice(
            items,
            tax=tax_settings_for(shop, pick("cgst_rate"), pick("sgst_rate")),
            discount=pick("discount"),
            old_gold_weight=pick("old_gold_weight"),
            old_gold_amount=pick("old_gold_amount"),
            cash_received=pick("cash_received"),
            paid_at=invoice.paid_at,
            now=now or _utcnow(),
        )
        _write_computed(invoice, computed)

    db.commit()
    db.refresh(invoice)

    AuditLog.log_action("update", "invoice", invoice.id, changes={
        "fields": sorted(data.keys()),
        "total": invoice.total,
        "status": invoice.status,
    })
    return invoice


def set_invoice_status(db: Session, invoice_id: int, status: str, now: Optional[datetime] = None) -> Invoice:
    """Assign a status by hand (e.g. cancelled, overdue). Marking paid stamps paid_at with the current time."""
    if status not in PAYMENT_STATUSES:
        raise InvalidInvoiceStatus(f"Invalid status {status!r}; expected one of {', '.join(PAYMENT_STATUSES)}")

    invoice = get_invoice(db, invoice_id)
    previous = invoice.status
    invoice.status = status
    if status == PaymentStatus.PAID.value:
        invoice.paid_at = now or _utcnow()
    db.commit()
    db.refresh(invoice)

    AuditLog.log_action("status_change", "invoice", invoice.id, changes={"from": previous, "to": status})
    return invoice


def record_cash_payment(db: Session, invoice_id: int, amount, now: Optional[datetime] = None) -> Tuple[Invoice, dict]:
    """
    Add `amount` to the cash already received and refresh balance and status.

    Raises:
        InvalidCashAmount: amount is None, not numeric or negative.
        InvoiceNotFound
    """
    invoice = get_invoice(db, invoice_id)
    amount = quantize_money(parse_cash_amount(amount))
    result = apply_cash_payment(
        total=invoice.total,
        cash_received=invoice.cash_received,
        status=invoice.status,
        paid_at=invoice.paid_at,
        additional_amount=amount,
        now=now or _utcnow(),
    )
    invoice.cash_received = result["cash_received"]
    invoice.balance_amount = result["balance_amount"]
    invoice.status = result["status"]
    invoice.paid_at = result["paid_at"]
    db.commit()
    db.refresh(invoice)

    AuditLog.log_payment(
        invoice.id, invoice.invoice_number, result["additional_amount"],
        result["cash_received"], result["balance_amount"], invoice.status,
    )
    return invoice, result


def delete_invoice(db: Session, invoice_id: int) -> None:
    invoice = get_invoice(db, invoice_id)
    number = invoice.invoice_number
    db.delete(invoice)
    db.commit()
    AuditLog.log_action("delete", "invoice", invoice_id, changes={"invoice_number": number})


def list_invoices(
    db: Session,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "created_at",
    order: str = "desc",
) -> Tuple[List[Invoice], int, List[dict]]:
    """
    Page of invoices plus the total match count and per-status stats
    (count and summed total over all invoices).
    """
    q = db.query(Invoice)
    if status and status != "all":
        q = q.filter(Invoice.status == status)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            Invoice.invoice_number.ilike(pattern),
            Invoice.customer_name.ilike(pattern),
            Invoice.customer_email.ilike(pattern),
        ))

    total = q.count()

    column = SORTABLE_FIELDS.get(sort_by, Invoice.created_at)
    ordering = column.asc() if order == "asc" else column.desc()
    tiebreak = Invoice.id.asc() if order == "asc" else Invoice.id.desc()
    invoices = q.order_by(ordering, tiebreak).offset((page - 1) * limit).limit(limit).all()

    stats = [
        {"status": s, "count": count, "total_amount": float(amount or 0)}
        for s, count, amount in (
            db.query(Invoice.status, func.count(Invoice.id), func.sum(Invoice.total))
            .group_by(Invoice.status)
            .order_by(Invoice.status)
            .all()
        )
    ]
    return invoices, total, stats
