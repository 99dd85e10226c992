"""
Dashboard figures for the shop owner.

- counts by status
- revenue (paid), pending (unpaid + overdue), cash received, outstanding balance
- five latest invoices
- revenue per month for the last six months, by invoice date, cancelled excluded
"""
from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from jewelbill.models.invoice import Invoice
from jewelbill.services.invoice_calculator import PaymentStatus

OPEN_STATUSES = (PaymentStatus.UNPAID.value, PaymentStatus.OVERDUE.value)
MONTHS_OF_HISTORY = 6


def _sum(db: Session, column, *filters) -> float:
    value = db.query(func.sum(column)).filter(*filters).scalar()
    return float(value or Decimal("0"))


def _months_back(now: datetime, months: int) -> datetime:
    month_index = now.year * 12 + (now.month - 1) - months
    return datetime(month_index // 12, month_index % 12 + 1, 1)


def monthly_revenue(db: Session, now: datetime = None, months: int = MONTHS_OF_HISTORY) -> list:
    """[{"year": 2025, "month": 3, "revenue": 125000.0, "count": 4}, ...] oldest first."""
    now = now or datetime.now(timezone.utc)
    since = _months_back(now.replace(tzinfo=None), months)

    rows = (
        db.query(Invoice.invoice_date, Invoice.total)
        .filter(
            Invoice.invoice_date >= since,
            Invoice.status != PaymentStatus.CANCELLED.value,
        )
        .all()
    )
    buckets = OrderedDict()
    for invoice_date, total in sorted(rows, key=lambda r: r[0]):
        key = (invoice_date.year, invoice_date.month)
        bucket = buckets.setdefault(key, {"year": key[0], "month": key[1], "revenue": 0.0, "count": 0})
        bucket["revenue"] += float(total or 0)
        bucket["count"] += 1
    return list(buckets.values())


def dashboard_stats(db: Session, now: datetime = None) -> dict:
    def count(*filters) -> int:
        return db.query(func.count(Invoice.id)).filter(*filters).scalar() or 0

    recent = (
        db.query(Invoice)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .limit(5)
        .all()
    )

    return {
        "overview": {
            "total_invoices": count(),
            "paid_invoices": count(Invoice.status == PaymentStatus.PAID.value),
            "pending_invoices": count(Invoice.status == PaymentStatus.UNPAID.value),
            "overdue_invoices": count(Invoice.status == PaymentStatus.OVERDUE.value),
            "total_revenue": _sum(db, Invoice.total, Invoice.status == PaymentStatus.PAID.value),
            "total_pending": _sum(db, Invoice.total, Invoice.status.in_(OPEN_STATUSES)),
            "total_cash_received": _sum(db, Invoice.cash_received),
            "total_balance": _sum(db, Invoice.balance_amount, Invoice.status.in_(OPEN_STATUSES)),
        },
        "recent_invoices": [
            {
                "id": inv.id,
                "invoice_number": inv.invoice_number,
                "customer_name": inv.customer_name,
                "total": float(inv.total),
                "status": inv.status,
                "invoice_date": inv.invoice_date.isoformat() if inv.invoice_date else None,
            }
            for inv in recent
        ],
        "monthly_revenue": monthly_revenue(db, now=now),
    }
