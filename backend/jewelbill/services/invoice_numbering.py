"""Invoice numbers: INV-MJ + two-digit year + four-digit sequence (INV-MJ250011)."""
from __future__ import annotations

import logging
import re
from datetime import datetime

from sqlalchemy.orm import Session

from jewelbill.core.config import settings
from jewelbill.models.invoice import Invoice
from jewelbill.models.invoice_counter import InvoiceCounter

logger = logging.getLogger(__name__)

SEQUENCE_DIGITS = 4


def year_code(when: datetime) -> str:
    return when.strftime("%y")


def format_invoice_number(year: str, sequence: int, prefix: str | None = None) -> str:
    prefix = prefix or settings.INVOICE_PREFIX
    return f"{prefix}{year}{str(sequence).zfill(SEQUENCE_DIGITS)}"


def _match_number(invoice_number: str, prefix: str):
    return re.match(rf"^{re.escape(prefix)}(\d{{2}})(\d{{{SEQUENCE_DIGITS}}})$", invoice_number)


def parse_invoice_sequence(invoice_number: str | None, prefix: str | None = None) -> int | None:
    """Trailing sequence of a well-formed number, else None.

    Exactly two year digits followed by exactly four sequence digits.
    """
    if not invoice_number:
        return None
    prefix = prefix or settings.INVOICE_PREFIX
    match = _match_number(invoice_number, prefix)
    if not match:
        return None
    return int(match.group(2))


def latest_sequence_for_year(db: Session, year: str, prefix: str | None = None) -> int:
    """Sequence of the most recently created invoice numbered for `year` (0 if none)."""
    prefix = prefix or settings.INVOICE_PREFIX
    last = (
        db.query(Invoice.invoice_number)
        .filter(Invoice.invoice_number.like(f"{prefix}{year}%"))
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .first()
    )
    if not last:
        return 0
    return parse_invoice_sequence(last[0], prefix) or 0


def _locked_counter(db: Session, prefix: str, year: str) -> InvoiceCounter:
    """Counter row for (prefix, year), locked until commit. Seeded on first use."""
    counter = (
        db.query(InvoiceCounter)
        .filter(InvoiceCounter.prefix == prefix, InvoiceCounter.year == year)
        .with_for_update()
        .first()
    )
    if not counter:
        counter = InvoiceCounter(
            prefix=prefix,
            year=year,
            last_sequence=latest_sequence_for_year(db, year, prefix),
        )
        db.add(counter)
        db.flush()
    return counter


def next_invoice_number(db: Session, now: datetime | None = None, prefix: str | None = None) -> str:
    """
    Allocate the next number for the current year.

    The per-year counter row is locked for the rest of the transaction, so two
    requests cannot read the same value. A year without a counter row starts
    from the latest invoice already numbered for that year (1 if none).
    Caller commits.
    """
    prefix = prefix or settings.INVOICE_PREFIX
    year = year_code(now or datetime.now())

    counter = _locked_counter(db, prefix, year)
    counter.last_sequence = int(counter.last_sequence or 0) + 1
    db.flush()

    number = format_invoice_number(year, counter.last_sequence, prefix)
    logger.debug(f"Allocated invoice number {number}")
    return number


def reserve_invoice_number(db: Session, invoice_number: str, prefix: str | None = None) -> None:
    """
    Move the counter past a number entered by hand.

    Numbers that do not follow the prefix + yy + 4-digit pattern are left
    alone. Caller commits.
    """
    prefix = prefix or settings.INVOICE_PREFIX
    match = _match_number(invoice_number, prefix)
    if not match:
        return
    year, sequence = match.group(1), int(match.group(2))

    counter = _locked_counter(db, prefix, year)
    if sequence > int(counter.last_sequence or 0):
        counter.last_sequence = sequence
        db.flush()
        logger.debug(f"Counter {prefix}{year} moved to {sequence} by {invoice_number}")
