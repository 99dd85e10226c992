from datetime import datetime, timedelta

import pytest

from jewelbill.models.customer import Customer
from jewelbill.models.invoice import Invoice
from jewelbill.models.invoice_counter import InvoiceCounter
from jewelbill.services.invoice_numbering import (
    format_invoice_number,
    next_invoice_number,
    parse_invoice_sequence,
    reserve_invoice_number,
)

JUNE_2025 = datetime(2025, 6, 1, 12, 0)


def test_format_pads_sequence_to_four_digits():
    assert format_invoice_number("25", 11) == "INV-MJ250011"
    assert format_invoice_number("26", 1) == "INV-MJ260001"


@pytest.mark.parametrize("number,expected", [
    ("INV-MJ250011", 11),
    ("INV-MJ259999", 9999),
    ("INV-MJ250000", 0),
    ("INV-MJ2500011", None),  # five sequence digits
    ("INV-MJ25011", None),    # three sequence digits
    ("INV-MJ2025011", None),
    ("INV-250011", None),
    ("", None),
    (None, None),
])
def test_parse_requires_two_year_and_four_sequence_digits(number, expected):
    assert parse_invoice_sequence(number) == expected


def _stored_invoice(db, number, created_at):
    customer = db.query(Customer).first()
    if not customer:
        customer = Customer(name="Walk-in")
        db.add(customer)
        db.flush()
    db.add(Invoice(
        invoice_number=number,
        customer_id=customer.id,
        customer_name=customer.name,
        invoice_date=created_at,
        due_date=created_at,
        created_at=created_at,
    ))
    db.commit()


def test_first_invoice_of_year_starts_at_one(db):
    assert next_invoice_number(db, now=JUNE_2025) == "INV-MJ250001"


def test_numbers_increase_within_a_year(db):
    numbers = [next_invoice_number(db, now=JUNE_2025) for _ in range(3)]
    assert numbers == ["INV-MJ250001", "INV-MJ250002", "INV-MJ250003"]


def test_each_year_has_its_own_sequence(db):
    assert next_invoice_number(db, now=JUNE_2025) == "INV-MJ250001"
    assert next_invoice_number(db, now=JUNE_2025) == "INV-MJ250002"
    assert next_invoice_number(db, now=datetime(2026, 1, 2)) == "INV-MJ260001"
    assert next_invoice_number(db, now=JUNE_2025) == "INV-MJ250003"


def test_sequence_continues_from_latest_existing_invoice(db):
    _stored_invoice(db, "INV-MJ250010", JUNE_2025 - timedelta(days=2))
    _stored_invoice(db, "INV-MJ250011", JUNE_2025 - timedelta(days=1))
    _stored_invoice(db, "INV-MJ240099", JUNE_2025 - timedelta(hours=1))

    assert next_invoice_number(db, now=JUNE_2025) == "INV-MJ250012"


def test_malformed_latest_number_restarts_at_one(db):
    _stored_invoice(db, "INV-MJ25-custom", JUNE_2025)
    assert next_invoice_number(db, now=JUNE_2025) == "INV-MJ250001"


def test_counter_row_tracks_last_sequence(db):
    next_invoice_number(db, now=JUNE_2025)
    next_invoice_number(db, now=JUNE_2025)
    db.commit()

    counter = db.query(InvoiceCounter).filter_by(prefix="INV-MJ", year="25").one()
    assert counter.last_sequence == 2


def test_custom_prefix(db):
    assert next_invoice_number(db, now=JUNE_2025, prefix="EST-MJ") == "EST-MJ250001"
    assert next_invoice_number(db, now=JUNE_2025) == "INV-MJ250001"


def test_reserved_number_moves_counter_forward(db):
    assert next_invoice_number(db, now=JUNE_2025) == "INV-MJ250001"
    reserve_invoice_number(db, "INV-MJ250007")
    assert next_invoice_number(db, now=JUNE_2025) == "INV-MJ250008"


def test_reserved_number_behind_counter_changes_nothing(db):
    for _ in range(3):
        next_invoice_number(db, now=JUNE_2025)
    reserve_invoice_number(db, "INV-MJ250002")
    assert next_invoice_number(db, now=JUNE_2025) == "INV-MJ250004"


def test_reserved_number_for_a_new_year_seeds_that_year(db):
    reserve_invoice_number(db, "INV-MJ270040")
    assert next_invoice_number(db, now=datetime(2027, 3, 1)) == "INV-MJ270041"
    assert next_invoice_number(db, now=JUNE_2025) == "INV-MJ250001"


@pytest.mark.parametrize("number", ["MANUAL-1", "INV-MJ25-custom", "EST-MJ250009"])
def test_unpatterned_numbers_are_not_reserved(db, number):
    reserve_invoice_number(db, number)
    assert db.query(InvoiceCounter).count() == 0
