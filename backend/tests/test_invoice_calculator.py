from datetime import datetime, timezone
from decimal import Decimal

import pytest

from jewelbill.core.exceptions import InvalidCashAmount
from jewelbill.services.invoice_calculator import (
    TaxSettings,
    apply_cash_payment,
    compute_invoice,
    compute_totals,
    derive_payment_status,
    quantize_money,
    quantize_weight,
    resolve_line_item,
    round_currency,
)

NOW = datetime(2025, 6, 1, 10, 30, tzinfo=timezone.utc)
EARLIER = datetime(2025, 5, 2, 9, 0, tzinfo=timezone.utc)
GST_3 = TaxSettings.of(1.5, 1.5)
BANGLE = {"gross_weight": 10, "less_weight": 0, "rate_per_ten_gram": 60000, "labour_charge_rate": 100}


def test_line_item_pricing():
    item = resolve_line_item(BANGLE)
    assert item["net_weight"] == 10
    assert item["metal_amount"] == 60000
    assert item["labour_charge_amount"] == 1000
    assert item["amount"] == 61000


def test_line_item_defaults_and_pass_through():
    item = resolve_line_item({"gross_weight": "5.5", "description": "Chain", "hsn_code": "7113", "pieces": 2})
    assert item["less_weight"] == 0
    assert item["rate_per_ten_gram"] == 0
    assert item["labour_charge_rate"] == 0
    assert item["amount"] == 0
    assert item["description"] == "Chain"
    assert item["hsn_code"] == "7113"
    assert item["pieces"] == 2


def test_line_item_keeps_fractions_unrounded():
    item = resolve_line_item({"gross_weight": 7.345, "less_weight": 0.215, "rate_per_ten_gram": 59500,
                              "labour_charge_rate": 425.5})
    net = Decimal("7.345") - Decimal("0.215")
    assert item["net_weight"] == net
    assert item["metal_amount"] == net / 10 * Decimal("59500")
    assert item["labour_charge_amount"] == Decimal("425.5") * net
    assert item["amount"] == item["metal_amount"] + item["labour_charge_amount"]


def test_less_weight_above_gross_goes_negative():
    item = resolve_line_item({"gross_weight": 2, "less_weight": 3, "rate_per_ten_gram": 60000,
                              "labour_charge_rate": 100})
    assert item["net_weight"] == -1
    assert item["metal_amount"] == -6000
    assert item["labour_charge_amount"] == -100
    assert item["amount"] == -6100


def test_tax_on_subtotal():
    totals = compute_totals([resolve_line_item(BANGLE)], tax=GST_3)
    assert totals["subtotal"] == 61000
    assert totals["cgst_amount"] == 915
    assert totals["sgst_amount"] == 915
    assert totals["tax_amount"] == 1830
    assert totals["tax_rate"] == 3
    assert totals["total_after_old_gold"] == 62830
    assert totals["round_off"] == 0
    assert totals["total"] == 62830


def test_tax_is_charged_before_discount():
    totals = compute_totals([resolve_line_item(BANGLE)], tax=GST_3, discount=1000)
    assert totals["tax_amount"] == 1830
    assert totals["total_before_old_gold"] == 61830
    assert totals["total"] == 61830


def test_old_gold_credit_after_tax():
    totals = compute_totals([resolve_line_item(BANGLE)], tax=GST_3, discount=500,
                            old_gold_weight=4.2, old_gold_amount=25000)
    assert totals["old_gold_weight"] == Decimal("4.2")
    assert totals["total_before_old_gold"] == 62330
    assert totals["total_after_old_gold"] == 37330
    assert totals["total"] == 37330


def test_old_gold_weight_does_not_change_amounts():
    with_weight = compute_totals([resolve_line_item(BANGLE)], tax=GST_3, old_gold_weight=9)
    without = compute_totals([resolve_line_item(BANGLE)], tax=GST_3)
    assert with_weight["total"] == without["total"]
    assert with_weight["balance_amount"] == without["balance_amount"]


def test_rounding_up_gives_positive_round_off():
    totals = compute_totals([resolve_line_item(BANGLE)], tax=GST_3, discount=Decimal("0.4"))
    assert totals["total_after_old_gold"] == Decimal("62829.6")
    assert totals["total"] == 62830
    assert totals["round_off"] == Decimal("0.4")


def test_rounding_down_gives_negative_round_off():
    totals = compute_totals([{"amount": Decimal("62830.3")}])
    assert totals["total"] == 62830
    assert totals["round_off"] == Decimal("-0.3")


@pytest.mark.parametrize("value,expected", [
    ("100.5", "101"),
    ("100.49", "100"),
    ("-100.5", "-101"),
    ("-100.4", "-100"),
    ("0", "0"),
])
def test_round_half_away_from_zero(value, expected):
    assert round_currency(Decimal(value)) == Decimal(expected)


@pytest.mark.parametrize("value,expected", [
    (1.23456, "1.235"),
    ("0.0125", "0.013"),
    (0.01249, "0.012"),
    (10, "10.000"),
])
def test_weights_are_entered_to_the_milligram(value, expected):
    assert str(quantize_weight(value)) == expected


@pytest.mark.parametrize("value,expected", [
    (60001.006, "60001.01"),
    ("0.005", "0.01"),
    (1.5, "1.50"),
    (12.3449, "12.34"),
])
def test_money_is_entered_to_the_paise(value, expected):
    assert str(quantize_money(value)) == expected


def test_quantize_keeps_none():
    assert quantize_weight(None) is None
    assert quantize_money(None) is None


def test_missing_rates_and_adjustments_default_to_zero():
    totals = compute_totals([resolve_line_item(BANGLE)])
    assert totals["cgst_rate"] == 0
    assert totals["tax_amount"] == 0
    assert totals["discount"] == 0
    assert totals["total"] == 61000
    assert totals["balance_amount"] == 61000


def test_empty_invoice():
    totals = compute_totals([], tax=GST_3)
    assert totals["subtotal"] == 0
    assert totals["total"] == 0
    assert totals["balance_amount"] == 0


def test_total_identity_over_several_items():
    items = [
        {"gross_weight": 12.34, "less_weight": 0.56, "rate_per_ten_gram": 59500, "labour_charge_rate": 350},
        {"gross_weight": 3.21, "rate_per_ten_gram": 48750, "labour_charge_rate": 275.25},
        {"gross_weight": 45, "less_weight": 2.5, "rate_per_ten_gram": 750, "labour_charge_rate": 12},
    ]
    result = compute_invoice(items, tax=GST_3, discount=725, old_gold_amount=10500, cash_received=20000, now=NOW)
    subtotal = sum(i["amount"] for i in result["items"])
    assert result["subtotal"] == subtotal
    exact = subtotal + result["tax_amount"] - result["discount"] - result["old_gold_amount"]
    assert result["total_after_old_gold"] == exact
    assert result["total"] == round_currency(exact)
    assert result["round_off"] == result["total"] - exact
    assert abs(result["round_off"]) <= Decimal("0.5")
    assert result["balance_amount"] == result["total"] - 20000


def test_full_payment_is_paid():
    result = compute_invoice([BANGLE], tax=GST_3, cash_received=62830, now=NOW)
    assert result["balance_amount"] == 0
    assert result["status"] == "paid"
    assert result["paid_at"] == NOW


def test_part_payment_is_unpaid():
    result = compute_invoice([BANGLE], tax=GST_3, cash_received=30000, now=NOW)
    assert result["balance_amount"] == 32830
    assert result["status"] == "unpaid"
    assert result["paid_at"] is None


def test_overpayment_is_paid_with_negative_balance():
    result = compute_invoice([BANGLE], tax=GST_3, cash_received=63000, now=NOW)
    assert result["balance_amount"] == -170
    assert result["status"] == "paid"


def test_recompute_keeps_existing_paid_at():
    result = compute_invoice([BANGLE], tax=GST_3, cash_received=62830, paid_at=EARLIER, now=NOW)
    assert result["paid_at"] == EARLIER


def test_recompute_to_unpaid_leaves_paid_at_untouched():
    # Reverting to unpaid does not clear the earlier payment stamp
    result = compute_invoice([BANGLE], tax=GST_3, cash_received=1000, paid_at=EARLIER, now=NOW)
    assert result["status"] == "unpaid"
    assert result["paid_at"] == EARLIER


def test_recompute_is_idempotent():
    items = [BANGLE, {"gross_weight": 3.333, "less_weight": 0.111, "rate_per_ten_gram": 59500,
                      "labour_charge_rate": 333.3}]
    first = compute_invoice(items, tax=GST_3, discount=99.99, old_gold_amount=1234.5, cash_received=10, now=NOW)
    second = compute_invoice(items, tax=GST_3, discount=99.99, old_gold_amount=1234.5, cash_received=10, now=NOW)
    assert first == second
    assert repr(first) == repr(second)


def test_inputs_are_not_mutated():
    item = dict(BANGLE)
    compute_invoice([item], tax=GST_3, now=NOW)
    assert item == BANGLE


def test_derive_payment_status_boundaries():
    assert derive_payment_status(Decimal("0"), now=NOW) == ("paid", NOW)
    assert derive_payment_status(Decimal("-1"), now=NOW) == ("paid", NOW)
    assert derive_payment_status(Decimal("0.01"), now=NOW) == ("unpaid", None)


def test_cash_payment_accumulates():
    result = apply_cash_payment(total=62830, cash_received=10000, status="unpaid", paid_at=None,
                                additional_amount=20000, now=NOW)
    assert result["additional_amount"] == 20000
    assert result["cash_received"] == 30000
    assert result["balance_amount"] == 32830
    assert result["status"] == "unpaid"
    assert result["paid_at"] is None


def test_cash_payment_settles_invoice():
    result = apply_cash_payment(total=62830, cash_received=30000, status="unpaid", paid_at=None,
                                additional_amount=32830, now=NOW)
    assert result["balance_amount"] == 0
    assert result["status"] == "paid"
    assert result["paid_at"] == NOW


def test_cash_payment_does_not_restamp_paid_at():
    result = apply_cash_payment(total=62830, cash_received=62830, status="paid", paid_at=EARLIER,
                                additional_amount=0, now=NOW)
    assert result["status"] == "paid"
    assert result["paid_at"] == EARLIER


def test_cash_payment_reverts_paid_when_balance_reappears():
    # e.g. the stored total grew after a recompute; paid_at is kept as-is
    result = apply_cash_payment(total=70000, cash_received=62830, status="paid", paid_at=EARLIER,
                                additional_amount=0, now=NOW)
    assert result["status"] == "unpaid"
    assert result["paid_at"] == EARLIER


@pytest.mark.parametrize("status", ["draft", "overdue", "cancelled"])
def test_cash_payment_leaves_other_statuses_when_balance_remains(status):
    result = apply_cash_payment(total=62830, cash_received=0, status=status, paid_at=None,
                                additional_amount=100, now=NOW)
    assert result["status"] == status


def test_cash_payments_are_additive():
    a, b = Decimal("12345.5"), Decimal("20000.25")
    state = dict(total=Decimal("62830"), cash_received=Decimal("0"), status="unpaid", paid_at=None)

    first = apply_cash_payment(**state, additional_amount=a, now=NOW)
    twice = apply_cash_payment(total=state["total"], cash_received=first["cash_received"],
                               status=first["status"], paid_at=first["paid_at"],
                               additional_amount=b, now=NOW)
    once = apply_cash_payment(**state, additional_amount=a + b, now=NOW)

    assert twice["cash_received"] == once["cash_received"]
    assert twice["balance_amount"] == once["balance_amount"]
    assert twice["status"] == once["status"]


@pytest.mark.parametrize("bad", [None, "abc", -5, float("nan"), True])
def test_cash_payment_rejects_invalid_amounts(bad):
    with pytest.raises(InvalidCashAmount):
        apply_cash_payment(total=100, cash_received=0, status="unpaid", paid_at=None,
                           additional_amount=bad, now=NOW)


def test_cash_payment_accepts_numeric_strings():
    result = apply_cash_payment(total=100, cash_received=0, status="unpaid", paid_at=None,
                                additional_amount="40.5", now=NOW)
    assert result["cash_received"] == Decimal("40.5")
