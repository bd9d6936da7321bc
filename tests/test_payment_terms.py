"""Tests for payment-method parsing and expansion into due-dated tasks."""

from datetime import date

import pytest

from core.models import TASK_DEPOSIT, TASK_FINAL, TASK_FULL, Product
from core.payment_terms import (
    FullTerm,
    SplitTerm,
    expand_payment_terms,
    expand_term,
    parse_payment_terms,
)

REF = date(2025, 11, 10)


# --------------------------------------------------------------------
# PARSING
# --------------------------------------------------------------------
@pytest.mark.parametrize(
    "method, expected",
    [
        ("deposit30%+final70%", SplitTerm(30, 70)),
        ("deposit 50% + final 50%", SplitTerm(50, 50)),
        ("Deposit: 20% / Final: 80%", SplitTerm(20, 80)),
        ("acconto 40% saldo 60%", SplitTerm(40, 60)),
        ("定金50%+尾款50%", SplitTerm(50, 50)),
        ("full payment", FullTerm()),
        ("Pagamento unico", FullTerm()),
        ("全款", FullTerm()),
    ],
)
def test_parse_recognised_methods(method, expected):
    assert parse_payment_terms(method) == expected


@pytest.mark.parametrize("method", ["", None, "bank transfer", "30 days net", "deposit 30%"])
def test_parse_unrecognised_methods(method):
    assert parse_payment_terms(method) is None


def test_split_takes_precedence_over_full_payment_marker():
    term = parse_payment_terms("deposit 30% + final 70% (no full payment)")
    assert term == SplitTerm(30, 70)


def test_split_without_percentages_is_not_recognised():
    assert parse_payment_terms("deposit + final") is None
    assert parse_payment_terms("deposit 30% + final") is None


@pytest.mark.parametrize("method", ["deposit / final 70%", "acconto e saldo 100%", "定金尾款50%"])
def test_percentage_is_not_borrowed_from_the_other_marker(method):
    assert parse_payment_terms(method) is None
    assert expand_payment_terms(method, 1000.0, REF) == []


def test_product_exposes_parsed_term():
    p = Product("Hotel", "Acme", 100.0, "hotel", "acconto 10% saldo 90%")
    assert p.payment_term == SplitTerm(10, 90)


# --------------------------------------------------------------------
# EXPANSION
# --------------------------------------------------------------------
@pytest.mark.parametrize("p, q", [(30, 70), (50, 50), (10, 90), (25, 50)])
def test_split_amounts_and_due_dates(p, q):
    tasks = expand_payment_terms(f"deposit {p}% + final {q}%", 1000.0, REF)

    assert len(tasks) == 2
    deposit, final = tasks
    assert deposit["task_type"] == TASK_DEPOSIT
    assert deposit["amount_due"] == pytest.approx(1000.0 * p / 100)
    assert deposit["due_date"] == date(2025, 11, 3)
    assert str(p) in deposit["description"]

    assert final["task_type"] == TASK_FINAL
    assert final["amount_due"] == pytest.approx(1000.0 * q / 100)
    assert final["due_date"] == date(2025, 11, 9)
    assert str(q) in final["description"]


def test_full_payment_single_task():
    tasks = expand_payment_terms("full payment", 500.0, REF)

    assert tasks == [{
        "task_type": TASK_FULL,
        "description": tasks[0]["description"],
        "amount_due": 500.0,
        "due_date": date(2025, 11, 7),
    }]


def test_percentages_not_required_to_sum_to_100():
    tasks = expand_payment_terms("deposit 30% + final 30%", 200.0, REF)
    assert [t["amount_due"] for t in tasks] == [pytest.approx(60.0), pytest.approx(60.0)]


@pytest.mark.parametrize("method", ["bank transfer", "", "deposit 30% + final"])
def test_unrecognised_method_yields_no_tasks(method):
    assert expand_payment_terms(method, 1000.0, REF) == []


def test_expand_term_none_is_empty():
    assert expand_term(None, 1000.0, REF) == []


def test_due_date_crosses_month_boundary():
    tasks = expand_payment_terms("deposit 50% + final 50%", 100.0, date(2025, 3, 2))
    assert tasks[0]["due_date"] == date(2025, 2, 23)
    assert tasks[1]["due_date"] == date(2025, 3, 1)
