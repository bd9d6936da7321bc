"""Tests for the in-session record store and payment task operations."""

import os
from datetime import date, datetime

import pandas as pd
import pytest

from core.generator import generate_payment_bookings
from core.models import (
    BOOKING_IN_PROGRESS,
    STATUS_PAID,
    STATUS_PENDING,
    Booking,
    Order,
    PaymentTask,
    Product,
    Supplier,
)
from core.sample import load_sample_store
from core.store import RecordStore, flatten_tasks


def make_task(task_id, due, status=STATUS_PENDING):
    return PaymentTask(task_id, "full payment", f"task {task_id}", 100.0, due, payment_status=status)


@pytest.fixture
def store():
    return RecordStore(bookings=[
        Booking("B1", "Acme", "hotel", "Ordine 1", payment_tasks=[
            make_task("T1", date(2025, 11, 9)),
            make_task("T2", date(2025, 11, 3)),
        ]),
        Booking("B2", "Lotus", "guide", "Ordine 2", payment_tasks=[
            make_task("T3", date(2025, 11, 9)),
        ]),
    ])


def valid_task_data(**overrides):
    data = {
        "supplier_name": "Acme",
        "description": "Biglietti extra",
        "amount_due": 250,
        "due_date": date(2025, 12, 1),
    }
    data.update(overrides)
    return data


# --------------------------------------------------------------------
# CREATE TASK
# --------------------------------------------------------------------
class TestCreateTask:

    def test_appends_to_existing_booking(self, store):
        task = store.create_task(valid_task_data())

        assert len(store.bookings) == 2
        assert store.bookings[0].payment_tasks[-1] is task
        assert task.payment_status == STATUS_PENDING
        assert task.actual_payment_date is None
        assert task.invoice_link is None
        assert task.amount_due == 250.0

    def test_creates_booking_for_new_supplier(self, store):
        task = store.create_task(valid_task_data(
            supplier_name="Nuovo Fornitore",
            supplier_type="trasporti",
            related_order="Ordine 9",
        ))

        assert len(store.bookings) == 3
        b = store.bookings[-1]
        assert b.supplier_name == "Nuovo Fornitore"
        assert b.supplier_type == "trasporti"
        assert b.related_order == "Ordine 9"
        assert b.booking_status == BOOKING_IN_PROGRESS
        assert b.cost_items == []
        assert b.payment_tasks == [task]

    def test_new_booking_defaults_supplier_type(self, store):
        store.create_task(valid_task_data(supplier_name="Altro"))
        assert store.bookings[-1].supplier_type == "other"

    def test_supplier_match_is_exact(self, store):
        store.create_task(valid_task_data(supplier_name="acme"))
        assert len(store.bookings) == 3

    @pytest.mark.parametrize("missing", ["supplier_name", "description", "amount_due", "due_date"])
    def test_missing_required_field_raises_without_mutation(self, store, missing):
        data = valid_task_data(supplier_name="Nuovo")
        data[missing] = "" if missing != "amount_due" else None

        with pytest.raises(ValueError, match=missing):
            store.create_task(data)

        assert len(store.bookings) == 2
        assert sum(len(b.payment_tasks) for b in store.bookings) == 3

    def test_invalid_amount_leaves_store_untouched(self, store):
        with pytest.raises(ValueError):
            store.create_task(valid_task_data(supplier_name="Nuovo", amount_due="abc"))
        assert len(store.bookings) == 2

    def test_zero_amount_is_accepted(self, store):
        assert store.create_task(valid_task_data(amount_due=0)).amount_due == 0.0

    def test_iso_string_due_date(self, store):
        task = store.create_task(valid_task_data(due_date="2025-12-24"))
        assert task.due_date == date(2025, 12, 24)

    def test_negative_amount_rejected(self, store):
        with pytest.raises(ValueError, match="Importo non valido"):
            store.create_task(valid_task_data(supplier_name="Nuovo", amount_due=-50))
        assert len(store.bookings) == 2
        assert store.find_booking_by_supplier("Nuovo") is None

    def test_datetime_due_date_is_stored_as_date(self, store):
        store.create_task(valid_task_data(due_date=date(2025, 1, 2)))
        task = store.create_task(valid_task_data(due_date=datetime(2025, 1, 1, 9)))

        assert task.due_date == date(2025, 1, 1)
        assert type(task.due_date) is date
        assert store.task_rows()[0].task is task

    def test_timestamp_due_date(self, store):
        task = store.create_task(valid_task_data(due_date=pd.Timestamp("2025-12-24 10:30")))
        assert task.due_date == date(2025, 12, 24)
        assert type(task.due_date) is date

    def test_unsupported_due_date_rejected(self, store):
        with pytest.raises(ValueError, match="Data di scadenza non valida"):
            store.create_task(valid_task_data(supplier_name="Nuovo", due_date=20251224))
        assert store.find_booking_by_supplier("Nuovo") is None


def test_task_from_dict_normalises_datetime():
    task = PaymentTask.from_dict({
        "task_id": "T9", "task_type": "deposit", "description": "x", "amount_due": 10,
        "due_date": datetime(2025, 3, 1, 8), "actual_payment_date": datetime(2025, 2, 27, 18),
    })
    assert task.due_date == date(2025, 3, 1)
    assert type(task.due_date) is date
    assert type(task.actual_payment_date) is date


# --------------------------------------------------------------------
# MARK PAID / ATTACH INVOICE
# --------------------------------------------------------------------
class TestMarkPaid:

    def test_marks_paid_with_today(self, store):
        task = store.mark_task_paid("T2")

        assert task.payment_status == STATUS_PAID
        assert task.actual_payment_date == date.today()

    def test_due_date_unchanged(self, store):
        task = store.mark_task_paid("T2", paid_on=date(2026, 1, 1))
        assert task.due_date == date(2025, 11, 3)

    def test_repeat_call_overwrites_payment_date(self, store):
        store.mark_task_paid("T1", paid_on=date(2025, 11, 1))
        task = store.mark_task_paid("T1", paid_on=date(2025, 11, 5))

        assert task.payment_status == STATUS_PAID
        assert task.actual_payment_date == date(2025, 11, 5)

    def test_unknown_id_is_noop(self, store):
        assert store.mark_task_paid("NOPE") is None
        assert all(r.task.payment_status == STATUS_PENDING for r in store.task_rows())


class TestAttachInvoice:

    def test_sets_link(self, store):
        task = store.attach_invoice("T3", "https://example.com/fattura.pdf")
        assert task.invoice_link == "https://example.com/fattura.pdf"
        assert task.payment_status == STATUS_PENDING

    def test_link_not_validated(self, store):
        assert store.attach_invoice("T3", "non un link").invoice_link == "non un link"

    def test_unknown_id_is_noop(self, store):
        assert store.attach_invoice("NOPE", "x") is None


# --------------------------------------------------------------------
# PROJECTION
# --------------------------------------------------------------------
class TestTaskProjection:

    def test_sorted_by_due_date_stable(self, store):
        rows = store.task_rows()
        assert [r.task.task_id for r in rows] == ["T2", "T1", "T3"]

    def test_rows_carry_booking_fields(self, store):
        row = store.task_rows()[-1]
        assert (row.supplier_name, row.related_order, row.supplier_type) == ("Lotus", "Ordine 2", "guide")

    def test_filter_pending_after_payment(self, store):
        store.mark_task_paid("T1")

        pending = store.task_rows("pending")
        paid = store.task_rows("paid")

        assert len(pending) == 2
        assert all(r.task.payment_status == STATUS_PENDING for r in pending)
        assert [r.task.task_id for r in paid] == ["T1"]

    def test_invalid_filter(self, store):
        with pytest.raises(ValueError):
            flatten_tasks(store.bookings, "overdue")

    def test_recomputed_on_each_read(self, store):
        assert len(store.task_rows()) == 3
        store.create_task(valid_task_data())
        assert len(store.task_rows()) == 4


# --------------------------------------------------------------------
# IMPORT / BOOKINGS
# --------------------------------------------------------------------
def test_apply_import_replaces_collections(store):
    store.orders = [Order("OLD", "x", "x", date(2025, 1, 1), "")]
    new_orders = [Order("O1", "Rossi", "Viaggio", date(2025, 11, 10), "A")]

    store.apply_import({"orders": new_orders})

    assert store.orders == new_orders
    assert len(store.bookings) == 2


def test_apply_import_unknown_type_changes_nothing(store):
    products = [Product("A", "Acme", 1.0, "x", "full payment")]
    with pytest.raises(ValueError):
        store.apply_import({"products": products, "bookings": []})
    assert store.products == []


def test_generated_bookings_are_added_by_caller():
    store = RecordStore(
        orders=[Order("O1", "Rossi", "Viaggio", date(2025, 11, 10), "A")],
        products=[Product("A", "Acme", 100.0, "x", "full payment")],
        suppliers=[Supplier("Acme", "hotel")],
    )
    bookings = generate_payment_bookings("O1", store.orders, store.products, store.suppliers)
    assert store.bookings == []

    store.add_bookings(bookings)

    assert len(store.task_rows("pending")) == 1


def test_load_sample_store():
    store = load_sample_store()

    assert store.orders and store.products and store.suppliers
    assert store.bookings[0].payment_tasks[0].payment_status == STATUS_PAID
    assert store.bookings[0].payment_tasks[0].actual_payment_date == date(2025, 11, 5)


def test_sample_data_ships_inside_core_package():
    import core
    from config import SAMPLE_DATA_PATH

    assert os.path.isfile(SAMPLE_DATA_PATH)
    assert os.path.dirname(os.path.dirname(SAMPLE_DATA_PATH)) == os.path.dirname(os.path.abspath(core.__file__))


def test_load_sample_store_missing_file(tmp_path):
    store = load_sample_store(str(tmp_path / "missing.json"))
    assert store.orders == [] and store.bookings == []
