"""
Archivio in memoria della sessione: ordini, servizi, fornitori, prenotazioni.

Un solo oggetto RecordStore per sessione (st.session_state["store"]),
passato esplicitamente a chi deve leggerlo o modificarlo.
Nessuna scrittura su disco.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from config import DEFAULT_SUPPLIER_TYPE
from core.models import (
    Booking, Order, PaymentTask, Product, Supplier,
    BOOKING_IN_PROGRESS, STATUS_PAID, STATUS_PENDING, TASK_FULL, new_id,
)

logger = logging.getLogger(__name__)

STATUS_FILTERS = ("all", STATUS_PENDING, STATUS_PAID)

# Campi obbligatori per un pagamento inserito a mano
TASK_REQUIRED_FIELDS = ("supplier_name", "description", "amount_due", "due_date")


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_date(value) -> date:
    """date, datetime (anche Timestamp pandas) o stringa ISO → date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise ValueError(f"Data di scadenza non valida: {value!r}")


@dataclass
class TaskRow:
    """Task + dati della prenotazione che lo contiene (per la visualizzazione)."""
    task: PaymentTask
    supplier_name: str
    related_order: str
    supplier_type: str


def flatten_tasks(bookings: List[Booking], status: str = "all") -> List[TaskRow]:
    """
    Appiattisce i task di tutte le prenotazioni, filtra per stato
    ("all" | "pending" | "paid") e ordina per scadenza.
    A parità di scadenza resta l'ordine originale (sort stabile).
    """
    if status not in STATUS_FILTERS:
        raise ValueError(f"Filtro stato non valido: {status!r}")

    rows = [
        TaskRow(task=t, supplier_name=b.supplier_name, related_order=b.related_order,
                supplier_type=b.supplier_type)
        for b in bookings
        for t in b.payment_tasks
    ]
    if status != "all":
        rows = [r for r in rows if r.task.payment_status == status]
    return sorted(rows, key=lambda r: r.task.due_date)


@dataclass
class RecordStore:
    orders: List[Order] = field(default_factory=list)
    products: List[Product] = field(default_factory=list)
    suppliers: List[Supplier] = field(default_factory=list)
    bookings: List[Booking] = field(default_factory=list)

    # ── Import ────────────────────────────────────────────────────────────
    def apply_import(self, records_by_type: Dict[str, list]) -> None:
        """
        Sostituisce in blocco le collezioni importate.
        Da chiamare solo dopo che parsing e validazione sono andati a buon fine.
        """
        for record_type in records_by_type:
            if record_type not in ("orders", "products", "suppliers"):
                raise ValueError(f"Tipo di dati sconosciuto: {record_type}")
        for record_type, records in records_by_type.items():
            setattr(self, record_type, list(records))
            logger.info("Importati %d record %s", len(records), record_type)

    def add_bookings(self, bookings: List[Booking]) -> None:
        self.bookings.extend(bookings)

    # ── Lookup ────────────────────────────────────────────────────────────
    def find_booking_by_supplier(self, supplier_name: str) -> Optional[Booking]:
        return next((b for b in self.bookings if b.supplier_name == supplier_name), None)

    def find_task(self, task_id: str) -> Optional[PaymentTask]:
        for b in self.bookings:
            for t in b.payment_tasks:
                if t.task_id == task_id:
                    return t
        return None

    # ── Operazioni sui task ───────────────────────────────────────────────
    def create_task(self, task_data: dict) -> PaymentTask:
        """
        Aggiunge un pagamento inserito a mano.

        La prenotazione è cercata per nome fornitore (match esatto); se non
        esiste viene creata con stato "in progress", senza voci di costo,
        con ordine collegato e tipo fornitore presi da task_data.

        Raises:
            ValueError se manca un campo obbligatorio, l'importo è negativo
            o non numerico, o la scadenza non è una data.
        """
        missing = [f for f in TASK_REQUIRED_FIELDS if _is_blank(task_data.get(f))]
        if missing:
            raise ValueError(f"Campi obbligatori mancanti: {', '.join(missing)}")

        amount_due = float(task_data["amount_due"])
        if amount_due < 0:
            raise ValueError(f"Importo non valido: {amount_due} (deve essere >= 0)")

        task = PaymentTask(
            task_id=new_id("TASK"),
            task_type=task_data.get("task_type") or TASK_FULL,
            description=task_data["description"],
            amount_due=amount_due,
            due_date=_to_date(task_data["due_date"]),
        )

        supplier_name = task_data["supplier_name"]
        booking = self.find_booking_by_supplier(supplier_name)
        if booking is None:
            booking = Booking(
                booking_id=new_id("BOOK"),
                supplier_name=supplier_name,
                supplier_type=task_data.get("supplier_type") or DEFAULT_SUPPLIER_TYPE,
                related_order=task_data.get("related_order") or "",
                booking_status=BOOKING_IN_PROGRESS,
            )
            self.bookings.append(booking)
            logger.info("Nuova prenotazione %s per il fornitore %s", booking.booking_id, supplier_name)

        booking.payment_tasks.append(task)
        return task

    def mark_task_paid(self, task_id: str, paid_on: Optional[date] = None) -> Optional[PaymentTask]:
        """
        Segna il task come pagato con data pagamento = oggi (o paid_on).
        Se il task è già pagato la data viene sovrascritta.
        ID sconosciuto → nessuna modifica, restituisce None.
        """
        task = self.find_task(task_id)
        if task is None:
            logger.warning("Task %s non trovato", task_id)
            return None
        task.payment_status = STATUS_PAID
        task.actual_payment_date = _to_date(paid_on) if paid_on else date.today()
        return task

    def attach_invoice(self, task_id: str, link: str) -> Optional[PaymentTask]:
        """Collega una fattura (link libero, nessuna validazione)."""
        task = self.find_task(task_id)
        if task is None:
            logger.warning("Task %s non trovato", task_id)
            return None
        task.invoice_link = link
        return task

    # ── Lettura ───────────────────────────────────────────────────────────
    def task_rows(self, status: str = "all") -> List[TaskRow]:
        return flatten_tasks(self.bookings, status)
