"""
Modelli dati: ordini, servizi (prodotti), fornitori, prenotazioni fornitore
e task di pagamento.
"""

import itertools
import time
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import List, Optional

# Tipi di task
TASK_DEPOSIT = "deposit"
TASK_FINAL = "final payment"
TASK_FULL = "full payment"
TASK_TYPES = (TASK_DEPOSIT, TASK_FINAL, TASK_FULL)

# Stati
STATUS_PENDING = "pending"
STATUS_PAID = "paid"
BOOKING_IN_PROGRESS = "in progress"

_id_counter = itertools.count(1)


def new_id(prefix: str) -> str:
    """ID univoco nella sessione: PREFISSO-<epoch ms>-<contatore>."""
    return f"{prefix}-{int(time.time() * 1000)}-{next(_id_counter)}"


def _iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d else None


def _from_iso(s) -> Optional[date]:
    if not s:
        return None
    if isinstance(s, datetime):
        return s.date()
    if isinstance(s, date):
        return s
    return date.fromisoformat(str(s))


@dataclass
class Order:
    """Un ordine cliente (viaggio) con la lista dei servizi acquistati."""
    order_id: str
    customer_name: str
    order_name: str         # nome visualizzato, usato come riferimento nelle prenotazioni
    departure_date: date
    services: str           # nomi servizio separati da virgola

    def service_names(self) -> List[str]:
        # split grezzo: il trim avviene solo in fase di lookup prodotto
        return self.services.split(",")


@dataclass
class Product:
    """Un servizio a catalogo, fornito da un fornitore."""
    service_name: str
    supplier_name: str
    unit_price: float
    service_type: str
    payment_method: str     # es. "deposit 30% + final 70%" | "full payment"

    @property
    def payment_term(self):
        from core.payment_terms import parse_payment_terms
        return parse_payment_terms(self.payment_method)


@dataclass
class Supplier:
    supplier_name: str
    supplier_type: str
    contact_name: str = "n/d"
    contact_phone: str = "n/d"


@dataclass
class CostItem:
    item_name: str
    amount: float
    invoice_source: str


@dataclass
class PaymentTask:
    """Singola scadenza di pagamento verso un fornitore."""
    task_id: str
    task_type: str          # "deposit" | "final payment" | "full payment"
    description: str
    amount_due: float
    due_date: date
    payment_status: str = STATUS_PENDING
    actual_payment_date: Optional[date] = None
    invoice_link: Optional[str] = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["due_date"] = _iso(self.due_date)
        d["actual_payment_date"] = _iso(self.actual_payment_date)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "PaymentTask":
        return cls(
            task_id=d["task_id"],
            task_type=d["task_type"],
            description=d.get("description", ""),
            amount_due=float(d["amount_due"]),
            due_date=_from_iso(d["due_date"]),
            payment_status=d.get("payment_status", STATUS_PENDING),
            actual_payment_date=_from_iso(d.get("actual_payment_date")),
            invoice_link=d.get("invoice_link"),
        )


@dataclass
class Booking:
    """Rapporto economico di un fornitore con un ordine."""
    booking_id: str
    supplier_name: str
    supplier_type: str
    related_order: str      # nome ordine (non chiave esterna)
    booking_status: str = BOOKING_IN_PROGRESS
    cost_items: List[CostItem] = field(default_factory=list)
    total_amount: float = 0.0
    payment_tasks: List[PaymentTask] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking_id,
            "supplier_name": self.supplier_name,
            "supplier_type": self.supplier_type,
            "related_order": self.related_order,
            "booking_status": self.booking_status,
            "cost_items": [asdict(c) for c in self.cost_items],
            "total_amount": self.total_amount,
            "payment_tasks": [t.to_dict() for t in self.payment_tasks],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Booking":
        return cls(
            booking_id=d["booking_id"],
            supplier_name=d["supplier_name"],
            supplier_type=d.get("supplier_type", "other"),
            related_order=d.get("related_order", ""),
            booking_status=d.get("booking_status", BOOKING_IN_PROGRESS),
            cost_items=[CostItem(**c) for c in d.get("cost_items", [])],
            total_amount=float(d.get("total_amount", 0.0)),
            payment_tasks=[PaymentTask.from_dict(t) for t in d.get("payment_tasks", [])],
        )
