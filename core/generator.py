"""
Generatore automatico delle prenotazioni fornitore a partire da un ordine.

  1. trova l'ordine per ID
  2. spezza la lista servizi (separati da virgola)
  3. per ogni servizio trova il prodotto a catalogo
  4. raggruppa i costi per fornitore ("cestini")
  5. per ogni prodotto genera le scadenze dalla sua modalità di pagamento
  6. una prenotazione per fornitore

Nessun effetto collaterale: chi chiama aggiunge il risultato allo store.
"""

import logging
from typing import Dict, List, Optional

from config import DEFAULT_SUPPLIER_TYPE
from core.models import (
    Booking, CostItem, Order, PaymentTask, Product, Supplier,
    BOOKING_IN_PROGRESS, new_id,
)
from core.payment_terms import expand_payment_terms

logger = logging.getLogger(__name__)


def find_order_by_id(order_id: str, orders: List[Order]) -> Optional[Order]:
    return next((o for o in orders if o.order_id == order_id), None)


def find_product_by_name(service_name: str, products: List[Product]) -> Optional[Product]:
    # Nomi duplicati a catalogo: vince il primo
    name = service_name.strip()
    return next((p for p in products if p.service_name == name), None)


def find_supplier_by_name(supplier_name: str, suppliers: List[Supplier]) -> Optional[Supplier]:
    return next((s for s in suppliers if s.supplier_name == supplier_name), None)


def _group_by_supplier(order: Order, products: List[Product]) -> Dict[str, dict]:
    """Fornitore → {"total": somma prezzi, "items": [Product, ...]}, in ordine di apparizione."""
    baskets: Dict[str, dict] = {}
    for name in order.service_names():
        product = find_product_by_name(name, products)
        if product is None:
            logger.warning("Servizio %r dell'ordine %s non trovato a catalogo", name, order.order_id)
            continue

        basket = baskets.setdefault(product.supplier_name, {"total": 0.0, "items": []})
        basket["total"] += product.unit_price
        basket["items"].append(product)
    return baskets


def _basket_to_booking(supplier_name: str, basket: dict, order: Order, suppliers: List[Supplier]) -> Booking:
    supplier = find_supplier_by_name(supplier_name, suppliers)
    supplier_type = supplier.supplier_type if supplier else DEFAULT_SUPPLIER_TYPE

    tasks = []
    for product in basket["items"]:
        # ogni voce di costo ha le proprie scadenze, calcolate sul suo prezzo
        for t in expand_payment_terms(product.payment_method, product.unit_price, order.departure_date):
            tasks.append(PaymentTask(task_id=new_id("TASK"), **t))

    return Booking(
        booking_id=new_id("BOOK"),
        supplier_name=supplier_name,
        supplier_type=supplier_type,
        related_order=order.order_name,
        booking_status=BOOKING_IN_PROGRESS,
        cost_items=[
            CostItem(item_name=p.service_name, amount=p.unit_price, invoice_source=supplier_name)
            for p in basket["items"]
        ],
        total_amount=basket["total"],
        payment_tasks=tasks,
    )


def generate_payment_bookings(
    order_id: str,
    orders: List[Order],
    products: List[Product],
    suppliers: List[Supplier],
) -> List[Booking]:
    """
    Genera le prenotazioni fornitore (con le scadenze di pagamento) per un ordine.

    Returns:
        Lista di Booking, una per fornitore, nell'ordine in cui i fornitori
        compaiono nella lista servizi. Lista vuota se l'ordine non esiste.
    """
    order = find_order_by_id(order_id, orders)
    if order is None:
        logger.error("Ordine %s non trovato", order_id)
        return []

    baskets = _group_by_supplier(order, products)
    bookings = [
        _basket_to_booking(supplier_name, basket, order, suppliers)
        for supplier_name, basket in baskets.items()
    ]
    logger.info("Ordine %s: generate %d prenotazioni fornitore", order_id, len(bookings))
    return bookings
