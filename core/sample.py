"""
Dati di esempio per una nuova sessione (core/data/sample_data.json).
Il file è solo letto: le modifiche restano nella sessione.
"""

import json
import logging

from config import SAMPLE_DATA_PATH
from core.models import Booking
from core.store import RecordStore
from parsers.tabular import build_records

logger = logging.getLogger(__name__)


def load_sample_store(path: str = None) -> RecordStore:
    """Crea un RecordStore dai dati di esempio. File mancante → store vuoto."""
    if path is None:
        path = SAMPLE_DATA_PATH

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("Dati di esempio non trovati: %s", path)
        return RecordStore()

    return RecordStore(
        orders=build_records(data.get("orders", []), "orders"),
        products=build_records(data.get("products", []), "products"),
        suppliers=build_records(data.get("suppliers", []), "suppliers"),
        bookings=[Booking.from_dict(b) for b in data.get("bookings", [])],
    )
