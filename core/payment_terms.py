"""
Modalità di pagamento → scadenze.

Il campo "modalità di pagamento" dei servizi è testo libero, ad esempio:
  - "deposit 30% + final 70%"   → acconto + saldo
  - "acconto 50% saldo 50%"     → acconto + saldo
  - "full payment"              → pagamento unico

Le parole chiave sono in config.py (DEPOSIT_MARKERS, FINAL_MARKERS,
FULL_PAYMENT_MARKERS). Se nel testo ci sono sia acconto che saldo vince
sempre lo schema acconto+saldo, anche se compare un marcatore di pagamento
unico. Qualsiasi altro testo non produce scadenze.
"""

import logging
import re
from datetime import date, timedelta
from dataclasses import dataclass
from typing import List, Optional, Union

from config import (
    DEPOSIT_MARKERS, FINAL_MARKERS, FULL_PAYMENT_MARKERS,
    DEPOSIT_DAYS_BEFORE, FINAL_DAYS_BEFORE, FULL_PAYMENT_DAYS_BEFORE,
)
from core.models import TASK_DEPOSIT, TASK_FINAL, TASK_FULL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplitTerm:
    """Acconto + saldo, percentuali intere (non devono per forza sommare a 100)."""
    deposit_pct: int
    final_pct: int


@dataclass(frozen=True)
class FullTerm:
    """Pagamento unico dell'intero importo."""


PaymentTerm = Union[SplitTerm, FullTerm]


def _has_marker(text: str, markers) -> bool:
    return any(m in text for m in markers)


def _find_percent(text: str, markers) -> Optional[int]:
    """
    Percentuale intera che segue uno dei marcatori, es. 'acconto 30%'.
    Tra marcatore e numero non può esserci un altro marcatore acconto/saldo:
    in "acconto e saldo 100%" l'acconto resta senza percentuale.
    """
    others = "|".join(re.escape(o) for o in DEPOSIT_MARKERS + FINAL_MARKERS)
    for m in markers:
        match = re.search(re.escape(m) + r"(?:(?!" + others + r")[^\d%+])*?(\d+)\s*%", text)
        if match:
            return int(match.group(1))
    return None


def parse_payment_terms(payment_method: str) -> Optional[PaymentTerm]:
    """
    Converte il testo libero in una modalità strutturata.
    Restituisce None se il testo non è riconosciuto o se lo schema
    acconto+saldo non ha entrambe le percentuali.
    """
    text = str(payment_method or "").lower()

    if _has_marker(text, DEPOSIT_MARKERS) and _has_marker(text, FINAL_MARKERS):
        deposit_pct = _find_percent(text, DEPOSIT_MARKERS)
        final_pct = _find_percent(text, FINAL_MARKERS)
        if deposit_pct is None or final_pct is None:
            logger.warning("Percentuali acconto/saldo non leggibili: %r", payment_method)
            return None
        return SplitTerm(deposit_pct, final_pct)

    if _has_marker(text, FULL_PAYMENT_MARKERS):
        return FullTerm()

    return None


def expand_term(term: Optional[PaymentTerm], total_amount: float, reference_date: date) -> List[dict]:
    """Scadenze per una modalità già interpretata."""
    if isinstance(term, SplitTerm):
        return [
            {
                "task_type": TASK_DEPOSIT,
                "description": f"Acconto del {term.deposit_pct}%",
                "amount_due": total_amount * term.deposit_pct / 100,
                "due_date": reference_date - timedelta(days=DEPOSIT_DAYS_BEFORE),
            },
            {
                "task_type": TASK_FINAL,
                "description": f"Saldo del restante {term.final_pct}%",
                "amount_due": total_amount * term.final_pct / 100,
                "due_date": reference_date - timedelta(days=FINAL_DAYS_BEFORE),
            },
        ]
    if isinstance(term, FullTerm):
        return [{
            "task_type": TASK_FULL,
            "description": "Pagamento unico dell'importo totale",
            "amount_due": total_amount,
            "due_date": reference_date - timedelta(days=FULL_PAYMENT_DAYS_BEFORE),
        }]
    return []


def expand_payment_terms(payment_method: str, total_amount: float, reference_date: date) -> List[dict]:
    """
    Modalità di pagamento + importo + data di riferimento → lista ordinata
    di scadenze (task_type, description, amount_due, due_date).
    Testo non riconosciuto → lista vuota, nessun errore.
    """
    return expand_term(parse_payment_terms(payment_method), total_amount, reference_date)
