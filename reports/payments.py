"""
Report sui pagamenti fornitori.

Parte dalla lista piatta dei task (core.store.flatten_tasks) e produce:
  - DataFrame per Streamlit (st.dataframe)
  - KPI (da pagare, pagato, scaduti)
  - riepilogo per fornitore
  - export CSV / Excel
"""

import io
from datetime import date
from typing import List

import pandas as pd

from core.models import STATUS_PAID, STATUS_PENDING
from core.store import TaskRow

TASK_COLUMNS = [
    "task_id", "supplier_name", "supplier_type", "related_order",
    "task_type", "description", "amount_due", "due_date",
    "payment_status", "actual_payment_date", "invoice_link",
]

# Intestazioni per la visualizzazione e l'export
COLUMN_LABELS = {
    "task_id": "ID",
    "supplier_name": "Fornitore",
    "supplier_type": "Tipo fornitore",
    "related_order": "Ordine",
    "task_type": "Tipo pagamento",
    "description": "Descrizione",
    "amount_due": "Importo €",
    "due_date": "Scadenza",
    "payment_status": "Stato",
    "actual_payment_date": "Pagato il",
    "invoice_link": "Fattura",
}


def tasks_dataframe(rows: List[TaskRow]) -> pd.DataFrame:
    """Una riga per task, nell'ordine ricevuto."""
    if not rows:
        return pd.DataFrame(columns=TASK_COLUMNS)

    records = []
    for r in rows:
        t = r.task
        records.append({
            "task_id": t.task_id,
            "supplier_name": r.supplier_name,
            "supplier_type": r.supplier_type,
            "related_order": r.related_order,
            "task_type": t.task_type,
            "description": t.description,
            "amount_due": round(t.amount_due, 2),
            "due_date": t.due_date,
            "payment_status": t.payment_status,
            "actual_payment_date": t.actual_payment_date,
            "invoice_link": t.invoice_link,
        })
    return pd.DataFrame(records, columns=TASK_COLUMNS)


def payment_summary(rows: List[TaskRow], today: date = None) -> dict:
    """KPI: numero e importo dei task da pagare / pagati, task scaduti non pagati."""
    if today is None:
        today = date.today()

    pending = [r.task for r in rows if r.task.payment_status == STATUS_PENDING]
    paid = [r.task for r in rows if r.task.payment_status == STATUS_PAID]
    return {
        "total_count": len(rows),
        "pending_count": len(pending),
        "pending_amount": round(sum(t.amount_due for t in pending), 2),
        "paid_count": len(paid),
        "paid_amount": round(sum(t.amount_due for t in paid), 2),
        "overdue_count": sum(1 for t in pending if t.due_date < today),
    }


def summary_by_supplier(df: pd.DataFrame) -> pd.DataFrame:
    """Pivot fornitore × stato, valori = importo."""
    if df.empty:
        return pd.DataFrame()

    pivot = df.pivot_table(
        values="amount_due",
        index="supplier_name",
        columns="payment_status",
        aggfunc="sum",
        fill_value=0,
        margins=True,
        margins_name="TOTALE",
    )
    return pivot.round(2)


def with_labels(df: pd.DataFrame) -> pd.DataFrame:
    return df.rename(columns=COLUMN_LABELS)


def df_to_csv_bytes(df: pd.DataFrame) -> bytes:
    # BOM per l'apertura corretta in Excel
    return df.to_csv(index=False).encode("utf-8-sig")


def df_to_excel_bytes(df: pd.DataFrame) -> bytes:
    """Converte DataFrame in bytes XLSX per il download."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Pagamenti")
    return buf.getvalue()
