"""
Google Sheets come sorgente remota per ordini, servizi e fornitori.

Autenticazione via Service Account (credenziali in Streamlit secrets):

  [gcp_service_account]
  type = "service_account"
  ...

  [google_sheets]
  spreadsheet_id = "..."

Setup una tantum:
  1. Crea Service Account su Google Cloud
  2. Condividi il Google Sheet con l'email del service account
  3. Metti le credenziali in .streamlit/secrets.toml

Sola lettura: i dati importati restano nella sessione, il foglio non
viene mai modificato.
"""

import logging
from typing import List, Tuple, Union

import gspread
import streamlit as st

logger = logging.getLogger(__name__)


def check_sheets_connection() -> bool:
    """True se nei secrets ci sono credenziali e ID del foglio."""
    try:
        _ = st.secrets["gcp_service_account"]
        _ = st.secrets["google_sheets"]["spreadsheet_id"]
        return True
    except Exception:
        return False


def credentials_from_secrets() -> Tuple[dict, str]:
    """Restituisce (credenziali service account, spreadsheet_id) da st.secrets."""
    creds_dict = dict(st.secrets["gcp_service_account"])
    spreadsheet_id = st.secrets["google_sheets"]["spreadsheet_id"]
    return creds_dict, spreadsheet_id


def fetch_remote_table(
    credentials: dict,
    spreadsheet_id: str,
    worksheet: Union[str, int] = 0,
) -> List[dict]:
    """
    Legge tutte le righe di un foglio (prima riga = intestazioni).
    worksheet può essere il nome del foglio o la sua posizione (0-indexed).

    Raises:
        ValueError se il foglio non esiste o l'API risponde con errore.
    """
    try:
        gc = gspread.service_account_from_dict(dict(credentials))
        sh = gc.open_by_key(spreadsheet_id)
        if isinstance(worksheet, int):
            ws = sh.get_worksheet(worksheet)
            if ws is None:
                raise gspread.WorksheetNotFound(str(worksheet))
        else:
            ws = sh.worksheet(worksheet)
        rows = ws.get_all_records()
    except gspread.WorksheetNotFound:
        raise ValueError(f"Foglio '{worksheet}' non trovato nel Google Sheet")
    except gspread.exceptions.GSpreadException as e:
        raise ValueError(f"Errore Google Sheets: {e}")

    logger.info("Google Sheets: lette %d righe dal foglio %r", len(rows), worksheet)
    return rows
