"""
Import di ordini, servizi e fornitori da file CSV / XLSX.

Flusso:
  1. parse_tabular / parse_multi_sheet → righe grezze (dict colonna → valore)
  2. validate_rows → mapping intestazioni (config.FIELD_MAPPINGS), default
     (config.DEFAULT_VALUES), scarto righe senza campi obbligatori
  3. build_records → dataclass Order / Product / Supplier

Lo store viene aggiornato dal chiamante solo a pipeline completata.

Formati accettati per le date: YYYY-MM-DD, DD/MM/YYYY, MM/DD/YYYY, date Excel.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Union

import pandas as pd

from config import (
    DEFAULT_SHEET_MAPPING, DEFAULT_SUPPLIER_TYPE, DEFAULT_VALUES,
    FIELD_MAPPINGS, REQUIRED_FIELDS,
)
from core.models import Order, Product, Supplier

logger = logging.getLogger(__name__)

CSV_SUFFIXES = (".csv",)
EXCEL_SUFFIXES = (".xlsx", ".xls")


@dataclass
class ImportResult:
    """Esito import multi-foglio: dati per tipo + avvisi sui fogli scartati."""
    data: Dict[str, list] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    sheet_info: List[str] = field(default_factory=list)


# ─── Conversioni ─────────────────────────────────────────────────────────────

def _is_empty(val) -> bool:
    if val is None:
        return True
    if isinstance(val, float) and pd.isna(val):
        return True
    return str(val).strip() in ("", "nan", "NaT")


def _to_str(val) -> str:
    """Valore cella → stringa; 1001.0 (Excel) → '1001'."""
    if _is_empty(val):
        return ""
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val).strip()


def _to_float(val) -> Optional[float]:
    """Converte un prezzo in float. None se non è un numero."""
    if _is_empty(val):
        return None
    if isinstance(val, (int, float)):
        return float(val)
    try:
        return float(str(val).replace("€", "").replace(" ", "").replace(",", "."))
    except (ValueError, TypeError):
        return None


def _parse_date(val) -> Optional[date]:
    """Converte una data (stringa, datetime pandas, seriale Excel) in date."""
    if _is_empty(val):
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if isinstance(val, (int, float)):
        from openpyxl.utils.datetime import from_excel
        try:
            return from_excel(val).date()
        except (ValueError, TypeError, OverflowError):
            return None
    s = str(val).strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%m/%d/%Y", "%Y/%m/%d", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def _df_to_rows(df: pd.DataFrame) -> List[dict]:
    df = df.dropna(how="all")
    df.columns = [str(c).strip() for c in df.columns]
    return df.astype(object).where(pd.notna(df), None).to_dict(orient="records")


def _source_name(source, name: Optional[str]) -> str:
    if name:
        return name
    return getattr(source, "name", None) or str(source)


# ─── Lettura file ────────────────────────────────────────────────────────────

def parse_tabular(source, name: str = None) -> List[dict]:
    """
    Legge un file CSV o XLSX (primo foglio) e restituisce le righe come dict.
    source può essere un percorso o un file caricato (UploadedFile, BytesIO).

    Raises:
        ValueError per estensione non supportata o file illeggibile.
    """
    fname = _source_name(source, name)
    suffix = os.path.splitext(fname.lower())[1]

    if suffix in CSV_SUFFIXES:
        try:
            df = pd.read_csv(source, encoding="utf-8-sig", dtype=str, na_filter=False)
        except Exception as e:
            raise ValueError(f"Errore lettura CSV {os.path.basename(fname)}: {e}")
    elif suffix in EXCEL_SUFFIXES:
        try:
            df = pd.read_excel(source, engine="openpyxl", header=0)
        except Exception as e:
            raise ValueError(f"Errore lettura Excel {os.path.basename(fname)}: {e}")
    else:
        raise ValueError(f"Formato file non supportato: {suffix or fname} (usa .csv o .xlsx)")

    return _df_to_rows(df)


def parse_multi_sheet(source, sheet_mapping: Dict[Union[int, str], str] = None) -> ImportResult:
    """
    Legge più fogli di un file Excel: foglio → tipo record.
    Il foglio si indica per posizione (0-indexed, int o stringa numerica)
    oppure per nome, es. {"Ordini": "orders"}.
    Default: 0 → products, 1 → suppliers, 2 → orders.

    I fogli mancanti, vuoti o non validi finiscono in warnings; se c'è un
    foglio servizi ma nessun foglio fornitori, i fornitori vengono ricavati
    dai servizi.

    Raises:
        ValueError se nessun foglio è stato importato.
    """
    mapping = sheet_mapping or DEFAULT_SHEET_MAPPING
    try:
        xls = pd.ExcelFile(source, engine="openpyxl")
    except Exception as e:
        raise ValueError(f"Errore lettura Excel: {e}")

    result = ImportResult()
    valid_rows: Dict[str, List[dict]] = {}

    for key, record_type in mapping.items():
        if isinstance(key, int) or str(key).isdigit():
            index = int(key)
            if index >= len(xls.sheet_names):
                result.warnings.append(f"Il foglio n. {index + 1} non esiste")
                continue
            sheet_name = xls.sheet_names[index]
            result.sheet_info.append(f"Foglio {index + 1} \"{sheet_name}\" → {record_type}")
        else:
            sheet_name = str(key)
            if sheet_name not in xls.sheet_names:
                result.warnings.append(f"Il foglio \"{sheet_name}\" non esiste")
                continue
            result.sheet_info.append(f"Foglio \"{sheet_name}\" → {record_type}")

        rows = _df_to_rows(xls.parse(sheet_name))
        if not rows:
            result.warnings.append(f"Il foglio \"{sheet_name}\" non contiene dati")
            continue

        try:
            valid_rows[record_type] = validate_rows(rows, record_type)
        except ValueError as e:
            result.warnings.append(f"Foglio \"{sheet_name}\" non importato: {e}")

    if "products" in valid_rows and "suppliers" not in valid_rows:
        valid_rows["suppliers"] = extract_suppliers_from_products(valid_rows["products"])
        result.sheet_info.append("Fornitori ricavati dai servizi")

    for record_type, rows in valid_rows.items():
        records = build_records(rows, record_type)
        if records:
            result.data[record_type] = records
        else:
            result.warnings.append(f"Nessun record {record_type} utilizzabile")

    if not result.data:
        raise ValueError("Nessun foglio importato: " + "; ".join(result.warnings))

    if result.warnings:
        logger.warning("Import multi-foglio con avvisi: %s", result.warnings)
    return result


# ─── Validazione ─────────────────────────────────────────────────────────────

def _apply_field_mapping(rows: List[dict], record_type: str) -> List[dict]:
    mapping = FIELD_MAPPINGS.get(record_type, {})
    defaults = DEFAULT_VALUES.get(record_type, {})

    mapped_rows = []
    for item in rows:
        mapped = {}
        for key, value in item.items():
            target = mapping.get(key, key)
            if target not in mapped or _is_empty(mapped[target]):
                mapped[target] = value
        for fname, default in defaults.items():
            if _is_empty(mapped.get(fname)):
                mapped[fname] = default
        mapped_rows.append(mapped)
    return mapped_rows


def validate_rows(rows: List[dict], record_type: str, auto_map: bool = True) -> List[dict]:
    """
    Applica mapping e default e scarta le righe senza campi obbligatori.
    Per i servizi converte il prezzo in numero (righe con prezzo non
    numerico o negativo vengono scartate).

    Raises:
        ValueError se rows è vuoto, il tipo è sconosciuto o nessuna riga è valida.
    """
    if not rows:
        raise ValueError("Dati non validi: nessuna riga da importare")

    required = REQUIRED_FIELDS.get(record_type)
    if required is None:
        raise ValueError(f"Tipo di dati sconosciuto: {record_type}")

    defaults = DEFAULT_VALUES.get(record_type, {})
    processed = _apply_field_mapping(rows, record_type) if auto_map else [dict(r) for r in rows]

    valid = []
    for i, row in enumerate(processed, start=1):
        missing = [f for f in required if _is_empty(row.get(f)) and not (auto_map and f in defaults)]
        if missing:
            logger.warning("[%s] riga %d scartata, campi mancanti: %s", record_type, i, ", ".join(missing))
            continue
        if record_type == "products":
            price = _to_float(row["unit_price"])
            if price is None or price < 0:
                logger.warning("[%s] riga %d scartata, prezzo non valido: %r", record_type, i, row["unit_price"])
                continue
            row["unit_price"] = price
        valid.append(row)

    if not valid:
        found = list(processed[0].keys())
        raise ValueError(
            f"Nessun record valido per {record_type}. "
            f"Campi attesi: {', '.join(required)}. "
            f"Campi trovati: {', '.join(str(c) for c in found)}"
        )
    return valid


def extract_suppliers_from_products(products: List[dict]) -> List[dict]:
    """Anagrafica fornitori ricavata dai servizi: vince la prima riga per fornitore."""
    suppliers: Dict[str, dict] = {}
    for p in products:
        name = _to_str(p.get("supplier_name"))
        if not name or name in suppliers:
            continue
        suppliers[name] = {
            "supplier_name": name,
            "supplier_type": _to_str(p.get("service_type")) or DEFAULT_SUPPLIER_TYPE,
            "contact_name": _to_str(p.get("contact_name")) or "n/d",
            "contact_phone": _to_str(p.get("contact_phone")) or "n/d",
        }
    return list(suppliers.values())


# ─── Record ──────────────────────────────────────────────────────────────────

def build_records(rows: List[dict], record_type: str) -> list:
    """Righe già validate → Order / Product / Supplier."""
    records = []
    for row in rows:
        if record_type == "orders":
            departure = _parse_date(row.get("departure_date"))
            if departure is None:
                logger.warning("Ordine %s scartato: data partenza non valida %r",
                               row.get("order_id"), row.get("departure_date"))
                continue
            records.append(Order(
                order_id=_to_str(row["order_id"]),
                customer_name=_to_str(row["customer_name"]),
                order_name=_to_str(row["order_name"]),
                departure_date=departure,
                services=_to_str(row.get("services")),
            ))
        elif record_type == "products":
            records.append(Product(
                service_name=_to_str(row["service_name"]),
                supplier_name=_to_str(row["supplier_name"]),
                unit_price=float(row["unit_price"]),
                service_type=_to_str(row["service_type"]),
                payment_method=_to_str(row["payment_method"]),
            ))
        elif record_type == "suppliers":
            records.append(Supplier(
                supplier_name=_to_str(row["supplier_name"]),
                supplier_type=_to_str(row["supplier_type"]),
                contact_name=_to_str(row.get("contact_name")) or "n/d",
                contact_phone=_to_str(row.get("contact_phone")) or "n/d",
            ))
        else:
            raise ValueError(f"Tipo di dati sconosciuto: {record_type}")
    return records


def import_rows(rows: List[dict], record_type: str, derive_suppliers: bool = False) -> Dict[str, list]:
    """
    Righe grezze di un singolo tipo → {tipo: [record]} pronto per
    RecordStore.apply_import. Con derive_suppliers=True un import di servizi
    porta con sé anche l'anagrafica fornitori ricavata.
    """
    valid = validate_rows(rows, record_type)
    data = {record_type: build_records(valid, record_type)}
    if not data[record_type]:
        raise ValueError(f"Nessun record {record_type} utilizzabile")
    if record_type == "products" and derive_suppliers:
        data["suppliers"] = build_records(extract_suppliers_from_products(valid), "suppliers")
    return data
