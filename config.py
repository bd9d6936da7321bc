"""
Configurazione centralizzata - modifica qui i percorsi e i mapping.
"""

import os

# Dati di esempio caricati all'avvio della sessione
SAMPLE_DATA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "core", "data", "sample_data.json")

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Tipi di record importabili
RECORD_TYPES = ("orders", "products", "suppliers")

# Import multi-foglio: posizione foglio (0-indexed) → tipo record
DEFAULT_SHEET_MAPPING = {
    0: "products",
    1: "suppliers",
    2: "orders",
}

# Campi obbligatori per tipo record (nomi canonici)
REQUIRED_FIELDS = {
    "orders":    ["order_id", "customer_name", "order_name", "departure_date", "services"],
    "products":  ["service_name", "supplier_name", "unit_price", "service_type", "payment_method"],
    "suppliers": ["supplier_name", "supplier_type"],
}

# Mapping intestazione colonna sorgente → campo canonico.
# Le colonne non presenti qui passano invariate.
FIELD_MAPPINGS = {
    "orders": {
        "ID ordine":      "order_id",
        "Order ID":       "order_id",
        "订单ID":          "order_id",
        "Cliente":        "customer_name",
        "Customer":       "customer_name",
        "客户信息":         "customer_name",
        "客户名称":         "customer_name",
        "Nome ordine":    "order_name",
        "Order name":     "order_name",
        "订单名称":         "order_name",
        "Data partenza":  "departure_date",
        "Departure date": "departure_date",
        "旅行日期":         "departure_date",
        "出发日期":         "departure_date",
        "Servizi":        "services",
        "Services":       "services",
        "关联的服务":       "services",
    },
    "products": {
        "Servizio":         "service_name",
        "Service":          "service_name",
        "服务项目名称":       "service_name",
        "服务名称":          "service_name",
        "Fornitore":        "supplier_name",
        "Supplier":         "supplier_name",
        "供应商名称":         "supplier_name",
        "Prezzo":           "unit_price",
        "Unit price":       "unit_price",
        "平日单价":          "unit_price",
        "Categoria":        "service_type",
        "Category":         "service_type",
        "供应商类型":         "service_type",
        "服务类型":          "service_type",
        "Pagamento":        "payment_method",
        "Payment method":   "payment_method",
        "子项说明":          "payment_method",
        "付款方式":          "payment_method",
        "Referente":        "contact_name",
        "联系人姓名":         "contact_name",
        "联系人":           "contact_name",
        "Telefono":         "contact_phone",
        "联系方式":          "contact_phone",
        "联系电话":          "contact_phone",
    },
    "suppliers": {
        "Fornitore":      "supplier_name",
        "Supplier":       "supplier_name",
        "供应商名称":       "supplier_name",
        "Tipo fornitore": "supplier_type",
        "Supplier type":  "supplier_type",
        "供应商类型":       "supplier_type",
        "Referente":      "contact_name",
        "Contact":        "contact_name",
        "主要联系人":       "contact_name",
        "联系人":          "contact_name",
        "Telefono":       "contact_phone",
        "Phone":          "contact_phone",
        "联系电话":         "contact_phone",
    },
}

# Valori di default per campi mancanti o vuoti
DEFAULT_VALUES = {
    "orders": {
        "customer_name": "Cliente senza nome",
        "services": "",
    },
    "products": {
        "payment_method": "full payment",
        "service_type": "other",
    },
    "suppliers": {
        "supplier_type": "other",
        "contact_name": "n/d",
        "contact_phone": "n/d",
    },
}

# Tipo fornitore quando il fornitore non è in anagrafica
DEFAULT_SUPPLIER_TYPE = "other"

# Parole chiave nel campo "modalità di pagamento" (match case-insensitive)
DEPOSIT_MARKERS = ("deposit", "acconto", "定金")
FINAL_MARKERS = ("final", "saldo", "尾款")
FULL_PAYMENT_MARKERS = ("full payment", "pagamento unico", "全款")

# Giorni di anticipo rispetto alla data di partenza
DEPOSIT_DAYS_BEFORE = 7
FINAL_DAYS_BEFORE = 1
FULL_PAYMENT_DAYS_BEFORE = 3
