"""
Pagamenti Fornitori - scadenziario pagamenti dell'agenzia viaggi.
Web app Streamlit: i dati vivono nella sessione (st.session_state).
"""

import streamlit as st
import logging
import os
import sys
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import LOG_FORMAT, LOG_LEVEL, RECORD_TYPES
from core.generator import generate_payment_bookings
from core.models import TASK_TYPES, STATUS_PAID
from core.sample import load_sample_store
from core.sheets import check_sheets_connection, credentials_from_secrets, fetch_remote_table
from parsers.tabular import import_rows, parse_multi_sheet, parse_tabular
from reports.payments import (
    df_to_csv_bytes, df_to_excel_bytes, payment_summary,
    summary_by_supplier, tasks_dataframe, with_labels,
)

logging.basicConfig(format=LOG_FORMAT, level=LOG_LEVEL)
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Pagamenti Fornitori",
    page_icon="💶",
    layout="wide",
)

st.title("💶 Pagamenti Fornitori")

if "store" not in st.session_state:
    st.session_state["store"] = load_sample_store()
store = st.session_state["store"]

STATUS_LABELS = {"all": "Tutti", "pending": "Da pagare", "paid": "Pagati"}
TYPE_LABELS = {"orders": "Ordini", "products": "Servizi", "suppliers": "Fornitori"}


with st.sidebar:
    st.header("Dati in sessione")
    st.write(f"Ordini: **{len(store.orders)}**")
    st.write(f"Servizi: **{len(store.products)}**")
    st.write(f"Fornitori: **{len(store.suppliers)}**")
    st.write(f"Prenotazioni: **{len(store.bookings)}**")
    if st.button("↺ Ricarica dati di esempio"):
        st.session_state["store"] = load_sample_store()
        st.session_state.pop("generated", None)
        st.rerun()

    st.divider()
    if check_sheets_connection():
        st.success("✓ Google Sheets configurato")
    else:
        st.caption("Google Sheets non configurato (`.streamlit/secrets.toml`)")


tab_tasks, tab_generate, tab_new, tab_import = st.tabs(
    ["📋 Pagamenti", "⚙️ Genera da ordine", "➕ Nuovo pagamento", "📥 Importa"]
)


# ============================================================
# TAB 1: PAGAMENTI
# ============================================================
with tab_tasks:
    st.header("Scadenziario")

    all_rows = store.task_rows("all")
    kpi = payment_summary(all_rows)
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Pagamenti", kpi["total_count"])
    k2.metric("Da pagare €", f"{kpi['pending_amount']:.2f}", f"{kpi['pending_count']} task", delta_color="off")
    k3.metric("Pagato €", f"{kpi['paid_amount']:.2f}")
    k4.metric("Scaduti", kpi["overdue_count"])

    sel_status = st.radio(
        "Stato",
        options=list(STATUS_LABELS),
        format_func=STATUS_LABELS.get,
        horizontal=True,
    )
    rows = store.task_rows(sel_status)
    df = tasks_dataframe(rows)

    if df.empty:
        st.info("Nessun pagamento. Genera le scadenze da un ordine o inseriscile a mano.")
    else:
        st.dataframe(with_labels(df), use_container_width=True, hide_index=True)

        st.divider()
        st.subheader("Aggiorna pagamento")
        task_options = {r.task.task_id: r for r in rows}
        sel_task = st.selectbox(
            "Pagamento",
            options=list(task_options),
            format_func=lambda tid: (
                f"{task_options[tid].task.due_date:%d/%m/%Y} — {task_options[tid].supplier_name} — "
                f"{task_options[tid].task.description} — €{task_options[tid].task.amount_due:.2f}"
            ),
        )
        col_paid, col_invoice = st.columns(2)
        with col_paid:
            if task_options[sel_task].task.payment_status == STATUS_PAID:
                st.caption(f"Pagato il {task_options[sel_task].task.actual_payment_date:%d/%m/%Y}")
            if st.button("✅ Segna come pagato", type="primary"):
                store.mark_task_paid(sel_task)
                st.rerun()
        with col_invoice:
            link = st.text_input("Link fattura", value=task_options[sel_task].task.invoice_link or "")
            if st.button("📎 Collega fattura"):
                store.attach_invoice(sel_task, link.strip())
                st.success("Fattura collegata")

        st.divider()
        st.subheader("Per fornitore (€)")
        st.dataframe(summary_by_supplier(df), use_container_width=True)

        st.subheader("Esporta")
        col_csv, col_xlsx = st.columns(2)
        export_df = with_labels(df)
        with col_csv:
            st.download_button(
                "⬇️ Scarica CSV",
                df_to_csv_bytes(export_df),
                file_name=f"pagamenti_{sel_status}.csv",
                mime="text/csv",
            )
        with col_xlsx:
            st.download_button(
                "⬇️ Scarica Excel",
                df_to_excel_bytes(export_df),
                file_name=f"pagamenti_{sel_status}.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            )


# ============================================================
# TAB 2: GENERA DA ORDINE
# ============================================================
with tab_generate:
    st.header("Genera pagamenti da un ordine")

    if not store.orders:
        st.info("Nessun ordine. Importa gli ordini dal tab Importa.")
    else:
        orders_by_id = {o.order_id: o for o in store.orders}
        sel_order = st.selectbox(
            "Ordine",
            options=list(orders_by_id),
            format_func=lambda oid: f"{oid} — {orders_by_id[oid].order_name} ({orders_by_id[oid].departure_date:%d/%m/%Y})",
        )
        st.caption(f"Servizi: {orders_by_id[sel_order].services}")

        unknown_methods = [p for p in store.products if p.payment_term is None]
        if unknown_methods:
            with st.expander(f"⚠️ {len(unknown_methods)} servizi con modalità di pagamento non riconosciuta"):
                for p in unknown_methods:
                    st.write(f"**{p.service_name}** ({p.supplier_name}): {p.payment_method!r}")

        if st.button("⚙️ Genera"):
            bookings = generate_payment_bookings(sel_order, store.orders, store.products, store.suppliers)
            if not bookings:
                st.warning("Nessuna prenotazione generata: ordine non trovato o servizi assenti a catalogo.")
                st.session_state.pop("generated", None)
            else:
                st.session_state["generated"] = bookings

        generated = st.session_state.get("generated")
        if generated:
            st.subheader(f"Anteprima ({len(generated)} fornitori)")
            for b in generated:
                with st.container(border=True):
                    st.markdown(f"**{b.supplier_name}** — {b.supplier_type} — totale €{b.total_amount:.2f}")
                    if b.payment_tasks:
                        st.dataframe(
                            [
                                {
                                    "Tipo": t.task_type,
                                    "Descrizione": t.description,
                                    "Importo €": f"{t.amount_due:.2f}",
                                    "Scadenza": t.due_date.strftime("%d/%m/%Y"),
                                }
                                for t in b.payment_tasks
                            ],
                            use_container_width=True,
                            hide_index=True,
                        )
                    else:
                        st.caption("Nessuna scadenza (modalità di pagamento non riconosciuta)")

            if st.button("✅ Aggiungi allo scadenziario", type="primary"):
                store.add_bookings(generated)
                st.session_state.pop("generated", None)
                st.success(f"Aggiunte {len(generated)} prenotazioni fornitore.")


# ============================================================
# TAB 3: NUOVO PAGAMENTO
# ============================================================
with tab_new:
    st.header("Nuovo pagamento")

    with st.form("new_task", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            supplier_name = st.text_input("Fornitore *")
            supplier_type = st.text_input("Tipo fornitore", value="other")
            related_order = st.text_input("Ordine collegato")
        with col2:
            task_type = st.selectbox("Tipo pagamento", TASK_TYPES, index=2)
            amount = st.number_input("Importo € *", min_value=0.0, step=10.0, format="%.2f")
            due = st.date_input("Scadenza *", value=date.today(), format="DD/MM/YYYY")
        description = st.text_input("Descrizione *")

        if st.form_submit_button("➕ Aggiungi", type="primary"):
            try:
                task = store.create_task({
                    "supplier_name": supplier_name.strip(),
                    "supplier_type": supplier_type.strip(),
                    "related_order": related_order.strip(),
                    "task_type": task_type,
                    "description": description.strip(),
                    "amount_due": amount,
                    "due_date": due,
                })
                st.success(f"Pagamento {task.task_id} aggiunto.")
            except ValueError as e:
                st.error(f"Errore: {e}")


# ============================================================
# TAB 4: IMPORTA
# ============================================================
with tab_import:
    st.header("Importa ordini, servizi e fornitori")
    st.write("I dati importati sostituiscono quelli dello stesso tipo già presenti in sessione.")

    source = st.radio(
        "Sorgente",
        ["File CSV / Excel", "Excel multi-foglio", "Google Sheets"],
        horizontal=True,
    )

    if source == "File CSV / Excel":
        record_type = st.selectbox("Tipo di dati", RECORD_TYPES, format_func=TYPE_LABELS.get)
        uploaded = st.file_uploader("File", type=["csv", "xlsx", "xls"], key="single_upload")
        if uploaded and st.button("📥 Importa", type="primary"):
            try:
                rows = parse_tabular(uploaded, name=uploaded.name)
                data = import_rows(
                    rows, record_type,
                    derive_suppliers=(record_type == "products" and not store.suppliers),
                )
                store.apply_import(data)
                st.success(" | ".join(f"{TYPE_LABELS[k]}: {len(v)}" for k, v in data.items()))
            except Exception as e:
                logger.exception("Import fallito: %s", uploaded.name)
                st.error(f"**{uploaded.name}**: {e}")

    elif source == "Excel multi-foglio":
        st.caption("Foglio 1 → servizi, foglio 2 → fornitori, foglio 3 → ordini (modificabile).")
        cols = st.columns(3)
        mapping = {}
        for idx, col in enumerate(cols):
            with col:
                choice = st.selectbox(
                    f"Foglio {idx + 1}",
                    ["—"] + list(RECORD_TYPES),
                    index=1 + list(RECORD_TYPES).index(("products", "suppliers", "orders")[idx]),
                    format_func=lambda x: TYPE_LABELS.get(x, x),
                    key=f"sheet_map_{idx}",
                )
                if choice != "—":
                    mapping[idx] = choice

        uploaded = st.file_uploader("File Excel", type=["xlsx", "xls"], key="multi_upload")
        if uploaded and mapping and st.button("📥 Importa", type="primary"):
            try:
                result = parse_multi_sheet(uploaded, mapping)
                store.apply_import(result.data)
                message = " | ".join(f"{TYPE_LABELS[k]}: {len(v)}" for k, v in result.data.items())
                if result.warnings:
                    st.warning(f"Importato parzialmente — {message}\n\n" + "\n".join(f"- {w}" for w in result.warnings))
                else:
                    st.success(message)
                with st.expander("Fogli letti"):
                    for info in result.sheet_info:
                        st.write(info)
            except Exception as e:
                logger.exception("Import multi-foglio fallito: %s", uploaded.name)
                st.error(f"**{uploaded.name}**: {e}")

    else:
        if not check_sheets_connection():
            st.warning("Connessione Google Sheets non configurata.")
        else:
            record_type = st.selectbox("Tipo di dati", RECORD_TYPES, format_func=TYPE_LABELS.get, key="gs_type")
            worksheet = st.text_input("Nome del foglio", value=record_type)
            if st.button("📥 Importa da Google Sheets", type="primary"):
                with st.spinner("Lettura Google Sheets..."):
                    try:
                        creds, spreadsheet_id = credentials_from_secrets()
                        rows = fetch_remote_table(creds, spreadsheet_id, worksheet.strip())
                        data = import_rows(
                            rows, record_type,
                            derive_suppliers=(record_type == "products" and not store.suppliers),
                        )
                        store.apply_import(data)
                        st.success(" | ".join(f"{TYPE_LABELS[k]}: {len(v)}" for k, v in data.items()))
                    except Exception as e:
                        logger.exception("Import Google Sheets fallito")
                        st.error(f"Errore: {e}")
