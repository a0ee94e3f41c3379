"""
===============================================================================
RETURN MANAGEMENT (STREAMLIT) — RETURNED STOCK ACROSS THE SALES FORCE
===============================================================================

Purpose:
    Read-only view of product returns reported by the backend:
      - Total returned per product (roll on / 20 ml / 30 ml)
      - Returns per salesperson and region
      - Most recent individual returns

Backend shape (GET /returns -> data):
    {
      "total":  {"stock_roll_on": int, "stock_20_ml": int, "stock_30_ml": int}, (optional)
      "sales":  [{"sales_name", "region", "total_returns": {...}}],
      "recent": [{"sales_name", "store_name", "date", <products>, "notes"}]
    }
    When "total" is missing it is summed from "sales".

===============================================================================
"""

import streamlit as st

from api.store_api import StoreApiError
from init_session import get_api_client
from util.form_state import as_count
from util.input_util import fmt_int, fmt_string
from util.read_only_util import ro_cols


PRODUCTS = {
    "stock_roll_on": "Roll On",
    "stock_20_ml": "20 ml",
    "stock_30_ml": "30 ml",
}


def summarize_returns(sales) -> dict:
    """Sum each product over all salespeople. Bad or missing counts count as 0."""
    totals = {product: 0 for product in PRODUCTS}
    for row in sales or []:
        returns = (row or {}).get("total_returns") or {}
        for product in PRODUCTS:
            totals[product] += as_count(returns.get(product)) or 0
    return totals


def _table_rows(rows, columns):
    out = []
    for row in rows or []:
        out.append({label: fmt_string(getter(row)) for label, getter in columns.items()})
    return out


def returns_page():
    st.markdown("### RETURN MANAGEMENT ↩️")

    with st.spinner("Loading returns..."):
        try:
            summary = get_api_client().get_returns_summary()
        except StoreApiError as e:
            st.error(f"Failed to load returns: {e.message}")
            return

    sales = summary.get("sales") or []
    recent = summary.get("recent") or []
    totals = summary.get("total") or summarize_returns(sales)

    # ---- Summary cards ----
    cols = st.columns(len(PRODUCTS))
    ro_cols([
        (col, f"Total Return {label}", fmt_int(as_count(totals.get(product)) or 0), True)
        for col, (product, label) in zip(cols, PRODUCTS.items())
    ])

    # ---- Per salesperson ----
    st.markdown("<h5>RETURNS BY SALES</h5>", unsafe_allow_html=True)
    sales_columns = {
        "Sales": lambda r: r.get("sales_name"),
        "Region": lambda r: r.get("region"),
    }
    for product, label in PRODUCTS.items():
        sales_columns[label] = lambda r, p=product: as_count((r.get("total_returns") or {}).get(p)) or 0
    st.dataframe(_table_rows(sales, sales_columns), use_container_width=True, hide_index=True)

    # ---- Recent returns ----
    st.markdown("<h5>RECENT RETURNS</h5>", unsafe_allow_html=True)
    recent_columns = {
        "Date": lambda r: r.get("date"),
        "Sales": lambda r: r.get("sales_name"),
        "Store": lambda r: r.get("store_name"),
    }
    for product, label in PRODUCTS.items():
        recent_columns[label] = lambda r, p=product: as_count(r.get(p)) or 0
    recent_columns["Notes"] = lambda r: r.get("notes")
    st.dataframe(_table_rows(recent, recent_columns), use_container_width=True, hide_index=True)
