from __future__ import annotations

import streamlit as st
import pandas as pd

from aquatrade.config import get_settings
from aquatrade.services.aggregates import dashboard_summary, low_stock_products
from aquatrade.services.exports import sales_frame
from aquatrade.session import get_store, warn_persist_errors

st.set_page_config(page_title="AquaTrade Fish Market", page_icon="🐟", layout="wide")
st.title("🐟 AquaTrade — Dashboard")
st.caption("Customers, parties, inventory, invoicing and fish-box tracking for a fish market.")

settings = get_settings()
store = get_store(settings.db_path)
warn_persist_errors(store)

with st.sidebar:
    st.subheader("Environment")
    st.write(f"**Data directory:** `{settings.data_dir}`")
    st.write(f"**Database:** `{settings.db_path.name}`")

summary = dashboard_summary(store.customers, store.products, store.sales, store.purchases)

c1, c2, c3, c4 = st.columns(4)
c1.metric("Revenue", f"{settings.currency} {summary.revenue:,.2f}")
c2.metric("Customers", f"{summary.customers}")
c3.metric("Products", f"{summary.products}")
c4.metric("Low stock", f"{summary.low_stock}")

col1, col2 = st.columns(2, gap="large")

with col1:
    st.subheader("Recent sales")
    if summary.recent_sales:
        st.dataframe(sales_frame(summary.recent_sales), use_container_width=True, hide_index=True)
    else:
        st.info("No sales yet. Create an invoice in **🧾 Billing & Purchases**.")

with col2:
    st.subheader("Low stock alerts")
    low = low_stock_products(store.products)
    if low:
        st.dataframe(
            pd.DataFrame([{"product": p.name, "stock": p.stock, "min_stock": p.min_stock, "unit": p.unit} for p in low]),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.success("All products are above their minimum stock.")
