from __future__ import annotations

import streamlit as st

from aquatrade.config import get_settings
from aquatrade.session import configure_logging

st.set_page_config(page_title="AquaTrade Fish Market", page_icon="🐟", layout="wide")

configure_logging(get_settings())

pages = [
    st.Page("home.py", title="Dashboard", icon="🏠"),
    st.Page("pages/1_👥_Customers_&_Parties.py", title="Customers & Parties", icon="👥"),
    st.Page("pages/2_📦_Inventory.py", title="Inventory", icon="📦"),
    st.Page("pages/3_🧾_Billing.py", title="Billing & Purchases", icon="🧾"),
    st.Page("pages/4_💵_Daily_Collection.py", title="Daily Collection", icon="💵"),
    st.Page("pages/5_📄_Statement.py", title="Statement", icon="📄"),
    st.Page("pages/6_🐟_Fish_Boxes.py", title="Fish Boxes", icon="🐟"),
    st.Page("pages/7_📊_Reports.py", title="Reports", icon="📊"),
    st.Page("pages/8_🧪_Data_Management.py", title="Data Management", icon="🧪"),
]

st.navigation(pages).run()
