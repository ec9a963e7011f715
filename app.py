from __future__ import annotations

import streamlit as st

st.set_page_config(page_title="acopiapp", page_icon="🥛", layout="wide")

pages = [
    st.Page("home.py", title="Dashboard", icon="🏠"),
    st.Page("pages/1_📝_Registry.py", title="Registry", icon="📝"),
    st.Page("pages/2_📅_History.py", title="History", icon="📅"),
    st.Page("pages/3_👥_Providers.py", title="Providers", icon="👥"),
    st.Page("pages/4_🏭_Production.py", title="Production", icon="🏭"),
    st.Page("pages/5_💰_Sales_&_Clients.py", title="Sales & Clients", icon="💰"),
    st.Page("pages/6_📈_Statistics.py", title="Statistics", icon="📈"),
    st.Page("pages/7_📊_Weekly_Report.py", title="Weekly Report", icon="📊"),
    st.Page("pages/8_🤖_Assistant.py", title="Assistant", icon="🤖"),
    st.Page("pages/9_📤_Export.py", title="Export", icon="📤"),
    st.Page("pages/10_🧪_Data_Management.py", title="Data Management", icon="🧪"),
]

st.navigation(pages).run()
