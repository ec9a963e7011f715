from __future__ import annotations

from datetime import date

import pandas as pd
import streamlit as st

from acopio.config import get_settings
from acopio.services.aggregator import (
    client_weekly_summary,
    grand_total_owed,
    provider_weekly_totals,
    week_window,
)
from acopio.services.inventory import low_stock_warning, stock_status
from acopio.store import get_store
from acopio.utils import fmt_money

st.set_page_config(page_title="acopiapp", page_icon="🥛", layout="wide")

st.title("🥛 acopiapp")
st.caption("Milk collection, production and sales for a small dairy.")

settings = get_settings()
store = get_store(settings.db_path)
snap = store.snapshot()
today = date.today()

with st.sidebar:
    st.subheader("Environment")
    st.write(f"**Data directory:** `{settings.data_dir}`")
    st.write(f"**Database:** `{settings.db_path.name}`")
    st.write(f"**Assistant:** {'enabled' if settings.ai_enabled else 'disabled'}")

status = stock_status(snap.replenishments, snap.production, settings.kg_per_sack)
warning = low_stock_warning(
    status,
    st.session_state,
    threshold=settings.low_stock_threshold,
    unit=settings.low_stock_unit,
)
if warning:
    st.toast(warning, icon="⚠️")
    st.warning(warning)

window = week_window(today)
totals = provider_weekly_totals(snap.providers, snap.deliveries, today, settings.special_cycle_provider)
week_liters = sum(float(d.quantity) for d in snap.deliveries if window.contains(d.date))
week_sales = sum(float(s.total_amount) for s in snap.sales if window.contains(s.date))
week_debt = sum(c.debt for c in client_weekly_summary(snap.clients, snap.sales, today))

c1, c2, c3, c4 = st.columns(4)
c1.metric("Liters this week", f"{week_liters:,.2f} L")
c2.metric("Owed to providers", fmt_money(grand_total_owed(totals), settings.currency))
c3.metric("Sales this week", fmt_money(week_sales, settings.currency))
c4.metric("Whole milk stock", f"{status.current_sacks:,.2f} sacks", f"{status.current_kg:,.1f} kg", delta_color="off")

st.caption(f"Week {window.start:%d/%m/%Y} to {window.end:%d/%m/%Y}. Client debt this week: {fmt_money(week_debt, settings.currency)}")

if not snap.providers:
    st.info(
        "No providers yet. Add them in **👥 Providers**, or load sample data from **🧪 Data Management**.",
        icon="ℹ️",
    )
else:
    st.subheader("Recent deliveries")
    recent = sorted(snap.deliveries, key=lambda d: d.date, reverse=True)[:10]
    if recent:
        st.dataframe(
            pd.DataFrame([{"Date": d.date, "Provider": d.provider_name, "Liters": d.quantity} for d in recent]),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.info("No deliveries recorded yet. Use **📝 Registry** to add one.")
