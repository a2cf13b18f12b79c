# app.py
import streamlit as st

from core.config import APP_TITLE, PAGE_ICON, load_settings
from core.db import ensure_indexes, get_db
from core.logger import setup_logger
from core.time_utils import IST, format_display_date
from data_access.collections import from_db
from services.catalog_service import ActivityCatalog
from services.day_store import DayStore
from ui.auth import render_account, require_user
from ui.tabs.dashboard_tab import render_dashboard_tab
from ui.tabs.plan_tab import render_plan_tab

st.set_page_config(page_title=APP_TITLE, page_icon=PAGE_ICON, layout="wide")

settings = load_settings()
setup_logger(settings.log_level, settings.log_file)

ctx = require_user(settings)
db = get_db(settings.mongo_uri, settings.db_name)

# one hydrated store per signed-in user and browser session
if st.session_state.get("store_user") != ctx.user_id:
    ensure_indexes(db, settings)
    st.session_state.store = DayStore(ctx, from_db(db, settings), IST).hydrate()
    st.session_state.store_user = ctx.user_id
store = st.session_state.store
catalog = ActivityCatalog(store)

# Sidebar
st.sidebar.header("⚙️ Connection")
st.sidebar.write(f"**DB:** `{db.name}`")
render_account(ctx, settings)
st.sidebar.caption(format_display_date(IST.today()))

with st.sidebar.expander("📚 Activity Catalog", expanded=False):
    names = catalog.sorted_names()
    if names:
        st.write("\n".join(f"- {n}" for n in names))
    else:
        st.caption("Nothing yet. Add an activity to start the catalog.")

# Tabs
tab1, tab2 = st.tabs(["🗓️ Plan", "📊 Dashboard"])

with tab1:
    render_plan_tab(store, catalog)

with tab2:
    render_dashboard_tab(store, settings)
