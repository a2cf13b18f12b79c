# ui/tabs/dashboard_tab.py
import numpy as np
import plotly.graph_objects as go
import streamlit as st

from core.config import Settings
from core.policy import can_edit_completion
from core.time_utils import format_display_date, format_short_date
from services.dashboard_service import (
    CELL_DAY, CELL_FUTURE, daily_frame, heatmap_grid, last_n_days_stats, month_labels, tile_tooltip,
)
from services.day_store import DayStore, ResetError
from ui.components.completion import completion_checkbox

HEAT_COLORS = ["#ebedf0", "#9be9a8", "#40c463", "#30a14e", "#216e39"]
DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def render_stats(store: DayStore, settings: Settings):
    rs = last_n_days_stats(store, store.cal, settings.stats_window_days)
    c1, c2, c3 = st.columns(3)
    c1.metric("Average Score", f"{rs.average}%")
    c2.metric("Best Day", f"{rs.best_percentage}% ({format_short_date(rs.best_date)})" if rs.best_date else "—")
    c3.metric("Total Completed", rs.total_completed)
    st.caption(f"Last {settings.stats_window_days} days · {rs.days_counted} planned days")


def render_heatmap(store: DayStore, settings: Settings):
    st.subheader("🔥 Activity Heatmap")
    grid = heatmap_grid(store, store.cal, settings.heatmap_start)
    if not grid:
        st.info(f"The heatmap starts on {format_short_date(settings.heatmap_start)}.")
        return

    # rows = weekday, cols = week; NaN leaves placeholder and future tiles blank
    z = np.full((7, len(grid)), np.nan)
    text = [["" for _ in grid] for _ in range(7)]
    for w, column in enumerate(grid):
        for k, cell in enumerate(column):
            if cell.kind == CELL_DAY:
                z[k, w] = cell.level
                text[k][w] = tile_tooltip(cell)
            elif cell.kind == CELL_FUTURE:
                text[k][w] = format_short_date(cell.date)

    scale = [[i / 4, c] for i, c in enumerate(HEAT_COLORS)]
    fig = go.Figure(go.Heatmap(z=z, text=text, hoverinfo="text", colorscale=scale, zmin=0, zmax=4,
                               showscale=False, xgap=3, ygap=3))
    labels = month_labels(settings.heatmap_start, store.cal.today())
    fig.update_layout(
        height=220, margin=dict(l=10, r=10, t=10, b=10),
        yaxis=dict(tickvals=list(range(7)), ticktext=DAY_LABELS, autorange="reversed"),
        xaxis=dict(tickvals=[w for w, _ in labels], ticktext=[m for _, m in labels], side="top"),
        plot_bgcolor="rgba(0,0,0,0)",
    )
    st.plotly_chart(fig, width="stretch")
    st.caption("Shading: 0% · 1-25% · 26-50% · 51-75% · 76-100%")


def render_day_detail(store: DayStore, settings: Settings):
    st.subheader("🔎 Day Detail")
    today = store.cal.today()
    if today < settings.heatmap_start:
        return
    d = st.date_input("Day", value=today, min_value=settings.heatmap_start, max_value=today, key="detail_day")
    s = store.daily_stats(d)
    st.write(f"**{format_display_date(d)}** — {s.percentage}% · {s.completed}/{s.total} completed")
    plan = store.get_plan(d)
    if not plan:
        st.info("No activities planned")
        return
    editable = can_edit_completion(d, store.cal)
    for act in plan:
        completion_checkbox(store, d, act, "detail", disabled=not editable)
    with st.expander("Daily breakdown", expanded=False):
        df = daily_frame(store, settings.heatmap_start, today)
        st.bar_chart(df.set_index("date")["percentage"])


def render_reset(store: DayStore):
    with st.expander("⚠️ Danger Zone", expanded=False):
        st.write("This permanently deletes ALL your data: the activity catalog, every plan and every completion record.")
        first = st.checkbox("I understand this cannot be undone", key="reset_confirm_1")
        second = st.checkbox("Yes, delete everything", key="reset_confirm_2", disabled=not first)
        if st.button("Reset All Data", type="primary", disabled=not (first and second)):
            try:
                store.reset_all()
            except ResetError:
                st.error("❌ Failed to delete data. Please try again or contact support.")
            else:
                st.success("✅ All data has been successfully deleted.")


def render_dashboard_tab(store: DayStore, settings: Settings):
    st.header("📊 Dashboard")
    render_stats(store, settings)
    st.divider()
    render_heatmap(store, settings)
    st.divider()
    render_day_detail(store, settings)
    st.divider()
    render_reset(store)
