# ui/tabs/plan_tab.py
from datetime import date

import streamlit as st

from core.policy import edit_window
from core.time_utils import format_display_date, month_grid, shift_month
from services.catalog_service import ActivityCatalog
from services.day_store import DayStore
from ui.components.completion import completion_checkbox

DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def _select_date(d):
    st.session_state.selected_date = d


def _move_month(delta: int):
    y, m = st.session_state.cal_month
    st.session_state.cal_month = shift_month(y, m, delta)


def _add(store: DayStore, d, name: str):
    if store.add_activity(d, name).accepted:
        st.session_state.activity_input = ""
        st.toast("Saved")


def _create_from_query(store: DayStore, d):
    _add(store, d, st.session_state.get("activity_input", ""))


def render_calendar(store: DayStore):
    today = store.cal.today()
    st.session_state.setdefault("cal_month", (today.year, today.month))
    y, m = st.session_state.cal_month
    selected = st.session_state.selected_date

    c1, c2, c3 = st.columns([1, 3, 1])
    c1.button("◀", key="prev_month", on_click=_move_month, args=(-1,), width="stretch")
    c2.markdown(f"<h4 style='text-align:center'>{date(y, m, 1).strftime('%B %Y')}</h4>", unsafe_allow_html=True)
    c3.button("▶", key="next_month", on_click=_move_month, args=(1,), width="stretch")

    head = st.columns(7)
    for col, label in zip(head, DAY_LABELS):
        col.caption(label)

    for week in month_grid(y, m):
        cols = st.columns(7)
        for col, d in zip(cols, week):
            if d is None:
                col.write("")
                continue
            s = store.daily_stats(d)
            label = f"{d.day}"
            if d == today:
                label = f"•{label}"
            if s.total:
                label += f" · {s.completed}/{s.total}"
            col.button(label, key=f"cal_{d.isoformat()}", on_click=_select_date, args=(d,),
                       type=("primary" if d == selected else "secondary"), width="stretch")


def render_plan_section(store: DayStore, catalog: ActivityCatalog, d, window):
    st.subheader("📝 Plan")
    plan = store.get_plan(d)
    if window.plan_hint:
        st.caption(window.plan_hint)

    if window.can_plan:
        # typing only filters; adding goes through a suggestion or the Create button
        st.text_input("Activity", key="activity_input", placeholder="Type to search or create an activity...",
                      label_visibility="collapsed")
        query = st.session_state.get("activity_input", "")
        picks = catalog.suggestions(query)
        create = catalog.offers_create(query)
        if picks or create:
            cols = st.columns(len(picks) + (1 if create else 0))
            for i, name in enumerate(picks):
                cols[i].button(name, key=f"sugg_{i}_{name}", on_click=_add, args=(store, d, name))
            if create:
                cols[-1].button(f'+ Create "{query.strip()}"', key="sugg_create",
                                on_click=_create_from_query, args=(store, d))
    else:
        st.text_input("Activity", key="activity_input_locked", placeholder="Cannot plan for past dates",
                      disabled=True, label_visibility="collapsed")

    if not plan:
        st.info("No activities planned yet")
        return

    for i, act in enumerate(plan):
        c_name, c_up, c_down, c_del = st.columns([6, 1, 1, 1])
        c_name.write(act.name)
        if not window.can_plan:
            continue
        if i > 0:
            c_up.button("↑", key=f"up_{act.id}", on_click=store.reorder_activity, args=(d, act.id, plan[i - 1].id))
        if i < len(plan) - 1:
            c_down.button("↓", key=f"down_{act.id}", on_click=store.reorder_activity, args=(d, act.id, plan[i + 1].id))
        c_del.button("×", key=f"del_{act.id}", on_click=store.delete_activity, args=(d, act.id))


def render_check_section(store: DayStore, d, window):
    st.subheader("✅ Check")
    plan = store.get_plan(d)
    hint = window.check_hint(bool(plan))
    if hint:
        st.caption(hint)
    if not plan:
        st.info("No activities to check")
        return

    s = store.daily_stats(d)
    c1, c2 = st.columns(2)
    c1.metric("Completed", f"{s.completed}/{s.total}")
    c2.metric("Score", f"{s.percentage}%")

    for act in plan:
        completion_checkbox(store, d, act, "chk", disabled=not window.can_check)


def render_plan_tab(store: DayStore, catalog: ActivityCatalog):
    st.header("🗓️ Plan & Check")
    st.session_state.setdefault("selected_date", store.cal.today())
    st.caption(f"Today: **{format_display_date(store.cal.today())}**")

    left, right = st.columns([2, 3])
    with left:
        render_calendar(store)

    with right:
        d = st.session_state.selected_date
        window = edit_window(d, store.cal)
        st.subheader(format_display_date(d))
        st.write(" ".join(f"`{b}`" for b in window.status_badges))
        render_plan_section(store, catalog, d, window)
        st.divider()
        render_check_section(store, d, window)
