# ui/components/completion.py
import streamlit as st

from services.day_store import DayStore


def _mark(store: DayStore, d, activity_id: str, key: str):
    store.mark_completion(d, activity_id, bool(st.session_state.get(key, False)))


def completion_checkbox(store: DayStore, d, activity, prefix: str, disabled: bool = False) -> bool:
    """Checkbox bound to the stored completion flag for one planned activity.

    The widget state is overwritten from the store on every run, so two boxes
    for the same activity in different tabs never drift apart.
    """
    key = f"{prefix}_{d.isoformat()}_{activity.id}"
    st.session_state[key] = bool(store.get_completion(d).get(activity.id))
    return st.checkbox(activity.name, key=key, disabled=disabled,
                       on_change=_mark, args=(store, d, activity.id, key))
