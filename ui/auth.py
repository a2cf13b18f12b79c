# ui/auth.py
import streamlit as st

from core.config import APP_TITLE, Settings
from core.context import UserContext


def require_user(settings: Settings) -> UserContext:
    """Identity for this session; stops the script on the login screen when signed out."""
    if not settings.auth_provider:
        return UserContext(user_id=settings.user_id)

    if not st.user.is_logged_in:
        st.title(f"{APP_TITLE}")
        st.caption("Plan your day. Check it off. Watch the streak grow.")
        st.button("🔐 Sign in with Google", on_click=st.login, args=[settings.auth_provider], type="primary")
        st.stop()

    uid = st.user.get("sub") or st.user.get("email")
    return UserContext(user_id=str(uid), email=st.user.get("email"), display_name=st.user.get("name"))


def render_account(ctx: UserContext, settings: Settings):
    st.sidebar.write(f"**User:** `{ctx.label}`")
    if settings.auth_provider:
        st.sidebar.button("Logout", on_click=st.logout)
