# =============================================================================
# shoply_core/ui/components.py
# Shared page pieces: header, banner, route guard, auth forms
# =============================================================================

from __future__ import annotations
import streamlit as st

from shoply_core.auth.navigation import Page, RouteDecision
from shoply_core.auth.session import SessionSnapshot
from shoply_core.context import AppContext
from shoply_core.services.account_service import field_errors
from .state import call, get_context, run
from .theme import apply_css

PAGE_FILES = {
    Page.HOME: "Welcome.py",
    Page.PRICING: "pages/1_Pricing.py",
    Page.DOCS: "pages/2_Docs.py",
    Page.DASHBOARD: "pages/3_Dashboard.py",
    Page.ACCOUNT: "pages/4_Account.py",
}

PAGE_LABELS = {
    Page.HOME: ("Home", "🏠"),
    Page.PRICING: ("Pricing", "💳"),
    Page.DOCS: ("Docs", "📚"),
    Page.DASHBOARD: ("Dashboard", "🤖"),
    Page.ACCOUNT: ("Account", "👤"),
}


def go_to(page: Page):
    st.switch_page(PAGE_FILES[page])


def page_setup(page: Page, title: str) -> AppContext:
    """
    Common start of every page: config, styles, context, activity, sidebar.
    """
    st.set_page_config(page_title=f"Shoply - {title}", page_icon="🛍️", layout="wide")
    apply_css()
    context = get_context()
    # Every rerun is the result of a user interaction
    call(context.session.record_activity, "click")
    call(context.navigation.navigate, page)
    render_sidebar(context)
    connection_banner(context)
    return context


def render_sidebar(context: AppContext):
    snapshot: SessionSnapshot = call(context.session.snapshot)
    with st.sidebar:
        st.markdown("## 🛍️ Shoply")
        for page, (label, icon) in PAGE_LABELS.items():
            st.page_link(PAGE_FILES[page], label=label, icon=icon)

        st.divider()
        if snapshot.current_identity is not None and not snapshot.session_expired:
            name = snapshot.user_profile.name if snapshot.user_profile else snapshot.current_identity.email
            st.caption(f"Signed in as **{name}**")
            if st.button("Sign out", key="sidebar_sign_out"):
                result = run(context.accounts.sign_out())
                if not result:
                    st.error(result.error)
                else:
                    go_to(Page.HOME)


def connection_banner(context: AppContext):
    """Offline / connection-failure message with a dismiss action."""
    status = call(context.monitor.get_status_display)
    if status["error"]:
        col1, col2 = st.columns([6, 1])
        with col1:
            if status["is_online"]:
                st.error(status["error"])
            else:
                st.warning(status["error"])
        with col2:
            if st.button("Dismiss", key="dismiss_connection_error"):
                call(context.monitor.dismiss_error)
                st.rerun()
    if status["pending_operations"]:
        st.caption(f"⏳ {status['pending_operations']} change(s) will sync when you are back online.")


def require_session(context: AppContext) -> bool:
    """
    Route guard for protected pages.

    Returns:
        True if the page body may render
    """
    route = call(context.navigation.resolve, call(context.session.snapshot))

    if route.decision is RouteDecision.WAIT:
        with st.spinner("Loading your session..."):
            run(context.session.wait_for_events())
        st.rerun()
    if route.decision is RouteDecision.SESSION_EXPIRED:
        session_expired_screen(context)
        return False
    if route.decision is RouteDecision.REDIRECT:
        st.info("Please sign in to access this page.")
        go_to(route.redirect_to)
        return False
    return True


def session_expired_screen(context: AppContext):
    st.markdown("## ⚠️ Session Expired")
    st.write("Your session has expired. Please sign in again to continue.")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Refresh Session", key="refresh_session"):
            result = run(context.accounts.refresh_session())
            if result:
                st.rerun()
            st.error(result.error)
    with col2:
        if st.button("Sign In", key="expired_sign_in"):
            run(context.accounts.sign_out())
            go_to(Page.HOME)


def _show_result_errors(result):
    errors = field_errors(result)
    if errors:
        for field_name, message in errors.items():
            st.error(f"**{field_name.replace('_', ' ').title()}**: {message}")
    else:
        st.error(result.error)


def sign_in_form(context: AppContext):
    with st.form("sign_in_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in")
    if submitted:
        result = run(context.accounts.sign_in(email, password))
        if result:
            run(context.session.wait_for_events())
            go_to(Page.DASHBOARD)
        else:
            _show_result_errors(result)


def sign_up_form(context: AppContext):
    with st.form("sign_up_form"):
        name = st.text_input("Full name")
        email = st.text_input("Email", key="sign_up_email")
        password = st.text_input("Password", type="password", key="sign_up_password")
        confirm = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button("Create account")
    if submitted:
        result = run(context.accounts.sign_up(email, password, confirm, name))
        if result:
            st.success("Account created. Welcome to Shoply!")
            run(context.session.wait_for_events())
            go_to(Page.DASHBOARD)
        else:
            _show_result_errors(result)


def forgot_password_form(context: AppContext):
    with st.form("forgot_password_form"):
        email = st.text_input("Email", key="reset_email")
        submitted = st.form_submit_button("Send reset link")
    if submitted:
        result = run(context.accounts.reset_password(email))
        if result:
            st.success("Check your email for a link to reset your password.")
        else:
            _show_result_errors(result)
