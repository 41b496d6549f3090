from __future__ import annotations
import streamlit as st

from shoply_core.auth.navigation import Page
from shoply_core.errors.handlers import error_boundary
from shoply_core.ui.components import (
    forgot_password_form,
    go_to,
    page_setup,
    sign_in_form,
    sign_up_form,
)
from shoply_core.ui.state import call
from shoply_core.ui.theme import feature_card, hero_card

FEATURES = [
    ("🤖", "AI-Powered Sales",
     "Convert more customers with intelligent conversations that understand intent and context."),
    ("📊", "Smart Analytics",
     "Get real-time insights into customer behavior and optimize your sales strategy."),
    ("🔒", "Secure & Reliable",
     "Enterprise-grade security with 99.99% uptime guarantee for your peace of mind."),
]


@error_boundary
def render_home():
    context = page_setup(Page.HOME, "Home")

    hero_card(
        "Transform Your Business with AI-Powered Chat Commerce",
        "Automate sales and support across messaging platforms with AI that "
        "understands your customers and drives growth.",
    )

    cols = st.columns(len(FEATURES))
    for col, (icon, title, description) in zip(cols, FEATURES):
        with col:
            feature_card(icon, title, description)

    st.markdown("## Get started")
    snapshot = call(context.session.snapshot)
    if snapshot.is_authenticated:
        st.success("You are signed in.")
        if st.button("Go to dashboard", key="home_dashboard"):
            go_to(Page.DASHBOARD)
        return

    sign_in_tab, sign_up_tab, reset_tab = st.tabs(["Sign in", "Create account", "Forgot password"])
    with sign_in_tab:
        sign_in_form(context)
    with sign_up_tab:
        sign_up_form(context)
    with reset_tab:
        forgot_password_form(context)


render_home()
