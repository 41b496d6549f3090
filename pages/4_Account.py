from __future__ import annotations
import pandas as pd
import streamlit as st

from shoply_core.auth.navigation import Page
from shoply_core.errors.handlers import error_boundary, safe_execute
from shoply_core.models import UserSettings
from shoply_core.services.account_service import field_errors
from shoply_core.ui.components import go_to, page_setup, require_session
from shoply_core.ui.state import call, run

THEMES = ["light", "dark"]
LANGUAGES = {"en": "English", "es": "Spanish", "fr": "French"}


def _index(options, value) -> int:
    return options.index(value) if value in options else 0


def invoices_frame(invoices) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Date": invoice.date.strftime("%b %d, %Y"),
                "Amount": f"${invoice.amount:,.2f}",
                "Invoice number": invoice.invoice_number,
                "Status": invoice.status.value.title(),
            }
            for invoice in invoices
        ],
        columns=["Date", "Amount", "Invoice number", "Status"],
    )


def general_section(context, user_id: str, profile):
    st.markdown("## Profile")
    with st.form("profile_form"):
        name = st.text_input("Name", value=profile.name if profile else "")
        email = st.text_input("Email", value=profile.email if profile else "")
        phone = st.text_input("Phone", value=(profile.phone or "") if profile else "")
        company = st.text_input("Company", value=(profile.company or "") if profile else "")
        position = st.text_input("Position", value=(profile.position or "") if profile else "")

        st.markdown("### Preferences")
        settings = profile.settings if profile else UserSettings()
        theme = st.selectbox("Theme", THEMES, index=_index(THEMES, settings.theme))
        language = st.selectbox(
            "Language", list(LANGUAGES), index=_index(list(LANGUAGES), settings.language),
            format_func=LANGUAGES.get,
        )
        notifications = st.checkbox("Email notifications", value=settings.notifications)
        submitted = st.form_submit_button("Save changes")

    if submitted:
        result = run(context.accounts.update_profile(user_id, {
            "name": name,
            "email": email,
            "phone": phone or None,
            "company": company or None,
            "position": position or None,
            "settings": {"theme": theme, "notifications": notifications, "language": language},
        }))
        if result:
            safe_execute(run, context.session.reload_profile())
            st.success("Profile updated successfully.")
        else:
            for message in list(field_errors(result).values()) or [result.error]:
                st.error(message)


def billing_section(context, user_id: str):
    st.markdown("## Subscription")
    subscription = safe_execute(
        run, context.data.get_active_subscription(user_id),
        error_message="Failed to load your subscription",
    )
    if subscription is None:
        st.info("You are not subscribed to a plan yet.")
        if st.button("See plans", key="see_plans"):
            go_to(Page.PRICING)
        return

    plan = safe_execute(run, context.data.get_plan(subscription.plan_id))
    plan_name = plan.name if plan else subscription.plan_id
    period = "yearly" if subscription.is_yearly else "monthly"
    st.write(f"**{plan_name}** ({period})")
    if subscription.end_date:
        st.caption(f"Renews on {subscription.end_date.strftime('%b %d, %Y')}")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Change subscription plan", key="change_plan"):
            go_to(Page.PRICING)
    with col2:
        if st.button("Cancel subscription", key="cancel_subscription"):
            result = run(context.accounts.cancel_subscription(subscription.id))
            if result:
                st.success("Your subscription has been cancelled.")
                st.rerun()
            st.error(result.error)


def invoices_section(context, user_id: str):
    st.markdown("## Invoices")
    invoices = safe_execute(
        run, context.data.get_invoices(user_id),
        default=[],
        error_message="Failed to load invoices",
    )
    if not invoices:
        st.info("No invoices yet.")
        return
    st.dataframe(invoices_frame(invoices), hide_index=True, use_container_width=True)
    st.caption(f"Showing {len(invoices)} invoice(s)")


@error_boundary
def render_account():
    context = page_setup(Page.ACCOUNT, "Account")
    if not require_session(context):
        return

    snapshot = call(context.session.snapshot)
    user_id = snapshot.current_identity.id

    st.markdown("# Account")
    general, billing, invoices = st.tabs(["General", "Billing", "Invoices"])
    with general:
        general_section(context, user_id, snapshot.user_profile)
    with billing:
        billing_section(context, user_id)
    with invoices:
        invoices_section(context, user_id)


render_account()
