from __future__ import annotations
import streamlit as st

from shoply_core.auth.navigation import Page
from shoply_core.errors.handlers import error_boundary, safe_execute
from shoply_core.ui.components import go_to, page_setup
from shoply_core.ui.state import call, run


@error_boundary
def render_pricing():
    context = page_setup(Page.PRICING, "Pricing")

    st.markdown("# Simple, transparent pricing")
    st.caption("Choose the plan that fits your business. Upgrade or downgrade at any time.")

    is_yearly = st.toggle("Yearly billing (Save 20%)", key="pricing_yearly")
    period = "year" if is_yearly else "month"

    plans = safe_execute(
        run, context.data.get_plans(),
        default=[],
        error_message="Failed to load plans",
    )
    if not plans:
        st.info("No plans are available right now.")
        return

    snapshot = call(context.session.snapshot)
    current_plan_id = None
    if snapshot.is_authenticated:
        subscription = safe_execute(
            run, context.data.get_active_subscription(snapshot.current_identity.id),
            error_message="Failed to load your subscription",
        )
        current_plan_id = subscription.plan_id if subscription else None

    cols = st.columns(len(plans))
    for col, plan in zip(cols, plans):
        with col:
            current = plan.id == current_plan_id
            products = "Unlimited products" if plan.unlimited_products else f"Up to {plan.max_products} products"
            features = "".join(f"<li>{feature}</li>" for feature in plan.features)
            st.markdown(f"""
                <div class="plan-card{' current' if current else ''}">
                    <h3>{plan.name}</h3>
                    <div class="plan-price">${plan.price_for(is_yearly):,.0f}<span style="font-size:1rem;">/{period}</span></div>
                    <p>{products} · {plan.transaction_fee:g}% transaction fee</p>
                    <ul>{features}</ul>
                </div>
            """, unsafe_allow_html=True)

            if current:
                st.button("Current plan", key=f"plan_{plan.id}", disabled=True)
            elif st.button("Choose plan", key=f"plan_{plan.id}"):
                if not snapshot.is_authenticated:
                    go_to(Page.HOME)
                result = run(context.accounts.change_plan(
                    snapshot.current_identity.id, plan.id, is_yearly
                ))
                if result:
                    st.success(f"You are now on the {plan.name} plan.")
                    st.rerun()
                else:
                    st.error(result.error)


render_pricing()
