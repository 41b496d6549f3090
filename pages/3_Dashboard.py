from __future__ import annotations
import streamlit as st

from shoply_core.auth.navigation import Page
from shoply_core.errors.handlers import error_boundary, safe_execute
from shoply_core.services.account_service import field_errors
from shoply_core.ui.components import page_setup, require_session
from shoply_core.ui.state import call, run
from shoply_core.ui.theme import status_pill

MODELS = {"gpt-3.5-turbo": "GPT-3.5 Turbo", "gpt-4": "GPT-4"}
LANGUAGES = {"en": "English", "es": "Spanish", "fr": "French"}
TONES = {"professional": "Professional", "casual": "Casual", "friendly": "Friendly"}


def chatbot_form(context, user_id: str):
    with st.form("create_chatbot_form", clear_on_submit=False):
        name = st.text_input("Name")
        description = st.text_area("Description")
        model = st.selectbox("Model", list(MODELS), format_func=MODELS.get)
        col1, col2 = st.columns(2)
        with col1:
            language = st.selectbox("Language", list(LANGUAGES), format_func=LANGUAGES.get)
            personality = st.text_input("Personality", value="helpful")
        with col2:
            tone = st.selectbox("Tone", list(TONES), format_func=TONES.get)
            max_response_length = st.number_input(
                "Max response length", min_value=0, max_value=1000, value=150, step=10
            )
        temperature = st.number_input(
            "Temperature", min_value=0.0, max_value=2.0, value=0.7, step=0.1
        )
        submitted = st.form_submit_button("Create chatbot")

    if submitted:
        result = run(context.accounts.create_chatbot(user_id, {
            "name": name,
            "description": description,
            "model": model,
            "language": language,
            "tone": tone,
            "personality": personality,
            "max_response_length": int(max_response_length),
            "temperature": float(temperature),
        }))
        if result:
            st.success(f"Chatbot '{result.data.name}' created.")
            st.rerun()
        for message in list(field_errors(result).values()) or [result.error]:
            st.error(message)


@error_boundary
def render_dashboard():
    context = page_setup(Page.DASHBOARD, "Dashboard")
    if not require_session(context):
        return

    snapshot = call(context.session.snapshot)
    user_id = snapshot.current_identity.id
    name = snapshot.user_profile.name if snapshot.user_profile else snapshot.current_identity.email

    st.markdown(f"# Welcome back, {name}")

    chatbots = safe_execute(
        run, context.data.get_chatbots(user_id),
        default=[],
        error_message="Failed to load chatbots. Please try again.",
    )

    st.markdown("## Your chatbots")
    if not chatbots:
        st.info("You have no chatbots yet. Create your first one below.")
    for chatbot in chatbots:
        with st.container(border=True):
            st.markdown(
                f"**{chatbot.name}** {status_pill(chatbot.status.value)}",
                unsafe_allow_html=True,
            )
            if chatbot.description:
                st.caption(chatbot.description)
            st.caption(
                f"{MODELS.get(chatbot.model, chatbot.model)} · "
                f"{LANGUAGES.get(chatbot.settings.language, chatbot.settings.language)} · "
                f"{chatbot.settings.tone} · max {chatbot.settings.max_response_length} chars · "
                f"temperature {chatbot.settings.temperature:g}"
            )

    with st.expander("Create a chatbot", expanded=not chatbots):
        chatbot_form(context, user_id)


render_dashboard()
