from __future__ import annotations
import streamlit as st

from shoply_core.auth.navigation import Page
from shoply_core.errors.handlers import error_boundary
from shoply_core.ui.components import page_setup
from shoply_core.ui.theme import feature_card

GUIDES = [
    ("📘", "Getting Started", "Quick start guide to set up your first chatbot"),
    ("💡", "Best Practices", "Learn how to build effective conversational flows"),
    ("🔧", "Configuration", "Detailed configuration options and customization"),
    ("⚡", "AI Features", "Advanced AI capabilities and implementation"),
    ("🔒", "Security", "Security best practices and compliance"),
    ("📄", "API Reference", "Complete API documentation and examples"),
]


@error_boundary
def render_docs():
    page_setup(Page.DOCS, "Docs")

    st.markdown("# Documentation")
    st.caption(
        "Everything you need to know about building conversational commerce "
        "experiences with Shoply."
    )

    search = st.text_input("Search documentation...", key="docs_search").strip().lower()
    guides = [
        guide for guide in GUIDES
        if not search or search in guide[1].lower() or search in guide[2].lower()
    ]
    if not guides:
        st.info("No guides match your search.")
        return

    cols = st.columns(3)
    for i, (icon, title, description) in enumerate(guides):
        with cols[i % 3]:
            feature_card(icon, title, description)


render_docs()
