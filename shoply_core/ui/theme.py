import streamlit as st

# === COLOR PALETTE ===
PRIMARY_COLOR    = "#2563eb"
SECONDARY_COLOR  = "#7c3aed"
SUCCESS_COLOR    = "#10b981"
WARNING_COLOR    = "#f59e0b"
DANGER_COLOR     = "#ef4444"
TEXT_COLOR       = "#111827"
SUBTLE_TEXT      = "#4b5563"
GRID_COLOR       = "#e5e7eb"
BACKGROUND_COLOR = "#f9fafb"
CARD_BG_LIGHT    = "#ffffff"


def apply_css():
    """Global styles shared by every page."""
    st.markdown(f"""
        <style>
        .main {{
            background-color: {BACKGROUND_COLOR};
            color: {TEXT_COLOR};
            font-family: 'Inter','Segoe UI',sans-serif;
        }}
        .hero {{
            background: linear-gradient(135deg, {PRIMARY_COLOR} 0%, {SECONDARY_COLOR} 100%);
            padding: 3rem 2rem; border-radius: 16px; margin-bottom: 2rem; color: white;
            box-shadow: 0 8px 32px rgba(37,99,235,.25);
        }}
        .hero h1 {{ color: white; font-size: 2.6rem; margin: 0; }}
        .hero p {{ color: rgba(255,255,255,.9); font-size: 1.15rem; margin: .75rem 0 0 0; }}
        .feature-card, .plan-card {{
            background: {CARD_BG_LIGHT}; padding: 1.3rem; border-radius: 14px; margin: .6rem 0;
            border: 1px solid {GRID_COLOR}; box-shadow: 0 4px 8px rgba(0,0,0,0.05);
        }}
        .plan-card.current {{ border: 2px solid {PRIMARY_COLOR}; }}
        .plan-price {{ font-size: 2rem; font-weight: 700; color: {TEXT_COLOR}; }}
        .status-pill {{
            display: inline-block; padding: .15rem .6rem; border-radius: 999px;
            font-size: .8rem; font-weight: 600;
        }}
        .status-online {{ background: {SUCCESS_COLOR}22; color: {SUCCESS_COLOR}; }}
        .status-training {{ background: {WARNING_COLOR}22; color: {WARNING_COLOR}; }}
        .status-offline {{ background: {GRID_COLOR}; color: {SUBTLE_TEXT}; }}
        .stButton button {{
            background: linear-gradient(135deg, {PRIMARY_COLOR} 0%, {SECONDARY_COLOR} 100%);
            color: white; border: none; border-radius: 10px; padding: .48rem 1.2rem; font-weight: 600;
        }}
        .stButton button:disabled {{ background: #d1d5db; color: #6b7280; cursor: not-allowed; }}
        h1,h2,h3,h4 {{ color: {TEXT_COLOR}; font-weight: 600; }}
        [data-testid="stSidebar"] {{ background-color: {CARD_BG_LIGHT}; border-right: 1px solid {GRID_COLOR}; }}
        </style>
    """, unsafe_allow_html=True)


def hero_card(title: str, subtitle: str):
    st.markdown(f"""
        <div class="hero">
            <h1>{title}</h1>
            <p>{subtitle}</p>
        </div>
    """, unsafe_allow_html=True)


def feature_card(icon: str, title: str, description: str):
    st.markdown(f"""
        <div class="feature-card">
            <div style="font-size:2rem;">{icon}</div>
            <h4 style="margin:.4rem 0;">{title}</h4>
            <p style="color:{SUBTLE_TEXT};margin:0;">{description}</p>
        </div>
    """, unsafe_allow_html=True)


def status_pill(status: str) -> str:
    return f'<span class="status-pill status-{status}">{status}</span>'
