# shoply_core/ui/__init__.py
"""
Streamlit rendering helpers: theme, shared page chrome and auth forms.
Pages import from the submodules directly.
"""
