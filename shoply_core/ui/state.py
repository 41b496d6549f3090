# =============================================================================
# shoply_core/ui/state.py
# Per-browser-session access to the core from Streamlit pages
# =============================================================================
"""
One AsyncRunner (event loop thread) is shared by the whole Streamlit server.
Each browser session gets its own AppContext, kept in ``st.session_state``,
because it holds that visitor's auth session, cache and pending writes.
"""

from __future__ import annotations
import os
from typing import Any, Dict

import streamlit as st
from dotenv import load_dotenv

from shoply_core.config import AppConfig, load_config
from shoply_core.context import AppContext, AppContextHandle
from shoply_core.logging import get_logger, level_for_environment, setup_logging
from shoply_core.runtime import AsyncRunner

logger = get_logger(__name__)

CONTEXT_KEY = "shoply_context"
SECRETS_SECTION = "shoply"


def _secret_values() -> Dict[str, Any]:
    try:
        if SECRETS_SECTION in st.secrets:
            return {k: str(v) for k, v in st.secrets[SECRETS_SECTION].items()}
    except FileNotFoundError:
        # No secrets.toml; environment only
        pass
    return {}


@st.cache_resource
def get_app_config() -> AppConfig:
    """Environment (and .env) overlaid with the ``[shoply]`` secrets section."""
    load_dotenv()
    values: Dict[str, Any] = dict(os.environ)
    values.update(_secret_values())
    config = load_config(values)
    setup_logging(
        level=level_for_environment(config.environment, config.log_level),
        log_to_file=not config.is_development,
    )
    return config


@st.cache_resource
def get_runner() -> AsyncRunner:
    runner = AsyncRunner()
    runner.start()
    return runner


def get_context() -> AppContext:
    """The started AppContext of this browser session."""
    if CONTEXT_KEY not in st.session_state:
        config = get_app_config()
        runner = get_runner()

        async def _build() -> AppContext:
            context = await AppContext.create(config)
            await context.start()
            return context

        # The handle stops the context once Streamlit discards this session
        st.session_state[CONTEXT_KEY] = AppContextHandle(runner.run(_build()), runner)
        logger.info("Created application context for new browser session")
    return st.session_state[CONTEXT_KEY].context


def run(coro, timeout: float = AsyncRunner.DEFAULT_TIMEOUT):
    """Run a core coroutine from page code."""
    return get_runner().run(coro, timeout=timeout)


def call(func, *args):
    """Run a plain core method on the loop thread and return its result."""
    async def _call():
        return func(*args)
    return run(_call())
