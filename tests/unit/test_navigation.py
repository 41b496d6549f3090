# =============================================================================
# tests/unit/test_navigation.py
# Unit Tests for the route guard and navigation state
# =============================================================================

import pytest

from shoply_core.auth.navigation import (
    PROTECTED_PAGES,
    PUBLIC_PAGES,
    NavigationState,
    Page,
    RouteDecision,
    resolve_route,
)
from shoply_core.auth.session import SessionSnapshot, SessionState


class _Identity:
    id = "uid-1"
    email = "ada@example.com"


def snapshot(state, identity=None):
    return SessionSnapshot(state=state, current_identity=identity, user_profile=None)


class TestResolveRoute:
    """What each session state may see"""

    @pytest.mark.parametrize("page", sorted(PUBLIC_PAGES, key=lambda p: p.value))
    @pytest.mark.parametrize("state", list(SessionState))
    def test_public_pages_always_render(self, page, state):
        assert resolve_route(snapshot(state), page).decision is RouteDecision.RENDER

    @pytest.mark.parametrize("page", sorted(PROTECTED_PAGES, key=lambda p: p.value))
    def test_loading_waits(self, page):
        assert resolve_route(snapshot(SessionState.LOADING), page).decision is RouteDecision.WAIT

    def test_expired_offers_refresh(self):
        route = resolve_route(snapshot(SessionState.SESSION_EXPIRED), Page.DASHBOARD)

        assert route.decision is RouteDecision.SESSION_EXPIRED

    def test_anonymous_is_redirected_to_sign_in(self):
        route = resolve_route(snapshot(SessionState.ANONYMOUS), Page.ACCOUNT)

        assert route.decision is RouteDecision.REDIRECT
        assert route.redirect_to is Page.HOME

    def test_authenticated_renders(self):
        route = resolve_route(snapshot(SessionState.AUTHENTICATED, _Identity()), Page.DASHBOARD)

        assert route.decision is RouteDecision.RENDER


class TestNavigationState:
    """History and redirects"""

    def test_navigate_and_back(self):
        nav = NavigationState()

        nav.navigate(Page.PRICING)
        nav.navigate(Page.DOCS)

        assert nav.back() is Page.PRICING
        assert nav.back() is Page.HOME
        assert nav.back() is Page.HOME

    def test_navigating_to_current_page_is_a_no_op(self):
        nav = NavigationState()

        nav.navigate(Page.HOME)

        assert nav.history == []

    def test_resolve_follows_redirect(self):
        nav = NavigationState()
        nav.navigate(Page.DASHBOARD)

        route = nav.resolve(snapshot(SessionState.ANONYMOUS))

        assert route.decision is RouteDecision.REDIRECT
        assert nav.current_page is Page.HOME
