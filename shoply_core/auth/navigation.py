# =============================================================================
# shoply_core/auth/navigation.py
# Page Routing State and Route Guard
# =============================================================================
"""
Explicit navigation state plus the guard that decides what a page may show.

The Streamlit layer keeps one NavigationState per browser session and calls
``resolve_route(session.snapshot(), page)`` before rendering a page body.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from shoply_core.auth.session import SessionSnapshot


class Page(Enum):
    HOME = "home"
    PRICING = "pricing"
    DOCS = "docs"
    DASHBOARD = "dashboard"
    ACCOUNT = "account"


PUBLIC_PAGES = frozenset({Page.HOME, Page.PRICING, Page.DOCS})
PROTECTED_PAGES = frozenset({Page.DASHBOARD, Page.ACCOUNT})

# Where signed-out visitors are sent; the sign-in form lives on the home page
SIGN_IN_PAGE = Page.HOME


class RouteDecision(Enum):
    RENDER = "render"                   # Show the page
    WAIT = "wait"                       # Identity not resolved yet
    SESSION_EXPIRED = "session_expired" # Offer refresh or sign in
    REDIRECT = "redirect"               # Go to ``redirect_to``


@dataclass(frozen=True)
class Route:
    decision: RouteDecision
    page: Page
    redirect_to: Optional[Page] = None


def resolve_route(snapshot: SessionSnapshot, page: Page) -> Route:
    """Decide how ``page`` is handled for the given session."""
    if page in PUBLIC_PAGES:
        return Route(RouteDecision.RENDER, page)
    if snapshot.loading:
        return Route(RouteDecision.WAIT, page)
    if snapshot.session_expired:
        return Route(RouteDecision.SESSION_EXPIRED, page)
    if snapshot.current_identity is None:
        return Route(RouteDecision.REDIRECT, page, redirect_to=SIGN_IN_PAGE)
    return Route(RouteDecision.RENDER, page)


@dataclass
class NavigationState:
    """Current page and the pages visited before it."""
    current_page: Page = Page.HOME
    history: List[Page] = field(default_factory=list)

    def navigate(self, page: Page) -> Page:
        if page is not self.current_page:
            self.history.append(self.current_page)
            self.current_page = page
        return self.current_page

    def back(self) -> Page:
        if self.history:
            self.current_page = self.history.pop()
        return self.current_page

    def resolve(self, snapshot: SessionSnapshot) -> Route:
        """Guard the current page, following a redirect if one is needed."""
        route = resolve_route(snapshot, self.current_page)
        if route.decision is RouteDecision.REDIRECT and route.redirect_to is not None:
            self.navigate(route.redirect_to)
        return route
