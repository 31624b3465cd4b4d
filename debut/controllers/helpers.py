"""Shared helpers for post controllers."""

from litestar import Request

from debut.bootstrap import AppearanceDatePlugin
from debut.db.services.post_service import QueryContext
from debut.lib.hooks import HookRegistry


def query_context(request: Request) -> QueryContext:
    """A fresh per-request listing context for the session's viewer."""
    return QueryContext(user_id=request.session.get("user_id"))


def get_plugin(request: Request) -> AppearanceDatePlugin:
    return request.app.state.appearance


def get_registry(request: Request) -> HookRegistry:
    """The hook registry of the app serving *request*."""
    return get_plugin(request).registry
