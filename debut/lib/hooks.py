"""Action/filter hook registry used by the post pipeline and the admin screens.

Actions run callbacks for their side effects. Filters thread a value through
every callback and return the result. Callbacks may be plain functions or
coroutines, and run in ascending priority order.

Usage:
    from debut.lib.hooks import hooks, POSTS_WHERE, AFTER_POST_SAVE

    hooks.add_filter(POSTS_WHERE, augmenter.filter_where)
    hooks.add_action(AFTER_POST_SAVE, on_save, priority=20)

    where = await hooks.apply_filters(POSTS_WHERE, where, query, context)
    await hooks.do_action(AFTER_POST_SAVE, db_session, post, form)
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

T = TypeVar("T")


@dataclass(order=True)
class HookHandler:
    """A registered hook handler with priority."""

    priority: int
    callback: Callable = field(compare=False)

    async def call(self, *args: Any, **kwargs: Any) -> Any:
        """Call the handler, awaiting the result when it is a coroutine."""
        result = self.callback(*args, **kwargs)
        if asyncio.iscoroutine(result):
            return await result
        return result


class HookRegistry:
    """Registry of action and filter handlers keyed by hook name."""

    def __init__(self) -> None:
        self._actions: dict[str, list[HookHandler]] = defaultdict(list)
        self._filters: dict[str, list[HookHandler]] = defaultdict(list)

    def add_action(
        self,
        hook_name: str,
        callback: Callable[..., Any],
        priority: int = 10,
    ) -> None:
        """Register an action callback.

        Args:
            hook_name: Name of the action hook
            callback: Function to call when the action fires
            priority: Lower numbers execute first (default: 10)
        """
        self._actions[hook_name].append(HookHandler(priority=priority, callback=callback))
        self._actions[hook_name].sort()

    def add_filter(
        self,
        hook_name: str,
        callback: Callable[..., T],
        priority: int = 10,
    ) -> None:
        """Register a filter callback.

        Args:
            hook_name: Name of the filter hook
            callback: Function receiving the value (and context) and returning it
            priority: Lower numbers execute first (default: 10)
        """
        self._filters[hook_name].append(HookHandler(priority=priority, callback=callback))
        self._filters[hook_name].sort()

    def remove_action(self, hook_name: str, callback: Callable[..., Any]) -> bool:
        """Remove an action callback. Returns True if it was registered."""
        return _remove(self._actions.get(hook_name, []), callback)

    def remove_filter(self, hook_name: str, callback: Callable[..., Any]) -> bool:
        """Remove a filter callback. Returns True if it was registered."""
        return _remove(self._filters.get(hook_name, []), callback)

    def has_action(self, hook_name: str, callback: Callable[..., Any] | None = None) -> bool:
        """Check whether an action hook has handlers (or this specific callback)."""
        return _contains(self._actions.get(hook_name, []), callback)

    def has_filter(self, hook_name: str, callback: Callable[..., Any] | None = None) -> bool:
        """Check whether a filter hook has handlers (or this specific callback)."""
        return _contains(self._filters.get(hook_name, []), callback)

    async def do_action(self, hook_name: str, *args: Any, **kwargs: Any) -> None:
        """Execute every action callback registered for ``hook_name``."""
        from debut.lib.observability import span

        with span(f"hook.action:{hook_name}", hook_name=hook_name):
            for handler in list(self._actions.get(hook_name, [])):
                await handler.call(*args, **kwargs)

    async def apply_filters(self, hook_name: str, value: T, *args: Any, **kwargs: Any) -> T:
        """Pass ``value`` through every filter callback and return the result.

        Extra positional and keyword arguments are forwarded to each callback
        after the value.
        """
        from debut.lib.observability import span

        with span(f"hook.filter:{hook_name}", hook_name=hook_name):
            for handler in list(self._filters.get(hook_name, [])):
                value = await handler.call(value, *args, **kwargs)
            return value

    def clear(self) -> None:
        """Clear all registered hooks. Useful for testing."""
        self._actions.clear()
        self._filters.clear()


def _remove(handlers: list[HookHandler], callback: Callable[..., Any]) -> bool:
    # Bound methods compare equal but are never identical, so use ==.
    for i, handler in enumerate(handlers):
        if handler.callback == callback:
            handlers.pop(i)
            return True
    return False


def _contains(handlers: list[HookHandler], callback: Callable[..., Any] | None) -> bool:
    if callback is None:
        return bool(handlers)
    return any(handler.callback == callback for handler in handlers)


# Global registry used by the application
hooks = HookRegistry()


# Post listing pipeline filters, applied in this order by post_service.query_posts
POSTS_FIELDS = "posts_fields"
POSTS_JOIN = "posts_join"
POSTS_WHERE = "posts_where"
POSTS_RESULTS = "posts_results"
THE_POSTS = "the_posts"

# Actions
ADMIN_INIT = "admin_init"
AFTER_POST_SAVE = "after_post_save"
BEFORE_POST_DELETE = "before_post_delete"
APPEARANCE_UNINSTALL = "appearance_uninstall"
