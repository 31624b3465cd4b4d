"""Observability facade wrapping Pydantic Logfire.

Spans are sent to Logfire when it is installed and enabled in
configuration; otherwise every helper is a no-op.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from debut.config import Settings

_logfire = None
_configured = False


def is_available() -> bool:
    return _logfire is not None and _configured


def configure(settings: Settings) -> None:
    """Initialize logfire from the ``logfire`` settings section.

    No-ops if logfire is not installed or not enabled.
    """
    global _logfire, _configured

    if not settings.logfire.enabled:
        return

    try:
        import logfire as lf
    except ImportError:
        return

    kwargs: dict[str, Any] = {
        "service_name": settings.logfire.service_name,
        "send_to_logfire": "if-token-present",
    }
    if settings.logfire.environment:
        kwargs["environment"] = settings.logfire.environment
    if settings.logfire.console:
        kwargs["console"] = lf.ConsoleOptions()

    lf.configure(**kwargs)
    _logfire = lf
    _configured = True


def instrument_app(app):
    """Wrap an ASGI app with logfire instrumentation. Returns the app unchanged if unavailable."""
    if not is_available():
        return app
    return _logfire.instrument_asgi(app)


def instrument_sqlalchemy(engine) -> None:
    """Instrument a SQLAlchemy engine."""
    if is_available():
        _logfire.instrument_sqlalchemy(engine=engine)


@contextmanager
def span(name: str, **attrs: Any):
    """Context manager that yields a logfire span, or None if unavailable."""
    if is_available():
        with _logfire.span(name, **attrs) as s:
            yield s
    else:
        yield None
