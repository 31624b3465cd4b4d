"""Litestar application factory."""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from advanced_alchemy.extensions.litestar import (
    AsyncSessionConfig,
    EngineConfig,
    SQLAlchemyAsyncConfig,
    SQLAlchemyPlugin,
)
from litestar import Litestar
from litestar.datastructures import State
from litestar.middleware.session.client_side import CookieBackendConfig

from debut.appearance.site import AppearanceDateSite
from debut.bootstrap import AppearanceDatePlugin
from debut.config import Settings, get_settings
from debut.controllers.admin import PostAdminController
from debut.controllers.posts import PostController
from debut.db import models  # noqa: F401
from debut.db.base import Base
from debut.lib import observability
from debut.lib.exceptions import EXCEPTION_HANDLERS
from debut.lib.hooks import HookRegistry

logger = logging.getLogger(__name__)


def create_session_config(
    secret_key: str,
    max_age: int = 86400,
    secure: bool = False,
    cookie_name: str = "session",
) -> CookieBackendConfig:
    """Create a cookie-backed session config."""
    session_secret = hashlib.sha256(secret_key.encode()).digest()
    return CookieBackendConfig(
        secret=session_secret,
        key=cookie_name,
        max_age=max_age,
        httponly=True,
        secure=secure,
        samesite="lax",
    )


def create_db_config(settings: Settings) -> SQLAlchemyAsyncConfig:
    if "sqlite" in settings.db.url:
        engine_config = EngineConfig(echo=settings.db.echo)
    else:
        engine_kwargs: dict[str, Any] = dict(
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.pool_overflow,
            pool_timeout=settings.db.pool_timeout,
            echo=settings.db.echo,
        )
        engine_config = EngineConfig(**engine_kwargs)

    return SQLAlchemyAsyncConfig(
        connection_string=settings.db.url,
        metadata=Base.metadata,
        create_all=False,
        session_config=AsyncSessionConfig(expire_on_commit=False),
        engine_config=engine_config,
    )


def create_app(settings: Settings | None = None) -> Litestar:
    """Create the Litestar application for the active site.

    Each app gets its own hook registry. Admin hooks are always registered.
    The public listing filters are added on startup when the site's
    appearance table is installed, or later by the first admin request that
    installs it.
    """
    settings = settings or get_settings()
    observability.configure(settings)

    db_config = create_db_config(settings)
    session_config = create_session_config(settings.secret_key, secure=not settings.debug)

    site = AppearanceDateSite.from_settings(settings)
    plugin = AppearanceDatePlugin(site, HookRegistry())
    plugin.register_admin_hooks()

    async def on_startup(_app: Litestar) -> None:
        """Create host tables, then activate listing filters for an installed site."""
        try:
            async with db_config.get_engine().begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            async with db_config.get_session() as session:
                await plugin.activate(session)
        except Exception:
            logger.info("Appearance date activation skipped (DB may not exist)", exc_info=True)

        observability.instrument_sqlalchemy(db_config.get_engine())

    return Litestar(
        on_startup=[on_startup],
        route_handlers=[PostController, PostAdminController],
        plugins=[SQLAlchemyPlugin(config=db_config)],
        middleware=[session_config.middleware],
        exception_handlers=EXCEPTION_HANDLERS,
        state=State({"appearance": plugin, "settings": settings}),
        debug=settings.debug,
    )


def create_asgi_app():
    """Application entry point for ASGI servers, with instrumentation applied."""
    return observability.instrument_app(create_app())
