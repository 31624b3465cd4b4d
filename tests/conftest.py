"""Shared pytest fixtures."""

from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from debut.appearance.site import AppearanceDateSite
from debut.appearance.tenant import Tenant
from debut.bootstrap import AppearanceDatePlugin
from debut.db import models  # noqa: F401
from debut.db.base import Base
from debut.db.models import Post
from debut.lib.hooks import HookRegistry


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture
async def db_session(db_url):
    """A session on a fresh SQLite database with the host tables created."""
    engine = create_async_engine(db_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    async with session_maker() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def site():
    """Main-site appearance date service on SQLite."""
    return AppearanceDateSite(Tenant(), dialect_name="sqlite")


@pytest.fixture
def registry():
    return HookRegistry()


@pytest.fixture
def plugin(site, registry):
    plugin = AppearanceDatePlugin(site, registry)
    plugin.register_admin_hooks()
    return plugin


@pytest_asyncio.fixture
async def installed_site(db_session, site):
    """The site after its appearance table has been provisioned."""
    assert await site.provisioner.ensure_installed(db_session)
    return site


@pytest.fixture
def make_post(db_session):
    """Factory inserting a post directly, bypassing save hooks."""

    async def _make(
        slug: str,
        status: str = "publish",
        post_date: datetime | None = None,
        id: int | None = None,
        post_type: str = "post",
    ) -> Post:
        fields = {"id": id} if id is not None else {}
        post = Post(
            **fields,
            slug=slug,
            title=slug.replace("-", " ").title(),
            content="",
            status=status,
            post_date=post_date or datetime(2024, 6, 1, 12, 0),
            post_type=post_type,
        )
        db_session.add(post)
        await db_session.commit()
        await db_session.refresh(post)
        return post

    return _make
