"""Per-site appearance date service."""

from datetime import datetime

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession

from debut.appearance.provisioner import Provisioner
from debut.appearance.query import QueryAugmenter
from debut.appearance.schema import build_appearance_table
from debut.appearance.store import AppearanceDateStore
from debut.appearance.tenant import Tenant, resolve_tenant
from debut.config import Settings
from debut.lib.cache import TransientCache

DEFAULT_TABLE_NAME = "object_appearance_dates"


class AppearanceDateSite:
    """Everything one site needs: its table, cache, store, provisioner and filters."""

    def __init__(
        self,
        tenant: Tenant,
        table_name: str = DEFAULT_TABLE_NAME,
        dialect_name: str | None = None,
        charset: str | None = None,
        collate: str | None = None,
        cache_ttl: float = 60.0,
    ) -> None:
        self.tenant = tenant
        self.table = build_appearance_table(
            tenant.table_name(table_name),
            dialect_name=dialect_name,
            charset=charset,
            collate=collate,
        )
        self.cache = TransientCache(ttl=cache_ttl)
        self.store = AppearanceDateStore(self.table, self.cache)
        self.provisioner = Provisioner(tenant, self.table)
        self.augmenter = QueryAugmenter(self.table)

    @classmethod
    def from_settings(cls, settings: Settings, site: str | None = None) -> "AppearanceDateSite":
        return cls(
            resolve_tenant(settings, site),
            table_name=settings.appearance.table_name,
            dialect_name=make_url(settings.db.url).get_backend_name(),
            charset=settings.db.charset,
            collate=settings.db.collate,
            cache_ttl=settings.appearance.cache_ttl,
        )

    async def get_appearance_date(self, db_session: AsyncSession, object_id: int) -> datetime | None:
        return await self.store.get(db_session, object_id)

    async def set_appearance_date(
        self,
        db_session: AsyncSession,
        object_id: int,
        date: datetime | str | None,
    ) -> bool:
        return await self.store.set(db_session, object_id, date)
