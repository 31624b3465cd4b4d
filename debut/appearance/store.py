"""Read and write appearance dates for posts."""

import logging
from datetime import datetime

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from debut.appearance.schema import parse_appearance_date
from debut.lib.cache import TransientCache
from debut.lib.observability import span

logger = logging.getLogger(__name__)


class AppearanceDateStore:
    """One appearance date per object id, read through a transient cache.

    Only dates that exist are cached, so a freshly set date is seen on the
    next read. Writes invalidate this instance's cache entry, not those of
    other processes.
    """

    def __init__(self, table: Table, cache: TransientCache) -> None:
        self.table = table
        self.cache = cache

    @staticmethod
    def cache_key(object_id: int) -> str:
        return f"_f_ap_date_for_{object_id}"

    async def get(self, db_session: AsyncSession, object_id: int) -> datetime | None:
        """Return the appearance date for *object_id*, or None if it has none.

        A failed read (for example a table that was never created) rolls the
        session back and counts as no date.
        """
        object_id = int(object_id)
        key = self.cache_key(object_id)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            result = await db_session.execute(
                select(self.table.c.appearance_date)
                .where(self.table.c.appearance_object_id == object_id)
                .limit(1)
            )
        except SQLAlchemyError:
            await db_session.rollback()
            logger.warning("Appearance date read failed for object %s", object_id, exc_info=True)
            return None

        date = parse_appearance_date(result.scalars().first())
        if date is None:
            return None

        self.cache.set(key, date)
        return date

    async def set(
        self,
        db_session: AsyncSession,
        object_id: int,
        date: datetime | str | None,
    ) -> bool:
        """Store or clear the appearance date for *object_id*.

        An empty *date* deletes the row. Otherwise the row is updated, or
        inserted when no row matched.

        Returns:
            True if at least one row was written or removed
        """
        object_id = int(object_id)
        self.cache.delete(self.cache_key(object_id))

        try:
            value = parse_appearance_date(date)
        except ValueError:
            logger.warning("Ignoring malformed appearance date %r for object %s", date, object_id)
            return False

        where = self.table.c.appearance_object_id == object_id
        with span("appearance_date.set", object_id=object_id, cleared=value is None):
            try:
                if value is None:
                    result = await db_session.execute(delete(self.table).where(where))
                else:
                    result = await db_session.execute(
                        update(self.table).where(where).values(appearance_date=value)
                    )
                    if result.rowcount == 0:
                        result = await db_session.execute(
                            insert(self.table).values(
                                appearance_object_id=object_id,
                                appearance_date=value,
                            )
                        )
                await db_session.commit()
            except SQLAlchemyError:
                await db_session.rollback()
                logger.warning("Appearance date write failed for object %s", object_id, exc_info=True)
                return False

        return result.rowcount > 0
