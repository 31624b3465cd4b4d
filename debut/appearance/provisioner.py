"""Create and drop a site's appearance date table."""

import logging

from sqlalchemy import Table, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from debut.appearance.tenant import Tenant
from debut.db.services.option_service import delete_option, get_bool_option, set_option
from debut.lib.observability import span

logger = logging.getLogger(__name__)


def _table_names(session: Session) -> list[str]:
    return inspect(session.connection()).get_table_names()


class Provisioner:
    """Makes sure a site's appearance date table exists.

    The site's installed flag short-circuits the check once set. Until then
    every call probes the database, so a missing table is retried on the
    next admin init.
    """

    def __init__(self, tenant: Tenant, table: Table) -> None:
        self.tenant = tenant
        self.table = table

    async def is_installed(self, db_session: AsyncSession) -> bool:
        return await get_bool_option(db_session, self.tenant.installed_key)

    async def table_exists(self, db_session: AsyncSession) -> bool:
        names = await db_session.run_sync(_table_names)
        return self.table.name in names

    async def _create_table(self, db_session: AsyncSession) -> None:
        await db_session.run_sync(lambda session: self.table.create(session.connection()))

    async def _drop_table(self, db_session: AsyncSession) -> None:
        await db_session.run_sync(lambda session: self.table.drop(session.connection()))

    async def ensure_installed(self, db_session: AsyncSession) -> bool:
        """Create the table if needed and record the installed flag.

        Returns:
            True if the table is known to exist
        """
        if await self.is_installed(db_session):
            return True

        with span("appearance_date.install", table=self.table.name, site=self.tenant.name):
            if not await self.table_exists(db_session):
                try:
                    await self._create_table(db_session)
                    await db_session.commit()
                except SQLAlchemyError:
                    await db_session.rollback()
                    logger.warning("Creating table %s failed", self.table.name, exc_info=True)

                if not await self.table_exists(db_session):
                    logger.warning("Table %s is missing; appearance dates stay inactive", self.table.name)
                    return False

            await set_option(db_session, self.tenant.installed_key, "1")

        logger.info("Appearance date table %s installed", self.table.name)
        return True

    async def uninstall(self, db_session: AsyncSession) -> None:
        """Drop the table and clear the installed flag.

        The drop is attempted without checking that the table exists; the
        flag is cleared either way.
        """
        try:
            await self._drop_table(db_session)
            await db_session.commit()
        except SQLAlchemyError:
            await db_session.rollback()
            logger.warning("Dropping table %s failed", self.table.name, exc_info=True)

        await delete_option(db_session, self.tenant.installed_key)
