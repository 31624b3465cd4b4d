"""Wire a site's appearance date handling into the hook registry.

Admin requests get the install check, the editor save handler, the delete
cleanup and the uninstall action. The public listing filters are only added
once the site's table is known to exist, so an unprovisioned site lists posts
exactly as it would without appearance dates.
"""

import logging
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from debut.appearance.editor import save_appearance_date
from debut.appearance.site import AppearanceDateSite
from debut.lib.hooks import (
    ADMIN_INIT,
    AFTER_POST_SAVE,
    APPEARANCE_UNINSTALL,
    BEFORE_POST_DELETE,
    HookRegistry,
)

logger = logging.getLogger(__name__)


class AppearanceDatePlugin:
    """Hook handlers for one site, bound to one registry."""

    def __init__(self, site: AppearanceDateSite, registry: HookRegistry) -> None:
        self.site = site
        self.registry = registry

    def register_admin_hooks(self) -> None:
        for hook_name, callback in (
            (ADMIN_INIT, self.on_admin_init),
            (AFTER_POST_SAVE, self.on_post_save),
            (BEFORE_POST_DELETE, self.on_post_delete),
            (APPEARANCE_UNINSTALL, self.on_uninstall),
        ):
            if not self.registry.has_action(hook_name, callback):
                self.registry.add_action(hook_name, callback)

    def register_query_filters(self) -> None:
        for hook_name, callback in self.site.augmenter.filters():
            if not self.registry.has_filter(hook_name, callback):
                self.registry.add_filter(hook_name, callback)

    def unregister_query_filters(self) -> None:
        for hook_name, callback in self.site.augmenter.filters():
            self.registry.remove_filter(hook_name, callback)

    @property
    def query_filters_registered(self) -> bool:
        return all(
            self.registry.has_filter(hook_name, callback)
            for hook_name, callback in self.site.augmenter.filters()
        )

    async def activate(self, db_session: AsyncSession) -> bool:
        """Add the listing filters if the site is installed. Returns the installed flag."""
        installed = await self.site.provisioner.is_installed(db_session)
        if installed:
            self.register_query_filters()
        else:
            logger.info("Appearance dates not installed for site %r; listings unfiltered", self.site.tenant.name)
        return installed

    async def on_admin_init(self, db_session: AsyncSession) -> None:
        if await self.site.provisioner.ensure_installed(db_session):
            self.register_query_filters()

    async def on_post_save(self, db_session: AsyncSession, post: Any, form: Mapping[str, Any]) -> None:
        await save_appearance_date(db_session, self.site.store, post.id, form)

    async def on_post_delete(self, db_session: AsyncSession, post: Any) -> None:
        if await self.site.provisioner.is_installed(db_session):
            await self.site.store.set(db_session, post.id, None)

    async def on_uninstall(self, db_session: AsyncSession) -> None:
        await self.site.provisioner.uninstall(db_session)
        self.unregister_query_filters()
