"""Site identity for appearance date storage."""

from dataclasses import dataclass

from debut.config import Settings
from debut.db.services.option_service import site_scoped_key

INSTALLED_OPTION = "appearance_date_installed"


@dataclass(frozen=True)
class Tenant:
    """A site with its own table namespace and installed flag.

    The main site has an empty name.
    """

    name: str = ""
    table_prefix: str = ""

    @property
    def installed_key(self) -> str:
        return site_scoped_key(self.name, INSTALLED_OPTION)

    def table_name(self, base_name: str) -> str:
        return f"{self.table_prefix}{base_name}"


def resolve_tenant(settings: Settings, name: str | None = None) -> Tenant:
    """Look up a site by name, defaulting to the configured active site.

    Raises:
        KeyError: If a named site is not configured under ``sites``.
    """
    if name is None:
        name = settings.site
    if not name:
        return Tenant(name="", table_prefix=settings.db.table_prefix)

    site = settings.sites.get(name)
    if site is None:
        raise KeyError(f"Site {name!r} is not configured")
    return Tenant(name=name, table_prefix=site.table_prefix)
