from debut.appearance.site import AppearanceDateSite
from debut.appearance.tenant import Tenant, resolve_tenant

__all__ = ["AppearanceDateSite", "Tenant", "resolve_tenant"]
