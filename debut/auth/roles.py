"""Role definitions and the session-based admin guard."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from litestar.exceptions import NotAuthorizedException

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection
    from litestar.handlers.base import BaseRouteHandler

EDIT_POSTS = "edit-posts"
PUBLISH_POSTS = "publish-posts"


@dataclass
class RoleDefinition:
    """Definition of a role with its permissions."""

    name: str
    permissions: set[str] = field(default_factory=set)
    display_name: str | None = None


def create_role(name: str, *permissions: str, display_name: str | None = None) -> RoleDefinition:
    return RoleDefinition(
        name=name,
        permissions=set(permissions),
        display_name=display_name or name.title(),
    )


ADMIN = create_role("admin", EDIT_POSTS, PUBLISH_POSTS, display_name="Administrator")
EDITOR = create_role("editor", EDIT_POSTS, PUBLISH_POSTS)
AUTHOR = create_role("author", EDIT_POSTS, PUBLISH_POSTS)
CONTRIBUTOR = create_role("contributor", EDIT_POSTS)

ROLES = {role.name: role for role in (ADMIN, EDITOR, AUTHOR, CONTRIBUTOR)}


def session_permissions(session: dict[str, Any]) -> set[str]:
    """Permissions granted by the role stored in the session."""
    role = ROLES.get(session.get("role", ""))
    return set(role.permissions) if role else set()


def can_publish(session: dict[str, Any]) -> bool:
    return PUBLISH_POSTS in session_permissions(session)


def editor_guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
    """Allow only logged-in users whose role may edit posts."""
    if not connection.session.get("user_id"):
        raise NotAuthorizedException("Login required")
    if EDIT_POSTS not in session_permissions(connection.session):
        raise NotAuthorizedException("Insufficient permissions")
