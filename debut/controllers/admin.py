"""Post editing admin controller."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from litestar import Controller, Request, delete, get, post
from litestar.enums import RequestEncodingType
from litestar.exceptions import NotFoundException, ValidationException
from litestar.params import Body
from sqlalchemy.ext.asyncio import AsyncSession

from debut.appearance.editor import build_chooser
from debut.appearance.schema import format_appearance_date
from debut.auth.roles import can_publish, editor_guard
from debut.controllers.helpers import get_plugin, get_registry
from debut.db.models import PostStatus
from debut.db.services import post_service
from debut.lib.hooks import ADMIN_INIT

_STATUSES = {status.value for status in PostStatus}


def _parse_post_date(value: str | None) -> datetime | None:
    value = (value or "").strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationException(f"Invalid post date format: {value}")


class PostAdminController(Controller):
    """Edit screen endpoints: appearance chooser state and post saves."""

    path = "/admin/posts"
    guards = [editor_guard]

    @get("/{post_id:int}/appearance")
    async def appearance_chooser(
        self, request: Request, db_session: AsyncSession, post_id: int
    ) -> dict[str, Any]:
        """Chooser state for the edit screen; ``chooser`` is null for non-publishers."""
        await get_registry(request).do_action(ADMIN_INIT, db_session)

        post_obj = await post_service.get_post_by_id(db_session, post_id)
        if not post_obj:
            raise NotFoundException("Post not found")

        response: dict[str, Any] = {"post_id": post_obj.id, "status": post_obj.status}
        chooser = await build_chooser(
            db_session, get_plugin(request).site.store, post_obj, can_publish(request.session)
        )
        response["chooser"] = chooser.to_dict() if chooser else None
        return response

    @post("/{post_id:int}", status_code=200)
    async def update_post(
        self,
        request: Request,
        db_session: AsyncSession,
        post_id: int,
        data: Annotated[dict[str, Any], Body(media_type=RequestEncodingType.URL_ENCODED)],
    ) -> dict[str, Any]:
        """Save post fields and the submitted appearance chooser."""
        await get_registry(request).do_action(ADMIN_INIT, db_session)

        status = (data.get("status") or "").strip() or None
        if status is not None and status not in _STATUSES:
            raise ValidationException(f"Unknown status: {status}")

        post_obj = await post_service.update_post(
            db_session,
            post_id,
            title=(data.get("title") or "").strip() or None,
            content=data.get("content"),
            status=status,
            post_date=_parse_post_date(data.get("post_date")),
            form=data,
            registry=get_registry(request),
        )
        if not post_obj:
            raise NotFoundException("Post not found")

        response: dict[str, Any] = {"post_id": post_obj.id, "status": post_obj.status}
        appearance_date = await get_plugin(request).site.get_appearance_date(db_session, post_obj.id)
        response["appearance_date"] = format_appearance_date(appearance_date) if appearance_date else None
        return response

    @delete("/{post_id:int}")
    async def delete_post(self, request: Request, db_session: AsyncSession, post_id: int) -> None:
        """Delete a post and its appearance date."""
        await get_registry(request).do_action(ADMIN_INIT, db_session)
        if not await post_service.delete_post(db_session, post_id, registry=get_registry(request)):
            raise NotFoundException("Post not found")
