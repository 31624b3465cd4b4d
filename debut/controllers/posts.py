"""Public post listing controller."""

from typing import Any

from litestar import Controller, Request, get
from litestar.exceptions import NotFoundException
from sqlalchemy.ext.asyncio import AsyncSession

from debut.controllers.helpers import get_registry, query_context
from debut.db.services import post_service
from debut.db.services.post_service import PostQuery


class PostController(Controller):
    path = "/posts"

    @get("/")
    async def list_posts(
        self,
        request: Request,
        db_session: AsyncSession,
        limit: int = 10,
        offset: int = 0,
        post_type: str = "post",
    ) -> list[dict[str, Any]]:
        """List visible posts, newest first."""
        query = PostQuery(post_type=post_type, limit=limit, offset=offset)
        return await post_service.query_posts(
            db_session, query, query_context(request), get_registry(request)
        )

    @get("/{post_id:int}")
    async def get_post(
        self, request: Request, db_session: AsyncSession, post_id: int
    ) -> dict[str, Any]:
        """Show a single post if the viewer may see it."""
        rows = await post_service.query_posts(
            db_session, PostQuery(post_id=post_id), query_context(request), get_registry(request)
        )
        if not rows:
            raise NotFoundException("Post not found")
        return rows[0]
