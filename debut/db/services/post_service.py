"""Post service: CRUD plus the filterable post listing pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import ColumnElement, and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from debut.db.models import Post, PostStatus
from debut.lib.hooks import (
    AFTER_POST_SAVE,
    BEFORE_POST_DELETE,
    POSTS_FIELDS,
    POSTS_JOIN,
    POSTS_RESULTS,
    POSTS_WHERE,
    THE_POSTS,
    HookRegistry,
    hooks,
)


@dataclass
class PostQuery:
    """What a listing request asks for."""

    post_id: int | None = None
    slug: str | None = None
    status: list[str] | None = None
    post_type: str = "post"
    limit: int | None = None
    offset: int = 0

    @property
    def is_singular(self) -> bool:
        return self.post_id is not None or self.slug is not None


@dataclass
class QueryContext:
    """Who is asking and when, for the lifetime of one request.

    ``state`` is request-local scratch space for pipeline filters; a new
    context starts with it empty.
    """

    user_id: str | None = None
    now: datetime = field(default_factory=datetime.now)
    state: dict[str, Any] = field(default_factory=dict)

    @property
    def is_logged_in(self) -> bool:
        return bool(self.user_id)


def default_where(query: PostQuery, context: QueryContext) -> ColumnElement[bool]:
    """Build the where clause before any filter runs.

    Non-singular queries without explicit statuses are limited to published
    posts (plus private ones for logged-in viewers). Singular queries carry no
    status predicate; their rows are checked after the query instead.
    """
    clauses: list[ColumnElement[bool]] = [Post.post_type == query.post_type]

    if query.post_id is not None:
        clauses.append(Post.id == query.post_id)
    if query.slug is not None:
        clauses.append(Post.slug == query.slug)

    if query.status:
        if len(query.status) == 1:
            clauses.append(Post.status == query.status[0])
        else:
            clauses.append(Post.status.in_(query.status))
    elif not query.is_singular:
        if context.is_logged_in:
            clauses.append(
                or_(Post.status == PostStatus.PUBLISH.value, Post.status == PostStatus.PRIVATE.value)
            )
        else:
            clauses.append(Post.status == PostStatus.PUBLISH.value)

    return and_(*clauses)


def suppress_unpublished_singular(
    rows: list[dict[str, Any]],
    query: PostQuery,
    context: QueryContext,
) -> list[dict[str, Any]]:
    """Hide a single non-published post from anonymous viewers.

    Logged-in viewers keep the row so editors can preview drafts and
    scheduled posts.
    """
    if rows and query.is_singular and not context.is_logged_in:
        if rows[0].get("status") != PostStatus.PUBLISH.value:
            return []
    return rows


async def query_posts(
    db_session: AsyncSession,
    query: PostQuery,
    context: QueryContext,
    registry: HookRegistry = hooks,
) -> list[dict[str, Any]]:
    """Run a post listing query through the pipeline filters.

    Filters are applied in order: fields, join, where, raw results, then
    final results. Each filter receives the current value plus ``query`` and
    ``context``.

    Returns:
        List of row dicts keyed by column label
    """
    posts = Post.__table__

    fields = await registry.apply_filters(POSTS_FIELDS, list(posts.columns), query, context)
    from_clause = await registry.apply_filters(POSTS_JOIN, posts, query, context)
    where = await registry.apply_filters(POSTS_WHERE, default_where(query, context), query, context)

    statement = (
        select(*fields)
        .select_from(from_clause)
        .where(where)
        .order_by(Post.post_date.desc(), Post.id.desc())
    )
    if query.offset:
        statement = statement.offset(query.offset)
    if query.limit:
        statement = statement.limit(query.limit)

    result = await db_session.execute(statement)
    rows = [dict(row) for row in result.mappings().all()]

    rows = await registry.apply_filters(POSTS_RESULTS, rows, query, context)
    rows = suppress_unpublished_singular(rows, query, context)
    return await registry.apply_filters(THE_POSTS, rows, query, context)


async def get_post_by_id(
    db_session: AsyncSession,
    post_id: int,
) -> Post | None:
    """Get a single post by ID, bypassing the listing filters."""
    result = await db_session.execute(select(Post).where(Post.id == post_id))
    return result.scalar_one_or_none()


async def create_post(
    db_session: AsyncSession,
    slug: str,
    title: str,
    content: str = "",
    status: str = PostStatus.DRAFT.value,
    post_date: datetime | None = None,
    post_type: str = "post",
    author_id: int | None = None,
    form: Mapping[str, Any] | None = None,
    registry: HookRegistry = hooks,
) -> Post:
    """Create a new post and fire ``after_post_save``.

    Args:
        db_session: Database session
        slug: Unique post slug
        title: Post title
        content: Post body
        status: Native status (publish, future, draft, ...)
        post_date: Publish date (defaults to now)
        post_type: Post type
        author_id: Author user ID (optional)
        form: Submitted edit form, forwarded to save handlers
        registry: Hook registry to fire actions on

    Returns:
        Created Post object
    """
    post = Post(
        slug=slug,
        title=title,
        content=content,
        status=status,
        post_date=post_date or datetime.now(),
        post_type=post_type,
        author_id=author_id,
    )

    db_session.add(post)
    await db_session.commit()
    await db_session.refresh(post)

    await registry.do_action(AFTER_POST_SAVE, db_session, post, form or {})
    # Save handlers may roll the session back, which expires the post
    await db_session.refresh(post)

    return post


async def update_post(
    db_session: AsyncSession,
    post_id: int,
    title: str | None = None,
    content: str | None = None,
    status: str | None = None,
    post_date: datetime | None = None,
    form: Mapping[str, Any] | None = None,
    registry: HookRegistry = hooks,
) -> Post | None:
    """Update an existing post and fire ``after_post_save``.

    Returns:
        Updated Post object or None if not found
    """
    post = await get_post_by_id(db_session, post_id)
    if not post:
        return None

    if title is not None:
        post.title = title
    if content is not None:
        post.content = content
    if status is not None:
        post.status = status
    if post_date is not None:
        post.post_date = post_date

    await db_session.commit()
    await db_session.refresh(post)

    await registry.do_action(AFTER_POST_SAVE, db_session, post, form or {})
    # Save handlers may roll the session back, which expires the post
    await db_session.refresh(post)

    return post


async def delete_post(
    db_session: AsyncSession,
    post_id: int,
    registry: HookRegistry = hooks,
) -> bool:
    """Delete a post, firing ``before_post_delete`` first.

    Returns:
        True if deleted, False if not found
    """
    post = await get_post_by_id(db_session, post_id)
    if not post:
        return False

    await registry.do_action(BEFORE_POST_DELETE, db_session, post)

    await db_session.delete(post)
    await db_session.commit()
    return True
