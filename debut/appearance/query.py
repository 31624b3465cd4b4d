"""Post pipeline filters that apply appearance dates to listings.

The filters join each post's appearance date into the listing query and gate
visibility on it:

    (published OR (scheduled AND appearance elapsed))
    AND (no appearance date OR appearance elapsed)

A scheduled post with an elapsed appearance date is shown early; a
published post with a future appearance date is held back.

Anonymous requests for a single scheduled post are emptied by the pipeline
after the raw results filter runs (see
``post_service.suppress_unpublished_singular``). The raw results filter keeps
such rows aside when their appearance date has elapsed, and the final
results filter puts them back. When the rows are not emptied, the saved copy
is never used. Listings are never emptied that way, so only singular queries
save rows.
"""

from typing import Any, Callable

from sqlalchemy import ColumnElement, FromClause, Table, and_, or_
from sqlalchemy.sql import operators
from sqlalchemy.sql.elements import BinaryExpression, BindParameter
from sqlalchemy.sql.visitors import replacement_traverse

from debut.appearance.schema import is_elapsed
from debut.db.models import Post, PostStatus
from debut.db.services.post_service import PostQuery, QueryContext
from debut.lib.hooks import POSTS_FIELDS, POSTS_JOIN, POSTS_RESULTS, POSTS_WHERE, THE_POSTS

# Key of the pending results stack in QueryContext.state
SAVED_RESULTS_KEY = "appearance_date.saved_results"

Rows = list[dict[str, Any]]


def is_published_predicate(element: Any) -> bool:
    """Match ``posts.status = 'publish'``, the predicate widened for scheduled posts.

    Any other spelling of the published check (``IN``, ``!=`` and so on) is
    left alone.
    """
    if not isinstance(element, BinaryExpression) or element.operator is not operators.eq:
        return False
    table = getattr(element.left, "table", None)
    return (
        getattr(element.left, "key", None) == "status"
        and getattr(table, "name", None) == Post.__tablename__
        and isinstance(element.right, BindParameter)
        and element.right.value == PostStatus.PUBLISH.value
    )


class QueryAugmenter:
    """The five post pipeline filters for one site's appearance table."""

    def __init__(self, table: Table) -> None:
        self.table = table

    @property
    def appearance_date(self) -> ColumnElement:
        return self.table.c.appearance_date

    def filters(self) -> list[tuple[str, Callable[..., Any]]]:
        """(hook name, callback) pairs in pipeline order."""
        return [
            (POSTS_FIELDS, self.filter_fields),
            (POSTS_JOIN, self.filter_join),
            (POSTS_WHERE, self.filter_where),
            (POSTS_RESULTS, self.filter_raw_results),
            (THE_POSTS, self.filter_final_results),
        ]

    def saved_results(self, context: QueryContext) -> list[Rows]:
        return context.state.setdefault(SAVED_RESULTS_KEY, [])

    def filter_fields(self, fields: list, query: PostQuery, context: QueryContext) -> list:
        return [*fields, self.appearance_date.label("appearance_date")]

    def filter_join(self, from_clause: FromClause, query: PostQuery, context: QueryContext) -> FromClause:
        """Left join so posts without an appearance date keep a NULL one."""
        posts = Post.__table__
        return from_clause.outerjoin(
            self.table,
            posts.c.id == self.table.c.appearance_object_id,
        )

    def filter_where(
        self,
        where: ColumnElement[bool],
        query: PostQuery,
        context: QueryContext,
    ) -> ColumnElement[bool]:
        posts = Post.__table__
        elapsed = self.appearance_date < context.now

        def widen(element: Any) -> ColumnElement[bool] | None:
            if not is_published_predicate(element):
                return None
            # Grouped so it stays one conjunct of the enclosing AND
            return or_(
                posts.c.status == PostStatus.PUBLISH.value,
                and_(posts.c.status == PostStatus.FUTURE.value, elapsed),
            ).self_group()

        where = replacement_traverse(where, {}, widen)
        return and_(where, or_(self.appearance_date.is_(None), elapsed))

    def filter_raw_results(self, rows: Rows, query: PostQuery, context: QueryContext) -> Rows:
        if (
            rows
            and query.is_singular
            and not context.is_logged_in
            and rows[0].get("status") == PostStatus.FUTURE.value
            and is_elapsed(rows[0].get("appearance_date"), context.now)
        ):
            self.saved_results(context).insert(0, list(rows))
        return rows

    def filter_final_results(self, rows: Rows, query: PostQuery, context: QueryContext) -> Rows:
        if rows or context.is_logged_in:
            return rows

        stack = self.saved_results(context)
        saved = stack.pop(0) if stack else None
        if (
            isinstance(saved, list)
            and saved
            and is_elapsed(saved[0].get("appearance_date"), context.now)
        ):
            return saved
        return rows
