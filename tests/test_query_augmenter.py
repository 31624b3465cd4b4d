"""Unit tests for the appearance date pipeline filters."""

from datetime import datetime

import pytest
from sqlalchemy import and_, select

from debut.appearance.query import SAVED_RESULTS_KEY, QueryAugmenter, is_published_predicate
from debut.appearance.schema import build_appearance_table
from debut.db.models import Post
from debut.db.services.post_service import PostQuery, QueryContext, default_where
from debut.lib.hooks import POSTS_FIELDS, POSTS_JOIN, POSTS_RESULTS, POSTS_WHERE, THE_POSTS

NOW = datetime(2025, 1, 1)
PAST = datetime(2024, 1, 1)
FUTURE = datetime(2099, 1, 1)


@pytest.fixture
def augmenter():
    return QueryAugmenter(build_appearance_table("object_appearance_dates"))


def _sql(clause) -> str:
    return str(clause.compile(compile_kwargs={"literal_binds": True}))


def _row(status="future", appearance_date=PAST, id=1):
    return {"id": id, "status": status, "appearance_date": appearance_date}


class TestPublishedPredicate:
    def test_matches_status_equals_publish(self):
        assert is_published_predicate(Post.status == "publish")
        assert is_published_predicate(Post.__table__.c.status == "publish")

    def test_ignores_other_predicates(self):
        assert not is_published_predicate(Post.status == "future")
        assert not is_published_predicate(Post.status != "publish")
        assert not is_published_predicate(Post.status.in_(["publish", "private"]))
        assert not is_published_predicate(Post.slug == "publish")


class TestFieldsAndJoin:
    def test_filters_in_pipeline_order(self, augmenter):
        assert [hook for hook, _ in augmenter.filters()] == [
            POSTS_FIELDS,
            POSTS_JOIN,
            POSTS_WHERE,
            POSTS_RESULTS,
            THE_POSTS,
        ]

    def test_appends_labelled_appearance_date(self, augmenter):
        fields = augmenter.filter_fields(list(Post.__table__.columns), PostQuery(), QueryContext())

        assert fields[-1].name == "appearance_date"
        assert len(fields) == len(Post.__table__.columns) + 1

    def test_left_joins_appearance_table(self, augmenter):
        joined = augmenter.filter_join(Post.__table__, PostQuery(), QueryContext())
        sql = str(select(Post.__table__.c.id).select_from(joined))

        assert "LEFT OUTER JOIN object_appearance_dates" in sql
        assert "posts.id = object_appearance_dates.appearance_object_id" in sql


class TestWhere:
    def test_widens_published_predicate_and_gates_on_appearance(self, augmenter):
        context = QueryContext(now=NOW)
        where = augmenter.filter_where(default_where(PostQuery(), context), PostQuery(), context)
        sql = _sql(where)

        assert "posts.status = 'publish' OR posts.status = 'future' AND " in sql
        assert "object_appearance_dates.appearance_date IS NULL OR " in sql
        assert sql.count("object_appearance_dates.appearance_date <") == 2

    def test_widened_predicate_stays_inside_conjunction(self, augmenter):
        context = QueryContext(now=NOW)
        where = augmenter.filter_where(default_where(PostQuery(), context), PostQuery(), context)
        sql = _sql(where)

        assert sql.startswith("posts.post_type = 'post' AND (posts.status = 'publish' OR posts.status = 'future' AND ")
        assert ") AND (object_appearance_dates.appearance_date IS NULL OR " in sql

    def test_nested_published_predicate_is_widened(self, augmenter):
        context = QueryContext(user_id="1", now=NOW)
        where = augmenter.filter_where(default_where(PostQuery(), context), PostQuery(), context)

        assert "posts.status = 'future'" in _sql(where)
        assert "posts.status = 'private'" in _sql(where)

    def test_explicit_status_only_gets_appearance_gate(self, augmenter):
        context = QueryContext(now=NOW)
        query = PostQuery(status=["future"])
        where = augmenter.filter_where(default_where(query, context), query, context)
        sql = _sql(where)

        assert "posts.status = 'future'" in sql
        assert "posts.status = 'publish'" not in sql
        assert "appearance_date IS NULL" in sql

    def test_original_clause_is_not_mutated(self, augmenter):
        original = and_(Post.status == "publish", Post.post_type == "post")
        before = _sql(original)

        augmenter.filter_where(original, PostQuery(), QueryContext(now=NOW))

        assert _sql(original) == before


class TestRawResults:
    def test_saves_elapsed_future_row_for_anonymous_viewer(self, augmenter):
        context = QueryContext(now=NOW)
        rows = [_row()]

        assert augmenter.filter_raw_results(rows, PostQuery(post_id=1), context) is rows
        assert context.state[SAVED_RESULTS_KEY] == [rows]
        assert context.state[SAVED_RESULTS_KEY][0] is not rows

    @pytest.mark.parametrize(
        "rows, context",
        [
            ([], QueryContext(now=NOW)),
            ([_row()], QueryContext(user_id="7", now=NOW)),
            ([_row(status="publish")], QueryContext(now=NOW)),
            ([_row(appearance_date=None)], QueryContext(now=NOW)),
            ([_row(appearance_date=FUTURE)], QueryContext(now=NOW)),
            ([_row(appearance_date=NOW)], QueryContext(now=NOW)),
        ],
        ids=["empty", "logged-in", "published", "no-date", "future-date", "same-instant"],
    )
    def test_leaves_stack_alone(self, augmenter, rows, context):
        augmenter.filter_raw_results(rows, PostQuery(post_id=1), context)

        assert augmenter.saved_results(context) == []

    def test_listing_rows_are_not_saved(self, augmenter):
        context = QueryContext(now=NOW)

        augmenter.filter_raw_results([_row()], PostQuery(status=["future"]), context)

        assert augmenter.saved_results(context) == []
        assert augmenter.filter_final_results([], PostQuery(post_id=1), context) == []


class TestFinalResults:
    def test_restores_saved_rows_when_emptied(self, augmenter):
        context = QueryContext(now=NOW)
        rows = [_row()]
        augmenter.filter_raw_results(rows, PostQuery(post_id=1), context)

        assert augmenter.filter_final_results([], PostQuery(post_id=1), context) == rows
        assert augmenter.saved_results(context) == []

    def test_non_empty_results_pass_through(self, augmenter):
        context = QueryContext(now=NOW)
        augmenter.filter_raw_results([_row()], PostQuery(post_id=1), context)
        rows = [_row(status="publish", id=2)]

        assert augmenter.filter_final_results(rows, PostQuery(), context) is rows
        assert len(augmenter.saved_results(context)) == 1

    def test_logged_in_viewer_is_not_restored(self, augmenter):
        context = QueryContext(user_id="7", now=NOW)
        context.state[SAVED_RESULTS_KEY] = [[_row()]]

        assert augmenter.filter_final_results([], PostQuery(), context) == []

    def test_empty_stack_keeps_empty_result(self, augmenter):
        assert augmenter.filter_final_results([], PostQuery(), QueryContext(now=NOW)) == []

    def test_discards_candidate_that_has_not_elapsed(self, augmenter):
        context = QueryContext(now=NOW)
        context.state[SAVED_RESULTS_KEY] = [[_row(appearance_date=FUTURE)], [_row(id=2)]]

        assert augmenter.filter_final_results([], PostQuery(), context) == []
        assert context.state[SAVED_RESULTS_KEY] == [[_row(id=2)]]

    def test_most_recent_save_is_restored_first(self, augmenter):
        context = QueryContext(now=NOW)
        augmenter.filter_raw_results([_row(id=1)], PostQuery(post_id=1), context)
        augmenter.filter_raw_results([_row(id=2)], PostQuery(post_id=2), context)

        assert augmenter.filter_final_results([], PostQuery(), context)[0]["id"] == 2
        assert augmenter.filter_final_results([], PostQuery(), context)[0]["id"] == 1

    def test_new_context_starts_with_empty_stack(self, augmenter):
        first = QueryContext(now=NOW)
        augmenter.filter_raw_results([_row()], PostQuery(post_id=1), first)

        assert augmenter.filter_final_results([], PostQuery(), QueryContext(now=NOW)) == []
