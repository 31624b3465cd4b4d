"""Tests for the appearance date store."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from debut.appearance.schema import build_appearance_table
from debut.appearance.store import AppearanceDateStore
from debut.lib.cache import TransientCache

NEW_YEAR = datetime(2024, 1, 1, 0, 0)


async def _row_count(db_session, store, object_id):
    result = await db_session.execute(
        select(func.count()).select_from(store.table).where(store.table.c.appearance_object_id == object_id)
    )
    return result.scalar_one()


class TestRoundTrip:
    @pytest.mark.asyncio
    async def test_set_then_get(self, db_session, installed_site):
        store = installed_site.store

        assert await store.set(db_session, 42, NEW_YEAR) is True
        assert await store.get(db_session, 42) == NEW_YEAR

    @pytest.mark.asyncio
    async def test_accepts_formatted_string(self, db_session, installed_site):
        store = installed_site.store

        assert await store.set(db_session, 7, "2099-01-01 00:00:00") is True
        assert await store.get(db_session, 7) == datetime(2099, 1, 1)

    @pytest.mark.asyncio
    async def test_get_without_record_is_none(self, db_session, installed_site):
        assert await installed_site.store.get(db_session, 404) is None

    @pytest.mark.asyncio
    async def test_get_without_table_is_none(self, db_session, site, make_post):
        post_id = (await make_post("hello")).id

        assert await site.store.get(db_session, post_id) is None
        assert site.store.cache_key(post_id) not in site.store.cache

    @pytest.mark.asyncio
    async def test_set_absent_then_get_is_none(self, db_session, installed_site):
        store = installed_site.store
        await store.set(db_session, 42, NEW_YEAR)

        assert await store.set(db_session, 42, None) is True
        assert await store.get(db_session, 42) is None

    @pytest.mark.asyncio
    async def test_update_replaces_existing_date(self, db_session, installed_site):
        store = installed_site.store
        await store.set(db_session, 42, NEW_YEAR)
        later = datetime(2025, 3, 4, 5, 6)

        assert await store.set(db_session, 42, later) is True
        assert await store.get(db_session, 42) == later
        assert await _row_count(db_session, store, 42) == 1


class TestClearing:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("empty", [None, "", False])
    async def test_clear_without_record_is_noop(self, db_session, installed_site, empty):
        assert await installed_site.store.set(db_session, 42, empty) is False

    @pytest.mark.asyncio
    async def test_clear_existing_record(self, db_session, installed_site):
        store = installed_site.store
        await store.set(db_session, 42, NEW_YEAR)

        assert await store.set(db_session, 42, "") is True
        assert await _row_count(db_session, store, 42) == 0


class TestIdempotence:
    @pytest.mark.asyncio
    async def test_repeated_set_keeps_single_row(self, db_session, installed_site):
        store = installed_site.store

        assert await store.set(db_session, 42, NEW_YEAR) is True
        assert await store.set(db_session, 42, NEW_YEAR) is True

        assert await _row_count(db_session, store, 42) == 1
        assert await store.get(db_session, 42) == NEW_YEAR


class TestCaching:
    @pytest.mark.asyncio
    async def test_hit_is_cached(self, db_session, installed_site):
        store = installed_site.store
        await store.set(db_session, 42, NEW_YEAR)

        await store.get(db_session, 42)

        assert store.cache.get(store.cache_key(42)) == NEW_YEAR

    @pytest.mark.asyncio
    async def test_absence_is_not_cached(self, db_session, installed_site):
        store = installed_site.store

        await store.get(db_session, 42)

        assert store.cache_key(42) not in store.cache

    @pytest.mark.asyncio
    async def test_set_invalidates_cache(self, db_session, installed_site):
        store = installed_site.store
        await store.set(db_session, 42, NEW_YEAR)
        await store.get(db_session, 42)

        await store.set(db_session, 42, None)

        assert store.cache_key(42) not in store.cache
        assert await store.get(db_session, 42) is None

    @pytest.mark.asyncio
    async def test_cached_value_skips_query(self):
        table = build_appearance_table("object_appearance_dates")
        cache = TransientCache()
        store = AppearanceDateStore(table, cache)
        cache.set(store.cache_key(5), NEW_YEAR)
        db = AsyncMock()

        assert await store.get(db, 5) == NEW_YEAR
        db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_write_still_invalidates(self):
        table = build_appearance_table("object_appearance_dates")
        cache = TransientCache()
        store = AppearanceDateStore(table, cache)
        cache.set(store.cache_key(5), NEW_YEAR)
        db = AsyncMock()
        db.execute.side_effect = OperationalError("UPDATE", {}, Exception("no such table"))

        assert await store.set(db, 5, NEW_YEAR) is False
        assert store.cache_key(5) not in cache
        db.rollback.assert_awaited_once()


class TestMalformedInput:
    @pytest.mark.asyncio
    async def test_unparseable_date_returns_false(self, db_session, installed_site):
        store = installed_site.store

        assert await store.set(db_session, 42, "2024-13-45 99:99:00") is False
        assert await store.get(db_session, 42) is None

    @pytest.mark.asyncio
    async def test_zero_date_reads_as_absent(self):
        table = build_appearance_table("object_appearance_dates")
        store = AppearanceDateStore(table, TransientCache())
        result = MagicMock()
        result.scalars.return_value.first.return_value = "0000-00-00 00:00:00"
        db = AsyncMock()
        db.execute.return_value = result

        assert await store.get(db, 5) is None
        assert store.cache_key(5) not in store.cache

    @pytest.mark.asyncio
    async def test_object_id_is_coerced(self, db_session, installed_site):
        store = installed_site.store

        await store.set(db_session, "42", NEW_YEAR)

        assert await store.get(db_session, 42) == NEW_YEAR
