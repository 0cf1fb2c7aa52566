"""
Unit tests for SupabaseDirectoryStore

The Supabase client is mocked; these tests pin down the PostgREST calls made
and how backend failures are wrapped.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError

from app.models.schemas.handles import Platform
from app.services.directory.errors import (
    DuplicateKey,
    RecordNotFound,
    StoreError,
    StoreUnavailable,
)
from app.services.directory.store import SupabaseDirectoryStore, escape_like


NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def _row(**overrides):
    row = {
        "id": "rec-1",
        "contributor_id": "alice",
        "canonical_name": "Nike",
        "platform": "instagram",
        "handle": "nike",
        "verified": False,
        "first_seen_at": NOW.isoformat(),
        "last_seen_at": NOW.isoformat(),
        "created_at": NOW.isoformat(),
        "updated_at": NOW.isoformat(),
    }
    row.update(overrides)
    return row


@pytest.fixture
def builder():
    """Fluent PostgREST query builder: every filter returns the builder itself"""
    mock = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "or_", "order", "limit", "ilike", "in_", "is_"):
        getattr(mock, method).return_value = mock
    mock.not_ = mock
    mock.execute.return_value = MagicMock(data=[])
    return mock


@pytest.fixture
def client(builder):
    mock = MagicMock()
    mock.table.return_value = builder
    return mock


@pytest.fixture
def supabase_store(client):
    return SupabaseDirectoryStore(client, "handle_database")


# ------------------------------------------------------------------ #
# Writes
# ------------------------------------------------------------------ #

@pytest.mark.asyncio
async def test_insert_serializes_fields(supabase_store, client, builder):
    builder.execute.return_value = MagicMock(data=[_row()])

    record = await supabase_store.insert({
        "contributor_id": "alice",
        "platform": Platform.INSTAGRAM,
        "handle": "nike",
        "first_seen_at": NOW,
    })

    client.table.assert_called_with("handle_database")
    sent = builder.insert.call_args[0][0]
    assert sent["platform"] == "instagram"
    assert sent["first_seen_at"] == NOW.isoformat()
    assert record.platform == Platform.INSTAGRAM
    assert record.id == "rec-1"


@pytest.mark.asyncio
async def test_insert_unique_violation_is_duplicate_key(supabase_store, builder):
    builder.execute.side_effect = APIError({
        "message": "duplicate key value violates unique constraint",
        "code": "23505",
        "hint": None,
        "details": None,
    })

    with pytest.raises(DuplicateKey):
        await supabase_store.insert({"platform": Platform.INSTAGRAM, "handle": "nike"})


@pytest.mark.asyncio
async def test_insert_without_returned_row_fails(supabase_store):
    with pytest.raises(StoreError):
        await supabase_store.insert({"platform": Platform.INSTAGRAM, "handle": "nike"})


@pytest.mark.asyncio
async def test_update_missing_record(supabase_store, builder):
    with pytest.raises(RecordNotFound):
        await supabase_store.update("missing", {"verified": True})

    builder.eq.assert_called_with("id", "missing")


@pytest.mark.asyncio
async def test_delete_missing_record(supabase_store):
    with pytest.raises(RecordNotFound):
        await supabase_store.delete("missing")


@pytest.mark.asyncio
async def test_delete_existing_record(supabase_store, builder):
    builder.execute.return_value = MagicMock(data=[_row()])

    await supabase_store.delete("rec-1")

    builder.delete.assert_called_once()


# ------------------------------------------------------------------ #
# Failure wrapping
# ------------------------------------------------------------------ #

@pytest.mark.asyncio
async def test_network_failure_is_unavailable(supabase_store, builder):
    builder.execute.side_effect = httpx.ConnectError("connection refused")

    with pytest.raises(StoreUnavailable) as exc_info:
        await supabase_store.find_one(Platform.INSTAGRAM, "nike")

    assert exc_info.value.operation == "find_one"
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_other_failures_are_store_errors(supabase_store, builder):
    cause = APIError({"message": "permission denied", "code": "42501", "hint": None, "details": None})
    builder.execute.side_effect = cause

    with pytest.raises(StoreError) as exc_info:
        await supabase_store.list_records()

    assert not isinstance(exc_info.value, (StoreUnavailable, DuplicateKey))
    assert exc_info.value.cause is cause
    assert exc_info.value.__cause__ is cause


# ------------------------------------------------------------------ #
# Reads
# ------------------------------------------------------------------ #

@pytest.mark.asyncio
async def test_find_one_filters_platform_and_handle(supabase_store, builder):
    builder.execute.return_value = MagicMock(data=[_row()])

    record = await supabase_store.find_one(Platform.INSTAGRAM, "nike")

    builder.eq.assert_any_call("platform", "instagram")
    builder.eq.assert_any_call("handle", "nike")
    assert record.handle == "nike"


@pytest.mark.asyncio
async def test_find_one_returns_none(supabase_store):
    assert await supabase_store.find_one(Platform.INSTAGRAM, "nike") is None


@pytest.mark.asyncio
async def test_query_substring_builds_escaped_or_filter(supabase_store, builder):
    await supabase_store.query_substring(("canonical_name", "handle"), "50%_off", 20)

    condition = builder.or_.call_args[0][0]
    assert condition == (
        'canonical_name.ilike."%50\\\\%\\\\_off%",'
        'handle.ilike."%50\\\\%\\\\_off%"'
    )
    builder.order.assert_any_call("verified", desc=True)
    builder.order.assert_any_call("last_seen_at", desc=True)
    builder.limit.assert_called_with(20)


@pytest.mark.asyncio
async def test_query_prefix_uses_ilike(supabase_store, builder):
    await supabase_store.query_prefix("handle", "elonm", 20)

    builder.ilike.assert_called_with("handle", "elonm%")


@pytest.mark.asyncio
async def test_query_equal_any_without_values_skips_call(supabase_store, client):
    assert await supabase_store.query_equal_any("canonical_name", [], 20) == []
    client.table.assert_not_called()


@pytest.mark.asyncio
async def test_distinct_canonical_names_dedupes(supabase_store, builder):
    builder.execute.return_value = MagicMock(data=[
        {"canonical_name": "Nike"},
        {"canonical_name": "Tesla"},
        {"canonical_name": "Nike"},
        {"canonical_name": None},
    ])

    assert await supabase_store.distinct_canonical_names() == ["Nike", "Tesla"]
    builder.is_.assert_called_with("canonical_name", "null")


@pytest.mark.asyncio
async def test_list_records_by_platform(supabase_store, builder):
    builder.execute.return_value = MagicMock(data=[_row(platform="twitter_x")])

    records = await supabase_store.list_records(platform=Platform.TWITTER_X, limit=5)

    builder.eq.assert_called_with("platform", "twitter_x")
    assert records[0].platform == Platform.TWITTER_X


def test_escape_like():
    assert escape_like("a_b%c\\d") == "a\\_b\\%c\\\\d"
    assert escape_like("nike") == "nike"
