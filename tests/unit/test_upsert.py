"""
Unit tests for UpsertPipeline

Ensures:
1. Case/prefix variants of one handle converge on a single row
2. New names fold into canonical names already on file
3. Invalid handles are rejected before any store access
4. Known names and verified flags are never lost on update
5. Concurrent submissions for one handle insert exactly once
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from app.models.schemas.handles import HandleSubmission, Platform
from app.services.directory.errors import DuplicateKey, InvalidHandleFormat, StoreUnavailable
from app.services.directory.upsert import KeyedLock, UpsertPipeline


def _submission(handle, platform=Platform.INSTAGRAM, name=None, contributor_id="alice", verified=False):
    return HandleSubmission(
        platform=platform,
        handle=handle,
        name=name,
        contributor_id=contributor_id,
        verified=verified,
    )


@pytest.mark.asyncio
async def test_variants_converge_on_one_row(store, pipeline):
    """@Nike, nike and NIKE on Instagram end up as one row"""
    first = await pipeline.upsert(_submission("@Nike"))
    await pipeline.upsert(_submission("nike", contributor_id="bob"))
    last = await pipeline.upsert(_submission("NIKE", contributor_id="carol"))

    assert len(store.rows) == 1
    assert last.id == first.id
    assert last.handle == "nike"
    assert last.canonical_name == "Nike"
    assert last.first_seen_at == first.first_seen_at
    assert last.last_seen_at >= first.last_seen_at
    assert last.contributor_id == "carol"


@pytest.mark.asyncio
async def test_outcome_reports_created_then_updated(pipeline):
    _, created = await pipeline.upsert_with_outcome(_submission("nike"))
    _, created_again = await pipeline.upsert_with_outcome(_submission("@nike"))

    assert created is True
    assert created_again is False


@pytest.mark.asyncio
async def test_new_name_folds_into_existing_canonical(store, pipeline):
    """'Tesla Motors' joins the 'Tesla' identity already stored"""
    store.add(Platform.INSTAGRAM, "tesla", canonical_name="Tesla")

    record = await pipeline.upsert(_submission("teslamotors", platform=Platform.TWITTER_X, name="Tesla Motors"))

    assert record.canonical_name == "Tesla"
    assert record.platform == Platform.TWITTER_X


@pytest.mark.asyncio
async def test_unrelated_name_kept_as_normalized(store, pipeline):
    store.add(Platform.INSTAGRAM, "nike", canonical_name="Nike")

    record = await pipeline.upsert(_submission("adidas", name="adidas inc"))

    assert record.canonical_name == "Adidas"


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["Inc", "The Co", "   "])
async def test_empty_submitted_name_falls_back_to_handle(pipeline, name):
    """A name that normalizes to nothing gives way to the name in the handle"""
    record = await pipeline.upsert(_submission("NikeOfficial", name=name))

    assert record.canonical_name == "Nike"


@pytest.mark.asyncio
async def test_invalid_handle_rejected_before_store(store, pipeline):
    """A 16-character Twitter/X handle never reaches the store"""
    with pytest.raises(InvalidHandleFormat) as exc_info:
        await pipeline.upsert(_submission("a" * 16, platform=Platform.TWITTER_X))

    assert exc_info.value.platform == "twitter_x"
    assert store.calls == []
    assert store.rows == {}


@pytest.mark.asyncio
async def test_known_name_never_replaced_with_null(store, pipeline):
    """A handle with no derivable name leaves the stored name alone"""
    existing = store.add(Platform.INSTAGRAM, "hq", canonical_name="Acme")

    record = await pipeline.upsert(_submission("@hq"))

    assert record.id == existing.id
    assert record.canonical_name == "Acme"


@pytest.mark.asyncio
async def test_verified_never_downgraded(store, pipeline):
    store.add(Platform.INSTAGRAM, "nike", canonical_name="Nike", verified=True)

    record = await pipeline.upsert(_submission("nike", verified=False))

    assert record.verified is True


@pytest.mark.asyncio
async def test_verified_submission_upgrades_row(store, pipeline):
    store.add(Platform.INSTAGRAM, "nike", canonical_name="Nike")

    record = await pipeline.upsert(_submission("nike", verified=True))

    assert record.verified is True


@pytest.mark.asyncio
async def test_phone_number_stored_as_digits(pipeline):
    record = await pipeline.upsert(_submission("+1 (555) 123-4567", platform=Platform.WHATSAPP_BUSINESS))

    assert record.handle == "15551234567"
    assert record.canonical_name is None


@pytest.mark.asyncio
async def test_duplicate_key_race_updates_winner(store, pipeline):
    """Insert losing to another worker re-reads and updates the winning row"""
    winner = store.add(Platform.INSTAGRAM, "nike", canonical_name="Nike")
    store.find_one = AsyncMock(side_effect=[None, winner])

    record, created = await pipeline.upsert_with_outcome(_submission("nike", contributor_id="bob"))

    assert created is False
    assert record.id == winner.id
    assert record.contributor_id == "bob"
    assert len(store.rows) == 1


@pytest.mark.asyncio
async def test_duplicate_key_without_winner_reraises(store, pipeline):
    store.add(Platform.INSTAGRAM, "nike")
    store.find_one = AsyncMock(side_effect=[None, None])

    with pytest.raises(DuplicateKey):
        await pipeline.upsert(_submission("nike"))


@pytest.mark.asyncio
async def test_store_errors_propagate(store, pipeline):
    store.distinct_canonical_names = AsyncMock(side_effect=StoreUnavailable("select"))

    with pytest.raises(StoreUnavailable):
        await pipeline.upsert(_submission("nike"))


@pytest.mark.asyncio
async def test_concurrent_submissions_insert_once(store, pipeline):
    """Five simultaneous submissions of one handle create one row"""
    original_find_one = store.find_one

    async def slow_find_one(platform, handle):
        result = await original_find_one(platform, handle)
        await asyncio.sleep(0.01)
        return result

    store.find_one = slow_find_one

    outcomes = await asyncio.gather(*[
        pipeline.upsert_with_outcome(_submission(variant, contributor_id=f"user{i}"))
        for i, variant in enumerate(["nike", "@nike", "NIKE", "Nike", "@NIKE"])
    ])

    assert store.calls.count("insert") == 1
    assert len(store.rows) == 1
    assert sum(1 for _, created in outcomes if created) == 1
    assert len({record.id for record, _ in outcomes}) == 1
    assert len(pipeline.locks) == 0


@pytest.mark.asyncio
async def test_keyed_lock_releases_on_error():
    locks = KeyedLock()

    with pytest.raises(RuntimeError):
        async with locks.hold(("instagram", "nike")):
            assert len(locks) == 1
            raise RuntimeError("boom")

    assert len(locks) == 0


@pytest.mark.asyncio
async def test_pipelines_can_share_locks(store):
    locks = KeyedLock()
    first = UpsertPipeline(store, locks=locks)
    second = UpsertPipeline(store, locks=locks)

    assert first.locks is second.locks
    await asyncio.gather(first.upsert(_submission("nike")), second.upsert(_submission("@nike")))

    assert len(store.rows) == 1
