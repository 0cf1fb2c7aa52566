"""
Upsert Pipeline
Normalize, validate, resolve a canonical name, then create or update one row

CONCURRENCY:
Submissions for the same (platform, handle) are serialized through an
in-process keyed lock, so the find-then-write below cannot race inside one
worker. Separate worker processes can still race; the unique constraint in
SCHEMA_SQL backs that up and a DuplicateKey on insert is resolved by
re-reading the winning row and updating it.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Hashable, Optional, Tuple

from app.models.schemas.handles import DirectoryRecord, HandleSubmission
from app.services.directory.errors import DuplicateKey, InvalidHandleFormat
from app.services.directory.store import DirectoryStore
from app.services.handles.rules import display_handle, normalize_handle, validate_handle
from app.services.identity.matcher import (
    BrandNormalizer,
    default_normalizer,
    extract_name_from_handle,
)
from app.services.identity.resolver import CONFIDENCE_MERGE, find_candidates

logger = logging.getLogger(__name__)


class KeyedLock:
    """One asyncio.Lock per key, dropped once nobody holds or waits on it."""

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._holders: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class UpsertPipeline:
    """
    Single-submission write path.

    Args:
        store: Directory store adapter
        normalizer: Brand normalizer (alias table)
        merge_threshold: Similarity needed to fold a name into an existing canonical name
        locks: Shared keyed lock; pipelines in one process should share it
    """

    def __init__(
        self,
        store: DirectoryStore,
        normalizer: BrandNormalizer = default_normalizer,
        merge_threshold: float = CONFIDENCE_MERGE,
        locks: Optional[KeyedLock] = None
    ):
        self.store = store
        self.normalizer = normalizer
        self.merge_threshold = merge_threshold
        self.locks = locks if locks is not None else KeyedLock()

    async def upsert(self, submission: HandleSubmission) -> DirectoryRecord:
        record, _ = await self.upsert_with_outcome(submission)
        return record

    async def upsert_with_outcome(self, submission: HandleSubmission) -> Tuple[DirectoryRecord, bool]:
        """
        Store a submission.

        Returns:
            (record, created) where created is False when an existing
            (platform, handle) row was updated

        Raises:
            InvalidHandleFormat: Handle fails the platform's rules
            StoreError: Propagated unchanged from the store adapter
        """
        platform = submission.platform
        handle = normalize_handle(submission.handle, platform)

        if not validate_handle(handle, platform):
            raise InvalidHandleFormat(platform.value, submission.handle)

        canonical_name = await self.resolve_name(submission)

        async with self.locks.hold((platform, handle)):
            existing = await self.store.find_one(platform, handle)
            if existing is not None:
                return await self._update(existing, submission, canonical_name), False

            now = datetime.now(timezone.utc)
            fields: Dict[str, Any] = {
                "contributor_id": submission.contributor_id,
                "canonical_name": canonical_name,
                "platform": platform,
                "handle": handle,
                "verified": submission.verified,
                "first_seen_at": now,
                "last_seen_at": now,
                "created_at": now,
                "updated_at": now,
            }
            try:
                record = await self.store.insert(fields)
            except DuplicateKey:
                # Another worker created it between our read and insert
                winner = await self.store.find_one(platform, handle)
                if winner is None:
                    raise
                logger.info(f"Concurrent insert for {platform.value}/{handle}, updating winner {winner.id}")
                return await self._update(winner, submission, canonical_name), False

        logger.info(f"Created {platform.value}/{handle} ({canonical_name or 'unnamed'})")
        return record, True

    async def _update(
        self,
        existing: DirectoryRecord,
        submission: HandleSubmission,
        canonical_name: Optional[str]
    ) -> DirectoryRecord:
        now = datetime.now(timezone.utc)
        fields: Dict[str, Any] = {
            "last_seen_at": now,
            "updated_at": now,
            "contributor_id": submission.contributor_id,
        }
        # Never overwrite a known name with null, never un-verify
        if canonical_name is not None:
            fields["canonical_name"] = canonical_name
        if submission.verified:
            fields["verified"] = True

        record = await self.store.update(existing.id, fields)
        logger.debug(f"Updated {record.platform.value}/{record.handle} (id={record.id})")
        return record

    async def resolve_name(self, submission: HandleSubmission) -> Optional[str]:
        """
        Pick the canonical name for a submission.

        Submitted name, else one derived from the handle, normalized and
        folded onto the closest canonical name already on file.
        """
        # A submitted name like "Inc" normalizes to nothing; the handle is the next source
        normalized = self.normalizer.normalize(submission.name)
        if not normalized:
            derived = extract_name_from_handle(display_handle(submission.handle, submission.platform))
            normalized = self.normalizer.normalize(derived)
        if not normalized:
            return None

        existing_names = await self.store.distinct_canonical_names()
        matches = find_candidates(normalized, existing_names, self.merge_threshold, self.normalizer)
        if matches:
            best = matches[0]
            if best.canonical_name != normalized:
                logger.info(f"Folding '{normalized}' into existing '{best.canonical_name}' (score={best.score:.2f})")
            return best.canonical_name

        return normalized
