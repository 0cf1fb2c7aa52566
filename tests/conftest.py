"""
Shared fixtures: an in-memory DirectoryStore and the services built on it
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest

from app.models.schemas.handles import DirectoryRecord, Platform
from app.services.directory.bulk_import import BulkImporter
from app.services.directory.errors import DuplicateKey, RecordNotFound
from app.services.directory.search import DirectorySearchEngine
from app.services.directory.upsert import UpsertPipeline


class InMemoryDirectoryStore:
    """
    DirectoryStore fake with the same matching rules as the Supabase adapter:
    case-insensitive substring/prefix, unique (platform, handle), results
    ordered verified first then most recently seen.
    """

    def __init__(self):
        self.rows: Dict[str, DirectoryRecord] = {}
        self.calls: List[str] = []

    def add(
        self,
        platform: Platform,
        handle: str,
        canonical_name: Optional[str] = None,
        verified: bool = False,
        contributor_id: str = "seed",
        age_minutes: int = 0
    ) -> DirectoryRecord:
        """Seed a row directly, bypassing the pipeline."""
        seen = datetime.now(timezone.utc) - timedelta(minutes=age_minutes)
        record = DirectoryRecord(
            id=str(uuid.uuid4()),
            contributor_id=contributor_id,
            canonical_name=canonical_name,
            platform=platform,
            handle=handle,
            verified=verified,
            first_seen_at=seen,
            last_seen_at=seen,
            created_at=seen,
            updated_at=seen,
        )
        self.rows[record.id] = record
        return record

    def _ordered(self, rows) -> List[DirectoryRecord]:
        ordered = sorted(rows, key=lambda r: (r.verified, r.last_seen_at), reverse=True)
        return [r.model_copy(deep=True) for r in ordered]

    async def insert(self, fields: Dict[str, Any]) -> DirectoryRecord:
        self.calls.append("insert")
        for row in self.rows.values():
            if row.platform == fields["platform"] and row.handle == fields["handle"]:
                raise DuplicateKey("insert")
        record = DirectoryRecord(id=str(uuid.uuid4()), **fields)
        self.rows[record.id] = record
        return record.model_copy(deep=True)

    async def find_one(self, platform: Platform, handle: str) -> Optional[DirectoryRecord]:
        self.calls.append("find_one")
        for row in self.rows.values():
            if row.platform == platform and row.handle == handle:
                return row.model_copy(deep=True)
        return None

    async def get(self, record_id: str) -> Optional[DirectoryRecord]:
        self.calls.append("get")
        row = self.rows.get(record_id)
        return row.model_copy(deep=True) if row else None

    async def update(self, record_id: str, fields: Dict[str, Any]) -> DirectoryRecord:
        self.calls.append("update")
        if record_id not in self.rows:
            raise RecordNotFound(record_id)
        self.rows[record_id] = self.rows[record_id].model_copy(update=fields)
        return self.rows[record_id].model_copy(deep=True)

    async def delete(self, record_id: str) -> None:
        self.calls.append("delete")
        if record_id not in self.rows:
            raise RecordNotFound(record_id)
        del self.rows[record_id]

    async def query_substring(self, fields: Sequence[str], pattern: str, limit: int) -> List[DirectoryRecord]:
        self.calls.append("query_substring")
        needle = pattern.lower()
        hits = [
            row for row in self.rows.values()
            if any(needle in (getattr(row, field) or "").lower() for field in fields)
        ]
        return self._ordered(hits)[:limit]

    async def query_prefix(self, field: str, prefix: str, limit: int) -> List[DirectoryRecord]:
        self.calls.append("query_prefix")
        needle = prefix.lower()
        hits = [row for row in self.rows.values() if (getattr(row, field) or "").lower().startswith(needle)]
        return self._ordered(hits)[:limit]

    async def query_equal_any(self, field: str, values: Sequence[str], limit: int) -> List[DirectoryRecord]:
        self.calls.append("query_equal_any")
        hits = [row for row in self.rows.values() if getattr(row, field) in values]
        return self._ordered(hits)[:limit]

    async def distinct_canonical_names(self) -> List[str]:
        self.calls.append("distinct_canonical_names")
        return list(dict.fromkeys(row.canonical_name for row in self.rows.values() if row.canonical_name))

    async def list_records(self, platform: Optional[Platform] = None, limit: int = 20) -> List[DirectoryRecord]:
        self.calls.append("list_records")
        hits = [row for row in self.rows.values() if platform is None or row.platform == platform]
        return self._ordered(hits)[:limit]


@pytest.fixture
def store():
    return InMemoryDirectoryStore()


@pytest.fixture
def pipeline(store):
    return UpsertPipeline(store)


@pytest.fixture
def engine(store):
    return DirectorySearchEngine(store)


@pytest.fixture
def importer(pipeline):
    return BulkImporter(pipeline)
