"""
Directory Store Adapter
Persistence contract for handle records, plus the Supabase implementation

Every call may fail. Backend exceptions are wrapped into StoreError
(StoreUnavailable for network failures, DuplicateKey for unique
violations) and nothing here assumes isolation across a read and a
following write.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from app.models.schemas.handles import DirectoryRecord, Platform
from app.services.directory.errors import (
    DuplicateKey,
    RecordNotFound,
    StoreError,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)

SEARCHABLE_FIELDS = ("canonical_name", "handle")

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"

SCHEMA_SQL = """
create table if not exists handle_database (
    id uuid primary key default gen_random_uuid(),
    contributor_id text not null,
    canonical_name text,
    platform text not null,
    handle text not null,
    verified boolean not null default false,
    first_seen_at timestamptz not null default now(),
    last_seen_at timestamptz not null default now(),
    created_at timestamptz not null default now(),
    updated_at timestamptz not null default now(),
    constraint handle_database_platform_handle_key unique (platform, handle)
);

create index if not exists handle_database_canonical_name_idx on handle_database (lower(canonical_name));
create index if not exists handle_database_handle_idx on handle_database (lower(handle));
create index if not exists handle_database_ranking_idx on handle_database (verified desc, last_seen_at desc);
"""


class DirectoryStore(Protocol):
    """Operations the pipelines and search engine need from the backing store."""

    async def insert(self, fields: Dict[str, Any]) -> DirectoryRecord: ...

    async def find_one(self, platform: Platform, handle: str) -> Optional[DirectoryRecord]: ...

    async def get(self, record_id: str) -> Optional[DirectoryRecord]: ...

    async def update(self, record_id: str, fields: Dict[str, Any]) -> DirectoryRecord: ...

    async def delete(self, record_id: str) -> None: ...

    async def query_substring(self, fields: Sequence[str], pattern: str, limit: int) -> List[DirectoryRecord]: ...

    async def query_prefix(self, field: str, prefix: str, limit: int) -> List[DirectoryRecord]: ...

    async def query_equal_any(self, field: str, values: Sequence[str], limit: int) -> List[DirectoryRecord]: ...

    async def distinct_canonical_names(self) -> List[str]: ...

    async def list_records(self, platform: Optional[Platform] = None, limit: int = 20) -> List[DirectoryRecord]: ...


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _quote_filter_value(value: str) -> str:
    # PostgREST or=() values containing , . ( ) must be double-quoted
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _serialize(fields: Dict[str, Any]) -> Dict[str, Any]:
    row = {}
    for key, value in fields.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, Enum):
            value = value.value
        row[key] = value
    return row


class SupabaseDirectoryStore:
    """
    DirectoryStore backed by a Supabase (PostgREST) table.

    Args:
        client: Supabase client
        table: Table name (see SCHEMA_SQL)
    """

    def __init__(self, client: Client, table: str = "handle_database"):
        self.client = client
        self.table = table

    def _wrap(self, operation: str, e: Exception) -> StoreError:
        if isinstance(e, httpx.HTTPError):
            logger.error(f"Directory store unreachable during {operation}: {e}")
            return StoreUnavailable(operation, e)
        if isinstance(e, APIError) and e.code == UNIQUE_VIOLATION:
            return DuplicateKey(operation, e)
        logger.error(f"Directory store {operation} failed: {e}")
        return StoreError(operation, e)

    @staticmethod
    def _records(result) -> List[DirectoryRecord]:
        return [DirectoryRecord(**row) for row in (result.data or [])]

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    async def insert(self, fields: Dict[str, Any]) -> DirectoryRecord:
        try:
            result = self.client.table(self.table).insert(_serialize(fields)).execute()
        except Exception as e:
            raise self._wrap("insert", e) from e

        records = self._records(result)
        if not records:
            raise StoreError("insert")
        return records[0]

    async def update(self, record_id: str, fields: Dict[str, Any]) -> DirectoryRecord:
        try:
            result = self.client.table(self.table)\
                .update(_serialize(fields))\
                .eq("id", record_id)\
                .execute()
        except Exception as e:
            raise self._wrap("update", e) from e

        records = self._records(result)
        if not records:
            raise RecordNotFound(record_id)
        return records[0]

    async def delete(self, record_id: str) -> None:
        try:
            result = self.client.table(self.table).delete().eq("id", record_id).execute()
        except Exception as e:
            raise self._wrap("delete", e) from e

        if not result.data:
            raise RecordNotFound(record_id)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def find_one(self, platform: Platform, handle: str) -> Optional[DirectoryRecord]:
        try:
            result = self.client.table(self.table)\
                .select("*")\
                .eq("platform", platform.value)\
                .eq("handle", handle)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise self._wrap("find_one", e) from e

        records = self._records(result)
        return records[0] if records else None

    async def get(self, record_id: str) -> Optional[DirectoryRecord]:
        try:
            result = self.client.table(self.table).select("*").eq("id", record_id).limit(1).execute()
        except Exception as e:
            raise self._wrap("get", e) from e

        records = self._records(result)
        return records[0] if records else None

    async def query_substring(self, fields: Sequence[str], pattern: str, limit: int) -> List[DirectoryRecord]:
        """Case-insensitive substring match on any of the fields, verified rows first."""
        like = _quote_filter_value(f"%{escape_like(pattern)}%")
        condition = ",".join(f"{field}.ilike.{like}" for field in fields)
        try:
            result = self.client.table(self.table)\
                .select("*")\
                .or_(condition)\
                .order("verified", desc=True)\
                .order("last_seen_at", desc=True)\
                .limit(limit)\
                .execute()
        except Exception as e:
            raise self._wrap("query_substring", e) from e

        return self._records(result)

    async def query_prefix(self, field: str, prefix: str, limit: int) -> List[DirectoryRecord]:
        try:
            result = self.client.table(self.table)\
                .select("*")\
                .ilike(field, f"{escape_like(prefix)}%")\
                .order("verified", desc=True)\
                .order("last_seen_at", desc=True)\
                .limit(limit)\
                .execute()
        except Exception as e:
            raise self._wrap("query_prefix", e) from e

        return self._records(result)

    async def query_equal_any(self, field: str, values: Sequence[str], limit: int) -> List[DirectoryRecord]:
        if not values:
            return []
        try:
            result = self.client.table(self.table)\
                .select("*")\
                .in_(field, list(values))\
                .order("verified", desc=True)\
                .order("last_seen_at", desc=True)\
                .limit(limit)\
                .execute()
        except Exception as e:
            raise self._wrap("query_equal_any", e) from e

        return self._records(result)

    async def distinct_canonical_names(self) -> List[str]:
        try:
            result = self.client.table(self.table)\
                .select("canonical_name")\
                .not_.is_("canonical_name", "null")\
                .execute()
        except Exception as e:
            raise self._wrap("distinct_canonical_names", e) from e

        names = []
        seen = set()
        for row in result.data or []:
            name = row.get("canonical_name")
            if name and name not in seen:
                seen.add(name)
                names.append(name)
        return names

    async def list_records(self, platform: Optional[Platform] = None, limit: int = 20) -> List[DirectoryRecord]:
        try:
            query = self.client.table(self.table).select("*")
            if platform is not None:
                query = query.eq("platform", platform.value)
            result = query\
                .order("verified", desc=True)\
                .order("last_seen_at", desc=True)\
                .limit(limit)\
                .execute()
        except Exception as e:
            raise self._wrap("list_records", e) from e

        return self._records(result)
