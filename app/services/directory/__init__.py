"""
Handle Directory Service
Store adapter, upsert pipeline, bidirectional search and bulk import
"""
from app.services.directory.errors import (
    DirectoryError,
    InvalidHandleFormat,
    ValidationError,
    StoreError,
    StoreUnavailable,
    DuplicateKey,
    RecordNotFound,
)
from app.services.directory.store import (
    DirectoryStore,
    SupabaseDirectoryStore,
    SCHEMA_SQL,
)
from app.services.directory.upsert import UpsertPipeline, KeyedLock
from app.services.directory.search import DirectorySearchEngine
from app.services.directory.bulk_import import BulkImporter
from app.services.directory.query import validate_query, run_handle_search
from app.services.directory.admin import verify_handle, delete_handle

__all__ = [
    "DirectoryError",
    "InvalidHandleFormat",
    "ValidationError",
    "StoreError",
    "StoreUnavailable",
    "DuplicateKey",
    "RecordNotFound",
    "DirectoryStore",
    "SupabaseDirectoryStore",
    "SCHEMA_SQL",
    "UpsertPipeline",
    "KeyedLock",
    "DirectorySearchEngine",
    "BulkImporter",
    "validate_query",
    "run_handle_search",
    "verify_handle",
    "delete_handle",
]
