"""
Dependency Injection
Provides global clients and services to routes via FastAPI dependencies
"""
from typing import Optional
import logging
from fastapi import Depends
from supabase import Client, create_client

from app.core.config import settings
from app.services.directory.bulk_import import BulkImporter
from app.services.directory.errors import StoreUnavailable
from app.services.directory.search import DirectorySearchEngine
from app.services.directory.store import DirectoryStore, SupabaseDirectoryStore
from app.services.directory.upsert import KeyedLock, UpsertPipeline
from app.services.handles.parser import HandleParser
from app.services.handles.patterns import PatternLibrary

logger = logging.getLogger(__name__)

# ============================================================================
# GLOBAL CLIENTS (initialized at startup)
# ============================================================================

supabase_client: Optional[Client] = None
directory_store: Optional[DirectoryStore] = None

# Read-only tables, built once from settings
pattern_library = PatternLibrary(priority=settings.platform_order)
handle_parser = HandleParser(pattern_library)

# Shared so every request's pipeline serializes on the same (platform, handle) keys
upsert_locks = KeyedLock()


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================

async def get_directory_store() -> DirectoryStore:
    """Get the handle directory store."""
    if directory_store is None:
        raise StoreUnavailable("connect", RuntimeError("Directory store not initialized"))
    return directory_store


async def get_handle_parser() -> HandleParser:
    return handle_parser


async def get_upsert_pipeline(store: DirectoryStore = Depends(get_directory_store)) -> UpsertPipeline:
    return UpsertPipeline(
        store,
        merge_threshold=settings.dedup_similarity_threshold,
        locks=upsert_locks
    )


async def get_search_engine(store: DirectoryStore = Depends(get_directory_store)) -> DirectorySearchEngine:
    return DirectorySearchEngine(store)


async def get_bulk_importer(pipeline: UpsertPipeline = Depends(get_upsert_pipeline)) -> BulkImporter:
    return BulkImporter(pipeline)


# ============================================================================
# STARTUP/SHUTDOWN
# ============================================================================

async def initialize_clients():
    """Initialize all global clients at startup."""
    global supabase_client, directory_store

    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("⚠️  SUPABASE_URL / SUPABASE key not set - directory endpoints will return 503")
        return

    supabase_client = create_client(settings.supabase_url, settings.supabase_key)
    directory_store = SupabaseDirectoryStore(supabase_client, settings.handles_table)
    logger.info(f"✅ Supabase connected (table: {settings.handles_table})")


async def shutdown_clients():
    """Cleanup clients at shutdown."""
    global supabase_client, directory_store

    supabase_client = None
    directory_store = None
    logger.info("✅ Directory store released")
