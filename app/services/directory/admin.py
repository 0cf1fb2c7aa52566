"""
Directory Administration
Verify and delete individual handle records
"""
import logging
from datetime import datetime, timezone

from app.models.schemas.handles import DirectoryRecord
from app.services.directory.store import DirectoryStore

logger = logging.getLogger(__name__)


async def verify_handle(store: DirectoryStore, record_id: str) -> DirectoryRecord:
    """
    Mark a record as verified.

    Raises:
        RecordNotFound: No record with this id
    """
    record = await store.update(record_id, {
        "verified": True,
        "updated_at": datetime.now(timezone.utc),
    })
    logger.info(f"Verified {record.platform.value}/{record.handle} (id={record_id})")
    return record


async def delete_handle(store: DirectoryStore, record_id: str) -> None:
    """
    Remove a record.

    Raises:
        RecordNotFound: No record with this id
    """
    await store.delete(record_id)
    logger.info(f"Deleted handle record {record_id}")
