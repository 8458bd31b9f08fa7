import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy import select

from hacienda.core.config import settings
from hacienda.core.database import SessionLocal
from hacienda.core.storage import ObjectStorage, storage as default_storage
from hacienda.models.file_item import FileItem
from hacienda.monitoring.setup import report_purge
from hacienda.services.file_service import collect_subtree, drop_item_references

logger = logging.getLogger(__name__)

PURGED_ITEMS = 0
FAILED_BLOB_DELETES = 0

async def _retry_storage_delete(storage: ObjectStorage, key: str) -> bool:
    """Retry wrapper for blob deletion."""
    attempts = settings.TRASH_PURGE_RETRY_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            await storage.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Blob delete failed (attempt {attempt}/{attempts}) key={key} err={e}")
            if attempt < attempts:
                await asyncio.sleep(settings.TRASH_PURGE_RETRY_BACKOFF_SECS * attempt)
    return False

async def purge_expired_trash(session_factory=SessionLocal, storage: ObjectStorage = default_storage,
                              now: datetime | None = None) -> tuple[int, int]:
    """Permanently delete items trashed more than TRASH_RETENTION_DAYS ago.

    Purging a folder takes everything below it along, trashed or not. A row
    whose blob could not be deleted is kept for the next pass together with
    its ancestors.
    """
    global PURGED_ITEMS, FAILED_BLOB_DELETES
    cutoff = (now or datetime.utcnow()) - timedelta(days=settings.TRASH_RETENTION_DAYS)
    purged = 0
    failed = 0

    async with session_factory() as db:
        res = await db.execute(
            select(FileItem).where(
                FileItem.is_deleted == True,  # noqa: E712
                FileItem.deleted_at != None,  # noqa: E711
                FileItem.deleted_at < cutoff,
            ).limit(settings.TRASH_PURGE_MAX_PER_LOOP)
        )
        expired = res.scalars().all()

        removed: set[str] = set()
        for item in expired:
            if item.id in removed:
                continue
            # a node stays while its blob or anything below it could not be deleted
            kept: set[str] = set()
            for node in await collect_subtree(db, item):
                if node.id in removed:
                    continue
                if node.id not in kept and node.storage_key:
                    if not await _retry_storage_delete(storage, node.storage_key):
                        failed += 1
                        logger.error("Failed to delete blob after retries: %s", node.storage_key)
                        kept.add(node.id)
                if node.id in kept:
                    if node.parent_id:
                        kept.add(node.parent_id)
                    continue
                await drop_item_references(db, [node.id])
                await db.delete(node)
                removed.add(node.id)
                purged += 1

        if expired:
            await db.commit()

    PURGED_ITEMS += purged
    FAILED_BLOB_DELETES += failed
    return purged, failed

async def purge_trash_forever():
    logger.info("Trash purge task started: retention_days=%s interval=%s max_per_loop=%s",
                settings.TRASH_RETENTION_DAYS, settings.TRASH_PURGE_INTERVAL_SECONDS,
                settings.TRASH_PURGE_MAX_PER_LOOP)

    while True:
        started = datetime.utcnow()
        try:
            purged, failed = await purge_expired_trash()

            duration = (datetime.utcnow() - started).total_seconds()
            report_purge(purged, failed, duration)
            logger.info("purge_summary items_deleted=%s failed_blobs=%s duration=%.3fs total_items=%s total_failed=%s",
                        purged, failed, duration, PURGED_ITEMS, FAILED_BLOB_DELETES)

            await asyncio.sleep(settings.TRASH_PURGE_INTERVAL_SECONDS)

        except asyncio.CancelledError:
            logger.info("Trash purge task cancelled by shutdown")
            raise
        except Exception as e:
            logger.exception("Trash purge loop error: %s", e)
            await asyncio.sleep(min(60, settings.TRASH_PURGE_INTERVAL_SECONDS))

async def start_trash_purge_task():
    return await purge_trash_forever()
