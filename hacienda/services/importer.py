from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hacienda.core.config import settings
from hacienda.core.storage import ObjectStorage
from hacienda.models.file_item import FileItem, ItemType
from hacienda.monitoring.setup import report_import
from hacienda.schemas.importer import ImportStatus
from hacienda.services.errors import ImportAbortedError
from hacienda.utils.files import get_mime_type, sanitize_file_name

logger = logging.getLogger("hacienda-files")


class StorageImporter:
    """Mirror the objects under a storage prefix as FileItem rows.

    For ``files/ConversionFiles/MOCK8/FIN/report.csv`` the folders
    ``ConversionFiles``, ``ConversionFiles/MOCK8`` and
    ``ConversionFiles/MOCK8/FIN`` are created once each (folder path -> id is
    memoised) and a FILE row pointing at the object is added under the last
    one. Objects are processed one at a time; a failing object is recorded in
    ``status.errors`` and the run continues.
    """

    def __init__(
        self,
        db: AsyncSession,
        storage: ObjectStorage,
        owner_id: str | None,
        owner_email: str | None = None,
        prefix: str = settings.IMPORT_PREFIX,
        pause_every: int = settings.IMPORT_PAUSE_EVERY,
        pause_seconds: float = settings.IMPORT_PAUSE_SECONDS,
        on_status: Callable[[ImportStatus], None] | None = None,
    ):
        self.db = db
        self.storage = storage
        self.owner_id = owner_id
        self.owner_email = owner_email
        self.prefix = prefix
        self.pause_every = max(1, pause_every)
        self.pause_seconds = pause_seconds
        self.on_status = on_status
        self.folder_cache: dict[str, str] = {}
        self.status = ImportStatus(debug_info="Starting import...")

    def _update(self, **changes) -> None:
        for name, value in changes.items():
            setattr(self.status, name, value)
        if self.on_status:
            self.on_status(self.status.model_copy(deep=True))

    def check_preconditions(self) -> None:
        if not self.owner_id:
            raise ImportAbortedError("User not authenticated")
        if not self.storage.has_credentials:
            raise ImportAbortedError("No storage credentials available")

    def _relative_parts(self, key: str) -> list[str]:
        """Key segments below the prefix, as names the browser accepts."""
        relative = key[len(self.prefix):] if key.startswith(self.prefix) else key
        parts = (sanitize_file_name(part) for part in relative.split("/"))
        return [part for part in parts if part]

    async def _create_folder(self, name: str, parent_id: str | None, folder_path: str) -> str:
        if folder_path in self.folder_cache:
            return self.folder_cache[folder_path]

        stmt = select(FileItem).where(
            FileItem.type == ItemType.FOLDER,
            FileItem.name == name,
            FileItem.is_deleted == False,  # noqa: E712
        )
        if parent_id:
            stmt = stmt.where(FileItem.parent_id == parent_id)
        else:
            stmt = stmt.where(FileItem.parent_id.is_(None))
        existing = (await self.db.execute(stmt)).scalars().first()

        if existing is not None:
            logger.info("Folder already exists: %s", folder_path)
            folder_id = existing.id
        else:
            folder = FileItem(
                name=name,
                type=ItemType.FOLDER,
                parent_id=parent_id,
                is_deleted=False,
                owner_id=self.owner_id,
                owner_email=self.owner_email,
            )
            self.db.add(folder)
            await self.db.commit()
            folder_id = folder.id
            logger.info("Created folder: %s", folder_path)

        self.folder_cache[folder_path] = folder_id
        self._update(folders=len(self.folder_cache))
        return folder_id

    async def ensure_folder_path(self, key: str) -> str | None:
        """Return the id of the folder that should hold ``key`` (None for the root)."""
        folders = self._relative_parts(key)[:-1]
        current_path = ""
        parent_id = None
        for folder_name in folders:
            current_path = f"{current_path}/{folder_name}" if current_path else folder_name
            parent_id = await self._create_folder(folder_name, parent_id, current_path)
        return parent_id

    async def _already_imported(self, key: str) -> bool:
        res = await self.db.execute(select(FileItem.id).where(FileItem.storage_key == key).limit(1))
        return res.first() is not None

    async def _create_file_record(self, key: str, size: int) -> bool:
        if await self._already_imported(key):
            logger.info("Skipping %s: already imported", key)
            return False
        filename = self._relative_parts(key)[-1]
        parent_id = await self.ensure_folder_path(key)
        self.db.add(
            FileItem(
                name=filename,
                type=ItemType.FILE,
                parent_id=parent_id,
                storage_key=key,
                size=size or 0,
                mime_type=get_mime_type(filename),
                is_deleted=False,
                owner_id=self.owner_id,
                owner_email=self.owner_email,
            )
        )
        await self.db.commit()
        logger.info("Created file record: %s", filename)
        return True

    async def run(self) -> ImportStatus:
        self.check_preconditions()
        self.folder_cache.clear()
        started = time.monotonic()

        try:
            self._update(debug_info=f"Owner: {self.owner_id}, listing storage objects...")
            objects = await self.storage.list_prefix(self.prefix)
            self._update(
                total=len(objects),
                debug_info=f"Found {len(objects)} files in bucket: {self.storage.bucket}",
            )
            if not objects:
                self._update(
                    debug_info=f'No files found in bucket "{self.storage.bucket}" under prefix "{self.prefix}".'
                )
                return self.status

            for i, obj in enumerate(objects):
                filename = obj.key.rsplit("/", 1)[-1]
                try:
                    created = await self._create_file_record(obj.key, obj.size)
                    if created:
                        self._update(processed=i + 1, files=self.status.files + 1, debug_info=f"Processing: {filename}")
                    else:
                        self._update(processed=i + 1, skipped=self.status.skipped + 1)
                except Exception as e:
                    logger.exception("Import failed for %s: %s", obj.key, e)
                    await self.db.rollback()
                    self._update(processed=i + 1, errors=[*self.status.errors, f"{filename}: {e}"])

                if i % self.pause_every == 0 and self.pause_seconds > 0:
                    await asyncio.sleep(self.pause_seconds)

            self._update(debug_info="Import complete")
        except Exception as e:
            logger.exception("Import failed: %s", e)
            self._update(errors=[*self.status.errors, f"Import failed: {e}"], debug_info=f"Error: {e}")
        finally:
            report_import(self.status.files, len(self.folder_cache), len(self.status.errors),
                          time.monotonic() - started)
            logger.info(
                "import_summary total=%s files=%s folders=%s skipped=%s errors=%s",
                self.status.total, self.status.files, len(self.folder_cache),
                self.status.skipped, len(self.status.errors),
            )
        return self.status
