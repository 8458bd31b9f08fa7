from __future__ import annotations

import logging
import os
import tempfile
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hacienda.core.config import settings
from hacienda.core.storage import ObjectStorage
from hacienda.models.file_alert import FileAlert
from hacienda.models.file_item import FileItem, ItemType
from hacienda.models.notification import NotificationType
from hacienda.models.quick_link import QuickLink
from hacienda.schemas.file import BreadcrumbItem, UploadProgress
from hacienda.services.alert_service import notify_subscribers
from hacienda.services.errors import (
    InvalidNameError,
    InvalidOperationError,
    ItemNotFoundError,
    ServiceError,
    StorageOperationError,
)
from hacienda.services.notification_service import ToastCenter, toast_center
from hacienda.utils.files import (
    format_file_size,
    generate_storage_key,
    get_mime_type,
    is_valid_file_name,
    with_extension_of,
)

logger = logging.getLogger("hacienda-files")

INVALID_NAME_MESSAGE = 'Invalid name. Avoid special characters like < > : " / \\ | ? *'
CHUNK_SIZE = 1024 * 1024

ProgressCallback = Callable[[list[UploadProgress]], None]


async def drop_item_references(db: AsyncSession, item_ids: list[str]) -> None:
    """Remove alerts and quick links that point at permanently deleted items."""
    if not item_ids:
        return
    await db.execute(delete(FileAlert).where(FileAlert.file_item_id.in_(item_ids)))
    await db.execute(delete(QuickLink).where(QuickLink.folder_id.in_(item_ids)))


async def collect_subtree(db: AsyncSession, root: FileItem) -> list[FileItem]:
    """Return ``root`` and every row below it, deepest level first.

    Trashing a folder leaves its children live, so the walk ignores
    ``is_deleted``.
    """
    levels = [[root]]
    seen = {root.id}
    while True:
        parent_ids = [item.id for item in levels[-1] if item.is_folder]
        if not parent_ids:
            break
        res = await db.execute(select(FileItem).where(FileItem.parent_id.in_(parent_ids)))
        children = [child for child in res.scalars().all() if child.id not in seen]
        if not children:
            break
        seen.update(child.id for child in children)
        levels.append(children)
    return [item for level in reversed(levels) for item in level]


class FileService:
    """File and folder operations on behalf of one signed-in user.

    Every mutation reports its outcome as a toast. Multi-item operations issue
    one update per item and commit as they go, so a failure part way leaves the
    earlier items changed.
    """

    def __init__(self, db: AsyncSession, storage: ObjectStorage, user, toasts: ToastCenter = toast_center):
        self.db = db
        self.storage = storage
        # plain values: a rollback expires ORM rows, including the user's
        self.user_id = user.id
        self.user_email = user.email
        self.toasts = toasts

    def _toast(self, title: str, message: str, type: str = "success") -> None:
        self.toasts.show_toast(self.user_id, title, message, type)

    @asynccontextmanager
    async def _reporting(self, title: str, message: str):
        try:
            yield
        except ServiceError:
            raise
        except Exception as e:
            logger.exception("%s: %s", title, e)
            await self.db.rollback()
            self._toast(title, message, "error")
            raise StorageOperationError(message) from e

    async def _rollback(self, keep: Iterable[FileItem] = ()) -> None:
        await self.db.rollback()
        # rollback expires everything; reload the rows the caller still returns
        for item in keep:
            await self.db.refresh(item)

    async def _notify(self, item_ids: list[str], event: NotificationType, title: str, message: str,
                      keep: Iterable[FileItem] = ()) -> None:
        try:
            await notify_subscribers(self.db, item_ids, event, title, message)
        except Exception as e:
            logger.exception("Failed to notify subscribers of %s: %s", item_ids, e)
            await self._rollback(keep)

    # Lookups

    async def get_item(self, item_id: str) -> FileItem:
        item = await self.db.get(FileItem, item_id)
        if item is None:
            raise ItemNotFoundError("File not found")
        return item

    async def _get_many(self, ids: Iterable[str]) -> list[FileItem]:
        ids = list(dict.fromkeys(ids))
        res = await self.db.execute(select(FileItem).where(FileItem.id.in_(ids)))
        found = {item.id: item for item in res.scalars().all()}
        missing = [i for i in ids if i not in found]
        if missing:
            raise ItemNotFoundError(f"File not found: {', '.join(missing)}")
        return [found[i] for i in ids]

    async def get_folder(self, folder_id: str | None) -> FileItem | None:
        if not folder_id:
            return None
        folder = await self.db.get(FileItem, folder_id)
        if folder is None or folder.is_deleted or not folder.is_folder:
            raise ItemNotFoundError("Folder not found")
        return folder

    async def list_items(self, folder_id: str | None = None, trash: bool = False) -> list[FileItem]:
        stmt = select(FileItem).where(FileItem.is_deleted == trash)
        if not trash:
            if folder_id:
                stmt = stmt.where(FileItem.parent_id == folder_id)
            else:
                stmt = stmt.where(FileItem.parent_id.is_(None))
        res = await self.db.execute(stmt.order_by(FileItem.name))
        return list(res.scalars().all())

    async def list_folders(self, parent_id: str | None = None) -> list[FileItem]:
        stmt = select(FileItem).where(FileItem.type == ItemType.FOLDER, FileItem.is_deleted == False)  # noqa: E712
        if parent_id:
            stmt = stmt.where(FileItem.parent_id == parent_id)
        else:
            stmt = stmt.where(FileItem.parent_id.is_(None))
        res = await self.db.execute(stmt.order_by(FileItem.name))
        return list(res.scalars().all())

    async def breadcrumbs(self, folder_id: str | None) -> list[BreadcrumbItem]:
        crumbs: list[BreadcrumbItem] = []
        seen: set[str] = set()
        while folder_id and folder_id not in seen:
            seen.add(folder_id)
            folder = await self.db.get(FileItem, folder_id)
            if folder is None:
                break
            crumbs.insert(0, BreadcrumbItem(id=folder.id, name=folder.name))
            folder_id = folder.parent_id
        return crumbs

    async def _ancestor_ids(self, folder_id: str | None) -> set[str]:
        return {crumb.id for crumb in await self.breadcrumbs(folder_id)}

    # Upload

    async def _spool(self, upload, entry: UploadProgress, report: Callable[[], None]) -> tuple[str, int]:
        total = getattr(upload, "size", None) or 0
        written = 0
        suffix = "_" + os.path.basename(upload.filename) if upload.filename else ""
        with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
            try:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > settings.MAX_FILE_SIZE:
                        raise InvalidOperationError("File exceeds the maximum upload size")
                    tmp.write(chunk)
                    if total:
                        # the last percent is reserved for the storage write
                        entry.progress = min(99, int(written * 100 / total))
                        report()
            except BaseException:
                tmp.close()
                os.remove(tmp.name)
                raise
        return tmp.name, written

    async def upload(self, folder_id: str | None, files: list, on_progress: ProgressCallback | None = None
                     ) -> tuple[list[FileItem], list[UploadProgress]]:
        """Stream each file to object storage, then record it under ``folder_id``.

        A failing file is marked as errored and the remaining files still go
        through.
        """
        folder = await self.get_folder(folder_id)
        folder_name = folder.name if folder is not None else None
        progress = [UploadProgress(file_name=f.filename or "file.bin") for f in files]

        def report():
            if on_progress:
                on_progress([p.model_copy() for p in progress])

        report()
        created: list[FileItem] = []
        for i, upload in enumerate(files):
            name = upload.filename or "file.bin"
            progress[i].status = "uploading"
            report()

            temp_path = None
            try:
                if not is_valid_file_name(name):
                    raise InvalidNameError(INVALID_NAME_MESSAGE)
                temp_path, size = await self._spool(upload, progress[i], report)
                content_type = upload.content_type
                if not content_type or content_type == "application/octet-stream":
                    content_type = get_mime_type(name)
                key = generate_storage_key(folder_id, name)
                await self.storage.put_file(key, temp_path, content_type)

                item = FileItem(
                    name=name,
                    type=ItemType.FILE,
                    parent_id=folder_id,
                    storage_key=key,
                    size=size,
                    mime_type=content_type,
                    is_deleted=False,
                    owner_id=self.user_id,
                    owner_email=self.user_email,
                )
                self.db.add(item)
                await self.db.commit()
                await self.db.refresh(item)
                created.append(item)
                progress[i].progress = 100
                progress[i].status = "completed"
            except Exception as e:
                logger.exception("Upload failed for %s: %s", name, e)
                await self._rollback(created)
                progress[i].status = "error"
                progress[i].error = e.message if isinstance(e, ServiceError) else "Upload failed"
            finally:
                if temp_path:
                    try:
                        os.remove(temp_path)
                    except OSError:
                        logger.warning("Could not remove temp file %s", temp_path)
            report()

        failed = len(files) - len(created)
        if created:
            self._toast("Upload Complete", f"{len(created)} file(s) uploaded successfully")
        if failed:
            self._toast("Upload Failed", f"{failed} file(s) failed to upload", "error")

        if created and folder is not None:
            total_size = format_file_size(sum(item.size or 0 for item in created))
            await self._notify(
                [folder_id],
                NotificationType.UPLOAD,
                "New Upload",
                f'{len(created)} file(s) ({total_size}) uploaded to "{folder_name}" by {self.user_email}',
                keep=created,
            )
        return created, progress

    # Single item mutations

    async def create_folder(self, name: str, parent_id: str | None = None) -> FileItem:
        name = (name or "").strip()
        if not name:
            raise InvalidNameError("Folder name is required")
        if not is_valid_file_name(name):
            raise InvalidNameError(INVALID_NAME_MESSAGE)
        await self.get_folder(parent_id)

        async with self._reporting("Create Folder Failed", f'Failed to create "{name}"'):
            folder = FileItem(
                name=name,
                type=ItemType.FOLDER,
                parent_id=parent_id,
                is_deleted=False,
                owner_id=self.user_id,
                owner_email=self.user_email,
            )
            self.db.add(folder)
            await self.db.commit()
            await self.db.refresh(folder)

        self._toast("Folder Created", f'"{name}" has been created')
        return folder

    async def rename(self, item_id: str, new_name: str) -> FileItem:
        item = await self.get_item(item_id)
        if not (new_name or "").strip():
            raise InvalidNameError("Name is required")
        final_name = with_extension_of(item.name, new_name) if item.type == ItemType.FILE else new_name.strip()
        if not is_valid_file_name(final_name):
            raise InvalidNameError(INVALID_NAME_MESSAGE)

        old_name = item.name
        async with self._reporting("Rename Failed", f'Failed to rename "{old_name}"'):
            item.name = final_name
            await self.db.commit()
            await self.db.refresh(item)

        self._toast("Renamed", f'Item renamed to "{final_name}"')
        await self._notify([item.id], NotificationType.MODIFY, "Item Renamed",
                           f'"{old_name}" was renamed to "{final_name}" by {self.user_email}', keep=[item])
        return item

    async def update_folder_color(self, item_id: str, color: str | None) -> FileItem:
        item = await self.get_item(item_id)
        if not item.is_folder:
            raise InvalidOperationError("Only folders can be colored")
        if color is not None and color not in settings.FOLDER_COLORS.values():
            raise InvalidOperationError(f"Unsupported folder color: {color}")

        async with self._reporting("Update Failed", f'Failed to update the color of "{item.name}"'):
            item.folder_color = color
            await self.db.commit()
            await self.db.refresh(item)

        self._toast("Folder Color Updated", f'"{item.name}" color updated')
        await self._notify([item.id], NotificationType.MODIFY, "Folder Updated",
                           f'The color of "{item.name}" was changed by {self.user_email}', keep=[item])
        return item

    # Bulk mutations

    async def delete(self, ids: list[str], permanent: bool = False) -> list[str]:
        items = await self._get_many(ids)
        done: list[str] = []
        removed: set[str] = set()
        failure = "Failed to delete the selected item(s)"

        async with self._reporting("Delete Failed", failure):
            for item in items:
                if permanent:
                    if item.id not in removed:
                        await self._remove_subtree(item, removed)
                else:
                    if item.storage_key:
                        trash_key = self.storage.to_trash_key(item.storage_key)
                        await self.storage.move(item.storage_key, trash_key)
                        item.storage_key = trash_key
                    item.is_deleted = True
                    item.deleted_at = datetime.utcnow()
                await self.db.commit()
                done.append(item.id)

        if permanent:
            self._toast("Permanently Deleted", f"{len(done)} item(s) deleted")
        else:
            self._toast("Moved to Trash", f"{len(done)} item(s) moved to trash")
            names = ", ".join(f'"{item.name}"' for item in items)
            await self._notify(done, NotificationType.DELETE, "Item Deleted",
                               f"{names} moved to trash by {self.user_email}")
        return done

    async def _remove_subtree(self, root: FileItem, removed: set[str]) -> None:
        # children go first so a storage failure never leaves a row without its parent
        for node in await collect_subtree(self.db, root):
            if node.storage_key:
                await self.storage.delete(node.storage_key)
            await drop_item_references(self.db, [node.id])
            await self.db.delete(node)
            await self.db.commit()
            removed.add(node.id)

    async def restore(self, ids: list[str]) -> list[str]:
        items = await self._get_many(ids)
        done: list[str] = []

        async with self._reporting("Restore Failed", "Failed to restore the selected item(s)"):
            for item in items:
                if item.storage_key:
                    files_key = self.storage.to_files_key(item.storage_key)
                    await self.storage.move(item.storage_key, files_key)
                    item.storage_key = files_key
                item.is_deleted = False
                item.deleted_at = None
                await self.db.commit()
                done.append(item.id)

        self._toast("Restored", f"{len(done)} item(s) restored")
        return done

    async def empty_trash(self) -> list[str]:
        trashed = await self.list_items(trash=True)
        if not trashed:
            return []
        return await self.delete([item.id for item in trashed], permanent=True)

    async def move(self, ids: list[str], target_folder_id: str | None) -> list[str]:
        items = await self._get_many(ids)
        target = await self.get_folder(target_folder_id)
        blocked = await self._ancestor_ids(target.id) if target else set()
        for item in items:
            if item.id in blocked:
                raise InvalidOperationError(f'Cannot move "{item.name}" into itself')

        done: list[str] = []
        async with self._reporting("Move Failed", "Failed to move the selected item(s)"):
            for item in items:
                item.parent_id = target_folder_id
                await self.db.commit()
                done.append(item.id)

        self._toast("Moved", f"{len(done)} item(s) moved")
        destination = f'"{target.name}"' if target else "the root folder"
        await self._notify(done, NotificationType.MODIFY, "Item Moved",
                           f"{len(done)} item(s) moved to {destination} by {self.user_email}")
        return done

    async def copy(self, ids: list[str], target_folder_id: str | None) -> list[FileItem]:
        """Duplicate items under ``target_folder_id``.

        Files get a copied blob under a fresh key; folders get a single new row
        named "<name> (Copy)" without their contents.
        """
        items = await self._get_many(ids)
        await self.get_folder(target_folder_id)

        copies: list[FileItem] = []
        async with self._reporting("Copy Failed", "Failed to copy the selected item(s)"):
            for item in items:
                new_key = None
                if item.type == ItemType.FILE and item.storage_key:
                    new_key = generate_storage_key(target_folder_id, item.name)
                    await self.storage.copy(item.storage_key, new_key)

                duplicate = FileItem(
                    name=item.name if item.type == ItemType.FILE else f"{item.name} (Copy)",
                    type=item.type,
                    parent_id=target_folder_id,
                    storage_key=new_key,
                    size=item.size,
                    mime_type=item.mime_type,
                    folder_color=item.folder_color,
                    is_deleted=False,
                    owner_id=self.user_id,
                    owner_email=self.user_email,
                )
                self.db.add(duplicate)
                await self.db.commit()
                await self.db.refresh(duplicate)
                copies.append(duplicate)

        self._toast("Copied", f"{len(copies)} item(s) copied")
        return copies

    # Blob access

    def _require_blob(self, item: FileItem) -> str:
        if item.type == ItemType.FOLDER or not item.storage_key:
            raise InvalidOperationError("Folders cannot be downloaded")
        return item.storage_key

    async def access_url(self, item_id: str) -> str:
        item = await self.get_item(item_id)
        key = self._require_blob(item)
        async with self._reporting("Preview Failed", f'Failed to load "{item.name}"'):
            return await self.storage.presigned_url(key, settings.ACCESS_URL_EXPIRE_SECONDS)

    async def open_download(self, item_id: str):
        """Return ``(item, stat, stream)`` for a file; the caller closes the stream."""
        item = await self.get_item(item_id)
        key = self._require_blob(item)
        async with self._reporting("Download Failed", "Failed to download the file"):
            stat = await self.storage.stat(key)
            obj = await self.storage.open(key)
        return item, stat, obj
