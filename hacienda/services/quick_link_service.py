from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hacienda.core.config import settings
from hacienda.models.file_item import FileItem
from hacienda.models.quick_link import QuickLink
from hacienda.services.errors import InvalidNameError, InvalidOperationError, ItemNotFoundError


class QuickLinkService:
    """Folders a user pinned to the sidebar."""

    def __init__(self, db: AsyncSession, user_id: str):
        self.db = db
        self.user_id = user_id

    async def list_links(self) -> list[QuickLink]:
        res = await self.db.execute(
            select(QuickLink)
            .where(QuickLink.user_id == self.user_id)
            .order_by(QuickLink.sort_order, QuickLink.created_at)
        )
        return list(res.scalars().all())

    async def _get(self, link_id: str) -> QuickLink:
        res = await self.db.execute(
            select(QuickLink).where(QuickLink.id == link_id, QuickLink.user_id == self.user_id)
        )
        link = res.scalars().first()
        if link is None:
            raise ItemNotFoundError("Quick link not found")
        return link

    @staticmethod
    def _check_color(color: str | None) -> None:
        if color is not None and color not in settings.FOLDER_COLORS.values():
            raise InvalidOperationError(f"Unsupported folder color: {color}")

    async def create(self, folder_id: str, name: str | None = None, folder_color: str | None = None) -> QuickLink:
        folder = await self.db.get(FileItem, folder_id)
        if folder is None or folder.is_deleted or not folder.is_folder:
            raise ItemNotFoundError("Folder not found")
        self._check_color(folder_color)

        res = await self.db.execute(
            select(func.max(QuickLink.sort_order)).where(QuickLink.user_id == self.user_id)
        )
        last = res.scalar()
        link = QuickLink(
            user_id=self.user_id,
            name=(name or "").strip() or folder.name,
            folder_id=folder.id,
            folder_color=folder_color or folder.folder_color,
            sort_order=0 if last is None else last + 1,
        )
        self.db.add(link)
        await self.db.commit()
        await self.db.refresh(link)
        return link

    async def update(self, link_id: str, name: str | None = None, folder_color: str | None = None) -> QuickLink:
        link = await self._get(link_id)
        if name is not None:
            if not name.strip():
                raise InvalidNameError("Name is required")
            link.name = name.strip()
        if folder_color is not None:
            self._check_color(folder_color)
            link.folder_color = folder_color
        await self.db.commit()
        await self.db.refresh(link)
        return link

    async def delete(self, link_id: str) -> None:
        link = await self._get(link_id)
        await self.db.delete(link)
        await self.db.commit()

    async def reorder(self, ids: list[str]) -> list[QuickLink]:
        links = {link.id: link for link in await self.list_links()}
        unknown = [i for i in ids if i not in links]
        if unknown:
            raise ItemNotFoundError(f"Quick link not found: {', '.join(unknown)}")
        ordered = list(dict.fromkeys(ids))
        ordered += [link_id for link_id in links if link_id not in ordered]
        for position, link_id in enumerate(ordered):
            links[link_id].sort_order = position
        await self.db.commit()
        return [links[link_id] for link_id in ordered]
