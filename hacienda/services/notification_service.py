from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hacienda.core.config import settings
from hacienda.models.notification import Notification, NotificationType
from hacienda.services.errors import ItemNotFoundError

logger = logging.getLogger("hacienda-files")

TOAST_TYPES = ("success", "error", "info", "warning")


@dataclass
class Toast:
    id: str
    title: str
    message: str
    type: str
    duration: float
    expires_at: float = field(repr=False)


class ToastCenter:
    """Ephemeral, per-user toasts that dismiss themselves after ``duration`` seconds."""

    def __init__(self, default_duration: float = settings.TOAST_DURATION_SECONDS):
        self.default_duration = default_duration
        self._toasts: dict[str, list[Toast]] = {}
        self._lock = threading.Lock()

    def show_toast(self, user_id: str, title: str, message: str, type: str = "info",
                   duration: float | None = None) -> Toast:
        if type not in TOAST_TYPES:
            raise ValueError(f"Unknown toast type: {type}")
        duration = self.default_duration if duration is None else duration
        now = time.monotonic()
        toast = Toast(
            id=uuid.uuid4().hex[:12],
            title=title,
            message=message,
            type=type,
            duration=duration,
            expires_at=now + duration,
        )
        with self._lock:
            self._prune(user_id, now).append(toast)
        return toast

    def _prune(self, user_id: str, now: float) -> list[Toast]:
        # callers hold the lock
        alive = [t for t in self._toasts.get(user_id, []) if t.expires_at > now]
        self._toasts[user_id] = alive
        return alive

    def list_toasts(self, user_id: str) -> list[Toast]:
        now = time.monotonic()
        with self._lock:
            return list(self._prune(user_id, now))

    def remove_toast(self, user_id: str, toast_id: str) -> bool:
        with self._lock:
            toasts = self._toasts.get(user_id, [])
            remaining = [t for t in toasts if t.id != toast_id]
            self._toasts[user_id] = remaining
            return len(remaining) != len(toasts)

    def clear(self, user_id: str | None = None) -> None:
        with self._lock:
            if user_id is None:
                self._toasts.clear()
            else:
                self._toasts.pop(user_id, None)


toast_center = ToastCenter()


def get_toast_center() -> ToastCenter:
    return toast_center


def make_sort_key(created_at: datetime, notification_id: str) -> str:
    return f"{created_at.strftime('%Y-%m-%dT%H:%M:%S.%f')}#{notification_id}"


async def create_notification(
    db: AsyncSession,
    user_id: str,
    title: str,
    message: str,
    type: NotificationType,
    file_item_id: str | None = None,
) -> Notification:
    """Add a notification row to the session. The caller commits."""
    now = datetime.utcnow()
    notification_id = str(uuid.uuid4())
    notification = Notification(
        id=notification_id,
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        file_item_id=file_item_id,
        is_read=False,
        sort_key=make_sort_key(now, notification_id),
        created_at=now,
        updated_at=now,
    )
    db.add(notification)
    return notification


class NotificationService:
    """Persisted notifications of one user."""

    def __init__(self, db: AsyncSession, user_id: str):
        self.db = db
        self.user_id = user_id

    async def list_notifications(self) -> tuple[list[Notification], int]:
        res = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == self.user_id)
            .order_by(Notification.sort_key.desc())
        )
        notifications = list(res.scalars().all())
        return notifications, await self.unread_count()

    async def unread_count(self) -> int:
        res = await self.db.execute(
            select(func.count()).select_from(Notification).where(
                Notification.user_id == self.user_id, Notification.is_read == False  # noqa: E712
            )
        )
        return res.scalar_one()

    async def _get(self, notification_id: str) -> Notification:
        res = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id, Notification.user_id == self.user_id
            )
        )
        notification = res.scalars().first()
        if notification is None:
            raise ItemNotFoundError("Notification not found")
        return notification

    async def mark_read(self, notification_id: str) -> Notification:
        notification = await self._get(notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.utcnow()
            await self.db.commit()
        return notification

    async def mark_all_read(self) -> int:
        res = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == self.user_id, Notification.is_read == False)  # noqa: E712
            .values(is_read=True, read_at=datetime.utcnow())
        )
        await self.db.commit()
        return res.rowcount

    async def delete(self, notification_id: str) -> None:
        notification = await self._get(notification_id)
        await self.db.delete(notification)
        await self.db.commit()

    async def clear_all(self) -> int:
        res = await self.db.execute(delete(Notification).where(Notification.user_id == self.user_id))
        await self.db.commit()
        return res.rowcount
