from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from hacienda.models.file_alert import FileAlert
from hacienda.models.file_item import FileItem
from hacienda.models.notification import NotificationType
from hacienda.services.errors import ItemNotFoundError
from hacienda.services.notification_service import create_notification
from hacienda.utils.email import email_enabled, send_email

logger = logging.getLogger("hacienda-files")

EVENT_FLAGS = {
    NotificationType.UPLOAD: FileAlert.alert_on_upload,
    NotificationType.MODIFY: FileAlert.alert_on_modify,
    NotificationType.DELETE: FileAlert.alert_on_delete,
}


class AlertService:
    """Subscriptions of one user to changes on files and folders."""

    def __init__(self, db: AsyncSession, user):
        self.db = db
        self.user = user

    async def list_alerts(self) -> list[FileAlert]:
        res = await self.db.execute(
            select(FileAlert).where(FileAlert.user_id == self.user.id).order_by(FileAlert.created_at)
        )
        return list(res.scalars().all())

    async def _find(self, file_item_id: str) -> FileAlert | None:
        res = await self.db.execute(
            select(FileAlert).where(
                FileAlert.user_id == self.user.id, FileAlert.file_item_id == file_item_id
            )
        )
        return res.scalars().first()

    async def set_alert(
        self,
        file_item_id: str,
        alert_on_upload: bool = True,
        alert_on_modify: bool = True,
        alert_on_delete: bool = True,
        email_notification: bool = True,
    ) -> FileAlert:
        item = await self.db.get(FileItem, file_item_id)
        if item is None or item.is_deleted:
            raise ItemNotFoundError("File not found")

        alert = await self._find(file_item_id)
        if alert is None:
            alert = FileAlert(file_item_id=file_item_id, user_id=self.user.id, user_email=self.user.email)
            self.db.add(alert)
        alert.alert_on_upload = alert_on_upload
        alert.alert_on_modify = alert_on_modify
        alert.alert_on_delete = alert_on_delete
        alert.email_notification = email_notification
        alert.updated_at = datetime.utcnow()

        await create_notification(
            self.db,
            user_id=self.user.id,
            title="Alert Set",
            message=f'You will be notified about changes to "{item.name}"',
            type=NotificationType.ALERT,
            file_item_id=item.id,
        )
        await self.db.commit()
        await self.db.refresh(alert)
        return alert

    async def remove_alert(self, file_item_id: str) -> None:
        alert = await self._find(file_item_id)
        if alert is None:
            raise ItemNotFoundError("Alert not found")
        await self.db.delete(alert)
        await self.db.commit()


async def notify_subscribers(
    db: AsyncSession,
    item_ids: list[str],
    event: NotificationType,
    title: str,
    message: str,
) -> int:
    """Record a notification for every alert on ``item_ids`` that covers ``event``.

    Subscribers who asked for e-mail also get one when SendGrid is configured.
    Returns the number of notifications created.
    """
    if not item_ids:
        return 0
    flag = EVENT_FLAGS[event]
    res = await db.execute(
        select(FileAlert).where(FileAlert.file_item_id.in_(item_ids), flag == True)  # noqa: E712
    )
    alerts = list(res.scalars().all())
    for alert in alerts:
        await create_notification(
            db,
            user_id=alert.user_id,
            title=title,
            message=message,
            type=event,
            file_item_id=alert.file_item_id,
        )
    if alerts:
        await db.commit()

    if email_enabled():
        for alert in alerts:
            if alert.email_notification:
                await run_in_threadpool(send_email, alert.user_email, f"Hacienda ERP: {title}", message)
    return len(alerts)
