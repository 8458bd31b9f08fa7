from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

from hacienda.models.notification import NotificationType


class NotificationInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    file_item_id: str | None
    is_read: bool
    read_at: datetime | None
    created_at: datetime

class NotificationListResponse(BaseModel):
    notifications: list[NotificationInfo]
    unread_count: int

class ToastInfo(BaseModel):
    id: str
    title: str
    message: str
    type: Literal["success", "error", "info", "warning"]
    duration: float

class FileAlertRequest(BaseModel):
    alert_on_upload: bool = True
    alert_on_modify: bool = True
    alert_on_delete: bool = True
    email_notification: bool = True

class FileAlertInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    file_item_id: str
    user_id: str
    user_email: str
    alert_on_upload: bool
    alert_on_modify: bool
    alert_on_delete: bool
    email_notification: bool
    created_at: datetime
    updated_at: datetime
