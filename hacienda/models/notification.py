import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum, Index, String

from hacienda.core.database import Base


class NotificationType(str, enum.Enum):
    UPLOAD = "UPLOAD"
    MODIFY = "MODIFY"
    DELETE = "DELETE"
    SHARE = "SHARE"
    ALERT = "ALERT"


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_sort", "user_id", "sort_key"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    type = Column(Enum(NotificationType, name="notification_type"), nullable=False)
    file_item_id = Column(String(36), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
    sort_key = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
