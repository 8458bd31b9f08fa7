import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String, UniqueConstraint

from hacienda.core.database import Base


class FileAlert(Base):
    __tablename__ = "file_alerts"
    __table_args__ = (UniqueConstraint("user_id", "file_item_id", name="uq_file_alerts_user_item"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    file_item_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    user_email = Column(String, nullable=False)
    alert_on_upload = Column(Boolean, default=True, nullable=False)
    alert_on_modify = Column(Boolean, default=True, nullable=False)
    alert_on_delete = Column(Boolean, default=True, nullable=False)
    email_notification = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
