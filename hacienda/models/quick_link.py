import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String

from hacienda.core.database import Base


class QuickLink(Base):
    __tablename__ = "quick_links"
    __table_args__ = (Index("ix_quick_links_user_order", "user_id", "sort_order"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False)
    name = Column(String, nullable=False)
    folder_id = Column(String(36), nullable=False)
    folder_color = Column(String, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
