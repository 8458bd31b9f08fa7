import enum
import uuid
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Enum, Index, String

from hacienda.core.database import Base


class ItemType(str, enum.Enum):
    FILE = "FILE"
    FOLDER = "FOLDER"


class FileItem(Base):
    """A file or a folder in the shared tree.

    ``parent_id`` is null for items at the root. Files point at a blob through
    ``storage_key``; folders never have one.
    """

    __tablename__ = "file_items"
    __table_args__ = (
        Index("ix_file_items_parent_name", "parent_id", "name"),
        Index("ix_file_items_owner_name", "owner_id", "name"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    type = Column(Enum(ItemType, name="item_type"), nullable=False, default=ItemType.FILE)
    parent_id = Column(String(36), nullable=True)
    storage_key = Column(String, nullable=True)
    size = Column(BigInteger, nullable=True)
    mime_type = Column(String, nullable=True)
    folder_color = Column(String, nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    owner_id = Column(String(36), nullable=False)
    owner_email = Column(String, nullable=True)
    sort_order = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_folder(self) -> bool:
        return self.type == ItemType.FOLDER
