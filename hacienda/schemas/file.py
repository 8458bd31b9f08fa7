from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from hacienda.models.file_item import ItemType


class FileItemInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: ItemType
    parent_id: str | None
    storage_key: str | None
    size: int | None
    mime_type: str | None
    folder_color: str | None
    is_deleted: bool
    deleted_at: datetime | None
    owner_id: str
    owner_email: str | None
    sort_order: str | None = None
    created_at: datetime
    updated_at: datetime

class FileListResponse(BaseModel):
    items: list[FileItemInfo]
    total: int

class BreadcrumbItem(BaseModel):
    id: str | None
    name: str

class UploadProgress(BaseModel):
    file_name: str
    progress: int = 0
    status: Literal["pending", "uploading", "completed", "error"] = "pending"
    error: str | None = None

class UploadResponse(BaseModel):
    items: list[FileItemInfo]
    progress: list[UploadProgress]

class FolderCreate(BaseModel):
    name: str
    parent_id: str | None = None

class RenameRequest(BaseModel):
    name: str

class FolderColorRequest(BaseModel):
    color: str | None = None

class ItemIdsRequest(BaseModel):
    ids: list[str] = Field(min_length=1)

class DeleteRequest(ItemIdsRequest):
    permanent: bool = False

class TransferRequest(ItemIdsRequest):
    target_folder_id: str | None = None

class BulkResult(BaseModel):
    ids: list[str]
    count: int

class AccessUrlResponse(BaseModel):
    url: str
    expires_in: int
