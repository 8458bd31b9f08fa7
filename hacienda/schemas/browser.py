from typing import Literal

from pydantic import BaseModel

from hacienda.schemas.file import BreadcrumbItem, FileItemInfo, UploadProgress

ViewMode = Literal["list", "grid"]
SortField = Literal["name", "created_at", "size", "type"]
SortDirection = Literal["asc", "desc"]
ClipboardOperation = Literal["copy", "cut"]


class Clipboard(BaseModel):
    operation: ClipboardOperation
    item_ids: list[str]

class ViewStateInfo(BaseModel):
    current_folder_id: str | None
    selected_ids: list[str]
    view_mode: ViewMode
    sort_field: SortField
    sort_direction: SortDirection
    search_query: str
    clipboard: Clipboard | None
    is_trash_view: bool
    upload_progress: list[UploadProgress]

class ViewStateUpdate(BaseModel):
    current_folder_id: str | None = None
    view_mode: ViewMode | None = None
    sort_field: SortField | None = None
    sort_direction: SortDirection | None = None
    search_query: str | None = None
    is_trash_view: bool | None = None

class ClipboardRequest(BaseModel):
    operation: ClipboardOperation
    item_ids: list[str] | None = None

class BrowserListing(BaseModel):
    state: ViewStateInfo
    breadcrumbs: list[BreadcrumbItem]
    items: list[FileItemInfo]
