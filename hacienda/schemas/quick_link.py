from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class QuickLinkCreate(BaseModel):
    folder_id: str
    name: str | None = None
    folder_color: str | None = None

class QuickLinkUpdate(BaseModel):
    name: str | None = None
    folder_color: str | None = None

class QuickLinkReorder(BaseModel):
    ids: list[str] = Field(min_length=1)

class QuickLinkInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    folder_id: str
    folder_color: str | None
    sort_order: int
    created_at: datetime
