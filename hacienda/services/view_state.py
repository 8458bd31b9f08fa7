from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Sequence

from hacienda.models.file_item import FileItem, ItemType
from hacienda.schemas.browser import Clipboard, ViewStateInfo
from hacienda.schemas.file import UploadProgress

SORT_KEYS = {
    "name": lambda item: (item.name or "").casefold(),
    "created_at": lambda item: item.created_at,
    "size": lambda item: item.size or 0,
    "type": lambda item: item.mime_type or "",
}


def visible_items(items: Sequence[FileItem], search_query: str = "", sort_field: str = "name",
                  sort_direction: str = "asc") -> list[FileItem]:
    """Filter by name and sort the way the browser lists a folder.

    Folders always come before files; the direction only flips the order
    within each group.
    """
    result = list(items)
    if search_query:
        needle = search_query.casefold()
        result = [item for item in result if needle in (item.name or "").casefold()]
    result.sort(key=SORT_KEYS[sort_field], reverse=sort_direction == "desc")
    result.sort(key=lambda item: 0 if item.type == ItemType.FOLDER else 1)
    return result


@dataclass
class ViewState:
    """What one user is looking at. Lives in memory only."""

    current_folder_id: str | None = None
    selected_ids: set[str] = field(default_factory=set)
    view_mode: str = "list"
    sort_field: str = "name"
    sort_direction: str = "asc"
    search_query: str = ""
    clipboard: Clipboard | None = None
    is_trash_view: bool = False
    upload_progress: list[UploadProgress] = field(default_factory=list)

    def navigate(self, folder_id: str | None = None, trash: bool | None = None) -> None:
        self.current_folder_id = folder_id or None
        if trash is not None:
            self.is_trash_view = trash
        self.clear_selection()

    def toggle_select(self, item_id: str) -> bool:
        if item_id in self.selected_ids:
            self.selected_ids.discard(item_id)
            return False
        self.selected_ids.add(item_id)
        return True

    def select_all(self, items: Sequence[FileItem]) -> None:
        self.selected_ids = {item.id for item in items}

    def clear_selection(self) -> None:
        self.selected_ids = set()

    def set_clipboard(self, operation: str, item_ids: Sequence[str]) -> None:
        self.clipboard = Clipboard(operation=operation, item_ids=list(dict.fromkeys(item_ids)))

    def clear_clipboard(self) -> None:
        self.clipboard = None

    def apply(self, items: Sequence[FileItem]) -> list[FileItem]:
        return visible_items(items, self.search_query, self.sort_field, self.sort_direction)

    def to_info(self) -> ViewStateInfo:
        return ViewStateInfo(
            current_folder_id=self.current_folder_id,
            selected_ids=sorted(self.selected_ids),
            view_mode=self.view_mode,
            sort_field=self.sort_field,
            sort_direction=self.sort_direction,
            search_query=self.search_query,
            clipboard=self.clipboard,
            is_trash_view=self.is_trash_view,
            upload_progress=list(self.upload_progress),
        )


class ViewStateStore:
    def __init__(self):
        self._states: dict[str, ViewState] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> ViewState:
        with self._lock:
            return self._states.setdefault(user_id, ViewState())

    def reset(self, user_id: str | None = None) -> None:
        with self._lock:
            if user_id is None:
                self._states.clear()
            else:
                self._states.pop(user_id, None)


view_states = ViewStateStore()


def get_view_states() -> ViewStateStore:
    return view_states
