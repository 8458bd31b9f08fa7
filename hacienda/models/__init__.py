from .file_alert import FileAlert
from .file_item import FileItem, ItemType
from .notification import Notification, NotificationType
from .quick_link import QuickLink
from .user import User

__all__ = [
    "FileAlert",
    "FileItem",
    "ItemType",
    "Notification",
    "NotificationType",
    "QuickLink",
    "User",
]
