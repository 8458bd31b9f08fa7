from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hacienda.core.database import get_db
from hacienda.core.security import get_current_user
from hacienda.core.storage import ObjectStorage, get_storage
from hacienda.models.user import User
from hacienda.services.alert_service import AlertService
from hacienda.services.file_service import FileService
from hacienda.services.notification_service import NotificationService, ToastCenter, get_toast_center
from hacienda.services.quick_link_service import QuickLinkService
from hacienda.services.view_state import ViewState, ViewStateStore, get_view_states


async def get_file_service(
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
    toasts: ToastCenter = Depends(get_toast_center),
) -> FileService:
    return FileService(db, storage, current_user, toasts)


async def get_notification_service(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationService:
    return NotificationService(db, current_user.id)


async def get_alert_service(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AlertService:
    return AlertService(db, current_user)


async def get_quick_link_service(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> QuickLinkService:
    return QuickLinkService(db, current_user.id)


async def get_view_state(
    current_user: User = Depends(get_current_user),
    states: ViewStateStore = Depends(get_view_states),
) -> ViewState:
    return states.get(current_user.id)
