from fastapi import APIRouter, Depends, HTTPException

from hacienda.core.security import get_current_user
from hacienda.dependencies import get_notification_service
from hacienda.models.user import User
from hacienda.schemas.notification import NotificationInfo, NotificationListResponse, ToastInfo
from hacienda.services.notification_service import NotificationService, ToastCenter, get_toast_center

router = APIRouter(tags=["Notifications"])


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(notifications: NotificationService = Depends(get_notification_service)):
    items, unread = await notifications.list_notifications()
    return NotificationListResponse(
        notifications=[NotificationInfo.model_validate(n) for n in items],
        unread_count=unread,
    )

@router.post("/notifications/read-all")
async def mark_all_read(notifications: NotificationService = Depends(get_notification_service)):
    updated = await notifications.mark_all_read()
    return {"updated": updated}

@router.post("/notifications/{notification_id}/read", response_model=NotificationInfo)
async def mark_read(notification_id: str, notifications: NotificationService = Depends(get_notification_service)):
    return await notifications.mark_read(notification_id)

@router.delete("/notifications/{notification_id}")
async def delete_notification(notification_id: str,
                              notifications: NotificationService = Depends(get_notification_service)):
    await notifications.delete(notification_id)
    return {"status": "ok", "id": notification_id}

@router.delete("/notifications")
async def clear_notifications(notifications: NotificationService = Depends(get_notification_service)):
    deleted = await notifications.clear_all()
    return {"deleted": deleted}

@router.get("/toasts", response_model=list[ToastInfo])
async def list_toasts(
    current_user: User = Depends(get_current_user),
    toasts: ToastCenter = Depends(get_toast_center),
):
    return [
        ToastInfo(id=t.id, title=t.title, message=t.message, type=t.type, duration=t.duration)
        for t in toasts.list_toasts(current_user.id)
    ]

@router.delete("/toasts/{toast_id}")
async def dismiss_toast(
    toast_id: str,
    current_user: User = Depends(get_current_user),
    toasts: ToastCenter = Depends(get_toast_center),
):
    if not toasts.remove_toast(current_user.id, toast_id):
        raise HTTPException(status_code=404, detail="Toast not found")
    return {"status": "ok", "id": toast_id}
