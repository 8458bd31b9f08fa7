from fastapi import APIRouter, Depends

from hacienda.dependencies import get_alert_service
from hacienda.schemas.notification import FileAlertInfo, FileAlertRequest
from hacienda.services.alert_service import AlertService

router = APIRouter(tags=["Alerts"])


@router.get("/alerts", response_model=list[FileAlertInfo])
async def list_alerts(alerts: AlertService = Depends(get_alert_service)):
    return await alerts.list_alerts()

@router.put("/files/{item_id}/alert", response_model=FileAlertInfo)
async def set_alert(item_id: str, body: FileAlertRequest, alerts: AlertService = Depends(get_alert_service)):
    return await alerts.set_alert(
        item_id,
        alert_on_upload=body.alert_on_upload,
        alert_on_modify=body.alert_on_modify,
        alert_on_delete=body.alert_on_delete,
        email_notification=body.email_notification,
    )

@router.delete("/files/{item_id}/alert")
async def remove_alert(item_id: str, alerts: AlertService = Depends(get_alert_service)):
    await alerts.remove_alert(item_id)
    return {"status": "ok", "id": item_id}
