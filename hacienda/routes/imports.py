from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hacienda.core.database import get_db
from hacienda.core.security import get_current_user
from hacienda.core.storage import ObjectStorage, get_storage
from hacienda.models.user import User
from hacienda.schemas.importer import ImportStatus
from hacienda.services.importer import StorageImporter
from hacienda.services.notification_service import ToastCenter, get_toast_center

router = APIRouter(prefix="/imports", tags=["Import"])


@router.post("", response_model=ImportStatus)
async def import_from_storage(
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
    toasts: ToastCenter = Depends(get_toast_center),
):
    user_id = current_user.id
    importer = StorageImporter(db, storage, owner_id=user_id, owner_email=current_user.email)
    status = await importer.run()

    if status.errors:
        toasts.show_toast(user_id, "Import Finished With Errors",
                          f"{status.files} file(s) imported, {len(status.errors)} error(s)", "warning")
    else:
        toasts.show_toast(user_id, "Import Complete",
                          f"{status.files} file(s) and {status.folders} folder(s) imported", "success")
    return status
