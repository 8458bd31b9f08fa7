from __future__ import annotations

from fastapi import APIRouter, Depends, Query, UploadFile

from hacienda.core.config import settings
from hacienda.dependencies import get_file_service, get_view_state
from hacienda.schemas.file import (
    AccessUrlResponse,
    BreadcrumbItem,
    BulkResult,
    DeleteRequest,
    FileItemInfo,
    FileListResponse,
    FolderColorRequest,
    FolderCreate,
    ItemIdsRequest,
    RenameRequest,
    TransferRequest,
    UploadResponse,
)
from hacienda.services.file_service import FileService
from hacienda.services.view_state import ViewState

router = APIRouter(tags=["Files"])


def _listing(items) -> FileListResponse:
    return FileListResponse(items=[FileItemInfo.model_validate(i) for i in items], total=len(items))


@router.get("/files", response_model=FileListResponse)
async def list_files(
    folder_id: str | None = Query(None, description="Folder to list; omit for the root"),
    trash: bool = Query(False, description="List every trashed item instead"),
    files: FileService = Depends(get_file_service),
):
    return _listing(await files.list_items(folder_id, trash))


@router.get("/folders", response_model=FileListResponse)
async def list_folders(
    parent_id: str | None = Query(None, description="Parent folder; omit for the root"),
    files: FileService = Depends(get_file_service),
):
    return _listing(await files.list_folders(parent_id))


@router.post("/folders", response_model=FileItemInfo, status_code=201)
async def create_folder(body: FolderCreate, files: FileService = Depends(get_file_service)):
    return await files.create_folder(body.name, body.parent_id)


@router.get("/files/{item_id}", response_model=FileItemInfo)
async def get_file(item_id: str, files: FileService = Depends(get_file_service)):
    return await files.get_item(item_id)


@router.get("/files/{item_id}/breadcrumbs", response_model=list[BreadcrumbItem])
async def get_breadcrumbs(item_id: str, files: FileService = Depends(get_file_service)):
    await files.get_item(item_id)
    return await files.breadcrumbs(item_id)


@router.post("/upload", response_model=UploadResponse)
async def upload_files(
    uploads: list[UploadFile],
    folder_id: str | None = Query(None),
    files: FileService = Depends(get_file_service),
    state: ViewState = Depends(get_view_state),
):
    def track(progress):
        state.upload_progress = progress

    created, progress = await files.upload(folder_id, uploads, on_progress=track)
    return UploadResponse(items=[FileItemInfo.model_validate(i) for i in created], progress=progress)


@router.patch("/files/{item_id}/name", response_model=FileItemInfo)
async def rename_item(item_id: str, body: RenameRequest, files: FileService = Depends(get_file_service)):
    return await files.rename(item_id, body.name)


@router.patch("/files/{item_id}/color", response_model=FileItemInfo)
async def update_folder_color(item_id: str, body: FolderColorRequest, files: FileService = Depends(get_file_service)):
    return await files.update_folder_color(item_id, body.color)


@router.post("/files/delete", response_model=BulkResult)
async def delete_items(body: DeleteRequest, files: FileService = Depends(get_file_service)):
    ids = await files.delete(body.ids, permanent=body.permanent)
    return BulkResult(ids=ids, count=len(ids))


@router.post("/files/restore", response_model=BulkResult)
async def restore_items(body: ItemIdsRequest, files: FileService = Depends(get_file_service)):
    ids = await files.restore(body.ids)
    return BulkResult(ids=ids, count=len(ids))


@router.post("/files/move", response_model=BulkResult)
async def move_items(body: TransferRequest, files: FileService = Depends(get_file_service)):
    ids = await files.move(body.ids, body.target_folder_id)
    return BulkResult(ids=ids, count=len(ids))


@router.post("/files/copy", response_model=FileListResponse)
async def copy_items(body: TransferRequest, files: FileService = Depends(get_file_service)):
    return _listing(await files.copy(body.ids, body.target_folder_id))


@router.get("/files/{item_id}/url", response_model=AccessUrlResponse)
async def get_access_url(item_id: str, files: FileService = Depends(get_file_service)):
    url = await files.access_url(item_id)
    return AccessUrlResponse(url=url, expires_in=settings.ACCESS_URL_EXPIRE_SECONDS)


@router.get("/trash", response_model=FileListResponse)
async def list_trash(files: FileService = Depends(get_file_service)):
    return _listing(await files.list_items(trash=True))


@router.delete("/trash", response_model=BulkResult)
async def empty_trash(files: FileService = Depends(get_file_service)):
    ids = await files.empty_trash()
    return BulkResult(ids=ids, count=len(ids))
