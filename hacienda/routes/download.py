from __future__ import annotations

import urllib.parse

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from hacienda.core.storage import ObjectStorage, get_storage
from hacienda.dependencies import get_file_service
from hacienda.services.file_service import FileService

router = APIRouter(tags=["Download"])


def _rfc5987_filename(value: str) -> str:
    # plain filename for old clients, filename* for the exact UTF-8 name
    quoted = urllib.parse.quote(value, safe="")
    fallback = value.encode("latin-1", "replace").decode("latin-1").replace('"', "'")
    return f'filename="{fallback}"; filename*=UTF-8\'\'{quoted}'


@router.get("/files/{item_id}/download")
async def download_file(
    item_id: str,
    files: FileService = Depends(get_file_service),
    storage: ObjectStorage = Depends(get_storage),
):
    item, stat, obj = await files.open_download(item_id)

    headers = {"Content-Disposition": f"attachment; {_rfc5987_filename(item.name or 'download.bin')}"}
    size = getattr(stat, "size", None)
    if size is not None:
        headers["Content-Length"] = str(size)

    media_type = item.mime_type or getattr(stat, "content_type", None) or "application/octet-stream"

    return StreamingResponse(
        storage.iter_chunks(obj),
        media_type=media_type,
        headers=headers,
    )
