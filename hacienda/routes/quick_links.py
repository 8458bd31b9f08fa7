from fastapi import APIRouter, Depends

from hacienda.dependencies import get_quick_link_service
from hacienda.schemas.quick_link import QuickLinkCreate, QuickLinkInfo, QuickLinkReorder, QuickLinkUpdate
from hacienda.services.quick_link_service import QuickLinkService

router = APIRouter(prefix="/quick-links", tags=["Quick Links"])


@router.get("", response_model=list[QuickLinkInfo])
async def list_quick_links(links: QuickLinkService = Depends(get_quick_link_service)):
    return await links.list_links()

@router.post("", response_model=QuickLinkInfo, status_code=201)
async def create_quick_link(body: QuickLinkCreate, links: QuickLinkService = Depends(get_quick_link_service)):
    return await links.create(body.folder_id, name=body.name, folder_color=body.folder_color)

@router.post("/reorder", response_model=list[QuickLinkInfo])
async def reorder_quick_links(body: QuickLinkReorder, links: QuickLinkService = Depends(get_quick_link_service)):
    return await links.reorder(body.ids)

@router.patch("/{link_id}", response_model=QuickLinkInfo)
async def update_quick_link(link_id: str, body: QuickLinkUpdate,
                            links: QuickLinkService = Depends(get_quick_link_service)):
    return await links.update(link_id, name=body.name, folder_color=body.folder_color)

@router.delete("/{link_id}")
async def delete_quick_link(link_id: str, links: QuickLinkService = Depends(get_quick_link_service)):
    await links.delete(link_id)
    return {"status": "ok", "id": link_id}
