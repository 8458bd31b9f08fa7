from fastapi import APIRouter, Depends, HTTPException

from hacienda.dependencies import get_file_service, get_view_state
from hacienda.schemas.browser import BrowserListing, ClipboardRequest, ViewStateInfo, ViewStateUpdate
from hacienda.schemas.file import BulkResult, FileItemInfo
from hacienda.services.file_service import FileService
from hacienda.services.view_state import ViewState

router = APIRouter(prefix="/browser", tags=["Browser"])


async def _visible(state: ViewState, files: FileService):
    items = await files.list_items(state.current_folder_id, state.is_trash_view)
    return state.apply(items)


@router.get("/state", response_model=ViewStateInfo)
async def read_state(state: ViewState = Depends(get_view_state)):
    return state.to_info()

@router.patch("/state", response_model=ViewStateInfo)
async def update_state(
    body: ViewStateUpdate,
    state: ViewState = Depends(get_view_state),
    files: FileService = Depends(get_file_service),
):
    changed = body.model_fields_set
    if "current_folder_id" in changed or "is_trash_view" in changed:
        folder_id = body.current_folder_id if "current_folder_id" in changed else state.current_folder_id
        if folder_id:
            await files.get_folder(folder_id)
        state.navigate(folder_id, body.is_trash_view if "is_trash_view" in changed else None)
    for name in ("view_mode", "sort_field", "sort_direction", "search_query"):
        value = getattr(body, name)
        if name in changed and value is not None:
            setattr(state, name, value)
    return state.to_info()

@router.get("/items", response_model=BrowserListing)
async def list_visible_items(
    state: ViewState = Depends(get_view_state),
    files: FileService = Depends(get_file_service),
):
    items = await _visible(state, files)
    crumbs = [] if state.is_trash_view else await files.breadcrumbs(state.current_folder_id)
    return BrowserListing(
        state=state.to_info(),
        breadcrumbs=crumbs,
        items=[FileItemInfo.model_validate(i) for i in items],
    )

@router.post("/selection/all", response_model=ViewStateInfo)
async def select_all(state: ViewState = Depends(get_view_state), files: FileService = Depends(get_file_service)):
    state.select_all(await _visible(state, files))
    return state.to_info()

@router.post("/selection/{item_id}", response_model=ViewStateInfo)
async def toggle_selection(item_id: str, state: ViewState = Depends(get_view_state)):
    state.toggle_select(item_id)
    return state.to_info()

@router.delete("/selection", response_model=ViewStateInfo)
async def clear_selection(state: ViewState = Depends(get_view_state)):
    state.clear_selection()
    return state.to_info()

@router.post("/clipboard", response_model=ViewStateInfo)
async def set_clipboard(body: ClipboardRequest, state: ViewState = Depends(get_view_state)):
    item_ids = body.item_ids if body.item_ids is not None else sorted(state.selected_ids)
    if not item_ids:
        raise HTTPException(status_code=400, detail="Nothing selected")
    state.set_clipboard(body.operation, item_ids)
    return state.to_info()

@router.delete("/clipboard", response_model=ViewStateInfo)
async def clear_clipboard(state: ViewState = Depends(get_view_state)):
    state.clear_clipboard()
    return state.to_info()

@router.post("/paste", response_model=BulkResult)
async def paste(state: ViewState = Depends(get_view_state), files: FileService = Depends(get_file_service)):
    if state.clipboard is None:
        raise HTTPException(status_code=400, detail="Clipboard is empty")
    if state.is_trash_view:
        raise HTTPException(status_code=400, detail="Cannot paste into the trash")

    clipboard = state.clipboard
    if clipboard.operation == "cut":
        ids = await files.move(clipboard.item_ids, state.current_folder_id)
        state.clear_clipboard()
    else:
        ids = [item.id for item in await files.copy(clipboard.item_ids, state.current_folder_id)]
    state.clear_selection()
    return BulkResult(ids=ids, count=len(ids))
