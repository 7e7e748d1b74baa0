"""Admin routes for managing popups."""

from fastapi import APIRouter, Depends, Query

from src.api.deps import get_popup_store, loaded_popup_store
from src.api.outcomes import item_response, list_response
from src.api.schemas import (
    ItemListResponse,
    ItemResponse,
    PopupCreateRequest,
    PopupStatusRequest,
    PopupUpdateRequest,
)
from src.components.lifecycle import PopupStore

router = APIRouter()


@router.get("", response_model=ItemListResponse)
async def list_popups(
    status: str | None = Query(None, description="Filter by status ('all' for every popup)"),
    store: PopupStore = Depends(get_popup_store),
) -> ItemListResponse:
    """List popups from the content store."""
    return list_response(await store.fetch_all(status=status))


@router.post("", response_model=ItemResponse, status_code=201)
async def create_popup(
    data: PopupCreateRequest,
    store: PopupStore = Depends(loaded_popup_store),
) -> ItemResponse:
    """
    Create a popup.

    Incomplete popups are saved inactive. Asking for `active` while
    another popup is active answers 409 with a decision id.
    """
    fields = data.model_dump(exclude={"status"})
    return item_response(await store.create(fields, data.status))


@router.put("/{popup_id}", response_model=ItemResponse)
async def update_popup(
    popup_id: str,
    data: PopupUpdateRequest,
    store: PopupStore = Depends(loaded_popup_store),
) -> ItemResponse:
    """Update a popup's fields (and optionally its status)."""
    fields = data.model_dump(exclude_unset=True, exclude={"status"})
    return item_response(await store.update(popup_id, fields, data.status))


@router.post("/{popup_id}/status", response_model=ItemResponse)
async def set_popup_status(
    popup_id: str,
    data: PopupStatusRequest,
    store: PopupStore = Depends(loaded_popup_store),
) -> ItemResponse:
    """Activate, deactivate, delete or restore a popup."""
    return item_response(await store.set_status(popup_id, data.status))


@router.delete("/{popup_id}", response_model=ItemResponse)
async def delete_popup(
    popup_id: str,
    store: PopupStore = Depends(loaded_popup_store),
) -> ItemResponse:
    """Permanently delete a popup (must already be deleted)."""
    return item_response(await store.permanent_delete(popup_id))


@router.post("/conflicts/{decision_id}/confirm", response_model=ItemResponse)
async def confirm_conflict(
    decision_id: str,
    store: PopupStore = Depends(loaded_popup_store),
) -> ItemResponse:
    """Deactivate the active popup, then activate the pending one."""
    return item_response(await store.confirm_conflict(decision_id))


@router.post("/conflicts/{decision_id}/cancel", response_model=ItemResponse)
async def cancel_conflict(
    decision_id: str,
    store: PopupStore = Depends(loaded_popup_store),
) -> ItemResponse:
    """Save the pending popup as inactive."""
    return item_response(await store.cancel_conflict(decision_id))
