"""Admin routes for managing circulars."""

from fastapi import APIRouter, Depends, Query

from src.api.deps import get_circular_store, loaded_circular_store
from src.api.outcomes import item_response, list_response
from src.api.schemas import (
    CircularCreateRequest,
    CircularStatusRequest,
    CircularUpdateRequest,
    ItemListResponse,
    ItemResponse,
)
from src.components.lifecycle import CircularStore

router = APIRouter()


@router.get("", response_model=ItemListResponse)
async def list_circulars(
    status: str | None = Query(None, description="Filter by status ('all' for every circular)"),
    store: CircularStore = Depends(get_circular_store),
) -> ItemListResponse:
    """List circulars from the content store."""
    return list_response(await store.fetch_all(status=status))


@router.post("", response_model=ItemResponse, status_code=201)
async def create_circular(
    data: CircularCreateRequest,
    store: CircularStore = Depends(loaded_circular_store),
) -> ItemResponse:
    """Create a circular (draft unless another status is requested)."""
    fields = data.model_dump(exclude={"status"})
    return item_response(await store.create(fields, data.status))


@router.put("/{circular_id}", response_model=ItemResponse)
async def update_circular(
    circular_id: str,
    data: CircularUpdateRequest,
    store: CircularStore = Depends(loaded_circular_store),
) -> ItemResponse:
    """
    Update a circular.

    Sending `link` clears any attachment and sending `attachment` clears
    the link. Without an explicit status a complete circular is published.
    """
    fields = data.model_dump(exclude_unset=True, exclude={"status"})
    return item_response(await store.update(circular_id, fields, data.status))


@router.post("/{circular_id}/status", response_model=ItemResponse)
async def set_circular_status(
    circular_id: str,
    data: CircularStatusRequest,
    store: CircularStore = Depends(loaded_circular_store),
) -> ItemResponse:
    """Publish, move to draft, deactivate or restore a circular."""
    return item_response(await store.set_status(circular_id, data.status))


@router.delete("/{circular_id}", response_model=ItemResponse)
async def delete_circular(
    circular_id: str,
    store: CircularStore = Depends(loaded_circular_store),
) -> ItemResponse:
    """Permanently delete a circular (must already be inactive)."""
    return item_response(await store.permanent_delete(circular_id))
