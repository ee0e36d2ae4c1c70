"""Inbox API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ... import crud, models, schemas
from ...database import get_db
from ..dependencies import get_current_user, store_operation

logger = logging.getLogger("gtd-core.inbox")

router = APIRouter(tags=["inbox"])


@router.get("", response_model=schemas.ItemListEnvelope[schemas.InboxItemResponse])
def list_inbox_items(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the caller's inbox items, newest first."""
    with store_operation("Failed to get inbox items"):
        items = crud.list_inbox_items(db, current_user.id)
    return {"items": items}


@router.post("", response_model=schemas.ItemEnvelope[schemas.InboxItemResponse], status_code=201)
def add_inbox_item(
    item: schemas.InboxItemCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Capture a new item.

    - **content**: What is on your mind (required)
    """
    with store_operation("Failed to add inbox item"):
        result = crud.create_inbox_item(db, current_user.id, item)
    logger.info(f"Captured inbox item {result.id}")
    return {"item": result}


@router.patch("/{item_id}", response_model=schemas.ItemEnvelope[schemas.InboxItemResponse])
def update_inbox_item(
    item_id: str,
    patch: schemas.InboxItemPatch,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Update an inbox item.

    - **content**: New content (optional)
    - **processed**: Processed flag (optional)
    """
    with store_operation("Failed to update inbox item"):
        result = crud.update_inbox_item(db, item_id, current_user.id, patch)
    if not result:
        raise HTTPException(status_code=404, detail="Item not found")
    return {"item": result}


@router.delete("/{item_id}", response_model=schemas.MessageResponse)
def delete_inbox_item(
    item_id: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete an inbox item."""
    with store_operation("Failed to delete inbox item"):
        success = crud.delete_inbox_item(db, item_id, current_user.id)
    if not success:
        raise HTTPException(status_code=404, detail="Item not found")
    return {"message": "Item deleted"}
