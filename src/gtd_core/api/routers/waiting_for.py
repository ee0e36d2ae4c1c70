"""Waiting-for API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ... import crud, models, schemas
from ...database import get_db
from ..dependencies import get_current_user, store_operation

logger = logging.getLogger("gtd-core.waiting_for")

router = APIRouter(tags=["waiting-for"])


@router.get("", response_model=schemas.ItemListEnvelope[schemas.WaitingForResponse])
def list_waiting_for(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the caller's delegated items, newest first."""
    with store_operation("Failed to get waiting for items"):
        items = crud.list_waiting_for(db, current_user.id)
    return {"items": items}


@router.post("", response_model=schemas.ItemEnvelope[schemas.WaitingForResponse], status_code=201)
def add_waiting_for(
    item: schemas.WaitingForCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Record a delegated item.

    - **content**: What is expected (required)
    - **person**: Who it was delegated to (required)
    - **projectId**: Optional owning project
    - **expectedDate**: Optional expected date (epoch milliseconds)
    """
    with store_operation("Failed to add waiting for item"):
        result = crud.create_waiting_for(db, current_user.id, item)
    logger.info(f"Created waiting-for item {result.id}")
    return {"item": result}


@router.patch("/{item_id}", response_model=schemas.ItemEnvelope[schemas.WaitingForResponse])
def update_waiting_for(
    item_id: str,
    patch: schemas.WaitingForPatch,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update a delegated item. Only the supplied fields change."""
    with store_operation("Failed to update waiting for item"):
        result = crud.update_waiting_for(db, item_id, current_user.id, patch)
    if not result:
        raise HTTPException(status_code=404, detail="Item not found")
    return {"item": result}


@router.delete("/{item_id}", response_model=schemas.MessageResponse)
def delete_waiting_for(
    item_id: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a delegated item."""
    with store_operation("Failed to delete waiting for item"):
        success = crud.delete_waiting_for(db, item_id, current_user.id)
    if not success:
        raise HTTPException(status_code=404, detail="Item not found")
    return {"message": "Item deleted"}
