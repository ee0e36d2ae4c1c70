"""Someday/maybe API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ... import crud, models, schemas
from ...database import get_db
from ..dependencies import get_current_user, store_operation

logger = logging.getLogger("gtd-core.someday_maybe")

router = APIRouter(tags=["someday-maybe"])


@router.get("", response_model=schemas.ItemListEnvelope[schemas.SomedayMaybeResponse])
def list_someday_maybe(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the caller's someday/maybe ideas, newest first."""
    with store_operation("Failed to get someday/maybe items"):
        items = crud.list_someday_maybe(db, current_user.id)
    return {"items": items}


@router.post("", response_model=schemas.ItemEnvelope[schemas.SomedayMaybeResponse], status_code=201)
def add_someday_maybe(
    item: schemas.SomedayMaybeCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Park an idea.

    - **content**: The idea (required)
    - **category**: personal, work, hobby, learning or other (default: other)
    """
    with store_operation("Failed to add someday/maybe item"):
        result = crud.create_someday_maybe(db, current_user.id, item)
    logger.info(f"Created someday/maybe item {result.id}")
    return {"item": result}


@router.patch("/{item_id}", response_model=schemas.ItemEnvelope[schemas.SomedayMaybeResponse])
def update_someday_maybe(
    item_id: str,
    patch: schemas.SomedayMaybePatch,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update an idea. Only the supplied fields change."""
    with store_operation("Failed to update someday/maybe item"):
        result = crud.update_someday_maybe(db, item_id, current_user.id, patch)
    if not result:
        raise HTTPException(status_code=404, detail="Item not found")
    return {"item": result}


@router.delete("/{item_id}", response_model=schemas.MessageResponse)
def delete_someday_maybe(
    item_id: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete an idea."""
    with store_operation("Failed to delete someday/maybe item"):
        success = crud.delete_someday_maybe(db, item_id, current_user.id)
    if not success:
        raise HTTPException(status_code=404, detail="Item not found")
    return {"message": "Item deleted"}
