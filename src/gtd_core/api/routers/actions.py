"""Next actions API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ... import crud, models, schemas
from ...database import get_db
from ..dependencies import get_current_user, store_operation

logger = logging.getLogger("gtd-core.actions")

router = APIRouter(tags=["actions"])


@router.get("", response_model=schemas.ItemListEnvelope[schemas.ActionResponse])
def list_actions(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the caller's actions, newest first."""
    with store_operation("Failed to get actions"):
        actions = crud.list_actions(db, current_user.id)
    return {"items": actions}


@router.post("", response_model=schemas.ItemEnvelope[schemas.ActionResponse], status_code=201)
def create_action(
    action: schemas.ActionCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Create a next action.

    - **content**: The physical, visible next step (required)
    - **context**: Where/with what it can be done (default: @anywhere)
    - **projectId**: Optional owning project
    - **dueDate**: Optional due date (epoch milliseconds)
    """
    with store_operation("Failed to add action"):
        result = crud.create_action(db, current_user.id, action)
    logger.info(f"Created action {result.id}")
    return {"item": result}


@router.patch("/{action_id}", response_model=schemas.ItemEnvelope[schemas.ActionResponse])
def update_action(
    action_id: str,
    patch: schemas.ActionPatch,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update an action. Only the supplied fields change."""
    with store_operation("Failed to update action"):
        result = crud.update_action(db, action_id, current_user.id, patch)
    if not result:
        raise HTTPException(status_code=404, detail="Action not found")
    return {"item": result}


@router.delete("/{action_id}", response_model=schemas.MessageResponse)
def delete_action(
    action_id: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete an action."""
    with store_operation("Failed to delete action"):
        success = crud.delete_action(db, action_id, current_user.id)
    if not success:
        raise HTTPException(status_code=404, detail="Action not found")
    return {"message": "Action deleted"}
