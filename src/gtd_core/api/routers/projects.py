"""Projects API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ... import crud, models, schemas
from ...database import get_db
from ..dependencies import get_current_user, store_operation

logger = logging.getLogger("gtd-core.projects")

router = APIRouter(tags=["projects"])


@router.get("", response_model=schemas.ItemListEnvelope[schemas.ProjectResponse])
def list_projects(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the caller's projects, newest first."""
    with store_operation("Failed to get projects"):
        projects = crud.list_projects(db, current_user.id)
    return {"items": projects}


@router.post("", response_model=schemas.ItemEnvelope[schemas.ProjectResponse], status_code=201)
def create_project(
    project: schemas.ProjectCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Create a new project.

    - **name**: Project name, phrased as an outcome (required)
    - **description**: Optional description
    """
    with store_operation("Failed to add project"):
        result = crud.create_project(db, current_user.id, project)
    logger.info(f"Created project '{result.name}' (ID: {result.id})")
    return {"item": result}


@router.patch("/{project_id}", response_model=schemas.ItemEnvelope[schemas.ProjectResponse])
def update_project(
    project_id: str,
    patch: schemas.ProjectPatch,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Update a project.

    - **name**: New project name (optional)
    - **description**: New description (optional)
    - **status**: active, on-hold or completed (optional)
    """
    with store_operation("Failed to update project"):
        result = crud.update_project(db, project_id, current_user.id, patch)
    if not result:
        raise HTTPException(status_code=404, detail="Project not found")
    return {"item": result}


@router.delete("/{project_id}", response_model=schemas.MessageResponse)
def delete_project(
    project_id: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Delete a project.

    Actions and waiting-for items linked to the project are kept and unlinked
    (their projectId becomes null).
    """
    with store_operation("Failed to delete project"):
        success = crud.delete_project(db, project_id, current_user.id)
    if not success:
        raise HTTPException(status_code=404, detail="Project not found")
    logger.info(f"Deleted project {project_id}")
    return {"message": "Project deleted"}
