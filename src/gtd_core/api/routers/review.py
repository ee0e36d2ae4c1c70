"""Weekly review API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ... import crud, models, schemas
from ...config import Settings, get_settings
from ...database import get_db
from ...review import REVIEW_STEPS, ReviewStepError
from ..dependencies import get_current_user, store_operation

logger = logging.getLogger("gtd-core.review")

router = APIRouter(tags=["review"])


def _envelope(db_review: models.ReviewProgress) -> dict:
    return {"review": schemas.ReviewResponse.model_validate(db_review)}


@router.get("", response_model=schemas.ReviewEnvelope)
def get_review(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the caller's review progress, creating the default on first access."""
    with store_operation("Failed to get review progress"):
        db_review = crud.get_or_create_review(db, current_user.id)
    return _envelope(db_review)


@router.put("", response_model=schemas.ReviewEnvelope)
def update_review(
    patch: schemas.ReviewPatch,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Replace review fields (upsert).

    - **lastReviewDate**: Epoch milliseconds or null (optional)
    - **currentStep**: 0 to 7 (optional)
    - **completedSteps**: Exactly 7 booleans (optional)
    """
    try:
        with store_operation("Failed to update review progress"):
            db_review = crud.replace_review(db, current_user.id, patch)
    except ReviewStepError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _envelope(db_review)


@router.get("/steps", response_model=schemas.ReviewStepsResponse)
def list_review_steps():
    """Titles of the seven weekly review steps, in order."""
    return {"steps": list(REVIEW_STEPS)}


@router.post("/start", response_model=schemas.ReviewEnvelope)
def start_review(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Start a new review cycle: all steps cleared, review date stamped now."""
    with store_operation("Failed to start review"):
        db_review = crud.start_review(db, current_user.id)
    logger.info(f"User {current_user.id} started a weekly review")
    return _envelope(db_review)


@router.post("/reset", response_model=schemas.ReviewEnvelope)
def reset_review(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Restore the review to its never-reviewed default."""
    with store_operation("Failed to reset review"):
        db_review = crud.reset_review(db, current_user.id)
    return _envelope(db_review)


@router.post("/step/{step}", response_model=schemas.ReviewEnvelope)
def complete_review_step(
    step: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Mark a review step complete and advance to the next one.

    - **step**: Step index, 0 to 6
    """
    try:
        step_index = int(step)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid step number")

    try:
        with store_operation("Failed to complete review step"):
            db_review = crud.complete_review_step(
                db, current_user.id, step_index, strict=settings.review_strict_order
            )
    except ReviewStepError as e:
        logger.warning(f"Rejected review step {step} for user {current_user.id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    return _envelope(db_review)
