"""CRUD operations for GTD records.

Every function that touches user data takes the caller's ``user_id`` and
scopes its query by it. A record that exists but belongs to someone else is
indistinguishable from one that does not exist: lookups return ``None`` and
deletes return ``False`` in both cases.
"""
import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from . import models, schemas
from .review import (
    ReviewState,
    default_review_state,
    start_review_state,
    complete_step,
    validate_review_fields,
)
from .security import hash_password
from .sso import SSOProfile
from .timeutil import now_ms

logger = logging.getLogger("gtd-core.crud")


def _commit(db: Session) -> None:
    """Commit, rolling the session back if the store rejects the transaction."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def _list_owned(db: Session, model, user_id: str) -> list:
    return (
        db.query(model)
        .filter(model.user_id == user_id)
        .order_by(model.created_at.desc(), model.id.desc())
        .all()
    )


def _get_owned(db: Session, model, record_id: str, user_id: str):
    return (
        db.query(model)
        .filter(model.id == record_id, model.user_id == user_id)
        .first()
    )


def _update_owned(db: Session, model, record_id: str, user_id: str, changes: dict):
    record = _get_owned(db, model, record_id, user_id)
    if not record:
        return None

    for field, value in changes.items():
        setattr(record, field, value)

    _commit(db)
    db.refresh(record)
    return record


def _delete_owned(db: Session, model, record_id: str, user_id: str) -> bool:
    record = _get_owned(db, model, record_id, user_id)
    if not record:
        return False

    db.delete(record)
    _commit(db)
    return True


# ============================================================================
# Users
# ============================================================================

def get_user_by_id(db: Session, user_id: str) -> Optional[models.User]:
    """Get a user by id."""
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    """Get a user by email address."""
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(db: Session, email: str, password: str, name: str) -> models.User:
    """
    Register a local (email/password) user.

    Raises:
        ValueError: If the email is already registered
    """
    if get_user_by_email(db, email):
        logger.warning(f"Registration attempted for existing email {email}")
        raise ValueError("Email already registered")

    user = models.User(
        email=email,
        name=name,
        password_hash=hash_password(password),
        auth_provider=models.AuthProvider.LOCAL,
    )
    db.add(user)
    _commit(db)
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


def upsert_sso_user(db: Session, profile: SSOProfile) -> models.User:
    """
    Find the account matching a Google profile, linking or creating it.

    An existing account is matched by SSO id first, then by email. A local
    account matched by email gets the SSO id and avatar attached but keeps
    password login.
    """
    user = (
        db.query(models.User).filter(models.User.sso_id == profile.sso_id).first()
        or get_user_by_email(db, profile.email)
    )

    if user:
        if not user.sso_id:
            user.sso_id = profile.sso_id
            user.avatar = profile.avatar
            user.auth_provider = (
                models.AuthProvider.LOCAL if user.password_hash else models.AuthProvider.GOOGLE
            )
            _commit(db)
            db.refresh(user)
            logger.info(f"Linked Google account to user {user.id}")
        return user

    user = models.User(
        email=profile.email,
        name=profile.name,
        password_hash=None,
        sso_id=profile.sso_id,
        avatar=profile.avatar,
        auth_provider=models.AuthProvider.GOOGLE,
    )
    db.add(user)
    _commit(db)
    db.refresh(user)
    logger.info(f"Created user {user.id} from Google sign-in")
    return user


# ============================================================================
# Inbox
# ============================================================================

def list_inbox_items(db: Session, user_id: str) -> list[models.InboxItem]:
    """All inbox items of a user, newest first."""
    return _list_owned(db, models.InboxItem, user_id)


def get_inbox_item(db: Session, item_id: str, user_id: str) -> Optional[models.InboxItem]:
    return _get_owned(db, models.InboxItem, item_id, user_id)


def create_inbox_item(db: Session, user_id: str, item: schemas.InboxItemCreate) -> models.InboxItem:
    """Capture a new inbox item."""
    db_item = models.InboxItem(
        user_id=user_id,
        content=item.content,
        processed=False,
        created_at=now_ms(),
    )
    db.add(db_item)
    _commit(db)
    db.refresh(db_item)
    return db_item


def update_inbox_item(
    db: Session, item_id: str, user_id: str, patch: schemas.InboxItemPatch
) -> Optional[models.InboxItem]:
    return _update_owned(db, models.InboxItem, item_id, user_id, patch.changes())


def delete_inbox_item(db: Session, item_id: str, user_id: str) -> bool:
    return _delete_owned(db, models.InboxItem, item_id, user_id)


# ============================================================================
# Projects
# ============================================================================

def list_projects(db: Session, user_id: str) -> list[models.Project]:
    """All projects of a user, newest first."""
    return _list_owned(db, models.Project, user_id)


def get_project(db: Session, project_id: str, user_id: str) -> Optional[models.Project]:
    return _get_owned(db, models.Project, project_id, user_id)


def create_project(db: Session, user_id: str, project: schemas.ProjectCreate) -> models.Project:
    """Create a new active project."""
    db_project = models.Project(
        user_id=user_id,
        name=project.name,
        description=project.description or "",
        status=models.ProjectStatus.ACTIVE,
        created_at=now_ms(),
    )
    db.add(db_project)
    _commit(db)
    db.refresh(db_project)
    return db_project


def update_project(
    db: Session, project_id: str, user_id: str, patch: schemas.ProjectPatch
) -> Optional[models.Project]:
    return _update_owned(db, models.Project, project_id, user_id, patch.changes())


def delete_project(db: Session, project_id: str, user_id: str) -> bool:
    """
    Delete a project and unlink its actions and waiting-for items.

    Dependent records are kept with ``project_id`` set to null. The delete and
    both unlink updates are committed as one transaction.

    Returns:
        True if deleted, False if not found
    """
    db_project = get_project(db, project_id, user_id)
    if not db_project:
        return False

    try:
        db.delete(db_project)
        unlinked_actions = db.execute(
            update(models.Action)
            .where(models.Action.user_id == user_id, models.Action.project_id == project_id)
            .values(project_id=None)
        ).rowcount
        unlinked_waiting = db.execute(
            update(models.WaitingFor)
            .where(models.WaitingFor.user_id == user_id, models.WaitingFor.project_id == project_id)
            .values(project_id=None)
        ).rowcount
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    # Drop stale identity-map copies of the unlinked rows
    db.expire_all()
    logger.debug(
        f"Deleted project {project_id}, unlinked {unlinked_actions} actions "
        f"and {unlinked_waiting} waiting-for items"
    )
    return True


# ============================================================================
# Actions
# ============================================================================

def list_actions(db: Session, user_id: str) -> list[models.Action]:
    """All actions of a user, newest first."""
    return _list_owned(db, models.Action, user_id)


def get_action(db: Session, action_id: str, user_id: str) -> Optional[models.Action]:
    return _get_owned(db, models.Action, action_id, user_id)


def create_action(db: Session, user_id: str, action: schemas.ActionCreate) -> models.Action:
    """Create a next action (context defaults to @anywhere)."""
    db_action = models.Action(
        user_id=user_id,
        content=action.content,
        context=action.context or models.DEFAULT_CONTEXT,
        project_id=action.project_id,
        due_date=action.due_date,
        completed=False,
        created_at=now_ms(),
    )
    db.add(db_action)
    _commit(db)
    db.refresh(db_action)
    return db_action


def update_action(
    db: Session, action_id: str, user_id: str, patch: schemas.ActionPatch
) -> Optional[models.Action]:
    return _update_owned(db, models.Action, action_id, user_id, patch.changes())


def delete_action(db: Session, action_id: str, user_id: str) -> bool:
    return _delete_owned(db, models.Action, action_id, user_id)


# ============================================================================
# Waiting For
# ============================================================================

def list_waiting_for(db: Session, user_id: str) -> list[models.WaitingFor]:
    """All waiting-for items of a user, newest first."""
    return _list_owned(db, models.WaitingFor, user_id)


def get_waiting_for(db: Session, item_id: str, user_id: str) -> Optional[models.WaitingFor]:
    return _get_owned(db, models.WaitingFor, item_id, user_id)


def create_waiting_for(
    db: Session, user_id: str, item: schemas.WaitingForCreate
) -> models.WaitingFor:
    """Record an item delegated to someone else."""
    db_item = models.WaitingFor(
        user_id=user_id,
        content=item.content,
        person=item.person,
        project_id=item.project_id,
        expected_date=item.expected_date,
        completed=False,
        created_at=now_ms(),
    )
    db.add(db_item)
    _commit(db)
    db.refresh(db_item)
    return db_item


def update_waiting_for(
    db: Session, item_id: str, user_id: str, patch: schemas.WaitingForPatch
) -> Optional[models.WaitingFor]:
    return _update_owned(db, models.WaitingFor, item_id, user_id, patch.changes())


def delete_waiting_for(db: Session, item_id: str, user_id: str) -> bool:
    return _delete_owned(db, models.WaitingFor, item_id, user_id)


# ============================================================================
# Someday/Maybe
# ============================================================================

def list_someday_maybe(db: Session, user_id: str) -> list[models.SomedayMaybe]:
    """All someday/maybe ideas of a user, newest first."""
    return _list_owned(db, models.SomedayMaybe, user_id)


def get_someday_maybe(db: Session, item_id: str, user_id: str) -> Optional[models.SomedayMaybe]:
    return _get_owned(db, models.SomedayMaybe, item_id, user_id)


def create_someday_maybe(
    db: Session, user_id: str, item: schemas.SomedayMaybeCreate
) -> models.SomedayMaybe:
    """Park an idea for later."""
    db_item = models.SomedayMaybe(
        user_id=user_id,
        content=item.content,
        category=item.category or models.SomedayCategory.OTHER,
        created_at=now_ms(),
    )
    db.add(db_item)
    _commit(db)
    db.refresh(db_item)
    return db_item


def update_someday_maybe(
    db: Session, item_id: str, user_id: str, patch: schemas.SomedayMaybePatch
) -> Optional[models.SomedayMaybe]:
    return _update_owned(db, models.SomedayMaybe, item_id, user_id, patch.changes())


def delete_someday_maybe(db: Session, item_id: str, user_id: str) -> bool:
    return _delete_owned(db, models.SomedayMaybe, item_id, user_id)


# ============================================================================
# Review
# ============================================================================

def _review_state(db_review: models.ReviewProgress) -> ReviewState:
    return ReviewState(
        last_review_date=db_review.last_review_date,
        current_step=db_review.current_step,
        completed_steps=tuple(db_review.completed_steps),
    )


def _store_review_state(db: Session, user_id: str, state: ReviewState) -> models.ReviewProgress:
    db_review = db.get(models.ReviewProgress, user_id)
    if not db_review:
        db_review = models.ReviewProgress(user_id=user_id)
        db.add(db_review)

    db_review.last_review_date = state.last_review_date
    db_review.current_step = state.current_step
    # Assign a fresh list so the JSON column registers the change
    db_review.completed_steps = list(state.completed_steps)
    _commit(db)
    db.refresh(db_review)
    return db_review


def get_or_create_review(db: Session, user_id: str) -> models.ReviewProgress:
    """Return the user's review progress, creating the default record on first access."""
    db_review = db.get(models.ReviewProgress, user_id)
    if db_review:
        return db_review

    logger.debug(f"Creating default review progress for user {user_id}")
    return _store_review_state(db, user_id, default_review_state())


def replace_review(db: Session, user_id: str, patch: schemas.ReviewPatch) -> models.ReviewProgress:
    """
    Upsert the supplied review fields over the current (or default) state.

    Raises:
        ReviewStepError: If the resulting document is malformed
    """
    current = get_or_create_review(db, user_id)
    changes = patch.changes()
    state = _review_state(current)

    new_state = ReviewState(
        last_review_date=changes.get("last_review_date", state.last_review_date),
        current_step=changes.get("current_step", state.current_step),
        completed_steps=tuple(changes.get("completed_steps", state.completed_steps)),
    )
    validate_review_fields(new_state.current_step, new_state.completed_steps)
    return _store_review_state(db, user_id, new_state)


def start_review(db: Session, user_id: str) -> models.ReviewProgress:
    """Begin a new review cycle, overwriting the previous one."""
    return _store_review_state(db, user_id, start_review_state(now_ms()))


def reset_review(db: Session, user_id: str) -> models.ReviewProgress:
    """Restore the review to the never-reviewed default."""
    return _store_review_state(db, user_id, default_review_state())


def complete_review_step(
    db: Session, user_id: str, step: int, strict: bool = False
) -> models.ReviewProgress:
    """
    Mark a review step complete.

    Raises:
        ReviewStepError: If the step index is invalid (or out of order when strict)
    """
    current = get_or_create_review(db, user_id)
    new_state = complete_step(_review_state(current), step, strict=strict)
    return _store_review_state(db, user_id, new_state)
