"""Request-scoped dependencies shared by the routers."""
import logging
from contextlib import contextmanager
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models
from ..database import get_db
from ..security import decode_access_token, InvalidTokenError

logger = logging.getLogger("gtd-core.dependencies")


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> models.User:
    """
    Resolve the caller from an ``Authorization: Bearer <token>`` header.

    Raises:
        HTTPException: 401 if the header is missing or malformed, the token
            is invalid or expired, or the user no longer exists
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: No token provided",
        )
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid authorization header",
        )

    try:
        payload = decode_access_token(parts[1])
    except InvalidTokenError as e:
        logger.info(f"Rejected token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid token",
        )

    user = crud.get_user_by_id(db, payload.user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: User not found",
        )
    return user


@contextmanager
def store_operation(failure_message: str):
    """
    Translate store failures inside a handler into a generic 500.

    The underlying error is logged with its traceback; the client only sees
    ``failure_message``.
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"{failure_message}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=failure_message,
        )
