"""Authentication endpoints: registration, login, Google sign-in and /me."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ... import crud, models, schemas
from ...database import get_db
from ...security import create_access_token, verify_password
from ...sso import GoogleOAuthClient, SSOExchangeError, SSONotConfiguredError, get_sso_client
from ..dependencies import get_current_user, store_operation

logger = logging.getLogger("gtd-core.auth")

router = APIRouter(tags=["auth"])


def _auth_response(message: str, user: models.User) -> dict:
    return {
        "message": message,
        "token": create_access_token(user.id, user.email),
        "user": schemas.UserResponse.model_validate(user),
    }


@router.post("/register", response_model=schemas.AuthResponse)
def register(
    payload: schemas.RegisterRequest,
    db: Session = Depends(get_db),
):
    """
    Register with email and password.

    - **email**: Unique email address
    - **password**: Password
    - **name**: Display name
    """
    logger.info(f"POST /register received for email: {payload.email}")
    try:
        with store_operation("Registration failed"):
            user = crud.create_user(db, payload.email, payload.password, payload.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _auth_response("Registration successful", user)


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
):
    """Log in with email and password."""
    with store_operation("Login failed"):
        user = crud.get_user_by_email(db, payload.email)

    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.password_hash:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Please login with Google")
    if not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    logger.info(f"User {user.id} logged in")
    return _auth_response("Login successful", user)


@router.post("/google", response_model=schemas.AuthResponse)
def google_login(
    payload: schemas.GoogleLoginRequest,
    db: Session = Depends(get_db),
    sso: GoogleOAuthClient = Depends(get_sso_client),
):
    """
    Exchange a Google authorization code for a session.

    - **code**: Authorization code from the Google redirect
    - **redirectUri**: Redirect URI used to obtain the code (optional)
    """
    try:
        profile = sso.exchange_code(payload.code, payload.redirect_uri)
    except SSONotConfiguredError as e:
        logger.error(str(e))
        raise HTTPException(status_code=500, detail=str(e))
    except SSOExchangeError as e:
        raise HTTPException(status_code=400, detail=str(e))

    with store_operation("Google authentication failed"):
        user = crud.upsert_sso_user(db, profile)

    return _auth_response("Google login successful", user)


@router.get("/me", response_model=schemas.CurrentUserResponse)
def get_me(current_user: models.User = Depends(get_current_user)):
    """Return the authenticated user."""
    return {"user": current_user}
