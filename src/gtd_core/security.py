"""Password hashing and bearer token issuance/verification."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from .config import get_settings

logger = logging.getLogger("gtd-core.security")


class InvalidTokenError(Exception):
    """Raised when a bearer token is missing, malformed, forged or expired."""


@dataclass(frozen=True)
class TokenPayload:
    """Identity carried by a verified token."""

    user_id: str
    email: str


# ---------------- PASSWORD HASHING ----------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt(rounds=10)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its bcrypt hash. Accounts without a hash never match."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


# ---------------- JWT TOKENS ----------------

def create_access_token(user_id: str, email: str, expires_in: Optional[timedelta] = None) -> str:
    """Generate a signed JWT for a user."""
    settings = get_settings()
    lifetime = expires_in if expires_in is not None else timedelta(days=settings.jwt_expire_days)
    payload = {
        "sub": str(user_id),
        "email": email,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload:
    """
    Verify a JWT and extract the identity it carries.

    Args:
        token: Encoded JWT

    Returns:
        TokenPayload with the user id and email

    Raises:
        InvalidTokenError: If the signature, expiry or claims are invalid
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Token expired") from e
    except jwt.PyJWTError as e:
        raise InvalidTokenError("Invalid token") from e

    if not payload.get("sub"):
        raise InvalidTokenError("Token has no subject")
    return TokenPayload(user_id=payload["sub"], email=payload.get("email", ""))
