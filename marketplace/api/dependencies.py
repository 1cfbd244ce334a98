# ============================================================================
# FILE: marketplace/api/dependencies.py
# JWT authentication dependencies
# ============================================================================
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from uuid import UUID

from marketplace.config.database import get_db
from marketplace.config.settings import settings
from marketplace.core.exceptions import AuthenticationError
from marketplace.models.user import User

# ============================================================================
# Security Schemes
# ============================================================================

# auto_error is off so a missing header renders as our own 401 body
jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Enter your JWT access token",
    auto_error=False
)


# ============================================================================
# JWT Token Functions
# ============================================================================

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary with claims (should include 'sub' with user_id)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": "access"
    })

    encoded_jwt = jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )

    return encoded_jwt


def verify_access_token(token: str) -> dict:
    """
    Verify and decode a JWT access token.

    Raises:
        AuthenticationError: If token is invalid, expired or not an access token
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise AuthenticationError(f"Could not validate credentials: {str(e)}")

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    return payload


# ============================================================================
# JWT Authentication Dependencies
# ============================================================================

async def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(jwt_security),
        db: Session = Depends(get_db)
) -> User:
    """
    Resolve the bearer token to an active user.

    Raises:
        AuthenticationError: No token, bad token, or unknown/inactive user
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")

    payload = verify_access_token(credentials.credentials)

    user_id_str: Optional[str] = payload.get("sub")
    if user_id_str is None:
        raise AuthenticationError("Could not validate credentials")

    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise AuthenticationError("Invalid user ID in token")

    user = db.query(User).filter(User.id == user_id).first()

    if user is None or not user.is_active:
        raise AuthenticationError("User not found")

    return user
