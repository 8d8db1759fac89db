"""
Identity and authorization dependencies.

Provides FastAPI dependencies for:
- Resolving the current profile from the provider's bearer token
- Admin-only access
"""
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from core.database import get_db
from core.exceptions import UnauthorizedError
from core.security import decode_access_token
from models import Profile

# Use auto_error=False to handle missing credentials manually and return 401 (not 403)
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Profile:
    """
    Get the current user's profile from the JWT ``sub`` claim.

    Raises UnauthorizedError if the token is missing or invalid, or the
    profile does not exist.
    """
    if not credentials:
        raise UnauthorizedError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise UnauthorizedError("Invalid authentication credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid token payload")

    try:
        user_id_uuid = UUID(user_id)
    except ValueError:
        raise UnauthorizedError("Invalid user ID format")

    user = db.query(Profile).filter(Profile.id == user_id_uuid).first()
    if not user:
        raise UnauthorizedError("User not found")
    return user


def require_admin(current_user: Profile = Depends(get_current_user)) -> Profile:
    """Require the admin role."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Required roles: ['admin']",
        )
    return current_user
