"""
Authentication utilities for bearer JWT verification.

Tokens are issued by the identity service and sent in the Authorization
header. This module only verifies them and extracts the caller's id and role;
nothing in the rental core authenticates on its own.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from typing import Optional
from app.core.config import settings

# Security scheme for Bearer token
security = HTTPBearer()

CUSTOMER = "customer"
ADMIN = "admin"


class User:
    """User model extracted from JWT token."""
    def __init__(self, user_id: str, email: Optional[str] = None, role: Optional[str] = None):
        self.id = user_id
        self.email = email
        self.role = role or CUSTOMER  # Default role

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


def verify_token(token: str) -> dict:
    """
    Verify JWT token and return decoded payload.

    Args:
        token: JWT token from Authorization header

    Returns:
        Decoded JWT payload containing user info

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options={"verify_aud": True},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> User:
    """
    FastAPI dependency to get current authenticated user from JWT token.

    Usage in route:
        @router.get("/protected")
        def protected_route(current_user: User = Depends(get_current_user)):
            return {"user_id": current_user.id, "role": current_user.role}

    Raises:
        HTTPException: If token is missing, invalid, or expired
    """
    payload = verify_token(credentials.credentials)

    # Expected claims: {"sub": "user_id", "email": "...", "role": "customer|admin"}
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate user",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return User(user_id=str(user_id), email=payload.get("email"), role=payload.get("role"))


def require_role(*allowed_roles: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/rentals/{id}/confirm")
        def confirm(id: int, current_user: User = Depends(require_role(ADMIN))):
            ...

    Returns:
        Dependency function that checks user role
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {' or '.join(allowed_roles)}",
            )
        return current_user
    return role_checker
