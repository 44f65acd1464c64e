"""Role-Based Access Control (RBAC) utilities."""

from enum import Enum
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from restopos.core.security import decode_access_token
from restopos.db.session import DbSession


class UserRole(str, Enum):
    """User roles for RBAC."""

    ADMIN = "admin"
    MANAGER = "manager"
    CASHIER = "cashier"
    STEWARD = "steward"
    USER = "user"


class TokenData:
    """Authenticated caller, as loaded from the token subject.

    Attributes:
        user_id: The user's database ID.
        email: The user's email address.
        role: The user's current role (read from the database, not the token).
        full_name: The user's display name.
    """

    def __init__(self, user_id: int, email: str, role: UserRole, full_name: str = ""):
        self.user_id = user_id
        self.id = user_id
        self.email = email
        self.role = role
        self.full_name = full_name or email.split("@")[0]


def get_current_user(request: Request, db: DbSession) -> TokenData:
    """Get the current authenticated user from the Bearer token.

    The token only names the user; role and active flag come from the
    users table so that role changes and deactivation apply immediately.
    """
    payload = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1]
        if token:
            payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    from restopos.models.user import User

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is disabled",
        )

    return TokenData(
        user_id=user.id,
        email=user.email,
        role=user.role,
        full_name=user.full_name,
    )


CurrentUser = Annotated[TokenData, Depends(get_current_user)]


def require_roles(*roles: UserRole):
    """Dependency that only lets the listed roles through."""
    allowed = frozenset(roles)

    def role_checker(current_user: CurrentUser) -> TokenData:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied: insufficient permissions",
            )
        return current_user

    return role_checker


# Common role dependencies
RequireAdmin = Annotated[TokenData, Depends(require_roles(UserRole.ADMIN))]
RequireManager = Annotated[
    TokenData, Depends(require_roles(UserRole.ADMIN, UserRole.MANAGER))
]
RequireCashier = Annotated[
    TokenData, Depends(require_roles(UserRole.ADMIN, UserRole.MANAGER, UserRole.CASHIER))
]
RequireFloorStaff = Annotated[
    TokenData,
    Depends(require_roles(UserRole.ADMIN, UserRole.MANAGER, UserRole.CASHIER, UserRole.STEWARD)),
]
