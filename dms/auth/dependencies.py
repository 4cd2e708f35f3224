"""FastAPI dependencies for authentication and authorization."""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from dms.database.database import get_db
from dms.database.models import UserDB
from dms.auth.jwt import get_user_id_from_token
from dms.engine.permissions import has_permission, has_role_at_least
from dms.errors import AuthenticationFailed, PermissionDenied
from dms.models.permissions import Module, Permission
from dms.models.user import User, UserRole

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from the bearer JWT.

    Raises:
        AuthenticationFailed: If the token is missing, invalid or names an unknown user
        PermissionDenied: If the account is disabled
    """
    if not credentials:
        raise AuthenticationFailed("Authentication token required", code="AUTH_REQUIRED")

    user_id = get_user_id_from_token(credentials.credentials)
    if not user_id:
        raise AuthenticationFailed("Invalid or expired token", code="INVALID_TOKEN")

    user_db = db.query(UserDB).filter(UserDB.id == user_id).first()
    if not user_db:
        raise AuthenticationFailed("User account not properly set up. Please contact administrator.", code="USER_NOT_SETUP")

    user = user_db.to_pydantic()
    if not user.is_active:
        raise PermissionDenied("Account is disabled", code="ACCOUNT_DISABLED")
    return user


def require_role(role: UserRole):
    """Dependency factory: caller's role must be at least `role`."""

    def _dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_role_at_least(current_user, role):
            code = "ADMIN_REQUIRED" if UserRole(role) == UserRole.ADMIN else "PERMISSION_DENIED"
            raise PermissionDenied(f"Requires role {UserRole(role).value} or higher", code=code)
        return current_user

    return _dependency


def require_permission(module: Module, permission: Permission):
    """Dependency factory: caller must hold `permission` on `module`."""

    def _dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user, module, permission):
            raise PermissionDenied(
                f"Missing {Permission(permission).value} permission on {Module(module).value}",
                details={"module": Module(module).value, "permission": Permission(permission).value},
            )
        return current_user

    return _dependency
