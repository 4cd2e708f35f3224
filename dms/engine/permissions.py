"""Role and module permission checks."""

from typing import Dict, List

from dms.models.permissions import Module, Permission
from dms.models.user import ROLE_LEVELS, User, UserRole


_ROLE_DEFAULTS: Dict[UserRole, List[Permission]] = {
    UserRole.ADMIN: [Permission.READ, Permission.WRITE, Permission.DELETE, Permission.ADMIN],
    UserRole.MANAGER: [Permission.READ, Permission.WRITE],
    UserRole.EMPLOYEE: [Permission.READ],
    UserRole.GUEST: [],
}


def role_level(role) -> int:
    return ROLE_LEVELS[UserRole(role)]


def has_role_at_least(user: User, role) -> bool:
    """Whether the user's role is at or above `role`."""
    return role_level(user.role) >= role_level(role)


def default_permissions_for_role(role) -> Dict[str, List[str]]:
    """Permission matrix a new user of `role` starts with (same for every module)."""
    perms = [p.value for p in _ROLE_DEFAULTS[UserRole(role)]]
    return {module.value: list(perms) for module in Module}


def has_permission(user: User, module, permission) -> bool:
    """Module permission check.

    Admins hold every permission, as does anyone holding the module's `admin`
    permission. Inactive users hold none.
    """
    if not user.is_active:
        return False
    if UserRole(user.role) == UserRole.ADMIN:
        return True
    granted = {Permission(p).value for p in user.module_permissions.get(Module(module).value, [])}
    return Permission(permission).value in granted or Permission.ADMIN.value in granted
