"""
Role based permission classes.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from monitoring.exceptions import Forbidden

ADMIN_ROLES = {"admin"}
STAFF_ROLES = {"admin", "user"}


def role_of(user) -> str | None:
    if not (user and getattr(user, "is_authenticated", False)):
        return None
    return getattr(user, "role", None)


def require_role(user, *roles: str) -> None:
    """Raise ``Forbidden`` unless the principal holds one of ``roles``."""
    if role_of(user) not in roles:
        raise Forbidden()


class IsAdminRole(BasePermission):
    """Allow access only to users with an administrative role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return role_of(getattr(request, "user", None)) in ADMIN_ROLES


class IsStaffRole(BasePermission):
    """Admin or regular staff user."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return role_of(getattr(request, "user", None)) in STAFF_ROLES


class IsAdminOrReadOnly(BasePermission):
    """Staff may read; only admins may write."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        role = role_of(getattr(request, "user", None))
        if request.method in SAFE_METHODS:
            return role in STAFF_ROLES
        return role in ADMIN_ROLES


class IsSelfOrAdmin(BasePermission):
    """The object's own account, or an admin (expects ``obj.id``)."""
    def has_object_permission(self, request, view, obj) -> bool:
        user = getattr(request, "user", None)
        if role_of(user) in ADMIN_ROLES:
            return True
        return bool(user and str(getattr(user, "id", "")) == str(getattr(obj, "id", None)))
