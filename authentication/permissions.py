from rest_framework.permissions import BasePermission

from production.roles import map_user_role, normalize_role
from utils.enums import UserRoleChoices, WorkflowRoleChoices


class IsSuperAdmin(BasePermission):
    """
    Permission for the superadmin role only
    """
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        return normalize_role(request.user.role) == UserRoleChoices.SUPERADMIN


class IsAdminOrReadOnly(BasePermission):
    """
    Authenticated users can read, admins and superadmins can write
    """
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        if request.method in ['GET', 'HEAD', 'OPTIONS']:
            return True

        return normalize_role(request.user.role) in [
            UserRoleChoices.SUPERADMIN, UserRoleChoices.ADMIN
        ]


class IsProductionManagerOrReadOnly(BasePermission):
    """
    Write access for roles that map to production manager
    """
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        if request.method in ['GET', 'HEAD', 'OPTIONS']:
            return True

        return map_user_role(request.user.role) == WorkflowRoleChoices.PRODUCTION_MANAGER
