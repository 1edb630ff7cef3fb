"""
Role Mapper
Resolves raw user role strings into the three workflow roles
"""
from utils.enums import UserRoleChoices, WorkflowRoleChoices


ROLE_MAP = {
    UserRoleChoices.SUPERADMIN: WorkflowRoleChoices.PRODUCTION_MANAGER,
    UserRoleChoices.ADMIN: WorkflowRoleChoices.PRODUCTION_MANAGER,
    UserRoleChoices.GERENTE_PRODUCCION: WorkflowRoleChoices.PRODUCTION_MANAGER,
    UserRoleChoices.PRODUCCION: WorkflowRoleChoices.OPERATOR,
    UserRoleChoices.CALIDAD: WorkflowRoleChoices.QUALITY_MANAGER,
    UserRoleChoices.GERENTE_CALIDAD: WorkflowRoleChoices.QUALITY_MANAGER,
}


def normalize_role(raw_role):
    """Lower-cased, trimmed role string. ``None`` becomes an empty string."""
    return (raw_role or '').strip().lower()


def map_user_role(raw_role):
    """
    Map a raw role string to a workflow role.

    Unknown roles fall back to operator, the lowest privilege workflow role.
    """
    return ROLE_MAP.get(normalize_role(raw_role), WorkflowRoleChoices.OPERATOR)


def is_superadmin(user):
    if not user or not getattr(user, 'is_authenticated', False):
        return False
    return normalize_role(getattr(user, 'role', '')) == UserRoleChoices.SUPERADMIN


def user_workflow_role(user):
    return map_user_role(getattr(user, 'role', ''))


def role_in(user, allowed_roles):
    """Check the user's raw role against a list of raw role strings"""
    if not user or not getattr(user, 'is_authenticated', False):
        return False
    return normalize_role(getattr(user, 'role', '')) in [normalize_role(r) for r in allowed_roles]
