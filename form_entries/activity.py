import logging

from .models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(user, action, resource_type, resource_id=None, details=None):
    """Record an audit row for an action performed on a form resource"""
    entry = ActivityLog.objects.create(
        user=user if user and user.is_authenticated else None,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details or {},
    )
    logger.info(f"Activity: {action} {resource_type}#{resource_id} by {getattr(user, 'email', 'anonymous')}")
    return entry
