from django.core.exceptions import ValidationError


def error_message(exc):
    """Plain text message for a Django ValidationError, suitable for {'error': ...} responses"""
    if isinstance(exc, ValidationError):
        return ' '.join(str(message) for message in exc.messages)
    return str(exc)
