"""
Procurement workflow errors.

Every workflow service raises one of these synchronously from inside its
transaction, so the whole operation rolls back:

- Unauthorized:    the acting user's role may not perform the transition
- NotFound:        a referenced request/PO/vendor/site/delivery is missing or inactive
- InvalidState:    the current status is not a valid predecessor for the transition
- ValidationError: bad numbers, out-of-range percentages, empty required fields
                   (Django's own ValidationError is used as-is)
"""
from django.core.exceptions import (
    ObjectDoesNotExist,
    PermissionDenied,
    ValidationError,
)


class Unauthorized(PermissionDenied):
    """The actor's role lacks permission for the requested operation."""

    def __init__(self, message="You are not allowed to perform this action"):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class NotFound(ObjectDoesNotExist):
    """A referenced record does not exist or is inactive."""

    def __init__(self, message="Record not found"):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class InvalidState(ValidationError):
    """The record's current status does not allow the requested transition."""

    def __init__(self, message, current_status=None):
        super().__init__(message, code='invalid_state')
        self.current_status = current_status


WORKFLOW_ERRORS = (Unauthorized, NotFound, ValidationError)


def describe_error(exc):
    """Human readable message for any workflow error."""
    if isinstance(exc, ValidationError):
        if hasattr(exc, 'error_dict'):
            return "; ".join(
                f"{field}: {', '.join(messages)}"
                for field, messages in exc.message_dict.items()
            )
        return "; ".join(exc.messages)
    return str(exc)
