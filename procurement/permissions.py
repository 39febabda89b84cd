"""
Role guards for the procurement workflow.

The acting user arrives already authenticated; these helpers only check
that the user's role is allowed to perform the requested operation.
"""
from core.user_accounts.models import Role
from procurement.exceptions import Unauthorized

ROLE_LABELS = dict(Role.choices)


def ensure_role(user, *roles, action='perform this action'):
    """
    Raise Unauthorized unless ``user`` holds one of ``roles``.

    Example:
        ensure_role(user, Role.PURCHASE_OFFICER, action='create a direct PO')
    """
    if user is None or not getattr(user, 'is_authenticated', False) or not user.is_active:
        raise Unauthorized(f"Authentication required to {action}")
    if user.role not in roles:
        allowed = ", ".join(ROLE_LABELS.get(role, role) for role in roles)
        raise Unauthorized(
            f"Role '{ROLE_LABELS.get(user.role, user.role)}' cannot {action}. Allowed: {allowed}"
        )
    return user


def ensure_site_access(user, site):
    """Site engineers may only work on sites assigned to them."""
    if user.role == Role.SITE_ENGINEER and not user.is_assigned_to(site):
        raise Unauthorized(f"You are not assigned to site '{site.name}'")
