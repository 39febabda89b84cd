"""
Core Base Module

Shared abstract models and managers used by the procurement apps.

Exports:
    Basic Utilities:
        - StatusChoices: ACTIVE/INACTIVE status for reference data

    Feature Mixins:
        - AuditMixin: Adds created_at, updated_at, created_by, updated_by
        - SoftDeleteMixin: Adds status + deactivate()/reactivate()

    Managers & QuerySets:
        - BaseQuerySet: filter_by_search_params (code/name/search)
        - SoftDeleteQuerySet: active()/inactive()
        - SoftDeleteManager: Manager for SoftDeleteMixin models

Usage:
    from core.base.models import AuditMixin, SoftDeleteMixin
    from core.base.managers import SoftDeleteManager

    class Vendor(AuditMixin, SoftDeleteMixin, models.Model):
        name = models.CharField(max_length=255)
        objects = SoftDeleteManager()

    Vendor.objects.active().get(pk=vendor_id)
"""

from core.base.models import (
    StatusChoices,
    AuditMixin,
    SoftDeleteMixin,
)

from core.base.managers import (
    BaseQuerySet,
    SoftDeleteQuerySet,
    SoftDeleteManager,
)

__all__ = [
    'StatusChoices',
    'AuditMixin',
    'SoftDeleteMixin',
    'BaseQuerySet',
    'SoftDeleteQuerySet',
    'SoftDeleteManager',
]
