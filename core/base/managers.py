"""
Core Base Managers Module

QuerySets and managers for the abstract models in core.base.models.

Exports:
    - BaseQuerySet: filter_by_search_params
    - SoftDeleteQuerySet: active(), inactive()
    - SoftDeleteManager: For SoftDeleteMixin models
"""

from django.db import models
from django.db.models import Q

from core.base.models import StatusChoices


class BaseQuerySet(models.QuerySet):
    """Base QuerySet with common filtering methods."""

    def filter_by_search_params(self, query_params):
        """
        Apply standard code/name/search filters from query parameters.

        Args:
            query_params: QueryDict or dict with optional keys:
                - code: Exact match (case-insensitive)
                - name: Contains match (case-insensitive)
                - search: Contains match across code and name

        Returns:
            Filtered QuerySet
        """
        queryset = self

        code = query_params.get('code')
        if code:
            queryset = queryset.filter(code__iexact=code)

        name = query_params.get('name')
        if name:
            queryset = queryset.filter(name__icontains=name)

        search = query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(code__icontains=search) |
                Q(name__icontains=search)
            )

        return queryset


class SoftDeleteQuerySet(BaseQuerySet):

    def active(self):
        """Return only active records (status=ACTIVE)."""
        return self.filter(status=StatusChoices.ACTIVE)

    def inactive(self):
        return self.filter(status=StatusChoices.INACTIVE)


class SoftDeleteManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    """
    Manager for SoftDeleteMixin models.

    Usage:
        class Site(SoftDeleteMixin, models.Model):
            objects = SoftDeleteManager()

        Site.objects.active()
    """
    pass
