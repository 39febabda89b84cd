from django.conf import settings
from django.db import models


class StatusChoices(models.TextChoices):
    """
    Active/inactive flag shared by reference data (sites, vendors, stock items).

    Workflow records (requests, purchase orders, deliveries) carry their own
    richer status enums instead.
    """
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'


class AuditMixin(models.Model):
    """
    Adds audit fields to track creation and modification metadata.

    Fields:
        - created_at: Timestamp when record was created
        - updated_at: Timestamp when record was last modified
        - created_by: User who created the record (optional)
        - updated_by: User who last modified the record (optional)

    created_by and updated_by are set explicitly by the service layer.
    """
    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="Timestamp when record was created"
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when record was last modified"
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(app_label)s_%(class)s_created',
        help_text="User who created this record"
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(app_label)s_%(class)s_updated',
        help_text="User who last updated this record"
    )

    class Meta:
        abstract = True


class SoftDeleteMixin(models.Model):
    """
    Mixin for reference data that is deactivated instead of deleted.

    An inactive site or vendor stays referenced by historical requests and
    purchase orders but can no longer be used for new ones.
    """
    status = models.CharField(
        max_length=10,
        choices=StatusChoices.choices,
        default=StatusChoices.ACTIVE,
        help_text="Record status. Set to INACTIVE instead of deleting."
    )

    class Meta:
        abstract = True

    @property
    def is_active(self):
        return self.status == StatusChoices.ACTIVE

    def deactivate(self):
        """Soft delete: mark as inactive instead of removing from DB."""
        self.status = StatusChoices.INACTIVE
        self.save(update_fields=['status'])

    def reactivate(self):
        self.status = StatusChoices.ACTIVE
        self.save(update_fields=['status'])
