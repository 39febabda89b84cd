from django.conf import settings
from django.db import models

from procurement.exceptions import InvalidState


class CCStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    CC_PENDING = 'cc_pending', 'Awaiting Manager Review'
    CC_APPROVED = 'cc_approved', 'Approved'
    CC_REJECTED = 'cc_rejected', 'Rejected'


class CostComparison(models.Model):
    """
    Vendor quotes collected for one request item.

    ``quotes`` is an ordered list of
    {vendor_id, unit_price, amount, discount_percent, gst_percent, per_unit_basis}
    with decimal values stored as strings.
    """
    request = models.OneToOneField(
        'PR.MaterialRequest',
        on_delete=models.CASCADE,
        related_name='cost_comparison'
    )
    quotes = models.JSONField(default=list, blank=True)
    selected_vendor = models.ForeignKey(
        'catalog.Vendor',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='selected_in_comparisons'
    )
    status = models.CharField(max_length=20, choices=CCStatus.choices, default=CCStatus.DRAFT, db_index=True)
    is_direct_po = models.BooleanField(default=False, help_text="Auto-approved record of a Direct PO quote")
    manager_notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='cost_comparisons_created'
    )
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='cost_comparisons_reviewed'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'procurement_cost_comparison'
        ordering = ['-updated_at']

    def __str__(self):
        return f"CC for #{self.request.request_number}/{self.request.item_order} ({self.status})"

    def ensure_status(self, allowed, action):
        if self.status not in allowed:
            raise InvalidState(
                f"Cannot {action} a cost comparison that is '{self.status}'",
                current_status=self.status
            )

    def quote_for(self, vendor_id):
        """The quote dict of ``vendor_id`` or None."""
        for quote in self.quotes:
            if int(quote['vendor_id']) == int(vendor_id):
                return quote
        return None

    def selected_quote(self):
        if self.selected_vendor_id is None:
            return None
        return self.quote_for(self.selected_vendor_id)
