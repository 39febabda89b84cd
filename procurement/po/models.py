from decimal import Decimal

from django.conf import settings
from django.db import models

from procurement.exceptions import InvalidState
from procurement.po.amounts import calculate_amount


class POStatus(models.TextChoices):
    PENDING_APPROVAL = 'pending_approval', 'Pending Approval'
    SIGN_PENDING = 'sign_pending', 'Awaiting Sign-off'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'
    SIGN_REJECTED = 'sign_rejected', 'Sign-off Rejected'
    ORDERED = 'ordered', 'Ordered'
    DELIVERED = 'delivered', 'Delivered'
    CANCELLED = 'cancelled', 'Cancelled'


"""Purchase Order line - one row per request item fulfilled via procurement."""
class PurchaseOrder(models.Model):
    # POs issued together share one po_number; a Direct PO carries the
    # same number as the request rows it created.
    po_number = models.CharField(max_length=20, db_index=True)
    request = models.ForeignKey(
        'PR.MaterialRequest',
        on_delete=models.PROTECT,
        related_name='purchase_orders',
        help_text="Request item this PO fulfils (not unique: resubmissions and reissues)"
    )
    vendor = models.ForeignKey('catalog.Vendor', on_delete=models.PROTECT, related_name='purchase_orders')
    delivery_site = models.ForeignKey('catalog.Site', on_delete=models.PROTECT, related_name='purchase_orders')

    # Item snapshot at the time of ordering
    item_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit = models.CharField(max_length=30)

    # Pricing
    unit_rate = models.DecimalField(max_digits=15, decimal_places=2)
    per_unit_basis = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        default=Decimal('1'),
        help_text="Rate is quoted per this many units"
    )
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))
    gst_tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))
    base_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    taxable_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))

    status = models.CharField(max_length=20, choices=POStatus.choices, default=POStatus.SIGN_PENDING, db_index=True)
    is_direct = models.BooleanField(default=False)
    valid_till = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)

    # Workflow
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='purchase_orders_created')
    created_at = models.DateTimeField(auto_now_add=True)
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='purchase_orders_approved')
    approved_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'procurement_purchase_order'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['po_number']),
            models.Index(fields=['status']),
            models.Index(fields=['vendor']),
            models.Index(fields=['request', 'status']),
        ]

    def __str__(self):
        return f"PO #{self.po_number} - {self.item_name} ({self.get_status_display()})"

    # ==================== CALCULATION FUNCTIONS ====================

    def apply_pricing(self, unit_rate, per_unit_basis=1, discount_percent=0, gst_tax_rate=0):
        """Set the pricing inputs and recompute every amount field."""
        amount = calculate_amount(self.quantity, unit_rate, per_unit_basis, discount_percent, gst_tax_rate)
        self.unit_rate = Decimal(str(unit_rate))
        self.per_unit_basis = Decimal(str(per_unit_basis))
        self.discount_percent = Decimal(str(discount_percent))
        self.gst_tax_rate = Decimal(str(gst_tax_rate))
        for field, value in amount.as_dict().items():
            setattr(self, field, value)
        return amount

    # ==================== WORKFLOW FUNCTIONS ====================

    def ensure_status(self, allowed, action):
        if self.status not in allowed:
            raise InvalidState(
                f"Cannot {action} PO #{self.po_number} while it is '{self.status}'",
                current_status=self.status
            )
