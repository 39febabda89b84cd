import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from core.user_accounts.models import Role
from procurement.exceptions import InvalidState


class RequestStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    PENDING = 'pending', 'Pending Approval'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'
    RECHECK = 'recheck', 'Recheck'
    READY_FOR_CC = 'ready_for_cc', 'Ready for Cost Comparison'
    CC_PENDING = 'cc_pending', 'Cost Comparison Pending'
    CC_APPROVED = 'cc_approved', 'Cost Comparison Approved'
    CC_REJECTED = 'cc_rejected', 'Cost Comparison Rejected'
    READY_FOR_PO = 'ready_for_po', 'Ready for PO'
    PENDING_PO = 'pending_po', 'PO Issued'
    ORDERED = 'ordered', 'Ordered'
    REJECTED_PO = 'rejected_po', 'PO Rejected'
    SIGN_PENDING = 'sign_pending', 'Direct PO Awaiting Sign-off'
    SIGN_REJECTED = 'sign_rejected', 'Direct PO Sign-off Rejected'
    DIRECT_PO = 'direct_po', 'Direct PO'
    READY_FOR_DELIVERY = 'ready_for_delivery', 'Ready for Delivery'
    DELIVERY_STAGE = 'delivery_stage', 'Delivery Stage'
    DELIVERY_PROCESSING = 'delivery_processing', 'Delivery Processing'
    OUT_FOR_DELIVERY = 'out_for_delivery', 'Out for Delivery'
    DELIVERED = 'delivered', 'Delivered'


class DirectAction(models.TextChoices):
    PO = 'po', 'Direct PO'
    DELIVERY = 'delivery', 'Direct Delivery'


class MaterialRequestQuerySet(models.QuerySet):

    def group(self, request_number):
        return self.filter(request_number=request_number).order_by('item_order', 'id')

    def for_line_item(self, line_item_key):
        """Every row descended from one logical line item."""
        return self.filter(line_item_key=line_item_key)

    def visible_to(self, user):
        """Site engineers see their own sites; other roles see everything but drafts of others."""
        if user.role == Role.SITE_ENGINEER:
            return self.filter(site__assigned_users=user).exclude(
                models.Q(status=RequestStatus.DRAFT) & ~models.Q(created_by=user)
            )
        return self.exclude(status=RequestStatus.DRAFT)


class MaterialRequest(models.Model):
    """
    One line item of a material request.

    Several rows share one ``request_number`` to form a multi-item request
    (a "request group"). Rows are mutated in place by most transitions and
    split into two rows on partial delivery; ``line_item_key`` stays the
    same across a split so the quantities of one logical line item can
    always be summed back together.
    """
    request_number = models.CharField(max_length=20, db_index=True)
    item_order = models.PositiveIntegerField(default=1, help_text="1-based position within the request")

    # Item details
    item_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    quantity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        validators=[MinValueValidator(Decimal('0.001'))]
    )
    unit = models.CharField(max_length=30)
    required_by = models.DateTimeField()
    is_urgent = models.BooleanField(default=False)

    status = models.CharField(
        max_length=30,
        choices=RequestStatus.choices,
        default=RequestStatus.PENDING,
        db_index=True
    )
    direct_action = models.CharField(max_length=10, choices=DirectAction.choices, blank=True)
    rejection_reason = models.TextField(blank=True)
    notes = models.TextField(blank=True, help_text="Order-level note entered with the request")

    site = models.ForeignKey('catalog.Site', on_delete=models.PROTECT, related_name='material_requests')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='material_requests'
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='material_requests_approved'
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    # Delivery
    delivery = models.ForeignKey(
        'delivery.Delivery',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='request_items'
    )
    delivery_marked_at = models.DateTimeField(null=True, blank=True)
    delivery_photos = models.JSONField(default=list, blank=True, help_text="Opaque photo URLs")

    # Split lineage
    line_item_key = models.UUIDField(default=uuid.uuid4, db_index=True, editable=False)
    split_from = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='splits'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MaterialRequestQuerySet.as_manager()

    class Meta:
        db_table = 'procurement_material_request'
        ordering = ['-created_at', 'request_number', 'item_order']
        indexes = [
            models.Index(fields=['request_number', 'item_order']),
            models.Index(fields=['status']),
            models.Index(fields=['site', 'status']),
        ]

    def __str__(self):
        return f"#{self.request_number}/{self.item_order} {self.item_name} x {self.quantity} {self.unit} ({self.status})"

    # ==================== VALIDATION FUNCTIONS ====================

    def clean(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({'quantity': 'Quantity must be greater than zero'})
        if not (self.item_name or '').strip():
            raise ValidationError({'item_name': 'Item name is required'})
        if not (self.unit or '').strip():
            raise ValidationError({'unit': 'Unit is required'})

    def ensure_status(self, allowed, action):
        """Raise InvalidState unless the current status is in ``allowed``."""
        if self.status not in allowed:
            raise InvalidState(
                f"Cannot {action} item {self.item_order} of request #{self.request_number} "
                f"while it is '{self.status}'",
                current_status=self.status
            )

    # ==================== WORKFLOW FUNCTIONS ====================

    def mark_out_for_delivery(self, delivery):
        self.status = RequestStatus.OUT_FOR_DELIVERY
        self.delivery = delivery
        self.delivery_marked_at = timezone.now()

    def clone_for_split(self, quantity):
        """
        Unsaved copy of this row carrying ``quantity``, sharing the request
        number and logical line item.
        """
        clone = MaterialRequest(
            request_number=self.request_number,
            item_order=self.item_order,
            item_name=self.item_name,
            description=self.description,
            quantity=quantity,
            unit=self.unit,
            required_by=self.required_by,
            is_urgent=self.is_urgent,
            status=self.status,
            direct_action=self.direct_action,
            notes=self.notes,
            site_id=self.site_id,
            created_by_id=self.created_by_id,
            approved_by_id=self.approved_by_id,
            approved_at=self.approved_at,
            line_item_key=self.line_item_key,
            split_from=self,
        )
        return clone
