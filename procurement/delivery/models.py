from decimal import Decimal

from django.conf import settings
from django.db import models


class Delivery(models.Model):
    """
    Delivery challan raised against a purchase order.

    The request items carried by the challan point back to it through
    ``MaterialRequest.delivery``; photo fields hold opaque storage URLs.
    """
    DELIVERY_TYPE_CHOICES = [
        ('private', 'Private Vehicle'),
        ('public', 'Public Transport'),
        ('vendor', 'Vendor Delivery'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('partial', 'Partially Paid'),
        ('paid', 'Paid'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
    ]

    delivery_id = models.CharField(max_length=30, unique=True, help_text="DC-YYYYMMDD-NNNN")
    purchase_order = models.ForeignKey('po.PurchaseOrder', on_delete=models.PROTECT, related_name='deliveries')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)

    # Transport details
    delivery_type = models.CharField(max_length=20, choices=DELIVERY_TYPE_CHOICES, default='vendor')
    delivery_person = models.CharField(max_length=255, blank=True)
    delivery_contact = models.CharField(max_length=50, blank=True)
    vehicle_number = models.CharField(max_length=30, blank=True)
    transport_name = models.CharField(max_length=255, blank=True)
    transport_id = models.CharField(max_length=100, blank=True)
    receiver_name = models.CharField(max_length=255, blank=True)
    purchaser_name = models.CharField(max_length=255, blank=True)

    # Photos (opaque URLs)
    loading_photo = models.CharField(max_length=500, blank=True)
    invoice_photo = models.CharField(max_length=500, blank=True)
    receipt_photo = models.CharField(max_length=500, blank=True)

    # Payment
    payment_amount = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending')

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='deliveries_created')
    created_at = models.DateTimeField(auto_now_add=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'procurement_delivery'
        ordering = ['-created_at']
        verbose_name_plural = 'Deliveries'
        indexes = [
            models.Index(fields=['delivery_id']),
            models.Index(fields=['purchase_order', 'status']),
        ]

    def __str__(self):
        return f"{self.delivery_id} ({self.get_status_display()})"

    def total_quantity(self):
        return sum((item.quantity for item in self.request_items.all()), Decimal('0'))

    def is_complete(self):
        """All request items on this challan are delivered."""
        items = self.request_items.all()
        return items.exists() and not items.exclude(status='delivered').exists()
