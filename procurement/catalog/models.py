from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from core.base.models import AuditMixin, SoftDeleteMixin
from core.base.managers import SoftDeleteManager


class Site(AuditMixin, SoftDeleteMixin, models.Model):
    """
    A construction site materials are requested for and delivered to.
    Inactive sites cannot receive new requests or purchase orders.
    """
    code = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=255)
    address = models.TextField(blank=True)

    objects = SoftDeleteManager()

    class Meta:
        db_table = 'procurement_site'
        ordering = ['name']

    def __str__(self):
        return f"{self.code} - {self.name}"


class Vendor(AuditMixin, SoftDeleteMixin, models.Model):
    """Supplier quoted in cost comparisons and named on purchase orders."""
    code = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=255)
    contact_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True)
    gst_number = models.CharField(max_length=20, blank=True, help_text="GSTIN of the vendor")
    address = models.TextField(blank=True)

    objects = SoftDeleteManager()

    class Meta:
        db_table = 'procurement_vendor'
        ordering = ['name']

    def __str__(self):
        return f"{self.code} - {self.name}"


class InventoryItem(SoftDeleteMixin, models.Model):
    """
    Central store stock for a material, looked up by item name.

    Used for the "in stock" badge next to request items and when a
    purchase officer fulfils part of a request from stock.
    """
    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255, db_index=True)
    unit = models.CharField(max_length=30)
    central_stock = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0'))]
    )
    updated_at = models.DateTimeField(auto_now=True)

    objects = SoftDeleteManager()

    class Meta:
        db_table = 'procurement_inventory_item'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.central_stock} {self.unit})"

    @classmethod
    def lookup(cls, item_name):
        """Find the active stock record for an item name (case-insensitive)."""
        return cls.objects.active().filter(name__iexact=item_name.strip()).first()

    def take(self, quantity):
        """Remove ``quantity`` from central stock."""
        if quantity <= 0:
            raise ValidationError({'quantity': 'Quantity must be greater than zero'})
        if quantity > self.central_stock:
            raise ValidationError({
                'quantity': f"Only {self.central_stock} {self.unit} of '{self.name}' in central stock"
            })
        self.central_stock -= quantity
        self.save(update_fields=['central_stock', 'updated_at'])
