"""
Serializers for sites, vendors and central stock.
"""
from rest_framework import serializers

from .models import Site, Vendor, InventoryItem


class SiteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Site
        fields = ['id', 'code', 'name', 'address', 'status']
        read_only_fields = fields


class VendorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vendor
        fields = ['id', 'code', 'name', 'contact_name', 'phone', 'email', 'gst_number', 'status']
        read_only_fields = fields


class InventoryItemSerializer(serializers.ModelSerializer):
    """Stock badge: item name, unit and central stock"""
    in_stock = serializers.SerializerMethodField()

    class Meta:
        model = InventoryItem
        fields = ['id', 'code', 'name', 'unit', 'central_stock', 'in_stock']
        read_only_fields = fields

    def get_in_stock(self, obj):
        return obj.central_stock > 0
