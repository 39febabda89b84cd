"""
Purchase Order Serializers

Thin input serializers that validate shapes and convert to DTOs; amount
limits (GST, discount, rates) are enforced again by the service so every
entry point gets the same rules.
"""
from decimal import Decimal

from rest_framework import serializers

from .dtos import (
    DirectPOItemDTO, DirectPOCreateDTO, POIssueItemDTO, POIssueDTO, SignOffDTO, POStatusUpdateDTO,
)
from .models import PurchaseOrder, POStatus
from .services import STATUS_PROPAGATION


# ==================== OUTPUT SERIALIZERS ====================

class PurchaseOrderSerializer(serializers.ModelSerializer):
    request_number = serializers.CharField(source='request.request_number', read_only=True)
    item_order = serializers.IntegerField(source='request.item_order', read_only=True)
    vendor_name = serializers.CharField(source='vendor.name', read_only=True)
    delivery_site_name = serializers.CharField(source='delivery_site.name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    created_by_name = serializers.CharField(source='created_by.name', read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            'id', 'po_number', 'request', 'request_number', 'item_order',
            'vendor', 'vendor_name', 'delivery_site', 'delivery_site_name',
            'item_name', 'description', 'quantity', 'unit',
            'unit_rate', 'per_unit_basis', 'discount_percent', 'gst_tax_rate',
            'base_amount', 'discount_amount', 'taxable_amount', 'tax_amount', 'total_amount',
            'status', 'status_display', 'is_direct', 'valid_till', 'notes', 'rejection_reason',
            'created_by', 'created_by_name', 'approved_by', 'approved_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


# ==================== DIRECT PO ====================

class DirectPOItemSerializer(serializers.Serializer):
    request_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    item_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit = serializers.CharField(max_length=30, required=False, allow_blank=True)
    unit_rate = serializers.DecimalField(max_digits=15, decimal_places=2)
    per_unit_basis = serializers.DecimalField(max_digits=10, decimal_places=3, required=False, default=Decimal('1'))
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=Decimal('0'))
    gst_tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=Decimal('0'))
    is_urgent = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if attrs.get('request_id') is None:
            missing = [name for name in ('item_name', 'unit') if not (attrs.get(name) or '').strip()]
            if missing:
                raise serializers.ValidationError({name: "Required for a new item" for name in missing})
        return attrs

    def to_dto(self, data=None) -> DirectPOItemDTO:
        return DirectPOItemDTO(**(data if data is not None else self.validated_data))


class DirectPOCreateSerializer(serializers.Serializer):
    """
    Example Request Body:
    {
        "delivery_site_id": 3,
        "vendor_id": 7,
        "valid_till": "2026-12-31",
        "items": [
            {"item_name": "Cement", "quantity": "10", "unit": "bags",
             "unit_rate": "100", "discount_percent": "10", "gst_tax_rate": "18"}
        ]
    }
    """
    delivery_site_id = serializers.IntegerField(min_value=1)
    vendor_id = serializers.IntegerField(min_value=1)
    valid_till = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    items = DirectPOItemSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value

    def to_dto(self) -> DirectPOCreateDTO:
        data = self.validated_data
        return DirectPOCreateDTO(
            delivery_site_id=data['delivery_site_id'],
            vendor_id=data['vendor_id'],
            valid_till=data.get('valid_till'),
            notes=data.get('notes', ''),
            items=[DirectPOItemSerializer().to_dto(item) for item in data['items']],
        )


class SignOffSerializer(serializers.Serializer):
    po_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    request_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs.get('po_id') is None and attrs.get('request_id') is None:
            raise serializers.ValidationError("Provide po_id or request_id")
        return attrs

    def to_dto(self) -> SignOffDTO:
        return SignOffDTO(**self.validated_data)


# ==================== STANDARD PO ====================

class POIssueItemSerializer(serializers.Serializer):
    request_id = serializers.IntegerField(min_value=1)
    vendor_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    unit_rate = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True)
    per_unit_basis = serializers.DecimalField(max_digits=10, decimal_places=3, required=False, allow_null=True)
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)
    gst_tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)


class POIssueSerializer(serializers.Serializer):
    delivery_site_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    valid_till = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    items = POIssueItemSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        request_ids = [item['request_id'] for item in value]
        if len(request_ids) != len(set(request_ids)):
            raise serializers.ValidationError("Each request item can only appear once")
        return value

    def to_dto(self) -> POIssueDTO:
        data = self.validated_data
        return POIssueDTO(
            delivery_site_id=data.get('delivery_site_id'),
            valid_till=data.get('valid_till'),
            notes=data.get('notes', ''),
            items=[POIssueItemDTO(**item) for item in data['items']],
        )


class POStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[(value, POStatus(value).label) for value in STATUS_PROPAGATION])
    reason = serializers.CharField(required=False, allow_blank=True, default='')

    def to_dto(self, po_id) -> POStatusUpdateDTO:
        return POStatusUpdateDTO(po_id=po_id, **self.validated_data)


class POCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
