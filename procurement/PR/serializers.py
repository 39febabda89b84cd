"""
Material Request Serializers

Output serializers for request rows and request groups, and input
serializers that validate payloads and convert them to DTOs.
"""
from decimal import Decimal

from rest_framework import serializers

from procurement.PR.dtos import (
    RequestItemDTO,
    RequestCreateDTO,
    StatusUpdateDTO,
    BulkStatusUpdateDTO,
    RequestDetailUpdateDTO,
    ResubmitDTO,
    StockFulfilmentDTO,
)
from procurement.PR.models import MaterialRequest, RequestStatus
from procurement.PR.workflow import project_group_status


# ==================== OUTPUT SERIALIZERS ====================

class MaterialRequestSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    site_name = serializers.CharField(source='site.name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.name', read_only=True)
    delivery_code = serializers.CharField(source='delivery.delivery_id', read_only=True, default=None)

    class Meta:
        model = MaterialRequest
        fields = [
            'id', 'request_number', 'item_order', 'item_name', 'description',
            'quantity', 'unit', 'required_by', 'is_urgent',
            'status', 'status_display', 'direct_action', 'rejection_reason', 'notes',
            'site', 'site_name', 'created_by', 'created_by_name', 'approved_by', 'approved_at',
            'delivery', 'delivery_code', 'delivery_marked_at', 'delivery_photos',
            'line_item_key', 'split_from', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


def group_status_data(items):
    """Projected status of a request group in API form."""
    projected = project_group_status(items)
    data = {'status': projected.label, 'is_mixed': projected.is_mixed}
    if projected.is_mixed:
        data['item_statuses'] = [
            {'item_order': order, 'status': status} for order, status in projected.per_item_statuses
        ]
    return data


def serialize_group(request_number, items):
    """One request group: shared header fields, projected status and its rows."""
    first = items[0]
    data = {
        'request_number': request_number,
        'site': first.site_id,
        'site_name': first.site.name,
        'created_by': first.created_by_id,
        'created_by_name': first.created_by.name,
        'required_by': first.required_by,
        'is_urgent': any(item.is_urgent for item in items),
        'notes': first.notes,
        'created_at': min(item.created_at for item in items),
        'item_count': len({item.line_item_key for item in items}),
    }
    data.update(group_status_data(items))
    data['items'] = MaterialRequestSerializer(items, many=True).data
    return data


# ==================== INPUT SERIALIZERS ====================

class RequestItemSerializer(serializers.Serializer):
    item_name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal('0.001'))
    unit = serializers.CharField(max_length=30)
    is_urgent = serializers.BooleanField(required=False, default=False)

    def validate_item_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Item name cannot be blank")
        return value.strip()


class RequestCreateSerializer(serializers.Serializer):
    """
    Example Request Body:
    {
        "site_id": 3,
        "required_by": "2026-11-02T09:00:00Z",
        "notes": "Slab casting on Monday",
        "items": [
            {"item_name": "Cement", "quantity": "50", "unit": "bags", "is_urgent": true},
            {"item_name": "TMT bar 12mm", "quantity": "2", "unit": "ton"}
        ]
    }
    """
    site_id = serializers.IntegerField(min_value=1)
    required_by = serializers.DateTimeField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    items = RequestItemSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value

    def to_dto(self) -> RequestCreateDTO:
        data = self.validated_data
        return RequestCreateDTO(
            site_id=data['site_id'],
            required_by=data['required_by'],
            notes=data.get('notes', ''),
            items=[RequestItemDTO(**item) for item in data['items']],
        )


class StatusUpdateSerializer(serializers.Serializer):
    new_status = serializers.ChoiceField(choices=RequestStatus.choices)
    reason = serializers.CharField(required=False, allow_blank=True, default='')

    def to_dto(self, request_id) -> StatusUpdateDTO:
        return StatusUpdateDTO(request_id=request_id, **self.validated_data)


class BulkStatusUpdateSerializer(serializers.Serializer):
    request_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
    new_status = serializers.ChoiceField(choices=[
        RequestStatus.APPROVED, RequestStatus.REJECTED, RequestStatus.RECHECK,
        RequestStatus.DIRECT_PO, RequestStatus.DELIVERY_STAGE,
    ])
    reason = serializers.CharField(required=False, allow_blank=True, default='')

    def to_dto(self) -> BulkStatusUpdateDTO:
        data = self.validated_data
        # keep the caller's order, drop repeats
        request_ids = list(dict.fromkeys(data['request_ids']))
        return BulkStatusUpdateDTO(request_ids=request_ids, new_status=data['new_status'], reason=data['reason'])


class RequestDetailUpdateSerializer(serializers.Serializer):
    item_name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal('0.001'), required=False)
    unit = serializers.CharField(max_length=30, required=False)

    def to_dto(self, request_id) -> RequestDetailUpdateDTO:
        return RequestDetailUpdateDTO(request_id=request_id, **self.validated_data)


class ResubmitSerializer(RequestDetailUpdateSerializer):
    required_by = serializers.DateTimeField(required=False)

    def to_dto(self, request_id) -> ResubmitDTO:
        return ResubmitDTO(request_id=request_id, **self.validated_data)


class StockFulfilmentSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal('0.001'))

    def to_dto(self, request_id) -> StockFulfilmentDTO:
        return StockFulfilmentDTO(request_id=request_id, quantity=self.validated_data['quantity'])
