from decimal import Decimal

from rest_framework import serializers

from procurement.PR.models import MaterialRequest

from .dtos import DeliveryItemDTO, DeliveryMetaDTO, DeliveryCreateDTO, DeliveryConfirmDTO
from .models import Delivery


class DeliveryRequestItemSerializer(serializers.ModelSerializer):
    """Request rows loaded onto a challan."""

    class Meta:
        model = MaterialRequest
        fields = [
            'id', 'request_number', 'item_order', 'item_name', 'quantity', 'unit',
            'status', 'delivery_marked_at', 'delivery_photos', 'line_item_key', 'split_from',
        ]
        read_only_fields = fields


class DeliverySerializer(serializers.ModelSerializer):
    po_number = serializers.CharField(source='purchase_order.po_number', read_only=True)
    total_quantity = serializers.SerializerMethodField()

    class Meta:
        model = Delivery
        fields = [
            'id', 'delivery_id', 'purchase_order', 'po_number', 'status',
            'delivery_type', 'delivery_person', 'delivery_contact', 'vehicle_number',
            'transport_name', 'transport_id', 'receiver_name', 'purchaser_name',
            'loading_photo', 'invoice_photo', 'receipt_photo',
            'payment_amount', 'payment_status', 'total_quantity',
            'created_by', 'created_at', 'delivered_at',
        ]
        read_only_fields = fields

    def get_total_quantity(self, obj):
        return str(obj.total_quantity())


class DeliveryDetailSerializer(DeliverySerializer):
    items = DeliveryRequestItemSerializer(source='request_items', many=True, read_only=True)

    class Meta(DeliverySerializer.Meta):
        fields = DeliverySerializer.Meta.fields + ['items']
        read_only_fields = fields


class DeliveryItemSerializer(serializers.Serializer):
    request_id = serializers.IntegerField(min_value=1)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal('0.001'))


class DeliveryCreateSerializer(serializers.Serializer):
    """
    Example Request Body:
    {
        "po_id": 12,
        "items": [{"request_id": 40, "quantity": "20"}],
        "delivery_type": "vendor",
        "vehicle_number": "KA01AB1234",
        "receiver_name": "Site store"
    }
    """
    po_id = serializers.IntegerField(min_value=1)
    items = DeliveryItemSerializer(many=True)
    delivery_type = serializers.ChoiceField(choices=Delivery.DELIVERY_TYPE_CHOICES, required=False, default='vendor')
    delivery_person = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    delivery_contact = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    vehicle_number = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    transport_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    transport_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    receiver_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    purchaser_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    loading_photo = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    invoice_photo = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    receipt_photo = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    payment_amount = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True, default=None)
    payment_status = serializers.ChoiceField(choices=Delivery.PAYMENT_STATUS_CHOICES, required=False, default='pending')

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value

    def to_dto(self) -> DeliveryCreateDTO:
        data = dict(self.validated_data)
        po_id = data.pop('po_id')
        items = [DeliveryItemDTO(**item) for item in data.pop('items')]
        return DeliveryCreateDTO(po_id=po_id, items=items, meta=DeliveryMetaDTO(**data))


class DeliveryConfirmSerializer(serializers.Serializer):
    photos = serializers.ListField(child=serializers.CharField(max_length=500), required=False, default=list)

    def to_dto(self, request_id) -> DeliveryConfirmDTO:
        return DeliveryConfirmDTO(request_id=request_id, photos=self.validated_data['photos'])
