from decimal import Decimal

from rest_framework import serializers

from .dtos import VendorQuoteDTO, CostComparisonUpsertDTO, CostComparisonResubmitDTO, CostComparisonReviewDTO
from .models import CostComparison


class CostComparisonSerializer(serializers.ModelSerializer):
    request_number = serializers.CharField(source='request.request_number', read_only=True)
    item_order = serializers.IntegerField(source='request.item_order', read_only=True)
    item_name = serializers.CharField(source='request.item_name', read_only=True)
    quantity = serializers.DecimalField(source='request.quantity', max_digits=14, decimal_places=3, read_only=True)
    unit = serializers.CharField(source='request.unit', read_only=True)
    selected_vendor_name = serializers.CharField(source='selected_vendor.name', read_only=True, default=None)

    class Meta:
        model = CostComparison
        fields = [
            'id', 'request', 'request_number', 'item_order', 'item_name', 'quantity', 'unit',
            'quotes', 'selected_vendor', 'selected_vendor_name', 'status', 'is_direct_po',
            'manager_notes', 'created_by', 'reviewed_by', 'reviewed_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class VendorQuoteSerializer(serializers.Serializer):
    vendor_id = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=15, decimal_places=2)
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=Decimal('0'))
    gst_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=Decimal('0'))
    per_unit_basis = serializers.DecimalField(max_digits=10, decimal_places=3, required=False, default=Decimal('1'))


class _QuotesMixin(serializers.Serializer):
    quotes = VendorQuoteSerializer(many=True, required=False, default=list)
    selected_vendor_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)

    def _quotes(self):
        return [VendorQuoteDTO(**quote) for quote in self.validated_data.get('quotes', [])]


class CostComparisonUpsertSerializer(_QuotesMixin):
    """
    Example Request Body:
    {
        "request_id": 40,
        "quotes": [
            {"vendor_id": 2, "unit_price": "380", "gst_percent": "28"},
            {"vendor_id": 5, "unit_price": "372.50", "discount_percent": "2", "gst_percent": "28"}
        ],
        "selected_vendor_id": 5
    }
    """
    request_id = serializers.IntegerField(min_value=1)

    def to_dto(self) -> CostComparisonUpsertDTO:
        return CostComparisonUpsertDTO(
            request_id=self.validated_data['request_id'],
            quotes=self._quotes(),
            selected_vendor_id=self.validated_data.get('selected_vendor_id'),
        )


class CostComparisonResubmitSerializer(_QuotesMixin):

    def to_dto(self, comparison_id) -> CostComparisonResubmitDTO:
        return CostComparisonResubmitDTO(
            comparison_id=comparison_id,
            quotes=self._quotes(),
            selected_vendor_id=self.validated_data.get('selected_vendor_id'),
        )


class CostComparisonReviewSerializer(serializers.Serializer):
    selected_vendor_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def to_dto(self, comparison_id) -> CostComparisonReviewDTO:
        return CostComparisonReviewDTO(comparison_id=comparison_id, **self.validated_data)
