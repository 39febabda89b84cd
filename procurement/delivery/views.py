"""
Delivery API views.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from procure_project.pagination import auto_paginate
from procure_project.response_formatter import success_response, error_response, workflow_error_response
from procurement.exceptions import WORKFLOW_ERRORS

from .serializers import (
    DeliverySerializer,
    DeliveryDetailSerializer,
    DeliveryRequestItemSerializer,
    DeliveryCreateSerializer,
    DeliveryConfirmSerializer,
)
from .services import DeliveryService


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def delivery_create(request):
    """
    POST /procurement/deliveries/
    Load request rows of an ordered PO onto a new challan. Quantities below
    a row's open quantity split the row.
    """
    serializer = DeliveryCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(
            message="Invalid data provided",
            data=serializer.errors,
            status_code=status.HTTP_400_BAD_REQUEST
        )
    try:
        delivery = DeliveryService.create_delivery(request.user, serializer.to_dto())
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to create delivery")
    return success_response(
        data=DeliveryDetailSerializer(delivery).data,
        message=f"Delivery {delivery.delivery_id} created",
        status_code=status.HTTP_201_CREATED
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@auto_paginate
def delivery_list_by_po(request, po_id):
    """GET /procurement/deliveries/by-po/<po_id>/"""
    serializer = DeliverySerializer(DeliveryService.deliveries_for_po(po_id), many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def delivery_detail(request, delivery_id):
    """GET /procurement/deliveries/<delivery_id>/  (challan id or pk)"""
    try:
        delivery = DeliveryService.get_delivery(delivery_id)
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Delivery not found")
    return success_response(data=DeliveryDetailSerializer(delivery).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def delivery_confirm(request, request_id):
    """
    POST /procurement/deliveries/confirm/<request_id>/
    {"photos": ["https://..."]}
    Confirming an item that is already delivered succeeds without changes.
    """
    serializer = DeliveryConfirmSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(
            message="Invalid data provided",
            data=serializer.errors,
            status_code=status.HTTP_400_BAD_REQUEST
        )
    try:
        row = DeliveryService.confirm_delivery(request.user, serializer.to_dto(request_id))
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to confirm delivery")
    return success_response(data=DeliveryRequestItemSerializer(row).data, message="Delivery confirmed")
