"""
Purchase Order API views.

Thin wrappers: validate input with a serializer, call PurchaseOrderService,
translate workflow errors into the standard envelope.
"""
from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.user_accounts.models import Role
from procure_project.pagination import auto_paginate
from procure_project.response_formatter import success_response, error_response, workflow_error_response
from procurement.exceptions import WORKFLOW_ERRORS, NotFound
from procurement.PR.models import MaterialRequest

from .models import PurchaseOrder, POStatus
from .serializers import (
    PurchaseOrderSerializer,
    DirectPOCreateSerializer,
    SignOffSerializer,
    POIssueSerializer,
    POStatusUpdateSerializer,
    POCancelSerializer,
)
from .services import PurchaseOrderService, AWAITING_SIGN_OFF


def _visible_purchase_orders(user):
    queryset = PurchaseOrder.objects.select_related('request', 'vendor', 'delivery_site', 'created_by')
    if user.role == Role.SITE_ENGINEER:
        queryset = queryset.filter(request__in=MaterialRequest.objects.visible_to(user))
    return queryset


def _invalid(serializer):
    return error_response(
        message="Invalid data provided",
        data=serializer.errors,
        status_code=status.HTTP_400_BAD_REQUEST
    )


# ============================================================================
# READ VIEWS
# ============================================================================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
@auto_paginate
def po_list(request):
    """
    GET /procurement/po/
    - Query params:
        - status: PO status
        - vendor_id
        - request_number
        - is_direct: true/false
        - search: PO number, item name or vendor name
    """
    queryset = _visible_purchase_orders(request.user)
    params = request.query_params

    if params.get('status'):
        queryset = queryset.filter(status=params['status'])
    if params.get('vendor_id'):
        queryset = queryset.filter(vendor_id=params['vendor_id'])
    if params.get('request_number'):
        queryset = queryset.filter(request__request_number=params['request_number'])
    if params.get('is_direct') in ('true', 'false'):
        queryset = queryset.filter(is_direct=params['is_direct'] == 'true')

    search = params.get('search')
    if search:
        queryset = queryset.filter(
            Q(po_number__icontains=search) |
            Q(item_name__icontains=search) |
            Q(vendor__name__icontains=search)
        )

    serializer = PurchaseOrderSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def po_detail(request, pk):
    """GET /procurement/po/<pk>/"""
    po = _visible_purchase_orders(request.user).filter(pk=pk).first()
    if po is None:
        return workflow_error_response(NotFound(f"Purchase order {pk} not found"), "Purchase order not found")
    return success_response(data=PurchaseOrderSerializer(po).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@auto_paginate
def po_pending_sign_off(request):
    """
    GET /procurement/po/pending-sign-off/
    Direct POs waiting for a manager's signature.
    """
    queryset = _visible_purchase_orders(request.user).filter(
        is_direct=True, status__in=AWAITING_SIGN_OFF
    ).order_by('created_at')
    serializer = PurchaseOrderSerializer(queryset, many=True)
    return Response(serializer.data)


# ============================================================================
# DIRECT PO
# ============================================================================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def direct_po_create(request):
    """
    POST /procurement/po/direct/
    Purchase officer orders immediately; the PO waits for manager sign-off.
    Resubmitting a sign-rejected item (``request_id``) patches its PO.
    """
    serializer = DirectPOCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        po = PurchaseOrderService.create_direct_po(request.user, serializer.to_dto())
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to create direct PO")

    siblings = PurchaseOrder.objects.filter(po_number=po.po_number, is_direct=True).select_related(
        'request', 'vendor', 'delivery_site', 'created_by'
    ).order_by('request__item_order')
    return success_response(
        data={
            'po_number': po.po_number,
            'request_number': po.request.request_number,
            'purchase_orders': PurchaseOrderSerializer(siblings, many=True).data,
        },
        message=f"Direct PO #{po.po_number} sent for sign-off",
        status_code=status.HTTP_201_CREATED
    )


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def direct_po_approve(request):
    """POST /procurement/po/sign-off/approve/  {"po_id": 1} or {"request_id": 4}"""
    serializer = SignOffSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        po = PurchaseOrderService.approve_direct_po(request.user, serializer.to_dto())
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to approve direct PO")
    return success_response(data=PurchaseOrderSerializer(po).data, message="Direct PO approved")


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def direct_po_reject(request):
    """POST /procurement/po/sign-off/reject/  {"po_id": 1, "reason": "..."}"""
    serializer = SignOffSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        po = PurchaseOrderService.reject_direct_po(request.user, serializer.to_dto())
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to reject direct PO")
    return success_response(data=PurchaseOrderSerializer(po).data, message="Direct PO rejected")


# ============================================================================
# STANDARD PO
# ============================================================================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def po_issue(request):
    """
    POST /procurement/po/issue/
    Order request items that have an approved cost comparison or were
    routed straight to PO.
    """
    serializer = POIssueSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        orders = PurchaseOrderService.issue(request.user, serializer.to_dto())
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to issue PO")
    return success_response(
        data={
            'po_number': orders[0].po_number,
            'purchase_orders': PurchaseOrderSerializer(orders, many=True).data,
        },
        message=f"PO #{orders[0].po_number} issued",
        status_code=status.HTTP_201_CREATED
    )


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def po_update_status(request, pk):
    """
    POST /procurement/po/<pk>/status/
    {"status": "ordered" | "delivered" | "cancelled", "reason": "..."}
    """
    serializer = POStatusUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        po = PurchaseOrderService.update_status(request.user, serializer.to_dto(pk))
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to update PO status")
    return success_response(
        data=PurchaseOrderSerializer(po).data,
        message=f"PO #{po.po_number} is now {POStatus(po.status).label}"
    )


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def po_cancel(request, pk):
    """POST /procurement/po/<pk>/cancel/"""
    serializer = POCancelSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        po = PurchaseOrderService.cancel(request.user, pk, serializer.validated_data['reason'])
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to cancel PO")
    return success_response(data=PurchaseOrderSerializer(po).data, message=f"PO #{po.po_number} cancelled")
