"""
Material Request Views - API Endpoints

Requests are listed and shown as groups (all rows sharing a request
number) with one projected status; workflow actions address single rows
by id.
"""
from collections import OrderedDict

from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from procure_project.pagination import auto_paginate
from procure_project.response_formatter import success_response, error_response, workflow_error_response
from procurement.cost_comparison.serializers import CostComparisonSerializer
from procurement.exceptions import WORKFLOW_ERRORS, NotFound
from procurement.po.serializers import PurchaseOrderSerializer
from procurement.PR.case import ProcurementCase
from procurement.PR.models import MaterialRequest, RequestStatus
from procurement.PR.serializers import (
    MaterialRequestSerializer,
    serialize_group,
    group_status_data,
    RequestCreateSerializer,
    StatusUpdateSerializer,
    BulkStatusUpdateSerializer,
    RequestDetailUpdateSerializer,
    ResubmitSerializer,
    StockFulfilmentSerializer,
)
from procurement.PR.services import RequestService


def _invalid(serializer):
    return error_response(
        message="Invalid data provided",
        data=serializer.errors,
        status_code=status.HTTP_400_BAD_REQUEST
    )


def _group_rows(rows):
    groups = OrderedDict()
    for row in rows:
        groups.setdefault(row.request_number, []).append(row)
    return groups


# ============================================================================
# REQUEST GROUPS
# ============================================================================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@auto_paginate
def request_list(request):
    """
    List request groups visible to the user or create a new request.

    GET /procurement/requests/
    - Query params:
        - status: projected group status (e.g. pending, partially_processed)
        - item_status: groups having at least one row in this status
        - site_id: Filter by site
        - is_urgent: true/false
        - search: request number or item name

    POST /procurement/requests/
    - Site engineers only; returns the new request number
    """
    if request.method == 'GET':
        params = request.query_params
        rows = MaterialRequest.objects.visible_to(request.user).exclude(
            status=RequestStatus.DRAFT
        ).select_related('site', 'created_by', 'delivery')

        if params.get('site_id'):
            rows = rows.filter(site_id=params['site_id'])
        if params.get('search'):
            search = params['search']
            numbers = MaterialRequest.objects.filter(
                Q(request_number__icontains=search) | Q(item_name__icontains=search)
            ).values('request_number')
            rows = rows.filter(request_number__in=numbers)
        if params.get('item_status'):
            numbers = MaterialRequest.objects.filter(status=params['item_status']).values('request_number')
            rows = rows.filter(request_number__in=numbers)

        rows = rows.order_by('-created_at', 'request_number', 'item_order', 'id')
        groups = [serialize_group(number, items) for number, items in _group_rows(rows).items()]

        if params.get('status'):
            groups = [group for group in groups if group['status'] == params['status']]
        if params.get('is_urgent') in ('true', 'false'):
            urgent = params['is_urgent'] == 'true'
            groups = [group for group in groups if group['is_urgent'] == urgent]
        return Response(groups)

    serializer = RequestCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        request_number = RequestService.create_request(request.user, serializer.to_dto())
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to create request")
    items = list(MaterialRequest.objects.group(request_number).select_related('site', 'created_by'))
    return success_response(
        data=serialize_group(request_number, items),
        message=f"Request #{request_number} created",
        status_code=status.HTTP_201_CREATED
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def request_detail(request, request_number):
    """
    GET /procurement/requests/<request_number>/
    The whole case: rows with projected status, purchase orders and cost
    comparisons.
    """
    visible = MaterialRequest.objects.visible_to(request.user).filter(request_number=request_number)
    if not visible.exists():
        return workflow_error_response(NotFound(f"Request #{request_number} not found"), "Request not found")

    case = ProcurementCase.load(request_number, lock=False)
    comparisons = [case.cost_comparison(item.pk) for item in case.items]
    data = serialize_group(request_number, case.items)
    data['purchase_orders'] = PurchaseOrderSerializer(case.purchase_orders(), many=True).data
    data['cost_comparisons'] = CostComparisonSerializer([cc for cc in comparisons if cc], many=True).data
    return success_response(data=data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@auto_paginate
def request_pending(request):
    """
    GET /procurement/requests/pending/
    Pending rows waiting for a manager's decision, urgent first.
    """
    rows = MaterialRequest.objects.visible_to(request.user).filter(
        status=RequestStatus.PENDING
    ).select_related('site', 'created_by').order_by('-is_urgent', 'required_by', 'request_number', 'item_order')
    return Response(MaterialRequestSerializer(rows, many=True).data)


# ============================================================================
# ROW ACTIONS
# ============================================================================

def _case_response(item, message):
    """Updated row plus the projected status of its group."""
    case = ProcurementCase.load(item.request_number, lock=False)
    data = MaterialRequestSerializer(item).data
    data['group'] = group_status_data(case.items)
    return success_response(data=data, message=message)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def request_update_status(request, pk):
    """
    POST /procurement/requests/items/<pk>/status/
    {"new_status": "approved"} or {"new_status": "rejected", "reason": "..."}
    """
    serializer = StatusUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        item = RequestService.update_status(request.user, serializer.to_dto(pk))
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to update status")
    return _case_response(item, f"Item moved to {item.get_status_display()}")


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def request_bulk_update_status(request):
    """
    POST /procurement/requests/items/bulk-status/
    {"request_ids": [4, 5, 9], "new_status": "approved"}
    Items that are no longer pending are skipped.
    """
    serializer = BulkStatusUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    dto = serializer.to_dto()
    try:
        updated = RequestService.bulk_update_status(request.user, dto)
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to update items")
    return success_response(
        data={
            'updated': MaterialRequestSerializer(updated, many=True).data,
            'skipped': [pk for pk in dto.request_ids if pk not in {item.pk for item in updated}],
        },
        message=f"{len(updated)} item(s) updated"
    )


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def request_update_details(request, pk):
    """PATCH /procurement/requests/items/<pk>/  (purchase officer correction)"""
    serializer = RequestDetailUpdateSerializer(data=request.data, partial=True)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        item = RequestService.update_details(request.user, serializer.to_dto(pk))
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to update item")
    return _case_response(item, "Item updated")


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def request_resubmit(request, pk):
    """POST /procurement/requests/items/<pk>/resubmit/"""
    serializer = ResubmitSerializer(data=request.data, partial=True)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        item = RequestService.resubmit(request.user, serializer.to_dto(pk))
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to resubmit item")
    return _case_response(item, "Item resubmitted")


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def request_fulfil_from_stock(request, pk):
    """
    POST /procurement/requests/items/<pk>/stock/
    {"quantity": "20"}
    """
    serializer = StockFulfilmentSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        served = RequestService.fulfil_from_stock(request.user, serializer.to_dto(pk))
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to fulfil from stock")
    return _case_response(served, f"{serializer.validated_data['quantity']} {served.unit} served from stock")
