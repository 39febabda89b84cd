"""
Cost comparison API views.

Purchase officers collect vendor quotes for a request item and submit
them; managers approve one vendor or send the comparison back.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from procure_project.pagination import auto_paginate
from procure_project.response_formatter import success_response, error_response, workflow_error_response
from procurement.exceptions import WORKFLOW_ERRORS, NotFound

from .models import CostComparison, CCStatus
from .serializers import (
    CostComparisonSerializer,
    CostComparisonUpsertSerializer,
    CostComparisonResubmitSerializer,
    CostComparisonReviewSerializer,
)
from .services import CostComparisonService


def _invalid(serializer):
    return error_response(
        message="Invalid data provided",
        data=serializer.errors,
        status_code=status.HTTP_400_BAD_REQUEST
    )


def _comparisons():
    return CostComparison.objects.select_related('request', 'selected_vendor')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@auto_paginate
def cost_comparison_list(request):
    """
    GET:  List comparisons
        - Query params: status, request_number, is_direct_po (true/false)
    POST: Create or edit the draft comparison of a request item
    """
    if request.method == 'GET':
        queryset = _comparisons()
        params = request.query_params
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('request_number'):
            queryset = queryset.filter(request__request_number=params['request_number'])
        if params.get('is_direct_po') in ('true', 'false'):
            queryset = queryset.filter(is_direct_po=params['is_direct_po'] == 'true')
        return Response(CostComparisonSerializer(queryset, many=True).data)

    serializer = CostComparisonUpsertSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        comparison = CostComparisonService.upsert(request.user, serializer.to_dto())
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to save cost comparison")
    return success_response(
        data=CostComparisonSerializer(comparison).data,
        message="Cost comparison saved",
        status_code=status.HTTP_201_CREATED
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def cost_comparison_detail(request, pk):
    comparison = _comparisons().filter(pk=pk).first()
    if comparison is None:
        return workflow_error_response(NotFound(f"Cost comparison {pk} not found"), "Cost comparison not found")
    return success_response(data=CostComparisonSerializer(comparison).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@auto_paginate
def cost_comparison_pending(request):
    """GET: Comparisons waiting for a manager's decision, oldest first"""
    queryset = _comparisons().filter(status=CCStatus.CC_PENDING).order_by('updated_at')
    return Response(CostComparisonSerializer(queryset, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cost_comparison_submit(request, pk):
    try:
        comparison = CostComparisonService.submit(request.user, pk)
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to submit cost comparison")
    return success_response(data=CostComparisonSerializer(comparison).data, message="Cost comparison submitted")


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cost_comparison_approve(request, pk):
    """{"selected_vendor_id": 5, "notes": "..."}"""
    serializer = CostComparisonReviewSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        comparison = CostComparisonService.approve(request.user, serializer.to_dto(pk))
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to approve cost comparison")
    return success_response(data=CostComparisonSerializer(comparison).data, message="Cost comparison approved")


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cost_comparison_reject(request, pk):
    """{"notes": "reason"}"""
    serializer = CostComparisonReviewSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        comparison = CostComparisonService.reject(request.user, serializer.to_dto(pk))
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to reject cost comparison")
    return success_response(data=CostComparisonSerializer(comparison).data, message="Cost comparison rejected")


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cost_comparison_resubmit(request, pk):
    serializer = CostComparisonResubmitSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)
    try:
        comparison = CostComparisonService.resubmit(request.user, serializer.to_dto(pk))
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to resubmit cost comparison")
    return success_response(data=CostComparisonSerializer(comparison).data, message="Cost comparison resubmitted")
