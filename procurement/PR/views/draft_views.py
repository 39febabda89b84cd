"""
Draft Request Views

Drafts carry a DRAFT-NNN number and are private to the site engineer who
saved them until they are sent.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from procure_project.pagination import auto_paginate
from procure_project.response_formatter import success_response, error_response, workflow_error_response
from procurement.exceptions import WORKFLOW_ERRORS
from procurement.PR.models import MaterialRequest, RequestStatus
from procurement.PR.serializers import RequestCreateSerializer, serialize_group
from procurement.PR.services import RequestService


def _draft_group(request_number):
    items = list(MaterialRequest.objects.group(request_number).select_related('site', 'created_by'))
    return serialize_group(request_number, items)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@auto_paginate
def draft_list(request):
    """
    GET:  The current user's drafts
    POST: Save a new draft (same body as creating a request)
    """
    if request.method == 'GET':
        numbers = MaterialRequest.objects.filter(
            status=RequestStatus.DRAFT, created_by=request.user
        ).order_by('-created_at').values_list('request_number', flat=True).distinct()
        return Response([_draft_group(number) for number in dict.fromkeys(numbers)])

    serializer = RequestCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(
            message="Invalid data provided",
            data=serializer.errors,
            status_code=status.HTTP_400_BAD_REQUEST
        )
    try:
        draft_number = RequestService.save_draft(request.user, serializer.to_dto())
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to save draft")
    return success_response(
        data=_draft_group(draft_number),
        message=f"Draft {draft_number} saved",
        status_code=status.HTTP_201_CREATED
    )


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def draft_detail(request, request_number):
    """
    PUT:    Replace the draft's items
    DELETE: Delete the draft
    """
    if request.method == 'DELETE':
        try:
            RequestService.delete_draft(request.user, request_number)
        except WORKFLOW_ERRORS as e:
            return workflow_error_response(e, "Failed to delete draft")
        return success_response(message=f"Draft {request_number} deleted")

    serializer = RequestCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(
            message="Invalid data provided",
            data=serializer.errors,
            status_code=status.HTTP_400_BAD_REQUEST
        )
    try:
        RequestService.update_draft(request.user, request_number, serializer.to_dto())
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to update draft")
    return success_response(data=_draft_group(request_number), message=f"Draft {request_number} updated")


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def draft_send(request, request_number):
    """POST: Submit the draft for approval under a new request number"""
    try:
        new_number = RequestService.send_draft(request.user, request_number)
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to send draft")
    return success_response(
        data=_draft_group(new_number),
        message=f"Draft {request_number} sent as request #{new_number}"
    )
