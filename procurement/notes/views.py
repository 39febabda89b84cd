from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from procure_project.pagination import auto_paginate
from procure_project.response_formatter import success_response, error_response, workflow_error_response
from procurement.exceptions import WORKFLOW_ERRORS

from .serializers import RequestNoteSerializer, RequestNoteCreateSerializer
from .services import NoteService


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@auto_paginate
def request_notes(request, request_number):
    """
    GET:  Timeline of a request, oldest first
    POST: Add a free-text note
    """
    if request.method == 'GET':
        serializer = RequestNoteSerializer(NoteService.timeline(request_number), many=True)
        return Response(serializer.data)

    serializer = RequestNoteCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(
            message="Invalid data provided",
            data=serializer.errors,
            status_code=status.HTTP_400_BAD_REQUEST
        )
    try:
        note = NoteService.add_user_note(request.user, request_number, serializer.validated_data['content'])
    except WORKFLOW_ERRORS as e:
        return workflow_error_response(e, "Failed to add note")
    return success_response(
        data=RequestNoteSerializer(note).data,
        message="Note added",
        status_code=status.HTTP_201_CREATED
    )
