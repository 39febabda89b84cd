import logging
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from procurement.exceptions import NotFound
from procurement.notes.models import RequestNote
from procurement.PR.models import MaterialRequest

logger = logging.getLogger(__name__)

REJECTION_STATUSES = {'rejected', 'sign_rejected', 'cc_rejected', 'rejected_po'}


class NoteService:
    """Writes to the request timeline."""

    @staticmethod
    def append(user, request_number, content, status='', note_type=RequestNote.LOG):
        """
        Append one entry to the timeline of ``request_number``.

        An identical rejection entry written moments earlier (double click,
        bulk action over several items of one request) is not repeated.
        """
        content = (content or '').strip()
        if not content:
            raise ValidationError({'content': 'Note content cannot be empty'})

        if status in REJECTION_STATUSES:
            window = getattr(settings, 'PROCUREMENT', {}).get('REJECTION_NOTE_DEDUP_SECONDS', 5)
            duplicate = RequestNote.objects.filter(
                request_number=request_number,
                status=status,
                content=content,
                created_at__gte=timezone.now() - timedelta(seconds=window),
            ).first()
            if duplicate is not None:
                return duplicate

        note = RequestNote.objects.create(
            request_number=request_number,
            user=user,
            role=getattr(user, 'role', '') or '',
            status=status or '',
            note_type=note_type,
            content=content,
        )
        logger.debug(f"Note #{note.pk} appended to request {request_number}")
        return note

    @staticmethod
    @transaction.atomic
    def add_user_note(user, request_number, content):
        """Free-text note from any participant on an existing request."""
        latest = MaterialRequest.objects.filter(
            request_number=request_number
        ).order_by('-updated_at').first()
        if latest is None:
            raise NotFound(f"Request {request_number} not found")
        return NoteService.append(user, request_number, content, status=latest.status, note_type=RequestNote.NOTE)

    @staticmethod
    def copy_timeline(source_number, target_number):
        """Copy every entry of ``source_number`` onto ``target_number`` (oldest-first)."""
        copied = []
        for note in RequestNote.objects.filter(request_number=source_number).order_by('created_at', 'id'):
            copied.append(RequestNote.objects.create(
                request_number=target_number,
                user=note.user,
                role=note.role,
                status=note.status,
                note_type=note.note_type,
                content=note.content,
            ))
        return copied

    @staticmethod
    def timeline(request_number):
        return RequestNote.objects.filter(request_number=request_number).select_related('user')
