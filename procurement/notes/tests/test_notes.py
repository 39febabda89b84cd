"""
Tests for the request timeline.

- GET  /procurement/notes/{request_number}/ - Timeline, oldest first
- POST /procurement/notes/{request_number}/ - Add a note
"""
from datetime import timedelta
from unittest import mock

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from procurement.notes.models import RequestNote
from procurement.notes.services import NoteService
from procurement.tests.fixtures import WorkflowUsersMixin, approve, create_request


class RequestNotesAPITests(WorkflowUsersMixin, TestCase):

    def setUp(self):
        self.client = APIClient()
        self.create_workflow_users()
        self.row = create_request(self.engineer, self.site)[0]
        self.url = reverse('notes:request-notes', args=[self.row.request_number])
        self.client.force_authenticate(user=self.manager)

    def test_timeline_is_oldest_first(self):
        approve(self.manager, self.row)
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        results = response.data['data']['results']
        self.assertGreaterEqual(len(results), 2)
        self.assertEqual([note['id'] for note in results], sorted(note['id'] for note in results))
        self.assertEqual(results[-1]['status'], 'approved')
        self.assertEqual(results[-1]['role'], 'manager')

    def test_add_note(self):
        response = self.client.post(self.url, {'content': 'Check with the site store first'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        note = RequestNote.objects.get(pk=response.data['data']['id'])
        self.assertEqual(note.note_type, RequestNote.NOTE)
        self.assertEqual(note.user, self.manager)
        self.assertEqual(note.status, 'pending')

    def test_note_on_unknown_request(self):
        url = reverse('notes:request-notes', args=['999'])
        response = self.client.post(url, {'content': 'Hello'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_empty_note_rejected(self):
        response = self.client.post(self.url, {'content': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class NoteServiceTests(WorkflowUsersMixin, TestCase):

    def setUp(self):
        self.create_workflow_users()

    def test_repeated_rejection_is_written_once(self):
        first = NoteService.append(self.manager, '001', 'Rejected: wrong grade', 'rejected')
        second = NoteService.append(self.manager, '001', 'Rejected: wrong grade', 'rejected')
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(RequestNote.objects.count(), 1)

    def test_rejection_repeated_after_window_is_written(self):
        first = NoteService.append(self.manager, '001', 'Rejected: wrong grade', 'rejected')
        later = timezone.now() + timedelta(seconds=10)
        with mock.patch('procurement.notes.services.timezone.now', return_value=later):
            second = NoteService.append(self.manager, '001', 'Rejected: wrong grade', 'rejected')
        self.assertNotEqual(first.pk, second.pk)

    def test_other_entries_are_not_deduplicated(self):
        NoteService.append(self.officer, '001', 'Item 1: cost comparison submitted', 'cc_pending')
        NoteService.append(self.officer, '001', 'Item 1: cost comparison submitted', 'cc_pending')
        self.assertEqual(RequestNote.objects.count(), 2)

    def test_notes_are_append_only(self):
        note = NoteService.append(self.manager, '001', 'Approved', 'approved')
        note.content = 'Edited'
        with self.assertRaises(ValueError):
            note.save()
        with self.assertRaises(ValueError):
            note.delete()

    def test_copy_timeline(self):
        NoteService.append(self.engineer, 'DRAFT-001', 'Draft created', 'draft')
        NoteService.append(self.engineer, 'DRAFT-001', 'Quantity changed', 'draft')
        NoteService.copy_timeline('DRAFT-001', '004')
        self.assertEqual(
            list(NoteService.timeline('004').values_list('content', flat=True)),
            ['Draft created', 'Quantity changed']
        )
