"""
Tests for draft endpoints.

- GET/POST    /procurement/requests/drafts/
- PUT/DELETE  /procurement/requests/drafts/{number}/
- POST        /procurement/requests/drafts/{number}/send/
"""
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from core.user_accounts.models import Role
from procurement.notes.models import RequestNote
from procurement.PR.models import MaterialRequest
from procurement.tests.fixtures import WorkflowUsersMixin, create_request, create_user, create_valid_request_data


class DraftTests(WorkflowUsersMixin, TestCase):

    def setUp(self):
        self.client = APIClient()
        self.create_workflow_users()
        self.client.force_authenticate(user=self.engineer)

    def save_draft(self, notes=''):
        data = create_valid_request_data(self.site)
        data['notes'] = notes
        response = self.client.post(reverse('pr:draft-list'), data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return response.data['data']['request_number']

    def test_save_draft_numbers(self):
        self.assertEqual(self.save_draft(), 'DRAFT-001')
        self.assertEqual(self.save_draft(), 'DRAFT-002')
        self.assertEqual(MaterialRequest.objects.filter(status='draft').count(), 2)

    def test_drafts_hidden_from_request_list(self):
        self.save_draft()
        self.client.force_authenticate(user=self.manager)
        response = self.client.get(reverse('pr:request-list'))
        self.assertEqual(response.data['data']['count'], 0)

    def test_list_only_own_drafts(self):
        self.save_draft()
        other = create_user(Role.SITE_ENGINEER, sites=[self.site])
        self.client.force_authenticate(user=other)
        response = self.client.get(reverse('pr:draft-list'))
        self.assertEqual(response.data['data']['count'], 0)

    def test_update_draft_replaces_items(self):
        number = self.save_draft()
        data = create_valid_request_data(self.site, items=[
            {'item_name': 'Sand', 'quantity': '3', 'unit': 'ton'},
            {'item_name': 'Aggregate 20mm', 'quantity': '4', 'unit': 'ton'},
        ])
        response = self.client.put(reverse('pr:draft-detail', args=[number]), data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            list(MaterialRequest.objects.group(number).values_list('item_name', flat=True)),
            ['Sand', 'Aggregate 20mm']
        )

    def test_send_draft_gets_request_number_and_keeps_notes(self):
        create_request(self.engineer, self.site)
        number = self.save_draft(notes='Deliver to gate 2')
        response = self.client.post(reverse('pr:draft-send', args=[number]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['request_number'], '002')
        self.assertEqual(response.data['data']['status'], 'pending')
        self.assertFalse(MaterialRequest.objects.filter(request_number=number).exists())
        self.assertTrue(RequestNote.objects.filter(request_number='002', content='Deliver to gate 2').exists())

    def test_delete_draft(self):
        number = self.save_draft()
        response = self.client.delete(reverse('pr:draft-detail', args=[number]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(MaterialRequest.objects.filter(request_number=number).exists())

    def test_other_engineer_cannot_delete(self):
        number = self.save_draft()
        other = create_user(Role.SITE_ENGINEER, sites=[self.site])
        self.client.force_authenticate(user=other)
        response = self.client.delete(reverse('pr:draft-detail', args=[number]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(MaterialRequest.objects.filter(request_number=number).exists())

    def test_sent_request_is_not_a_draft(self):
        rows = create_request(self.engineer, self.site)
        response = self.client.delete(reverse('pr:draft-detail', args=[rows[0].request_number]))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
