"""
Tests for material request API endpoints.

Tests all endpoints:
- POST  /procurement/requests/                       - Create request
- GET   /procurement/requests/                       - List request groups
- GET   /procurement/requests/{number}/              - Request case detail
- GET   /procurement/requests/pending/               - Pending items
- POST  /procurement/requests/items/{id}/status/     - Status change
- POST  /procurement/requests/items/bulk-status/     - Bulk manager decision
- PATCH /procurement/requests/items/{id}/            - Purchase officer correction
- POST  /procurement/requests/items/{id}/resubmit/   - Resubmit rejected item
- POST  /procurement/requests/items/{id}/stock/      - Fulfil from central stock
"""
from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from core.user_accounts.models import Role
from procurement.catalog.models import InventoryItem
from procurement.notes.models import RequestNote
from procurement.PR.models import MaterialRequest
from procurement.tests.fixtures import (
    WorkflowUsersMixin,
    create_request,
    create_site,
    create_stock,
    create_user,
    create_valid_request_data,
    approve,
)


class RequestCreateTests(WorkflowUsersMixin, TestCase):
    """Test request creation endpoint"""

    def setUp(self):
        self.client = APIClient()
        self.create_workflow_users()
        self.client.force_authenticate(user=self.engineer)
        self.url = reverse('pr:request-list')

    def test_create_request_success(self):
        data = create_valid_request_data(self.site, items=[
            {'item_name': 'Cement', 'quantity': '50', 'unit': 'bags', 'is_urgent': True},
            {'item_name': 'TMT bar 12mm', 'quantity': '2', 'unit': 'ton'},
        ])
        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        body = response.data['data']
        self.assertEqual(body['request_number'], '001')
        self.assertEqual(body['status'], 'pending')
        self.assertTrue(body['is_urgent'])
        self.assertEqual([item['item_order'] for item in body['items']], [1, 2])
        self.assertEqual(MaterialRequest.objects.filter(request_number='001').count(), 2)

    def test_request_numbers_continue_after_existing(self):
        for _ in range(7):
            create_request(self.engineer, self.site)
        response = self.client.post(self.url, create_valid_request_data(self.site), format='json')
        self.assertEqual(response.data['data']['request_number'], '008')

    def test_create_without_items_fails(self):
        data = create_valid_request_data(self.site)
        data['items'] = []
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(MaterialRequest.objects.exists())

    def test_create_zero_quantity_fails(self):
        data = create_valid_request_data(self.site, items=[{'item_name': 'Cement', 'quantity': '0', 'unit': 'bags'}])
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unassigned_site_is_forbidden(self):
        other_site = create_site(code='SITE-B', name='Tower B')
        response = self.client.post(self.url, create_valid_request_data(other_site), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['data']['error'], 'Unauthorized')

    def test_manager_cannot_create_requests(self):
        self.client.force_authenticate(user=self.manager)
        response = self.client.post(self.url, create_valid_request_data(self.site), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_inactive_site_not_found(self):
        self.site.deactivate()
        response = self.client.post(self.url, create_valid_request_data(self.site), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_order_note_goes_to_timeline(self):
        data = create_valid_request_data(self.site)
        data['notes'] = 'Needed before slab casting'
        response = self.client.post(self.url, data, format='json')
        number = response.data['data']['request_number']
        notes = RequestNote.objects.filter(request_number=number)
        self.assertEqual(notes.count(), 2)
        self.assertEqual(notes.last().note_type, RequestNote.NOTE)

    def test_unauthenticated_request_rejected(self):
        self.client.force_authenticate(user=None)
        response = self.client.post(self.url, create_valid_request_data(self.site), format='json')
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))


class RequestListTests(WorkflowUsersMixin, TestCase):
    """Test request group listing and detail"""

    def setUp(self):
        self.client = APIClient()
        self.create_workflow_users()
        self.rows = create_request(self.engineer, self.site, items=[('Cement', '50', 'bags'), ('Sand', '5', 'ton')])
        approve(self.manager, self.rows[0])

    def test_list_projects_group_status(self):
        self.client.force_authenticate(user=self.manager)
        response = self.client.get(reverse('pr:request-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        group = response.data['data']['results'][0]
        self.assertEqual(group['status'], 'partially_processed')
        self.assertTrue(group['is_mixed'])
        self.assertEqual(group['item_statuses'], [
            {'item_order': 1, 'status': 'approved'},
            {'item_order': 2, 'status': 'pending'},
        ])

    def test_filter_by_projected_status(self):
        create_request(self.engineer, self.site)
        self.client.force_authenticate(user=self.manager)
        response = self.client.get(reverse('pr:request-list'), {'status': 'pending'})
        self.assertEqual(response.data['data']['count'], 1)
        self.assertEqual(response.data['data']['results'][0]['request_number'], '002')

    def test_engineer_sees_only_assigned_sites(self):
        other_site = create_site(code='SITE-B', name='Tower B')
        other_engineer = create_user(Role.SITE_ENGINEER, sites=[other_site])
        create_request(other_engineer, other_site)

        self.client.force_authenticate(user=self.engineer)
        response = self.client.get(reverse('pr:request-list'))
        self.assertEqual([g['request_number'] for g in response.data['data']['results']], ['001'])

        response = self.client.get(reverse('pr:request-detail', args=['002']))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_detail_contains_case(self):
        self.client.force_authenticate(user=self.officer)
        response = self.client.get(reverse('pr:request-detail', args=['001']))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']['items']), 2)
        self.assertEqual(response.data['data']['purchase_orders'], [])
        self.assertEqual(response.data['data']['cost_comparisons'], [])

    def test_pending_list(self):
        self.client.force_authenticate(user=self.manager)
        response = self.client.get(reverse('pr:request-pending'))
        self.assertEqual(response.data['data']['count'], 1)
        self.assertEqual(response.data['data']['results'][0]['item_name'], 'Sand')


class ManagerDecisionTests(WorkflowUsersMixin, TestCase):
    """Test manager status changes on pending items"""

    def setUp(self):
        self.client = APIClient()
        self.create_workflow_users()
        self.row = create_request(self.engineer, self.site)[0]
        self.client.force_authenticate(user=self.manager)
        self.url = reverse('pr:request-update-status', args=[self.row.id])

    def test_approve(self):
        response = self.client.post(self.url, {'new_status': 'approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.row.refresh_from_db()
        self.assertEqual(self.row.status, 'approved')
        self.assertEqual(self.row.approved_by, self.manager)
        self.assertIsNotNone(self.row.approved_at)

    def test_direct_po_routes_to_recheck(self):
        self.client.post(self.url, {'new_status': 'direct_po'}, format='json')
        self.row.refresh_from_db()
        self.assertEqual(self.row.status, 'recheck')
        self.assertEqual(self.row.direct_action, 'po')

    def test_reject_requires_reason(self):
        response = self.client.post(self.url, {'new_status': 'rejected'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.row.refresh_from_db()
        self.assertEqual(self.row.status, 'pending')

    def test_decision_on_non_pending_item_conflicts(self):
        self.client.post(self.url, {'new_status': 'approved'}, format='json')
        response = self.client.post(self.url, {'new_status': 'rejected', 'reason': 'Too late'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['data']['error'], 'InvalidState')

    def test_site_engineer_cannot_change_status(self):
        self.client.force_authenticate(user=self.engineer)
        response = self.client.post(self.url, {'new_status': 'approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_item_not_found(self):
        url = reverse('pr:request-update-status', args=[9999])
        response = self.client.post(url, {'new_status': 'approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_bulk_reject_writes_one_note_per_request(self):
        rows = create_request(self.engineer, self.site, items=[('Cement', '5', 'bags'), ('Sand', '1', 'ton')])
        approve(self.manager, rows[0])
        response = self.client.post(reverse('pr:request-bulk-status'), {
            'request_ids': [rows[0].id, rows[1].id],
            'new_status': 'rejected',
            'reason': 'Budget exhausted',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['skipped'], [rows[0].id])
        self.assertEqual(MaterialRequest.objects.get(pk=rows[1].id).status, 'rejected')
        self.assertEqual(
            RequestNote.objects.filter(request_number=rows[0].request_number, content='Rejected (Bulk): Budget exhausted').count(),
            1
        )


class PurchaseOfficerTransitionTests(WorkflowUsersMixin, TestCase):
    """Test purchase officer transitions, corrections and stock fulfilment"""

    def setUp(self):
        self.client = APIClient()
        self.create_workflow_users()
        self.row = create_request(self.engineer, self.site)[0]
        approve(self.manager, self.row, 'recheck')
        self.client.force_authenticate(user=self.officer)

    def test_allowed_transition(self):
        url = reverse('pr:request-update-status', args=[self.row.id])
        response = self.client.post(url, {'new_status': 'ready_for_po'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'ready_for_po')
        self.assertEqual(response.data['data']['group']['status'], 'ready_for_po')

    def test_transition_outside_table_conflicts(self):
        url = reverse('pr:request-update-status', args=[self.row.id])
        response = self.client.post(url, {'new_status': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_correct_details(self):
        url = reverse('pr:request-update-details', args=[self.row.id])
        response = self.client.patch(url, {'quantity': '45'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.row.refresh_from_db()
        self.assertEqual(self.row.quantity, Decimal('45'))
        self.assertTrue(
            RequestNote.objects.filter(request_number=self.row.request_number, content__contains='quantity').exists()
        )

    def test_partial_stock_fulfilment_splits_row(self):
        create_stock('Cement', quantity='100')
        url = reverse('pr:request-fulfil-from-stock', args=[self.row.id])
        response = self.client.post(url, {'quantity': '20'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rows = MaterialRequest.objects.filter(request_number=self.row.request_number).order_by('id')
        self.assertEqual([(r.quantity, r.status) for r in rows], [
            (Decimal('30'), 'recheck'),
            (Decimal('20'), 'delivery_stage'),
        ])
        self.assertEqual(rows[1].direct_action, 'delivery')
        self.assertEqual(InventoryItem.objects.get().central_stock, Decimal('80'))

    def test_stock_shortage_rolls_back(self):
        create_stock('Cement', quantity='10')
        url = reverse('pr:request-fulfil-from-stock', args=[self.row.id])
        response = self.client.post(url, {'quantity': '20'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(MaterialRequest.objects.count(), 1)


class ResubmitTests(WorkflowUsersMixin, TestCase):

    def setUp(self):
        self.client = APIClient()
        self.create_workflow_users()
        self.row = create_request(self.engineer, self.site)[0]
        approve(self.manager, self.row, 'rejected', reason='Wrong grade')
        self.url = reverse('pr:request-resubmit', args=[self.row.id])

    def test_owner_resubmits_corrected_item(self):
        self.client.force_authenticate(user=self.engineer)
        response = self.client.post(self.url, {'item_name': 'Cement OPC 53'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.row.refresh_from_db()
        self.assertEqual(self.row.status, 'pending')
        self.assertEqual(self.row.item_name, 'Cement OPC 53')
        self.assertEqual(self.row.rejection_reason, '')

    def test_other_engineer_cannot_resubmit(self):
        other = create_user(Role.SITE_ENGINEER, sites=[self.site])
        self.client.force_authenticate(user=other)
        response = self.client.post(self.url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
