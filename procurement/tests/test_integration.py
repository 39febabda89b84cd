"""
Integration tests for the complete procurement workflow through the API:
request -> approval -> cost comparison -> PO -> delivery -> confirmation.
"""
from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from procurement.delivery.models import Delivery
from procurement.notes.models import RequestNote
from procurement.po.models import PurchaseOrder
from procurement.PR.case import ProcurementCase
from procurement.PR.models import MaterialRequest
from procurement.tests.fixtures import WorkflowUsersMixin, create_valid_request_data


class ProcurementIntegrationTestCase(WorkflowUsersMixin, TestCase):
    """Base class for integration tests with common setup."""

    def setUp(self):
        self.client = APIClient()
        self.create_workflow_users()

    def act_as(self, user):
        self.client.force_authenticate(user=user)

    def post(self, name, data=None, args=None):
        return self.client.post(reverse(name, args=args), data or {}, format='json')


class FullLifecycleTests(ProcurementIntegrationTestCase):

    def test_standard_path_with_partial_delivery(self):
        """50 bags ordered, 20 delivered first: the line splits 20/30 and still totals 50."""
        # Step 1: site engineer raises the request
        self.act_as(self.engineer)
        response = self.post('pr:request-list', create_valid_request_data(self.site))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        request_number = response.data['data']['request_number']
        request_id = response.data['data']['items'][0]['id']
        self.assertEqual(response.data['data']['status'], 'pending')

        # Step 2: manager approves
        self.act_as(self.manager)
        response = self.post('pr:request-update-status', {'new_status': 'approved'}, args=[request_id])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'approved')

        # Step 3: purchase officer prepares and submits a cost comparison
        self.act_as(self.officer)
        response = self.post('cost_comparison:cc-list', {
            'request_id': request_id,
            'quotes': [{
                'vendor_id': self.vendor.id,
                'unit_price': '100',
                'discount_percent': '10',
                'gst_percent': '18',
            }],
            'selected_vendor_id': self.vendor.id,
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        comparison_id = response.data['data']['id']
        self.assertEqual(self.post('cost_comparison:cc-submit', args=[comparison_id]).status_code, status.HTTP_200_OK)

        # Step 4: manager approves the comparison
        self.act_as(self.manager)
        response = self.post('cost_comparison:cc-approve', {}, args=[comparison_id])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(MaterialRequest.objects.get(pk=request_id).status, 'cc_approved')

        # Step 5: purchase officer issues the PO at the quoted price
        self.act_as(self.officer)
        response = self.post('po:po-issue', {'items': [{'request_id': request_id}]})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        po_data = response.data['data']['purchase_orders'][0]
        self.assertEqual(po_data['status'], 'ordered')
        self.assertEqual(Decimal(po_data['total_amount']), Decimal('5310.00'))
        self.assertEqual(MaterialRequest.objects.get(pk=request_id).status, 'pending_po')

        # Step 6: 20 of 50 bags leave on the first challan
        response = self.post('delivery:delivery-create', {
            'po_id': po_data['id'],
            'items': [{'request_id': request_id, 'quantity': '20'}],
            'vehicle_number': 'KA01AB1234',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['data']['delivery_id'].startswith('DC-'))

        rows = MaterialRequest.objects.filter(request_number=request_number).order_by('id')
        self.assertEqual(rows.count(), 2)
        original, dispatched = rows
        self.assertEqual(original.quantity, Decimal('30'))
        self.assertEqual(original.status, 'pending_po')
        self.assertEqual(dispatched.quantity, Decimal('20'))
        self.assertEqual(dispatched.status, 'out_for_delivery')
        self.assertEqual(dispatched.line_item_key, original.line_item_key)

        # Step 7: site engineer confirms receipt of the 20 bags
        self.act_as(self.engineer)
        response = self.post('delivery:delivery-confirm', {'photos': ['https://files.example.com/r1.jpg']},
                             args=[dispatched.id])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        dispatched.refresh_from_db()
        self.assertEqual(dispatched.status, 'delivered')
        self.assertEqual(dispatched.delivery_photos, ['https://files.example.com/r1.jpg'])
        case = ProcurementCase.load(request_number, lock=False)
        self.assertEqual(case.line_quantity(original.line_item_key), Decimal('50'))
        self.assertEqual(Delivery.objects.get().status, 'delivered')
        self.assertEqual(PurchaseOrder.objects.get().status, 'ordered')

        response = self.client.get(reverse('pr:request-detail', args=[request_number]))
        self.assertEqual(response.data['data']['status'], 'partially_processed')

        # Step 8: the remaining 30 bags close the line and the PO
        self.act_as(self.officer)
        response = self.post('delivery:delivery-create', {
            'po_id': po_data['id'],
            'items': [{'request_id': original.id, 'quantity': '30'}],
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(MaterialRequest.objects.filter(request_number=request_number).count(), 2)
        response = self.post('delivery:delivery-confirm', {}, args=[original.id])
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertEqual(PurchaseOrder.objects.get().status, 'delivered')
        response = self.client.get(reverse('pr:request-detail', args=[request_number]))
        self.assertEqual(response.data['data']['status'], 'delivered')
        self.assertEqual(
            sum(Decimal(item['quantity']) for item in response.data['data']['items']),
            Decimal('50')
        )

    def test_direct_po_path(self):
        """Direct PO -> manager sign-off -> full delivery."""
        self.act_as(self.officer)
        response = self.post('po:direct-po-create', {
            'delivery_site_id': self.site.id,
            'vendor_id': self.vendor.id,
            'items': [{
                'item_name': 'River sand',
                'quantity': '10',
                'unit': 'ton',
                'unit_rate': '100',
                'discount_percent': '10',
                'gst_tax_rate': '18',
            }],
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        po = response.data['data']['purchase_orders'][0]
        self.assertEqual(Decimal(po['total_amount']), Decimal('1062.00'))
        self.assertEqual(po['status'], 'sign_pending')
        self.assertEqual(po['po_number'], response.data['data']['request_number'])

        self.act_as(self.manager)
        response = self.post('po:direct-po-approve', {'request_id': po['request']})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'ordered')
        self.assertEqual(MaterialRequest.objects.get(pk=po['request']).status, 'ordered')

        self.act_as(self.officer)
        response = self.post('delivery:delivery-create', {
            'po_id': po['id'],
            'items': [{'request_id': po['request'], 'quantity': '10'}],
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.post('delivery:delivery-confirm', {}, args=[po['request']])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(PurchaseOrder.objects.get(pk=po['id']).status, 'delivered')

    def test_timeline_records_each_step(self):
        self.act_as(self.engineer)
        response = self.post('pr:request-list', create_valid_request_data(self.site))
        request_number = response.data['data']['request_number']
        request_id = response.data['data']['items'][0]['id']

        self.act_as(self.manager)
        self.post('pr:request-update-status', {'new_status': 'rejected', 'reason': 'Stock available'}, args=[request_id])

        contents = list(
            RequestNote.objects.filter(request_number=request_number).values_list('content', flat=True)
        )
        self.assertEqual(contents, ["Request created with 1 item(s)", "Rejected: Stock available"])
