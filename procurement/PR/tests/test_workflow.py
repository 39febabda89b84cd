"""
Tests for the request status rules and group status projection.
"""
from django.test import SimpleTestCase

from procurement.PR import workflow
from procurement.PR.models import RequestStatus
from procurement.PR.workflow import Uniform, Mixed, project_group_status, PARTIALLY_PROCESSED


class GroupStatusProjectionTests(SimpleTestCase):

    def test_uniform_group(self):
        projected = project_group_status([(1, 'approved'), (2, 'approved')])
        self.assertEqual(projected, Uniform('approved'))
        self.assertEqual(projected.label, 'approved')
        self.assertFalse(projected.is_mixed)

    def test_mixed_group_keeps_per_item_statuses(self):
        projected = project_group_status([(2, 'pending'), (1, 'approved')])
        self.assertIsInstance(projected, Mixed)
        self.assertEqual(projected.label, PARTIALLY_PROCESSED)
        self.assertEqual(projected.per_item_statuses, ((1, 'approved'), (2, 'pending')))
        self.assertEqual(projected.statuses, ['approved', 'pending'])

    def test_split_rows_of_one_item_count_separately(self):
        projected = project_group_status([(1, 'delivered'), (1, 'pending_po')])
        self.assertTrue(projected.is_mixed)

    def test_single_item(self):
        self.assertEqual(project_group_status([(1, 'rejected')]).label, 'rejected')

    def test_empty_group_is_an_error(self):
        with self.assertRaises(ValueError):
            project_group_status([])


class TransitionTableTests(SimpleTestCase):

    def test_manager_shortcuts_route_back_to_recheck(self):
        self.assertEqual(workflow.MANAGER_DECISIONS[RequestStatus.DIRECT_PO], (RequestStatus.RECHECK, 'po'))
        self.assertEqual(workflow.MANAGER_DECISIONS[RequestStatus.DELIVERY_STAGE], (RequestStatus.RECHECK, 'delivery'))

    def test_purchase_officer_targets(self):
        self.assertIn(RequestStatus.READY_FOR_PO, workflow.purchase_officer_targets(RequestStatus.RECHECK))
        self.assertIn(RequestStatus.REJECTED_PO, workflow.purchase_officer_targets(RequestStatus.PENDING_PO))
        self.assertEqual(workflow.purchase_officer_targets(RequestStatus.DELIVERED), frozenset())
        self.assertEqual(workflow.purchase_officer_targets(RequestStatus.PENDING), frozenset())

    def test_signed_statuses_are_not_direct_po_editable(self):
        for signed in (RequestStatus.ORDERED, RequestStatus.PENDING_PO, RequestStatus.DELIVERED):
            self.assertNotIn(signed, workflow.DIRECT_PO_EDITABLE)
