"""
Tests for request, draft and delivery identifiers.
"""
from datetime import datetime

from django.test import TestCase, override_settings
from django.utils import timezone

from procurement.PR.models import MaterialRequest
from procurement.sequencing.models import SequenceCounter
from procurement.sequencing.services import SequenceService
from procurement.tests.fixtures import create_request, create_site, create_user


class RequestNumberTests(TestCase):

    def test_first_number(self):
        self.assertEqual(SequenceService.next_request_number(), '001')

    def test_follows_counter(self):
        SequenceCounter.objects.create(key='request', last_value=7)
        self.assertEqual(SequenceService.next_request_number(), '008')
        self.assertEqual(SequenceService.next_request_number(), '009')

    def test_never_reuses_stored_number(self):
        site = create_site()
        engineer = create_user(sites=[site])
        rows = create_request(engineer, site)
        MaterialRequest.objects.filter(pk=rows[0].pk).update(request_number='012')
        self.assertEqual(SequenceService.next_request_number(), '013')

    def test_drafts_do_not_consume_request_numbers(self):
        self.assertEqual(SequenceService.next_draft_number(), 'DRAFT-001')
        self.assertEqual(SequenceService.next_draft_number(), 'DRAFT-002')
        self.assertEqual(SequenceService.next_request_number(), '001')

    @override_settings(PROCUREMENT={'REQUEST_NUMBER_WIDTH': 5})
    def test_width_from_settings(self):
        self.assertEqual(SequenceService.next_request_number(), '00001')


class DeliveryIdTests(TestCase):

    def test_daily_sequence(self):
        day = timezone.make_aware(datetime(2026, 5, 14, 9, 30))
        self.assertEqual(SequenceService.next_delivery_id(day), 'DC-20260514-0001')
        self.assertEqual(SequenceService.next_delivery_id(day), 'DC-20260514-0002')

    def test_restarts_next_day(self):
        SequenceService.next_delivery_id(timezone.make_aware(datetime(2026, 5, 14, 23, 0)))
        next_day = timezone.make_aware(datetime(2026, 5, 15, 0, 30))
        self.assertEqual(SequenceService.next_delivery_id(next_day), 'DC-20260515-0001')
        self.assertEqual(SequenceCounter.objects.get(key='delivery:20260514').last_value, 1)
