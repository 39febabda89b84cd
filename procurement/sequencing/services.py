"""
Identifier generation for requests, purchase orders and deliveries.

Each namespace has a SequenceCounter row that is locked and incremented
inside the caller's transaction. The counter is also reconciled with the
highest identifier already stored, so rows written by other means (data
imports, fixtures) never cause a duplicate number.
"""
import logging
import re

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from procurement.delivery.models import Delivery
from procurement.po.models import PurchaseOrder
from procurement.PR.models import MaterialRequest
from procurement.sequencing.models import SequenceCounter

logger = logging.getLogger(__name__)

REQUEST_NAMESPACE = 'request'
DRAFT_NAMESPACE = 'draft'

NUMERIC_IDENTIFIER = r'^\d{3}$'


def _setting(name, default):
    return getattr(settings, 'PROCUREMENT', {}).get(name, default)


def _max_numeric(values, pattern=r'^(\d+)$'):
    """Highest integer captured by ``pattern`` across ``values`` (0 if none)."""
    regex = re.compile(pattern)
    highest = 0
    for value in values:
        match = regex.match(value or '')
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


class SequenceService:
    """Atomic counters backing every human-visible identifier."""

    @staticmethod
    @transaction.atomic
    def next_value(key, floor=0):
        """
        Lock the counter for ``key`` and return the next value.

        ``floor`` is the highest value already in use; the result is
        always greater than both the stored counter and the floor.
        """
        counter, _ = SequenceCounter.objects.select_for_update().get_or_create(key=key)
        counter.last_value = max(counter.last_value, floor) + 1
        counter.save(update_fields=['last_value', 'updated_at'])
        return counter.last_value

    @staticmethod
    def existing_request_numbers():
        request_numbers = MaterialRequest.objects.filter(
            request_number__regex=NUMERIC_IDENTIFIER
        ).values_list('request_number', flat=True).distinct()
        po_numbers = PurchaseOrder.objects.filter(
            po_number__regex=NUMERIC_IDENTIFIER
        ).values_list('po_number', flat=True).distinct()
        return list(request_numbers) + list(po_numbers)

    @classmethod
    def next_request_number(cls):
        """
        Next shared request/PO number, zero-padded ("001", "002", ...).

        With 7 numbers already stored the result is "008".
        """
        width = _setting('REQUEST_NUMBER_WIDTH', 3)
        value = cls.next_value(REQUEST_NAMESPACE, floor=_max_numeric(cls.existing_request_numbers()))
        number = str(value).zfill(width)
        logger.debug(f"Allocated request number {number}")
        return number

    @classmethod
    def next_draft_number(cls):
        """Next draft number, e.g. "DRAFT-004"."""
        prefix = _setting('DRAFT_NUMBER_PREFIX', 'DRAFT-')
        width = _setting('REQUEST_NUMBER_WIDTH', 3)
        existing = MaterialRequest.objects.filter(
            request_number__startswith=prefix
        ).values_list('request_number', flat=True).distinct()
        floor = _max_numeric(existing, pattern=rf'^{re.escape(prefix)}(\d+)$')
        value = cls.next_value(DRAFT_NAMESPACE, floor=floor)
        return f"{prefix}{str(value).zfill(width)}"

    @classmethod
    def next_delivery_id(cls, now=None):
        """
        Delivery challan id "DC-<YYYYMMDD>-<NNNN>" where NNNN restarts
        every local day.
        """
        day = timezone.localtime(now or timezone.now()).strftime('%Y%m%d')
        prefix = f"DC-{day}-"
        width = _setting('DELIVERY_SEQUENCE_WIDTH', 4)
        existing = Delivery.objects.filter(
            delivery_id__startswith=prefix
        ).values_list('delivery_id', flat=True)
        floor = _max_numeric(existing, pattern=rf'^{re.escape(prefix)}(\d+)$')
        value = cls.next_value(f"delivery:{day}", floor=floor)
        return f"{prefix}{str(value).zfill(width)}"
