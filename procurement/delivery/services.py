"""
Delivery challans and the request splitting they cause.

Loading less than a row's quantity onto a challan splits the row: the
loaded part becomes a new row (same request number and line item) that is
``out_for_delivery``, and the original keeps the remainder and its status.
The quantities of all rows of one line item always add up to what was
first ordered.
"""
import logging
from dataclasses import asdict

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from core.user_accounts.models import Role
from procurement.exceptions import NotFound
from procurement.notes.services import NoteService
from procurement.permissions import ensure_role, ensure_site_access
from procurement.po.amounts import to_decimal
from procurement.po.models import POStatus
from procurement.PR.case import ProcurementCase
from procurement.PR.models import MaterialRequest, RequestStatus
from procurement.PR import workflow
from procurement.sequencing.services import SequenceService

from .dtos import DeliveryCreateDTO, DeliveryConfirmDTO
from .models import Delivery

logger = logging.getLogger(__name__)

DELIVERABLE_PO = frozenset({POStatus.ORDERED, POStatus.APPROVED})


def _case_for_row(cases, request_id):
    """Case holding request row ``request_id``, loading its group once per call."""
    request_number = MaterialRequest.objects.filter(pk=request_id).values_list(
        'request_number', flat=True
    ).first()
    if request_number is None:
        raise NotFound(f"Request item {request_id} not found")
    if request_number not in cases:
        cases[request_number] = ProcurementCase.load(request_number)
    return cases[request_number]


class DeliveryService:
    """Service for delivery business logic"""

    @staticmethod
    @transaction.atomic
    def create_delivery(user, dto: DeliveryCreateDTO) -> Delivery:
        """
        Raise a challan against an ordered PO and load request rows onto it.

        The challan may carry any row whose line item was ordered under the
        same PO number, including rows of other request groups issued
        together with it.

        Validates:
        - Actor is a purchase officer
        - PO exists and is ordered
        - Every row's line item has a deliverable PO with that number
        - 0 < quantity <= row quantity
        """
        ensure_role(user, Role.PURCHASE_OFFICER, action='create deliveries')
        if not dto.items:
            raise ValidationError({'items': 'At least one item is required'})

        case, po = ProcurementCase.for_purchase_order(dto.po_id)
        po.ensure_status(DELIVERABLE_PO, 'create a delivery for')
        cases = {case.request_number: case}

        now = timezone.now()
        delivery = Delivery(
            delivery_id=SequenceService.next_delivery_id(now),
            purchase_order=po,
            created_by=user,
            **asdict(dto.meta),
        )
        delivery.full_clean(exclude=['purchase_order', 'created_by'])
        delivery.save()

        seen = set()
        for position, item_dto in enumerate(dto.items, start=1):
            row_case = _case_for_row(cases, item_dto.request_id)
            row = row_case.item(item_dto.request_id)
            if row.pk in seen:
                raise ValidationError({f"items[{position}]": f"Request item {row.pk} is listed twice"})
            seen.add(row.pk)
            covered = [
                line_po for line_po in row_case.purchase_orders_for_line(row.line_item_key)
                if line_po.po_number == po.po_number and line_po.status in DELIVERABLE_PO
            ]
            if not covered:
                raise ValidationError({
                    f"items[{position}]": f"Request item {row.pk} is not covered by PO #{po.po_number}"
                })
            row.ensure_status(workflow.DELIVERABLE, 'deliver')

            quantity = to_decimal(item_dto.quantity, 'quantity')
            if quantity <= 0:
                raise ValidationError({f"items[{position}]": 'Quantity must be greater than zero'})
            if quantity > row.quantity:
                raise ValidationError({
                    f"items[{position}]": f"Quantity {quantity} exceeds the open quantity {row.quantity}"
                })

            if quantity < row.quantity:
                row_case.split(
                    row, quantity,
                    status=RequestStatus.OUT_FOR_DELIVERY,
                    delivery=delivery,
                    delivery_marked_at=now,
                )
                content = (
                    f"Delivery {delivery.delivery_id}: {quantity} of {row.quantity + quantity} "
                    f"{row.unit} of item {row.item_order} dispatched"
                )
            else:
                row.mark_out_for_delivery(delivery)
                row_case.update_item(row)
                content = f"Delivery {delivery.delivery_id}: item {row.item_order} dispatched in full"
            NoteService.append(user, row_case.request_number, content, RequestStatus.OUT_FOR_DELIVERY)

        logger.info(
            f"Delivery {delivery.delivery_id} created by {user.email} for PO #{po.po_number} "
            f"({len(dto.items)} item(s))"
        )
        return delivery

    @staticmethod
    @transaction.atomic
    def confirm_delivery(user, dto: DeliveryConfirmDTO):
        """
        Mark a request row delivered and attach photos.

        Confirming an already delivered row changes nothing and succeeds.
        """
        ensure_role(user, Role.PURCHASE_OFFICER, Role.SITE_ENGINEER, action='confirm deliveries')
        case = ProcurementCase.for_request(dto.request_id)
        row = case.item(dto.request_id)
        ensure_site_access(user, row.site)

        if row.status == RequestStatus.DELIVERED:
            logger.debug(f"Request item {row.pk} already delivered; nothing to confirm")
            return row

        row.ensure_status(workflow.CONFIRMABLE, 'confirm delivery of')
        photos = [photo for photo in (dto.photos or []) if photo]
        case.update_item(
            row,
            status=RequestStatus.DELIVERED,
            delivery_marked_at=row.delivery_marked_at or timezone.now(),
            delivery_photos=list(row.delivery_photos or []) + photos,
        )
        NoteService.append(
            user, case.request_number,
            f"Item {row.item_order}: {row.quantity} {row.unit} received at site",
            RequestStatus.DELIVERED
        )
        case.settle_line(row)
        logger.info(f"Request item {row.pk} (#{case.request_number}) delivered, confirmed by {user.email}")
        return row

    @staticmethod
    def deliveries_for_po(po_id):
        return Delivery.objects.filter(purchase_order_id=po_id).select_related('purchase_order', 'created_by')

    @staticmethod
    def get_delivery(delivery_id):
        """Delivery by its challan id (DC-...) or primary key."""
        queryset = Delivery.objects.select_related('purchase_order', 'created_by').prefetch_related('request_items')
        lookup = {'pk': int(delivery_id)} if str(delivery_id).isdigit() else {'delivery_id': delivery_id}
        delivery = queryset.filter(**lookup).first()
        if delivery is None:
            raise NotFound(f"Delivery {delivery_id} not found")
        return delivery
