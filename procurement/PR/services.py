"""
Material request workflow.

Site engineers raise requests (directly or through drafts), managers decide
on pending items and purchase officers move approved items towards a
purchase order or a delivery. Every method runs in one transaction against
a locked ProcurementCase and writes one timeline entry per action.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from core.user_accounts.models import Role
from procurement.catalog.models import Site, InventoryItem
from procurement.exceptions import NotFound, Unauthorized, InvalidState
from procurement.notes.services import NoteService
from procurement.po.models import POStatus
from procurement.permissions import ensure_role, ensure_site_access
from procurement.sequencing.services import SequenceService
from procurement.PR.case import ProcurementCase
from procurement.PR.dtos import (
    RequestCreateDTO,
    StatusUpdateDTO,
    BulkStatusUpdateDTO,
    RequestDetailUpdateDTO,
    ResubmitDTO,
    StockFulfilmentDTO,
)
from procurement.PR.models import MaterialRequest, RequestStatus, DirectAction
from procurement.PR import workflow

logger = logging.getLogger(__name__)

MANAGER_NOTES = {
    RequestStatus.APPROVED: "Approved",
    RequestStatus.RECHECK: "Sent back for recheck",
    RequestStatus.DIRECT_PO: "Approved for direct PO",
    RequestStatus.DELIVERY_STAGE: "Approved for direct delivery",
}


def _active_site(site_id):
    try:
        return Site.objects.active().get(pk=site_id)
    except Site.DoesNotExist:
        raise NotFound(f"Active site {site_id} not found")


def _validate_items(items):
    if not items:
        raise ValidationError({'items': 'At least one item is required'})
    for position, item in enumerate(items, start=1):
        if not (item.item_name or '').strip():
            raise ValidationError({'items': f"Item {position}: item name is required"})
        if not (item.unit or '').strip():
            raise ValidationError({'items': f"Item {position}: unit is required"})
        if item.quantity is None or item.quantity <= 0:
            raise ValidationError({'items': f"Item {position}: quantity must be greater than zero"})


def _require_reason(new_status, reason):
    if new_status in workflow.REJECTION_STATUSES and not (reason or '').strip():
        raise ValidationError({'reason': 'A reason is required to reject'})


class RequestService:
    """Service for material request business logic"""

    # ==================== CREATION AND DRAFTS ====================

    @staticmethod
    def _insert_group(user, dto: RequestCreateDTO, request_number, status):
        site = _active_site(dto.site_id)
        ensure_site_access(user, site)
        _validate_items(dto.items)
        if dto.required_by is None:
            raise ValidationError({'required_by': 'Required-by date is required'})

        items = []
        for position, item in enumerate(dto.items, start=1):
            row = MaterialRequest(
                request_number=request_number,
                item_order=position,
                item_name=item.item_name.strip(),
                description=item.description or '',
                quantity=item.quantity,
                unit=item.unit.strip(),
                required_by=dto.required_by,
                is_urgent=item.is_urgent,
                status=status,
                notes=dto.notes or '',
                site=site,
                created_by=user,
            )
            row.full_clean()
            row.save()
            items.append(row)
        return items

    @staticmethod
    @transaction.atomic
    def create_request(user, dto: RequestCreateDTO) -> str:
        """
        Create a pending request with one or more items; returns its number.

        Validates:
        - Actor is a site engineer assigned to an active site
        - At least one item; every item has a name, a unit and quantity > 0
        """
        ensure_role(user, Role.SITE_ENGINEER, action='create requests')
        request_number = SequenceService.next_request_number()
        items = RequestService._insert_group(user, dto, request_number, RequestStatus.PENDING)

        NoteService.append(user, request_number, f"Request created with {len(items)} item(s)", RequestStatus.PENDING)
        if dto.notes:
            NoteService.append(user, request_number, dto.notes, RequestStatus.PENDING, note_type='note')
        logger.info(f"Request #{request_number} created by {user.email} with {len(items)} item(s)")
        return request_number

    @staticmethod
    @transaction.atomic
    def save_draft(user, dto: RequestCreateDTO) -> str:
        ensure_role(user, Role.SITE_ENGINEER, action='save drafts')
        draft_number = SequenceService.next_draft_number()
        items = RequestService._insert_group(user, dto, draft_number, RequestStatus.DRAFT)
        if dto.notes:
            NoteService.append(user, draft_number, dto.notes, RequestStatus.DRAFT, note_type='note')
        logger.info(f"Draft {draft_number} saved by {user.email} with {len(items)} item(s)")
        return draft_number

    @staticmethod
    def _owned_draft(user, request_number):
        ensure_role(user, Role.SITE_ENGINEER, action='edit drafts')
        case = ProcurementCase.load(request_number)
        for item in case.items:
            if item.created_by_id != user.pk:
                raise Unauthorized("Only the engineer who created a draft may change it")
            item.ensure_status({RequestStatus.DRAFT}, 'edit draft')
        return case

    @staticmethod
    @transaction.atomic
    def update_draft(user, request_number, dto: RequestCreateDTO):
        """Replace every item of a draft with ``dto.items``."""
        case = RequestService._owned_draft(user, request_number)
        previous_note = case.items[0].notes
        for item in case.items:
            case.remove_item(item)
        items = RequestService._insert_group(user, dto, request_number, RequestStatus.DRAFT)
        if dto.notes and dto.notes != previous_note:
            NoteService.append(user, request_number, dto.notes, RequestStatus.DRAFT, note_type='note')
        logger.info(f"Draft {request_number} updated by {user.email}")
        return items

    @staticmethod
    @transaction.atomic
    def delete_draft(user, request_number):
        case = RequestService._owned_draft(user, request_number)
        for item in case.items:
            case.remove_item(item)
        logger.info(f"Draft {request_number} deleted by {user.email}")

    @staticmethod
    @transaction.atomic
    def send_draft(user, request_number) -> str:
        """
        Submit a draft: it receives the next request number, every item
        becomes pending and the draft's notes move to the new number.
        """
        case = RequestService._owned_draft(user, request_number)
        site = _active_site(case.items[0].site_id)
        ensure_site_access(user, site)

        new_number = SequenceService.next_request_number()
        for item in case.items:
            case.update_item(item, request_number=new_number, status=RequestStatus.PENDING)
        NoteService.copy_timeline(request_number, new_number)
        NoteService.append(
            user, new_number,
            f"Request created with {len(case.items)} item(s) from draft {request_number}",
            RequestStatus.PENDING
        )
        logger.info(f"Draft {request_number} sent as request #{new_number} by {user.email}")
        return new_number

    @staticmethod
    @transaction.atomic
    def resubmit(user, dto: ResubmitDTO) -> MaterialRequest:
        """Owner resubmits a rejected item, optionally corrected; it becomes pending again."""
        ensure_role(user, Role.SITE_ENGINEER, action='resubmit requests')
        case = ProcurementCase.for_request(dto.request_id)
        item = case.item(dto.request_id)
        if item.created_by_id != user.pk:
            raise Unauthorized("Only the engineer who raised the request may resubmit it")

        changes = {
            field: getattr(dto, field)
            for field in ('item_name', 'description', 'quantity', 'unit', 'required_by')
            if getattr(dto, field) is not None
        }
        if 'required_by' in changes:
            for sibling in case.items:
                if sibling.pk != item.pk:
                    case.update_item(sibling, required_by=changes['required_by'])
        case.transition(
            item, RequestStatus.PENDING, {RequestStatus.REJECTED}, 'resubmit',
            rejection_reason='', approved_by=None, approved_at=None, direct_action='', **changes
        )
        NoteService.append(user, case.request_number, f"Item {item.item_order} resubmitted", RequestStatus.PENDING)
        logger.info(f"Request #{case.request_number} item {item.item_order} resubmitted by {user.email}")
        return item

    # ==================== STATUS TRANSITIONS ====================

    @staticmethod
    def _apply_manager_decision(user, case, item, new_status, reason):
        if new_status not in workflow.MANAGER_DECISIONS:
            raise ValidationError({'new_status': f"'{new_status}' is not a manager decision"})
        _require_reason(new_status, reason)
        stored_status, direct_action = workflow.MANAGER_DECISIONS[new_status]

        changes = {'direct_action': direct_action}
        if stored_status == RequestStatus.REJECTED:
            changes['rejection_reason'] = reason.strip()
        else:
            changes['approved_by'] = user
            changes['approved_at'] = timezone.now()
        return case.transition(item, stored_status, workflow.MANAGER_DECISION_FROM, f"mark as {new_status}", **changes)

    @staticmethod
    def _apply_purchase_officer_transition(user, case, item, new_status, reason):
        if new_status not in RequestStatus.values:
            raise ValidationError({'new_status': f"Unknown status '{new_status}'"})
        if new_status not in workflow.purchase_officer_targets(item.status):
            raise InvalidState(
                f"Cannot move item {item.item_order} of request #{case.request_number} "
                f"from '{item.status}' to '{new_status}'",
                current_status=item.status
            )
        _require_reason(new_status, reason)

        comparison = case.cost_comparison(item.pk)
        if (
            new_status == RequestStatus.CC_APPROVED and
            comparison is not None and
            comparison.selected_vendor_id is None
        ):
            raise ValidationError({
                'new_status': f"Cost comparison of item {item.item_order} has no selected vendor"
            })

        changes = {}
        if new_status in workflow.REJECTION_STATUSES:
            changes['rejection_reason'] = reason.strip()
        if new_status == RequestStatus.DELIVERED:
            changes['delivery_marked_at'] = item.delivery_marked_at or timezone.now()
        case.transition(item, new_status, {item.status}, f"mark as {new_status}", **changes)

        # Keep the linked cost comparison and purchase orders in step
        if comparison is not None and new_status in ('cc_pending', 'cc_approved', 'cc_rejected'):
            case.save_cost_comparison(item, status=new_status)
        if new_status == RequestStatus.REJECTED_PO:
            for po in case.purchase_orders(item.pk):
                if po.status in (POStatus.ORDERED, POStatus.APPROVED, POStatus.PENDING_APPROVAL):
                    case.update_purchase_order(po, status=POStatus.REJECTED, rejection_reason=reason.strip())
        if new_status == RequestStatus.DELIVERED:
            case.settle_line(item)
        return item

    @staticmethod
    @transaction.atomic
    def update_status(user, dto: StatusUpdateDTO) -> MaterialRequest:
        """
        Apply a status change requested by a manager or purchase officer.

        Managers decide on pending items (approve, reject, recheck, route to
        direct PO or direct delivery). Purchase officers move items along
        the procurement transitions in ``workflow.PURCHASE_OFFICER_TRANSITIONS``.
        """
        ensure_role(user, Role.MANAGER, Role.PURCHASE_OFFICER, action='change request status')
        case = ProcurementCase.for_request(dto.request_id)
        item = case.item(dto.request_id)

        if user.role == Role.MANAGER:
            RequestService._apply_manager_decision(user, case, item, dto.new_status, dto.reason)
            if item.status == RequestStatus.REJECTED:
                content = f"Rejected: {item.rejection_reason}"
            else:
                content = f"Item {item.item_order}: {MANAGER_NOTES[dto.new_status]}"
        else:
            RequestService._apply_purchase_officer_transition(user, case, item, dto.new_status, dto.reason)
            content = f"Item {item.item_order} moved to {item.get_status_display()}"
            if dto.reason:
                content = f"{content}: {dto.reason.strip()}"

        NoteService.append(user, case.request_number, content, item.status)
        logger.info(
            f"Request #{case.request_number} item {item.item_order} -> {item.status} by {user.email}"
        )
        return item

    @staticmethod
    @transaction.atomic
    def bulk_update_status(user, dto: BulkStatusUpdateDTO):
        """
        Manager decision over several items at once. Items that are no
        longer pending are skipped; each affected request gets one note.
        """
        ensure_role(user, Role.MANAGER, action='approve or reject requests')
        if not dto.request_ids:
            raise ValidationError({'request_ids': 'Select at least one item'})
        _require_reason(dto.new_status, dto.reason)

        cases = {}
        updated = []
        for request_id in dto.request_ids:
            number = MaterialRequest.objects.filter(pk=request_id).values_list('request_number', flat=True).first()
            if number is None:
                raise NotFound(f"Request item {request_id} not found")
            if number not in cases:
                cases[number] = ProcurementCase.load(number)
            case = cases[number]
            item = case.item(request_id)
            if item.status != RequestStatus.PENDING:
                continue
            RequestService._apply_manager_decision(user, case, item, dto.new_status, dto.reason)
            updated.append(item)

        for number in {item.request_number for item in updated}:
            count = sum(1 for item in updated if item.request_number == number)
            if dto.new_status == RequestStatus.REJECTED:
                content = f"Rejected (Bulk): {dto.reason.strip()}"
            else:
                content = f"{MANAGER_NOTES[dto.new_status]} (Bulk): {count} item(s)"
            NoteService.append(user, number, content, workflow.MANAGER_DECISIONS[dto.new_status][0])
        logger.info(f"Bulk {dto.new_status} by {user.email}: {len(updated)} of {len(dto.request_ids)} item(s)")
        return updated

    # ==================== PURCHASE OFFICER ACTIONS ====================

    @staticmethod
    @transaction.atomic
    def update_details(user, dto: RequestDetailUpdateDTO) -> MaterialRequest:
        """Correct item name, description, quantity or unit before pricing."""
        ensure_role(user, Role.PURCHASE_OFFICER, action='edit request details')
        case = ProcurementCase.for_request(dto.request_id)
        item = case.item(dto.request_id)
        item.ensure_status(workflow.DETAIL_EDITABLE, 'edit details of')

        changes = {}
        for field in ('item_name', 'description', 'quantity', 'unit'):
            value = getattr(dto, field)
            if value is not None and value != getattr(item, field):
                changes[field] = value
        if not changes:
            return item
        if 'quantity' in changes and changes['quantity'] <= 0:
            raise ValidationError({'quantity': 'Quantity must be greater than zero'})

        summary = ", ".join(f"{field} {getattr(item, field)} -> {value}" for field, value in changes.items())
        case.update_item(item, **changes)
        NoteService.append(user, case.request_number, f"Item {item.item_order} details updated: {summary}", item.status)
        logger.info(f"Request #{case.request_number} item {item.item_order} details updated by {user.email}")
        return item

    @staticmethod
    @transaction.atomic
    def fulfil_from_stock(user, dto: StockFulfilmentDTO) -> MaterialRequest:
        """
        Serve ``dto.quantity`` of an item from central stock.

        The served part moves to ``delivery_stage`` as a direct delivery;
        when it is less than the item quantity it is split off and the rest
        stays where it was.
        """
        ensure_role(user, Role.PURCHASE_OFFICER, action='fulfil requests from stock')
        case = ProcurementCase.for_request(dto.request_id)
        item = case.item(dto.request_id)
        item.ensure_status(workflow.STOCK_FULFILLABLE, 'fulfil from stock')
        if dto.quantity is None or dto.quantity <= 0:
            raise ValidationError({'quantity': 'Quantity must be greater than zero'})
        if dto.quantity > item.quantity:
            raise ValidationError({'quantity': f"Cannot serve more than the requested {item.quantity} {item.unit}"})

        stock = InventoryItem.lookup(item.item_name)
        if stock is None:
            raise NotFound(f"No central stock for '{item.item_name}'")
        stock = InventoryItem.objects.select_for_update().get(pk=stock.pk)
        stock.take(dto.quantity)

        if dto.quantity < item.quantity:
            served = case.split(
                item, dto.quantity,
                status=RequestStatus.DELIVERY_STAGE,
                direct_action=DirectAction.DELIVERY,
            )
        else:
            served = case.update_item(item, status=RequestStatus.DELIVERY_STAGE, direct_action=DirectAction.DELIVERY)

        NoteService.append(
            user, case.request_number,
            f"Item {item.item_order}: {dto.quantity} {item.unit} served from central stock",
            RequestStatus.DELIVERY_STAGE
        )
        logger.info(f"Request #{case.request_number} item {item.item_order}: {dto.quantity} from stock by {user.email}")
        return served
