"""
Purchase order workflow.

Two ways to a purchase order:

- Standard: a request item with an approved cost comparison (or routed
  straight to ``ready_for_po``) is ordered from a vendor. PO ``ordered``,
  request ``pending_po``.
- Direct PO: the purchase officer orders immediately, creating request items
  as needed. PO and request wait in ``sign_pending`` for manager sign-off,
  which moves both to ``ordered`` or ``sign_rejected``. A rejected Direct PO
  is corrected by issuing it again; the rejected row is patched, not copied.
"""
import logging
from datetime import datetime, time

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from core.user_accounts.models import Role
from procurement.catalog.models import Site, Vendor
from procurement.cost_comparison.models import CCStatus
from procurement.exceptions import NotFound, InvalidState
from procurement.notes.services import NoteService
from procurement.permissions import ensure_role
from procurement.po.amounts import validate_pricing
from procurement.po.dtos import DirectPOCreateDTO, POIssueDTO, SignOffDTO, POStatusUpdateDTO
from procurement.po.models import PurchaseOrder, POStatus
from procurement.PR.case import ProcurementCase
from procurement.PR.models import RequestStatus, DirectAction
from procurement.PR import workflow
from procurement.sequencing.services import SequenceService

logger = logging.getLogger(__name__)

AWAITING_SIGN_OFF = frozenset({POStatus.SIGN_PENDING, POStatus.PENDING_APPROVAL})

# Request statuses a signed-off Direct PO may be mirrored from.
SIGN_OFF_REQUEST_FROM = frozenset({
    RequestStatus.SIGN_PENDING, RequestStatus.READY_FOR_PO, RequestStatus.DIRECT_PO, RequestStatus.PENDING_PO,
})

# PO status -> request status mirrored by update_status.
STATUS_PROPAGATION = {
    POStatus.ORDERED: RequestStatus.PENDING_PO,
    POStatus.DELIVERED: RequestStatus.DELIVERED,
    POStatus.CANCELLED: RequestStatus.REJECTED,
}

PO_STATUS_FROM = {
    POStatus.ORDERED: frozenset({POStatus.APPROVED, POStatus.PENDING_APPROVAL}),
    POStatus.DELIVERED: frozenset({POStatus.ORDERED, POStatus.APPROVED}),
    POStatus.CANCELLED: frozenset({
        POStatus.PENDING_APPROVAL, POStatus.SIGN_PENDING, POStatus.APPROVED,
        POStatus.REJECTED, POStatus.SIGN_REJECTED, POStatus.ORDERED,
    }),
}

# Request rows already on their way to site are not pulled back by a PO status change.
IN_DELIVERY = frozenset({
    RequestStatus.OUT_FOR_DELIVERY, RequestStatus.DELIVERY_PROCESSING, RequestStatus.DELIVERED,
})


def _active_vendor(vendor_id):
    try:
        return Vendor.objects.active().get(pk=vendor_id)
    except Vendor.DoesNotExist:
        raise NotFound(f"Active vendor {vendor_id} not found")


def _active_site(site_id):
    try:
        return Site.objects.active().get(pk=site_id)
    except Site.DoesNotExist:
        raise NotFound(f"Active site {site_id} not found")


def _valid_till(value):
    today = timezone.localdate()
    if value is None:
        months = getattr(settings, 'PROCUREMENT', {}).get('DEFAULT_PO_VALIDITY_MONTHS', 1)
        return today + relativedelta(months=months)
    if value < today:
        raise ValidationError({'valid_till': 'Validity date cannot be in the past'})
    return value


def _quote_from(vendor, item_dto):
    return {
        'vendor_id': vendor.pk,
        'unit_price': str(item_dto.unit_rate),
        'discount_percent': str(item_dto.discount_percent),
        'gst_percent': str(item_dto.gst_tax_rate),
        'per_unit_basis': str(item_dto.per_unit_basis),
    }


class PurchaseOrderService:
    """Service for purchase order business logic"""

    # ==================== DIRECT PO ====================

    @staticmethod
    def _validate_direct_items(items):
        if not items:
            raise ValidationError({'items': 'At least one item is required'})
        for position, item in enumerate(items, start=1):
            try:
                validate_pricing(
                    item.quantity, item.unit_rate, item.per_unit_basis,
                    item.discount_percent, item.gst_tax_rate
                )
            except ValidationError as e:
                raise ValidationError({f"items[{position}]": e.messages})
            if item.request_id is None and not ((item.item_name or '').strip() and (item.unit or '').strip()):
                raise ValidationError({f"items[{position}]": 'Item name and unit are required for new items'})

    @staticmethod
    @transaction.atomic
    def create_direct_po(user, dto: DirectPOCreateDTO) -> PurchaseOrder:
        """
        Issue a Direct PO for one or more items; returns the first PO.

        Validates:
        - Actor is a purchase officer
        - Vendor and delivery site are active
        - Every item has quantity > 0, unit rate > 0, GST and discount within 0-100
        - Existing request items are still editable (not yet signed or ordered)

        Any failure rolls back every item of the call.
        """
        ensure_role(user, Role.PURCHASE_OFFICER, action='create a direct PO')
        vendor = _active_vendor(dto.vendor_id)
        site = _active_site(dto.delivery_site_id)
        PurchaseOrderService._validate_direct_items(dto.items)
        valid_till = _valid_till(dto.valid_till)
        required_by = timezone.make_aware(datetime.combine(valid_till, time.min))

        new_case = None
        orders = []
        for item_dto in dto.items:
            if item_dto.request_id is not None:
                case = ProcurementCase.for_request(item_dto.request_id)
                row = case.item(item_dto.request_id)
                row.ensure_status(workflow.DIRECT_PO_EDITABLE, 'issue a direct PO for')
                case.update_item(
                    row,
                    status=RequestStatus.SIGN_PENDING,
                    direct_action=DirectAction.PO,
                    rejection_reason='',
                    quantity=item_dto.quantity,
                    item_name=(item_dto.item_name or row.item_name).strip(),
                    unit=(item_dto.unit or row.unit).strip(),
                    description=item_dto.description or row.description,
                )
            else:
                if new_case is None:
                    new_case = ProcurementCase(SequenceService.next_request_number(), [], [], [])
                case = new_case
                row = case.add_item(
                    item_order=len(case.items) + 1,
                    item_name=item_dto.item_name.strip(),
                    description=item_dto.description or '',
                    quantity=item_dto.quantity,
                    unit=item_dto.unit.strip(),
                    required_by=required_by,
                    is_urgent=item_dto.is_urgent,
                    status=RequestStatus.SIGN_PENDING,
                    direct_action=DirectAction.PO,
                    site=site,
                    created_by=user,
                )

            po = PurchaseOrderService._upsert_direct_line(user, case, row, vendor, site, valid_till, item_dto, dto.notes)
            case.save_cost_comparison(
                row,
                quotes=[dict(_quote_from(vendor, item_dto), amount=str(po.total_amount))],
                selected_vendor_id=vendor.pk,
                status=CCStatus.CC_APPROVED,
                is_direct_po=True,
                created_by=user,
            )
            orders.append(po)

        logger.info(
            f"Direct PO #{orders[0].po_number} ({len(orders)} line(s)) created by {user.email} for vendor {vendor.code}"
        )
        return orders[0]

    @staticmethod
    def _upsert_direct_line(user, case, row, vendor, site, valid_till, item_dto, notes):
        """Patch the item's unsigned Direct PO if there is one, otherwise insert it."""
        existing = case.latest_purchase_order(row.pk, {POStatus.SIGN_REJECTED, POStatus.SIGN_PENDING})
        if existing is not None:
            previous = f"vendor {existing.vendor.name}, total {existing.total_amount}"
            po = existing
        else:
            po = PurchaseOrder(
                po_number=row.request_number,
                request=row,
                created_by=user,
                is_direct=True,
            )

        po.vendor = vendor
        po.delivery_site = site
        po.item_name = row.item_name
        po.description = row.description
        po.quantity = row.quantity
        po.unit = row.unit
        po.valid_till = valid_till
        po.notes = notes or po.notes
        po.status = POStatus.SIGN_PENDING
        po.rejection_reason = ''
        po.approved_by = None
        po.approved_at = None
        po.apply_pricing(
            item_dto.unit_rate, item_dto.per_unit_basis, item_dto.discount_percent, item_dto.gst_tax_rate
        )

        if existing is not None:
            case.update_purchase_order(po)
            content = (
                f"Direct PO #{po.po_number} item {row.item_order} resubmitted for sign-off: "
                f"vendor {vendor.name}, total {po.total_amount} (was {previous})"
            )
        else:
            case.add_purchase_order(po)
            content = (
                f"Direct PO #{po.po_number} item {row.item_order} raised for sign-off: "
                f"vendor {vendor.name}, total {po.total_amount}"
            )
        NoteService.append(user, case.request_number, content, RequestStatus.SIGN_PENDING)
        return po

    @staticmethod
    def _resolve_sign_off(dto: SignOffDTO):
        """Locked case and PO for a sign-off by PO id or by request item id."""
        if dto.po_id is not None:
            return ProcurementCase.for_purchase_order(dto.po_id)
        if dto.request_id is None:
            raise ValidationError('Provide po_id or request_id')

        case = ProcurementCase.for_request(dto.request_id)
        po = case.latest_purchase_order(dto.request_id, AWAITING_SIGN_OFF)
        if po is None:
            if case.purchase_orders(dto.request_id):
                raise InvalidState(f"Request item {dto.request_id} has no PO awaiting sign-off")
            raise NotFound(f"No purchase order found for request item {dto.request_id}")
        return case, po

    @staticmethod
    @transaction.atomic
    def approve_direct_po(user, dto: SignOffDTO) -> PurchaseOrder:
        """Manager sign-off: PO and request item become ``ordered``."""
        ensure_role(user, Role.MANAGER, action='sign off direct POs')
        case, po = PurchaseOrderService._resolve_sign_off(dto)
        po.ensure_status(AWAITING_SIGN_OFF, 'approve')
        row = case.item(po.request_id)

        signed_at = timezone.now()
        case.transition(
            row, RequestStatus.ORDERED, SIGN_OFF_REQUEST_FROM, 'sign off',
            approved_by=user, approved_at=signed_at
        )
        case.update_purchase_order(po, status=POStatus.ORDERED, approved_by=user, approved_at=signed_at)
        NoteService.append(user, case.request_number, f"Direct PO #{po.po_number} item {row.item_order} approved", RequestStatus.ORDERED)
        logger.info(f"Direct PO #{po.po_number} (id {po.pk}) approved by {user.email}")
        return po

    @staticmethod
    @transaction.atomic
    def reject_direct_po(user, dto: SignOffDTO) -> PurchaseOrder:
        """Manager refuses sign-off: PO and request item become ``sign_rejected``."""
        ensure_role(user, Role.MANAGER, action='sign off direct POs')
        reason = (dto.reason or '').strip()
        if not reason:
            raise ValidationError({'reason': 'A reason is required to reject'})
        case, po = PurchaseOrderService._resolve_sign_off(dto)
        po.ensure_status(AWAITING_SIGN_OFF, 'reject')
        row = case.item(po.request_id)

        signed_at = timezone.now()
        case.transition(
            row, RequestStatus.SIGN_REJECTED, SIGN_OFF_REQUEST_FROM, 'reject sign-off of',
            rejection_reason=reason, approved_by=user, approved_at=signed_at
        )
        case.update_purchase_order(
            po, status=POStatus.SIGN_REJECTED, rejection_reason=reason, approved_by=user, approved_at=signed_at
        )
        NoteService.append(user, case.request_number, f"Direct PO rejected: {reason}", RequestStatus.SIGN_REJECTED)
        logger.info(f"Direct PO #{po.po_number} (id {po.pk}) rejected by {user.email}")
        return po

    # ==================== STANDARD PO ====================

    @staticmethod
    @transaction.atomic
    def issue(user, dto: POIssueDTO):
        """
        Order request items that are ready for a PO. Lines issued together
        share one PO number. Returns the created POs.
        """
        ensure_role(user, Role.PURCHASE_OFFICER, action='issue purchase orders')
        if not dto.items:
            raise ValidationError({'items': 'At least one item is required'})
        valid_till = _valid_till(dto.valid_till)
        override_site = _active_site(dto.delivery_site_id) if dto.delivery_site_id else None

        po_number = SequenceService.next_request_number()
        orders = []
        for position, item_dto in enumerate(dto.items, start=1):
            case = ProcurementCase.for_request(item_dto.request_id)
            row = case.item(item_dto.request_id)
            row.ensure_status(workflow.PO_ISSUABLE, 'issue a PO for')

            comparison = case.cost_comparison(row.pk)
            quote = {}
            vendor_id = item_dto.vendor_id
            if comparison is not None and comparison.status == CCStatus.CC_APPROVED:
                if vendor_id is None:
                    vendor_id = comparison.selected_vendor_id
                    quote = comparison.selected_quote() or {}
                else:
                    quote = comparison.quote_for(vendor_id) or {}
            if vendor_id is None:
                raise ValidationError({f"items[{position}]": 'vendor_id is required without an approved cost comparison'})
            vendor = _active_vendor(vendor_id)

            def pick(override, key, default=None):
                if override is not None:
                    return override
                if quote.get(key) not in (None, ''):
                    return quote[key]
                return default

            unit_rate = pick(item_dto.unit_rate, 'unit_price')
            if unit_rate is None:
                raise ValidationError({f"items[{position}]": 'unit_rate is required without a vendor quote'})

            po = PurchaseOrder(
                po_number=po_number,
                request=row,
                vendor=vendor,
                delivery_site=override_site or row.site,
                item_name=row.item_name,
                description=row.description,
                quantity=row.quantity,
                unit=row.unit,
                status=POStatus.ORDERED,
                is_direct=False,
                valid_till=valid_till,
                notes=dto.notes or '',
                created_by=user,
            )
            try:
                po.apply_pricing(
                    unit_rate,
                    pick(item_dto.per_unit_basis, 'per_unit_basis', '1'),
                    pick(item_dto.discount_percent, 'discount_percent', '0'),
                    pick(item_dto.gst_tax_rate, 'gst_percent', '0'),
                )
            except ValidationError as e:
                raise ValidationError({f"items[{position}]": e.messages})
            case.add_purchase_order(po)
            case.transition(row, RequestStatus.PENDING_PO, workflow.PO_ISSUABLE, 'issue a PO for')
            NoteService.append(
                user, case.request_number,
                f"PO #{po_number} issued to {vendor.name} for item {row.item_order}: total {po.total_amount}",
                RequestStatus.PENDING_PO
            )
            orders.append(po)

        logger.info(f"PO #{po_number} issued by {user.email} with {len(orders)} line(s)")
        return orders

    # ==================== STATUS UPDATES ====================

    @staticmethod
    @transaction.atomic
    def update_status(user, dto: POStatusUpdateDTO) -> PurchaseOrder:
        """
        Move a PO to ordered, delivered or cancelled and mirror the change
        onto its request rows (ordered -> pending_po, delivered -> delivered,
        cancelled -> rejected).
        """
        ensure_role(user, Role.PURCHASE_OFFICER, action='update purchase orders')
        if dto.status not in STATUS_PROPAGATION:
            raise ValidationError({'status': f"PO status can only be set to {', '.join(STATUS_PROPAGATION)}"})
        case, po = ProcurementCase.for_purchase_order(dto.po_id)
        if dto.status == POStatus.CANCELLED and po.status == POStatus.DELIVERED:
            raise InvalidState(f"PO #{po.po_number} is delivered and cannot be cancelled", current_status=po.status)
        po.ensure_status(PO_STATUS_FROM[dto.status], f"mark as {dto.status}")

        reason = (dto.reason or '').strip()
        case.update_purchase_order(
            po, status=dto.status,
            rejection_reason=reason if dto.status == POStatus.CANCELLED else po.rejection_reason
        )

        request_status = STATUS_PROPAGATION[dto.status]
        row = case.item(po.request_id)
        for line_row in case.line_rows(row.line_item_key):
            if line_row.status in IN_DELIVERY and request_status != RequestStatus.DELIVERED:
                continue
            if line_row.status == RequestStatus.DELIVERED:
                continue
            changes = {'status': request_status}
            if request_status == RequestStatus.REJECTED:
                changes['rejection_reason'] = reason or f"PO #{po.po_number} cancelled"
            if request_status == RequestStatus.DELIVERED:
                changes['delivery_marked_at'] = line_row.delivery_marked_at or timezone.now()
            case.update_item(line_row, **changes)

        content = f"PO #{po.po_number} item {row.item_order} marked {po.get_status_display()}"
        if reason:
            content = f"{content}: {reason}"
        NoteService.append(user, case.request_number, content, request_status)
        logger.info(f"PO #{po.po_number} (id {po.pk}) -> {dto.status} by {user.email}")
        return po

    @staticmethod
    def cancel(user, po_id, reason=''):
        """Cancel a PO; a delivered PO cannot be cancelled."""
        return PurchaseOrderService.update_status(
            user, POStatusUpdateDTO(po_id=po_id, status=POStatus.CANCELLED, reason=reason)
        )
