import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from core.user_accounts.models import Role
from procurement.catalog.models import Vendor
from procurement.exceptions import NotFound
from procurement.notes.services import NoteService
from procurement.permissions import ensure_role
from procurement.po.amounts import calculate_amount
from procurement.PR.case import ProcurementCase
from procurement.PR.models import RequestStatus
from procurement.PR import workflow
from procurement.cost_comparison.dtos import (
    CostComparisonUpsertDTO,
    CostComparisonResubmitDTO,
    CostComparisonReviewDTO,
)
from procurement.cost_comparison.models import CostComparison, CCStatus

logger = logging.getLogger(__name__)


def _build_quotes(request_item, quotes):
    """
    Validate vendor quotes and price them for the item's quantity.

    Returns the list stored in ``CostComparison.quotes``.
    """
    seen = set()
    built = []
    for position, quote in enumerate(quotes, start=1):
        if quote.vendor_id in seen:
            raise ValidationError({'quotes': f"Quote {position}: vendor {quote.vendor_id} is quoted twice"})
        seen.add(quote.vendor_id)
        if not Vendor.objects.active().filter(pk=quote.vendor_id).exists():
            raise NotFound(f"Active vendor {quote.vendor_id} not found")

        amount = calculate_amount(
            request_item.quantity,
            quote.unit_price,
            quote.per_unit_basis,
            quote.discount_percent,
            quote.gst_percent,
        )
        built.append({
            'vendor_id': quote.vendor_id,
            'unit_price': str(quote.unit_price),
            'amount': str(amount.total_amount),
            'discount_percent': str(quote.discount_percent),
            'gst_percent': str(quote.gst_percent),
            'per_unit_basis': str(quote.per_unit_basis),
        })
    return built


def _check_selected(selected_vendor_id, quotes):
    if selected_vendor_id is None:
        return
    if not any(int(quote['vendor_id']) == int(selected_vendor_id) for quote in quotes):
        raise ValidationError({'selected_vendor_id': 'Selected vendor must be one of the quoted vendors'})


def _load(comparison_id):
    """Locked case and comparison for a comparison id."""
    request_id = CostComparison.objects.filter(pk=comparison_id).values_list('request_id', flat=True).first()
    if request_id is None:
        raise NotFound(f"Cost comparison {comparison_id} not found")
    case = ProcurementCase.for_request(request_id)
    return case, case.item(request_id), case.cost_comparison(request_id)


class CostComparisonService:
    """
    Vendor quote comparison for one request item.

    draft --submit--> cc_pending --approve--> cc_approved
                                 --reject---> cc_rejected --resubmit--> cc_pending
    The request item mirrors every step.
    """

    @staticmethod
    @transaction.atomic
    def upsert(user, dto: CostComparisonUpsertDTO) -> CostComparison:
        """Create or edit the draft comparison of a request item."""
        ensure_role(user, Role.PURCHASE_OFFICER, action='prepare cost comparisons')
        case = ProcurementCase.for_request(dto.request_id)
        item = case.item(dto.request_id)
        item.ensure_status(workflow.COST_COMPARISON_OPEN, 'open a cost comparison for')

        comparison = case.cost_comparison(item.pk)
        if comparison is not None:
            comparison.ensure_status({CCStatus.DRAFT}, 'edit')

        quotes = _build_quotes(item, dto.quotes)
        _check_selected(dto.selected_vendor_id, quotes)
        comparison = case.save_cost_comparison(
            item,
            quotes=quotes,
            selected_vendor_id=dto.selected_vendor_id,
            status=CCStatus.DRAFT,
            created_by=comparison.created_by if comparison else user,
        )
        if item.status in (RequestStatus.APPROVED, RequestStatus.RECHECK, RequestStatus.CC_REJECTED):
            case.transition(item, RequestStatus.READY_FOR_CC, workflow.COST_COMPARISON_OPEN, 'open a cost comparison for')

        NoteService.append(
            user, case.request_number,
            f"Item {item.item_order}: cost comparison saved with {len(quotes)} quote(s)",
            item.status
        )
        logger.info(f"Cost comparison #{comparison.pk} saved for request #{case.request_number} by {user.email}")
        return comparison

    @staticmethod
    @transaction.atomic
    def submit(user, comparison_id) -> CostComparison:
        """Send a draft comparison to the manager."""
        ensure_role(user, Role.PURCHASE_OFFICER, action='submit cost comparisons')
        case, item, comparison = _load(comparison_id)
        comparison.ensure_status({CCStatus.DRAFT}, 'submit')
        if not comparison.quotes:
            raise ValidationError({'quotes': 'At least one vendor quote is required'})

        case.transition(
            item, RequestStatus.CC_PENDING,
            {RequestStatus.READY_FOR_CC, RequestStatus.CC_PENDING}, 'submit a cost comparison for'
        )
        comparison = case.save_cost_comparison(item, status=CCStatus.CC_PENDING)
        NoteService.append(user, case.request_number, f"Item {item.item_order}: cost comparison submitted", item.status)
        logger.info(f"Cost comparison #{comparison.pk} submitted by {user.email}")
        return comparison

    @staticmethod
    @transaction.atomic
    def approve(user, dto: CostComparisonReviewDTO) -> CostComparison:
        """Manager picks the winning vendor."""
        ensure_role(user, Role.MANAGER, action='approve cost comparisons')
        case, item, comparison = _load(dto.comparison_id)
        comparison.ensure_status({CCStatus.CC_PENDING}, 'approve')

        selected_vendor_id = dto.selected_vendor_id or comparison.selected_vendor_id
        if selected_vendor_id is None:
            raise ValidationError({'selected_vendor_id': 'Select the vendor to approve'})
        _check_selected(selected_vendor_id, comparison.quotes)

        case.transition(item, RequestStatus.CC_APPROVED, {RequestStatus.CC_PENDING}, 'approve a cost comparison for')
        comparison = case.save_cost_comparison(
            item,
            status=CCStatus.CC_APPROVED,
            selected_vendor_id=selected_vendor_id,
            manager_notes=dto.notes or '',
            reviewed_by=user,
            reviewed_at=timezone.now(),
        )
        vendor = Vendor.objects.get(pk=selected_vendor_id)
        NoteService.append(
            user, case.request_number,
            f"Item {item.item_order}: cost comparison approved, vendor {vendor.name}",
            item.status
        )
        logger.info(f"Cost comparison #{comparison.pk} approved by {user.email}")
        return comparison

    @staticmethod
    @transaction.atomic
    def reject(user, dto: CostComparisonReviewDTO) -> CostComparison:
        ensure_role(user, Role.MANAGER, action='reject cost comparisons')
        if not (dto.notes or '').strip():
            raise ValidationError({'notes': 'A reason is required to reject'})
        case, item, comparison = _load(dto.comparison_id)
        comparison.ensure_status({CCStatus.CC_PENDING}, 'reject')

        reason = dto.notes.strip()
        case.transition(
            item, RequestStatus.CC_REJECTED, {RequestStatus.CC_PENDING}, 'reject a cost comparison for',
            rejection_reason=reason
        )
        comparison = case.save_cost_comparison(
            item,
            status=CCStatus.CC_REJECTED,
            manager_notes=reason,
            reviewed_by=user,
            reviewed_at=timezone.now(),
        )
        NoteService.append(user, case.request_number, f"Cost comparison rejected: {reason}", RequestStatus.CC_REJECTED)
        logger.info(f"Cost comparison #{comparison.pk} rejected by {user.email}")
        return comparison

    @staticmethod
    @transaction.atomic
    def resubmit(user, dto: CostComparisonResubmitDTO) -> CostComparison:
        """Replace the quotes of a rejected comparison and send it back for review."""
        ensure_role(user, Role.PURCHASE_OFFICER, action='resubmit cost comparisons')
        case, item, comparison = _load(dto.comparison_id)
        comparison.ensure_status({CCStatus.CC_REJECTED}, 'resubmit')

        quotes = _build_quotes(item, dto.quotes)
        if not quotes:
            raise ValidationError({'quotes': 'At least one vendor quote is required'})
        _check_selected(dto.selected_vendor_id, quotes)

        case.transition(
            item, RequestStatus.CC_PENDING, {RequestStatus.CC_REJECTED}, 'resubmit a cost comparison for',
            rejection_reason=''
        )
        comparison = case.save_cost_comparison(
            item,
            quotes=quotes,
            selected_vendor_id=dto.selected_vendor_id,
            status=CCStatus.CC_PENDING,
            reviewed_by=None,
            reviewed_at=None,
        )
        NoteService.append(user, case.request_number, f"Item {item.item_order}: cost comparison resubmitted", item.status)
        logger.info(f"Cost comparison #{comparison.pk} resubmitted by {user.email}")
        return comparison
