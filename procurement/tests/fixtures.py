"""
Test fixtures and helper functions for procurement tests.

Builds users of each role, reference data, and requests at the common
points of the workflow so individual tests only set up what they check.
"""
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from core.user_accounts.models import Role
from procurement.catalog.models import Site, Vendor, InventoryItem
from procurement.cost_comparison.dtos import VendorQuoteDTO, CostComparisonUpsertDTO, CostComparisonReviewDTO
from procurement.cost_comparison.services import CostComparisonService
from procurement.po.dtos import POIssueDTO, POIssueItemDTO
from procurement.po.services import PurchaseOrderService
from procurement.PR.dtos import RequestCreateDTO, RequestItemDTO, StatusUpdateDTO
from procurement.PR.models import MaterialRequest
from procurement.PR.services import RequestService

User = get_user_model()


def create_user(role=Role.SITE_ENGINEER, email=None, name=None, sites=()):
    """Create a user with ``role``; site engineers are assigned to ``sites``."""
    email = email or f"{role}.{User.objects.count() + 1}@example.com"
    user = User.objects.create_user(
        email=email,
        name=name or role.replace('_', ' ').title(),
        phone_number='9800000000',
        password='testpass123',
        role=role,
    )
    if sites:
        user.assigned_sites.set(sites)
    return user


def create_site(code='SITE-A', name='Tower A'):
    site, _ = Site.objects.get_or_create(code=code, defaults={'name': name})
    return site


def create_vendor(code='VEN-1', name='Shree Cement Traders'):
    vendor, _ = Vendor.objects.get_or_create(code=code, defaults={'name': name})
    return vendor


def create_stock(name='Cement', quantity='100', unit='bags', code=None):
    return InventoryItem.objects.create(
        code=code or f"INV-{name.upper().replace(' ', '-')}",
        name=name,
        unit=unit,
        central_stock=Decimal(quantity),
    )


def required_by(days=7):
    return timezone.now() + timedelta(days=days)


def create_valid_request_data(site, items=None):
    """JSON body for POST /procurement/requests/"""
    return {
        'site_id': site.id,
        'required_by': required_by().isoformat(),
        'notes': '',
        'items': items or [
            {'item_name': 'Cement', 'quantity': '50', 'unit': 'bags'},
        ],
    }


def create_request(engineer, site, items=(('Cement', '50', 'bags'),), notes=''):
    """Create a pending request through the service; returns its rows."""
    dto = RequestCreateDTO(
        site_id=site.id,
        required_by=required_by(),
        notes=notes,
        items=[RequestItemDTO(item_name=name, quantity=Decimal(qty), unit=unit) for name, qty, unit in items],
    )
    number = RequestService.create_request(engineer, dto)
    return list(MaterialRequest.objects.group(number))


def approve(manager, row, new_status='approved', reason=''):
    return RequestService.update_status(manager, StatusUpdateDTO(request_id=row.pk, new_status=new_status, reason=reason))


def approved_comparison(officer, manager, row, vendor, unit_price='100', gst='18', discount='0'):
    """Take an approved row through an approved cost comparison."""
    comparison = CostComparisonService.upsert(officer, CostComparisonUpsertDTO(
        request_id=row.pk,
        quotes=[VendorQuoteDTO(
            vendor_id=vendor.id,
            unit_price=Decimal(unit_price),
            gst_percent=Decimal(gst),
            discount_percent=Decimal(discount),
        )],
        selected_vendor_id=vendor.id,
    ))
    CostComparisonService.submit(officer, comparison.pk)
    return CostComparisonService.approve(manager, CostComparisonReviewDTO(comparison_id=comparison.pk))


def ordered_request(engineer, manager, officer, site, vendor, items=(('Cement', '50', 'bags'),)):
    """
    Request ordered through the standard path (approve, cost comparison,
    PO). Returns ``(rows, purchase_orders)``; rows end in ``pending_po``.
    """
    rows = create_request(engineer, site, items)
    for row in rows:
        approve(manager, row)
        approved_comparison(officer, manager, row, vendor)
    orders = PurchaseOrderService.issue(officer, POIssueDTO(items=[POIssueItemDTO(request_id=row.pk) for row in rows]))
    return [MaterialRequest.objects.get(pk=row.pk) for row in rows], orders


class WorkflowUsersMixin:
    """setUp helper creating one user per role on one site."""

    def create_workflow_users(self):
        self.site = create_site()
        self.vendor = create_vendor()
        self.engineer = create_user(Role.SITE_ENGINEER, email='engineer@example.com', sites=[self.site])
        self.manager = create_user(Role.MANAGER, email='manager@example.com')
        self.officer = create_user(Role.PURCHASE_OFFICER, email='officer@example.com')
