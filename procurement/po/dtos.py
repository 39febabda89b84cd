"""
Data Transfer Objects for purchase orders.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional


@dataclass
class DirectPOItemDTO:
    """
    One line of a Direct PO. With ``request_id`` the existing request item
    is (re)issued; without it a new request item is created.
    """
    quantity: Decimal
    unit_rate: Decimal
    item_name: Optional[str] = None
    unit: Optional[str] = None
    request_id: Optional[int] = None
    description: Optional[str] = ''
    per_unit_basis: Decimal = Decimal('1')
    discount_percent: Decimal = Decimal('0')
    gst_tax_rate: Decimal = Decimal('0')
    is_urgent: bool = False


@dataclass
class DirectPOCreateDTO:
    delivery_site_id: int
    vendor_id: int
    items: List[DirectPOItemDTO] = field(default_factory=list)
    valid_till: Optional[date] = None
    notes: Optional[str] = ''


@dataclass
class POIssueItemDTO:
    """
    Standard PO line for a request item. Pricing defaults to the selected
    vendor's quote in the approved cost comparison.
    """
    request_id: int
    vendor_id: Optional[int] = None
    unit_rate: Optional[Decimal] = None
    per_unit_basis: Optional[Decimal] = None
    discount_percent: Optional[Decimal] = None
    gst_tax_rate: Optional[Decimal] = None


@dataclass
class POIssueDTO:
    items: List[POIssueItemDTO] = field(default_factory=list)
    delivery_site_id: Optional[int] = None
    valid_till: Optional[date] = None
    notes: Optional[str] = ''


@dataclass
class SignOffDTO:
    """Identifies a Direct PO by its id or by its request item"""
    po_id: Optional[int] = None
    request_id: Optional[int] = None
    reason: Optional[str] = ''


@dataclass
class POStatusUpdateDTO:
    po_id: int
    status: str
    reason: Optional[str] = ''
