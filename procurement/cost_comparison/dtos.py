"""
Data Transfer Objects for cost comparisons.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional


@dataclass
class VendorQuoteDTO:
    vendor_id: int
    unit_price: Decimal
    discount_percent: Decimal = Decimal('0')
    gst_percent: Decimal = Decimal('0')
    per_unit_basis: Decimal = Decimal('1')


@dataclass
class CostComparisonUpsertDTO:
    """DTO for creating/editing the draft comparison of a request item"""
    request_id: int
    quotes: List[VendorQuoteDTO] = field(default_factory=list)
    selected_vendor_id: Optional[int] = None


@dataclass
class CostComparisonResubmitDTO:
    comparison_id: int
    quotes: List[VendorQuoteDTO] = field(default_factory=list)
    selected_vendor_id: Optional[int] = None


@dataclass
class CostComparisonReviewDTO:
    """Manager decision on a submitted comparison"""
    comparison_id: int
    selected_vendor_id: Optional[int] = None
    notes: Optional[str] = ''
