"""
Data Transfer Objects for material requests.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional


@dataclass
class RequestItemDTO:
    """One line of a new request or draft"""
    item_name: str
    quantity: Decimal
    unit: str
    description: Optional[str] = ''
    is_urgent: bool = False


@dataclass
class RequestCreateDTO:
    """DTO for creating a request (or saving a draft) with one or more items"""
    site_id: int
    required_by: datetime
    items: List[RequestItemDTO] = field(default_factory=list)
    notes: Optional[str] = ''


@dataclass
class StatusUpdateDTO:
    request_id: int
    new_status: str
    reason: Optional[str] = ''


@dataclass
class BulkStatusUpdateDTO:
    request_ids: List[int]
    new_status: str
    reason: Optional[str] = ''


@dataclass
class RequestDetailUpdateDTO:
    """Purchase officer correction of an item before it is priced"""
    request_id: int
    item_name: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None


@dataclass
class ResubmitDTO:
    """Site engineer resubmission of a rejected item, optionally corrected"""
    request_id: int
    item_name: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    required_by: Optional[datetime] = None


@dataclass
class StockFulfilmentDTO:
    request_id: int
    quantity: Decimal
