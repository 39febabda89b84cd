"""
Data Transfer Objects for deliveries.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional


@dataclass
class DeliveryItemDTO:
    request_id: int
    quantity: Decimal


@dataclass
class DeliveryMetaDTO:
    """Transport, receiver and payment details printed on the challan."""
    delivery_type: str = 'vendor'
    delivery_person: str = ''
    delivery_contact: str = ''
    vehicle_number: str = ''
    transport_name: str = ''
    transport_id: str = ''
    receiver_name: str = ''
    purchaser_name: str = ''
    loading_photo: str = ''
    invoice_photo: str = ''
    receipt_photo: str = ''
    payment_amount: Optional[Decimal] = None
    payment_status: str = 'pending'


@dataclass
class DeliveryCreateDTO:
    po_id: int
    items: List[DeliveryItemDTO] = field(default_factory=list)
    meta: DeliveryMetaDTO = field(default_factory=DeliveryMetaDTO)


@dataclass
class DeliveryConfirmDTO:
    request_id: int
    photos: List[str] = field(default_factory=list)
