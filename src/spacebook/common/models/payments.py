from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from spacebook.common.models.bookings import Booking, PaymentStatus


@dataclass
class PaymentOrder:
    order_id: str
    booking_id: str
    amount: int  # minor units, e.g. paise
    currency: str
    key: Optional[str] = None


@dataclass
class Payment:
    payment_record_id: str
    booking_id: str
    order_id: str
    amount: float
    currency: str
    status: PaymentStatus
    payment_id: Optional[str] = None
    method: Optional[str] = None
    gateway: Optional[str] = None
    refund_amount: Optional[float] = None
    refunded_at: Optional[datetime] = None


@dataclass
class PaymentVerification:
    success: bool
    booking: Optional[Booking] = None
    payment: Optional[Payment] = None


@dataclass
class Refund:
    refund_id: str
    amount: float
    status: str
