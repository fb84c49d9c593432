from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    REFUNDED = "refunded"

    @classmethod
    def parse(cls, value: str) -> "BookingStatus":
        # the API spells multi-word statuses with hyphens
        return cls(value.strip().lower().replace("-", "_"))


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class StaffAction(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"
    NO_SHOW = "no-show"


@dataclass
class CustomerDetails:
    name: str
    email: str
    phone: str
    guest_count: int = 1
    event_purpose: Optional[str] = None
    special_requests: Optional[str] = None


@dataclass
class Discount:
    type: str
    amount: float
    description: str = ""


@dataclass
class PricingDetails:
    base_amount: float
    taxes: float
    total_amount: float
    discounts: List[Discount] = field(default_factory=list)
    promo_code: Optional[str] = None


@dataclass
class PaymentInfo:
    status: PaymentStatus = PaymentStatus.PENDING
    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    method: Optional[str] = None


@dataclass
class Booking:
    booking_id: str
    booking_code: str
    space_id: str
    customer_id: str
    booking_date: Optional[datetime]
    start_time: str
    end_time: str
    duration: float
    customer: CustomerDetails
    pricing: Optional[PricingDetails] = None
    payment: PaymentInfo = field(default_factory=PaymentInfo)
    status: BookingStatus = BookingStatus.PENDING

    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[float] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    notes: Optional[str] = None


@dataclass
class CancellationResult:
    message: str
    refund_amount: Optional[float] = None


@dataclass
class Availability:
    available: bool
    conflicts: list = field(default_factory=list)
