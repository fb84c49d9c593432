"""
Checkout: pending booking -> payment order -> gateway widget -> server verification.

The flow only reports what the server says. A gateway success callback is
forwarded to the verification endpoint and never treated as proof of payment.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError

from spacebook.common.models.bookings import Booking
from spacebook.common.models.payments import PaymentOrder, PaymentVerification
from spacebook.common.schemas.bookings import CreateBookingRequest
from spacebook.common.schemas.payments import GatewayCallback
from spacebook.common.services.booking_service import BookingService
from spacebook.common.services.payment_service import PaymentService
from spacebook.common.utils.constants import APP_NAME, RAZORPAY_CHECKOUT_SRC, RAZORPAY_KEY
from spacebook.common.utils.custom_exceptions import (
    ApiError,
    BookingValidationError,
    GatewayError,
    VerificationFailed,
)

logger = logging.getLogger(__name__)

GATEWAY_NOT_LOADED = "Payment gateway not loaded. Please refresh and try again."
INITIATE_FAILED = "Failed to initiate payment. Please try again."
GATEWAY_CRASHED = "Payment gateway error. Please try again."
PAYMENT_FAILED = "Payment failed"
VERIFY_FAILED = "Payment verification failed. Please contact support."


class CheckoutStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


class GatewayEvent(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DISMISSED = "dismissed"


@dataclass
class GatewayOutcome:
    event: GatewayEvent
    callback: Optional[GatewayCallback] = None
    error_description: Optional[str] = None


@dataclass
class CheckoutOptions:
    key: str
    order_id: str
    amount: int
    currency: str
    name: str
    description: str
    prefill: dict = field(default_factory=dict)
    notes: dict = field(default_factory=dict)


@dataclass
class CheckoutDetails:
    booking: CreateBookingRequest
    total: float
    space_name: str = ""


@dataclass
class CheckoutResult:
    """
    Handed to on_success once the server accepts the payment.

    booking is None when verification carried no booking and reloading it
    failed. The payment is still verified; fetch the booking again by id.
    """

    booking: Optional[Booking]
    verification: PaymentVerification
    callback: GatewayCallback


class PaymentGateway:
    """
    The hosted checkout widget.

    load/unload bracket one mount of the checkout screen. open shows the widget
    and resolves once the customer pays, the gateway reports a failure, or the
    customer closes it. Implementations raise GatewayError if the widget itself
    breaks.
    """

    script_src = RAZORPAY_CHECKOUT_SRC

    @property
    def loaded(self) -> bool:
        raise NotImplementedError

    async def load(self):
        raise NotImplementedError

    async def unload(self):
        raise NotImplementedError

    async def open(self, options: CheckoutOptions) -> GatewayOutcome:
        raise NotImplementedError


class CheckoutFlow:
    def __init__(
        self,
        booking_service: BookingService,
        payment_service: PaymentService,
        gateway: PaymentGateway,
        key: str = RAZORPAY_KEY,
        on_success: Optional[Callable[[CheckoutResult], None]] = None,
        on_failure: Optional[Callable[[object], None]] = None,
    ):
        self.booking_service = booking_service
        self.payment_service = payment_service
        self.gateway = gateway
        self.key = key
        self.on_success = on_success
        self.on_failure = on_failure

        self.status = CheckoutStatus.IDLE
        self.error = ""
        self.booking: Optional[Booking] = None

        self._mounted = False
        self._pending_booking: Optional[Booking] = None
        self._pending_request: Optional[CreateBookingRequest] = None

    async def __aenter__(self):
        await self.mount()
        return self

    async def __aexit__(self, *exc_info):
        await self.unmount()

    async def mount(self):
        if self._mounted:
            return
        await self.gateway.load()
        self._mounted = True

    async def unmount(self):
        if not self._mounted:
            return
        await self.gateway.unload()
        self._mounted = False

    @property
    def is_loading(self) -> bool:
        return self.status == CheckoutStatus.PROCESSING

    @property
    def can_pay(self) -> bool:
        return self.status in (CheckoutStatus.IDLE, CheckoutStatus.FAILED)

    def dismiss_error(self):
        if self.status == CheckoutStatus.FAILED:
            self.status = CheckoutStatus.IDLE
            self.error = ""

    async def pay(self, details: CheckoutDetails) -> Optional[Booking]:
        if not self.can_pay:
            logger.warning(f"Ignoring payment trigger while checkout is {self.status.value}")
            return None

        if not (self._mounted and self.gateway.loaded):
            self.error = GATEWAY_NOT_LOADED
            return None

        self.status = CheckoutStatus.PROCESSING
        self.error = ""

        try:
            booking = await self._booking_for(details.booking)
            order = await self.payment_service.create_order(
                booking, details.total, details.booking.customer
            )
            outcome = await self.gateway.open(self._options(order, details))
        except ApiError as err:
            logger.error(f"Payment initiation failed: {err}")
            return self._fail(err.message or INITIATE_FAILED, err)
        except BookingValidationError as err:
            return self._fail(str(err) or INITIATE_FAILED, err)
        except ValidationError as err:
            logger.error(f"Payment order rejected before sending: {err}")
            return self._fail(INITIATE_FAILED, err)
        except GatewayError as err:
            logger.error(f"Payment gateway broke: {err}")
            return self._fail(GATEWAY_CRASHED, err)
        except Exception as err:
            logger.exception(f"Unexpected error while starting payment: {err}")
            return self._fail(INITIATE_FAILED, err)

        if outcome.event == GatewayEvent.DISMISSED:
            logger.info(f"Checkout dismissed, booking {booking.booking_id} stays pending")
            self.status = CheckoutStatus.IDLE
            return None

        if outcome.event == GatewayEvent.FAILED:
            return self._fail(outcome.error_description or PAYMENT_FAILED, outcome)

        if outcome.callback is None:
            logger.error(f"Gateway reported success without a callback for {booking.booking_id}")
            return self._fail(GATEWAY_CRASHED, outcome)

        return await self._verify(booking, outcome.callback)

    async def _booking_for(self, req: CreateBookingRequest) -> Booking:
        # a retry after a failed payment reuses the pending booking and gets a fresh order
        if self._pending_booking is not None and self._pending_request == req:
            return self._pending_booking

        booking = await self.booking_service.create_booking(req)
        self._pending_booking = booking
        self._pending_request = req
        self.booking = booking
        return booking

    async def _verify(self, booking: Booking, callback: GatewayCallback) -> Optional[Booking]:
        try:
            verification = await self.payment_service.verify_payment(
                callback, booking.booking_id
            )
        except ApiError as err:
            logger.error(f"Payment verification failed for {booking.booking_id}: {err}")
            return self._fail(err.message or VERIFY_FAILED, err)
        except VerificationFailed as err:
            return self._fail(str(err) or VERIFY_FAILED, err)
        except Exception as err:
            logger.exception(f"Unexpected error verifying payment for {booking.booking_id}: {err}")
            return self._fail(VERIFY_FAILED, err)

        confirmed = verification.booking
        if confirmed is None:
            try:
                confirmed = await self.booking_service.get_booking(booking.booking_id)
            except ApiError as err:
                logger.warning(f"Could not reload verified booking {booking.booking_id}: {err}")

        self.status = CheckoutStatus.SUCCESS
        self.booking = confirmed
        self._pending_booking = None
        self._pending_request = None

        if self.on_success:
            self.on_success(CheckoutResult(confirmed, verification, callback))
        return confirmed

    def _fail(self, message: str, err: object) -> None:
        self.status = CheckoutStatus.FAILED
        self.error = message
        if self.on_failure:
            self.on_failure(err)
        return None

    def _options(self, order: PaymentOrder, details: CheckoutDetails) -> CheckoutOptions:
        customer = details.booking.customer
        return CheckoutOptions(
            key=order.key or self.key,
            order_id=order.order_id,
            amount=order.amount,
            currency=order.currency,
            name=APP_NAME,
            description=f"Booking for {details.space_name}".strip(),
            prefill={
                "name": customer.name,
                "email": customer.email,
                "contact": customer.phone,
            },
            notes={
                "space_id": details.booking.space_id,
                "booking_date": details.booking.booking_date.isoformat(),
                "duration": details.booking.duration_hours,
            },
        )
