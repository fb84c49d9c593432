import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from spacebook.common.models.bookings import Booking, BookingStatus
from spacebook.common.models.payments import Payment, PaymentOrder, PaymentVerification, Refund
from spacebook.common.repository.payment_repo import PaymentRepository
from spacebook.common.schemas.bookings import CustomerDetailsRequest
from spacebook.common.schemas.payments import (
    CreateOrderRequest,
    GatewayCallback,
    RefundRequest,
    VerifyPaymentRequest,
)
from spacebook.common.utils.constants import DEFAULT_CURRENCY
from spacebook.common.utils.custom_exceptions import VerificationFailed

logger = logging.getLogger(__name__)


def to_minor_units(amount) -> int:
    """1000.00 rupees -> 100000 paise, rounded half-up on the decimal value."""
    minor = Decimal(str(amount)) * 100
    return int(minor.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    def __init__(self, payment_repo: PaymentRepository):
        self.payment_repo = payment_repo

    async def create_order(
        self,
        booking: Booking,
        total,
        customer: CustomerDetailsRequest,
        currency: str = DEFAULT_CURRENCY,
    ) -> PaymentOrder:
        req = CreateOrderRequest(
            booking_id=booking.booking_id,
            amount=to_minor_units(total),
            currency=currency,
            customer=customer,
        )
        order = await self.payment_repo.create_order(req)
        logger.info(
            "Created order %s for booking %s (%d %s)",
            order.order_id,
            booking.booking_id,
            order.amount,
            order.currency,
        )
        return order

    async def verify_payment(self, callback: GatewayCallback, booking_id: str) -> PaymentVerification:
        req = VerifyPaymentRequest.from_callback(callback, booking_id)
        verification = await self.payment_repo.verify_payment(req)

        if not verification.success:
            logger.error(f"Server rejected payment {req.payment_id} for booking {booking_id}")
            raise VerificationFailed("Payment verification failed. Please contact support.")

        if verification.booking and verification.booking.status != BookingStatus.CONFIRMED:
            logger.warning(
                "Verified booking %s came back as %s",
                booking_id,
                verification.booking.status.value,
            )
        return verification

    async def get_booking_payments(self, booking_id: str) -> List[Payment]:
        return await self.payment_repo.get_booking_payments(booking_id)

    async def refund(self, payment_id: str, reason: str, amount: Optional[float] = None) -> Refund:
        refund = await self.payment_repo.process_refund(
            payment_id, RefundRequest(reason=reason, amount=amount)
        )
        logger.info(f"Refund {refund.refund_id} for payment {payment_id}: {refund.status}")
        return refund
