import logging
from typing import List

from spacebook.common.models.bookings import PaymentStatus
from spacebook.common.models.payments import Payment, PaymentOrder, PaymentVerification, Refund
from spacebook.common.repository.booking_repo import BookingRepository
from spacebook.common.schemas.payments import (
    CreateOrderRequest,
    RefundRequest,
    VerifyPaymentRequest,
)
from spacebook.common.utils.custom_exceptions import ApiError
from spacebook.common.utils.custom_response import unwrap, unwrap_list
from spacebook.common.utils.datetime_normaliser import optional_iso
from spacebook.common.utils.http_client import ApiClient

logger = logging.getLogger(__name__)


class PaymentRepository:
    def __init__(self, client: ApiClient):
        self.client = client

    async def create_order(self, req: CreateOrderRequest) -> PaymentOrder:
        try:
            body = await self.client.post("/payments/order", json=req.to_payload())
        except ApiError as err:
            logger.error(f"Error creating order for booking {req.booking_id}: {err}")
            raise

        data = unwrap(body)
        return PaymentOrder(
            order_id=data.get("orderId") or data["id"],
            booking_id=req.booking_id,
            amount=int(data.get("amount", req.amount)),
            currency=data.get("currency") or req.currency,
            key=data.get("key"),
        )

    async def verify_payment(self, req: VerifyPaymentRequest) -> PaymentVerification:
        try:
            body = await self.client.post("/payments/verify", json=req.to_payload())
        except ApiError as err:
            logger.error(
                f"Error verifying payment {req.payment_id} for booking {req.booking_id}: {err}"
            )
            raise

        data = unwrap(body) or {}
        booking = data.get("booking")
        payment = data.get("payment")
        return PaymentVerification(
            success=bool(data.get("success")),
            booking=BookingRepository._to_domain(booking) if booking else None,
            payment=self._to_domain(payment) if payment else None,
        )

    async def get_booking_payments(self, booking_id: str) -> List[Payment]:
        try:
            body = await self.client.get(f"/payments/booking/{booking_id}")
        except ApiError as err:
            logger.error(f"Error retrieving payments for booking {booking_id}: {err}")
            raise
        return [self._to_domain(item) for item in unwrap_list(body)]

    async def process_refund(self, payment_id: str, req: RefundRequest) -> Refund:
        try:
            body = await self.client.post(
                f"/payments/{payment_id}/refund", json=req.model_dump(exclude_none=True)
            )
        except ApiError as err:
            logger.error(f"Error refunding payment {payment_id}: {err}")
            raise

        data = unwrap(body)
        return Refund(
            refund_id=data["refundId"],
            amount=float(data["amount"]),
            status=data["status"],
        )

    @staticmethod
    def _to_domain(item: dict) -> Payment:
        return Payment(
            payment_record_id=item.get("_id") or item.get("id", ""),
            booking_id=item.get("bookingId", ""),
            order_id=item.get("orderId", ""),
            amount=float(item.get("amount") or 0),
            currency=item.get("currency", "INR"),
            status=PaymentStatus(item.get("status") or "pending"),
            payment_id=item.get("paymentId"),
            method=item.get("method"),
            gateway=item.get("gateway"),
            refund_amount=item.get("refundAmount"),
            refunded_at=optional_iso(item.get("refundedAt")),
        )
