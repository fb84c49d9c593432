import logging
from typing import List, Optional

from spacebook.common.models.bookings import (
    Availability,
    Booking,
    BookingStatus,
    CancellationResult,
    CustomerDetails,
    Discount,
    PaymentInfo,
    PaymentStatus,
    PricingDetails,
)
from spacebook.common.schemas.bookings import BookingFilters, CreateBookingRequest
from spacebook.common.utils.custom_exceptions import ApiError
from spacebook.common.utils.custom_response import unwrap, unwrap_list
from spacebook.common.utils.datetime_normaliser import optional_iso
from spacebook.common.utils.http_client import ApiClient

logger = logging.getLogger(__name__)


class BookingRepository:
    def __init__(self, client: ApiClient):
        self.client = client

    async def create_booking(self, req: CreateBookingRequest) -> Booking:
        try:
            body = await self.client.post("/bookings", json=req.to_payload())
        except ApiError as err:
            logger.error(f"Error creating booking for space {req.space_id}: {err}")
            raise
        return self._to_domain(unwrap(body))

    async def get_booking(self, booking_id: str) -> Booking:
        try:
            body = await self.client.get(f"/bookings/{booking_id}")
        except ApiError as err:
            logger.error(f"Error retrieving booking {booking_id}: {err}")
            raise
        return self._to_domain(unwrap(body))

    async def get_my_bookings(self, filters: Optional[BookingFilters] = None) -> List[Booking]:
        params = filters.to_params() if filters else None
        try:
            body = await self.client.get("/bookings/my", params=params)
        except ApiError as err:
            logger.error(f"Error retrieving bookings: {err}")
            raise
        return [self._to_domain(item) for item in unwrap_list(body)]

    async def get_todays_bookings(self, space_id: Optional[str] = None) -> List[Booking]:
        params = {"spaceId": space_id} if space_id else None
        try:
            body = await self.client.get("/bookings/today", params=params)
        except ApiError as err:
            logger.error(f"Error retrieving today's bookings: {err}")
            raise
        return [self._to_domain(item) for item in unwrap_list(body)]

    async def check_availability(
        self, space_id: str, booking_date: str, start_time: str, end_time: str
    ) -> Availability:
        body = await self.client.post(
            "/bookings/check-availability",
            json={
                "spaceId": space_id,
                "date": booking_date,
                "startTime": start_time,
                "endTime": end_time,
            },
        )
        data = unwrap(body) or {}
        return Availability(
            available=bool(data.get("available")),
            conflicts=data.get("conflicts") or [],
        )

    async def cancel_booking(self, booking_id: str, reason: Optional[str] = None) -> CancellationResult:
        try:
            body = await self.client.patch(
                f"/bookings/{booking_id}/cancel", json={"reason": reason}
            )
        except ApiError as err:
            logger.error(f"Error cancelling booking {booking_id}: {err}")
            raise

        data = unwrap(body) or {}
        return CancellationResult(
            message=data.get("message") or "Booking cancelled",
            refund_amount=data.get("refundAmount"),
        )

    async def update_status(self, booking_id: str, action: str, notes: Optional[str] = None) -> Booking:
        """PATCH one of the staff transitions (check-in, check-out, no-show)."""
        try:
            body = await self.client.patch(
                f"/bookings/{booking_id}/{action}", json={"notes": notes}
            )
        except ApiError as err:
            logger.error(f"Error applying {action} to booking {booking_id}: {err}")
            raise
        return self._to_domain(unwrap(body))

    @staticmethod
    def _to_domain(item: dict) -> Booking:
        customer = item.get("customerDetails") or {}
        pricing = item.get("pricing")
        payment = item.get("payment") or {}

        return Booking(
            booking_id=item.get("_id") or item["id"],
            booking_code=item.get("bookingCode", ""),
            space_id=item.get("spaceId", ""),
            customer_id=item.get("customerId", ""),
            booking_date=optional_iso(item.get("bookingDate")),
            start_time=item.get("startTime", ""),
            end_time=item.get("endTime", ""),
            duration=float(item.get("duration") or 0),
            customer=CustomerDetails(
                name=customer.get("name", ""),
                email=customer.get("email", ""),
                phone=customer.get("phone", ""),
                guest_count=int(customer.get("guestCount") or 1),
                event_purpose=customer.get("eventPurpose"),
                special_requests=customer.get("specialRequests"),
            ),
            pricing=(
                PricingDetails(
                    base_amount=float(pricing.get("baseAmount") or 0),
                    taxes=float(pricing.get("taxes") or 0),
                    total_amount=float(pricing.get("totalAmount") or 0),
                    discounts=[
                        Discount(
                            type=d.get("type", ""),
                            amount=float(d.get("amount") or 0),
                            description=d.get("description", ""),
                        )
                        for d in pricing.get("discounts") or []
                    ],
                    promo_code=pricing.get("promoCode"),
                )
                if pricing
                else None
            ),
            payment=PaymentInfo(
                status=PaymentStatus(payment.get("status") or "pending"),
                order_id=payment.get("orderId"),
                payment_id=payment.get("paymentId"),
                method=payment.get("method"),
            ),
            status=BookingStatus.parse(item.get("status") or "pending"),
            cancelled_at=optional_iso(item.get("cancelledAt")),
            cancellation_reason=item.get("cancellationReason"),
            refund_amount=item.get("refundAmount"),
            checked_in_at=optional_iso(item.get("checkedInAt")),
            checked_out_at=optional_iso(item.get("checkedOutAt")),
            notes=item.get("notes"),
        )
