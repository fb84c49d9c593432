import logging
from typing import List, Optional, Union

from pydantic import ValidationError

from spacebook.common.models.bookings import (
    Availability,
    Booking,
    BookingStatus,
    CancellationResult,
    StaffAction,
)
from spacebook.common.models.lifecycle import ACTION_TARGETS, can_transition, is_cancellable
from spacebook.common.repository.booking_repo import BookingRepository
from spacebook.common.schemas.bookings import BookingFilters, CreateBookingRequest
from spacebook.common.utils.custom_exceptions import BookingValidationError

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, booking_repo: BookingRepository):
        self.booking_repo = booking_repo

    async def create_booking(self, req: Union[CreateBookingRequest, dict]) -> Booking:
        if isinstance(req, dict):
            try:
                req = CreateBookingRequest.model_validate(req)
            except ValidationError as e:
                raise BookingValidationError(
                    "; ".join(f"{err['msg']}" for err in e.errors())
                ) from e

        booking = await self.booking_repo.create_booking(req)
        if booking.status != BookingStatus.PENDING:
            logger.warning(
                "New booking %s came back as %s", booking.booking_id, booking.status.value
            )
        logger.info(f"Created booking {booking.booking_code} for space {req.space_id}")
        return booking

    async def get_booking(self, booking_id: str) -> Booking:
        return await self.booking_repo.get_booking(booking_id)

    async def get_my_bookings(self, filters: Optional[BookingFilters] = None) -> List[Booking]:
        return await self.booking_repo.get_my_bookings(filters)

    async def get_todays_bookings(self, space_id: Optional[str] = None) -> List[Booking]:
        return await self.booking_repo.get_todays_bookings(space_id)

    async def check_availability(
        self, space_id: str, booking_date: str, start_time: str, end_time: str
    ) -> Availability:
        return await self.booking_repo.check_availability(
            space_id, booking_date, start_time, end_time
        )

    async def cancel_booking(
        self,
        booking_id: str,
        reason: Optional[str] = None,
        current: Optional[BookingStatus] = None,
    ) -> CancellationResult:
        # sent regardless of the displayed status; the server's clock decides
        if current is not None and not is_cancellable(current):
            logger.info(
                "Cancelling booking %s shown as %s, leaving the verdict to the server",
                booking_id,
                current.value,
            )
        result = await self.booking_repo.cancel_booking(booking_id, reason)
        logger.info(f"Cancelled booking {booking_id}: {result.message}")
        return result

    async def check_in_guest(
        self, booking_id: str, notes: Optional[str] = None, current: Optional[BookingStatus] = None
    ) -> Booking:
        return await self.apply_staff_action(booking_id, StaffAction.CHECK_IN, notes, current)

    async def check_out_guest(
        self, booking_id: str, notes: Optional[str] = None, current: Optional[BookingStatus] = None
    ) -> Booking:
        return await self.apply_staff_action(booking_id, StaffAction.CHECK_OUT, notes, current)

    async def mark_no_show(
        self, booking_id: str, notes: Optional[str] = None, current: Optional[BookingStatus] = None
    ) -> Booking:
        return await self.apply_staff_action(booking_id, StaffAction.NO_SHOW, notes, current)

    async def apply_staff_action(
        self,
        booking_id: str,
        action: StaffAction,
        notes: Optional[str] = None,
        current: Optional[BookingStatus] = None,
    ) -> Booking:
        updated = await self.booking_repo.update_status(booking_id, action.value, notes)
        if updated.status != ACTION_TARGETS[action]:
            logger.warning(
                "%s on booking %s left it %s", action.value, booking_id, updated.status.value
            )

        if current is not None and updated.status != current and not can_transition(current, updated.status):
            logger.warning(
                "Booking %s moved %s -> %s outside the lifecycle graph",
                booking_id,
                current.value,
                updated.status.value,
            )
        logger.info(f"{action.value} on booking {booking_id}, now {updated.status.value}")
        return updated
