import logging
from typing import List, Optional

from spacebook.common.models.bookings import Booking, BookingStatus, StaffAction
from spacebook.common.models.lifecycle import is_terminal, staff_actions
from spacebook.common.services.booking_service import BookingService
from spacebook.common.utils.custom_exceptions import ApiError, TransitionNotAvailable

logger = logging.getLogger(__name__)

NOT_FOUND = "No booking found"

STATUS_LABELS = {
    BookingStatus.PENDING: "Pending",
    BookingStatus.CONFIRMED: "Confirmed",
    BookingStatus.CHECKED_IN: "Checked In",
    BookingStatus.CHECKED_OUT: "Checked Out",
    BookingStatus.CANCELLED: "Cancelled",
    BookingStatus.NO_SHOW: "No Show",
    BookingStatus.REFUNDED: "Refunded",
}


class CheckInScanner:
    """
    Front-desk lookup over the server's list of today's bookings.

    Which bookings count as "today" is decided by the server; the scanner only
    filters what it was given.
    """

    def __init__(self, booking_service: BookingService, space_id: Optional[str] = None):
        self.booking_service = booking_service
        self.space_id = space_id

        self.todays_bookings: List[Booking] = []
        self.results: List[Booking] = []
        self.selected: Optional[Booking] = None
        self.message = ""
        self.error = ""
        self.busy = False

    async def load(self) -> List[Booking]:
        self.todays_bookings = await self.booking_service.get_todays_bookings(self.space_id)
        return self.todays_bookings

    def search(self, query: str) -> List[Booking]:
        needle = query.strip().lower()
        if not needle:
            return self.results

        self.results = [
            booking
            for booking in self.todays_bookings
            if needle in booking.booking_code.lower()
            or needle in booking.customer.name.lower()
            or needle in booking.customer.email.lower()
        ]
        self.selected = self.results[0] if len(self.results) == 1 else None
        self.message = NOT_FOUND if not self.results else ""
        return self.results

    def select(self, booking_id: str) -> Optional[Booking]:
        for booking in self.results:
            if booking.booking_id == booking_id:
                self.selected = booking
                return booking
        return None

    def available_actions(self) -> List[StaffAction]:
        if self.selected is None or is_terminal(self.selected.status):
            return []
        return staff_actions(self.selected.status)

    def status_label(self) -> str:
        if self.selected is None:
            return ""
        return STATUS_LABELS[self.selected.status]

    async def check_in(self, notes: Optional[str] = None) -> Optional[Booking]:
        return await self._apply(StaffAction.CHECK_IN, notes)

    async def check_out(self, notes: Optional[str] = None) -> Optional[Booking]:
        return await self._apply(StaffAction.CHECK_OUT, notes)

    async def mark_no_show(self, notes: Optional[str] = None) -> Optional[Booking]:
        return await self._apply(StaffAction.NO_SHOW, notes)

    async def _apply(self, action: StaffAction, notes: Optional[str]) -> Optional[Booking]:
        booking = self.selected
        if booking is None or action not in staff_actions(booking.status):
            raise TransitionNotAvailable(
                booking.booking_code if booking else "",
                booking.status.value if booking else "",
                action.value,
            )

        if self.busy:
            logger.warning(f"Ignoring {action.value} while another action is in flight")
            return None

        self.busy = True
        self.error = ""
        try:
            updated = await self.booking_service.apply_staff_action(
                booking.booking_id, action, notes, current=booking.status
            )
        except ApiError as err:
            logger.error(f"{action.value} failed for {booking.booking_code}: {err}")
            self.error = err.message
            return None
        finally:
            self.busy = False

        self._replace(updated)
        return updated

    def _replace(self, updated: Booking):
        self.selected = updated
        self.todays_bookings = [
            updated if b.booking_id == updated.booking_id else b for b in self.todays_bookings
        ]
        self.results = [
            updated if b.booking_id == updated.booking_id else b for b in self.results
        ]
