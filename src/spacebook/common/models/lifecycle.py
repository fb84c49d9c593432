"""
Booking lifecycle graph.

pending -> confirmed -> checked_in -> checked_out
                     -> no_show
pending / confirmed -> cancelled
confirmed -> refunded

The server owns every transition. These helpers only decide what the client
offers to the user and flag server responses that jump the graph.
"""

from typing import Dict, FrozenSet, List

from spacebook.common.models.bookings import BookingStatus, StaffAction


TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset(
        {
            BookingStatus.CHECKED_IN,
            BookingStatus.NO_SHOW,
            BookingStatus.CANCELLED,
            BookingStatus.REFUNDED,
        }
    ),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT}),
    BookingStatus.CHECKED_OUT: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.REFUNDED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in TRANSITIONS.items() if not targets
)

STAFF_ACTIONS: Dict[BookingStatus, List[StaffAction]] = {
    BookingStatus.CONFIRMED: [StaffAction.CHECK_IN, StaffAction.NO_SHOW],
    BookingStatus.CHECKED_IN: [StaffAction.CHECK_OUT],
}

ACTION_TARGETS: Dict[StaffAction, BookingStatus] = {
    StaffAction.CHECK_IN: BookingStatus.CHECKED_IN,
    StaffAction.CHECK_OUT: BookingStatus.CHECKED_OUT,
    StaffAction.NO_SHOW: BookingStatus.NO_SHOW,
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS[current]


def is_terminal(status: BookingStatus) -> bool:
    return status in TERMINAL_STATUSES


def staff_actions(status: BookingStatus) -> List[StaffAction]:
    return list(STAFF_ACTIONS.get(status, []))


def is_cancellable(status: BookingStatus) -> bool:
    """Whether cancellation is worth offering. The server still decides."""
    return BookingStatus.CANCELLED in TRANSITIONS[status]
