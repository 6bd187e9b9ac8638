"""
Booking lifecycle rules.

    pending      -> accepted | cancelled
    accepted     -> in-progress | cancelled
    in-progress  -> completed
    completed, cancelled: terminal

Customers may only cancel their own bookings while they are still pending.
Providers may drive any allowed transition on bookings assigned to them.
All status changes go through this module; endpoints never write a status
directly.
"""

import random
import string
import time
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, TypeVar, Union

from homeease.db.db_models import BookingStatus, UserRole

T = TypeVar("T")

ALL_FILTER = "all"

TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.ACCEPTED, BookingStatus.CANCELLED}),
    BookingStatus.ACCEPTED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

CUSTOMER_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CANCELLED}),
}


class InvalidTransition(ValueError):
    """Raised when a booking cannot move to the requested status."""

    def __init__(self, current: str, target: str, reason: Optional[str] = None):
        self.current = current
        self.target = target
        message = reason or f"Cannot change booking status from '{current}' to '{target}'"
        super().__init__(message)


def _as_status(value: Union[str, BookingStatus]) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        raise InvalidTransition(str(value), str(value), f"Unknown booking status '{value}'")


def is_terminal(status: Union[str, BookingStatus]) -> bool:
    return not TRANSITIONS[_as_status(status)]


def can_transition(current: Union[str, BookingStatus], target: Union[str, BookingStatus]) -> bool:
    return _as_status(target) in TRANSITIONS[_as_status(current)]


def allowed_targets(current: Union[str, BookingStatus], actor_role: str) -> Set[BookingStatus]:
    """Statuses the given role may move a booking to from `current`."""
    current = _as_status(current)
    if actor_role == UserRole.PROVIDER.value:
        return set(TRANSITIONS[current])
    if actor_role == UserRole.CUSTOMER.value:
        return set(CUSTOMER_TRANSITIONS.get(current, frozenset()))
    return set()


def check_transition(
    current: Union[str, BookingStatus], target: Union[str, BookingStatus], actor_role: str
) -> BookingStatus:
    """Validate a transition for an actor and return the target status."""
    current_status = _as_status(current)
    target_status = _as_status(target)

    if current_status == target_status:
        raise InvalidTransition(
            current_status.value, target_status.value,
            f"Booking is already '{current_status.value}'",
        )
    if not can_transition(current_status, target_status):
        raise InvalidTransition(current_status.value, target_status.value)
    if target_status not in allowed_targets(current_status, actor_role):
        raise InvalidTransition(
            current_status.value, target_status.value,
            f"A {actor_role} cannot change a '{current_status.value}' booking to '{target_status.value}'",
        )
    return target_status


def _status_of(booking) -> Optional[str]:
    if isinstance(booking, dict):
        return booking.get("status")
    return getattr(booking, "status", None)


def filter_by_status(bookings: Iterable[T], status_filter: Optional[str]) -> List[T]:
    """Keep bookings whose status equals the filter; `all` or empty keeps everything."""
    bookings = list(bookings)
    if not status_filter or status_filter == ALL_FILTER:
        return bookings
    return [b for b in bookings if _status_of(b) == status_filter]


def count_by_status(bookings: Iterable) -> Dict[str, int]:
    counts = {status.value: 0 for status in BookingStatus}
    for booking in bookings:
        status = _status_of(booking)
        if status in counts:
            counts[status] += 1
    return counts


def generate_booking_code() -> str:
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"BOOK-{int(time.time() * 1000)}-{suffix}"
