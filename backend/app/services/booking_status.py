"""
Booking status state machine.

    pending ──► confirmed ──► completed
       │            │
       └────────────┴──► cancelled

completed and cancelled are terminal. Only the current status is kept;
there is no transition history.
"""

from app.db.base import utcnow
from app.models.booking import BookingStatus

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)


class InvalidStatusTransition(ValueError):
    def __init__(self, current: BookingStatus, target: BookingStatus):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move booking from '{current.value}' to '{target.value}'")


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def apply_transition(record, target: BookingStatus) -> bool:
    """
    Move a booking (or birthday party) to `target`.

    Returns True if the status changed, False when it already had that
    status. Raises InvalidStatusTransition for any other move.
    """
    current = BookingStatus(record.status)
    target = BookingStatus(target)
    if current == target:
        return False
    if not can_transition(current, target):
        raise InvalidStatusTransition(current, target)

    record.status = target.value
    record.updated_at = utcnow()
    return True
