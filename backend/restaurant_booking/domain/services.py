from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Optional

from ..models import ReservationStatus
from .errors import (
    AlreadyCancelledError,
    CancelNotAllowedError,
    CapacityError,
    InvalidTableError,
    NotEditableError,
    NotInFutureError,
    PastReservationError,
)

UNASSIGN_TABLE = "unassign"


@dataclass(frozen=True)
class TableChoice:
    """Outcome of resolving a table token against a reservation's current table.

    ``table_id`` is the table the reservation will hold after the write and
    ``reassigned`` tells whether it differs from the current assignment.
    """

    table_id: Optional[int]
    reassigned: bool


def reservation_instant(reservation_date: date, reservation_time: time) -> datetime:
    """UTC instant of a reservation: midnight of the date plus the time of day."""
    return datetime.combine(reservation_date, reservation_time.replace(second=0, microsecond=0), tzinfo=timezone.utc)


def ensure_in_future(reservation_date: date, reservation_time: time, *, now: datetime) -> None:
    if reservation_instant(reservation_date, reservation_time) <= now:
        raise NotInFutureError("reservation time must be in the future")


def ensure_within_capacity(party_size: int, capacity: int) -> None:
    if party_size > capacity:
        raise CapacityError("party size exceeds table capacity")


def ensure_editable(status: ReservationStatus) -> None:
    if not ReservationStatus(status).is_active:
        raise NotEditableError(f"reservation in status {status} cannot be updated")


def ensure_cancellable(status: ReservationStatus, reservation_date: date, *, today: date) -> None:
    """
    Only active reservations dated today or later can be cancelled by the owner.
    Raises the domain error matching the first failed rule.
    """
    status = ReservationStatus(status)
    if status == ReservationStatus.CANCELLED:
        raise AlreadyCancelledError("reservation already cancelled")
    if not status.is_active:
        raise CancelNotAllowedError(f"reservation in status {status} cannot be cancelled")
    if reservation_date < today:
        raise PastReservationError("cannot cancel past reservations")


def parse_table_token(token: str) -> int:
    try:
        table_id = int(token, 10)
    except ValueError:
        raise InvalidTableError("table token is not an integer") from None
    if table_id < 1:
        raise InvalidTableError("table token is not a positive id")
    return table_id


def resolve_table_choice(token: Optional[str], current_table_id: Optional[int]) -> TableChoice:
    """
    Map the submitted table token onto the table the reservation should hold.

    - no token keeps the current table
    - ``"unassign"`` clears the table
    - the current table id as a string keeps the current table
    - anything else must parse as a table id and is a reassignment
    """
    if token is None:
        return TableChoice(table_id=current_table_id, reassigned=False)
    if token == UNASSIGN_TABLE:
        return TableChoice(table_id=None, reassigned=current_table_id is not None)
    if current_table_id is not None and token == str(current_table_id):
        return TableChoice(table_id=current_table_id, reassigned=False)
    return TableChoice(table_id=parse_table_token(token), reassigned=True)
