"""In-memory collaborators shared by the use case and router tests."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from restaurant_booking.domain.errors import StorageError
from restaurant_booking.domain.repositories import CurrentUser, ReservationPatch
from restaurant_booking.models import ACTIVE_STATUSES, Reservation, ReservationStatus, RestaurantTable

NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()
TOMORROW = date(2030, 6, 2)
YESTERDAY = date(2030, 5, 31)
OWNER_ID = 7
OTHER_USER_ID = 8


def _naive(dt: datetime) -> datetime:
    return dt.replace(tzinfo=None)


def make_table(table_id: int, capacity: int, *, number: Optional[str] = None, reservable: bool = True) -> RestaurantTable:
    return RestaurantTable(
        id=table_id,
        table_number=number or f"T{table_id}",
        capacity=capacity,
        is_reservable=reservable,
        description_i18n={"en": f"Table {table_id}", "es": f"Mesa {table_id}"},
        created_at=_naive(NOW),
        updated_at=_naive(NOW),
    )


def make_reservation(
    reservation_id: int,
    *,
    user_id: int = OWNER_ID,
    reservation_date: date = TOMORROW,
    reservation_time: time = time(18, 0),
    party_size: int = 2,
    status: ReservationStatus = ReservationStatus.PENDING,
    table_id: Optional[int] = None,
    notes: Optional[Dict[str, str]] = None,
) -> Reservation:
    return Reservation(
        id=reservation_id,
        user_id=user_id,
        reservation_date=reservation_date,
        reservation_time=reservation_time,
        party_size=party_size,
        status=status,
        customer_notes_i18n=notes,
        internal_notes_i18n=None,
        table_id=table_id,
        created_at=_naive(NOW),
        updated_at=_naive(NOW),
    )


class FakeAuth:
    def __init__(self, user_id: Optional[int] = OWNER_ID) -> None:
        self.user_id = user_id

    async def get_current_user(self) -> Optional[CurrentUser]:
        return CurrentUser(id=self.user_id) if self.user_id is not None else None


class FakeTableCatalog:
    def __init__(self, tables: Iterable[RestaurantTable] = ()) -> None:
        self.tables = {table.id: table for table in tables}
        self.locked: List[int] = []
        self.error: Optional[Exception] = None

    async def list_reservable(self) -> List[RestaurantTable]:
        if self.error is not None:
            raise self.error
        return sorted((t for t in self.tables.values() if t.is_reservable), key=lambda t: t.table_number)

    async def get_table_capacity(
        self,
        table_id: int,
        *,
        reservable_only: bool = True,
        lock: bool = False,
    ) -> Optional[int]:
        if self.error is not None:
            raise self.error
        table = self.tables.get(table_id)
        if table is None or (reservable_only and not table.is_reservable):
            return None
        if lock:
            self.locked.append(table_id)
        return table.capacity


class FakeReservationRepo:
    def __init__(self, rows: Iterable[Reservation] = (), tables: Iterable[RestaurantTable] = ()) -> None:
        self.rows: Dict[int, Reservation] = {row.id: row for row in rows}
        self.tables = {table.id: table for table in tables}
        self.inserted: List[Reservation] = []
        self.updated: List[Tuple[int, int, ReservationPatch]] = []
        self.cancelled: List[Tuple[int, int]] = []
        self.write_error: Optional[Exception] = None
        self.read_error: Optional[Exception] = None
        self._next_id = max(self.rows, default=0) + 1

    @property
    def writes(self) -> int:
        return len(self.inserted) + len(self.updated) + len(self.cancelled)

    def _check_read(self) -> None:
        if self.read_error is not None:
            raise self.read_error

    def _check_write(self) -> None:
        if self.write_error is not None:
            raise self.write_error

    async def find_conflict(
        self,
        table_id: int,
        reservation_date: date,
        reservation_time: time,
        exclude_reservation_id: Optional[int] = None,
    ) -> bool:
        self._check_read()
        return any(
            row.table_id == table_id
            and row.reservation_date == reservation_date
            and row.reservation_time == reservation_time
            and row.status in ACTIVE_STATUSES
            and row.id != exclude_reservation_id
            for row in self.rows.values()
        )

    async def insert(
        self,
        *,
        user_id: int,
        reservation_date: date,
        reservation_time: time,
        party_size: int,
        customer_notes_i18n: Optional[Dict[str, Any]],
        table_id: Optional[int],
    ) -> int:
        self._check_write()
        row = make_reservation(
            self._next_id,
            user_id=user_id,
            reservation_date=reservation_date,
            reservation_time=reservation_time,
            party_size=party_size,
            status=ReservationStatus.PENDING,
            table_id=table_id,
            notes=customer_notes_i18n,
        )
        self._next_id += 1
        self.rows[row.id] = row
        self.inserted.append(row)
        return row.id

    async def find_owned(self, reservation_id: int, user_id: int) -> Optional[Reservation]:
        self._check_read()
        row = self.rows.get(reservation_id)
        if row is None or row.user_id != user_id:
            return None
        return row

    async def update_fields(self, reservation_id: int, user_id: int, patch: ReservationPatch) -> None:
        self._check_write()
        row = self.rows[reservation_id]
        assert row.user_id == user_id
        assert "status" not in patch
        for name, value in patch.items():
            setattr(row, name, value)
        self.updated.append((reservation_id, user_id, patch))

    async def cancel(self, reservation_id: int, user_id: int) -> None:
        self._check_write()
        row = self.rows[reservation_id]
        assert row.user_id == user_id
        row.status = ReservationStatus.CANCELLED
        self.cancelled.append((reservation_id, user_id))

    async def list_for_user(self, user_id: int) -> Optional[List[Tuple[Reservation, Optional[RestaurantTable]]]]:
        if self.read_error is not None:
            return None
        owned = [row for row in self.rows.values() if row.user_id == user_id]
        owned.sort(key=lambda row: (row.reservation_date, row.reservation_time), reverse=True)
        return [(row, self.tables.get(row.table_id) if row.table_id else None) for row in owned]

    async def get_for_user(
        self, reservation_id: int, user_id: int
    ) -> Optional[Tuple[Reservation, Optional[RestaurantTable]]]:
        self._check_read()
        row = self.rows.get(reservation_id)
        if row is None or row.user_id != user_id:
            return None
        return row, self.tables.get(row.table_id) if row.table_id else None


class RecordingCache:
    def __init__(self) -> None:
        self.invalidated: List[str] = []

    def invalidate(self, *tags: str) -> None:
        self.invalidated.extend(tags)


def storage_failure(message: str = "connection reset") -> StorageError:
    return StorageError(message)
