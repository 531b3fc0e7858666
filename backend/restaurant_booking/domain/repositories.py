from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Any, Optional, Protocol, TypedDict

from ..models import Reservation, RestaurantTable


@dataclass(frozen=True)
class CurrentUser:
    id: int


class ReservationPatch(TypedDict):
    reservation_date: date
    reservation_time: time
    party_size: int
    customer_notes_i18n: Optional[dict[str, str]]
    table_id: Optional[int]


class AuthProvider(Protocol):
    async def get_current_user(self) -> CurrentUser | None: ...


class CacheInvalidator(Protocol):
    def invalidate(self, *tags: str) -> None: ...


class TableCatalog(Protocol):
    async def list_reservable(self) -> list[RestaurantTable]: ...

    async def get_table_capacity(
        self,
        table_id: int,
        *,
        reservable_only: bool = True,
        lock: bool = False,
    ) -> int | None: ...


class ReservationRepository(Protocol):
    async def find_conflict(
        self,
        table_id: int,
        reservation_date: date,
        reservation_time: time,
        exclude_reservation_id: int | None = None,
    ) -> bool: ...

    async def insert(
        self,
        *,
        user_id: int,
        reservation_date: date,
        reservation_time: time,
        party_size: int,
        customer_notes_i18n: dict[str, Any] | None,
        table_id: int | None,
    ) -> int: ...

    async def find_owned(self, reservation_id: int, user_id: int) -> Reservation | None: ...

    async def update_fields(self, reservation_id: int, user_id: int, patch: ReservationPatch) -> None: ...

    async def cancel(self, reservation_id: int, user_id: int) -> None: ...

    async def list_for_user(self, user_id: int) -> list[tuple[Reservation, RestaurantTable | None]] | None: ...

    async def get_for_user(
        self, reservation_id: int, user_id: int
    ) -> tuple[Reservation, RestaurantTable | None] | None: ...


def user_reservations_tag(user_id: int) -> str:
    return f"user-reservations:{user_id}"


def reservation_tag(reservation_id: int) -> str:
    return f"reservation:{reservation_id}"
