from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date, time
from typing import Any, AsyncIterator, List, Optional, Tuple

from sqlalchemy import Select, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import StorageError
from ..domain.repositories import ReservationPatch, ReservationRepository, TableCatalog
from ..models import ACTIVE_STATUSES, Reservation, ReservationStatus, RestaurantTable
from ..utils.time import utc_now_naive

logger = logging.getLogger(__name__)


def _store_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def _slot_time(value: time) -> time:
    return value.replace(second=0, microsecond=0)


class _SessionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def _storage_errors(self, action: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.warning("storage failure during %s: %s", action, exc)
            await self.session.rollback()
            raise StorageError(_store_message(exc)) from exc


class SqlAlchemyTableCatalog(_SessionRepository, TableCatalog):
    async def list_reservable(self) -> List[RestaurantTable]:
        stmt = (
            select(RestaurantTable)
            .where(RestaurantTable.is_reservable.is_(True))
            .order_by(RestaurantTable.table_number.asc())
        )
        async with self._storage_errors("list_reservable"):
            result = await self.session.scalars(stmt)
            return list(result.all())

    async def get_table_capacity(
        self,
        table_id: int,
        *,
        reservable_only: bool = True,
        lock: bool = False,
    ) -> int | None:
        stmt = select(RestaurantTable.capacity).where(RestaurantTable.id == table_id)
        if reservable_only:
            stmt = stmt.where(RestaurantTable.is_reservable.is_(True))
        if lock:
            stmt = stmt.with_for_update()
        async with self._storage_errors("get_table_capacity"):
            capacity = await self.session.scalar(stmt)
        return int(capacity) if capacity is not None else None


class SqlAlchemyReservationRepository(_SessionRepository, ReservationRepository):
    async def find_conflict(
        self,
        table_id: int,
        reservation_date: date,
        reservation_time: time,
        exclude_reservation_id: int | None = None,
    ) -> bool:
        stmt = select(Reservation.id).where(
            Reservation.table_id == table_id,
            Reservation.reservation_date == reservation_date,
            Reservation.reservation_time == _slot_time(reservation_time),
            Reservation.status.in_(ACTIVE_STATUSES),
        )
        if exclude_reservation_id is not None:
            stmt = stmt.where(Reservation.id != exclude_reservation_id)
        async with self._storage_errors("find_conflict"):
            return await self.session.scalar(stmt.limit(1)) is not None

    async def insert(
        self,
        *,
        user_id: int,
        reservation_date: date,
        reservation_time: time,
        party_size: int,
        customer_notes_i18n: dict[str, Any] | None,
        table_id: int | None,
    ) -> int:
        now = utc_now_naive()
        reservation = Reservation(
            user_id=user_id,
            reservation_date=reservation_date,
            reservation_time=_slot_time(reservation_time),
            party_size=party_size,
            status=ReservationStatus.PENDING,
            customer_notes_i18n=customer_notes_i18n,
            table_id=table_id,
            created_at=now,
            updated_at=now,
        )
        async with self._storage_errors("insert"):
            self.session.add(reservation)
            await self.session.flush()
            await self.session.commit()
        return reservation.id

    async def find_owned(self, reservation_id: int, user_id: int) -> Reservation | None:
        stmt = (
            select(Reservation)
            .where(Reservation.id == reservation_id, Reservation.user_id == user_id)
            .with_for_update()
        )
        async with self._storage_errors("find_owned"):
            result = await self.session.scalar(stmt)
        return result if isinstance(result, Reservation) else None

    async def update_fields(self, reservation_id: int, user_id: int, patch: ReservationPatch) -> None:
        values: dict[str, Any] = dict(patch)
        values.pop("status", None)
        values["reservation_time"] = _slot_time(patch["reservation_time"])
        values["updated_at"] = utc_now_naive()
        stmt = (
            update(Reservation)
            .where(Reservation.id == reservation_id, Reservation.user_id == user_id)
            .values(**values)
        )
        async with self._storage_errors("update_fields"):
            await self.session.execute(stmt)
            await self.session.commit()

    async def cancel(self, reservation_id: int, user_id: int) -> None:
        stmt = (
            update(Reservation)
            .where(Reservation.id == reservation_id, Reservation.user_id == user_id)
            .values(status=ReservationStatus.CANCELLED, updated_at=utc_now_naive())
        )
        async with self._storage_errors("cancel"):
            await self.session.execute(stmt)
            await self.session.commit()

    def _with_table(self) -> Select[Tuple[Reservation, RestaurantTable]]:
        return select(Reservation, RestaurantTable).outerjoin(
            RestaurantTable, Reservation.table_id == RestaurantTable.id
        )

    async def list_for_user(self, user_id: int) -> Optional[List[Tuple[Reservation, Optional[RestaurantTable]]]]:
        stmt = (
            self._with_table()
            .where(Reservation.user_id == user_id)
            .order_by(Reservation.reservation_date.desc(), Reservation.reservation_time.desc())
        )
        try:
            rows = await self.session.execute(stmt)
        except SQLAlchemyError:
            logger.exception("failed to list reservations for user %s", user_id)
            return None
        return [(reservation, table) for reservation, table in rows.all()]

    async def get_for_user(
        self, reservation_id: int, user_id: int
    ) -> Optional[Tuple[Reservation, Optional[RestaurantTable]]]:
        stmt = self._with_table().where(Reservation.id == reservation_id, Reservation.user_id == user_id)
        async with self._storage_errors("get_for_user"):
            row = (await self.session.execute(stmt)).first()
        if row is None:
            return None
        reservation, table = row
        return reservation, table
