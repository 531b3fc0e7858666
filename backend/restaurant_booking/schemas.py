from datetime import date, datetime, time
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, field_serializer

from .domain.errors import ReasonCode
from .domain.results import ActionResult, FieldError, NonFieldError, Success
from .models import Reservation, ReservationStatus, RestaurantTable
from .utils.i18n import localized_value, translate


class TableRead(BaseModel):
    table_id: int
    table_number: str
    capacity: int
    description: Optional[str]
    description_i18n: Optional[Dict[str, Any]]

    @classmethod
    def from_db(cls, *, table: RestaurantTable, locale: str) -> "TableRead":
        return cls(
            table_id=table.id,
            table_number=table.table_number,
            capacity=table.capacity,
            description=localized_value(table.description_i18n, locale),
            description_i18n=table.description_i18n,
        )


class TableList(BaseModel):
    tables: List[TableRead]


class ReservationRead(BaseModel):
    reservation_id: int
    user_id: int
    reservation_date: date
    reservation_time: time
    party_size: int
    status: ReservationStatus
    customer_notes: Optional[str]
    customer_notes_i18n: Optional[Dict[str, Any]]
    table_id: Optional[int]
    table_number: Optional[str] = None
    table_description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("reservation_time", when_used="json")
    def _ser_time(self, value: time) -> str:
        return value.strftime("%H:%M")

    @classmethod
    def from_db(
        cls,
        *,
        reservation: Reservation,
        table: Optional[RestaurantTable],
        locale: str,
    ) -> "ReservationRead":
        return cls(
            reservation_id=reservation.id,
            user_id=reservation.user_id,
            reservation_date=reservation.reservation_date,
            reservation_time=reservation.reservation_time,
            party_size=reservation.party_size,
            status=reservation.status,
            customer_notes=localized_value(reservation.customer_notes_i18n, locale),
            customer_notes_i18n=reservation.customer_notes_i18n,
            table_id=reservation.table_id,
            table_number=table.table_number if table is not None else None,
            table_description=localized_value(table.description_i18n, locale) if table is not None else None,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )


class ReservationEditRead(ReservationRead):
    table_capacity: Optional[int] = None

    @classmethod
    def from_edit(
        cls,
        *,
        reservation: Reservation,
        table: Optional[RestaurantTable],
        locale: str,
    ) -> "ReservationEditRead":
        base = ReservationRead.from_db(reservation=reservation, table=table, locale=locale)
        return cls(
            **base.model_dump(),
            table_capacity=table.capacity if table is not None else None,
        )


class ReservationList(BaseModel):
    # None means the list could not be read, as opposed to an empty list.
    reservations: Optional[List[ReservationRead]]


class ActionResponse(BaseModel):
    type: Literal["success", "error"]
    code: ReasonCode
    message: str
    field_errors: Optional[Dict[str, List[str]]] = None
    field_codes: Optional[Dict[str, List[ReasonCode]]] = None
    reservation_id: Optional[int] = None

    @classmethod
    def from_result(cls, result: ActionResult, *, locale: str) -> "ActionResponse":
        match result:
            case Success(code=code, reservation_id=reservation_id):
                return cls(type="success", code=code, message=translate(code, locale), reservation_id=reservation_id)
            case FieldError(code=code, fields=fields):
                return cls(
                    type="error",
                    code=code,
                    message=translate(code, locale),
                    field_errors={
                        name: [translate(reason, locale) for reason in reasons] for name, reasons in fields.items()
                    },
                    field_codes={name: list(reasons) for name, reasons in fields.items()},
                )
            case NonFieldError(code=ReasonCode.DATABASE_ERROR, detail=detail):
                # The store's own message is forwarded as is.
                message = detail or translate(ReasonCode.DATABASE_ERROR, locale)
                return cls(type="error", code=ReasonCode.DATABASE_ERROR, message=message)
            case NonFieldError(code=ReasonCode.UNKNOWN_ERROR, detail=detail):
                message = translate(ReasonCode.UNKNOWN_ERROR, locale)
                if detail:
                    message = f"{message}: {detail}"
                return cls(type="error", code=ReasonCode.UNKNOWN_ERROR, message=message)
            case NonFieldError(code=code):
                return cls(type="error", code=code, message=translate(code, locale))
        raise TypeError(f"unexpected result {result!r}")
