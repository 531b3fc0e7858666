"""Reservation rules engine.

Each mutation runs as one awaited sequence: authenticate, validate the raw
form, read current state, decide, and only then issue the single write.
Rejections are raised as domain errors inside the sequence and converted to
an ``ActionResult`` at the boundary, so callers never see an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Mapping, Optional

from ..domain.errors import (
    InvalidInputError,
    InvalidTableError,
    NotAuthenticatedError,
    ReasonCode,
    ReservationNotFoundError,
    ReservationRuleError,
    SlotConflictError,
    StorageError,
)
from ..domain.repositories import (
    AuthProvider,
    CacheInvalidator,
    CurrentUser,
    ReservationPatch,
    ReservationRepository,
    TableCatalog,
    reservation_tag,
    user_reservations_tag,
)
from ..domain.results import (
    ActionResult,
    Success,
    result_from_error,
    result_from_storage_error,
    unknown_error,
)
from ..domain.services import (
    ensure_cancellable,
    ensure_editable,
    ensure_in_future,
    ensure_within_capacity,
    parse_table_token,
    resolve_table_choice,
)
from ..domain.validation import (
    ReservationForm,
    parse_reservation_id,
    validate_reservation_form,
    validate_update_form,
)
from ..models import Reservation, ReservationStatus, RestaurantTable
from ..utils.audit_log import emit_audit_log
from ..utils.time import utc_now, utc_today

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditLookup:
    reservation: Optional[Reservation] = None
    table: Optional[RestaurantTable] = None
    error: Optional[ReasonCode] = None


async def _settle(action: str, operation: Awaitable[ActionResult]) -> ActionResult:
    try:
        return await operation
    except ReservationRuleError as exc:
        logger.info("%s rejected: %s", action, exc.code)
        return result_from_error(exc)
    except StorageError as exc:
        return result_from_storage_error(exc)
    except Exception as exc:
        logger.exception("unexpected failure during %s", action)
        return unknown_error(exc)


async def _require_user(auth: AuthProvider, *, code: ReasonCode = ReasonCode.USER_NOT_AUTHENTICATED) -> CurrentUser:
    user = await auth.get_current_user()
    if user is None:
        raise NotAuthenticatedError("no authenticated user", code=code)
    return user


def _notes_for_locale(notes: Optional[str], locale: str) -> Optional[dict[str, str]]:
    # The whole map is replaced; other locales are not merged in.
    return {locale: notes} if notes else None


async def _check_table_slot(
    tables: TableCatalog,
    reservations: ReservationRepository,
    *,
    table_id: int,
    form: ReservationForm,
    reservable_only: bool = True,
    exclude_reservation_id: Optional[int] = None,
) -> None:
    # Locking the table row serializes concurrent bookings of the same table
    # until the surrounding transaction commits or rolls back.
    capacity = await tables.get_table_capacity(table_id, reservable_only=reservable_only, lock=True)
    if capacity is None:
        raise InvalidTableError(f"table {table_id} not found")
    ensure_within_capacity(form.party_size, capacity)
    conflict = await reservations.find_conflict(
        table_id,
        form.reservation_date,
        form.reservation_time,
        exclude_reservation_id,
    )
    if conflict:
        raise SlotConflictError(f"table {table_id} already booked at this time")


def _safe_audit(**kwargs: Any) -> None:
    try:
        emit_audit_log(**kwargs)
    except RuntimeError:
        logger.exception("audit log failed for %s", kwargs.get("action"))


async def create_reservation(
    auth: AuthProvider,
    tables: TableCatalog,
    reservations: ReservationRepository,
    cache: CacheInvalidator,
    *,
    form: Mapping[str, Any],
    locale: str,
    now: Optional[datetime] = None,
) -> ActionResult:
    async def run() -> ActionResult:
        user = await _require_user(auth)
        data = validate_reservation_form(form)

        table_id: Optional[int] = None
        if data.table_id is not None:
            table_id = parse_table_token(data.table_id)
            await _check_table_slot(tables, reservations, table_id=table_id, form=data)

        ensure_in_future(data.reservation_date, data.reservation_time, now=now or utc_now())

        reservation_id = await reservations.insert(
            user_id=user.id,
            reservation_date=data.reservation_date,
            reservation_time=data.reservation_time,
            party_size=data.party_size,
            customer_notes_i18n=_notes_for_locale(data.customer_notes, locale),
            table_id=table_id,
        )
        cache.invalidate(user_reservations_tag(user.id))
        _safe_audit(
            action="reservation.created",
            initiator="user",
            reservation_id=reservation_id,
            user_id=user.id,
            table_id=table_id,
            party_size=data.party_size,
            status_from=None,
            status_to=ReservationStatus.PENDING,
            reservation_date=data.reservation_date,
            reservation_time=data.reservation_time,
        )
        return Success(code=ReasonCode.RESERVATION_CREATED, reservation_id=reservation_id)

    return await _settle("create_reservation", run())


async def update_reservation(
    auth: AuthProvider,
    tables: TableCatalog,
    reservations: ReservationRepository,
    cache: CacheInvalidator,
    *,
    form: Mapping[str, Any],
    locale: str,
    now: Optional[datetime] = None,
) -> ActionResult:
    async def run() -> ActionResult:
        user = await _require_user(auth)
        data = validate_update_form(form)

        current = await reservations.find_owned(data.reservation_id, user.id)
        if current is None:
            raise ReservationNotFoundError(f"reservation {data.reservation_id} not found")
        ensure_editable(current.status)
        ensure_in_future(data.reservation_date, data.reservation_time, now=now or utc_now())

        choice = resolve_table_choice(data.table_id, current.table_id)
        if choice.table_id is not None:
            # A retained table is re-checked too, since date, time or party size may have moved.
            await _check_table_slot(
                tables,
                reservations,
                table_id=choice.table_id,
                form=data,
                reservable_only=choice.reassigned,
                exclude_reservation_id=current.id,
            )

        patch = ReservationPatch(
            reservation_date=data.reservation_date,
            reservation_time=data.reservation_time,
            party_size=data.party_size,
            customer_notes_i18n=_notes_for_locale(data.customer_notes, locale),
            table_id=choice.table_id,
        )
        await reservations.update_fields(current.id, user.id, patch)
        cache.invalidate(user_reservations_tag(user.id), reservation_tag(current.id))
        _safe_audit(
            action="reservation.updated",
            initiator="user",
            reservation_id=current.id,
            user_id=user.id,
            table_id=choice.table_id,
            party_size=data.party_size,
            status_from=current.status,
            status_to=current.status,
            reservation_date=data.reservation_date,
            reservation_time=data.reservation_time,
            extra={"table_reassigned": choice.reassigned},
        )
        return Success(code=ReasonCode.RESERVATION_UPDATED, reservation_id=current.id)

    return await _settle("update_reservation", run())


async def cancel_reservation(
    auth: AuthProvider,
    reservations: ReservationRepository,
    cache: CacheInvalidator,
    *,
    reservation_id: Any,
    now: Optional[datetime] = None,
) -> ActionResult:
    async def run() -> ActionResult:
        target_id = parse_reservation_id(reservation_id)
        if target_id is None:
            raise InvalidInputError("reservation id is required")
        user = await _require_user(auth, code=ReasonCode.UNAUTHORIZED)

        current = await reservations.find_owned(target_id, user.id)
        if current is None:
            raise ReservationNotFoundError(f"reservation {target_id} not found")
        ensure_cancellable(current.status, current.reservation_date, today=utc_today(now))

        await reservations.cancel(current.id, user.id)
        cache.invalidate(user_reservations_tag(user.id), reservation_tag(current.id))
        _safe_audit(
            action="reservation.cancelled",
            initiator="user",
            reservation_id=current.id,
            user_id=user.id,
            table_id=current.table_id,
            party_size=current.party_size,
            status_from=current.status,
            status_to=ReservationStatus.CANCELLED,
        )
        return Success(code=ReasonCode.RESERVATION_CANCELLED, reservation_id=current.id)

    return await _settle("cancel_reservation", run())


async def list_user_reservations(
    res_repo: ReservationRepository,
    *,
    user_id: int,
) -> list[tuple[Reservation, Optional[RestaurantTable]]] | None:
    return await res_repo.list_for_user(user_id)


async def get_reservation_for_edit(
    auth: AuthProvider,
    res_repo: ReservationRepository,
    *,
    reservation_id: Any,
) -> EditLookup:
    """Fetch an owned reservation that is still editable, or the reason it is not available."""
    user = await auth.get_current_user()
    if user is None:
        return EditLookup(error=ReasonCode.USER_NOT_AUTHENTICATED)
    target_id = parse_reservation_id(reservation_id)
    if target_id is None:
        return EditLookup(error=ReasonCode.MISSING_RESERVATION_ID)

    try:
        row = await res_repo.get_for_user(target_id, user.id)
    except Exception:
        logger.exception("failed to load reservation %s for edit", target_id)
        return EditLookup(error=ReasonCode.GENERIC_ERROR)

    if row is None:
        return EditLookup(error=ReasonCode.NOT_FOUND)
    reservation, table = row
    if not ReservationStatus(reservation.status).is_active:
        return EditLookup(error=ReasonCode.CANNOT_EDIT_STATUS)
    return EditLookup(reservation=reservation, table=table)
