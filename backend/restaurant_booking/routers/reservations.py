from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status
from fastapi.responses import JSONResponse

from ..deps import get_auth_provider, get_locale, get_reservation_repo, get_cache_invalidator, get_table_catalog
from ..domain.errors import ReasonCode
from ..domain.repositories import (
    AuthProvider,
    CacheInvalidator,
    ReservationRepository,
    TableCatalog,
)
from ..domain.results import ActionResult, FieldError, Success
from ..schemas import ActionResponse, ReservationEditRead, ReservationList, ReservationRead
from ..usecases import reservations as reservation_usecase
from ..utils.i18n import translate

router = APIRouter(prefix="", tags=["reservations"])

_STATUS_BY_CODE: Dict[ReasonCode, int] = {
    ReasonCode.USER_NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ReasonCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ReasonCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ReasonCode.MISSING_RESERVATION_ID: status.HTTP_400_BAD_REQUEST,
    ReasonCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ReasonCode.TABLE_ALREADY_BOOKED_AT_TIME: status.HTTP_409_CONFLICT,
    ReasonCode.CANNOT_UPDATE_RESERVATION: status.HTTP_409_CONFLICT,
    ReasonCode.CANNOT_EDIT_STATUS: status.HTTP_409_CONFLICT,
    ReasonCode.ALREADY_CANCELLED: status.HTTP_409_CONFLICT,
    ReasonCode.CANNOT_CANCEL_STATUS: status.HTTP_409_CONFLICT,
    ReasonCode.CANNOT_CANCEL_PAST: status.HTTP_409_CONFLICT,
    ReasonCode.DATABASE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ReasonCode.UNKNOWN_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ReasonCode.GENERIC_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _status_for(result: ActionResult, *, success_status: int) -> int:
    if isinstance(result, Success):
        return success_status
    if result.code in _STATUS_BY_CODE:
        return _STATUS_BY_CODE[result.code]
    if isinstance(result, FieldError):
        return 422
    return status.HTTP_400_BAD_REQUEST


def _respond(result: ActionResult, *, locale: str, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    body = ActionResponse.from_result(result, locale=locale)
    return JSONResponse(
        status_code=_status_for(result, success_status=success_status),
        content=body.model_dump(mode="json", exclude_none=True),
    )


def _http_error(code: ReasonCode, locale: str) -> HTTPException:
    return HTTPException(
        status_code=_STATUS_BY_CODE.get(code, status.HTTP_400_BAD_REQUEST),
        detail={"code": code.value, "message": translate(code, locale)},
    )


@router.post("/reservations", response_model=ActionResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    form: Dict[str, Any] = Body(...),
    auth: AuthProvider = Depends(get_auth_provider),
    tables: TableCatalog = Depends(get_table_catalog),
    reservations: ReservationRepository = Depends(get_reservation_repo),
    cache: CacheInvalidator = Depends(get_cache_invalidator),
    locale: str = Depends(get_locale),
) -> JSONResponse:
    result = await reservation_usecase.create_reservation(
        auth,
        tables,
        reservations,
        cache,
        form=form,
        locale=locale,
    )
    return _respond(result, locale=locale, success_status=status.HTTP_201_CREATED)


@router.get("/me/reservations", response_model=ReservationList)
async def list_my_reservations(
    auth: AuthProvider = Depends(get_auth_provider),
    reservations: ReservationRepository = Depends(get_reservation_repo),
    locale: str = Depends(get_locale),
) -> ReservationList:
    user = await auth.get_current_user()
    if user is None:
        raise _http_error(ReasonCode.USER_NOT_AUTHENTICATED, locale)

    rows = await reservation_usecase.list_user_reservations(reservations, user_id=user.id)
    if rows is None:
        return ReservationList(reservations=None)
    return ReservationList(
        reservations=[ReservationRead.from_db(reservation=res, table=table, locale=locale) for res, table in rows]
    )


@router.get("/me/reservations/{reservation_id}", response_model=ReservationEditRead)
async def get_my_reservation(
    reservation_id: str = Path(...),
    auth: AuthProvider = Depends(get_auth_provider),
    reservations: ReservationRepository = Depends(get_reservation_repo),
    locale: str = Depends(get_locale),
) -> ReservationEditRead:
    user = await auth.get_current_user()
    if user is None:
        raise _http_error(ReasonCode.USER_NOT_AUTHENTICATED, locale)

    lookup = await reservation_usecase.get_reservation_for_edit(auth, reservations, reservation_id=reservation_id)
    if lookup.error is not None or lookup.reservation is None:
        raise _http_error(lookup.error or ReasonCode.GENERIC_ERROR, locale)
    return ReservationEditRead.from_edit(reservation=lookup.reservation, table=lookup.table, locale=locale)


@router.put("/me/reservations/{reservation_id}", response_model=ActionResponse)
async def update_reservation(
    reservation_id: str = Path(...),
    form: Dict[str, Any] = Body(...),
    auth: AuthProvider = Depends(get_auth_provider),
    tables: TableCatalog = Depends(get_table_catalog),
    reservations: ReservationRepository = Depends(get_reservation_repo),
    cache: CacheInvalidator = Depends(get_cache_invalidator),
    locale: str = Depends(get_locale),
) -> JSONResponse:
    result = await reservation_usecase.update_reservation(
        auth,
        tables,
        reservations,
        cache,
        form={**form, "reservation_id": reservation_id},
        locale=locale,
    )
    return _respond(result, locale=locale)


@router.post("/me/reservations/{reservation_id}/cancel", response_model=ActionResponse)
async def cancel_reservation(
    reservation_id: str = Path(...),
    auth: AuthProvider = Depends(get_auth_provider),
    reservations: ReservationRepository = Depends(get_reservation_repo),
    cache: CacheInvalidator = Depends(get_cache_invalidator),
    locale: str = Depends(get_locale),
) -> JSONResponse:
    result = await reservation_usecase.cancel_reservation(
        auth,
        reservations,
        cache,
        reservation_id=reservation_id,
    )
    return _respond(result, locale=locale)
