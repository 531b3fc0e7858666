from datetime import date, time
from typing import Any, Dict

import pytest
from restaurant_booking.domain.errors import ReasonCode
from restaurant_booking.domain.results import FieldError, NonFieldError, Success
from restaurant_booking.models import ReservationStatus
from restaurant_booking.usecases import reservations as uc
from support import (
    NOW,
    OTHER_USER_ID,
    OWNER_ID,
    TOMORROW,
    YESTERDAY,
    FakeAuth,
    FakeReservationRepo,
    FakeTableCatalog,
    RecordingCache,
    make_reservation,
    make_table,
    storage_failure,
)


def _form(**overrides: Any) -> Dict[str, Any]:
    form: Dict[str, Any] = {
        "reservation_id": "1",
        "reservation_date": TOMORROW.isoformat(),
        "reservation_time": "19:30",
        "party_size": "4",
        "customer_notes": "Window please",
    }
    form.update(overrides)
    return form


def _catalog() -> FakeTableCatalog:
    return FakeTableCatalog(
        [
            make_table(1, capacity=4),
            make_table(2, capacity=6),
            make_table(3, capacity=8, reservable=False),
        ]
    )


async def _update(
    form: Dict[str, Any],
    *,
    repo: FakeReservationRepo,
    catalog: FakeTableCatalog | None = None,
    auth: FakeAuth | None = None,
    cache: RecordingCache | None = None,
    locale: str = "en",
):
    return await uc.update_reservation(
        auth or FakeAuth(),
        catalog or _catalog(),
        repo,
        cache or RecordingCache(),
        form=form,
        locale=locale,
        now=NOW,
    )


@pytest.mark.asyncio
async def test_update_moves_time_and_keeps_status() -> None:
    repo = FakeReservationRepo([make_reservation(1, status=ReservationStatus.CONFIRMED, table_id=1)])
    cache = RecordingCache()

    result = await _update(_form(), repo=repo, cache=cache)

    assert result == Success(code=ReasonCode.RESERVATION_UPDATED, reservation_id=1)
    row = repo.rows[1]
    assert row.reservation_time == time(19, 30)
    assert row.party_size == 4
    assert row.status == ReservationStatus.CONFIRMED
    assert row.table_id == 1
    assert row.customer_notes_i18n == {"en": "Window please"}
    assert cache.invalidated == [f"user-reservations:{OWNER_ID}", "reservation:1"]


@pytest.mark.asyncio
async def test_update_replaces_notes_map_with_active_locale() -> None:
    repo = FakeReservationRepo([make_reservation(1, notes={"en": "old", "es": "viejo"})])
    await _update(_form(customer_notes="nuevo"), repo=repo, locale="es")
    assert repo.rows[1].customer_notes_i18n == {"es": "nuevo"}


@pytest.mark.asyncio
async def test_update_of_another_users_reservation_is_not_found() -> None:
    repo = FakeReservationRepo([make_reservation(1, user_id=OTHER_USER_ID)])
    result = await _update(_form(), repo=repo)
    assert result == NonFieldError(code=ReasonCode.NOT_FOUND)
    assert repo.writes == 0


@pytest.mark.asyncio
async def test_update_requires_authentication() -> None:
    repo = FakeReservationRepo([make_reservation(1)])
    result = await _update(_form(), repo=repo, auth=FakeAuth(user_id=None))
    assert result == NonFieldError(code=ReasonCode.USER_NOT_AUTHENTICATED)


@pytest.mark.asyncio
async def test_update_without_reservation_id_is_field_error() -> None:
    repo = FakeReservationRepo([make_reservation(1)])
    result = await _update(_form(reservation_id=""), repo=repo)
    assert isinstance(result, FieldError)
    assert result.fields == {"reservation_id": (ReasonCode.REQUIRED_FIELD,)}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [ReservationStatus.CANCELLED, ReservationStatus.COMPLETED, ReservationStatus.NO_SHOW],
)
async def test_terminal_reservation_cannot_be_updated(status: ReservationStatus) -> None:
    repo = FakeReservationRepo([make_reservation(1, status=status)])
    result = await _update(_form(), repo=repo)
    assert result == NonFieldError(code=ReasonCode.CANNOT_UPDATE_RESERVATION)
    assert repo.writes == 0
    assert repo.rows[1].status == status


@pytest.mark.asyncio
async def test_update_into_the_past_is_rejected() -> None:
    repo = FakeReservationRepo([make_reservation(1)])
    result = await _update(_form(reservation_date=YESTERDAY.isoformat()), repo=repo)
    assert isinstance(result, FieldError)
    assert result.code == ReasonCode.RESERVATION_TIME_NOT_IN_FUTURE


@pytest.mark.asyncio
async def test_reassignment_to_booked_table_is_rejected() -> None:
    repo = FakeReservationRepo(
        [
            make_reservation(1, table_id=1),
            make_reservation(2, user_id=OTHER_USER_ID, table_id=2, reservation_time=time(19, 30)),
        ]
    )
    result = await _update(_form(table_id="2"), repo=repo)
    assert isinstance(result, FieldError)
    assert result.code == ReasonCode.TABLE_ALREADY_BOOKED_AT_TIME
    assert repo.writes == 0
    assert repo.rows[1].table_id == 1


@pytest.mark.asyncio
async def test_reassignment_to_free_table_is_applied() -> None:
    repo = FakeReservationRepo([make_reservation(1, table_id=1)])
    catalog = _catalog()
    result = await _update(_form(table_id="2", party_size="6"), repo=repo, catalog=catalog)
    assert isinstance(result, Success)
    assert repo.rows[1].table_id == 2
    assert catalog.locked == [2]


@pytest.mark.asyncio
async def test_reassignment_to_non_reservable_table_is_rejected() -> None:
    repo = FakeReservationRepo([make_reservation(1, table_id=1)])
    result = await _update(_form(table_id="3"), repo=repo)
    assert isinstance(result, FieldError)
    assert result.fields == {"table_id": (ReasonCode.TABLE_ID_INVALID,)}


@pytest.mark.asyncio
async def test_retained_table_is_rechecked_for_capacity() -> None:
    repo = FakeReservationRepo([make_reservation(1, table_id=1)])
    result = await _update(_form(table_id="1", party_size="5"), repo=repo)
    assert isinstance(result, FieldError)
    assert result.code == ReasonCode.PARTY_SIZE_EXCEEDS_TABLE_CAPACITY


@pytest.mark.asyncio
async def test_retained_table_ignores_its_own_slot() -> None:
    repo = FakeReservationRepo([make_reservation(1, table_id=1, reservation_time=time(19, 30))])
    result = await _update(_form(), repo=repo)
    assert isinstance(result, Success)


@pytest.mark.asyncio
async def test_retained_table_that_became_unreservable_is_kept() -> None:
    repo = FakeReservationRepo([make_reservation(1, table_id=3)])
    result = await _update(_form(table_id="3"), repo=repo)
    assert isinstance(result, Success)
    assert repo.rows[1].table_id == 3


@pytest.mark.asyncio
async def test_unassign_clears_table_without_catalog_lookup() -> None:
    repo = FakeReservationRepo([make_reservation(1, table_id=1)])
    catalog = _catalog()
    result = await _update(_form(table_id="unassign", party_size="12"), repo=repo, catalog=catalog)
    assert isinstance(result, Success)
    assert repo.rows[1].table_id is None
    assert catalog.locked == []


@pytest.mark.asyncio
async def test_storage_failure_leaves_reservation_untouched() -> None:
    repo = FakeReservationRepo([make_reservation(1, table_id=1)])
    repo.write_error = storage_failure("deadlock detected")
    cache = RecordingCache()
    result = await _update(_form(), repo=repo, cache=cache)
    assert result == NonFieldError(code=ReasonCode.DATABASE_ERROR, detail="deadlock detected")
    assert repo.rows[1].reservation_time == time(18, 0)
    assert repo.rows[1].reservation_date == date(2030, 6, 2)
    assert cache.invalidated == []
