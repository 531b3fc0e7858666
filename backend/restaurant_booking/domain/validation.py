"""Schema checks on raw reservation input.

Everything here is independent of database state: table tokens are only
normalised, their existence is checked later by the rules engine.
"""

from __future__ import annotations

import re
from datetime import date, time
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from ..models import MAX_PARTY_SIZE, MIN_PARTY_SIZE
from .errors import ReasonCode, ValidationFailed

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")

_KNOWN_CODES = {code.value for code in ReasonCode}


def _reject(code: ReasonCode) -> PydanticCustomError:
    return PydanticCustomError(code.value, code.value)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = _as_text(value)
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


class ReservationForm(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    reservation_date: date
    reservation_time: time
    party_size: int
    customer_notes: Optional[str] = None
    table_id: Optional[str] = None

    @field_validator("reservation_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> date:
        if isinstance(value, date):
            return value
        text = _as_text(value)
        if not text:
            raise _reject(ReasonCode.REQUIRED_FIELD)
        try:
            return date.fromisoformat(text)
        except ValueError:
            raise _reject(ReasonCode.RESERVATION_DATE_INVALID) from None

    @field_validator("reservation_time", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> time:
        if isinstance(value, time):
            return value.replace(second=0, microsecond=0)
        match = TIME_PATTERN.match(_as_text(value))
        if match is None:
            raise _reject(ReasonCode.RESERVATION_TIME_INVALID)
        return time(int(match.group(1)), int(match.group(2)))

    @field_validator("party_size", mode="before")
    @classmethod
    def _coerce_party_size(cls, value: Any) -> int:
        size = _to_int(value)
        if size is None or size < MIN_PARTY_SIZE:
            raise _reject(ReasonCode.PARTY_SIZE_INVALID)
        if size > MAX_PARTY_SIZE:
            raise _reject(ReasonCode.PARTY_SIZE_TOO_LARGE)
        return size

    @field_validator("customer_notes", mode="before")
    @classmethod
    def _plain_notes(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise _reject(ReasonCode.NOTES_INVALID)
        return value or None

    @field_validator("table_id", mode="before")
    @classmethod
    def _table_token(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise _reject(ReasonCode.TABLE_ID_INVALID)
        return _as_text(value) or None


class ReservationUpdateForm(ReservationForm):
    reservation_id: int

    @field_validator("reservation_id", mode="before")
    @classmethod
    def _require_id(cls, value: Any) -> int:
        if not _as_text(value):
            raise _reject(ReasonCode.REQUIRED_FIELD)
        reservation_id = _to_int(value)
        if reservation_id is None or reservation_id < 1:
            raise _reject(ReasonCode.RESERVATION_ID_INVALID)
        return reservation_id


def _reason(error_type: str) -> ReasonCode:
    if error_type in _KNOWN_CODES:
        return ReasonCode(error_type)
    if error_type == "missing":
        return ReasonCode.REQUIRED_FIELD
    return ReasonCode.VALIDATION_ERROR


def _validate(model: type[ReservationForm], raw: Mapping[str, Any]) -> Any:
    # Every known field is passed explicitly so absent keys reach the validators as None.
    values = {name: raw.get(name) for name in model.model_fields}
    try:
        return model.model_validate(values)
    except ValidationError as exc:
        errors: dict[str, list[ReasonCode]] = {}
        for error in exc.errors():
            name = str(error["loc"][0]) if error["loc"] else "form"
            errors.setdefault(name, []).append(_reason(error["type"]))
        raise ValidationFailed(errors) from None


def validate_reservation_form(raw: Mapping[str, Any]) -> ReservationForm:
    """Validate create input; raises ``ValidationFailed`` with field-keyed reason codes."""
    return _validate(ReservationForm, raw)


def validate_update_form(raw: Mapping[str, Any]) -> ReservationUpdateForm:
    """Validate update input, which additionally requires ``reservation_id``."""
    return _validate(ReservationUpdateForm, raw)


def parse_reservation_id(value: Any) -> Optional[int]:
    """Positive integer id from a raw token, or None when absent or malformed."""
    reservation_id = _to_int(value)
    if reservation_id is None or reservation_id < 1:
        return None
    return reservation_id
