from __future__ import annotations

from enum import StrEnum
from typing import Iterable, Mapping, Sequence


class ReasonCode(StrEnum):
    """Stable, translatable reason codes returned to callers."""

    # outcomes
    RESERVATION_CREATED = "reservationCreated"
    RESERVATION_UPDATED = "reservationUpdated"
    RESERVATION_CANCELLED = "reservationCancelled"

    # input
    VALIDATION_ERROR = "validationError"
    REQUIRED_FIELD = "requiredField"
    RESERVATION_DATE_INVALID = "reservationDateInvalid"
    RESERVATION_TIME_INVALID = "reservationTimeInvalid"
    PARTY_SIZE_INVALID = "partySizeInvalid"
    PARTY_SIZE_TOO_LARGE = "partySizeTooLarge"
    NOTES_INVALID = "notesInvalid"
    TABLE_ID_INVALID = "tableIdInvalid"
    RESERVATION_ID_INVALID = "reservationIdInvalid"
    INVALID_INPUT = "invalidInput"
    MISSING_RESERVATION_ID = "missingReservationId"

    # authorization
    USER_NOT_AUTHENTICATED = "userNotAuthenticated"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "notFound"

    # business rules
    RESERVATION_TIME_NOT_IN_FUTURE = "reservationTimeNotInFuture"
    PARTY_SIZE_EXCEEDS_TABLE_CAPACITY = "partySizeExceedsTableCapacity"
    TABLE_ALREADY_BOOKED_AT_TIME = "tableAlreadyBookedAtTime"
    CANNOT_UPDATE_RESERVATION = "cannotUpdateReservation"
    CANNOT_EDIT_STATUS = "cannotEditStatus"
    ALREADY_CANCELLED = "alreadyCancelled"
    CANNOT_CANCEL_STATUS = "cannotCancelStatus"
    CANNOT_CANCEL_PAST = "cannotCancelPast"

    # storage / unexpected
    DATABASE_ERROR = "databaseError"
    UNKNOWN_ERROR = "unknownError"
    GENERIC_ERROR = "genericError"


FieldErrorMap = Mapping[str, Sequence[ReasonCode]]


class ReservationRuleError(Exception):
    """Base class for rejections raised inside the reservation rules engine.

    ``fields`` names the input fields the rejection is attributed to; when it is
    empty the rejection is reported as a non-field error.
    """

    code: ReasonCode = ReasonCode.UNKNOWN_ERROR
    fields: tuple[str, ...] = ()

    def __init__(self, message: str | None = None, *, code: ReasonCode | None = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(message or str(self.code))

    def field_errors(self) -> dict[str, tuple[ReasonCode, ...]]:
        return {name: (self.code,) for name in self.fields}


class ValidationFailed(ReservationRuleError):
    code = ReasonCode.VALIDATION_ERROR

    def __init__(self, errors: Mapping[str, Iterable[ReasonCode]]) -> None:
        self.errors = {name: tuple(codes) for name, codes in errors.items()}
        super().__init__("validation failed")

    def field_errors(self) -> dict[str, tuple[ReasonCode, ...]]:
        return dict(self.errors)


class NotAuthenticatedError(ReservationRuleError):
    code = ReasonCode.USER_NOT_AUTHENTICATED


class InvalidInputError(ReservationRuleError):
    code = ReasonCode.INVALID_INPUT


class ReservationNotFoundError(ReservationRuleError):
    code = ReasonCode.NOT_FOUND


class InvalidTableError(ReservationRuleError):
    code = ReasonCode.TABLE_ID_INVALID
    fields = ("table_id",)


class CapacityError(ReservationRuleError):
    code = ReasonCode.PARTY_SIZE_EXCEEDS_TABLE_CAPACITY
    fields = ("party_size",)


class SlotConflictError(ReservationRuleError):
    code = ReasonCode.TABLE_ALREADY_BOOKED_AT_TIME
    fields = ("table_id", "reservation_date", "reservation_time")


class NotInFutureError(ReservationRuleError):
    code = ReasonCode.RESERVATION_TIME_NOT_IN_FUTURE
    fields = ("reservation_date", "reservation_time")


class NotEditableError(ReservationRuleError):
    code = ReasonCode.CANNOT_UPDATE_RESERVATION


class CancelNotAllowedError(ReservationRuleError):
    code = ReasonCode.CANNOT_CANCEL_STATUS


class AlreadyCancelledError(CancelNotAllowedError):
    code = ReasonCode.ALREADY_CANCELLED


class PastReservationError(CancelNotAllowedError):
    code = ReasonCode.CANNOT_CANCEL_PAST


class StorageError(Exception):
    """Raised by repositories when the store reports a failure.

    ``message`` is the store's own message and is forwarded verbatim.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
