from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

from .errors import ReasonCode, ReservationRuleError, StorageError


@dataclass(frozen=True)
class Success:
    code: ReasonCode
    reservation_id: Optional[int] = None


@dataclass(frozen=True)
class FieldError:
    code: ReasonCode
    fields: Mapping[str, tuple[ReasonCode, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class NonFieldError:
    code: ReasonCode
    detail: Optional[str] = None


ActionResult = Union[Success, FieldError, NonFieldError]


def result_from_error(exc: ReservationRuleError) -> FieldError | NonFieldError:
    fields = exc.field_errors()
    if fields:
        return FieldError(code=exc.code, fields=fields)
    return NonFieldError(code=exc.code)


def result_from_storage_error(exc: StorageError) -> NonFieldError:
    return NonFieldError(code=ReasonCode.DATABASE_ERROR, detail=exc.message or None)


def unknown_error(exc: BaseException) -> NonFieldError:
    return NonFieldError(code=ReasonCode.UNKNOWN_ERROR, detail=str(exc) or None)
